import pytest

from autoshop.errors import InsufficientStockError, ProductNotFoundError, ValidationError
from autoshop.extensions import db
from autoshop.models import StockMovement
from autoshop.services import stock_ledger


def test_initial_stock_is_booked_as_adjustment(product):
    movements = stock_ledger.list_movements(product.id)

    assert stock_ledger.get_stock(product.id) == 5
    assert len(movements) == 1
    assert movements[0].reason == stock_ledger.REASON_ADJUSTMENT
    assert movements[0].quantity_delta == 5
    assert movements[0].stock_after == 5


def test_debit_and_credit_append_movements(product):
    assert stock_ledger.debit(product.id, 3, reason=stock_ledger.REASON_SALE, transaction_kind="SALE", transaction_id=7) == 2
    assert stock_ledger.credit(product.id, 1, reason=stock_ledger.REASON_SALE_REVERSAL, transaction_kind="SALE", transaction_id=7) == 3
    db.session.commit()

    movements = stock_ledger.list_movements(product.id)
    assert [m.quantity_delta for m in movements] == [5, -3, 1]
    assert [m.stock_after for m in movements] == [5, 2, 3]
    assert movements[1].transaction_kind == "SALE"
    assert movements[1].transaction_id == 7
    assert stock_ledger.get_stock(product.id) == 3


def test_debit_refuses_to_go_negative(product):
    with pytest.raises(InsufficientStockError) as exc:
        stock_ledger.debit(product.id, 6, reason=stock_ledger.REASON_SALE)
    db.session.rollback()

    assert exc.value.available == 5
    assert exc.value.requested == 6
    assert exc.value.message == f"Insufficient stock for {product.part_name}. Available: 5"
    assert stock_ledger.get_stock(product.id) == 5


def test_debit_of_exact_stock_reaches_zero(product):
    assert stock_ledger.debit(product.id, 5, reason=stock_ledger.REASON_SALE) == 0
    db.session.commit()
    assert stock_ledger.get_stock(product.id) == 0


def test_unknown_product(db_session):
    with pytest.raises(ProductNotFoundError):
        stock_ledger.debit(999_999, 1, reason=stock_ledger.REASON_SALE)
    with pytest.raises(ProductNotFoundError):
        stock_ledger.credit(999_999, 1, reason=stock_ledger.REASON_SALE_REVERSAL)
    with pytest.raises(ProductNotFoundError):
        stock_ledger.get_stock(999_999)
    db.session.rollback()


def test_non_positive_quantities_rejected(product):
    with pytest.raises(ValueError):
        stock_ledger.debit(product.id, 0, reason=stock_ledger.REASON_SALE)
    with pytest.raises(ValueError):
        stock_ledger.credit(product.id, -1, reason=stock_ledger.REASON_SALE_REVERSAL)


def test_set_stock_records_difference(product):
    assert stock_ledger.set_stock(product.id, 12) == 12
    db.session.commit()

    last = stock_ledger.list_movements(product.id)[-1]
    assert last.reason == stock_ledger.REASON_ADJUSTMENT
    assert last.quantity_delta == 7
    assert last.stock_after == 12


def test_set_stock_to_same_value_writes_nothing(product):
    before = db.session.query(StockMovement).count()
    assert stock_ledger.set_stock(product.id, 5) == 5
    db.session.commit()
    assert db.session.query(StockMovement).count() == before


def test_set_stock_rejects_negative(product):
    with pytest.raises(ValidationError):
        stock_ledger.set_stock(product.id, -1)


def test_uncommitted_ledger_writes_roll_back(product):
    stock_ledger.debit(product.id, 2, reason=stock_ledger.REASON_SALE)
    db.session.rollback()

    assert stock_ledger.get_stock(product.id) == 5
    assert len(stock_ledger.list_movements(product.id)) == 1
