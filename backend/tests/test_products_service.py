import pytest

from autoshop.errors import ConflictError, ProductNotFoundError
from autoshop.extensions import db
from autoshop.models import Product, StockMovement
from autoshop.services import products_service, sales_service, stock_ledger
from autoshop.services.transaction_engine import LineRequest


def test_search_matches_name_brand_and_model(make_product):
    make_product(part_name="Oil filter", car_brand="Mazda", car_model="3")
    make_product(part_name="Air filter", car_brand="Kia", car_model="Picanto")
    make_product(part_name="Spark plug", car_brand="Hyundai", car_model="i20")

    assert products_service.list_products(query="FILTER")["count"] == 2
    assert products_service.list_products(query="picanto")["count"] == 1
    assert products_service.list_products(query="hyun")["items"][0]["part_name"] == "Spark plug"


def test_category_filter_and_order(make_product):
    first = make_product(category="Keys")
    second = make_product(category="Keys")
    make_product(category="Filters")

    result = products_service.list_products(category="Keys")
    assert [p["id"] for p in result["items"]] == [second.id, first.id]


def test_update_stock_goes_through_ledger(product):
    products_service.update_product(product_id=product.id, patch={"stock_quantity": 9, "bin_location": "B-2"})

    refreshed = products_service.get_product(product.id)
    assert refreshed.stock_quantity == 9
    assert refreshed.bin_location == "B-2"
    last = stock_ledger.list_movements(product.id)[-1]
    assert (last.reason, last.quantity_delta) == (stock_ledger.REASON_ADJUSTMENT, 4)


def test_update_without_stock_writes_no_movement(product):
    before = db.session.query(StockMovement).count()
    products_service.update_product(product_id=product.id, patch={"selling_price_cents": 1100})
    assert db.session.query(StockMovement).count() == before


def test_low_stock(make_product):
    make_product(stock_quantity=1)
    make_product(stock_quantity=3)
    make_product(stock_quantity=4)

    assert [p.stock_quantity for p in products_service.list_low_stock(3)] == [1, 3]


def test_delete_unreferenced_product_keeps_movements(product):
    product_id = product.id
    products_service.delete_product(product_id=product_id)

    assert db.session.get(Product, product_id) is None
    assert len(stock_ledger.list_movements(product_id)) == 1


def test_delete_referenced_product_conflicts(product):
    sales_service.create_sale([LineRequest(product_id=product.id, quantity=1, price_at_sale_cents=1000)])

    with pytest.raises(ConflictError):
        products_service.delete_product(product_id=product.id)
    assert products_service.get_product(product.id).stock_quantity == 4


def test_missing_product(db_session):
    with pytest.raises(ProductNotFoundError):
        products_service.get_product(424242)
    with pytest.raises(ProductNotFoundError):
        products_service.update_product(product_id=424242, patch={"part_name": "x"})
