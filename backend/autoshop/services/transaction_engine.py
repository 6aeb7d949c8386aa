# Overview: Generic atomic create/update/delete for stock-consuming records (sales, services).

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..extensions import db
from ..errors import InsufficientStockError, ProductNotFoundError, TransactionNotFoundError
from ..models import Product, TransactionKind
from autoshop.time_utils import utcnow
from . import stock_ledger
from .concurrency import begin_atomic_unit, lock_for_update, run_with_retry
"""
Transaction Engine Invariants (authoritative)

- Each create/update/delete is ONE atomic unit: record row, line rows, stock
  changes and stock movements commit together or not at all.
- Lines are never edited in place. Update reverts every existing line
  (credit), deletes them, writes the new line set, then re-applies (debit).
  Any failure in any step rolls back all steps, leaving record, lines and
  stock exactly as they were.
- Conservation: for every product,
    stock = initial stock +/- adjustments - sum(quantity of live lines)
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineRequest:
    """One requested line. price_at_sale_cents is None when the kind snapshots prices itself."""
    product_id: int
    quantity: int
    price_at_sale_cents: int | None = None


class TransactionKindSpec:
    """
    What differs between kinds of stock-consuming records.

    Subclasses live next to their aggregate (sales_service,
    service_records_service); the engine only talks to this interface.
    """
    kind: str = ""
    label: str = ""
    record_model = None
    line_model = None
    line_fk: str = ""
    debit_reason: str = ""
    credit_reason: str = ""

    def snapshot_price(self, line: LineRequest, product: Product) -> int:
        """Unit price frozen onto the line when it is written."""
        raise NotImplementedError

    def apply_fields(self, record, fields: dict, lines: list[LineRequest], prices: list[int]) -> None:
        """Copy kind-specific fields onto the record and recompute its total."""
        raise NotImplementedError

    def lines_query(self, transaction_id: int):
        fk = getattr(self.line_model, self.line_fk)
        return (
            db.session.query(self.line_model)
            .filter(fk == transaction_id)
            .order_by(self.line_model.id.asc())
        )


def _check_kind(spec: TransactionKindSpec) -> None:
    if spec.kind not in TransactionKind.ALL:
        raise ValueError(f"Unknown transaction kind: {spec.kind!r}")


def _aggregate_quantities(lines: list[LineRequest]) -> dict[int, int]:
    totals: dict[int, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def _load_products(product_ids) -> dict[int, Product]:
    if not product_ids:
        return {}
    products = (
        db.session.query(Product)
        .filter(Product.id.in_(list(product_ids)))
        .populate_existing()
        .all()
    )
    return {p.id: p for p in products}


def precheck_stock(lines: list[LineRequest]) -> None:
    """
    Advisory check before the atomic unit: every product exists and has
    enough stock for the summed quantity requested.

    Stock can still move before the debit; debit re-checks atomically.
    """
    totals = _aggregate_quantities(lines)
    products = _load_products(totals.keys())
    for product_id, qty in totals.items():
        product = products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if product.stock_quantity < qty:
            raise InsufficientStockError(
                product_id=product_id,
                product_name=product.part_name,
                available=product.stock_quantity,
                requested=qty,
            )


def _write_record(spec: TransactionKindSpec, record, fields: dict, lines: list[LineRequest]) -> None:
    products = _load_products({line.product_id for line in lines})
    for line in lines:
        if line.product_id not in products:
            raise ProductNotFoundError(line.product_id)
    prices = [spec.snapshot_price(line, products[line.product_id]) for line in lines]

    spec.apply_fields(record, fields, lines, prices)
    record.updated_at = utcnow()
    db.session.add(record)
    db.session.flush()  # assigns record.id for the line FKs

    for line, price in zip(lines, prices):
        db.session.add(
            spec.line_model(
                **{spec.line_fk: record.id},
                product_id=line.product_id,
                quantity=line.quantity,
                price_at_sale_cents=price,
            )
        )
    db.session.flush()


def _debit_lines(spec: TransactionKindSpec, record, lines: list[LineRequest]) -> None:
    for line in lines:
        stock_ledger.debit(
            line.product_id,
            line.quantity,
            reason=spec.debit_reason,
            transaction_kind=spec.kind,
            transaction_id=record.id,
        )


def create_transaction(spec: TransactionKindSpec, lines: list[LineRequest], fields: dict | None = None):
    """
    Insert a record with its lines and debit stock for every line.

    Raises ProductNotFoundError / InsufficientStockError; nothing is
    persisted in that case.
    """
    _check_kind(spec)
    fields = fields or {}
    precheck_stock(lines)

    def _op():
        begin_atomic_unit()
        record = spec.record_model()
        _write_record(spec, record, fields, lines)
        _debit_lines(spec, record, lines)
        db.session.commit()
        return record

    record = run_with_retry(_op)
    logger.info("Created %s %s with %d line(s)", spec.label, record.id, len(lines))
    return record


def update_transaction(
    spec: TransactionKindSpec,
    transaction_id: int,
    lines: list[LineRequest],
    fields: dict | None = None,
):
    """
    Replace a record's fields and full line set.

    Revert-then-reapply: credit all old lines, delete them, write the new
    ones with fresh price snapshots, debit the new ones against post-revert
    stock. A shrinking, growing, removed or swapped line all go through the
    same path.
    """
    _check_kind(spec)
    fields = fields or {}

    def _op():
        begin_atomic_unit()
        record = lock_for_update(
            db.session.query(spec.record_model).filter_by(id=transaction_id)
        ).first()
        if record is None:
            raise TransactionNotFoundError(spec.label, transaction_id)

        old_lines = spec.lines_query(transaction_id).all()
        for old in old_lines:
            stock_ledger.credit(
                old.product_id,
                old.quantity,
                reason=spec.credit_reason,
                transaction_kind=spec.kind,
                transaction_id=transaction_id,
            )
        for old in old_lines:
            db.session.delete(old)
        db.session.flush()

        _write_record(spec, record, fields, lines)
        _debit_lines(spec, record, lines)

        db.session.commit()
        return record

    record = run_with_retry(_op)
    logger.info("Updated %s %s with %d line(s)", spec.label, record.id, len(lines))
    return record


def delete_transaction(spec: TransactionKindSpec, transaction_id: int) -> bool:
    """
    Credit stock for every line, then delete lines and record.

    Returns False when the record does not exist (already deleted).
    """
    _check_kind(spec)

    def _op():
        begin_atomic_unit()
        record = lock_for_update(
            db.session.query(spec.record_model).filter_by(id=transaction_id)
        ).first()
        if record is None:
            db.session.rollback()
            return False

        lines = spec.lines_query(transaction_id).all()
        for line in lines:
            stock_ledger.credit(
                line.product_id,
                line.quantity,
                reason=spec.credit_reason,
                transaction_kind=spec.kind,
                transaction_id=transaction_id,
            )
            db.session.delete(line)
        db.session.flush()

        db.session.delete(record)
        db.session.commit()
        return True

    deleted = run_with_retry(_op)
    if deleted:
        logger.info("Deleted %s %s", spec.label, transaction_id)
    else:
        logger.info("Delete of missing %s %s ignored", spec.label, transaction_id)
    return deleted


def get_transaction(spec: TransactionKindSpec, transaction_id: int):
    record = db.session.get(spec.record_model, transaction_id)
    if record is None:
        raise TransactionNotFoundError(spec.label, transaction_id)
    return record
