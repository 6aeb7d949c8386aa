"""
Sales Service - point-of-sale records over the transaction engine.

Sale lines carry the client-supplied unit price (the counter price may
differ from the catalogue selling price). total = sum(lines) + tax, and tax
is a flat zero-rate placeholder.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Sale, SaleItem, TransactionKind, SALE_STATUS_COMPLETED
from .stock_ledger import REASON_SALE, REASON_SALE_REVERSAL
from .transaction_engine import (
    LineRequest,
    TransactionKindSpec,
    create_transaction,
    update_transaction,
    delete_transaction,
    get_transaction,
)

TAX_RATE_BPS = 0


def compute_tax_cents(subtotal_cents: int) -> int:
    return subtotal_cents * TAX_RATE_BPS // 10_000


class SaleKind(TransactionKindSpec):
    kind = TransactionKind.SALE
    label = "Sale"
    record_model = Sale
    line_model = SaleItem
    line_fk = "sale_id"
    debit_reason = REASON_SALE
    credit_reason = REASON_SALE_REVERSAL

    def snapshot_price(self, line, product):
        return line.price_at_sale_cents

    def apply_fields(self, record, fields, lines, prices):
        subtotal = sum(line.quantity * price for line, price in zip(lines, prices))
        record.tax_amount_cents = compute_tax_cents(subtotal)
        record.total_amount_cents = subtotal + record.tax_amount_cents
        record.status = SALE_STATUS_COMPLETED


SALE_KIND = SaleKind()


def create_sale(items: list[LineRequest]) -> Sale:
    """Record a completed sale and take its items out of stock."""
    return create_transaction(SALE_KIND, items)


def update_sale(sale_id: int, items: list[LineRequest]) -> Sale:
    """Replace a sale's item set; stock follows the new items."""
    return update_transaction(SALE_KIND, sale_id, items)


def delete_sale(sale_id: int) -> bool:
    """Delete a sale and return its items to stock."""
    return delete_transaction(SALE_KIND, sale_id)


def get_sale(sale_id: int) -> Sale:
    return get_transaction(SALE_KIND, sale_id)


def list_sales() -> list[Sale]:
    return (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
