# Overview: Product ledger; the only code allowed to change Product.stock_quantity.

from __future__ import annotations

import logging

from sqlalchemy import update

from ..extensions import db
from ..errors import InsufficientStockError, ProductNotFoundError, ValidationError
from ..models import Product, StockMovement
from autoshop.time_utils import utcnow
"""
Stock Ledger Invariants (authoritative)

- stock_quantity is never negative after a committed unit.
- debit is a single conditional UPDATE (... WHERE stock_quantity >= :qty):
  the check and the decrement are one atomic row operation, and because it
  runs inside the caller's DB transaction it observes every earlier credit or
  debit made by the same unit.
- Nothing here commits. Credits, debits and their StockMovement rows are
  committed or rolled back together with the sale/service they belong to.
- StockMovement is append-only (no updates/deletes).
"""

logger = logging.getLogger(__name__)

_products = Product.__table__

REASON_SALE = "SALE"
REASON_SALE_REVERSAL = "SALE_REVERSAL"
REASON_SERVICE = "SERVICE"
REASON_SERVICE_REVERSAL = "SERVICE_REVERSAL"
REASON_ADJUSTMENT = "ADJUSTMENT"


def _reload(product_id: int) -> Product | None:
    # populate_existing keeps any Product already in the identity map in step
    # with the row we just changed through a Core UPDATE
    return db.session.get(Product, product_id, populate_existing=True)


def _append_movement(
    *,
    product_id: int,
    quantity_delta: int,
    stock_after: int,
    reason: str,
    transaction_kind: str | None,
    transaction_id: int | None,
) -> StockMovement:
    movement = StockMovement(
        product_id=product_id,
        quantity_delta=quantity_delta,
        stock_after=stock_after,
        reason=reason,
        transaction_kind=transaction_kind,
        transaction_id=transaction_id,
        occurred_at=utcnow(),
    )
    db.session.add(movement)
    return movement


def get_stock(product_id: int) -> int:
    """Current stock as seen by the active DB transaction."""
    qty = db.session.query(Product.stock_quantity).filter(Product.id == product_id).scalar()
    if qty is None:
        raise ProductNotFoundError(product_id)
    return int(qty)


def credit(
    product_id: int,
    quantity: int,
    *,
    reason: str,
    transaction_kind: str | None = None,
    transaction_id: int | None = None,
) -> int:
    """Increment stock. Returns the new stock level."""
    if quantity <= 0:
        raise ValueError("credit quantity must be positive")

    result = db.session.execute(
        update(_products)
        .where(_products.c.id == product_id)
        .values(stock_quantity=_products.c.stock_quantity + quantity)
    )
    if result.rowcount == 0:
        raise ProductNotFoundError(product_id)

    product = _reload(product_id)
    _append_movement(
        product_id=product_id,
        quantity_delta=quantity,
        stock_after=product.stock_quantity,
        reason=reason,
        transaction_kind=transaction_kind,
        transaction_id=transaction_id,
    )
    logger.debug("credit product=%s qty=%s stock=%s reason=%s", product_id, quantity, product.stock_quantity, reason)
    return product.stock_quantity


def debit(
    product_id: int,
    quantity: int,
    *,
    reason: str,
    transaction_kind: str | None = None,
    transaction_id: int | None = None,
) -> int:
    """
    Decrement stock only if enough is on hand. Returns the new stock level.

    Raises ProductNotFoundError or InsufficientStockError; the caller's unit
    must then roll back.
    """
    if quantity <= 0:
        raise ValueError("debit quantity must be positive")

    result = db.session.execute(
        update(_products)
        .where(_products.c.id == product_id, _products.c.stock_quantity >= quantity)
        .values(stock_quantity=_products.c.stock_quantity - quantity)
    )
    if result.rowcount == 0:
        product = _reload(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        raise InsufficientStockError(
            product_id=product_id,
            product_name=product.part_name,
            available=product.stock_quantity,
            requested=quantity,
        )

    product = _reload(product_id)
    _append_movement(
        product_id=product_id,
        quantity_delta=-quantity,
        stock_after=product.stock_quantity,
        reason=reason,
        transaction_kind=transaction_kind,
        transaction_id=transaction_id,
    )
    logger.debug("debit product=%s qty=%s stock=%s reason=%s", product_id, quantity, product.stock_quantity, reason)
    return product.stock_quantity


def set_stock(product_id: int, new_quantity: int) -> int:
    """
    Direct stock-adjustment edit (physical recount).

    Records the difference as an ADJUSTMENT movement. Does not commit.
    """
    if new_quantity < 0:
        raise ValidationError("stock_quantity must be >= 0", details={"stock_quantity": "must be >= 0"})

    current = get_stock(product_id)
    delta = new_quantity - current
    if delta == 0:
        return current

    db.session.execute(
        update(_products)
        .where(_products.c.id == product_id)
        .values(stock_quantity=new_quantity)
    )
    product = _reload(product_id)
    _append_movement(
        product_id=product_id,
        quantity_delta=delta,
        stock_after=product.stock_quantity,
        reason=REASON_ADJUSTMENT,
        transaction_kind=None,
        transaction_id=None,
    )
    logger.info("stock adjusted product=%s %s -> %s", product_id, current, product.stock_quantity)
    return product.stock_quantity


def list_movements(product_id: int) -> list[StockMovement]:
    return (
        db.session.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.occurred_at.asc(), StockMovement.id.asc())
        .all()
    )
