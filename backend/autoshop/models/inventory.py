from __future__ import annotations

from ..extensions import db
from autoshop.time_utils import to_utc_z


class Product(db.Model):
    """
    Part master data plus stock on hand.

    STOCK DESIGN DECISION:
    stock_quantity is a stored, mutable counter (not derived from movements).
    - Only services/stock_ledger.py writes it (credit / debit / set_stock)
    - Every write also appends a StockMovement row in the same DB transaction
    - The CHECK constraint is the last line of defence; the ledger's
      conditional UPDATE is what keeps concurrent debits from going negative
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonnegative"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_part_name", "part_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    part_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    car_brand = db.Column(db.String(120), nullable=False)
    car_model = db.Column(db.String(120), nullable=False)
    year_range = db.Column(db.String(64), nullable=False)
    bin_location = db.Column(db.String(64), nullable=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents (frontend may only format for display)
    cost_price_cents = db.Column(db.Integer, nullable=False)
    selling_price_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} part_name={self.part_name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "part_name": self.part_name,
            "category": self.category,
            "car_brand": self.car_brand,
            "car_model": self.car_model,
            "year_range": self.year_range,
            "bin_location": self.bin_location,
            "stock_quantity": self.stock_quantity,
            "cost_price_cents": self.cost_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only record of every stock change.

    product_id is deliberately not a foreign key: movements outlive the
    products and transactions they describe.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_occurred", "product_id", "occurred_at"),
        db.Index("ix_stock_movements_transaction", "transaction_kind", "transaction_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, nullable=False)

    # Signed: negative for debits, positive for credits
    quantity_delta = db.Column(db.Integer, nullable=False)
    stock_after = db.Column(db.Integer, nullable=False)

    # SALE, SALE_REVERSAL, SERVICE, SERVICE_REVERSAL, ADJUSTMENT
    reason = db.Column(db.String(32), nullable=False, index=True)

    transaction_kind = db.Column(db.String(16), nullable=True)
    transaction_id = db.Column(db.Integer, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity_delta": self.quantity_delta,
            "stock_after": self.stock_after,
            "reason": self.reason,
            "transaction_kind": self.transaction_kind,
            "transaction_id": self.transaction_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }
