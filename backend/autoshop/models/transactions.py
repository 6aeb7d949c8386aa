from __future__ import annotations

from sqlalchemy.orm import declared_attr

from ..extensions import db
from autoshop.time_utils import to_utc_z, utcnow


class TransactionKind:
    """Closed set of stock-consuming record kinds."""
    SALE = "SALE"
    SERVICE = "SERVICE"

    ALL = (SALE, SERVICE)


SALE_STATUS_COMPLETED = "COMPLETED"


class LineItemMixin:
    """
    Shared line shape: (product, quantity, price snapshot).

    A line records a product id and the unit price at the time it was
    written; it never owns or updates the product.
    """
    id = db.Column(db.Integer, primary_key=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale_cents = db.Column(db.Integer, nullable=False)

    @declared_attr
    def product_id(cls):
        return db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    @declared_attr
    def product(cls):
        return db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.price_at_sale_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.part_name if self.product else None,
            "quantity": self.quantity,
            "price_at_sale_cents": self.price_at_sale_cents,
            "line_total_cents": self.line_total_cents,
        }


class Sale(db.Model):
    """
    Point-of-sale record.

    total_amount_cents = sum(quantity * price_at_sale_cents) + tax_amount_cents.
    Tax is a zero-rate placeholder.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=SALE_STATUS_COMPLETED, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": TransactionKind.SALE,
            "total_amount_cents": self.total_amount_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
            "items": [item.to_dict() for item in self.items],
        }


class SaleItem(LineItemMixin, db.Model):
    """Individual line items on a sale."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    sale = db.relationship(
        "Sale",
        backref=db.backref("items", lazy=True, order_by="SaleItem.id"),
    )


class ServiceRecord(db.Model):
    """
    Workshop job for a customer's car.

    total_price_cents is entered by staff and is independent of the cost or
    price of the parts used.
    """
    __tablename__ = "service_records"
    __table_args__ = (
        db.Index("ix_service_records_plate", "car_plate_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=False)
    car_plate_number = db.Column(db.String(32), nullable=False)
    service_type = db.Column(db.String(120), nullable=False)
    technician_notes = db.Column(db.Text, nullable=True)
    total_price_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": TransactionKind.SERVICE,
            "customer_name": self.customer_name,
            "car_plate_number": self.car_plate_number,
            "service_type": self.service_type,
            "technician_notes": self.technician_notes,
            "total_price_cents": self.total_price_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
            "parts_used": [part.to_dict() for part in self.parts_used],
        }


class ServicePart(LineItemMixin, db.Model):
    """Parts consumed by a service record."""
    __tablename__ = "service_parts"
    __table_args__ = {"sqlite_autoincrement": True}

    service_id = db.Column(db.Integer, db.ForeignKey("service_records.id"), nullable=False, index=True)

    service = db.relationship(
        "ServiceRecord",
        backref=db.backref("parts_used", lazy=True, order_by="ServicePart.id"),
    )
