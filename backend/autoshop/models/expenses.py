from __future__ import annotations

from ..extensions import db
from autoshop.time_utils import to_utc_z, utcnow


EXPENSE_TYPES = ("PARTS", "SERVICE", "RENT", "UTILITIES", "OTHER")


class Expense(db.Model):
    """Money out of the shop. No stock interaction."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_expense_date", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    # Business date of the expense; defaults to when it was recorded
    expense_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "expense_date": to_utc_z(self.expense_date),
            "created_at": to_utc_z(self.created_at),
        }
