# Overview: Expense bookkeeping; plain CRUD with no stock interaction.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..errors import NotFoundError
from ..models import Expense
from autoshop.time_utils import utcnow

EXPENSE_MUTABLE_FIELDS = {"type", "description", "amount_cents", "expense_date"}


def _get_or_404(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found", details={"id": expense_id})
    return expense


def list_expenses(start: datetime | None = None, end: datetime | None = None) -> list[Expense]:
    """Expenses with expense_date in the inclusive [start, end] window, newest first."""
    q = db.session.query(Expense)
    if start is not None:
        q = q.filter(Expense.expense_date >= start)
    if end is not None:
        q = q.filter(Expense.expense_date <= end)
    return q.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def create_expense(*, patch: dict) -> Expense:
    expense = Expense(
        type=patch["type"],
        description=patch["description"],
        amount_cents=patch["amount_cents"],
        expense_date=patch.get("expense_date") or utcnow(),
    )
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(*, expense_id: int, patch: dict) -> Expense:
    expense = _get_or_404(expense_id)
    for k, v in patch.items():
        if k not in EXPENSE_MUTABLE_FIELDS:
            continue
        setattr(expense, k, v)
    db.session.commit()
    return expense


def delete_expense(*, expense_id: int) -> None:
    expense = _get_or_404(expense_id)
    db.session.delete(expense)
    db.session.commit()
