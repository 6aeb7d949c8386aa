# Overview: Flask API routes for expenses; parses input and returns JSON responses.

from datetime import timedelta

from flask import Blueprint, request, jsonify, current_app

from ..errors import ShopError, ValidationError
from ..models import Expense
from ..responses import error_response, internal_error
from ..services import expenses_service
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_expense
from autoshop.time_utils import parse_iso_datetime

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"type", "description", "amount_cents", "expense_date"},
    required_on_create={"type", "description", "amount_cents"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _parse_bound(name: str, *, end_of_day: bool = False):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        dt = parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date", details={name: "must be an ISO-8601 date"})
    # A bare date as the upper bound covers that whole day
    if end_of_day and len(raw.strip()) == 10:
        dt = dt + timedelta(days=1) - timedelta(microseconds=1)
    return dt


@expenses_bp.get("")
def list_expenses_route():
    """
    List expenses, newest first.

    Query params:
    - from: ISO date/datetime (optional, inclusive)
    - to: ISO date/datetime (optional, inclusive; a bare date includes the whole day)
    """
    try:
        start = _parse_bound("from")
        end = _parse_bound("to", end_of_day=True)
    except ValidationError as e:
        return error_response(e)

    expenses = expenses_service.list_expenses(start, end)
    return jsonify({"items": [e.to_dict() for e in expenses], "count": len(expenses)}), 200


@expenses_bp.post("")
def create_expense_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
        expense = expenses_service.create_expense(patch=patch)
        return jsonify(expense.to_dict()), 201

    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return internal_error("Failed to create expense")


@expenses_bp.patch("/<int:expense_id>")
def update_expense_route(expense_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
        expense = expenses_service.update_expense(expense_id=expense_id, patch=patch)
        return jsonify(expense.to_dict()), 200

    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return internal_error("Failed to update expense")


@expenses_bp.delete("/<int:expense_id>")
def delete_expense_route(expense_id: int):
    try:
        expenses_service.delete_expense(expense_id=expense_id)
        return jsonify({"message": "Expense deleted"}), 200

    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return internal_error("Failed to delete expense")
