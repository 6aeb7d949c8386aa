# Overview: Flask API routes for sales; parses input and returns JSON responses.

# backend/autoshop/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import ProductNotFoundError, ShopError
from ..responses import error_response, internal_error
from ..services import sales_service
from ..validation import parse_sale_payload


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
def list_sales_route():
    """List all sales with their items, newest first."""
    sales = sales_service.list_sales()
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.post("")
def create_sale_route():
    """
    Create a completed sale and take its items out of stock.

    Body: {"items": [{"product_id", "quantity", "price_at_sale_cents"}]}
    """
    try:
        items = parse_sale_payload(request.get_json(silent=True))
        sale = sales_service.create_sale(items)
        return jsonify({"sale": sale.to_dict()}), 201

    except ProductNotFoundError as e:
        # An unknown product in the request body is a bad request, not a missing resource
        return error_response(e, 400)
    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return internal_error("Failed to create sale")


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Get sale with items."""
    sale = sales_service.get_sale(sale_id)
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.patch("/<int:sale_id>")
def update_sale_route(sale_id: int):
    """
    Replace a sale's items.

    Stock for the old items is returned and the new items are taken, all in
    one transaction; on insufficient stock nothing changes.
    """
    try:
        items = parse_sale_payload(request.get_json(silent=True))
        sale = sales_service.update_sale(sale_id, items)
        return jsonify({"sale": sale.to_dict()}), 200

    except ProductNotFoundError as e:
        return error_response(e, 400)
    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return internal_error("Failed to update sale")


@sales_bp.delete("/<int:sale_id>")
def delete_sale_route(sale_id: int):
    """Delete a sale and return its items to stock. Deleting a missing sale is a no-op."""
    try:
        deleted = sales_service.delete_sale(sale_id)
        return jsonify({"message": "Sale deleted", "deleted": deleted}), 200

    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return internal_error("Failed to delete sale")
