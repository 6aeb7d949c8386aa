# Overview: Flask API routes for the parts catalogue and stock adjustments.

# backend/autoshop/routes/inventory.py
"""
Inventory routes.

stock_quantity in a POST/PATCH body is booked through the stock ledger as an
ADJUSTMENT; sales and services change stock only through their own routes.
"""
from flask import Blueprint, request, jsonify, current_app

from ..errors import ShopError
from ..models import Product
from ..responses import error_response, internal_error
from ..services import products_service, stock_ledger
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "part_name",
        "category",
        "car_brand",
        "car_model",
        "year_range",
        "bin_location",
        "stock_quantity",
        "cost_price_cents",
        "selling_price_cents",
    },
    required_on_create={
        "part_name",
        "category",
        "car_brand",
        "car_model",
        "year_range",
        "stock_quantity",
        "cost_price_cents",
        "selling_price_cents",
    },
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
def list_products_route():
    """
    Search products.

    Query params:
    - q: str (optional) - matches part name, car brand or car model
    - category: str (optional) - exact category
    """
    result = products_service.list_products(
        query=request.args.get("q") or None,
        category=request.args.get("category") or None,
    )
    return jsonify(result), 200


@inventory_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        product = products_service.create_product(patch=patch)
        return jsonify(product.to_dict()), 201

    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return internal_error("Failed to create product")


@inventory_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    return jsonify(product.to_dict()), 200


@inventory_bp.patch("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        product = products_service.update_product(product_id=product_id, patch=patch)
        return jsonify(product.to_dict()), 200

    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return internal_error("Failed to update product")


@inventory_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Delete a product. 409 while any sale or service line still references it."""
    try:
        products_service.delete_product(product_id=product_id)
        return "", 204

    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return internal_error("Failed to delete product")


@inventory_bp.get("/<int:product_id>/movements")
def list_movements_route(product_id: int):
    """Stock movement history for one product, oldest first."""
    product = products_service.get_product(product_id)
    movements = stock_ledger.list_movements(product.id)
    return jsonify({
        "product_id": product.id,
        "stock_quantity": product.stock_quantity,
        "items": [m.to_dict() for m in movements],
    }), 200
