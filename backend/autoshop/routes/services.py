# Overview: Flask API routes for workshop service records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import ProductNotFoundError, ShopError
from ..responses import error_response, internal_error
from ..services import service_records_service
from ..validation import parse_service_payload


services_bp = Blueprint("services", __name__, url_prefix="/api/services")


@services_bp.get("")
def list_services_route():
    services = service_records_service.list_services()
    return jsonify({"items": [s.to_dict() for s in services], "count": len(services)}), 200


@services_bp.post("")
def create_service_route():
    """
    Create a service record; parts_used are taken out of stock.

    Body: {"car_plate_number", "customer_name", "service_type",
           "technician_notes"?, "total_price_cents",
           "parts_used": [{"product_id", "quantity"}]?}
    """
    try:
        fields, parts = parse_service_payload(request.get_json(silent=True))
        service = service_records_service.create_service(fields, parts)
        return jsonify({"service": service.to_dict()}), 201

    except ProductNotFoundError as e:
        return error_response(e, 400)
    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create service record")
        return internal_error("Failed to create service record")


@services_bp.get("/<int:service_id>")
def get_service_route(service_id: int):
    service = service_records_service.get_service(service_id)
    return jsonify({"service": service.to_dict()}), 200


@services_bp.patch("/<int:service_id>")
def update_service_route(service_id: int):
    """Replace a service record's fields and parts (same body as create)."""
    try:
        fields, parts = parse_service_payload(request.get_json(silent=True))
        service = service_records_service.update_service(service_id, fields, parts)
        return jsonify({"service": service.to_dict()}), 200

    except ProductNotFoundError as e:
        return error_response(e, 400)
    except ShopError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update service record")
        return internal_error("Failed to update service record")


@services_bp.delete("/<int:service_id>")
def delete_service_route(service_id: int):
    try:
        deleted = service_records_service.delete_service(service_id)
        return jsonify({"message": "Service record deleted", "deleted": deleted}), 200

    except Exception:
        current_app.logger.exception("Failed to delete service record")
        return internal_error("Failed to delete service record")
