from flask import Blueprint, current_app, jsonify, request

from autoshop.errors import ShopError
from autoshop.responses import error_response, internal_error
from autoshop.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/records")
def records():
    """Services, sales and expenses merged into one newest-first list."""
    try:
        return jsonify(reporting_service.unified_records()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch records")
        return internal_error("Failed to fetch records")


@reports_bp.get("/dashboard")
def dashboard():
    try:
        data = reporting_service.dashboard(
            tz_name=current_app.config["SHOP_TIMEZONE"],
            low_stock_threshold=current_app.config["LOW_STOCK_THRESHOLD"],
        )
        return jsonify(data), 200
    except Exception:
        current_app.logger.exception("Failed to fetch dashboard data")
        return internal_error("Failed to fetch dashboard data")


@reports_bp.get("/reports")
def monthly_report():
    try:
        report = reporting_service.monthly_report(
            months=reporting_service.parse_months(request.args.get("months")),
            tz_name=current_app.config["SHOP_TIMEZONE"],
        )
        return jsonify(report), 200
    except ShopError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to fetch reports data")
        return internal_error("Failed to fetch reports data")
