# Overview: JSON error bodies shared by the route modules.

from flask import jsonify

from .errors import ShopError


def error_response(exc: ShopError, status: int | None = None):
    """{"error": message, "details": {...}} with the error's own status unless overridden."""
    return jsonify(exc.to_dict()), status or exc.status_code


def internal_error(message: str):
    return jsonify({"error": message}), 500
