# Overview: Domain error taxonomy shared by services and routes.

from __future__ import annotations


class ShopError(Exception):
    """Base class for business-rule failures; carries an HTTP-ish status and details."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ShopError, ValueError):
    """400-level input problem. `details` maps field paths to messages."""


class ConflictError(ShopError, ValueError):
    """409-level business rule conflict (e.g., deleting a product still on record)."""
    status_code = 409


class NotFoundError(ShopError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"Product not found: {product_id}", details={"product_id": product_id})
        self.product_id = product_id


class TransactionNotFoundError(NotFoundError):
    def __init__(self, label: str, transaction_id: int):
        super().__init__(f"{label} not found", details={"id": transaction_id})
        self.transaction_id = transaction_id


class InsufficientStockError(ShopError):
    """
    Requested quantity exceeds stock at debit time.

    Always aborts the enclosing atomic unit.
    """

    def __init__(self, product_id: int, product_name: str | None, available: int, requested: int):
        name = product_name or "product"
        super().__init__(
            f"Insufficient stock for {name}. Available: {available}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
