# backend/autoshop/services/products_service.py
"""
Inventory (product catalogue) service.

Stock is never written here directly: initial stock and recount edits go
through stock_ledger.set_stock so they leave an ADJUSTMENT movement.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..errors import ConflictError, ProductNotFoundError
from ..models import Product, SaleItem, ServicePart
from . import stock_ledger
from .concurrency import begin_atomic_unit, run_with_retry

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "part_name",
    "category",
    "car_brand",
    "car_model",
    "year_range",
    "bin_location",
    "cost_price_cents",
    "selling_price_cents",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(query: str | None = None, category: str | None = None) -> dict:
    """
    Search the catalogue.

    query: case-insensitive substring over part name, car brand and car model
    category: exact match
    Newest first.
    """
    q = db.session.query(Product)

    if query:
        pattern = f"%{query.strip()}%"
        q = q.filter(
            or_(
                Product.part_name.ilike(pattern),
                Product.car_brand.ilike(pattern),
                Product.car_model.ilike(pattern),
            )
        )
    if category:
        q = q.filter(Product.category == category)

    products = q.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


def list_low_stock(threshold: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.stock_quantity <= threshold)
        .order_by(Product.stock_quantity.asc(), Product.part_name.asc())
        .all()
    )


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Initial stock_quantity is booked as an ADJUSTMENT movement.
    """
    initial_stock = patch.get("stock_quantity") or 0

    def _op():
        begin_atomic_unit()
        product = Product(stock_quantity=0)
        apply_product_patch(product, patch)
        db.session.add(product)
        db.session.flush()
        if initial_stock:
            stock_ledger.set_stock(product.id, initial_stock)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    logger.info("Created product %s (%s) with stock %s", product.id, product.part_name, initial_stock)
    return product


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Patch catalogue fields; a stock_quantity in the patch is a recount and
    goes through the ledger.
    """
    def _op():
        begin_atomic_unit()
        product = db.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        apply_product_patch(product, patch)
        db.session.flush()

        if patch.get("stock_quantity") is not None:
            stock_ledger.set_stock(product_id, patch["stock_quantity"])

        db.session.commit()
        return product

    return run_with_retry(_op)


def is_referenced(product_id: int) -> bool:
    sale_ref = db.session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
    if sale_ref is not None:
        return True
    part_ref = db.session.query(ServicePart.id).filter(ServicePart.product_id == product_id).first()
    return part_ref is not None


def delete_product(*, product_id: int) -> None:
    """
    Delete a product that no sale or service line references.

    Raises ConflictError while references exist; stock movements are kept.
    """
    def _op():
        begin_atomic_unit()
        product = db.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if is_referenced(product_id):
            raise ConflictError(
                f"Product {product.part_name} is used by existing sales or services",
                details={"product_id": product_id},
            )
        db.session.delete(product)
        db.session.commit()

    run_with_retry(_op)
    logger.info("Deleted product %s", product_id)
