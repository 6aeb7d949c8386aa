"""
Service Records Service - workshop jobs that consume parts.

The job price is entered by staff and never derived from the parts. Each
part line snapshots the product's current selling price when the line is
written (on create and again on every update).
"""

from __future__ import annotations

from ..extensions import db
from ..models import ServiceRecord, ServicePart, TransactionKind
from .stock_ledger import REASON_SERVICE, REASON_SERVICE_REVERSAL
from .transaction_engine import (
    LineRequest,
    TransactionKindSpec,
    create_transaction,
    update_transaction,
    delete_transaction,
    get_transaction,
)

SERVICE_MUTABLE_FIELDS = (
    "customer_name",
    "car_plate_number",
    "service_type",
    "technician_notes",
    "total_price_cents",
)


class ServiceKind(TransactionKindSpec):
    kind = TransactionKind.SERVICE
    label = "Service record"
    record_model = ServiceRecord
    line_model = ServicePart
    line_fk = "service_id"
    debit_reason = REASON_SERVICE
    credit_reason = REASON_SERVICE_REVERSAL

    def snapshot_price(self, line, product):
        return product.selling_price_cents

    def apply_fields(self, record, fields, lines, prices):
        for key in SERVICE_MUTABLE_FIELDS:
            if key in fields:
                setattr(record, key, fields[key])


SERVICE_KIND = ServiceKind()


def create_service(fields: dict, parts: list[LineRequest]) -> ServiceRecord:
    return create_transaction(SERVICE_KIND, parts, fields)


def update_service(service_id: int, fields: dict, parts: list[LineRequest]) -> ServiceRecord:
    return update_transaction(SERVICE_KIND, service_id, parts, fields)


def delete_service(service_id: int) -> bool:
    return delete_transaction(SERVICE_KIND, service_id)


def get_service(service_id: int) -> ServiceRecord:
    return get_transaction(SERVICE_KIND, service_id)


def list_services() -> list[ServiceRecord]:
    return (
        db.session.query(ServiceRecord)
        .order_by(ServiceRecord.created_at.desc(), ServiceRecord.id.desc())
        .all()
    )
