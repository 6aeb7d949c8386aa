# Overview: Read-side projections (unified records, dashboard, monthly report) over committed data.

from __future__ import annotations

from datetime import date, datetime, timedelta

from sqlalchemy import func

from autoshop.errors import ValidationError
from autoshop.extensions import db
from autoshop.models import (
    Expense,
    Product,
    Sale,
    ServiceRecord,
    TransactionKind,
    SALE_STATUS_COMPLETED,
)
from autoshop.time_utils import (
    months_back,
    shop_day_range,
    shop_month_range,
    shop_today,
    to_utc_z,
    utcnow,
)
"""
Every figure here is recomputed from committed rows on each call; nothing is
cached or kept as a running counter. Time windows are half-open
[start, end) in UTC, derived from shop-local calendar days/months.
"""

DELETED_PRODUCT_NAME = "Deleted product"
DEFAULT_REPORT_MONTHS = 6
MAX_REPORT_MONTHS = 24


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""


def parse_months(raw: str | None) -> int:
    """Query-string month count; absent or blank means the default window."""
    if raw is None or not raw.strip():
        return DEFAULT_REPORT_MONTHS
    try:
        return int(raw.strip())
    except ValueError:
        raise ReportError(
            "months must be an integer",
            details={"months": "must be an integer"},
        )


def _line_summary(lines) -> list[dict]:
    return [
        {
            "name": line.product.part_name if line.product else DELETED_PRODUCT_NAME,
            "quantity": line.quantity,
        }
        for line in lines
    ]


def unified_records() -> list[dict]:
    """Services, completed sales and expenses in one list, newest first."""
    services = db.session.query(ServiceRecord).all()
    sales = db.session.query(Sale).filter(Sale.status == SALE_STATUS_COMPLETED).all()
    expenses = db.session.query(Expense).all()

    rows: list[tuple[datetime, dict]] = []

    for s in services:
        rows.append((s.created_at, {
            "id": s.id,
            "type": "service",
            "created_at": to_utc_z(s.created_at),
            "total_amount_cents": s.total_price_cents,
            "customer_name": s.customer_name,
            "car_plate_number": s.car_plate_number,
            "service_type": s.service_type,
            "expense_type": None,
            "description": None,
            "items": _line_summary(s.parts_used),
        }))

    for s in sales:
        rows.append((s.created_at, {
            "id": s.id,
            "type": "sale",
            "created_at": to_utc_z(s.created_at),
            "total_amount_cents": s.total_amount_cents,
            "customer_name": None,
            "car_plate_number": None,
            "service_type": None,
            "expense_type": None,
            "description": None,
            "items": _line_summary(s.items),
        }))

    for e in expenses:
        rows.append((e.expense_date, {
            "id": e.id,
            "type": "expense",
            "created_at": to_utc_z(e.expense_date),
            "total_amount_cents": e.amount_cents,
            "customer_name": None,
            "car_plate_number": None,
            "service_type": None,
            "expense_type": e.type,
            "description": e.description,
            "items": [],
        }))

    rows.sort(key=lambda r: r[0], reverse=True)
    return [r[1] for r in rows]


def _sales_total(start: datetime | None = None, end: datetime | None = None) -> int:
    q = db.session.query(func.coalesce(func.sum(Sale.total_amount_cents), 0)).filter(
        Sale.status == SALE_STATUS_COMPLETED
    )
    if start is not None:
        q = q.filter(Sale.created_at >= start)
    if end is not None:
        q = q.filter(Sale.created_at < end)
    return int(q.scalar() or 0)


def _services_total(start: datetime | None = None, end: datetime | None = None) -> int:
    q = db.session.query(func.coalesce(func.sum(ServiceRecord.total_price_cents), 0))
    if start is not None:
        q = q.filter(ServiceRecord.created_at >= start)
    if end is not None:
        q = q.filter(ServiceRecord.created_at < end)
    return int(q.scalar() or 0)


def _expenses_total(start: datetime | None = None, end: datetime | None = None) -> int:
    q = db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0))
    if start is not None:
        q = q.filter(Expense.expense_date >= start)
    if end is not None:
        q = q.filter(Expense.expense_date < end)
    return int(q.scalar() or 0)


def revenue_between(start: datetime, end: datetime) -> int:
    """Sales plus service revenue in [start, end)."""
    return _sales_total(start, end) + _services_total(start, end)


def inventory_value_cents() -> int:
    value = db.session.query(
        func.coalesce(func.sum(Product.cost_price_cents * Product.stock_quantity), 0)
    ).scalar()
    return int(value or 0)


def _recent_activity(limit: int = 5) -> list[dict]:
    services = (
        db.session.query(ServiceRecord)
        .order_by(ServiceRecord.created_at.desc(), ServiceRecord.id.desc())
        .limit(10)
        .all()
    )
    sales = (
        db.session.query(Sale)
        .filter(Sale.status == SALE_STATUS_COMPLETED)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(10)
        .all()
    )

    activity = [
        {
            "id": s.id,
            "type": TransactionKind.SERVICE.lower(),
            "action": s.service_type,
            "car": f"{s.customer_name} - {s.car_plate_number}",
            "price_cents": s.total_price_cents,
            "time": s.created_at,
        }
        for s in services
    ] + [
        {
            "id": s.id,
            "type": TransactionKind.SALE.lower(),
            "action": "Sale",
            "car": "",
            "price_cents": s.total_amount_cents,
            "time": s.created_at,
        }
        for s in sales
    ]
    activity.sort(key=lambda a: a["time"], reverse=True)
    for a in activity:
        a["time"] = to_utc_z(a["time"])
    return activity[:limit]


def dashboard(*, tz_name: str, low_stock_threshold: int, now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = shop_today(tz_name, now)
    today_start, today_end = shop_day_range(today, tz_name)
    yday_start, yday_end = shop_day_range(today - timedelta(days=1), tz_name)

    daily_revenue = revenue_between(today_start, today_end)
    yesterday_revenue = revenue_between(yday_start, yday_end)
    if yesterday_revenue > 0:
        change_pct = round((daily_revenue - yesterday_revenue) / yesterday_revenue * 100, 2)
    else:
        change_pct = 0

    services_today = db.session.query(func.count(ServiceRecord.id)).filter(
        ServiceRecord.created_at >= today_start,
        ServiceRecord.created_at < today_end,
    ).scalar()

    low_stock = db.session.query(func.count(Product.id)).filter(
        Product.stock_quantity <= low_stock_threshold
    ).scalar()

    revenue_by_day = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        start, end = shop_day_range(day, tz_name)
        revenue_by_day.append({
            "name": day.strftime("%a"),
            "date": day.isoformat(),
            "revenue_cents": revenue_between(start, end),
        })

    return {
        "daily_revenue_cents": daily_revenue,
        "revenue_change_pct": change_pct,
        "services_completed": int(services_today or 0),
        "low_stock_count": int(low_stock or 0),
        "inventory_value_cents": inventory_value_cents(),
        "daily_expenses_cents": _expenses_total(today_start, today_end),
        "total_expenses_cents": _expenses_total(),
        "revenue_by_day": revenue_by_day,
        "recent_activity": _recent_activity(),
    }


def inventory_distribution() -> list[dict]:
    rows = (
        db.session.query(
            Product.category.label("category"),
            func.coalesce(func.sum(Product.stock_quantity), 0).label("count"),
            func.coalesce(func.sum(Product.cost_price_cents * Product.stock_quantity), 0).label("value"),
        )
        .group_by(Product.category)
        .order_by(Product.category.asc())
        .all()
    )
    return [
        {
            "name": row.category or "Other",
            "count": int(row.count or 0),
            "value_cents": int(row.value or 0),
        }
        for row in rows
    ]


def monthly_report(*, months: int, tz_name: str, now: datetime | None = None) -> dict:
    if months < 1 or months > MAX_REPORT_MONTHS:
        raise ReportError(
            f"months must be between 1 and {MAX_REPORT_MONTHS}",
            details={"months": f"must be between 1 and {MAX_REPORT_MONTHS}"},
        )

    today = shop_today(tz_name, now or utcnow())
    monthly = []
    for year, month in months_back(today, months):
        start, end = shop_month_range(year, month, tz_name)
        revenue = revenue_between(start, end)
        expenses = _expenses_total(start, end)
        monthly.append({
            "name": date(year, month, 1).strftime("%b"),
            "month": f"{year:04d}-{month:02d}",
            "sales_cents": revenue,
            "expenses_cents": expenses,
            "net_cents": revenue - expenses,
        })

    return {
        "monthly_data": monthly,
        "monthly_sales": [{"name": m["name"], "sales_cents": m["sales_cents"]} for m in monthly],
        "monthly_expenses": [{"name": m["name"], "expenses_cents": m["expenses_cents"]} for m in monthly],
        "inventory_distribution": inventory_distribution(),
    }
