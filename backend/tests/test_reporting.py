from datetime import date, datetime

import pytest

from autoshop.extensions import db
from autoshop.services import (
    expenses_service,
    reporting_service,
    sales_service,
    service_records_service,
)
from autoshop.services.reporting_service import ReportError
from autoshop.services.transaction_engine import LineRequest
from autoshop.time_utils import months_back, parse_iso_datetime, shop_day_range, shop_today

TZ = "Asia/Jerusalem"
# Tuesday 2026-03-10, 14:00 in the shop
NOW = datetime(2026, 3, 10, 12, 0)


def _backdate(record, when: datetime):
    record.created_at = when
    db.session.commit()


@pytest.fixture
def ledger(make_product):
    """
    p: Brakes, stock 10 -> 4 after activity, cost 6.00
    q: Keys, stock 2 -> 1 after activity, cost 1.00
    """
    p = make_product(stock_quantity=10, cost_price_cents=600, category="Brakes")
    q = make_product(stock_quantity=2, cost_price_cents=100, category="Keys")

    today_sale = sales_service.create_sale([LineRequest(p.id, 3, 1000)])
    _backdate(today_sale, datetime(2026, 3, 10, 8, 0))

    # 23:00 local on the 9th
    yesterday_sale = sales_service.create_sale([LineRequest(p.id, 2, 1000)])
    _backdate(yesterday_sale, datetime(2026, 3, 9, 21, 0))

    # 01:30 local on the 10th
    service = service_records_service.create_service(
        {
            "customer_name": "Noa",
            "car_plate_number": "11-222-33",
            "service_type": "Immobilizer repair",
            "technician_notes": None,
            "total_price_cents": 5000,
        },
        [LineRequest(p.id, 1)],
    )
    _backdate(service, datetime(2026, 3, 9, 23, 30))

    # 01:00 local on Feb 1st
    february_sale = sales_service.create_sale([LineRequest(q.id, 1, 900)])
    _backdate(february_sale, datetime(2026, 1, 31, 23, 0))

    expenses_service.create_expense(patch={
        "type": "UTILITIES", "description": "Water", "amount_cents": 1500,
        "expense_date": datetime(2026, 3, 10, 10, 0),
    })
    expenses_service.create_expense(patch={
        "type": "OTHER", "description": "Coffee machine", "amount_cents": 700,
        "expense_date": datetime(2026, 1, 5, 10, 0),
    })
    return p, q


def test_dashboard(ledger):
    data = reporting_service.dashboard(tz_name=TZ, low_stock_threshold=3, now=NOW)

    assert data["daily_revenue_cents"] == 8000
    assert data["revenue_change_pct"] == 300.0
    assert data["services_completed"] == 1
    assert data["low_stock_count"] == 1
    assert data["inventory_value_cents"] == 4 * 600 + 1 * 100
    assert data["daily_expenses_cents"] == 1500
    assert data["total_expenses_cents"] == 2200

    by_day = data["revenue_by_day"]
    assert len(by_day) == 7
    assert by_day[-1] == {"name": "Tue", "date": "2026-03-10", "revenue_cents": 8000}
    assert by_day[-2]["revenue_cents"] == 2000

    assert [a["type"] for a in data["recent_activity"]] == ["sale", "service", "sale", "sale"]
    assert data["recent_activity"][1]["car"] == "Noa - 11-222-33"


def test_dashboard_change_is_zero_without_yesterday(db_session):
    data = reporting_service.dashboard(tz_name=TZ, low_stock_threshold=3, now=NOW)
    assert data["revenue_change_pct"] == 0
    assert data["daily_revenue_cents"] == 0
    assert data["recent_activity"] == []


def test_monthly_report_uses_shop_months(ledger):
    report = reporting_service.monthly_report(months=3, tz_name=TZ, now=NOW)

    assert report["monthly_data"] == [
        {"name": "Jan", "month": "2026-01", "sales_cents": 0, "expenses_cents": 700, "net_cents": -700},
        {"name": "Feb", "month": "2026-02", "sales_cents": 900, "expenses_cents": 0, "net_cents": 900},
        {"name": "Mar", "month": "2026-03", "sales_cents": 10000, "expenses_cents": 1500, "net_cents": 8500},
    ]
    assert report["monthly_sales"][2] == {"name": "Mar", "sales_cents": 10000}
    assert report["inventory_distribution"] == [
        {"name": "Brakes", "count": 4, "value_cents": 2400},
        {"name": "Keys", "count": 1, "value_cents": 100},
    ]


def test_monthly_report_bounds(db_session):
    for months in (0, 25):
        with pytest.raises(ReportError):
            reporting_service.monthly_report(months=months, tz_name=TZ, now=NOW)


def test_unified_records(ledger):
    records = reporting_service.unified_records()

    assert [r["type"] for r in records] == ["expense", "sale", "service", "sale", "sale", "expense"]
    service = records[2]
    assert service["total_amount_cents"] == 5000
    assert service["items"][0]["quantity"] == 1
    assert records[0]["expense_type"] == "UTILITIES"


def test_report_routes(client, ledger):
    assert client.get("/api/records").status_code == 200
    assert client.get("/api/dashboard").status_code == 200

    resp = client.get("/api/reports?months=2")
    assert resp.status_code == 200
    assert len(resp.get_json()["monthly_data"]) == 2

    resp = client.get("/api/reports?months=30")
    assert resp.status_code == 400
    assert "months" in resp.get_json()["details"]


def test_shop_day_follows_local_calendar():
    # 23:30 UTC is already the next day in Jerusalem
    assert shop_today(TZ, datetime(2026, 3, 9, 23, 30)) == date(2026, 3, 10)

    start, end = shop_day_range(date(2026, 3, 10), TZ)
    assert (start, end) == (datetime(2026, 3, 9, 22, 0), datetime(2026, 3, 10, 22, 0))


def test_dst_day_is_23_hours():
    start, end = shop_day_range(date(2026, 3, 27), TZ)
    assert start == datetime(2026, 3, 26, 22, 0)
    assert end == datetime(2026, 3, 27, 21, 0)


def test_months_back_crosses_year():
    assert months_back(date(2026, 2, 15), 3) == [(2025, 12), (2026, 1), (2026, 2)]


def test_parse_iso_datetime_normalizes_to_utc():
    assert parse_iso_datetime("2026-03-10T12:00:00+02:00") == datetime(2026, 3, 10, 10, 0)
    assert parse_iso_datetime("2026-03-10T12:00:00Z") == datetime(2026, 3, 10, 12, 0)
    assert parse_iso_datetime("") is None


def test_report_months_must_be_an_integer(client, db_session):
    for raw in ("abc", "2.5"):
        resp = client.get(f"/api/reports?months={raw}")
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"months": "must be an integer"}

    resp = client.get("/api/reports")
    assert resp.status_code == 200
    assert len(resp.get_json()["monthly_data"]) == reporting_service.DEFAULT_REPORT_MONTHS
