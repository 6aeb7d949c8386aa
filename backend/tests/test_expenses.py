from datetime import datetime

import pytest

from autoshop.errors import NotFoundError
from autoshop.services import expenses_service


def _expense(client, **overrides):
    body = {"type": "RENT", "description": "March rent", "amount_cents": 450000}
    body.update(overrides)
    return client.post("/api/expenses", json=body)


def test_create_expense_defaults_date(client):
    resp = _expense(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["type"] == "RENT"
    assert body["expense_date"].endswith("Z")


def test_create_expense_validation(client):
    assert _expense(client, type="SNACKS").status_code == 400
    assert _expense(client, amount_cents=0).status_code == 400
    assert _expense(client, description="").status_code == 400
    assert _expense(client, expense_date="yesterday").status_code == 400

    resp = client.post("/api/expenses", json={"type": "OTHER"})
    assert resp.status_code == 400
    assert set(resp.get_json()["details"]) == {"amount_cents", "description"}


def test_list_filters_inclusive_range(client):
    _expense(client, description="Jan", expense_date="2026-01-15T09:00:00Z")
    _expense(client, description="Feb start", expense_date="2026-02-01T00:00:00Z")
    _expense(client, description="Feb end", expense_date="2026-02-28T18:30:00Z")
    _expense(client, description="Mar", expense_date="2026-03-01T08:00:00Z")

    resp = client.get("/api/expenses?from=2026-02-01&to=2026-02-28")
    assert resp.status_code == 200
    assert [e["description"] for e in resp.get_json()["items"]] == ["Feb end", "Feb start"]

    resp = client.get("/api/expenses")
    assert resp.get_json()["count"] == 4

    assert client.get("/api/expenses?from=someday").status_code == 400


def test_update_and_delete_expense(client):
    expense = _expense(client, expense_date="2026-02-10T10:00:00Z").get_json()

    resp = client.patch(f"/api/expenses/{expense['id']}", json={"amount_cents": 1234})
    assert resp.status_code == 200
    assert resp.get_json()["amount_cents"] == 1234
    assert resp.get_json()["expense_date"] == "2026-02-10T10:00:00Z"
    assert client.patch(f"/api/expenses/{expense['id']}", json={"expense_date": None}).status_code == 400

    assert client.delete(f"/api/expenses/{expense['id']}").status_code == 200
    assert client.delete(f"/api/expenses/{expense['id']}").status_code == 404
    assert client.patch(f"/api/expenses/{expense['id']}", json={"amount_cents": 1}).status_code == 404


def test_service_window(db_session):
    expenses_service.create_expense(patch={
        "type": "UTILITIES", "description": "Power", "amount_cents": 9000,
        "expense_date": datetime(2026, 4, 2, 12, 0),
    })

    assert len(expenses_service.list_expenses(datetime(2026, 4, 1), datetime(2026, 4, 30))) == 1
    assert expenses_service.list_expenses(datetime(2026, 5, 1), None) == []
    with pytest.raises(NotFoundError):
        expenses_service.delete_expense(expense_id=987654)
