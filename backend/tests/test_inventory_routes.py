PRODUCT_BODY = {
    "part_name": "Remote key shell",
    "category": "Keys",
    "car_brand": "Honda",
    "car_model": "Civic",
    "year_range": "2012-2016",
    "bin_location": "K-1",
    "stock_quantity": 4,
    "cost_price_cents": 1500,
    "selling_price_cents": 3500,
}


def test_create_and_fetch_product(client):
    resp = client.post("/api/inventory", json=PRODUCT_BODY)
    assert resp.status_code == 201
    created = resp.get_json()
    assert created["stock_quantity"] == 4
    assert created["selling_price_cents"] == 3500

    resp = client.get(f"/api/inventory/{created['id']}")
    assert resp.status_code == 200
    assert resp.get_json()["part_name"] == "Remote key shell"


def test_create_product_validation(client):
    body = dict(PRODUCT_BODY)
    del body["part_name"]
    resp = client.post("/api/inventory", json=body)
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"part_name": "is required"}

    resp = client.post("/api/inventory", json={**PRODUCT_BODY, "selling_price_cents": 0})
    assert resp.status_code == 400
    assert "selling_price_cents" in resp.get_json()["details"]

    resp = client.post("/api/inventory", json={**PRODUCT_BODY, "stock_quantity": -2})
    assert resp.status_code == 400

    resp = client.post("/api/inventory", json={**PRODUCT_BODY, "cost_price_cents": 12.5})
    assert resp.status_code == 400

    resp = client.post("/api/inventory", json={**PRODUCT_BODY, "id": 99})
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"id": "is not allowed"}


def test_search_route(client, make_product):
    make_product(part_name="Oil filter", category="Filters")
    make_product(part_name="Brake disc", category="Brakes")

    resp = client.get("/api/inventory?q=oil")
    assert resp.get_json()["count"] == 1

    resp = client.get("/api/inventory?category=Brakes")
    assert [p["part_name"] for p in resp.get_json()["items"]] == ["Brake disc"]


def test_patch_stock_and_movements(client, product):
    resp = client.patch(f"/api/inventory/{product.id}", json={"stock_quantity": 2})
    assert resp.status_code == 200
    assert resp.get_json()["stock_quantity"] == 2

    resp = client.get(f"/api/inventory/{product.id}/movements")
    body = resp.get_json()
    assert body["stock_quantity"] == 2
    assert [m["quantity_delta"] for m in body["items"]] == [5, -3]


def test_patch_rejects_null_required_field(client, product):
    resp = client.patch(f"/api/inventory/{product.id}", json={"part_name": None})
    assert resp.status_code == 400


def test_missing_product_is_404(client):
    assert client.get("/api/inventory/99999").status_code == 404
    assert client.patch("/api/inventory/99999", json={"part_name": "x"}).status_code == 404
    assert client.delete("/api/inventory/99999").status_code == 404
    assert client.get("/api/inventory/99999/movements").status_code == 404


def test_delete_product(client, product):
    resp = client.delete(f"/api/inventory/{product.id}")
    assert resp.status_code == 204
    assert client.get(f"/api/inventory/{product.id}").status_code == 404


def test_delete_sold_product_conflicts(client, product):
    client.post("/api/sales", json={
        "items": [{"product_id": product.id, "quantity": 1, "price_at_sale_cents": 1000}],
    })

    resp = client.delete(f"/api/inventory/{product.id}")
    assert resp.status_code == 409


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["database"]["status"] == "healthy"


def test_cors_for_dev_frontend(client):
    resp = client.get("/api/inventory", headers={"Origin": "http://localhost:3000"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    resp = client.get("/api/inventory", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_product_fields_reject_wrong_types(client, db_session):
    resp = client.post("/api/inventory", json={**PRODUCT_BODY, "stock_quantity": True})
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"stock_quantity": "must be an integer"}

    resp = client.post("/api/inventory", json={**PRODUCT_BODY, "part_name": "  Ignition barrel  "})
    assert resp.status_code == 201
    assert resp.get_json()["part_name"] == "Ignition barrel"
