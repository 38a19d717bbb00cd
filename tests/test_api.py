import json

from orderledger.config.database import get_db
from orderledger.core.security import create_access_token
from orderledger.core.dependencies import get_current_user
from orderledger.main import app

from conftest import TENANT, make_product


def order_json(**overrides):
    data = {
        "title": "Lampa",
        "items": [{"title": "Lampa", "quantity": 1, "nabavna_cena": 10, "prodajna_cena": 25}],
        "customer_name": "Petar",
        "address": "Novi Sad",
        "phone": "064 123",
    }
    data.update(overrides)
    return data


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_order_crud_flow(client, db):
    product = make_product(db)

    created = client.post("/api/v1/orders/", json=order_json(items=[{"product_id": product.id, "quantity": 2}]))
    assert created.status_code == 201
    body = created.json()
    assert body["total_prodajno"] == 50
    assert body["items"][0]["title"] == "Lampa"
    order_id = body["id"]

    fetched = client.get(f"/api/v1/orders/{order_id}")
    assert fetched.status_code == 200
    assert fetched.json()["items"][0]["product"]["id"] == product.id

    updated = client.put(f"/api/v1/orders/{order_id}", json=order_json(stage="legle_pare", my_profit_percent=40))
    assert updated.status_code == 200
    assert updated.json()["my_share"] == 6

    listed = client.get("/api/v1/orders/", params={"stage": ["legle_pare"], "page_size": 500})
    assert listed.status_code == 200
    assert listed.json()["pagination"]["page_size"] == 100
    assert [item["id"] for item in listed.json()["items"]] == [order_id]

    deleted = client.delete(f"/api/v1/orders/{order_id}")
    assert deleted.status_code == 204
    assert client.get(f"/api/v1/orders/{order_id}").status_code == 404


def test_validation_errors_use_error_envelope(client):
    response = client.post("/api/v1/orders/", json=order_json(pickup=True, transport_mode="Smg"))
    assert response.status_code == 422
    body = response.json()
    assert body["error"] is True
    assert body["error_code"] == "INVALID_PICKUP_TRANSPORT"
    assert body["field"] == "transport_mode"

    empty = client.post("/api/v1/orders/", json=order_json(title=None, items=[{"title": ""}]))
    assert empty.status_code == 422
    assert empty.json()["error_code"] == "EMPTY_ORDER"


def test_non_finite_profit_percent_is_422(client):
    for literal in ("NaN", "1e400"):
        body = json.dumps(order_json())[:-1] + f', "my_profit_percent": {literal}}}'
        response = client.post("/api/v1/orders/", content=body, headers={"Content-Type": "application/json"})
        assert response.status_code == 422
        payload = response.json()
        assert payload["error_code"] == "INVALID_PROFIT_PERCENT"
        assert isinstance(payload["errors"][0]["details"]["provided_value"], str)


def test_pickup_without_mode_succeeds(client):
    response = client.post("/api/v1/orders/", json=order_json(pickup=True, transport_cost=8))
    assert response.status_code == 201
    assert response.json()["transport_cost"] is None


def test_update_missing_order_is_404(client):
    response = client.put("/api/v1/orders/12345", json=order_json())
    assert response.status_code == 404
    assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"


def test_reorder_and_summary(client):
    ids = [client.post("/api/v1/orders/", json=order_json(title=f"N{i}", items=[])).json()["id"] for i in range(3)]

    response = client.post("/api/v1/orders/reorder", json={"ids": [ids[2], ids[0], ids[1]], "base": 100})
    assert response.status_code == 204

    listed = client.get("/api/v1/orders/").json()
    assert [item["id"] for item in listed["items"]] == [ids[2], ids[0], ids[1]]

    summary = client.get("/api/v1/orders/summary")
    assert summary.status_code == 200
    assert summary.json()["broj_narudzbina"] == 0


def test_shipping_endpoints(client):
    client.post("/api/v1/orders/", json=order_json(stage="legle_pare", slanje_mode="Aks", slanje_owner="Racun A"))
    client.post("/api/v1/orders/", json=order_json(stage="legle_pare", slanje_mode="Aks", slanje_owner="racun a"))

    account = client.put("/api/v1/shipping/accounts", json={"value": "Racun A", "starting_amount": 100})
    assert account.status_code == 200
    assert account.json()["starting_amount"] == 100

    obracun = client.get("/api/v1/shipping/obracun").json()
    assert len(obracun["aks_bex"]["by_owner"]) == 1
    assert obracun["aks_bex"]["by_owner"][0]["total"] == 150
    assert obracun["meta"]["orders_count"] == 2

    owners = client.get("/api/v1/shipping/owners").json()
    assert owners["aks_bex_accounts"] == [{"value": "Racun A", "count": 2, "starting_amount": 100.0}]

    bad = client.put("/api/v1/shipping/accounts", json={"value": "x", "starting_amount": 1})
    assert bad.status_code == 422
    assert bad.json()["error_code"] == "INVALID_SHIPPING_OWNER"


def test_customer_endpoints(client):
    client.post("/api/v1/orders/", json=order_json(customer_name="Đorđe", phone="064 777"))

    listed = client.get("/api/v1/customers/", params={"search": "djordje"})
    assert listed.status_code == 200
    assert [c["name"] for c in listed.json()["items"]] == ["Đorđe"]

    synced = client.post("/api/v1/customers/sync")
    assert synced.status_code == 200
    assert synced.json() == {"created": 0}


def test_bearer_token_scopes_requests(client):
    app.dependency_overrides.pop(get_current_user)
    assert get_db in app.dependency_overrides

    assert client.get("/api/v1/orders/").status_code == 401

    token = create_access_token({"sub": TENANT})
    response = client.get("/api/v1/orders/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200

    invalid = client.get("/api/v1/orders/", headers={"Authorization": "Bearer not-a-token"})
    assert invalid.status_code == 401
