import pytest
from fastapi.testclient import TestClient

from collaborators import MemoryMediaLibrary, MemoryPageRegistry, MemoryStorage
from main import init_app

from conftest import NAMESPACE

ADMIN = {"X-User": "admin"}


@pytest.fixture
def backend():
    storage = MemoryStorage()
    registry = MemoryPageRegistry()
    app = init_app(storage=storage, page_registry=registry, media=MemoryMediaLibrary(), namespace=NAMESPACE, seed="demo")
    return app, storage, registry


@pytest.fixture
def client(backend):
    app, _, _ = backend
    with TestClient(app) as c:
        yield c


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_status_endpoint(client):
    body = client.get("/test").json()
    assert body["storage"] == "MemoryStorage"
    assert body["namespace"] == NAMESPACE


def test_list_and_search_products(client):
    assert len(client.get("/api/products").json()) == 2
    found = client.get("/api/products", params={"q": "cotton"}).json()
    assert [p["sku"] for p in found] == ["OCT-001"]


def test_unknown_collection(client):
    assert client.get("/api/widgets").status_code == 404


def test_create_product_requires_user(client):
    payload = {"name": "Desk Lamp", "price": 35, "sku": "DL-1"}
    assert client.post("/api/products", json=payload).status_code == 401
    response = client.post("/api/products", json=payload, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["slug"] == "desk-lamp"


def test_create_product_validation(client):
    response = client.post("/api/products", json={"name": "No Sku", "price": "cheap"}, headers=ADMIN)
    assert response.status_code == 422
    fields = {e["field"] for e in response.json()["detail"]["errors"]}
    assert {"price", "sku"} <= fields


def test_get_update_and_missing(client):
    response = client.patch("/api/customers/1", json={"firstName": "Johnny"})
    assert response.status_code == 200
    assert response.json()["firstName"] == "Johnny"
    assert client.get("/api/customers/1").json()["firstName"] == "Johnny"
    assert client.get("/api/customers/missing").status_code == 404
    assert client.patch("/api/customers/missing", json={"firstName": "X"}).status_code == 404


def test_delete_needs_confirmation(client):
    assert client.delete("/api/products/2").status_code == 409
    assert len(client.get("/api/products").json()) == 2
    assert client.delete("/api/products/2", params={"confirm": "true"}).json() == {"deleted": True}
    assert client.delete("/api/products/2", params={"confirm": "true"}).status_code == 404


def test_order_flow_and_analytics(client):
    created = client.post("/api/orders", json={"customerId": "1", "items": [{"productId": "2", "quantity": 2}]})
    assert created.status_code == 200
    order = created.json()
    assert order["orderNumber"] == "#1002"
    assert order["total"] == round(order["subtotal"] + order["tax"] + order["shipping"] - order["discount"], 2)

    shipped = client.patch(f"/api/orders/{order['id']}/status", json={"status": "shipped"})
    assert shipped.json()["status"] == "shipped"
    assert client.patch(f"/api/orders/{order['id']}/status", json={"status": "lost"}).status_code == 422

    analytics = client.get("/api/analytics").json()
    assert analytics["totalOrders"] == 2
    assert analytics["averageOrderValue"] == pytest.approx(analytics["totalRevenue"] / 2)
    assert analytics["recentOrders"][0]["id"] == order["id"]


def test_settings_endpoints(client):
    assert client.get("/api/settings/store").json()["currency"] == "USD"
    updated = client.patch("/api/settings/store", json={"currency": "EUR"})
    assert updated.json()["currency"] == "EUR"
    assert client.patch("/api/settings/store", json={"bogus": 1}).status_code == 422
    assert client.get("/api/settings/shipping").status_code == 404


def test_variant_endpoints(client):
    response = client.post("/api/products/1/variants", json={"title": "Black", "price": 199.99, "sku": "WBH-001-BLK"})
    assert response.status_code == 200
    variant = response.json()["variants"][0]
    assert variant["productId"] == "1"
    patched = client.patch(f"/api/products/1/variants/{variant['id']}", json={"quantity": 3})
    assert patched.json()["variants"][0]["quantity"] == 3
    assert client.delete(f"/api/products/1/variants/{variant['id']}").status_code == 409
    assert client.delete(f"/api/products/1/variants/{variant['id']}", params={"confirm": "true"}).status_code == 200


def test_generate_pages(client, backend):
    _, _, registry = backend
    body = client.post("/api/pages/generate").json()
    assert body["status"] == "ok"
    assert {"shop", "cart", "checkout"} <= set(registry.pages)
    assert registry.pages["shop"]["components"][0]["plugin"] == "product-grid"


def test_changes_are_persisted(backend):
    app, storage, _ = backend
    with TestClient(app) as client:
        client.patch("/api/orders/1/status", json={"status": "delivered"})
        client.post("/api/discounts", json={"code": "WELCOME10", "value": 10, "usageLimit": 100})
    blob = storage.get(NAMESPACE)
    assert blob["orders"][0]["status"] == "delivered"
    assert blob["discounts"][0]["code"] == "WELCOME10"


def test_init_app_rebinds_module_app(backend):
    import main

    app, _, _ = backend
    assert app is main.app
    assert app.state.sync.namespace == NAMESPACE


def test_product_with_symbol_name_gets_fallback_slug(client):
    body = client.post("/api/products", headers=ADMIN, json={"name": "★★★", "price": 5, "sku": "STAR-1"}).json()
    assert body["slug"] == "product"
