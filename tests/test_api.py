from app.main import settings
from tests.conftest import CAFE_X, TEA_AND_BUN, place_order, register


# =============================================================================
# ROOT & HEALTH
# =============================================================================

def test_root_lists_endpoints(client):
    body = client.get("/").json()
    assert body["success"] is True
    assert body["endpoints"]["orders"]["bill"] == "/api/orders/:id/bill [GET]"


def test_health_reports_components(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["database"] == "healthy"
    assert body["redis"].startswith("unhealthy")
    assert body["status"] == "degraded"
    assert body["environment"] == "development"


def test_unknown_route_returns_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Endpoint not found",
        "message": "Route /api/nowhere does not exist",
    }


# =============================================================================
# RESTAURANTS
# =============================================================================

def test_register_and_login_scenario(client):
    restaurant = register(client)
    assert restaurant["id"]
    assert restaurant["email"] == "a@x.com"
    assert set(restaurant) == {"id", "name", "email"}

    ok = client.post("/api/restaurant/login", json={"email": "a@x.com", "password": "pw"})
    assert ok.status_code == 200
    assert ok.json()["restaurant"]["id"] == restaurant["id"]

    bad = client.post("/api/restaurant/login", json={"email": "a@x.com", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "error": "Invalid password"}


def test_login_unknown_email_is_unauthorized(client):
    response = client.post("/api/restaurant/login", json={"email": "no@x.com", "password": "pw"})
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_duplicate_registration_is_rejected(client):
    first = register(client)
    response = client.post("/api/restaurant/register", json={**CAFE_X, "name": "Other"})
    assert response.status_code == 400
    assert response.json()["error"] == "Restaurant with this email already exists"

    detail = client.get(f"/api/restaurant/{first['id']}").json()["restaurant"]
    assert detail["name"] == "Cafe X"


def test_register_requires_fields(client):
    response = client.post("/api/restaurant/register", json={"email": "a@x.com"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "password" in body["error"]


def test_login_with_registered_email_as_typed(client):
    restaurant = register(client, email="Owner@Cafe.IN")
    assert restaurant["email"] == "Owner@Cafe.IN"

    response = client.post(
        "/api/restaurant/login", json={"email": "Owner@Cafe.IN", "password": "pw"}
    )
    assert response.status_code == 200
    assert response.json()["restaurant"]["id"] == restaurant["id"]


def test_register_accepts_local_domains(client):
    restaurant = register(client, email="owner@cafe.local")
    assert restaurant["email"] == "owner@cafe.local"

    response = client.post(
        "/api/restaurant/login", json={"email": "owner@cafe.local", "password": "pw"}
    )
    assert response.status_code == 200


def test_register_rejects_malformed_email(client):
    response = client.post("/api/restaurant/register", json={**CAFE_X, "email": "not-an-email"})
    assert response.status_code == 400
    assert "Invalid email format" in response.json()["error"]


def test_get_restaurant_hides_password(client):
    restaurant = register(client, upiId="cafex@upi")
    response = client.get(f"/api/restaurant/{restaurant['id']}")
    assert response.status_code == 200
    detail = response.json()["restaurant"]
    assert detail["upiId"] == "cafex@upi"
    assert detail["menu"] == []
    assert "password" not in detail
    assert "passwordHash" not in detail

    assert client.get("/api/restaurant/missing").status_code == 404


def test_update_payment_info(client):
    restaurant = register(client, gstin="29ABCDE1234F1Z5")
    response = client.put(
        f"/api/restaurant/{restaurant['id']}/payment-info",
        json={"upiId": "cafex@upi", "paymentQrCode": "qr://cafex"},
    )
    assert response.status_code == 200
    assert response.json()["restaurant"] == {
        "upiId": "cafex@upi",
        "paymentQrCode": "qr://cafex",
        "gstin": "29ABCDE1234F1Z5",
    }

    missing = client.put("/api/restaurant/missing/payment-info", json={"upiId": "x"})
    assert missing.status_code == 404


def test_menu_add_and_list(client):
    restaurant = register(client)
    url = f"/api/restaurant/{restaurant['id']}/menu"

    client.post(url, json={"name": "Tea", "price": 20, "category": "Drinks"})
    response = client.post(url, json={"name": "Bun", "price": 15, "description": "Soft"})
    assert response.status_code == 200
    menu = response.json()["menu"]
    assert [m["name"] for m in menu] == ["Tea", "Bun"]
    assert all(m["available"] for m in menu)

    listed = client.get(url).json()["menu"]
    assert listed == menu

    assert client.post(url, json={"name": "Free", "price": -1}).status_code == 400
    assert client.get("/api/restaurant/missing/menu").status_code == 404


def test_list_restaurants_public_projection(client):
    register(client)
    register(client, name="Dosa Hut", email="b@x.com")
    restaurants = client.get("/api/restaurants").json()["restaurants"]
    assert {r["name"] for r in restaurants} == {"Cafe X", "Dosa Hut"}
    for r in restaurants:
        assert {"name", "email", "phone", "address", "menu", "upiId", "paymentQrCode", "gstin"} <= set(r)
        assert "passwordHash" not in r


# =============================================================================
# ORDERS
# =============================================================================

def test_create_order_scenario(client):
    restaurant = register(client, gstin="29ABCDE1234F1Z5")
    order = place_order(client, restaurant["id"])

    assert [line["itemTotal"] for line in order["items"]] == [40, 15]
    assert order["totalAmount"] == 55
    assert order["status"] == "pending"
    assert order["paymentMethod"] == "UPI"
    assert order["billGenerated"] is False
    assert order["gstAmount"] is None
    assert order["grandTotal"] is None
    assert order["restaurantName"] == "Cafe X"
    assert order["restaurantGstin"] == "29ABCDE1234F1Z5"
    assert order["billUrl"].endswith(f"/api/orders/{order['id']}/bill")


def test_client_supplied_item_total_is_ignored(client):
    restaurant = register(client)
    order = place_order(client, restaurant["id"], items=[
        {"name": "Tea", "price": 20, "quantity": 2, "itemTotal": 1},
    ])
    assert order["items"][0]["itemTotal"] == 40
    assert order["totalAmount"] == 40


def test_order_validation(client):
    restaurant = register(client)
    base = {
        "restaurantId": restaurant["id"],
        "customerName": "Asha",
        "customerPhone": "9876543210",
        "customerAddress": "4 Park Street",
    }
    assert client.post("/api/orders", json={**base, "items": []}).status_code == 400
    bad_qty = [{"name": "Tea", "price": 20, "quantity": 0}]
    assert client.post("/api/orders", json={**base, "items": bad_qty}).status_code == 400
    no_customer = {k: v for k, v in base.items() if k != "customerName"}
    assert client.post("/api/orders", json={**no_customer, "items": TEA_AND_BUN}).status_code == 400


def test_get_order(client):
    restaurant = register(client)
    created = place_order(client, restaurant["id"], specialInstructions="Less sugar")

    response = client.get(f"/api/orders/{created['id']}")
    assert response.status_code == 200
    order = response.json()["order"]
    assert order["orderId"] == created["orderId"]
    assert order["specialInstructions"] == "Less sugar"
    assert order["billUrl"] == created["billUrl"]

    missing = client.get("/api/orders/missing")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Order not found"}


def test_list_orders_for_restaurant(client):
    restaurant = register(client)
    other = register(client, email="b@x.com")
    first = place_order(client, restaurant["id"])
    second = place_order(client, restaurant["id"])
    place_order(client, other["id"])

    orders = client.get(f"/api/restaurant/{restaurant['id']}/orders").json()["orders"]
    assert [o["id"] for o in orders] == [second["id"], first["id"]]
    assert client.get("/api/restaurant/nobody/orders").json()["orders"] == []


def test_update_status(client):
    restaurant = register(client)
    order = place_order(client, restaurant["id"])

    response = client.put(f"/api/orders/{order['id']}/status", json={"status": "preparing"})
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "preparing"

    assert client.put("/api/orders/missing/status", json={"status": "ready"}).status_code == 404
    assert client.put(f"/api/orders/{order['id']}/status", json={"status": ""}).status_code == 400


def test_order_for_unknown_restaurant_is_accepted(client):
    order = place_order(client, "ghost")
    assert order["restaurantName"] is None


# =============================================================================
# BILLS
# =============================================================================

def test_bill_scenario(client):
    restaurant = register(client)
    order = place_order(client, restaurant["id"])

    response = client.get(f"/api/orders/{order['id']}/bill")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == (
        f"attachment; filename=InstaBite-Bill-{order['orderId']}.pdf"
    )
    assert response.content.startswith(b"%PDF")

    billed = client.get(f"/api/orders/{order['id']}").json()["order"]
    assert billed["gstAmount"] == 3
    assert billed["grandTotal"] == 58
    assert billed["billGenerated"] is True


def test_repeated_bill_does_not_compound(client):
    restaurant = register(client)
    order = place_order(client, restaurant["id"])

    first = client.get(f"/api/orders/{order['id']}/bill")
    second = client.get(f"/api/orders/{order['id']}/bill")
    assert first.content == second.content

    billed = client.get(f"/api/orders/{order['id']}").json()["order"]
    assert (billed["gstAmount"], billed["grandTotal"]) == (3, 58)


def test_bill_missing_order(client):
    response = client.get("/api/orders/missing/bill")
    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


def test_bill_missing_restaurant_fails_fast(client):
    order = place_order(client, "ghost")
    response = client.get(f"/api/orders/{order['id']}/bill")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Restaurant not found"}

    unchanged = client.get(f"/api/orders/{order['id']}").json()["order"]
    assert unchanged["billGenerated"] is False


def test_bill_render_failure(client, monkeypatch):
    import app.main as main

    def broken(order, restaurant, settings):
        raise ValueError("boom")

    monkeypatch.setattr(main, "render_invoice", broken)
    restaurant = register(client)
    order = place_order(client, restaurant["id"])

    response = client.get(f"/api/orders/{order['id']}/bill")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to generate bill"}


def test_bill_queues_ledger_export_when_enabled(client, monkeypatch):
    import app.main as main

    queued = []
    monkeypatch.setattr(settings, "ledger_export_enabled", True)
    monkeypatch.setattr(main, "queue_ledger_export", lambda order: queued.append(order.order_id))

    restaurant = register(client)
    order = place_order(client, restaurant["id"])
    client.get(f"/api/orders/{order['id']}/bill")

    assert queued == [order["orderId"]]


def test_long_order_bill(client):
    restaurant = register(client)
    items = [{"name": f"Snack {i}", "price": 10, "quantity": 1} for i in range(40)]
    order = place_order(client, restaurant["id"], items=items)

    response = client.get(f"/api/orders/{order['id']}/bill")
    assert response.status_code == 200
    billed = client.get(f"/api/orders/{order['id']}").json()["order"]
    assert billed["totalAmount"] == 400
    assert billed["gstAmount"] == 20
    assert billed["grandTotal"] == 420


# =============================================================================
# UNHANDLED ERRORS
# =============================================================================

def test_unhandled_error_reports_message(client, monkeypatch):
    from fastapi.testclient import TestClient

    from app.main import app
    from app.services.orders import OrderService

    async def explode(self, order_id):
        raise RuntimeError("ledger offline")

    monkeypatch.setattr(OrderService, "get", explode)
    with TestClient(app, raise_server_exceptions=False) as raw:
        response = raw.get("/api/orders/anything")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Internal Server Error",
        "message": "ledger offline",
    }
