"""Integration tests for checkout and order endpoints via TestClient."""

import pytest

CUSTOMER_INFO = {"full_name": "Nguyen Van An", "phone": "0901234567", "address": "12 Le Loi"}


@pytest.fixture()
def checkout(client, stocked_product):
    """Fill a cart with two units and check it out, returning the response."""

    def _checkout(session_id="sess-order", headers=None, quantity=2):
        client.post(f"/carts/{session_id}/items", json={**stocked_product, "quantity": quantity})
        return client.post(
            "/orders",
            json={"session_id": session_id, "customer": CUSTOMER_INFO},
            headers=headers or {},
        )

    return _checkout


class TestCheckout:
    def test_checkout_creates_pending_order(self, client, checkout, customer_headers):
        response = checkout(headers=customer_headers)

        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "pending"
        assert order["user_id"] == "cust-001"
        assert order["subtotal"] == 200_000
        assert order["total"] == 230_000
        assert order["order_code"].endswith("-0001")
        assert [h["status"] for h in order["status_history"]] == ["pending"]
        assert client.get("/carts/sess-order").json()["items"] == []

    def test_empty_cart_is_400(self, client):
        response = client.post("/orders", json={"session_id": "sess-empty", "customer": CUSTOMER_INFO})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "empty_cart"

    def test_missing_customer_field_is_422(self, client):
        response = client.post(
            "/orders",
            json={"session_id": "sess-x", "customer": {"full_name": "An", "address": "12 Le Loi"}},
        )
        assert response.status_code == 422

    def test_stale_cart_is_422(self, client, admin_headers, stocked_product):
        client.post("/carts/sess-stale/items", json={**stocked_product, "quantity": 1})
        client.put(f"/products/{stocked_product['product_id']}/deactivate", headers=admin_headers)

        response = client.post("/orders", json={"session_id": "sess-stale", "customer": CUSTOMER_INFO})

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "validation_failed"


class TestOrderLifecycle:
    def test_processing_deducts_stock(self, client, checkout, admin_headers, stocked_product):
        order_id = checkout().json()["id"]

        response = client.put(f"/orders/{order_id}/status", json={"status": "processing"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "processing"
        product = client.get(f"/products/{stocked_product['product_id']}").json()
        assert product["total_stock"] == 3

    def test_invalid_transition_is_409(self, client, checkout, admin_headers):
        order_id = checkout().json()["id"]

        response = client.put(f"/orders/{order_id}/status", json={"status": "delivered"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "invalid_transition"

    def test_unknown_status_is_422(self, client, checkout, admin_headers):
        order_id = checkout().json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "lost"}, headers=admin_headers)
        assert response.status_code == 422

    def test_status_change_requires_admin(self, client, checkout, customer_headers):
        order_id = checkout().json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "processing"}, headers=customer_headers)
        assert response.status_code == 403

    def test_owner_cancels_pending_order(self, client, checkout, customer_headers):
        order_id = checkout(headers=customer_headers).json()["id"]

        response = client.post(f"/orders/{order_id}/cancel", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_other_customer_cannot_cancel(self, client, checkout, customer_headers):
        order_id = checkout(headers=customer_headers).json()["id"]

        response = client.post(f"/orders/{order_id}/cancel", headers={"X-Actor-Id": "cust-999"})

        assert response.status_code == 403

    def test_admin_cancel_restores_stock(self, client, checkout, admin_headers, stocked_product):
        order_id = checkout().json()["id"]
        client.put(f"/orders/{order_id}/status", json={"status": "processing"}, headers=admin_headers)

        response = client.post(f"/orders/{order_id}/cancel", headers=admin_headers)

        assert response.status_code == 200
        product = client.get(f"/products/{stocked_product['product_id']}").json()
        assert product["total_stock"] == 5


class TestOrderQueries:
    def test_get_by_id_and_code(self, client, checkout):
        order = checkout().json()

        assert client.get(f"/orders/{order['id']}").json()["order_code"] == order["order_code"]
        assert client.get(f"/orders/code/{order['order_code']}").json()["id"] == order["id"]

    def test_unknown_order_is_404(self, client):
        assert client.get("/orders/missing").status_code == 404
        assert client.get("/orders/code/XM-2099-9999").status_code == 404

    def test_other_customers_order_is_403(self, client, checkout, customer_headers):
        order_id = checkout(headers=customer_headers).json()["id"]
        assert client.get(f"/orders/{order_id}", headers={"X-Actor-Id": "cust-999"}).status_code == 403

    def test_my_orders(self, client, checkout, customer_headers):
        checkout(headers=customer_headers)
        checkout(session_id="sess-guest", quantity=1)

        orders = client.get("/orders/mine", headers=customer_headers).json()

        assert len(orders) == 1
        assert orders[0]["user_id"] == "cust-001"

    def test_list_requires_admin(self, client, customer_headers):
        assert client.get("/orders", headers=customer_headers).status_code == 403

    def test_list_and_stats(self, client, checkout, admin_headers):
        checkout(quantity=1)
        cancelled = checkout(session_id="sess-2", quantity=1).json()["id"]
        client.post(f"/orders/{cancelled}/cancel", headers=admin_headers)

        page = client.get("/orders", params={"status": "pending"}, headers=admin_headers).json()
        assert page["total"] == 1

        stats = client.get("/orders/stats", headers=admin_headers).json()
        assert stats["total_orders"] == 2
        assert stats["total_revenue"] == 130_000
        assert stats["cancelled_orders"] == 1

    def test_unknown_role_is_400(self, client):
        response = client.get("/orders/mine", headers={"X-Actor-Id": "x", "X-Actor-Role": "wizard"})
        assert response.status_code == 400
