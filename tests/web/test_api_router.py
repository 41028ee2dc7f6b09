"""
HTTP API Tests

Tests the FastAPI routes end-to-end against an in-memory database:
response envelope, authentication headers, admin guard, rate limiting
and security headers. PayPal and Redis are replaced by mocks.

Run with:
    pytest tests/web/test_api_router.py -v
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from exceptions.rate_limit import RateLimitExceededException
from models.checkout_session import PayPalOrderDTO, PayPalCaptureDTO
from services.settings_cache import SettingsCache
from web.dependencies import get_session, get_rate_limiter, get_paypal_client, get_settings_cache
from app import app

USER_HEADERS = {"X-User-Id": "1"}
ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token-0123456789"}


@pytest.fixture
def rate_limiter():
    limiter = MagicMock()
    limiter.check = AsyncMock(return_value=5)
    return limiter


@pytest.fixture
def paypal_client():
    client = MagicMock()
    client.create_order = AsyncMock(return_value=PayPalOrderDTO(
        id="5O190127TN364715T", status="CREATED", approval_url="https://www.sandbox.paypal.com/approve"))
    client.capture_order = AsyncMock(return_value=PayPalCaptureDTO(
        id="5O190127TN364715T", status="COMPLETED", capture_id="3C679366HH908993F"))
    return client


@pytest.fixture
def client(session, rate_limiter, paypal_client):
    """TestClient without lifespan, long-lived clients injected via overrides."""
    settings_cache = SettingsCache(ttl_seconds=300)
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_paypal_client] = lambda: paypal_client
    app.dependency_overrides[get_settings_cache] = lambda: settings_cache
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthAndHeaders:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers

    def test_checkout_responses_not_cached(self, client, user):
        response = client.post("/api/checkout/create-paypal-order", json={}, headers=USER_HEADERS)
        assert response.headers["Cache-Control"] == "no-store"


class TestProductPrice:

    def test_guest_price(self, client, product):
        response = client.get("/api/products/dtf-transfer-a4/price", params={"quantity": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["unit_price"] == 8.0
        assert body["data"]["total"] == 40.0

    def test_reseller_price(self, client, session, user, product):
        user.discount_percent = Decimal("10")
        session.commit()

        response = client.get("/api/products/dtf-transfer-a4/price", params={"quantity": 5},
                              headers={"X-User-Id": str(user.id)})
        assert response.json()["data"]["total"] == 36.0

    def test_unknown_product(self, client):
        response = client.get("/api/products/gibts-nicht/price")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "product_not_found", "message": "Produkt nicht gefunden"},
        }

    def test_invalid_quantity_is_validation_error(self, client, product):
        response = client.get("/api/products/dtf-transfer-a4/price", params={"quantity": 0})
        assert response.status_code == 422
        body = response.json()
        assert body["error"]["code"] == "validation_error"
        assert body["error"]["details"]


class TestCartRoutes:

    def test_requires_user(self, client):
        response = client.get("/api/cart")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_malformed_user_id(self, client):
        assert client.get("/api/cart", headers={"X-User-Id": "abc"}).status_code == 401

    def test_add_update_remove(self, client, user, product):
        headers = {"X-User-Id": str(user.id)}

        added = client.post("/api/cart/add", json={"product_id": product.id, "quantity": 3}, headers=headers)
        assert added.status_code == 200
        cart_item = added.json()["data"]["cart_item"]
        assert cart_item["unit_price"] == 10.0

        updated = client.post("/api/cart/update", json={"cart_item_id": cart_item["id"], "quantity": 5},
                              headers=headers)
        info = updated.json()["data"]["items_with_tier_info"][0]
        assert info["unit_price"] == 8.0
        assert info["item_total"] == 40.0

        cart = client.get("/api/cart", headers=headers).json()["data"]
        assert cart["subtotal"] == 40.0

        removed = client.post("/api/cart/remove", json={"cart_item_id": cart_item["id"]}, headers=headers)
        assert removed.json() == {"success": True, "data": {"cart_count": 0}}

    def test_client_price_is_ignored(self, client, user, product):
        response = client.post("/api/cart/add",
                               json={"product_id": product.id, "quantity": 5, "unit_price": 0.01},
                               headers={"X-User-Id": str(user.id)})
        assert response.json()["data"]["cart_item"]["unit_price"] == 8.0

    def test_add_is_rate_limited(self, client, rate_limiter, user, product):
        rate_limiter.check.side_effect = RateLimitExceededException("cart_add", user.id, 42)

        response = client.post("/api/cart/add", json={"product_id": product.id, "quantity": 1},
                               headers={"X-User-Id": str(user.id)})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.json()["error"]["code"] == "rate_limited"

    def test_foreign_cart_item(self, client, user, other_user, product):
        added = client.post("/api/cart/add", json={"product_id": product.id, "quantity": 1},
                            headers={"X-User-Id": str(user.id)}).json()["data"]["cart_item"]

        response = client.post("/api/cart/update", json={"cart_item_id": added["id"], "quantity": 2},
                               headers={"X-User-Id": str(other_user.id)})
        assert response.status_code == 404

    def test_services(self, client, user, product, service):
        headers = {"X-User-Id": str(user.id)}
        added = client.post("/api/cart/add", json={"product_id": product.id, "quantity": 5},
                            headers=headers).json()["data"]["cart_item"]

        response = client.post("/api/cart/services", json={"cart_item_id": added["id"], "service_ids": [service.id]},
                               headers=headers)
        data = response.json()["data"]
        assert data["services_total"] == 5.0
        assert data["new_subtotal"] == 45.0

    def test_shipping_selection(self, client, user, shipping_profile):
        headers = {"X-User-Id": str(user.id)}
        profiles = client.get("/api/shipping/active").json()["data"]
        assert [p["name"] for p in profiles] == ["Standard"]

        selected = client.post("/api/cart/shipping/select", json={"profile_id": shipping_profile.id},
                               headers=headers)
        assert selected.json()["data"]["base_price"] == 4.9

        missing = client.post("/api/cart/shipping/select", json={"profile_id": 999}, headers=headers)
        assert missing.status_code == 404


class TestDiscountAndCheckout:

    def test_rejected_code_is_regular_answer(self, client, user, product):
        response = client.post("/api/discounts/validate", json={"code": "GIBTSNICHT"},
                               headers={"X-User-Id": str(user.id)})
        assert response.status_code == 200
        assert response.json()["data"]["valid"] is False
        assert response.json()["data"]["error"] == "invalid_or_expired"

    def test_checkout_flow(self, client, user, product, address, shipping_profile, paypal_client, rate_limiter):
        headers = {"X-User-Id": str(user.id)}
        client.post("/api/cart/add", json={"product_id": product.id, "quantity": 5}, headers=headers)

        created = client.post("/api/checkout/create-paypal-order", json={"address_id": address.id},
                              headers=headers)
        assert created.status_code == 200
        data = created.json()["data"]
        assert data["paypal_order_id"] == "5O190127TN364715T"
        assert data["breakdown"]["total"] == 53.43

        captured = client.post("/api/checkout/capture-paypal-payment",
                               json={"paypal_order_id": "5O190127TN364715T"}, headers=headers)
        assert captured.status_code == 200
        assert captured.json()["data"]["order_number"].startswith("ORD-")
        assert client.get("/api/cart", headers=headers).json()["data"]["item_count"] == 0
        assert rate_limiter.check.await_count == 3

    def test_checkout_with_rejected_code(self, client, user, product, address, paypal_client):
        headers = {"X-User-Id": str(user.id)}
        client.post("/api/cart/add", json={"product_id": product.id, "quantity": 5}, headers=headers)

        response = client.post("/api/checkout/create-paypal-order",
                               json={"address_id": address.id, "discount_code": "GIBTSNICHT"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == {
            "code": "invalid_or_expired",
            "message": "Ungültiger oder abgelaufener Rabattcode",
        }
        paypal_client.create_order.assert_not_awaited()

    def test_checkout_empty_cart(self, client, user, address):
        response = client.post("/api/checkout/create-paypal-order", json={"address_id": address.id},
                               headers={"X-User-Id": str(user.id)})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "empty_cart"

    def test_capture_unknown_order(self, client, user):
        response = client.post("/api/checkout/capture-paypal-payment", json={"paypal_order_id": "UNKNOWN"},
                               headers={"X-User-Id": str(user.id)})
        assert response.status_code == 404


class TestAdminRoutes:

    def test_missing_token(self, client, user):
        response = client.put(f"/api/admin/users/{user.id}/discount", json={"discount_percent": 10})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"

    def test_wrong_token(self, client, user):
        response = client.put(f"/api/admin/users/{user.id}/discount", json={"discount_percent": 10},
                              headers={"X-Admin-Token": "wrong"})
        assert response.status_code == 403

    def test_set_user_discount(self, client, user):
        response = client.put(f"/api/admin/users/{user.id}/discount", json={"discount_percent": 15},
                              headers=ADMIN_HEADERS)
        assert response.json() == {"success": True, "data": {"user_id": user.id, "discount_percent": 15.0}}

    def test_user_discount_out_of_range(self, client, user):
        response = client.put(f"/api/admin/users/{user.id}/discount", json={"discount_percent": 150},
                              headers=ADMIN_HEADERS)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_discount_percent"

    def test_update_pricing(self, client, product):
        response = client.put(f"/api/admin/products/{product.id}/pricing", headers=ADMIN_HEADERS, json={
            "base_price": 2.50,
            "tiers": [
                {"min_quantity": 1, "max_quantity": 9, "price_per_unit": 2.50},
                {"min_quantity": 10, "max_quantity": None, "price_per_unit": 2.20},
            ],
        })
        assert response.status_code == 200
        tiers = response.json()["data"]["tiers"]
        assert [t["discount_percent"] for t in tiers] == [0.0, 12.0]

    def test_update_pricing_overlap(self, client, product):
        response = client.put(f"/api/admin/products/{product.id}/pricing", headers=ADMIN_HEADERS, json={
            "base_price": 2.50,
            "tiers": [
                {"min_quantity": 1, "max_quantity": 10, "price_per_unit": 2.50},
                {"min_quantity": 10, "max_quantity": None, "price_per_unit": 2.20},
            ],
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "overlapping_price_tiers"

    def test_banner(self, client):
        default = client.get("/api/settings/banner").json()["data"]
        assert default == {"enabled": True, "text": "20% auf Stickerei bis 28.02.", "link": None}

        updated = client.put("/api/admin/settings/banner", headers=ADMIN_HEADERS,
                             json={"enabled": True, "text": "Sommer-Sale", "link": "/sale"})
        assert updated.status_code == 200
        assert client.get("/api/settings/banner").json()["data"]["text"] == "Sommer-Sale"
