"""
PayPal Client Unit Tests

Tests the Orders v2 payload and response parsing. HTTP is mocked,
no request leaves the test process.

Run with:
    pytest tests/payment/unit/test_paypal_client.py -v
"""

import asyncio
import base64
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from exceptions.payment import PayPalApiException
from models.checkout_session import OrderBreakdownDTO
from services.paypal import PayPalClient


def breakdown(**overrides) -> OrderBreakdownDTO:
    values = {
        "subtotal": Decimal("160.00"),
        "user_discount_amount": Decimal("16.00"),
        "campaign_discount_amount": Decimal("14.40"),
        "shipping_cost": Decimal("0"),
        "tax_amount": Decimal("24.62"),
        "total": Decimal("154.22"),
    }
    values.update(overrides)
    return OrderBreakdownDTO(**values)


class TestBuildOrderPayload:

    def test_amounts(self):
        amount = PayPalClient.build_order_payload(breakdown())["purchase_units"][0]["amount"]

        assert amount["currency_code"] == "EUR"
        assert amount["value"] == "154.22"
        assert amount["breakdown"]["item_total"]["value"] == "160.00"
        assert amount["breakdown"]["discount"]["value"] == "30.40"
        assert amount["breakdown"]["shipping"]["value"] == "0.00"
        assert amount["breakdown"]["tax_total"]["value"] == "24.62"

    def test_breakdown_adds_up(self):
        b = PayPalClient.build_order_payload(breakdown(shipping_cost=Decimal("4.90"), tax_amount=Decimal("25.55"),
                                                       total=Decimal("160.05")))
        parts = b["purchase_units"][0]["amount"]["breakdown"]
        value = Decimal(parts["item_total"]["value"]) + Decimal(parts["shipping"]["value"]) + \
            Decimal(parts["tax_total"]["value"]) - Decimal(parts["discount"]["value"])
        assert str(value) == b["purchase_units"][0]["amount"]["value"]

    def test_return_urls(self):
        context = PayPalClient.build_order_payload(breakdown())["application_context"]
        assert context["return_url"] == "https://shop.example/checkout/success"
        assert context["cancel_url"] == "https://shop.example/checkout/cancel"
        assert context["user_action"] == "PAY_NOW"


class TestResponses:

    @pytest.mark.asyncio
    async def test_create_order_parses_approval_link(self):
        client = PayPalClient()
        response = {
            "id": "5O190127TN364715T",
            "status": "CREATED",
            "links": [
                {"href": "https://api-m.sandbox.paypal.com/v2/checkout/orders/5O190127TN364715T", "rel": "self"},
                {"href": "https://www.sandbox.paypal.com/checkoutnow?token=5O190127TN364715T", "rel": "approve"},
            ],
        }
        with patch.object(client, "_request", AsyncMock(return_value=response)) as request:
            order = await client.create_order(breakdown())

        assert order.id == "5O190127TN364715T"
        assert order.approval_url.endswith("token=5O190127TN364715T")
        assert request.await_args.args[1] == "/v2/checkout/orders"

    @pytest.mark.asyncio
    async def test_capture_order_parses_capture_id(self):
        client = PayPalClient()
        response = {
            "id": "5O190127TN364715T",
            "status": "COMPLETED",
            "payer": {"email_address": "kunde@example.com"},
            "purchase_units": [{"payments": {"captures": [{"id": "3C679366HH908993F", "status": "COMPLETED"}]}}],
        }
        with patch.object(client, "_request", AsyncMock(return_value=response)):
            capture = await client.capture_order("5O190127TN364715T")

        assert capture.status == "COMPLETED"
        assert capture.capture_id == "3C679366HH908993F"
        assert capture.payer_email == "kunde@example.com"

    @pytest.mark.asyncio
    async def test_capture_without_captures(self):
        client = PayPalClient()
        with patch.object(client, "_request", AsyncMock(return_value={"id": "X", "status": "PAYER_ACTION_REQUIRED"})):
            capture = await client.capture_order("X")
        assert capture.capture_id is None

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        client = PayPalClient(client_id="", client_secret="")
        with pytest.raises(PayPalApiException) as exc_info:
            await client._get_access_token(MagicMock())
        assert exc_info.value.operation == "authenticate"

    def test_mode_selects_base_url(self):
        assert PayPalClient(mode="live").base_url == "https://api-m.paypal.com"
        assert PayPalClient().base_url == "https://api-m.sandbox.paypal.com"

    @pytest.mark.asyncio
    async def test_timeout_becomes_paypal_error(self):
        """A total timeout is not a ClientError and must still map to PayPalApiException."""
        client = PayPalClient(client_id="client", client_secret="secret", timeout_seconds=1)
        with patch.object(client, "_get_access_token", AsyncMock(side_effect=asyncio.TimeoutError())):
            with pytest.raises(PayPalApiException) as exc_info:
                await client.capture_order("5O190127TN364715T")
        assert exc_info.value.operation == "capture order"

    def test_basic_auth_header(self):
        client = PayPalClient(client_id="client", client_secret="secret")
        assert client._basic_auth_header() == "Basic " + base64.b64encode(b"client:secret").decode()
