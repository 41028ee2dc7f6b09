import asyncio
import base64
import logging

import aiohttp

import config
from exceptions.payment import PayPalApiException
from models.checkout_session import OrderBreakdownDTO, PayPalOrderDTO, PayPalCaptureDTO
from utils.money import format_paypal_amount

logger = logging.getLogger(__name__)

PAYPAL_API_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}
CURRENCY_CODE = "EUR"


class PayPalClient:
    """
    Minimal PayPal Orders v2 REST client.

    One instance is created at startup and injected into the routers
    (web/dependencies.py), tests replace it with a mock.
    """

    def __init__(self, client_id: str | None = None, client_secret: str | None = None,
                 mode: str | None = None, timeout_seconds: int = 30):
        self.client_id = client_id if client_id is not None else config.PAYPAL_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else config.PAYPAL_CLIENT_SECRET
        self.base_url = PAYPAL_API_URLS[mode or config.PAYPAL_MODE]
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def _basic_auth_header(self) -> str:
        credentials = f"{self.client_id}:{self.client_secret}".encode()
        return f"Basic {base64.b64encode(credentials).decode()}"

    async def _get_access_token(self, http: aiohttp.ClientSession) -> str:
        if not self.client_id or not self.client_secret:
            raise PayPalApiException("authenticate", response="PayPal credentials not configured")
        async with http.post(
            f"{self.base_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            headers={"Authorization": self._basic_auth_header()}
        ) as response:
            if response.status != 200:
                raise PayPalApiException("authenticate", response.status, await response.text())
            data = await response.json()
            return data["access_token"]

    async def _request(self, operation: str, path: str, payload: dict) -> dict:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as http:
                token = await self._get_access_token(http)
                async with http.post(
                    f"{self.base_url}{path}",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                        "Prefer": "return=representation",
                    }
                ) as response:
                    if response.status not in (200, 201):
                        body = await response.text()
                        logger.error(f"PayPal {operation} returned {response.status}: {body}")
                        raise PayPalApiException(operation, response.status, body)
                    return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"PayPal {operation} request failed: {type(e).__name__}: {e}")
            raise PayPalApiException(operation, response=str(e)) from e

    @staticmethod
    def build_order_payload(breakdown: OrderBreakdownDTO) -> dict:
        """
        Build the Orders v2 request body.

        PayPal rejects orders unless
        item_total + shipping + tax_total - discount == value,
        item_total is the subtotal before any discount.
        """
        total_discount = breakdown.user_discount_amount + breakdown.campaign_discount_amount

        def money(value) -> dict:
            return {"currency_code": CURRENCY_CODE, "value": format_paypal_amount(value)}

        return {
            "intent": "CAPTURE",
            "purchase_units": [{
                "amount": {
                    **money(breakdown.total),
                    "breakdown": {
                        "item_total": money(breakdown.subtotal),
                        "shipping": money(breakdown.shipping_cost),
                        "tax_total": money(breakdown.tax_amount),
                        "discount": money(total_discount),
                    },
                },
                "description": f"{config.PAYPAL_BRAND_NAME} Bestellung",
            }],
            "application_context": {
                "brand_name": config.PAYPAL_BRAND_NAME,
                "locale": "de-DE",
                "landing_page": "NO_PREFERENCE",
                "shipping_preference": "NO_SHIPPING",
                "user_action": "PAY_NOW",
                "return_url": f"{config.PUBLIC_BASE_URL}/checkout/success",
                "cancel_url": f"{config.PUBLIC_BASE_URL}/checkout/cancel",
            },
        }

    async def create_order(self, breakdown: OrderBreakdownDTO) -> PayPalOrderDTO:
        """
        Create a PayPal order for the given breakdown.

        Raises:
            PayPalApiException: PayPal rejected the request or is unreachable
        """
        data = await self._request("create order", "/v2/checkout/orders", self.build_order_payload(breakdown))
        approval_url = next((link["href"] for link in data.get("links", []) if link.get("rel") == "approve"), None)
        logger.info(f"PayPal order {data['id']} created over {breakdown.total} {CURRENCY_CODE}")
        return PayPalOrderDTO(id=data["id"], status=data.get("status", ""), approval_url=approval_url)

    async def capture_order(self, paypal_order_id: str) -> PayPalCaptureDTO:
        """
        Capture an approved PayPal order.

        Raises:
            PayPalApiException: PayPal rejected the request or is unreachable
        """
        data = await self._request("capture order", f"/v2/checkout/orders/{paypal_order_id}/capture", {})
        captures = data.get("purchase_units", [{}])[0].get("payments", {}).get("captures", [])
        return PayPalCaptureDTO(
            id=data["id"],
            status=data.get("status", ""),
            capture_id=captures[0]["id"] if captures else None,
            payer_email=data.get("payer", {}).get("email_address"),
        )
