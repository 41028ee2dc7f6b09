"""
Public shop API.

Every monetary value in the responses is computed on the server; request
bodies only carry ids, quantities, dimensions and codes.

Response envelope:
    {"success": true, "data": {...}}
    {"success": false, "error": {"code": "...", "message": "..."}}  (utils/error_handler.py)

Security:
- Identity via X-User-Id from the upstream auth provider
- Rate limiting for add-to-cart and both PayPal steps
- Ownership checks in the services (cart rows, addresses, checkout sessions)
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from enums.rate_limit_operation import RateLimitOperation
from middleware.rate_limit import RateLimiter
from services.cart import CartService
from services.checkout import CheckoutService
from services.discount import DiscountService
from services.paypal import PayPalClient
from services.pricing import PricingService
from services.settings_cache import SettingsCache
from services.shipping import ShippingService
from web.dependencies import get_session, get_current_user_id, get_optional_user_id, get_rate_limiter, \
    get_paypal_client, get_settings_cache

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["api"])


def success(data) -> dict:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in data]
    return {"success": True, "data": data}


class AddToCartPayload(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1, le=100000)
    width_mm: int | None = Field(default=None, gt=0)
    height_mm: int | None = Field(default=None, gt=0)
    uploaded_file_url: str | None = Field(default=None, max_length=2048)
    uploaded_file_name: str | None = Field(default=None, max_length=255)


class UpdateCartItemPayload(BaseModel):
    cart_item_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=0, le=100000)


class RemoveCartItemPayload(BaseModel):
    cart_item_id: int = Field(..., gt=0)


class UpdateServicesPayload(BaseModel):
    cart_item_id: int = Field(..., gt=0)
    service_ids: list[int] = Field(default_factory=list, max_length=50)


class SelectShippingPayload(BaseModel):
    profile_id: int = Field(..., gt=0)


class ValidateDiscountPayload(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)


class CreatePayPalOrderPayload(BaseModel):
    address_id: int | None = Field(default=None, gt=0)
    discount_code: str | None = Field(default=None, max_length=64)


class CapturePayPalPaymentPayload(BaseModel):
    paypal_order_id: str = Field(..., min_length=1, max_length=64)


@api_router.get("/products/{slug}/price")
async def get_product_price(
    slug: str,
    quantity: int = Query(1, ge=1, le=100000),
    width_mm: int | None = Query(None, gt=0),
    height_mm: int | None = Query(None, gt=0),
    user_id: int | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_session)
):
    """
    Authoritative price of a product configuration.

    Example:
        curl "https://shop.example/api/products/dtf-transfer-a4/price?quantity=25" -H "X-User-Id: 42"
    """
    calculation = await PricingService.get_price_for_product(slug, quantity, user_id, session, width_mm, height_mm)
    return success(calculation)


@api_router.get("/cart")
async def get_cart(user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    return success(await CartService.get_cart(user_id, session))


@api_router.post("/cart/add")
async def add_to_cart(
    payload: AddToCartPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    rate_limiter: RateLimiter = Depends(get_rate_limiter)
):
    await rate_limiter.check(RateLimitOperation.CART_ADD, user_id)
    result = await CartService.add_to_cart(
        user_id,
        payload.product_id,
        payload.quantity,
        session,
        width_mm=payload.width_mm,
        height_mm=payload.height_mm,
        uploaded_file_url=payload.uploaded_file_url,
        uploaded_file_name=payload.uploaded_file_name,
    )
    return success(result)


@api_router.post("/cart/update")
async def update_cart_item(
    payload: UpdateCartItemPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    """Change quantity (0 removes). Returns tier/savings info for every line."""
    return success(await CartService.update_quantity(user_id, payload.cart_item_id, payload.quantity, session))


@api_router.post("/cart/remove")
async def remove_cart_item(
    payload: RemoveCartItemPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    cart_count = await CartService.remove(user_id, payload.cart_item_id, session)
    return success({"cart_count": cart_count})


@api_router.post("/cart/clear")
async def clear_cart(user_id: int = Depends(get_current_user_id), session: AsyncSession = Depends(get_session)):
    await CartService.clear(user_id, session)
    return success({"cart_count": 0})


@api_router.post("/cart/services")
async def update_cart_item_services(
    payload: UpdateServicesPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    return success(await CartService.update_services(user_id, payload.cart_item_id, payload.service_ids, session))


@api_router.get("/shipping/active")
async def get_active_shipping_profiles(session: AsyncSession = Depends(get_session)):
    return success(await ShippingService.get_active_profiles(session))


@api_router.post("/cart/shipping/select")
async def select_shipping_profile(
    payload: SelectShippingPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    return success(await ShippingService.select_profile(user_id, payload.profile_id, session))


@api_router.post("/discounts/validate")
async def validate_discount_code(
    payload: ValidateDiscountPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    """
    Preview a discount code against the current cart.

    A rejected code is a regular answer (success=true, data.valid=false);
    checkout raises instead.
    """
    return success(await DiscountService.preview(payload.code.strip(), user_id, session))


@api_router.post("/checkout/create-paypal-order")
async def create_paypal_order(
    payload: CreatePayPalOrderPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    paypal_client: PayPalClient = Depends(get_paypal_client)
):
    """
    Recompute the order from persisted state and open a PayPal order.

    Request Body:
        {"address_id": 7, "discount_code": "SOMMER10"}

    Returns:
        200: {"paypal_order_id", "approval_url", "breakdown"}
        400: empty cart, invalid address or discount code
        403: address of another user
        429: too many attempts
        502: PayPal unavailable
    """
    await rate_limiter.check(RateLimitOperation.PAYMENT_CREATE, user_id)
    result = await CheckoutService.create_paypal_order(
        user_id, payload.address_id, payload.discount_code, session, paypal_client)
    return success(result)


@api_router.post("/checkout/capture-paypal-payment")
async def capture_paypal_payment(
    payload: CapturePayPalPaymentPayload,
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    paypal_client: PayPalClient = Depends(get_paypal_client)
):
    await rate_limiter.check(RateLimitOperation.PAYMENT_CAPTURE, user_id)
    result = await CheckoutService.capture_paypal_payment(user_id, payload.paypal_order_id, session, paypal_client)
    return success(result)


@api_router.get("/settings/banner")
async def get_banner(
    session: AsyncSession = Depends(get_session),
    settings_cache: SettingsCache = Depends(get_settings_cache)
):
    return success(await settings_cache.get_banner(session))
