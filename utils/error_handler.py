"""
Error Handler Utility for the HTTP API

Provides centralized error handling for the FastAPI routes with:
- Localized error messages
- Consistent response envelope ({"success": false, "error": {...}})
- Automatic exception to HTTP status mapping
- Logging for debugging

Internal messages (exception.message, stack traces) never reach the client;
only the localized text and a stable error code are returned.

Usage in app.py:
    from utils.error_handler import shop_exception_handler, unexpected_exception_handler

    app.add_exception_handler(ShopException, shop_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
"""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from enums.shop_entity import ShopEntity
from exceptions import (
    ShopException,
    ProductNotFoundException,
    InvalidProductConfigurationException,
    InsufficientInventoryException,
    OverlappingPriceTiersException,
    EmptyCartException,
    CartItemNotFoundException,
    InvalidQuantityException,
    DiscountValidationException,
    AddressNotFoundException,
    AddressOwnershipException,
    CheckoutSessionNotFoundException,
    CheckoutSessionOwnershipException,
    CheckoutSessionExpiredException,
    CheckoutIntegrityException,
    PayPalApiException,
    PaymentCaptureException,
    UserNotFoundException,
    InvalidDiscountPercentException,
    AuthenticationRequiredException,
    AdminAccessDeniedException,
    ShippingProfileNotFoundException,
    RateLimitExceededException,
)
from utils.localizator import Localizator

logger = logging.getLogger(__name__)

# exception type -> (HTTP status, l10n entity, l10n key)
ERROR_MAPPING: dict[type[ShopException], tuple[int, ShopEntity, str]] = {
    # Product exceptions
    ProductNotFoundException: (404, ShopEntity.USER, "error_product_not_found"),
    InvalidProductConfigurationException: (400, ShopEntity.USER, "error_invalid_product_configuration"),
    InsufficientInventoryException: (409, ShopEntity.USER, "error_insufficient_inventory"),
    OverlappingPriceTiersException: (400, ShopEntity.ADMIN, "error_overlapping_price_tiers"),

    # Cart exceptions
    EmptyCartException: (400, ShopEntity.USER, "error_empty_cart"),
    CartItemNotFoundException: (404, ShopEntity.USER, "error_cart_item_not_found"),
    InvalidQuantityException: (400, ShopEntity.USER, "error_invalid_quantity"),

    # Checkout exceptions
    AddressNotFoundException: (400, ShopEntity.USER, "error_address_not_found"),
    AddressOwnershipException: (403, ShopEntity.USER, "error_address_ownership"),
    CheckoutSessionNotFoundException: (404, ShopEntity.USER, "error_checkout_session_not_found"),
    CheckoutSessionOwnershipException: (403, ShopEntity.USER, "error_checkout_session_ownership"),
    CheckoutSessionExpiredException: (410, ShopEntity.USER, "error_checkout_session_expired"),
    CheckoutIntegrityException: (500, ShopEntity.USER, "error_checkout_integrity"),

    # Payment exceptions
    PayPalApiException: (502, ShopEntity.USER, "error_paypal_unavailable"),
    PaymentCaptureException: (402, ShopEntity.USER, "error_payment_capture_failed"),

    # User exceptions
    UserNotFoundException: (404, ShopEntity.USER, "error_user_not_found"),
    InvalidDiscountPercentException: (400, ShopEntity.ADMIN, "error_invalid_discount_percent"),
    AuthenticationRequiredException: (401, ShopEntity.USER, "error_unauthorized"),
    AdminAccessDeniedException: (403, ShopEntity.ADMIN, "error_forbidden"),

    # Shipping exceptions
    ShippingProfileNotFoundException: (404, ShopEntity.USER, "error_shipping_profile_not_found"),

    # Rate limiting
    RateLimitExceededException: (429, ShopEntity.USER, "error_rate_limited"),
}


def _format_overlaps(overlaps: list[tuple[int, int]]) -> str:
    return ", ".join(f"{a}/{b}" for a, b in overlaps)


def handle_service_error(exception: ShopException, lang: str | None = None) -> tuple[int, str, str]:
    """
    Convert service exception to HTTP status, error code and localized message.

    Args:
        exception: The custom exception raised by a service
        lang: Optional language code (defaults to config.SHOP_LANGUAGE)

    Returns:
        (status_code, error_code, message)

    Example:
        try:
            totals = await CheckoutService.compute_order_totals(...)
        except DiscountValidationException as e:
            status, code, message = handle_service_error(e)
            # 400, "usage_limit_reached", "Dieser Rabattcode wurde bereits zu oft eingelöst"
    """
    logger.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")

    # Discount reasons carry their own l10n keys
    if isinstance(exception, DiscountValidationException):
        key = f"discount_{exception.reason.value}"
        return 400, exception.reason.value, Localizator.get_text(ShopEntity.USER, key, lang=lang)

    mapping = ERROR_MAPPING.get(type(exception))
    if mapping is None:
        # Unknown exception type - use generic error message
        logger.error(f"Unmapped exception type: {type(exception).__name__}")
        return 500, "unexpected", Localizator.get_text(ShopEntity.USER, "error_unexpected", lang=lang)

    status_code, entity, localization_key = mapping
    error_code = localization_key.removeprefix("error_")

    # Get exception attributes for formatting
    exception_data = {}
    if hasattr(exception, 'available'):
        exception_data['available'] = exception.available
    if hasattr(exception, 'errors'):
        exception_data['errors'] = "; ".join(exception.errors)
    if hasattr(exception, 'overlaps'):
        exception_data['overlaps'] = _format_overlaps(exception.overlaps)
    if hasattr(exception, 'paypal_order_id'):
        exception_data['paypal_order_id'] = exception.paypal_order_id
    if hasattr(exception, 'retry_after'):
        exception_data['retry_after'] = exception.retry_after

    text = Localizator.get_text(entity, localization_key, lang=lang)
    try:
        return status_code, error_code, text.format(**exception_data)
    except KeyError as e:
        # Missing formatting parameter - log and return without formatting
        logger.error(f"Missing format parameter in error message: {e}")
        return status_code, error_code, text


def handle_unexpected_error(exception: Exception, lang: str | None = None) -> str:
    """
    Handle unexpected exceptions (non-ShopException).

    Returns:
        Generic error message

    Note:
        Also logs the full exception for debugging
    """
    logger.error(f"Unexpected error: {type(exception).__name__} - {str(exception)}", exc_info=exception)
    return Localizator.get_text(ShopEntity.USER, "error_unexpected", lang=lang)


def error_response(status_code: int, code: str, message: str, details=None,
                   headers: dict | None = None) -> JSONResponse:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error}, headers=headers)


async def shop_exception_handler(request: Request, exception: ShopException) -> JSONResponse:
    status_code, code, message = handle_service_error(exception)
    headers = None
    if isinstance(exception, RateLimitExceededException):
        headers = {"Retry-After": str(exception.retry_after)}
    return error_response(status_code, code, message, headers=headers)


async def validation_exception_handler(request: Request, exception: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected request to {request.url.path}: {exception.errors()}")
    return error_response(
        422,
        "validation_error",
        Localizator.get_text(ShopEntity.USER, "error_validation"),
        details=jsonable_encoder(exception.errors()),
    )


async def unexpected_exception_handler(request: Request, exception: Exception) -> JSONResponse:
    return error_response(500, "unexpected", handle_unexpected_error(exception))
