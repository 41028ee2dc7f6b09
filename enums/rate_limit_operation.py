from enum import Enum


class RateLimitOperation(str, Enum):
    """
    Rate limit operation types.

    Each operation has its own independent rate limit counter.
    """

    # Checkout operations
    PAYMENT_CREATE = "payment_create"
    """
    Rate limit for PayPal order creation.
    Config: MAX_PAYMENT_CREATES_PER_WINDOW
    Default: 10 requests per 5 minutes
    """

    PAYMENT_CAPTURE = "payment_capture"
    """
    Rate limit for PayPal payment captures.
    Config: MAX_PAYMENT_CAPTURES_PER_WINDOW
    Default: 5 requests per 5 minutes
    """

    # Cart operations
    CART_ADD = "cart_add"
    """
    Rate limit for add-to-cart requests.
    Config: MAX_CART_ADDS_PER_MINUTE
    Default: 30 requests per minute
    """
