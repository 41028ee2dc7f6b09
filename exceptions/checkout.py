"""
Checkout-related exceptions.
"""

from .base import ShopException


class CheckoutException(ShopException):
    """Base exception for checkout-related errors."""
    pass


class AddressNotFoundException(CheckoutException):
    """Raised when the shipping address id is missing or unknown."""

    def __init__(self, address_id: int | None):
        super().__init__(
            f"Address {address_id} not found",
            details={'address_id': address_id}
        )
        self.address_id = address_id


class AddressOwnershipException(CheckoutException):
    """Raised when the address belongs to another user."""

    def __init__(self, address_id: int, user_id: int):
        super().__init__(
            f"Address {address_id} does not belong to user {user_id}",
            details={'address_id': address_id, 'user_id': user_id}
        )
        self.address_id = address_id
        self.user_id = user_id


class CheckoutSessionNotFoundException(CheckoutException):
    """Raised when no checkout session exists for a PayPal order id."""

    def __init__(self, paypal_order_id: str):
        super().__init__(
            f"Checkout session for PayPal order {paypal_order_id} not found",
            details={'paypal_order_id': paypal_order_id}
        )
        self.paypal_order_id = paypal_order_id


class CheckoutSessionOwnershipException(CheckoutException):
    """Raised when a user tries to capture someone else's checkout session."""

    def __init__(self, paypal_order_id: str, user_id: int):
        super().__init__(
            f"Checkout session {paypal_order_id} does not belong to user {user_id}",
            details={'paypal_order_id': paypal_order_id, 'user_id': user_id}
        )
        self.paypal_order_id = paypal_order_id
        self.user_id = user_id


class CheckoutSessionExpiredException(CheckoutException):
    """Raised when the session TTL elapsed before capture."""

    def __init__(self, paypal_order_id: str):
        super().__init__(
            f"Checkout session {paypal_order_id} expired",
            details={'paypal_order_id': paypal_order_id}
        )
        self.paypal_order_id = paypal_order_id


class CheckoutIntegrityException(CheckoutException):
    """
    Raised when PayPal accepted a payment step but the shop failed to record it.

    This is a paid-but-unrecorded state that needs manual reconciliation.
    The operator has already been alerted when this is raised.
    """

    def __init__(self, paypal_order_id: str, capture_id: str | None = None, stage: str = "capture"):
        super().__init__(
            f"Integrity failure during {stage} for PayPal order {paypal_order_id} (capture {capture_id})",
            details={'paypal_order_id': paypal_order_id, 'capture_id': capture_id, 'stage': stage}
        )
        self.paypal_order_id = paypal_order_id
        self.capture_id = capture_id
        self.stage = stage
