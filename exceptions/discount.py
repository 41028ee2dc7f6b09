"""
Discount code exceptions.
"""

from enums.discount_error import DiscountError
from .base import ShopException


class DiscountException(ShopException):
    """Base exception for discount-related errors."""
    pass


class DiscountValidationException(DiscountException):
    """
    Raised when a campaign code cannot be applied at checkout.

    The reason is one of DiscountError; its localized message is safe
    to show to the customer.
    """

    def __init__(self, reason: DiscountError, code: str | None = None):
        super().__init__(
            f"Discount code '{code}' rejected: {reason.value}",
            details={'reason': reason.value, 'code': code}
        )
        self.reason = reason
        self.code = code
