"""
Shipping-related exceptions.
"""

from .base import ShopException


class ShippingException(ShopException):
    """Base exception for shipping-related errors."""
    pass


class ShippingProfileNotFoundException(ShippingException):
    """Raised when the selected shipping profile does not exist or is inactive."""

    def __init__(self, profile_id: int):
        super().__init__(
            f"Shipping profile {profile_id} not found or inactive",
            details={'profile_id': profile_id}
        )
        self.profile_id = profile_id
