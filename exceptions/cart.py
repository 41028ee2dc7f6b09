"""
Cart-related exceptions.
"""

from .base import ShopException


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, user_id: int):
        super().__init__(
            f"Cart is empty for user {user_id}",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartItemNotFoundException(CartException):
    """Raised when cart item not found or not owned by the requesting user."""

    def __init__(self, cart_item_id: int):
        super().__init__(
            f"Cart item {cart_item_id} not found",
            details={'cart_item_id': cart_item_id}
        )
        self.cart_item_id = cart_item_id


class InvalidQuantityException(CartException):
    """Raised when a quantity below the allowed minimum is requested."""

    def __init__(self, quantity: int, minimum: int = 1):
        super().__init__(
            f"Invalid quantity {quantity} (minimum {minimum})",
            details={'quantity': quantity, 'minimum': minimum}
        )
        self.quantity = quantity
        self.minimum = minimum
