"""
User-related exceptions.
"""

from .base import ShopException


class UserException(ShopException):
    """Base exception for user-related errors."""
    pass


class UserNotFoundException(UserException):
    """Raised when user is not found in database."""

    def __init__(self, user_id: int | None = None):
        super().__init__(
            f"User {user_id} not found",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class InvalidDiscountPercentException(UserException):
    """Raised when an admin sets a reseller rate outside 0-100."""

    def __init__(self, value):
        super().__init__(
            f"Discount percent {value} out of range 0-100",
            details={'value': str(value)}
        )
        self.value = value


class AuthenticationRequiredException(UserException):
    """Raised when a request carries no (valid) user identity."""

    def __init__(self):
        super().__init__("Authentication required")


class AdminAccessDeniedException(UserException):
    """Raised when an admin route is called without a valid admin token."""

    def __init__(self):
        super().__init__("Admin access denied")
