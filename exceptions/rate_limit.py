"""
Rate limiting exceptions.
"""

from .base import ShopException


class RateLimitExceededException(ShopException):
    """Raised when a user exceeded the request budget of an operation."""

    def __init__(self, operation: str, user_id: int, retry_after: int):
        super().__init__(
            f"Rate limit exceeded for {operation} by user {user_id}, retry after {retry_after}s",
            details={'operation': operation, 'user_id': user_id, 'retry_after': retry_after}
        )
        self.operation = operation
        self.user_id = user_id
        self.retry_after = retry_after
