"""
Payment gateway exceptions.
"""

from .base import ShopException


class PaymentException(ShopException):
    """Base exception for payment-related errors."""
    pass


class PayPalApiException(PaymentException):
    """Raised when the PayPal REST API returns an error or is unreachable."""

    def __init__(self, operation: str, status: int | None = None, response: str | None = None):
        super().__init__(
            f"PayPal {operation} failed (status {status})",
            details={'operation': operation, 'status': status, 'response': response}
        )
        self.operation = operation
        self.status = status
        self.response = response


class PaymentCaptureException(PaymentException):
    """Raised when PayPal did not complete the capture."""

    def __init__(self, paypal_order_id: str, status: str | None = None):
        super().__init__(
            f"Capture of PayPal order {paypal_order_id} not completed (status {status})",
            details={'paypal_order_id': paypal_order_id, 'status': status}
        )
        self.paypal_order_id = paypal_order_id
        self.status = status
