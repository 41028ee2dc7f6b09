"""
Product-related exceptions.
"""

from .base import ShopException


class ProductException(ShopException):
    """Base exception for product-related errors."""
    pass


class ProductNotFoundException(ProductException):
    """Raised when a product does not exist or is not active."""

    def __init__(self, product_id: int | None = None, slug: str | None = None):
        if product_id is not None:
            message = f"Product {product_id} not found"
            details = {'product_id': product_id}
        elif slug is not None:
            message = f"Product '{slug}' not found"
            details = {'slug': slug}
        else:
            message = "Product not found"
            details = {}

        super().__init__(message, details)
        self.product_id = product_id
        self.slug = slug


class InvalidProductConfigurationException(ProductException):
    """Raised when width/height of an uploaded design violate the product constraints."""

    def __init__(self, product_id: int, errors: list[str]):
        super().__init__(
            f"Invalid configuration for product {product_id}: {'; '.join(errors)}",
            details={'product_id': product_id, 'errors': errors}
        )
        self.product_id = product_id
        self.errors = errors


class InsufficientInventoryException(ProductException):
    """Raised when a tracked product with policy 'deny' has not enough stock."""

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient inventory for product {product_id}: requested {requested}, available {available}",
            details={'product_id': product_id, 'requested': requested, 'available': available}
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class OverlappingPriceTiersException(ProductException):
    """Raised when an admin submits tiers whose quantity ranges overlap."""

    def __init__(self, product_id: int, overlaps: list[tuple[int, int]]):
        ranges = ', '.join(f"{a}/{b}" for a, b in overlaps)
        super().__init__(
            f"Overlapping price tiers for product {product_id} (min quantities {ranges})",
            details={'product_id': product_id, 'overlaps': overlaps}
        )
        self.product_id = product_id
        self.overlaps = overlaps
