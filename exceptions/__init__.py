"""
Custom exceptions for the DTF shop backend.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
ShopException (base)
├── ProductException
│   ├── ProductNotFoundException
│   ├── InvalidProductConfigurationException
│   ├── InsufficientInventoryException
│   └── OverlappingPriceTiersException
├── CartException
│   ├── EmptyCartException
│   ├── CartItemNotFoundException
│   └── InvalidQuantityException
├── DiscountException
│   └── DiscountValidationException
├── CheckoutException
│   ├── AddressNotFoundException
│   ├── AddressOwnershipException
│   ├── CheckoutSessionNotFoundException
│   ├── CheckoutSessionOwnershipException
│   ├── CheckoutSessionExpiredException
│   └── CheckoutIntegrityException
├── PaymentException
│   ├── PayPalApiException
│   └── PaymentCaptureException
├── UserException
│   ├── UserNotFoundException
│   ├── InvalidDiscountPercentException
│   ├── AuthenticationRequiredException
│   └── AdminAccessDeniedException
├── ShippingException
│   └── ShippingProfileNotFoundException
└── RateLimitExceededException

Usage:
------
Services raise specific exceptions:
    raise ProductNotFoundException(slug="dtf-transfer-a4")

The HTTP layer converts them into localized responses:
    try:
        await CartService.add_to_cart(...)
    except ShopException as e:
        raise to_http_exception(e)
"""

from .base import ShopException
from .cart import CartException, EmptyCartException, CartItemNotFoundException, InvalidQuantityException
from .checkout import (
    CheckoutException,
    AddressNotFoundException,
    AddressOwnershipException,
    CheckoutSessionNotFoundException,
    CheckoutSessionOwnershipException,
    CheckoutSessionExpiredException,
    CheckoutIntegrityException
)
from .discount import DiscountException, DiscountValidationException
from .payment import PaymentException, PayPalApiException, PaymentCaptureException
from .product import (
    ProductException,
    ProductNotFoundException,
    InvalidProductConfigurationException,
    InsufficientInventoryException,
    OverlappingPriceTiersException
)
from .rate_limit import RateLimitExceededException
from .shipping import ShippingException, ShippingProfileNotFoundException
from .user import UserException, UserNotFoundException, InvalidDiscountPercentException, \
    AuthenticationRequiredException, AdminAccessDeniedException

__all__ = [
    # Base
    'ShopException',

    # Product
    'ProductException',
    'ProductNotFoundException',
    'InvalidProductConfigurationException',
    'InsufficientInventoryException',
    'OverlappingPriceTiersException',

    # Cart
    'CartException',
    'EmptyCartException',
    'CartItemNotFoundException',
    'InvalidQuantityException',

    # Discount
    'DiscountException',
    'DiscountValidationException',

    # Checkout
    'CheckoutException',
    'AddressNotFoundException',
    'AddressOwnershipException',
    'CheckoutSessionNotFoundException',
    'CheckoutSessionOwnershipException',
    'CheckoutSessionExpiredException',
    'CheckoutIntegrityException',

    # Payment
    'PaymentException',
    'PayPalApiException',
    'PaymentCaptureException',

    # Shipping
    'ShippingException',
    'ShippingProfileNotFoundException',

    # User
    'UserException',
    'UserNotFoundException',
    'InvalidDiscountPercentException',
    'AuthenticationRequiredException',
    'AdminAccessDeniedException',

    # Rate limiting
    'RateLimitExceededException',
]
