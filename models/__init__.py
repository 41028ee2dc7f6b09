"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships and Base.metadata.create_all to work correctly.
"""

from models.base import Base
from models.user import User
from models.address import UserAddress
from models.category import Category
from models.product import Product
from models.price_tier import PriceTier
from models.zusatzleistung import Zusatzleistung, ProductZusatzleistung, CartItemZusatzleistung
from models.cartItem import CartItem
from models.shipping_profile import ShippingProfile, UserCartShipping
from models.discount import Discount, DiscountProductEligibility, DiscountCategoryEligibility, DiscountUsage
from models.order import Order, OrderItem, OrderItemZusatzleistung, OrderStatusHistory
from models.checkout_session import CheckoutSession
from models.site_settings import SiteSetting

__all__ = [
    'Base',
    'User',
    'UserAddress',
    'Category',
    'Product',
    'PriceTier',
    'Zusatzleistung',
    'ProductZusatzleistung',
    'CartItemZusatzleistung',
    'CartItem',
    'ShippingProfile',
    'UserCartShipping',
    'Discount',
    'DiscountProductEligibility',
    'DiscountCategoryEligibility',
    'DiscountUsage',
    'Order',
    'OrderItem',
    'OrderItemZusatzleistung',
    'OrderStatusHistory',
    'CheckoutSession',
    'SiteSetting',
]
