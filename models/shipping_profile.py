from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, CheckConstraint, DateTime, func

from models.base import Base
from utils.money import Money


class ShippingProfile(Base):
    """
    Shipping option with a flat price.

    Shipping becomes free once the discounted cart value reaches
    free_shipping_threshold (NULL = never free).
    """
    __tablename__ = 'shipping_profiles'

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    free_shipping_threshold = Column(Numeric(10, 2), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('base_price >= 0', name='check_shipping_base_price_non_negative'),
    )


class UserCartShipping(Base):
    """Shipping profile the user picked for the current cart (one row per user)."""
    __tablename__ = 'user_cart_shipping'

    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), primary_key=True)
    shipping_profile_id = Column(Integer, ForeignKey('shipping_profiles.id', ondelete="CASCADE"), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class ShippingProfileDTO(BaseModel):
    id: int | None = None
    name: str
    description: str | None = None
    base_price: Money = Decimal("0")
    free_shipping_threshold: Money | None = None
    is_default: bool = False
    is_active: bool = True
    display_order: int = 0
