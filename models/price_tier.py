from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship

from models.base import Base
from utils.money import Money


class PriceTier(Base):
    """
    Volume price tier of a product.

    Each product can have multiple tiers based on quantity:
    - Example: 1-9 units: 2,50 €, 10-49 units: 2,20 €, 50+ units: 1,90 €

    max_quantity NULL means the tier is unbounded. discount_percent is
    informational (derived from base price vs. tier price) and only
    used for display.
    """
    __tablename__ = 'price_tiers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    min_quantity = Column(Integer, nullable=False)
    max_quantity = Column(Integer, nullable=True)  # NULL = unlimited
    price_per_unit = Column(Numeric(10, 2), nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())

    product = relationship("Product", back_populates="price_tiers")

    __table_args__ = (
        CheckConstraint('min_quantity >= 0', name='check_tier_min_quantity_non_negative'),
        CheckConstraint('max_quantity IS NULL OR max_quantity >= min_quantity',
                        name='check_tier_max_quantity_valid'),
        CheckConstraint('price_per_unit >= 0', name='check_tier_price_non_negative'),
    )


class PriceTierDTO(BaseModel):
    """DTO for price tier data transfer."""
    id: int | None = None
    product_id: int | None = None
    min_quantity: int
    max_quantity: int | None = None
    price_per_unit: Money
    discount_percent: Money = Decimal("0")
    display_order: int = 0
    created_at: datetime | None = None


class PriceCalculationDTO(BaseModel):
    """Full price breakdown for one product line (not persisted)."""
    unit_price: Money
    quantity: int
    discount_percent: Money
    reseller_discount_percent: Money
    subtotal: Money
    tier_discount: Money
    reseller_discount: Money
    total_discount: Money
    total: Money
    applicable_tier: PriceTierDTO | None = None


class PriceTierDisplayDTO(BaseModel):
    """Tier row prepared for the product page tier table."""
    quantity_range: str
    price_per_unit: Money
    discount_percent: Money
    is_current: bool
    is_unlocked: bool


class NextTierInfoDTO(BaseModel):
    """Upsell hint: what the customer gains by ordering more."""
    min_quantity: int
    price_per_unit: Money
    quantity_needed: int
    additional_savings: Money
    discount_percent: Money


class PriceTierInputDTO(BaseModel):
    """Tier as submitted by an admin. discount_percent is derived from base_price when omitted."""
    min_quantity: int = Field(ge=1)
    max_quantity: int | None = Field(default=None, ge=1)
    price_per_unit: Money = Field(ge=0)
    discount_percent: Money | None = Field(default=None, ge=0, le=100)
    display_order: int | None = None


class ProductPricingUpdateDTO(BaseModel):
    base_price: Money = Field(ge=0)
    compare_at_price: Money | None = Field(default=None, ge=0)
    tiers: list[PriceTierInputDTO] = []


class ProductPricingDTO(BaseModel):
    product_id: int
    base_price: Money
    compare_at_price: Money | None = None
    tiers: list[PriceTierDTO]
