from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, func, \
    UniqueConstraint
from sqlalchemy import Enum as SQLEnum

from enums.discount_error import DiscountError
from enums.discount_scope import DiscountScope
from enums.discount_type import DiscountType
from models.base import Base
from utils.money import Money


class Discount(Base):
    """
    Campaign discount code.

    usage_count is only incremented when an order is finalized
    (see OrderService.create_from_checkout_session), never on validation.
    """
    __tablename__ = 'discounts'

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=True)
    discount_type = Column(SQLEnum(DiscountType), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False, default=0)
    min_purchase_amount = Column(Numeric(10, 2), nullable=True)
    max_discount_amount = Column(Numeric(10, 2), nullable=True)
    usage_limit = Column(Integer, nullable=True)  # NULL = unlimited
    usage_count = Column(Integer, nullable=False, default=0)
    usage_limit_per_user = Column(Integer, nullable=True)  # NULL = unlimited
    applies_to = Column(SQLEnum(DiscountScope), nullable=False, default=DiscountScope.ALL)
    is_active = Column(Boolean, nullable=False, default=True)
    starts_at = Column(DateTime, nullable=False, default=func.now())
    ends_at = Column(DateTime, nullable=True)  # NULL = open-ended
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        CheckConstraint('discount_value >= 0', name='check_discount_value_non_negative'),
        CheckConstraint('usage_count >= 0', name='check_discount_usage_count_non_negative'),
    )


class DiscountProductEligibility(Base):
    __tablename__ = 'discount_product_eligibility'

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint('discount_id', 'product_id', name='uq_discount_product'),
    )


class DiscountCategoryEligibility(Base):
    __tablename__ = 'discount_category_eligibility'

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint('discount_id', 'category_id', name='uq_discount_category'),
    )


class DiscountUsage(Base):
    """Usage log, one row per finalized order that redeemed a code."""
    __tablename__ = 'discount_usage'

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=True)
    used_at = Column(DateTime, default=func.now())


class DiscountDTO(BaseModel):
    id: int | None = None
    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: Money = Decimal("0")
    min_purchase_amount: Money | None = None
    max_discount_amount: Money | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    usage_limit_per_user: int | None = None
    applies_to: DiscountScope = DiscountScope.ALL
    is_active: bool = True
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class DiscountValidationResultDTO(BaseModel):
    """Outcome of a discount code check. error is set only when valid is False."""
    valid: bool
    discount: DiscountDTO | None = None
    error: DiscountError | None = None
