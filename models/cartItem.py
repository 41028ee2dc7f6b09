from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, Text, String, Numeric, DateTime, func

from models.base import Base
from models.price_tier import NextTierInfoDTO
from models.zusatzleistung import CartItemZusatzleistungDTO
from utils.money import Money


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Tier price at the time of add/update. Overwritten together with quantity
    # on every quantity change, never recomputed on read.
    unit_price = Column(Numeric(10, 2), nullable=False)
    width_mm = Column(Integer, nullable=True)
    height_mm = Column(Integer, nullable=True)
    uploaded_file_url = Column(String, nullable=True)
    uploaded_file_name = Column(String, nullable=True)
    # JSON-encoded customer options (placement, notes, ...)
    custom_options = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
        CheckConstraint('unit_price >= 0', name='check_cart_unit_price_non_negative'),
    )


class CartItemDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None
    unit_price: Money | None = None
    width_mm: int | None = None
    height_mm: int | None = None
    uploaded_file_url: str | None = None
    uploaded_file_name: str | None = None
    custom_options: str | None = None  # JSON-encoded
    created_at: datetime | None = None


class CartItemWithDetailsDTO(BaseModel):
    """Cart item joined with product data and its services total."""
    id: int
    product_id: int
    product_name: str
    product_slug: str
    product_sku: str | None = None
    category_id: int | None = None
    quantity: int
    unit_price: Money
    base_price: Money
    width_mm: int | None = None
    height_mm: int | None = None
    uploaded_file_url: str | None = None
    uploaded_file_name: str | None = None
    custom_options: str | None = None
    services: list[CartItemZusatzleistungDTO] = []
    services_total: Money
    item_total: Money


class CartSummaryDTO(BaseModel):
    items: list[CartItemWithDetailsDTO]
    item_count: int
    subtotal: Money


class CartTierInfoDTO(BaseModel):
    """Returned after a quantity change: new line price plus tier upsell info."""
    cart_item_id: int
    quantity: int
    unit_price: Money
    item_total: Money
    current_savings: Money
    next_tier: NextTierInfoDTO | None = None


class CartServicesUpdateDTO(BaseModel):
    cart_item_id: int
    services: list[CartItemZusatzleistungDTO]
    item_total: Money
    services_total: Money
    new_subtotal: Money


class CartUpdateResultDTO(BaseModel):
    cart_count: int
    items_with_tier_info: list[CartTierInfoDTO]


class CartAddResultDTO(BaseModel):
    cart_item: CartItemDTO
    cart_count: int
