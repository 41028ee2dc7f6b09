from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text, func

from models.base import Base
from utils.money import Money


class CheckoutSession(Base):
    """
    Order breakdown persisted when the PayPal order is created.

    The capture step charges exactly these amounts and does not recompute
    them from the (possibly changed) cart.
    """
    __tablename__ = 'checkout_sessions'

    id = Column(Integer, primary_key=True)
    paypal_order_id = Column(String, nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    address_id = Column(Integer, ForeignKey('user_addresses.id', ondelete="SET NULL"), nullable=True)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete="SET NULL"), nullable=True)
    shipping_profile_id = Column(Integer, ForeignKey('shipping_profiles.id', ondelete="SET NULL"), nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=False)
    user_discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    campaign_discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    # JSON list of CartSnapshotItemDTO
    cart_snapshot = Column(Text, nullable=False)

    is_captured = Column(Boolean, nullable=False, default=False)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=func.now())
    expires_at = Column(DateTime, nullable=False)
    captured_at = Column(DateTime, nullable=True)


class OrderBreakdownDTO(BaseModel):
    """Monetary components of an order. subtotal + shipping + tax - discounts == total."""
    subtotal: Money
    user_discount_amount: Money
    campaign_discount_amount: Money
    shipping_cost: Money
    tax_amount: Money
    total: Money


class CartSnapshotServiceDTO(BaseModel):
    zusatzleistung_id: int
    name: str
    description: str | None = None
    price: Money


class CartSnapshotItemDTO(BaseModel):
    """Cart line frozen at PayPal order creation, replayed into order_items at capture."""
    cart_item_id: int
    product_id: int
    product_name: str
    product_sku: str | None = None
    quantity: int
    unit_price: Money
    width_mm: int | None = None
    height_mm: int | None = None
    uploaded_file_url: str | None = None
    uploaded_file_name: str | None = None
    custom_options: str | None = None
    services: list[CartSnapshotServiceDTO] = []
    services_total: Money
    item_total: Money


class OrderTotalsDTO(BaseModel):
    """Result of the server-side recomputation, before anything is persisted."""
    breakdown: OrderBreakdownDTO
    items: list[CartSnapshotItemDTO]
    user_discount_percent: Money
    discount_id: int | None = None
    discount_code: str | None = None
    shipping_profile_id: int | None = None
    address_id: int


class CheckoutSessionDTO(BaseModel):
    id: int | None = None
    paypal_order_id: str
    user_id: int
    address_id: int | None = None
    discount_id: int | None = None
    shipping_profile_id: int | None = None
    subtotal: Money
    user_discount_amount: Money
    campaign_discount_amount: Money
    shipping_cost: Money
    tax_amount: Money
    total: Money
    cart_snapshot: str
    is_captured: bool = False
    order_id: int | None = None
    created_at: datetime | None = None
    expires_at: datetime
    captured_at: datetime | None = None

    def breakdown(self) -> OrderBreakdownDTO:
        return OrderBreakdownDTO(
            subtotal=self.subtotal,
            user_discount_amount=self.user_discount_amount,
            campaign_discount_amount=self.campaign_discount_amount,
            shipping_cost=self.shipping_cost,
            tax_amount=self.tax_amount,
            total=self.total,
        )


class PayPalOrderCreatedDTO(BaseModel):
    paypal_order_id: str
    approval_url: str | None = None
    breakdown: OrderBreakdownDTO


class CaptureResultDTO(BaseModel):
    order_id: int
    order_number: str
    already_captured: bool = False


class PayPalOrderDTO(BaseModel):
    """PayPal order as returned by the Orders v2 API (only the fields we use)."""
    id: str
    status: str
    approval_url: str | None = None


class PayPalCaptureDTO(BaseModel):
    id: str
    status: str
    capture_id: str | None = None
    payer_email: str | None = None
