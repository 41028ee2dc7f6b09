from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, func, CheckConstraint, Enum as SQLEnum, Text, \
    Numeric
from sqlalchemy.orm import relationship

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.base import Base
from utils.money import Money


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True, unique=True)
    order_number = Column(String, nullable=False, unique=True)  # ORD-<ms>-<RANDOM>
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    payment_method = Column(String, nullable=False, default="paypal")

    # Breakdown copied from the checkout session, never recomputed
    subtotal = Column(Numeric(10, 2), nullable=False)
    user_discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete="SET NULL"), nullable=True)
    shipping_profile_id = Column(Integer, ForeignKey('shipping_profiles.id', ondelete="SET NULL"), nullable=True)

    # Shipping address snapshot (JSON), the address book entry may change later
    shipping_address = Column(Text, nullable=True)

    paypal_order_id = Column(String, nullable=True, unique=True)
    paypal_capture_id = Column(String, nullable=True)
    customer_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now())
    paid_at = Column(DateTime, nullable=True)

    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint('total >= 0', name='check_order_total_non_negative'),
    )


class OrderItem(Base):
    """Snapshot of a cart line at the time of purchase."""
    __tablename__ = 'order_items'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="SET NULL"), nullable=True)
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    width_mm = Column(Integer, nullable=True)
    height_mm = Column(Integer, nullable=True)
    custom_options = Column(Text, nullable=True)
    uploaded_file_url = Column(String, nullable=True)
    uploaded_file_name = Column(String, nullable=True)

    order = relationship('Order', back_populates='items')


class OrderItemZusatzleistung(Base):
    __tablename__ = 'order_item_zusatzleistungen'

    id = Column(Integer, primary_key=True)
    order_item_id = Column(Integer, ForeignKey('order_items.id', ondelete="CASCADE"), nullable=False)
    zusatzleistung_id = Column(Integer, ForeignKey('zusatzleistungen.id', ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)


class OrderStatusHistory(Base):
    __tablename__ = 'order_status_history'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete="CASCADE"), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())


class OrderDTO(BaseModel):
    id: int | None = None
    order_number: str | None = None
    user_id: int | None = None
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    payment_method: str | None = None
    subtotal: Money | None = None
    user_discount_amount: Money | None = None
    discount_amount: Money | None = None
    shipping_cost: Money | None = None
    tax_amount: Money | None = None
    total: Money | None = None
    discount_id: int | None = None
    shipping_profile_id: int | None = None
    shipping_address: str | None = None  # JSON snapshot
    paypal_order_id: str | None = None
    paypal_capture_id: str | None = None
    customer_notes: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: int | None = None
    product_name: str
    product_sku: str | None = None
    quantity: int
    unit_price: Money
    total_price: Money
    width_mm: int | None = None
    height_mm: int | None = None
    custom_options: str | None = None
    uploaded_file_url: str | None = None
    uploaded_file_name: str | None = None
