from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, CheckConstraint, UniqueConstraint

from models.base import Base
from utils.money import Money


class Zusatzleistung(Base):
    """
    Optional add-on service (e.g. "Express-Produktion", "Druckdaten-Check").

    The price is always read from this table at cart/checkout time;
    prices sent by the client are never used.
    """
    __tablename__ = 'zusatzleistungen'

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_zusatzleistung_price_non_negative'),
    )


class ProductZusatzleistung(Base):
    """Services enabled for a product."""
    __tablename__ = 'product_zusatzleistungen'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False)
    zusatzleistung_id = Column(Integer, ForeignKey('zusatzleistungen.id', ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint('product_id', 'zusatzleistung_id', name='uq_product_zusatzleistung'),
    )


class CartItemZusatzleistung(Base):
    """Service selected for a cart item, with the price snapshot taken from the DB."""
    __tablename__ = 'cart_item_zusatzleistungen'

    id = Column(Integer, primary_key=True)
    cart_item_id = Column(Integer, ForeignKey('cart_items.id', ondelete="CASCADE"), nullable=False)
    zusatzleistung_id = Column(Integer, ForeignKey('zusatzleistungen.id', ondelete="CASCADE"), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)


class ZusatzleistungDTO(BaseModel):
    id: int | None = None
    name: str
    description: str | None = None
    price: Money
    is_active: bool = True
    display_order: int = 0


class CartItemZusatzleistungDTO(BaseModel):
    id: int | None = None
    cart_item_id: int
    zusatzleistung_id: int
    name: str | None = None
    description: str | None = None
    price: Money
