from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.inventory_policy import InventoryPolicy
from enums.price_calculation_method import PriceCalculationMethod
from models.base import Base
from utils.money import Money


class Product(Base):
    """
    Catalog product (DTF transfer, gang sheet, textile, ...).

    Prices are net EUR amounts. Dimensional constraints are only enforced
    for products that accept a customer file upload.
    """
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete="SET NULL"), nullable=True)
    slug = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    description = Column(String, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    compare_at_price = Column(Numeric(10, 2), nullable=True)
    price_calculation_method = Column(SQLEnum(PriceCalculationMethod), nullable=False,
                                      default=PriceCalculationMethod.PER_PIECE)

    # Print file constraints (millimeters)
    accepts_file_upload = Column(Boolean, nullable=False, default=False)
    min_width_mm = Column(Integer, nullable=True)
    max_width_mm = Column(Integer, nullable=True)
    min_height_mm = Column(Integer, nullable=True)
    max_height_mm = Column(Integer, nullable=True)

    # Inventory
    track_inventory = Column(Boolean, nullable=False, default=False)
    inventory_quantity = Column(Integer, nullable=False, default=0)
    inventory_policy = Column(SQLEnum(InventoryPolicy), nullable=False, default=InventoryPolicy.DENY)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    category = relationship("Category", lazy="joined")
    price_tiers = relationship("PriceTier", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('base_price >= 0', name='check_product_base_price_non_negative'),
    )


class ProductDTO(BaseModel):
    id: int | None = None
    category_id: int | None = None
    slug: str | None = None
    name: str | None = None
    sku: str | None = None
    description: str | None = None
    base_price: Money
    compare_at_price: Money | None = None
    price_calculation_method: PriceCalculationMethod = PriceCalculationMethod.PER_PIECE
    accepts_file_upload: bool = False
    min_width_mm: int | None = None
    max_width_mm: int | None = None
    min_height_mm: int | None = None
    max_height_mm: int | None = None
    track_inventory: bool = False
    inventory_quantity: int = 0
    inventory_policy: InventoryPolicy = InventoryPolicy.DENY
    is_active: bool = True
    created_at: datetime | None = None
