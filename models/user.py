from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, Boolean, Numeric, func, CheckConstraint

from models.base import Base
from utils.money import Money


class User(Base):
    """
    Shop customer.

    Authentication is handled by the upstream auth provider; this table only
    holds shop-specific data. discount_percent is the reseller rate that is
    applied to every purchase of the user.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    company_name = Column(String, nullable=True)
    vat_id = Column(String, nullable=True)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    is_admin = Column(Boolean, nullable=False, default=False)
    registered_at = Column(DateTime, default=func.now())

    __table_args__ = (
        CheckConstraint('discount_percent >= 0 AND discount_percent <= 100',
                        name='check_user_discount_percent_range'),
    )


class UserDTO(BaseModel):
    id: int | None = None
    email: str | None = None
    name: str | None = None
    company_name: str | None = None
    vat_id: str | None = None
    discount_percent: Money = Decimal("0")
    is_admin: bool = False
    registered_at: datetime | None = None
