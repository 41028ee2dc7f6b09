from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, ForeignKey, Boolean

from models.base import Base


class UserAddress(Base):
    """Address book entry. Checkout only accepts addresses owned by the buyer."""
    __tablename__ = 'user_addresses'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    company = Column(String, nullable=True)
    street = Column(String, nullable=False)
    house_number = Column(String, nullable=True)
    postal_code = Column(String, nullable=False)
    city = Column(String, nullable=False)
    country = Column(String, nullable=False, default="DE")
    phone = Column(String, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)


class UserAddressDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    phone: str | None = None
    is_default: bool | None = None
