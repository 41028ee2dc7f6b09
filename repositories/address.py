from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.address import UserAddress, UserAddressDTO


class AddressRepository:
    @staticmethod
    async def get_by_id(address_id: int, session: AsyncSession | Session) -> UserAddressDTO | None:
        stmt = select(UserAddress).where(UserAddress.id == address_id)
        result = await session_execute(stmt, session)
        address = result.scalar()
        if address is None:
            return None
        return UserAddressDTO.model_validate(address, from_attributes=True)
