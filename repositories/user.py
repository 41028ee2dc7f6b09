from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.user import User, UserDTO


class UserRepository:
    @staticmethod
    async def get_by_id(user_id: int, session: AsyncSession | Session) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        result = await session_execute(stmt, session)
        user = result.scalar()
        if user is None:
            return None
        return UserDTO.model_validate(user, from_attributes=True)

    @staticmethod
    async def update_discount_percent(user_id: int, discount_percent: Decimal,
                                      session: AsyncSession | Session) -> int:
        stmt = update(User).where(User.id == user_id).values(discount_percent=discount_percent)
        result = await session_execute(stmt, session)
        return result.rowcount
