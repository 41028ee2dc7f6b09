from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.shipping_profile import ShippingProfile, ShippingProfileDTO, UserCartShipping


class ShippingProfileRepository:
    @staticmethod
    async def get_active(session: AsyncSession | Session) -> list[ShippingProfileDTO]:
        stmt = (
            select(ShippingProfile)
            .where(ShippingProfile.is_active == True)
            .order_by(ShippingProfile.display_order, ShippingProfile.id)
        )
        result = await session_execute(stmt, session)
        return [ShippingProfileDTO.model_validate(p, from_attributes=True) for p in result.scalars().all()]

    @staticmethod
    async def get_active_by_id(profile_id: int, session: AsyncSession | Session) -> ShippingProfileDTO | None:
        stmt = select(ShippingProfile).where(ShippingProfile.id == profile_id, ShippingProfile.is_active == True)
        result = await session_execute(stmt, session)
        profile = result.scalar()
        if profile is None:
            return None
        return ShippingProfileDTO.model_validate(profile, from_attributes=True)

    @staticmethod
    async def get_selected_or_default(user_id: int, session: AsyncSession | Session) -> ShippingProfileDTO | None:
        """
        Resolve the shipping profile used for the user's cart.

        Returns:
            The user's selected profile if it is still active, otherwise the
            default active profile, otherwise None
        """
        stmt = (
            select(ShippingProfile)
            .join(UserCartShipping, UserCartShipping.shipping_profile_id == ShippingProfile.id)
            .where(UserCartShipping.user_id == user_id, ShippingProfile.is_active == True)
        )
        result = await session_execute(stmt, session)
        profile = result.scalar()
        if profile is None:
            stmt = (
                select(ShippingProfile)
                .where(ShippingProfile.is_default == True, ShippingProfile.is_active == True)
                .order_by(ShippingProfile.display_order, ShippingProfile.id)
                .limit(1)
            )
            result = await session_execute(stmt, session)
            profile = result.scalar()
        if profile is None:
            return None
        return ShippingProfileDTO.model_validate(profile, from_attributes=True)

    @staticmethod
    async def select_for_user(user_id: int, profile_id: int, session: AsyncSession | Session) -> None:
        """Insert or update the user's shipping selection."""
        stmt = select(UserCartShipping).where(UserCartShipping.user_id == user_id)
        result = await session_execute(stmt, session)
        if result.scalar() is not None:
            stmt = (
                update(UserCartShipping)
                .where(UserCartShipping.user_id == user_id)
                .values(shipping_profile_id=profile_id)
            )
            await session_execute(stmt, session)
        else:
            session.add(UserCartShipping(user_id=user_id, shipping_profile_id=profile_id))
            await session_flush(session)
