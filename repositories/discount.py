from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.discount import Discount, DiscountDTO, DiscountUsage, DiscountProductEligibility, \
    DiscountCategoryEligibility


class DiscountRepository:
    @staticmethod
    async def get_by_id(discount_id: int, session: AsyncSession | Session) -> DiscountDTO | None:
        stmt = select(Discount).where(Discount.id == discount_id)
        result = await session_execute(stmt, session)
        discount = result.scalar()
        if discount is None:
            return None
        return DiscountDTO.model_validate(discount, from_attributes=True)

    @staticmethod
    async def get_active_by_code(code: str, now, session: AsyncSession | Session) -> DiscountDTO | None:
        """
        Get a discount code that is active at the given moment.

        Args:
            code: Discount code (matched case-insensitively)
            now: Reference time, active window is [starts_at, ends_at)
            session: Database session

        Returns:
            DiscountDTO or None if unknown, inactive or outside its window
        """
        stmt = select(Discount).where(
            func.upper(Discount.code) == code.strip().upper(),
            Discount.is_active == True,
            Discount.starts_at <= now,
            or_(Discount.ends_at.is_(None), Discount.ends_at > now)
        )
        result = await session_execute(stmt, session)
        discount = result.scalar()
        if discount is None:
            return None
        return DiscountDTO.model_validate(discount, from_attributes=True)

    @staticmethod
    async def get_eligible_product_ids(discount_id: int, session: AsyncSession | Session) -> set[int]:
        stmt = select(DiscountProductEligibility.product_id).where(
            DiscountProductEligibility.discount_id == discount_id)
        result = await session_execute(stmt, session)
        return set(result.scalars().all())

    @staticmethod
    async def get_eligible_category_ids(discount_id: int, session: AsyncSession | Session) -> set[int]:
        stmt = select(DiscountCategoryEligibility.category_id).where(
            DiscountCategoryEligibility.discount_id == discount_id)
        result = await session_execute(stmt, session)
        return set(result.scalars().all())

    @staticmethod
    async def increment_usage_count(discount_id: int, session: AsyncSession | Session) -> None:
        """Single atomic UPDATE, must run inside the order finalizing transaction."""
        stmt = (
            update(Discount)
            .where(Discount.id == discount_id)
            .values(usage_count=Discount.usage_count + 1)
        )
        await session_execute(stmt, session)


class DiscountUsageRepository:
    @staticmethod
    async def count_usage_for_user(discount_id: int, user_id: int, session: AsyncSession | Session) -> int:
        stmt = select(func.count(DiscountUsage.id)).where(
            DiscountUsage.discount_id == discount_id,
            DiscountUsage.user_id == user_id
        )
        result = await session_execute(stmt, session)
        return result.scalar() or 0

    @staticmethod
    async def record_usage(discount_id: int, user_id: int, order_id: int, session: AsyncSession | Session) -> None:
        session.add(DiscountUsage(discount_id=discount_id, user_id=user_id, order_id=order_id))
        await session_flush(session)
