from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.price_tier import PriceTier, PriceTierDTO


class PriceTierRepository:
    """Repository for price tier operations."""

    @staticmethod
    async def get_by_product_id(
        product_id: int,
        session: Session | AsyncSession
    ) -> list[PriceTierDTO]:
        """
        Get all price tiers for a product, sorted by min_quantity ASC.

        Args:
            product_id: ID of the product
            session: Database session

        Returns:
            List of PriceTierDTO sorted by min_quantity ascending
        """
        stmt = (
            select(PriceTier)
            .where(PriceTier.product_id == product_id)
            .order_by(PriceTier.min_quantity.asc())
        )
        result = await session_execute(stmt, session)
        tiers = result.scalars().all()
        return [PriceTierDTO.model_validate(tier, from_attributes=True) for tier in tiers]

    @staticmethod
    async def delete_by_product_id(
        product_id: int,
        session: Session | AsyncSession
    ) -> int:
        """
        Delete all price tiers for a product.

        Returns:
            Number of tiers deleted
        """
        stmt = delete(PriceTier).where(PriceTier.product_id == product_id)
        result = await session_execute(stmt, session)
        return result.rowcount

    @staticmethod
    async def replace_for_product(
        product_id: int,
        tiers: list[PriceTierDTO],
        session: Session | AsyncSession
    ) -> list[PriceTierDTO]:
        """
        Replace the complete tier set of a product.

        Args:
            product_id: ID of the product
            tiers: New tiers (product_id on the DTOs is ignored)
            session: Database session

        Returns:
            Stored tiers sorted by min_quantity ascending

        Example:
            await PriceTierRepository.replace_for_product(1, [
                PriceTierDTO(min_quantity=1, max_quantity=9, price_per_unit=Decimal("2.50")),
                PriceTierDTO(min_quantity=10, max_quantity=None, price_per_unit=Decimal("2.20")),
            ], session)
        """
        await PriceTierRepository.delete_by_product_id(product_id, session)
        for tier in tiers:
            session.add(PriceTier(
                product_id=product_id,
                min_quantity=tier.min_quantity,
                max_quantity=tier.max_quantity,
                price_per_unit=tier.price_per_unit,
                discount_percent=tier.discount_percent,
                display_order=tier.display_order,
            ))
        await session_flush(session)
        return await PriceTierRepository.get_by_product_id(product_id, session)
