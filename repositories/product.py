from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.product import Product, ProductDTO


class ProductRepository:
    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        result = await session_execute(stmt, session)
        product = result.scalar()
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_active_by_id(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id, Product.is_active == True)
        result = await session_execute(stmt, session)
        product = result.scalar()
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_active_by_slug(slug: str, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.slug == slug, Product.is_active == True)
        result = await session_execute(stmt, session)
        product = result.scalar()
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def update_pricing(product_id: int, values: dict, session: AsyncSession | Session) -> None:
        """
        Update price-related columns of a product.

        Args:
            product_id: ID of the product
            values: Subset of base_price, compare_at_price, price_calculation_method
            session: Database session
        """
        stmt = update(Product).where(Product.id == product_id).values(**values)
        await session_execute(stmt, session)

    @staticmethod
    async def decrement_inventory(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        """Atomic stock decrement, only for products that track inventory."""
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.track_inventory == True)
            .values(inventory_quantity=Product.inventory_quantity - quantity)
        )
        await session_execute(stmt, session)
