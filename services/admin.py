import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from exceptions.product import ProductNotFoundException, OverlappingPriceTiersException
from exceptions.user import UserNotFoundException, InvalidDiscountPercentException
from models.price_tier import PriceTierDTO, ProductPricingUpdateDTO, ProductPricingDTO
from models.user import UserDTO
from repositories.price_tier import PriceTierRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from services.pricing import PriceTierResolver
from utils.money import to_decimal, ZERO

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class AdminService:

    @staticmethod
    def derive_discount_percent(base_price: Decimal, price_per_unit: Decimal) -> Decimal:
        """
        Discount of a tier price relative to the base price, e.g. 2.50 → 2.20 = 12.00 %.

        Returns:
            Percentage rounded to two decimals, 0 for a zero base price or a tier above base
        """
        base_price = to_decimal(base_price)
        if base_price <= ZERO:
            return ZERO
        percent = (base_price - to_decimal(price_per_unit)) / base_price * HUNDRED
        return max(ZERO, percent.quantize(Decimal("0.01")))

    @staticmethod
    async def update_product_pricing(
        product_id: int,
        pricing: ProductPricingUpdateDTO,
        session: AsyncSession | Session
    ) -> ProductPricingDTO:
        """
        Replace base price and tier set of a product.

        Args:
            product_id: ID of the product
            pricing: New base price, compare-at price and tiers
            session: Database session

        Returns:
            ProductPricingDTO with the stored tiers

        Raises:
            ProductNotFoundException: unknown product
            OverlappingPriceTiersException: two tiers cover the same quantity
        """
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id=product_id)

        tiers = [
            PriceTierDTO(
                product_id=product_id,
                min_quantity=tier.min_quantity,
                max_quantity=tier.max_quantity,
                price_per_unit=tier.price_per_unit,
                discount_percent=tier.discount_percent if tier.discount_percent is not None
                else AdminService.derive_discount_percent(pricing.base_price, tier.price_per_unit),
                display_order=tier.display_order if tier.display_order is not None else index,
            )
            for index, tier in enumerate(pricing.tiers)
        ]

        invalid = [t for t in tiers if t.max_quantity is not None and t.max_quantity < t.min_quantity]
        overlaps = PriceTierResolver.find_overlaps(tiers)
        if invalid or overlaps:
            pairs = [(t.min_quantity, t.max_quantity) for t in invalid] + \
                    [(lower.min_quantity, higher.min_quantity) for lower, higher in overlaps]
            raise OverlappingPriceTiersException(product_id, pairs)

        try:
            await ProductRepository.update_pricing(product_id, {
                "base_price": pricing.base_price,
                "compare_at_price": pricing.compare_at_price,
            }, session)
            stored = await PriceTierRepository.replace_for_product(product_id, tiers, session)
            await session_commit(session)
        except Exception:
            await session_rollback(session)
            raise

        logger.info(f"Pricing of product {product_id} updated: base {pricing.base_price}, {len(stored)} tiers")
        return ProductPricingDTO(
            product_id=product_id,
            base_price=pricing.base_price,
            compare_at_price=pricing.compare_at_price,
            tiers=stored,
        )

    @staticmethod
    async def set_user_discount(user_id: int, discount_percent: Decimal,
                                session: AsyncSession | Session) -> UserDTO:
        """
        Set the reseller rate of a customer.

        Raises:
            InvalidDiscountPercentException: value outside 0-100
            UserNotFoundException: unknown user
        """
        discount_percent = to_decimal(discount_percent)
        if discount_percent < ZERO or discount_percent > HUNDRED:
            raise InvalidDiscountPercentException(discount_percent)

        updated = await UserRepository.update_discount_percent(user_id, discount_percent, session)
        if updated == 0:
            raise UserNotFoundException(user_id)
        await session_commit(session)
        logger.info(f"Reseller discount of user {user_id} set to {discount_percent}%")
        return await UserRepository.get_by_id(user_id, session)
