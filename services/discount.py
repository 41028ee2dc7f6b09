import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.discount_error import DiscountError
from enums.discount_scope import DiscountScope
from enums.discount_type import DiscountType
from enums.shop_entity import ShopEntity
from models.cartItem import CartItemWithDetailsDTO
from models.discount import DiscountDTO, DiscountValidationResultDTO
from repositories.cart import CartRepository
from repositories.discount import DiscountRepository, DiscountUsageRepository
from repositories.user import UserRepository
from utils.localizator import Localizator
from utils.money import to_cents, to_decimal, ZERO

logger = logging.getLogger(__name__)


class DiscountService:
    """Campaign discount code validation and amount calculation."""

    @staticmethod
    async def validate(
        code: str,
        user_id: int,
        cart_items: list[CartItemWithDetailsDTO],
        session: Session | AsyncSession,
        now: datetime | None = None
    ) -> DiscountValidationResultDTO:
        """
        Check whether a discount code can be applied to a cart.

        Checks run in this order and the first failure is returned:
        1. Code unknown, inactive or outside [starts_at, ends_at) → INVALID_OR_EXPIRED
        2. Global usage limit reached → USAGE_LIMIT_REACHED
        3. Per-user usage limit reached → USER_LIMIT_REACHED
        4. Restricted scope and no eligible cart product → NO_ELIGIBLE_PRODUCTS

        Usage counters are not touched; they are incremented when the
        order is finalized.

        Args:
            code: Code entered by the customer
            user_id: ID of the customer
            cart_items: Current cart lines (product_id / category_id are used)
            session: Database session
            now: Reference time (defaults to datetime.now())

        Returns:
            DiscountValidationResultDTO with the discount on success, the reason otherwise
        """
        now = now or datetime.now()
        discount = await DiscountRepository.get_active_by_code(code, now, session)
        if discount is None:
            return DiscountService._rejected(DiscountError.INVALID_OR_EXPIRED, code)

        if discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
            return DiscountService._rejected(DiscountError.USAGE_LIMIT_REACHED, code)

        if discount.usage_limit_per_user is not None:
            user_usage = await DiscountUsageRepository.count_usage_for_user(discount.id, user_id, session)
            if user_usage >= discount.usage_limit_per_user:
                return DiscountService._rejected(DiscountError.USER_LIMIT_REACHED, code)

        if discount.applies_to == DiscountScope.SPECIFIC_PRODUCTS:
            eligible = await DiscountRepository.get_eligible_product_ids(discount.id, session)
            if not any(item.product_id in eligible for item in cart_items):
                return DiscountService._rejected(DiscountError.NO_ELIGIBLE_PRODUCTS, code)
        elif discount.applies_to == DiscountScope.SPECIFIC_CATEGORIES:
            eligible = await DiscountRepository.get_eligible_category_ids(discount.id, session)
            if not any(item.category_id in eligible for item in cart_items):
                return DiscountService._rejected(DiscountError.NO_ELIGIBLE_PRODUCTS, code)

        return DiscountValidationResultDTO(valid=True, discount=discount)

    @staticmethod
    def _rejected(reason: DiscountError, code: str) -> DiscountValidationResultDTO:
        logger.info(f"Discount code '{code}' rejected: {reason.value}")
        return DiscountValidationResultDTO(valid=False, error=reason)

    @staticmethod
    def calculate_discount(discount: DiscountDTO, amount: Decimal) -> Decimal:
        """
        Amount a discount takes off a (post reseller discount) subtotal.

        - percentage: amount * value / 100, capped at max_discount_amount
        - fixed_amount: value, never more than the amount itself
        - free_shipping: 0 (shipping is zeroed by the checkout instead)

        Returns:
            Discount amount rounded to cents
        """
        amount = to_decimal(amount)
        value = to_decimal(discount.discount_value)
        if discount.discount_type == DiscountType.PERCENTAGE:
            discount_amount = amount * value / Decimal("100")
            if discount.max_discount_amount is not None:
                discount_amount = min(discount_amount, to_decimal(discount.max_discount_amount))
            return to_cents(discount_amount)
        if discount.discount_type == DiscountType.FIXED_AMOUNT:
            return to_cents(min(value, amount))
        return ZERO

    @staticmethod
    def apply_user_discount(subtotal: Decimal, discount_percent: Decimal) -> tuple[Decimal, Decimal]:
        """
        Apply the reseller discount that precedes any campaign code.

        Returns:
            (user_discount_amount, subtotal_after_user_discount)
        """
        user_discount_amount = to_cents(subtotal * to_decimal(discount_percent) / Decimal("100"))
        return user_discount_amount, subtotal - user_discount_amount

    @staticmethod
    def meets_minimum_purchase(discount: DiscountDTO, amount: Decimal) -> bool:
        if discount.min_purchase_amount is None:
            return True
        return to_decimal(amount) >= to_decimal(discount.min_purchase_amount)

    @staticmethod
    def get_error_message(reason: DiscountError, lang: str | None = None) -> str:
        return Localizator.get_text(ShopEntity.USER, f"discount_{reason.value}", lang=lang)

    @staticmethod
    async def preview(code: str, user_id: int, session: Session | AsyncSession) -> dict:
        """
        Validate a code against the user's current cart and estimate its amount.

        Used by the public validation endpoint. Minimum purchase and amount
        are taken after the reseller discount, as at checkout.
        """
        cart_items = await CartRepository.get_cart_items(user_id, session)
        result = await DiscountService.validate(code, user_id, cart_items, session)
        if not result.valid:
            return {"valid": False, "error": result.error.value,
                    "message": DiscountService.get_error_message(result.error)}

        user = await UserRepository.get_by_id(user_id, session)
        discount_percent = to_decimal(user.discount_percent) if user else ZERO
        _, subtotal = DiscountService.apply_user_discount(
            sum((item.item_total for item in cart_items), ZERO), discount_percent)
        if not DiscountService.meets_minimum_purchase(result.discount, subtotal):
            reason = DiscountError.BELOW_MINIMUM_PURCHASE
            return {"valid": False, "error": reason.value, "message": DiscountService.get_error_message(reason)}

        return {
            "valid": True,
            "code": result.discount.code,
            "discount_type": result.discount.discount_type.value,
            "discount_value": float(result.discount.discount_value),
            "estimated_amount": float(DiscountService.calculate_discount(result.discount, subtotal)),
            "free_shipping": result.discount.discount_type == DiscountType.FREE_SHIPPING,
        }
