"""
DiscountService Unit Tests

Tests campaign code validation order, eligibility and amount calculation.
Uses in-memory SQLite database for testing.

Run with:
    pytest tests/discount/unit/test_discount_service.py -v
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from enums.discount_error import DiscountError
from enums.discount_scope import DiscountScope
from enums.discount_type import DiscountType
from models.cartItem import CartItem, CartItemWithDetailsDTO
from models.discount import DiscountDTO, DiscountProductEligibility, DiscountCategoryEligibility, DiscountUsage
from services.discount import DiscountService


def cart_line(product_id=1, category_id=1, total="40.00") -> CartItemWithDetailsDTO:
    return CartItemWithDetailsDTO(
        id=1,
        product_id=product_id,
        product_name="DTF Transfer A4",
        product_slug="dtf-transfer-a4",
        category_id=category_id,
        quantity=5,
        unit_price=Decimal("8.00"),
        base_price=Decimal("10.00"),
        services=[],
        services_total=Decimal("0"),
        item_total=Decimal(total),
    )


class TestValidate:
    """Test DiscountService.validate()"""

    @pytest.mark.asyncio
    async def test_valid_code(self, session, user, make_discount):
        make_discount()
        result = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        assert result.valid
        assert result.discount.code == "SOMMER10"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_code_is_case_insensitive(self, session, user, make_discount):
        make_discount()
        result = await DiscountService.validate("  sommer10 ", user.id, [cart_line()], session)
        assert result.valid

    @pytest.mark.asyncio
    async def test_unknown_code(self, session, user):
        result = await DiscountService.validate("GIBTSNICHT", user.id, [cart_line()], session)
        assert not result.valid
        assert result.error == DiscountError.INVALID_OR_EXPIRED

    @pytest.mark.asyncio
    async def test_inactive_code(self, session, user, make_discount):
        make_discount(is_active=False)
        result = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        assert result.error == DiscountError.INVALID_OR_EXPIRED

    @pytest.mark.asyncio
    async def test_not_started_yet(self, session, user, make_discount):
        make_discount(starts_at=datetime.now() + timedelta(days=1))
        result = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        assert result.error == DiscountError.INVALID_OR_EXPIRED

    @pytest.mark.asyncio
    async def test_end_is_exclusive(self, session, user, make_discount):
        ends_at = datetime(2026, 3, 1, 0, 0, 0)
        make_discount(starts_at=datetime(2026, 1, 1), ends_at=ends_at)

        before = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session,
                                                now=ends_at - timedelta(seconds=1))
        at_end = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session, now=ends_at)
        assert before.valid
        assert at_end.error == DiscountError.INVALID_OR_EXPIRED

    @pytest.mark.asyncio
    async def test_usage_limit_reached(self, session, user, make_discount):
        """usage_limit 1 with usage_count 1 fails regardless of other fields."""
        make_discount(discount_type=DiscountType.FIXED_AMOUNT, discount_value="5.00",
                      usage_limit=1, usage_count=1)
        result = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        assert not result.valid
        assert result.error == DiscountError.USAGE_LIMIT_REACHED

    @pytest.mark.asyncio
    async def test_usage_limit_checked_before_eligibility(self, session, user, make_discount):
        make_discount(usage_limit=1, usage_count=1, applies_to=DiscountScope.SPECIFIC_PRODUCTS)
        result = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        assert result.error == DiscountError.USAGE_LIMIT_REACHED

    @pytest.mark.asyncio
    async def test_per_user_limit(self, session, user, other_user, make_discount):
        discount = make_discount(usage_limit_per_user=1)
        session.add(DiscountUsage(discount_id=discount.id, user_id=user.id))
        session.commit()

        own = await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        other = await DiscountService.validate("SOMMER10", other_user.id, [cart_line()], session)
        assert own.error == DiscountError.USER_LIMIT_REACHED
        assert other.valid

    @pytest.mark.asyncio
    async def test_specific_products(self, session, user, product, make_discount):
        discount = make_discount(applies_to=DiscountScope.SPECIFIC_PRODUCTS)
        session.add(DiscountProductEligibility(discount_id=discount.id, product_id=product.id))
        session.commit()

        eligible = await DiscountService.validate("SOMMER10", user.id, [cart_line(product_id=product.id)], session)
        not_eligible = await DiscountService.validate("SOMMER10", user.id, [cart_line(product_id=999)], session)
        assert eligible.valid
        assert not_eligible.error == DiscountError.NO_ELIGIBLE_PRODUCTS

    @pytest.mark.asyncio
    async def test_specific_categories(self, session, user, category, make_discount):
        discount = make_discount(applies_to=DiscountScope.SPECIFIC_CATEGORIES)
        session.add(DiscountCategoryEligibility(discount_id=discount.id, category_id=category.id))
        session.commit()

        eligible = await DiscountService.validate(
            "SOMMER10", user.id, [cart_line(category_id=category.id)], session)
        not_eligible = await DiscountService.validate(
            "SOMMER10", user.id, [cart_line(category_id=None)], session)
        assert eligible.valid
        assert not_eligible.error == DiscountError.NO_ELIGIBLE_PRODUCTS

    @pytest.mark.asyncio
    async def test_validation_does_not_touch_counters(self, session, user, make_discount):
        discount = make_discount(usage_limit=5, usage_count=2)
        await DiscountService.validate("SOMMER10", user.id, [cart_line()], session)
        session.refresh(discount)
        assert discount.usage_count == 2


def discount(discount_type, value, **kwargs) -> DiscountDTO:
    return DiscountDTO(code="TEST", discount_type=discount_type, discount_value=Decimal(value), **kwargs)


class TestCalculateDiscount:
    """Test DiscountService.calculate_discount()"""

    def test_percentage(self):
        assert DiscountService.calculate_discount(
            discount(DiscountType.PERCENTAGE, "10"), Decimal("90.00")) == Decimal("9.00")

    def test_percentage_capped(self):
        capped = discount(DiscountType.PERCENTAGE, "50", max_discount_amount=Decimal("20.00"))
        assert DiscountService.calculate_discount(capped, Decimal("100.00")) == Decimal("20.00")

    def test_fixed_amount(self):
        assert DiscountService.calculate_discount(
            discount(DiscountType.FIXED_AMOUNT, "5.00"), Decimal("40.00")) == Decimal("5.00")

    def test_fixed_amount_never_exceeds_amount(self):
        assert DiscountService.calculate_discount(
            discount(DiscountType.FIXED_AMOUNT, "50.00"), Decimal("30.00")) == Decimal("30.00")

    def test_free_shipping_has_no_amount(self):
        assert DiscountService.calculate_discount(
            discount(DiscountType.FREE_SHIPPING, "0"), Decimal("30.00")) == Decimal("0")

    def test_minimum_purchase(self):
        """fixed 5,00 € with 50,00 € minimum against 40,00 € is rejected."""
        code = discount(DiscountType.FIXED_AMOUNT, "5.00", min_purchase_amount=Decimal("50.00"))
        assert not DiscountService.meets_minimum_purchase(code, Decimal("40.00"))
        assert DiscountService.meets_minimum_purchase(code, Decimal("50.00"))


class TestErrorMessages:

    @pytest.mark.parametrize("reason", list(DiscountError))
    def test_every_reason_has_a_german_message(self, reason):
        assert DiscountService.get_error_message(reason, lang="de")

    def test_usage_limit_message(self):
        assert DiscountService.get_error_message(DiscountError.USAGE_LIMIT_REACHED, lang="de") == \
            "Dieser Rabattcode wurde bereits zu oft eingelöst"


class TestPreview:
    """Test DiscountService.preview() used by the public validation endpoint"""

    @pytest.mark.asyncio
    async def test_preview_with_cart(self, session, user, product, make_discount):
        session.add(CartItem(user_id=user.id, product_id=product.id, quantity=5, unit_price=Decimal("8.00")))
        session.commit()
        make_discount()

        preview = await DiscountService.preview("SOMMER10", user.id, session)
        assert preview["valid"] is True
        assert preview["estimated_amount"] == 4.0

    @pytest.mark.asyncio
    async def test_preview_rejected(self, session, user):
        preview = await DiscountService.preview("NOPE", user.id, session)
        assert preview == {
            "valid": False,
            "error": "invalid_or_expired",
            "message": "Ungültiger oder abgelaufener Rabattcode",
        }

    @pytest.mark.asyncio
    async def test_reseller_estimate_after_user_discount(self, session, user, product, make_discount):
        """10 % reseller on 40,00 € leaves 36,00 €, the code takes 10 % of that."""
        user.discount_percent = Decimal("10")
        session.add(CartItem(user_id=user.id, product_id=product.id, quantity=5, unit_price=Decimal("8.00")))
        session.commit()
        make_discount()

        preview = await DiscountService.preview("SOMMER10", user.id, session)
        assert preview["valid"] is True
        assert preview["estimated_amount"] == 3.6

    @pytest.mark.asyncio
    async def test_reseller_below_minimum(self, session, user, product, make_discount):
        """The minimum purchase is checked against the amount after the reseller discount, as at checkout."""
        user.discount_percent = Decimal("10")
        session.add(CartItem(user_id=user.id, product_id=product.id, quantity=5, unit_price=Decimal("8.00")))
        session.commit()
        make_discount(code="FUENF", discount_type=DiscountType.FIXED_AMOUNT, discount_value="5",
                      min_purchase_amount=Decimal("40.00"))

        preview = await DiscountService.preview("FUENF", user.id, session)
        assert preview["valid"] is False
        assert preview["error"] == DiscountError.BELOW_MINIMUM_PURCHASE.value


class TestApplyUserDiscount:

    def test_rounds_to_cents(self):
        assert DiscountService.apply_user_discount(Decimal("33.33"), Decimal("15")) == \
            (Decimal("5.00"), Decimal("28.33"))

    def test_no_discount(self):
        assert DiscountService.apply_user_discount(Decimal("40.00"), Decimal("0")) == \
            (Decimal("0.00"), Decimal("40.00"))
