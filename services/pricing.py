import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.price_calculation_method import PriceCalculationMethod
from enums.shop_entity import ShopEntity
from exceptions.product import ProductNotFoundException
from models.price_tier import PriceTierDTO, PriceCalculationDTO, PriceTierDisplayDTO, NextTierInfoDTO
from models.product import ProductDTO
from repositories.price_tier import PriceTierRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from utils.localizator import Localizator
from utils.money import to_cents, to_decimal, ZERO

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
SQUARE_MM_PER_SQUARE_METER = Decimal("1000000")
MM_PER_METER = Decimal("1000")


class PriceTierResolver:
    """Tier lookup helpers. Pure functions, no database access."""

    @staticmethod
    def resolve(tiers: list[PriceTierDTO], quantity: int) -> PriceTierDTO | None:
        """
        Select the tier that applies to a quantity.

        Tiers are checked from the highest min_quantity down; the first tier
        whose range contains the quantity wins. If ranges overlap, the tier
        with the higher min_quantity is chosen.

        Example with tiers [1-9 → 2,50 €, 10-49 → 2,20 €, 50+ → 1,90 €]:
            - quantity 9  → tier "1-9"
            - quantity 10 → tier "10-49"
            - quantity 500 → tier "50+"

        Args:
            tiers: Tiers of one product, in any order
            quantity: Requested quantity

        Returns:
            The applicable tier, or None (caller falls back to the base price)
        """
        if not tiers:
            return None

        for tier in sorted(tiers, key=lambda t: t.min_quantity, reverse=True):
            if quantity >= tier.min_quantity and (tier.max_quantity is None or quantity <= tier.max_quantity):
                return tier
        return None

    @staticmethod
    def next_tier(tiers: list[PriceTierDTO], quantity: int) -> PriceTierDTO | None:
        """Smallest tier that starts above the current quantity."""
        for tier in sorted(tiers, key=lambda t: t.min_quantity):
            if tier.min_quantity > quantity:
                return tier
        return None

    @staticmethod
    def quantity_for_next_tier(tiers: list[PriceTierDTO], quantity: int) -> int | None:
        """
        Units missing to reach the next tier.

        Returns:
            Number of additional units, or None if no higher tier exists
        """
        next_tier = PriceTierResolver.next_tier(tiers, quantity)
        return next_tier.min_quantity - quantity if next_tier else None

    @staticmethod
    def find_overlaps(tiers: list[PriceTierDTO]) -> list[tuple[PriceTierDTO, PriceTierDTO]]:
        """
        Find pairs of tiers whose quantity ranges intersect.

        Overlaps are resolved by resolve() (highest min_quantity wins) but
        are a configuration mistake, so the admin API rejects them.

        Returns:
            List of overlapping (lower, higher) tier pairs, empty if the set is clean
        """
        ordered = sorted(tiers, key=lambda t: t.min_quantity)
        overlaps = []
        for i, lower in enumerate(ordered):
            for higher in ordered[i + 1:]:
                if lower.max_quantity is None or higher.min_quantity <= lower.max_quantity:
                    overlaps.append((lower, higher))
        return overlaps


class PricingService:
    """Service for tiered pricing calculations."""

    @staticmethod
    def calculate_price(
        product: ProductDTO,
        quantity: int,
        tiers: list[PriceTierDTO],
        reseller_discount_percent: Decimal | int = 0
    ) -> PriceCalculationDTO:
        """
        Calculate the price breakdown of one product line.

        The tier discount is already baked into unit_price, so it is only
        reported (tier_discount) and never subtracted again. The reseller
        discount is taken from the tier-priced subtotal.

            subtotal          = unit_price * quantity
            reseller_discount = subtotal * reseller_discount_percent / 100
            total             = subtotal - reseller_discount
            total_discount    = tier_discount + reseller_discount  (informational)

        Example (base 10,00 €, tier 5+ → 8,00 €, quantity 5, reseller 10 %):
            unit_price=8.00, subtotal=40.00, tier_discount=10.00,
            reseller_discount=4.00, total=36.00, total_discount=14.00

        Args:
            product: Product with base_price
            quantity: Quantity, the caller guarantees quantity >= 1
            tiers: Price tiers of the product (any order, may be empty)
            reseller_discount_percent: Per-user reseller rate (not clamped here)

        Returns:
            PriceCalculationDTO with all money fields rounded half-up to cents
        """
        tier = PriceTierResolver.resolve(tiers, quantity)
        base_price = to_decimal(product.base_price)
        unit_price = to_decimal(tier.price_per_unit) if tier else base_price
        subtotal = to_cents(unit_price * quantity)
        tier_discount = to_cents((base_price - unit_price) * quantity) if tier else ZERO
        return PricingService._compose(
            unit_price=unit_price,
            quantity=quantity,
            tier=tier,
            subtotal=subtotal,
            tier_discount=tier_discount,
            reseller_discount_percent=to_decimal(reseller_discount_percent),
        )

    @staticmethod
    def calculate_price_per_area(
        product: ProductDTO,
        width_mm: int,
        height_mm: int,
        quantity: int,
        tiers: list[PriceTierDTO],
        reseller_discount_percent: Decimal | int = 0
    ) -> PriceCalculationDTO:
        """
        Price of products sold per square meter (unit_price is € per m²).

        Only products with method per_area are priced by area; any other
        method returns the per-piece calculation unchanged.
        """
        calculation = PricingService.calculate_price(product, quantity, tiers, reseller_discount_percent)
        if product.price_calculation_method != PriceCalculationMethod.PER_AREA:
            return calculation

        area = Decimal(width_mm) * Decimal(height_mm) / SQUARE_MM_PER_SQUARE_METER
        subtotal = to_cents(to_decimal(calculation.unit_price) * area * quantity)
        return PricingService._compose(
            unit_price=calculation.unit_price,
            quantity=quantity,
            tier=calculation.applicable_tier,
            subtotal=subtotal,
            tier_discount=calculation.tier_discount,
            reseller_discount_percent=to_decimal(reseller_discount_percent),
        )

    @staticmethod
    def calculate_price_per_meter(
        product: ProductDTO,
        height_mm: int,
        quantity: int,
        tiers: list[PriceTierDTO],
        reseller_discount_percent: Decimal | int = 0
    ) -> PriceCalculationDTO:
        """
        Price of products sold by the linear meter (gang sheets on a roll).

        Only products with method per_meter are priced by length; any other
        method returns the per-piece calculation unchanged.
        """
        calculation = PricingService.calculate_price(product, quantity, tiers, reseller_discount_percent)
        if product.price_calculation_method != PriceCalculationMethod.PER_METER:
            return calculation

        meters = Decimal(height_mm) / MM_PER_METER
        subtotal = to_cents(to_decimal(calculation.unit_price) * meters * quantity)
        return PricingService._compose(
            unit_price=calculation.unit_price,
            quantity=quantity,
            tier=calculation.applicable_tier,
            subtotal=subtotal,
            tier_discount=calculation.tier_discount,
            reseller_discount_percent=to_decimal(reseller_discount_percent),
        )

    @staticmethod
    def calculate_for_product(
        product: ProductDTO,
        quantity: int,
        tiers: list[PriceTierDTO],
        reseller_discount_percent: Decimal | int = 0,
        width_mm: int | None = None,
        height_mm: int | None = None
    ) -> PriceCalculationDTO:
        """Dispatch on the product's calculation method. Missing dimensions fall back to per-piece."""
        method = product.price_calculation_method
        if method == PriceCalculationMethod.PER_AREA and width_mm and height_mm:
            return PricingService.calculate_price_per_area(
                product, width_mm, height_mm, quantity, tiers, reseller_discount_percent)
        if method == PriceCalculationMethod.PER_METER and height_mm:
            return PricingService.calculate_price_per_meter(
                product, height_mm, quantity, tiers, reseller_discount_percent)
        return PricingService.calculate_price(product, quantity, tiers, reseller_discount_percent)

    @staticmethod
    def _compose(unit_price: Decimal, quantity: int, tier: PriceTierDTO | None, subtotal: Decimal,
                 tier_discount: Decimal, reseller_discount_percent: Decimal) -> PriceCalculationDTO:
        reseller_discount = to_cents(subtotal * reseller_discount_percent / HUNDRED)
        return PriceCalculationDTO(
            unit_price=to_cents(unit_price),
            quantity=quantity,
            discount_percent=to_decimal(tier.discount_percent) if tier else ZERO,
            reseller_discount_percent=reseller_discount_percent,
            subtotal=subtotal,
            tier_discount=tier_discount,
            reseller_discount=reseller_discount,
            total_discount=tier_discount + reseller_discount,
            total=subtotal - reseller_discount,
            applicable_tier=tier,
        )

    @staticmethod
    def get_next_tier_info(tiers: list[PriceTierDTO], quantity: int, base_price: Decimal,
                           unit_price: Decimal) -> NextTierInfoDTO | None:
        """
        Upsell information for the cart: what the next tier would save.

        additional_savings compares the savings at the next tier's minimum
        quantity with the savings the customer already has.
        """
        next_tier = PriceTierResolver.next_tier(tiers, quantity)
        if next_tier is None:
            return None
        base_price = to_decimal(base_price)
        current_savings = (base_price - to_decimal(unit_price)) * quantity
        next_savings = (base_price - to_decimal(next_tier.price_per_unit)) * next_tier.min_quantity
        return NextTierInfoDTO(
            min_quantity=next_tier.min_quantity,
            price_per_unit=next_tier.price_per_unit,
            quantity_needed=next_tier.min_quantity - quantity,
            additional_savings=to_cents(next_savings - current_savings),
            discount_percent=next_tier.discount_percent,
        )

    @staticmethod
    def validate_product_configuration(product: ProductDTO, width_mm: int | None, height_mm: int | None,
                                       lang: str | None = None) -> list[str]:
        """
        Check design dimensions against the product limits.

        Only products that accept a file upload have dimensional limits.

        Returns:
            Localized error messages, empty if the configuration is valid
        """
        errors = []
        if not product.accepts_file_upload:
            return errors

        checks = [
            (width_mm, product.min_width_mm, "validation_min_width", lambda v, limit: v < limit),
            (width_mm, product.max_width_mm, "validation_max_width", lambda v, limit: v > limit),
            (height_mm, product.min_height_mm, "validation_min_height", lambda v, limit: v < limit),
            (height_mm, product.max_height_mm, "validation_max_height", lambda v, limit: v > limit),
        ]
        for value, limit, key, violated in checks:
            if value and limit and violated(value, limit):
                errors.append(Localizator.get_text(ShopEntity.USER, key, lang=lang).format(value=limit))
        return errors

    @staticmethod
    def format_price(value: Decimal | float, lang: str | None = None) -> str:
        """
        Format a EUR amount for display.

        Example:
            >>> PricingService.format_price(Decimal("1234.5"), lang="de")
            '1.234,50 €'
            >>> PricingService.format_price(Decimal("1234.5"), lang="en")
            '€1,234.50'
        """
        formatted = f"{to_cents(value):,.2f}"
        if lang == "en":
            return f"€{formatted}"
        return formatted.replace(",", "_").replace(".", ",").replace("_", ".") + " €"

    @staticmethod
    def savings_text(discount_percent: Decimal | float, lang: str | None = None) -> str:
        """
        Savings badge text, e.g. "Spare 13 %". Empty for non-positive percentages.
        """
        percent = to_decimal(discount_percent)
        if percent <= 0:
            return ""
        percent_str = f"{to_cents(percent):f}".rstrip("0").rstrip(".")
        if lang != "en":
            percent_str = percent_str.replace(".", ",")
        return Localizator.get_text(ShopEntity.USER, "savings_text", lang=lang).format(percent=percent_str)

    @staticmethod
    def format_tiers_for_display(tiers: list[PriceTierDTO], current_quantity: int = 0,
                                 lang: str | None = None) -> list[PriceTierDisplayDTO]:
        """
        Prepare the tier table of the product page, ordered by display_order.

        is_current marks the tier containing current_quantity, is_unlocked
        every tier whose minimum has been reached.
        """
        unlimited = Localizator.get_text(ShopEntity.COMMON, "unlimited_symbol", lang=lang)
        rows = []
        for tier in sorted(tiers, key=lambda t: (t.display_order, t.min_quantity)):
            max_quantity = unlimited if tier.max_quantity is None else tier.max_quantity
            rows.append(PriceTierDisplayDTO(
                quantity_range=f"{tier.min_quantity} - {max_quantity}",
                price_per_unit=tier.price_per_unit,
                discount_percent=tier.discount_percent,
                is_current=current_quantity >= tier.min_quantity and (
                    tier.max_quantity is None or current_quantity <= tier.max_quantity),
                is_unlocked=current_quantity >= tier.min_quantity,
            ))
        return rows

    @staticmethod
    async def get_price_for_product(
        slug: str,
        quantity: int,
        user_id: int | None,
        session: Session | AsyncSession,
        width_mm: int | None = None,
        height_mm: int | None = None
    ) -> PriceCalculationDTO:
        """
        Server-side price of a product configuration.

        Args:
            slug: Product slug
            quantity: Quantity (>= 1, validated by the router)
            user_id: Logged-in user for the reseller rate, None for guests
            session: Database session
            width_mm: Design width for per_area products
            height_mm: Design height for per_area / per_meter products

        Returns:
            PriceCalculationDTO

        Raises:
            ProductNotFoundException: If no active product has this slug
        """
        product = await ProductRepository.get_active_by_slug(slug, session)
        if product is None:
            raise ProductNotFoundException(slug=slug)

        tiers = await PriceTierRepository.get_by_product_id(product.id, session)
        reseller_discount_percent = await PricingService.get_reseller_discount_percent(user_id, session)

        return PricingService.calculate_for_product(
            product, quantity, tiers, reseller_discount_percent, width_mm, height_mm)

    @staticmethod
    async def get_reseller_discount_percent(user_id: int | None, session: Session | AsyncSession) -> Decimal:
        if user_id is None:
            return ZERO
        user = await UserRepository.get_by_id(user_id, session)
        if user is None:
            logger.warning(f"Price request for unknown user {user_id}, using no reseller discount")
            return ZERO
        return to_decimal(user.discount_percent)
