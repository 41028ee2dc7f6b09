import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from enums.inventory_policy import InventoryPolicy
from exceptions.cart import CartItemNotFoundException, InvalidQuantityException
from exceptions.product import ProductNotFoundException, InvalidProductConfigurationException, \
    InsufficientInventoryException
from models.cartItem import CartItemDTO, CartSummaryDTO, CartTierInfoDTO, CartUpdateResultDTO, \
    CartAddResultDTO, CartServicesUpdateDTO
from repositories.cart import CartRepository
from repositories.price_tier import PriceTierRepository
from repositories.product import ProductRepository
from repositories.zusatzleistung import ZusatzleistungRepository
from services.pricing import PriceTierResolver, PricingService
from utils.money import to_cents, to_decimal, ZERO

logger = logging.getLogger(__name__)


class CartService:
    """
    Cart mutations.

    unit_price on a cart row is always resolved on the server from the
    product's tiers and written together with the quantity.
    """

    @staticmethod
    async def add_to_cart(
        user_id: int,
        product_id: int,
        quantity: int,
        session: AsyncSession | Session,
        width_mm: int | None = None,
        height_mm: int | None = None,
        uploaded_file_url: str | None = None,
        uploaded_file_name: str | None = None
    ) -> CartAddResultDTO:
        """
        Add a configured product to the cart.

        Args:
            user_id: Owner of the cart
            product_id: Product to add
            quantity: Quantity (>= 1)
            session: Database session
            width_mm: Design width for file upload products
            height_mm: Design height for file upload products
            uploaded_file_url: URL of the uploaded print file
            uploaded_file_name: Original name of the uploaded file

        Returns:
            CartAddResultDTO with the new row and the cart item count

        Raises:
            InvalidQuantityException: quantity < 1
            ProductNotFoundException: product unknown or inactive
            InvalidProductConfigurationException: dimensions outside product limits
            InsufficientInventoryException: tracked stock too low (policy deny)
        """
        if quantity < 1:
            raise InvalidQuantityException(quantity)

        product = await ProductRepository.get_active_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id=product_id)

        errors = PricingService.validate_product_configuration(product, width_mm, height_mm)
        if errors:
            raise InvalidProductConfigurationException(product_id, errors)

        if product.track_inventory and product.inventory_policy == InventoryPolicy.DENY \
                and product.inventory_quantity < quantity:
            raise InsufficientInventoryException(product_id, quantity, product.inventory_quantity)

        tiers = await PriceTierRepository.get_by_product_id(product_id, session)
        tier = PriceTierResolver.resolve(tiers, quantity)
        unit_price = tier.price_per_unit if tier else product.base_price

        custom_options = json.dumps({
            "width_mm": width_mm,
            "height_mm": height_mm,
            "uploaded_file_url": uploaded_file_url,
            "uploaded_file_name": uploaded_file_name,
            "price_calculation_method": product.price_calculation_method.value,
        })
        cart_item = await CartRepository.create(CartItemDTO(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            width_mm=width_mm,
            height_mm=height_mm,
            uploaded_file_url=uploaded_file_url,
            uploaded_file_name=uploaded_file_name,
            custom_options=custom_options,
        ), session)
        await session_commit(session)
        cart_count = await CartRepository.count(user_id, session)

        logger.info(f"User {user_id} added product {product_id} x{quantity} at {unit_price} to cart")
        return CartAddResultDTO(cart_item=cart_item, cart_count=cart_count)

    @staticmethod
    async def update_quantity(
        user_id: int,
        cart_item_id: int,
        quantity: int,
        session: AsyncSession | Session
    ) -> CartUpdateResultDTO:
        """
        Change the quantity of a cart row. Quantity 0 removes the row.

        The row is locked, the tier is re-resolved for the new quantity and
        quantity + unit_price are written in the same transaction, so two
        concurrent edits cannot leave a quantity with a stale unit price.

        Returns:
            CartUpdateResultDTO with tier/savings info for every cart line

        Raises:
            InvalidQuantityException: quantity < 0
            CartItemNotFoundException: row missing or owned by another user
        """
        if quantity < 0:
            raise InvalidQuantityException(quantity, minimum=0)

        try:
            cart_item = await CartRepository.get_for_update(cart_item_id, user_id, session)
            if cart_item is None:
                raise CartItemNotFoundException(cart_item_id)

            if quantity == 0:
                await CartRepository.delete(cart_item_id, session)
                logger.info(f"User {user_id} removed cart item {cart_item_id} (quantity 0)")
            else:
                product = await ProductRepository.get_by_id(cart_item.product_id, session)
                if product is None:
                    raise ProductNotFoundException(product_id=cart_item.product_id)
                tiers = await PriceTierRepository.get_by_product_id(product.id, session)
                tier = PriceTierResolver.resolve(tiers, quantity)
                unit_price = tier.price_per_unit if tier else product.base_price
                await CartRepository.update_quantity_and_price(cart_item_id, quantity, unit_price, session)
            await session_commit(session)
        except Exception:
            await session_rollback(session)
            raise

        return await CartService.get_tier_info(user_id, session)

    @staticmethod
    async def get_tier_info(user_id: int, session: AsyncSession | Session) -> CartUpdateResultDTO:
        items = await CartRepository.get_cart_items(user_id, session)
        infos = []
        for item in items:
            tiers = await PriceTierRepository.get_by_product_id(item.product_id, session)
            current_savings = (to_decimal(item.base_price) - to_decimal(item.unit_price)) * item.quantity
            infos.append(CartTierInfoDTO(
                cart_item_id=item.id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                item_total=item.item_total,
                current_savings=to_cents(current_savings),
                next_tier=PricingService.get_next_tier_info(tiers, item.quantity, item.base_price, item.unit_price),
            ))
        return CartUpdateResultDTO(cart_count=len(items), items_with_tier_info=infos)

    @staticmethod
    async def remove(user_id: int, cart_item_id: int, session: AsyncSession | Session) -> int:
        """
        Remove a row from the user's cart.

        Returns:
            Remaining cart item count
        """
        cart_item = await CartRepository.get_by_id(cart_item_id, session)
        if cart_item is None or cart_item.user_id != user_id:
            raise CartItemNotFoundException(cart_item_id)
        await CartRepository.delete(cart_item_id, session)
        await session_commit(session)
        return await CartRepository.count(user_id, session)

    @staticmethod
    async def clear(user_id: int, session: AsyncSession | Session) -> None:
        deleted = await CartRepository.clear(user_id, session)
        await session_commit(session)
        logger.info(f"Cleared cart of user {user_id} ({deleted} items)")

    @staticmethod
    async def update_services(
        user_id: int,
        cart_item_id: int,
        service_ids: list[int],
        session: AsyncSession | Session
    ) -> CartServicesUpdateDTO:
        """
        Replace the add-on services of a cart row.

        Only active services enabled for the row's product are stored and
        their price is taken from the database, never from the request.

        Raises:
            CartItemNotFoundException: row missing or owned by another user
        """
        cart_item = await CartRepository.get_by_id(cart_item_id, session)
        if cart_item is None or cart_item.user_id != user_id:
            raise CartItemNotFoundException(cart_item_id)

        services = await ZusatzleistungRepository.get_active_for_product(
            cart_item.product_id, list(set(service_ids)), session)
        if len(services) != len(set(service_ids)):
            logger.warning(f"Dropped unavailable services for cart item {cart_item_id}: "
                           f"requested {sorted(set(service_ids))}, stored {[s.id for s in services]}")
        await CartRepository.replace_services(cart_item_id, [(s.id, s.price) for s in services], session)
        await session_commit(session)

        stored = (await CartRepository.get_services([cart_item_id], session)).get(cart_item_id, [])
        services_total = await CartRepository.get_cart_item_services_total(cart_item_id, session)
        item_total = to_cents(to_decimal(cart_item.unit_price) * cart_item.quantity) + services_total
        cart = await CartService.get_cart(user_id, session)
        return CartServicesUpdateDTO(
            cart_item_id=cart_item_id,
            services=stored,
            item_total=item_total,
            services_total=services_total,
            new_subtotal=cart.subtotal,
        )

    @staticmethod
    async def get_cart(user_id: int, session: AsyncSession | Session) -> CartSummaryDTO:
        items = await CartRepository.get_cart_items(user_id, session)
        subtotal = sum((item.item_total for item in items), ZERO)
        return CartSummaryDTO(items=items, item_count=len(items), subtotal=subtotal)
