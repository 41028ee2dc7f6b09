from decimal import Decimal

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_refresh
from models.cartItem import CartItem, CartItemDTO, CartItemWithDetailsDTO
from models.product import Product
from models.zusatzleistung import CartItemZusatzleistung, CartItemZusatzleistungDTO, Zusatzleistung
from utils.money import to_cents, ZERO


class CartRepository:
    """
    Cart rows are keyed by user. unit_price is the snapshot written on
    add/update and is what checkout charges.
    """

    @staticmethod
    async def get_by_id(cart_item_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.id == cart_item_id)
        result = await session_execute(stmt, session)
        cart_item = result.scalar()
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def get_for_update(cart_item_id: int, user_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        """
        Load a cart row of the user and lock it until the transaction ends.

        SELECT ... FOR UPDATE is emitted on dialects that support it
        (PostgreSQL, MySQL); SQLite serializes writers anyway.
        """
        stmt = (
            select(CartItem)
            .where(CartItem.id == cart_item_id, CartItem.user_id == user_id)
            .with_for_update()
        )
        result = await session_execute(stmt, session)
        cart_item = result.scalar()
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def get_services(cart_item_ids: list[int],
                           session: AsyncSession | Session) -> dict[int, list[CartItemZusatzleistungDTO]]:
        """
        Batch-load selected services for several cart items (prevents N+1 queries).

        Returns:
            Dict mapping cart_item_id to its services, e.g. {7: [service1, service2]}
        """
        if not cart_item_ids:
            return {}
        stmt = (
            select(CartItemZusatzleistung, Zusatzleistung.name, Zusatzleistung.description)
            .join(Zusatzleistung, Zusatzleistung.id == CartItemZusatzleistung.zusatzleistung_id)
            .where(CartItemZusatzleistung.cart_item_id.in_(cart_item_ids))
            .order_by(CartItemZusatzleistung.cart_item_id, Zusatzleistung.display_order)
        )
        result = await session_execute(stmt, session)
        services = {}
        for row, name, description in result.all():
            services.setdefault(row.cart_item_id, []).append(CartItemZusatzleistungDTO(
                id=row.id,
                cart_item_id=row.cart_item_id,
                zusatzleistung_id=row.zusatzleistung_id,
                name=name,
                description=description,
                price=row.price,
            ))
        return services

    @staticmethod
    async def get_cart_item_services_total(cart_item_id: int, session: AsyncSession | Session) -> Decimal:
        stmt = select(func.coalesce(func.sum(CartItemZusatzleistung.price), 0)).where(
            CartItemZusatzleistung.cart_item_id == cart_item_id)
        result = await session_execute(stmt, session)
        return to_cents(result.scalar())

    @staticmethod
    async def get_cart_items(user_id: int, session: AsyncSession | Session) -> list[CartItemWithDetailsDTO]:
        """
        Get the user's cart joined with product data and selected services.

        Args:
            user_id: Owner of the cart
            session: Database session

        Returns:
            Cart lines in insertion order, each with services_total and
            item_total = unit_price * quantity + services_total
        """
        stmt = (
            select(CartItem, Product)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id.asc())
        )
        result = await session_execute(stmt, session)
        rows = result.all()
        services_by_item = await CartRepository.get_services([cart_item.id for cart_item, _ in rows], session)

        items = []
        for cart_item, product in rows:
            services = services_by_item.get(cart_item.id, [])
            services_total = to_cents(sum((s.price for s in services), ZERO))
            item_total = to_cents(Decimal(cart_item.unit_price) * cart_item.quantity) + services_total
            items.append(CartItemWithDetailsDTO(
                id=cart_item.id,
                product_id=product.id,
                product_name=product.name,
                product_slug=product.slug,
                product_sku=product.sku,
                category_id=product.category_id,
                quantity=cart_item.quantity,
                unit_price=cart_item.unit_price,
                base_price=product.base_price,
                width_mm=cart_item.width_mm,
                height_mm=cart_item.height_mm,
                uploaded_file_url=cart_item.uploaded_file_url,
                uploaded_file_name=cart_item.uploaded_file_name,
                custom_options=cart_item.custom_options,
                services=services,
                services_total=services_total,
                item_total=item_total,
            ))
        return items

    @staticmethod
    async def create(cart_item: CartItemDTO, session: AsyncSession | Session) -> CartItemDTO:
        row = CartItem(**cart_item.model_dump(exclude={'id', 'created_at'}))
        session.add(row)
        await session_flush(session)
        await session_refresh(row, session)
        return CartItemDTO.model_validate(row, from_attributes=True)

    @staticmethod
    async def update_quantity_and_price(cart_item_id: int, quantity: int, unit_price: Decimal,
                                        session: AsyncSession | Session) -> None:
        # quantity and unit_price are always written together
        stmt = (
            update(CartItem)
            .where(CartItem.id == cart_item_id)
            .values(quantity=quantity, unit_price=unit_price)
        )
        await session_execute(stmt, session)

    @staticmethod
    async def delete(cart_item_id: int, session: AsyncSession | Session) -> None:
        stmt = delete(CartItem).where(CartItem.id == cart_item_id)
        await session_execute(stmt, session)

    @staticmethod
    async def clear(user_id: int, session: AsyncSession | Session) -> int:
        # services rows go with their cart item (ON DELETE CASCADE)
        item_ids = select(CartItem.id).where(CartItem.user_id == user_id)
        await session_execute(
            delete(CartItemZusatzleistung).where(CartItemZusatzleistung.cart_item_id.in_(item_ids)), session)
        result = await session_execute(delete(CartItem).where(CartItem.user_id == user_id), session)
        return result.rowcount

    @staticmethod
    async def count(user_id: int, session: AsyncSession | Session) -> int:
        stmt = select(func.count(CartItem.id)).where(CartItem.user_id == user_id)
        result = await session_execute(stmt, session)
        return result.scalar() or 0

    @staticmethod
    async def replace_services(cart_item_id: int, services: list[tuple[int, Decimal]],
                               session: AsyncSession | Session) -> None:
        """
        Replace the service selection of a cart item.

        Args:
            cart_item_id: ID of the cart item
            services: (zusatzleistung_id, price) pairs, price read from the DB by the caller
            session: Database session
        """
        await session_execute(
            delete(CartItemZusatzleistung).where(CartItemZusatzleistung.cart_item_id == cart_item_id), session)
        for zusatzleistung_id, price in services:
            session.add(CartItemZusatzleistung(
                cart_item_id=cart_item_id,
                zusatzleistung_id=zusatzleistung_id,
                price=price,
            ))
        await session_flush(session)
