from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_refresh
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.order import Order, OrderDTO, OrderItem, OrderItemDTO, OrderItemZusatzleistung, OrderStatusHistory


class OrderRepository:
    @staticmethod
    async def create(order: OrderDTO, session: AsyncSession | Session) -> OrderDTO:
        row = Order(**order.model_dump(exclude={'id', 'created_at'}, exclude_none=True))
        session.add(row)
        await session_flush(session)
        await session_refresh(row, session)
        return OrderDTO.model_validate(row, from_attributes=True)

    @staticmethod
    async def get_by_id(order_id: int, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        result = await session_execute(stmt, session)
        order = result.scalar()
        if order is None:
            return None
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def add_item(order_item: OrderItemDTO, session: AsyncSession | Session) -> OrderItemDTO:
        row = OrderItem(**order_item.model_dump(exclude={'id'}))
        session.add(row)
        await session_flush(session)
        return OrderItemDTO.model_validate(row, from_attributes=True)

    @staticmethod
    async def add_item_service(order_item_id: int, zusatzleistung_id: int | None, name: str,
                               description: str | None, price, session: AsyncSession | Session) -> None:
        session.add(OrderItemZusatzleistung(
            order_item_id=order_item_id,
            zusatzleistung_id=zusatzleistung_id,
            name=name,
            description=description,
            price=price,
        ))

    @staticmethod
    async def add_status_history(order_id: int, status: OrderStatus, note: str | None,
                                 session: AsyncSession | Session) -> None:
        session.add(OrderStatusHistory(order_id=order_id, status=status, note=note))
        await session_flush(session)

    @staticmethod
    async def get_items(order_id: int, session: AsyncSession | Session) -> list[OrderItemDTO]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        result = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(i, from_attributes=True) for i in result.scalars().all()]

    @staticmethod
    async def set_payment_status(order_id: int, payment_status: PaymentStatus, paid_at,
                                 session: AsyncSession | Session) -> None:
        stmt = update(Order).where(Order.id == order_id).values(payment_status=payment_status, paid_at=paid_at)
        await session_execute(stmt, session)
