from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_refresh
from models.checkout_session import CheckoutSession, CheckoutSessionDTO


class CheckoutSessionRepository:
    @staticmethod
    async def create(checkout_session: CheckoutSessionDTO, session: AsyncSession | Session) -> CheckoutSessionDTO:
        row = CheckoutSession(**checkout_session.model_dump(exclude={'id', 'created_at'}))
        session.add(row)
        await session_flush(session)
        await session_refresh(row, session)
        return CheckoutSessionDTO.model_validate(row, from_attributes=True)

    @staticmethod
    async def get_by_paypal_order_id(paypal_order_id: str,
                                     session: AsyncSession | Session) -> CheckoutSessionDTO | None:
        stmt = select(CheckoutSession).where(CheckoutSession.paypal_order_id == paypal_order_id)
        result = await session_execute(stmt, session)
        checkout_session = result.scalar()
        if checkout_session is None:
            return None
        return CheckoutSessionDTO.model_validate(checkout_session, from_attributes=True)

    @staticmethod
    async def mark_captured(paypal_order_id: str, order_id: int, session: AsyncSession | Session) -> int:
        """
        Flip the session to captured exactly once.

        Returns:
            Number of rows changed (0 if another request captured it first)
        """
        stmt = (
            update(CheckoutSession)
            .where(CheckoutSession.paypal_order_id == paypal_order_id, CheckoutSession.is_captured == False)
            .values(is_captured=True, order_id=order_id, captured_at=datetime.now())
        )
        result = await session_execute(stmt, session)
        return result.rowcount
