from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.zusatzleistung import Zusatzleistung, ZusatzleistungDTO, ProductZusatzleistung


class ZusatzleistungRepository:
    @staticmethod
    async def get_active_for_product(product_id: int, service_ids: list[int],
                                     session: AsyncSession | Session) -> list[ZusatzleistungDTO]:
        """
        Filter requested service ids down to active services enabled for the product.

        Unknown, inactive or not enabled ids are dropped silently.
        """
        if not service_ids:
            return []
        stmt = (
            select(Zusatzleistung)
            .join(ProductZusatzleistung, ProductZusatzleistung.zusatzleistung_id == Zusatzleistung.id)
            .where(
                ProductZusatzleistung.product_id == product_id,
                Zusatzleistung.id.in_(service_ids),
                Zusatzleistung.is_active == True
            )
            .order_by(Zusatzleistung.display_order)
        )
        result = await session_execute(stmt, session)
        return [ZusatzleistungDTO.model_validate(s, from_attributes=True) for s in result.scalars().all()]
