import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from exceptions.shipping import ShippingProfileNotFoundException
from models.shipping_profile import ShippingProfileDTO
from repositories.shipping_profile import ShippingProfileRepository
from utils.money import to_cents, to_decimal, ZERO

logger = logging.getLogger(__name__)


class ShippingService:

    @staticmethod
    def calculate_shipping_cost(profile: ShippingProfileDTO | None, discounted_subtotal: Decimal,
                                free_shipping: bool = False) -> Decimal:
        """
        Shipping cost for a cart value.

        Args:
            profile: Selected or default profile (None → no shipping charged)
            discounted_subtotal: Cart value after reseller and campaign discounts
            free_shipping: True when a free_shipping code is applied

        Returns:
            Shipping cost, 0 when free shipping applies
        """
        if profile is None or free_shipping:
            return ZERO
        if profile.free_shipping_threshold is not None and \
                to_decimal(discounted_subtotal) >= to_decimal(profile.free_shipping_threshold):
            return ZERO
        return to_cents(profile.base_price)

    @staticmethod
    async def get_active_profiles(session: AsyncSession | Session) -> list[ShippingProfileDTO]:
        return await ShippingProfileRepository.get_active(session)

    @staticmethod
    async def select_profile(user_id: int, profile_id: int, session: AsyncSession | Session) -> ShippingProfileDTO:
        """
        Store the user's shipping choice for the current cart.

        Raises:
            ShippingProfileNotFoundException: If the profile is unknown or inactive
        """
        profile = await ShippingProfileRepository.get_active_by_id(profile_id, session)
        if profile is None:
            raise ShippingProfileNotFoundException(profile_id)
        await ShippingProfileRepository.select_for_user(user_id, profile_id, session)
        await session_commit(session)
        logger.info(f"User {user_id} selected shipping profile {profile_id}")
        return profile
