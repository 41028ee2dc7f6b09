"""
Admin API.

All routes require the X-Admin-Token header (web/dependencies.require_admin).
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from models.price_tier import ProductPricingUpdateDTO
from models.site_settings import BannerSettingsDTO
from services.admin import AdminService
from services.settings_cache import SettingsCache
from web.api_router import success
from web.dependencies import get_session, require_admin, get_settings_cache

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class UserDiscountPayload(BaseModel):
    # Range is checked by AdminService so the error is localized
    discount_percent: Decimal


class BannerPayload(BaseModel):
    enabled: bool = True
    text: str = Field(..., min_length=1, max_length=200)
    link: str | None = Field(default=None, max_length=500)


@admin_router.put("/products/{product_id}/pricing")
async def update_product_pricing(
    product_id: int,
    payload: ProductPricingUpdateDTO,
    session: AsyncSession = Depends(get_session)
):
    """
    Replace base price and tiers of a product.

    Tiers without discount_percent get it derived from base_price.
    Overlapping tier ranges are rejected with 400.

    Request Body:
        {
            "base_price": 2.50,
            "tiers": [
                {"min_quantity": 1, "max_quantity": 9, "price_per_unit": 2.50},
                {"min_quantity": 10, "max_quantity": null, "price_per_unit": 2.20}
            ]
        }
    """
    return success(await AdminService.update_product_pricing(product_id, payload, session))


@admin_router.put("/users/{user_id}/discount")
async def set_user_discount(
    user_id: int,
    payload: UserDiscountPayload,
    session: AsyncSession = Depends(get_session)
):
    user = await AdminService.set_user_discount(user_id, payload.discount_percent, session)
    return success({"user_id": user.id, "discount_percent": float(user.discount_percent)})


@admin_router.put("/settings/banner")
async def update_banner(
    payload: BannerPayload,
    session: AsyncSession = Depends(get_session),
    settings_cache: SettingsCache = Depends(get_settings_cache)
):
    banner = await settings_cache.update_banner(
        BannerSettingsDTO(enabled=payload.enabled, text=payload.text, link=payload.link), session)
    return success(banner)
