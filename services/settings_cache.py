"""
Settings Cache

Short-lived in-process cache for site settings that are read on every
page view (announcement banner). Writes through the admin API call
invalidate(), other processes pick up changes once the TTL elapses.
"""

import logging
import time
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit
from models.site_settings import BannerSettingsDTO
from repositories.site_settings import SiteSettingsRepository

logger = logging.getLogger(__name__)

BANNER_KEYS = ["banner_enabled", "banner_text", "banner_link"]


class SettingsCache:
    """
    TTL cache over SiteSettingsRepository.

    One instance is created at startup and injected into the routes.

    Example:
        cache = SettingsCache(ttl_seconds=300)
        banner = await cache.get_banner(session)
        ...
        cache.invalidate()  # after an admin update
    """

    def __init__(self, ttl_seconds: int | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.SETTINGS_CACHE_TTL_SECONDS
        self._clock = clock
        self._values: dict[str, str] | None = None
        self._loaded_at = 0.0

    def _is_fresh(self) -> bool:
        return self._values is not None and self._clock() - self._loaded_at < self.ttl_seconds

    async def get_many(self, session: AsyncSession | Session) -> dict[str, str]:
        if not self._is_fresh():
            self._values = await SiteSettingsRepository.get_many(BANNER_KEYS, session)
            self._loaded_at = self._clock()
            logger.debug(f"Settings cache refreshed ({len(self._values)} keys)")
        return self._values

    async def get_banner(self, session: AsyncSession | Session) -> BannerSettingsDTO:
        """
        Announcement banner shown on top of the storefront.

        Missing keys fall back to: enabled, config.DEFAULT_BANNER_TEXT, no link.
        """
        values = await self.get_many(session)
        return BannerSettingsDTO(
            enabled=values.get("banner_enabled", "true") == "true",
            text=values.get("banner_text") or config.DEFAULT_BANNER_TEXT,
            link=values.get("banner_link") or None,
        )

    async def update_banner(self, banner: BannerSettingsDTO, session: AsyncSession | Session) -> BannerSettingsDTO:
        await SiteSettingsRepository.set("banner_enabled", "true" if banner.enabled else "false", session)
        await SiteSettingsRepository.set("banner_text", banner.text, session)
        await SiteSettingsRepository.set("banner_link", banner.link or "", session)
        await session_commit(session)
        self.invalidate()
        logger.info(f"Banner updated (enabled={banner.enabled})")
        return banner

    def invalidate(self) -> None:
        self._values = None
        self._loaded_at = 0.0
