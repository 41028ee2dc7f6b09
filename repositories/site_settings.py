from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.site_settings import SiteSetting


class SiteSettingsRepository:
    """
    Repository for runtime shop configuration.

    Provides read/write access to the key-value SiteSetting store.
    Reads normally go through services.settings_cache.SettingsCache.
    """

    @staticmethod
    async def get(key: str, session: AsyncSession | Session) -> str | None:
        """
        Get a setting value by key.

        Args:
            key: Setting key (e.g., "banner_text")
            session: Database session (async or sync)

        Returns:
            Setting value as string, or None if not found
        """
        stmt = select(SiteSetting).where(SiteSetting.key == key)
        result = await session_execute(stmt, session)
        setting = result.scalar()
        return setting.value if setting else None

    @staticmethod
    async def get_many(keys: list[str], session: AsyncSession | Session) -> dict[str, str]:
        stmt = select(SiteSetting).where(SiteSetting.key.in_(keys))
        result = await session_execute(stmt, session)
        return {setting.key: setting.value for setting in result.scalars().all()}

    @staticmethod
    async def set(key: str, value: str, session: AsyncSession | Session) -> None:
        """
        Set a setting value (insert or update).

        Args:
            key: Setting key
            value: Setting value (stored as string)
            session: Database session (async or sync)
        """
        existing = await SiteSettingsRepository.get(key, session)

        if existing is not None:
            stmt = update(SiteSetting).where(SiteSetting.key == key).values(value=value)
            await session_execute(stmt, session)
        else:
            setting = SiteSetting(key=key, value=value)
            session.add(setting)
            await session_flush(session)
