"""
FastAPI dependencies shared by the routers.

Long-lived clients (rate limiter, PayPal client, settings cache) are
created in the app lifespan and stored on app.state; tests override these
dependencies via app.dependency_overrides.
"""

import hmac
import logging
from typing import AsyncIterator

from fastapi import Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import get_db_session
from exceptions.user import AuthenticationRequiredException, AdminAccessDeniedException
from middleware.rate_limit import RateLimiter
from services.paypal import PayPalClient
from services.settings_cache import SettingsCache

logger = logging.getLogger(__name__)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_db_session() as session:
        yield session


def _parse_user_id(x_user_id: str | None) -> int | None:
    if not x_user_id:
        return None
    try:
        user_id = int(x_user_id)
    except ValueError:
        return None
    return user_id if user_id > 0 else None


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """
    Identity of the logged-in customer.

    The upstream auth provider terminates the session and forwards the
    user id as X-User-Id.

    Raises:
        AuthenticationRequiredException: header missing or malformed
    """
    user_id = _parse_user_id(x_user_id)
    if user_id is None:
        raise AuthenticationRequiredException()
    return user_id


async def get_optional_user_id(x_user_id: str | None = Header(default=None)) -> int | None:
    # Guests get prices without reseller discount
    return _parse_user_id(x_user_id)


async def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    """
    Guard for admin routes.

    Security: timing-safe comparison, an empty ADMIN_API_TOKEN disables the admin API.
    """
    if not config.ADMIN_API_TOKEN or x_admin_token is None:
        raise AdminAccessDeniedException()
    if not hmac.compare_digest(x_admin_token.encode(), config.ADMIN_API_TOKEN.encode()):
        logger.warning("Admin request rejected: invalid token")
        raise AdminAccessDeniedException()


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_paypal_client(request: Request) -> PayPalClient:
    return request.app.state.paypal_client


def get_settings_cache(request: Request) -> SettingsCache:
    return request.app.state.settings_cache
