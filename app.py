import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

import config
from db import create_db_and_tables
from exceptions import ShopException
from middleware.rate_limit import RateLimiter
from middleware.security_headers import SecurityHeadersMiddleware
from services.paypal import PayPalClient
from services.settings_cache import SettingsCache
from utils.error_handler import shop_exception_handler, validation_exception_handler, \
    unexpected_exception_handler
from web.admin_router import admin_router
from web.api_router import api_router

redis = Redis(host=config.REDIS_HOST, password=config.REDIS_PASSWORD)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    await create_db_and_tables()
    app.state.rate_limiter = RateLimiter(redis)
    app.state.paypal_client = PayPalClient()
    app.state.settings_cache = SettingsCache()
    logging.info(f"[Startup] Shop API ready (PayPal mode: {config.PAYPAL_MODE})")

    yield

    # Shutdown
    logging.warning('Shutting down..')
    await redis.aclose()
    logging.warning('Bye!')


app = FastAPI(lifespan=lifespan, title="DTF Shop API")

if config.SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware)
    logging.info("[Startup] Security headers middleware enabled")

if config.CORS_ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "X-User-Id", "X-Admin-Token"],
    )
    logging.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
else:
    logging.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

app.add_exception_handler(ShopException, shop_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unexpected_exception_handler)

app.include_router(api_router)
app.include_router(admin_router)


# Health check endpoint (for Docker container monitoring)
@app.get("/health")
async def health_check():
    """Health check endpoint for Docker healthcheck."""
    return {"status": "healthy"}
