"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock
import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports
config_mock = MagicMock()
config_mock.DB_URL = "sqlite+aiosqlite:///:memory:"  # In-memory test database
config_mock.SHOP_LANGUAGE = "de"  # For Localizator
config_mock.VAT_RATE = "0.19"
config_mock.CHECKOUT_SESSION_TTL_MINUTES = 60
config_mock.SETTINGS_CACHE_TTL_SECONDS = 300
config_mock.DEFAULT_BANNER_TEXT = "20% auf Stickerei bis 28.02."
config_mock.ADMIN_API_TOKEN = "test-admin-token-0123456789"
config_mock.REDIS_HOST = "localhost"
config_mock.REDIS_PASSWORD = None
config_mock.PAYPAL_CLIENT_ID = "test-client-id"
config_mock.PAYPAL_CLIENT_SECRET = "test-client-secret"
config_mock.PAYPAL_MODE = "sandbox"
config_mock.PAYPAL_BRAND_NAME = "DTF Transferprint"
config_mock.PUBLIC_BASE_URL = "https://shop.example"
config_mock.EMAIL_API_URL = "https://mail.example/emails"
config_mock.EMAIL_API_KEY = None  # E-mails are only logged in tests
config_mock.EMAIL_FROM = "DTF Transferprint <bestellung@shop.example>"
config_mock.OPERATOR_EMAIL = None
config_mock.MAX_PAYMENT_CREATES_PER_WINDOW = 10
config_mock.PAYMENT_CREATE_WINDOW_SECONDS = 300
config_mock.MAX_PAYMENT_CAPTURES_PER_WINDOW = 5
config_mock.PAYMENT_CAPTURE_WINDOW_SECONDS = 300
config_mock.MAX_CART_ADDS_PER_MINUTE = 30
config_mock.SECURITY_HEADERS_ENABLED = True
config_mock.HSTS_ENABLED = False
config_mock.CORS_ALLOWED_ORIGINS = []
config_mock.LOG_LEVEL = "INFO"
config_mock.LOG_MASK_SECRETS = True
config_mock.LOG_RETENTION_DAYS = 5

sys.modules['config'] = config_mock

from models.base import Base  # noqa: E402
import models  # noqa: E402,F401
from enums.discount_scope import DiscountScope  # noqa: E402
from enums.discount_type import DiscountType  # noqa: E402
from enums.price_calculation_method import PriceCalculationMethod  # noqa: E402
from models.address import UserAddress  # noqa: E402
from models.category import Category  # noqa: E402
from models.discount import Discount  # noqa: E402
from models.price_tier import PriceTier  # noqa: E402
from models.product import Product  # noqa: E402
from models.shipping_profile import ShippingProfile  # noqa: E402
from models.user import User  # noqa: E402
from models.zusatzleistung import Zusatzleistung, ProductZusatzleistung  # noqa: E402


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """Create in-memory SQLite database (shared across threads for TestClient)."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create database session (services accept Session and AsyncSession)."""
    session = Session(engine, expire_on_commit=False)
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# Shop Data Fixtures
# ============================================================================

@pytest.fixture
def user(session):
    user = User(email="kunde@example.com", name="Erika Muster", discount_percent=Decimal("0"))
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def other_user(session):
    user = User(email="andere@example.com", name="Max Muster")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def address(session, user):
    address = UserAddress(
        user_id=user.id,
        first_name="Erika",
        last_name="Muster",
        street="Hauptstraße",
        house_number="1",
        postal_code="10115",
        city="Berlin",
        is_default=True,
    )
    session.add(address)
    session.commit()
    return address


@pytest.fixture
def category(session):
    category = Category(name="DTF Transfers", slug="dtf-transfers")
    session.add(category)
    session.commit()
    return category


@pytest.fixture
def product(session, category):
    """Per-piece product, base 10,00 €, tier 5+ → 8,00 €."""
    product = Product(
        category_id=category.id,
        slug="dtf-transfer-a4",
        name="DTF Transfer A4",
        sku="DTF-A4",
        base_price=Decimal("10.00"),
        price_calculation_method=PriceCalculationMethod.PER_PIECE,
    )
    session.add(product)
    session.flush()
    session.add(PriceTier(product_id=product.id, min_quantity=5, max_quantity=None,
                          price_per_unit=Decimal("8.00"), discount_percent=Decimal("20")))
    session.commit()
    return product


@pytest.fixture
def service(session, product):
    """Add-on service 'Express' (5,00 €) enabled for the product."""
    service = Zusatzleistung(name="Express", description="Versand in 24h", price=Decimal("5.00"))
    session.add(service)
    session.flush()
    session.add(ProductZusatzleistung(product_id=product.id, zusatzleistung_id=service.id))
    session.commit()
    return service


@pytest.fixture
def shipping_profile(session):
    """Default profile: 4,90 €, free from 100,00 €."""
    profile = ShippingProfile(
        name="Standard",
        base_price=Decimal("4.90"),
        free_shipping_threshold=Decimal("100.00"),
        is_default=True,
    )
    session.add(profile)
    session.commit()
    return profile


@pytest.fixture
def make_discount(session):
    """Factory for campaign codes that are valid right now unless overridden."""
    def _make(code="SOMMER10", discount_type=DiscountType.PERCENTAGE, discount_value="10", **kwargs):
        values = {
            "starts_at": datetime.now() - timedelta(days=1),
            "ends_at": datetime.now() + timedelta(days=30),
            "applies_to": DiscountScope.ALL,
        }
        values.update(kwargs)
        discount = Discount(code=code, discount_type=discount_type,
                            discount_value=Decimal(discount_value), **values)
        session.add(discount)
        session.commit()
        return discount
    return _make
