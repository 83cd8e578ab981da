"""Test configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("CATALOG_CACHE_TTL_SECONDS", "0")

from dataclasses import dataclass
from decimal import Decimal

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stay_engine.clients.catalog_client import StaticCatalogClient
from stay_engine.core.config import settings
from stay_engine.core.database import Base
from stay_engine.core.dependencies import get_db
from stay_engine.core.exceptions import CatalogUnavailableError
from stay_engine.models import *  # noqa: F403 - Import all models
from stay_engine.schemas.package import (
    AddPackageRequest,
    CreatePropertyRequest,
    ExternalProduct,
    PackageCategory,
    SetOverrideRequest,
)
from stay_engine.services.property_service import PropertyService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FailingCatalogClient:
    """Catalog client whose provider is always down."""

    def __init__(self):
        self.calls = 0

    async def list_products(self):
        self.calls += 1
        raise CatalogUnavailableError(detail="connection refused")

    async def aclose(self):
        return None


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def weekly_product():
    """External weekly product from the provider catalog."""
    return ExternalProduct(
        id="ext_weekly",
        title="Weekly Escape",
        description="Seven nights with a host on call",
        price=Decimal("500"),
        period="week",
        period_count=1,
        category=PackageCategory.HOSTED,
        enabled=True,
        features=["Host on call", "Weekly clean"],
    )


@pytest.fixture
def catalog_client(weekly_product):
    """Catalog client serving the weekly product."""
    return StaticCatalogClient([weekly_product])


@pytest.fixture
def failing_catalog_client():
    """Catalog client that is always unreachable."""
    return FailingCatalogClient()


@dataclass
class Scenario:
    """Seeded property with one local and one external package."""

    property_id: str
    std_id: str
    external_id: str


async def seed_property(
    session: AsyncSession,
    name: str = "Seaside Cottage",
    base_rate: Decimal | None = None,
) -> str:
    prop = await PropertyService(session).create_property(
        CreatePropertyRequest(name=name, base_rate=base_rate)
    )
    return prop.id


@pytest_asyncio.fixture(scope="function")
async def scenario(test_session):
    """
    Property P with local package "std" and the external "ext_weekly" enabled.

    std: standard, base rate 100, multiplier 1, 2..5 nights.
    """
    service = PropertyService(test_session)
    property_id = await seed_property(test_session)

    await service.add_package(AddPackageRequest(
        property_id=property_id,
        id="std",
        name="Standard Stay",
        category=PackageCategory.STANDARD,
        multiplier=1.0,
        base_rate=Decimal("100"),
        min_nights=2,
        max_nights=5,
        features=["Wi-Fi", "Linen"],
    ))
    await service.set_override(SetOverrideRequest(
        property_id=property_id,
        package_ref="ext_weekly",
        enabled=True,
    ))

    return Scenario(property_id=property_id, std_id="std", external_id="ext_weekly")


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, catalog_client):
    """Create a test FastAPI application."""
    from stay_engine.main import create_app

    app = create_app(catalog_client=catalog_client)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def make_token(customer_id: str) -> str:
    """Encode a customer bearer token."""
    return jwt.encode({"sub": customer_id}, settings.bearer_token_secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a customer."""
    def _headers(customer_id: str = "customer-1") -> dict:
        return {"Authorization": f"Bearer {make_token(customer_id)}"}
    return _headers
