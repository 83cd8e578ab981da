"""Concurrency tests for payment confirmation."""

import asyncio
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from stay_engine.core.database import Base
from stay_engine.core.exceptions import AvailabilityConflictError
from stay_engine.models import Booking, Estimate
from stay_engine.schemas.estimate import PaymentStatus, QuoteRequest
from stay_engine.schemas.package import AddPackageRequest, CreatePropertyRequest
from stay_engine.services.estimate_service import EstimateService
from stay_engine.services.property_service import PropertyService

pytestmark = pytest.mark.concurrency


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path):
    """Sessions on a file database, each with its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


async def seed(factory, catalog_client, quotes):
    """Create a property with a "std" package and one unpaid estimate per quote."""
    async with factory() as session:
        service = PropertyService(session)
        prop = await service.create_property(CreatePropertyRequest(name="Seaside Cottage"))
        await service.add_package(AddPackageRequest(
            property_id=prop.id, id="std", name="Standard Stay", min_nights=1, max_nights=7
        ))

        estimate_ids = []
        estimates = EstimateService(session, catalog_client)
        for customer_id, from_date, to_date in quotes:
            estimate, _ = await estimates.quote(customer_id, QuoteRequest(
                property_id=prop.id, from_date=from_date, to_date=to_date, package_ref="std"
            ))
            estimate_ids.append(estimate.id)
        return prop.id, estimate_ids


async def confirm(factory, catalog_client, estimate_id):
    async with factory() as session:
        return await EstimateService(session, catalog_client).confirm_payment(estimate_id)


@pytest.mark.asyncio
async def test_conflicting_confirmations_book_once(file_session_factory, catalog_client):
    """Two customers paying for overlapping dates: one booking, one conflict."""
    property_id, estimate_ids = await seed(file_session_factory, catalog_client, [
        ("customer-1", date(2024, 6, 1), date(2024, 6, 4)),
        ("customer-2", date(2024, 6, 3), date(2024, 6, 6)),
    ])

    results = await asyncio.gather(
        *(confirm(file_session_factory, catalog_client, estimate_id) for estimate_id in estimate_ids),
        return_exceptions=True,
    )

    bookings = [r for r in results if isinstance(r, Booking)]
    conflicts = [r for r in results if isinstance(r, AvailabilityConflictError)]
    assert len(bookings) == 1
    assert len(conflicts) == 1

    async with file_session_factory() as session:
        booked = await session.execute(
            select(func.count()).select_from(Booking).where(Booking.property_id == property_id)
        )
        assert booked.scalar_one() == 1

        statuses = await session.execute(
            select(Estimate.payment_status).where(Estimate.property_id == property_id)
        )
        assert sorted(statuses.scalars()) == ["paid", "unpaid"]


@pytest.mark.asyncio
async def test_disjoint_confirmations_both_book(file_session_factory, catalog_client):
    """Back-to-back stays sharing a changeover day do not conflict."""
    property_id, estimate_ids = await seed(file_session_factory, catalog_client, [
        ("customer-1", date(2024, 6, 1), date(2024, 6, 4)),
        ("customer-2", date(2024, 6, 4), date(2024, 6, 6)),
    ])

    results = await asyncio.gather(
        *(confirm(file_session_factory, catalog_client, estimate_id) for estimate_id in estimate_ids)
    )

    assert all(booking.payment_status == PaymentStatus.PAID for booking in results)
    assert len({booking.id for booking in results}) == 2


@pytest.mark.asyncio
async def test_duplicate_confirmations_are_idempotent(file_session_factory, catalog_client):
    """The same payment event delivered twice materializes a single booking."""
    _, estimate_ids = await seed(file_session_factory, catalog_client, [
        ("customer-1", date(2024, 6, 1), date(2024, 6, 4)),
    ])

    results = await asyncio.gather(
        confirm(file_session_factory, catalog_client, estimate_ids[0]),
        confirm(file_session_factory, catalog_client, estimate_ids[0]),
    )

    assert results[0].id == results[1].id
