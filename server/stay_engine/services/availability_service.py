"""Availability engine: booked intervals, overlap checks and date suggestions."""

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import AvailabilityConflictError, NotFoundError
from ..core.observability import metrics_collector
from ..models.booking import Booking
from ..models.property import Property
from ..schemas.availability import AvailabilityResult
from ..schemas.common import DateRange
from ..schemas.estimate import PaymentStatus
from .pricing_service import validate_date_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StayInterval:
    """Half-open booked range [from_date, to_date) of one booking."""

    booking_id: str
    from_date: date
    to_date: date

    def overlaps(self, from_date: date, to_date: date) -> bool:
        return ranges_overlap(self.from_date, self.to_date, from_date, to_date)

    def nights(self) -> Iterable[date]:
        day = self.from_date
        while day < self.to_date:
            yield day
            day += timedelta(days=1)


def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    """Half-open ranges intersect; touching ranges do not."""
    return a_from < b_to and b_from < a_to


def any_overlap(
    intervals: Iterable[StayInterval],
    from_date: date,
    to_date: date,
    exclude_booking_id: str | None = None,
) -> bool:
    """Whether any interval other than the excluded booking intersects the range."""
    return any(
        interval.overlaps(from_date, to_date)
        for interval in intervals
        if interval.booking_id != exclude_booking_id
    )


def probe_durations(
    min_nights: int | None,
    max_nights: int | None,
    defaults: Sequence[int] = (3, 5, 7),
) -> list[int]:
    """
    Stay lengths tried when suggesting alternative dates.

    Both bounds known: the minimum, the midpoint and the maximum.
    Only the minimum known: the minimum and two longer stays above it.
    Only the maximum known: the defaults that fit under it, else the maximum.
    Neither known: the defaults.
    """
    if min_nights and max_nights:
        low, high = sorted((min_nights, max_nights))
        return sorted({low, (low + high) // 2, high})
    if min_nights:
        return [min_nights, min_nights + 2, min_nights + 4]
    if max_nights:
        fitting = sorted({d for d in defaults if d <= max_nights})
        return fitting or [max_nights]
    return sorted(set(defaults))


def suggest_ranges(
    intervals: Iterable[StayInterval],
    today: date,
    min_nights: int | None = None,
    max_nights: int | None = None,
    offsets: Sequence[int] = (7, 14, 30),
    default_durations: Sequence[int] = (3, 5, 7),
    limit: int = 6,
    exclude_booking_id: str | None = None,
) -> list[DateRange]:
    """
    Generate alternative stays that are free of every booked night.

    Candidates start at fixed offsets from today, use the probe durations,
    and are checked night by night against the booked set.

    Returns:
        Up to ``limit`` ranges ordered by start date, then length
    """
    booked: set[date] = set()
    for interval in intervals:
        if interval.booking_id != exclude_booking_id:
            booked.update(interval.nights())

    durations = probe_durations(min_nights, max_nights, default_durations)
    candidates: set[tuple[date, int]] = set()

    for offset in offsets:
        start = today + timedelta(days=offset)
        for nights in durations:
            if nights < 1:
                continue
            span = (start + timedelta(days=i) for i in range(nights))
            if any(day in booked for day in span):
                continue
            candidates.add((start, nights))

    ordered = sorted(candidates)[:limit]
    return [
        DateRange(start_date=start, end_date=start + timedelta(days=nights), nights=nights)
        for start, nights in ordered
    ]


class PropertyLockRegistry:
    """
    Process-local mutual exclusion per property.

    Locks are held weakly: a lock lives while a holder or waiter references
    it and is dropped once nobody does.
    """

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, property_id: str) -> asyncio.Lock:
        lock = self._locks.get(property_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[property_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


property_locks = PropertyLockRegistry()


@asynccontextmanager
async def property_lock(db: AsyncSession, property_id: str) -> AsyncIterator[None]:
    """
    Serialize booking writes on one property.

    Holds the in-process lock for the whole block and, on PostgreSQL, a
    transaction-scoped advisory lock so several workers serialize too.
    A transaction still open when the block ends is committed, or rolled
    back when the block raised, so the advisory lock is released before the
    in-process lock.
    """
    async with property_locks.get(property_id):
        if db.bind and db.bind.dialect.name == "postgresql":
            await db.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:property_id))"),
                {"property_id": property_id}
            )
        logger.debug("Acquired property lock", extra={"property_id": property_id})
        try:
            yield
        except Exception:
            if db.in_transaction():
                await db.rollback()
            raise
        if db.in_transaction():
            await db.commit()


class AvailabilityService:
    """Service answering availability questions from committed bookings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_intervals(self, property_id: str) -> list[StayInterval]:
        """Get the booked intervals of a property, cancelled bookings excluded."""
        stmt = (
            select(Booking.id, Booking.from_date, Booking.to_date)
            .where(
                Booking.property_id == property_id,
                Booking.payment_status == PaymentStatus.PAID,
            )
            .order_by(Booking.from_date)
        )
        result = await self.db.execute(stmt)
        return [StayInterval(row.id, row.from_date, row.to_date) for row in result]

    async def find_conflicts(
        self,
        property_id: str,
        from_date: date,
        to_date: date,
        exclude_booking_id: str | None = None,
    ) -> list[StayInterval]:
        """Get the booked intervals intersecting a range."""
        intervals = await self.get_intervals(property_id)
        return [
            interval for interval in intervals
            if interval.booking_id != exclude_booking_id and interval.overlaps(from_date, to_date)
        ]

    async def is_available(
        self,
        property_id: str,
        from_date: date,
        to_date: date,
        exclude_booking_id: str | None = None,
    ) -> bool:
        conflicts = await self.find_conflicts(property_id, from_date, to_date, exclude_booking_id)
        return not conflicts

    async def suggest(
        self,
        property_id: str,
        min_nights: int | None = None,
        max_nights: int | None = None,
        exclude_booking_id: str | None = None,
        today: date | None = None,
    ) -> list[DateRange]:
        """Suggest free alternative ranges for a property."""
        intervals = await self.get_intervals(property_id)
        return suggest_ranges(
            intervals,
            today=today or date.today(),
            min_nights=min_nights,
            max_nights=max_nights,
            offsets=settings.suggestion_start_offsets_days,
            default_durations=settings.default_probe_durations,
            limit=settings.max_date_suggestions,
            exclude_booking_id=exclude_booking_id,
        )

    async def check_availability(
        self,
        property_id: str,
        from_date: date,
        to_date: date,
        exclude_booking_id: str | None = None,
        min_nights: int | None = None,
        max_nights: int | None = None,
        today: date | None = None,
    ) -> AvailabilityResult:
        """
        Check whether a range is free and suggest alternatives when it is not.

        Args:
            property_id: Property to check
            from_date: Arrival date
            to_date: Departure date
            exclude_booking_id: Booking to ignore, used when rescheduling it
            min_nights: Minimum stay of the package shaping suggestions
            max_nights: Maximum stay of the package shaping suggestions
            today: Reference day for suggestion offsets

        Returns:
            Availability result

        Raises:
            NotFoundError: If the property does not exist
            DateRangeInvalidError: If the range is empty or inverted
        """
        validate_date_range(from_date, to_date)
        if await self.db.get(Property, property_id) is None:
            raise NotFoundError(resource_type="property", resource_id=property_id)

        intervals = await self.get_intervals(property_id)
        available = not any_overlap(intervals, from_date, to_date, exclude_booking_id)

        suggestions: list[DateRange] = []
        if not available:
            suggestions = suggest_ranges(
                intervals,
                today=today or date.today(),
                min_nights=min_nights,
                max_nights=max_nights,
                offsets=settings.suggestion_start_offsets_days,
                default_durations=settings.default_probe_durations,
                limit=settings.max_date_suggestions,
                exclude_booking_id=exclude_booking_id,
            )

        logger.info(
            "Availability checked",
            extra={
                "property_id": property_id,
                "from_date": from_date.isoformat(),
                "to_date": to_date.isoformat(),
                "available": available,
                "suggestion_count": len(suggestions)
            }
        )

        return AvailabilityResult(
            available=available,
            requested=DateRange(
                start_date=from_date,
                end_date=to_date,
                nights=(to_date - from_date).days,
            ),
            suggestions=suggestions,
        )

    async def get_unavailable_dates(self, property_id: str) -> list[date]:
        """
        List every booked night of a property.

        Raises:
            NotFoundError: If the property does not exist
        """
        if await self.db.get(Property, property_id) is None:
            raise NotFoundError(resource_type="property", resource_id=property_id)

        nights: set[date] = set()
        for interval in await self.get_intervals(property_id):
            nights.update(interval.nights())
        return sorted(nights)

    async def conflict_error(
        self,
        property_id: str,
        from_date: date,
        to_date: date,
        conflicts: Sequence[StayInterval],
        stage: str,
        min_nights: int | None = None,
        max_nights: int | None = None,
        exclude_booking_id: str | None = None,
    ) -> AvailabilityConflictError:
        """Build the conflict error for a range, with alternatives attached."""
        metrics_collector.record_availability_conflict(stage)
        suggestions = await self.suggest(
            property_id,
            min_nights=min_nights,
            max_nights=max_nights,
            exclude_booking_id=exclude_booking_id,
        )

        logger.warning(
            "Requested dates overlap existing bookings",
            extra={
                "property_id": property_id,
                "from_date": from_date.isoformat(),
                "to_date": to_date.isoformat(),
                "stage": stage,
                "conflicting_booking_ids": [c.booking_id for c in conflicts]
            }
        )

        return AvailabilityConflictError(
            property_id=property_id,
            from_date=from_date,
            to_date=to_date,
            conflicting_bookings=[
                {
                    "booking_id": c.booking_id,
                    "from_date": c.from_date.isoformat(),
                    "to_date": c.to_date.isoformat(),
                }
                for c in conflicts
            ],
            suggestions=[s.model_dump(mode="json") for s in suggestions],
        )
