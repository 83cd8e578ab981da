"""Booking service: retrieval, reschedule and cancellation."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..core.observability import metrics_collector
from ..models.booking import Booking
from ..models.estimate import Estimate
from ..schemas.booking import CancelBookingRequest, GetBookingRequest, RescheduleBookingRequest
from ..schemas.estimate import PaymentStatus
from .availability_service import AvailabilityService, property_lock
from .pricing_service import validate_date_range

logger = logging.getLogger(__name__)


class BookingCancelledError(ConflictError):
    """Exception when a cancelled booking is asked to change."""

    def __init__(self, booking_id: str):
        super().__init__(
            detail=f"Booking {booking_id} is cancelled"
        )
        self.problem_details.update({
            "code": "BOOKING_CANCELLED",
            "retryable": False,
            "booking_id": booking_id
        })


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.availability_service = AvailabilityService(db)

    async def get_booking(self, request: GetBookingRequest) -> Booking:
        """
        Get booking by ID.

        Raises:
            NotFoundError: If booking not found
        """
        return await self.get_booking_by_id_or_raise(request.booking_id)

    async def reschedule_booking(self, request: RescheduleBookingRequest) -> Booking:
        """
        Move a booking to new dates.

        The overlap check ignores the booking itself and runs under the
        property lock. The total is not recalculated.

        Args:
            request: Reschedule request

        Returns:
            Updated booking

        Raises:
            NotFoundError: If booking not found
            DateRangeInvalidError: If the new range is empty or inverted
            BookingCancelledError: If the booking was cancelled
            AvailabilityConflictError: If the new dates overlap another booking
        """
        validate_date_range(request.from_date, request.to_date)
        booking = await self.get_booking_by_id_or_raise(request.booking_id)
        property_id = booking.property_id
        previous_from, previous_to = booking.from_date, booking.to_date

        async with property_lock(self.db, property_id):
            await self.db.refresh(booking)
            if booking.payment_status == PaymentStatus.CANCELLED:
                raise BookingCancelledError(request.booking_id)

            conflicts = await self.availability_service.find_conflicts(
                property_id, request.from_date, request.to_date, exclude_booking_id=booking.id
            )
            if conflicts:
                estimate = await self.db.get(Estimate, booking.estimate_id)
                error = await self.availability_service.conflict_error(
                    property_id,
                    request.from_date,
                    request.to_date,
                    conflicts,
                    stage="reschedule",
                    min_nights=estimate.min_nights if estimate else None,
                    max_nights=estimate.max_nights if estimate else None,
                    exclude_booking_id=booking.id,
                )
                await self.db.rollback()
                raise error

            booking.from_date = request.from_date
            booking.to_date = request.to_date
            await self.db.commit()

        await self.db.refresh(booking)

        logger.info(
            "Booking rescheduled",
            extra={
                "booking_id": booking.id,
                "property_id": property_id,
                "previous_from_date": previous_from.isoformat(),
                "previous_to_date": previous_to.isoformat(),
                "from_date": request.from_date.isoformat(),
                "to_date": request.to_date.isoformat()
            }
        )

        return booking

    async def cancel_booking(self, request: CancelBookingRequest) -> Booking:
        """
        Cancel a booking, releasing its dates.

        Raises:
            NotFoundError: If booking not found
        """
        booking = await self.get_booking_by_id_or_raise(request.booking_id)

        # Check if already cancelled (idempotent behavior)
        if booking.payment_status == PaymentStatus.CANCELLED:
            logger.info(
                "Booking already cancelled - returning existing booking",
                extra={"booking_id": request.booking_id}
            )
            return booking

        async with property_lock(self.db, booking.property_id):
            booking.payment_status = PaymentStatus.CANCELLED
            await self.db.commit()

        await self.db.refresh(booking)
        metrics_collector.record_booking_cancelled()

        logger.info(
            "Booking cancelled",
            extra={
                "booking_id": booking.id,
                "property_id": booking.property_id,
                "from_date": booking.from_date.isoformat(),
                "to_date": booking.to_date.isoformat()
            }
        )

        return booking

    async def get_booking_by_id(self, booking_id: str) -> Booking | None:
        """Get booking by ID."""
        return await self.db.get(Booking, booking_id)

    async def get_booking_by_id_or_raise(self, booking_id: str) -> Booking:
        """Get booking by ID or raise NotFoundError."""
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning(
                "Booking not found",
                extra={"booking_id": booking_id}
            )
            raise NotFoundError(
                resource_type="booking",
                resource_id=booking_id
            )
        return booking
