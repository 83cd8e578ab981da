"""Estimate reconciliation: quote collapsing and payment confirmation."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.catalog_client import CatalogClient
from ..core.exceptions import ConflictError, NotFoundError
from ..core.observability import metrics_collector
from ..models.booking import Booking
from ..models.estimate import Estimate
from ..schemas.estimate import PaymentStatus, QuoteRequest
from ..schemas.package import PackageDescriptor
from .availability_service import AvailabilityService, property_lock
from .identity_service import Resolution
from .package_service import PackageService
from .pricing_service import calculate_total, validate_date_range

logger = logging.getLogger(__name__)


class InvalidEstimateStateError(ConflictError):
    """Exception when an estimate cannot leave its current state."""

    def __init__(self, estimate_id: str, status: str, action: str):
        super().__init__(
            detail=f"Estimate {estimate_id} is {status} and cannot be {action}"
        )
        self.problem_details.update({
            "code": "INVALID_ESTIMATE_STATE",
            "retryable": False,
            "estimate_id": estimate_id,
            "payment_status": status
        })


def snapshot_descriptor(estimate: Estimate) -> PackageDescriptor:
    """Rebuild the package an estimate was last resolved to from its stored snapshot."""
    external_id = estimate.canonical_package_id
    if external_id == estimate.resolved_package_id:
        external_id = None
    return PackageDescriptor(
        id=estimate.resolved_package_id,
        original_name=estimate.display_name,
        display_name=estimate.display_name,
        category=estimate.package_category,
        multiplier=estimate.multiplier,
        base_rate=estimate.base_rate,
        min_nights=estimate.min_nights,
        max_nights=estimate.max_nights,
        enabled=True,
        external_product_id=external_id,
        origin=estimate.package_origin,
        is_hourly=estimate.is_hourly,
    )


def apply_snapshot(estimate: Estimate, descriptor: PackageDescriptor) -> None:
    """Store the resolved package on an estimate."""
    estimate.resolved_package_id = descriptor.id
    estimate.canonical_package_id = descriptor.canonical_id
    estimate.package_origin = descriptor.origin
    estimate.package_category = descriptor.category
    estimate.display_name = descriptor.display_name
    estimate.base_rate = descriptor.base_rate
    estimate.multiplier = descriptor.multiplier
    estimate.min_nights = descriptor.min_nights
    estimate.max_nights = descriptor.max_nights
    estimate.is_hourly = descriptor.is_hourly


class EstimateService:
    """Service for estimate lifecycle operations."""

    def __init__(self, db: AsyncSession, catalog_client: CatalogClient):
        self.db = db
        self.package_service = PackageService(db, catalog_client)
        self.availability_service = AvailabilityService(db)

    async def find_unpaid_estimates(self, customer_id: str, property_id: str) -> list[Estimate]:
        """Get the unpaid estimates of a customer on a property, most recently updated first."""
        stmt = (
            select(Estimate)
            .where(
                Estimate.customer_id == customer_id,
                Estimate.property_id == property_id,
                Estimate.payment_status == PaymentStatus.UNPAID,
            )
            .order_by(Estimate.updated_at.desc(), Estimate.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def quote(self, customer_id: str, request: QuoteRequest) -> tuple[Estimate, bool]:
        """
        Create or update the customer's unpaid estimate for a property.

        An unpaid estimate with the same dates is updated; failing that, the
        most recently updated unpaid estimate is moved to the new dates; only
        when there is none is a new estimate created.

        Args:
            customer_id: Customer requesting the quote
            request: Quote request

        Returns:
            Tuple of the saved estimate and whether the dates are currently free.
            Overlap at quote time is advisory; payment confirmation enforces it.

        Raises:
            NotFoundError: If the property does not exist
            DateRangeInvalidError: If the dates are invalid for the package
            PackageNotFoundError: If a new estimate's package cannot be resolved
        """
        validate_date_range(request.from_date, request.to_date)

        existing = await self.find_unpaid_estimates(customer_id, request.property_id)
        exact = next(
            (
                e for e in existing
                if e.from_date == request.from_date and e.to_date == request.to_date
            ),
            None,
        )
        target = exact or (existing[0] if existing else None)
        previous = snapshot_descriptor(target) if target else None

        resolution = await self.package_service.resolve_package(
            request.property_id, request.package_ref, previous=previous
        )
        descriptor = resolution.descriptor
        total = calculate_total(descriptor, request.from_date, request.to_date, request.total)

        if target is None:
            target = Estimate(customer_id=customer_id, property_id=request.property_id)
            self.db.add(target)
            metrics_collector.record_quote_created()
        else:
            metrics_collector.record_quote_collapsed("exact" if target is exact else "latest")

        target.from_date = request.from_date
        target.to_date = request.to_date
        target.total = total
        target.total_is_explicit = request.total is not None
        target.payment_status = PaymentStatus.UNPAID
        if request.title is not None:
            target.title = request.title
        if request.guests or target.guests is None:
            target.guests = [guest.model_dump() for guest in request.guests]
        apply_snapshot(target, descriptor)

        conflicts = await self.availability_service.find_conflicts(
            request.property_id, request.from_date, request.to_date
        )
        if conflicts:
            metrics_collector.record_availability_conflict("quote")

        await self.db.commit()
        await self.db.refresh(target)

        logger.info(
            "Estimate quoted",
            extra={
                "estimate_id": target.id,
                "customer_id": customer_id,
                "property_id": request.property_id,
                "from_date": request.from_date.isoformat(),
                "to_date": request.to_date.isoformat(),
                "package_id": descriptor.id,
                "matched_by": resolution.matched_by,
                "total": str(total),
                "total_is_explicit": target.total_is_explicit,
                "collapsed_from": len(existing),
                "dates_available": not conflicts
            }
        )

        return target, not conflicts

    async def confirm_payment(self, estimate_id: str) -> Booking:
        """
        Turn a paid estimate into a booking.

        The package is re-resolved and, unless the total was set explicitly,
        re-priced against the current catalog. The overlap re-check, the
        booking insert and the status change happen under the property lock
        in one transaction.

        Args:
            estimate_id: Estimate that was paid

        Returns:
            The booking, existing one if the estimate was already confirmed

        Raises:
            NotFoundError: If the estimate does not exist
            InvalidEstimateStateError: If the estimate was cancelled
            AvailabilityConflictError: If the dates were taken meanwhile; the estimate stays unpaid
        """
        estimate = await self.get_estimate_by_id_or_raise(estimate_id)

        if estimate.payment_status == PaymentStatus.PAID:
            return await self._existing_booking(estimate)
        if estimate.payment_status == PaymentStatus.CANCELLED:
            raise InvalidEstimateStateError(estimate_id, PaymentStatus.CANCELLED.value, "paid")

        property_id = estimate.property_id
        from_date = estimate.from_date
        to_date = estimate.to_date

        resolution = await self._re_resolve(estimate)
        descriptor = resolution.descriptor
        if estimate.total_is_explicit:
            total = estimate.total
        else:
            total = calculate_total(descriptor, from_date, to_date)

        async with property_lock(self.db, property_id):
            await self.db.refresh(estimate)
            if estimate.payment_status == PaymentStatus.PAID:
                return await self._existing_booking(estimate)
            if estimate.payment_status == PaymentStatus.CANCELLED:
                raise InvalidEstimateStateError(estimate_id, PaymentStatus.CANCELLED.value, "paid")

            conflicts = await self.availability_service.find_conflicts(property_id, from_date, to_date)
            if conflicts:
                error = await self.availability_service.conflict_error(
                    property_id,
                    from_date,
                    to_date,
                    conflicts,
                    stage="payment",
                    min_nights=descriptor.min_nights,
                    max_nights=descriptor.max_nights,
                )
                await self.db.rollback()
                raise error

            apply_snapshot(estimate, descriptor)
            estimate.total = total
            estimate.payment_status = PaymentStatus.PAID

            booking = Booking(
                estimate_id=estimate.id,
                title=estimate.title,
                customer_id=estimate.customer_id,
                property_id=property_id,
                from_date=from_date,
                to_date=to_date,
                package_id=descriptor.id,
                canonical_package_id=descriptor.canonical_id,
                display_name=descriptor.display_name,
                total=total,
                payment_status=PaymentStatus.PAID,
                guests=list(estimate.guests or []),
            )
            self.db.add(booking)

            try:
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        await self.db.refresh(booking)
        metrics_collector.record_booking_confirmed()

        logger.info(
            "Booking confirmed",
            extra={
                "booking_id": booking.id,
                "estimate_id": estimate_id,
                "property_id": property_id,
                "from_date": from_date.isoformat(),
                "to_date": to_date.isoformat(),
                "package_id": descriptor.id,
                "matched_by": resolution.matched_by,
                "total": str(total)
            }
        )

        return booking

    async def _re_resolve(self, estimate: Estimate) -> Resolution:
        previous = snapshot_descriptor(estimate)
        return await self.package_service.resolve_package(
            estimate.property_id, estimate.resolved_package_id, previous=previous
        )

    async def _existing_booking(self, estimate: Estimate) -> Booking:
        stmt = select(Booking).where(Booking.estimate_id == estimate.id)
        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(
                resource_type="booking",
                detail=f"Estimate {estimate.id} is paid but has no booking",
            )

        logger.info(
            "Estimate already confirmed - returning existing booking",
            extra={"estimate_id": estimate.id, "booking_id": booking.id}
        )
        return booking

    async def cancel_estimate(self, estimate_id: str) -> Estimate:
        """
        Cancel an unpaid estimate.

        Raises:
            NotFoundError: If the estimate does not exist
            InvalidEstimateStateError: If the estimate is already paid
        """
        estimate = await self.get_estimate_by_id_or_raise(estimate_id)

        if estimate.payment_status == PaymentStatus.CANCELLED:
            return estimate
        if estimate.payment_status == PaymentStatus.PAID:
            raise InvalidEstimateStateError(estimate_id, PaymentStatus.PAID.value, "cancelled")

        estimate.payment_status = PaymentStatus.CANCELLED
        await self.db.commit()
        await self.db.refresh(estimate)

        logger.info("Estimate cancelled", extra={"estimate_id": estimate_id})
        return estimate

    async def get_estimate_by_id(self, estimate_id: str) -> Estimate | None:
        """Get estimate by ID."""
        return await self.db.get(Estimate, estimate_id)

    async def get_estimate_by_id_or_raise(self, estimate_id: str) -> Estimate:
        """Get estimate by ID or raise NotFoundError."""
        estimate = await self.get_estimate_by_id(estimate_id)
        if not estimate:
            logger.warning("Estimate not found", extra={"estimate_id": estimate_id})
            raise NotFoundError(resource_type="estimate", resource_id=estimate_id)
        return estimate
