"""Booking router for booking operations."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..core.exceptions import ProblemDetailsException
from ..schemas.booking import Booking, CancelBookingRequest, GetBookingRequest, RescheduleBookingRequest
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Get booking details."""
    try:
        booking = await BookingService(db).get_booking(request)
        response_data = Booking.model_validate(booking)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error retrieving booking",
            extra={"booking_id": request.booking_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/reschedule", response_model=Booking)
async def reschedule_booking(
    request: RescheduleBookingRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Move a booking to new dates if they are free."""
    try:
        booking = await BookingService(db).reschedule_booking(request)
        response_data = Booking.model_validate(booking)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error rescheduling booking",
            extra={
                "booking_id": request.booking_id,
                "from_date": request.from_date.isoformat(),
                "to_date": request.to_date.isoformat(),
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/cancel", response_model=Booking)
async def cancel_booking(
    request: CancelBookingRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """
    Cancel a booking.

    Cancelling twice returns the cancelled booking.
    """
    try:
        booking = await BookingService(db).cancel_booking(request)
        response_data = Booking.model_validate(booking)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error cancelling booking",
            extra={"booking_id": request.booking_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
