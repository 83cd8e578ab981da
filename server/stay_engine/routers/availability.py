"""Availability router for date checks."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.catalog_client import CatalogClient
from ..core.dependencies import CatalogClientDependency, DatabaseSession
from ..core.exceptions import ProblemDetailsException
from ..schemas.availability import (
    AvailabilityResult,
    CheckAvailabilityRequest,
    UnavailableDates,
    UnavailableDatesRequest,
)
from ..services.availability_service import AvailabilityService
from ..services.package_service import PackageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/availability", tags=["availability"])


@router.post("/check", response_model=AvailabilityResult)
async def check_availability(
    request: CheckAvailabilityRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency
) -> JSONResponse:
    """
    Check whether a date range is free on a property.

    When a package reference is given its stay bounds shape the suggested
    alternatives.
    """
    try:
        min_nights = max_nights = None
        if request.package_ref:
            resolution = await PackageService(db, catalog_client).resolve_package(
                request.property_id, request.package_ref
            )
            min_nights = resolution.descriptor.min_nights
            max_nights = resolution.descriptor.max_nights

        result = await AvailabilityService(db).check_availability(
            request.property_id,
            request.from_date,
            request.to_date,
            exclude_booking_id=request.exclude_booking_id,
            min_nights=min_nights,
            max_nights=max_nights,
        )
        return JSONResponse(status_code=200, content=result.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error checking availability",
            extra={"property_id": request.property_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/unavailable-dates", response_model=UnavailableDates)
async def unavailable_dates(
    request: UnavailableDatesRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """List the booked nights of a property."""
    try:
        dates = await AvailabilityService(db).get_unavailable_dates(request.property_id)
        response_data = UnavailableDates(property_id=request.property_id, dates=dates)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing unavailable dates",
            extra={"property_id": request.property_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
