"""Estimate router for quotes and payment confirmation."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.catalog_client import CatalogClient
from ..core.dependencies import CatalogClientDependency, DatabaseSession, RequiredCustomer
from ..core.exceptions import ProblemDetailsException
from ..schemas.booking import Booking
from ..schemas.estimate import Estimate, EstimateActionRequest, QuoteRequest
from ..services.estimate_service import EstimateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/estimate", tags=["estimate"])


@router.post("/quote", response_model=Estimate)
async def quote(
    request: QuoteRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency,
    customer_id: str = RequiredCustomer
) -> JSONResponse:
    """
    Quote a stay.

    Repeated quotes for the same property update the caller's pending
    estimate instead of creating new ones.
    """
    try:
        estimate, available = await EstimateService(db, catalog_client).quote(customer_id, request)
        response_data = Estimate.model_validate(estimate).model_copy(update={"dates_available": available})
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error quoting stay",
            extra={
                "customer_id": customer_id,
                "property_id": request.property_id,
                "package_ref": request.package_ref,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/confirm-payment", response_model=Booking)
async def confirm_payment(
    request: EstimateActionRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency
) -> JSONResponse:
    """
    Materialize the booking of a paid estimate.

    Confirming an estimate twice returns the same booking.
    """
    try:
        booking = await EstimateService(db, catalog_client).confirm_payment(request.estimate_id)
        response_data = Booking.model_validate(booking)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error confirming payment",
            extra={"estimate_id": request.estimate_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/cancel", response_model=Estimate)
async def cancel_estimate(
    request: EstimateActionRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency
) -> JSONResponse:
    """Cancel an unpaid estimate."""
    try:
        estimate = await EstimateService(db, catalog_client).cancel_estimate(request.estimate_id)
        response_data = Estimate.model_validate(estimate)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error cancelling estimate",
            extra={"estimate_id": request.estimate_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/get", response_model=Estimate)
async def get_estimate(
    request: EstimateActionRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency
) -> JSONResponse:
    """Get estimate details."""
    try:
        estimate = await EstimateService(db, catalog_client).get_estimate_by_id_or_raise(request.estimate_id)
        response_data = Estimate.model_validate(estimate)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error retrieving estimate",
            extra={"estimate_id": request.estimate_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
