"""Package router for catalog listing and resolution."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.catalog_client import CatalogClient
from ..core.dependencies import CatalogClientDependency, CustomerTier, DatabaseSession
from ..core.exceptions import ProblemDetailsException
from ..schemas.package import (
    EntitlementTier,
    ListPackagesRequest,
    PackageDescriptor,
    PackageList,
    ResolvePackageRequest,
)
from ..services.package_service import PackageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/package", tags=["package"])


@router.post("/list", response_model=PackageList)
async def list_packages(
    request: ListPackagesRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency,
    tier: EntitlementTier = CustomerTier
) -> JSONResponse:
    """
    List the packages visible to the caller on a property.

    Anonymous callers see the ``none`` tier listing.
    """
    try:
        result = await PackageService(db, catalog_client).list_visible_packages(request.property_id, tier)
        return JSONResponse(status_code=200, content=result.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing packages",
            extra={"property_id": request.property_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/addons", response_model=PackageList)
async def list_addons(
    request: ListPackagesRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency
) -> JSONResponse:
    """List the addons offered during booking on a property."""
    try:
        result = await PackageService(db, catalog_client).list_visible_addons(request.property_id)
        return JSONResponse(status_code=200, content=result.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing addons",
            extra={"property_id": request.property_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/resolve", response_model=PackageDescriptor)
async def resolve_package(
    request: ResolvePackageRequest,
    db: AsyncSession = DatabaseSession,
    catalog_client: CatalogClient = CatalogClientDependency
) -> JSONResponse:
    """Resolve a package ID, external product ID or legacy name."""
    try:
        resolution = await PackageService(db, catalog_client).resolve_package(request.property_id, request.ref)
        content = resolution.descriptor.model_dump(mode="json")
        content["matched_by"] = resolution.matched_by
        return JSONResponse(status_code=200, content=content)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error resolving package",
            extra={"property_id": request.property_id, "ref": request.ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
