"""Property router for owner operations."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..core.exceptions import ProblemDetailsException
from ..schemas.package import (
    AddPackageRequest,
    CreatePropertyRequest,
    OverrideSetting,
    Property,
    SetOverrideRequest,
)
from ..services.property_service import PropertyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/property", tags=["property"])


@router.post("/create", response_model=Property)
async def create_property(
    request: CreatePropertyRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Create a property."""
    try:
        prop = await PropertyService(db).create_property(request)
        response_data = Property.model_validate(prop)
        return JSONResponse(status_code=201, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error creating property",
            extra={"name": request.name, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/add-package")
async def add_package(
    request: AddPackageRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Define a local package on a property."""
    try:
        package = await PropertyService(db).add_package(request)
        return JSONResponse(
            status_code=201,
            content={
                "id": package.id,
                "property_id": package.property_id,
                "name": package.name,
                "category": package.category,
                "is_enabled": package.is_enabled,
            }
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error adding package",
            extra={"property_id": request.property_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/set-override", response_model=OverrideSetting)
async def set_override(
    request: SetOverrideRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Create or replace a property's override of one package."""
    try:
        setting = await PropertyService(db).set_override(request)
        response_data = OverrideSetting.model_validate(setting)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error saving override",
            extra={
                "property_id": request.property_id,
                "package_ref": request.package_ref,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
