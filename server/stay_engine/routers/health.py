"""Health check router."""

import logging
from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.config import settings
from ..core.observability import SERVICE_NAME
from ..schemas.health import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping() -> JSONResponse:
    """Liveness ping for RPC clients."""
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        service=SERVICE_NAME,
        version=__version__,
        timestamp=datetime.utcnow(),
        external_catalog=bool(settings.external_catalog_url),
    )

    logger.debug("Health ping", extra={"timestamp": response_data.timestamp.isoformat()})

    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
