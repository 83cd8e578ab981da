"""Health-related Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"


class HealthResponse(BaseModel):
    """Response of the RPC health ping."""

    status: HealthStatus = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Engine version")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    external_catalog: bool = Field(..., description="Whether an external product catalog is configured")
