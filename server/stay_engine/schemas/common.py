"""Common Pydantic schemas."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class DateRange(BaseModel):
    """Half-open stay interval [start_date, end_date)."""

    start_date: date = Field(..., description="First night (ISO 8601)")
    end_date: date = Field(..., description="Check-out day, exclusive (ISO 8601)")
    nights: int = Field(..., ge=1, description="Number of nights in the range")


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")
