"""Availability-related Pydantic schemas."""

from datetime import date

from pydantic import BaseModel, Field

from .common import DateRange


class CheckAvailabilityRequest(BaseModel):
    """Request schema for checking whether a property is free."""

    property_id: str = Field(..., description="Property to check")
    from_date: date = Field(..., description="Arrival date (ISO 8601)")
    to_date: date = Field(..., description="Departure date (ISO 8601)")
    exclude_booking_id: str | None = Field(None, description="Booking ignored when rescheduling it")
    package_ref: str | None = Field(None, description="Package whose stay bounds shape suggestions")


class AvailabilityResult(BaseModel):
    """Availability answer with alternatives when the dates are taken."""

    available: bool = Field(..., description="True when no booking overlaps the range")
    requested: DateRange = Field(..., description="Requested range")
    suggestions: list[DateRange] = Field(default_factory=list, description="Alternative free ranges")


class UnavailableDatesRequest(BaseModel):
    """Request schema for listing booked nights."""

    property_id: str = Field(..., description="Property to inspect")


class UnavailableDates(BaseModel):
    """Response schema listing booked nights."""

    property_id: str = Field(..., description="Inspected property")
    dates: list[date] = Field(..., description="Booked nights, ascending")
