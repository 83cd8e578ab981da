"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from .estimate import Guest, PaymentStatus


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking."""

    booking_id: str = Field(..., description="Booking to retrieve")


class CancelBookingRequest(BaseModel):
    """Request schema for cancelling a booking."""

    booking_id: str = Field(..., description="Booking to cancel")


class RescheduleBookingRequest(BaseModel):
    """Request schema for moving a booking to new dates."""

    booking_id: str = Field(..., description="Booking to move")
    from_date: date = Field(..., description="New arrival date")
    to_date: date = Field(..., description="New departure date")


class Booking(BaseModel):
    """Booking response schema."""

    id: str = Field(..., description="Booking ID")
    estimate_id: str = Field(..., description="Estimate the booking was materialized from")
    title: str | None = Field(None, description="Booking title")
    customer_id: str = Field(..., description="Customer")
    property_id: str = Field(..., description="Booked property")
    from_date: date = Field(..., description="Arrival date")
    to_date: date = Field(..., description="Departure date")
    package_id: str = Field(..., description="Resolved descriptor ID")
    canonical_package_id: str = Field(..., description="Cross-catalog package ID")
    display_name: str = Field(..., description="Package name shown to the customer")
    total: Decimal = Field(..., ge=0, description="Amount paid")
    payment_status: PaymentStatus = Field(..., description="Payment status")
    guests: list[Guest] = Field(default_factory=list, description="Guests on the stay")
    created_at: datetime | None = Field(None, description="Materialization time")

    class Config:
        from_attributes = True
