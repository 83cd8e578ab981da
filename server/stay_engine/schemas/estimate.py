"""Estimate-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from .package import PackageCategory, PackageOrigin


class PaymentStatus(str, Enum):
    """Payment status shared by estimates and bookings."""
    UNPAID = "unpaid"
    PAID = "paid"
    CANCELLED = "cancelled"


class Guest(BaseModel):
    """Guest travelling on a stay."""

    name: str = Field(..., min_length=1, max_length=255, description="Guest name")
    email: str | None = Field(None, max_length=255, description="Guest email")


class QuoteRequest(BaseModel):
    """Request schema for quoting a stay."""

    property_id: str = Field(..., description="Property to stay at")
    from_date: date = Field(..., description="Arrival date (ISO 8601)")
    to_date: date = Field(..., description="Departure date (ISO 8601)")
    package_ref: str = Field(..., min_length=1, description="Package ID, external product ID or legacy name")
    total: Decimal | None = Field(None, ge=0, description="Manually adjusted total, trusted verbatim")
    title: str | None = Field(None, max_length=255, description="Estimate title")
    guests: list[Guest] = Field(default_factory=list, description="Guests on the stay")


class EstimateActionRequest(BaseModel):
    """Request schema for actions on a single estimate."""

    estimate_id: str = Field(..., description="Estimate to act on")


class Estimate(BaseModel):
    """Estimate response schema."""

    id: str = Field(..., description="Estimate ID")
    title: str | None = Field(None, description="Estimate title")
    customer_id: str = Field(..., description="Customer the quote belongs to")
    property_id: str = Field(..., description="Quoted property")
    from_date: date = Field(..., description="Arrival date")
    to_date: date = Field(..., description="Departure date")
    resolved_package_id: str = Field(..., description="Descriptor ID the quote resolved to")
    package_origin: PackageOrigin = Field(..., description="Catalog of the resolved package")
    package_category: PackageCategory = Field(..., description="Category of the resolved package")
    display_name: str = Field(..., description="Package name shown to the customer")
    total: Decimal = Field(..., ge=0, description="Quoted total")
    total_is_explicit: bool = Field(..., description="Whether the total was supplied by an operator")
    payment_status: PaymentStatus = Field(..., description="Payment status")
    guests: list[Guest] = Field(default_factory=list, description="Guests on the stay")
    updated_at: datetime | None = Field(None, description="Last modification time")
    dates_available: bool | None = Field(None, description="Whether the dates were free when quoted (advisory)")

    class Config:
        from_attributes = True
