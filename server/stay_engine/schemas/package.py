"""Package catalog schemas shared by the engine components."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PackageCategory(str, Enum):
    """Package category enumeration."""
    STANDARD = "standard"
    HOSTED = "hosted"
    ADDON = "addon"
    SPECIAL = "special"


class PackageOrigin(str, Enum):
    """Which catalog a package descriptor was built from."""
    LOCAL = "local"
    EXTERNAL = "external"


class DurationUnit(str, Enum):
    """Billing period units used by the external catalog."""
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class EntitlementTier(str, Enum):
    """Customer subscription tier gating package visibility."""
    NONE = "none"
    STANDARD = "standard"
    PRO = "pro"


class ExternalProduct(BaseModel):
    """Sellable product as published by the payment provider catalog."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Provider product ID")
    title: str = Field(..., description="Product title")
    description: str | None = Field(None, description="Product description")
    price: Decimal = Field(..., ge=0, description="Price per period")
    period: DurationUnit | None = Field(None, description="Billing period unit")
    period_count: int = Field(1, ge=1, alias="periodCount", description="Number of periods")
    category: PackageCategory = Field(PackageCategory.STANDARD, description="Package category")
    enabled: bool = Field(True, alias="isEnabled", description="Provider-level enabled flag")
    features: list[str] = Field(default_factory=list, description="Feature bullet points")


class PackageDescriptor(BaseModel):
    """Unified view of a sellable package regardless of origin."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="ID, unique within its origin")
    original_name: str = Field(..., description="Name as defined at the source")
    display_name: str = Field(..., description="Override name or original name")
    description: str | None = Field(None, description="Package description")
    category: PackageCategory = Field(PackageCategory.STANDARD, description="Package category")
    multiplier: float = Field(1.0, gt=0, description="Price multiplier")
    base_rate: Decimal = Field(..., ge=0, description="Rate per night (or per unit for fixed packages)")
    min_nights: int | None = Field(None, ge=1, description="Minimum stay length")
    max_nights: int | None = Field(None, ge=1, description="Maximum stay length")
    features: tuple[str, ...] = Field(default_factory=tuple, description="Ordered feature list")
    enabled: bool = Field(True, description="Effective enabled flag")
    external_product_id: str | None = Field(None, description="Secondary ID used for cross-catalog matching")
    origin: PackageOrigin = Field(..., description="Source catalog")
    is_hourly: bool = Field(False, description="One-unit product billed hourly rather than nightly")

    @property
    def is_fixed_duration(self) -> bool:
        """Addons and hourly products are priced per unit, not per night of the stay."""
        return self.category == PackageCategory.ADDON or self.is_hourly

    @property
    def canonical_id(self) -> str:
        """Identifier recorded on bookings: the cross-catalog ID when there is one."""
        return self.external_product_id or self.id


class OverrideSetting(BaseModel):
    """Per-property customization layered over a catalog package."""

    package_ref: str = Field(..., min_length=1, description="Descriptor id or external product id")
    custom_name: str | None = Field(None, description="Display name override")
    enabled: bool | None = Field(None, description="Enabled override; absent means use the default")

    class Config:
        from_attributes = True


class CreatePropertyRequest(BaseModel):
    """Request schema for creating a property."""

    name: str = Field(..., min_length=1, max_length=255, description="Property name")
    base_rate: Decimal | None = Field(None, ge=0, description="Fallback nightly rate")


class Property(BaseModel):
    """Property response schema."""

    id: str = Field(..., description="Property ID")
    name: str = Field(..., description="Property name")
    base_rate: Decimal | None = Field(None, description="Fallback nightly rate")

    class Config:
        from_attributes = True


class AddPackageRequest(BaseModel):
    """Request schema for defining a local package on a property."""

    property_id: str = Field(..., description="Owning property")
    id: str | None = Field(None, min_length=1, max_length=64, description="Optional explicit package ID")
    name: str = Field(..., min_length=1, max_length=255, description="Package name")
    description: str | None = Field(None, max_length=2000, description="Package description")
    category: PackageCategory = Field(PackageCategory.STANDARD, description="Package category")
    multiplier: float = Field(1.0, ge=0.1, le=3.0, description="Price multiplier")
    base_rate: Decimal | None = Field(None, ge=0, description="Nightly rate")
    min_nights: int | None = Field(1, ge=1, description="Minimum stay length")
    max_nights: int | None = Field(7, ge=1, description="Maximum stay length")
    features: list[str] = Field(default_factory=list, description="Feature bullet points")
    external_product_id: str | None = Field(None, description="Payment provider product ID")
    legacy_product_id: str | None = Field(None, description="Deprecated provider product ID")
    is_enabled: bool = Field(True, description="Source-level enabled flag")


class SetOverrideRequest(OverrideSetting):
    """Request schema for upserting a property's override of a package."""

    property_id: str = Field(..., description="Property the override belongs to")


class ListPackagesRequest(BaseModel):
    """Request schema for listing packages visible on a property."""

    property_id: str = Field(..., description="Property to list packages for")


class ResolvePackageRequest(BaseModel):
    """Request schema for resolving a package reference."""

    property_id: str = Field(..., description="Property the reference belongs to")
    ref: str = Field(..., min_length=1, description="Package ID, external product ID or legacy name")


class PackageList(BaseModel):
    """Response schema for package listings."""

    packages: list[PackageDescriptor] = Field(..., description="Visible packages")
    total: int = Field(..., ge=0, description="Number of packages")
    catalog_degraded: bool = Field(False, description="True when external products could not be fetched")
