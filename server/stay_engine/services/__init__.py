"""Service layer package."""

from .availability_service import AvailabilityService
from .booking_service import BookingService
from .catalog_service import CatalogService
from .entitlement_service import EntitlementService
from .estimate_service import EstimateService
from .package_service import PackageService
from .property_service import PropertyService

__all__ = [
    "AvailabilityService",
    "BookingService",
    "CatalogService",
    "EntitlementService",
    "EstimateService",
    "PackageService",
    "PropertyService",
]
