"""FastAPI routers package."""

from .availability import router as availability_router
from .booking import router as booking_router
from .estimate import router as estimate_router
from .health import router as health_router
from .metrics import router as metrics_router
from .package import router as package_router
from .property import router as property_router

__all__ = [
    "availability_router",
    "booking_router",
    "estimate_router",
    "health_router",
    "metrics_router",
    "package_router",
    "property_router",
]
