"""Models module exporting all database models."""

from .booking import Booking
from .estimate import Estimate
from .package import LocalPackage
from .property import PackageSetting, Property
from .subscription import SubscriptionTransaction

__all__ = [
    # Catalog entities
    "Property",
    "PackageSetting",
    "LocalPackage",

    # Quote and reservation entities
    "Estimate",
    "Booking",

    # Entitlement source
    "SubscriptionTransaction",
]
