"""Catalog aggregation of local packages and external products."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..clients.catalog_client import CatalogClient
from ..core.config import settings
from ..core.exceptions import CatalogUnavailableError, NotFoundError
from ..core.observability import metrics_collector
from ..models.package import LocalPackage
from ..models.property import Property
from ..schemas.package import (
    DurationUnit,
    ExternalProduct,
    OverrideSetting,
    PackageDescriptor,
    PackageOrigin,
)
from .override_service import apply_overrides

logger = logging.getLogger(__name__)


def product_nights(period: DurationUnit | None, count: int) -> int:
    """Convert a billing period into nights."""
    count = count or 1
    if period == DurationUnit.HOUR:
        return 1
    if period == DurationUnit.WEEK:
        return count * 7
    if period == DurationUnit.MONTH:
        return count * 30
    if period == DurationUnit.YEAR:
        return count * 365
    return count


def descriptor_from_product(product: ExternalProduct) -> PackageDescriptor:
    """Normalize an external product into a descriptor."""
    nights = product_nights(product.period, product.period_count)
    return PackageDescriptor(
        id=product.id,
        original_name=product.title,
        display_name=product.title,
        description=product.description,
        category=product.category,
        multiplier=1.0,
        base_rate=product.price,
        min_nights=nights,
        max_nights=nights,
        features=tuple(product.features),
        enabled=product.enabled,
        external_product_id=product.id,
        origin=PackageOrigin.EXTERNAL,
        is_hourly=product.period == DurationUnit.HOUR and nights == 1,
    )


def descriptor_from_package(package: LocalPackage, fallback_rate: Decimal) -> PackageDescriptor:
    """Normalize a local package row into a descriptor."""
    return PackageDescriptor(
        id=package.id,
        original_name=package.name,
        display_name=package.name,
        description=package.description,
        category=package.category,
        multiplier=package.multiplier,
        base_rate=package.base_rate if package.base_rate is not None else fallback_rate,
        min_nights=package.min_nights,
        max_nights=package.max_nights,
        features=tuple(package.features or ()),
        enabled=package.is_enabled,
        external_product_id=package.external_product_id or package.legacy_product_id,
        origin=PackageOrigin.LOCAL,
    )


@dataclass(frozen=True)
class CatalogSnapshot:
    """Override-applied catalog of one property at one point in time."""

    property_id: str
    descriptors: list[PackageDescriptor]
    degraded: bool = False


class CatalogService:
    """Service aggregating the package catalog of a property."""

    def __init__(self, db: AsyncSession, catalog_client: CatalogClient):
        self.db = db
        self.catalog_client = catalog_client

    async def get_property(self, property_id: str) -> Property:
        """
        Get a property with its local packages and override settings loaded.

        Raises:
            NotFoundError: If the property does not exist
        """
        stmt = (
            select(Property)
            .options(selectinload(Property.packages), selectinload(Property.package_settings))
            .where(Property.id == property_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        prop = result.scalar_one_or_none()
        if not prop:
            logger.warning("Property not found", extra={"property_id": property_id})
            raise NotFoundError(resource_type="property", resource_id=property_id)
        return prop

    async def _fetch_external(self) -> list[ExternalProduct] | None:
        try:
            return await self.catalog_client.list_products()
        except CatalogUnavailableError as e:
            metrics_collector.record_catalog_failure()
            logger.warning(
                "External catalog unavailable, using local packages only",
                extra={"detail": e.problem_details.get("detail")}
            )
            return None

    async def aggregate(self, property_id: str) -> CatalogSnapshot:
        """
        Build the override-applied descriptor list of a property.

        Local packages come first, in creation order, followed by external
        products in catalog order. A failed external fetch degrades to local
        packages only and marks the snapshot as degraded.

        Args:
            property_id: Property to aggregate

        Returns:
            Catalog snapshot

        Raises:
            NotFoundError: If the property does not exist
        """
        prop, products = await asyncio.gather(
            self.get_property(property_id),
            self._fetch_external(),
        )

        fallback_rate = prop.base_rate if prop.base_rate is not None else settings.default_base_rate
        local = sorted(prop.packages, key=lambda p: (p.created_at, p.id))

        descriptors = [descriptor_from_package(package, fallback_rate) for package in local]
        if products is not None:
            descriptors.extend(descriptor_from_product(product) for product in products)

        overrides = [OverrideSetting.model_validate(setting) for setting in prop.package_settings]
        resolved = apply_overrides(descriptors, overrides)

        logger.debug(
            "Catalog aggregated",
            extra={
                "property_id": property_id,
                "local_count": len(local),
                "external_count": len(products) if products is not None else 0,
                "degraded": products is None
            }
        )

        return CatalogSnapshot(
            property_id=property_id,
            descriptors=resolved,
            degraded=products is None,
        )
