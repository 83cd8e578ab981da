"""Package listing and resolution for a property."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.catalog_client import CatalogClient
from ..core.exceptions import CatalogUnavailableError, PackageNotFoundError
from ..core.observability import metrics_collector
from ..schemas.package import EntitlementTier, PackageCategory, PackageDescriptor, PackageList
from .catalog_service import CatalogService, CatalogSnapshot
from .entitlement_service import filter_visible
from .identity_service import Resolution, resolve_reference

logger = logging.getLogger(__name__)


class PackageService:
    """Service exposing the catalog of a property to callers."""

    def __init__(self, db: AsyncSession, catalog_client: CatalogClient):
        self.db = db
        self.catalog_service = CatalogService(db, catalog_client)

    async def get_snapshot(self, property_id: str) -> CatalogSnapshot:
        """Aggregate and override-resolve the catalog of a property."""
        return await self.catalog_service.aggregate(property_id)

    async def list_visible_packages(self, property_id: str, tier: EntitlementTier) -> PackageList:
        """
        List the packages a customer of the given tier may browse.

        Args:
            property_id: Property to list
            tier: Customer entitlement tier

        Returns:
            Enabled, non-addon packages visible to the tier

        Raises:
            NotFoundError: If the property does not exist
        """
        snapshot = await self.get_snapshot(property_id)
        packages = filter_visible(snapshot.descriptors, tier)

        logger.info(
            "Listed visible packages",
            extra={
                "property_id": property_id,
                "tier": tier.value,
                "count": len(packages),
                "catalog_degraded": snapshot.degraded
            }
        )

        return PackageList(packages=packages, total=len(packages), catalog_degraded=snapshot.degraded)

    async def list_visible_addons(self, property_id: str) -> PackageList:
        """List the enabled addons of a property, regardless of entitlement."""
        snapshot = await self.get_snapshot(property_id)
        addons = [
            d for d in snapshot.descriptors
            if d.enabled and d.category == PackageCategory.ADDON
        ]
        return PackageList(packages=addons, total=len(addons), catalog_degraded=snapshot.degraded)

    def resolve_in_snapshot(
        self,
        snapshot: CatalogSnapshot,
        ref: str,
        previous: PackageDescriptor | None = None,
    ) -> Resolution:
        """
        Resolve a reference against an already aggregated catalog.

        Raises:
            PackageNotFoundError: If nothing matches and there is no previous package
            CatalogUnavailableError: If nothing matches while the external catalog is down,
                even when a previous package could be kept
        """
        resolution = resolve_reference(ref, snapshot.descriptors, previous=previous)
        if resolution is not None and resolution.preserved and snapshot.degraded:
            # A miss is only a removed package when the whole catalog was read
            resolution = None
        if resolution is None:
            logger.warning(
                "Package reference could not be resolved",
                extra={
                    "property_id": snapshot.property_id,
                    "ref": ref,
                    "catalog_degraded": snapshot.degraded
                }
            )
            if snapshot.degraded:
                raise CatalogUnavailableError(
                    detail=f"Package '{ref}' may be an external product and the catalog is unreachable"
                )
            raise PackageNotFoundError(package_ref=ref, property_id=snapshot.property_id)

        metrics_collector.record_resolution(resolution.matched_by)
        logger.debug(
            "Package reference resolved",
            extra={
                "property_id": snapshot.property_id,
                "ref": ref,
                "package_id": resolution.descriptor.id,
                "matched_by": resolution.matched_by
            }
        )
        return resolution

    async def resolve_package(
        self,
        property_id: str,
        ref: str,
        previous: PackageDescriptor | None = None,
    ) -> Resolution:
        """
        Resolve a package reference for a property.

        Args:
            property_id: Property the reference belongs to
            ref: Package ID, external product ID or legacy name
            previous: Package an updated record was previously resolved to

        Returns:
            Resolution with the matched descriptor and rule

        Raises:
            NotFoundError: If the property does not exist
            PackageNotFoundError: If nothing matches on a create path
            CatalogUnavailableError: If nothing matches while the external catalog is down
        """
        snapshot = await self.get_snapshot(property_id)
        return self.resolve_in_snapshot(snapshot, ref, previous=previous)
