"""Owner operations: properties, local packages and override settings."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.package import LocalPackage
from ..models.property import PackageSetting, Property
from ..schemas.package import AddPackageRequest, CreatePropertyRequest, SetOverrideRequest

logger = logging.getLogger(__name__)


class PropertyService:
    """Service for property owner operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_property(self, request: CreatePropertyRequest) -> Property:
        """Create a property."""
        prop = Property(name=request.name, base_rate=request.base_rate)
        self.db.add(prop)
        await self.db.commit()
        await self.db.refresh(prop)

        logger.info("Property created", extra={"property_id": prop.id, "name": prop.name})
        return prop

    async def get_property_by_id(self, property_id: str) -> Property | None:
        """Get property by ID."""
        return await self.db.get(Property, property_id)

    async def get_property_by_id_or_raise(self, property_id: str) -> Property:
        """Get property by ID or raise NotFoundError."""
        prop = await self.get_property_by_id(property_id)
        if not prop:
            logger.warning("Property not found", extra={"property_id": property_id})
            raise NotFoundError(resource_type="property", resource_id=property_id)
        return prop

    async def add_package(self, request: AddPackageRequest) -> LocalPackage:
        """
        Define a local package on a property.

        Args:
            request: Package definition

        Returns:
            Created package

        Raises:
            NotFoundError: If the property does not exist
            ValidationError: If the stay bounds are inverted
            ConflictError: If the explicit package ID is already taken
        """
        await self.get_property_by_id_or_raise(request.property_id)

        if (
            request.min_nights is not None
            and request.max_nights is not None
            and request.max_nights < request.min_nights
        ):
            raise ValidationError(
                detail="max_nights must not be lower than min_nights",
                errors={"max_nights": request.max_nights, "min_nights": request.min_nights},
            )

        if request.id and await self.db.get(LocalPackage, request.id) is not None:
            raise ConflictError(
                detail=f"Package {request.id} already exists",
                conflicting_resource={"package_id": request.id},
            )

        package = LocalPackage(
            property_id=request.property_id,
            name=request.name,
            description=request.description,
            category=request.category,
            multiplier=request.multiplier,
            base_rate=request.base_rate,
            min_nights=request.min_nights,
            max_nights=request.max_nights,
            features=list(request.features),
            external_product_id=request.external_product_id,
            legacy_product_id=request.legacy_product_id,
            is_enabled=request.is_enabled,
        )
        if request.id:
            package.id = request.id

        self.db.add(package)
        await self.db.commit()
        await self.db.refresh(package)

        logger.info(
            "Package added",
            extra={
                "property_id": request.property_id,
                "package_id": package.id,
                "category": request.category.value
            }
        )
        return package

    async def set_override(self, request: SetOverrideRequest) -> PackageSetting:
        """
        Create or replace the override of one package on a property.

        Raises:
            NotFoundError: If the property does not exist
        """
        await self.get_property_by_id_or_raise(request.property_id)

        stmt = select(PackageSetting).where(
            PackageSetting.property_id == request.property_id,
            PackageSetting.package_ref == request.package_ref,
        )
        result = await self.db.execute(stmt)
        setting = result.scalar_one_or_none()

        if setting is None:
            position_stmt = select(func.count()).select_from(PackageSetting).where(
                PackageSetting.property_id == request.property_id
            )
            position = (await self.db.execute(position_stmt)).scalar_one()
            setting = PackageSetting(
                property_id=request.property_id,
                package_ref=request.package_ref,
                position=position,
            )
            self.db.add(setting)

        setting.custom_name = request.custom_name
        setting.enabled = request.enabled

        await self.db.commit()
        await self.db.refresh(setting)

        logger.info(
            "Package override saved",
            extra={
                "property_id": request.property_id,
                "package_ref": request.package_ref,
                "custom_name": request.custom_name,
                "enabled": request.enabled
            }
        )
        return setting
