"""Property and per-property package setting models."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from ._common import new_id, utcnow

if TYPE_CHECKING:
    from .package import LocalPackage


class Property(Base):
    """Rentable property owning local packages and override settings."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    # Relationships
    packages: Mapped[list["LocalPackage"]] = relationship(
        "LocalPackage",
        back_populates="property",
        cascade="all, delete-orphan"
    )
    package_settings: Mapped[list["PackageSetting"]] = relationship(
        "PackageSetting",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PackageSetting.position"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name='{self.name}')>"


class PackageSetting(Base):
    """Override of a local package or external product on one property."""

    __tablename__ = "package_settings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    property_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    package_ref: Mapped[str] = mapped_column(String(128), nullable=False)
    custom_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # NULL means "not configured": the origin's default applies
    enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("property_id", "package_ref", name="uq_package_setting_property_ref"),
    )

    property: Mapped["Property"] = relationship("Property", back_populates="package_settings")

    def __repr__(self) -> str:
        return (
            f"<PackageSetting(property_id={self.property_id}, package_ref='{self.package_ref}', "
            f"enabled={self.enabled})>"
        )
