"""Locally defined package model."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, Float, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from ..schemas.package import PackageCategory
from ._common import new_id, utcnow

if TYPE_CHECKING:
    from .property import Property


class LocalPackage(Base):
    """Package defined by a property owner."""

    __tablename__ = "packages"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    property_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[PackageCategory] = mapped_column(
        String(20),
        nullable=False,
        default=PackageCategory.STANDARD
    )
    multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    base_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Payment provider identifiers; the legacy one predates the current provider
    external_product_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    legacy_product_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("multiplier > 0", name="ck_package_multiplier_positive"),
        CheckConstraint("min_nights IS NULL OR min_nights >= 1", name="ck_package_min_nights_positive"),
        CheckConstraint(
            "max_nights IS NULL OR min_nights IS NULL OR max_nights >= min_nights",
            name="ck_package_nights_ordered"
        ),
    )

    property: Mapped["Property"] = relationship("Property", back_populates="packages")

    def __repr__(self) -> str:
        return (
            f"<LocalPackage(id={self.id}, name='{self.name}', category={self.category}, "
            f"enabled={self.is_enabled})>"
        )
