"""Estimate model definition."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, Float, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ..schemas.estimate import PaymentStatus
from ..schemas.package import PackageCategory, PackageOrigin
from ._common import new_id, utcnow


class Estimate(Base):
    """Provisional price quote for a stay, mutable while unpaid."""

    __tablename__ = "estimates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    property_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Snapshot of the resolved package, kept so the quote survives catalog edits
    resolved_package_id: Mapped[str] = mapped_column(String(128), nullable=False)
    package_origin: Mapped[PackageOrigin] = mapped_column(String(20), nullable=False)
    package_category: Mapped[PackageCategory] = mapped_column(String(20), nullable=False)
    canonical_package_id: Mapped[str] = mapped_column(String(128), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_hourly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_is_explicit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.UNPAID,
        index=True
    )
    guests: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("to_date > from_date", name="ck_estimate_dates_ordered"),
        CheckConstraint("total >= 0", name="ck_estimate_total_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Estimate(id={self.id}, customer_id={self.customer_id}, property_id={self.property_id}, "
            f"{self.from_date}..{self.to_date}, status={self.payment_status})>"
        )
