"""Booking model definition."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ..schemas.estimate import PaymentStatus
from ._common import new_id, utcnow


class Booking(Base):
    """Paid reservation; its dates form the property's committed availability interval."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    estimate_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("estimates.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        index=True
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    property_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    from_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    to_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    package_id: Mapped[str] = mapped_column(String(128), nullable=False)
    canonical_package_id: Mapped[str] = mapped_column(String(128), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PAID,
        index=True
    )
    guests: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("to_date > from_date", name="ck_booking_dates_ordered"),
        CheckConstraint("total >= 0", name="ck_booking_total_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, "
            f"{self.from_date}..{self.to_date}, status={self.payment_status})>"
        )
