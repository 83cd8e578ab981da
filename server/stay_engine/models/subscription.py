"""Subscription transaction model used to derive entitlement tiers."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._common import new_id, utcnow


class SubscriptionTransaction(Base):
    """Payment provider transaction recorded against a customer."""

    __tablename__ = "subscription_transactions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    intent: Mapped[str] = mapped_column(String(32), nullable=False, default="subscription")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    entitlement: Mapped[str | None] = mapped_column(String(32), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return (
            f"<SubscriptionTransaction(id={self.id}, customer_id={self.customer_id}, "
            f"status={self.status}, entitlement={self.entitlement})>"
        )
