"""Customer entitlement lookup and tier-based package visibility."""

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.subscription import SubscriptionTransaction
from ..schemas.package import EntitlementTier, PackageCategory, PackageDescriptor

logger = logging.getLogger(__name__)


VISIBLE_CATEGORIES: dict[EntitlementTier, frozenset[PackageCategory]] = {
    EntitlementTier.NONE: frozenset({PackageCategory.HOSTED, PackageCategory.SPECIAL}),
    EntitlementTier.STANDARD: frozenset({
        PackageCategory.STANDARD,
        PackageCategory.HOSTED,
        PackageCategory.SPECIAL,
    }),
    EntitlementTier.PRO: frozenset({
        PackageCategory.STANDARD,
        PackageCategory.HOSTED,
        PackageCategory.SPECIAL,
    }),
}

# Number of recent completed subscription transactions inspected per lookup
TRANSACTION_LOOKBACK = 10


def is_visible(descriptor: PackageDescriptor, tier: EntitlementTier) -> bool:
    """Addons are never listed; other categories widen with the tier."""
    if descriptor.category == PackageCategory.ADDON:
        return False
    return descriptor.category in VISIBLE_CATEGORIES[tier]


def filter_visible(
    descriptors: Iterable[PackageDescriptor],
    tier: EntitlementTier,
) -> list[PackageDescriptor]:
    """Keep the enabled descriptors a customer of the given tier may browse."""
    return [d for d in descriptors if d.enabled and is_visible(d, tier)]


def tier_from_label(label: str | None) -> EntitlementTier:
    """Map a transaction's entitlement label onto a tier."""
    if label and label.strip().lower() == EntitlementTier.PRO.value:
        return EntitlementTier.PRO
    return EntitlementTier.STANDARD


class EntitlementService:
    """Service deriving a customer's tier from subscription transactions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_entitlement_tier(
        self,
        customer_id: str | None,
        now: datetime | None = None,
    ) -> EntitlementTier:
        """
        Get the entitlement tier of a customer.

        The newest completed subscription transactions are scanned and the
        first one without an expiry, or expiring in the future, is active.

        Args:
            customer_id: Customer ID, None for anonymous callers
            now: Reference time, defaults to the current UTC time

        Returns:
            The customer's tier
        """
        if not customer_id:
            return EntitlementTier.NONE

        now = now or datetime.utcnow()
        stmt = (
            select(SubscriptionTransaction)
            .where(
                SubscriptionTransaction.customer_id == customer_id,
                SubscriptionTransaction.status == "completed",
                SubscriptionTransaction.intent == "subscription",
            )
            .order_by(SubscriptionTransaction.completed_at.desc())
            .limit(TRANSACTION_LOOKBACK)
        )
        result = await self.db.execute(stmt)

        for transaction in result.scalars():
            if transaction.expires_at is None or transaction.expires_at > now:
                tier = tier_from_label(transaction.entitlement)
                logger.debug(
                    "Active subscription found",
                    extra={
                        "customer_id": customer_id,
                        "transaction_id": transaction.id,
                        "tier": tier.value
                    }
                )
                return tier

        return EntitlementTier.NONE
