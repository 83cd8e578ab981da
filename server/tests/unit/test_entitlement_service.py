"""Unit tests for entitlement tiers and package visibility."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from stay_engine.models import SubscriptionTransaction
from stay_engine.schemas.package import (
    EntitlementTier,
    PackageCategory,
    PackageDescriptor,
    PackageOrigin,
)
from stay_engine.services.entitlement_service import (
    EntitlementService,
    filter_visible,
    tier_from_label,
)


def make(category: PackageCategory, enabled: bool = True) -> PackageDescriptor:
    return PackageDescriptor(
        id=f"pkg_{category.value}",
        original_name=category.value,
        display_name=category.value,
        category=category,
        base_rate=Decimal("100"),
        enabled=enabled,
        origin=PackageOrigin.LOCAL,
    )


ALL = [make(category) for category in PackageCategory]


def categories(descriptors):
    return {d.category for d in descriptors}


def test_none_tier_sees_hosted_and_special():
    assert categories(filter_visible(ALL, EntitlementTier.NONE)) == {
        PackageCategory.HOSTED,
        PackageCategory.SPECIAL,
    }


def test_standard_tier_adds_standard():
    assert categories(filter_visible(ALL, EntitlementTier.STANDARD)) == {
        PackageCategory.STANDARD,
        PackageCategory.HOSTED,
        PackageCategory.SPECIAL,
    }


def test_addons_never_listed():
    for tier in EntitlementTier:
        assert PackageCategory.ADDON not in categories(filter_visible(ALL, tier))


def test_disabled_packages_hidden():
    assert filter_visible([make(PackageCategory.HOSTED, enabled=False)], EntitlementTier.PRO) == []


@pytest.mark.parametrize("label,tier", [
    ("pro", EntitlementTier.PRO),
    ("PRO", EntitlementTier.PRO),
    ("standard", EntitlementTier.STANDARD),
    ("basic", EntitlementTier.STANDARD),
    (None, EntitlementTier.STANDARD),
])
def test_tier_from_label(label, tier):
    assert tier_from_label(label) == tier


def transaction(customer_id="customer-1", **overrides) -> SubscriptionTransaction:
    data = {
        "customer_id": customer_id,
        "intent": "subscription",
        "status": "completed",
        "entitlement": "standard",
        "completed_at": datetime(2024, 5, 1),
        "expires_at": None,
    }
    data.update(overrides)
    return SubscriptionTransaction(**data)


@pytest.mark.asyncio
async def test_anonymous_customer_has_no_tier(test_session):
    assert await EntitlementService(test_session).get_entitlement_tier(None) == EntitlementTier.NONE


@pytest.mark.asyncio
async def test_customer_without_transactions_has_no_tier(test_session):
    tier = await EntitlementService(test_session).get_entitlement_tier("customer-1")
    assert tier == EntitlementTier.NONE


@pytest.mark.asyncio
async def test_unexpired_pro_subscription(test_session):
    now = datetime(2024, 6, 1)
    test_session.add(transaction(entitlement="pro", expires_at=now + timedelta(days=30)))
    await test_session.commit()

    tier = await EntitlementService(test_session).get_entitlement_tier("customer-1", now=now)
    assert tier == EntitlementTier.PRO


@pytest.mark.asyncio
async def test_expired_subscription_is_ignored(test_session):
    now = datetime(2024, 6, 1)
    test_session.add(transaction(entitlement="pro", expires_at=now - timedelta(days=1)))
    await test_session.commit()

    tier = await EntitlementService(test_session).get_entitlement_tier("customer-1", now=now)
    assert tier == EntitlementTier.NONE


@pytest.mark.asyncio
async def test_newest_active_transaction_wins(test_session):
    now = datetime(2024, 6, 1)
    test_session.add_all([
        transaction(entitlement="pro", completed_at=datetime(2024, 1, 1), expires_at=None),
        transaction(entitlement="standard", completed_at=datetime(2024, 5, 1), expires_at=None),
    ])
    await test_session.commit()

    tier = await EntitlementService(test_session).get_entitlement_tier("customer-1", now=now)
    assert tier == EntitlementTier.STANDARD


@pytest.mark.asyncio
async def test_pending_and_non_subscription_transactions_ignored(test_session):
    test_session.add_all([
        transaction(status="pending", entitlement="pro"),
        transaction(intent="booking", entitlement="pro"),
        transaction(customer_id="someone-else", entitlement="pro"),
    ])
    await test_session.commit()

    tier = await EntitlementService(test_session).get_entitlement_tier("customer-1")
    assert tier == EntitlementTier.NONE
