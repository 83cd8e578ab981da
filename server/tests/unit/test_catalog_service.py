"""Unit tests for catalog aggregation."""

from decimal import Decimal

import pytest

from stay_engine.clients.catalog_client import CachingCatalogClient, StaticCatalogClient
from stay_engine.core.exceptions import NotFoundError
from stay_engine.schemas.package import (
    AddPackageRequest,
    CreatePropertyRequest,
    DurationUnit,
    ExternalProduct,
    PackageCategory,
    PackageOrigin,
    SetOverrideRequest,
)
from stay_engine.services.catalog_service import (
    CatalogService,
    descriptor_from_product,
    product_nights,
)
from stay_engine.services.property_service import PropertyService


@pytest.mark.parametrize("period,count,nights", [
    (DurationUnit.HOUR, 3, 1),
    (DurationUnit.DAY, 3, 3),
    (DurationUnit.WEEK, 2, 14),
    (DurationUnit.MONTH, 1, 30),
    (DurationUnit.YEAR, 1, 365),
    (None, 4, 4),
])
def test_product_nights(period, count, nights):
    assert product_nights(period, count) == nights


def test_hourly_product_is_tagged():
    product = ExternalProduct(id="hot_tub", title="Hot Tub", price=Decimal("30"), period="hour")
    descriptor = descriptor_from_product(product)
    assert descriptor.is_hourly is True
    assert descriptor.is_fixed_duration is True
    assert descriptor.min_nights == descriptor.max_nights == 1


def test_external_descriptor_shape(weekly_product):
    descriptor = descriptor_from_product(weekly_product)
    assert descriptor.origin == PackageOrigin.EXTERNAL
    assert descriptor.external_product_id == "ext_weekly"
    assert descriptor.min_nights == descriptor.max_nights == 7
    assert descriptor.base_rate == Decimal("500")
    assert descriptor.multiplier == 1.0
    assert descriptor.is_hourly is False
    assert descriptor.features == ("Host on call", "Weekly clean")


@pytest.mark.asyncio
async def test_aggregate_local_then_external(test_session, scenario, catalog_client):
    snapshot = await CatalogService(test_session, catalog_client).aggregate(scenario.property_id)

    assert [d.id for d in snapshot.descriptors] == ["std", "ext_weekly"]
    assert [d.origin for d in snapshot.descriptors] == [PackageOrigin.LOCAL, PackageOrigin.EXTERNAL]
    assert all(d.enabled for d in snapshot.descriptors)
    assert snapshot.degraded is False


@pytest.mark.asyncio
async def test_external_products_default_to_disabled(test_session, catalog_client):
    prop = await PropertyService(test_session).create_property(CreatePropertyRequest(name="Cabin"))

    snapshot = await CatalogService(test_session, catalog_client).aggregate(prop.id)
    [descriptor] = snapshot.descriptors
    assert descriptor.id == "ext_weekly"
    assert descriptor.enabled is False


@pytest.mark.asyncio
async def test_degrades_to_local_packages(test_session, scenario, failing_catalog_client):
    snapshot = await CatalogService(test_session, failing_catalog_client).aggregate(scenario.property_id)

    assert [d.id for d in snapshot.descriptors] == ["std"]
    assert snapshot.degraded is True


@pytest.mark.asyncio
async def test_unknown_property(test_session, catalog_client):
    with pytest.raises(NotFoundError):
        await CatalogService(test_session, catalog_client).aggregate("missing")


@pytest.mark.asyncio
async def test_legacy_product_id_and_rate_fallbacks(test_session):
    service = PropertyService(test_session)
    prop = await service.create_property(CreatePropertyRequest(name="Loft", base_rate=Decimal("80")))
    await service.add_package(AddPackageRequest(
        property_id=prop.id,
        id="legacy",
        name="Legacy Stay",
        legacy_product_id="rc_legacy",
    ))
    await service.add_package(AddPackageRequest(
        property_id=prop.id,
        id="current",
        name="Current Stay",
        base_rate=Decimal("120"),
        external_product_id="yc_current",
        legacy_product_id="rc_old",
    ))

    snapshot = await CatalogService(test_session, StaticCatalogClient()).aggregate(prop.id)
    by_id = {d.id: d for d in snapshot.descriptors}

    assert by_id["legacy"].external_product_id == "rc_legacy"
    assert by_id["legacy"].base_rate == Decimal("80")
    assert by_id["current"].external_product_id == "yc_current"
    assert by_id["current"].canonical_id == "yc_current"
    assert by_id["current"].base_rate == Decimal("120")


@pytest.mark.asyncio
async def test_override_edit_visible_on_next_aggregation(test_session, scenario, catalog_client):
    """Overrides are read fresh even when the external catalog is cached."""
    cached = CachingCatalogClient(catalog_client, ttl_seconds=60)
    service = CatalogService(test_session, cached)

    before = await service.aggregate(scenario.property_id)
    assert before.descriptors[0].display_name == "Standard Stay"

    await PropertyService(test_session).set_override(SetOverrideRequest(
        property_id=scenario.property_id,
        package_ref="std",
        custom_name="Garden Stay",
    ))

    after = await service.aggregate(scenario.property_id)
    assert after.descriptors[0].display_name == "Garden Stay"
    assert after.descriptors[0].category == PackageCategory.STANDARD
