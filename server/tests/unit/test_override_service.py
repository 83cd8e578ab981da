"""Unit tests for override resolution."""

from decimal import Decimal

from stay_engine.schemas.package import (
    OverrideSetting,
    PackageCategory,
    PackageDescriptor,
    PackageOrigin,
)
from stay_engine.services.override_service import apply_overrides, find_override


def local(id="std", enabled=True, external_product_id=None) -> PackageDescriptor:
    return PackageDescriptor(
        id=id,
        original_name=f"Local {id}",
        display_name=f"Local {id}",
        category=PackageCategory.STANDARD,
        base_rate=Decimal("100"),
        enabled=enabled,
        external_product_id=external_product_id,
        origin=PackageOrigin.LOCAL,
    )


def external(id="ext_weekly", enabled=True) -> PackageDescriptor:
    return PackageDescriptor(
        id=id,
        original_name=f"External {id}",
        display_name=f"External {id}",
        category=PackageCategory.HOSTED,
        base_rate=Decimal("500"),
        min_nights=7,
        max_nights=7,
        enabled=enabled,
        external_product_id=id,
        origin=PackageOrigin.EXTERNAL,
    )


def test_local_enabled_without_override():
    [resolved] = apply_overrides([local()], [])
    assert resolved.enabled is True
    assert resolved.display_name == "Local std"


def test_external_disabled_without_override():
    [resolved] = apply_overrides([external()], [])
    assert resolved.enabled is False


def test_external_enabled_by_override():
    [resolved] = apply_overrides(
        [external()],
        [OverrideSetting(package_ref="ext_weekly", enabled=True)],
    )
    assert resolved.enabled is True


def test_override_cannot_enable_disabled_source():
    [resolved] = apply_overrides(
        [local(enabled=False)],
        [OverrideSetting(package_ref="std", enabled=True)],
    )
    assert resolved.enabled is False


def test_override_disables_local_package():
    [resolved] = apply_overrides(
        [local()],
        [OverrideSetting(package_ref="std", enabled=False)],
    )
    assert resolved.enabled is False


def test_tri_state_absent_uses_default():
    """An override carrying only a name leaves the default enabled flag."""
    resolved = apply_overrides(
        [local(), external()],
        [
            OverrideSetting(package_ref="std", custom_name="Cosy Stay"),
            OverrideSetting(package_ref="ext_weekly", custom_name="Week Away"),
        ],
    )
    assert [d.display_name for d in resolved] == ["Cosy Stay", "Week Away"]
    assert [d.enabled for d in resolved] == [True, False]
    assert [d.original_name for d in resolved] == ["Local std", "External ext_weekly"]


def test_override_matches_external_product_id_of_local_package():
    [resolved] = apply_overrides(
        [local(external_product_id="prod_legacy")],
        [OverrideSetting(package_ref="prod_legacy", custom_name="Legacy Name")],
    )
    assert resolved.display_name == "Legacy Name"


def test_id_match_wins_over_external_id_match():
    descriptor = local(external_product_id="prod_1")
    overrides = [
        OverrideSetting(package_ref="prod_1", custom_name="By external id"),
        OverrideSetting(package_ref="std", custom_name="By id"),
    ]
    assert find_override(descriptor, overrides).custom_name == "By id"
    [resolved] = apply_overrides([descriptor], overrides)
    assert resolved.display_name == "By id"
