"""Unit tests for stay pricing."""

from datetime import date
from decimal import Decimal

import pytest

from stay_engine.core.exceptions import DateRangeInvalidError
from stay_engine.schemas.package import PackageCategory, PackageDescriptor, PackageOrigin
from stay_engine.services.pricing_service import (
    calculate_total,
    nightly_duration,
    quantize_money,
    stay_duration,
)


def make_descriptor(**overrides) -> PackageDescriptor:
    data = {
        "id": "std",
        "original_name": "Standard Stay",
        "display_name": "Standard Stay",
        "category": PackageCategory.STANDARD,
        "base_rate": Decimal("100"),
        "multiplier": 1.0,
        "min_nights": 2,
        "max_nights": 5,
        "origin": PackageOrigin.LOCAL,
    }
    data.update(overrides)
    return PackageDescriptor(**data)


def test_nightly_total():
    """Three nights at 100 with multiplier 1 cost 300."""
    total = calculate_total(make_descriptor(), date(2024, 6, 1), date(2024, 6, 4))
    assert total == Decimal("300.00")


def test_multiplier_applied_and_rounded():
    descriptor = make_descriptor(base_rate=Decimal("99.99"), multiplier=1.15)
    total = calculate_total(descriptor, date(2024, 6, 1), date(2024, 6, 3))
    # 99.99 * 2 * 1.15 = 229.977
    assert total == Decimal("229.98")


def test_explicit_total_returned_verbatim():
    total = calculate_total(
        make_descriptor(),
        date(2024, 6, 1),
        date(2024, 6, 4),
        explicit_total=Decimal("123.456"),
    )
    assert total == Decimal("123.456")


def test_explicit_total_still_rejects_inverted_dates():
    with pytest.raises(DateRangeInvalidError):
        calculate_total(
            make_descriptor(),
            date(2024, 6, 4),
            date(2024, 6, 1),
            explicit_total=Decimal("10"),
        )


@pytest.mark.parametrize("from_date,to_date", [
    (date(2024, 6, 1), date(2024, 6, 1)),
    (date(2024, 6, 2), date(2024, 6, 1)),
])
def test_empty_or_inverted_range_rejected(from_date, to_date):
    with pytest.raises(DateRangeInvalidError) as exc_info:
        calculate_total(make_descriptor(), from_date, to_date)
    assert exc_info.value.code == "DATE_RANGE_INVALID"
    assert exc_info.value.retryable is False


def test_nightly_duration_is_at_least_one():
    assert nightly_duration(date(2024, 6, 1), date(2024, 6, 2)) == 1
    assert nightly_duration(date(2024, 6, 1), date(2024, 6, 8)) == 7


def test_addon_uses_fixed_duration():
    addon = make_descriptor(
        id="cleaning",
        category=PackageCategory.ADDON,
        base_rate=Decimal("45"),
        min_nights=1,
        max_nights=1,
    )
    assert stay_duration(addon, date(2024, 6, 1), date(2024, 6, 2)) == 1
    assert calculate_total(addon, date(2024, 6, 1), date(2024, 6, 2)) == Decimal("45.00")


def test_fixed_duration_rejects_other_lengths():
    hourly = make_descriptor(
        id="hot_tub",
        category=PackageCategory.SPECIAL,
        base_rate=Decimal("30"),
        min_nights=1,
        max_nights=1,
        is_hourly=True,
        origin=PackageOrigin.EXTERNAL,
    )
    with pytest.raises(DateRangeInvalidError):
        stay_duration(hourly, date(2024, 6, 1), date(2024, 6, 3))


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal("10.005")) == Decimal("10.01")
    assert quantize_money(Decimal("10.004")) == Decimal("10.00")
