"""Property-based tests for catalog, pricing and availability invariants."""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from stay_engine.schemas.package import (
    EntitlementTier,
    PackageCategory,
    PackageDescriptor,
    PackageOrigin,
)
from stay_engine.services.availability_service import StayInterval, ranges_overlap, suggest_ranges
from stay_engine.services.entitlement_service import filter_visible
from stay_engine.services.identity_service import match_reference
from stay_engine.services.pricing_service import calculate_total, quantize_money

TODAY = date(2024, 5, 28)

# Strategies for generating test data
categories = st.sampled_from(list(PackageCategory))
origins = st.sampled_from(list(PackageOrigin))
base_rates = st.decimals(min_value=0, max_value=5000, places=2, allow_nan=False, allow_infinity=False)
multipliers = st.sampled_from([0.5, 1.0, 1.1, 1.25, 1.5, 2.0, 3.0])
package_ids = st.text(alphabet="abcdefxyz_", min_size=1, max_size=12)


@st.composite
def descriptors(draw, package_id=None):
    package_id = package_id or draw(package_ids)
    name = draw(st.text(min_size=1, max_size=20))
    return PackageDescriptor(
        id=package_id,
        original_name=name,
        display_name=name,
        category=draw(categories),
        base_rate=draw(base_rates),
        multiplier=draw(multipliers),
        enabled=draw(st.booleans()),
        origin=draw(origins),
    )


@st.composite
def catalogs(draw):
    """Descriptor lists whose ids are unique ignoring case."""
    ids = draw(st.lists(package_ids, min_size=1, max_size=8, unique_by=str.casefold))
    return [draw(descriptors(package_id=package_id)) for package_id in ids]


@st.composite
def booked_intervals(draw):
    count = draw(st.integers(min_value=0, max_value=6))
    intervals = []
    for i in range(count):
        start = TODAY + timedelta(days=draw(st.integers(min_value=0, max_value=60)))
        nights = draw(st.integers(min_value=1, max_value=10))
        intervals.append(StayInterval(f"booking-{i}", start, start + timedelta(days=nights)))
    return intervals


@given(catalog=st.lists(descriptors(), max_size=10))
def test_visibility_is_monotonic_in_tier(catalog):
    """Each tier sees at least what the tier below sees, and never an addon."""
    none = {d.id for d in filter_visible(catalog, EntitlementTier.NONE)}
    standard = {d.id for d in filter_visible(catalog, EntitlementTier.STANDARD)}
    pro = {d.id for d in filter_visible(catalog, EntitlementTier.PRO)}

    assert none <= standard <= pro
    for tier in EntitlementTier:
        assert all(d.category != PackageCategory.ADDON for d in filter_visible(catalog, tier))


@given(catalog=catalogs(), data=st.data())
def test_resolution_ignores_reference_casing(catalog, data):
    target = data.draw(st.sampled_from(catalog))
    flips = data.draw(st.lists(st.booleans(), min_size=len(target.id), max_size=len(target.id)))
    ref = "".join(c.upper() if flip else c for c, flip in zip(target.id, flips))

    resolution = match_reference(ref, catalog)

    assert resolution is not None
    assert resolution.descriptor.id == target.id


@given(
    base_rate=base_rates,
    multiplier=multipliers,
    nights=st.integers(min_value=1, max_value=60),
)
def test_nightly_total_is_rate_times_nights_times_multiplier(base_rate, multiplier, nights):
    descriptor = PackageDescriptor(
        id="std",
        original_name="Standard Stay",
        display_name="Standard Stay",
        base_rate=base_rate,
        multiplier=multiplier,
        origin=PackageOrigin.LOCAL,
    )
    from_date = TODAY
    to_date = TODAY + timedelta(days=nights)

    expected = quantize_money(base_rate * nights * Decimal(str(multiplier)))
    assert calculate_total(descriptor, from_date, to_date) == expected


@given(
    explicit=base_rates,
    nights=st.integers(min_value=1, max_value=60),
)
def test_explicit_total_returned_verbatim(explicit, nights):
    descriptor = PackageDescriptor(
        id="std",
        original_name="Standard Stay",
        display_name="Standard Stay",
        base_rate=Decimal("100"),
        multiplier=1.5,
        origin=PackageOrigin.LOCAL,
    )

    total = calculate_total(descriptor, TODAY, TODAY + timedelta(days=nights), explicit_total=explicit)
    assert total == explicit


@given(
    intervals=booked_intervals(),
    min_nights=st.integers(min_value=1, max_value=7),
    extra=st.integers(min_value=0, max_value=7),
)
def test_suggestions_avoid_booked_nights(intervals, min_nights, extra):
    max_nights = min_nights + extra

    suggestions = suggest_ranges(intervals, today=TODAY, min_nights=min_nights, max_nights=max_nights)

    for suggestion in suggestions:
        assert min_nights <= suggestion.nights <= max_nights
        assert (suggestion.end_date - suggestion.start_date).days == suggestion.nights
        for interval in intervals:
            assert not ranges_overlap(
                suggestion.start_date, suggestion.end_date, interval.from_date, interval.to_date
            )

    ordered = [(s.start_date, s.nights) for s in suggestions]
    assert ordered == sorted(ordered)
