"""Stay pricing: duration and total computation."""

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..core.exceptions import DateRangeInvalidError
from ..schemas.package import PackageDescriptor

CURRENCY_PRECISION = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    """Round an amount to currency precision."""
    return amount.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def validate_date_range(from_date: date, to_date: date) -> None:
    """
    Reject empty or inverted stays.

    Raises:
        DateRangeInvalidError: If to_date is not after from_date
    """
    if to_date <= from_date:
        raise DateRangeInvalidError(from_date, to_date)


def nightly_duration(from_date: date, to_date: date) -> int:
    """Nights between two dates, never less than one."""
    seconds = (to_date - from_date).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def stay_duration(descriptor: PackageDescriptor, from_date: date, to_date: date) -> int:
    """
    Number of pricing units for a stay.

    Nightly packages are priced per night of the stay. Fixed-duration
    packages (addons and hourly products) are priced for their own
    ``min_nights`` regardless of the dates, but a stay of a different
    length is rejected.

    Raises:
        DateRangeInvalidError: If the range is empty or violates a fixed duration
    """
    validate_date_range(from_date, to_date)
    nights = nightly_duration(from_date, to_date)

    if not descriptor.is_fixed_duration:
        return nights

    fixed = descriptor.min_nights or 1
    if nights != fixed:
        raise DateRangeInvalidError(
            from_date,
            to_date,
            reason=f"Package '{descriptor.id}' is fixed at {fixed} night(s), got {nights}",
        )
    return fixed


def calculate_total(
    descriptor: PackageDescriptor,
    from_date: date,
    to_date: date,
    explicit_total: Decimal | None = None,
) -> Decimal:
    """
    Calculate the total for a stay.

    Args:
        descriptor: Resolved package
        from_date: Arrival date
        to_date: Departure date
        explicit_total: Operator-supplied total, returned verbatim when given

    Returns:
        base_rate x duration x multiplier rounded to currency precision,
        or the explicit total

    Raises:
        DateRangeInvalidError: If the dates are invalid for the package
    """
    if explicit_total is not None:
        validate_date_range(from_date, to_date)
        return explicit_total

    duration = stay_duration(descriptor, from_date, to_date)
    total = descriptor.base_rate * duration * Decimal(str(descriptor.multiplier))
    return quantize_money(total)
