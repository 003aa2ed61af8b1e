# wdtp/services/wage_normalizer.py
"""
Convert a reported wage (amount + pay period) into hourly cents.

Integer arithmetic only; divisions truncate toward zero. The result must
fall inside the plausibility band or the report is rejected outright.
"""
from enum import Enum

from ..core.config import settings
from ..core.errors import InvalidPeriod, OutOfRange, WageNormalizationError

DEFAULT_HOURS_PER_WEEK = 40
DEFAULT_SHIFT_HOURS = 8
WEEKS_PER_YEAR = 52


class WagePeriod(str, Enum):
    hourly = "hourly"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    yearly = "yearly"
    per_shift = "per_shift"


def _div(numerator: int, denominator: int) -> int:
    # truncate toward zero, like an integer cast of the quotient
    q = abs(numerator) // abs(denominator)
    return q if (numerator >= 0) == (denominator > 0) else -q


def normalize(
    amount_cents: int,
    period: str,
    hours_per_week: int | None = None,
    shift_hours: int | None = None,
    *,
    min_cents: int | None = None,
    max_cents: int | None = None,
) -> int:
    """
    Returns the hourly rate in cents.

    Raises InvalidPeriod for an unknown period tag and OutOfRange when the
    hourly rate falls outside [min_cents, max_cents] (defaults from settings,
    $2.00 to $200.00).
    """
    try:
        period = WagePeriod(period)
    except ValueError:
        raise InvalidPeriod(str(period)) from None

    hours = DEFAULT_HOURS_PER_WEEK if hours_per_week is None else int(hours_per_week)
    shift = DEFAULT_SHIFT_HOURS if shift_hours is None else int(shift_hours)
    if hours <= 0 or shift <= 0:
        raise WageNormalizationError("hours_per_week and shift_hours must be positive")

    amount = int(amount_cents)
    if period is WagePeriod.hourly:
        hourly = amount
    elif period is WagePeriod.weekly:
        hourly = _div(amount, hours)
    elif period is WagePeriod.biweekly:
        hourly = _div(amount, 2 * hours)
    elif period is WagePeriod.monthly:
        hourly = _div(amount * 12, WEEKS_PER_YEAR * hours)
    elif period is WagePeriod.yearly:
        hourly = _div(amount, WEEKS_PER_YEAR * hours)
    else:  # per_shift
        hourly = _div(amount, shift)

    lo = settings.wage_min_hourly_cents if min_cents is None else min_cents
    hi = settings.wage_max_hourly_cents if max_cents is None else max_cents
    if hourly < lo or hourly > hi:
        raise OutOfRange(hourly, lo, hi)
    return hourly
