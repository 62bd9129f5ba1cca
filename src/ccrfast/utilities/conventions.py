"""Day count convention implementations.

Year fractions drive coupon amounts; day counts drive the accrued split of
the period straddling a valuation date.

References:
    ISDA 2006 Definitions, Section 4.16
"""

from __future__ import annotations

import calendar
from datetime import date

from ccrfast.core.types import DayCountConvention
from ccrfast.exceptions import ConventionError


def year_fraction(start: date, end: date, convention: DayCountConvention) -> float:
    """Calculate year fraction between two dates using specified convention.

    Args:
        start: Start date
        end: End date
        convention: Day count convention to use

    Returns:
        Year fraction as a float

    Raises:
        ConventionError: If the convention is not supported

    Example:
        >>> year_fraction(date(2024, 1, 15), date(2024, 7, 15), DayCountConvention.B30360)
        0.5
    """
    if convention == DayCountConvention.AA:
        return _year_fraction_aa(start, end)
    if convention == DayCountConvention.A360:
        return (end - start).days / 360.0
    if convention == DayCountConvention.A365:
        return (end - start).days / 365.0
    if convention in (DayCountConvention.E30360, DayCountConvention.B30360):
        return day_count(start, end, convention) / 360.0
    raise ConventionError(
        "Unsupported day count convention",
        context={"convention": convention, "supported": [c.value for c in DayCountConvention]},
    )


def day_count(start: date, end: date, convention: DayCountConvention) -> int:
    """Number of days between two dates under a convention.

    Actual conventions count calendar days; the 30/360 family counts
    thirty-day months.

    Args:
        start: Start date
        end: End date
        convention: Day count convention to use

    Returns:
        Signed number of days
    """
    if convention == DayCountConvention.E30360:
        d1 = min(start.day, 30)
        d2 = min(end.day, 30)
        return _thirty_360_days(start, end, d1, d2)
    if convention == DayCountConvention.B30360:
        d1 = min(start.day, 30)
        d2 = 30 if (d1 >= 30 and end.day == 31) else end.day
        return _thirty_360_days(start, end, d1, d2)
    return (end - start).days


def _thirty_360_days(start: date, end: date, d1: int, d2: int) -> int:
    return (end.year - start.year) * 360 + (end.month - start.month) * 30 + (d2 - d1)


def _year_fraction_aa(start: date, end: date) -> float:
    """Actual/Actual ISDA: days in each calendar year over that year's length."""
    if end < start:
        return -_year_fraction_aa(end, start)

    total_fraction = 0.0
    current = start
    while current.year < end.year:
        next_year = date(current.year + 1, 1, 1)
        days_in_year = 366 if calendar.isleap(current.year) else 365
        total_fraction += (next_year - current).days / days_in_year
        current = next_year

    days_in_year = 366 if calendar.isleap(end.year) else 365
    total_fraction += (end - current).days / days_in_year
    return total_fraction
