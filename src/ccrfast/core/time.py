"""Date arithmetic used by schedules, curves and the exposure date reconciler.

Dates are plain :class:`datetime.date` objects. This module adds tenor
arithmetic (e.g. adding ``'3M'`` to a date), month-end clipping and the two
time measures used by the option engine.

Key features:
- Tenor parsing (``'1W'``, ``'3M'``, ``'1Y'``, ``'2Q'``, ``'1H'``, ``'10D'``)
- Month arithmetic that clips to the last day of the target month
- Relative time (days / 365.25) and Actual/365 Fixed fractions
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta

from ccrfast.core.types import Tenor
from ccrfast.exceptions import DateTimeError

DAYS_PER_YEAR = 365.25

_TENOR_PATTERN = re.compile(r"^([-+]?\d+)([DWMQHY])$")
_MONTHS_PER_UNIT = {"M": 1, "Q": 3, "H": 6, "Y": 12}


def parse_date(value: date | datetime | str) -> date:
    """Coerce an ISO string or datetime to a date.

    Args:
        value: ``date``, ``datetime`` or ``'YYYY-MM-DD'`` string

    Returns:
        The date

    Raises:
        DateTimeError: If a string is not an ISO date

    Example:
        >>> parse_date("2024-01-15")
        datetime.date(2024, 1, 15)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise DateTimeError(
            "Unable to parse ISO date string", context={"date_string": value}
        ) from e


def parse_tenor(tenor: Tenor) -> tuple[int, str]:
    """Parse tenor notation.

    Tenor format: NP
    - N: signed integer
    - P: period type (D/W/M/Q/H/Y)

    Args:
        tenor: Tenor string (e.g., '3M', '1Y', '-1D')

    Returns:
        Tuple of (number, period_type)

    Raises:
        DateTimeError: If tenor format is invalid

    Example:
        >>> parse_tenor("3M")
        (3, 'M')
    """
    match = _TENOR_PATTERN.match(tenor.strip().upper())
    if not match:
        raise DateTimeError(
            f"Invalid tenor format: {tenor}. Expected N followed by one of D/W/M/Q/H/Y",
            context={"tenor": tenor},
        )
    number_str, period_type = match.groups()
    return int(number_str), period_type


def end_of_month(dt: date) -> date:
    """Return the last day of the month containing ``dt``."""
    return dt.replace(day=calendar.monthrange(dt.year, dt.month)[1])


def add_months(dt: date, months: int, end_of_month_rule: bool = False) -> date:
    """Add calendar months, clipping the day to the target month's length.

    Args:
        dt: Starting date
        months: Number of months (may be negative)
        end_of_month_rule: Keep month-end dates at month end

    Returns:
        Shifted date

    Example:
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
    """
    total_months = dt.year * 12 + dt.month - 1 + months
    year, month = divmod(total_months, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    if end_of_month_rule and dt == end_of_month(dt):
        return date(year, month, last_day)
    return date(year, month, min(dt.day, last_day))


def add_tenor(dt: date, tenor: Tenor, end_of_month_rule: bool = False) -> date:
    """Add a tenor to a date.

    Args:
        dt: Starting date
        tenor: Period to add (e.g., '3M', '1Y', '-1D')
        end_of_month_rule: Keep month-end dates at month end for month-based tenors

    Returns:
        New date after adding the tenor

    Example:
        >>> add_tenor(date(2024, 1, 15), "3M")
        datetime.date(2024, 4, 15)
    """
    number, period_type = parse_tenor(tenor)
    if period_type == "D":
        return dt + timedelta(days=number)
    if period_type == "W":
        return dt + timedelta(weeks=number)
    return add_months(dt, number * _MONTHS_PER_UNIT[period_type], end_of_month_rule)


def add_days(dt: date, days: int) -> date:
    """Shift a date by a number of calendar days."""
    return dt + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Signed number of calendar days from ``start`` to ``end``."""
    return (end - start).days


def relative_time(start: date, end: date) -> float:
    """Time in years between two dates on a 365.25-day year.

    This is the time measure of the option engine for underliers other than
    swap rates and FX rates.
    """
    return (end - start).days / DAYS_PER_YEAR


def fraction_365(start: date, end: date) -> float:
    """Actual/365 Fixed time in years between two dates."""
    return (end - start).days / 365.0


def tenor_dates(start: date, tenors: list[Tenor] | tuple[Tenor, ...]) -> list[date]:
    """Dates obtained by adding each tenor to ``start``, in ascending order."""
    return sorted({add_tenor(start, tenor) for tenor in tenors})
