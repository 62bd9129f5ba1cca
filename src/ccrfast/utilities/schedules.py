"""Accrual schedule generation.

Generates the regular accrual periods of coupon-bearing products. Accrual
dates are unadjusted; pay dates are rolled with the product's business day
convention and calendar.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ccrfast.core.time import add_tenor, parse_tenor
from ccrfast.core.types import BusinessDayConvention, Calendar
from ccrfast.utilities.calendars import HolidayCalendar, roll_date


@dataclass(frozen=True)
class AccrualPeriod:
    """One coupon period.

    Attributes:
        start: Unadjusted accrual start
        end: Unadjusted accrual end
        pay_date: Rolled payment date
    """

    start: date
    end: date
    pay_date: date


def generate_schedule(start: date, end: date, tenor: str) -> list[date]:
    """Generate the regular date schedule from ``start`` to ``end``.

    Dates are ``start + k * tenor`` (computed from the anchor to avoid day
    drift) up to but excluding ``end``, followed by ``end`` itself, so a
    non-integral term produces a short final stub.

    Args:
        start: Schedule anchor
        end: Schedule end (always included)
        tenor: Period length (e.g., '3M')

    Returns:
        Strictly increasing list of dates

    Example:
        >>> generate_schedule(date(2024, 1, 15), date(2024, 7, 15), "3M")
        [datetime.date(2024, 1, 15), datetime.date(2024, 4, 15), datetime.date(2024, 7, 15)]
    """
    if end <= start:
        return [start]
    number, period_type = parse_tenor(tenor)
    dates = [start]
    k = 1
    while True:
        current = add_tenor(start, f"{number * k}{period_type}")
        if current >= end:
            break
        dates.append(current)
        k += 1
    dates.append(end)
    return dates


def generate_periods(
    effective: date,
    maturity: date,
    tenor: str,
    business_day_convention: BusinessDayConvention = BusinessDayConvention.NONE,
    calendar: HolidayCalendar | Calendar | str = Calendar.NO_CALENDAR,
) -> list[AccrualPeriod]:
    """Generate the accrual periods between effective and maturity dates.

    Args:
        effective: First accrual start
        maturity: Last accrual end
        tenor: Coupon frequency
        business_day_convention: Roll applied to pay dates
        calendar: Calendar used for rolling

    Returns:
        Periods in chronological order
    """
    dates = generate_schedule(effective, maturity, tenor)
    return [
        AccrualPeriod(start, end, roll_date(end, business_day_convention, calendar))
        for start, end in zip(dates[:-1], dates[1:], strict=True)
    ]
