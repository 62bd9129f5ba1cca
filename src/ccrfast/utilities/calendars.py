"""Business day calendars and date rolling.

A calendar decides which dates are business days; :meth:`HolidayCalendar.roll`
applies a business day convention. Maturities are rolled before they bound an
exposure date set, so rolling lives here rather than in the schedules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, timedelta

from ccrfast.core.types import BusinessDayConvention, Calendar
from ccrfast.exceptions import ConventionError

_ONE_DAY = timedelta(days=1)


class HolidayCalendar(ABC):
    """Abstract base class for holiday calendars."""

    @abstractmethod
    def is_business_day(self, dt: date) -> bool:
        """Check if a date is a business day.

        Args:
            dt: Date to check

        Returns:
            True if the date is a business day

        Example:
            >>> MondayToFridayCalendar().is_business_day(date(2024, 1, 15))  # Monday
            True
        """

    def next_business_day(self, dt: date) -> date:
        """Get the business day on or after the given date."""
        while not self.is_business_day(dt):
            dt += _ONE_DAY
        return dt

    def previous_business_day(self, dt: date) -> date:
        """Get the business day on or before the given date."""
        while not self.is_business_day(dt):
            dt -= _ONE_DAY
        return dt

    def roll(self, dt: date, convention: BusinessDayConvention) -> date:
        """Adjust a date to a business day according to a convention.

        Args:
            dt: Date to adjust
            convention: Business day convention

        Returns:
            Adjusted date (the same date if already a business day)

        Example:
            >>> cal = MondayToFridayCalendar()
            >>> cal.roll(date(2024, 1, 13), BusinessDayConvention.FOLLOWING)  # Saturday
            datetime.date(2024, 1, 15)
        """
        if convention is BusinessDayConvention.NONE or self.is_business_day(dt):
            return dt
        if convention is BusinessDayConvention.FOLLOWING:
            return self.next_business_day(dt)
        if convention is BusinessDayConvention.PRECEDING:
            return self.previous_business_day(dt)
        if convention is BusinessDayConvention.MODIFIED_FOLLOWING:
            rolled = self.next_business_day(dt)
            return rolled if rolled.month == dt.month else self.previous_business_day(dt)
        if convention is BusinessDayConvention.MODIFIED_PRECEDING:
            rolled = self.previous_business_day(dt)
            return rolled if rolled.month == dt.month else self.next_business_day(dt)
        raise ConventionError(
            "Unsupported business day convention", context={"convention": convention}
        )

    def add_business_days(self, dt: date, days: int) -> date:
        """Add a number of business days (may be negative) to a date."""
        step = _ONE_DAY if days > 0 else -_ONE_DAY
        remaining = abs(days)
        while remaining > 0:
            dt += step
            if self.is_business_day(dt):
                remaining -= 1
        return dt


class NoHolidayCalendar(HolidayCalendar):
    """Calendar with no holidays - every day is a business day."""

    def is_business_day(self, dt: date) -> bool:  # noqa: ARG002
        return True


class MondayToFridayCalendar(HolidayCalendar):
    """Calendar with Monday-Friday as business days (no public holidays)."""

    def is_business_day(self, dt: date) -> bool:
        return dt.weekday() < 5


class CustomCalendar(HolidayCalendar):
    """Weekend calendar extended with explicit holiday dates."""

    def __init__(self, holidays: list[date] | None = None, include_weekends: bool = True):
        """Initialize custom calendar.

        Args:
            holidays: List of holiday dates (defaults to empty)
            include_weekends: Whether weekends are also holidays (default True)
        """
        self.holidays: frozenset[date] = frozenset(holidays or ())
        self.include_weekends = include_weekends

    def is_business_day(self, dt: date) -> bool:
        if dt in self.holidays:
            return False
        return not (self.include_weekends and dt.weekday() >= 5)


def get_calendar(calendar_name: str | Calendar) -> HolidayCalendar:
    """Factory function to get a calendar by name.

    Args:
        calendar_name: Name of calendar ("NO_CALENDAR", "MONDAY_TO_FRIDAY")

    Returns:
        HolidayCalendar instance

    Raises:
        ConventionError: If calendar name is unknown
    """
    name = calendar_name.value if isinstance(calendar_name, Calendar) else calendar_name.upper()
    if name in (Calendar.NO_CALENDAR.value, "NONE"):
        return NoHolidayCalendar()
    if name in (Calendar.MONDAY_TO_FRIDAY.value, "MTF"):
        return MondayToFridayCalendar()
    raise ConventionError(
        f"Unknown calendar: {calendar_name}",
        context={"supported": [c.value for c in Calendar]},
    )


def roll_date(
    dt: date,
    convention: BusinessDayConvention,
    calendar: HolidayCalendar | str | Calendar = Calendar.NO_CALENDAR,
) -> date:
    """Roll a date with a convention on a calendar given by object or name."""
    if not isinstance(calendar, HolidayCalendar):
        calendar = get_calendar(calendar)
    return calendar.roll(dt, convention)
