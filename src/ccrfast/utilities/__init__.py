"""Calendars, day count conventions and schedule generation."""

from ccrfast.utilities.calendars import (
    CustomCalendar,
    HolidayCalendar,
    MondayToFridayCalendar,
    NoHolidayCalendar,
    get_calendar,
    roll_date,
)
from ccrfast.utilities.conventions import day_count, year_fraction
from ccrfast.utilities.schedules import AccrualPeriod, generate_periods, generate_schedule

__all__ = [
    "HolidayCalendar",
    "NoHolidayCalendar",
    "MondayToFridayCalendar",
    "CustomCalendar",
    "get_calendar",
    "roll_date",
    "year_fraction",
    "day_count",
    "AccrualPeriod",
    "generate_schedule",
    "generate_periods",
]
