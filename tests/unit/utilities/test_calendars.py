"""Tests for business day calendars and date rolling."""

from __future__ import annotations

from datetime import date

import pytest

from ccrfast.core.types import BusinessDayConvention, Calendar
from ccrfast.exceptions import ConventionError
from ccrfast.utilities.calendars import (
    CustomCalendar,
    MondayToFridayCalendar,
    NoHolidayCalendar,
    get_calendar,
    roll_date,
)

SATURDAY = date(2024, 6, 15)
MONTH_END_SATURDAY = date(2024, 8, 31)


class TestCalendars:
    """Test business day checks."""

    def test_no_holiday_calendar(self):
        """Every day is a business day."""
        assert NoHolidayCalendar().is_business_day(SATURDAY) is True

    def test_monday_to_friday(self):
        """Weekends are not business days."""
        cal = MondayToFridayCalendar()
        assert cal.is_business_day(date(2024, 6, 14)) is True
        assert cal.is_business_day(SATURDAY) is False

    def test_custom_holidays(self):
        """Listed holidays are skipped."""
        cal = CustomCalendar([date(2024, 12, 25)])
        assert cal.is_business_day(date(2024, 12, 25)) is False
        assert cal.next_business_day(date(2024, 12, 25)) == date(2024, 12, 26)

    def test_add_business_days(self):
        """Business days skip the weekend."""
        cal = MondayToFridayCalendar()
        assert cal.add_business_days(date(2024, 6, 14), 1) == date(2024, 6, 17)
        assert cal.add_business_days(date(2024, 6, 17), -1) == date(2024, 6, 14)

    def test_get_calendar_by_name(self):
        """Calendars resolve from enum values and aliases."""
        assert isinstance(get_calendar(Calendar.MONDAY_TO_FRIDAY), MondayToFridayCalendar)
        assert isinstance(get_calendar("none"), NoHolidayCalendar)

    def test_get_calendar_unknown(self):
        """Unknown calendar names raise ConventionError."""
        with pytest.raises(ConventionError, match="Unknown calendar"):
            get_calendar("TARGET2")


class TestRolling:
    """Test business day conventions."""

    @pytest.mark.parametrize(
        "convention,expected",
        [
            (BusinessDayConvention.NONE, SATURDAY),
            (BusinessDayConvention.FOLLOWING, date(2024, 6, 17)),
            (BusinessDayConvention.PRECEDING, date(2024, 6, 14)),
            (BusinessDayConvention.MODIFIED_FOLLOWING, date(2024, 6, 17)),
        ],
    )
    def test_roll_saturday(self, convention, expected):
        """A Saturday rolls according to the convention."""
        assert roll_date(SATURDAY, convention, Calendar.MONDAY_TO_FRIDAY) == expected

    def test_modified_following_stays_in_month(self):
        """Modified following rolls back rather than crossing the month end."""
        rolled = roll_date(
            MONTH_END_SATURDAY, BusinessDayConvention.MODIFIED_FOLLOWING, "MONDAY_TO_FRIDAY"
        )
        assert rolled == date(2024, 8, 30)

    def test_modified_preceding_stays_in_month(self):
        """Modified preceding rolls forward rather than crossing the month start."""
        rolled = roll_date(
            date(2024, 6, 1), BusinessDayConvention.MODIFIED_PRECEDING, MondayToFridayCalendar()
        )
        assert rolled == date(2024, 6, 3)
