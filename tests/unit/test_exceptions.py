"""Tests for the exception hierarchy."""

import pytest

from ccrfast.core.time import parse_date, parse_tenor
from ccrfast.exceptions import (
    CalibrationError,
    CcrException,
    ConfigurationError,
    ConventionError,
    DateTimeError,
    EngineError,
    MarketDataError,
    PaymentScheduleError,
    StateTransitionError,
    UnsupportedInstrumentError,
)
from ccrfast.market.volatility import FlatVolatilitySurface
from ccrfast.models.basket import ternary_search
from ccrfast.utilities.calendars import get_calendar

ALL_ERRORS = (
    CalibrationError,
    ConfigurationError,
    ConventionError,
    DateTimeError,
    EngineError,
    MarketDataError,
    PaymentScheduleError,
    StateTransitionError,
    UnsupportedInstrumentError,
)


class TestCcrException:
    """Test the base exception."""

    def test_message_only(self):
        error = CcrException("Something failed")
        assert str(error) == "Something failed"
        assert error.context == {}

    def test_context_is_appended(self):
        error = CcrException("Bad tenor", context={"tenor": "3X", "leg": 0})
        assert str(error) == "Bad tenor (Context: tenor=3X, leg=0)"
        assert error.message == "Bad tenor"

    @pytest.mark.parametrize("error_type", ALL_ERRORS)
    def test_subclasses_share_the_base(self, error_type):
        with pytest.raises(CcrException, match="boom"):
            raise error_type("boom", context={"k": 1})


class TestRaisedByCollaborators:
    """Each collaborator raises its own error type."""

    def test_invalid_tenor(self):
        with pytest.raises(DateTimeError, match="Invalid tenor format"):
            parse_tenor("3X")

    def test_invalid_date_string(self):
        with pytest.raises(DateTimeError, match="Unable to parse"):
            parse_date("15/01/2024")

    def test_unknown_calendar(self):
        with pytest.raises(ConventionError, match="Unknown calendar"):
            get_calendar("TARGET2")

    def test_negative_volatility(self):
        with pytest.raises(MarketDataError, match="non-negative"):
            FlatVolatilitySurface(-0.1)

    def test_empty_search_interval(self):
        with pytest.raises(CalibrationError, match="Empty search interval"):
            ternary_search(abs, 1.0, 1.0)
