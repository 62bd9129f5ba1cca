"""Custom exception classes for the fast revaluation engine.

This module defines the exception hierarchy used throughout the ccrfast
package. All exceptions inherit from CcrException, which carries a context
dictionary describing the instrument, date or option involved.
"""

from typing import Any


class CcrException(Exception):
    """Base exception for all ccrfast errors.

    Attributes:
        message: Human-readable error description
        context: Additional context information about the error
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description
            context: Optional dictionary with additional error context
                    (e.g., pricer, product, date)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(CcrException):
    """Exception raised for invalid engine configuration.

    This exception should be raised when:
    - An unrecognized option name is supplied
    - An option value cannot be interpreted as a boolean
    - An environment variable holds an invalid value

    Example:
        >>> raise ConfigurationError(
        ...     "Unknown option",
        ...     context={"option": "DiscountAcrued", "recognized": ["DiscountAccrued"]}
        ... )
    """


class UnsupportedInstrumentError(CcrException):
    """Exception raised when no fast pricer can wrap a pricer.

    This exception should be raised when:
    - The object handed to the dispatcher is not a pricer
    - An option pricer offers no recognizable underlier construction
    - A product/pricer combination has no fast valuation strategy

    Example:
        >>> raise UnsupportedInstrumentError(
        ...     "Option pricer [BondOptionPricer] not supported",
        ...     context={"product": "BondOption"}
        ... )
    """


class PaymentScheduleError(CcrException):
    """Exception raised when a pricer cannot produce a payment schedule.

    This exception should be raised when:
    - The product has no cash-flow representation (e.g., equity positions)
    - The schedule depends on path-dependent features

    The dispatcher catches it and falls back to full revaluation.
    """


class MarketDataError(CcrException):
    """Exception raised for invalid market data objects.

    This exception should be raised when:
    - Curve knots are unsorted or of mismatched length
    - Volatilities or hazard rates are negative
    - A surface is queried outside its range with raising extrapolation

    Example:
        >>> raise MarketDataError(
        ...     "Curve times must be strictly increasing",
        ...     context={"times": [1.0, 0.5]}
        ... )
    """


class DateTimeError(CcrException):
    """Exception raised for date parsing or tenor arithmetic errors.

    This exception should be raised when:
    - A tenor string such as "3M" cannot be parsed
    - A date string is not ISO formatted

    Example:
        >>> raise DateTimeError("Invalid tenor", context={"tenor": "3X"})
    """


class ConventionError(CcrException):
    """Exception raised for day count or business day convention errors.

    This exception should be raised when:
    - Unknown day count convention specified
    - Unknown calendar name requested
    - Business day adjustment fails
    """


class StateTransitionError(CcrException):
    """Exception raised for invalid per-path state transitions.

    This exception should be raised when:
    - A resolved exercise state would be overwritten by a different one
    - A knocked barrier flag would be cleared without a path restart

    Example:
        >>> raise StateTransitionError(
        ...     "Exercise state already resolved",
        ...     context={"current": "EXERCISED", "requested": "NOT_EXERCISED"}
        ... )
    """


class CalibrationError(CcrException):
    """Exception raised for invalid basket calibration inputs.

    This exception should be raised when:
    - The search interval is empty or inverted
    - The tolerance is not positive

    A calibration that simply misses its target is not an error; the
    CDO fast pricer falls back to the exact basket instead.
    """


class EngineError(CcrException):
    """Exception raised for exposure simulation errors.

    This exception should be raised when:
    - The simulation is asked for zero paths
    - No exposure dates are available to sample
    """
