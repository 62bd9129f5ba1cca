"""Type definitions and enumerations for the revaluation engine.

All enumerations inherit from str for JSON serializability and easy comparison.
"""

from enum import Enum
from typing import TypeAlias

# Type aliases for clarity
Amount: TypeAlias = float  # Monetary amount
Rate: TypeAlias = float  # Interest rate (decimal, e.g., 0.05 for 5%)
Tenor: TypeAlias = str  # Format: N + D/W/M/Q/H/Y (e.g., '3M', '1Y')


class DayCountConvention(str, Enum):
    """Day count conventions for year fraction calculation."""

    AA = "AA"  # Actual/Actual ISDA
    A360 = "A360"  # Actual/360
    A365 = "A365"  # Actual/365 Fixed
    E30360 = "30E360"  # 30E/360
    B30360 = "30360"  # 30/360 US (Bond Basis)


class BusinessDayConvention(str, Enum):
    """Business day adjustment conventions.

    M prefix = Modified (don't cross month boundary).
    """

    NONE = "NONE"  # No adjustment
    FOLLOWING = "F"  # Next business day
    MODIFIED_FOLLOWING = "MF"  # Following unless it crosses the month end
    PRECEDING = "P"  # Previous business day
    MODIFIED_PRECEDING = "MP"  # Preceding unless it crosses the month start


class Calendar(str, Enum):
    """Business day calendar names."""

    NO_CALENDAR = "NO_CALENDAR"  # All days are business days
    MONDAY_TO_FRIDAY = "MONDAY_TO_FRIDAY"  # Weekends only


class OptionType(str, Enum):
    """Option payoff direction. A payer swaption is a call on the swap rate."""

    CALL = "C"
    PUT = "P"

    @property
    def sign(self) -> int:
        """+1 for calls, -1 for puts."""
        return 1 if self is OptionType.CALL else -1


class OptionStyle(str, Enum):
    """Exercise style."""

    EUROPEAN = "EUROPEAN"
    AMERICAN = "AMERICAN"
    BERMUDAN = "BERMUDAN"


class SettlementType(str, Enum):
    """How an exercised option delivers."""

    CASH = "CASH"
    PHYSICAL = "PHYSICAL"


class BarrierType(str, Enum):
    """Barrier direction and effect."""

    DOWN_IN = "DI"  # Activated when spot falls to the barrier
    DOWN_OUT = "DO"  # Extinguished when spot falls to the barrier
    UP_IN = "UI"  # Activated when spot rises to the barrier
    UP_OUT = "UO"  # Extinguished when spot rises to the barrier

    @property
    def is_knock_in(self) -> bool:
        return self in (BarrierType.DOWN_IN, BarrierType.UP_IN)

    @property
    def is_down(self) -> bool:
        return self in (BarrierType.DOWN_IN, BarrierType.DOWN_OUT)


class DistributionType(str, Enum):
    """Distribution assumed for the option underlier."""

    LOGNORMAL = "LOGNORMAL"  # Black
    NORMAL = "NORMAL"  # Bachelier / Black-normal


class ExerciseState(str, Enum):
    """Per-path exercise decision of an option.

    NONE is the only state re-entered, and only when a path restarts.
    """

    NONE = "NONE"
    EXERCISED = "EXERCISED"
    NOT_EXERCISED = "NOT_EXERCISED"

    @property
    def is_resolved(self) -> bool:
        return self is not ExerciseState.NONE


class CreditProductType(str, Enum):
    """Cash-flow structure of a credit default swap or index."""

    UNFUNDED = "UNFUNDED"  # Premium against protection
    FUNDED = "FUNDED"  # Credit linked note style: principal at risk
