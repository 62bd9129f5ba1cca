"""Core types, date arithmetic and payment events."""

from ccrfast.core.payments import (
    InflationPayment,
    InterestPayment,
    OneTimePayment,
    PaymentEvent,
    group_payments,
)
from ccrfast.core.time import (
    DAYS_PER_YEAR,
    add_days,
    add_months,
    add_tenor,
    days_between,
    fraction_365,
    parse_date,
    parse_tenor,
    relative_time,
    tenor_dates,
)
from ccrfast.core.types import (
    Amount,
    BarrierType,
    BusinessDayConvention,
    Calendar,
    CreditProductType,
    DayCountConvention,
    DistributionType,
    ExerciseState,
    OptionStyle,
    OptionType,
    Rate,
    SettlementType,
    Tenor,
)

__all__ = [
    # Type aliases
    "Amount",
    "Rate",
    "Tenor",
    # Enumerations
    "BarrierType",
    "BusinessDayConvention",
    "Calendar",
    "CreditProductType",
    "DayCountConvention",
    "DistributionType",
    "ExerciseState",
    "OptionStyle",
    "OptionType",
    "SettlementType",
    # Time
    "DAYS_PER_YEAR",
    "add_days",
    "add_months",
    "add_tenor",
    "days_between",
    "fraction_365",
    "parse_date",
    "parse_tenor",
    "relative_time",
    "tenor_dates",
    # Payments
    "InflationPayment",
    "InterestPayment",
    "OneTimePayment",
    "PaymentEvent",
    "group_payments",
]
