"""Interest rate products: swaps and legs, nominal and inflation bonds, caps/floors, fees."""

from __future__ import annotations

from datetime import date

from pydantic import Field, field_validator, model_validator

from ccrfast.core.time import add_months
from ccrfast.core.types import (
    BusinessDayConvention,
    Calendar,
    DayCountConvention,
    DistributionType,
    OptionType,
)
from ccrfast.products.base import Product, check_tenor
from ccrfast.utilities.schedules import AccrualPeriod, generate_periods


class SwapLeg(Product):
    """One leg of an interest rate swap.

    The sign of the notional gives the direction: positive legs are received,
    negative legs are paid.

    Example:
        >>> leg = SwapLeg(
        ...     effective=date(2024, 1, 15),
        ...     maturity=date(2025, 1, 15),
        ...     notional=1_000_000.0,
        ...     coupon=0.04,
        ...     tenor="6M",
        ... )
    """

    effective: date
    maturity: date
    notional: float = 1.0
    coupon: float = Field(0.0, description="Fixed rate, or spread over the index if floating")
    floating: bool = False
    tenor: str = "3M"
    day_count: DayCountConvention = DayCountConvention.A360
    business_day_convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING
    calendar: Calendar = Calendar.NO_CALENDAR
    in_arrears: bool = False
    final_exchange: bool = Field(False, description="Pay the notional at maturity")
    next_break_date: date | None = Field(None, description="Mutual break terminating the leg")

    @field_validator("tenor")
    @classmethod
    def validate_tenor(cls, v: str) -> str:
        """Tenor must parse as N followed by D/W/M/Q/H/Y."""
        return check_tenor(v)

    @model_validator(mode="after")
    def validate_dates(self) -> SwapLeg:
        """Maturity must follow the effective date."""
        if self.maturity <= self.effective:
            raise ValueError(f"Maturity {self.maturity} must be after effective {self.effective}")
        return self

    @property
    def maturity_date(self) -> date:
        return self.maturity

    def accrual_periods(self) -> list[AccrualPeriod]:
        return generate_periods(
            self.effective,
            self.maturity,
            self.tenor,
            self.business_day_convention,
            self.calendar,
        )

    def with_coupon(self, coupon: float) -> SwapLeg:
        return self.model_copy(update={"coupon": coupon})


class Swap(Product):
    """Multi-leg interest rate swap with an optional mutual break clause."""

    legs: tuple[SwapLeg, ...]
    next_break_date: date | None = None

    @field_validator("legs")
    @classmethod
    def validate_legs(cls, v: tuple[SwapLeg, ...]) -> tuple[SwapLeg, ...]:
        """A swap needs at least one leg."""
        if not v:
            raise ValueError("A swap needs at least one leg")
        return v

    @property
    def maturity_date(self) -> date:
        return max(leg.maturity for leg in self.legs)

    @property
    def effective(self) -> date:
        return min(leg.effective for leg in self.legs)


class Bond(Product):
    """Bullet bond paying fixed coupons, or a spread over an index when floating.

    Example:
        >>> frn = Bond(
        ...     effective=date(2024, 1, 15),
        ...     maturity=date(2027, 1, 15),
        ...     coupon=0.005,
        ...     floating=True,
        ...     tenor="3M",
        ...     day_count=DayCountConvention.A360,
        ... )
    """

    effective: date
    maturity: date
    coupon: float = Field(..., description="Fixed rate, or spread over the index if floating")
    notional: float = 1.0
    floating: bool = False
    tenor: str = "6M"
    day_count: DayCountConvention = DayCountConvention.B30360
    business_day_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    calendar: Calendar = Calendar.NO_CALENDAR

    @field_validator("tenor")
    @classmethod
    def validate_tenor(cls, v: str) -> str:
        """Tenor must parse as N followed by D/W/M/Q/H/Y."""
        return check_tenor(v)

    @model_validator(mode="after")
    def validate_dates(self) -> Bond:
        """Maturity must follow the effective date."""
        if self.maturity <= self.effective:
            raise ValueError(f"Maturity {self.maturity} must be after effective {self.effective}")
        return self

    @property
    def maturity_date(self) -> date:
        return self.maturity

    def as_leg(self) -> SwapLeg:
        """The bond's cash flows as a received leg with final exchange."""
        return SwapLeg(
            effective=self.effective,
            maturity=self.maturity,
            notional=self.notional,
            coupon=self.coupon,
            floating=self.floating,
            tenor=self.tenor,
            day_count=self.day_count,
            business_day_convention=self.business_day_convention,
            calendar=self.calendar,
            final_exchange=True,
            currency=self.currency,
            description=self.description,
        )


class InflationBond(Bond):
    """Bond whose real coupons and principal are indexed to an inflation index.

    Each amount is scaled by ``I(t - lag) / base_index`` where ``I`` is the
    index level observed ``indexation_lag_months`` before the end of the
    coupon period (or before maturity for the principal).
    """

    base_index: float = Field(..., gt=0.0, description="Index level at issue")
    indexation_lag_months: int = Field(3, ge=0)
    floor_principal: bool = Field(True, description="Repay at least the real notional")

    @model_validator(mode="after")
    def validate_fixed(self) -> InflationBond:
        """Inflation bonds pay a fixed real coupon."""
        if self.floating:
            raise ValueError("Inflation bond coupons cannot be floating")
        return self

    def index_date(self, dt: date) -> date:
        """Observation date of the index for an amount accruing to ``dt``."""
        return add_months(dt, -self.indexation_lag_months)


class CapFloor(Product):
    """Interest rate cap (calls on the index) or floor (puts)."""

    effective: date
    maturity: date
    strike: float
    option_type: OptionType = OptionType.CALL
    notional: float = 1.0
    tenor: str = "3M"
    day_count: DayCountConvention = DayCountConvention.A360
    business_day_convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING
    calendar: Calendar = Calendar.NO_CALENDAR
    volatility_type: DistributionType = DistributionType.LOGNORMAL

    @field_validator("tenor")
    @classmethod
    def validate_tenor(cls, v: str) -> str:
        """Tenor must parse as N followed by D/W/M/Q/H/Y."""
        return check_tenor(v)

    @model_validator(mode="after")
    def validate_dates(self) -> CapFloor:
        """Maturity must follow the effective date."""
        if self.maturity <= self.effective:
            raise ValueError(f"Maturity {self.maturity} must be after effective {self.effective}")
        return self

    @property
    def maturity_date(self) -> date:
        return self.maturity

    def accrual_periods(self) -> list[AccrualPeriod]:
        return generate_periods(
            self.effective, self.maturity, self.tenor, self.business_day_convention, self.calendar
        )


class PaymentStream(Product):
    """Known one-off payments, e.g. upfront fees attached to a trade."""

    payments: tuple[tuple[date, float], ...]

    @field_validator("payments")
    @classmethod
    def validate_payments(cls, v: tuple[tuple[date, float], ...]) -> tuple[tuple[date, float], ...]:
        """At least one payment, kept in date order."""
        if not v:
            raise ValueError("A payment stream needs at least one payment")
        return tuple(sorted(v))

    @property
    def maturity_date(self) -> date:
        return self.payments[-1][0]
