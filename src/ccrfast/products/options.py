"""Option products on rates, bonds, FX, equities and credit spreads.

Every option may carry one barrier (single barrier option) or two barriers
(double barrier option, both of the same knock-in or knock-out effect)
monitored on the spot of its underlying asset.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ccrfast.core.time import add_days
from ccrfast.core.types import BarrierType, OptionStyle, OptionType, SettlementType
from ccrfast.products.base import Product
from ccrfast.products.credit import CDS
from ccrfast.products.rates import Bond, SwapLeg


class Barrier(BaseModel):
    """A barrier level with its direction and effect."""

    model_config = ConfigDict(frozen=True)

    barrier_type: BarrierType
    level: float = Field(..., gt=0.0)


class OptionProduct(Product):
    """Terms common to all options.

    Attributes:
        expiry: Exercise date
        strike: Strike in the underlier's units
        option_type: Call or put
        style: Exercise style; only European options are valued incrementally
        settlement: Cash or physical delivery
        barriers: Zero, one or two barriers
        rebate: Cash rebate of a single barrier option
    """

    expiry: date
    strike: float
    option_type: OptionType = OptionType.CALL
    style: OptionStyle = OptionStyle.EUROPEAN
    settlement: SettlementType = SettlementType.CASH
    barriers: tuple[Barrier, ...] = ()
    rebate: float = 0.0

    @field_validator("barriers")
    @classmethod
    def validate_barriers(cls, v: tuple[Barrier, ...]) -> tuple[Barrier, ...]:
        """At most two barriers; a pair must share its effect and be ordered low to high."""
        if len(v) > 2:
            raise ValueError("At most two barriers are supported")
        if len(v) == 2:
            low, high = sorted(v, key=lambda b: b.level)
            if low.barrier_type.is_knock_in != high.barrier_type.is_knock_in:
                raise ValueError("Both barriers of a double barrier must be knock-in or knock-out")
            if low.level == high.level:
                raise ValueError("Double barrier levels must differ")
            return (low, high)
        return v

    @property
    def is_single_barrier(self) -> bool:
        return len(self.barriers) == 1

    @property
    def is_double_barrier(self) -> bool:
        return len(self.barriers) == 2

    @property
    def is_physically_settled(self) -> bool:
        return self.settlement is SettlementType.PHYSICAL

    @property
    def underlier_maturity(self) -> date:
        """Last date of the delivered underlier (the expiry for spot underliers)."""
        return self.expiry

    @property
    def cash_settle_date(self) -> date:
        return self.expiry

    @property
    def maturity_date(self) -> date:
        return self.underlier_maturity if self.is_physically_settled else self.cash_settle_date


class StockOption(OptionProduct):
    """Option on a stock or commodity price."""

    settle_lag_days: int = Field(0, ge=0, description="Days from expiry to cash settlement")

    @property
    def cash_settle_date(self) -> date:
        return add_days(self.expiry, self.settle_lag_days)


class FxOption(OptionProduct):
    """Option on an FX rate quoted in domestic units per foreign unit."""

    spot_lag_days: int = Field(2, ge=0, description="Days from expiry to FX delivery")

    @property
    def underlier_maturity(self) -> date:
        return add_days(self.expiry, self.spot_lag_days)

    @property
    def cash_settle_date(self) -> date:
        return self.underlier_maturity


class Swaption(OptionProduct):
    """European option to enter a fixed-vs-floating swap; calls are payer swaptions."""

    fixed_leg: SwapLeg
    floating_leg: SwapLeg

    @model_validator(mode="after")
    def validate_legs(self) -> Swaption:
        """The underlying swap starts on or after expiry and has one leg of each kind."""
        if self.fixed_leg.floating or not self.floating_leg.floating:
            raise ValueError("Swaption needs a fixed leg and a floating leg")
        if self.fixed_leg.effective < self.expiry:
            raise ValueError("Underlying swap must start on or after expiry")
        return self

    @property
    def underlier_maturity(self) -> date:
        return max(self.fixed_leg.maturity, self.floating_leg.maturity)


class BondOption(OptionProduct):
    """European option on the full (dirty) price of a bond per unit of face.

    Physical delivery hands over the bond, which is then held to maturity.
    """

    bond: Bond
    settle_lag_days: int = Field(0, ge=0, description="Days from expiry to cash settlement")

    @model_validator(mode="after")
    def validate_bond(self) -> BondOption:
        """The bond must still be outstanding at expiry."""
        if self.bond.maturity <= self.expiry:
            raise ValueError("Bond must mature after the option expiry")
        return self

    @property
    def underlier_maturity(self) -> date:
        return self.bond.maturity

    @property
    def cash_settle_date(self) -> date:
        return add_days(self.expiry, self.settle_lag_days)


class CdsOption(OptionProduct):
    """Option to buy (call, payer) or sell (put, receiver) CDS protection at a strike spread.

    Attributes:
        cds: Underlying forward-starting CDS
        knockout: The option is cancelled if the name defaults before expiry;
            otherwise front-end protection adds to the payer value
    """

    cds: CDS
    knockout: bool = True

    @property
    def underlier_maturity(self) -> date:
        return self.cds.maturity


class Stock(Product):
    """A holding of shares, valued at spot."""

    shares: float = 1.0
    maturity: date = Field(date(9999, 12, 31), description="Horizon after which it is ignored")

    @property
    def maturity_date(self) -> date:
        return self.maturity
