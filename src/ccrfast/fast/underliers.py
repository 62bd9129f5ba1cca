"""Underliers of options valued incrementally.

An underlier turns the market data currently attached to an option pricer
into the level of the option's underlying, its volatility to expiry and the
numeraire that converts an undiscounted payoff into present value at a
simulation date. Its structure (accrual periods, premium schedule) and its
forward volatility are extracted once when the option fast pricer is built.

New option pricers are supported by registering a builder:

    >>> register_underlier(MyOptionPricer, MyUnderlier)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from ccrfast.fast.forward_volatility import ForwardVolatility
from ccrfast.models.credit import CdsCashflow, forward_spread
from ccrfast.pricers.credit import build_cashflow
from ccrfast.pricers.options import (
    BondOptionPricer,
    CdsOptionPricer,
    FxOptionPricer,
    OptionPricerBase,
    StockOptionPricer,
    SwaptionPricer,
    forward_bond_price,
)
from ccrfast.utilities.conventions import year_fraction


class Underlier(ABC):
    """Level, numeraire and volatility of an option underlying at a simulation date.

    Attributes:
        market: Object holding the live market data (the option pricer)
        forward_volatility: Volatility from a simulation date to expiry,
            frozen when the option fast pricer is built
    """

    def __init__(self, market: Any):
        self.market = market
        self.forward_volatility: ForwardVolatility | None = None

    @property
    @abstractmethod
    def maturity(self) -> date:
        """Last date on which the underlier has a value."""

    @abstractmethod
    def value(self, dt: date) -> tuple[float, float]:
        """(level, numeraire) seen from ``dt``."""

    def spot(self, dt: date) -> float:
        """Level monitored against barriers; the underlier level by default."""
        return self.value(dt)[0]

    def dates(self) -> tuple[date, ...]:
        """Dates where the delivered underlier's value jumps."""
        return ()

    def build_volatility(self, expiry: date, term_structure: bool = False) -> ForwardVolatility:
        """Freeze the forward volatility to ``expiry`` from the market surface."""
        self.forward_volatility = ForwardVolatility.build(
            self.market.as_of, expiry, self.market.volatility_at, term_structure
        )
        return self.forward_volatility

    def volatility(self, dt: date) -> float:
        """Volatility of the underlier level from ``dt`` to the option expiry."""
        if self.forward_volatility is None:
            self.build_volatility(self.market.product.expiry)
        return self.forward_volatility.at(dt)


@dataclass(frozen=True)
class _FixedPeriod:
    pay_date: date
    accrual: float


@dataclass(frozen=True)
class _FloatPeriod:
    start: date
    end: date
    pay_date: date
    accrual: float


class SwapRateUnderlier(Underlier):
    """Forward swap rate of a swaption with the fixed leg annuity as numeraire."""

    def __init__(self, market: SwaptionPricer):
        super().__init__(market)
        swaption = market.product
        fixed = swaption.fixed_leg
        floating = swaption.floating_leg
        self.floating_day_count = floating.day_count
        self.fixed_periods = tuple(
            _FixedPeriod(p.pay_date, year_fraction(p.start, p.end, fixed.day_count))
            for p in fixed.accrual_periods()
        )
        self.float_periods = tuple(
            _FloatPeriod(
                p.start, p.end, p.pay_date, year_fraction(p.start, p.end, floating.day_count)
            )
            for p in floating.accrual_periods()
        )
        self._maturity = swaption.underlier_maturity

    @property
    def maturity(self) -> date:
        return self._maturity

    def value(self, dt: date) -> tuple[float, float]:
        discount = self.market.discount_curve
        df0 = discount.interpolate(dt)
        annuity = sum(
            p.accrual * discount.interpolate(p.pay_date) / df0
            for p in self.fixed_periods
            if p.pay_date > dt
        )
        if annuity <= 0.0:
            return 0.0, 0.0
        reference = self.market.reference_curve
        float_pv = 0.0
        for p in self.float_periods:
            if p.pay_date <= dt:
                continue
            rate = reference.forward_rate(p.start, p.end, self.floating_day_count)
            float_pv += rate * p.accrual * discount.interpolate(p.pay_date) / df0
        return float_pv / annuity, annuity

    def dates(self) -> tuple[date, ...]:
        pay_dates = {p.pay_date for p in self.fixed_periods}
        pay_dates.update(p.pay_date for p in self.float_periods)
        return tuple(sorted(pay_dates))


class ForwardFxRate(Underlier):
    """Forward FX rate to delivery; spot once delivery is reached."""

    def __init__(self, market: FxOptionPricer):
        super().__init__(market)
        self._maturity = market.product.underlier_maturity

    @property
    def maturity(self) -> date:
        return self._maturity

    def value(self, dt: date) -> tuple[float, float]:
        fx_curve = self.market.fx_curve
        if dt >= self._maturity:
            return fx_curve.spot, 1.0
        return (
            fx_curve.interpolate(self._maturity),
            self.market.discount_curve.discount_factor(self._maturity, dt),
        )

    def spot(self, dt: date) -> float:
        return self.market.fx_curve.spot


class ForwardAssetPrice(Underlier):
    """Forward stock or commodity price to the underlier maturity."""

    def __init__(self, market: StockOptionPricer):
        super().__init__(market)
        self._maturity = market.product.underlier_maturity

    @property
    def maturity(self) -> date:
        return self._maturity

    def value(self, dt: date) -> tuple[float, float]:
        forward = self.market.price_curve.interpolate(self._maturity)
        if dt > self._maturity:
            return forward, 1.0
        return forward, self.market.discount_curve.discount_factor(self._maturity, dt)

    def spot(self, dt: date) -> float:
        return self.market.price_curve.interpolate(dt)


class CreditSpreadUnderlier(Underlier):
    """Forward CDS spread with the risky annuity as numeraire.

    Without knockout the protection between the valuation date and the
    forward start adds to the forward spread.
    """

    def __init__(self, market: CdsOptionPricer):
        super().__init__(market)
        option = market.product
        self.cashflow: CdsCashflow = build_cashflow(option.cds, option.cds.cds_type)
        self.front_end_protection = not option.knockout
        self._maturity = option.underlier_maturity

    @property
    def maturity(self) -> date:
        return self._maturity

    def value(self, dt: date) -> tuple[float, float]:
        return forward_spread(
            self.cashflow,
            dt,
            self.market.discount_curve,
            self.market.survival_curve,
            front_end_protection=self.front_end_protection,
        )

    def dates(self) -> tuple[date, ...]:
        return self.cashflow.pay_dates


class ForwardBondPrice(Underlier):
    """Forward full price of a bond per unit of face, with expiry discounting as numeraire.

    After expiry the level is the full price of the bond payments still to
    come, the value of a delivered bond.
    """

    def __init__(self, market: BondOptionPricer):
        super().__init__(market)
        option = market.product
        self.expiry = option.expiry
        self.face = option.bond.notional
        self.events = market.bond_events
        self._maturity = max(event.pay_date for event in self.events)

    @property
    def maturity(self) -> date:
        return self._maturity

    def value(self, dt: date) -> tuple[float, float]:
        discount = self.market.discount_curve
        level = forward_bond_price(
            self.events,
            max(dt, self.expiry),
            discount,
            self.market.reference_curve,
            self.face,
        )
        if dt >= self.expiry:
            return level, 1.0
        return level, discount.discount_factor(self.expiry, dt)

    def dates(self) -> tuple[date, ...]:
        return tuple(event.pay_date for event in self.events)


UnderlierBuilder = Callable[[OptionPricerBase], Underlier]

UNDERLIER_BUILDERS: dict[type, UnderlierBuilder] = {
    SwaptionPricer: SwapRateUnderlier,
    FxOptionPricer: ForwardFxRate,
    StockOptionPricer: ForwardAssetPrice,
    CdsOptionPricer: CreditSpreadUnderlier,
    BondOptionPricer: ForwardBondPrice,
}


def register_underlier(pricer_type: type, builder: UnderlierBuilder) -> None:
    """Register the underlier construction of an option pricer class.

    Raises:
        TypeError: If ``pricer_type`` is not a class or ``builder`` is not callable
    """
    if not isinstance(pricer_type, type):
        raise TypeError(f"pricer_type must be a class, got {type(pricer_type).__name__}")
    if not callable(builder):
        raise TypeError("builder must be callable")
    UNDERLIER_BUILDERS[pricer_type] = builder


def underlier_builder(pricer: Any) -> UnderlierBuilder | None:
    """Most specific registered builder for ``pricer``, or None."""
    for cls in type(pricer).__mro__:
        builder = UNDERLIER_BUILDERS.get(cls)
        if builder is not None:
            return builder
    return None
