"""Fast pricers of cash flow based rate instruments."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from ccrfast.core.time import fraction_365
from ccrfast.core.types import DistributionType, OptionType
from ccrfast.fast.base import FastPricer, PathState, resolve_flag
from ccrfast.fast.schedule_cache import PaymentScheduleCache
from ccrfast.pricers.base import notional_scale
from ccrfast.pricers.rates import caplet_price
from ccrfast.utilities.conventions import year_fraction


class PaymentScheduleFastPricer(FastPricer):
    """Fast pricer of any pricer that produces a payment schedule.

    The schedule is extracted at build time from the pricer's as-of date, or
    from its settle date when ``payment_schedule_from_settle`` is set. The
    same-day payment flag and the accrued discounting flag are resolved per
    instrument at build time (the pricer's setting, else the configuration)
    and may be overridden per call.
    """

    def _schedule_start(self) -> date:
        if self.config.payment_schedule_from_settle:
            return self.pricer.settle
        return self.pricer.as_of

    def _convexity_surface(self):
        return None

    def _build(self) -> None:
        self.include_settle_payments = resolve_flag(
            self.pricer, "include_settle_payments", self.config.include_settle_payments
        )
        self.discount_accrued = resolve_flag(
            self.pricer, "discounting_accrued", self.config.discount_accrued
        )
        surface = self._convexity_surface()
        self.schedule = PaymentScheduleCache.build(
            self.pricer,
            self._schedule_start(),
            convexity_surface=surface,
            reference_curve=getattr(self.market, "reference_curve", None) if surface else None,
        )
        self._fixed_convexity = surface is not None

    def critical_dates(self) -> Iterable[date]:
        return self.schedule.pay_dates

    def is_terminated(self, settle: date) -> bool:
        return settle > self.exposure_bound()

    def _projection_curve(self):
        return getattr(self.market, "reference_curve", None)

    def schedule_pv(self, settle: date, **kwargs: Any) -> float:
        market = self.market
        surface = None if self._fixed_convexity else getattr(market, "convexity_volatility", None)
        return self.schedule.pv(
            settle,
            market.discount_curve,
            self._projection_curve(),
            surface,
            include_settle_payments=kwargs.get(
                "include_settle_payments", self.include_settle_payments
            ),
            discount_accrued=self.discount_accrued,
            clean=kwargs.get("clean", False),
        )

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if self.is_terminated(settle):
            return payment
        return self.schedule_pv(settle, **kwargs) + payment


class SwapLegFastPricer(PaymentScheduleFastPricer):
    """Swap leg: schedule from the pricer's settle date, zero after a break.

    In-arrears convexity volatilities are frozen at build time when the
    configuration fixes them; otherwise they are read from the pricer at
    every evaluation.
    """

    def _schedule_start(self) -> date:
        return self.pricer.settle

    def _convexity_surface(self):
        if not self.config.fix_convexity_volatility:
            return None
        return getattr(self.market, "convexity_volatility", None)

    def is_terminated(self, settle: date) -> bool:
        break_date = self.pricer.next_break_date
        return settle > self.exposure_bound() or (break_date is not None and settle >= break_date)


class BondFastPricer(SwapLegFastPricer):
    """Bond: its coupons and principal as a leg, or its recovery once defaulted.

    The issuer's default is read from the live survival curve of the pricer,
    so a scenario may default the issuer part way along a path. From then on
    the bond is worth the recovery until the default settlement date.
    """

    def _build(self) -> None:
        super()._build()
        recovery = self.pricer.default_payment(self.pricer.settle)
        self.known_default_settlement = None if recovery is None else recovery.pay_date

    def exposure_bound(self) -> date:
        if self.known_default_settlement is None:
            return self.maturity
        return self.known_default_settlement

    def critical_dates(self) -> Iterable[date]:
        if self.known_default_settlement is not None:
            return (self.known_default_settlement,)
        return super().critical_dates()

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        recovery = self.market.default_payment(settle)
        if recovery is None:
            return super()._value(settle, state, **kwargs)
        payment = self.payment_value(settle)
        include = kwargs.get("include_settle_payments", self.include_settle_payments)
        if recovery.pay_date < settle or (recovery.pay_date == settle and not include):
            return payment
        scale = notional_scale(self.pricer.product_notional, self.pricer.notional)
        df = self.market.discount_curve.discount_factor(recovery.pay_date, settle)
        return scale * recovery.amount * df + payment


class InflationBondFastPricer(PaymentScheduleFastPricer):
    """Inflation bond: cached indexed schedule projected from the live index curve."""

    def _projection_curve(self):
        return self.market.index_curve


@dataclass(frozen=True)
class _Caplet:
    fixing: date
    pay_date: date
    accrual_start: date
    accrual_end: date
    accrual: float
    volatility: float


class CapFloorFastPricer(FastPricer):
    """Cap/floor with caplet volatilities frozen at build time.

    Caplets that fixed before the pricer's settle date carry zero volatility
    and are valued at intrinsic.
    """

    def _build(self) -> None:
        cap = self.pricer.product
        settle = self.pricer.settle
        self.caplets = tuple(
            _Caplet(
                fixing=period.start,
                pay_date=period.pay_date,
                accrual_start=period.start,
                accrual_end=period.end,
                accrual=year_fraction(period.start, period.end, cap.day_count),
                volatility=(
                    0.0
                    if period.start <= settle
                    else self.pricer.volatility.interpolate(period.start, cap.strike)
                ),
            )
            for period in cap.accrual_periods()
        )

    def critical_dates(self) -> Iterable[date]:
        return tuple(c.pay_date for c in self.caplets)

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if settle > self.exposure_bound():
            return payment
        cap = self.pricer.product
        option_type: OptionType = cap.option_type
        distribution: DistributionType = cap.volatility_type
        discount = self.market.discount_curve
        reference = self.market.reference_curve
        cutoff = max(settle, self.pricer.settle)
        total = 0.0
        for caplet in self.caplets:
            if caplet.pay_date <= cutoff:
                continue
            forward = reference.forward_rate(
                caplet.accrual_start, caplet.accrual_end, cap.day_count
            )
            time = fraction_365(settle, caplet.fixing)
            volatility = caplet.volatility if time > 0.0 else 0.0
            price = caplet_price(
                option_type, distribution, time, forward, cap.strike, volatility
            )
            total += discount.interpolate(caplet.pay_date) * caplet.accrual * price
        scale = cap.notional * notional_scale(cap.notional, self.pricer.notional)
        return scale * total / discount.interpolate(settle) + payment
