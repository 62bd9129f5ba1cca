"""Full pricers of options and of stock holdings.

Each option pricer knows how to turn its market data into the forward level
of its underlier and the numeraire converting the undiscounted Black price
into present value:

- swaptions: forward swap rate and fixed leg annuity
- FX options: forward FX rate to delivery and the discount factor to delivery
- stock options: forward price to expiry and the discount factor to expiry
- CDS options: forward CDS spread and risky annuity
- bond options: forward full bond price and the discount factor to expiry

Barrier options are valued in closed form on the monitored spot with the
rate and carry implied by the numeraire and forward.
"""

from __future__ import annotations

import math
from abc import abstractmethod
from collections.abc import Sequence
from datetime import date

from ccrfast.core.payments import PaymentEvent, group_payments
from ccrfast.core.time import fraction_365, relative_time
from ccrfast.core.types import DistributionType, OptionType
from ccrfast.market.curves import DiscountCurveLike, ForwardPriceCurve, SurvivalCurveLike
from ccrfast.market.volatility import VolatilitySurfaceLike, as_surface
from ccrfast.models.barrier import double_barrier_price, is_breached, single_barrier_price
from ccrfast.models.black import black, black_normal, intrinsic
from ccrfast.models.credit import forward_spread
from ccrfast.pricers.base import PricerBase
from ccrfast.pricers.credit import build_cashflow
from ccrfast.pricers.rates import leg_payments
from ccrfast.products.options import (
    BondOption,
    CdsOption,
    FxOption,
    OptionProduct,
    Stock,
    StockOption,
    Swaption,
)
from ccrfast.utilities.conventions import year_fraction


def option_price(
    distribution: DistributionType,
    option_type: OptionType,
    time: float,
    forward: float,
    strike: float,
    volatility: float,
) -> float:
    """Undiscounted Black or Black-normal price."""
    if distribution is DistributionType.NORMAL:
        return black_normal(option_type, time, 0.0, forward, strike, volatility)
    return black(option_type, time, forward, strike, volatility)


def is_knocked(option: OptionProduct, spot: float) -> bool:
    """Whether ``spot`` is at or beyond the option's barrier(s).

    A double barrier is breached when spot leaves the corridor on either side.
    """
    if option.is_double_barrier:
        lower, upper = option.barriers
        return spot <= lower.level or spot >= upper.level
    barrier = option.barriers[0]
    return is_breached(barrier.barrier_type, spot, barrier.level)


def is_exercisable(option: OptionProduct, knocked: bool) -> bool:
    """Knock-in options need a knock, knock-out options must not have one."""
    return knocked if option.barriers[0].barrier_type.is_knock_in else not knocked


def barrier_option_value(
    option: OptionProduct,
    time: float,
    spot: float,
    forward: float,
    numeraire: float,
    volatility: float,
) -> float:
    """Present value per unit notional of a barrier option.

    The discount rate is implied from the numeraire, ``r = -ln(N) / T``, and
    the carry from the forward, ``b = ln(F / S) / T``.

    Args:
        option: Option terms with one or two barriers
        time: Time to expiry in years
        spot: Spot level of the monitored asset
        forward: Forward level of the underlier to expiry
        numeraire: Discount factor (or annuity) to the settlement of the payoff
        volatility: Lognormal volatility
    """
    if time <= 0.0 or numeraire <= 0.0 or forward <= 0.0 or spot <= 0.0:
        if not is_exercisable(option, is_knocked(option, spot)):
            return 0.0
        return numeraire * intrinsic(option.option_type, forward, option.strike)
    rate = -math.log(numeraire) / time
    carry = math.log(forward / spot) / time
    if option.is_double_barrier:
        lower, upper = option.barriers
        return double_barrier_price(
            option.option_type,
            lower.barrier_type.is_knock_in,
            time,
            spot,
            option.strike,
            lower.level,
            upper.level,
            rate,
            carry,
            volatility,
        )
    barrier = option.barriers[0]
    return single_barrier_price(
        option.option_type,
        barrier.barrier_type,
        time,
        spot,
        option.strike,
        barrier.level,
        rate,
        carry,
        volatility,
        option.rebate,
    )


class OptionPricerBase(PricerBase):
    """Common valuation of European options on a forward level.

    Attributes:
        discount_curve: Discounting curve
        volatility: Implied volatility surface of the underlier
        distribution: Lognormal (Black) or normal (Black-normal) volatilities
        use_relative_time: Measure time on 365.25 days instead of Act/365F
    """

    use_relative_time = True

    def __init__(
        self,
        option: OptionProduct,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        volatility: VolatilitySurfaceLike | float,
        notional: float = 1.0,
        distribution: DistributionType = DistributionType.LOGNORMAL,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(option, as_of, settle, notional, payment_pricer, currency)
        self.discount_curve = discount_curve
        self.volatility = as_surface(volatility)
        self.distribution = distribution

    def time_between(self, start: date, end: date) -> float:
        if self.use_relative_time:
            return relative_time(start, end)
        return fraction_365(start, end)

    def volatility_at(self, expiry: date) -> float:
        """Implied volatility at the option strike for ``expiry``."""
        return self.volatility.interpolate(expiry, self.product.strike)

    @abstractmethod
    def forward_and_numeraire(self) -> tuple[float, float]:
        """Underlier forward level and numeraire seen from ``as_of``."""

    def spot(self) -> float:
        """Level monitored against barriers (the forward unless overridden)."""
        return self.forward_and_numeraire()[0]

    def pv(self) -> float:
        option = self.product
        as_of = self.as_of
        if as_of > self.maturity or (
            not option.is_physically_settled and as_of >= option.cash_settle_date
        ):
            return self.payment_pv()
        forward, numeraire = self.forward_and_numeraire()
        time = max(self.time_between(as_of, option.expiry), 0.0)
        volatility = self.volatility_at(option.expiry)
        if option.barriers:
            value = barrier_option_value(
                option, time, self.spot(), forward, numeraire, volatility
            )
        else:
            value = numeraire * option_price(
                self.distribution, option.option_type, time, forward, option.strike, volatility
            )
        return self.notional * value + self.payment_pv()


class SwaptionPricer(OptionPricerBase):
    """Swaption on the forward swap rate with the fixed leg annuity as numeraire."""

    use_relative_time = False

    def __init__(
        self,
        swaption: Swaption,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        volatility: VolatilitySurfaceLike | float,
        reference_curve: DiscountCurveLike | None = None,
        notional: float = 1.0,
        distribution: DistributionType = DistributionType.LOGNORMAL,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(
            swaption,
            as_of,
            settle,
            discount_curve,
            volatility,
            notional,
            distribution,
            payment_pricer,
            currency,
        )
        self.reference_curve = reference_curve if reference_curve is not None else discount_curve

    def forward_and_numeraire(self) -> tuple[float, float]:
        swaption = self.product
        as_of = self.as_of
        df0 = self.discount_curve.interpolate(as_of)
        fixed = swaption.fixed_leg
        annuity = sum(
            year_fraction(p.start, p.end, fixed.day_count)
            * self.discount_curve.interpolate(p.pay_date)
            / df0
            for p in fixed.accrual_periods()
            if p.pay_date > as_of
        )
        if annuity <= 0.0:
            return 0.0, 0.0
        floating = swaption.floating_leg
        float_pv = 0.0
        for p in floating.accrual_periods():
            if p.pay_date <= as_of:
                continue
            rate = self.reference_curve.forward_rate(p.start, p.end, floating.day_count)
            tau = year_fraction(p.start, p.end, floating.day_count)
            float_pv += rate * tau * self.discount_curve.interpolate(p.pay_date) / df0
        return float_pv / annuity, annuity


class FxOptionPricer(OptionPricerBase):
    """Option on the forward FX rate to delivery."""

    use_relative_time = False

    def __init__(
        self,
        option: FxOption,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        fx_curve: ForwardPriceCurve,
        volatility: VolatilitySurfaceLike | float,
        notional: float = 1.0,
        distribution: DistributionType = DistributionType.LOGNORMAL,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(
            option,
            as_of,
            settle,
            discount_curve,
            volatility,
            notional,
            distribution,
            payment_pricer,
            currency,
        )
        self.fx_curve = fx_curve

    def forward_and_numeraire(self) -> tuple[float, float]:
        delivery = self.product.underlier_maturity
        if self.as_of >= delivery:
            return self.fx_curve.spot, 1.0
        return (
            self.fx_curve.interpolate(delivery),
            self.discount_curve.discount_factor(delivery, self.as_of),
        )

    def spot(self) -> float:
        return self.fx_curve.spot


class StockOptionPricer(OptionPricerBase):
    """Option on a stock or commodity forward price."""

    def __init__(
        self,
        option: StockOption,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        price_curve: ForwardPriceCurve,
        volatility: VolatilitySurfaceLike | float,
        notional: float = 1.0,
        distribution: DistributionType = DistributionType.LOGNORMAL,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(
            option,
            as_of,
            settle,
            discount_curve,
            volatility,
            notional,
            distribution,
            payment_pricer,
            currency,
        )
        self.price_curve = price_curve

    def forward_and_numeraire(self) -> tuple[float, float]:
        maturity = self.product.underlier_maturity
        if self.as_of > maturity:
            return self.price_curve.interpolate(maturity), 1.0
        return (
            self.price_curve.interpolate(maturity),
            self.discount_curve.discount_factor(maturity, self.as_of),
        )

    def spot(self) -> float:
        return self.price_curve.interpolate(self.as_of)


def forward_bond_price(
    events: Sequence[PaymentEvent],
    horizon: date,
    discount_curve: DiscountCurveLike,
    reference_curve: DiscountCurveLike | None,
    face: float,
) -> float:
    """Full price at ``horizon``, per unit of face, of the bond payments after it."""
    if face == 0.0:
        return 0.0
    total = sum(
        event.domestic_amount(reference_curve) * discount_curve.interpolate(event.pay_date)
        for event in events
        if event.pay_date > horizon
    )
    return total / discount_curve.interpolate(horizon) / face


class BondOptionPricer(OptionPricerBase):
    """Option on the forward full price of a bond, discounted to expiry.

    Attributes:
        reference_curve: Projection curve of floating bond coupons
        bond_events: Bond payments from the expiry on, generated once
    """

    def __init__(
        self,
        option: BondOption,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        volatility: VolatilitySurfaceLike | float,
        reference_curve: DiscountCurveLike | None = None,
        notional: float = 1.0,
        distribution: DistributionType = DistributionType.LOGNORMAL,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(
            option,
            as_of,
            settle,
            discount_curve,
            volatility,
            notional,
            distribution,
            payment_pricer,
            currency,
        )
        self.reference_curve = reference_curve if reference_curve is not None else discount_curve
        self.bond_events = group_payments(leg_payments(option.bond.as_leg(), option.expiry))

    def forward_and_numeraire(self) -> tuple[float, float]:
        option = self.product
        as_of = self.as_of
        forward = forward_bond_price(
            self.bond_events,
            max(as_of, option.expiry),
            self.discount_curve,
            self.reference_curve,
            option.bond.notional,
        )
        if as_of >= option.expiry:
            return forward, 1.0
        return forward, self.discount_curve.discount_factor(option.expiry, as_of)


class CdsOptionPricer(OptionPricerBase):
    """Option on the forward spread of a CDS, with the risky annuity as numeraire."""

    def __init__(
        self,
        option: CdsOption,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        survival_curve: SurvivalCurveLike,
        volatility: VolatilitySurfaceLike | float,
        notional: float = 1.0,
        distribution: DistributionType = DistributionType.LOGNORMAL,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(
            option,
            as_of,
            settle,
            discount_curve,
            volatility,
            notional,
            distribution,
            payment_pricer,
            currency,
        )
        self.survival_curve = survival_curve

    def forward_and_numeraire(self) -> tuple[float, float]:
        option = self.product
        cashflow = build_cashflow(option.cds, option.cds.cds_type)
        return forward_spread(
            cashflow,
            self.as_of,
            self.discount_curve,
            self.survival_curve,
            front_end_protection=not option.knockout,
        )


class StockPricer(PricerBase):
    """A stock holding worth ``shares * price`` until its horizon."""

    def __init__(
        self,
        stock: Stock,
        as_of: date,
        settle: date,
        price_curve: ForwardPriceCurve,
        notional: float = 1.0,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(stock, as_of, settle, notional, payment_pricer, currency)
        self.price_curve = price_curve

    def pv(self) -> float:
        if self.as_of > self.maturity:
            return self.payment_pv()
        value = self.product.shares * self.price_curve.interpolate(self.as_of)
        return self.notional * value + self.payment_pv()
