"""Full pricers of interest rate products."""

from __future__ import annotations

import copy
from datetime import date

from ccrfast.core.payments import (
    InflationPayment,
    InterestPayment,
    OneTimePayment,
    PaymentEvent,
    group_payments,
)
from ccrfast.core.time import fraction_365
from ccrfast.core.types import DistributionType, OptionType
from ccrfast.market.curves import DiscountCurveLike, ForwardPriceCurve, SurvivalCurveLike
from ccrfast.market.volatility import VolatilitySurfaceLike, as_surface
from ccrfast.models.black import black, black_normal
from ccrfast.pricers.base import PricerBase, notional_scale
from ccrfast.products.rates import Bond, CapFloor, InflationBond, Swap, SwapLeg
from ccrfast.utilities.conventions import year_fraction


def leg_maturity(leg: SwapLeg) -> date:
    """Last (rolled) payment date of a leg."""
    periods = leg.accrual_periods()
    return max(periods[-1].pay_date, leg.maturity)


def leg_payments(leg: SwapLeg, from_date: date) -> list[InterestPayment | OneTimePayment]:
    """Coupons and final exchange of ``leg`` paid on or after ``from_date``."""
    payments: list[InterestPayment | OneTimePayment] = [
        InterestPayment(
            pay_date=period.pay_date,
            accrual_start=period.start,
            accrual_end=period.end,
            notional=leg.notional,
            coupon=leg.coupon,
            day_count=leg.day_count,
            floating=leg.floating,
            in_arrears=leg.in_arrears,
        )
        for period in leg.accrual_periods()
        if period.pay_date >= from_date
    ]
    maturity = leg_maturity(leg)
    if leg.final_exchange and maturity >= from_date:
        payments.append(OneTimePayment(maturity, leg.notional))
    return payments


class SwapLegPricer(PricerBase):
    """Discounted cash flow pricer of one swap leg.

    Floating coupons are projected off ``reference_curve`` (the discount
    curve when none is given). In-arrears coupons are convexity adjusted with
    ``convexity_volatility``.

    Attributes:
        leg: Leg terms (the product itself, or the leg view of a bond)
        discount_curve: Discounting curve
        reference_curve: Projection curve of the floating index
        discounting_accrued: Discount the accrued part of the current coupon
        include_settle_payments: Count payments falling on the settle date
        convexity_volatility: Surface for in-arrears adjustments

    The two flags may be left as None to let the fast engine configuration
    decide; the full valuation treats None as False.
    """

    def __init__(
        self,
        leg: SwapLeg,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        reference_curve: DiscountCurveLike | None = None,
        notional: float = 1.0,
        discounting_accrued: bool | None = None,
        include_settle_payments: bool | None = None,
        convexity_volatility: VolatilitySurfaceLike | float | None = None,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(leg, as_of, settle, notional, payment_pricer, currency)
        self.leg = leg
        self.discount_curve = discount_curve
        self.reference_curve = reference_curve if reference_curve is not None else discount_curve
        self.discounting_accrued = discounting_accrued
        self.include_settle_payments = include_settle_payments
        self.convexity_volatility = (
            None if convexity_volatility is None else as_surface(convexity_volatility)
        )

    @property
    def maturity(self) -> date:
        """Last (rolled) payment date of the leg."""
        return leg_maturity(self.leg)

    @property
    def projection_curve(self):
        """Curve projected amounts are read from."""
        return self.reference_curve

    @property
    def next_break_date(self) -> date | None:
        return self.leg.next_break_date

    @property
    def product_notional(self) -> float:
        return self.leg.notional

    def generate_payment_schedule(self, from_date: date) -> tuple[PaymentEvent, ...]:
        return group_payments(leg_payments(self.leg, from_date))

    def with_leg(self, leg: SwapLeg) -> SwapLegPricer:
        """Copy of the pricer valuing different leg terms on the same market."""
        clone = copy.copy(self)
        clone.product = leg
        clone.leg = leg
        return clone

    def pv(self) -> float:
        settle = self.settle
        if settle > self.maturity or (
            self.next_break_date is not None and settle >= self.next_break_date
        ):
            return self.payment_pv()

        df_settle = self.discount_curve.interpolate(settle)
        events = [
            event
            for event in self.get_payment_schedule(settle)
            if event.pay_date > settle or self.include_settle_payments
        ]
        total = 0.0
        for i, event in enumerate(events):
            df = self.discount_curve.interpolate(event.pay_date) / df_settle
            for payment in event.payments:
                amount = payment.domestic_amount(self.projection_curve, self.convexity_volatility)
                split = (
                    i == 0
                    and payment.is_interest
                    and payment.accrual_start < settle
                    and not self.discounting_accrued
                )
                if split:
                    accrued = payment.accrued_ratio(settle) * amount
                    total += accrued + df * (amount - accrued)
                else:
                    total += df * amount
        total *= notional_scale(self.product_notional, self.notional)
        return total * df_settle / self.discount_curve.interpolate(self.as_of) + self.payment_pv()


class BondPricer(SwapLegPricer):
    """Bond priced as a received leg with final principal.

    Floating coupons are projected off ``reference_curve``. When the issuer's
    ``survival_curve`` records a default on or before the settle date the
    bond is worth its recovery, ``recovery_rate * notional``, paid on the
    default settlement date. Issuer credit risk of a performing bond is
    carried by the discount curve.

    Attributes:
        survival_curve: Issuer curve, read for its default event only
    """

    def __init__(
        self,
        bond: Bond,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        notional: float = 1.0,
        discounting_accrued: bool | None = None,
        include_settle_payments: bool | None = None,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
        reference_curve: DiscountCurveLike | None = None,
        survival_curve: SurvivalCurveLike | None = None,
    ):
        super().__init__(
            bond.as_leg(),
            as_of,
            settle,
            discount_curve,
            reference_curve,
            notional=notional,
            discounting_accrued=discounting_accrued,
            include_settle_payments=include_settle_payments,
            payment_pricer=payment_pricer,
            currency=currency,
        )
        self.product = bond
        self.survival_curve = survival_curve

    def default_payment(self, settle: date) -> OneTimePayment | None:
        """Recovery owed if the issuer has defaulted by ``settle``, else None."""
        curve = self.survival_curve
        if curve is None or curve.default_date is None or curve.default_date > settle:
            return None
        return OneTimePayment(
            curve.default_settlement_date or curve.default_date,
            curve.recovery_rate * self.product_notional,
        )

    def pv(self) -> float:
        recovery = self.default_payment(self.settle)
        if recovery is None:
            return super().pv()
        pay_date = recovery.pay_date
        if pay_date < self.settle or (pay_date == self.settle and not self.include_settle_payments):
            return self.payment_pv()
        scale = notional_scale(self.product_notional, self.notional)
        df = self.discount_curve.discount_factor(pay_date, self.as_of)
        return scale * recovery.amount * df + self.payment_pv()


class InflationBondPricer(SwapLegPricer):
    """Inflation indexed bond on the leg structure of its real coupons.

    Coupons and principal are projected from ``index_curve``, the forward
    levels of the inflation index (for instance a :class:`ForwardPriceCurve`
    with the current index as spot, the nominal curve for discounting and
    the real rate curve as carry).

    Attributes:
        index_curve: Forward index levels by observation date
    """

    def __init__(
        self,
        bond: InflationBond,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        index_curve: ForwardPriceCurve,
        notional: float = 1.0,
        discounting_accrued: bool | None = None,
        include_settle_payments: bool | None = None,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(
            bond.as_leg(),
            as_of,
            settle,
            discount_curve,
            notional=notional,
            discounting_accrued=discounting_accrued,
            include_settle_payments=include_settle_payments,
            payment_pricer=payment_pricer,
            currency=currency,
        )
        self.product = bond
        self.index_curve = index_curve

    @property
    def projection_curve(self) -> ForwardPriceCurve:
        return self.index_curve

    def generate_payment_schedule(self, from_date: date) -> tuple[PaymentEvent, ...]:
        bond: InflationBond = self.product
        payments: list[InflationPayment] = [
            InflationPayment(
                pay_date=period.pay_date,
                index_date=bond.index_date(period.end),
                real_amount=bond.notional
                * bond.coupon
                * year_fraction(period.start, period.end, bond.day_count),
                base_index=bond.base_index,
                accrual_start=period.start,
                accrual_end=period.end,
                day_count=bond.day_count,
            )
            for period in self.leg.accrual_periods()
            if period.pay_date >= from_date
        ]
        maturity = self.maturity
        if maturity >= from_date:
            payments.append(
                InflationPayment(
                    pay_date=maturity,
                    index_date=bond.index_date(bond.maturity),
                    real_amount=bond.notional,
                    base_index=bond.base_index,
                    floored=bond.floor_principal,
                )
            )
        return group_payments(payments)


class _LegAttribute:
    """Swap pricer attribute mirrored onto every leg pricer."""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: SwapPricer | None, objtype: type | None = None):
        if obj is None:
            return self
        return obj.__dict__[self.name]

    def __set__(self, obj: SwapPricer, value) -> None:
        obj.__dict__[self.name] = value
        for leg_pricer in obj.leg_pricers:
            setattr(leg_pricer, self.name, value)


class SwapPricer(PricerBase):
    """Multi-leg swap with an optional mutual break.

    Dates and market data set on the swap pricer are forwarded to its leg
    pricers, so the legs always value on the swap's market.

    Example:
        >>> pricer = SwapPricer(swap, as_of, as_of, DiscountCurve.flat(as_of, 0.03))
        >>> fixed = swap.legs[0].with_coupon(pricer.par_coupon())
    """

    as_of = _LegAttribute()
    settle = _LegAttribute()
    discount_curve = _LegAttribute()
    reference_curve = _LegAttribute()
    convexity_volatility = _LegAttribute()

    def __init__(
        self,
        swap: Swap,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        reference_curve: DiscountCurveLike | None = None,
        notional: float = 1.0,
        discounting_accrued: bool | None = None,
        include_settle_payments: bool | None = None,
        convexity_volatility: VolatilitySurfaceLike | float | None = None,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        self.leg_pricers = tuple(
            SwapLegPricer(
                leg,
                as_of,
                settle,
                discount_curve,
                reference_curve,
                discounting_accrued=discounting_accrued,
                include_settle_payments=include_settle_payments,
                convexity_volatility=convexity_volatility,
            )
            for leg in swap.legs
        )
        super().__init__(swap, as_of, settle, notional, payment_pricer, currency)
        self.discount_curve = discount_curve
        self.reference_curve = self.leg_pricers[0].reference_curve
        self.convexity_volatility = self.leg_pricers[0].convexity_volatility

    def __copy__(self) -> SwapPricer:
        clone = super().__copy__()
        clone.__dict__["leg_pricers"] = tuple(copy.copy(p) for p in self.leg_pricers)
        return clone

    @property
    def maturity(self) -> date:
        return max(p.maturity for p in self.leg_pricers)

    @property
    def next_break_date(self) -> date | None:
        return self.product.next_break_date

    def reset(self) -> None:
        super().reset()
        for leg_pricer in self.leg_pricers:
            leg_pricer.reset()

    def legs_pv(self) -> float:
        return self.notional * sum(p.pv() for p in self.leg_pricers)

    def pv(self) -> float:
        if self.next_break_date is not None and self.settle >= self.next_break_date:
            return 0.0
        return self.legs_pv() + self.payment_pv()

    def _fixed_leg_pricer(self) -> SwapLegPricer:
        for leg_pricer in self.leg_pricers:
            if not leg_pricer.leg.floating:
                return leg_pricer
        raise ValueError("Swap has no fixed leg")

    def fixed_leg_annuity(self) -> float:
        """Change in swap value per unit change of the fixed coupon."""
        fixed = self._fixed_leg_pricer()
        one = fixed.with_leg(fixed.leg.with_coupon(1.0)).pv()
        zero = fixed.with_leg(fixed.leg.with_coupon(0.0)).pv()
        return self.notional * (one - zero)

    def par_coupon(self) -> float:
        """Fixed coupon at which the legs are worth zero in total."""
        fixed = self._fixed_leg_pricer()
        return fixed.leg.coupon - self.legs_pv() / self.fixed_leg_annuity()


def caplet_price(
    option_type: OptionType,
    distribution: DistributionType,
    time: float,
    forward: float,
    strike: float,
    volatility: float,
) -> float:
    """Undiscounted caplet (call) or floorlet (put) price per unit accrual.

    Lognormal prices fall back to intrinsic value for non-positive forwards
    or strikes.
    """
    if distribution is DistributionType.NORMAL:
        return black_normal(option_type, time, 0.0, forward, strike, volatility)
    return black(option_type, time, forward, strike, volatility)


class CapFloorPricer(PricerBase):
    """Black or Black-normal cap/floor pricer; each caplet fixes at its period start."""

    def __init__(
        self,
        cap: CapFloor,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        reference_curve: DiscountCurveLike | None = None,
        volatility: VolatilitySurfaceLike | float = 0.0,
        notional: float = 1.0,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(cap, as_of, settle, notional, payment_pricer, currency)
        self.discount_curve = discount_curve
        self.reference_curve = reference_curve if reference_curve is not None else discount_curve
        self.volatility = as_surface(volatility)

    @property
    def maturity(self) -> date:
        return self.product.accrual_periods()[-1].pay_date

    def pv(self) -> float:
        cap = self.product
        total = 0.0
        for period in cap.accrual_periods():
            if period.pay_date <= self.settle:
                continue
            tau = year_fraction(period.start, period.end, cap.day_count)
            forward = self.reference_curve.forward_rate(period.start, period.end, cap.day_count)
            price = caplet_price(
                cap.option_type,
                cap.volatility_type,
                fraction_365(self.as_of, period.start),
                forward,
                cap.strike,
                self.volatility.interpolate(period.start, cap.strike),
            )
            total += self.discount_curve.interpolate(period.pay_date) * tau * price
        scale = cap.notional * notional_scale(cap.notional, self.notional)
        return scale * total / self.discount_curve.interpolate(self.as_of) + self.payment_pv()
