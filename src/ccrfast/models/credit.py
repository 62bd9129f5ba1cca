"""Credit default swap cash flows and their valuation.

A :class:`CdsCashflow` is the product-level description of a single-name
CDS: premium periods, the amount paid on default per unit notional and an
optional principal repaid at maturity (funded structures). It is generated
once and valued many times.

Sign convention: a positive notional sells protection. Unfunded contracts
pay ``recovery - 1`` on default; funded notes pay ``recovery`` on default and
return the principal at maturity.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from ccrfast.core.types import BusinessDayConvention, Calendar, DayCountConvention
from ccrfast.market.curves import DiscountCurveLike, SurvivalCurveLike
from ccrfast.utilities.conventions import year_fraction
from ccrfast.utilities.schedules import generate_periods


@dataclass(frozen=True)
class CdsPeriod:
    """Premium accrual period with its year fraction."""

    start: date
    end: date
    pay_date: date
    accrual: float


@dataclass(frozen=True)
class CdsCashflow:
    """Precomputed single-name credit cash flows.

    Attributes:
        effective: Protection effective date
        maturity: Protection end date
        periods: Premium periods in chronological order
        premium: Running spread (decimal per annum)
        default_amount: Amount paid on default per unit notional
        principal: Amount repaid at maturity on survival
        day_count: Accrual convention of the premium
    """

    effective: date
    maturity: date
    periods: tuple[CdsPeriod, ...]
    premium: float
    default_amount: float
    principal: float = 0.0
    day_count: DayCountConvention = DayCountConvention.A360

    def with_default_amount(self, default_amount: float) -> CdsCashflow:
        return replace(self, default_amount=default_amount)

    @property
    def pay_dates(self) -> tuple[date, ...]:
        return tuple(p.pay_date for p in self.periods)


def generate_cds_cashflow(
    effective: date,
    maturity: date,
    premium: float,
    default_amount: float,
    tenor: str = "3M",
    day_count: DayCountConvention = DayCountConvention.A360,
    business_day_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING,
    calendar: Calendar | str = Calendar.NO_CALENDAR,
    principal: float = 0.0,
) -> CdsCashflow:
    """Build the premium schedule and default terms of a CDS."""
    periods = tuple(
        CdsPeriod(p.start, p.end, p.pay_date, year_fraction(p.start, p.end, day_count))
        for p in generate_periods(effective, maturity, tenor, business_day_convention, calendar)
    )
    return CdsCashflow(
        effective=effective,
        maturity=maturity,
        periods=periods,
        premium=premium,
        default_amount=default_amount,
        principal=principal,
        day_count=day_count,
    )


def cds_cashflow_pv(
    cashflow: CdsCashflow,
    as_of: date,
    protection_start: date,
    discount_curve: DiscountCurveLike,
    survival_curve: SurvivalCurveLike,
    include_settle_payments: bool = False,
) -> float:
    """Value per unit notional at ``as_of``, conditional on survival to ``as_of``.

    The premium leg pays the full period coupon on survival to the period end
    plus half of the protected accrual on default within the period. The
    protection leg pays ``default_amount`` on default, discounted at the
    period midpoint. Protection before ``protection_start`` is ignored.

    Args:
        cashflow: Precomputed cash flows
        as_of: Valuation date
        protection_start: First date of protection
        discount_curve: Discounting curve
        survival_curve: Survival curve of the reference name
        include_settle_payments: Count premiums paid exactly on ``as_of``

    Returns:
        Value per unit notional (0 if the name has not survived to ``as_of``)
    """
    s0 = survival_curve.interpolate(as_of)
    if s0 <= 0.0:
        return 0.0
    df0 = discount_curve.interpolate(as_of)

    fee = 0.0
    protection = 0.0
    for period in cashflow.periods:
        if period.pay_date < as_of or (period.pay_date == as_of and not include_settle_payments):
            continue
        df_pay = discount_curve.interpolate(period.pay_date) / df0
        s_end = survival_curve.interpolate(period.end) / s0
        fee += cashflow.premium * period.accrual * df_pay * s_end

        begin = max(period.start, protection_start, as_of)
        if period.end <= begin:
            continue
        s_begin = survival_curve.interpolate(begin) / s0
        default_prob = s_begin - s_end
        accrued_on_default = 0.5 * year_fraction(begin, period.end, cashflow.day_count)
        fee += cashflow.premium * accrued_on_default * df_pay * default_prob
        df_begin = discount_curve.interpolate(begin)
        df_mid = 0.5 * (df_begin + discount_curve.interpolate(period.end)) / df0
        protection += cashflow.default_amount * df_mid * default_prob

    principal = 0.0
    if cashflow.principal != 0.0 and cashflow.maturity > as_of:
        principal = (
            cashflow.principal
            * discount_curve.interpolate(cashflow.maturity)
            / df0
            * survival_curve.interpolate(cashflow.maturity)
            / s0
        )
    return fee + protection + principal


def risky_annuity(
    cashflow: CdsCashflow,
    as_of: date,
    discount_curve: DiscountCurveLike,
    survival_curve: SurvivalCurveLike,
) -> float:
    """Premium leg value of a unit spread, conditional on survival to ``as_of``."""
    unit = replace(cashflow, premium=1.0, default_amount=0.0, principal=0.0)
    return cds_cashflow_pv(unit, as_of, as_of, discount_curve, survival_curve)


def forward_spread(
    cashflow: CdsCashflow,
    as_of: date,
    discount_curve: DiscountCurveLike,
    survival_curve: SurvivalCurveLike,
    front_end_protection: bool = False,
) -> tuple[float, float]:
    """Forward par spread and risky annuity of a CDS seen from ``as_of``.

    Each remaining period contributes its premium on the average survival
    over the period and its protection discounted at the period midpoint.
    With ``front_end_protection`` the loss between ``as_of`` and the CDS
    effective date is added to the protection leg, as for an option that is
    not cancelled by an early default.

    Returns:
        ``(spread, annuity)``, both zero once no premium period remains
    """
    loss_given_default = 1.0 - survival_curve.recovery_rate
    annuity = 0.0
    protection = 0.0
    for period in cashflow.periods:
        if period.end <= as_of:
            continue
        start = max(period.start, as_of)
        df_start = discount_curve.interpolate(start)
        df_end = discount_curve.interpolate(period.end)
        s_start = survival_curve.interpolate(start)
        s_end = survival_curve.interpolate(period.end)
        annuity += 0.5 * df_end * period.accrual * (s_start + s_end)
        protection += loss_given_default * 0.5 * (df_start + df_end) * (s_start - s_end)
    if annuity <= 0.0:
        return 0.0, 0.0
    if front_end_protection and cashflow.effective > as_of:
        default_before_start = survival_curve.interpolate(as_of) - survival_curve.interpolate(
            cashflow.effective
        )
        protection += (
            loss_given_default
            * default_before_start
            * discount_curve.interpolate(cashflow.effective)
        )
    df0 = discount_curve.interpolate(as_of)
    return protection / annuity, annuity / df0
