"""Payments and payment events.

A pricer describes its remaining cash flows as payments; payments settling on
the same date are grouped into a :class:`PaymentEvent`. Fixed amounts are
known at generation time, projected amounts (floating coupons, inflation
indexed amounts) are recomputed from the reference or index curve each time
they are valued.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from itertools import groupby
from typing import TYPE_CHECKING, TypeAlias

from ccrfast.core.time import fraction_365
from ccrfast.core.types import DayCountConvention
from ccrfast.exceptions import PaymentScheduleError
from ccrfast.utilities.conventions import day_count, year_fraction

if TYPE_CHECKING:
    from ccrfast.market.curves import DiscountCurveLike, ForwardPriceCurve
    from ccrfast.market.volatility import VolatilitySurfaceLike


def accrued_ratio(
    accrual_start: date, accrual_end: date, settle: date, convention: DayCountConvention
) -> float:
    """Share of a period accrued by ``settle`` (day count based, in [0, 1]).

    Accrual stops at the unadjusted period end, so between the end and a
    rolled pay date the whole coupon counts as accrued.
    """
    total = day_count(accrual_start, accrual_end, convention)
    if total <= 0:
        return 0.0
    accrued = day_count(accrual_start, min(settle, accrual_end), convention)
    return min(max(accrued / total, 0.0), 1.0)


@dataclass(frozen=True)
class OneTimePayment:
    """A known cash amount paid on one date (fees, principal exchanges)."""

    pay_date: date
    amount: float

    @property
    def is_projected(self) -> bool:
        return False

    @property
    def is_interest(self) -> bool:
        return False

    def domestic_amount(
        self,
        reference_curve: DiscountCurveLike | None = None,  # noqa: ARG002
        volatility_surface: VolatilitySurfaceLike | None = None,  # noqa: ARG002
    ) -> float:
        return self.amount


@dataclass(frozen=True)
class InterestPayment:
    """Coupon accrued over a period.

    Fixed coupons pay ``notional * coupon * fraction``. Floating coupons pay
    ``notional * (index + coupon) * fraction`` where the index is the fixing
    if known, otherwise the forward rate of the reference curve, convexity
    adjusted when paid in arrears.

    Attributes:
        pay_date: Payment date
        accrual_start: Start of the accrual period
        accrual_end: End of the accrual period
        notional: Accruing notional
        coupon: Fixed rate, or spread over the index for floating coupons
        day_count: Accrual convention
        floating: Whether the coupon references an index
        fixing: Index fixing if it is already known
        in_arrears: Index fixes at the end of the period
        convexity_volatility: Volatility used for the in-arrears adjustment
    """

    pay_date: date
    accrual_start: date
    accrual_end: date
    notional: float
    coupon: float
    day_count: DayCountConvention = DayCountConvention.A360
    floating: bool = False
    fixing: float | None = None
    in_arrears: bool = False
    convexity_volatility: float = 0.0

    @property
    def is_projected(self) -> bool:
        return self.floating and self.fixing is None

    @property
    def is_interest(self) -> bool:
        return True

    @property
    def accrual_fraction(self) -> float:
        return year_fraction(self.accrual_start, self.accrual_end, self.day_count)

    def accrued_ratio(self, settle: date) -> float:
        return accrued_ratio(self.accrual_start, self.accrual_end, settle, self.day_count)

    def index_rate(
        self,
        reference_curve: DiscountCurveLike | None,
        volatility_surface: VolatilitySurfaceLike | None = None,
    ) -> float:
        if self.fixing is not None:
            return self.fixing
        if reference_curve is None:
            raise PaymentScheduleError(
                "Floating coupon needs a reference curve",
                context={"pay_date": self.pay_date},
            )
        forward = reference_curve.forward_rate(self.accrual_start, self.accrual_end, self.day_count)
        if not self.in_arrears:
            return forward
        vol = (
            self.convexity_volatility
            if volatility_surface is None
            else volatility_surface.interpolate(self.accrual_start, forward)
        )
        tau = self.accrual_fraction
        t_fix = max(fraction_365(reference_curve.as_of, self.accrual_start), 0.0)
        return forward + forward * forward * vol * vol * t_fix * tau / (1.0 + forward * tau)

    def domestic_amount(
        self,
        reference_curve: DiscountCurveLike | None = None,
        volatility_surface: VolatilitySurfaceLike | None = None,
    ) -> float:
        rate = self.coupon
        if self.floating:
            rate += self.index_rate(reference_curve, volatility_surface)
        return self.notional * rate * self.accrual_fraction

    def with_fixed_convexity(
        self, volatility_surface: VolatilitySurfaceLike, reference_curve: DiscountCurveLike
    ) -> InterestPayment:
        """Copy with the in-arrears convexity volatility frozen from a surface."""
        if not (self.floating and self.in_arrears) or self.fixing is not None:
            return self
        forward = reference_curve.forward_rate(self.accrual_start, self.accrual_end, self.day_count)
        vol = volatility_surface.interpolate(self.accrual_start, forward)
        if math.isnan(vol):
            raise PaymentScheduleError(
                "Convexity volatility is undefined", context={"pay_date": self.pay_date}
            )
        return replace(self, convexity_volatility=vol)


@dataclass(frozen=True)
class InflationPayment:
    """Real amount scaled by the ratio of an inflation index to its base level.

    Coupons carry their accrual period; the principal does not and may be
    floored at par, so it never repays less than its real amount.

    Attributes:
        pay_date: Payment date
        index_date: Date the index is observed (pay date less the indexation lag)
        real_amount: Amount before indexation
        base_index: Index level the bond was issued at
        accrual_start: Start of the coupon period, None for the principal
        accrual_end: End of the coupon period, None for the principal
        day_count: Accrual convention of the coupon
        floored: Pay at least the real amount
        fixing: Index level if it is already published
    """

    pay_date: date
    index_date: date
    real_amount: float
    base_index: float
    accrual_start: date | None = None
    accrual_end: date | None = None
    day_count: DayCountConvention = DayCountConvention.A360
    floored: bool = False
    fixing: float | None = None

    @property
    def is_projected(self) -> bool:
        return self.fixing is None

    @property
    def is_interest(self) -> bool:
        return self.accrual_start is not None

    def accrued_ratio(self, settle: date) -> float:
        if self.accrual_start is None or self.accrual_end is None:
            return 0.0
        return accrued_ratio(self.accrual_start, self.accrual_end, settle, self.day_count)

    def index_ratio(self, index_curve: ForwardPriceCurve | None) -> float:
        if self.fixing is not None:
            index = self.fixing
        elif index_curve is None:
            raise PaymentScheduleError(
                "Inflation payment needs an index curve", context={"pay_date": self.pay_date}
            )
        else:
            index = index_curve.interpolate(self.index_date)
        ratio = index / self.base_index
        return max(ratio, 1.0) if self.floored else ratio

    def domestic_amount(
        self,
        reference_curve: ForwardPriceCurve | None = None,
        volatility_surface: VolatilitySurfaceLike | None = None,  # noqa: ARG002
    ) -> float:
        return self.real_amount * self.index_ratio(reference_curve)


Payment: TypeAlias = OneTimePayment | InterestPayment | InflationPayment


@dataclass(frozen=True)
class PaymentEvent:
    """Payments settling on the same date.

    Attributes:
        pay_date: Common payment date
        payments: Payments in generation order
    """

    pay_date: date
    payments: tuple[Payment, ...]

    @property
    def is_projected(self) -> bool:
        return any(p.is_projected for p in self.payments)

    def domestic_amount(
        self,
        reference_curve: DiscountCurveLike | None = None,
        volatility_surface: VolatilitySurfaceLike | None = None,
    ) -> float:
        return sum(p.domestic_amount(reference_curve, volatility_surface) for p in self.payments)


def group_payments(payments: Iterable[Payment]) -> tuple[PaymentEvent, ...]:
    """Group payments by pay date into chronologically ordered events."""
    ordered = sorted(payments, key=lambda p: p.pay_date)
    return tuple(
        PaymentEvent(pay_date, tuple(group))
        for pay_date, group in groupby(ordered, key=lambda p: p.pay_date)
    )
