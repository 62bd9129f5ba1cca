"""Payment schedule cache and incremental schedule valuation.

The payment schedule of a product is extracted once, when the fast pricer is
built, and then valued at many future dates. Valuing at ``settle`` skips
every event already paid, splits the coupon of the period straddling
``settle`` into its accrued and remaining parts, and discounts the rest with
``DF(pay) / DF(settle)``.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from ccrfast.core.payments import InterestPayment, PaymentEvent
from ccrfast.logging_config import get_logger
from ccrfast.market.curves import DiscountCurveLike
from ccrfast.market.volatility import VolatilitySurfaceLike
from ccrfast.pricers.base import PricerLike, notional_scale

logger = get_logger(__name__)


@dataclass(frozen=True)
class PaymentScheduleCache:
    """Immutable payment events of one product.

    Attributes:
        events: Payment events in pay date order
        product_notional: Notional the amounts are expressed in
        pricer_notional: Notional of the position
    """

    events: tuple[PaymentEvent, ...]
    product_notional: float = 1.0
    pricer_notional: float = 1.0
    _pay_dates: tuple[date, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_pay_dates", tuple(e.pay_date for e in self.events))

    @classmethod
    def build(
        cls,
        pricer: PricerLike,
        from_date: date,
        convexity_surface: VolatilitySurfaceLike | None = None,
        reference_curve: DiscountCurveLike | None = None,
    ) -> PaymentScheduleCache:
        """Extract the payment schedule of ``pricer`` from ``from_date`` on.

        When ``convexity_surface`` is given, in-arrears coupons get their
        convexity volatility frozen from it.

        Raises:
            PaymentScheduleError: If the pricer has no payment schedule
        """
        events = tuple(pricer.get_payment_schedule(from_date))
        if convexity_surface is not None and reference_curve is not None:
            events = tuple(
                PaymentEvent(
                    event.pay_date,
                    tuple(
                        p.with_fixed_convexity(convexity_surface, reference_curve)
                        if isinstance(p, InterestPayment)
                        else p
                        for p in event.payments
                    ),
                )
                for event in events
            )
        product_notional = getattr(pricer, "product_notional", 1.0)
        cache = cls(events, product_notional, pricer.notional)
        logger.debug(
            "Payment schedule cached",
            extra={"pricer": type(pricer).__name__, "events": len(events), "from_date": from_date},
        )
        return cache

    @property
    def pay_dates(self) -> tuple[date, ...]:
        return self._pay_dates

    def remaining(self, settle: date, include_settle_payments: bool) -> Sequence[PaymentEvent]:
        """Events still to be paid at ``settle``."""
        if include_settle_payments:
            start = bisect.bisect_left(self._pay_dates, settle)
        else:
            start = bisect.bisect_right(self._pay_dates, settle)
        return self.events[start:]

    def pv(
        self,
        settle: date,
        discount_curve: DiscountCurveLike,
        reference_curve: DiscountCurveLike | None = None,
        volatility_surface: VolatilitySurfaceLike | None = None,
        *,
        include_settle_payments: bool,
        discount_accrued: bool = False,
        clean: bool = False,
    ) -> float:
        """Value at ``settle`` of the remaining payments.

        Args:
            settle: Valuation date; payments before it are skipped
            discount_curve: Discounting curve
            reference_curve: Projection curve of floating coupons
            volatility_surface: Convexity volatility of in-arrears coupons
            include_settle_payments: Count payments falling on ``settle``
            discount_accrued: Discount the accrued part of the current coupon
                like the rest of it
            clean: Subtract the accrued part of the current coupon

        Returns:
            Present value at ``settle`` in the pricer's notional
        """
        events = self.remaining(settle, include_settle_payments)
        if not events:
            return 0.0
        df_settle = discount_curve.interpolate(settle)
        total = 0.0
        for i, event in enumerate(events):
            df = discount_curve.interpolate(event.pay_date) / df_settle
            for payment in event.payments:
                amount = payment.domestic_amount(reference_curve, volatility_surface)
                whole = (
                    i > 0
                    or (discount_accrued and not clean)
                    or not payment.is_interest
                    or payment.accrual_start >= settle
                )
                if whole:
                    total += df * amount
                    continue
                accrued = payment.accrued_ratio(settle) * amount
                if discount_accrued:
                    total += df * amount
                else:
                    total += accrued + df * (amount - accrued)
                if clean:
                    total -= accrued
        return total * notional_scale(self.product_notional, self.pricer_notional)
