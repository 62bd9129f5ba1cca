"""Base pricer class and the payment-only pricer.

Pricers combine a product with market data and value it at their ``as_of``
date for cash flows after their ``settle`` date. They are the full
(non-incremental) valuation models that fast pricers wrap: ``as_of`` and
``settle`` are mutable so a pricer can be revalued at a future date.

Market objects are plain attributes. An outer simulation may replace them
between evaluations; fast pricers always read them from the pricer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Protocol, runtime_checkable

from ccrfast.core.payments import OneTimePayment, PaymentEvent, group_payments
from ccrfast.exceptions import PaymentScheduleError
from ccrfast.market.curves import DiscountCurveLike
from ccrfast.products.base import Product
from ccrfast.products.rates import PaymentStream


@runtime_checkable
class PricerLike(Protocol):
    """The pricer contract consumed by the fast revaluation engine."""

    product: Any
    as_of: date
    settle: date
    notional: float

    @property
    def maturity(self) -> date:
        """Last date on which the instrument can have value."""
        ...

    def pv(self) -> float:
        """Full valuation at ``as_of``."""
        ...

    def reset(self) -> None:
        """Drop anything cached from a previous valuation."""
        ...


class PricerBase(ABC):
    """Abstract base class for all pricers.

    Attributes:
        product: Product terms
        as_of: Valuation date
        settle: Cash flows on or before this date are considered paid
        notional: Position size multiplying the product's unit value
        currency: Valuation currency
        payment_pricer: Optional pricer of additional one-off payments (fees)
        _schedule_cache: Payment events keyed by start date

    Example:
        >>> class MyPricer(PricerBase):
        ...     def pv(self):
        ...         return 0.0
        >>> pricer = MyPricer(product, date(2024, 1, 15), date(2024, 1, 15))
    """

    def __init__(
        self,
        product: Product,
        as_of: date,
        settle: date,
        notional: float = 1.0,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        self.product = product
        self.as_of = as_of
        self.settle = settle
        self.notional = notional
        self.payment_pricer = payment_pricer
        self.currency = currency or product.currency
        self._schedule_cache: dict[date, tuple[PaymentEvent, ...]] = {}

    @abstractmethod
    def pv(self) -> float:
        """Present value at ``as_of`` including any payment pricer."""

    @property
    def maturity(self) -> date:
        return self.product.maturity_date

    def reset(self) -> None:
        """Clear cached schedules; call after changing dates or terms."""
        self._schedule_cache.clear()

    def generate_payment_schedule(self, from_date: date) -> tuple[PaymentEvent, ...]:
        """Produce the payment events after ``from_date``.

        Subclasses with a cash-flow representation override this method.

        Raises:
            PaymentScheduleError: If the product has no payment schedule
        """
        raise PaymentScheduleError(
            f"{type(self).__name__} does not provide a payment schedule",
            context={"product": type(self.product).__name__},
        )

    def get_payment_schedule(self, from_date: date) -> tuple[PaymentEvent, ...]:
        """Payment events with pay date on or after ``from_date`` (cached)."""
        if from_date not in self._schedule_cache:
            self._schedule_cache[from_date] = self.generate_payment_schedule(from_date)
        return self._schedule_cache[from_date]

    def __copy__(self) -> PricerBase:
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._schedule_cache = {}
        return clone

    def payment_pv(self) -> float:
        """Value of the attached payment pricer, if any."""
        if self.payment_pricer is None:
            return 0.0
        return self.payment_pricer.pv()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(product={type(self.product).__name__}, "
            f"as_of={self.as_of}, settle={self.settle}, notional={self.notional})"
        )


def notional_scale(product_notional: float, pricer_notional: float) -> float:
    """Factor converting amounts in product notional to the pricer's notional.

    A pricer notional of 1 means the product notional is used as is.
    """
    if product_notional == 0.0 or pricer_notional == 1.0:
        return 1.0
    return pricer_notional / product_notional


class PaymentPricer(PricerBase):
    """Pricer of known one-off payments.

    Payments after ``settle`` are discounted to ``as_of``; a payment on the
    settle date counts only with ``include_settle_payments``.
    """

    def __init__(
        self,
        product: PaymentStream,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        notional: float = 1.0,
        include_settle_payments: bool | None = None,
    ):
        super().__init__(product, as_of, settle, notional)
        self.discount_curve = discount_curve
        self.include_settle_payments = include_settle_payments

    def generate_payment_schedule(self, from_date: date) -> tuple[PaymentEvent, ...]:
        return group_payments(
            OneTimePayment(pay_date, amount)
            for pay_date, amount in self.product.payments
            if pay_date >= from_date
        )

    def pv(self) -> float:
        df0 = self.discount_curve.interpolate(self.as_of)
        total = 0.0
        for event in self.get_payment_schedule(self.settle):
            if event.pay_date == self.settle and not self.include_settle_payments:
                continue
            total += event.domestic_amount() * self.discount_curve.interpolate(event.pay_date) / df0
        return self.notional * total
