"""Fast pricers of single-name CDS and CDS indices.

The premium schedule is generated once per instrument. Values are
conditional cash flow values weighted by the survival probability to the
evaluation date, read from the survival curves attached to the pricer.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from datetime import date
from typing import Any

from ccrfast.fast.base import FastPricer, PathState, resolve_flag
from ccrfast.models.credit import cds_cashflow_pv
from ccrfast.pricers.credit import build_cashflow, default_amount, upfront_value


class _CreditFastPricer(FastPricer):
    product_type_field = "cds_type"

    def _build(self) -> None:
        product = self.pricer.product
        self.product_type = getattr(product, self.product_type_field)
        self.cashflow = build_cashflow(product, self.product_type)
        self.include_settle_payments = resolve_flag(
            self.pricer, "include_settle_payments", self.config.include_settle_payments
        )

    def exposure_bound(self) -> date:
        return self.pricer.product.maturity

    def critical_dates(self) -> Iterable[date]:
        dates = list(self.cashflow.pay_dates)
        fee_settle = self.pricer.product.fee_settle
        if fee_settle is not None:
            dates.append(fee_settle)
        return dates

    def protection_start(self, settle: date) -> date:
        return max(self.pricer.product.effective, settle)


class CdsFastPricer(_CreditFastPricer):
    """Single-name CDS.

    A name that has defaulted is worth its default settlement amount until
    the settlement date and nothing afterwards.
    """

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if settle > self.exposure_bound():
            return payment
        market = self.market
        discount = market.discount_curve
        curve = market.survival_curve
        notional = self.pricer.notional
        amount = default_amount(self.product_type, curve.recovery_rate)

        if curve.default_date is not None and curve.default_date <= settle:
            settlement = curve.default_settlement_date or curve.default_date
            if settlement <= settle:
                return payment
            return notional * amount * discount.discount_factor(settlement, settle) + payment

        conditional = cds_cashflow_pv(
            self.cashflow.with_default_amount(amount),
            settle,
            self.protection_start(settle),
            discount,
            curve,
            kwargs.get("include_settle_payments", self.include_settle_payments),
        )
        upfront = upfront_value(self.pricer.product, settle, discount, curve.default_date)
        return curve.interpolate(settle) * notional * (conditional + upfront) + payment


class CdxFastPricer(_CreditFastPricer):
    """CDS index: weighted single-name values sharing one premium schedule.

    Names that left the index at the annex date are skipped. Names defaulted
    since are valued by a full single-name pricer.
    """

    product_type_field = "cdx_type"

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        curves = self.market.survival_curves
        if settle > self.exposure_bound() or not curves:
            return payment
        pricer = self.pricer
        discount = self.market.discount_curve
        weights = pricer.product.name_weights(len(curves))
        include_settle = kwargs.get("include_settle_payments", self.include_settle_payments)
        protection_start = self.protection_start(settle)

        total = 0.0
        for i, (curve, weight) in enumerate(zip(curves, weights, strict=True)):
            if weight == 0.0 or pricer.is_annexed(curve):
                continue
            if curve.default_date is not None and curve.default_date <= settle:
                total += weight * self._defaulted_name_value(i, settle)
                continue
            amount = default_amount(self.product_type, curve.recovery_rate)
            conditional = cds_cashflow_pv(
                self.cashflow.with_default_amount(amount),
                settle,
                protection_start,
                discount,
                curve,
                include_settle,
            )
            total += weight * curve.interpolate(settle) * conditional
        upfront = upfront_value(pricer.product, settle, discount)
        return pricer.notional * (total + upfront) + payment

    def _defaulted_name_value(self, index: int, settle: date) -> float:
        single = copy.copy(self.pricer.single_name_pricer(index))
        single.as_of = settle
        single.settle = settle
        return single.pv()
