"""Full pricers of credit products.

Values are reported weighted by the reference names' survival to the settle
date: a pricer moved to a future date returns the unconditional value seen
from the curve date, which is what the fast pricers reproduce.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import date

from ccrfast.core.types import CreditProductType
from ccrfast.market.curves import DiscountCurveLike, SurvivalCurveLike
from ccrfast.models.basket import GaussianFactorBasket, TrancheTerms, tranche_pv
from ccrfast.models.credit import (
    CdsCashflow,
    cds_cashflow_pv,
    generate_cds_cashflow,
    risky_annuity,
)
from ccrfast.pricers.base import PricerBase
from ccrfast.products.credit import CDS, CDX, CreditProduct, SyntheticCDO


def default_amount(product_type: CreditProductType, recovery_rate: float) -> float:
    """Amount received on default per unit notional by the protection seller."""
    if product_type is CreditProductType.FUNDED:
        return recovery_rate
    return recovery_rate - 1.0


def build_cashflow(product: CreditProduct, product_type: CreditProductType) -> CdsCashflow:
    """Premium schedule of a CDS-like product; default amount is set at valuation."""
    return generate_cds_cashflow(
        product.effective,
        product.maturity,
        product.premium,
        default_amount=0.0,
        tenor=product.tenor,
        day_count=product.day_count,
        business_day_convention=product.business_day_convention,
        calendar=product.calendar,
        principal=1.0 if product_type is CreditProductType.FUNDED else 0.0,
    )


def upfront_value(
    product: CreditProduct,
    settle: date,
    discount_curve: DiscountCurveLike,
    default_date: date | None = None,
) -> float:
    """Upfront fee per unit notional discounted to ``settle``.

    The fee counts while it is still to be paid and the name has not
    defaulted before it.
    """
    fee_settle = product.fee_settle
    if product.fee == 0.0 or fee_settle is None or fee_settle <= settle:
        return 0.0
    if default_date is not None and default_date < fee_settle:
        return 0.0
    return product.fee * discount_curve.discount_factor(fee_settle, settle)


class CDSPricer(PricerBase):
    """Single-name CDS pricer.

    A positive notional sells protection. After a credit event the contract
    is worth the default settlement amount until it is paid.

    Attributes:
        discount_curve: Discounting curve
        survival_curve: Survival curve of the reference name
        include_settle_payments: Count premiums paid on the settle date
    """

    def __init__(
        self,
        cds: CDS,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        survival_curve: SurvivalCurveLike,
        notional: float = 1.0,
        include_settle_payments: bool | None = None,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(cds, as_of, settle, notional, payment_pricer, currency)
        self.discount_curve = discount_curve
        self.survival_curve = survival_curve
        self.include_settle_payments = include_settle_payments
        self._cashflow: CdsCashflow | None = None

    def reset(self) -> None:
        super().reset()
        self._cashflow = None

    def cashflow(self) -> CdsCashflow:
        """Premium schedule with the default amount of the current recovery."""
        if self._cashflow is None:
            self._cashflow = build_cashflow(self.product, self.product.cds_type)
        return self._cashflow.with_default_amount(
            default_amount(self.product.cds_type, self.survival_curve.recovery_rate)
        )

    def pv(self) -> float:
        settle = self.settle
        if settle > self.maturity:
            return self.payment_pv()
        curve = self.survival_curve
        cashflow = self.cashflow()
        to_as_of = self.discount_curve.discount_factor(settle, self.as_of)

        if curve.default_date is not None and curve.default_date <= settle:
            settlement = curve.default_settlement_date or curve.default_date
            if settlement <= settle:
                return self.payment_pv()
            df = self.discount_curve.discount_factor(settlement, settle)
            return self.notional * cashflow.default_amount * df * to_as_of + self.payment_pv()

        protection_start = max(self.product.effective, settle)
        conditional = cds_cashflow_pv(
            cashflow,
            settle,
            protection_start,
            self.discount_curve,
            curve,
            bool(self.include_settle_payments),
        )
        upfront = upfront_value(self.product, settle, self.discount_curve, curve.default_date)
        value = curve.interpolate(settle) * self.notional * (conditional + upfront)
        return value * to_as_of + self.payment_pv()

    def par_spread(self) -> float:
        """Running spread at which a contract starting at ``as_of`` is worth zero."""
        curve = self.survival_curve
        protection_only = replace(
            self.cashflow(), premium=0.0, principal=0.0, default_amount=curve.recovery_rate - 1.0
        )
        start = max(self.product.effective, self.as_of)
        protection = cds_cashflow_pv(
            protection_only, self.as_of, start, self.discount_curve, curve
        )
        annuity = risky_annuity(self.cashflow(), self.as_of, self.discount_curve, curve)
        if annuity <= 0.0:
            return 0.0
        return -protection / annuity


class CDXPricer(PricerBase):
    """CDS index pricer: weighted sum of single-name contracts on the index terms.

    Names defaulted on or before the annex date have left the index. Names
    defaulted since then are worth their default settlement amount until it
    is paid.
    """

    def __init__(
        self,
        cdx: CDX,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        survival_curves: Sequence[SurvivalCurveLike],
        notional: float = 1.0,
        include_settle_payments: bool | None = None,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(cdx, as_of, settle, notional, payment_pricer, currency)
        self.discount_curve = discount_curve
        self.survival_curves = tuple(survival_curves)
        self.include_settle_payments = include_settle_payments

    def is_annexed(self, curve: SurvivalCurveLike) -> bool:
        """True if the name defaulted on or before the annex date."""
        annex = self.product.annex_date
        return annex is not None and curve.default_date is not None and curve.default_date <= annex

    def single_name_pricer(self, index: int) -> CDSPricer:
        """Unit-notional CDS pricer of one constituent."""
        return CDSPricer(
            self.product.single_name(),
            self.as_of,
            self.settle,
            self.discount_curve,
            self.survival_curves[index],
            include_settle_payments=self.include_settle_payments,
        )

    def pv(self) -> float:
        settle = self.settle
        if settle > self.maturity or not self.survival_curves:
            return self.payment_pv()
        weights = self.product.name_weights(len(self.survival_curves))
        cdx_type = self.product.cdx_type
        base = build_cashflow(self.product, cdx_type)
        protection_start = max(self.product.effective, settle)
        to_as_of = self.discount_curve.discount_factor(settle, self.as_of)

        total = 0.0
        for i, (curve, weight) in enumerate(zip(self.survival_curves, weights, strict=True)):
            if weight == 0.0 or self.is_annexed(curve):
                continue
            if curve.default_date is not None and curve.default_date <= settle:
                total += weight * self.single_name_pricer(i).pv()
                continue
            cashflow = base.with_default_amount(default_amount(cdx_type, curve.recovery_rate))
            conditional = cds_cashflow_pv(
                cashflow,
                settle,
                protection_start,
                self.discount_curve,
                curve,
                bool(self.include_settle_payments),
            )
            total += weight * curve.interpolate(settle) * conditional * to_as_of
        upfront = upfront_value(self.product, settle, self.discount_curve) * to_as_of
        return self.notional * (total + upfront) + self.payment_pv()


class CDOPricer(PricerBase):
    """Synthetic CDO tranche pricer on the heterogeneous Gaussian basket.

    Attributes:
        discount_curve: Discounting curve
        survival_curves: Curves of the basket names
        weights: Notional weights of the names
        factor_loadings: Per-name (or common) correlation with the market factor
        quadrature_points: Gauss-Hermite nodes
    """

    def __init__(
        self,
        cdo: SyntheticCDO,
        as_of: date,
        settle: date,
        discount_curve: DiscountCurveLike,
        survival_curves: Sequence[SurvivalCurveLike],
        weights: Sequence[float] | None = None,
        factor_loadings: Sequence[float] | float = 0.3,
        notional: float = 1.0,
        quadrature_points: int = 32,
        payment_pricer: PricerBase | None = None,
        currency: str | None = None,
    ):
        super().__init__(cdo, as_of, settle, notional, payment_pricer, currency)
        self.discount_curve = discount_curve
        self.survival_curves = tuple(survival_curves)
        self.weights = weights
        self.factor_loadings = factor_loadings
        self.quadrature_points = quadrature_points

    def exact_basket(self) -> GaussianFactorBasket:
        return GaussianFactorBasket(
            self.survival_curves, self.weights, self.factor_loadings, self.quadrature_points
        )

    def tranche_terms(self) -> TrancheTerms:
        cdo = self.product
        return TrancheTerms(
            attachment=cdo.attachment,
            detachment=cdo.detachment,
            premium=cdo.premium,
            periods=cdo.premium_periods(),
            fee=cdo.fee,
            fee_settle=cdo.fee_settle,
        )

    def substitute(self, cdo: SyntheticCDO) -> CDOPricer:
        """Pricer of another tranche on the same basket and market."""
        return CDOPricer(
            cdo,
            self.as_of,
            self.settle,
            self.discount_curve,
            self.survival_curves,
            self.weights,
            self.factor_loadings,
            self.notional,
            self.quadrature_points,
            currency=self.currency,
        )

    def pv(self) -> float:
        if self.settle > self.maturity or not self.survival_curves:
            return self.payment_pv()
        value = tranche_pv(
            self.tranche_terms(),
            self.exact_basket(),
            self.as_of,
            self.settle,
            self.discount_curve,
            self.notional,
        )
        return value + self.payment_pv()
