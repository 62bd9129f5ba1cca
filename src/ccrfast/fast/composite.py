"""Fast pricers of composite instruments: multi-leg swaps and CDO tranches.

A swap is the sum of its legs' fast values until its mutual break date.

A CDO tranche is valued at build time on the exact heterogeneous basket.
A homogeneous large-pool basket is then calibrated so that it reproduces
that value, first with one factor for the tranche itself and, failing that,
with one factor per base tranche ([0, D] and [0, A]). The tranche is the
difference of its base tranches, which is exact because expected tranche
losses are linear in them. When neither fit reaches the tolerance the exact
basket is kept, which is slower but not approximate.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any

from ccrfast.fast.base import FastPricer, PathState
from ccrfast.logging_config import get_logger
from ccrfast.models.basket import (
    BasketModel,
    LargePoolBasket,
    TrancheTerms,
    ternary_search,
    tranche_pv,
)

logger = get_logger(__name__)

# Factor search interval and tolerance of the large-pool calibration
MAX_FACTOR = 0.999999
FACTOR_TOLERANCE = 1e-8
# Relative error below which a calibrated basket replaces the exact one
CALIBRATION_TOLERANCE = 1e-4


class SwapFastPricer(FastPricer):
    """Sum of the leg fast pricers, zero from the next break date on.

    ``children`` holds one fast pricer per leg, in the order of the legs.
    """

    def critical_dates(self) -> Iterable[date]:
        break_date = self.pricer.next_break_date
        return () if break_date is None else (break_date,)

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        break_date = self.pricer.next_break_date
        if break_date is not None and settle >= break_date:
            return 0.0
        legs = sum(
            leg.fast_pv(settle, state.child(i), **kwargs) for i, leg in enumerate(self.children)
        )
        return self.pricer.notional * legs + self.payment_value(settle)


class CalibrationMode(str, Enum):
    """Basket used by a CDO fast pricer."""

    SINGLE = "single"  # One large-pool factor for the tranche
    BASE_TRANCHES = "base_tranches"  # One factor per base tranche
    EXACT = "exact"  # Calibration failed; exact heterogeneous basket


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of the large-pool calibration of a CDO tranche.

    Attributes:
        mode: Basket used by the fast pricer
        factors: Calibrated factor loadings (empty in exact mode)
        relative_error: Largest relative pricing error of the fit
        target: Exact tranche value the fit reproduces
    """

    mode: CalibrationMode
    factors: tuple[float, ...]
    relative_error: float
    target: float

    @property
    def approximate(self) -> bool:
        return self.mode is not CalibrationMode.EXACT


@dataclass(frozen=True)
class _Component:
    terms: TrancheTerms
    basket: BasketModel
    notional: float


class CdoFastPricer(FastPricer):
    """Synthetic CDO tranche on a calibrated large-pool basket.

    Survival curves are read once, at calibration. ``pool_basket_type`` is
    the compressed basket class; it is built from the pricer's curves, weights
    and quadrature points and must offer ``with_factor``.

    Attributes:
        calibration: Calibration outcome, None for an empty basket
    """

    pool_basket_type: type = LargePoolBasket

    def _build(self) -> None:
        pricer = self.pricer
        self.terms: TrancheTerms = pricer.tranche_terms()
        self.components: tuple[_Component, ...] = ()
        self.calibration: CalibrationResult | None = None
        if not pricer.survival_curves:
            return
        self._calibrate()

    def _exact_value(self, terms: TrancheTerms, basket: BasketModel, notional: float) -> float:
        settle = self.pricer.settle
        return tranche_pv(terms, basket, settle, settle, self.market.discount_curve, notional)

    def _fit(
        self, pool: Any, terms: TrancheTerms, notional: float, target: float
    ) -> tuple[_Component, float]:
        def error(factor: float) -> float:
            return abs(self._exact_value(terms, pool.with_factor(factor), notional) - target)

        factor = ternary_search(error, 0.0, MAX_FACTOR, FACTOR_TOLERANCE)
        miss = error(factor)
        if target == 0.0:
            relative = 0.0 if miss == 0.0 else math.inf
        else:
            relative = miss / abs(target)
        return _Component(terms, pool.with_factor(factor), notional), relative

    def _calibrate(self) -> None:
        pricer = self.pricer
        terms = self.terms
        exact = pricer.exact_basket()
        notional = pricer.notional
        target = self._exact_value(terms, exact, notional)
        pool = self.pool_basket_type(
            pricer.survival_curves, pricer.weights, quadrature_points=pricer.quadrature_points
        )

        component, error = self._fit(pool, terms, notional, target)
        if error < CALIBRATION_TOLERANCE:
            self._set_calibration((component,), CalibrationMode.SINGLE, error, target)
            return

        components = []
        errors = []
        width = terms.width
        for detachment in (terms.detachment, terms.attachment):
            if detachment == 0.0:
                continue
            base = replace(terms, attachment=0.0, detachment=detachment)
            base_notional = notional * detachment / width
            base_target = self._exact_value(base, exact, base_notional)
            base_component, base_error = self._fit(pool, base, base_notional, base_target)
            components.append(base_component)
            errors.append(base_error)
        if max(errors) < CALIBRATION_TOLERANCE:
            self._set_calibration(
                tuple(components), CalibrationMode.BASE_TRANCHES, max(errors), target
            )
            return

        logger.warning(
            "CDO calibration failed, using the exact basket",
            extra={"tranche_error": error, "base_tranche_error": max(errors), "target": target},
        )
        self._set_calibration(
            (_Component(terms, exact, notional),), CalibrationMode.EXACT, max(errors), target
        )

    def _set_calibration(
        self,
        components: tuple[_Component, ...],
        mode: CalibrationMode,
        error: float,
        target: float,
    ) -> None:
        self.components = components
        factors = (
            () if mode is CalibrationMode.EXACT else tuple(c.basket.factor for c in components)
        )
        self.calibration = CalibrationResult(mode, factors, error, target)
        logger.info(
            "CDO calibration",
            extra={
                "mode": mode.value,
                "factors": factors,
                "relative_error": error,
                "approximate": self.calibration.approximate,
            },
        )

    def critical_dates(self) -> Iterable[date]:
        dates = [pay_date for _, _, pay_date, _ in self.terms.periods]
        if self.terms.fee_settle is not None:
            dates.append(self.terms.fee_settle)
        return dates

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if settle > self.exposure_bound() or not self.components:
            return payment
        discount = self.market.discount_curve
        values = [
            tranche_pv(c.terms, c.basket, settle, settle, discount, c.notional)
            for c in self.components
        ]
        # Base tranches: [0, D] minus [0, A]
        value = values[0] - sum(values[1:])
        return value + payment
