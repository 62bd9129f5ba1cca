"""Basket loss models and synthetic CDO tranche valuation.

Both basket models are one-factor Gaussian copulas in the large-pool limit,
integrated over the common factor with Gauss-Hermite quadrature:

- :class:`GaussianFactorBasket` keeps every name with its own default
  probability, recovery and factor loading. It is the exact model.
- :class:`LargePoolBasket` collapses the names into one representative name
  (weighted average default probability and loss given default) with a
  single factor loading. It is the compressed model whose factor is
  calibrated so that it reproduces the exact tranche value.

A tranche's expected loss is linear in its base tranches, so a tranche
[A, D] can be valued as the difference of base tranches [0, D] and [0, A].
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol, runtime_checkable

import jax.numpy as jnp
import numpy as np
from jax.scipy.stats import norm

from ccrfast.exceptions import CalibrationError, MarketDataError
from ccrfast.market.curves import DiscountCurveLike, SurvivalCurveLike

DEFAULT_QUADRATURE_POINTS = 32
_PROBABILITY_FLOOR = 1e-15


@runtime_checkable
class BasketModel(Protocol):
    """Expected tranche losses of a credit basket."""

    def expected_tranche_loss(
        self, dates: Sequence[date], attachment: float, detachment: float
    ) -> jnp.ndarray:
        """Expected loss of [attachment, detachment] at each date, as a basket fraction."""
        ...


def gauss_hermite(points: int) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Nodes and probability weights for a standard normal expectation."""
    nodes, weights = np.polynomial.hermite_e.hermegauss(points)
    return jnp.asarray(nodes), jnp.asarray(weights / math.sqrt(2.0 * math.pi))


def _tranche(loss: jnp.ndarray, attachment: float, detachment: float) -> jnp.ndarray:
    return jnp.clip(loss - attachment, 0.0, detachment - attachment)


def _default_probabilities(
    curves: Sequence[SurvivalCurveLike], dates: Sequence[date]
) -> jnp.ndarray:
    """Matrix (dates x names) of default probabilities."""
    probs = [[1.0 - curve.interpolate(dt) for curve in curves] for dt in dates]
    probs_arr = jnp.asarray(probs, dtype=jnp.float64)
    return jnp.clip(probs_arr, _PROBABILITY_FLOOR, 1.0 - _PROBABILITY_FLOOR)


def _validated_weights(weights: Sequence[float] | None, n: int) -> jnp.ndarray:
    if weights is None:
        return jnp.full(n, 1.0 / n)
    w = jnp.asarray(weights, dtype=jnp.float64)
    if w.shape != (n,):
        raise MarketDataError("One weight per name is required", context={"names": n})
    return w / jnp.sum(w)


@dataclass(frozen=True, eq=False)
class GaussianFactorBasket:
    """Heterogeneous one-factor Gaussian basket.

    Attributes:
        survival_curves: One curve per name; recoveries are read from them
        weights: Notional weights (normalized to sum to one)
        factor_loadings: Per-name correlation with the common factor, in [0, 1)
        quadrature_points: Gauss-Hermite nodes for the factor integral
    """

    survival_curves: tuple[SurvivalCurveLike, ...]
    weights: Sequence[float] | None = None
    factor_loadings: Sequence[float] | float = 0.3
    quadrature_points: int = DEFAULT_QUADRATURE_POINTS
    _loadings: jnp.ndarray = field(init=False, repr=False)
    _weights: jnp.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        n = len(self.survival_curves)
        if n == 0:
            raise MarketDataError("A basket needs at least one name")
        if isinstance(self.factor_loadings, (int, float)):
            loadings = jnp.full(n, float(self.factor_loadings))
        else:
            loadings = jnp.asarray(self.factor_loadings, dtype=jnp.float64)
        if loadings.shape != (n,) or bool(jnp.any((loadings < 0.0) | (loadings >= 1.0))):
            raise MarketDataError("Factor loadings must be one per name in [0, 1)")
        object.__setattr__(self, "_loadings", loadings)
        object.__setattr__(self, "_weights", _validated_weights(self.weights, n))

    @property
    def loss_given_default(self) -> jnp.ndarray:
        return jnp.asarray([1.0 - c.recovery_rate for c in self.survival_curves])

    def expected_tranche_loss(
        self, dates: Sequence[date], attachment: float, detachment: float
    ) -> jnp.ndarray:
        probs = _default_probabilities(self.survival_curves, dates)
        thresholds = norm.ppf(probs)
        z, w = gauss_hermite(self.quadrature_points)
        beta = self._loadings
        scale = jnp.sqrt(1.0 - beta * beta)
        conditional = norm.cdf(
            (thresholds[:, None, :] - beta[None, None, :] * z[None, :, None]) / scale
        )
        loss = jnp.sum(conditional * (self._weights * self.loss_given_default), axis=-1)
        return _tranche(loss, attachment, detachment) @ w


@dataclass(frozen=True, eq=False)
class LargePoolBasket:
    """Homogeneous large-pool basket with one factor loading.

    Attributes:
        survival_curves: Names whose average default probability is used
        weights: Notional weights (normalized to sum to one)
        factor: Common factor loading in [0, 1)
        quadrature_points: Gauss-Hermite nodes for the factor integral
    """

    survival_curves: tuple[SurvivalCurveLike, ...]
    weights: Sequence[float] | None = None
    factor: float = 0.3
    quadrature_points: int = DEFAULT_QUADRATURE_POINTS
    _weights: jnp.ndarray = field(init=False, repr=False)
    # Representative-name curve per date tuple, shared by with_factor copies
    _pool_cache: dict = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.survival_curves:
            raise MarketDataError("A basket needs at least one name")
        if not 0.0 <= self.factor < 1.0:
            raise MarketDataError("Factor must lie in [0, 1)", context={"factor": self.factor})
        object.__setattr__(
            self, "_weights", _validated_weights(self.weights, len(self.survival_curves))
        )
        object.__setattr__(self, "_pool_cache", {})

    def with_factor(self, factor: float) -> LargePoolBasket:
        basket = LargePoolBasket(self.survival_curves, self.weights, factor, self.quadrature_points)
        object.__setattr__(basket, "_pool_cache", self._pool_cache)
        return basket

    def representative_name(self, dates: Sequence[date]) -> tuple[jnp.ndarray, jnp.ndarray]:
        """Average default probability and loss given default at each date."""
        key = tuple(dates)
        if key not in self._pool_cache:
            probs = _default_probabilities(self.survival_curves, dates)
            lgd = jnp.asarray([1.0 - c.recovery_rate for c in self.survival_curves])
            average_prob = probs @ self._weights
            average_lgd = (probs @ (self._weights * lgd)) / average_prob
            self._pool_cache[key] = (average_prob, average_lgd)
        return self._pool_cache[key]

    def expected_tranche_loss(
        self, dates: Sequence[date], attachment: float, detachment: float
    ) -> jnp.ndarray:
        average_prob, average_lgd = self.representative_name(dates)
        z, w = gauss_hermite(self.quadrature_points)
        beta = self.factor
        conditional = norm.cdf(
            (norm.ppf(average_prob)[:, None] - beta * z[None, :]) / math.sqrt(1.0 - beta * beta)
        )
        loss = average_lgd[:, None] * conditional
        return _tranche(loss, attachment, detachment) @ w


@dataclass(frozen=True)
class TrancheTerms:
    """The parts of a CDO tranche needed for valuation.

    Attributes:
        attachment: Lower loss bound as a basket fraction
        detachment: Upper loss bound as a basket fraction
        premium: Running spread on the outstanding tranche notional
        periods: (start, end, pay_date, accrual) premium periods
        fee: Upfront fee as a fraction of tranche notional
        fee_settle: Date the upfront fee is paid
    """

    attachment: float
    detachment: float
    premium: float
    periods: tuple[tuple[date, date, date, float], ...]
    fee: float = 0.0
    fee_settle: date | None = None

    @property
    def width(self) -> float:
        return self.detachment - self.attachment


def tranche_pv(
    terms: TrancheTerms,
    basket: BasketModel,
    as_of: date,
    settle: date,
    discount_curve: DiscountCurveLike,
    notional: float,
) -> float:
    """Value of a protection-selling tranche position.

    Premium is paid on the expected outstanding tranche notional (period
    average); protection pays expected tranche loss increments discounted at
    the period midpoint. Losses before ``settle`` are not paid again.

    Args:
        terms: Tranche description
        basket: Loss model
        as_of: Date the value is expressed at
        settle: First date of remaining cash flows
        discount_curve: Discounting curve
        notional: Tranche notional

    Returns:
        Value of the tranche at ``as_of``
    """
    if terms.width <= 0.0:
        return 0.0
    df0 = discount_curve.interpolate(as_of)
    upfront = 0.0
    if terms.fee != 0.0 and terms.fee_settle is not None and terms.fee_settle > settle:
        upfront = terms.fee * discount_curve.interpolate(terms.fee_settle) / df0

    remaining = [p for p in terms.periods if p[2] > settle]
    if not remaining:
        return notional * upfront

    dates = sorted({max(start, settle) for start, _, _, _ in remaining} | {p[1] for p in remaining})
    losses = basket.expected_tranche_loss(dates, terms.attachment, terms.detachment) / terms.width
    loss_at = dict(zip(dates, (float(x) for x in losses), strict=True))

    fee_leg = 0.0
    protection = 0.0
    for start, end, pay_date, accrual in remaining:
        begin = max(start, settle)
        l_begin, l_end = loss_at[begin], loss_at[end]
        outstanding = 1.0 - 0.5 * (l_begin + l_end)
        df_pay = discount_curve.interpolate(pay_date) / df0
        fee_leg += terms.premium * accrual * outstanding * df_pay
        df_mid = 0.5 * (discount_curve.interpolate(begin) + discount_curve.interpolate(end)) / df0
        protection += (l_end - l_begin) * df_mid
    return notional * (fee_leg - protection + upfront)


def ternary_search(
    objective: Callable[[float], float],
    low: float,
    high: float,
    tolerance: float = 1e-8,
    max_iterations: int = 200,
) -> float:
    """Minimize a unimodal function on [low, high].

    Args:
        objective: Function to minimize
        low: Lower end of the search interval
        high: Upper end of the search interval
        tolerance: Stop when the interval is shorter than this
        max_iterations: Hard iteration cap

    Returns:
        Midpoint of the final interval

    Raises:
        CalibrationError: If the interval or tolerance is invalid
    """
    if not high > low:
        raise CalibrationError("Empty search interval", context={"low": low, "high": high})
    if tolerance <= 0.0:
        raise CalibrationError("Tolerance must be positive", context={"tolerance": tolerance})
    a, d = low, high
    for _ in range(max_iterations):
        if d - a < tolerance:
            break
        b = a + (d - a) / 3.0
        c = d - (d - a) / 3.0
        if objective(b) <= objective(c):
            d = c
        else:
            a = b
    return 0.5 * (a + d)
