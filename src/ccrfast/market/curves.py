"""Discount, survival and forward price curves.

Curves store their knots as JAX arrays and interpolate linearly in time with
flat extrapolation. Time is measured Actual/365 Fixed from the curve's as-of
date. The engine only relies on the protocol methods ``interpolate`` and
``discount_factor`` / ``survival_probability``; any object providing them can
stand in for these classes.

Example:
    >>> curve = DiscountCurve.flat(date(2024, 1, 15), 0.03)
    >>> curve.discount_factor(date(2025, 1, 15))  # doctest: +ELLIPSIS
    0.970...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Protocol, runtime_checkable

import jax.numpy as jnp

from ccrfast.core.time import fraction_365
from ccrfast.core.types import DayCountConvention
from ccrfast.exceptions import MarketDataError
from ccrfast.utilities.conventions import year_fraction

# Horizon used to give single-knot curves a second knot
_FLAT_HORIZON = 100.0


@runtime_checkable
class DiscountCurveLike(Protocol):
    """Anything that discounts: the curve contract consumed by fast pricers."""

    as_of: date

    def interpolate(self, dt: date) -> float:
        """Discount factor from the curve's as-of date to ``dt``."""
        ...

    def discount_factor(self, end: date, start: date | None = None) -> float:
        """Discount factor from ``start`` (default: as-of) to ``end``."""
        ...


@runtime_checkable
class SurvivalCurveLike(Protocol):
    """Survival probabilities of a single reference name."""

    as_of: date
    default_date: date | None
    default_settlement_date: date | None
    recovery_rate: float

    def interpolate(self, dt: date) -> float:
        """Survival probability from the curve's as-of date to ``dt``."""
        ...

    def survival_probability(self, end: date, start: date | None = None) -> float:
        """Survival probability to ``end`` conditional on survival to ``start``."""
        ...


def _knots(
    times: Sequence[float], values: Sequence[float], what: str
) -> tuple[jnp.ndarray, jnp.ndarray]:
    times_arr = jnp.asarray(times, dtype=jnp.float64)
    values_arr = jnp.asarray(values, dtype=jnp.float64)
    if times_arr.ndim != 1 or times_arr.shape != values_arr.shape:
        raise MarketDataError(
            f"{what} times and values must be 1D of equal length",
            context={"times": times_arr.shape, "values": values_arr.shape},
        )
    if times_arr.shape[0] == 0:
        raise MarketDataError(f"{what} needs at least one knot")
    if times_arr.shape[0] == 1:
        times_arr = jnp.concatenate([times_arr, times_arr + _FLAT_HORIZON])
        values_arr = jnp.concatenate([values_arr, values_arr])
    if bool(jnp.any(jnp.diff(times_arr) <= 0.0)):
        raise MarketDataError(
            f"{what} times must be strictly increasing", context={"times": times_arr.tolist()}
        )
    return times_arr, values_arr


@dataclass(frozen=True, eq=False)
class Curve:
    """Date-keyed curve with linear interpolation and constant extrapolation.

    Used for term structures that are not discount factors, such as forward
    volatilities. Knots are kept in insertion-independent sorted order.

    Attributes:
        dates: Knot dates, strictly increasing
        values: Knot values
    """

    dates: tuple[date, ...]
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.dates) != len(self.values) or not self.dates:
            raise MarketDataError(
                "Curve needs matching, non-empty dates and values",
                context={"dates": len(self.dates), "values": len(self.values)},
            )
        if any(b <= a for a, b in zip(self.dates[:-1], self.dates[1:], strict=True)):
            raise MarketDataError("Curve dates must be strictly increasing")

    @classmethod
    def from_points(cls, points: Sequence[tuple[date, float]]) -> Curve:
        """Build a curve from (date, value) pairs in any order; later duplicates win."""
        merged = dict(points)
        ordered = sorted(merged)
        return cls(tuple(ordered), tuple(float(merged[d]) for d in ordered))

    def add(self, dt: date, value: float) -> Curve:
        """Return a new curve with a knot added (or replaced)."""
        return Curve.from_points([*zip(self.dates, self.values, strict=True), (dt, value)])

    def interpolate(self, dt: date) -> float:
        if len(self.dates) == 1:
            return float(self.values[0])
        xp = jnp.asarray([d.toordinal() for d in self.dates], dtype=jnp.float64)
        fp = jnp.asarray(self.values, dtype=jnp.float64)
        return float(jnp.interp(float(dt.toordinal()), xp, fp))


@dataclass(frozen=True, eq=False)
class DiscountCurve:
    """Zero-rate discount curve.

    ``DF(t) = exp(-r(t) t)`` with ``r`` linear in time between knots.

    Attributes:
        as_of: Curve date (discount factor 1)
        times: Knot times in years from ``as_of``
        zero_rates: Continuously compounded zero rates at the knots
        name: Identifier used in logs
    """

    as_of: date
    times: jnp.ndarray
    zero_rates: jnp.ndarray
    name: str = "discount"

    def __post_init__(self) -> None:
        times, rates = _knots(self.times, self.zero_rates, "Discount curve")
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "zero_rates", rates)

    @classmethod
    def flat(cls, as_of: date, rate: float, name: str = "discount") -> DiscountCurve:
        """Flat continuously compounded curve."""
        return cls(as_of, jnp.array([0.0]), jnp.array([rate]), name)

    @classmethod
    def from_zero_rates(
        cls, as_of: date, dates: Sequence[date], rates: Sequence[float], name: str = "discount"
    ) -> DiscountCurve:
        """Build from zero rates quoted at pillar dates."""
        times = [fraction_365(as_of, d) for d in dates]
        return cls(as_of, jnp.asarray(times), jnp.asarray(rates), name)

    def time(self, dt: date) -> float:
        return fraction_365(self.as_of, dt)

    def zero_rate(self, dt: date) -> float:
        return float(jnp.interp(self.time(dt), self.times, self.zero_rates))

    def interpolate(self, dt: date) -> float:
        t = self.time(dt)
        return float(jnp.exp(-jnp.interp(t, self.times, self.zero_rates) * t))

    def discount_factor(self, end: date, start: date | None = None) -> float:
        df_end = self.interpolate(end)
        if start is None:
            return df_end
        return df_end / self.interpolate(start)

    def forward_rate(
        self, start: date, end: date, day_count: DayCountConvention = DayCountConvention.A360
    ) -> float:
        """Simply compounded forward rate over [start, end]."""
        tau = year_fraction(start, end, day_count)
        if tau <= 0.0:
            return self.zero_rate(start)
        return (self.interpolate(start) / self.interpolate(end) - 1.0) / tau

    def shifted(self, spread: float) -> DiscountCurve:
        """Parallel shift of all zero rates."""
        return replace(self, zero_rates=self.zero_rates + spread)


@dataclass(frozen=True, eq=False)
class SurvivalCurve:
    """Hazard-rate survival curve of one reference name.

    ``S(t) = exp(-h(t) t)`` with the average hazard ``h`` linear in time.
    Once the name has defaulted the survival probability is zero from the
    default date on.

    Attributes:
        as_of: Curve date (survival probability 1)
        times: Knot times in years from ``as_of``
        hazard_rates: Average hazard rates at the knots
        recovery_rate: Expected recovery as a fraction of notional
        default_date: Date of a credit event that has already occurred
        default_settlement_date: Date the defaulted protection settles
        name: Reference entity
    """

    as_of: date
    times: jnp.ndarray
    hazard_rates: jnp.ndarray
    recovery_rate: float = 0.4
    default_date: date | None = None
    default_settlement_date: date | None = None
    name: str = "survival"

    def __post_init__(self) -> None:
        times, hazards = _knots(self.times, self.hazard_rates, "Survival curve")
        if bool(jnp.any(hazards < 0.0)):
            raise MarketDataError("Hazard rates must be non-negative", context={"name": self.name})
        if not 0.0 <= self.recovery_rate <= 1.0:
            raise MarketDataError(
                "Recovery rate must lie in [0, 1]", context={"recovery_rate": self.recovery_rate}
            )
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "hazard_rates", hazards)

    @classmethod
    def flat(
        cls,
        as_of: date,
        hazard_rate: float,
        recovery_rate: float = 0.4,
        name: str = "survival",
        **kwargs: date | None,
    ) -> SurvivalCurve:
        """Flat hazard curve; ``default_date`` and ``default_settlement_date`` may be passed."""
        return cls(
            as_of, jnp.array([0.0]), jnp.array([hazard_rate]), recovery_rate, name=name, **kwargs
        )

    @property
    def has_defaulted(self) -> bool:
        return self.default_date is not None

    def interpolate(self, dt: date) -> float:
        if self.default_date is not None and dt >= self.default_date:
            return 0.0
        t = fraction_365(self.as_of, dt)
        return float(jnp.exp(-jnp.interp(t, self.times, self.hazard_rates) * t))

    def survival_probability(self, end: date, start: date | None = None) -> float:
        s_end = self.interpolate(end)
        if start is None:
            return s_end
        s_start = self.interpolate(start)
        return s_end / s_start if s_start > 0.0 else 0.0

    def defaulted(self, default_date: date, settlement_date: date | None = None) -> SurvivalCurve:
        """Copy of the curve with a credit event recorded."""
        return replace(self, default_date=default_date, default_settlement_date=settlement_date)


@dataclass(frozen=True, eq=False)
class ForwardPriceCurve:
    """Forward prices of an FX rate, stock or commodity.

    ``F(t) = spot * carry.DF(t) / discount.DF(t)`` where the carry curve is
    the foreign discount curve for FX or the dividend/lease curve for assets.

    Attributes:
        spot: Spot price (units of domestic currency)
        discount_curve: Domestic discount curve
        carry_curve: Foreign rate, dividend yield or lease rate curve
        name: Identifier used in logs
    """

    spot: float
    discount_curve: DiscountCurve
    carry_curve: DiscountCurve | None = None
    name: str = field(default="forward")

    @property
    def as_of(self) -> date:
        return self.discount_curve.as_of

    def interpolate(self, dt: date) -> float:
        carry = self.carry_curve.interpolate(dt) if self.carry_curve is not None else 1.0
        return self.spot * carry / self.discount_curve.interpolate(dt)

    def with_spot(self, spot: float) -> ForwardPriceCurve:
        """Copy of the curve with a new spot level."""
        return replace(self, spot=spot)
