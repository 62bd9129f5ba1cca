"""Volatility surfaces.

The engine queries volatility through ``interpolate(expiry, strike)``. A
:class:`GridVolatilitySurface` interpolates bilinearly in (time to expiry,
strike) on a rectangular grid; extrapolation is either flat at the nearest
edge or an error.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from datetime import date
from typing import Protocol, runtime_checkable

import jax.numpy as jnp

from ccrfast.core.time import fraction_365
from ccrfast.exceptions import MarketDataError


@runtime_checkable
class VolatilitySurfaceLike(Protocol):
    """Volatility surface contract consumed by option pricers."""

    def interpolate(self, expiry: date, strike: float) -> float:
        """Implied volatility for an option expiring on ``expiry``."""
        ...


@dataclass(frozen=True)
class FlatVolatilitySurface:
    """Same volatility for every expiry and strike."""

    volatility: float

    def __post_init__(self) -> None:
        if self.volatility < 0.0:
            raise MarketDataError(
                "Volatility must be non-negative", context={"volatility": self.volatility}
            )

    def interpolate(self, expiry: date, strike: float) -> float:  # noqa: ARG002
        return self.volatility


@dataclass(frozen=True, eq=False)
class GridVolatilitySurface:
    """Volatility grid over expiry times and strikes.

    Attributes:
        as_of: Surface date; expiries are measured from here (Act/365F)
        expiry_times: Sorted 1D array of expiry times in years
        strikes: Sorted 1D array of strikes
        volatilities: 2D array of shape ``(len(expiry_times), len(strikes))``
        extrapolation: ``"constant"`` (nearest edge) or ``"raise"``

    Example:
        >>> surface = GridVolatilitySurface(
        ...     as_of=date(2024, 1, 15),
        ...     expiry_times=jnp.array([0.5, 1.0, 2.0]),
        ...     strikes=jnp.array([90.0, 100.0, 110.0]),
        ...     volatilities=jnp.array([
        ...         [0.25, 0.22, 0.21],
        ...         [0.24, 0.21, 0.20],
        ...         [0.23, 0.20, 0.19],
        ...     ]),
        ... )
        >>> vol = surface.interpolate(date(2025, 1, 15), 105.0)
    """

    as_of: date
    expiry_times: jnp.ndarray
    strikes: jnp.ndarray
    volatilities: jnp.ndarray
    extrapolation: str = "constant"

    def __post_init__(self) -> None:
        """Validate surface dimensions and parameters."""
        if self.extrapolation not in ("constant", "raise"):
            raise MarketDataError(
                f"extrapolation must be 'constant' or 'raise', got '{self.extrapolation}'"
            )
        if self.volatilities.ndim != 2:
            raise MarketDataError(
                f"volatilities must be 2D, got shape {self.volatilities.shape}"
            )
        if self.volatilities.shape != (self.expiry_times.shape[0], self.strikes.shape[0]):
            raise MarketDataError(
                "volatilities shape must be (len(expiry_times), len(strikes))",
                context={
                    "shape": self.volatilities.shape,
                    "expiries": self.expiry_times.shape[0],
                    "strikes": self.strikes.shape[0],
                },
            )
        if self.expiry_times.shape[0] < 2 or self.strikes.shape[0] < 2:
            raise MarketDataError("Grid needs at least 2 expiries and 2 strikes")
        if bool(jnp.any(self.volatilities < 0.0)):
            raise MarketDataError("Volatilities must be non-negative")

    def _locate(self, axis: list[float], value: float, label: str) -> tuple[int, float]:
        if value < axis[0] or value > axis[-1]:
            if self.extrapolation == "raise":
                raise MarketDataError(
                    f"{label}={value} is outside the grid [{axis[0]}, {axis[-1]}]"
                )
            value = max(axis[0], min(axis[-1], value))
        i = bisect.bisect_right(axis, value) - 1
        i = max(0, min(i, len(axis) - 2))
        weight = (value - axis[i]) / (axis[i + 1] - axis[i])
        return i, weight

    def evaluate(self, time: float, strike: float) -> float:
        """Bilinear interpolation at (time to expiry, strike)."""
        ti, tw = self._locate([float(v) for v in self.expiry_times], float(time), "time")
        ki, kw = self._locate([float(v) for v in self.strikes], float(strike), "strike")
        v = self.volatilities
        return float(
            (1.0 - tw) * (1.0 - kw) * v[ti, ki]
            + tw * (1.0 - kw) * v[ti + 1, ki]
            + (1.0 - tw) * kw * v[ti, ki + 1]
            + tw * kw * v[ti + 1, ki + 1]
        )

    def interpolate(self, expiry: date, strike: float) -> float:
        return self.evaluate(fraction_365(self.as_of, expiry), strike)


def as_surface(volatility: float | VolatilitySurfaceLike) -> VolatilitySurfaceLike:
    """Wrap a scalar volatility in a flat surface; pass surfaces through."""
    if isinstance(volatility, (int, float)):
        return FlatVolatilitySurface(float(volatility))
    return volatility
