"""Forward volatility to a fixed option expiry.

An option valued at a future date ``t`` needs the volatility of its
underlier from ``t`` to expiry. With a flat provider this is the implied
volatility to expiry. With a term structure the forward variance between a
standard tenor date ``t`` and expiry ``T`` is backed out of the implied
volatilities to both dates:

    sigma_fwd(t)^2 = (sigma(T)^2 T - sigma(t)^2 t) / (T - t)

and interpolated linearly between tenor dates.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from ccrfast.core.time import relative_time, tenor_dates
from ccrfast.market.curves import Curve

STANDARD_TENORS = (
    "1W", "2W", "3W", "1M", "2M", "3M", "4M", "5M", "6M", "9M",
    "1Y", "2Y", "5Y", "10Y", "15Y", "20Y", "30Y", "50Y",
)  # fmt: skip

# Volatilities below this are treated as zero
TINY_VOLATILITY = 1e-12


@dataclass(frozen=True)
class ForwardVolatility:
    """Flat or curve-based forward volatility to one expiry.

    Attributes:
        flat: Implied volatility from the as-of date to expiry
        as_of: Date the implied volatilities are quoted at
        curve: Forward volatilities by start date, or None for flat
    """

    flat: float
    as_of: date
    curve: Curve | None = None

    def at(self, dt: date) -> float:
        """Volatility from ``dt`` to expiry."""
        if self.curve is None or dt <= self.as_of or self.flat < TINY_VOLATILITY:
            return self.flat
        return self.curve.interpolate(dt)

    @classmethod
    def build(
        cls,
        as_of: date,
        expiry: date,
        volatility_at: Callable[[date], float],
        enabled: bool,
    ) -> ForwardVolatility:
        """Build the forward volatility of an option.

        Args:
            as_of: Valuation date of the option pricer
            expiry: Option expiry
            volatility_at: Implied volatility for an expiry date
            enabled: Build the term structure; otherwise stay flat

        Returns:
            The forward volatility provider
        """
        expiry_vol = volatility_at(expiry)
        if expiry_vol < TINY_VOLATILITY or not enabled:
            return cls(expiry_vol, as_of)
        time_to_expiry = relative_time(as_of, expiry)
        points = [(as_of, expiry_vol)]
        for dt in tenor_dates(as_of, STANDARD_TENORS):
            if dt >= expiry:
                break
            t = relative_time(as_of, dt)
            ratio = volatility_at(dt) / expiry_vol
            variance = max((time_to_expiry - ratio * ratio * t) / (time_to_expiry - t), 0.0)
            points.append((dt, math.sqrt(variance) * expiry_vol))
        return cls(expiry_vol, as_of, Curve.from_points(points))
