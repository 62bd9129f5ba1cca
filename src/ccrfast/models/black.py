"""Black, Black-normal and Black-Scholes option formulas.

Black and Black-normal prices are undiscounted: callers multiply by the
numeraire (discount factor or annuity) themselves. Degenerate inputs (no time
left, zero volatility, non-positive forward or strike for the lognormal
model) return intrinsic value.

References:
    Black, F. (1976). The pricing of commodity contracts.
    Bachelier, L. (1900). Theorie de la speculation.
"""

from __future__ import annotations

import math

import jax.numpy as jnp
from jax.scipy.stats import norm

from ccrfast.core.types import OptionType


def norm_cdf(x: float) -> float:
    """Standard normal cumulative distribution."""
    return float(norm.cdf(x))


def norm_pdf(x: float) -> float:
    """Standard normal density."""
    return float(norm.pdf(x))


def intrinsic(option_type: OptionType, forward: float, strike: float) -> float:
    """max(F - K, 0) for calls, max(K - F, 0) for puts."""
    return max(option_type.sign * (forward - strike), 0.0)


def black(
    option_type: OptionType, time: float, forward: float, strike: float, volatility: float
) -> float:
    """Undiscounted Black (lognormal) option price.

    Args:
        option_type: Call or put
        time: Time to expiry in years
        forward: Forward level of the underlier
        strike: Strike
        volatility: Lognormal volatility

    Returns:
        Undiscounted option value

    Example:
        >>> round(black(OptionType.CALL, 1.0, 100.0, 100.0, 0.2), 4)
        7.9656
    """
    if time <= 0.0 or volatility <= 0.0 or forward <= 0.0 or strike <= 0.0:
        return intrinsic(option_type, forward, strike)
    sd = volatility * math.sqrt(time)
    d1 = (math.log(forward / strike) + 0.5 * sd * sd) / sd
    d2 = d1 - sd
    phi = option_type.sign
    cdf = norm.cdf(jnp.array([phi * d1, phi * d2]))
    return phi * (forward * float(cdf[0]) - strike * float(cdf[1]))


def black_normal(
    option_type: OptionType,
    time: float,
    rate: float,
    forward: float,
    strike: float,
    volatility: float,
) -> float:
    """Black-normal (Bachelier) option price discounted at a flat ``rate``.

    Pass ``rate=0`` for the undiscounted price.

    Args:
        option_type: Call or put
        time: Time to expiry in years
        rate: Continuously compounded discount rate
        forward: Forward level
        strike: Strike
        volatility: Normal (absolute) volatility
    """
    df = math.exp(-rate * time)
    if time <= 0.0 or volatility <= 0.0:
        return df * intrinsic(option_type, forward, strike)
    sd = volatility * math.sqrt(time)
    d = option_type.sign * (forward - strike) / sd
    return df * (option_type.sign * (forward - strike) * norm_cdf(d) + sd * norm_pdf(d))


def black_scholes(
    option_type: OptionType,
    time: float,
    spot: float,
    strike: float,
    rate: float,
    dividend: float,
    volatility: float,
) -> float:
    """Discounted Black-Scholes price with continuous dividend yield."""
    forward = spot * math.exp((rate - dividend) * time)
    return math.exp(-rate * time) * black(option_type, time, forward, strike, volatility)


def black_atm_approximation(time: float, forward: float, volatility: float) -> float:
    """Undiscounted at-the-money Black value ``F (2 N(sigma sqrt(T) / 2) - 1)``."""
    return forward * (2.0 * norm_cdf(0.5 * volatility * math.sqrt(time)) - 1.0)
