"""Closed-form barrier option prices.

Single barriers follow Reiner and Rubinstein (1991) with a cash rebate, paid
at expiry for knock-in options that never knock in and at the hit for
knock-out options. Double barriers use the Ikeda and Kunitomo (1992) series
for flat barriers; double knock-in prices follow from in-out parity.

All prices are discounted, with cost of carry ``b = r - q``.

References:
    Haug, E. G. (2007). The Complete Guide to Option Pricing Formulas,
    Sections 4.17.1 and 4.17.3.
"""

from __future__ import annotations

import math

from ccrfast.core.types import BarrierType, OptionType
from ccrfast.models.black import black, norm_cdf

# Terms of the Ikeda-Kunitomo series on each side of n = 0
DOUBLE_BARRIER_SERIES_TERMS = 5


def _vanilla(
    option_type: OptionType,
    time: float,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    volatility: float,
) -> float:
    forward = spot * math.exp(carry * time)
    return math.exp(-rate * time) * black(option_type, time, forward, strike, volatility)


def is_breached(barrier_type: BarrierType, spot: float, barrier: float) -> bool:
    """True when ``spot`` is at or beyond a single barrier."""
    return spot <= barrier if barrier_type.is_down else spot >= barrier


def single_barrier_price(
    option_type: OptionType,
    barrier_type: BarrierType,
    time: float,
    spot: float,
    strike: float,
    barrier: float,
    rate: float,
    carry: float,
    volatility: float,
    rebate: float = 0.0,
) -> float:
    """Reiner-Rubinstein single barrier option price.

    Args:
        option_type: Call or put
        barrier_type: Barrier direction and effect
        time: Time to expiry in years
        spot: Current spot of the monitored asset
        strike: Strike
        barrier: Barrier level
        rate: Continuously compounded discount rate
        carry: Cost of carry (rate minus dividend or foreign rate)
        volatility: Lognormal volatility
        rebate: Cash rebate

    Returns:
        Discounted option value. A breached knock-in is a vanilla option, a
        breached knock-out is worth nothing.
    """
    if is_breached(barrier_type, spot, barrier):
        if barrier_type.is_knock_in:
            return _vanilla(option_type, time, spot, strike, rate, carry, volatility)
        return 0.0
    if time <= 0.0 or volatility <= 0.0:
        # Barrier not hit by expiry
        if barrier_type.is_knock_in:
            return rebate
        return max(option_type.sign * (spot - strike), 0.0)

    sd = volatility * math.sqrt(time)
    mu = (carry - 0.5 * volatility**2) / volatility**2
    lam = math.sqrt(mu * mu + 2.0 * rate / volatility**2)
    phi = float(option_type.sign)
    eta = 1.0 if barrier_type.is_down else -1.0

    x1 = math.log(spot / strike) / sd + (1.0 + mu) * sd
    x2 = math.log(spot / barrier) / sd + (1.0 + mu) * sd
    y1 = math.log(barrier * barrier / (spot * strike)) / sd + (1.0 + mu) * sd
    y2 = math.log(barrier / spot) / sd + (1.0 + mu) * sd
    z = math.log(barrier / spot) / sd + lam * sd

    asset = spot * math.exp((carry - rate) * time)
    cash = strike * math.exp(-rate * time)
    ratio = barrier / spot

    a = phi * asset * norm_cdf(phi * x1) - phi * cash * norm_cdf(phi * x1 - phi * sd)
    b = phi * asset * norm_cdf(phi * x2) - phi * cash * norm_cdf(phi * x2 - phi * sd)
    c = phi * asset * ratio ** (2.0 * (mu + 1.0)) * norm_cdf(eta * y1) - phi * cash * ratio ** (
        2.0 * mu
    ) * norm_cdf(eta * y1 - eta * sd)
    d = phi * asset * ratio ** (2.0 * (mu + 1.0)) * norm_cdf(eta * y2) - phi * cash * ratio ** (
        2.0 * mu
    ) * norm_cdf(eta * y2 - eta * sd)
    e = (
        rebate
        * math.exp(-rate * time)
        * (norm_cdf(eta * x2 - eta * sd) - ratio ** (2.0 * mu) * norm_cdf(eta * y2 - eta * sd))
    )
    f = rebate * (
        ratio ** (mu + lam) * norm_cdf(eta * z)
        + ratio ** (mu - lam) * norm_cdf(eta * z - 2.0 * eta * lam * sd)
    )

    above = strike > barrier
    if option_type is OptionType.CALL:
        table = {
            BarrierType.DOWN_IN: c + e if above else a - b + d + e,
            BarrierType.UP_IN: a + e if above else b - c + d + e,
            BarrierType.DOWN_OUT: a - c + f if above else b - d + f,
            BarrierType.UP_OUT: f if above else a - b + c - d + f,
        }
    else:
        table = {
            BarrierType.DOWN_IN: b - c + d + e if above else a + e,
            BarrierType.UP_IN: a - b + d + e if above else c + e,
            BarrierType.DOWN_OUT: a - b + c - d + f if above else f,
            BarrierType.UP_OUT: b - d + f if above else a - c + f,
        }
    return max(table[barrier_type], 0.0)


def _double_barrier_sums(
    time: float,
    spot: float,
    lower: float,
    upper: float,
    low: float,
    high: float,
    carry: float,
    volatility: float,
) -> tuple[float, float]:
    """Ikeda-Kunitomo series for the asset and cash legs over [low, high]."""
    sd = volatility * math.sqrt(time)
    drift = (carry + 0.5 * volatility**2) * time
    mu1 = 2.0 * carry / volatility**2 + 1.0
    mu3 = mu1
    asset_sum = 0.0
    cash_sum = 0.0
    for n in range(-DOUBLE_BARRIER_SERIES_TERMS, DOUBLE_BARRIER_SERIES_TERMS + 1):
        u2n = upper ** (2 * n)
        l2n = lower ** (2 * n)
        d1 = (math.log(spot * u2n / (low * l2n)) + drift) / sd
        d2 = (math.log(spot * u2n / (high * l2n)) + drift) / sd
        d3 = (math.log(lower ** (2 * n + 2) / (low * spot * u2n)) + drift) / sd
        d4 = (math.log(lower ** (2 * n + 2) / (high * spot * u2n)) + drift) / sd
        reflect = lower ** (n + 1) / (upper**n * spot)
        level = (upper / lower) ** n
        asset_sum += level**mu1 * (norm_cdf(d1) - norm_cdf(d2)) - reflect**mu3 * (
            norm_cdf(d3) - norm_cdf(d4)
        )
        cash_sum += level ** (mu1 - 2.0) * (norm_cdf(d1 - sd) - norm_cdf(d2 - sd)) - reflect ** (
            mu3 - 2.0
        ) * (norm_cdf(d3 - sd) - norm_cdf(d4 - sd))
    return asset_sum, cash_sum


def double_barrier_price(
    option_type: OptionType,
    knock_in: bool,
    time: float,
    spot: float,
    strike: float,
    lower: float,
    upper: float,
    rate: float,
    carry: float,
    volatility: float,
) -> float:
    """Double barrier option price with flat barriers and no rebate.

    Args:
        option_type: Call or put
        knock_in: Price the knock-in (True) or knock-out (False) option
        time: Time to expiry in years
        spot: Current spot of the monitored asset
        strike: Strike
        lower: Lower barrier
        upper: Upper barrier
        rate: Continuously compounded discount rate
        carry: Cost of carry
        volatility: Lognormal volatility

    Returns:
        Discounted option value
    """
    vanilla = _vanilla(option_type, time, spot, strike, rate, carry, volatility)
    if spot <= lower or spot >= upper:
        return vanilla if knock_in else 0.0
    if time <= 0.0 or volatility <= 0.0:
        knock_out = max(option_type.sign * (spot - strike), 0.0)
        return 0.0 if knock_in else knock_out

    if option_type is OptionType.CALL:
        low, high = max(strike, lower), upper
    else:
        low, high = lower, min(strike, upper)
    if low >= high:
        knock_out = 0.0
    else:
        asset_sum, cash_sum = _double_barrier_sums(
            time, spot, lower, upper, low, high, carry, volatility
        )
        asset = spot * math.exp((carry - rate) * time)
        cash = strike * math.exp(-rate * time)
        if option_type is OptionType.CALL:
            knock_out = asset * asset_sum - cash * cash_sum
        else:
            knock_out = cash * cash_sum - asset * asset_sum
        knock_out = max(knock_out, 0.0)
    if knock_in:
        return max(vanilla - knock_out, 0.0)
    return knock_out
