"""Curves and volatility surfaces read by pricers."""

from ccrfast.market.curves import (
    Curve,
    DiscountCurve,
    DiscountCurveLike,
    ForwardPriceCurve,
    SurvivalCurve,
    SurvivalCurveLike,
)
from ccrfast.market.volatility import (
    FlatVolatilitySurface,
    GridVolatilitySurface,
    VolatilitySurfaceLike,
    as_surface,
)

__all__ = [
    "Curve",
    "DiscountCurve",
    "DiscountCurveLike",
    "SurvivalCurve",
    "SurvivalCurveLike",
    "ForwardPriceCurve",
    "FlatVolatilitySurface",
    "GridVolatilitySurface",
    "VolatilitySurfaceLike",
    "as_surface",
]
