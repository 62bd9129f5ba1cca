"""Closed-form option, barrier, CDS and basket models."""

from ccrfast.models.barrier import double_barrier_price, is_breached, single_barrier_price
from ccrfast.models.basket import (
    BasketModel,
    GaussianFactorBasket,
    LargePoolBasket,
    TrancheTerms,
    gauss_hermite,
    ternary_search,
    tranche_pv,
)
from ccrfast.models.black import (
    black,
    black_atm_approximation,
    black_normal,
    black_scholes,
    intrinsic,
    norm_cdf,
    norm_pdf,
)
from ccrfast.models.credit import (
    CdsCashflow,
    CdsPeriod,
    cds_cashflow_pv,
    forward_spread,
    generate_cds_cashflow,
    risky_annuity,
)

__all__ = [
    # Black
    "black",
    "black_normal",
    "black_scholes",
    "black_atm_approximation",
    "intrinsic",
    "norm_cdf",
    "norm_pdf",
    # Barriers
    "is_breached",
    "single_barrier_price",
    "double_barrier_price",
    # Credit
    "CdsPeriod",
    "CdsCashflow",
    "generate_cds_cashflow",
    "cds_cashflow_pv",
    "risky_annuity",
    "forward_spread",
    # Baskets
    "BasketModel",
    "GaussianFactorBasket",
    "LargePoolBasket",
    "TrancheTerms",
    "gauss_hermite",
    "tranche_pv",
    "ternary_search",
]
