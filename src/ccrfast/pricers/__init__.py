"""Full (non-incremental) pricers wrapped by the fast revaluation engine."""

from ccrfast.pricers.base import PaymentPricer, PricerBase, PricerLike, notional_scale
from ccrfast.pricers.credit import CDOPricer, CDSPricer, CDXPricer
from ccrfast.pricers.options import (
    BondOptionPricer,
    CdsOptionPricer,
    FxOptionPricer,
    OptionPricerBase,
    StockOptionPricer,
    StockPricer,
    SwaptionPricer,
    barrier_option_value,
)
from ccrfast.pricers.rates import (
    BondPricer,
    CapFloorPricer,
    InflationBondPricer,
    SwapLegPricer,
    SwapPricer,
)

__all__ = [
    # Base
    "PricerBase",
    "PricerLike",
    "PaymentPricer",
    "notional_scale",
    # Rates
    "SwapLegPricer",
    "SwapPricer",
    "BondPricer",
    "InflationBondPricer",
    "CapFloorPricer",
    # Credit
    "CDSPricer",
    "CDXPricer",
    "CDOPricer",
    # Options
    "OptionPricerBase",
    "SwaptionPricer",
    "FxOptionPricer",
    "StockOptionPricer",
    "CdsOptionPricer",
    "BondOptionPricer",
    "StockPricer",
    "barrier_option_value",
]
