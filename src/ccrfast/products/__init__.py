"""Product terms as validated pydantic models."""

from ccrfast.products.base import Product
from ccrfast.products.credit import CDS, CDX, CreditProduct, SyntheticCDO
from ccrfast.products.options import (
    Barrier,
    BondOption,
    CdsOption,
    FxOption,
    OptionProduct,
    Stock,
    StockOption,
    Swaption,
)
from ccrfast.products.rates import (
    Bond,
    CapFloor,
    InflationBond,
    PaymentStream,
    Swap,
    SwapLeg,
)

__all__ = [
    "Product",
    # Rates
    "SwapLeg",
    "Swap",
    "Bond",
    "InflationBond",
    "CapFloor",
    "PaymentStream",
    # Credit
    "CreditProduct",
    "CDS",
    "CDX",
    "SyntheticCDO",
    # Options
    "Barrier",
    "OptionProduct",
    "StockOption",
    "FxOption",
    "Swaption",
    "CdsOption",
    "BondOption",
    "Stock",
]
