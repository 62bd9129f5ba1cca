"""Fast incremental revaluation of full pricers at future simulation dates."""

from ccrfast.fast.barriers import (
    BarrierOptionFastPricer,
    DoubleBarrierFastPricer,
    SingleBarrierFastPricer,
)
from ccrfast.fast.base import FastPricer, GenericFastPricer, PathState, evaluate
from ccrfast.fast.composite import (
    CalibrationMode,
    CalibrationResult,
    CdoFastPricer,
    SwapFastPricer,
)
from ccrfast.fast.credit import CdsFastPricer, CdxFastPricer
from ccrfast.fast.dispatcher import (
    FAST_PRICER_REGISTRY,
    build_fast_pricer,
    get_supported_pricer_types,
    register_fast_pricer,
)
from ccrfast.fast.exposure_dates import ExposureDateSet, reconcile_exposure_dates
from ccrfast.fast.forward_volatility import STANDARD_TENORS, ForwardVolatility
from ccrfast.fast.options import OptionFastPricer
from ccrfast.fast.rates import (
    BondFastPricer,
    CapFloorFastPricer,
    InflationBondFastPricer,
    PaymentScheduleFastPricer,
    SwapLegFastPricer,
)
from ccrfast.fast.schedule_cache import PaymentScheduleCache
from ccrfast.fast.underliers import (
    UNDERLIER_BUILDERS,
    CreditSpreadUnderlier,
    ForwardBondPrice,
    ForwardAssetPrice,
    ForwardFxRate,
    SwapRateUnderlier,
    Underlier,
    register_underlier,
)

__all__ = [
    # Lifecycle
    "build_fast_pricer",
    "evaluate",
    "FastPricer",
    "PathState",
    # Registry
    "FAST_PRICER_REGISTRY",
    "register_fast_pricer",
    "get_supported_pricer_types",
    "UNDERLIER_BUILDERS",
    "register_underlier",
    # Exposure dates and caches
    "ExposureDateSet",
    "reconcile_exposure_dates",
    "PaymentScheduleCache",
    "ForwardVolatility",
    "STANDARD_TENORS",
    # Fast pricers
    "GenericFastPricer",
    "PaymentScheduleFastPricer",
    "SwapLegFastPricer",
    "BondFastPricer",
    "InflationBondFastPricer",
    "CapFloorFastPricer",
    "CdsFastPricer",
    "CdxFastPricer",
    "SwapFastPricer",
    "CdoFastPricer",
    "CalibrationMode",
    "CalibrationResult",
    "OptionFastPricer",
    "BarrierOptionFastPricer",
    "SingleBarrierFastPricer",
    "DoubleBarrierFastPricer",
    # Underliers
    "Underlier",
    "SwapRateUnderlier",
    "ForwardFxRate",
    "ForwardAssetPrice",
    "CreditSpreadUnderlier",
    "ForwardBondPrice",
]
