"""Selection of the fast pricer wrapping a full pricer.

The fast pricer is chosen once, at build time, from the class of the full
pricer. The registry maps pricer classes to factories and is searched along
the pricer's MRO, so the most specific registration wins. Pricers without a
registration fall back to their payment schedule when they expose one, and
to full revaluation otherwise.

Example:
    >>> from ccrfast.fast import build_fast_pricer
    >>> fast = build_fast_pricer(swap_pricer, EngineConfig(DiscountAccrued=True))
    >>> fast.fast_pv(date(2025, 6, 30))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

from ccrfast.config import DEFAULT_CONFIG, EngineConfig
from ccrfast.core.types import OptionStyle
from ccrfast.exceptions import PaymentScheduleError, UnsupportedInstrumentError
from ccrfast.fast.barriers import DoubleBarrierFastPricer, SingleBarrierFastPricer
from ccrfast.fast.base import FastPricer, GenericFastPricer
from ccrfast.fast.composite import CdoFastPricer, SwapFastPricer
from ccrfast.fast.credit import CdsFastPricer, CdxFastPricer
from ccrfast.fast.options import OptionFastPricer
from ccrfast.fast.rates import (
    BondFastPricer,
    CapFloorFastPricer,
    InflationBondFastPricer,
    PaymentScheduleFastPricer,
    SwapLegFastPricer,
)
from ccrfast.fast.underliers import underlier_builder
from ccrfast.logging_config import get_logger
from ccrfast.pricers.base import PaymentPricer, PricerLike
from ccrfast.pricers.credit import CDOPricer, CDSPricer, CDXPricer
from ccrfast.pricers.options import OptionPricerBase
from ccrfast.pricers.rates import (
    BondPricer,
    CapFloorPricer,
    InflationBondPricer,
    SwapLegPricer,
    SwapPricer,
)

logger = get_logger(__name__)

FastPricerFactory = Callable[
    [PricerLike, EngineConfig, "Iterable[date] | None", "FastPricer | None"], FastPricer
]


def _swap_fast_pricer(
    pricer: SwapPricer,
    config: EngineConfig,
    exposure_dates: Iterable[date] | None,
    payment_pricer: FastPricer | None,
) -> FastPricer:
    legs = tuple(build_fast_pricer(leg, config, exposure_dates) for leg in pricer.leg_pricers)
    return SwapFastPricer(pricer, config, exposure_dates, payment_pricer, children=legs)


def _option_fast_pricer(
    pricer: OptionPricerBase,
    config: EngineConfig,
    exposure_dates: Iterable[date] | None,
    payment_pricer: FastPricer | None,
) -> FastPricer:
    if underlier_builder(pricer) is None:
        raise UnsupportedInstrumentError(
            f"Option pricer [{type(pricer).__name__}] not supported",
            context={"product": type(pricer.product).__name__},
        )
    option = pricer.product
    if option.style is not OptionStyle.EUROPEAN:
        fast_type: type[FastPricer] = GenericFastPricer
    elif option.is_single_barrier:
        fast_type = SingleBarrierFastPricer
    elif option.is_double_barrier:
        fast_type = DoubleBarrierFastPricer
    else:
        fast_type = OptionFastPricer
    return fast_type(pricer, config, exposure_dates, payment_pricer)


def _fast_pricer_type(fast_type: type[FastPricer]) -> FastPricerFactory:
    def factory(pricer, config, exposure_dates, payment_pricer):
        return fast_type(pricer, config, exposure_dates, payment_pricer)

    factory.__name__ = fast_type.__name__
    return factory


FAST_PRICER_REGISTRY: dict[type, FastPricerFactory] = {
    SwapPricer: _swap_fast_pricer,
    SwapLegPricer: _fast_pricer_type(SwapLegFastPricer),
    BondPricer: _fast_pricer_type(BondFastPricer),
    InflationBondPricer: _fast_pricer_type(InflationBondFastPricer),
    CapFloorPricer: _fast_pricer_type(CapFloorFastPricer),
    PaymentPricer: _fast_pricer_type(PaymentScheduleFastPricer),
    CDSPricer: _fast_pricer_type(CdsFastPricer),
    CDXPricer: _fast_pricer_type(CdxFastPricer),
    CDOPricer: _fast_pricer_type(CdoFastPricer),
    OptionPricerBase: _option_fast_pricer,
}


def register_fast_pricer(pricer_type: type, factory: FastPricerFactory | type[FastPricer]) -> None:
    """Register the fast pricer of a pricer class.

    Args:
        pricer_type: Full pricer class (subclasses resolve to it too)
        factory: FastPricer subclass, or a callable
            ``(pricer, config, exposure_dates, payment_pricer) -> FastPricer``

    Raises:
        TypeError: If ``pricer_type`` is not a class or ``factory`` is not callable
        ValueError: If ``pricer_type`` is already registered

    Example:
        >>> register_fast_pricer(MyPricer, PaymentScheduleFastPricer)
    """
    if not isinstance(pricer_type, type):
        raise TypeError(f"Pricer type must be a class, got {type(pricer_type).__name__}")
    if not callable(factory):
        raise TypeError(f"Fast pricer factory must be callable, got {type(factory).__name__}")
    if pricer_type in FAST_PRICER_REGISTRY:
        raise ValueError(f"Pricer type {pricer_type.__name__} is already registered")
    if isinstance(factory, type) and issubclass(factory, FastPricer):
        factory = _fast_pricer_type(factory)
    FAST_PRICER_REGISTRY[pricer_type] = factory


def get_supported_pricer_types() -> list[type]:
    """Pricer classes with a registered fast pricer."""
    return list(FAST_PRICER_REGISTRY.keys())


def _registered_factory(pricer: PricerLike) -> FastPricerFactory | None:
    for cls in type(pricer).__mro__:
        factory = FAST_PRICER_REGISTRY.get(cls)
        if factory is not None:
            return factory
    return None


def _fallback_fast_pricer(
    pricer: PricerLike,
    config: EngineConfig,
    exposure_dates: Iterable[date] | None,
    payment_pricer: FastPricer | None,
) -> FastPricer:
    if getattr(pricer, "discount_curve", None) is not None:
        try:
            return PaymentScheduleFastPricer(pricer, config, exposure_dates, payment_pricer)
        except (PaymentScheduleError, NotImplementedError) as e:
            logger.debug(
                "No payment schedule, using full revaluation",
                extra={"pricer": type(pricer).__name__, "reason": str(e)},
            )
    return GenericFastPricer(pricer, config, exposure_dates, payment_pricer)


def build_fast_pricer(
    pricer: PricerLike,
    config: EngineConfig | None = None,
    exposure_dates: Iterable[date] | None = None,
) -> FastPricer:
    """Build phase: wrap a full pricer in its fast pricer.

    Args:
        pricer: Full pricer to wrap
        config: Engine configuration (defaults to :data:`DEFAULT_CONFIG`)
        exposure_dates: Dates requested by the simulation; None lets the
            instrument choose

    Returns:
        Fast pricer with its structure cached and its exposure dates reconciled

    Raises:
        UnsupportedInstrumentError: If the object is not a pricer or its
            product cannot be valued incrementally
    """
    if not isinstance(pricer, PricerLike):
        raise UnsupportedInstrumentError(
            "Object is not a pricer", context={"type": type(pricer).__name__}
        )
    config = config if config is not None else DEFAULT_CONFIG
    if exposure_dates is not None:
        exposure_dates = tuple(exposure_dates)

    payment_pricer = None
    if getattr(pricer, "payment_pricer", None) is not None:
        payment_pricer = build_fast_pricer(pricer.payment_pricer, config, exposure_dates)

    factory = _registered_factory(pricer)
    if factory is None:
        factory = _fallback_fast_pricer
    fast = factory(pricer, config, exposure_dates, payment_pricer)
    logger.debug(
        "Fast pricer selected",
        extra={
            "pricer": type(pricer).__name__,
            "fast_pricer": type(fast).__name__,
            "exposure_dates": len(fast.exposure_dates),
        },
    )
    return fast
