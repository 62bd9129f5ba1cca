"""Pytest configuration and shared fixtures for ccrfast tests.

This module provides the market data, products and pricers used across the
unit, property and integration tests.
"""

import copy
import logging
from datetime import date
from typing import Any

import jax
import pytest

from ccrfast.core.types import OptionType
from ccrfast.market.curves import DiscountCurve, ForwardPriceCurve, SurvivalCurve
from ccrfast.pricers import (
    CDSPricer,
    FxOptionPricer,
    StockOptionPricer,
    SwapPricer,
)
from ccrfast.products import CDS, FxOption, StockOption, Swap, SwapLeg

AS_OF = date(2024, 1, 15)


def revalue(pricer: Any, dt: date) -> float:
    """Full valuation of a copy of ``pricer`` moved to ``dt``."""
    moved = copy.copy(pricer)
    moved.as_of = dt
    moved.settle = dt
    moved.reset()
    return moved.pv()


def make_swap(
    coupon: float = 0.03, notional: float = 1.0, maturity: date = date(2025, 1, 15)
) -> Swap:
    """Receive-fixed swap against a quarterly floating leg."""
    return Swap(
        legs=(
            SwapLeg(
                effective=AS_OF,
                maturity=maturity,
                notional=notional,
                coupon=coupon,
                tenor="6M",
            ),
            SwapLeg(
                effective=AS_OF,
                maturity=maturity,
                notional=-notional,
                floating=True,
                tenor="3M",
            ),
        )
    )


@pytest.fixture
def revalue_at():
    """Full revaluation of a pricer copy at a date."""
    return revalue


@pytest.fixture
def swap_factory():
    """Builder of receive-fixed swaps: ``swap_factory(coupon, notional, maturity)``."""
    return make_swap


@pytest.fixture
def as_of() -> date:
    """Valuation date shared by all fixtures."""
    return AS_OF


@pytest.fixture
def tolerance() -> dict[str, float]:
    """Provide numerical tolerance values for float comparisons.

    Returns:
        Dictionary with different tolerance levels
    """
    return {
        "rtol": 1e-5,  # Relative tolerance
        "atol": 1e-8,  # Absolute tolerance
        "strict_rtol": 1e-10,  # Strict relative tolerance
        "strict_atol": 1e-12,  # Strict absolute tolerance
    }


@pytest.fixture
def discount_curve() -> DiscountCurve:
    """Flat 3% discount curve."""
    return DiscountCurve.flat(AS_OF, 0.03)


@pytest.fixture
def foreign_curve() -> DiscountCurve:
    """Flat 1% carry curve (foreign rate or dividend yield)."""
    return DiscountCurve.flat(AS_OF, 0.01, name="carry")


@pytest.fixture
def survival_curve() -> SurvivalCurve:
    """Flat 2% hazard curve with 40% recovery."""
    return SurvivalCurve.flat(AS_OF, 0.02, recovery_rate=0.4)


@pytest.fixture
def price_curve(discount_curve, foreign_curve) -> ForwardPriceCurve:
    """Stock forward curve with spot 100."""
    return ForwardPriceCurve(100.0, discount_curve, foreign_curve, name="stock")


@pytest.fixture
def fx_curve(discount_curve, foreign_curve) -> ForwardPriceCurve:
    """FX forward curve with spot 1.10."""
    return ForwardPriceCurve(1.10, discount_curve, foreign_curve, name="fx")


@pytest.fixture
def swap_pricer(discount_curve) -> SwapPricer:
    """One-year receive-fixed swap pricer."""
    return SwapPricer(make_swap(), AS_OF, AS_OF, discount_curve)


@pytest.fixture
def cds_pricer(discount_curve, survival_curve) -> CDSPricer:
    """Two-year protection-selling CDS pricer."""
    cds = CDS(effective=AS_OF, maturity=date(2026, 1, 15), premium=0.01)
    return CDSPricer(cds, AS_OF, AS_OF, discount_curve, survival_curve, notional=1_000_000.0)


@pytest.fixture
def stock_option_pricer(discount_curve, price_curve) -> StockOptionPricer:
    """One-year at-the-money stock call."""
    expiry = date(2025, 1, 15)
    option = StockOption(
        expiry=expiry, strike=price_curve.interpolate(expiry), option_type=OptionType.CALL
    )
    return StockOptionPricer(option, AS_OF, AS_OF, discount_curve, price_curve, 0.2)


@pytest.fixture
def fx_option_pricer(discount_curve, fx_curve) -> FxOptionPricer:
    """Six-month FX call struck at 1.10."""
    option = FxOption(expiry=date(2024, 7, 15), strike=1.10, option_type=OptionType.CALL)
    return FxOptionPricer(option, AS_OF, AS_OF, discount_curve, fx_curve, 0.1)


@pytest.fixture
def ccrfast_caplog(caplog):
    """caplog attached to the ccrfast logger, which does not propagate to root."""
    logger = logging.getLogger("ccrfast")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="ccrfast")
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture(autouse=True)
def reset_jax_config() -> None:
    """Clear JAX caches after each test."""
    yield
    jax.clear_caches()


# Configure pytest markers
def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers.

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
