"""Tests for basket loss models and tranche valuation."""

from datetime import date

import pytest

from ccrfast.exceptions import CalibrationError, MarketDataError
from ccrfast.market.curves import DiscountCurve, SurvivalCurve
from ccrfast.models.basket import (
    GaussianFactorBasket,
    LargePoolBasket,
    TrancheTerms,
    gauss_hermite,
    ternary_search,
    tranche_pv,
)
from ccrfast.products import SyntheticCDO

AS_OF = date(2024, 1, 15)
DATES = [date(2025, 1, 15), date(2027, 1, 15)]


@pytest.fixture
def curves():
    return (
        SurvivalCurve.flat(AS_OF, 0.01, recovery_rate=0.4, name="A"),
        SurvivalCurve.flat(AS_OF, 0.03, recovery_rate=0.3, name="B"),
        SurvivalCurve.flat(AS_OF, 0.05, recovery_rate=0.5, name="C"),
    )


def expected_pool_loss(curves, weights, dt):
    pairs = zip(curves, weights, strict=True)
    return sum(w * (1.0 - c.recovery_rate) * (1.0 - c.interpolate(dt)) for c, w in pairs)


class TestQuadrature:
    """Test Gauss-Hermite nodes for normal expectations."""

    def test_weights_sum_to_one(self):
        nodes, weights = gauss_hermite(16)
        assert float(weights.sum()) == pytest.approx(1.0)
        assert float((weights * nodes**2).sum()) == pytest.approx(1.0)


class TestGaussianFactorBasket:
    """Test the exact heterogeneous basket."""

    def test_full_tranche_is_expected_pool_loss(self, curves):
        """The [0, 1] tranche loses the expected pool loss whatever the correlation."""
        basket = GaussianFactorBasket(curves, factor_loadings=[0.2, 0.4, 0.6])
        losses = basket.expected_tranche_loss(DATES, 0.0, 1.0)
        for dt, loss in zip(DATES, losses, strict=True):
            expected = expected_pool_loss(curves, [1 / 3] * 3, dt)
            assert float(loss) == pytest.approx(expected, rel=1e-4)

    def test_tranche_is_difference_of_base_tranches(self, curves):
        """Expected loss of [A, D] is EL[0, D] - EL[0, A]."""
        basket = GaussianFactorBasket(curves, weights=[1.0, 2.0, 1.0])
        mezz = basket.expected_tranche_loss(DATES, 0.03, 0.07)
        upper = basket.expected_tranche_loss(DATES, 0.0, 0.07)
        lower = basket.expected_tranche_loss(DATES, 0.0, 0.03)
        for m, u, lo in zip(mezz, upper, lower, strict=True):
            assert float(m) == pytest.approx(float(u - lo), abs=1e-14)

    def test_invalid_loadings(self, curves):
        """Loadings must be one per name in [0, 1)."""
        with pytest.raises(MarketDataError):
            GaussianFactorBasket(curves, factor_loadings=[0.2, 1.0, 0.3])
        with pytest.raises(MarketDataError):
            GaussianFactorBasket(curves, factor_loadings=[0.2, 0.3])

    def test_empty_basket(self):
        with pytest.raises(MarketDataError, match="at least one name"):
            GaussianFactorBasket(())


class TestLargePoolBasket:
    """Test the compressed homogeneous basket."""

    def test_zero_factor_full_tranche(self, curves):
        """With no correlation the full tranche loss is the average loss."""
        pool = LargePoolBasket(curves, factor=0.0)
        losses = pool.expected_tranche_loss(DATES, 0.0, 1.0)
        for dt, loss in zip(DATES, losses, strict=True):
            expected = expected_pool_loss(curves, [1 / 3] * 3, dt)
            assert float(loss) == pytest.approx(expected, rel=1e-10)

    def test_equity_loss_decreases_with_correlation(self, curves):
        """Correlation moves expected loss out of the equity tranche."""
        pool = LargePoolBasket(curves)
        low = float(pool.with_factor(0.1).expected_tranche_loss(DATES, 0.0, 0.03)[-1])
        high = float(pool.with_factor(0.8).expected_tranche_loss(DATES, 0.0, 0.03)[-1])
        assert high < low

    def test_with_factor_shares_pool_cache(self, curves):
        """Copies with another factor reuse the representative name."""
        pool = LargePoolBasket(curves)
        pool.representative_name(DATES)
        other = pool.with_factor(0.5)
        assert other.factor == 0.5
        assert tuple(DATES) in other._pool_cache

    def test_factor_range(self, curves):
        with pytest.raises(MarketDataError, match="Factor"):
            LargePoolBasket(curves, factor=1.0)


class TestTranchePv:
    """Test tranche valuation."""

    def test_zero_width(self, curves):
        terms = TrancheTerms(0.05, 0.05, 0.01, ())
        basket = LargePoolBasket(curves)
        curve = DiscountCurve.flat(AS_OF, 0.03)
        assert tranche_pv(terms, basket, AS_OF, AS_OF, curve, 1.0) == 0.0

    def test_premium_only_without_defaults(self):
        """With negligible default risk the tranche is worth its discounted premium."""
        cdo = SyntheticCDO(
            effective=AS_OF,
            maturity=date(2025, 1, 15),
            premium=0.05,
            attachment=0.0,
            detachment=0.1,
        )
        curve = DiscountCurve.flat(AS_OF, 0.03)
        safe = (SurvivalCurve.flat(AS_OF, 0.0),)
        terms = TrancheTerms(0.0, 0.1, 0.05, cdo.premium_periods())
        value = tranche_pv(terms, LargePoolBasket(safe), AS_OF, AS_OF, curve, 100.0)
        expected = 100.0 * sum(
            0.05 * accrual * curve.interpolate(pay) for _, _, pay, accrual in terms.periods
        )
        assert value == pytest.approx(expected, rel=1e-9)

    def test_upfront_only_after_last_period(self, curves):
        """Once no period remains only an unpaid fee is left."""
        terms = TrancheTerms(
            0.0,
            0.1,
            0.01,
            ((AS_OF, date(2024, 4, 15), date(2024, 4, 15), 0.25),),
            fee=0.02,
            fee_settle=date(2024, 6, 1),
        )
        curve = DiscountCurve.flat(AS_OF, 0.03)
        settle = date(2024, 5, 1)
        value = tranche_pv(terms, LargePoolBasket(curves), settle, settle, curve, 10.0)
        expected = 10.0 * 0.02 * curve.discount_factor(date(2024, 6, 1), date(2024, 5, 1))
        assert value == pytest.approx(expected)


class TestTernarySearch:
    """Test the unimodal minimizer."""

    def test_finds_minimum(self):
        assert ternary_search(lambda x: (x - 0.3) ** 2, 0.0, 1.0) == pytest.approx(0.3, abs=1e-7)

    def test_minimum_at_boundary(self):
        assert ternary_search(lambda x: x, 0.0, 1.0) == pytest.approx(0.0, abs=1e-7)

    def test_invalid_interval(self):
        with pytest.raises(CalibrationError, match="Empty search interval"):
            ternary_search(lambda x: x, 1.0, 1.0)

    def test_invalid_tolerance(self):
        with pytest.raises(CalibrationError):
            ternary_search(lambda x: x, 0.0, 1.0, tolerance=0.0)
