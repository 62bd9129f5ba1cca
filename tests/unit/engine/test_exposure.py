"""Tests for the exposure simulation driver."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from ccrfast.core.types import BarrierType
from ccrfast.engine import ExposureProfile, simulate_exposure
from ccrfast.exceptions import EngineError
from ccrfast.fast import build_fast_pricer
from ccrfast.pricers import FxOptionPricer
from ccrfast.products import FxOption
from ccrfast.products.options import Barrier

D1, D2, D3 = date(2024, 1, 15), date(2024, 6, 3), date(2024, 11, 4)


@pytest.fixture
def profile() -> ExposureProfile:
    values = np.array([[1.0, -2.0, 0.0], [3.0, 2.0, -1.0]])
    return ExposureProfile((D1, D2, D3), values)


class TestExposureProfile:
    """Test exposure statistics."""

    def test_statistics(self, profile):
        assert profile.n_paths == 2
        np.testing.assert_allclose(profile.expected_value(), [2.0, 0.0, -0.5])
        np.testing.assert_allclose(profile.expected_exposure(), [2.0, 1.0, 0.0])
        np.testing.assert_allclose(profile.expected_negative_exposure(), [0.0, -1.0, -0.5])
        np.testing.assert_allclose(profile.potential_future_exposure(1.0), [3.0, 2.0, 0.0])

    def test_invalid_quantile(self, profile):
        with pytest.raises(EngineError, match="Quantile"):
            profile.potential_future_exposure(1.5)

    def test_to_dataframe(self, profile):
        frame = profile.to_dataframe(quantile=1.0)
        assert isinstance(frame, pd.DataFrame)
        assert frame.index.name == "date"
        assert list(frame.index) == [D1, D2, D3]
        assert list(frame.columns) == [
            "expected_value",
            "expected_exposure",
            "expected_negative_exposure",
            "pfe",
        ]
        assert frame.loc[D2, "pfe"] == 2.0


class TestSimulateExposure:
    """Test path simulation."""

    def test_default_dates(self, swap_pricer):
        fast = build_fast_pricer(swap_pricer)
        profile = simulate_exposure(fast)
        assert profile.dates == fast.exposure_dates.dates
        assert profile.values.shape == (1, len(fast.exposure_dates))
        assert profile.values[0, 0] == pytest.approx(fast.fast_pv(D1))
        assert profile.metadata["fast_pricer"] == "SwapFastPricer"
        assert profile.metadata["pricer"] == "SwapPricer"

    def test_requested_dates(self, swap_pricer):
        fast = build_fast_pricer(swap_pricer)
        profile = simulate_exposure(fast, n_paths=3, dates=[D1, D2, D3])
        assert profile.dates == (D1, D2, D3)
        # Without a scenario every path sees the same market
        np.testing.assert_allclose(profile.values[0], profile.values[2])

    def test_scenario_hook(self, swap_pricer, discount_curve):
        calls = []

        def shift(path, dt, pricer):
            calls.append((path, dt))
            pricer.discount_curve = discount_curve.shifted(0.01 * path)

        fast = build_fast_pricer(swap_pricer)
        profile = simulate_exposure(fast, n_paths=2, dates=[D1, D2], scenario=shift)
        assert calls == [(0, D1), (0, D2), (1, D1), (1, D2)]
        assert profile.values[0, 1] != profile.values[1, 1]

    def test_market_restored_after_simulation(self, swap_pricer, discount_curve):
        """Curves set by the scenario are undone on the swap and on its legs."""
        fast = build_fast_pricer(swap_pricer)
        before = fast.fast_pv(D2)

        def shift(path, dt, pricer):
            pricer.discount_curve = discount_curve.shifted(0.01 * (path + 1))
            pricer.scenario_path = path

        simulate_exposure(fast, n_paths=2, dates=[D1, D2], scenario=shift)
        assert swap_pricer.discount_curve is discount_curve
        assert all(p.discount_curve is discount_curve for p in swap_pricer.leg_pricers)
        assert not hasattr(swap_pricer, "scenario_path")
        assert fast.fast_pv(D2) == pytest.approx(before, rel=1e-12)

    def test_market_restored_when_scenario_fails(self, swap_pricer, discount_curve):
        def failing(path, dt, pricer):
            pricer.discount_curve = discount_curve.shifted(0.01)
            if dt == D2:
                raise EngineError("Scenario unavailable")

        fast = build_fast_pricer(swap_pricer)
        with pytest.raises(EngineError, match="Scenario unavailable"):
            simulate_exposure(fast, dates=[D1, D2], scenario=failing)
        assert swap_pricer.discount_curve is discount_curve
        assert swap_pricer.leg_pricers[0].discount_curve is discount_curve

    def test_each_path_has_its_own_state(self, discount_curve, fx_curve):
        """A knock on one path does not carry over to the next."""
        option = FxOption(
            expiry=date(2024, 7, 15),
            strike=1.10,
            barriers=(Barrier(barrier_type=BarrierType.DOWN_OUT, level=1.0),),
        )
        pricer = FxOptionPricer(option, D1, D1, discount_curve, fx_curve, 0.1)

        def knock_first_path(path, dt, market):
            spot = 0.95 if path == 0 and dt == D2 else 1.10
            market.fx_curve = fx_curve.with_spot(spot)

        fast = build_fast_pricer(pricer)
        dates = [D1, D2, date(2024, 7, 1)]
        profile = simulate_exposure(fast, n_paths=2, dates=dates, scenario=knock_first_path)
        assert profile.values[0, 2] == 0.0
        assert profile.values[1, 2] > 0.0

    def test_invalid_arguments(self, swap_pricer):
        fast = build_fast_pricer(swap_pricer)
        with pytest.raises(EngineError, match="At least one path"):
            simulate_exposure(fast, n_paths=0)
        with pytest.raises(EngineError, match="No exposure dates"):
            simulate_exposure(fast, dates=[])

    def test_performance_log(self, swap_pricer, ccrfast_caplog):
        simulate_exposure(build_fast_pricer(swap_pricer), n_paths=2)
        records = [r for r in ccrfast_caplog.records if r.getMessage() == "Exposure simulated"]
        assert records
        assert records[0].paths == 2
