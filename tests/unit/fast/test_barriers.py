"""Tests for barrier option fast pricers."""

from datetime import date

import pytest

from ccrfast.core.types import BarrierType, ExerciseState
from ccrfast.fast import (
    DoubleBarrierFastPricer,
    OptionFastPricer,
    SingleBarrierFastPricer,
    build_fast_pricer,
)
from ccrfast.pricers import FxOptionPricer
from ccrfast.products import FxOption
from ccrfast.products.options import Barrier

AS_OF = date(2024, 1, 15)
EXPIRY = date(2024, 7, 15)
D1, D2, D3 = date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15)


def _fx_option(discount_curve, fx_curve, *barriers, rebate=0.0) -> FxOptionPricer:
    option = FxOption(expiry=EXPIRY, strike=1.10, barriers=barriers, rebate=rebate)
    return FxOptionPricer(option, AS_OF, AS_OF, discount_curve, fx_curve, 0.1)


@pytest.fixture
def down_and_out(discount_curve, fx_curve) -> FxOptionPricer:
    barrier = Barrier(barrier_type=BarrierType.DOWN_OUT, level=1.0)
    return _fx_option(discount_curve, fx_curve, barrier)


@pytest.fixture
def up_and_in(discount_curve, fx_curve) -> FxOptionPricer:
    barrier = Barrier(barrier_type=BarrierType.UP_IN, level=1.15)
    return _fx_option(discount_curve, fx_curve, barrier)


class TestSingleBarrier:
    """Test knock detection and knock-dependent values."""

    def test_matches_full_pricer_at_as_of(self, down_and_out, up_and_in):
        for pricer in (down_and_out, up_and_in):
            fast = build_fast_pricer(pricer)
            assert isinstance(fast, SingleBarrierFastPricer)
            assert fast.fast_pv(AS_OF) == pytest.approx(pricer.pv(), rel=1e-10)

    def test_knocked_at(self, down_and_out):
        fast = build_fast_pricer(down_and_out)
        assert fast.knocked_at(0.99)
        assert fast.knocked_at(1.0)
        assert not fast.knocked_at(1.01)

    def test_knock_out_is_permanent(self, down_and_out, fx_curve):
        fast = build_fast_pricer(down_and_out)
        state = fast.new_path_state()
        assert fast.fast_pv(AS_OF, state) > 0.0
        down_and_out.fx_curve = fx_curve.with_spot(0.95)
        assert fast.fast_pv(D1, state) == 0.0
        assert state.knocked
        assert state.exercise_state is ExerciseState.NOT_EXERCISED
        down_and_out.fx_curve = fx_curve.with_spot(1.20)
        for dt in (D2, D3, EXPIRY, date(2024, 7, 16)):
            assert fast.fast_pv(dt, state) == 0.0
        assert state.knocked

    def test_new_path_forgets_knock(self, down_and_out, fx_curve):
        fast = build_fast_pricer(down_and_out)
        state = fast.new_path_state()
        down_and_out.fx_curve = fx_curve.with_spot(0.95)
        fast.fast_pv(D1, state)
        down_and_out.fx_curve = fx_curve
        assert fast.fast_pv(AS_OF, state) > 0.0
        assert not state.knocked

    def test_knock_in_becomes_vanilla(self, up_and_in, discount_curve, fx_curve):
        fast = build_fast_pricer(up_and_in)
        vanilla = FxOptionPricer(
            FxOption(expiry=EXPIRY, strike=1.10), AS_OF, AS_OF, discount_curve, fx_curve, 0.1
        )
        vanilla_fast = build_fast_pricer(vanilla)
        assert isinstance(vanilla_fast, OptionFastPricer)
        state = fast.new_path_state()
        before = fast.fast_pv(AS_OF, state)
        assert not state.knocked
        assert before < vanilla_fast.fast_pv(AS_OF)

        up_and_in.fx_curve = fx_curve.with_spot(1.20)
        vanilla.fx_curve = fx_curve.with_spot(1.20)
        assert fast.fast_pv(D1, state) == pytest.approx(vanilla_fast.fast_pv(D1), rel=1e-10)
        assert state.knocked

        # Back inside the barrier the option stays activated
        up_and_in.fx_curve = fx_curve
        vanilla.fx_curve = fx_curve
        assert fast.fast_pv(D2, state) == pytest.approx(vanilla_fast.fast_pv(D2), rel=1e-10)

    def test_knock_in_never_activated_expires_worthless(self, up_and_in):
        fast = build_fast_pricer(up_and_in)
        state = fast.new_path_state()
        for dt in (AS_OF, D1, EXPIRY):
            fast.fast_pv(dt, state)
        assert not state.knocked
        assert state.exercise_state is ExerciseState.NOT_EXERCISED
        assert fast.fast_pv(date(2024, 7, 16), state) == 0.0

    def test_knock_out_not_knocked_exercises(self, down_and_out, fx_curve):
        fast = build_fast_pricer(down_and_out)
        state = fast.new_path_state()
        down_and_out.fx_curve = fx_curve.with_spot(1.20)
        fast.fast_pv(AS_OF, state)
        fast.fast_pv(EXPIRY, state)
        assert state.exercise_state is ExerciseState.EXERCISED
        assert fast.fast_pv(date(2024, 7, 16), state) > 0.0

    def test_bridged_level_is_checked_against_barrier(self, discount_curve, fx_curve):
        """A path jumping over expiry is knocked if the inferred level breaches."""
        pricer = _fx_option(
            discount_curve, fx_curve, Barrier(barrier_type=BarrierType.UP_OUT, level=1.115)
        )
        fast = build_fast_pricer(pricer)
        state = fast.new_path_state()
        fast.fast_pv(date(2024, 6, 15), state)
        assert not state.knocked
        pricer.fx_curve = fx_curve.with_spot(1.11)
        fast.fast_pv(date(2024, 7, 16), state)
        # The forward to delivery is above the barrier, so the bridged level knocks
        assert state.knocked
        assert state.exercise_state is ExerciseState.NOT_EXERCISED


class TestDoubleBarrier:
    """Test corridor knocks."""

    @pytest.fixture
    def corridor(self, discount_curve, fx_curve) -> FxOptionPricer:
        return _fx_option(
            discount_curve,
            fx_curve,
            Barrier(barrier_type=BarrierType.UP_OUT, level=1.25),
            Barrier(barrier_type=BarrierType.DOWN_OUT, level=0.95),
        )

    def test_type_and_as_of_value(self, corridor):
        fast = build_fast_pricer(corridor)
        assert isinstance(fast, DoubleBarrierFastPricer)
        assert fast.fast_pv(AS_OF) == pytest.approx(corridor.pv(), rel=1e-10)

    def test_knocked_at(self, corridor):
        fast = build_fast_pricer(corridor)
        assert fast.knocked_at(0.95)
        assert fast.knocked_at(1.30)
        assert not fast.knocked_at(1.10)

    def test_leaving_corridor_knocks_out(self, corridor, fx_curve):
        fast = build_fast_pricer(corridor)
        state = fast.new_path_state()
        fast.fast_pv(AS_OF, state)
        corridor.fx_curve = fx_curve.with_spot(1.30)
        assert fast.fast_pv(D1, state) == 0.0
        corridor.fx_curve = fx_curve
        assert fast.fast_pv(D2, state) == 0.0
        assert state.knocked
