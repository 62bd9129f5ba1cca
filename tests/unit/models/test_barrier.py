"""Tests for closed-form barrier option prices."""

import pytest

from ccrfast.core.types import BarrierType, OptionType
from ccrfast.models.barrier import double_barrier_price, is_breached, single_barrier_price
from ccrfast.models.black import black_scholes

SPOT, STRIKE, RATE, CARRY, VOL, TIME = 100.0, 100.0, 0.03, 0.02, 0.2, 1.0


def vanilla(option_type: OptionType) -> float:
    return black_scholes(option_type, TIME, SPOT, STRIKE, RATE, RATE - CARRY, VOL)


class TestIsBreached:
    """Test the single barrier breach test."""

    def test_down_barrier(self):
        assert is_breached(BarrierType.DOWN_OUT, 90.0, 90.0)
        assert not is_breached(BarrierType.DOWN_IN, 91.0, 90.0)

    def test_up_barrier(self):
        assert is_breached(BarrierType.UP_IN, 110.0, 110.0)
        assert not is_breached(BarrierType.UP_OUT, 109.0, 110.0)


class TestSingleBarrier:
    """Test Reiner-Rubinstein prices."""

    @pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
    @pytest.mark.parametrize(
        "knock_in,knock_out,barrier",
        [
            (BarrierType.DOWN_IN, BarrierType.DOWN_OUT, 90.0),
            (BarrierType.UP_IN, BarrierType.UP_OUT, 115.0),
        ],
    )
    def test_in_out_parity(self, option_type, knock_in, knock_out, barrier):
        """Knock-in plus knock-out equals the vanilla option without rebate."""
        value_in = single_barrier_price(
            option_type, knock_in, TIME, SPOT, STRIKE, barrier, RATE, CARRY, VOL
        )
        value_out = single_barrier_price(
            option_type, knock_out, TIME, SPOT, STRIKE, barrier, RATE, CARRY, VOL
        )
        assert value_in >= 0.0
        assert value_out >= 0.0
        assert value_in + value_out == pytest.approx(vanilla(option_type), rel=1e-8)

    def test_breached_knock_in_is_vanilla(self):
        """A breached knock-in is the vanilla option."""
        value = single_barrier_price(
            OptionType.CALL, BarrierType.DOWN_IN, TIME, SPOT, STRIKE, 105.0, RATE, CARRY, VOL
        )
        assert value == pytest.approx(vanilla(OptionType.CALL))

    def test_breached_knock_out_is_worthless(self):
        """A breached knock-out is worth nothing."""
        value = single_barrier_price(
            OptionType.CALL, BarrierType.UP_OUT, TIME, SPOT, STRIKE, 95.0, RATE, CARRY, VOL
        )
        assert value == 0.0

    def test_expired_unbreached(self):
        """At expiry an unbreached knock-out pays intrinsic and a knock-in its rebate."""
        out = single_barrier_price(
            OptionType.CALL, BarrierType.DOWN_OUT, 0.0, 110.0, STRIKE, 90.0, RATE, CARRY, VOL
        )
        knock_in = single_barrier_price(
            OptionType.CALL, BarrierType.DOWN_IN, 0.0, 110.0, STRIKE, 90.0, RATE, CARRY, VOL, 2.0
        )
        assert out == pytest.approx(10.0)
        assert knock_in == 2.0


class TestDoubleBarrier:
    """Test Ikeda-Kunitomo prices."""

    @pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
    def test_in_out_parity(self, option_type):
        """Double knock-in plus knock-out equals the vanilla option."""
        args = (TIME, SPOT, STRIKE, 80.0, 125.0, RATE, CARRY, VOL)
        value_in = double_barrier_price(option_type, True, *args)
        value_out = double_barrier_price(option_type, False, *args)
        assert 0.0 <= value_out <= vanilla(option_type)
        assert value_in + value_out == pytest.approx(vanilla(option_type), rel=1e-8)

    def test_outside_corridor(self):
        """Spot outside the corridor is a knock: vanilla for knock-in, zero for knock-out."""
        args = (TIME, 130.0, STRIKE, 80.0, 125.0, RATE, CARRY, VOL)
        assert double_barrier_price(OptionType.CALL, False, *args) == 0.0
        assert double_barrier_price(OptionType.CALL, True, *args) > 0.0

    def test_wide_corridor_approaches_vanilla(self):
        """Knock-out with barriers far away is close to the vanilla option."""
        value = double_barrier_price(
            OptionType.CALL, False, TIME, SPOT, STRIKE, 20.0, 500.0, RATE, CARRY, VOL
        )
        assert value == pytest.approx(vanilla(OptionType.CALL), rel=1e-4)
