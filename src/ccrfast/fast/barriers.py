"""Incremental valuation of single and double barrier options.

The barrier is monitored on the spot of the observed asset at each
simulation date, which for FX and asset options is not the forward level
the option pays on. A knock is permanent for the rest of the path.

Knock-in options are worth the vanilla option once knocked and the
closed-form knock-in value before. Knock-out options are worth the
closed-form knock-out value until knocked and nothing afterwards. The
exercise decision is taken at expiry on the observed (or bridged) level and
only if the knock state leaves the option exercisable.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import Any

from ccrfast.core.types import ExerciseState
from ccrfast.fast.base import PathState
from ccrfast.fast.options import OptionFastPricer
from ccrfast.models.barrier import is_breached
from ccrfast.pricers.options import barrier_option_value, is_exercisable


class BarrierOptionFastPricer(OptionFastPricer):
    """Shared path logic of barrier options; subclasses define the knock test."""

    @abstractmethod
    def knocked_at(self, spot: float) -> bool:
        """Whether the monitored spot breaches the barrier(s)."""

    @property
    def knock_in(self) -> bool:
        return self.option.barriers[0].barrier_type.is_knock_in

    def _observe(self, state: PathState, spot: float) -> None:
        if self.knocked_at(spot):
            state.set_knocked(True)

    def _barrier_value(
        self, settle: date, state: PathState, level: float, numeraire: float
    ) -> float:
        if state.knocked:
            # Knock-in activated: the vanilla option remains
            return super().unexercised_value(settle, level, numeraire)
        option = self.option
        return barrier_option_value(
            option,
            self.pricer.time_between(settle, option.expiry),
            self.underlier.spot(settle),
            level,
            numeraire,
            self.underlier.volatility(settle),
        )

    def _resolve(self, state: PathState, level: float) -> None:
        if is_exercisable(self.option, state.knocked):
            state.resolve_exercise(self.decision(level))
        else:
            state.resolve_exercise(ExerciseState.NOT_EXERCISED)

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if state.is_new_path(settle):
            state.restart(settle, self.underlier.value(settle)[0])
        option = self.option
        expiry = option.expiry

        if settle <= expiry:
            if state.knocked and not self.knock_in:
                state.resolve_exercise(ExerciseState.NOT_EXERCISED)
                state.advance(settle)
                return payment
            level, numeraire = self.underlier.value(settle)
            state.advance(settle, level)
            self._observe(state, self.underlier.spot(settle))
            if settle < expiry:
                if state.knocked and not self.knock_in:
                    state.resolve_exercise(ExerciseState.NOT_EXERCISED)
                    return payment
                value = self._barrier_value(settle, state, level, numeraire)
                return self.pricer.notional * value + payment
            self._resolve(state, level)
        elif settle > self.exposure_bound():
            return payment
        elif not state.exercise_state.is_resolved:
            level = self.bridge(state, settle)
            self._observe(state, level)
            self._resolve(state, level)
            state.advance(settle, level)
        else:
            state.advance(settle)
        return self.settled_value(settle, state) + payment


class SingleBarrierFastPricer(BarrierOptionFastPricer):
    """Option with one up or down barrier."""

    def knocked_at(self, spot: float) -> bool:
        barrier = self.option.barriers[0]
        return is_breached(barrier.barrier_type, spot, barrier.level)


class DoubleBarrierFastPricer(BarrierOptionFastPricer):
    """Option with a lower and an upper barrier; knocked when spot leaves the corridor."""

    def knocked_at(self, spot: float) -> bool:
        lower, upper = self.option.barriers
        return spot <= lower.level or spot >= upper.level
