"""Incremental valuation of European options along a simulation path.

Before expiry an option is valued with the Black (or Black-normal) formula
on the underlier level at the simulation date. At expiry the exercise
decision is taken on the observed level. When no sample falls on the expiry
date the level at expiry is inferred by a Brownian bridge between the last
sampled level and the forward level to expiry:

    h = dt / dT,  v = sigma^2 dT / 2
    level = last * exp(h * ln(forward / last) + h (1 - h) v)

where ``dt`` runs from the last sample to expiry and ``dT`` from the last
sample to the simulation date, and ``sigma`` is the underlier forward
volatility seen from the simulation date. The bridge is an approximation of
the terminal level, not an exact reconstruction.

Once exercised, a physically settled option is worth the intrinsic value of
the delivered underlier until its maturity. A cash settled option is worth
the intrinsic value of the expiry level until the cash settlement date.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date
from typing import Any

from ccrfast.core.time import add_days, add_months
from ccrfast.core.types import ExerciseState, OptionType
from ccrfast.exceptions import UnsupportedInstrumentError
from ccrfast.fast.base import FastPricer, PathState
from ccrfast.fast.underliers import Underlier, underlier_builder
from ccrfast.models.black import intrinsic
from ccrfast.pricers.options import option_price


class OptionFastPricer(FastPricer):
    """European option on a registered underlier.

    Attributes:
        underlier: Level, numeraire and forward volatility provider of the
            option underlying, its volatility frozen at build time
    """

    def _build(self) -> None:
        builder = underlier_builder(self.pricer)
        if builder is None:
            raise UnsupportedInstrumentError(
                f"Option pricer [{type(self.pricer).__name__}] not supported",
                context={"product": type(self.pricer.product).__name__},
            )
        self.underlier: Underlier = builder(self.market)
        self.underlier.build_volatility(
            self.option.expiry, self.config.forward_volatility_term_structure
        )

    @property
    def option(self) -> Any:
        return self.pricer.product

    def fixed_dates(self) -> Iterable[date]:
        """As-of date, monthly samples until expiry, and expiry with its preceding day."""
        expiry = self.option.expiry
        dates = [self.as_of]
        months = 1
        sample = add_months(self.as_of, months)
        while sample < expiry:
            dates.append(sample)
            months += 1
            sample = add_months(self.as_of, months)
        dates.extend((add_days(expiry, -1), expiry))
        return dates

    def critical_dates(self) -> Iterable[date]:
        option = self.option
        if option.is_physically_settled:
            return (*self.underlier.dates(), self.underlier.maturity)
        return (option.cash_settle_date,)

    def decision(self, level: float) -> ExerciseState:
        """Exercise a call above the strike and a put below it."""
        option = self.option
        if option.option_type is OptionType.CALL:
            exercised = level > option.strike
        else:
            exercised = level < option.strike
        return ExerciseState.EXERCISED if exercised else ExerciseState.NOT_EXERCISED

    def bridge(self, state: PathState, settle: date) -> float:
        """Underlier level at expiry inferred from the last sample and the current forward."""
        expiry = self.option.expiry
        expiry_level = self.underlier.value(expiry)[0]
        last_date, last_level = state.last_date, state.last_level
        to_expiry = (expiry - last_date).days / 365.0
        to_settle = (settle - last_date).days / 365.0
        if to_settle <= 0.0 or last_level <= 0.0 or expiry_level <= 0.0:
            return expiry_level
        h = to_expiry / to_settle
        sigma = self.underlier.volatility(settle)
        variance = 0.5 * sigma * sigma * to_settle
        return last_level * math.exp(
            h * math.log(expiry_level / last_level) + h * (1.0 - h) * variance
        )

    def unexercised_value(self, settle: date, level: float, numeraire: float) -> float:
        """Value per unit notional before expiry."""
        option = self.option
        return numeraire * option_price(
            self.pricer.distribution,
            option.option_type,
            self.pricer.time_between(settle, option.expiry),
            level,
            option.strike,
            self.underlier.volatility(settle),
        )

    def settled_value(self, settle: date, state: PathState) -> float:
        """Value after the exercise decision."""
        if state.exercise_state is not ExerciseState.EXERCISED:
            return 0.0
        option = self.option
        level, numeraire = self.underlier.value(settle)
        if not option.is_physically_settled:
            if settle >= option.cash_settle_date:
                return 0.0
            level = state.last_level
        payoff = intrinsic(option.option_type, level, option.strike)
        return self.pricer.notional * numeraire * payoff

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if state.is_new_path(settle):
            state.restart(settle, self.underlier.value(settle)[0])
        expiry = self.option.expiry

        if settle <= expiry:
            level, numeraire = self.underlier.value(settle)
            state.advance(settle, level)
            if settle < expiry:
                value = self.unexercised_value(settle, level, numeraire)
                return self.pricer.notional * value + payment
            state.resolve_exercise(self.decision(level))
        elif settle > self.exposure_bound():
            return payment
        elif not state.exercise_state.is_resolved:
            level = self.bridge(state, settle)
            state.resolve_exercise(self.decision(level))
            state.advance(settle, level)
        else:
            state.advance(settle)
        return self.settled_value(settle, state) + payment
