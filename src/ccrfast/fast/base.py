"""Fast pricer base class, per-path state and the generic fallback.

A fast pricer has a two-phase lifecycle:

1. Build: wrapping a full pricer extracts everything that does not change
   along a simulation path (payment schedules, cash flow structures,
   calibrated baskets, forward volatilities, exposure dates). This happens
   once per instrument and every fatal error is raised here.
2. Evaluate: :meth:`FastPricer.fast_pv` values the instrument at a future
   date from the cached structure and the market data currently attached
   to the wrapped pricer.

The structure is shared read-only across paths. Everything a path needs to
remember (the last sampled date and level, exercise decisions, barrier
knocks) lives in a :class:`PathState` owned by the caller, one per path.
Within a path dates must be non-decreasing; a date at or before the last
sampled one starts a new path.

Example:
    >>> fast = build_fast_pricer(pricer)
    >>> state = fast.new_path_state()
    >>> values = [evaluate(fast, state, dt) for dt in fast.exposure_dates]
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from ccrfast.config import DEFAULT_CONFIG, EngineConfig
from ccrfast.core.types import ExerciseState
from ccrfast.exceptions import StateTransitionError
from ccrfast.fast.exposure_dates import ExposureDateSet, reconcile_exposure_dates
from ccrfast.logging_config import get_logger
from ccrfast.pricers.base import PricerLike

logger = get_logger(__name__)


@dataclass
class PathState:
    """Mutable state of one simulation path.

    Attributes:
        last_date: Last date evaluated on this path (None before the first call)
        last_level: Underlier level saved at the last sample, or the inferred
            expiry level once the exercise decision is made
        exercise_state: Exercise decision; never reverts once resolved
        knocked: Barrier knock flag; never reverts once set
        children: States of sub-pricers of a composite
    """

    last_date: date | None = None
    last_level: float = 0.0
    exercise_state: ExerciseState = ExerciseState.NONE
    knocked: bool = False
    children: tuple[PathState, ...] = ()

    def is_new_path(self, settle: date) -> bool:
        """A first call, or a date not after the last one, starts a new path."""
        return self.last_date is None or settle <= self.last_date

    def restart(self, settle: date, level: float) -> None:
        """Forget the previous path and sample ``level`` at ``settle``."""
        self.last_date = settle
        self.last_level = level
        self.exercise_state = ExerciseState.NONE
        self.knocked = False

    def advance(self, settle: date, level: float | None = None) -> None:
        """Move the path to ``settle``, saving ``level`` if given."""
        self.last_date = settle
        if level is not None:
            self.last_level = level

    def resolve_exercise(self, decision: ExerciseState) -> None:
        """Record the exercise decision.

        Raises:
            StateTransitionError: If a different decision was already made
        """
        if not decision.is_resolved:
            raise StateTransitionError(
                "Exercise state can only be resolved", context={"decision": decision.value}
            )
        if self.exercise_state.is_resolved and self.exercise_state is not decision:
            raise StateTransitionError(
                "Exercise state cannot change within a path",
                context={"current": self.exercise_state.value, "requested": decision.value},
            )
        if self.exercise_state is not decision:
            logger.debug(
                "Exercise state resolved",
                extra={"exercise_state": decision.value, "path_date": self.last_date},
            )
        self.exercise_state = decision

    def set_knocked(self, knocked: bool) -> None:
        """Update the knock flag.

        Raises:
            StateTransitionError: On an attempt to clear a knock within a path
        """
        if self.knocked and not knocked:
            raise StateTransitionError("A barrier knock cannot be undone within a path")
        if knocked and not self.knocked:
            logger.debug("Barrier knocked", extra={"path_date": self.last_date})
        self.knocked = knocked

    def child(self, index: int) -> PathState | None:
        return self.children[index] if index < len(self.children) else None


def resolve_flag(pricer: Any, attribute: str, default: bool) -> bool:
    """Per-instrument flag: the pricer's setting if it has one, else the default."""
    value = getattr(pricer, attribute, None)
    return default if value is None else bool(value)


class FastPricer(ABC):
    """Base class for fast (incremental) pricers.

    Attributes:
        pricer: Wrapped full pricer; its market data is read at evaluation
        market: Object the market data is read from (the pricer by default)
        config: Engine configuration used at build time
        payment_pricer: Fast pricer of the attached one-off payments
        children: Fast pricers of the components of a composite
        currency: Valuation currency
    """

    def __init__(
        self,
        pricer: PricerLike,
        config: EngineConfig | None = None,
        exposure_dates: Iterable[date] | None = None,
        payment_pricer: FastPricer | None = None,
        market: Any = None,
        children: tuple[FastPricer, ...] = (),
    ):
        self.pricer = pricer
        self.market = market if market is not None else pricer
        self.config = config if config is not None else DEFAULT_CONFIG
        self.payment_pricer = payment_pricer
        self.children = children
        self.currency = getattr(pricer, "currency", None)
        self._external_dates = None if exposure_dates is None else tuple(exposure_dates)
        self._build()
        self._exposure_dates = self._reconcile()

    def _build(self) -> None:
        """Build the cached structure; called once from the constructor."""

    @property
    def as_of(self) -> date:
        return self.pricer.as_of

    @property
    def maturity(self) -> date:
        return self.pricer.maturity

    def exposure_bound(self) -> date:
        """Last date on which the instrument can have value."""
        return self.maturity

    def critical_dates(self) -> Iterable[date]:
        """Dates where the value jumps (sampled with the preceding day)."""
        return ()

    def fixed_dates(self) -> Iterable[date]:
        """Observation dates sampled as they are."""
        return ()

    def _reconcile(self) -> ExposureDateSet:
        nested = [child.exposure_dates for child in self.children]
        if self.payment_pricer is not None:
            nested.append(self.payment_pricer.exposure_dates)
        return reconcile_exposure_dates(
            self.as_of,
            self.exposure_bound(),
            self.critical_dates(),
            self.fixed_dates(),
            self._external_dates,
            nested,
        )

    @property
    def exposure_dates(self) -> ExposureDateSet:
        return self._exposure_dates

    def with_exposure_dates(self, dates: Iterable[date]) -> FastPricer:
        """New fast pricer sharing this structure with dates reconciled against ``dates``."""
        requested = tuple(dates)
        clone = copy.copy(self)
        clone._external_dates = requested
        clone.children = tuple(child.with_exposure_dates(requested) for child in self.children)
        if self.payment_pricer is not None:
            clone.payment_pricer = self.payment_pricer.with_exposure_dates(requested)
        clone._exposure_dates = clone._reconcile()
        return clone

    def new_path_state(self) -> PathState:
        return PathState(children=tuple(child.new_path_state() for child in self.children))

    def payment_value(self, settle: date) -> float:
        if self.payment_pricer is None:
            return 0.0
        return self.payment_pricer.fast_pv(settle)

    @abstractmethod
    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        """Value at ``settle`` on the path described by ``state``."""

    def fast_pv(self, settle: date, state: PathState | None = None, **kwargs: Any) -> float:
        """Present value at ``settle`` of the cash flows after ``settle``.

        Args:
            settle: Simulation date; the value is expressed at this date
            state: Path state; None evaluates as the first date of a new path
            **kwargs: Valuation options of specific pricers (``clean``,
                ``include_settle_payments``)

        Returns:
            Present value in the pricer's currency
        """
        if state is None:
            state = self.new_path_state()
        return self._value(settle, state, **kwargs)

    def __repr__(self) -> str:
        pricer = type(self.pricer).__name__
        return f"{type(self).__name__}({pricer}, dates={len(self.exposure_dates)})"


def evaluate(fast_pricer: FastPricer, state: PathState | None, settle: date) -> float:
    """Evaluate phase of the lifecycle: value on a path at ``settle``."""
    return fast_pricer.fast_pv(settle, state)


class GenericFastPricer(FastPricer):
    """Fallback that revalues a private copy of the full pricer at every date.

    Used for pricers without a payment schedule or a dedicated fast pricer.
    Exposure dates are the as-of date and the maturity with its preceding day.
    """

    def critical_dates(self) -> Iterable[date]:
        return (self.maturity,)

    def _value(self, settle: date, state: PathState, **kwargs: Any) -> float:
        payment = self.payment_value(settle)
        if settle > self.maturity:
            return payment
        pricer = copy.copy(self.pricer)
        pricer.as_of = settle
        pricer.settle = settle
        pricer.payment_pricer = None
        pricer.reset()
        return pricer.pv() + payment
