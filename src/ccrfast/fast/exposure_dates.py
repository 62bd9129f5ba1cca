"""Exposure date reconciliation.

A simulation samples an instrument's value only on its exposure dates, so
every value discontinuity must be bracketed by them. The reconciler merges
the dates requested by the simulation with the dates on which the
instrument's value jumps: for a cash flow on date ``d`` both ``d - 1`` (last
day the flow is still in the remaining stream) and ``d`` (first day it is
not) are sampled.

Example:
    >>> dates = reconcile_exposure_dates(
    ...     as_of=date(2024, 1, 15),
    ...     bound=date(2024, 7, 15),
    ...     critical_dates=[date(2024, 4, 15), date(2024, 7, 15)],
    ... )
    >>> dates.dates[1:3]
    (datetime.date(2024, 4, 14), datetime.date(2024, 4, 15))
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from ccrfast.exceptions import EngineError
from ccrfast.logging_config import get_logger

logger = get_logger(__name__)

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class ExposureDateSet:
    """Ascending, duplicate-free exposure dates of one instrument.

    Attributes:
        dates: Strictly increasing dates, starting with the as-of date
        bound: Last date on which the instrument can have value
        tail: First requested date after the last requested date within the
            bound, sampled to capture the drop to zero after maturity
    """

    dates: tuple[date, ...]
    bound: date
    tail: date | None = None

    def __post_init__(self) -> None:
        if not self.dates:
            raise EngineError("Exposure date set is empty", context={"bound": self.bound})
        if any(b <= a for a, b in zip(self.dates[:-1], self.dates[1:], strict=True)):
            raise EngineError("Exposure dates must be strictly increasing")
        # The as-of date is kept even for an instrument that has already matured
        limit = max(self.bound, self.dates[0], self.tail or self.bound)
        if self.dates[-1] > limit:
            raise EngineError(
                "Exposure dates exceed their bound",
                context={"last": self.dates[-1], "bound": self.bound, "tail": self.tail},
            )

    def __iter__(self) -> Iterator[date]:
        return iter(self.dates)

    def __len__(self) -> int:
        return len(self.dates)

    def __contains__(self, dt: object) -> bool:
        return dt in self.dates

    def __getitem__(self, index: int) -> date:
        return self.dates[index]

    @property
    def as_of(self) -> date:
        return self.dates[0]

    def within_bound(self) -> tuple[date, ...]:
        """Dates excluding the tail."""
        return tuple(d for d in self.dates if d <= self.bound)


def _external_dates(
    external_dates: Iterable[date], bound: date
) -> tuple[list[date], date | None]:
    """Requested dates within the bound plus the tail date closing them."""
    ordered = sorted(set(external_dates))
    kept = [d for d in ordered if d <= bound]
    if not kept:
        return [], ordered[0] if ordered else None
    last = kept[-1]
    if last < bound:
        for d in ordered:
            if d > last:
                return kept, d
    return kept, None


def reconcile_exposure_dates(
    as_of: date,
    bound: date,
    critical_dates: Iterable[date] = (),
    fixed_dates: Iterable[date] = (),
    external_dates: Iterable[date] | None = None,
    nested: Sequence[ExposureDateSet] = (),
) -> ExposureDateSet:
    """Merge requested and instrument dates into one exposure date set.

    Args:
        as_of: Valuation date, always the first exposure date
        bound: Rolled maturity (or cash settlement date) of the instrument
        critical_dates: Dates where a cash flow drops out of the remaining
            stream; each is added with the preceding day
        fixed_dates: Dates added as they are (observation points)
        external_dates: Dates requested by the simulation, if any
        nested: Reconciled dates of sub-pricers (legs, payment pricers)

    Returns:
        The reconciled exposure dates
    """
    dates = {as_of}
    tail = None
    if external_dates is not None:
        kept, tail = _external_dates(external_dates, bound)
        dates.update(kept)

    for d in critical_dates:
        if as_of < d <= bound:
            dates.add(d)
            if d - _ONE_DAY > as_of:
                dates.add(d - _ONE_DAY)
    dates.update(d for d in fixed_dates if as_of <= d <= bound)

    result_bound = max([bound, *(n.bound for n in nested)])
    tails = [t for t in [tail, *(n.tail for n in nested)] if t is not None and t > result_bound]
    tail = min(tails) if tails else None
    for n in nested:
        dates.update(d for d in n.dates if d <= result_bound)
    if tail is not None:
        dates.add(tail)

    result = ExposureDateSet(tuple(sorted(d for d in dates if d >= as_of)), result_bound, tail)
    logger.debug(
        "Reconciled exposure dates",
        extra={"count": len(result), "as_of": as_of, "bound": result_bound, "tail": tail},
    )
    return result
