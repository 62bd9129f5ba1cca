"""Property-based tests for exposure date reconciliation using Hypothesis.

Invariants checked for arbitrary instrument and requested dates:
- Exposure dates are strictly increasing and start at the as-of date
- Every value jump inside the bound is sampled together with the day before
- Requested dates inside the bound are all kept
- Nothing after the bound is sampled except a single tail date
"""

from datetime import date, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from ccrfast.fast import reconcile_exposure_dates

AS_OF = date(2024, 1, 15)


@st.composite
def offset_dates(draw, max_size=12, max_days=2000):
    """Dates within a few years of the as-of date (before it too)."""
    offsets = draw(
        st.lists(st.integers(min_value=-30, max_value=max_days), max_size=max_size)
    )
    return [AS_OF + timedelta(days=n) for n in offsets]


@st.composite
def instrument(draw):
    """Bound and critical dates of an instrument."""
    bound = AS_OF + timedelta(days=draw(st.integers(min_value=1, max_value=1500)))
    return bound, draw(offset_dates())


class TestReconciliationProperties:
    """Test invariants of reconciled exposure dates."""

    @given(terms=instrument(), requested=st.none() | offset_dates(max_size=20))
    @settings(max_examples=200, deadline=None)
    def test_strictly_increasing_from_as_of(self, terms, requested):
        bound, critical = terms
        result = reconcile_exposure_dates(AS_OF, bound, critical, external_dates=requested)
        assert result.dates[0] == AS_OF
        assert all(b > a for a, b in zip(result.dates[:-1], result.dates[1:], strict=True))

    @given(terms=instrument(), requested=st.none() | offset_dates(max_size=20))
    @settings(max_examples=200, deadline=None)
    def test_critical_dates_are_bracketed(self, terms, requested):
        bound, critical = terms
        result = reconcile_exposure_dates(AS_OF, bound, critical, external_dates=requested)
        for d in critical:
            if AS_OF < d <= bound:
                assert d in result
                assert d - timedelta(days=1) in result or d - timedelta(days=1) == AS_OF

    @given(terms=instrument(), requested=offset_dates(max_size=20))
    @settings(max_examples=200, deadline=None)
    def test_requested_dates_within_bound_are_kept(self, terms, requested):
        bound, critical = terms
        result = reconcile_exposure_dates(AS_OF, bound, critical, external_dates=requested)
        for d in requested:
            if AS_OF <= d <= bound:
                assert d in result

    @given(terms=instrument(), requested=st.none() | offset_dates(max_size=20))
    @settings(max_examples=200, deadline=None)
    def test_single_tail_after_bound(self, terms, requested):
        bound, critical = terms
        result = reconcile_exposure_dates(AS_OF, bound, critical, external_dates=requested)
        beyond = [d for d in result if d > bound]
        assert len(beyond) <= 1
        if beyond:
            assert beyond == [result.tail]
            assert result.dates[-1] == result.tail

    @given(
        short=instrument(),
        long=instrument(),
        requested=st.none() | offset_dates(max_size=20),
    )
    @settings(max_examples=100, deadline=None)
    def test_nested_sets_are_merged(self, short, long, requested):
        inner = [
            reconcile_exposure_dates(AS_OF, bound, critical, external_dates=requested)
            for bound, critical in (short, long)
        ]
        result = reconcile_exposure_dates(AS_OF, AS_OF, nested=inner)
        assert result.bound == max(short[0], long[0])
        for child in inner:
            for d in child.within_bound():
                assert d in result
