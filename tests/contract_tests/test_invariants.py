"""
Property Tests for Reconciliation Contracts
Verifies the differ rules and the pairing / windowing invariants.
"""

import copy

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from dashboard.state import EventWindow, align_timeline
from reconciliation import ABSENT, DiffKind, PairingEngine, PairingStatus, diff
from tests.integration.fixtures import (
    assertion_event, make_assertion, make_point, point_event,
)

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

scalars = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-10**6, max_value=10**6)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=8)
)

value_trees = st.recursive(
    scalars,
    lambda children: (
        st.lists(children, max_size=4)
        | st.dictionaries(st.text(max_size=6), children, max_size=4)
    ),
    max_leaves=20,
)

present_trees = value_trees.filter(lambda v: v is not None)


@composite
def flow_logs(draw):
    """Expected / actual value sequences of one flow."""
    n = draw(st.integers(min_value=0, max_value=12))
    m = draw(st.integers(min_value=0, max_value=12))
    expected = draw(st.lists(st.integers(0, 3), min_size=n, max_size=n))
    actual = draw(st.lists(st.integers(0, 3), min_size=m, max_size=m))
    return expected, actual


def paged(expected, actual, limit):
    """Cut a flow into pages the way the service does: same offset per type."""
    pages = max(1, -(-max(len(expected), 1) // limit))
    result = []
    for page in range(1, pages + 1):
        lo, hi = (page - 1) * limit, page * limit
        events = [point_event(make_point(lo + k + 1, v)) for k, v in enumerate(expected[lo:hi])]
        events += [
            assertion_event(make_assertion(lo + k + 1, v)) for k, v in enumerate(actual[lo:hi])
        ]
        result.append((page, tuple(events)))
    return result


# =============================================================================
# DIFF PROPERTIES
# =============================================================================

class TestDiffProperties:

    @given(value_trees)
    def test_diff_with_itself_is_empty(self, tree):
        assert diff(tree, copy.deepcopy(tree)) == []

    @given(present_trees)
    def test_one_side_absent_is_one_root_entry(self, tree):
        for entries in (diff(tree, None), diff(ABSENT, tree)):
            assert len(entries) == 1
            assert entries[0].path == "$"
            assert entries[0].kind is DiffKind.ABSENT_VALUE

    @given(
        st.dictionaries(st.text(max_size=4), st.integers(0, 2), max_size=5),
        st.dictionaries(st.text(max_size=4), st.integers(0, 2), max_size=5),
    )
    def test_mapping_field_accounting(self, expected, actual):
        entries = diff(expected, actual)
        kinds = [e.kind for e in entries]
        assert kinds.count(DiffKind.MISSING_FIELD) == len(set(expected) - set(actual))
        assert kinds.count(DiffKind.EXTRA_FIELD) == len(set(actual) - set(expected))
        shared_unequal = sum(1 for k in set(expected) & set(actual) if expected[k] != actual[k])
        assert kinds.count(DiffKind.VALUE_MISMATCH) == shared_unequal

    @given(st.lists(value_trees, max_size=5), st.lists(value_trees, max_size=5))
    def test_lists_of_different_length(self, expected, actual):
        if len(expected) == len(actual):
            return
        entries = diff(expected, actual)
        assert len(entries) == 1
        assert entries[0].kind is DiffKind.LENGTH_MISMATCH

    @given(value_trees, value_trees)
    def test_diff_is_deterministic(self, expected, actual):
        assert diff(expected, actual) == diff(expected, actual)


# =============================================================================
# PAIRING PROPERTIES
# =============================================================================

class TestPairingProperties:

    @given(flow_logs())
    def test_cardinality(self, log):
        expected, actual = log
        n, m = len(expected), len(actual)
        pairings = PairingEngine().pair(
            [make_point(i + 1, v) for i, v in enumerate(expected)],
            [make_assertion(i + 1, v) for i, v in enumerate(actual)],
        )
        statuses = [p.status for p in pairings]

        assert len(pairings) == max(n, m)
        assert sum(1 for p in pairings if p.has_point and p.has_assertion) == min(n, m)
        assert statuses.count(PairingStatus.MISSING_ASSERTION) == max(0, n - m)
        assert statuses.count(PairingStatus.ORPHAN) == max(0, m - n)

    @given(flow_logs())
    def test_match_iff_no_diffs(self, log):
        expected, actual = log
        pairings = PairingEngine().pair(
            [make_point(i + 1, v) for i, v in enumerate(expected)],
            [make_assertion(i + 1, v) for i, v in enumerate(actual)],
        )
        for p in pairings:
            if p.has_point and p.has_assertion:
                assert (p.status is PairingStatus.MATCH) == (len(p.diffs) == 0)

    @settings(max_examples=50)
    @given(flow_logs(), st.integers(min_value=1, max_value=5), st.randoms())
    def test_independent_of_chunking_and_arrival_order(self, log, limit, rnd):
        expected, actual = log
        engine = PairingEngine()
        whole = engine.pair(
            [make_point(i + 1, v) for i, v in enumerate(expected)],
            [make_assertion(i + 1, v) for i, v in enumerate(actual)],
        )

        pages = paged(expected, actual, limit)
        rnd.shuffle(pages)
        window = EventWindow()
        for page, events in pages:
            window, _ = window.merge(page, events)

        points, assertions = align_timeline(window, limit)
        chunked = engine.pair(points, assertions)

        # Assertions beyond the last point page are not served, as on the wire.
        served = max(1, len(pages)) * limit
        whole = tuple(p for p in whole if p.ordinal < served)
        assert [(p.ordinal, p.status, p.diffs) for p in chunked] == \
            [(p.ordinal, p.status, p.diffs) for p in whole]
