"""
Chaos Fixtures

Explicit delivery-disorder scenarios for paged timelines.

RULES:
======
1. All fixtures are EXPLICIT, not random
2. Each fixture declares its disorder type
3. Each fixture documents the expected invariant
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from dashboard.dtos import TimelineEventDTO
from tests.integration.fixtures import (
    assertion_event, make_assertion, make_point, point_event,
)


# =============================================================================
# DISORDER TYPES
# =============================================================================

class DisorderType(Enum):
    """How page deliveries are disturbed."""
    OUT_OF_ORDER = "out_of_order"
    DUPLICATED = "duplicated"
    GROWN_REFETCH = "grown_refetch"


class ExpectedInvariant(Enum):
    """What invariant this scenario expects to hold."""
    PAGE_ORDER_MERGE = "page_order_merge"
    NO_DUPLICATION = "no_duplication"
    STABLE_LABELS = "stable_labels"


@dataclass(frozen=True)
class Delivery:
    """One page response, in arrival order."""
    page: int
    events: Tuple[TimelineEventDTO, ...]


@dataclass(frozen=True)
class DisorderScenario:
    name: str
    disorder: DisorderType
    invariant: ExpectedInvariant
    limit: int
    deliveries: Tuple[Delivery, ...]
    # Final (label, status value) rows the window must reconcile to.
    expected_rows: Tuple[Tuple[int, str], ...]


# =============================================================================
# BUILDERS
# =============================================================================

def page_of(
    page: int,
    limit: int,
    expected: Sequence,
    actual: Sequence,
) -> Delivery:
    """Page `page` of a flow as the service would serve it right now."""
    lo, hi = (page - 1) * limit, page * limit
    events: List[TimelineEventDTO] = [
        point_event(make_point(lo + k + 1, v)) for k, v in enumerate(expected[lo:hi])
    ]
    events += [
        assertion_event(make_assertion(lo + k + 1, v)) for k, v in enumerate(actual[lo:hi])
    ]
    return Delivery(page=page, events=tuple(events))


def make_reversed_pages() -> DisorderScenario:
    """
    Pages arrive 3, 2, 1.
    Expected: nothing visible until page 1, then all three in order.
    """
    expected = [1, 2, 3, 4, 5, 6]
    actual = [1, 2, 0, 4, 5]
    return DisorderScenario(
        name="reversed_pages",
        disorder=DisorderType.OUT_OF_ORDER,
        invariant=ExpectedInvariant.PAGE_ORDER_MERGE,
        limit=2,
        deliveries=tuple(page_of(p, 2, expected, actual) for p in (3, 2, 1)),
        expected_rows=(
            (1, "match"), (2, "match"), (3, "mismatch"),
            (4, "match"), (5, "match"), (6, "missing_assertion"),
        ),
    )


def make_duplicated_page() -> DisorderScenario:
    """
    Page 1 is delivered twice around page 2.
    Expected: page 1 replaced, never appended.
    """
    expected = [1, 2, 3]
    actual = [1, 2, 3]
    first = page_of(1, 2, expected, actual)
    return DisorderScenario(
        name="duplicated_page",
        disorder=DisorderType.DUPLICATED,
        invariant=ExpectedInvariant.NO_DUPLICATION,
        limit=2,
        deliveries=(first, page_of(2, 2, expected, actual), first),
        expected_rows=((1, "match"), (2, "match"), (3, "match")),
    )


def make_grown_refetch() -> DisorderScenario:
    """
    Page 1 fetched while the flow held one point, page 2 fetched after it
    grew, then page 1 re-fetched.
    Expected: no assertion is ever shown against the wrong point.
    """
    early_expected, early_actual = [1], []
    late_expected, late_actual = [1, 2, 3], [1, 2, 3]
    return DisorderScenario(
        name="grown_refetch",
        disorder=DisorderType.GROWN_REFETCH,
        invariant=ExpectedInvariant.STABLE_LABELS,
        limit=2,
        deliveries=(
            page_of(1, 2, early_expected, early_actual),
            page_of(2, 2, late_expected, late_actual),
            page_of(1, 2, late_expected, late_actual),
        ),
        expected_rows=((1, "match"), (2, "match"), (3, "match")),
    )


def all_scenarios() -> Tuple[DisorderScenario, ...]:
    return (make_reversed_pages(), make_duplicated_page(), make_grown_refetch())
