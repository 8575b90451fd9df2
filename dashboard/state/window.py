"""
Event Window

Accumulated page slices of one paged subject.

MERGE RULES:
============
1. A page at or below `merged_through` REPLACES its slice (no append,
   no deduplication); an ACTIVE flow's page may have grown since
2. The page right after `merged_through` is appended, then any buffered
   successors are drained in page order
3. Any later page is buffered until its predecessor has merged

Merges are sequenced by page number, never by completion order.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from itertools import chain
from typing import Any, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..dtos.core import EventType


T = TypeVar('T')


@dataclass(frozen=True)
class EventWindow(Generic[T]):
    """
    Immutable accumulation of merged pages.

    `slices[i]` holds page i + 1. `pending` holds pages that arrived before
    their predecessor, sorted by page number.
    """
    slices: Tuple[Tuple[T, ...], ...] = ()
    pending: Tuple[Tuple[int, Tuple[T, ...]], ...] = ()

    @property
    def merged_through(self) -> int:
        return len(self.slices)

    @property
    def items(self) -> Tuple[T, ...]:
        return tuple(chain.from_iterable(self.slices))

    @property
    def pending_pages(self) -> Tuple[int, ...]:
        return tuple(page for page, _ in self.pending)

    def __len__(self) -> int:
        return sum(len(s) for s in self.slices)

    def merge(self, page: int, items: Iterable[T]) -> Tuple['EventWindow[T]', bool]:
        """
        Merge one page.

        Returns the new window and whether the page became visible now
        (False means it was buffered).
        """
        if page < 1:
            raise ValueError(f"page numbers start at 1, got {page}")
        batch = tuple(items)

        if page <= self.merged_through:
            slices = list(self.slices)
            slices[page - 1] = batch
            return replace(self, slices=tuple(slices)), True

        if page > self.merged_through + 1:
            pending = dict(self.pending)
            pending[page] = batch
            return replace(self, pending=tuple(sorted(pending.items()))), False

        slices = list(self.slices)
        slices.append(batch)
        pending = dict(self.pending)
        while len(slices) + 1 in pending:
            slices.append(pending.pop(len(slices) + 1))
        return EventWindow(slices=tuple(slices), pending=tuple(sorted(pending.items()))), True

    def truncate(self, through_page: int) -> 'EventWindow[T]':
        """Keep pages 1..through_page; buffered pages are dropped."""
        return EventWindow(slices=self.slices[:max(0, through_page)], pending=())


# =============================================================================
# TIMELINE ALIGNMENT
# =============================================================================

def align_timeline(
    window: EventWindow,
    limit: int,
) -> Tuple[List[Optional[Any]], List[Optional[Any]]]:
    """
    Whole-flow point and assertion sequences from a timeline window.

    The k-th point of page p sits at (p - 1) * limit + k, and the same
    for assertions. A page fetched while the flow was still short leaves
    a gap (None) until it is re-fetched, instead of shifting every later
    assertion onto the wrong point.
    """
    points: List[Optional[Any]] = []
    assertions: List[Optional[Any]] = []
    for page_index, page_events in enumerate(window.slices):
        offset = page_index * limit
        page_points = [e.point for e in page_events if e.event_type is EventType.POINT]
        page_assertions = [
            e.assertion for e in page_events if e.event_type is EventType.ASSERTION
        ]
        _place(points, offset, page_points)
        _place(assertions, offset, page_assertions)
    return _trim(points), _trim(assertions)


def _place(target: List[Optional[Any]], offset: int, values: Sequence[Any]) -> None:
    if len(target) < offset:
        target.extend([None] * (offset - len(target)))
    for k, value in enumerate(values):
        position = offset + k
        if position < len(target):
            target[position] = value
        else:
            target.append(value)


def _trim(values: List[Optional[Any]]) -> List[Optional[Any]]:
    while values and values[-1] is None:
        values.pop()
    return values
