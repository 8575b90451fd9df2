"""
Page Envelopes

Wrappers for paginated responses from the event service.

ENVELOPE CONTRACT:
==================
- Items keep the service's order
- Pagination metadata is service-controlled
- Totals by type are explicit, never derived from the batch
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from .event import TimelineEventDTO
from .flow import FlowDTO


@dataclass(frozen=True)
class PageMetaDTO:
    """
    Pagination state from the service.

    SERVICE-CONTROLLED:
    ===================
    `pages` for a timeline counts point pages; assertion slices share the
    same page numbers.
    """
    page: int
    limit: int
    pages: int
    total: Optional[int] = None               # flow list
    total_points: Optional[int] = None        # timeline
    total_assertions: Optional[int] = None    # timeline

    def totals(self) -> Tuple[Tuple[str, int], ...]:
        """Totals by item type, for the cursor."""
        found = []
        if self.total is not None:
            found.append(("flows", self.total))
        if self.total_points is not None:
            found.append(("points", self.total_points))
        if self.total_assertions is not None:
            found.append(("assertions", self.total_assertions))
        return tuple(found)


@dataclass(frozen=True)
class FlowListPageDTO:
    """Envelope for the flow list."""
    flows: Tuple[FlowDTO, ...]
    meta: PageMetaDTO

    @property
    def items(self) -> Tuple[FlowDTO, ...]:
        return self.flows


@dataclass(frozen=True)
class FlowTimelinePageDTO:
    """
    Envelope for one page of a flow's timeline.

    Events are mixed POINT / ASSERTION in persistence order.
    """
    flow: FlowDTO
    events: Tuple[TimelineEventDTO, ...]
    meta: PageMetaDTO

    @property
    def items(self) -> Tuple[TimelineEventDTO, ...]:
        return self.events
