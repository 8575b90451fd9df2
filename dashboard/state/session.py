"""
Stream Session

Explicit per-stream context: subject, cursor, window, request generation.

There are two streams, the flow list and the selected flow's timeline.
Each owns one session value; nothing is shared between them.

LIFECYCLE:
==========
1. begin(page)      -> ticket, or None if busy / out of range
2. await the fetch  (other work may replace the session meanwhile)
3. complete(ticket) -> merged, buffered, or discarded as stale
   fail(ticket)     -> failed, or discarded as stale

STALENESS:
==========
reset() bumps `generation`. A ticket issued under an older generation, or
for another subject, is stale: its completion leaves the session untouched.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, Tuple, TypeVar

from eventsource.contracts import Error, ErrorCode

from ..dtos.core import FlowStatus, ViewState
from ..dtos.envelope import PageMetaDTO
from .cursor import PageSizeChanged, PaginationCursor
from .window import EventWindow


T = TypeVar('T')


class StreamKind(Enum):
    """The two independent streams."""
    FLOW_LIST = "flow_list"
    TIMELINE = "timeline"


class MergeOutcome(Enum):
    """What happened to a fetch request or its response."""
    MERGED = "merged"
    BUFFERED = "buffered"
    DISCARDED_STALE = "discarded_stale"
    SUPPRESSED_BUSY = "suppressed_busy"
    REJECTED_OUT_OF_RANGE = "rejected_out_of_range"
    REJECTED_PAGE_SIZE = "rejected_page_size"
    FAILED = "failed"


@dataclass(frozen=True)
class SubjectKey:
    """
    What a stream is about.

    Timeline: the flow id. Flow list: the status filter and search text.
    """
    kind: StreamKind
    flow_id: Optional[int] = None
    status: Optional[FlowStatus] = None
    search: Optional[str] = None

    @classmethod
    def flow_list(
        cls,
        status: Optional[FlowStatus] = None,
        search: Optional[str] = None,
    ) -> 'SubjectKey':
        return cls(kind=StreamKind.FLOW_LIST, status=status, search=search or None)

    @classmethod
    def timeline(cls, flow_id: int) -> 'SubjectKey':
        return cls(kind=StreamKind.TIMELINE, flow_id=flow_id)


@dataclass(frozen=True)
class FetchTicket:
    """
    Issued at fetch start, presented at fetch completion.

    `replace_all` drops every other page when this one merges (flow list
    refresh, where new flows push older ones down).
    """
    request_id: int
    generation: int
    subject: SubjectKey
    page: int
    replace_all: bool = False


@dataclass(frozen=True)
class StreamSession(Generic[T]):
    """
    Immutable state of one stream.

    Every operation returns a new session; callers keep the latest one.
    """
    subject: SubjectKey
    cursor: PaginationCursor
    window: EventWindow = field(default_factory=EventWindow)
    generation: int = 0
    next_request_id: int = 1
    in_flight: Optional[FetchTicket] = None
    last_error: Optional[Error] = None
    snapshot: Optional[Any] = None
    responded: bool = False

    @classmethod
    def open(cls, subject: SubjectKey, limit: int) -> 'StreamSession[T]':
        return cls(subject=subject, cursor=PaginationCursor(limit=limit))

    # =========================================================================
    # DERIVED STATE
    # =========================================================================

    @property
    def busy(self) -> bool:
        return self.in_flight is not None

    @property
    def items(self) -> Tuple[T, ...]:
        return self.window.items

    @property
    def view_state(self) -> ViewState:
        """Visible items win; with none visible, the last error shows as FAILED."""
        if len(self.window) > 0:
            return ViewState.READY
        if self.window.merged_through == 0 and self.busy:
            return ViewState.LOADING
        if self.last_error is not None:
            return ViewState.FAILED
        if not self.responded:
            return ViewState.IDLE
        return ViewState.EMPTY

    def is_stale(self, ticket: FetchTicket) -> bool:
        return ticket.generation != self.generation or ticket.subject != self.subject

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def reset(
        self,
        subject: SubjectKey,
        limit: Optional[int] = None,
    ) -> 'StreamSession[T]':
        """
        Start over for a (possibly new) subject.

        In-flight fetches become stale; request ids keep increasing.
        """
        return StreamSession(
            subject=subject,
            cursor=PaginationCursor(limit=limit or self.cursor.limit),
            generation=self.generation + 1,
            next_request_id=self.next_request_id,
        )

    def refusal_reason(self, page: int) -> Optional[MergeOutcome]:
        if self.busy:
            return MergeOutcome.SUPPRESSED_BUSY
        if not self.cursor.can_request(page):
            return MergeOutcome.REJECTED_OUT_OF_RANGE
        return None

    def begin(
        self,
        page: int,
        replace_all: bool = False,
    ) -> Tuple['StreamSession[T]', Optional[FetchTicket]]:
        """Issue a ticket for `page`, unless busy or out of range."""
        if self.refusal_reason(page) is not None:
            return self, None
        ticket = FetchTicket(
            request_id=self.next_request_id,
            generation=self.generation,
            subject=self.subject,
            page=page,
            replace_all=replace_all,
        )
        return replace(self, next_request_id=self.next_request_id + 1, in_flight=ticket), ticket

    def _release(self, ticket: FetchTicket) -> 'StreamSession[T]':
        if self.in_flight is not None and self.in_flight.request_id == ticket.request_id:
            return replace(self, in_flight=None)
        return self

    def complete(
        self,
        ticket: FetchTicket,
        items: Tuple[T, ...],
        meta: PageMetaDTO,
        snapshot: Optional[Any] = None,
    ) -> Tuple['StreamSession[T]', MergeOutcome]:
        """Merge a successful response."""
        if self.is_stale(ticket):
            return self, MergeOutcome.DISCARDED_STALE

        released = self._release(ticket)
        try:
            released.cursor.check_limit(meta)
        except PageSizeChanged as e:
            error = Error(
                code=ErrorCode.PAGE_SIZE_CHANGED,
                message=str(e),
                timestamp=datetime.now(timezone.utc),
            ).with_context("page", str(ticket.page))
            return replace(released, last_error=error), MergeOutcome.REJECTED_PAGE_SIZE

        window = released.window.truncate(0) if ticket.replace_all else released.window
        window, merged = window.merge(ticket.page, items)
        cursor = released.cursor.advance(meta, window.merged_through)
        session = replace(
            released,
            window=window,
            cursor=cursor,
            last_error=None,
            responded=True,
            snapshot=snapshot if snapshot is not None else released.snapshot,
        )
        return session, MergeOutcome.MERGED if merged else MergeOutcome.BUFFERED

    def fail(
        self,
        ticket: FetchTicket,
        error: Error,
    ) -> Tuple['StreamSession[T]', MergeOutcome]:
        """Record a failed fetch; prior items stay visible."""
        if self.is_stale(ticket):
            return self, MergeOutcome.DISCARDED_STALE
        released = self._release(ticket)
        return replace(released, last_error=error, responded=True), MergeOutcome.FAILED
