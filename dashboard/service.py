"""
Dashboard Service

Drives the flow-list and timeline streams and hands pairings and view
models to presentation.

DESIGN:
=======
1. One StreamSession per stream, replaced on every transition
2. A fetch in flight suppresses a second fetch on the same stream only
3. Completions are merged by page number; stale ones are dropped
4. Pairings are derived from the merged window, never stored
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple
import asyncio
import logging

from reconciliation.contracts import DiffEntry, Pairing, ValueTree
from reconciliation.pairing import PairingEngine

from eventsource.contracts import Error, ErrorCode
from eventsource.fetcher import EventServiceClient

from .config import DashboardConfig
from .dtos import CompareReportDTO, FlowDTO, FlowStatsDTO, FlowStatus, ViewState
from .presentation import (
    FlowCardViewModel, TimelineView, build_flow_card, build_timeline_view,
)
from .state import FetchTicket, MergeOutcome, StreamSession, SubjectKey, align_timeline


logger = logging.getLogger(__name__)


class DashboardService:
    """
    Coordinates fetching, merging and reconciliation for both streams.
    """

    def __init__(
        self,
        client: EventServiceClient,
        config: Optional[DashboardConfig] = None,
        engine: Optional[PairingEngine] = None,
    ):
        self._client = client
        self._config = config or DashboardConfig()
        self._engine = engine or PairingEngine(resolver=client.mapper.resolver)
        self._flows: StreamSession[FlowDTO] = StreamSession.open(
            SubjectKey.flow_list(), self._config.pagination.flow_page_size
        )
        self._timeline: Optional[StreamSession] = None
        self._pairings_for: Optional[Any] = None
        self._pairings: Tuple[Pairing, ...] = ()

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def config(self) -> DashboardConfig:
        return self._config

    @property
    def flow_session(self) -> StreamSession:
        return self._flows

    @property
    def timeline_session(self) -> Optional[StreamSession]:
        return self._timeline

    @property
    def selected_flow_id(self) -> Optional[int]:
        if self._timeline is None:
            return None
        return self._timeline.subject.flow_id

    @property
    def selected_flow(self) -> Optional[FlowDTO]:
        if self._timeline is None:
            return None
        return self._timeline.snapshot

    @property
    def flows(self) -> Tuple[FlowDTO, ...]:
        return self._flows.items

    @property
    def should_poll_timeline(self) -> bool:
        """Only an ACTIVE (or not yet loaded) flow can still grow."""
        if self._timeline is None:
            return False
        flow = self._timeline.snapshot
        return flow is None or flow.status.is_live

    # =========================================================================
    # FLOW LIST STREAM
    # =========================================================================

    async def refresh_flows(
        self,
        status: Optional[FlowStatus] = None,
        search: Optional[str] = None,
    ) -> MergeOutcome:
        """New filter: start the list over from page 1."""
        self._flows = self._flows.reset(SubjectKey.flow_list(status, search))
        return await self._run_flows(1)

    async def load_more_flows(self) -> MergeOutcome:
        return await self._run_flows(self._flows.cursor.next_page)

    async def poll_flows(self) -> MergeOutcome:
        """Re-fetch page 1; new flows push older ones down, so drop the rest."""
        return await self._run_flows(1, replace_all=True)

    async def _run_flows(self, page: int, replace_all: bool = False) -> MergeOutcome:
        subject = self._flows.subject
        limit = self._flows.cursor.limit

        def fetch(p: int):
            return self._client.fetch_flows(p, limit, subject.status, subject.search)

        return await self._run("_flows", page, fetch, replace_all)

    # =========================================================================
    # TIMELINE STREAM
    # =========================================================================

    async def select_flow(self, flow_id: int) -> MergeOutcome:
        """Switch the timeline to `flow_id`; fetches still running become stale."""
        subject = SubjectKey.timeline(flow_id)
        limit = self._config.pagination.timeline_page_size
        if self._timeline is None:
            self._timeline = StreamSession.open(subject, limit)
        else:
            self._timeline = self._timeline.reset(subject, limit)
        return await self._run_timeline(1)

    async def load_more_timeline(self) -> MergeOutcome:
        if self._timeline is None:
            logger.debug("load_more_timeline without a selected flow")
            return MergeOutcome.REJECTED_OUT_OF_RANGE
        return await self._run_timeline(self._timeline.cursor.next_page)

    async def poll_timeline(self) -> MergeOutcome:
        """
        Re-fetch the merged pages that can still change, in page order.

        Earlier pages whose assertions trail their points come first, then
        the last merged page, which also picks up new totals; a further
        page then becomes reachable via load_more. Stops at the first
        outcome other than MERGED.
        """
        if self._timeline is None:
            logger.debug("poll_timeline without a selected flow")
            return MergeOutcome.REJECTED_OUT_OF_RANGE
        subject = self._timeline.subject
        last = max(1, self._timeline.cursor.page)
        pages = [p for p in self._pages_awaiting_assertions() if p < last] + [last]

        outcome = MergeOutcome.MERGED
        for page in pages:
            if self._timeline.subject != subject:
                return MergeOutcome.DISCARDED_STALE
            outcome = await self._run_timeline(page)
            if outcome is not MergeOutcome.MERGED:
                break
        return outcome

    def _pages_awaiting_assertions(self) -> List[int]:
        pages = []
        for number, events in enumerate(self._timeline.window.slices, start=1):
            points = sum(1 for event in events if event.is_point)
            if len(events) - points < points:
                pages.append(number)
        return pages

    async def _run_timeline(self, page: int) -> MergeOutcome:
        flow_id = self._timeline.subject.flow_id
        limit = self._timeline.cursor.limit

        def fetch(p: int):
            return self._client.fetch_timeline(flow_id, p, limit)

        return await self._run("_timeline", page, fetch)

    # =========================================================================
    # FETCH SEQUENCING
    # =========================================================================

    async def _run(
        self,
        stream: str,
        page: int,
        fetch: Callable[[int], Awaitable[Tuple[Any, Any]]],
        replace_all: bool = False,
    ) -> MergeOutcome:
        session: StreamSession = getattr(self, stream)
        refusal = session.refusal_reason(page)
        if refusal is not None:
            logger.debug("%s page %d not fetched: %s", stream, page, refusal.value)
            return refusal

        session, ticket = session.begin(page, replace_all=replace_all)
        setattr(self, stream, session)

        try:
            result, payload = await fetch(page)
        except asyncio.CancelledError:
            self._abandon(stream, ticket, "fetch cancelled")
            raise
        except Exception as e:
            logger.exception("%s page %d fetch raised", stream, page)
            return self._abandon(stream, ticket, f"{type(e).__name__}: {e}")

        # The session may have been reset while we were waiting.
        current: StreamSession = getattr(self, stream)
        if result.is_success:
            current, outcome = current.complete(
                ticket, payload.items, payload.meta, snapshot=getattr(payload, "flow", None)
            )
        else:
            current, outcome = current.fail(ticket, result.error)

        if outcome is MergeOutcome.DISCARDED_STALE:
            logger.debug("%s page %d (request %d) is stale, discarded",
                         stream, page, ticket.request_id)
        elif outcome is MergeOutcome.REJECTED_PAGE_SIZE:
            logger.warning("%s page %d refused: %s", stream, page, current.last_error.message)
        setattr(self, stream, current)
        return outcome

    def _abandon(self, stream: str, ticket: FetchTicket, message: str) -> MergeOutcome:
        """Release the busy flag of a fetch that never produced a result."""
        error = Error(
            code=ErrorCode.MALFORMED_PAYLOAD,
            message=message,
            timestamp=datetime.now(timezone.utc),
        ).with_context("page", str(ticket.page))
        current, outcome = getattr(self, stream).fail(ticket, error)
        setattr(self, stream, current)
        return outcome

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    def current_pairings(self) -> Tuple[Pairing, ...]:
        """Pairings of the selected flow over everything merged so far."""
        if self._timeline is None:
            return ()
        window = self._timeline.window
        if self._pairings_for is not window:
            points, assertions = align_timeline(window, self._timeline.cursor.limit)
            self._pairings = self._engine.pair(points, assertions)
            self._pairings_for = window
        return self._pairings

    def diff_values(self, expected: ValueTree, actual: ValueTree) -> Tuple[DiffEntry, ...]:
        return tuple(self._engine.differ.diff(expected, actual))

    def local_compare(self) -> Optional[CompareReportDTO]:
        """Compare view built from the merged timeline, no request made."""
        if self._timeline is None:
            return None
        return self._client.mapper.compare_from_pairings(
            self.current_pairings(), flow_id=self.selected_flow_id
        )

    async def compare(self, flow_id: Optional[int] = None) -> Optional[CompareReportDTO]:
        """Whole-flow comparison from the service, re-classified locally."""
        target = flow_id if flow_id is not None else self.selected_flow_id
        if target is None:
            return None
        result, report = await self._client.fetch_compare(target)
        return report if result.is_success else None

    async def stats(self) -> Optional[FlowStatsDTO]:
        result, stats = await self._client.fetch_stats()
        return stats if result.is_success else None

    # =========================================================================
    # VIEW MODELS
    # =========================================================================

    def timeline_view(self) -> TimelineView:
        session = self._timeline
        if session is None:
            return build_timeline_view((), ViewState.IDLE)
        return build_timeline_view(
            self.current_pairings(),
            state=session.view_state,
            has_more=session.cursor.has_more,
            is_loading=session.busy,
            error_message=session.last_error.message if session.last_error else None,
        )

    def flow_cards(self) -> Tuple[FlowCardViewModel, ...]:
        selected = self.selected_flow_id
        return tuple(build_flow_card(flow, selected) for flow in self._flows.items)

    # =========================================================================
    # POLLING
    # =========================================================================

    async def watch(self, stop: asyncio.Event) -> None:
        """Poll both streams every poll interval until `stop` is set."""
        interval = self._config.pagination.poll_interval_seconds
        while not stop.is_set():
            await self.poll_flows()
            if self.should_poll_timeline:
                await self.poll_timeline()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
