"""
Integration Test Fixtures

Explicit DTO builders shared by the test packages.
All fixtures are explicit - no random generation.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence, Tuple

from dashboard.dtos import (
    AssertionDTO, EventType, FlowDTO, FlowStatus, FlowTimelinePageDTO,
    PageMetaDTO, PointDTO, TimelineEventDTO,
)


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

EPOCH = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    return T1 + timedelta(seconds=seconds)


# =============================================================================
# DTO BUILDERS
# =============================================================================

def make_flow(
    flow_id: int = 1,
    status: FlowStatus = FlowStatus.ACTIVE,
    name: Optional[str] = None,
) -> FlowDTO:
    return FlowDTO(
        flow_id=flow_id,
        name=name or f"checkout-{flow_id}",
        status=status,
        created_at=T1,
        identifier=f"order-{flow_id}",
        service="checkout",
    )


def make_point(n: int, expected, flow_id: int = 1) -> PointDTO:
    return PointDTO(
        point_id=n,
        flow_id=flow_id,
        description=f"step {n}",
        expected=expected,
        service_name="checkout",
        created_at=at(2 * n),
    )


def make_assertion(n: int, actual, flow_id: int = 1) -> AssertionDTO:
    return AssertionDTO(
        assertion_id=n,
        flow_id=flow_id,
        actual=actual,
        service_name="payments",
        created_at=at(2 * n + 1),
    )


def point_event(point: PointDTO) -> TimelineEventDTO:
    return TimelineEventDTO(event_type=EventType.POINT, timestamp=point.created_at, point=point)


def assertion_event(assertion: AssertionDTO) -> TimelineEventDTO:
    return TimelineEventDTO(
        event_type=EventType.ASSERTION, timestamp=assertion.created_at, assertion=assertion
    )


def events_for(
    expected: Sequence,
    actual: Sequence,
    flow_id: int = 1,
) -> Tuple[TimelineEventDTO, ...]:
    """Points then assertions, numbered from 1."""
    events = [point_event(make_point(i + 1, v, flow_id)) for i, v in enumerate(expected)]
    events += [assertion_event(make_assertion(i + 1, v, flow_id)) for i, v in enumerate(actual)]
    return tuple(events)


def make_meta(page: int, limit: int, pages: int, **totals) -> PageMetaDTO:
    return PageMetaDTO(page=page, limit=limit, pages=pages, **totals)


def timeline_page(
    events: Iterable[TimelineEventDTO],
    page: int,
    limit: int,
    pages: int,
    flow: Optional[FlowDTO] = None,
) -> FlowTimelinePageDTO:
    return FlowTimelinePageDTO(
        flow=flow or make_flow(),
        events=tuple(events),
        meta=make_meta(page, limit, pages),
    )
