"""
Presentation Contracts

Responsibility:
ViewModel contracts for the flow list and the timeline.
Built from pairings and DTOs; no classification happens here.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple
import json

from reconciliation.contracts import DiffEntry, Pairing, PairingStatus
from reconciliation.diff import render_value

from ..dtos import FlowDTO, FlowStatus, ViewState


_STATUS_LABELS = {
    PairingStatus.MATCH: "Match",
    PairingStatus.MISMATCH: "Mismatch",
    PairingStatus.MISSING_ASSERTION: "Waiting for assertion",
    PairingStatus.ORPHAN: "Orphan assertion",
}

_STATUS_COLORS = {
    PairingStatus.MATCH: "green-500",
    PairingStatus.MISMATCH: "red-500",
    PairingStatus.MISSING_ASSERTION: "gray-400",
    PairingStatus.ORPHAN: "amber-500",
}

_ROW_CLASSES = {
    PairingStatus.MATCH: "row-success",
    PairingStatus.MISMATCH: "row-fail",
    PairingStatus.MISSING_ASSERTION: "row-pending",
    PairingStatus.ORPHAN: "row-fail",
}

_FLOW_CLASSES = {
    FlowStatus.ACTIVE: "status-active",
    FlowStatus.FINISHED: "status-finished",
    FlowStatus.INTERRUPTED: "status-interrupted",
    FlowStatus.UNKNOWN: "status-unknown",
}


@dataclass(frozen=True)
class DiffLineViewModel:
    """One diff entry as displayed under a row."""
    path: str
    message: str
    kind: str


@dataclass(frozen=True)
class TimelineRowViewModel:
    """ViewModel for one point/assertion row of the timeline."""
    label: int
    description: str
    service_name: str
    status: PairingStatus
    status_label: str     # e.g., "Waiting for assertion"
    status_color: str     # e.g., "red-500"
    row_class: str        # e.g., "row-fail"
    expected_json: Optional[str]
    actual_json: Optional[str]
    diffs: Tuple[DiffLineViewModel, ...]
    point_at: Optional[datetime]
    assertion_at: Optional[datetime]


@dataclass(frozen=True)
class OrphanCardViewModel:
    """An assertion that arrived with no point at its position."""
    label: int
    service_name: str
    actual_json: str
    created_at: Optional[datetime]


@dataclass(frozen=True)
class FlowCardViewModel:
    """ViewModel for a flow card in the list."""
    flow_id: int
    title: str
    subtitle: Optional[str]
    status_label: str
    status_class: str
    point_count: int
    assertion_count: int
    is_selected: bool
    is_live: bool


@dataclass(frozen=True)
class TimelineView:
    """Everything the timeline pane renders."""
    state: ViewState
    rows: Tuple[TimelineRowViewModel, ...]
    orphans: Tuple[OrphanCardViewModel, ...]
    matches: int
    mismatches: int
    pending: int
    has_more: bool
    is_loading: bool
    error_message: Optional[str]


# =============================================================================
# BUILDERS
# =============================================================================

def render_json(value) -> Optional[str]:
    """Pretty JSON for the Expected / Actual grid; None stays None."""
    if value is None:
        return None
    try:
        return json.dumps(value, indent=2, sort_keys=False, ensure_ascii=False)
    except RecursionError:
        return render_value(value)
    except (TypeError, ValueError):
        return repr(value)


def build_diff_line(entry: DiffEntry) -> DiffLineViewModel:
    return DiffLineViewModel(path=entry.path, message=entry.message, kind=entry.kind.value)


def build_row(pairing: Pairing) -> TimelineRowViewModel:
    point = pairing.point
    assertion = pairing.assertion
    if point is not None:
        description = getattr(point, "description", "")
        service_name = getattr(point, "service_name", "")
    else:
        description = "Orphan Assertion"
        service_name = getattr(assertion, "service_name", "")
    return TimelineRowViewModel(
        label=pairing.label,
        description=description,
        service_name=service_name,
        status=pairing.status,
        status_label=_STATUS_LABELS[pairing.status],
        status_color=_STATUS_COLORS[pairing.status],
        row_class=_ROW_CLASSES[pairing.status],
        expected_json=render_json(getattr(point, "expected", None)),
        actual_json=render_json(getattr(assertion, "actual", None)),
        diffs=tuple(build_diff_line(d) for d in pairing.diffs),
        point_at=getattr(point, "created_at", None),
        assertion_at=getattr(assertion, "created_at", None),
    )


def build_orphan(pairing: Pairing) -> OrphanCardViewModel:
    assertion = pairing.assertion
    return OrphanCardViewModel(
        label=pairing.label,
        service_name=getattr(assertion, "service_name", ""),
        actual_json=render_json(getattr(assertion, "actual", None)) or "null",
        created_at=getattr(assertion, "created_at", None),
    )


def build_flow_card(flow: FlowDTO, selected_id: Optional[int] = None) -> FlowCardViewModel:
    subtitle = " / ".join(part for part in (flow.service, flow.identifier) if part) or None
    return FlowCardViewModel(
        flow_id=flow.flow_id,
        title=flow.name or f"Flow #{flow.flow_id}",
        subtitle=subtitle,
        status_label=flow.status.value.capitalize(),
        status_class=_FLOW_CLASSES[flow.status],
        point_count=flow.point_count,
        assertion_count=flow.assertion_count,
        is_selected=flow.flow_id == selected_id,
        is_live=flow.status.is_live,
    )


def build_timeline_view(
    pairings: Iterable[Pairing],
    state: ViewState,
    has_more: bool = False,
    is_loading: bool = False,
    error_message: Optional[str] = None,
) -> TimelineView:
    """
    Rows in ordinal order; orphans are also listed on their own.

    Counts come from the pairing statuses as given.
    """
    pairings = tuple(pairings)
    rows = tuple(build_row(p) for p in pairings)
    orphans = tuple(build_orphan(p) for p in pairings if p.status is PairingStatus.ORPHAN)
    matches = sum(1 for p in pairings if p.status is PairingStatus.MATCH)
    pending = sum(1 for p in pairings if p.status is PairingStatus.MISSING_ASSERTION)
    return TimelineView(
        state=state,
        rows=rows,
        orphans=orphans,
        matches=matches,
        mismatches=len(pairings) - matches - pending,
        pending=pending,
        has_more=has_more,
        is_loading=is_loading,
        error_message=error_message,
    )
