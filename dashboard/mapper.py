"""
Wire to DTO Mapper

Converts event-service JSON into read-only dashboard DTOs.

MAPPING BOUNDARY:
=================
This is the ONLY place where raw JSON becomes DTOs.
All conversion happens here, nowhere else.

MAPPING RULES:
==============
1. Never raise on a missing expected / actual value; absence is data
2. Unknown enum strings become UNKNOWN, never a guess
3. Preserve service ordering
4. A broken envelope (no data list, no meta) is a MalformedPayloadError
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import re

from reconciliation.classification import ClassificationResolver
from reconciliation.contracts import (
    ABSENT, DiffEntry, DiffKind, Pairing, PairingStatus,
)

from .dtos import (
    AssertionDTO, CompareReportDTO, CompareResultDTO, EventType, FlowDTO,
    FlowListPageDTO, FlowStatsDTO, FlowStatus, FlowTimelinePageDTO,
    PageMetaDTO, PointDTO, TimelineEventDTO,
)


logger = logging.getLogger(__name__)


class MalformedPayloadError(ValueError):
    """The response does not have the envelope shape we depend on."""


_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp as the service emits it.

    Nanosecond fractions are truncated to microseconds; the zero time
    ("0001-01-01T00:00:00Z") means "not set".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning("unparseable timestamp %r", value)
        return None
    if parsed.year <= 1:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_duration(value: Any) -> Optional[timedelta]:
    """Durations travel as integer nanoseconds."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return timedelta(microseconds=float(value) / 1000.0)
    except (TypeError, ValueError, OverflowError):
        logger.warning("unusable duration %r", value)
        return None


def _optional_id(value: Any) -> Optional[int]:
    """Zero and missing ids both mean "none"."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number or None


def _int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _text(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def _require_mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise MalformedPayloadError(f"{what} must be an object, got {type(raw).__name__}")
    return raw


def _require_list(raw: Any, what: str) -> List[Any]:
    if raw is None:
        # The service encodes an empty Go slice as null in some paths.
        return []
    if not isinstance(raw, list):
        raise MalformedPayloadError(f"{what} must be a list, got {type(raw).__name__}")
    return raw


class DTOMapper:
    """
    Maps event-service JSON to dashboard DTOs.

    SINGLE POINT OF CONVERSION:
    ===========================
    All wire -> DTO conversion goes through this class.
    """

    def __init__(self, resolver: Optional[ClassificationResolver] = None):
        self._resolver = resolver or ClassificationResolver()

    @property
    def resolver(self) -> ClassificationResolver:
        return self._resolver

    # =========================================================================
    # FLOW MAPPING
    # =========================================================================

    def map_flow(self, raw: Any) -> FlowDTO:
        """Map a flow object; counts are optional."""
        data = _require_mapping(raw, "flow")
        if data.get("id") is None:
            raise MalformedPayloadError("flow without id")
        return FlowDTO(
            flow_id=_int(data.get("id")),
            name=_text(data.get("name")),
            status=FlowStatus.parse(data.get("status")),
            created_at=parse_timestamp(data.get("created_at")),
            identifier=data.get("identifier") or None,
            service=data.get("service") or None,
            updated_at=parse_timestamp(data.get("updated_at")),
            point_count=_int(data.get("point_count")),
            assertion_count=_int(data.get("assertion_count")),
        )

    def map_flow_page(self, raw: Any) -> FlowListPageDTO:
        body = _require_mapping(raw, "flow list response")
        flows = tuple(self.map_flow(item) for item in _require_list(body.get("data"), "data"))
        return FlowListPageDTO(flows=flows, meta=self.map_meta(body.get("meta")))

    def map_meta(self, raw: Any) -> PageMetaDTO:
        meta = _require_mapping(raw, "meta")
        if "page" not in meta or "limit" not in meta:
            raise MalformedPayloadError("meta without page/limit")
        return PageMetaDTO(
            page=_int(meta.get("page"), 1),
            limit=_int(meta.get("limit")),
            pages=_int(meta.get("pages")),
            total=_int(meta["total"]) if "total" in meta else None,
            total_points=_int(meta["total_points"]) if "total_points" in meta else None,
            total_assertions=(
                _int(meta["total_assertions"]) if "total_assertions" in meta else None
            ),
        )

    def map_stats(self, raw: Any) -> FlowStatsDTO:
        body = _require_mapping(raw, "stats")
        return FlowStatsDTO(
            total_flows=_int(body.get("total_flows")),
            active_flows=_int(body.get("active_flows")),
            finished_flows=_int(body.get("finished_flows")),
            interrupted_flows=_int(body.get("interrupted_flows")),
            total_points=_int(body.get("total_points")),
            total_assertions=_int(body.get("total_assertions")),
        )

    # =========================================================================
    # TIMELINE MAPPING
    # =========================================================================

    def map_point(self, raw: Any) -> PointDTO:
        data = raw if isinstance(raw, Mapping) else {}
        return PointDTO(
            point_id=_optional_id(data.get("id")),
            flow_id=_optional_id(data.get("flow_id")),
            description=_text(data.get("description")),
            expected=data.get("expected"),
            service_name=_text(data.get("service_name")),
            created_at=parse_timestamp(data.get("created_at")),
            schema=data.get("schema"),
            timeout=parse_duration(data.get("timeout")),
        )

    def map_assertion(self, raw: Any) -> AssertionDTO:
        data = raw if isinstance(raw, Mapping) else {}
        return AssertionDTO(
            assertion_id=_optional_id(data.get("id")),
            flow_id=_optional_id(data.get("flow_id")),
            actual=data.get("actual"),
            service_name=_text(data.get("service_name")),
            created_at=parse_timestamp(data.get("created_at")),
            processed_at=parse_timestamp(data.get("processed_at")),
        )

    def map_event(self, raw: Any) -> Optional[TimelineEventDTO]:
        """Map one timeline entry; unknown event types are dropped."""
        entry = _require_mapping(raw, "timeline entry")
        event_type = EventType.parse(entry.get("type"))
        if event_type is None:
            logger.warning("dropping timeline entry of unknown type %r", entry.get("type"))
            return None
        timestamp = parse_timestamp(entry.get("timestamp"))
        if event_type is EventType.POINT:
            return TimelineEventDTO(
                event_type=event_type,
                timestamp=timestamp,
                point=self.map_point(entry.get("data")),
            )
        return TimelineEventDTO(
            event_type=event_type,
            timestamp=timestamp,
            assertion=self.map_assertion(entry.get("data")),
        )

    def map_timeline_page(self, raw: Any) -> FlowTimelinePageDTO:
        body = _require_mapping(raw, "timeline response")
        events = []
        for item in _require_list(body.get("data"), "data"):
            event = self.map_event(item)
            if event is not None:
                events.append(event)
        return FlowTimelinePageDTO(
            flow=self.map_flow(body.get("flow")),
            events=tuple(events),
            meta=self.map_meta(body.get("meta")),
        )

    # =========================================================================
    # COMPARE MAPPING
    # =========================================================================

    def map_diff_entry(self, raw: Any) -> DiffEntry:
        data = _require_mapping(raw, "diff entry")
        message = _text(data.get("message"))
        expected = data["expected"] if "expected" in data else ABSENT
        actual = data["actual"] if "actual" in data else ABSENT
        kind = None
        if data.get("kind"):
            try:
                kind = DiffKind(data["kind"])
            except ValueError:
                kind = None
        return DiffEntry(
            path=_text(data.get("path"), "$"),
            expected=expected,
            actual=actual,
            message=message,
            kind=kind or _infer_diff_kind(message, expected, actual),
        )

    def map_compare_report(self, raw: Any, flow_id: Optional[int] = None) -> CompareReportDTO:
        """
        Map the compare endpoint response.

        Every row's status is re-derived with the shared resolver.
        """
        body = _require_mapping(raw, "compare response")
        results = []
        for row in _require_list(body.get("results"), "results"):
            results.append(self._map_compare_row(_require_mapping(row, "compare row")))
        results_tuple = tuple(results)
        matches = sum(1 for r in results_tuple if r.match)
        return CompareReportDTO(
            flow_id=flow_id,
            results=results_tuple,
            matches=matches,
            mismatches=len(results_tuple) - matches,
            total_points=_int(body.get("total_points")),
            total_asserts=_int(body.get("total_asserts")),
        )

    def _map_compare_row(self, row: Mapping[str, Any]) -> CompareResultDTO:
        wire_status = PairingStatus.from_wire(row.get("status"))
        point_id = _optional_id(row.get("point_id"))
        assertion_id = _optional_id(row.get("assertion_id"))

        if wire_status is PairingStatus.ORPHAN:
            has_point, has_assertion = False, True
        elif wire_status is PairingStatus.MISSING_ASSERTION:
            has_point, has_assertion = True, False
        elif wire_status is not None:
            has_point, has_assertion = True, True
        else:
            has_point = point_id is not None or "expected" in row
            has_assertion = assertion_id is not None or "actual" in row
            if not has_point and not has_assertion:
                has_point = True

        diffs: Tuple[DiffEntry, ...] = ()
        if has_point and has_assertion:
            diffs = tuple(self.map_diff_entry(d) for d in _require_list(row.get("diffs"), "diffs"))

        index = _int(row.get("index"))
        status = self._resolver.reconcile_status(
            wire_status, has_point, has_assertion, diffs, index=index
        )
        return CompareResultDTO(
            index=index,
            point_id=point_id,
            assertion_id=assertion_id,
            description=_text(row.get("description")),
            status=status,
            expected=row.get("expected"),
            actual=row.get("actual"),
            diffs=diffs,
        )

    def compare_from_pairings(
        self,
        pairings: Iterable[Pairing],
        flow_id: Optional[int] = None,
    ) -> CompareReportDTO:
        """Build the compare view locally from pairings."""
        pairings = tuple(pairings)
        rows = []
        for pairing in pairings:
            point = pairing.point
            assertion = pairing.assertion
            if point is not None:
                description = getattr(point, "description", "")
            else:
                description = "Orphan Assertion"
            rows.append(CompareResultDTO(
                index=pairing.ordinal,
                point_id=getattr(point, "point_id", None),
                assertion_id=getattr(assertion, "assertion_id", None),
                description=description,
                status=pairing.status,
                expected=getattr(point, "expected", None),
                actual=getattr(assertion, "actual", None),
                diffs=pairing.diffs,
            ))
        summary = self._resolver.summarize(pairings)
        return CompareReportDTO(
            flow_id=flow_id,
            results=tuple(rows),
            matches=summary.matches,
            mismatches=summary.mismatches,
            total_points=summary.total_points,
            total_asserts=summary.total_asserts,
        )

    # =========================================================================
    # REQUEST PARAMS
    # =========================================================================

    @staticmethod
    def flow_list_params(
        page: int,
        limit: int,
        status: Optional[FlowStatus] = None,
        search: Optional[str] = None,
    ) -> Dict[str, str]:
        params = {"page": str(page), "limit": str(limit)}
        if status is not None and status is not FlowStatus.UNKNOWN:
            params["status"] = status.value
        if search:
            params["search"] = search
        return params


def _infer_diff_kind(message: str, expected: Any, actual: Any) -> DiffKind:
    """Best-effort kind for diff rows that arrive without one."""
    lowered = message.lower()
    if "missing" in lowered:
        return DiffKind.MISSING_FIELD
    if "extra" in lowered:
        return DiffKind.EXTRA_FIELD
    if "length" in lowered:
        return DiffKind.LENGTH_MISMATCH
    if "type mismatch" in lowered:
        return DiffKind.TYPE_MISMATCH
    if expected is None or actual is None or expected is ABSENT or actual is ABSENT:
        return DiffKind.ABSENT_VALUE
    return DiffKind.VALUE_MISMATCH
