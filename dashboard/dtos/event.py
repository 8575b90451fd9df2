"""
Timeline Event DTOs

Points declare an expected value; assertions report the actual one.

APPEND-ONLY:
============
Within one flow each type is ordered by persistence order and never
reordered or mutated after creation.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from reconciliation.contracts import ValueTree

from .core import EventType


@dataclass(frozen=True)
class PointDTO:
    """Declaration of an expected value."""
    point_id: Optional[int]
    flow_id: Optional[int]
    description: str
    expected: ValueTree
    service_name: str
    created_at: Optional[datetime]
    schema: ValueTree = None
    timeout: Optional[timedelta] = None


@dataclass(frozen=True)
class AssertionDTO:
    """Report of the value actually observed."""
    assertion_id: Optional[int]
    flow_id: Optional[int]
    actual: ValueTree
    service_name: str
    created_at: Optional[datetime]
    processed_at: Optional[datetime] = None


@dataclass(frozen=True)
class TimelineEventDTO:
    """
    One member of a flow's timeline.

    Exactly one of `point` / `assertion` is set, matching `event_type`.
    """
    event_type: EventType
    timestamp: Optional[datetime]
    point: Optional[PointDTO] = None
    assertion: Optional[AssertionDTO] = None

    def __post_init__(self):
        if self.event_type is EventType.POINT:
            if self.point is None or self.assertion is not None:
                raise ValueError("POINT event must carry only a point payload")
        elif self.assertion is None or self.point is not None:
            raise ValueError("ASSERTION event must carry only an assertion payload")

    @property
    def payload(self) -> Union[PointDTO, AssertionDTO]:
        return self.point if self.point is not None else self.assertion

    @property
    def is_point(self) -> bool:
        return self.event_type is EventType.POINT
