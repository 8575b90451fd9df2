"""
Flow DTOs

A flow is one monitored execution. The dashboard holds immutable
snapshots of it, one per fetch.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .core import FlowStatus


@dataclass(frozen=True)
class FlowDTO:
    """
    Snapshot of one flow as served by the event service.

    DENORMALIZED:
    =============
    point_count / assertion_count come from the list endpoint and may lag
    behind the timeline totals of an ACTIVE flow.
    """
    flow_id: int
    name: str
    status: FlowStatus
    created_at: Optional[datetime]
    identifier: Optional[str] = None
    service: Optional[str] = None
    updated_at: Optional[datetime] = None
    point_count: int = 0
    assertion_count: int = 0

    @property
    def is_active(self) -> bool:
        return self.status.is_live


@dataclass(frozen=True)
class FlowStatsDTO:
    """Aggregate counts by status. Display only."""
    total_flows: int
    active_flows: int
    finished_flows: int
    interrupted_flows: int
    total_points: int
    total_assertions: int
