"""
Dashboard DTO Package

Read-only, immutable Data Transfer Objects for the dashboard.

BOUNDARY ENFORCEMENT:
=====================
1. All DTOs are frozen (immutable)
2. The dashboard receives ONLY these types, never raw JSON
3. Missing data is EXPLICIT, never inferred
"""

from .core import FlowStatus, EventType, ViewState
from .flow import FlowDTO, FlowStatsDTO
from .event import PointDTO, AssertionDTO, TimelineEventDTO
from .envelope import PageMetaDTO, FlowListPageDTO, FlowTimelinePageDTO
from .compare import CompareResultDTO, CompareReportDTO

__all__ = [
    # Enums
    'FlowStatus',
    'EventType',
    'ViewState',
    # Flow
    'FlowDTO',
    'FlowStatsDTO',
    # Events
    'PointDTO',
    'AssertionDTO',
    'TimelineEventDTO',
    # Envelope
    'PageMetaDTO',
    'FlowListPageDTO',
    'FlowTimelinePageDTO',
    # Compare
    'CompareResultDTO',
    'CompareReportDTO',
]
