"""
Stream State Layer

Responsibility:
Per-stream pagination, page accumulation and fetch sequencing.

PRINCIPLES:
1. Immutable (Frozen) values, replaced on every transition
2. Merges sequenced by page number
3. Stale responses discarded, never merged
"""

from .cursor import PaginationCursor, PageSizeChanged
from .window import EventWindow, align_timeline
from .session import (
    StreamSession, StreamKind, SubjectKey, FetchTicket, MergeOutcome,
)

__all__ = [
    'PaginationCursor', 'PageSizeChanged',
    'EventWindow', 'align_timeline',
    'StreamSession', 'StreamKind', 'SubjectKey', 'FetchTicket', 'MergeOutcome',
]
