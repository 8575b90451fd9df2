"""
Event Source Layer

RESPONSIBILITY: read flows, timelines, comparisons and stats from the
event-persistence service
OUTPUTS: FetchResult + dashboard DTOs

WHAT THIS LAYER MUST NOT DO:
============================
- Retry on its own
- Raise on transport or decoding failures
- Merge, pair or classify anything
"""

from .contracts import Error, ErrorCode, FetchResult, FetchStatus
from .fetcher import EventServiceClient

__all__ = [
    'Error',
    'ErrorCode',
    'FetchResult',
    'FetchStatus',
    'EventServiceClient',
]
