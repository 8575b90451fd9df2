"""
Event Source Contracts

Immutable records describing fetches against the event-persistence service.

ERRORS ARE DATA:
================
Transport and decoding failures are returned, never raised.
The dashboard surfaces them as an empty or failed state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional, Tuple


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Every failure the dashboard can observe.
    """
    # Transport
    SOURCE_UNREACHABLE = auto()
    QUERY_TIMEOUT = auto()
    HTTP_FAILURE = auto()

    # Decoding
    MALFORMED_PAYLOAD = auto()

    # Pagination
    PAGE_SIZE_CHANGED = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


# =============================================================================
# FETCH RESULTS
# =============================================================================

class FetchStatus(Enum):
    """Status of a fetch attempt."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    DECODE_ERROR = "decode_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one request, success or not.

    Always returned, even when the payload is unusable.
    """
    result_id: str
    endpoint: str
    params: Tuple[Tuple[str, str], ...]
    attempted_at: datetime
    completed_at: datetime
    status: FetchStatus
    http_status: Optional[int] = None
    items_count: int = 0
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.status == FetchStatus.SUCCESS

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.attempted_at).total_seconds() * 1000.0
