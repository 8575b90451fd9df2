"""
Core DTO Types

Foundational enums shared by every dashboard DTO.

EXPLICIT UNKNOWNS:
==================
Values the service sends that we do not recognise map to UNKNOWN.
The dashboard never guesses.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional


# =============================================================================
# FLOW STATUS (Service-Owned)
# =============================================================================

class FlowStatus(Enum):
    """
    Lifecycle of a monitored flow.

    SERVICE-OWNED:
    ==============
    Displayed as received, never computed here.
    """
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    INTERRUPTED = "INTERRUPTED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'FlowStatus':
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_live(self) -> bool:
        """Events may still be arriving."""
        return self is FlowStatus.ACTIVE


# =============================================================================
# EVENT TYPES
# =============================================================================

class EventType(Enum):
    """Kind of timeline event."""
    POINT = "POINT"
    ASSERTION = "ASSERTION"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional['EventType']:
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


# =============================================================================
# VIEW STATE (Explicit Absence)
# =============================================================================

class ViewState(Enum):
    """
    What the presentation layer should show for a stream.

    EXPLICIT ABSENCE:
    =================
    An empty stream and a failed stream are different states.
    """
    IDLE = "idle"           # Nothing requested yet
    LOADING = "loading"     # First page in flight
    READY = "ready"         # Items available
    EMPTY = "empty"         # Service answered with nothing
    FAILED = "failed"       # Last fetch failed, nothing to show
