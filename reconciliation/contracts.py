"""
Reconciliation Contracts

Shared value types for the diff and pairing engine.

BOUNDARY:
=========
- Pure data, no I/O
- Nothing here imports from dashboard or eventsource
- Every record is frozen; pairings are derived views, never persisted
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Final, Optional, Protocol, Tuple
import math
import re


# A ValueTree is whatever json.loads produces: str, int, float, bool, None,
# list of ValueTree, or dict of str -> ValueTree.
ValueTree = Any


# =============================================================================
# ABSENCE (Explicit marker)
# =============================================================================

class _Absent:
    """Marker for "no value at this path"."""

    _instance: Optional['_Absent'] = None

    def __new__(cls) -> '_Absent':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Absent, ())


ABSENT: Final = _Absent()


def is_absent(value: ValueTree) -> bool:
    """JSON null and the ABSENT marker both count as absence."""
    return value is None or value is ABSENT


# =============================================================================
# VALUE KINDS
# =============================================================================

class ValueKind(Enum):
    """
    Fundamental kind of a ValueTree node.

    STRICT:
    =======
    bool is its own kind, never a NUMBER.
    """
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    MAPPING = "mapping"
    OTHER = "other"


def kind_of(value: ValueTree) -> ValueKind:
    if is_absent(value):
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if isinstance(value, dict):
        return ValueKind.MAPPING
    return ValueKind.OTHER


def scalars_equal(expected: ValueTree, actual: ValueTree) -> bool:
    """Equality for two scalars already known to share a kind."""
    if isinstance(expected, float) and isinstance(actual, float):
        if math.isnan(expected) and math.isnan(actual):
            return True
    return expected == actual


# =============================================================================
# PATHS
# =============================================================================

ROOT_PATH: Final[str] = "$"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def field_path(parent: str, name: str) -> str:
    """`$.name` for identifier-like names, `$["odd name"]` otherwise."""
    if _IDENTIFIER.match(name):
        return f"{parent}.{name}"
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'{parent}["{escaped}"]'


def index_path(parent: str, index: int) -> str:
    return f"{parent}[{index}]"


# =============================================================================
# DIFF ENTRIES
# =============================================================================

class DiffKind(Enum):
    """Why a path was reported."""
    ABSENT_VALUE = "absent_value"
    TYPE_MISMATCH = "type_mismatch"
    MISSING_FIELD = "missing_field"
    EXTRA_FIELD = "extra_field"
    LENGTH_MISMATCH = "length_mismatch"
    VALUE_MISMATCH = "value_mismatch"


@dataclass(frozen=True)
class DiffEntry:
    """
    One path-addressed discrepancy between expected and actual.

    Produced only by the structural differ; never persisted.
    """
    path: str
    expected: ValueTree
    actual: ValueTree
    message: str
    kind: DiffKind

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape used by the compare endpoint."""
        return {
            "path": self.path,
            "expected": None if self.expected is ABSENT else self.expected,
            "actual": None if self.actual is ABSENT else self.actual,
            "message": self.message,
            "kind": self.kind.value,
        }


# =============================================================================
# PAIRINGS
# =============================================================================

class PairingStatus(Enum):
    """
    Classification vocabulary shared by the timeline and compare views.
    """
    MATCH = "match"
    MISMATCH = "mismatch"
    MISSING_ASSERTION = "missing_assertion"
    ORPHAN = "orphan"

    @classmethod
    def from_wire(cls, value: Optional[str]) -> Optional['PairingStatus']:
        """Parse a status string; the compare endpoint says orphan_assertion."""
        if value is None:
            return None
        normalized = str(value).strip().lower()
        if normalized == "orphan_assertion":
            return cls.ORPHAN
        try:
            return cls(normalized)
        except ValueError:
            return None


class PointLike(Protocol):
    """Anything carrying an expected value."""
    expected: ValueTree


class AssertionLike(Protocol):
    """Anything carrying an actual value."""
    actual: ValueTree


@dataclass(frozen=True)
class Pairing:
    """
    Positional association of the i-th point with the i-th assertion.

    DERIVED VIEW:
    =============
    Recomputed whenever the underlying window changes.
    """
    ordinal: int
    point: Optional[Any]
    assertion: Optional[Any]
    diffs: Tuple[DiffEntry, ...]
    status: PairingStatus

    @property
    def label(self) -> int:
        """1-based position shown next to the point."""
        return self.ordinal + 1

    @property
    def has_point(self) -> bool:
        return self.point is not None

    @property
    def has_assertion(self) -> bool:
        return self.assertion is not None

    @property
    def is_match(self) -> bool:
        return self.status is PairingStatus.MATCH
