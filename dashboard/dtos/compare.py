"""
Compare DTOs

Batch, non-paginated equivalent of the pairing engine output.

SAME RULES:
===========
Rows received from the service are re-classified with the shared
resolver; rows built locally come straight from pairings.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from reconciliation.contracts import DiffEntry, PairingStatus, ValueTree


@dataclass(frozen=True)
class CompareResultDTO:
    """One row of a flow comparison."""
    index: int
    point_id: Optional[int]
    assertion_id: Optional[int]
    description: str
    status: PairingStatus
    expected: ValueTree
    actual: ValueTree
    diffs: Tuple[DiffEntry, ...]

    @property
    def match(self) -> bool:
        return self.status is PairingStatus.MATCH


@dataclass(frozen=True)
class CompareReportDTO:
    """Whole-flow comparison with summary counts."""
    flow_id: Optional[int]
    results: Tuple[CompareResultDTO, ...]
    matches: int
    mismatches: int
    total_points: int
    total_asserts: int

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success(self) -> bool:
        return self.matches == self.total
