"""
Classification Resolver

Single source of truth for pairing status.

TIE-BREAK RULE:
===============
- Zero diffs -> match, unconditionally
- Any diff -> mismatch, regardless of diff kind
- Point without assertion -> missing_assertion
- Assertion without point -> orphan

Both the live timeline and the compare view go through this module.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
import logging

from .contracts import DiffEntry, Pairing, PairingStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationSummary:
    """
    Counts over one flow's pairings.

    `mismatches` counts every row that is not a match, which is what the
    compare endpoint reports; the finer split is kept alongside.
    """
    total: int
    matches: int
    mismatches: int
    missing_assertions: int
    orphans: int
    total_points: int
    total_asserts: int

    @property
    def success(self) -> bool:
        return self.matches == self.total


class ClassificationResolver:
    """Maps a pairing's shape and diffs to a status."""

    def classify(
        self,
        has_point: bool,
        has_assertion: bool,
        diffs: Sequence[DiffEntry] = (),
    ) -> PairingStatus:
        if has_point and not has_assertion:
            return PairingStatus.MISSING_ASSERTION
        if has_assertion and not has_point:
            return PairingStatus.ORPHAN
        if not has_point and not has_assertion:
            raise ValueError("a pairing needs a point or an assertion")
        return PairingStatus.MATCH if len(diffs) == 0 else PairingStatus.MISMATCH

    def resolve(self, pairing: Pairing) -> PairingStatus:
        return self.classify(pairing.has_point, pairing.has_assertion, pairing.diffs)

    def reconcile_status(
        self,
        wire_status: Optional[PairingStatus],
        has_point: bool,
        has_assertion: bool,
        diffs: Sequence[DiffEntry],
        index: int = -1,
    ) -> PairingStatus:
        """
        Re-derive the status of a row classified elsewhere.

        The resolver wins when the two disagree.
        """
        derived = self.classify(has_point, has_assertion, diffs)
        if wire_status is not None and wire_status is not derived:
            logger.warning(
                "compare row %d: server status %s disagrees with %s, using %s",
                index, wire_status.value, derived.value, derived.value,
            )
        return derived

    def summarize(self, pairings: Iterable[Pairing]) -> ReconciliationSummary:
        total = matches = missing = orphans = points = asserts = 0
        for pairing in pairings:
            total += 1
            if pairing.has_point:
                points += 1
            if pairing.has_assertion:
                asserts += 1
            status = pairing.status
            if status is PairingStatus.MATCH:
                matches += 1
            elif status is PairingStatus.MISSING_ASSERTION:
                missing += 1
            elif status is PairingStatus.ORPHAN:
                orphans += 1
        return ReconciliationSummary(
            total=total,
            matches=matches,
            mismatches=total - matches,
            missing_assertions=missing,
            orphans=orphans,
            total_points=points,
            total_asserts=asserts,
        )


_DEFAULT_RESOLVER = ClassificationResolver()


def classify(
    has_point: bool,
    has_assertion: bool,
    diffs: Sequence[DiffEntry] = (),
) -> PairingStatus:
    return _DEFAULT_RESOLVER.classify(has_point, has_assertion, diffs)


def summarize(pairings: Iterable[Pairing]) -> ReconciliationSummary:
    return _DEFAULT_RESOLVER.summarize(pairings)
