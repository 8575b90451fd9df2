"""
Pairing Engine

Aligns a flow's POINT sequence with its ASSERTION sequence by position.

POSITIONAL ONLY:
================
The i-th point pairs with the i-th assertion. No semantic matching
between a point's description and an assertion's content is attempted;
instrumentation emits both streams in corresponding order.

CHUNK INDEPENDENCE:
===================
Input sequences are whole-flow sequences (pages concatenated in page
order), so the result does not depend on how pages were cut. A None
entry is a position not seen yet; an index where both sides are None
produces no pairing.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .classification import ClassificationResolver
from .contracts import AssertionLike, Pairing, PointLike
from .diff import StructuralDiffer


class PairingEngine:
    """Produces one Pairing per index up to max(|points|, |assertions|)."""

    def __init__(
        self,
        differ: Optional[StructuralDiffer] = None,
        resolver: Optional[ClassificationResolver] = None,
    ):
        self._differ = differ or StructuralDiffer()
        self._resolver = resolver or ClassificationResolver()

    @property
    def differ(self) -> StructuralDiffer:
        return self._differ

    @property
    def resolver(self) -> ClassificationResolver:
        return self._resolver

    def pair(
        self,
        points: Sequence[PointLike],
        assertions: Sequence[AssertionLike],
    ) -> Tuple[Pairing, ...]:
        pairings: List[Pairing] = []
        for i in range(max(len(points), len(assertions))):
            point = points[i] if i < len(points) else None
            assertion = assertions[i] if i < len(assertions) else None
            if point is None and assertion is None:
                # Gap left by a page that has not been re-fetched yet.
                continue

            diffs: Tuple = ()
            if point is not None and assertion is not None:
                diffs = tuple(self._differ.diff(
                    getattr(point, "expected", None),
                    getattr(assertion, "actual", None),
                ))

            pairings.append(Pairing(
                ordinal=i,
                point=point,
                assertion=assertion,
                diffs=diffs,
                status=self._resolver.classify(
                    point is not None, assertion is not None, diffs
                ),
            ))
        return tuple(pairings)

    def pair_timeline(self, events: Iterable[Any]) -> Tuple[Pairing, ...]:
        """
        Split a mixed timeline by type, then pair.

        Each event exposes `point` and `assertion`; exactly one is set.
        Relative order within each type is preserved.
        """
        points, assertions = split_timeline(events)
        return self.pair(points, assertions)


def split_timeline(events: Iterable[Any]) -> Tuple[List[Any], List[Any]]:
    points: List[Any] = []
    assertions: List[Any] = []
    for event in events:
        point = getattr(event, "point", None)
        assertion = getattr(event, "assertion", None)
        if point is not None:
            points.append(point)
        elif assertion is not None:
            assertions.append(assertion)
    return points, assertions


_DEFAULT_ENGINE = PairingEngine()


def pair_events(
    points: Sequence[PointLike],
    assertions: Sequence[AssertionLike],
) -> Tuple[Pairing, ...]:
    return _DEFAULT_ENGINE.pair(points, assertions)
