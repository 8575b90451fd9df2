"""
Structural Differ

Path-addressed comparison of an expected ValueTree against an actual one.

RULES (in precedence order):
============================
1. Identical values produce nothing
2. Exactly one side absent -> one entry at the path
3. Different kinds -> one entry at the path, no descent
4. Mappings -> missing / extra fields, recurse into shared fields
5. Lists -> one entry if lengths differ, else element-wise
6. Same-kind scalars with different values -> one entry

GUARANTEES:
===========
- Pre-order result: union field order, ascending indices
- Explicit stack, so nesting depth is bounded by input size only
- Never raises on malformed input; absence is a diff, not a fault
"""

from __future__ import annotations
from enum import Enum
from typing import Iterable, List, Tuple
import json

from .contracts import (
    ABSENT, ROOT_PATH, DiffEntry, DiffKind, ValueKind, ValueTree,
    field_path, index_path, is_absent, kind_of, scalars_equal,
)


class _Step(Enum):
    COMPARE = "compare"
    MISSING = "missing"
    EXTRA = "extra"


_Frame = Tuple[_Step, str, ValueTree, ValueTree]


def render_value(value: ValueTree) -> str:
    """
    Compact rendering for messages.

    Scalars render as JSON; containers render as a kind and size summary
    so a message never walks a nested subtree.
    """
    if value is ABSENT:
        return "absent"
    if isinstance(value, dict):
        return _summary("mapping", len(value), "field")
    if isinstance(value, (list, tuple)):
        return _summary("list", len(value), "element")
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


def _summary(kind: str, size: int, unit: str) -> str:
    return f"{kind}({size} {unit}{'' if size == 1 else 's'})"


class StructuralDiffer:
    """
    Compares two value trees.

    Stateless; one instance can be shared by every view.
    """

    def diff(
        self,
        expected: ValueTree,
        actual: ValueTree,
        path: str = ROOT_PATH,
    ) -> List[DiffEntry]:
        entries: List[DiffEntry] = []
        stack: List[_Frame] = [(_Step.COMPARE, path, expected, actual)]

        while stack:
            step, at, exp, act = stack.pop()

            if step is _Step.MISSING:
                entries.append(DiffEntry(
                    path=at,
                    expected=exp,
                    actual=ABSENT,
                    message=f"path {at}: missing field in actual",
                    kind=DiffKind.MISSING_FIELD,
                ))
                continue

            if step is _Step.EXTRA:
                entries.append(DiffEntry(
                    path=at,
                    expected=ABSENT,
                    actual=act,
                    message=f"path {at}: extra field in actual",
                    kind=DiffKind.EXTRA_FIELD,
                ))
                continue

            children = self._compare_node(at, exp, act, entries)
            # Reversed so the first child is popped first.
            stack.extend(reversed(children))

        return entries

    def _compare_node(
        self,
        path: str,
        expected: ValueTree,
        actual: ValueTree,
        entries: List[DiffEntry],
    ) -> List[_Frame]:
        """Emit entries for this node; return child frames in pre-order."""
        if expected is actual:
            return []

        expected_absent = is_absent(expected)
        actual_absent = is_absent(actual)
        if expected_absent and actual_absent:
            return []
        if expected_absent or actual_absent:
            exp = ABSENT if expected_absent else expected
            act = ABSENT if actual_absent else actual
            entries.append(DiffEntry(
                path=path,
                expected=exp,
                actual=act,
                message=(
                    f"path {path}: absent value, expected {render_value(exp)}, "
                    f"got {render_value(act)}"
                ),
                kind=DiffKind.ABSENT_VALUE,
            ))
            return []

        expected_kind = kind_of(expected)
        actual_kind = kind_of(actual)
        if expected_kind is not actual_kind:
            entries.append(DiffEntry(
                path=path,
                expected=expected,
                actual=actual,
                message=(
                    f"path {path}: type mismatch expected {expected_kind.value}, "
                    f"got {actual_kind.value}"
                ),
                kind=DiffKind.TYPE_MISMATCH,
            ))
            return []

        if expected_kind is ValueKind.MAPPING:
            return self._mapping_children(path, expected, actual)

        if expected_kind is ValueKind.LIST:
            if len(expected) != len(actual):
                entries.append(DiffEntry(
                    path=path,
                    expected=len(expected),
                    actual=len(actual),
                    message=(
                        f"path {path}: array length mismatch "
                        f"{len(expected)} != {len(actual)}"
                    ),
                    kind=DiffKind.LENGTH_MISMATCH,
                ))
                return []
            return [
                (_Step.COMPARE, index_path(path, i), exp, act)
                for i, (exp, act) in enumerate(zip(expected, actual))
            ]

        if not scalars_equal(expected, actual):
            entries.append(DiffEntry(
                path=path,
                expected=expected,
                actual=actual,
                message=(
                    f"path {path}: value mismatch expected {render_value(expected)}, "
                    f"got {render_value(actual)}"
                ),
                kind=DiffKind.VALUE_MISMATCH,
            ))
        return []

    @staticmethod
    def _mapping_children(path: str, expected: dict, actual: dict) -> List[_Frame]:
        frames: List[_Frame] = []
        for name, exp in expected.items():
            child = field_path(path, str(name))
            if name in actual:
                frames.append((_Step.COMPARE, child, exp, actual[name]))
            else:
                frames.append((_Step.MISSING, child, exp, ABSENT))
        for name, act in actual.items():
            if name not in expected:
                frames.append((_Step.EXTRA, field_path(path, str(name)), ABSENT, act))
        return frames


# =============================================================================
# MODULE API
# =============================================================================

_DEFAULT_DIFFER = StructuralDiffer()


def diff(
    expected: ValueTree,
    actual: ValueTree,
    path: str = ROOT_PATH,
) -> List[DiffEntry]:
    """Diff two value trees with the shared differ."""
    return _DEFAULT_DIFFER.diff(expected, actual, path)


def diff_json(expected_text: str, actual_text: str) -> List[DiffEntry]:
    """
    Decode two JSON documents and diff them.

    A document that fails to decode is reported as a single entry at the
    root instead of raising.
    """
    try:
        expected = json.loads(expected_text)
    except (TypeError, ValueError, RecursionError) as e:
        return [_decode_failure("expected", expected_text, e)]
    try:
        actual = json.loads(actual_text)
    except (TypeError, ValueError, RecursionError) as e:
        return [_decode_failure("actual", actual_text, e)]
    return diff(expected, actual)


def _decode_failure(side: str, text: str, error: Exception) -> DiffEntry:
    return DiffEntry(
        path=ROOT_PATH,
        expected=text if side == "expected" else ABSENT,
        actual=text if side == "actual" else ABSENT,
        message=f"failed to decode {side}: {error}",
        kind=DiffKind.ABSENT_VALUE,
    )


def format_diffs(entries: Iterable[DiffEntry]) -> str:
    """One-line summary, messages joined by '; '."""
    return "; ".join(entry.message for entry in entries)
