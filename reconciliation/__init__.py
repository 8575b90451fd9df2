"""
Reconciliation Core

RESPONSIBILITY: structural diff, positional pairing, classification
ALLOWED INPUTS: value trees and ordered point / assertion sequences
OUTPUTS: DiffEntry lists, Pairing tuples, summaries

WHAT THIS LAYER MUST NOT DO:
============================
- Perform I/O
- Import from dashboard or eventsource
- Suspend; every call runs to completion
"""

from .contracts import (
    ABSENT, ROOT_PATH, AssertionLike, DiffEntry, DiffKind, Pairing,
    PairingStatus, PointLike, ValueKind, ValueTree, is_absent, kind_of,
)
from .diff import StructuralDiffer, diff, diff_json, format_diffs
from .classification import (
    ClassificationResolver, ReconciliationSummary, classify, summarize,
)
from .pairing import PairingEngine, pair_events, split_timeline

__all__ = [
    # Contracts
    'ABSENT',
    'ROOT_PATH',
    'AssertionLike',
    'DiffEntry',
    'DiffKind',
    'Pairing',
    'PairingStatus',
    'PointLike',
    'ValueKind',
    'ValueTree',
    'is_absent',
    'kind_of',
    # Diff
    'StructuralDiffer',
    'diff',
    'diff_json',
    'format_diffs',
    # Classification
    'ClassificationResolver',
    'ReconciliationSummary',
    'classify',
    'summarize',
    # Pairing
    'PairingEngine',
    'pair_events',
    'split_timeline',
]
