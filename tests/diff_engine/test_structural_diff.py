"""
Structural Diff Tests

Rule-by-rule checks of the differ.

TEST CATEGORIES:
================
1. Identity - equal trees produce nothing
2. Absence - null / ABSENT on one side
3. Kinds - type mismatches stop descent
4. Mappings - missing / extra / recursive fields
5. Lists - length mismatch vs element-wise
6. Depth - no recursion limit
"""

import math

import pytest

from reconciliation import (
    ABSENT, DiffKind, StructuralDiffer, diff, diff_json, format_diffs,
)
from reconciliation.contracts import field_path


@pytest.fixture
def differ():
    return StructuralDiffer()


# =============================================================================
# IDENTITY
# =============================================================================

class TestIdentity:
    """Structurally equal trees yield no entries."""

    def test_equal_nested_trees(self, differ):
        expected = {"order": {"id": 7, "items": [1, 2, {"sku": "A"}]}, "ok": True}
        actual = {"order": {"id": 7, "items": [1, 2, {"sku": "A"}]}, "ok": True}
        assert differ.diff(expected, actual) == []

    def test_same_object(self, differ):
        tree = {"a": [1, 2, 3]}
        assert differ.diff(tree, tree) == []

    def test_both_absent(self, differ):
        assert differ.diff(None, None) == []
        assert differ.diff(None, ABSENT) == []

    def test_nan_equals_nan(self, differ):
        assert differ.diff({"x": float("nan")}, {"x": float("nan")}) == []

    def test_int_and_float_compare_by_value(self, differ):
        assert differ.diff({"n": 1}, {"n": 1.0}) == []


# =============================================================================
# SCENARIOS
# =============================================================================

class TestScenarios:

    def test_scenario_a_value_mismatch(self):
        """{a:1,b:2} vs {a:1,b:3} -> one entry at $.b."""
        entries = diff({"a": 1, "b": 2}, {"a": 1, "b": 3})
        assert len(entries) == 1
        entry = entries[0]
        assert entry.path == "$.b"
        assert entry.expected == 2
        assert entry.actual == 3
        assert entry.kind is DiffKind.VALUE_MISMATCH

    def test_scenario_b_extra_field(self):
        """{a:1} vs {a:1,c:5} -> one extra field entry at $.c."""
        entries = diff({"a": 1}, {"a": 1, "c": 5})
        assert len(entries) == 1
        entry = entries[0]
        assert entry.path == "$.c"
        assert entry.kind is DiffKind.EXTRA_FIELD
        assert "extra field" in entry.message
        assert entry.expected is ABSENT
        assert entry.actual == 5


# =============================================================================
# ABSENCE
# =============================================================================

class TestAbsence:

    @pytest.mark.parametrize("value", [0, "", False, [], {}, {"a": 1}])
    def test_actual_absent(self, differ, value):
        entries = differ.diff(value, None)
        assert len(entries) == 1
        assert entries[0].path == "$"
        assert entries[0].kind is DiffKind.ABSENT_VALUE
        assert entries[0].actual is ABSENT

    def test_expected_absent(self, differ):
        entries = differ.diff(ABSENT, {"a": 1})
        assert [e.kind for e in entries] == [DiffKind.ABSENT_VALUE]
        assert entries[0].expected is ABSENT

    def test_null_field_value_is_absence_not_missing(self, differ):
        entries = differ.diff({"a": 1}, {"a": None})
        assert len(entries) == 1
        assert entries[0].path == "$.a"
        assert entries[0].kind is DiffKind.ABSENT_VALUE


# =============================================================================
# KINDS
# =============================================================================

class TestKinds:

    def test_bool_is_not_a_number(self, differ):
        entries = differ.diff({"flag": True}, {"flag": 1})
        assert len(entries) == 1
        assert entries[0].kind is DiffKind.TYPE_MISMATCH

    def test_number_vs_string(self, differ):
        entries = differ.diff(1, "1")
        assert [e.kind for e in entries] == [DiffKind.TYPE_MISMATCH]
        assert entries[0].message == "path $: type mismatch expected number, got string"

    def test_type_mismatch_stops_descent(self, differ):
        entries = differ.diff({"a": {"b": 1, "c": 2}}, {"a": [1, 2]})
        assert len(entries) == 1
        assert entries[0].path == "$.a"

    def test_tuple_counts_as_list(self, differ):
        assert differ.diff([1, 2], (1, 2)) == []


# =============================================================================
# MAPPINGS
# =============================================================================

class TestMappings:

    def test_missing_then_extra_in_union_order(self, differ):
        entries = differ.diff({"a": 1, "b": 2, "c": 3}, {"c": 3, "d": 4, "a": 1})
        assert [(e.path, e.kind) for e in entries] == [
            ("$.b", DiffKind.MISSING_FIELD),
            ("$.d", DiffKind.EXTRA_FIELD),
        ]

    def test_pre_order_across_levels(self, differ):
        expected = {"a": {"x": 1, "y": 2}, "b": 1}
        actual = {"a": {"x": 9, "y": 8}, "b": 2}
        assert [e.path for e in differ.diff(expected, actual)] == ["$.a.x", "$.a.y", "$.b"]

    def test_missing_field_carries_expected(self, differ):
        entries = differ.diff({"a": {"deep": 1}}, {})
        assert entries[0].expected == {"deep": 1}
        assert entries[0].actual is ABSENT
        assert entries[0].message == "path $.a: missing field in actual"

    def test_non_identifier_field_is_quoted(self, differ):
        entries = differ.diff({"content-type": "a"}, {"content-type": "b"})
        assert entries[0].path == '$["content-type"]'

    def test_field_path_escapes_quotes(self):
        assert field_path("$", 'say "hi"') == '$["say \\"hi\\""]'


# =============================================================================
# LISTS
# =============================================================================

class TestLists:

    def test_length_mismatch_single_entry(self, differ):
        entries = differ.diff([1, 2, 3], [1, 2])
        assert len(entries) == 1
        entry = entries[0]
        assert entry.kind is DiffKind.LENGTH_MISMATCH
        assert (entry.expected, entry.actual) == (3, 2)
        assert entry.message == "path $: array length mismatch 3 != 2"

    def test_shared_prefix_not_compared_when_lengths_differ(self, differ):
        entries = differ.diff({"l": [1, 2, 3]}, {"l": [9, 9]})
        assert [e.path for e in entries] == ["$.l"]

    def test_element_wise_when_lengths_equal(self, differ):
        entries = differ.diff([1, {"a": 1}, 3], [1, {"a": 2}, 4])
        assert [e.path for e in entries] == ["$[1].a", "$[2]"]


# =============================================================================
# DEPTH
# =============================================================================

class TestDepth:

    def test_deep_nesting_does_not_recurse(self, differ):
        depth = 10000
        expected, actual = 1, 2
        for _ in range(depth):
            expected = {"n": [expected]}
            actual = {"n": [actual]}

        entries = differ.diff(expected, actual)
        assert len(entries) == 1
        assert entries[0].kind is DiffKind.VALUE_MISMATCH
        assert entries[0].path.count(".n[0]") == depth

    @staticmethod
    def _nest(leaf, depth):
        tree = leaf
        for _ in range(depth):
            tree = {"n": [tree]}
        return tree

    def test_deep_tree_against_absent(self, differ):
        tree = self._nest(1, 10000)

        entries = differ.diff(tree, None)
        assert len(entries) == 1
        assert entries[0].path == "$"
        assert entries[0].kind is DiffKind.ABSENT_VALUE
        assert entries[0].message == "path $: absent value, expected mapping(1 field), got absent"

    def test_deep_extra_field(self, differ):
        entries = differ.diff({}, {"deep": self._nest("x", 10000)})
        assert [(e.path, e.kind) for e in entries] == [("$.deep", DiffKind.EXTRA_FIELD)]

    def test_deep_json_document(self):
        text = '{"n": [' * 100000 + "1" + "]}" * 100000
        entries = diff_json(text, "1")
        assert len(entries) == 1
        assert entries[0].message.startswith("failed to decode expected")


# =============================================================================
# HELPERS
# =============================================================================

class TestHelpers:

    def test_format_diffs_joins_messages(self):
        entries = diff({"a": 1, "b": 2}, {"a": 2, "b": 3})
        assert format_diffs(entries) == (
            "path $.a: value mismatch expected 1, got 2; "
            "path $.b: value mismatch expected 2, got 3"
        )

    def test_format_diffs_empty(self):
        assert format_diffs([]) == ""

    def test_diff_json(self):
        entries = diff_json('{"a": 1}', '{"a": 1, "c": 5}')
        assert [e.path for e in entries] == ["$.c"]

    def test_diff_json_reports_decode_failure(self):
        entries = diff_json('{"a": 1}', "{not json")
        assert len(entries) == 1
        assert entries[0].path == "$"
        assert entries[0].message.startswith("failed to decode actual")

    def test_to_dict_replaces_absent_with_null(self):
        entry = diff({"a": 1}, {})[0]
        assert entry.to_dict() == {
            "path": "$.a",
            "expected": 1,
            "actual": None,
            "message": "path $.a: missing field in actual",
            "kind": "missing_field",
        }

    def test_nan_message_renders(self):
        entries = diff(float("nan"), 1.0)
        assert len(entries) == 1
        assert math.isnan(entries[0].expected)
