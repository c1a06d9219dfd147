"""Unit tests for the filter evaluator."""

import logging

import pytest

from app.core.reporting.filters import (
    FilterCondition,
    FilterEvaluator,
    FilterGroup,
    build_filter_tree,
)
from app.schemas.reporting import LogicalOperator, ReportFilter


def _filter(field, operator, value=None, **extra):
    return ReportFilter(field=field, operator=operator, value=value, **extra)


RECORD = {
    "id": "a1",
    "severity": "High",
    "level": 8,
    "timestamp": "2024-05-01T10:00:00Z",
    "agent": {"name": "web-01"},
    "verified": True,
    "note": None,
}


@pytest.fixture
def evaluator():
    return FilterEvaluator()


class TestEvaluate:
    """Single filter evaluation."""

    def test_equals(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("agent.name", "equals", "web-01"))
        assert not evaluator.evaluate(RECORD, _filter("agent.name", "equals", "db-01"))

    def test_equals_is_strict_about_types(self, evaluator):
        assert not evaluator.evaluate(RECORD, _filter("level", "equals", "8"))
        assert not evaluator.evaluate(RECORD, _filter("verified", "equals", 1))
        assert evaluator.evaluate(RECORD, _filter("verified", "equals", True))

    def test_not_equals(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("agent.name", "not-equals", "db-01"))
        assert not evaluator.evaluate(RECORD, _filter("agent.name", "not-equals", "web-01"))

    def test_contains_is_case_insensitive(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("severity", "contains", "hig"))
        assert evaluator.evaluate(RECORD, _filter("severity", "contains", "HIGH"))

    def test_contains_on_absent_field_matches_empty_needle_only(self, evaluator):
        assert not evaluator.evaluate(RECORD, _filter("missing", "contains", "x"))
        assert evaluator.evaluate(RECORD, _filter("missing", "contains", ""))

    def test_not_contains(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("severity", "not-contains", "low"))
        assert not evaluator.evaluate(RECORD, _filter("severity", "not-contains", "high"))

    def test_greater_and_less_than(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("level", "greater-than", 7))
        assert not evaluator.evaluate(RECORD, _filter("level", "greater-than", 8))
        assert evaluator.evaluate(RECORD, _filter("level", "less-than", 9))

    def test_ordering_on_strings(self, evaluator):
        assert evaluator.evaluate(
            RECORD, _filter("timestamp", "greater-than", "2024-04-30T00:00:00Z")
        )

    def test_ordering_against_absent_value_never_matches(self, evaluator):
        assert not evaluator.evaluate(RECORD, _filter("missing", "greater-than", 1))
        assert not evaluator.evaluate(RECORD, _filter("missing", "less-than", 1))

    def test_ordering_mismatched_kinds_never_matches(self, evaluator):
        assert not evaluator.evaluate(RECORD, _filter("level", "greater-than", "7"))

    def test_in_and_not_in(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("agent.name", "in", ["web-01", "db-01"]))
        assert not evaluator.evaluate(RECORD, _filter("agent.name", "in", ["db-01"]))
        assert evaluator.evaluate(RECORD, _filter("agent.name", "not-in", ["db-01"]))
        assert not evaluator.evaluate(RECORD, _filter("agent.name", "not-in", ["web-01"]))

    def test_in_with_non_list_value_is_false(self, evaluator):
        assert not evaluator.evaluate(RECORD, _filter("agent.name", "in", "web-01"))
        assert not evaluator.evaluate(RECORD, _filter("agent.name", "not-in", "web-01"))

    def test_between_is_inclusive(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("level", "between", [8, 10]))
        assert evaluator.evaluate(RECORD, _filter("level", "between", [1, 8]))
        assert not evaluator.evaluate(RECORD, _filter("level", "between", [9, 10]))

    def test_between_on_iso_timestamps(self, evaluator):
        f = _filter("timestamp", "between", ["2024-05-01T00:00:00Z", "2024-05-01T23:59:59Z"])
        assert evaluator.evaluate(RECORD, f)

    def test_between_with_malformed_value_is_false(self, evaluator):
        assert not evaluator.evaluate(RECORD, _filter("level", "between", 8))
        assert not evaluator.evaluate(RECORD, _filter("level", "between", [8]))

    def test_exists_and_not_exists(self, evaluator):
        assert evaluator.evaluate(RECORD, _filter("agent.name", "exists"))
        assert not evaluator.evaluate(RECORD, _filter("note", "exists"))
        assert evaluator.evaluate(RECORD, _filter("note", "not-exists"))
        assert evaluator.evaluate(RECORD, _filter("missing", "not-exists"))

    def test_unknown_operator_passes_and_logs(self, evaluator, caplog):
        with caplog.at_level(logging.DEBUG, logger="app.core.reporting.filters"):
            assert evaluator.evaluate(RECORD, _filter("level", "regex", ".*"))
        assert "Unknown filter operator 'regex'" in caplog.text


class TestEvaluateAll:
    """Filter list (AND) evaluation."""

    def test_empty_list_matches_everything(self, evaluator):
        assert evaluator.evaluate_all(RECORD, [])

    def test_all_filters_must_hold(self, evaluator):
        filters = [_filter("level", "greater-than", 5), _filter("agent.name", "equals", "web-01")]
        assert evaluator.evaluate_all(RECORD, filters)
        filters.append(_filter("severity", "equals", "Low"))
        assert not evaluator.evaluate_all(RECORD, filters)

    def test_logical_operator_hint_does_not_turn_list_into_or(self, evaluator):
        filters = [
            _filter("level", "equals", 1, logical_operator="OR"),
            _filter("agent.name", "equals", "web-01", logical_operator="OR"),
        ]
        assert not evaluator.evaluate_all(RECORD, filters)

    def test_filter_records(self, evaluator):
        records = [{"n": 1}, {"n": 5}, {"n": 10}]
        assert evaluator.filter_records(records, [_filter("n", "greater-than", 2)]) == [
            {"n": 5},
            {"n": 10},
        ]
        assert evaluator.filter_records(records, []) == records


class TestFilterTree:
    """Expression tree behind a filter list."""

    def test_flat_list_becomes_and_group(self):
        filters = [_filter("a", "exists"), _filter("b", "exists")]
        tree = build_filter_tree(filters)
        assert tree.logical_operator == LogicalOperator.AND
        assert [c.filter for c in tree.children] == filters

    def test_or_group(self, evaluator):
        tree = FilterGroup(
            LogicalOperator.OR,
            (
                FilterCondition(_filter("level", "equals", 1)),
                FilterCondition(_filter("agent.name", "equals", "web-01")),
            ),
        )
        assert evaluator.evaluate_node(RECORD, tree)

    def test_empty_group_matches(self, evaluator):
        assert evaluator.evaluate_node(RECORD, FilterGroup(LogicalOperator.OR))
