"""Unit tests for grouping, aggregation and sorting."""

from app.core.reporting.aggregation import (
    GROUP_COUNT_KEY,
    GROUP_ITEMS_KEY,
    aggregate,
    aggregate_groups,
    group_records,
    sort_records,
)
from app.schemas.reporting import AggregationType, SortOrder

RECORDS = [
    {"id": "1", "severity": "high", "agent": {"name": "web"}, "score": 10},
    {"id": "2", "severity": "low", "agent": {"name": "db"}, "score": "4"},
    {"id": "3", "severity": "high", "agent": {"name": "db"}, "score": None},
    {"id": "4", "severity": "high", "agent": {"name": "web"}, "score": "n/a"},
    {"id": "5", "agent": {"name": "web"}, "score": 6},
]


class TestGroupRecords:
    """Grouping by one or more fields."""

    def test_single_field_counts_and_items(self):
        groups = group_records(RECORDS, ["severity"])
        by_key = {g["severity"]: g for g in groups}

        assert by_key["high"][GROUP_COUNT_KEY] == 3
        assert by_key["low"][GROUP_COUNT_KEY] == 1
        assert [r["id"] for r in by_key["high"][GROUP_ITEMS_KEY]] == ["1", "3", "4"]

    def test_absent_value_forms_its_own_group(self):
        groups = group_records(RECORDS, ["severity"])
        absent = [g for g in groups if g["severity"] is None]
        assert len(absent) == 1
        assert absent[0][GROUP_COUNT_KEY] == 1

    def test_counts_add_up_to_input_size(self):
        groups = group_records(RECORDS, ["severity", "agent.name"])
        assert sum(g[GROUP_COUNT_KEY] for g in groups) == len(RECORDS)

    def test_composite_key(self):
        groups = group_records(RECORDS, ["severity", "agent.name"])
        keys = {(g["severity"], g["agent.name"]) for g in groups}
        assert keys == {("high", "web"), ("low", "db"), ("high", "db"), (None, "web")}

    def test_values_compare_by_string_form(self):
        groups = group_records([{"v": 1}, {"v": "1"}], ["v"])
        assert len(groups) == 1
        # First member's original value is kept
        assert groups[0]["v"] == 1

    def test_empty_input(self):
        assert group_records([], ["severity"]) == []


class TestAggregate:
    """Numeric reductions."""

    def test_count_skips_absent_and_null(self):
        assert aggregate(RECORDS, "score", AggregationType.COUNT) == 4
        assert aggregate(RECORDS, "id", "count") == 5

    def test_sum_coerces_numeric_strings_and_skips_non_numeric(self):
        assert aggregate(RECORDS, "score", AggregationType.SUM) == 20

    def test_avg(self):
        assert aggregate(RECORDS, "score", AggregationType.AVG) == 20 / 3

    def test_min_max(self):
        assert aggregate(RECORDS, "score", AggregationType.MIN) == 4
        assert aggregate(RECORDS, "score", AggregationType.MAX) == 10

    def test_empty_inputs_reduce_to_zero(self):
        for kind in AggregationType:
            assert aggregate([], "score", kind) == 0

    def test_unknown_type_counts(self):
        assert aggregate(RECORDS, "score", "median") == 4


class TestAggregateGroups:
    """Per-group aggregation."""

    def test_result_is_merged_under_type_key(self):
        groups = aggregate_groups(group_records(RECORDS, ["agent.name"]), "score", AggregationType.SUM)
        by_agent = {g["agent.name"]: g for g in groups}

        assert by_agent["web"]["sum"] == 16
        assert by_agent["db"]["sum"] == 4
        assert by_agent["web"][GROUP_COUNT_KEY] == 3


class TestSortRecords:
    """Sorting with absent values last."""

    def test_ascending(self):
        rows = [{"n": 3}, {"n": 1}, {"n": 2}]
        assert [r["n"] for r in sort_records(rows, "n")] == [1, 2, 3]

    def test_descending(self):
        rows = [{"n": 3}, {"n": 1}, {"n": 2}]
        assert [r["n"] for r in sort_records(rows, "n", SortOrder.DESC)] == [3, 2, 1]

    def test_absent_values_last_in_both_orders(self):
        rows = [{"n": None}, {"n": 2}, {}, {"n": 1}]
        assert [r.get("n") for r in sort_records(rows, "n", "asc")][:2] == [1, 2]
        assert [r.get("n") for r in sort_records(rows, "n", "desc")][:2] == [2, 1]

    def test_mixed_kinds_do_not_raise(self):
        rows = [{"n": "b"}, {"n": 2}, {"n": "a"}, {"n": 1}]
        assert [r["n"] for r in sort_records(rows, "n")] == [1, 2, "a", "b"]
