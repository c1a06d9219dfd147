"""Filter evaluator for report records."""

import logging
import operator as op
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.core.reporting.accessor import get_field_value
from app.schemas.reporting import FilterOperator, LogicalOperator, Record, ReportFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterCondition:
    """Leaf of a filter tree: one field/operator/value predicate."""

    filter: ReportFilter


@dataclass(frozen=True)
class FilterGroup:
    """Inner node of a filter tree combining its children with AND or OR."""

    logical_operator: LogicalOperator
    children: tuple["FilterCondition | FilterGroup", ...] = ()


FilterNode = FilterCondition | FilterGroup


def build_filter_tree(filters: Iterable[ReportFilter]) -> FilterGroup:
    """Represent a flat filter list as a single AND node.

    The per-filter ``logical_operator`` hint is carried on each leaf but does
    not change the shape of the tree: a filter list is always a conjunction.
    """
    return FilterGroup(
        LogicalOperator.AND, tuple(FilterCondition(f) for f in filters)
    )


def _operator_name(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _strict_equals(actual: Any, expected: Any) -> bool:
    # bool is an int subclass in Python; True must not equal 1
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    return actual == expected


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _contains(actual: Any, expected: Any) -> bool:
    return _to_text(expected).lower() in _to_text(actual).lower()


def _compare(actual: Any, expected: Any, compare: Callable[[Any, Any], bool]) -> bool:
    try:
        return bool(compare(actual, expected))
    except TypeError:
        # Mismatched kinds (e.g. None vs int) never match
        return False


def _member_of(actual: Any, expected: Any) -> bool:
    return any(_strict_equals(actual, item) for item in expected)


def _between(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple)) or len(expected) < 2:
        return False
    return _compare(actual, expected[0], op.ge) and _compare(actual, expected[1], op.le)


class FilterEvaluator:
    """Evaluator for report filters.

    Evaluation is total: it never raises, and an operator it does not know
    evaluates to True so filter definitions written for newer versions still
    load.
    """

    def evaluate(self, record: Record, report_filter: ReportFilter) -> bool:
        """Evaluate a single filter against a record.

        Args:
            record: Record to test
            report_filter: Filter with 'field', 'operator', 'value'

        Returns:
            True if the record satisfies the filter
        """
        actual = get_field_value(record, report_filter.field)
        expected = report_filter.value
        operator = _operator_name(report_filter.operator)

        if operator == FilterOperator.EQUALS.value:
            return _strict_equals(actual, expected)
        elif operator == FilterOperator.NOT_EQUALS.value:
            return not _strict_equals(actual, expected)
        elif operator == FilterOperator.CONTAINS.value:
            return _contains(actual, expected)
        elif operator == FilterOperator.NOT_CONTAINS.value:
            return not _contains(actual, expected)
        elif operator == FilterOperator.GREATER_THAN.value:
            return _compare(actual, expected, op.gt)
        elif operator == FilterOperator.LESS_THAN.value:
            return _compare(actual, expected, op.lt)
        elif operator == FilterOperator.IN.value:
            return isinstance(expected, (list, tuple)) and _member_of(actual, expected)
        elif operator == FilterOperator.NOT_IN.value:
            return isinstance(expected, (list, tuple)) and not _member_of(actual, expected)
        elif operator == FilterOperator.BETWEEN.value:
            return _between(actual, expected)
        elif operator == FilterOperator.EXISTS.value:
            return actual is not None
        elif operator == FilterOperator.NOT_EXISTS.value:
            return actual is None
        else:
            logger.debug(
                f"Unknown filter operator '{operator}' on field '{report_filter.field}', ignoring"
            )
            return True

    def evaluate_node(self, record: Record, node: FilterNode) -> bool:
        """Evaluate a filter tree node against a record."""
        if isinstance(node, FilterCondition):
            return self.evaluate(record, node.filter)

        # An empty group places no constraint on the record
        if not node.children:
            return True
        if node.logical_operator == LogicalOperator.OR:
            return any(self.evaluate_node(record, child) for child in node.children)
        return all(self.evaluate_node(record, child) for child in node.children)

    def evaluate_all(self, record: Record, filters: Sequence[ReportFilter]) -> bool:
        """Evaluate a filter list against a record (logical AND of every filter)."""
        if not filters:
            return True
        return self.evaluate_node(record, build_filter_tree(filters))

    def filter_records(
        self, records: Iterable[Record], filters: Sequence[ReportFilter]
    ) -> list[Record]:
        """Keep the records that satisfy every filter."""
        if not filters:
            return list(records)
        tree = build_filter_tree(filters)
        return [record for record in records if self.evaluate_node(record, tree)]
