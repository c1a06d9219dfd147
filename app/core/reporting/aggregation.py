"""Grouping, aggregation and sorting of report records."""

import logging
from collections.abc import Sequence
from typing import Any

from app.core.reporting.accessor import get_field_value
from app.schemas.reporting import AggregationType, Record, SortOrder

logger = logging.getLogger(__name__)

# Key under which a group record keeps its member records
GROUP_ITEMS_KEY = "items"
GROUP_COUNT_KEY = "count"


def _key_part(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def group_records(records: Sequence[Record], fields: Sequence[str]) -> list[Record]:
    """Partition records by the values of one or more fields.

    Records whose stringified field values match land in the same group. Each
    group is returned as a synthetic record holding ``count``, the value of
    every grouping field (taken from the group's first member) and the member
    records under ``items``. Groups come out in first-seen order, which is not
    a meaningful ordering.

    Args:
        records: Records to partition
        fields: Grouping fields (dotted paths)

    Returns:
        One record per distinct composite key
    """
    groups: dict[tuple[str, ...], list[Record]] = {}
    for record in records:
        key = tuple(_key_part(get_field_value(record, field)) for field in fields)
        groups.setdefault(key, []).append(record)

    results: list[Record] = []
    for items in groups.values():
        group: Record = {GROUP_COUNT_KEY: len(items)}
        for field in fields:
            group[field] = get_field_value(items[0], field)
        group[GROUP_ITEMS_KEY] = items
        results.append(group)
    return results


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None
    return None


def aggregate(
    records: Sequence[Record], field: str, aggregation_type: AggregationType | str
) -> int | float:
    """Reduce one field across records.

    Absent and null values are dropped first. ``count`` counts the remaining
    values; the numeric reductions coerce them to numbers and skip values that
    are not numeric. Reductions over an empty set return 0.

    Args:
        records: Records to reduce
        field: Field to reduce (dotted path)
        aggregation_type: count, sum, avg, min or max

    Returns:
        Aggregated value
    """
    values = [
        value
        for value in (get_field_value(record, field) for record in records)
        if value is not None
    ]
    kind = aggregation_type.value if isinstance(aggregation_type, AggregationType) else str(aggregation_type)

    if kind == AggregationType.COUNT.value:
        return len(values)

    numbers = [n for n in (_to_number(v) for v in values) if n is not None]

    if kind == AggregationType.SUM.value:
        return sum(numbers)
    elif kind == AggregationType.AVG.value:
        return sum(numbers) / len(numbers) if numbers else 0
    elif kind == AggregationType.MIN.value:
        return min(numbers) if numbers else 0
    elif kind == AggregationType.MAX.value:
        return max(numbers) if numbers else 0

    logger.debug(f"Unknown aggregation type '{kind}', counting values")
    return len(values)


def aggregate_groups(
    groups: Sequence[Record], field: str, aggregation_type: AggregationType | str
) -> list[Record]:
    """Aggregate each group's items and merge the result under the aggregation type key."""
    kind = aggregation_type.value if isinstance(aggregation_type, AggregationType) else str(aggregation_type)
    return [
        {**group, kind: aggregate(group.get(GROUP_ITEMS_KEY) or [], field, kind)}
        for group in groups
    ]


def _sort_key(value: Any) -> tuple:
    # Absent values last; otherwise order by kind first so mixed kinds never compare
    if value is None:
        return (1, 0, 0)
    if isinstance(value, (bool, int, float)):
        return (0, 0, value)
    if isinstance(value, str):
        return (0, 1, value)
    return (0, 2, str(value))


def sort_records(
    records: Sequence[Record], field: str, order: SortOrder | str = SortOrder.ASC
) -> list[Record]:
    """Sort records by a field. Absent values always sort last."""
    descending = (order.value if isinstance(order, SortOrder) else str(order)) == SortOrder.DESC.value
    present = [r for r in records if get_field_value(r, field) is not None]
    absent = [r for r in records if get_field_value(r, field) is None]
    present.sort(key=lambda r: _sort_key(get_field_value(r, field)), reverse=descending)
    return present + absent
