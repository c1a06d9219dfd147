"""Dotted-path field lookup on untyped records."""

from typing import Any


def get_field_value(record: Any, field_path: str) -> Any:
    """Get a value from a record using a dot-separated path.

    Dict keys are followed by name and list items by integer index
    (``"tags.0"``). Lookup never raises.

    Args:
        record: Record (usually a dict decoded from a data source)
        field_path: Dot-separated field path (e.g., 'rule.level')

    Returns:
        Field value, or None if any segment is absent or not a container
    """
    if not field_path:
        return None

    value: Any = record
    for part in field_path.split("."):
        if isinstance(value, dict):
            if part not in value:
                return None
            value = value[part]
        elif isinstance(value, list) and part.isdigit():
            index = int(part)
            if index >= len(value):
                return None
            value = value[index]
        else:
            return None

    return value
