"""Data source adapter contract and registry for the reporting engine."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from app.core.reporting.exceptions import UnsupportedDataSourceError
from app.schemas.reporting import (
    DataSource,
    DataSourceInfo,
    FilterOperator,
    Record,
    ReportFilter,
)

logger = logging.getLogger(__name__)

DATA_SOURCE_NAMES: dict[DataSource, str] = {
    DataSource.WAZUH_ALERTS: "Wazuh Alerts",
    DataSource.WAZUH_AGENTS: "Wazuh Agents",
    DataSource.WAZUH_RULES: "Wazuh Rules",
    DataSource.IRIS_CASES: "IRIS Cases",
    DataSource.VULNERABILITIES: "Vulnerabilities",
    DataSource.FIM_EVENTS: "File Integrity Events",
    DataSource.CUSTOM_QUERY: "Custom Query",
}


class BaseDataSource(ABC):
    """Abstract base class for data source adapters.

    An adapter receives the merged filter list of a widget. It may push a
    subset of those filters down to its backend, but the records it returns are
    always re-checked by the filter evaluator, so pushing down is optional.
    """

    source_type: DataSource

    @abstractmethod
    async def fetch(self, filters: Sequence[ReportFilter]) -> list[Record]:
        """Fetch normalized records.

        Args:
            filters: Merged (global + widget) filter list

        Returns:
            List of records tagged with ``dataSource``

        Raises:
            AdapterError: If the backend call fails
        """
        pass

    @abstractmethod
    def get_columns(self) -> list[dict[str, Any]]:
        """Get available columns for this data source.

        Returns:
            List of column definitions with 'name', 'type', 'label'
        """
        pass

    def get_filters(self) -> list[dict[str, Any]]:
        """Get the filters this data source can push down to its backend.

        Returns:
            List of filter definitions with 'name', 'type', 'label', 'operators'
        """
        return []

    def tag(self, record: Record) -> Record:
        """Mark a normalized record with its data source."""
        record["dataSource"] = self.source_type.value
        return record


class DataSourceRegistry:
    """Registry mapping each data source to the adapter that serves it."""

    def __init__(self) -> None:
        self._adapters: dict[DataSource, BaseDataSource] = {}

    def register(self, adapter: BaseDataSource) -> None:
        """Register an adapter, replacing any previous one for the same source.

        Args:
            adapter: Adapter instance; its ``source_type`` is the registry key
        """
        self._adapters[adapter.source_type] = adapter
        logger.info(f"Registered data source: {adapter.source_type.value}")

    def get(self, source: DataSource | str) -> BaseDataSource:
        """Get the adapter for a data source.

        Raises:
            UnsupportedDataSourceError: If the source is unknown or has no adapter
        """
        try:
            key = DataSource(source)
        except ValueError:
            raise UnsupportedDataSourceError(source) from None
        adapter = self._adapters.get(key)
        if adapter is None:
            raise UnsupportedDataSourceError(key.value)
        return adapter

    def is_available(self, source: DataSource) -> bool:
        return source in self._adapters

    def list_data_sources(self) -> list[DataSourceInfo]:
        """Describe every declared data source and whether an adapter serves it."""
        return [
            DataSourceInfo(
                type=source,
                name=DATA_SOURCE_NAMES.get(source, source.value),
                available=self.is_available(source),
            )
            for source in DataSource
        ]


def pushdown_values(report_filter: ReportFilter) -> list[Any] | None:
    """Values a backend may match server-side for an ``equals`` or ``in`` filter.

    Returns None for any other operator, since pushing it down could drop
    records the filter evaluator would keep.
    """
    operator = getattr(report_filter.operator, "value", report_filter.operator)
    if operator == FilterOperator.EQUALS.value:
        return [report_filter.value]
    if operator == FilterOperator.IN.value and isinstance(report_filter.value, (list, tuple)):
        return list(report_filter.value)
    return None
