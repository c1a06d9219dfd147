"""Widget query planner: fetch, filter, group, aggregate, sort, truncate."""

import logging
from collections.abc import Sequence

from app.core.reporting.aggregation import (
    aggregate,
    aggregate_groups,
    group_records,
    sort_records,
)
from app.core.reporting.data_source import DataSourceRegistry
from app.core.reporting.filters import FilterEvaluator
from app.schemas.reporting import QueryDataRequest, Record, ReportFilter, WidgetConfig

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 1000


class WidgetQueryPlanner:
    """Planner running the data pipeline of one widget (or one direct query)."""

    def __init__(
        self,
        registry: DataSourceRegistry,
        evaluator: FilterEvaluator | None = None,
        default_limit: int = DEFAULT_LIMIT,
    ):
        """Initialize planner.

        Args:
            registry: Data source adapters keyed by data source
            evaluator: Filter evaluator (created if not provided)
            default_limit: Raw record cap when a query sets no limit
        """
        self.registry = registry
        self.evaluator = evaluator or FilterEvaluator()
        self.default_limit = default_limit

    async def run_widget(
        self, widget: WidgetConfig, report_filters: Sequence[ReportFilter]
    ) -> list[Record]:
        """Run one widget.

        The report-level filters come first, followed by the widget's own
        filters; the whole list is ANDed.

        Args:
            widget: Widget definition
            report_filters: Template-global, request and date-range filters

        Returns:
            Widget rows
        """
        config = widget.query_config
        request = QueryDataRequest(
            data_source=widget.data_source,
            filters=[*report_filters, *config.filters],
            group_by=config.group_by,
            aggregation=config.aggregation,
            sort_by=config.sort_by,
            limit=config.limit,
        )
        return await self.query_data(request)

    async def query_data(self, request: QueryDataRequest) -> list[Record]:
        """Query one data source independently of any template.

        Args:
            request: Data source, filters and shaping options

        Returns:
            Result rows

        Raises:
            UnsupportedDataSourceError: If no adapter serves the data source
            AdapterError: If the adapter call fails
        """
        adapter = self.registry.get(request.data_source)
        fetched = await adapter.fetch(request.filters)

        # Adapters only push down part of the filter list; re-check everything
        records = self.evaluator.filter_records(fetched, request.filters)
        logger.debug(
            f"{request.data_source.value}: fetched {len(fetched)} records, "
            f"{len(records)} matched filters"
        )
        return self.shape(records, request)

    def shape(self, records: list[Record], request: QueryDataRequest) -> list[Record]:
        """Apply aggregation, grouping, sorting and the record limit.

        An aggregation without grouping yields a single row; grouping yields one
        row per group (with per-group aggregates when both are set); otherwise
        the raw records are returned, capped at the limit.
        """
        aggregation = request.aggregation

        if aggregation and not request.group_by:
            return [
                {aggregation.type.value: aggregate(records, aggregation.field, aggregation.type)}
            ]

        if request.group_by:
            rows = group_records(records, request.group_by)
            if aggregation:
                rows = aggregate_groups(rows, aggregation.field, aggregation.type)
            if request.sort_by:
                rows = sort_records(rows, request.sort_by.field, request.sort_by.order)
            return rows

        if request.sort_by:
            records = sort_records(records, request.sort_by.field, request.sort_by.order)
        return records[: request.limit or self.default_limit]
