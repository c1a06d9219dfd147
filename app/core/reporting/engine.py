"""Reporting engine for executing report templates."""

import asyncio
import logging
import time
from collections.abc import Sequence

from app.core.logging import log_widget_failure
from app.core.reporting.exceptions import ReportingError
from app.core.reporting.planner import WidgetQueryPlanner
from app.schemas.reporting import (
    DataSource,
    DateRange,
    FilterOperator,
    ReportExecutionResult,
    ReportFilter,
    ReportMetadata,
    WidgetConfig,
    WidgetData,
)

logger = logging.getLogger(__name__)

NO_FILTERS_SUMMARY = "No filters applied"


def build_report_filters(
    global_filters: Sequence[ReportFilter],
    request_filters: Sequence[ReportFilter] | None = None,
    date_range: DateRange | None = None,
    date_field: str = "timestamp",
) -> list[ReportFilter]:
    """Combine template, request and date-range filters into one AND list.

    Args:
        global_filters: Template-level filters
        request_filters: Filters supplied with the generation request
        date_range: Optional inclusive range, turned into a ``between`` filter
        date_field: Record field the date range applies to

    Returns:
        Filter list in template, request, date-range order
    """
    filters = [*global_filters, *(request_filters or [])]
    if date_range:
        filters.append(
            ReportFilter(
                field=date_field,
                operator=FilterOperator.BETWEEN,
                value=[date_range.start, date_range.end],
            )
        )
    return filters


def _operator_text(report_filter: ReportFilter) -> str:
    return str(getattr(report_filter.operator, "value", report_filter.operator))


def summarize_filters(filters: Sequence[ReportFilter]) -> str:
    """Describe a filter list in one human-readable line."""
    if not filters:
        return NO_FILTERS_SUMMARY

    parts = []
    for f in filters:
        operator = _operator_text(f)
        if operator == FilterOperator.BETWEEN.value and isinstance(f.value, (list, tuple)) and len(f.value) >= 2:
            parts.append(f"{f.field} between {f.value[0]} and {f.value[1]}")
        elif f.value is None:
            parts.append(f"{f.field} {operator}")
        else:
            parts.append(f"{f.field} {operator} {f.value}")
    return ", ".join(parts)


class ReportingEngine:
    """Engine running every widget of a template and assembling the result.

    Widgets run concurrently, at most ``max_concurrency`` at a time. Each widget
    owns one result slot, so the output order is the template order whatever
    the completion order. A failing, slow or cancelled widget produces an entry
    with an ``error`` instead of aborting the report.
    """

    def __init__(
        self,
        planner: WidgetQueryPlanner,
        max_concurrency: int = 4,
        widget_timeout: float | None = 30.0,
        generation_timeout: float | None = 120.0,
    ):
        """Initialize reporting engine.

        Args:
            planner: Widget query planner
            max_concurrency: Maximum number of widgets queried at once
            widget_timeout: Seconds one widget may take (None disables)
            generation_timeout: Seconds the whole report may take (None disables)
        """
        self.planner = planner
        self.max_concurrency = max(1, max_concurrency)
        self.widget_timeout = widget_timeout
        self.generation_timeout = generation_timeout

    async def execute(
        self,
        widgets: Sequence[WidgetConfig],
        report_filters: Sequence[ReportFilter],
    ) -> ReportExecutionResult:
        """Execute all widgets of a template.

        Args:
            widgets: Widgets in template order
            report_filters: Fully merged report-level filters

        Returns:
            One WidgetData per widget plus execution metadata

        Raises:
            asyncio.CancelledError: If the caller cancels; running widgets are cancelled too
        """
        started = time.perf_counter()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        results: list[WidgetData | None] = [None] * len(widgets)
        started_widgets: set[int] = set()

        async def run(index: int, widget: WidgetConfig) -> None:
            async with semaphore:
                started_widgets.add(index)
                results[index] = await self._run_widget(widget, report_filters)

        tasks = [asyncio.create_task(run(i, w)) for i, w in enumerate(widgets)]
        pending: set[asyncio.Task] = set()
        try:
            if tasks:
                _, pending = await asyncio.wait(tasks, timeout=self.generation_timeout)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if pending:
            logger.warning(
                f"Report generation exceeded {self.generation_timeout}s, "
                f"cancelling {len(pending)} widget(s)"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        data: list[WidgetData] = []
        for widget, result in zip(widgets, results):
            if result is None:
                error = f"cancelled: report generation exceeded {self.generation_timeout}s"
                log_widget_failure(widget.id, widget.data_source.value, error)
                result = self._failed(widget, error)
            data.append(result)

        execution_time_ms = int((time.perf_counter() - started) * 1000)
        # Widgets cancelled while still queued never reached their data source
        sources_used: list[DataSource] = []
        for index, widget in enumerate(widgets):
            if index in started_widgets and widget.data_source not in sources_used:
                sources_used.append(widget.data_source)

        metadata = ReportMetadata(
            total_records=sum(len(w.data) for w in data),
            execution_time_ms=execution_time_ms,
            data_sources_used=sources_used,
            filters_summary=summarize_filters(report_filters),
        )
        return ReportExecutionResult(data=data, metadata=metadata)

    async def _run_widget(
        self, widget: WidgetConfig, report_filters: Sequence[ReportFilter]
    ) -> WidgetData:
        """Run one widget, turning any failure into a WidgetData error."""
        try:
            rows = await asyncio.wait_for(
                self.planner.run_widget(widget, report_filters),
                timeout=self.widget_timeout,
            )
        except asyncio.TimeoutError:
            error = f"timeout: {widget.data_source.value} did not respond within {self.widget_timeout}s"
        except ReportingError as e:
            error = str(e)
        except Exception as e:
            # Unexpected adapter bugs are contained like any other widget failure
            logger.exception(f"Unexpected error in widget {widget.id}")
            error = f"{type(e).__name__}: {e}"
        else:
            return WidgetData(widget_id=widget.id, widget_type=widget.type.value, data=rows)

        log_widget_failure(widget.id, widget.data_source.value, error)
        return self._failed(widget, error)

    @staticmethod
    def _failed(widget: WidgetConfig, error: str) -> WidgetData:
        return WidgetData(widget_id=widget.id, widget_type=widget.type.value, data=[], error=error)
