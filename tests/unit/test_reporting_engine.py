"""Unit tests for the reporting engine (concurrent widget execution)."""

import asyncio

import pytest

from app.core.reporting.engine import (
    NO_FILTERS_SUMMARY,
    ReportingEngine,
    build_report_filters,
    summarize_filters,
)
from app.core.reporting.exceptions import AdapterError
from app.core.reporting.planner import WidgetQueryPlanner
from app.schemas.reporting import DataSource, DateRange, FilterOperator, ReportFilter
from tests.helpers import SAMPLE_AGENTS, SAMPLE_ALERTS, FakeDataSource, make_registry, make_widget


def _engine(*adapters, **kwargs):
    return ReportingEngine(WidgetQueryPlanner(make_registry(*adapters)), **kwargs)


class TestBuildReportFilters:
    """Merging template, request and date-range filters."""

    def test_order_is_template_request_date_range(self):
        global_filters = [ReportFilter(field="a", operator="exists")]
        request_filters = [ReportFilter(field="b", operator="exists")]
        date_range = DateRange(start="2024-05-01T00:00:00Z", end="2024-05-02T00:00:00Z")

        merged = build_report_filters(global_filters, request_filters, date_range)

        assert [f.field for f in merged] == ["a", "b", "timestamp"]
        assert merged[-1].operator == FilterOperator.BETWEEN
        assert merged[-1].value == ["2024-05-01T00:00:00Z", "2024-05-02T00:00:00Z"]

    def test_custom_date_field(self):
        date_range = DateRange(start="2024-05-01", end="2024-05-02")
        merged = build_report_filters([], None, date_range, date_field="createdAt")
        assert merged[0].field == "createdAt"

    def test_no_filters(self):
        assert build_report_filters([], None, None) == []


class TestSummarizeFilters:
    """Human-readable filter summary."""

    def test_empty(self):
        assert summarize_filters([]) == NO_FILTERS_SUMMARY

    def test_between_and_plain_operators(self):
        filters = [
            ReportFilter(field="severity", operator="equals", value="high"),
            ReportFilter(field="timestamp", operator="between", value=["s", "e"]),
        ]
        assert summarize_filters(filters) == "severity equals high, timestamp between s and e"


class TestExecute:
    """Fan-out, error isolation and metadata."""

    @pytest.mark.asyncio
    async def test_one_entry_per_widget_in_template_order(self):
        # The first widget is the slowest, so completion order differs from template order
        slow = FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS, delay=0.05)
        fast = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [
            make_widget("slow-alerts", "wazuh-alerts"),
            make_widget("agents", "wazuh-agents"),
            make_widget("alert-count", "wazuh-alerts", "kpi", aggregation={"field": "id", "type": "count"}),
        ]

        result = await _engine(slow, fast).execute(widgets, [])

        assert [w.widget_id for w in result.data] == ["slow-alerts", "agents", "alert-count"]
        assert [w.widget_type for w in result.data] == ["data-table", "data-table", "kpi"]
        assert all(w.error is None for w in result.data)

    @pytest.mark.asyncio
    async def test_metadata(self):
        alerts = FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS)
        agents = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [
            make_widget("alerts", "wazuh-alerts"),
            make_widget("agents", "wazuh-agents"),
            make_widget("more-alerts", "wazuh-alerts", limit=2),
        ]
        filters = [ReportFilter(field="id", operator="exists")]

        result = await _engine(alerts, agents).execute(widgets, filters)

        assert result.metadata.total_records == 5 + 3 + 2
        assert result.metadata.data_sources_used == [DataSource.WAZUH_ALERTS, DataSource.WAZUH_AGENTS]
        assert result.metadata.filters_summary == "id exists"
        assert result.metadata.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_failing_widget_does_not_abort_report(self):
        failing = FakeDataSource(DataSource.WAZUH_ALERTS, error=AdapterError("wazuh", "connection refused"))
        agents = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [make_widget("alerts", "wazuh-alerts"), make_widget("agents", "wazuh-agents")]

        result = await _engine(failing, agents).execute(widgets, [])

        alerts_data, agents_data = result.data
        assert alerts_data.data == []
        assert alerts_data.error == "wazuh: connection refused"
        assert agents_data.error is None
        assert len(agents_data.data) == 3
        assert result.metadata.total_records == 3
        # A failed widget's source still counts as used
        assert DataSource.WAZUH_ALERTS in result.metadata.data_sources_used

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self):
        broken = FakeDataSource(DataSource.WAZUH_ALERTS, error=KeyError("rule"))

        result = await _engine(broken).execute([make_widget("alerts")], [])

        assert result.data[0].error == "KeyError: 'rule'"

    @pytest.mark.asyncio
    async def test_missing_adapter_is_a_widget_error(self):
        agents = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [make_widget("cases", "iris-cases"), make_widget("agents", "wazuh-agents")]

        result = await _engine(agents).execute(widgets, [])

        assert result.data[0].error == "Unsupported data source: iris-cases"
        assert result.data[1].error is None

    @pytest.mark.asyncio
    async def test_widget_timeout(self):
        slow = FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS, delay=1.0)
        agents = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [make_widget("alerts", "wazuh-alerts"), make_widget("agents", "wazuh-agents")]

        result = await _engine(slow, agents, widget_timeout=0.05).execute(widgets, [])

        assert result.data[0].error.startswith("timeout:")
        assert result.data[0].data == []
        assert result.data[1].error is None

    @pytest.mark.asyncio
    async def test_generation_budget_cancels_pending_widgets(self):
        slow = FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS, delay=1.0)
        agents = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [make_widget("alerts", "wazuh-alerts"), make_widget("agents", "wazuh-agents")]
        engine = _engine(slow, agents, widget_timeout=None, generation_timeout=0.1)

        result = await engine.execute(widgets, [])

        assert result.data[0].error.startswith("cancelled:")
        assert result.data[1].error is None
        assert len(result.data[1].data) == 3

    @pytest.mark.asyncio
    async def test_queued_widgets_cancelled_by_budget_are_not_counted_as_used(self):
        slow = FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS, delay=1.0)
        agents = FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)
        widgets = [make_widget("alerts", "wazuh-alerts"), make_widget("agents", "wazuh-agents")]
        engine = _engine(slow, agents, max_concurrency=1, widget_timeout=None, generation_timeout=0.1)

        result = await engine.execute(widgets, [])

        assert [w.error.split(":")[0] for w in result.data] == ["cancelled", "cancelled"]
        assert agents.calls == []
        assert result.metadata.data_sources_used == [DataSource.WAZUH_ALERTS]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        running = 0
        peak = 0

        class CountingSource(FakeDataSource):
            async def fetch(self, filters):
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return []

        source = CountingSource(DataSource.WAZUH_ALERTS)
        widgets = [make_widget(f"w{i}") for i in range(6)]

        result = await _engine(source, max_concurrency=2).execute(widgets, [])

        assert len(result.data) == 6
        assert peak == 2

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self):
        slow = FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS, delay=5.0)
        engine = _engine(slow, widget_timeout=None, generation_timeout=None)

        task = asyncio.create_task(engine.execute([make_widget("alerts")], []))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_empty_template(self):
        result = await _engine().execute([], [])

        assert result.data == []
        assert result.metadata.total_records == 0
        assert result.metadata.filters_summary == NO_FILTERS_SUMMARY
