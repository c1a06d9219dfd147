"""Unit tests for ReportingService (generation, persistence, reads)."""

from uuid import uuid4

import pytest

from app.core.reporting.exceptions import (
    AccessDeniedError,
    GeneratedReportNotFoundError,
    TemplateNotFoundError,
    UnsupportedDataSourceError,
)
from app.schemas.reporting import (
    DataSource,
    DateRange,
    GeneratedReportResponse,
    GenerateReportRequest,
    QueryDataRequest,
    ReportFilter,
    ReportTemplateCreate,
)
from tests.helpers import template_payload

OWNER = "analyst-1"
OTHER = "analyst-2"


def _create(service, user_id=OWNER, **overrides):
    return service.create_template(user_id, ReportTemplateCreate.model_validate(template_payload(**overrides)))


class TestGenerateReport:
    """Report generation end to end, with fake adapters."""

    @pytest.mark.asyncio
    async def test_generate_persists_report(self, reporting_service):
        template = _create(reporting_service)

        report = await reporting_service.generate_report(
            OWNER, GenerateReportRequest(template_id=template.id)
        )

        assert report.id is not None
        assert report.template_id == template.id
        assert report.template_name == "SOC Overview"
        assert report.generated_by == OWNER
        assert [w["widgetId"] for w in report.data] == ["total-alerts", "by-severity", "agents"]
        assert report.data[0]["data"] == [{"count": 5}]
        assert len(report.data[2]["data"]) == 2
        assert report.meta_data["dataSourcesUsed"] == ["wazuh-alerts", "wazuh-agents"]
        assert report.meta_data["filtersSummary"] == "No filters applied"

    @pytest.mark.asyncio
    async def test_generated_report_round_trips_through_response_schema(self, reporting_service):
        template = _create(reporting_service)
        report = await reporting_service.generate_report(
            OWNER, GenerateReportRequest(template_id=template.id)
        )

        response = GeneratedReportResponse.model_validate(report)

        assert response.metadata.total_records == report.meta_data["totalRecords"]
        assert response.data[1].widget_type == "pie-chart"

    @pytest.mark.asyncio
    async def test_global_request_and_date_filters_are_merged(self, reporting_service, alerts_source):
        template = _create(
            reporting_service,
            globalFilters=[{"field": "agentName", "operator": "equals", "value": "web-01"}],
        )
        request = GenerateReportRequest(
            template_id=template.id,
            filters=[ReportFilter(field="severity", operator="equals", value="critical")],
            date_range=DateRange(start="2024-05-01T00:00:00Z", end="2024-05-01T23:59:59Z"),
        )

        report = await reporting_service.generate_report(OWNER, request)

        assert report.data[0]["data"] == [{"count": 1}]
        assert [f["field"] for f in report.filters] == ["agentName", "severity", "timestamp"]
        assert [f.field for f in alerts_source.calls[0]] == ["agentName", "severity", "timestamp"]
        assert "timestamp between 2024-05-01T00:00:00Z and 2024-05-01T23:59:59Z" in report.meta_data["filtersSummary"]

    @pytest.mark.asyncio
    async def test_widget_without_adapter_is_isolated(self, reporting_service):
        payload = template_payload()
        payload["widgets"].append(
            {"id": "cases", "type": "kpi", "title": "Cases", "dataSource": "iris-cases",
             "queryConfig": {"aggregation": {"field": "id", "type": "count"}}}
        )
        template = reporting_service.create_template(OWNER, ReportTemplateCreate.model_validate(payload))

        report = await reporting_service.generate_report(
            OWNER, GenerateReportRequest(template_id=template.id)
        )

        assert report.data[3]["error"] == "Unsupported data source: iris-cases"
        assert report.data[3]["data"] == []
        assert report.data[0]["error"] is None

    @pytest.mark.asyncio
    async def test_unknown_stored_data_source_aborts_generation(self, reporting_service, db_session):
        template = _create(reporting_service)
        widgets = [dict(w) for w in template.widgets]
        widgets[0]["dataSource"] = "splunk-events"
        template.widgets = widgets
        db_session.commit()

        with pytest.raises(UnsupportedDataSourceError):
            await reporting_service.generate_report(OWNER, GenerateReportRequest(template_id=template.id))

        assert reporting_service.list_generated_reports(OWNER)[1] == 0

    @pytest.mark.asyncio
    async def test_private_template_of_other_user(self, reporting_service):
        template = _create(reporting_service)

        with pytest.raises(AccessDeniedError):
            await reporting_service.generate_report(OTHER, GenerateReportRequest(template_id=template.id))

    @pytest.mark.asyncio
    async def test_public_template_of_other_user(self, reporting_service):
        template = _create(reporting_service, isPublic=True)

        report = await reporting_service.generate_report(
            OTHER, GenerateReportRequest(template_id=template.id)
        )

        assert report.generated_by == OTHER

    @pytest.mark.asyncio
    async def test_missing_template(self, reporting_service):
        with pytest.raises(TemplateNotFoundError):
            await reporting_service.generate_report(OWNER, GenerateReportRequest(template_id=uuid4()))

    @pytest.mark.asyncio
    async def test_report_survives_template_deletion(self, reporting_service):
        template = _create(reporting_service)
        report = await reporting_service.generate_report(
            OWNER, GenerateReportRequest(template_id=template.id)
        )

        reporting_service.delete_template(OWNER, template.id)

        assert reporting_service.get_generated_report(OWNER, report.id).template_name == "SOC Overview"


class TestGeneratedReportReads:
    """Reading stored reports."""

    @pytest.mark.asyncio
    async def test_only_generator_can_read(self, reporting_service):
        template = _create(reporting_service, isPublic=True)
        report = await reporting_service.generate_report(
            OWNER, GenerateReportRequest(template_id=template.id)
        )

        assert reporting_service.get_generated_report(OWNER, report.id).id == report.id
        with pytest.raises(GeneratedReportNotFoundError):
            reporting_service.get_generated_report(OTHER, report.id)
        with pytest.raises(GeneratedReportNotFoundError):
            reporting_service.get_generated_report(OWNER, uuid4())

    @pytest.mark.asyncio
    async def test_list_by_generator_and_template(self, reporting_service):
        first = _create(reporting_service, name="First")
        second = _create(reporting_service, name="Second")
        for template in (first, first, second):
            await reporting_service.generate_report(OWNER, GenerateReportRequest(template_id=template.id))

        reports, total = reporting_service.list_generated_reports(OWNER)
        assert total == 3
        assert len(reports) == 3

        reports, total = reporting_service.list_generated_reports(OWNER, template_id=first.id)
        assert total == 2
        assert {r.template_name for r in reports} == {"First"}

        reports, total = reporting_service.list_generated_reports(OWNER, skip=0, limit=1)
        assert total == 3
        assert len(reports) == 1

        assert reporting_service.list_generated_reports(OTHER) == ([], 0)


class TestDataSources:
    """Direct queries and data source discovery."""

    @pytest.mark.asyncio
    async def test_query_data(self, reporting_service):
        rows = await reporting_service.query_data(
            QueryDataRequest(data_source=DataSource.WAZUH_AGENTS, group_by=["status"])
        )
        assert {r["status"]: r["count"] for r in rows} == {"active": 2, "disconnected": 1}

    @pytest.mark.asyncio
    async def test_query_data_without_adapter(self, reporting_service):
        with pytest.raises(UnsupportedDataSourceError):
            await reporting_service.query_data(QueryDataRequest(data_source=DataSource.IRIS_CASES))

    def test_list_data_sources(self, reporting_service):
        available = {info.type: info.available for info in reporting_service.list_data_sources()}

        assert set(available) == set(DataSource)
        assert available[DataSource.WAZUH_ALERTS] is True
        assert available[DataSource.IRIS_CASES] is False

    def test_get_data_source_columns(self, reporting_service):
        result = reporting_service.get_data_source_columns(DataSource.WAZUH_ALERTS)
        assert result["columns"][0]["name"] == "id"
        assert result["filters"] == []

    def test_seed_predefined_templates(self, reporting_service):
        created = reporting_service.seed_predefined_templates()

        assert len(created) == 3
        assert reporting_service.seed_predefined_templates() == []
