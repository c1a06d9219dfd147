"""Reporting service for templates, report generation and data queries."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config_file import Settings, get_settings
from app.core.logging import log_report_generated
from app.core.reporting.data_source import DataSourceRegistry
from app.core.reporting.engine import ReportingEngine, build_report_filters
from app.core.reporting.exceptions import (
    GeneratedReportNotFoundError,
    UnsupportedDataSourceError,
)
from app.core.reporting.planner import WidgetQueryPlanner
from app.core.reporting.predefined import get_predefined_templates
from app.core.reporting.sources import build_default_registry
from app.core.reporting.templates import ReportTemplateManager
from app.models.reporting import GeneratedReport, ReportTemplate, ReportTemplateVersion
from app.repositories.reporting_repository import ReportingRepository
from app.schemas.reporting import (
    DataSource,
    DataSourceInfo,
    GenerateReportRequest,
    QueryDataRequest,
    Record,
    ReportFilter,
    ReportTemplateCreate,
    ReportTemplateUpdate,
    WidgetConfig,
)

logger = logging.getLogger(__name__)

_DATA_SOURCE_VALUES = {source.value for source in DataSource}


class ReportingService:
    """Service for managing report templates and generating reports."""

    def __init__(
        self,
        db: Session,
        registry: DataSourceRegistry | None = None,
        settings: Settings | None = None,
    ):
        """Initialize service.

        Args:
            db: Database session
            registry: Data source adapters (defaults to the Wazuh/IRIS adapters)
            settings: Application settings
        """
        self.db = db
        self.settings = settings or get_settings()
        self.repository = ReportingRepository(db)
        self.templates = ReportTemplateManager(self.repository)
        self.registry = registry or build_default_registry(self.settings)
        self.planner = WidgetQueryPlanner(
            self.registry, default_limit=self.settings.REPORT_DEFAULT_LIMIT
        )
        self.engine = ReportingEngine(
            self.planner,
            max_concurrency=self.settings.REPORT_MAX_CONCURRENT_WIDGETS,
            widget_timeout=self.settings.REPORT_WIDGET_TIMEOUT_SECONDS,
            generation_timeout=self.settings.REPORT_GENERATION_TIMEOUT_SECONDS,
        )

    # Templates
    def create_template(self, user_id: str, data: ReportTemplateCreate) -> ReportTemplate:
        return self.templates.create(user_id, data)

    def get_template(self, user_id: str, template_id: UUID) -> ReportTemplate:
        return self.templates.get(user_id, template_id)

    def update_template(
        self, user_id: str, template_id: UUID, patch: ReportTemplateUpdate
    ) -> ReportTemplate:
        return self.templates.update(user_id, template_id, patch)

    def delete_template(self, user_id: str, template_id: UUID) -> None:
        self.templates.delete(user_id, template_id)

    def list_templates(
        self,
        user_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> list[ReportTemplate]:
        return self.templates.list_templates(user_id, category, tags)

    def get_template_versions(
        self, user_id: str, template_id: UUID
    ) -> list[ReportTemplateVersion]:
        return self.templates.get_versions(user_id, template_id)

    def seed_predefined_templates(self) -> list[ReportTemplate]:
        """Create any missing predefined templates."""
        return self.templates.ensure_predefined(get_predefined_templates())

    # Generation
    def _resolve_widgets(self, template: ReportTemplate) -> list[WidgetConfig]:
        """Validate the stored widgets of a template.

        Raises:
            UnsupportedDataSourceError: If a widget names an unknown data source
        """
        widgets = []
        for raw in template.widgets or []:
            source = raw.get("dataSource") if isinstance(raw, dict) else None
            if source not in _DATA_SOURCE_VALUES:
                raise UnsupportedDataSourceError(source)
            widgets.append(WidgetConfig.model_validate(raw))
        return widgets

    async def generate_report(
        self, user_id: str, request: GenerateReportRequest
    ) -> GeneratedReport:
        """Generate and persist a report from a template.

        Args:
            user_id: Caller; must be able to read the template
            request: Template ID, request filters and optional date range

        Returns:
            Persisted generated report

        Raises:
            TemplateNotFoundError: If the template does not exist
            AccessDeniedError: If the template is not visible to the caller
            UnsupportedDataSourceError: If a widget names an unknown data source
        """
        template = self.templates.get(user_id, request.template_id, action="generate")
        widgets = self._resolve_widgets(template)
        global_filters = [ReportFilter.model_validate(f) for f in template.global_filters or []]
        report_filters = build_report_filters(
            global_filters,
            request.filters,
            request.date_range,
            date_field=self.settings.REPORT_DATE_RANGE_FIELD,
        )

        result = await self.engine.execute(widgets, report_filters)

        report = self.repository.create_generated_report(
            {
                "template_id": template.id,
                "template_name": template.name,
                "generated_by": user_id,
                "filters": [f.model_dump(mode="json", by_alias=True) for f in report_filters],
                "data": [w.model_dump(mode="json", by_alias=True) for w in result.data],
                "meta_data": result.metadata.model_dump(mode="json", by_alias=True),
            }
        )
        log_report_generated(
            report_id=str(report.id),
            template_id=str(template.id),
            user_id=user_id,
            execution_time_ms=result.metadata.execution_time_ms,
            total_records=result.metadata.total_records,
            failed_widgets=sum(1 for w in result.data if w.error),
        )
        return report

    def get_generated_report(self, user_id: str, report_id: UUID) -> GeneratedReport:
        """Get a report generated by the caller.

        Raises:
            GeneratedReportNotFoundError: If absent or generated by someone else
        """
        report = self.repository.get_generated_report_by_id(report_id)
        if not report or report.generated_by != user_id:
            raise GeneratedReportNotFoundError(report_id)
        return report

    def list_generated_reports(
        self,
        user_id: str,
        template_id: UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[GeneratedReport], int]:
        """List reports generated by the caller, newest first.

        Returns:
            Tuple of (page of reports, total count)
        """
        reports = self.repository.get_generated_reports(user_id, template_id, skip, limit)
        total = self.repository.count_generated_reports(user_id, template_id)
        return reports, total

    # Data sources
    async def query_data(self, request: QueryDataRequest) -> list[Record]:
        """Run a direct query against one data source."""
        return await self.planner.query_data(request)

    def list_data_sources(self) -> list[DataSourceInfo]:
        return self.registry.list_data_sources()

    def get_data_source_columns(self, source: DataSource) -> dict[str, Any]:
        """Describe the columns and pushable filters of a data source.

        Raises:
            UnsupportedDataSourceError: If no adapter serves the data source
        """
        adapter = self.registry.get(source)
        return {"columns": adapter.get_columns(), "filters": adapter.get_filters()}
