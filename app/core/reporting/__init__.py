"""Report data engine: adapters, filter pipeline, generation and templates."""

from app.core.reporting.data_source import BaseDataSource, DataSourceRegistry
from app.core.reporting.engine import ReportingEngine
from app.core.reporting.filters import FilterEvaluator
from app.core.reporting.planner import WidgetQueryPlanner
from app.core.reporting.service import ReportingService
from app.core.reporting.templates import ReportTemplateManager

__all__ = [
    "BaseDataSource",
    "DataSourceRegistry",
    "FilterEvaluator",
    "ReportTemplateManager",
    "ReportingEngine",
    "ReportingService",
    "WidgetQueryPlanner",
]
