"""Pydantic schemas for API requests and responses."""

from app.schemas.common import (
    ErrorDetail,
    ErrorResponse,
    PaginationMeta,
    StandardListResponse,
    StandardResponse,
)
from app.schemas.reporting import (
    DataSource,
    GeneratedReportResponse,
    GenerateReportRequest,
    QueryDataRequest,
    ReportFilter,
    ReportTemplateCreate,
    ReportTemplateResponse,
    ReportTemplateUpdate,
    WidgetConfig,
    WidgetData,
)

__all__ = [
    "DataSource",
    "ErrorDetail",
    "ErrorResponse",
    "GenerateReportRequest",
    "GeneratedReportResponse",
    "PaginationMeta",
    "QueryDataRequest",
    "ReportFilter",
    "ReportTemplateCreate",
    "ReportTemplateResponse",
    "ReportTemplateUpdate",
    "StandardListResponse",
    "StandardResponse",
    "WidgetConfig",
    "WidgetData",
]
