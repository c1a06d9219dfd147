"""Reporting schemas for report templates, generated reports and data queries."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, JsonValue, model_validator
from pydantic.alias_generators import to_camel

# Loosely-typed record returned by a data source adapter
Record = dict[str, JsonValue]


class DataSource(str, Enum):
    """Logical origins of report records."""

    WAZUH_ALERTS = "wazuh-alerts"
    WAZUH_AGENTS = "wazuh-agents"
    WAZUH_RULES = "wazuh-rules"
    IRIS_CASES = "iris-cases"
    # Declared for templates, no adapter shipped yet
    VULNERABILITIES = "vulnerabilities"
    FIM_EVENTS = "fim-events"
    CUSTOM_QUERY = "custom-query"


class WidgetType(str, Enum):
    """Widget visualization types."""

    KPI = "kpi"
    BAR_CHART = "bar-chart"
    LINE_CHART = "line-chart"
    PIE_CHART = "pie-chart"
    AREA_CHART = "area-chart"
    DATA_TABLE = "data-table"
    HEATMAP = "heatmap"
    TIMELINE = "timeline"
    GEO_MAP = "geo-map"
    GAUGE = "gauge"
    FUNNEL = "funnel"
    SPARKLINE = "sparkline"


class FilterOperator(str, Enum):
    """Filter operators understood by the filter evaluator."""

    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not-contains"
    GREATER_THAN = "greater-than"
    LESS_THAN = "less-than"
    IN = "in"
    NOT_IN = "not-in"
    BETWEEN = "between"
    EXISTS = "exists"
    NOT_EXISTS = "not-exists"


class LogicalOperator(str, Enum):
    """Logical combinators for filters."""

    AND = "AND"
    OR = "OR"


class AggregationType(str, Enum):
    """Numeric reductions supported by the aggregator."""

    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"


class ReportCategory(str, Enum):
    """Report template categories."""

    SECURITY = "security"
    COMPLIANCE = "compliance"
    OPERATIONAL = "operational"
    EXECUTIVE = "executive"
    CUSTOM = "custom"


class SortOrder(str, Enum):
    """Sort directions."""

    ASC = "asc"
    DESC = "desc"


class ReportingModel(BaseModel):
    """Base model exposing camelCase names on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )


class ReportFilter(ReportingModel):
    """A single field/operator/value predicate."""

    field: str = Field(..., description="Dotted path into the record", min_length=1)
    # Unknown operators are kept verbatim; the evaluator fails open on them
    operator: FilterOperator | str = Field(..., description="Filter operator")
    value: Any = Field(None, description="Operand (list for in/not-in/between)")
    logical_operator: LogicalOperator | None = Field(
        None, description="Advisory combinator; lists are always ANDed"
    )


class Aggregation(ReportingModel):
    """Aggregation applied to a widget's records."""

    field: str = Field(..., description="Field to reduce", min_length=1)
    type: AggregationType = Field(..., description="Reduction type")


class SortBy(ReportingModel):
    """Sort configuration."""

    field: str = Field(..., min_length=1)
    order: SortOrder = SortOrder.ASC


class QueryConfig(ReportingModel):
    """Data-fetch contract of a widget."""

    filters: list[ReportFilter] = Field(default_factory=list)
    group_by: list[str] | None = Field(None, description="Fields to group by")
    aggregation: Aggregation | None = None
    sort_by: SortBy | None = None
    limit: int | None = Field(None, ge=1, description="Maximum number of raw records")


class WidgetPosition(ReportingModel):
    """Widget position in grid units."""

    x: int = 0
    y: int = 0
    w: int = 4
    h: int = 2


class WidgetConfig(ReportingModel):
    """One visualizable unit within a template."""

    id: str = Field(..., min_length=1, description="Unique within the template")
    type: WidgetType
    title: str
    description: str | None = None
    data_source: DataSource
    query_config: QueryConfig = Field(default_factory=QueryConfig)
    chart_config: dict[str, Any] | None = None
    table_config: dict[str, Any] | None = None
    position: WidgetPosition = Field(default_factory=WidgetPosition)


class LayoutConfig(ReportingModel):
    """Grid layout of a template."""

    columns: int = 12
    row_height: int = 100
    breakpoints: dict[str, int] | None = None


def _check_unique_widget_ids(widgets: list[WidgetConfig] | None) -> None:
    if not widgets:
        return
    seen: set[str] = set()
    for widget in widgets:
        if widget.id in seen:
            raise ValueError(f"Duplicate widget id '{widget.id}'")
        seen.add(widget.id)


class ReportTemplateCreate(ReportingModel):
    """Schema for creating a report template."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    category: ReportCategory = ReportCategory.CUSTOM
    widgets: list[WidgetConfig] = Field(default_factory=list)
    global_filters: list[ReportFilter] = Field(default_factory=list)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    styling: dict[str, Any] | None = None
    is_public: bool = False
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_widget_ids(self) -> "ReportTemplateCreate":
        _check_unique_widget_ids(self.widgets)
        return self


class ReportTemplateUpdate(ReportingModel):
    """Schema for updating a report template.

    ``version`` is optional: when present it must match the stored version.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category: ReportCategory | None = None
    widgets: list[WidgetConfig] | None = None
    global_filters: list[ReportFilter] | None = None
    layout: LayoutConfig | None = None
    styling: dict[str, Any] | None = None
    is_public: bool | None = None
    tags: list[str] | None = None
    version: int | None = Field(None, ge=1, description="Expected current version")
    change_description: str | None = Field(None, description="Note stored with the version snapshot")

    @model_validator(mode="after")
    def validate_widget_ids(self) -> "ReportTemplateUpdate":
        _check_unique_widget_ids(self.widgets)
        return self


class ReportTemplateResponse(ReportingModel):
    """Schema for report template response."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    name: str
    description: str
    category: ReportCategory
    widgets: list[WidgetConfig]
    global_filters: list[ReportFilter]
    layout: LayoutConfig
    styling: dict[str, Any] | None
    is_public: bool
    is_predefined: bool
    created_by: str
    version: int
    tags: list[str]
    created_at: datetime
    updated_at: datetime


class TemplateVersionResponse(ReportingModel):
    """Schema for a template version snapshot."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    template_id: UUID
    version: int
    template_data: dict[str, Any]
    changed_by: str
    change_description: str | None
    created_at: datetime


class DateRange(ReportingModel):
    """Inclusive date range (ISO 8601 strings)."""

    start: str
    end: str


class GenerateReportRequest(ReportingModel):
    """Schema for generating a report from a template."""

    template_id: UUID
    filters: list[ReportFilter] = Field(default_factory=list)
    date_range: DateRange | None = None


class WidgetData(ReportingModel):
    """Data produced for one widget."""

    widget_id: str
    widget_type: str
    data: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None


class ReportMetadata(ReportingModel):
    """Execution metadata of a generated report."""

    total_records: int = 0
    execution_time_ms: int = 0
    data_sources_used: list[DataSource] = Field(default_factory=list)
    filters_summary: str = ""


class ReportExecutionResult(ReportingModel):
    """Outcome of running all widgets of a template."""

    data: list[WidgetData]
    metadata: ReportMetadata


class GeneratedReportResponse(ReportingModel):
    """Schema for generated report response."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    template_id: UUID
    template_name: str
    generated_at: datetime
    generated_by: str
    filters: list[ReportFilter]
    data: list[WidgetData]
    # Stored as ``meta_data`` on the model, ``metadata`` is reserved by SQLAlchemy
    metadata: ReportMetadata = Field(
        validation_alias="meta_data", serialization_alias="metadata"
    )


class QueryDataRequest(ReportingModel):
    """Direct query against one data source, independent of any template."""

    data_source: DataSource
    filters: list[ReportFilter] = Field(default_factory=list)
    group_by: list[str] | None = None
    aggregation: Aggregation | None = None
    sort_by: SortBy | None = None
    limit: int | None = Field(None, ge=1)


class DataSourceInfo(ReportingModel):
    """Declared data source and whether an adapter serves it."""

    type: DataSource
    name: str
    available: bool
