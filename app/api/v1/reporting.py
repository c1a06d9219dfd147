"""Reporting router for templates, report generation and data queries."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user_id, get_reporting_service
from app.core.reporting.service import ReportingService
from app.schemas.common import PaginationMeta, StandardListResponse, StandardResponse
from app.schemas.reporting import (
    DataSource,
    DataSourceInfo,
    GeneratedReportResponse,
    GenerateReportRequest,
    QueryDataRequest,
    ReportCategory,
    ReportTemplateCreate,
    ReportTemplateResponse,
    ReportTemplateUpdate,
    TemplateVersionResponse,
)

router = APIRouter()


# Templates
@router.post(
    "/templates",
    response_model=StandardResponse[ReportTemplateResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create report template",
    description="Create a report template owned by the caller.",
)
async def create_template(
    template_data: ReportTemplateCreate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[ReportTemplateResponse]:
    """Create a report template."""
    template = service.create_template(user_id, template_data)
    return StandardResponse(
        data=ReportTemplateResponse.model_validate(template),
        message="Template created successfully",
    )


@router.get(
    "/templates",
    response_model=StandardListResponse[ReportTemplateResponse],
    status_code=status.HTTP_200_OK,
    summary="List report templates",
    description="List the caller's templates and all public templates.",
)
async def list_templates(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
    category: ReportCategory | None = Query(default=None, description="Filter by category"),
    tags: list[str] | None = Query(default=None, description="Match any of these tags"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Page size"),
) -> StandardListResponse[ReportTemplateResponse]:
    """List visible templates."""
    templates = service.list_templates(
        user_id, category=category.value if category else None, tags=tags
    )
    skip = (page - 1) * page_size
    return StandardListResponse(
        data=[
            ReportTemplateResponse.model_validate(t)
            for t in templates[skip : skip + page_size]
        ],
        meta=PaginationMeta.build(len(templates), page, page_size),
    )


@router.get(
    "/templates/{template_id}",
    response_model=StandardResponse[ReportTemplateResponse],
    status_code=status.HTTP_200_OK,
    summary="Get report template",
)
async def get_template(
    template_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[ReportTemplateResponse]:
    """Get a template visible to the caller."""
    template = service.get_template(user_id, template_id)
    return StandardResponse(
        data=ReportTemplateResponse.model_validate(template),
        message="Template retrieved successfully",
    )


@router.put(
    "/templates/{template_id}",
    response_model=StandardResponse[ReportTemplateResponse],
    status_code=status.HTTP_200_OK,
    summary="Update report template",
    description=(
        "Update a template owned by the caller. Send `version` to reject the "
        "update when the template changed since it was read."
    ),
)
async def update_template(
    template_id: UUID,
    template_data: ReportTemplateUpdate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[ReportTemplateResponse]:
    """Update a template."""
    template = service.update_template(user_id, template_id, template_data)
    return StandardResponse(
        data=ReportTemplateResponse.model_validate(template),
        message="Template updated successfully",
    )


@router.delete(
    "/templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete report template",
)
async def delete_template(
    template_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> None:
    """Delete a template owned by the caller."""
    service.delete_template(user_id, template_id)


@router.get(
    "/templates/{template_id}/versions",
    response_model=StandardResponse[list[TemplateVersionResponse]],
    status_code=status.HTTP_200_OK,
    summary="List template versions",
    description="List snapshots taken before each update, newest first.",
)
async def list_template_versions(
    template_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[list[TemplateVersionResponse]]:
    """List template versions."""
    versions = service.get_template_versions(user_id, template_id)
    return StandardResponse(
        data=[TemplateVersionResponse.model_validate(v) for v in versions],
        message="Versions retrieved successfully",
    )


# Generated reports
@router.post(
    "/generate",
    response_model=StandardResponse[GeneratedReportResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Generate report",
    description=(
        "Run every widget of a template and store the result. Widgets that "
        "fail carry an error instead of failing the request."
    ),
)
async def generate_report(
    request: GenerateReportRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[GeneratedReportResponse]:
    """Generate a report from a template."""
    report = await service.generate_report(user_id, request)
    return StandardResponse(
        data=GeneratedReportResponse.model_validate(report),
        message="Report generated successfully",
    )


@router.get(
    "/reports",
    response_model=StandardListResponse[GeneratedReportResponse],
    status_code=status.HTTP_200_OK,
    summary="List generated reports",
    description="List reports generated by the caller, newest first.",
)
async def list_reports(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
    template_id: UUID | None = Query(default=None, description="Filter by template"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Page size"),
) -> StandardListResponse[GeneratedReportResponse]:
    """List generated reports."""
    skip = (page - 1) * page_size
    reports, total = service.list_generated_reports(
        user_id, template_id=template_id, skip=skip, limit=page_size
    )
    return StandardListResponse(
        data=[GeneratedReportResponse.model_validate(r) for r in reports],
        meta=PaginationMeta.build(total, page, page_size),
    )


@router.get(
    "/reports/{report_id}",
    response_model=StandardResponse[GeneratedReportResponse],
    status_code=status.HTTP_200_OK,
    summary="Get generated report",
)
async def get_report(
    report_id: UUID,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[GeneratedReportResponse]:
    """Get a report generated by the caller."""
    report = service.get_generated_report(user_id, report_id)
    return StandardResponse(
        data=GeneratedReportResponse.model_validate(report),
        message="Report retrieved successfully",
    )


# Data sources
@router.post(
    "/data/query",
    response_model=StandardResponse[list[dict[str, Any]]],
    status_code=status.HTTP_200_OK,
    summary="Query data source",
    description="Query one data source directly, without a template.",
)
async def query_data(
    request: QueryDataRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[list[dict[str, Any]]]:
    """Run a direct data query."""
    rows = await service.query_data(request)
    return StandardResponse(
        data=rows,
        meta={"count": len(rows)},
        message="Data retrieved successfully",
    )


@router.get(
    "/data/sources",
    response_model=StandardResponse[list[DataSourceInfo]],
    status_code=status.HTTP_200_OK,
    summary="List data sources",
)
async def list_data_sources(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[list[DataSourceInfo]]:
    """List declared data sources and whether each is available."""
    return StandardResponse(
        data=service.list_data_sources(),
        message="Data sources retrieved successfully",
    )


@router.get(
    "/data/sources/{source}/columns",
    response_model=StandardResponse[dict[str, Any]],
    status_code=status.HTTP_200_OK,
    summary="Get data source columns",
    description="Get the columns of a data source and the filters it pushes down.",
)
async def get_data_source_columns(
    source: DataSource,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ReportingService, Depends(get_reporting_service)],
) -> StandardResponse[dict[str, Any]]:
    """Get columns for a data source."""
    return StandardResponse(
        data=service.get_data_source_columns(source),
        message="Columns retrieved successfully",
    )
