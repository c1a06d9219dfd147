"""Custom exceptions for API error handling."""

from typing import Any

from fastapi import HTTPException, status

from app.core.reporting.exceptions import (
    AccessDeniedError,
    AdapterError,
    GeneratedReportNotFoundError,
    ReportingError,
    TemplateNotFoundError,
    UnsupportedDataSourceError,
    VersionConflictError,
)


class APIException(HTTPException):
    """Custom exception for API errors with standard format.

    Example:
        raise APIException(
            code="REPORTING_TEMPLATE_NOT_FOUND",
            message="Template not found",
            status_code=status.HTTP_404_NOT_FOUND
        )
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API exception.

        Args:
            code: Error code (e.g., 'REPORTING_ACCESS_DENIED').
            message: Human-readable error message.
            status_code: HTTP status code (default: 400).
            details: Optional additional error details.
        """
        super().__init__(
            status_code=status_code,
            detail={"error": {"code": code, "message": message, "details": details}},
        )
        self.code = code
        self.message = message
        self.details = details


# (exception type, status code, error code), most specific first
_REPORTING_ERRORS: list[tuple[type[ReportingError], int, str]] = [
    (TemplateNotFoundError, status.HTTP_404_NOT_FOUND, "REPORTING_TEMPLATE_NOT_FOUND"),
    (GeneratedReportNotFoundError, status.HTTP_404_NOT_FOUND, "REPORTING_REPORT_NOT_FOUND"),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN, "REPORTING_ACCESS_DENIED"),
    (UnsupportedDataSourceError, status.HTTP_400_BAD_REQUEST, "REPORTING_UNSUPPORTED_DATA_SOURCE"),
    (VersionConflictError, status.HTTP_409_CONFLICT, "REPORTING_VERSION_CONFLICT"),
    (AdapterError, status.HTTP_502_BAD_GATEWAY, "REPORTING_DATA_SOURCE_ERROR"),
]


def to_api_exception(exc: ReportingError) -> APIException:
    """Convert a reporting domain error to an APIException.

    Args:
        exc: Domain error raised by the reporting engine.

    Returns:
        APIException with the matching status and error code.
    """
    details: dict[str, Any] | None = None
    if isinstance(exc, VersionConflictError):
        details = {"expected_version": exc.expected, "current_version": exc.current}
    elif isinstance(exc, AdapterError):
        details = {"data_source": exc.data_source, "kind": exc.kind.value}

    for error_type, status_code, code in _REPORTING_ERRORS:
        if isinstance(exc, error_type):
            return APIException(code=code, message=str(exc), status_code=status_code, details=details)
    return APIException(
        code="REPORTING_ERROR",
        message=str(exc),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
