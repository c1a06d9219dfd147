"""Custom exceptions for the reporting module."""

from enum import Enum


class ReportingError(Exception):
    """Base exception for reporting errors."""

    pass


class TemplateNotFoundError(ReportingError):
    """Raised when a report template does not exist."""

    def __init__(self, template_id: object) -> None:
        super().__init__(f"Template with ID {template_id} not found")
        self.template_id = template_id


class GeneratedReportNotFoundError(ReportingError):
    """Raised when a generated report does not exist or is not visible."""

    def __init__(self, report_id: object) -> None:
        super().__init__(f"Report with ID {report_id} not found")
        self.report_id = report_id


class AccessDeniedError(ReportingError):
    """Raised when a user may not read or change a template."""

    pass


class VersionConflictError(ReportingError):
    """Raised when an update names a version other than the stored one."""

    def __init__(self, template_id: object, expected: int, current: int) -> None:
        super().__init__(
            f"Template {template_id} is at version {current}, update expected {expected}"
        )
        self.template_id = template_id
        self.expected = expected
        self.current = current


class UnsupportedDataSourceError(ReportingError):
    """Raised when a data source has no adapter (or is not a known data source)."""

    def __init__(self, data_source: object) -> None:
        super().__init__(f"Unsupported data source: {data_source}")
        self.data_source = data_source


class AdapterErrorKind(str, Enum):
    """Failure classes of a data source call."""

    NETWORK = "network"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    QUERY = "query"


class AdapterError(ReportingError):
    """Raised when a data source call fails."""

    def __init__(
        self,
        data_source: str,
        message: str,
        kind: AdapterErrorKind = AdapterErrorKind.QUERY,
    ) -> None:
        super().__init__(f"{data_source}: {message}")
        self.data_source = data_source
        self.kind = kind
