"""DFIR-IRIS cases data source for reporting."""

import logging
from collections.abc import Sequence
from typing import Any

from app.core.reporting.clients import IrisClient
from app.core.reporting.data_source import BaseDataSource, pushdown_values
from app.schemas.reporting import DataSource, Record, ReportFilter

logger = logging.getLogger(__name__)


def normalize_severity(value: Any) -> str:
    """Map an IRIS severity label to critical, high, medium or low."""
    text = str(value or "").lower()
    if "critical" in text:
        return "critical"
    if "high" in text:
        return "high"
    if "medium" in text:
        return "medium"
    return "low"


def normalize_status(value: Any) -> str:
    """Map an IRIS case state to open, investigating or closed."""
    text = str(value or "").lower()
    if "closed" in text or "resolved" in text:
        return "closed"
    if "investigating" in text or "progress" in text:
        return "investigating"
    return "open"


def normalize_case(case: dict[str, Any]) -> Record:
    """Convert an IRIS case to a report record.

    Field names differ between IRIS versions, so severity and state are read
    from whichever variant is present.
    """
    severity = case.get("case_severity") or case.get("severity_name") or case.get("case_severity_name")
    state = case.get("case_state") or case.get("state_name") or case.get("case_state_name")
    opened = case.get("case_open_date")
    return {
        "id": str(case.get("case_id") or case.get("id") or ""),
        "title": case.get("case_name") or "Untitled Case",
        "description": case.get("case_description") or "",
        "severity": normalize_severity(severity),
        "status": normalize_status(state),
        "createdAt": opened,
        "updatedAt": opened,
        "assignedTo": case.get("owner") or "Unassigned",
        "customer": case.get("client_name") or case.get("customer_name"),
        "alerts": case.get("alerts") or [],
    }


class IrisCasesDataSource(BaseDataSource):
    """Data source for DFIR-IRIS cases."""

    source_type = DataSource.IRIS_CASES

    def __init__(self, client: IrisClient):
        """Initialize cases data source.

        Args:
            client: IRIS client
        """
        self.client = client

    async def fetch(self, filters: Sequence[ReportFilter]) -> list[Record]:
        """Fetch cases, narrowed by any severity/status filters.

        IRIS has no server-side filtering for these fields, so the narrowing
        runs on the normalized values right after the fetch.

        Args:
            filters: Merged filter list

        Returns:
            Normalized case records
        """
        severities: set[str] | None = None
        statuses: set[str] | None = None
        for report_filter in filters:
            values = pushdown_values(report_filter)
            if values is None:
                continue
            if report_filter.field == "severity":
                severities = {str(v) for v in values}
            elif report_filter.field == "status":
                statuses = {str(v) for v in values}

        cases = [normalize_case(case) for case in await self.client.get_cases()]
        if severities is not None:
            cases = [c for c in cases if c["severity"] in severities]
        if statuses is not None:
            cases = [c for c in cases if c["status"] in statuses]
        logger.debug(f"IRIS cases after narrowing: {len(cases)}")
        return [self.tag(case) for case in cases]

    def get_columns(self) -> list[dict[str, Any]]:
        return [
            {"name": "id", "type": "string", "label": "ID"},
            {"name": "title", "type": "string", "label": "Title"},
            {"name": "description", "type": "string", "label": "Description"},
            {"name": "severity", "type": "string", "label": "Severity"},
            {"name": "status", "type": "string", "label": "Status"},
            {"name": "createdAt", "type": "datetime", "label": "Opened"},
            {"name": "assignedTo", "type": "string", "label": "Owner"},
            {"name": "customer", "type": "string", "label": "Customer"},
        ]

    def get_filters(self) -> list[dict[str, Any]]:
        return [
            {"name": "severity", "type": "string", "label": "Severity", "operators": ["equals", "in"]},
            {"name": "status", "type": "string", "label": "Status", "operators": ["equals", "in"]},
        ]
