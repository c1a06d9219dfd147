"""Helper classes and builders for tests."""

import asyncio
from collections.abc import Sequence
from typing import Any

from app.core.reporting.data_source import BaseDataSource, DataSourceRegistry
from app.schemas.reporting import DataSource, Record, ReportFilter, WidgetConfig


class FakeDataSource(BaseDataSource):
    """In-memory data source returning canned records.

    Args:
        source_type: Data source served
        records: Records returned by every fetch (copied per call)
        delay: Seconds to sleep before answering
        error: Exception raised instead of answering
    """

    def __init__(
        self,
        source_type: DataSource,
        records: Sequence[Record] = (),
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self.source_type = source_type
        self.records = list(records)
        self.delay = delay
        self.error = error
        self.calls: list[list[ReportFilter]] = []

    async def fetch(self, filters: Sequence[ReportFilter]) -> list[Record]:
        self.calls.append(list(filters))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [self.tag(dict(record)) for record in self.records]

    def get_columns(self) -> list[dict[str, Any]]:
        return [{"name": "id", "type": "string", "label": "ID"}]


def make_registry(*adapters: BaseDataSource) -> DataSourceRegistry:
    registry = DataSourceRegistry()
    for adapter in adapters:
        registry.register(adapter)
    return registry


def make_widget(
    widget_id: str,
    data_source: str = "wazuh-alerts",
    widget_type: str = "data-table",
    **query_config: Any,
) -> WidgetConfig:
    """Build a widget from camelCase query config keys (``groupBy=[...]``)."""
    return WidgetConfig.model_validate(
        {
            "id": widget_id,
            "type": widget_type,
            "title": widget_id.replace("-", " ").title(),
            "dataSource": data_source,
            "queryConfig": query_config,
        }
    )


def alert_record(
    alert_id: str,
    severity: str,
    agent: str = "web-01",
    timestamp: str = "2024-05-01T10:00:00Z",
    level: int = 5,
) -> Record:
    return {
        "id": alert_id,
        "title": f"Alert {alert_id}",
        "severity": severity,
        "status": "open",
        "timestamp": timestamp,
        "agentName": agent,
        "ruleLevel": level,
        "rule": {"id": "5710", "level": level, "groups": ["sshd", "authentication_failed"]},
        "agent": {"id": "001", "name": agent},
    }


SAMPLE_ALERTS: list[Record] = [
    alert_record("a1", "critical", agent="web-01", timestamp="2024-05-01T08:00:00Z", level=12),
    alert_record("a2", "high", agent="web-01", timestamp="2024-05-01T09:00:00Z", level=8),
    alert_record("a3", "high", agent="db-01", timestamp="2024-05-02T10:00:00Z", level=9),
    alert_record("a4", "low", agent="db-01", timestamp="2024-05-03T11:00:00Z", level=3),
    alert_record("a5", "medium", agent="mail-01", timestamp="2024-05-04T12:00:00Z", level=5),
]

SAMPLE_AGENTS: list[Record] = [
    {"id": "001", "name": "web-01", "status": "active", "os": {"platform": "ubuntu"}},
    {"id": "002", "name": "db-01", "status": "active", "os": {"platform": "centos"}},
    {"id": "003", "name": "mail-01", "status": "disconnected", "os": {"platform": "ubuntu"}},
]


def template_payload(**overrides: Any) -> dict[str, Any]:
    """Template creation payload in wire (camelCase) form."""
    payload: dict[str, Any] = {
        "name": "SOC Overview",
        "description": "Alerts and agents",
        "category": "security",
        "widgets": [
            {
                "id": "total-alerts",
                "type": "kpi",
                "title": "Total Alerts",
                "dataSource": "wazuh-alerts",
                "queryConfig": {"aggregation": {"field": "id", "type": "count"}},
            },
            {
                "id": "by-severity",
                "type": "pie-chart",
                "title": "By Severity",
                "dataSource": "wazuh-alerts",
                "queryConfig": {"groupBy": ["severity"]},
            },
            {
                "id": "agents",
                "type": "data-table",
                "title": "Agents",
                "dataSource": "wazuh-agents",
                "queryConfig": {"filters": [{"field": "status", "operator": "equals", "value": "active"}]},
            },
        ],
        "globalFilters": [],
        "isPublic": False,
        "tags": ["soc", "daily"],
    }
    payload.update(overrides)
    return payload
