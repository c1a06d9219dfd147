"""Wazuh alerts data source for reporting."""

import logging
from collections.abc import Sequence
from typing import Any

from app.core.reporting.clients import AlertQuery, WazuhClient
from app.core.reporting.data_source import BaseDataSource, pushdown_values
from app.schemas.reporting import DataSource, FilterOperator, Record, ReportFilter

logger = logging.getLogger(__name__)


def level_to_severity(level: Any) -> str:
    """Map a Wazuh rule level (0-15) to a severity label."""
    try:
        level = int(level or 0)
    except (TypeError, ValueError):
        level = 0
    if level >= 12:
        return "critical"
    if level >= 7:
        return "high"
    if level >= 4:
        return "medium"
    if level >= 2:
        return "low"
    return "info"


def normalize_alert(alert: dict[str, Any]) -> Record:
    """Convert a Wazuh alert to a flat report record.

    ``rule`` and ``agent`` are kept as nested objects so widgets can group by
    paths such as ``rule.groups`` or ``agent.name``.
    """
    rule = alert.get("rule") or {}
    agent = alert.get("agent") or {}
    return {
        "id": alert.get("id") or f"{alert.get('timestamp')}-{rule.get('id')}",
        "title": rule.get("description") or "Unknown Alert",
        "description": alert.get("full_log") or rule.get("description") or "",
        "severity": level_to_severity(rule.get("level")),
        "status": "open",
        "source": f"Agent: {agent.get('name') or 'Unknown'}",
        "timestamp": alert.get("timestamp"),
        "agentId": agent.get("id"),
        "agentName": agent.get("name"),
        "ruleId": rule.get("id"),
        "ruleLevel": rule.get("level"),
        "rule": rule,
        "agent": agent,
    }


class WazuhAlertsDataSource(BaseDataSource):
    """Data source for Wazuh alerts (indexer first, manager API as fallback)."""

    source_type = DataSource.WAZUH_ALERTS

    def __init__(self, client: WazuhClient):
        """Initialize alerts data source.

        Args:
            client: Wazuh client
        """
        self.client = client

    def build_query(self, filters: Sequence[ReportFilter]) -> AlertQuery:
        """Translate the pushable part of a filter list into an alert query.

        Args:
            filters: Merged filter list

        Returns:
            Alert query; filters that cannot be pushed down are left out
        """
        query = AlertQuery()
        for report_filter in filters:
            operator = getattr(report_filter.operator, "value", report_filter.operator)
            if report_filter.field == "timestamp":
                value = report_filter.value
                if operator == FilterOperator.BETWEEN.value and isinstance(value, (list, tuple)) and len(value) >= 2:
                    query.start_date = str(value[0])
                    query.end_date = str(value[1])
                continue

            values = pushdown_values(report_filter)
            if values is None:
                continue
            if report_filter.field == "severity":
                query.severity = [str(v) for v in values]
            elif report_filter.field == "agentId" and len(values) == 1:
                query.agent_id = str(values[0])
            elif report_filter.field == "ruleId" and len(values) == 1:
                query.rule_id = str(values[0])
        return query

    async def fetch(self, filters: Sequence[ReportFilter]) -> list[Record]:
        """Fetch alerts matching the pushable filters.

        Args:
            filters: Merged filter list

        Returns:
            Normalized alert records
        """
        query = self.build_query(filters)
        logger.debug(f"Alert query pushed down: {query}")
        alerts = await self.client.get_alerts(query)
        return [self.tag(normalize_alert(alert)) for alert in alerts]

    def get_columns(self) -> list[dict[str, Any]]:
        """Get available columns for alerts.

        Returns:
            List of column definitions
        """
        return [
            {"name": "id", "type": "string", "label": "ID"},
            {"name": "title", "type": "string", "label": "Title"},
            {"name": "description", "type": "string", "label": "Description"},
            {"name": "severity", "type": "string", "label": "Severity"},
            {"name": "status", "type": "string", "label": "Status"},
            {"name": "source", "type": "string", "label": "Source"},
            {"name": "timestamp", "type": "datetime", "label": "Timestamp"},
            {"name": "agentId", "type": "string", "label": "Agent ID"},
            {"name": "agentName", "type": "string", "label": "Agent"},
            {"name": "ruleId", "type": "string", "label": "Rule ID"},
            {"name": "ruleLevel", "type": "integer", "label": "Rule Level"},
        ]

    def get_filters(self) -> list[dict[str, Any]]:
        """Get the filters pushed down to Wazuh.

        Returns:
            List of filter definitions
        """
        return [
            {"name": "timestamp", "type": "datetime", "label": "Time Range", "operators": ["between"]},
            {"name": "severity", "type": "string", "label": "Severity", "operators": ["equals", "in"]},
            {"name": "agentId", "type": "string", "label": "Agent ID", "operators": ["equals"]},
            {"name": "ruleId", "type": "string", "label": "Rule ID", "operators": ["equals"]},
        ]
