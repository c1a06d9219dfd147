"""System-provided report templates seeded into every installation."""

from datetime import UTC, datetime, timedelta
from typing import Any

from app.schemas.reporting import ReportTemplateCreate

SYSTEM_USER = "system"

_LAYOUT = {"columns": 12, "rowHeight": 80}


def _count(field: str = "id") -> dict[str, Any]:
    return {"field": field, "type": "count"}


def _equals(field: str, value: Any) -> dict[str, Any]:
    return {"field": field, "operator": "equals", "value": value}


def _kpi(widget_id: str, title: str, source: str, filters: list, position: dict, description: str | None = None) -> dict[str, Any]:
    return {
        "id": widget_id,
        "type": "kpi",
        "title": title,
        "description": description,
        "dataSource": source,
        "queryConfig": {"filters": filters, "aggregation": _count()},
        "position": position,
    }


def _grouped(widget_type: str, widget_id: str, title: str, source: str, field: str, position: dict, **extra: Any) -> dict[str, Any]:
    widget = {
        "id": widget_id,
        "type": widget_type,
        "title": title,
        "dataSource": source,
        "queryConfig": {"filters": [], "groupBy": [field]},
        "position": position,
    }
    widget.update(extra)
    return widget


def daily_security_summary(now: datetime) -> dict[str, Any]:
    """Overview of security events from the last 24 hours."""
    alerts = "wazuh-alerts"
    return {
        "name": "Daily Security Summary",
        "description": "Comprehensive overview of security events and alerts from the last 24 hours",
        "category": "security",
        "widgets": [
            _kpi("total-alerts-kpi", "Total Alerts", alerts, [], {"x": 0, "y": 0, "w": 3, "h": 2},
                 "Total number of alerts in the last 24 hours"),
            _kpi("critical-alerts-kpi", "Critical Alerts", alerts, [_equals("severity", "critical")],
                 {"x": 3, "y": 0, "w": 3, "h": 2}, "Critical severity alerts"),
            _kpi("high-alerts-kpi", "High Alerts", alerts, [_equals("severity", "high")],
                 {"x": 6, "y": 0, "w": 3, "h": 2}, "High severity alerts"),
            _kpi("active-agents-kpi", "Active Agents", "wazuh-agents", [_equals("status", "active")],
                 {"x": 9, "y": 0, "w": 3, "h": 2}, "Number of active agents"),
            _grouped(
                "line-chart", "alert-trend-line", "Alert Trend", alerts, "timestamp",
                {"x": 0, "y": 2, "w": 6, "h": 4},
                chartConfig={
                    "xAxis": {"field": "timestamp", "label": "Date"},
                    "yAxis": {"field": "count", "label": "Number of Alerts"},
                    "series": [{"field": "count", "name": "Alerts", "color": "#3b82f6"}],
                    "showLegend": True,
                    "showTooltip": True,
                },
            ),
            _grouped(
                "pie-chart", "severity-distribution-pie", "Alerts by Severity", alerts, "severity",
                {"x": 6, "y": 2, "w": 6, "h": 4},
                chartConfig={
                    "colorScheme": ["#ef4444", "#f97316", "#eab308", "#3b82f6", "#6b7280"],
                    "showLegend": True,
                    "showDataLabels": True,
                },
            ),
            {
                "id": "top-rules-bar",
                "type": "bar-chart",
                "title": "Top 10 Triggered Rules",
                "description": "Most frequently triggered rules",
                "dataSource": alerts,
                "queryConfig": {
                    "filters": [],
                    "groupBy": ["rule.description"],
                    "sortBy": {"field": "count", "order": "desc"},
                    "limit": 10,
                },
                "chartConfig": {
                    "xAxis": {"field": "rule.description", "label": "Rule"},
                    "yAxis": {"field": "count", "label": "Count"},
                    "series": [{"field": "count", "name": "Triggers", "color": "#10b981"}],
                },
                "position": {"x": 0, "y": 6, "w": 12, "h": 4},
            },
            {
                "id": "critical-alerts-table",
                "type": "data-table",
                "title": "Critical Alerts",
                "description": "Detailed view of critical and high severity alerts",
                "dataSource": alerts,
                "queryConfig": {
                    "filters": [{"field": "severity", "operator": "in", "value": ["critical", "high"]}],
                    "sortBy": {"field": "timestamp", "order": "desc"},
                    "limit": 50,
                },
                "tableConfig": {
                    "columns": [
                        {"field": "timestamp", "header": "Time", "sortable": True},
                        {"field": "severity", "header": "Severity", "sortable": True, "filterable": True},
                        {"field": "title", "header": "Alert"},
                        {"field": "source", "header": "Source", "sortable": True},
                        {"field": "status", "header": "Status", "sortable": True, "filterable": True},
                    ],
                    "pagination": {"enabled": True, "pageSize": 10},
                },
                "position": {"x": 0, "y": 10, "w": 12, "h": 5},
            },
        ],
        "globalFilters": [
            {
                "field": "timestamp",
                "operator": "greater-than",
                "value": (now - timedelta(hours=24)).isoformat(),
            }
        ],
        "layout": _LAYOUT,
        "styling": {"theme": "light", "primaryColor": "#3b82f6", "secondaryColor": "#8b5cf6"},
        "isPublic": True,
        "tags": ["security", "daily", "overview"],
    }


def agent_health_dashboard(now: datetime) -> dict[str, Any]:
    """Health and connectivity of all Wazuh agents."""
    agents = "wazuh-agents"
    return {
        "name": "Agent Health Dashboard",
        "description": "Real-time monitoring of agent health, connectivity, and performance",
        "category": "operational",
        "widgets": [
            _kpi("total-agents-kpi", "Total Agents", agents, [], {"x": 0, "y": 0, "w": 3, "h": 2}),
            _kpi("active-agents-kpi", "Active Agents", agents, [_equals("status", "active")],
                 {"x": 3, "y": 0, "w": 3, "h": 2}),
            _kpi("disconnected-agents-kpi", "Disconnected", agents, [_equals("status", "disconnected")],
                 {"x": 6, "y": 0, "w": 3, "h": 2}),
            _grouped(
                "pie-chart", "agent-status-pie", "Agent Status Distribution", agents, "status",
                {"x": 0, "y": 2, "w": 6, "h": 4},
                chartConfig={"colorScheme": ["#10b981", "#ef4444", "#f97316"], "showLegend": True},
            ),
            _grouped(
                "bar-chart", "agent-os-bar", "Agents by Operating System", agents, "os.platform",
                {"x": 6, "y": 2, "w": 6, "h": 4},
                chartConfig={
                    "xAxis": {"field": "os.platform", "label": "OS"},
                    "yAxis": {"field": "count", "label": "Count"},
                },
            ),
            {
                "id": "agents-table",
                "type": "data-table",
                "title": "All Agents",
                "dataSource": agents,
                "queryConfig": {"filters": [], "sortBy": {"field": "name", "order": "asc"}, "limit": 100},
                "tableConfig": {
                    "columns": [
                        {"field": "name", "header": "Agent Name", "sortable": True},
                        {"field": "id", "header": "ID", "sortable": True},
                        {"field": "ip", "header": "IP Address"},
                        {"field": "os.name", "header": "Operating System", "sortable": True},
                        {"field": "status", "header": "Status", "sortable": True, "filterable": True},
                    ],
                    "pagination": {"enabled": True, "pageSize": 20},
                },
                "position": {"x": 0, "y": 6, "w": 12, "h": 6},
            },
        ],
        "globalFilters": [],
        "layout": _LAYOUT,
        "isPublic": True,
        "tags": ["operational", "agents", "monitoring"],
    }


def weekly_threat_report(now: datetime) -> dict[str, Any]:
    """Executive summary of incidents from the past week."""
    cases = "iris-cases"
    return {
        "name": "Weekly Threat Report",
        "description": "Executive summary of security threats and incidents from the past week",
        "category": "executive",
        "widgets": [
            _kpi("total-incidents-kpi", "Total Incidents", cases, [], {"x": 0, "y": 0, "w": 4, "h": 2}),
            _kpi("critical-incidents-kpi", "Critical Incidents", cases, [_equals("severity", "critical")],
                 {"x": 4, "y": 0, "w": 4, "h": 2}),
            _kpi("resolved-incidents-kpi", "Resolved", cases, [_equals("status", "closed")],
                 {"x": 8, "y": 0, "w": 4, "h": 2}),
            _grouped(
                "area-chart", "incident-trend", "Incident Trend", cases, "createdAt",
                {"x": 0, "y": 2, "w": 12, "h": 4},
                chartConfig={
                    "xAxis": {"field": "createdAt", "label": "Date"},
                    "yAxis": {"field": "count", "label": "Incidents"},
                    "series": [{"field": "count", "name": "Incidents", "color": "#8b5cf6"}],
                },
            ),
            _grouped("bar-chart", "severity-breakdown", "Incidents by Severity", cases, "severity",
                     {"x": 0, "y": 6, "w": 6, "h": 4}),
            _grouped("pie-chart", "status-breakdown", "Incidents by Status", cases, "status",
                     {"x": 6, "y": 6, "w": 6, "h": 4}),
        ],
        "globalFilters": [
            {
                "field": "createdAt",
                "operator": "greater-than",
                "value": (now - timedelta(days=7)).isoformat(),
            }
        ],
        "layout": _LAYOUT,
        "isPublic": True,
        "tags": ["executive", "weekly", "threats"],
    }


def get_predefined_templates(now: datetime | None = None) -> list[ReportTemplateCreate]:
    """Build the predefined templates.

    Relative time filters ("last 24 hours", "last 7 days") are resolved
    against ``now`` when the templates are built.

    Args:
        now: Reference time (defaults to the current UTC time)

    Returns:
        Validated template definitions
    """
    now = now or datetime.now(UTC)
    builders = (daily_security_summary, agent_health_dashboard, weekly_threat_report)
    return [ReportTemplateCreate.model_validate(build(now)) for build in builders]
