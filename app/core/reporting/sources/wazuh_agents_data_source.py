"""Wazuh agents data source for reporting."""

from collections.abc import Sequence
from typing import Any

from app.core.reporting.clients import WazuhClient
from app.core.reporting.data_source import BaseDataSource
from app.schemas.reporting import DataSource, Record, ReportFilter


class WazuhAgentsDataSource(BaseDataSource):
    """Data source for agents registered with the Wazuh manager.

    The manager returns the full inventory; every filter is applied locally.
    """

    source_type = DataSource.WAZUH_AGENTS

    def __init__(self, client: WazuhClient):
        self.client = client

    async def fetch(self, filters: Sequence[ReportFilter]) -> list[Record]:
        agents = await self.client.get_agents()
        return [self.tag(dict(agent)) for agent in agents]

    def get_columns(self) -> list[dict[str, Any]]:
        return [
            {"name": "id", "type": "string", "label": "ID"},
            {"name": "name", "type": "string", "label": "Name"},
            {"name": "ip", "type": "string", "label": "IP Address"},
            {"name": "status", "type": "string", "label": "Status"},
            {"name": "os.platform", "type": "string", "label": "Platform"},
            {"name": "os.name", "type": "string", "label": "OS"},
            {"name": "version", "type": "string", "label": "Agent Version"},
            {"name": "group", "type": "array", "label": "Groups"},
            {"name": "lastKeepAlive", "type": "datetime", "label": "Last Keep Alive"},
            {"name": "dateAdd", "type": "datetime", "label": "Registered"},
        ]
