"""Wazuh rules data source for reporting."""

from collections.abc import Sequence
from typing import Any

from app.core.reporting.clients import WazuhClient
from app.core.reporting.data_source import BaseDataSource
from app.schemas.reporting import DataSource, Record, ReportFilter


class WazuhRulesDataSource(BaseDataSource):
    """Data source for the Wazuh manager rule set."""

    source_type = DataSource.WAZUH_RULES

    def __init__(self, client: WazuhClient):
        self.client = client

    async def fetch(self, filters: Sequence[ReportFilter]) -> list[Record]:
        rules = await self.client.get_rules()
        return [self.tag(dict(rule)) for rule in rules]

    def get_columns(self) -> list[dict[str, Any]]:
        return [
            {"name": "id", "type": "integer", "label": "ID"},
            {"name": "level", "type": "integer", "label": "Level"},
            {"name": "description", "type": "string", "label": "Description"},
            {"name": "groups", "type": "array", "label": "Groups"},
            {"name": "filename", "type": "string", "label": "File"},
            {"name": "status", "type": "string", "label": "Status"},
        ]
