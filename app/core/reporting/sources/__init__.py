"""Data source adapters for the reporting engine."""

from functools import lru_cache

from app.core.config_file import Settings, get_settings
from app.core.reporting.clients import IrisClient, WazuhClient
from app.core.reporting.data_source import DataSourceRegistry
from app.core.reporting.sources.iris_cases_data_source import IrisCasesDataSource
from app.core.reporting.sources.wazuh_agents_data_source import WazuhAgentsDataSource
from app.core.reporting.sources.wazuh_alerts_data_source import WazuhAlertsDataSource
from app.core.reporting.sources.wazuh_rules_data_source import WazuhRulesDataSource


def build_default_registry(settings: Settings | None = None) -> DataSourceRegistry:
    """Build a registry with the Wazuh and IRIS adapters.

    The three Wazuh adapters share one client so the manager token is reused.
    """
    settings = settings or get_settings()
    wazuh = WazuhClient(settings)
    iris = IrisClient(settings)

    registry = DataSourceRegistry()
    registry.register(WazuhAlertsDataSource(wazuh))
    registry.register(WazuhAgentsDataSource(wazuh))
    registry.register(WazuhRulesDataSource(wazuh))
    registry.register(IrisCasesDataSource(iris))
    return registry


@lru_cache
def get_data_source_registry() -> DataSourceRegistry:
    """Get the process-wide registry (shares Wazuh tokens across requests)."""
    return build_default_registry()


__all__ = [
    "IrisCasesDataSource",
    "WazuhAgentsDataSource",
    "WazuhAlertsDataSource",
    "WazuhRulesDataSource",
    "build_default_registry",
    "get_data_source_registry",
]
