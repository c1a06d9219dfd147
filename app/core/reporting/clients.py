"""Async HTTP clients for the Wazuh and IRIS backends used by the report adapters."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from app.core.config_file import Settings
from app.core.reporting.exceptions import AdapterError, AdapterErrorKind

logger = logging.getLogger(__name__)

# Manager tokens live 15 minutes; refresh one minute early
TOKEN_TTL_SECONDS = 14 * 60

INDEXER_ALERTS_PATH = "/wazuh-alerts-*/_search"
MANAGER_ALERT_ENDPOINTS = ("/security/events", "/mitre", "/syscheck")

SEVERITY_LEVEL_RANGES: dict[str, dict[str, int]] = {
    "critical": {"gte": 12},
    "high": {"gte": 7, "lt": 12},
    "medium": {"gte": 4, "lt": 7},
    "low": {"gte": 2, "lt": 4},
    "info": {"lt": 2},
}

SEVERITY_MANAGER_QUERIES: dict[str, str] = {
    "critical": "rule.level>=12",
    "high": "rule.level>=7,rule.level<12",
    "medium": "rule.level>=4,rule.level<7",
    "low": "rule.level>=2,rule.level<4",
    "info": "rule.level<2",
}


def _adapter_error(source: str, exc: Exception) -> AdapterError:
    """Translate an httpx failure into a typed adapter error."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            kind = AdapterErrorKind.AUTH
        elif status == 404:
            kind = AdapterErrorKind.NOT_FOUND
        else:
            kind = AdapterErrorKind.QUERY
        return AdapterError(source, f"HTTP {status} from {exc.request.url}", kind)
    if isinstance(exc, httpx.TimeoutException):
        return AdapterError(source, f"request timed out: {exc}", AdapterErrorKind.NETWORK)
    if isinstance(exc, httpx.TransportError):
        return AdapterError(source, f"connection failed: {exc}", AdapterErrorKind.NETWORK)
    return AdapterError(source, f"invalid response: {exc}", AdapterErrorKind.QUERY)


@dataclass
class AlertQuery:
    """Server-side alert criteria understood by both the indexer and the manager."""

    start_date: str | None = None
    end_date: str | None = None
    severity: list[str] = field(default_factory=list)
    agent_id: str | None = None
    rule_id: str | None = None
    limit: int = 10000


class WazuhClient:
    """Read-only client for the Wazuh manager API and the Wazuh indexer."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            settings: Application settings
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings
        self._transport = transport
        self._token: str | None = None
        self._token_expiry = 0.0

    @property
    def indexer_enabled(self) -> bool:
        return bool(self.settings.WAZUH_INDEXER_URL)

    def _manager_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.WAZUH_API_URL,
            verify=self.settings.WAZUH_VERIFY_SSL,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def _indexer_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.WAZUH_INDEXER_URL,
            verify=self.settings.WAZUH_INDEXER_VERIFY_SSL,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            auth=(self.settings.WAZUH_INDEXER_USER, self.settings.WAZUH_INDEXER_PASSWORD),
            transport=self._transport,
        )

    async def _authenticate(self, client: httpx.AsyncClient) -> str:
        if self._token and time.monotonic() < self._token_expiry:
            return self._token

        logger.info("Authenticating with Wazuh API")
        try:
            response = await client.post(
                "/security/user/authenticate",
                auth=(self.settings.WAZUH_API_USER, self.settings.WAZUH_API_PASSWORD),
            )
            response.raise_for_status()
            token = response.json()["data"]["token"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            error = _adapter_error("wazuh", e)
            # Any failure to obtain a token is an authentication problem unless the
            # manager could not be reached at all
            if error.kind != AdapterErrorKind.NETWORK:
                error.kind = AdapterErrorKind.AUTH
            raise error from e

        if not token:
            raise AdapterError("wazuh", "authentication returned no token", AdapterErrorKind.AUTH)

        self._token = token
        self._token_expiry = time.monotonic() + TOKEN_TTL_SECONDS
        return token

    async def _manager_get(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """GET a manager endpoint and return its ``data`` payload."""
        async with self._manager_client() as client:
            token = await self._authenticate(client)
            try:
                response = await client.get(
                    endpoint,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
                if response.status_code == 401:
                    # Token revoked server-side; force a fresh login next time
                    self._token = None
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Wazuh API request failed: GET {endpoint}: {e}")
                raise _adapter_error("wazuh", e) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise AdapterError("wazuh", f"unexpected response shape from {endpoint}")
        return data

    async def _affected_items(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        data = await self._manager_get(endpoint, params)
        items = data.get("affected_items") or []
        return [item for item in items if isinstance(item, dict)]

    async def get_agents(self) -> list[dict[str, Any]]:
        """Get all agents registered with the manager."""
        agents = await self._affected_items("/agents")
        logger.info(f"Fetched {len(agents)} agents from Wazuh")
        return agents

    async def get_rules(self) -> list[dict[str, Any]]:
        """Get the manager's rule set."""
        rules = await self._affected_items("/rules")
        logger.info(f"Fetched {len(rules)} rules from Wazuh")
        return rules

    async def get_alerts(self, query: AlertQuery) -> list[dict[str, Any]]:
        """Get raw alerts, preferring the indexer and falling back to the manager.

        Args:
            query: Server-side alert criteria

        Returns:
            Alerts in the manager's alert shape (id, timestamp, rule, agent, full_log, ...)
        """
        if self.indexer_enabled:
            try:
                return await self._get_alerts_from_indexer(query)
            except AdapterError as e:
                logger.warning(f"Indexer query failed, trying Manager API: {e}")
        return await self._get_alerts_from_manager(query)

    def build_indexer_query(self, query: AlertQuery) -> dict[str, Any]:
        """Build the OpenSearch bool query for an alert search."""
        now = datetime.now(timezone.utc)
        start = query.start_date or (now - timedelta(hours=24)).isoformat()
        end = query.end_date or now.isoformat()
        must: list[dict[str, Any]] = [{"range": {"timestamp": {"gte": start, "lte": end}}}]

        ranges = [
            {"range": {"rule.level": SEVERITY_LEVEL_RANGES[s]}}
            for s in query.severity
            if s in SEVERITY_LEVEL_RANGES
        ]
        if ranges:
            must.append({"bool": {"should": ranges, "minimum_should_match": 1}})
        if query.agent_id:
            must.append({"match": {"agent.id": query.agent_id}})
        if query.rule_id:
            must.append({"match": {"rule.id": query.rule_id}})

        return {
            "size": query.limit,
            "sort": [{"timestamp": {"order": "desc"}}],
            "query": {"bool": {"must": must}},
        }

    async def _get_alerts_from_indexer(self, query: AlertQuery) -> list[dict[str, Any]]:
        body = self.build_indexer_query(query)
        logger.debug(f"Fetching alerts from Wazuh Indexer: {body}")
        async with self._indexer_client() as client:
            try:
                response = await client.post(INDEXER_ALERTS_PATH, json=body)
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Failed to fetch alerts from Wazuh Indexer: {e}")
                raise _adapter_error("wazuh-indexer", e) from e

        hits = (payload.get("hits") or {}).get("hits") or []
        alerts = [_indexer_hit_to_alert(hit) for hit in hits if isinstance(hit, dict)]
        logger.info(f"Fetched {len(alerts)} alerts from Wazuh Indexer")
        return alerts

    def build_manager_params(self, query: AlertQuery) -> dict[str, Any]:
        """Build the manager API query parameters for an alert search."""
        params: dict[str, Any] = {"limit": min(query.limit, 500), "offset": 0, "sort": "-timestamp"}
        clauses: list[str] = []

        if query.start_date or query.end_date:
            now = datetime.now(timezone.utc)
            start = query.start_date or (now - timedelta(hours=24)).isoformat()
            end = query.end_date or now.isoformat()
            clauses.append(f"timestamp>{start};timestamp<{end}")

        levels = [SEVERITY_MANAGER_QUERIES[s] for s in query.severity if s in SEVERITY_MANAGER_QUERIES]
        if levels:
            clauses.append(f"({','.join(levels)})")
        if query.agent_id:
            clauses.append(f"agent.id={query.agent_id}")
        if query.rule_id:
            clauses.append(f"rule.id={query.rule_id}")

        if clauses:
            params["q"] = ";".join(clauses)
        return params

    async def _get_alerts_from_manager(self, query: AlertQuery) -> list[dict[str, Any]]:
        params = self.build_manager_params(query)
        last_error: AdapterError | None = None

        # Alert endpoints differ across manager versions; use the first that answers
        for endpoint in MANAGER_ALERT_ENDPOINTS:
            try:
                alerts = await self._affected_items(endpoint, params)
            except AdapterError as e:
                if e.kind == AdapterErrorKind.AUTH:
                    raise
                logger.debug(f"Endpoint {endpoint} not available: {e}")
                last_error = e
                continue
            logger.info(f"Fetched {len(alerts)} alerts from Wazuh Manager")
            return alerts

        if last_error is not None:
            raise last_error
        return []


def _indexer_hit_to_alert(hit: dict[str, Any]) -> dict[str, Any]:
    """Convert an indexer search hit to the manager's alert shape."""
    source = hit.get("_source") or {}
    rule = source.get("rule") or {}
    agent = source.get("agent") or {}
    manager = source.get("manager") or {}
    data = source.get("data") or {}
    return {
        "id": hit.get("_id"),
        "timestamp": source.get("timestamp") or source.get("@timestamp"),
        "rule": {
            "id": rule.get("id") or "unknown",
            "level": rule.get("level") or 0,
            "description": rule.get("description") or rule.get("name") or "No description",
            "groups": rule.get("groups") or [],
            "mitre": rule.get("mitre") or {},
        },
        "agent": {
            "id": agent.get("id") or "000",
            "name": agent.get("name") or manager.get("name") or "Unknown",
            "ip": agent.get("ip") or "",
        },
        "full_log": source.get("full_log") or data.get("title") or "",
        "decoder": source.get("decoder") or {},
        "data": data,
    }


class IrisClient:
    """Read-only client for the DFIR-IRIS case manager API."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.IRIS_API_URL,
            verify=self.settings.IRIS_VERIFY_SSL,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            headers={"Authorization": f"Bearer {self.settings.IRIS_API_KEY}"},
            transport=self._transport,
        )

    async def get_cases(self, customer_id: int | None = None) -> list[dict[str, Any]]:
        """Get raw cases for a customer.

        Args:
            customer_id: IRIS customer id (``cid``); defaults to IRIS_CUSTOMER_ID

        Returns:
            Cases as returned by IRIS
        """
        params = {"cid": customer_id or self.settings.IRIS_CUSTOMER_ID}
        async with self._client() as client:
            try:
                response = await client.get("/manage/cases/list", params=params)
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Failed to fetch cases from IRIS: {e}")
                raise _adapter_error("iris", e) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        # Older IRIS versions wrap the list in {"cases": [...]}
        if isinstance(data, dict):
            data = data.get("cases")
        cases = [c for c in data or [] if isinstance(c, dict)]
        logger.info(f"Fetched {len(cases)} cases from IRIS")
        return cases
