"""Elasticsearch access: ES|QL queries and document writes."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from apollo.config import ElasticConfig
from apollo.integrations.errors import ElasticError, NotConfiguredError

logger = structlog.get_logger()


def esql_string(value: str) -> str:
    """Quote a value for interpolation into an ES|QL string literal."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def rows_from_columns(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Turn an ES|QL ``{columns, values}`` response into row dicts."""
    columns = [col.get("name") for col in payload.get("columns") or []]
    return [dict(zip(columns, row)) for row in payload.get("values") or []]


class ElasticClient:
    """Thin async client for the indices the gateway reads and writes."""

    def __init__(
        self,
        config: ElasticConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self.config.store_configured

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.url,
            headers={
                "Authorization": f"ApiKey {self.config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self.config.query_timeout_s),
            transport=self._transport,
        )

    async def esql(self, query: str) -> list[dict[str, Any]]:
        """Run an ES|QL query and return rows keyed by column name."""
        if not self.configured:
            raise NotConfiguredError("Elasticsearch not configured")

        async with self._client() as client:
            resp = await client.post("/_query", params={"format": "json"}, json={"query": query})
        if resp.status_code >= 400:
            logger.warning("elastic.query_failed", status_code=resp.status_code, body=resp.text[:300])
            raise ElasticError(
                f"ES|QL error: {resp.text[:300]}",
                status_code=resp.status_code,
                body=resp.text[:300],
            )
        return rows_from_columns(resp.json())

    async def index(self, index: str, document: dict[str, Any]) -> str:
        """Write ``document`` into ``index``; returns the stored ``_id``."""
        if not self.configured:
            raise NotConfiguredError("Elasticsearch not configured")

        async with self._client() as client:
            resp = await client.post(f"/{index}/_doc", json=document)
        if resp.status_code >= 400:
            logger.warning(
                "elastic.index_failed",
                index=index,
                status_code=resp.status_code,
                body=resp.text[:300],
            )
            raise ElasticError(
                f"Elasticsearch: {resp.text[:300]}",
                status_code=resp.status_code,
                body=resp.text[:300],
            )
        doc_id = str(resp.json().get("_id") or "")
        logger.info("elastic.indexed", index=index, document_id=doc_id)
        return doc_id

    def incident_link(self, doc_id: str) -> str | None:
        """Kibana Discover link filtered to one incident document."""
        if not self.config.kibana_url:
            return None
        return (
            f"{self.config.kibana_url}/app/discover#/?_a=(dataSource:(dataViewId:"
            f"'{self.config.incidents_data_view_id}',type:dataView),"
            f"filters:!((query:(match_phrase:(_id:'{doc_id}')))))"
            "&_g=(time:(from:now-24h,to:now))"
        )

    def document_link(self, doc_id: str) -> str | None:
        """Kibana Discover link querying any document by id."""
        if not self.config.kibana_url:
            return None
        return (
            f"{self.config.kibana_url}/app/discover#/?_a=(dataSource:(type:dataView),"
            f"query:(query_string:(query:'_id:{doc_id}')))&_g=(time:(from:now-7d,to:now))"
        )
