"""Orama Cloud index client.

Talks to the index webhook API (``{base_url}/{index_id}/{operation}``) with the
private API key as bearer token:

- ``update-schema``: ``{"schema": {...}}``
- ``snapshot``: JSON array replacing all documents
- ``notify``: ``{"upsert": [...]}`` or ``{"remove": [...]}``
- ``deploy``: publishes the pending state
- ``has-data``: pending operations check
"""

from typing import Any, Dict, List, Optional

import httpx

from indexsync.core.exceptions import ConfigurationError, RemoteAPIFailure
from indexsync.core.logging import ContextualLogger
from indexsync.platform.destinations._base import BaseIndexClient


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class OramaIndexClient(BaseIndexClient):
    """Index client backed by the Orama Cloud webhook API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Private API key; calls fail with ConfigurationError without it
            base_url: Base URL of the webhook API
            timeout: Timeout in seconds applied to every request
            http_client: Optional preconfigured client (tests inject a MockTransport)
            logger: Contextual logger
        """
        super().__init__(logger=logger)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError("Private API key is required to process index updates")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _call(
        self, method: str, index_id: str, operation: str, payload: Any = None
    ) -> httpx.Response:
        """Send one request and translate every failure into RemoteAPIFailure."""
        url = f"{self.base_url}/{index_id}/{operation}"
        try:
            response = await self._client.request(
                method, url, json=payload, headers=self._headers()
            )
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise RemoteAPIFailure(
                f"Timed out calling {operation} on index {index_id}", retryable=True
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise RemoteAPIFailure(
                f"{operation} on index {index_id} failed with status {status}: {e.response.text}",
                status_code=status,
                retryable=status == 429 or status >= 500,
                retry_after=_retry_after(e.response),
            ) from e
        except httpx.TransportError as e:
            raise RemoteAPIFailure(
                f"Transport error calling {operation} on index {index_id}: {e}", retryable=True
            ) from e

    async def update_schema(self, index_id: str, schema: Dict[str, Any]) -> None:
        await self._call("POST", index_id, "update-schema", {"schema": schema})
        self.logger.debug(f"Schema updated for index {index_id}")

    async def snapshot(self, index_id: str, documents: List[Dict[str, Any]]) -> None:
        await self._call("POST", index_id, "snapshot", documents)
        self.logger.debug(f"Snapshot of {len(documents)} documents pushed to index {index_id}")

    async def upsert(self, index_id: str, documents: List[Dict[str, Any]]) -> None:
        await self._call("POST", index_id, "notify", {"upsert": documents})

    async def delete(self, index_id: str, ids: List[str]) -> None:
        await self._call("POST", index_id, "notify", {"remove": ids})

    async def deploy(self, index_id: str) -> None:
        await self._call("POST", index_id, "deploy")
        self.logger.info(f"Index {index_id} deployed")

    async def has_pending_operations(self, index_id: str) -> bool:
        response = await self._call("POST", index_id, "has-data")
        body = response.json()
        return bool(body.get("hasData")) if isinstance(body, dict) else False

    async def close(self) -> None:
        await self._client.aclose()
