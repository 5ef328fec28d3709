"""Base remote index client.

A client holds the credential for one index service and exposes the operations
the sync orchestrator needs, keyed by remote index identifier. Implementations
raise ``RemoteAPIFailure`` on every failed call and never retry internally;
retry policy belongs to the caller.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger


class BaseIndexClient(ABC):
    """Common interface for remote search index services."""

    def __init__(self, logger: Optional[ContextualLogger] = None):
        """Initialize the base client."""
        self._logger: Optional[ContextualLogger] = logger

    @property
    def logger(self) -> ContextualLogger:
        """Get the logger for this client, falling back to default if not set."""
        if self._logger is not None:
            return self._logger
        return default_logger

    def index(self, index_id: str) -> "RemoteIndex":
        """Get a handle bound to one remote index."""
        return RemoteIndex(self, index_id)

    @abstractmethod
    async def update_schema(self, index_id: str, schema: Dict[str, Any]) -> None:
        """Replace the remote schema definition."""
        pass

    @abstractmethod
    async def snapshot(self, index_id: str, documents: List[Dict[str, Any]]) -> None:
        """Atomically replace the index's document set. Empty input clears the index."""
        pass

    @abstractmethod
    async def upsert(self, index_id: str, documents: List[Dict[str, Any]]) -> None:
        """Insert or update documents."""
        pass

    async def insert(self, index_id: str, documents: List[Dict[str, Any]]) -> None:
        """Insert documents. Same remote operation as ``upsert``."""
        await self.upsert(index_id, documents)

    async def update(self, index_id: str, documents: List[Dict[str, Any]]) -> None:
        """Update documents. Same remote operation as ``upsert``."""
        await self.upsert(index_id, documents)

    @abstractmethod
    async def delete(self, index_id: str, ids: List[str]) -> None:
        """Delete documents by identifier."""
        pass

    @abstractmethod
    async def deploy(self, index_id: str) -> None:
        """Publish the current index contents to the serving tier."""
        pass

    @abstractmethod
    async def has_pending_operations(self, index_id: str) -> bool:
        """Whether the index has mutations that were not deployed yet."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass


class RemoteIndex:
    """Handle on one remote index, obtained from ``BaseIndexClient.index``."""

    def __init__(self, client: BaseIndexClient, index_id: str):
        """Bind the handle to a client and index identifier."""
        self.client = client
        self.index_id = index_id

    async def update_schema(self, schema: Dict[str, Any]) -> None:
        await self.client.update_schema(self.index_id, schema)

    async def snapshot(self, documents: List[Dict[str, Any]]) -> None:
        await self.client.snapshot(self.index_id, documents)

    async def reset(self) -> None:
        """Clear the index with an empty snapshot."""
        await self.client.snapshot(self.index_id, [])

    async def upsert(self, documents: List[Dict[str, Any]]) -> None:
        await self.client.upsert(self.index_id, documents)

    async def delete(self, ids: List[str]) -> None:
        await self.client.delete(self.index_id, ids)

    async def deploy(self) -> None:
        await self.client.deploy(self.index_id)

    async def has_pending_operations(self) -> bool:
        return await self.client.has_pending_operations(self.index_id)

    def __repr__(self) -> str:
        return f"RemoteIndex(index_id={self.index_id!r})"
