"""Collection service.

Stores collection configuration rows and starts the workflows that follow admin
changes. ``create`` and ``update`` force the collection to ``outdated``, re-register
its triggers and start a rebuild in the background; the caller never waits for
indexing. ``update_without_hooks`` and ``claim`` are the status-only write paths the
orchestrator uses, so orchestrator writes never start another rebuild.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncGenerator, Coroutine, Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from indexsync import crud, schemas
from indexsync.core.collection_settings import IndexOverride
from indexsync.core.exceptions import NotFoundException
from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger
from indexsync.core.shared_models import CollectionStatus
from indexsync.db.session import get_db_context
from indexsync.schemas.collection import validate_merged

if TYPE_CHECKING:
    from indexsync.core.sync_orchestrator import SyncOrchestrator
    from indexsync.core.trigger_registry import TriggerRegistry


class CollectionStore:
    """Service for managing collection configurations."""

    def __init__(
        self,
        collection_settings: Optional[Dict[str, IndexOverride]] = None,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the store.

        ``orchestrator`` and ``triggers`` are attached after construction since both
        depend on the store.
        """
        self.collection_settings = collection_settings or {}
        self.logger = logger or default_logger.with_context(component="collection_store")
        self.orchestrator: Optional["SyncOrchestrator"] = None
        self.triggers: Optional["TriggerRegistry"] = None
        self._background: Set[asyncio.Task] = set()

    @asynccontextmanager
    async def _session(self, db: Optional[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
        if db is not None:
            yield db
        else:
            async with get_db_context() as session:
                yield session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _annotate(self, collection: schemas.Collection) -> schemas.Collection:
        override = self.collection_settings.get(collection.index_id)
        if override is not None and override.is_complete:
            return collection.model_copy(update={"has_settings": True})
        return collection

    async def find(self, db: Optional[AsyncSession] = None) -> List[schemas.Collection]:
        """List collections.

        Collections with a complete override are flagged ``has_settings``; those
        whose override declares only one of schema and transformer are left out.
        """
        async with self._session(db) as session:
            db_objs = await crud.collection.get_multi(session)

        collections = []
        for db_obj in db_objs:
            collection = schemas.Collection.model_validate(db_obj)
            override = self.collection_settings.get(collection.index_id)
            if override is not None and not override.is_complete:
                self.logger.warning(
                    f"Collection with index {collection.index_id} has settings "
                    "but no schema or transformer"
                )
                continue
            collections.append(self._annotate(collection))
        return collections

    async def find_one(
        self, id: UUID, db: Optional[AsyncSession] = None
    ) -> Optional[schemas.Collection]:
        """Get a collection by id, or None."""
        async with self._session(db) as session:
            db_obj = await crud.collection.get(session, id=id)
        if db_obj is None:
            return None
        return self._annotate(schemas.Collection.model_validate(db_obj))

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------

    async def create(
        self, db: AsyncSession, collection_in: schemas.CollectionCreate
    ) -> schemas.Collection:
        """Create a collection and start its first rebuild."""
        data = collection_in.model_dump(mode="json")
        data["status"] = CollectionStatus.OUTDATED.value

        db_obj = await crud.collection.create(db, obj_in=data)
        collection = schemas.Collection.model_validate(db_obj)
        self.logger.info(f"Created collection {collection.id} for {collection.entity}")

        await self._after_change(collection)
        return self._annotate(collection)

    async def update(
        self, db: AsyncSession, id: UUID, collection_in: schemas.CollectionUpdate
    ) -> schemas.Collection:
        """Update a collection and start a rebuild.

        Raises:
            NotFoundException: If the collection does not exist
            ValueError: If the resulting configuration is invalid
        """
        db_obj = await crud.collection.get(db, id=id)
        if db_obj is None:
            raise NotFoundException(f"Collection {id} not found")

        validate_merged(schemas.Collection.model_validate(db_obj), collection_in)

        data = collection_in.model_dump(exclude_unset=True, mode="json")
        data["status"] = CollectionStatus.OUTDATED.value
        db_obj = await crud.collection.update(db, db_obj=db_obj, obj_in=data)
        collection = schemas.Collection.model_validate(db_obj)
        self.logger.info(f"Updated collection {collection.id}")

        await self._after_change(collection)
        return self._annotate(collection)

    async def delete(self, db: AsyncSession, id: UUID) -> schemas.Collection:
        """Delete a collection and drop its job and subscriptions.

        Raises:
            NotFoundException: If the collection does not exist
        """
        db_obj = await crud.collection.remove(db, id=id)
        if db_obj is None:
            raise NotFoundException(f"Collection {id} not found")

        if self.triggers is not None:
            await self.triggers.unregister(id)
        self.logger.info(f"Deleted collection {id}")
        return schemas.Collection.model_validate(db_obj)

    async def deploy(self, id: UUID) -> schemas.Collection:
        """Start the deploy-only workflow for a collection.

        Raises:
            NotFoundException: If the collection does not exist
        """
        collection = await self.find_one(id)
        if collection is None:
            raise NotFoundException(f"Collection {id} not found")

        if self.orchestrator is not None:
            self._spawn(self.orchestrator.deploy(collection), f"deploy of collection {id}")
        return collection

    async def _after_change(self, collection: schemas.Collection) -> None:
        if self.triggers is not None:
            await self.triggers.register(collection)
        if self.orchestrator is not None:
            self._spawn(
                self.orchestrator.rebuild(collection), f"rebuild of collection {collection.id}"
            )

    # ------------------------------------------------------------------
    # Orchestrator writes
    # ------------------------------------------------------------------

    async def update_without_hooks(self, id: UUID, **fields: Any) -> bool:
        """Write status/metadata columns without starting any workflow.

        Returns:
            Whether a row was updated
        """
        async with get_db_context() as db:
            rowcount = await crud.collection.update_fields(db, id=id, values=fields)
        return rowcount > 0

    async def claim(
        self,
        id: UUID,
        expected: CollectionStatus = CollectionStatus.OUTDATED,
        target: CollectionStatus = CollectionStatus.UPDATING,
    ) -> bool:
        """Atomically move the collection from ``expected`` to ``target``.

        Returns:
            True if this call won the transition
        """
        async with get_db_context() as db:
            return await crud.collection.compare_and_set_status(
                db, id=id, expected=expected, target=target
            )

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)

        def _done(t: asyncio.Task) -> None:
            self._background.discard(t)
            if not t.cancelled() and t.exception() is not None:
                self.logger.error(f"Background {description} failed: {t.exception()}")

        task.add_done_callback(_done)
        return task

    async def close(self) -> None:
        """Cancel background workflows still running."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()
