"""Index synchronization orchestrator.

Owns the per-collection status machine (outdated -> updating -> updated) and runs
the workflows that move a remote index towards the content of its CMS entity:

- ``rebuild``: reset, push schema, bulk load, deploy. Runs after admin changes.
- ``scheduled_update``: same as ``rebuild``, started by a recurring job.
- ``deploy``: push schema and publish the current remote state.
- ``live_update``: apply one record mutation; always ends ``outdated``.

A workflow starts only for a collection that passes ``validate`` and whose status
this process atomically moved from outdated to updating. Overlapping triggers
for the same collection are skipped, not queued. A source change reported with
``request_resync`` while a workflow runs makes that workflow end ``outdated``.
A failed or cancelled workflow always returns the collection to ``outdated``.
"""

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Set, Union
from uuid import UUID

from indexsync import schemas
from indexsync.core.collection_settings import IndexOverride
from indexsync.core.datetime_utils import utc_now_naive
from indexsync.core.exceptions import TransformerContractViolation
from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger
from indexsync.core.shared_models import CollectionStatus, DocumentAction
from indexsync.platform.destinations._base import BaseIndexClient, RemoteIndex
from indexsync.platform.destinations.retry_helpers import remote_retry
from indexsync.platform.sources._base import DEFAULT_PAGE_SIZE, BaseSourceReader
from indexsync.platform.transformers.documents import prepare_document, transform_documents
from indexsync.platform.transformers.schema import project_schema

if TYPE_CHECKING:
    from indexsync.core.collection_service import CollectionStore

PUBLISHED_FILTER: Dict[str, Any] = {"publishedAt": {"$notNull": True}}


class SyncOrchestrator:
    """Runs index synchronization workflows for collections."""

    def __init__(
        self,
        store: "CollectionStore",
        source: BaseSourceReader,
        index_client: BaseIndexClient,
        api_key: Optional[str],
        collection_settings: Optional[Dict[str, IndexOverride]] = None,
        max_attempts: int = 3,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Collection configuration store
            source: Reader for CMS entries
            index_client: Client for the remote index API
            api_key: Credential of the remote index API; workflows refuse to run without it
            collection_settings: Per-index schema and transformer overrides
            max_attempts: Attempts per remote index operation
            page_size: Entries read and upserted per bulk page
            logger: Contextual logger
        """
        self.store = store
        self.source = source
        self.index_client = index_client
        self.api_key = api_key
        self.collection_settings = collection_settings or {}
        self.max_attempts = max_attempts
        self.page_size = page_size
        self.logger = logger or default_logger.with_context(component="sync_orchestrator")

        # ids claimed by workflows of this process, and those whose source changed since
        self._running: Set[UUID] = set()
        self._stale: Set[UUID] = set()
        self._status_lock = asyncio.Lock()

        # insert and update are the same remote operation
        self._document_actions: Dict[
            DocumentAction, Callable[..., Awaitable[None]]
        ] = {
            DocumentAction.INSERT: self._upsert_record,
            DocumentAction.UPDATE: self._upsert_record,
            DocumentAction.DELETE: self._delete_record,
        }

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def _logger_for(self, config: schemas.Collection) -> ContextualLogger:
        return self.logger.with_context(
            collection_id=str(config.id), entity=config.entity, index_id=config.index_id
        )

    def _override(self, config: schemas.Collection) -> Optional[IndexOverride]:
        return self.collection_settings.get(config.index_id)

    def validate(self, config: Optional[schemas.Collection]) -> bool:
        """Check whether a workflow may start for ``config``.

        Returns False (and changes nothing) when the collection is missing, no
        credential is configured, the collection is already updating or updated, or
        its override declares only one of schema and transformer.
        """
        if config is None:
            self.logger.error("Collection not found")
            return False

        log = self._logger_for(config)

        if not self.api_key:
            log.error("Private API key is required to process index updates")
            return False

        if config.status == CollectionStatus.UPDATING:
            log.debug(
                f"SKIP: Collection {config.entity} with index {config.index_id} "
                "is already updating"
            )
            return False

        if config.status == CollectionStatus.UPDATED:
            log.debug(
                f"SKIP: Collection {config.entity} with index {config.index_id} "
                "is already updated"
            )
            return False

        override = self._override(config)
        if override is not None and override.is_partial:
            log.error("Both schema and transformer are required in the collection settings")
            return False

        return True

    async def _start(self, config: Optional[schemas.Collection]) -> bool:
        """Validate and claim the collection for one workflow run."""
        if not self.validate(config):
            return False

        async with self._status_lock:
            claimed = await self.store.claim(config.id)
            if claimed:
                self._running.add(config.id)
                self._stale.discard(config.id)

        if not claimed:
            self._logger_for(config).debug(
                f"SKIP: Collection {config.entity} with index {config.index_id} "
                "was claimed by another workflow"
            )
        return claimed

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def request_resync(self, id: UUID) -> bool:
        """Record that the source of a collection changed.

        An ``updated`` collection is moved back to ``outdated``. When a workflow of
        this process is running for it, the status is left alone and that workflow
        ends ``outdated`` instead of ``updated``.

        Returns:
            False when a running workflow absorbed the change, True otherwise
        """
        async with self._status_lock:
            if id in self._running:
                self._stale.add(id)
                return False
            await self.store.claim(
                id, expected=CollectionStatus.UPDATED, target=CollectionStatus.OUTDATED
            )
            return True

    async def _finish(
        self,
        config: schemas.Collection,
        error: Optional[BaseException] = None,
        deployed: bool = False,
        documents_count: Optional[int] = None,
    ) -> None:
        """Release the claim and write the final status of a workflow.

        The collection ends ``updated`` only after a deploy without error and without
        a source change reported while the workflow ran.
        """
        async with self._status_lock:
            self._running.discard(config.id)
            stale = config.id in self._stale
            self._stale.discard(config.id)

            values: Dict[str, Any] = {"status": CollectionStatus.OUTDATED.value}
            if error is not None:
                values["last_error"] = str(error) or type(error).__name__
            elif deployed:
                values["deployed_at"] = utc_now_naive()
                values["last_error"] = None
                if documents_count is not None:
                    values["documents_count"] = documents_count
                if stale:
                    self._logger_for(config).debug(
                        f"Source of {config.entity} changed during the update. "
                        "Leaving it outdated"
                    )
                else:
                    values["status"] = CollectionStatus.UPDATED.value
            await self.store.update_without_hooks(config.id, **values)

    async def _fail(
        self, config: schemas.Collection, workflow: str, error: BaseException
    ) -> None:
        if isinstance(error, asyncio.CancelledError):
            self._logger_for(config).warning(
                f"{workflow} cancelled for {config.entity} with index {config.index_id}"
            )
        else:
            self._logger_for(config).error(
                f"{workflow} failed for {config.entity} with index {config.index_id}: {error}"
            )
        await self._finish(config, error=error)

    # ------------------------------------------------------------------
    # Remote operations
    # ------------------------------------------------------------------

    async def _remote(self, operation: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """Run one remote index operation with bounded retries."""

        @remote_retry(self.max_attempts)
        async def _execute_with_retry():
            return await operation(*args)

        return await _execute_with_retry()

    def _index(self, config: schemas.Collection) -> RemoteIndex:
        return self.index_client.index(config.index_id)

    def resolve_schema(self, config: schemas.Collection) -> Dict[str, Any]:
        """Schema pushed to the remote index.

        The override schema when one is configured, otherwise the field schema
        reduced to the searchable attributes.
        """
        override = self._override(config)
        if override is not None and override.schema is not None:
            return override.schema
        return project_schema(config.searchable_attributes, config.field_schema)

    async def _update_schema(self, config: schemas.Collection) -> None:
        await self._remote(self._index(config).update_schema, self.resolve_schema(config))

    async def _reset(self, config: schemas.Collection) -> None:
        await self._remote(self._index(config).reset)

    async def _deploy(self, config: schemas.Collection) -> None:
        await self._remote(self._index(config).deploy)

    def _where(self, config: schemas.Collection, **conditions: Any) -> Optional[Dict[str, Any]]:
        where = dict(conditions)
        if not config.include_drafts:
            where.update(PUBLISHED_FILTER)
        return where or None

    def _to_documents(
        self, config: schemas.Collection, entries: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        override = self._override(config)
        transformer = override.transformer if override is not None else None
        return transform_documents([prepare_document(e) for e in entries], transformer)

    # ------------------------------------------------------------------
    # Bulk load
    # ------------------------------------------------------------------

    async def _bulk_insert(self, config: schemas.Collection) -> Dict[str, Any]:
        """Read the entity page by page and upsert every page.

        Returns:
            ``documents_count`` and ``force_empty_deploy`` (set when the very first
            page is empty)
        """
        log = self._logger_for(config)
        offset = 0
        documents_count = 0

        while True:
            entries = await self.source.get_entries(
                entity=config.entity,
                relations=config.included_relations,
                schema=config.field_schema,
                where=self._where(config),
                offset=offset,
                limit=self.page_size,
            )

            if not entries:
                return {"documents_count": documents_count, "force_empty_deploy": offset == 0}

            try:
                documents = self._to_documents(config, entries)
            except TransformerContractViolation as e:
                log.error(f"ERROR: {e}. Skipping page at offset {offset}")
            else:
                await self._remote(self._index(config).upsert, documents)
                documents_count += len(documents)
                log.info(
                    f"INSERT: {len(documents)} documents at offset {offset} "
                    f"into index {config.index_id}"
                )

            offset += len(entries)
            if len(entries) < self.page_size:
                return {"documents_count": documents_count, "force_empty_deploy": False}

    async def _reset_and_populate(self, config: schemas.Collection) -> int:
        """Reset the index, push the schema, reload every entry and deploy."""
        await self._reset(config)
        await self._update_schema(config)

        result = await self._bulk_insert(config)

        if result["force_empty_deploy"]:
            self._logger_for(config).debug(
                f"No documents found for {config.entity}. Deploying empty index."
            )
            await self._reset(config)
        await self._deploy(config)
        return result["documents_count"]

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def rebuild(self, config: Optional[schemas.Collection]) -> bool:
        """Rebuild the index from scratch after the collection was created or changed.

        Returns:
            Whether the workflow ran

        Raises:
            RemoteAPIFailure: If a remote call fails after all attempts
            SourceReadFailure: If the CMS cannot be read
        """
        if not await self._start(config):
            return False

        log = self._logger_for(config)
        log.debug(f"Rebuilding index {config.index_id} for {config.entity}")
        try:
            documents_count = await self._reset_and_populate(config)
            await self._finish(config, deployed=True, documents_count=documents_count)
        except BaseException as e:
            await self._fail(config, "Rebuild", e)
            raise

        log.debug(f"Rebuild of {config.entity} with index {config.index_id} completed")
        return True

    async def scheduled_update(self, config: Optional[schemas.Collection]) -> bool:
        """Full resync started by the recurring job of a collection."""
        if not await self._start(config):
            return False

        log = self._logger_for(config)
        log.debug(
            f"Processing scheduled index update for {config.entity} "
            f"with index {config.index_id}"
        )
        try:
            documents_count = await self._reset_and_populate(config)
            await self._finish(config, deployed=True, documents_count=documents_count)
        except BaseException as e:
            await self._fail(config, "Scheduled update", e)
            raise

        log.debug(f"Scheduled update for {config.entity} with index {config.index_id} completed")
        return True

    async def deploy(self, config: Optional[schemas.Collection]) -> bool:
        """Push the schema and publish the current remote state. No document count is recorded."""
        if not await self._start(config):
            return False

        log = self._logger_for(config)
        try:
            await self._update_schema(config)
            await self._deploy(config)
            await self._finish(config, deployed=True)
        except BaseException as e:
            await self._fail(config, "Deploy", e)
            raise

        log.debug(f"UPDATE: {config.entity} with index {config.index_id} completed")
        return True

    async def _upsert_record(self, config: schemas.Collection, record: Dict[str, Any]) -> bool:
        log = self._logger_for(config)
        entries = await self.source.get_entries(
            entity=config.entity,
            relations=config.included_relations,
            schema=config.field_schema,
            where=self._where(config, id={"$in": [record["id"]]}),
        )
        if not entries:
            # unpublished, filtered out or deleted
            log.info(
                f"Entry {record['id']} of {config.entity} not found or not published. "
                "Removing it from the index"
            )
            return await self._delete_record(config, record)

        documents = self._to_documents(config, entries)
        await self._remote(self._index(config).upsert, documents)
        log.info(
            f"UPSERT: document with id {','.join(str(d.get('id')) for d in documents)} "
            f"into index {config.index_id}"
        )
        return True

    async def _delete_record(self, config: schemas.Collection, record: Dict[str, Any]) -> bool:
        ids = [record["id"]]
        await self._remote(self._index(config).delete, ids)
        self._logger_for(config).info(
            f"DELETE: document with id {','.join(ids)} from index {config.index_id}"
        )
        return True

    async def handle_document(
        self,
        config: schemas.Collection,
        record: Optional[Dict[str, Any]],
        action: Union[DocumentAction, str, None],
    ) -> bool:
        """Dispatch one record mutation to the remote index.

        Returns:
            False when the action is unknown, the record is missing or the
            re-read entry no longer qualifies

        Raises:
            TransformerContractViolation: If the transformer returns no value
        """
        try:
            document_action = DocumentAction(action) if action is not None else None
        except ValueError:
            document_action = None

        handler = self._document_actions.get(document_action)
        if handler is None or not record or record.get("id") is None:
            self._logger_for(config).warning(f"Action {action} not found. Skipping...")
            return False

        return await handler(config, prepare_document(record))

    async def live_update(
        self,
        config: Optional[schemas.Collection],
        record: Optional[Dict[str, Any]],
        action: Union[DocumentAction, str, None],
    ) -> bool:
        """Apply one CMS record mutation to the index.

        The collection always ends ``outdated``: a single mutation never marks the
        index fully current.

        Returns:
            Whether the mutation reached the remote index
        """
        if not await self._start(config):
            return False

        log = self._logger_for(config)
        log.debug(f"Processing live update for {config.entity} with index {config.index_id}")

        error: Optional[BaseException] = None
        try:
            handled = await self.handle_document(config, record, action)
        except TransformerContractViolation as e:
            log.error(f"ERROR: {e}")
            handled = False
        except BaseException as e:
            error = e
            log.error(
                f"Live update failed for {config.entity} with index {config.index_id}: {e!r}"
            )
            raise
        finally:
            await self._finish(config, error=error)

        if handled:
            log.debug(f"Live update for {config.entity} with index {config.index_id} completed")
        return handled
