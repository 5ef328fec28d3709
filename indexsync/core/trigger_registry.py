"""Trigger registry.

Maps each collection to what keeps it fresh:

- ``cron``: a recurring job running ``scheduled_update``, plus subscriptions on the
  entity's lifecycle events that mark the collection outdated and queue a full
  resync right away. A change arriving while a resync runs makes that run end
  outdated instead of starting a second one.
- ``live``: subscriptions on the entity's lifecycle events that apply each record
  mutation with ``live_update``.

Registering a collection always drops its previous job and subscriptions first,
so at most one job exists per collection. Handlers look the collection up again
when they fire so they never act on a stale configuration.
"""

import asyncio
from typing import TYPE_CHECKING, Dict, Optional
from uuid import UUID

from indexsync import schemas
from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger
from indexsync.core.shared_models import CollectionStatus, UpdateHook
from indexsync.platform.events.bus import LifecycleEventBus
from indexsync.platform.scheduling.cron import CronScheduler, ScheduledJob

if TYPE_CHECKING:
    from indexsync.core.collection_service import CollectionStore
    from indexsync.core.sync_orchestrator import SyncOrchestrator

JOB_NAME_PREFIX = "index-collection-update-"


def job_name(id: UUID) -> str:
    return f"{JOB_NAME_PREFIX}{id}"


class TriggerRegistry:
    """Registers recurring jobs and lifecycle subscriptions per collection."""

    def __init__(
        self,
        scheduler: CronScheduler,
        event_bus: LifecycleEventBus,
        orchestrator: "SyncOrchestrator",
        store: "CollectionStore",
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the registry."""
        self.scheduler = scheduler
        self.event_bus = event_bus
        self.orchestrator = orchestrator
        self.store = store
        self.logger = logger or default_logger.with_context(component="trigger_registry")
        self._jobs: Dict[UUID, ScheduledJob] = {}
        self._lock = asyncio.Lock()

    def has_job(self, id: UUID) -> bool:
        return id in self._jobs

    async def register(self, config: schemas.Collection) -> None:
        """(Re)register the triggers of a collection according to its update hook."""
        async with self._lock:
            self._clear(config.id)

            if config.update_hook == UpdateHook.CRON and config.update_cron:
                self._register_cron(config)
            elif config.update_hook == UpdateHook.LIVE:
                self._register_live(config)

    async def unregister(self, id: UUID) -> None:
        """Drop the job and subscriptions of a collection. No-op when none exist."""
        async with self._lock:
            self._clear(id)

    def _clear(self, id: UUID) -> None:
        job = self._jobs.pop(id, None)
        if job is not None:
            self.scheduler.remove(job.name)
            self.logger.debug(f"Cron job removed for collection {id}")
        self.event_bus.unsubscribe(str(id))

    def _register_cron(self, config: schemas.Collection) -> None:
        id = config.id
        self.logger.info(f"Registering cron job for collection {id}")

        async def _task() -> None:
            self.logger.debug(f"Running cron job for collection {id}, entity {config.entity}")
            await self.orchestrator.scheduled_update(await self.store.find_one(id))

        async def _on_change(event: schemas.LifecycleEvent) -> None:
            if not await self.orchestrator.request_resync(id):
                self.logger.debug(f"Update of collection {id} in progress, change deferred")
                return
            await self.orchestrator.scheduled_update(await self.store.find_one(id))

        self._jobs[id] = self.scheduler.add(job_name(id), config.update_cron, _task)
        self.event_bus.subscribe(config.entity, str(id), _on_change)
        self.logger.info(
            f"Cron job registered for collection {id} with frequency: {config.update_cron}"
        )

    def _register_live(self, config: schemas.Collection) -> None:
        id = config.id

        async def _on_change(event: schemas.LifecycleEvent) -> None:
            await self.orchestrator.live_update(
                await self.store.find_one(id), event.record, event.action
            )

        self.event_bus.subscribe(config.entity, str(id), _on_change)
        self.logger.info(f"Live updates registered for collection {id} on {config.entity}")

    async def bootstrap(self) -> int:
        """Register every stored collection. Returns how many were registered.

        No workflow runs before startup, so a collection still marked ``updating``
        was interrupted and goes back to ``outdated``.
        """
        collections = await self.store.find()
        for config in collections:
            if config.status == CollectionStatus.UPDATING:
                self.logger.warning(
                    f"Collection {config.id} was left updating. Marking it outdated"
                )
                await self.store.update_without_hooks(
                    config.id,
                    status=CollectionStatus.OUTDATED.value,
                    last_error="Interrupted while updating",
                )
            await self.register(config)
        self.logger.info(f"Registered triggers for {len(collections)} collections")
        return len(collections)

    async def shutdown(self) -> None:
        """Drop every job and subscription."""
        async with self._lock:
            for id in list(self._jobs):
                self._clear(id)
            self.event_bus.clear()
        self.scheduler.shutdown()
