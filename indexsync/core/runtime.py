"""Process-wide wiring of services.

Builds the clients, store, orchestrator and trigger registry once per application
and ties their lifetimes to the FastAPI lifespan.
"""

from typing import Dict, Optional

from indexsync.core.collection_service import CollectionStore
from indexsync.core.collection_settings import IndexOverride, load_collection_settings
from indexsync.core.config import Settings, settings
from indexsync.core.logging import logger
from indexsync.core.sync_orchestrator import SyncOrchestrator
from indexsync.core.trigger_registry import TriggerRegistry
from indexsync.platform.destinations.orama import OramaIndexClient
from indexsync.platform.events.bus import LifecycleEventBus
from indexsync.platform.scheduling.cron import CronScheduler
from indexsync.platform.sources.cms import CMSClient, CMSSourceReader
from indexsync.platform.sources.content_types import ContentTypesService


class Runtime:
    """Holds the services of one running application."""

    def __init__(
        self,
        config: Settings = settings,
        collection_settings: Optional[Dict[str, IndexOverride]] = None,
    ):
        """Build every service from settings.

        Raises:
            ConfigurationError: If the collection settings module is invalid
        """
        if collection_settings is None:
            collection_settings = load_collection_settings(config.COLLECTION_SETTINGS_MODULE)

        self.cms_client = CMSClient(
            config.CMS_URL, api_token=config.CMS_API_TOKEN, timeout=config.CMS_REQUEST_TIMEOUT
        )
        self.content_types = ContentTypesService(self.cms_client)
        self.source = CMSSourceReader(self.cms_client, self.content_types)
        self.index_client = OramaIndexClient(
            config.INDEX_API_KEY,
            config.INDEX_API_URL,
            timeout=config.INDEX_REQUEST_TIMEOUT,
            logger=logger.with_context(component="index_client"),
        )

        self.store = CollectionStore(collection_settings)
        self.orchestrator = SyncOrchestrator(
            self.store,
            self.source,
            self.index_client,
            api_key=config.INDEX_API_KEY,
            collection_settings=collection_settings,
            max_attempts=config.INDEX_MAX_ATTEMPTS,
        )
        self.scheduler = CronScheduler()
        self.event_bus = LifecycleEventBus()
        self.triggers = TriggerRegistry(
            self.scheduler, self.event_bus, self.orchestrator, self.store
        )

        self.store.orchestrator = self.orchestrator
        self.store.triggers = self.triggers

    async def start(self) -> None:
        """Register the triggers of every stored collection."""
        await self.triggers.bootstrap()

    async def stop(self) -> None:
        """Stop jobs and background workflows and close network clients."""
        await self.triggers.shutdown()
        await self.store.close()
        await self.index_client.close()
        await self.cms_client.close()
