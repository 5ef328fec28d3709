"""In-process bus for CMS lifecycle events."""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger
from indexsync.schemas.events import LifecycleEvent

EventHandler = Callable[[LifecycleEvent], Awaitable[None]]


class LifecycleEventBus:
    """Fans lifecycle events of an entity out to its subscribers.

    A subscriber id owns any number of (entity, handler) subscriptions and drops
    them all at once with ``unsubscribe``.
    """

    def __init__(self, logger: Optional[ContextualLogger] = None):
        """Initialize the bus."""
        self.logger = logger or default_logger.with_context(component="event_bus")
        self._subscriptions: Dict[str, List[Tuple[str, EventHandler]]] = {}

    def subscribe(self, entity: str, subscriber_id: str, handler: EventHandler) -> None:
        self._subscriptions.setdefault(subscriber_id, []).append((entity, handler))

    def unsubscribe(self, subscriber_id: str) -> bool:
        """Drop every subscription of a subscriber. Returns whether any existed."""
        return self._subscriptions.pop(subscriber_id, None) is not None

    def clear(self) -> None:
        self._subscriptions.clear()

    def subscribers(self, entity: str) -> List[str]:
        return [
            subscriber_id
            for subscriber_id, subscriptions in self._subscriptions.items()
            if any(sub_entity == entity for sub_entity, _ in subscriptions)
        ]

    async def publish(self, event: LifecycleEvent) -> int:
        """Run every handler subscribed to the event's entity concurrently.

        Handler failures are logged and do not affect the other handlers.

        Returns:
            Number of handlers invoked
        """
        targets = [
            (subscriber_id, handler)
            for subscriber_id, subscriptions in list(self._subscriptions.items())
            for entity, handler in subscriptions
            if entity == event.entity
        ]
        if not targets:
            self.logger.debug(f"No subscribers for {event.action.value} on {event.entity}")
            return 0

        results = await asyncio.gather(
            *(handler(event) for _, handler in targets), return_exceptions=True
        )
        for (subscriber_id, _), result in zip(targets, results):
            if isinstance(result, Exception):
                self.logger.error(
                    f"Subscriber {subscriber_id} failed handling {event.action.value} "
                    f"on {event.entity}: {result}",
                    exc_info=result,
                )
        return len(targets)
