"""CMS lifecycle event distribution."""

from indexsync.platform.events.bus import LifecycleEventBus

__all__ = ["LifecycleEventBus"]
