"""Shared enums used by models, schemas and services."""

from enum import Enum


class CollectionStatus(str, Enum):
    """Lifecycle status of an indexed collection.

    Cycles outdated -> updating -> updated (or back to outdated) for the
    lifetime of the collection.
    """

    OUTDATED = "outdated"
    UPDATING = "updating"
    UPDATED = "updated"


class UpdateHook(str, Enum):
    """How a collection reacts to changes of its source entity."""

    CRON = "cron"
    LIVE = "live"


class DocumentAction(str, Enum):
    """Per-record mutation coming from a CMS lifecycle event."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
