"""Pydantic schemas."""

from indexsync.schemas.collection import (
    Collection,
    CollectionBase,
    CollectionCreate,
    CollectionUpdate,
)
from indexsync.schemas.content_type import ContentType, ContentTypeRelation, SelectableField
from indexsync.schemas.events import CMSWebhookPayload, LifecycleEvent

__all__ = [
    "CMSWebhookPayload",
    "Collection",
    "CollectionBase",
    "CollectionCreate",
    "CollectionUpdate",
    "ContentType",
    "ContentTypeRelation",
    "LifecycleEvent",
    "SelectableField",
]
