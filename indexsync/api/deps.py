"""Dependencies that are used in the API endpoints."""

from typing import Optional

from fastapi import Header, HTTPException, Request

from indexsync.core.collection_service import CollectionStore
from indexsync.core.config import settings
from indexsync.core.logging import ContextualLogger, logger
from indexsync.core.runtime import Runtime
from indexsync.db.session import get_db  # noqa: F401
from indexsync.platform.events.bus import LifecycleEventBus
from indexsync.platform.sources.content_types import ContentTypesService


def get_runtime(request: Request) -> Runtime:
    """Runtime built by the application lifespan."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return runtime


def get_collection_store(request: Request) -> CollectionStore:
    return get_runtime(request).store


def get_content_types(request: Request) -> ContentTypesService:
    return get_runtime(request).content_types


def get_event_bus(request: Request) -> LifecycleEventBus:
    return get_runtime(request).event_bus


def get_logger(request: Request) -> ContextualLogger:
    """Logger carrying the request path."""
    return logger.with_context(request_path=request.url.path)


async def verify_webhook_token(
    authorization: Optional[str] = Header(None),
) -> None:
    """Check the shared secret of inbound CMS webhooks.

    No check is made when CMS_WEBHOOK_TOKEN is not configured.
    """
    expected = settings.CMS_WEBHOOK_TOKEN
    if not expected:
        return

    token = authorization or ""
    if token.lower().startswith("bearer "):
        token = token[7:]
    if token != expected:
        raise HTTPException(status_code=401, detail="Invalid webhook token")
