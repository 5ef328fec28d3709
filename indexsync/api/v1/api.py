"""API router for the v1 endpoints."""

from fastapi import APIRouter

from indexsync.api.v1.endpoints import collections, content_types, events

api_router = APIRouter()
api_router.include_router(collections.router, prefix="/collections", tags=["collections"])
api_router.include_router(content_types.router, prefix="/content-types", tags=["content-types"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
