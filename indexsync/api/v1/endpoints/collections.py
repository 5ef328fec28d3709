"""API endpoints for collections."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from indexsync import schemas
from indexsync.api import deps
from indexsync.core.collection_service import CollectionStore
from indexsync.core.exceptions import NotFoundException

router = APIRouter()


@router.get("", response_model=List[schemas.Collection])
async def list(
    db: AsyncSession = Depends(deps.get_db),
    store: CollectionStore = Depends(deps.get_collection_store),
) -> List[schemas.Collection]:
    """List collections.

    Collections with a code-level schema and transformer override are flagged with
    ``has_settings``.
    """
    return await store.find(db)


@router.post("", response_model=schemas.Collection)
async def create(
    collection: schemas.CollectionCreate,
    db: AsyncSession = Depends(deps.get_db),
    store: CollectionStore = Depends(deps.get_collection_store),
) -> schemas.Collection:
    """Create a collection.

    The collection starts ``outdated`` and its index is rebuilt in the background;
    the response does not wait for indexing.
    """
    return await store.create(db, collection)


@router.get("/{id}", response_model=schemas.Collection)
async def get(
    id: UUID = Path(..., description="The collection id"),
    db: AsyncSession = Depends(deps.get_db),
    store: CollectionStore = Depends(deps.get_collection_store),
) -> schemas.Collection:
    """Retrieve a collection."""
    collection = await store.find_one(id, db)
    if collection is None:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection


@router.put("/{id}", response_model=schemas.Collection)
async def update(
    collection: schemas.CollectionUpdate,
    id: UUID = Path(..., description="The collection id"),
    db: AsyncSession = Depends(deps.get_db),
    store: CollectionStore = Depends(deps.get_collection_store),
) -> schemas.Collection:
    """Update a collection.

    Any change marks the collection ``outdated`` and rebuilds its index in the
    background.
    """
    try:
        return await store.update(db, id, collection)
    except NotFoundException:
        raise HTTPException(status_code=404, detail="Collection not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/{id}", response_model=schemas.Collection)
async def delete(
    id: UUID = Path(..., description="The collection id"),
    db: AsyncSession = Depends(deps.get_db),
    store: CollectionStore = Depends(deps.get_collection_store),
) -> schemas.Collection:
    """Delete a collection and cancel its scheduled and live updates."""
    try:
        return await store.delete(db, id)
    except NotFoundException:
        raise HTTPException(status_code=404, detail="Collection not found")


@router.post("/{id}/deploy", response_model=schemas.Collection)
async def deploy(
    id: UUID = Path(..., description="The collection id"),
    store: CollectionStore = Depends(deps.get_collection_store),
) -> schemas.Collection:
    """Publish the current state of the collection's index.

    Runs in the background; only collections that are ``outdated`` are deployed.
    """
    try:
        return await store.deploy(id)
    except NotFoundException:
        raise HTTPException(status_code=404, detail="Collection not found")
