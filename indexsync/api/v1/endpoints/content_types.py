"""API endpoints for CMS content types."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from indexsync import schemas
from indexsync.api import deps
from indexsync.core.exceptions import NotFoundException, SourceReadFailure
from indexsync.platform.sources.content_types import ContentTypesService

router = APIRouter()


@router.get("", response_model=List[schemas.ContentType])
async def list(
    content_types: ContentTypesService = Depends(deps.get_content_types),
) -> List[schemas.ContentType]:
    """List content types that can be indexed."""
    try:
        return await content_types.list_content_types()
    except SourceReadFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{id}/relations", response_model=List[schemas.ContentTypeRelation])
async def relations(
    id: str = Path(..., description="Content type uid, e.g. 'api::article.article'"),
    content_types: ContentTypesService = Depends(deps.get_content_types),
) -> List[schemas.ContentTypeRelation]:
    """List the relation fields of a content type."""
    try:
        return await content_types.get_relations(id)
    except NotFoundException:
        raise HTTPException(status_code=404, detail="Content type not found")
    except SourceReadFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{id}/schema", response_model=Dict[str, Any])
async def schema(
    id: str = Path(..., description="Content type uid, e.g. 'api::article.article'"),
    content_types: ContentTypesService = Depends(deps.get_content_types),
) -> Dict[str, Any]:
    """Field-type tree of a content type."""
    try:
        return await content_types.get_schema(id)
    except NotFoundException:
        raise HTTPException(status_code=404, detail="Content type not found")
    except SourceReadFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{id}/fields", response_model=List[schemas.SelectableField])
async def fields(
    id: str = Path(..., description="Content type uid, e.g. 'api::article.article'"),
    relations: Optional[str] = Query(
        None, description="Comma separated relation fields to include"
    ),
    content_types: ContentTypesService = Depends(deps.get_content_types),
) -> List[schemas.SelectableField]:
    """Fields an admin can map into index documents."""
    included = [r.strip() for r in (relations or "").split(",") if r.strip()]
    try:
        return await content_types.get_selectable_fields(id, included)
    except NotFoundException:
        raise HTTPException(status_code=404, detail="Content type not found")
    except SourceReadFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
