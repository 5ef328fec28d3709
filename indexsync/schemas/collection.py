"""Collection schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from croniter import croniter
from pydantic import BaseModel, Field, model_validator

from indexsync.core.shared_models import CollectionStatus, UpdateHook
from indexsync.platform.transformers.schema import selected_paths


def _check_trigger(update_hook: Optional[UpdateHook], update_cron: Optional[str]) -> None:
    if update_hook != UpdateHook.CRON:
        return
    if not (update_cron or "").strip():
        raise ValueError("update_cron is required when update_hook is 'cron'")
    if not croniter.is_valid(update_cron):
        raise ValueError(f"Invalid cron expression: {update_cron}")


def _check_searchable(field_schema: Dict[str, Any], searchable: List[str]) -> None:
    reachable = set(selected_paths(field_schema))
    unknown = [path for path in searchable if path not in reachable]
    if unknown:
        raise ValueError(f"Searchable attributes not present in schema: {', '.join(unknown)}")


class CollectionBase(BaseModel):
    """Base schema for collections."""

    entity: str = Field(..., description="Source content type (e.g. 'api::article.article')")
    index_id: str = Field(..., description="Identifier of the remote index")
    field_schema: Dict[str, Any] = Field(
        default_factory=dict,
        description="Nested field-type tree of the attributes copied into index documents",
    )
    searchable_attributes: List[str] = Field(
        default_factory=list, description="Dotted paths of field_schema that are searchable"
    )
    included_relations: List[str] = Field(
        default_factory=list, description="Relation fields populated when reading entries"
    )
    include_drafts: bool = Field(False, description="Index unpublished entries as well")
    update_hook: Optional[UpdateHook] = Field(
        None, description="How the index follows source changes (cron or live)"
    )
    update_cron: Optional[str] = Field(
        None, description="Cron expression, required when update_hook is 'cron'"
    )


class CollectionCreate(CollectionBase):
    """Schema for creating a collection."""

    @model_validator(mode="after")
    def _validate(self) -> "CollectionCreate":
        _check_trigger(self.update_hook, self.update_cron)
        _check_searchable(self.field_schema, self.searchable_attributes)
        return self


class CollectionUpdate(BaseModel):
    """Schema for updating a collection. Unset fields keep their stored value."""

    entity: Optional[str] = None
    index_id: Optional[str] = None
    field_schema: Optional[Dict[str, Any]] = None
    searchable_attributes: Optional[List[str]] = None
    included_relations: Optional[List[str]] = None
    include_drafts: Optional[bool] = None
    update_hook: Optional[UpdateHook] = None
    update_cron: Optional[str] = None


class Collection(CollectionBase):
    """Collection as stored, including orchestrator-managed fields."""

    id: UUID
    status: CollectionStatus
    deployed_at: Optional[datetime] = None
    documents_count: Optional[int] = Field(None, ge=0)
    last_error: Optional[str] = None
    created_at: datetime
    modified_at: datetime
    has_settings: bool = Field(
        False, description="A code-level schema and transformer override exists for the index"
    )

    class Config:
        """Pydantic config."""

        from_attributes = True


def validate_merged(current: Collection, update: CollectionUpdate) -> None:
    """Validate the configuration that results from applying ``update`` to ``current``.

    Raises:
        ValueError: If the merged configuration breaks a collection invariant
    """
    data = current.model_dump()
    data.update(update.model_dump(exclude_unset=True))
    _check_trigger(data["update_hook"], data["update_cron"])
    _check_searchable(data["field_schema"], data["searchable_attributes"])
