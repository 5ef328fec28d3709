"""Schemas for CMS lifecycle events."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from indexsync.core.shared_models import DocumentAction

# CMS webhook event name -> document action. Updates re-read the entry and an
# entry that no longer qualifies (e.g. unpublished without drafts) is removed.
EVENT_ACTIONS: Dict[str, DocumentAction] = {
    "entry.create": DocumentAction.INSERT,
    "entry.update": DocumentAction.UPDATE,
    "entry.publish": DocumentAction.UPDATE,
    "entry.unpublish": DocumentAction.UPDATE,
    "entry.delete": DocumentAction.DELETE,
}


class CMSWebhookPayload(BaseModel):
    """Body of a lifecycle webhook sent by the CMS."""

    event: str
    model: Optional[str] = Field(None, description="Model name, e.g. 'article'")
    uid: Optional[str] = Field(None, description="Content type uid, e.g. 'api::article.article'")
    entry: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _require_model(self) -> "CMSWebhookPayload":
        if not self.uid and not self.model:
            raise ValueError("Either 'uid' or 'model' is required")
        return self

    @property
    def entity(self) -> str:
        """Content type uid the event refers to."""
        return self.uid or f"api::{self.model}.{self.model}"


class LifecycleEvent(BaseModel):
    """A create/update/delete of one record of a CMS entity."""

    entity: str
    action: DocumentAction
    record: Dict[str, Any]
