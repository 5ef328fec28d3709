"""Indexed collection model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from indexsync.core.shared_models import CollectionStatus
from indexsync.models._base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Collection(Base):
    """Configured mapping from one CMS content type to one remote index.

    ``status``, ``deployed_at``, ``documents_count`` and ``last_error`` are written by
    the sync orchestrator through the status-only update path; everything else comes
    from admin actions.
    """

    __tablename__ = "index_collection"
    __table_args__ = (
        CheckConstraint(
            "status IN ('outdated', 'updating', 'updated')", name="ck_index_collection_status"
        ),
        CheckConstraint(
            "documents_count IS NULL OR documents_count >= 0",
            name="ck_index_collection_documents_count",
        ),
    )

    entity: Mapped[str] = mapped_column(String, nullable=False)
    index_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    field_schema: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    searchable_attributes: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    included_relations: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    include_drafts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    update_hook: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    update_cron: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CollectionStatus.OUTDATED.value
    )
    deployed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    documents_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
