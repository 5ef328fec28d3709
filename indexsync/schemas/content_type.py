"""Schemas describing source content types exposed by the host CMS."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ContentType(BaseModel):
    """A content type that can be indexed."""

    uid: str = Field(..., description="CMS identifier, e.g. 'api::article.article'")
    display_name: str
    plural_name: str = Field(..., description="REST collection path segment, e.g. 'articles'")
    kind: str = Field("collectionType", description="collectionType or singleType")
    attributes: Dict[str, Any] = Field(default_factory=dict, exclude=True)


class ContentTypeRelation(BaseModel):
    """A relation attribute that can be populated when reading entries."""

    value: str = Field(..., description="Attribute name")
    target: Optional[str] = Field(None, description="uid of the related content type")


class SelectableField(BaseModel):
    """A field an admin can map into an index document."""

    field: str
    searchable: bool
