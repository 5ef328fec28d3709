"""Content type discovery for the host CMS.

Reads the content-type-builder API once and answers the admin UI's questions about
which entities exist, which relations they carry and what their field-type tree
looks like.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from indexsync.core.exceptions import NotFoundException, SourceReadFailure
from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger
from indexsync.platform.sources.cms import CMSClient, encode_params, unwrap_entry
from indexsync.platform.transformers.schema import (
    COLLECTION_MARKER,
    infer_type,
    selectable_fields,
)
from indexsync.schemas.content_type import ContentType, ContentTypeRelation, SelectableField

USER_CONTENT_TYPE_PREFIX = "api::"

# CMS attribute type -> index type marker
FIELD_TYPE_MAP: Dict[str, str] = {
    "string": "string",
    "text": "string",
    "richtext": "string",
    "email": "string",
    "uid": "string",
    "enumeration": "string",
    "date": "string",
    "datetime": "string",
    "time": "string",
    "integer": "number",
    "biginteger": "number",
    "float": "number",
    "decimal": "number",
    "boolean": "boolean",
}

TO_ONE_RELATIONS = {"oneToOne", "manyToOne", "oneWay"}

# attribute types without a fixed shape, typed from a sample entry
SAMPLED_TYPES = {"json"}


class ContentTypesService:
    """Lists indexable content types and derives their field-type trees."""

    def __init__(self, client: CMSClient, logger: Optional[ContextualLogger] = None):
        """Initialize the service.

        Args:
            client: CMS HTTP client
            logger: Contextual logger
        """
        self.client = client
        self.logger = logger or default_logger.with_context(component="content_types")
        self._cache: Optional[Dict[str, ContentType]] = None
        self._lock = asyncio.Lock()

    async def _load(self) -> Dict[str, ContentType]:
        async with self._lock:
            if self._cache is not None:
                return self._cache

            body = await self.client.get("/api/content-type-builder/content-types")
            items = body.get("data") if isinstance(body, dict) else None
            if not isinstance(items, list):
                raise SourceReadFailure("Unexpected response listing content types")

            content_types: Dict[str, ContentType] = {}
            for item in items:
                uid = item.get("uid", "")
                if not uid.startswith(USER_CONTENT_TYPE_PREFIX):
                    continue
                schema = item.get("schema") or {}
                content_types[uid] = ContentType(
                    uid=uid,
                    display_name=schema.get("displayName", uid),
                    plural_name=schema.get("pluralName", uid.split(".")[-1]),
                    kind=schema.get("kind", "collectionType"),
                    attributes=schema.get("attributes") or {},
                )

            self.logger.debug(f"Loaded {len(content_types)} content types")
            self._cache = content_types
            return content_types

    def invalidate(self) -> None:
        """Drop the cached content types so the next call reloads them."""
        self._cache = None

    async def list_content_types(self) -> List[ContentType]:
        """List user content types."""
        return list((await self._load()).values())

    async def get_content_type(self, uid: str) -> ContentType:
        """Get one content type.

        Raises:
            NotFoundException: If the CMS has no such content type
        """
        content_type = (await self._load()).get(uid)
        if content_type is None:
            raise NotFoundException(f"Content type {uid} not found")
        return content_type

    async def get_relations(self, uid: str) -> List[ContentTypeRelation]:
        """List the relation attributes of a content type."""
        content_type = await self.get_content_type(uid)
        return [
            ContentTypeRelation(value=name, target=attribute.get("target"))
            for name, attribute in content_type.attributes.items()
            if attribute.get("type") == "relation"
        ]

    @staticmethod
    def _scalar_schema(attributes: Dict[str, Any]) -> Dict[str, str]:
        return {
            name: FIELD_TYPE_MAP[attribute.get("type")]
            for name, attribute in attributes.items()
            if attribute.get("type") in FIELD_TYPE_MAP
        }

    async def _sample_entry(self, content_type: ContentType) -> Dict[str, Any]:
        """First entry of a content type, drafts included, or an empty dict."""
        params = [("publicationState", "preview")]
        params.extend(encode_params("pagination", {"start": 0, "limit": 1}))
        body = await self.client.get(f"/api/{content_type.plural_name}", params=params)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise SourceReadFailure(f"Unexpected response reading entries of {content_type.uid}")
        return unwrap_entry(data[0]) if data else {}

    async def get_schema(self, uid: str) -> Dict[str, Any]:
        """Build the field-type tree of a content type.

        Scalars map to ``string``/``number``/``boolean``. A to-one relation becomes a
        nested map of its target's scalar fields and a to-many relation the
        ``collection`` marker. JSON attributes are typed from the values of a sample
        entry (``string[]`` for an array of strings, nested maps for objects) and
        left out when there is no entry or the value carries no type. Media,
        components and dynamic zones are skipped.
        """
        content_types = await self._load()
        content_type = await self.get_content_type(uid)

        sample: Dict[str, Any] = {}
        if any(a.get("type") in SAMPLED_TYPES for a in content_type.attributes.values()):
            sample = await self._sample_entry(content_type)

        schema: Dict[str, Any] = {}
        for name, attribute in content_type.attributes.items():
            kind = attribute.get("type")
            if kind in FIELD_TYPE_MAP:
                schema[name] = FIELD_TYPE_MAP[kind]
            elif kind in SAMPLED_TYPES:
                inferred = infer_type(sample.get(name))
                if inferred is not None:
                    schema[name] = inferred
            elif kind == "relation":
                if attribute.get("relation") in TO_ONE_RELATIONS:
                    target = content_types.get(attribute.get("target", ""))
                    schema[name] = self._scalar_schema(target.attributes) if target else {}
                else:
                    schema[name] = COLLECTION_MARKER
        return schema

    async def get_selectable_fields(
        self, uid: str, relations: Sequence[str]
    ) -> List[SelectableField]:
        """Fields of a content type an admin can map into index documents."""
        schema = await self.get_schema(uid)
        return [SelectableField(**field) for field in selectable_fields(schema, relations)]
