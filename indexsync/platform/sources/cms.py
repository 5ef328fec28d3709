"""Headless CMS source.

Reads entries through the CMS REST API (``GET /api/{pluralName}``) using bracketed
query parameters for field selection, relation population, filters and pagination::

    fields[0]=id&fields[1]=title
    populate[author][fields][0]=name
    filters[publishedAt][$notNull]=true
    publicationState=preview
    pagination[start]=0&pagination[limit]=50
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import httpx

from indexsync.core.exceptions import SourceReadFailure
from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger
from indexsync.platform.sources._base import DEFAULT_PAGE_SIZE, BaseSourceReader
from indexsync.platform.transformers.schema import is_collection

if TYPE_CHECKING:
    from indexsync.platform.sources.content_types import ContentTypesService

ID_FIELD = "id"


def encode_params(prefix: str, value: Any) -> List[Tuple[str, str]]:
    """Flatten a nested value into bracketed query parameters."""
    if isinstance(value, dict):
        params: List[Tuple[str, str]] = []
        for key, sub in value.items():
            params.extend(encode_params(f"{prefix}[{key}]", sub))
        return params
    if isinstance(value, (list, tuple)):
        params = []
        for i, sub in enumerate(value):
            params.extend(encode_params(f"{prefix}[{i}]", sub))
        return params
    if isinstance(value, bool):
        return [(prefix, "true" if value else "false")]
    return [(prefix, str(value))]


def unwrap_entry(item: Any) -> Any:
    """Flatten ``{"id", "attributes"}`` envelopes and ``{"data": ...}`` relation wrappers."""
    if isinstance(item, list):
        return [unwrap_entry(sub) for sub in item]
    if not isinstance(item, dict):
        return item
    if set(item.keys()) == {"data"}:
        return unwrap_entry(item["data"])
    if isinstance(item.get("attributes"), dict):
        flat = {k: v for k, v in item.items() if k != "attributes"}
        flat.update(item["attributes"])
        item = flat
    return {key: unwrap_entry(value) for key, value in item.items()}


class CMSClient:
    """Thin async HTTP client for the CMS REST API."""

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            base_url: CMS base URL, e.g. ``http://localhost:1337``
            api_token: Bearer token for the REST API
            timeout: Timeout in seconds applied to every request
            http_client: Optional preconfigured client
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def get(self, path: str, params: Optional[List[Tuple[str, str]]] = None) -> Any:
        """GET a JSON document.

        Raises:
            SourceReadFailure: On transport errors, error statuses or non-JSON bodies
        """
        headers = {"Authorization": f"Bearer {self.api_token}"} if self.api_token else {}
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params or [], headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise SourceReadFailure(
                f"CMS request {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SourceReadFailure(f"CMS request {path} failed: {e}") from e
        except ValueError as e:
            raise SourceReadFailure(f"CMS request {path} returned invalid JSON") from e

    async def close(self) -> None:
        await self._client.aclose()


class CMSSourceReader(BaseSourceReader):
    """Reads entries of a content type through the CMS REST API."""

    def __init__(
        self,
        client: CMSClient,
        content_types: "ContentTypesService",
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the reader.

        Args:
            client: CMS HTTP client
            content_types: Resolves content type uids to REST paths
            logger: Contextual logger
        """
        self.client = client
        self.content_types = content_types
        self.logger = logger or default_logger.with_context(component="cms_source")

    @staticmethod
    def build_query(
        relations: Sequence[str],
        schema: Dict[str, Any],
        where: Optional[Dict[str, Any]],
        offset: int,
        limit: int,
    ) -> List[Tuple[str, str]]:
        """Build the query parameters for one page.

        Top-level schema keys become selected fields (the identifier is always
        selected). A relation listed in ``relations`` and present in ``schema`` is
        populated with the sub-keys of its schema entry instead.
        """
        schema = schema or {}
        populate: Dict[str, Any] = {}
        for relation in relations or []:
            if relation not in schema:
                continue
            sub_schema = schema[relation]
            sub_fields = list(sub_schema.keys()) if isinstance(sub_schema, dict) else []
            populate[relation] = {"fields": sub_fields} if sub_fields else True

        fields = [ID_FIELD]
        for key, value in schema.items():
            if key == ID_FIELD or key in populate:
                continue
            # Relation sub-objects are never plain fields, populated or not
            if isinstance(value, dict) or is_collection(value):
                continue
            fields.append(key)

        params = encode_params("fields", fields)
        # Drafts are always requested; `where` decides whether they are filtered out
        params.append(("publicationState", "preview"))
        params.extend(encode_params("populate", populate))
        if where:
            params.extend(encode_params("filters", where))
        params.extend(encode_params("pagination", {"start": offset, "limit": limit}))
        return params

    async def get_entries(
        self,
        *,
        entity: str,
        relations: Sequence[str],
        schema: Dict[str, Any],
        where: Optional[Dict[str, Any]] = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        content_type = await self.content_types.get_content_type(entity)
        params = self.build_query(relations, schema, where, offset, limit)

        body = await self.client.get(f"/api/{content_type.plural_name}", params=params)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise SourceReadFailure(f"Unexpected response reading entries of {entity}")

        entries = [unwrap_entry(item) for item in data]
        self.logger.debug(f"Read {len(entries)} entries of {entity} at offset {offset}")
        return entries
