"""Tests for the CMS source reader."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from indexsync.core.exceptions import SourceReadFailure
from indexsync.platform.sources.cms import (
    CMSClient,
    CMSSourceReader,
    encode_params,
    unwrap_entry,
)
from indexsync.schemas.content_type import ContentType


@pytest.fixture
def content_types():
    """Content type lookup resolving every uid to the articles endpoint."""
    mock = MagicMock()
    mock.get_content_type = AsyncMock(
        return_value=ContentType(
            uid="api::article.article", display_name="Article", plural_name="articles"
        )
    )
    return mock


def make_reader(handler, content_types, api_token="cms-token"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = CMSClient("http://cms.test/", api_token=api_token, http_client=http_client)
    return CMSSourceReader(client, content_types)


def test_encode_params_nested():
    assert encode_params("filters", {"id": {"$in": [1, 2]}, "publishedAt": {"$notNull": True}}) == [
        ("filters[id][$in][0]", "1"),
        ("filters[id][$in][1]", "2"),
        ("filters[publishedAt][$notNull]", "true"),
    ]


def test_unwrap_entry_flattens_envelopes():
    item = {
        "id": 1,
        "attributes": {
            "title": "Hello",
            "author": {"data": {"id": 3, "attributes": {"name": "Ada"}}},
            "tags": {"data": [{"id": 4, "attributes": {"label": "x"}}]},
        },
    }

    assert unwrap_entry(item) == {
        "id": 1,
        "title": "Hello",
        "author": {"id": 3, "name": "Ada"},
        "tags": [{"id": 4, "label": "x"}],
    }


def test_unwrap_entry_flat_entries_are_unchanged():
    item = {"id": 1, "title": "Hello", "author": {"id": 3, "name": "Ada"}}

    assert unwrap_entry(item) == item


def test_build_query_selects_scalar_fields_and_identifier():
    params = CMSSourceReader.build_query(
        relations=[], schema={"title": "string"}, where=None, offset=0, limit=50
    )

    assert params == [
        ("fields[0]", "id"),
        ("fields[1]", "title"),
        ("publicationState", "preview"),
        ("pagination[start]", "0"),
        ("pagination[limit]", "50"),
    ]


def test_build_query_populates_included_relations_with_sub_keys():
    params = CMSSourceReader.build_query(
        relations=["author", "category"],
        schema={"title": "string", "author": {"name": "string"}, "comments": "collection"},
        where=None,
        offset=50,
        limit=50,
    )

    assert ("fields[1]", "title") in params
    assert ("populate[author][fields][0]", "name") in params
    # Not in schema: never populated
    assert not any(key.startswith("populate[category]") for key, _ in params)
    # Relation values are never selected as plain fields
    assert [value for key, value in params if key.startswith("fields[")] == ["id", "title"]
    assert ("pagination[start]", "50") in params


def test_build_query_applies_filter():
    params = CMSSourceReader.build_query(
        relations=[],
        schema={"title": "string"},
        where={"publishedAt": {"$notNull": True}},
        offset=0,
        limit=50,
    )

    assert ("filters[publishedAt][$notNull]", "true") in params


@pytest.mark.asyncio
async def test_get_entries_reads_one_page(content_types):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200, json={"data": [{"id": 1, "attributes": {"title": "Hello"}}], "meta": {}}
        )

    reader = make_reader(handler, content_types)

    entries = await reader.get_entries(
        entity="api::article.article", relations=[], schema={"title": "string"}, offset=0
    )

    assert entries == [{"id": 1, "title": "Hello"}]
    assert len(requests) == 1
    assert requests[0].url.path == "/api/articles"
    assert requests[0].url.params["pagination[limit]"] == "50"
    assert requests[0].headers["Authorization"] == "Bearer cms-token"
    content_types.get_content_type.assert_awaited_once_with("api::article.article")


@pytest.mark.asyncio
async def test_get_entries_error_status_raises_source_read_failure(content_types):
    reader = make_reader(lambda request: httpx.Response(500, text="boom"), content_types)

    with pytest.raises(SourceReadFailure):
        await reader.get_entries(entity="api::article.article", relations=[], schema={})


@pytest.mark.asyncio
async def test_get_entries_unexpected_payload_raises_source_read_failure(content_types):
    reader = make_reader(lambda request: httpx.Response(200, json={"error": "?"}), content_types)

    with pytest.raises(SourceReadFailure):
        await reader.get_entries(entity="api::article.article", relations=[], schema={})


@pytest.mark.asyncio
async def test_get_entries_transport_error_raises_source_read_failure(content_types):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    reader = make_reader(handler, content_types)

    with pytest.raises(SourceReadFailure):
        await reader.get_entries(entity="api::article.article", relations=[], schema={})
