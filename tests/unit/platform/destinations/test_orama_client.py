"""Tests for the Orama Cloud index client."""

import json

import httpx
import pytest

from indexsync.core.exceptions import ConfigurationError, RemoteAPIFailure
from indexsync.platform.destinations.orama import OramaIndexClient
from indexsync.platform.destinations.retry_helpers import (
    should_retry_remote_failure,
    wait_retry_after_with_backoff,
)

BASE_URL = "https://index.test/api/v1/webhooks"


def make_client(handler, api_key="secret"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OramaIndexClient(api_key, BASE_URL + "/", http_client=http_client)


@pytest.fixture
def recorded():
    return []


@pytest.fixture
def client(recorded):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        recorded.append((request.method, str(request.url), body, request.headers))
        if request.url.path.endswith("/has-data"):
            return httpx.Response(200, json={"hasData": True})
        return httpx.Response(200, json={"success": True})

    return make_client(handler)


@pytest.mark.asyncio
async def test_update_schema(client, recorded):
    await client.index("idx").update_schema({"title": "string"})

    method, url, body, headers = recorded[0]
    assert method == "POST"
    assert url == f"{BASE_URL}/idx/update-schema"
    assert body == {"schema": {"title": "string"}}
    assert headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_reset_sends_empty_snapshot(client, recorded):
    await client.index("idx").reset()

    _, url, body, _ = recorded[0]
    assert url == f"{BASE_URL}/idx/snapshot"
    assert body == []


@pytest.mark.asyncio
async def test_insert_and_update_are_upserts(client, recorded):
    await client.insert("idx", [{"id": "1"}])
    await client.update("idx", [{"id": "2"}])

    assert [(url, body) for _, url, body, _ in recorded] == [
        (f"{BASE_URL}/idx/notify", {"upsert": [{"id": "1"}]}),
        (f"{BASE_URL}/idx/notify", {"upsert": [{"id": "2"}]}),
    ]


@pytest.mark.asyncio
async def test_delete_sends_ids(client, recorded):
    await client.index("idx").delete(["7"])

    _, url, body, _ = recorded[0]
    assert url == f"{BASE_URL}/idx/notify"
    assert body == {"remove": ["7"]}


@pytest.mark.asyncio
async def test_deploy(client, recorded):
    await client.index("idx").deploy()

    assert recorded[0][1] == f"{BASE_URL}/idx/deploy"


@pytest.mark.asyncio
async def test_has_pending_operations(client):
    assert await client.index("idx").has_pending_operations() is True


@pytest.mark.asyncio
async def test_missing_api_key_raises_configuration_error():
    client = make_client(lambda request: httpx.Response(200), api_key=None)

    with pytest.raises(ConfigurationError):
        await client.deploy("idx")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,retryable",
    [(400, False), (401, False), (404, False), (429, True), (500, True), (503, True)],
)
async def test_error_status_mapping(status, retryable):
    client = make_client(lambda request: httpx.Response(status, text="nope"))

    with pytest.raises(RemoteAPIFailure) as exc_info:
        await client.deploy("idx")

    assert exc_info.value.status_code == status
    assert exc_info.value.retryable is retryable


@pytest.mark.asyncio
async def test_retry_after_header_is_kept():
    client = make_client(lambda request: httpx.Response(429, headers={"Retry-After": "12"}))

    with pytest.raises(RemoteAPIFailure) as exc_info:
        await client.deploy("idx")

    assert exc_info.value.retry_after == 12.0


@pytest.mark.asyncio
async def test_timeout_is_retryable():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = make_client(handler)

    with pytest.raises(RemoteAPIFailure) as exc_info:
        await client.deploy("idx")

    assert exc_info.value.retryable is True
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_transport_error_is_retryable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = make_client(handler)

    with pytest.raises(RemoteAPIFailure) as exc_info:
        await client.upsert("idx", [{"id": "1"}])

    assert exc_info.value.retryable is True


def test_should_retry_remote_failure():
    assert should_retry_remote_failure(RemoteAPIFailure("x", retryable=True))
    assert not should_retry_remote_failure(RemoteAPIFailure("x", status_code=401))
    assert not should_retry_remote_failure(ValueError("x"))


class _Outcome:
    def __init__(self, exception):
        self._exception = exception

    def exception(self):
        return self._exception


class _RetryState:
    def __init__(self, exception, attempt_number=1):
        self.outcome = _Outcome(exception)
        self.attempt_number = attempt_number


def test_wait_respects_retry_after_within_bounds():
    assert wait_retry_after_with_backoff(
        _RetryState(RemoteAPIFailure("x", retryable=True, retry_after=5))
    ) == 5
    assert wait_retry_after_with_backoff(
        _RetryState(RemoteAPIFailure("x", retryable=True, retry_after=0.1))
    ) == 1.0
    assert wait_retry_after_with_backoff(
        _RetryState(RemoteAPIFailure("x", retryable=True, retry_after=600))
    ) == 60.0
