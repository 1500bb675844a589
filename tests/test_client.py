"""Tests for the LM Studio HTTP client."""

from __future__ import annotations

import httpx
import pytest

from lmstudio_oss.core.client import CONNECT_TIMEOUT_SECONDS, LMStudioClient
from lmstudio_oss.core.config import (
    LMSTUDIO_OSS_PROVIDER_ID,
    ModelProviderInfo,
    OssConfig,
)
from lmstudio_oss.core.errors import (
    ConfigurationMissingError,
    MalformedResponseError,
    ServerError,
    TransportError,
)

HOST = "http://lmstudio.test/v1"


def _transport(status_code: int = 200, json=None, seen=None) -> httpx.MockTransport:  # noqa: A002
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if json is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=json)

    return httpx.MockTransport(handler)


def _failing_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return httpx.MockTransport(handler)


def _config(base_url: str | None = HOST) -> OssConfig:
    return OssConfig(
        model_providers={
            LMSTUDIO_OSS_PROVIDER_ID: ModelProviderInfo(name="LM Studio", base_url=base_url)
        }
    )


@pytest.mark.asyncio
async def test_list_models_happy_path() -> None:
    seen: list[httpx.Request] = []
    transport = _transport(json={"data": [{"id": "openai/gpt-oss-20b"}]}, seen=seen)
    async with LMStudioClient.from_host_root(HOST, transport=transport) as client:
        models = await client.list_models()

    assert models == ["openai/gpt-oss-20b"]
    assert seen[0].method == "GET"
    assert str(seen[0].url) == f"{HOST}/models"


@pytest.mark.asyncio
async def test_list_models_preserves_order_and_skips_entries_without_string_id() -> None:
    payload = {
        "object": "list",
        "data": [
            {"id": "b-model", "object": "model"},
            {"object": "model"},
            {"id": 42},
            "not-an-object",
            {"id": "a-model"},
        ],
    }
    async with LMStudioClient.from_host_root(HOST, transport=_transport(json=payload)) as client:
        assert await client.list_models() == ["b-model", "a-model"]


@pytest.mark.asyncio
async def test_list_models_empty_data_is_not_an_error() -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_transport(json={"data": []})) as client:
        assert await client.list_models() == []


@pytest.mark.asyncio
async def test_list_models_no_data_array() -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_transport(json={})) as client:
        with pytest.raises(MalformedResponseError) as exc_info:
            await client.list_models()

    assert "No 'data' array in response" in str(exc_info.value)
    assert exc_info.value.error_code == "malformed_response"


@pytest.mark.asyncio
async def test_list_models_data_of_wrong_type() -> None:
    transport = _transport(json={"data": {"id": "x"}})
    async with LMStudioClient.from_host_root(HOST, transport=transport) as client:
        with pytest.raises(MalformedResponseError):
            await client.list_models()


@pytest.mark.asyncio
async def test_list_models_invalid_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>nope</html>")

    transport = httpx.MockTransport(handler)
    async with LMStudioClient.from_host_root(HOST, transport=transport) as client:
        with pytest.raises(MalformedResponseError) as exc_info:
            await client.list_models()

    assert "JSON parse error" in str(exc_info.value)


@pytest.mark.asyncio
async def test_list_models_server_error() -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_transport(500)) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.list_models()

    assert "Failed to fetch models: 500" in str(exc_info.value)
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_list_models_unreachable_host_is_transport_error() -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_failing_transport()) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.list_models()

    assert "Request failed" in str(exc_info.value)
    assert not isinstance(exc_info.value, ServerError)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [200, 204])
async def test_check_health_accepts_2xx(status_code: int) -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_transport(status_code)) as client:
        await client.check_health()


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [404, 503])
async def test_check_health_rejects_non_2xx(status_code: int) -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_transport(status_code)) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.check_health()

    assert f"Server returned error: {status_code}" in str(exc_info.value)
    assert exc_info.value.status_code == status_code


@pytest.mark.asyncio
async def test_check_health_unreachable_is_server_error() -> None:
    async with LMStudioClient.from_host_root(HOST, transport=_failing_transport()) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.check_health()

    assert "Connection refused" in str(exc_info.value)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_trailing_slash_is_stripped() -> None:
    seen: list[httpx.Request] = []
    client = LMStudioClient.from_host_root(f"{HOST}/", transport=_transport(seen=seen))
    try:
        assert client.base_url == HOST
        await client.check_health()
    finally:
        await client.aclose()

    assert str(seen[0].url) == f"{HOST}/models"


def test_http_client_only_bounds_connect_phase() -> None:
    client = LMStudioClient.from_host_root(HOST)
    timeout = client._client.timeout
    assert timeout.connect == CONNECT_TIMEOUT_SECONDS
    assert timeout.read is None
    assert timeout.pool is None


@pytest.mark.asyncio
async def test_try_from_provider_checks_health() -> None:
    seen: list[httpx.Request] = []
    client = await LMStudioClient.try_from_provider(_config(), transport=_transport(seen=seen))
    try:
        assert client.base_url == HOST
    finally:
        await client.aclose()

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_try_from_provider_propagates_health_failure() -> None:
    with pytest.raises(ServerError):
        await LMStudioClient.try_from_provider(_config(), transport=_transport(500))


@pytest.mark.asyncio
async def test_try_from_provider_missing_provider() -> None:
    seen: list[httpx.Request] = []
    with pytest.raises(ConfigurationMissingError) as exc_info:
        await LMStudioClient.try_from_provider(OssConfig(), transport=_transport(seen=seen))

    assert "lmstudio" in str(exc_info.value)
    assert seen == []


@pytest.mark.asyncio
@pytest.mark.parametrize("base_url", [None, "", "   "])
async def test_try_from_provider_missing_base_url(base_url) -> None:
    with pytest.raises(ConfigurationMissingError):
        await LMStudioClient.try_from_provider(_config(base_url), transport=_transport())
