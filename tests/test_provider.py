from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from hfchat_gateway.common.errors import UpstreamError
from hfchat_gateway.common.generation import GenerationParameters
from hfchat_gateway.serve.provider import HuggingFaceProvider

BASE = "https://hf.test/models"
MODEL = "deepseek-ai/deepseek-coder-33b-instruct"


def _generate(handler: Callable[[httpx.Request], httpx.Response], api_key: str | None = "hf_secret"):
    async def _go():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = HuggingFaceProvider(api_key=api_key, base_url=BASE, client=client)
        try:
            return await provider.generate(MODEL, "hello", GenerationParameters())
        finally:
            await provider.aclose()

    return asyncio.run(_go())


def test_request_shape() -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"generated_text": "hi there"}])

    result = _generate(handler)
    assert result.generated_text == "hi there"
    assert seen["url"] == f"{BASE}/{MODEL}"
    assert seen["auth"] == "Bearer hf_secret"
    body = seen["body"]
    assert body["inputs"] == "hello"
    assert body["parameters"]["max_new_tokens"] == 1000
    assert body["parameters"]["return_full_text"] is False
    assert body["parameters"]["stop"] == ["</s>", "Human:", "Assistant:"]


def test_no_auth_header_without_key() -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"generated_text": "ok"})

    assert _generate(handler, api_key=None).generated_text == "ok"
    assert seen["auth"] is None


@pytest.mark.parametrize("payload", [[], [{}], {"other": 1}])
def test_missing_text_yields_empty_result(payload: Any) -> None:
    result = _generate(lambda request: httpx.Response(200, json=payload))
    assert result.generated_text is None


def test_upstream_error_message_is_surfaced() -> None:
    handler = lambda request: httpx.Response(429, json={"error": "rate limited"})
    with pytest.raises(UpstreamError) as info:
        _generate(handler)
    assert str(info.value) == "rate limited"
    assert info.value.status_code == 429


def test_upstream_error_list_is_joined() -> None:
    handler = lambda request: httpx.Response(400, json={"error": ["bad a", "bad b"]})
    with pytest.raises(UpstreamError, match="bad a; bad b"):
        _generate(handler)


def test_non_json_error_body() -> None:
    handler = lambda request: httpx.Response(503, text="<html>down</html>")
    with pytest.raises(UpstreamError, match="HTTP 503"):
        _generate(handler)


def test_transport_error_becomes_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError, match="connection refused"):
        _generate(handler)


def test_malformed_success_body() -> None:
    with pytest.raises(UpstreamError, match="Malformed"):
        _generate(lambda request: httpx.Response(200, text="not json"))
    with pytest.raises(UpstreamError, match="Malformed"):
        _generate(lambda request: httpx.Response(200, json=[{"generated_text": 5}]))
