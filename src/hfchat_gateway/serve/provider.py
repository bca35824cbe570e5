"""Inference providers: the single outbound call the gateway makes."""
from __future__ import annotations
import logging
from typing import Any, Protocol

import httpx

from hfchat_gateway.common.errors import UpstreamError
from hfchat_gateway.common.generation import GenerationParameters
from hfchat_gateway.common.schema import GenerationResult

LOGGER = logging.getLogger("hfchat.serve.provider")


class InferenceProvider(Protocol):
    async def generate(
        self, model: str, inputs: str, params: GenerationParameters
    ) -> GenerationResult:
        ...


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from a failed upstream response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        err = body["error"]
        if isinstance(err, list):
            return "; ".join(str(e) for e in err)
        return str(err)
    return f"HTTP {response.status_code}: {response.reason_phrase}"


def _parse_result(data: Any) -> GenerationResult:
    """Accept `[{"generated_text": ...}]` or `{"generated_text": ...}`."""
    if isinstance(data, list):
        if not data:
            return GenerationResult(generated_text=None)
        data = data[0]
    if not isinstance(data, dict):
        raise UpstreamError("Malformed response from inference provider")
    text = data.get("generated_text")
    if text is not None and not isinstance(text, str):
        raise UpstreamError("Malformed response from inference provider")
    return GenerationResult(generated_text=text)


class HuggingFaceProvider:
    """Text generation over the Hugging Face Inference API.

    One instance (and one pooled `httpx.AsyncClient`) is shared by every
    request in the process. Call `aclose()` on shutdown.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    async def generate(
        self, model: str, inputs: str, params: GenerationParameters
    ) -> GenerationResult:
        url = f"{self.base_url}/{model}"
        payload = {
            "inputs": inputs,
            "parameters": params.to_payload(),
            "options": {"wait_for_model": True},
        }
        try:
            r = await self._client.post(url, headers=self._headers, json=payload)
        except httpx.HTTPError as e:
            LOGGER.error("Inference request failed: %s", e)
            raise UpstreamError(str(e) or e.__class__.__name__) from e

        if r.is_error:
            message = _error_message(r)
            LOGGER.error("Inference provider returned %s: %s", r.status_code, message)
            raise UpstreamError(message, status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError("Malformed response from inference provider") from e
        return _parse_result(data)

    async def aclose(self) -> None:
        await self._client.aclose()
