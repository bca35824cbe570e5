"""Chat request handler: validate, call the model once, wrap the result.

The handler never raises for a request. Every outcome is a status code and
a JSON-ready envelope:

- 400 when the body does not carry a usable `message` (provider not called)
- 500 when the provider fails or returns no text
- 200 with `{"response": {"message", "model", "timestamp"}}` otherwise
"""
from __future__ import annotations
import logging
from typing import Any

from pydantic import ValidationError

from hfchat_gateway.common.errors import EmptyGenerationError
from hfchat_gateway.common.generation import GenerationParameters
from hfchat_gateway.common.schema import (
    ChatEnvelope,
    ChatRequest,
    ChatResponse,
    ErrorEnvelope,
)
from hfchat_gateway.serve.provider import InferenceProvider

LOGGER = logging.getLogger("hfchat.serve.handler")

MESSAGE_REQUIRED = "Message is required and must be a string"
IMAGE_URL_INVALID = "image_url must be a string"
PROCESSING_FAILED = "Error processing request"


def _validation_error(exc: ValidationError) -> str:
    fields = {err["loc"][0] for err in exc.errors() if err.get("loc")}
    if fields == {"image_url"}:
        return IMAGE_URL_INVALID
    return MESSAGE_REQUIRED


class ChatHandler:
    """Stateless across requests; safe to share and call concurrently."""

    def __init__(
        self,
        provider: InferenceProvider,
        model_id: str,
        params: GenerationParameters | None = None,
    ) -> None:
        self.provider = provider
        self.model_id = model_id
        self.params = params or GenerationParameters()

    def validate(self, body: Any) -> ChatRequest | ErrorEnvelope:
        if not isinstance(body, dict):
            return ErrorEnvelope(error=MESSAGE_REQUIRED)
        try:
            return ChatRequest.model_validate(body)
        except ValidationError as e:
            return ErrorEnvelope(error=_validation_error(e))

    async def handle_chat(self, body: Any) -> tuple[int, dict[str, Any]]:
        """
        Run one chat request through validation and inference.

        Args:
            body: Decoded JSON body (anything; non-objects are rejected).

        Returns:
            (status_code, payload) ready to be sent as JSON.
        """
        checked = self.validate(body)
        if isinstance(checked, ErrorEnvelope):
            LOGGER.info("Rejected chat request: %s", checked.error)
            return 400, checked.to_json()

        LOGGER.info(
            "Received chat request: chars=%d image_url=%s",
            len(checked.message),
            checked.image_url is not None,
        )
        if checked.image_url is not None:
            # image_url is accepted for compatibility but not sent upstream
            LOGGER.debug("Ignoring image_url %s", checked.image_url)

        try:
            result = await self.provider.generate(self.model_id, checked.message, self.params)
            LOGGER.debug("Upstream response: %r", result)
            if not result or not result.generated_text:
                raise EmptyGenerationError()
        except Exception as e:
            LOGGER.exception("Chat request failed")
            envelope = ErrorEnvelope(error=PROCESSING_FAILED, details=str(e))
            return 500, envelope.to_json()

        envelope = ChatEnvelope(
            response=ChatResponse(message=result.generated_text, model=self.model_id)
        )
        return 200, envelope.model_dump()
