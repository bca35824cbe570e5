"""Exception taxonomy for the gateway."""
from __future__ import annotations

NO_TEXT_GENERATED = "No response generated from the model"


class GatewayError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(GatewayError):
    """Startup configuration is invalid."""


class ChatValidationError(GatewayError):
    """Incoming chat body failed validation; maps to a 400."""


class UpstreamError(GatewayError):
    """The inference provider failed or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyGenerationError(GatewayError):
    """The provider answered but produced no usable text."""

    def __init__(self, message: str = NO_TEXT_GENERATED) -> None:
        super().__init__(message)
