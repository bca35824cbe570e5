"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    model_config = ConfigDict(extra="ignore")

    message: StrictStr = Field(..., min_length=1, description="User prompt")
    image_url: StrictStr | None = Field(default=None, description="Accepted but not sent upstream")

    @field_validator("message")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class ChatResponse(BaseModel):
    message: str
    model: str
    timestamp: str = Field(default_factory=utc_timestamp)


class ChatEnvelope(BaseModel):
    response: ChatResponse


class ErrorEnvelope(BaseModel):
    error: str
    details: str | None = None
    timestamp: str = Field(default_factory=utc_timestamp)

    def to_json(self) -> dict[str, str]:
        """Dump without the details key when it is unset."""
        return self.model_dump(exclude_none=True)


class HealthStatus(BaseModel):
    status: str = "ok"
    timestamp: str = Field(default_factory=utc_timestamp)


@dataclass(frozen=True)
class GenerationResult:
    """Text generation response from the upstream provider."""
    generated_text: str | None
