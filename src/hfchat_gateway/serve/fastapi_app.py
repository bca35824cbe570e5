"""FastAPI gateway for a hosted text-generation model.

Endpoints:
- GET /health
- POST /api/chat  { "message": "...", "image_url": "..." }

Anything else answers 404 with the standard error envelope.
"""
from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hfchat_gateway.common.config import Settings
from hfchat_gateway.common.generation import GenerationParameters, load_generation_params
from hfchat_gateway.common.schema import ErrorEnvelope, HealthStatus
from hfchat_gateway.serve.handler import ChatHandler
from hfchat_gateway.serve.provider import HuggingFaceProvider, InferenceProvider
from hfchat_gateway.serve.ratelimit import FixedWindowRateLimiter

LOGGER = logging.getLogger("hfchat.serve.app")

ROUTE_NOT_FOUND = "Route not found"
TOO_MANY_REQUESTS = "Too many requests, please try again later."
BODY_TOO_LARGE = "Request entity too large"
INTERNAL_ERROR = "Internal server error"


def _error(status_code: int, error: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=error).to_json(),
        headers=headers,
    )


async def _read_capped(request: Request, limit: int) -> bytes | None:
    """Read the request body, or return None once it exceeds `limit` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        return None
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


def create_app(
    settings: Settings | None = None,
    provider: InferenceProvider | None = None,
    params: GenerationParameters | None = None,
    limiter: FixedWindowRateLimiter | None = None,
) -> FastAPI:
    """
    Build the gateway app.

    Args:
        settings: Process settings; defaults apply when omitted.
        provider: Inference provider. When omitted a HuggingFaceProvider is
            built from settings and closed on shutdown.
        params: Generation parameters; loaded from settings.generation_config when omitted.
        limiter: Rate limiter; built from settings when omitted.
    """
    settings = settings or Settings()
    owned_provider: HuggingFaceProvider | None = None
    if provider is None:
        owned_provider = HuggingFaceProvider(
            api_key=settings.api_key,
            base_url=settings.api_base_url,
            timeout=settings.upstream_timeout,
        )
        provider = owned_provider
        if not settings.api_key:
            LOGGER.warning("HUGGINGFACE_API_KEY is not set; upstream calls are unauthenticated")
    if params is None:
        params = load_generation_params(settings.generation_config)
    if limiter is None:
        limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        )
    handler = ChatHandler(provider, settings.model_id, params)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        LOGGER.info("Serving model %s", settings.model_id)
        yield
        if owned_provider is not None:
            await owned_provider.aclose()

    app = FastAPI(title="HF Chat Gateway", lifespan=lifespan)
    app.state.handler = handler
    app.state.limiter = limiter

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        key = request.client.host if request.client else "unknown"
        decision = limiter.hit(key)
        headers = limiter.headers(decision)
        if not decision.allowed:
            LOGGER.warning("Rate limit exceeded for %s", key)
            return _error(429, TOO_MANY_REQUESTS, headers=headers)
        try:
            response = await call_next(request)
        except Exception:
            # route errors still get CORS and limit headers
            LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = _error(500, INTERNAL_ERROR)
        response.headers.update(headers)
        return response

    # added last so it wraps the limiter and answers preflights first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return _error(404, ROUTE_NOT_FOUND)
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(500, INTERNAL_ERROR)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return HealthStatus().model_dump()

    @app.post("/api/chat")
    async def chat(request: Request) -> JSONResponse:
        raw = await _read_capped(request, settings.max_body_bytes)
        if raw is None:
            return _error(413, BODY_TOO_LARGE)
        try:
            body = json.loads(raw) if raw else None
        except ValueError:
            body = None
        status_code, payload = await handler.handle_chat(body)
        return JSONResponse(status_code=status_code, content=payload)

    return app
