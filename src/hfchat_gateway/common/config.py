"""Process configuration, read once from the environment at startup."""
from __future__ import annotations
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

from hfchat_gateway.common.errors import ConfigError

DEFAULT_MODEL_ID = "deepseek-ai/deepseek-coder-33b-instruct"
DEFAULT_API_BASE_URL = "https://api-inference.huggingface.co/models"

RUN_MODES = ("standalone", "hosted")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model_id: str = DEFAULT_MODEL_ID
    api_base_url: str = DEFAULT_API_BASE_URL
    upstream_timeout: float = 120.0
    host: str = "0.0.0.0"
    port: int = 10000
    cors_origins: tuple[str, ...] = ("*",)
    run_mode: str = "standalone"
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max: int = 100
    max_body_bytes: int = 10 * 1024 * 1024
    generation_config: str | None = None
    log_level: str = "INFO"

    @property
    def binds_listener(self) -> bool:
        return self.run_mode == "standalone"


def _number(env: Mapping[str, str], name: str, default: Any, cast: Callable[[str], Any]) -> Any:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _origins(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ("*",)
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or ("*",)


def settings_from_env(env: Mapping[str, str]) -> Settings:
    """
    Build settings from an environment mapping.

    Raises:
        ConfigError: A numeric variable does not parse, or RUN_MODE or
            LOG_LEVEL is unknown.
    """
    run_mode = env.get("RUN_MODE", "standalone").strip().lower() or "standalone"
    if run_mode not in RUN_MODES:
        raise ConfigError(f"RUN_MODE must be one of {', '.join(RUN_MODES)}, got {run_mode!r}")

    log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return Settings(
        api_key=env.get("HUGGINGFACE_API_KEY") or None,
        model_id=env.get("HF_MODEL_ID") or DEFAULT_MODEL_ID,
        api_base_url=(env.get("HF_API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/"),
        upstream_timeout=_number(env, "UPSTREAM_TIMEOUT", 120.0, float),
        host=env.get("HOST") or "0.0.0.0",
        port=_number(env, "PORT", 10000, int),
        cors_origins=_origins(env.get("CORS_ORIGIN")),
        run_mode=run_mode,
        rate_limit_window_seconds=_number(env, "RATE_LIMIT_WINDOW_SECONDS", 15 * 60, int),
        rate_limit_max=_number(env, "RATE_LIMIT_MAX", 100, int),
        max_body_bytes=_number(env, "MAX_BODY_BYTES", 10 * 1024 * 1024, int),
        generation_config=env.get("GENERATION_CONFIG") or None,
        log_level=log_level,
    )


def load_settings() -> Settings:
    """Load `.env` (if present) into the process environment, then read settings."""
    load_dotenv()
    return settings_from_env(os.environ)
