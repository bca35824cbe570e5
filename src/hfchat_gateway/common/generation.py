"""Fixed decoding parameters sent with every inference call."""
from __future__ import annotations
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from hfchat_gateway.common.errors import ConfigError


@dataclass(frozen=True)
class GenerationParameters:
    """Sampling configuration for the text-generation task.

    Field names match the upstream `parameters` object, so `to_payload`
    is a plain dump (with `stop` as a list).
    """
    max_new_tokens: int = 1000
    temperature: float = 0.7
    return_full_text: bool = False
    do_sample: bool = True
    top_p: float = 0.95
    top_k: int = 50
    repetition_penalty: float = 1.1
    length_penalty: float = 1.0
    stop: tuple[str, ...] = ("</s>", "Human:", "Assistant:")

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["stop"] = list(self.stop)
        return payload


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected true/false, got {value!r}")
    return value


_CASTS = {
    "max_new_tokens": int,
    "temperature": float,
    "return_full_text": _as_bool,
    "do_sample": _as_bool,
    "top_p": float,
    "top_k": int,
    "repetition_penalty": float,
    "length_penalty": float,
}


def load_generation_params(path: str | None = None) -> GenerationParameters:
    """
    Load generation parameters, overriding defaults from a YAML mapping.

    Args:
        path: YAML file path. None returns the defaults.

    Raises:
        ConfigError: File unreadable, not a mapping, or has unknown keys.
    """
    defaults = GenerationParameters()
    if not path:
        return defaults

    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read generation config {Path(path)}: {e}") from e

    if not isinstance(cfg, dict):
        raise ConfigError(f"Generation config {path} must be a mapping")

    known = {f.name for f in fields(GenerationParameters)}
    unknown = sorted(set(cfg) - known)
    if unknown:
        raise ConfigError(f"Unknown generation parameters: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    try:
        for key, value in cfg.items():
            if key == "stop":
                overrides[key] = tuple(str(s) for s in (value or []))
            else:
                overrides[key] = _CASTS[key](value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid generation parameter value: {e}") from e
    return replace(defaults, **overrides)
