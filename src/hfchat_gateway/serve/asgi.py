"""ASGI entry point for hosting shims, e.g. `uvicorn hfchat_gateway.serve.asgi:app`."""
from __future__ import annotations

from hfchat_gateway.common.config import load_settings
from hfchat_gateway.common.logging_setup import setup_logging
from hfchat_gateway.serve.fastapi_app import create_app

settings = load_settings()
setup_logging(settings.log_level)
app = create_app(settings)
