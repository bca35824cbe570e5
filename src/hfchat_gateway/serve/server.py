"""Launch the gateway, or leave listener binding to the hosting platform."""
from __future__ import annotations
import logging

import uvicorn

from hfchat_gateway.common.config import Settings, load_settings
from hfchat_gateway.common.logging_setup import setup_logging
from hfchat_gateway.serve.fastapi_app import create_app

LOGGER = logging.getLogger("hfchat.serve.server")

def serve(settings: Settings) -> None:
    """Bind and serve in standalone mode; in hosted mode only report and return."""
    if not settings.binds_listener:
        LOGGER.info("RUN_MODE=%s: listener is provided by the host (hfchat_gateway.serve.asgi:app)", settings.run_mode)
        return

    LOGGER.info("Starting server with PORT: %s", settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )

def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    serve(settings)

if __name__ == "__main__":
    main()
