"""Send one prompt through the chat handler from the command line."""
from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys

from hfchat_gateway.common.config import load_settings
from hfchat_gateway.common.generation import load_generation_params
from hfchat_gateway.common.logging_setup import setup_logging
from hfchat_gateway.serve.handler import ChatHandler
from hfchat_gateway.serve.provider import HuggingFaceProvider, InferenceProvider

LOGGER = logging.getLogger("hfchat.cli.ask")

async def ask(text: str, model_id: str, provider: InferenceProvider, cfg_path: str | None = None) -> tuple[int, dict]:
    handler = ChatHandler(provider, model_id, load_generation_params(cfg_path))
    return await handler.handle_chat({"message": text})

async def _run(text: str, model: str | None) -> tuple[int, dict]:
    settings = load_settings()
    provider = HuggingFaceProvider(
        api_key=settings.api_key,
        base_url=settings.api_base_url,
        timeout=settings.upstream_timeout,
    )
    try:
        return await ask(text, model or settings.model_id, provider, settings.generation_config)
    finally:
        await provider.aclose()

def main(argv: list[str] | None = None) -> int:
    setup_logging(logging.WARNING)
    ap = argparse.ArgumentParser(description="Ask the hosted model a single question")
    ap.add_argument("--text", required=True, help="User input text")
    ap.add_argument("--model", default=None, help="Model id (defaults to HF_MODEL_ID)")
    args = ap.parse_args(argv)

    status, payload = asyncio.run(_run(args.text, args.model))
    if status != 200:
        print(json.dumps(payload), file=sys.stderr)
        return 1
    print(payload["response"]["message"])
    return 0

if __name__ == "__main__":
    sys.exit(main())
