"""
Hugging Face chat gateway package.

Provides:
- A chat request handler that validates prompts, calls a hosted
  text-generation model and wraps the result in a JSON envelope
- A FastAPI app (health, chat, CORS, rate limiting) and its server entry point
- A one-shot command line client over the same handler
"""
