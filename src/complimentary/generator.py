"""Transport adapters that send a ``GenerationRequest`` to a model backend."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from complimentary.errors import EmptyResponseError, TransportError
from complimentary.models import GenerationRequest

logger = logging.getLogger(__name__)

GEMINI_KEY_ENV = "GEMINI_API_KEY"
OPENAI_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_GEMINI_KEY_FILE = Path(".api_keys/Gemini.md")
DEFAULT_OPENAI_KEY_FILE = Path(".api_keys/OpenAI.md")
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o"


def resolve_api_key(env_var: str, key_file: Path) -> str | None:
    """Resolve an API key from the environment or a fallback file.

    Resolution order:
    1. ``env_var`` environment variable.
    2. ``key_file`` plaintext contents.

    Args:
        env_var: Name of the environment variable to check first.
        key_file: Optional fallback file containing only the API key.

    Returns:
        The non-empty API key when found, otherwise ``None``.
    """
    api_key = (os.getenv(env_var) or "").strip()
    if api_key:
        return api_key

    if key_file.exists():
        fallback_key = key_file.read_text(encoding="utf-8").strip()
        if fallback_key:
            return fallback_key

    return None


class Transport(Protocol):
    model_name: str

    def generate(self, request: GenerationRequest) -> str:
        """Return raw model text, or raise ``TransportError``."""
        ...


class GeminiGenerator:
    """Thin adapter around Google GenAI content generation."""

    def __init__(self, model_name: str = DEFAULT_GEMINI_MODEL, api_key: str | None = None):
        self.model_name = model_name
        self.api_key = api_key

    def generate(self, request: GenerationRequest) -> str:
        """Generate JSON-formatted artifact content for ``request``.

        Raises:
            TransportError: If credentials are missing or the SDK call fails.
            EmptyResponseError: If the response text is empty.
        """
        if not self.api_key:
            raise TransportError(f"Missing {GEMINI_KEY_ENV} (set env var or {DEFAULT_GEMINI_KEY_FILE})")

        from google import genai
        from google.genai import types

        try:
            client = genai.Client(api_key=self.api_key)
            response = client.models.generate_content(
                model=self.model_name,
                contents=request.user_instructions,
                config=types.GenerateContentConfig(
                    system_instruction=request.system_instructions,
                    temperature=request.temperature,
                    max_output_tokens=request.max_output_tokens,
                    response_mime_type="application/json",
                ),
            )
        except Exception as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc

        text = (response.text or "").strip()
        if not text:
            raise EmptyResponseError("Gemini returned an empty response")
        return text


class OpenAIGenerator:
    """Adapter around the OpenAI chat completions endpoint."""

    def __init__(self, model_name: str = DEFAULT_OPENAI_MODEL, api_key: str | None = None):
        self.model_name = model_name
        self.api_key = api_key

    def generate(self, request: GenerationRequest) -> str:
        if not self.api_key:
            raise TransportError(f"Missing {OPENAI_KEY_ENV} (set env var or {DEFAULT_OPENAI_KEY_FILE})")

        from openai import OpenAI, OpenAIError

        try:
            client = OpenAI(api_key=self.api_key)
            response = client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": request.system_instructions},
                    {"role": "user", "content": request.user_instructions},
                ],
                max_tokens=request.max_output_tokens,
                temperature=request.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            raise TransportError(f"OpenAI request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        usage = getattr(response, "usage", None)
        if usage:
            logger.debug(
                "openai model=%s prompt_tokens=%s completion_tokens=%s",
                self.model_name,
                getattr(usage, "prompt_tokens", None),
                getattr(usage, "completion_tokens", None),
            )
        text = (content or "").strip()
        if not text:
            raise EmptyResponseError("OpenAI returned no content")
        return text
