"""Thin async wrapper over the Gemini text generation API."""
from __future__ import annotations

import logging
from functools import lru_cache

import httpx
from google import genai
from google.genai import errors as genai_errors

from .config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_PROMPT = (
    "Create a list of three open-ended and engaging questions formatted as a single string. "
    "Each question should be separated by '||'. These questions are for an anonymous social "
    "messaging platform and should be suitable for a diverse audience. Avoid personal or "
    "sensitive topics, focusing instead on universal themes that encourage friendly interaction."
)


class GenerationError(Exception):
    """The provider could not produce text for a prompt."""


class TextGenerator:
    """Sends a single prompt and returns the first candidate's text."""

    def __init__(self, api_key: str, model: str) -> None:
        self.model = model
        self._client = genai.Client(api_key=api_key) if api_key else None

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def generate(self, prompt: str) -> str:
        if self._client is None:
            raise GenerationError("API key missing or invalid")

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            logger.error("Generation request to %s failed: %s", self.model, exc)
            raise GenerationError("Failed to get response from the AI provider") from exc

        text = (response.text or "").strip()
        if not text:
            raise GenerationError("No content generated")
        return text


@lru_cache
def get_text_generator() -> TextGenerator:
    """Dependency returning the process-wide generator."""

    settings = get_settings()
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; AI endpoints will fail")
    return TextGenerator(settings.gemini_api_key, settings.gemini_model)
