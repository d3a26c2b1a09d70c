"""LLM provider abstraction: Protocol plus the Gemini implementation (google-genai)."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from benchmark_hub.llm import RESPONSE_SCHEMA, parse_grounding_chunks
from benchmark_hub.models import AppSettings, GroundingSource

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


@dataclass(slots=True)
class LLMResult:
    """Result from an LLM provider call."""

    output: str
    success: bool
    error: str = ""
    grounding: tuple[GroundingSource, ...] = ()


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers; any class with this signature is compatible."""

    async def execute(self, prompt: str, timeout: int) -> LLMResult: ...


def _search_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        tools=[types.Tool(google_search=types.GoogleSearch())],
        response_mime_type="application/json",
        response_schema=RESPONSE_SCHEMA,
    )


def _grounding_from_response(response: Any) -> list[GroundingSource]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    return parse_grounding_chunks(
        [c.model_dump(exclude_none=True) if hasattr(c, "model_dump") else c for c in chunks]
    )


class GeminiProvider:
    """LLM provider backed by Gemini ``generate_content`` with Google Search grounding.

    Requests a JSON array matching RESPONSE_SCHEMA. Never raises on API or
    transport errors; returns LLMResult with success=False instead. Task
    cancellation propagates.
    """

    __slots__ = ("_api_key", "_client", "_model")

    def __init__(self, api_key: str, model: str, client: genai.Client | None = None) -> None:
        self._api_key = api_key
        self._model = model
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def execute(self, prompt: str, timeout: int) -> LLMResult:
        """Run one grounded dataset search and return the text plus citation sources."""
        try:
            response = await asyncio.wait_for(
                self._get_client().aio.models.generate_content(
                    model=self._model,
                    contents=prompt,
                    config=_search_config(),
                ),
                timeout=timeout,
            )
        except TimeoutError:
            return LLMResult(output="", success=False, error=f"Timed out after {timeout}s")
        except genai_errors.APIError as e:
            if e.code in (401, 403):
                return LLMResult(
                    output="",
                    success=False,
                    error=f"Authorization failed (HTTP {e.code}). Check your API key.",
                )
            logger.warning("Gemini API returned %s: %s", e.code, e.message)
            return LLMResult(output="", success=False, error=f"HTTP {e.code}")
        except httpx.HTTPError as e:
            logger.warning("Gemini request failed: %s", e, exc_info=True)
            return LLMResult(output="", success=False, error=f"Network error: {e}")

        text = response.text or ""
        if not text.strip():
            return LLMResult(output="", success=False, error="Empty output")
        return LLMResult(
            output=text,
            success=True,
            grounding=tuple(_grounding_from_response(response)),
        )


def get_api_key() -> str:
    """Read the Gemini API key from the environment ("" if unset)."""
    for var in API_KEY_ENV_VARS:
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return ""


def resolve_provider(
    settings: AppSettings,
    *,
    api_key: str | None = None,
    client: genai.Client | None = None,
) -> LLMProvider | None:
    """Create the Gemini provider for the configured model, or None without an API key."""
    key = api_key if api_key is not None else get_api_key()
    if not key:
        return None
    return GeminiProvider(key, settings.model, client=client)


__all__ = [
    "API_KEY_ENV_VARS",
    "GeminiProvider",
    "LLMProvider",
    "LLMResult",
    "get_api_key",
    "resolve_provider",
]
