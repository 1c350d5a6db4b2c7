"""
Recommendation provider: an OpenAI-compatible chat completion endpoint.

This service provides:
- A thin aiohttp client for `/chat/completions` with retry on network errors
- Extraction of the first well-formed JSON object from free-text model output
- A standard LLMResponse so callers never handle transport exceptions directly
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import Settings, get_settings

logger = logging.getLogger("recommendation_provider")


class JsonExtractionError(ValueError):
    """Raised when model output contains no parsable JSON object."""


@dataclass
class LLMResponse:
    """Standard response format for LLM services."""
    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    model_used: str = ""
    response_time_ms: float = 0.0


class RecommendationProvider(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        ...


def _balanced_object_end(text: str, start: int) -> Optional[int]:
    """Index just past the `}` closing the object opened at `start`, string-aware."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def extract_json_object(text: str, required_key: Optional[str] = None) -> Dict[str, Any]:
    """Return the first balanced JSON object embedded in `text`.

    Surrounding prose and markdown fences are ignored. With `required_key`, objects that
    lack that key are skipped. Raises JsonExtractionError when no candidate object parses.
    """
    if not text:
        raise JsonExtractionError("Empty model response")

    cleaned = text.replace("```json", "").replace("```", "")
    start = cleaned.find("{")
    while start != -1:
        end = _balanced_object_end(cleaned, start)
        parsed = None
        if end is not None:
            try:
                parsed = json.loads(cleaned[start:end])
            except json.JSONDecodeError:
                parsed = None
        if isinstance(parsed, dict) and (required_key is None or required_key in parsed):
            return parsed
        start = cleaned.find("{", start + 1)

    if required_key:
        raise JsonExtractionError(f"Model response does not contain a JSON object with '{required_key}'")
    raise JsonExtractionError("Model response does not contain a valid JSON object")


class ChatCompletionProvider:
    """OpenAI-compatible chat completion client."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings or get_settings()
        self.api_key = self.settings.llm_api_key
        self.base_url = self.settings.llm_api_base.rstrip("/")
        self.model = self.settings.llm_model
        self.timeout = aiohttp.ClientTimeout(total=self.settings.llm_timeout)
        self._session = session

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
        reraise=True,
    )
    async def _post(self, session: aiohttp.ClientSession, payload: Dict[str, Any]) -> tuple:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with session.post(f"{self.base_url}/chat/completions", json=payload, headers=headers) as response:
            if response.status != 200:
                return response.status, await response.text()
            return response.status, await response.json()

    async def complete(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        if not self.api_key:
            logger.warning("Recommendation provider API key not configured")
            return LLMResponse(success=False, error="API key not configured", model_used=self.model)

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.settings.llm_max_tokens,
            "temperature": 0.3,
        }

        start_time = time.perf_counter()
        try:
            if self._session is not None:
                status, body = await self._post(self._session, payload)
            else:
                async with aiohttp.ClientSession(timeout=self.timeout) as session:
                    status, body = await self._post(session, payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Recommendation provider unreachable: {e}")
            return LLMResponse(success=False, error=f"Provider unreachable: {e}", model_used=self.model)

        if status != 200:
            logger.error(f"Recommendation provider error {status}: {str(body)[:200]}")
            return LLMResponse(success=False, error=f"API error {status}", model_used=self.model)

        try:
            text = body["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.error(f"Unexpected provider response shape: {str(body)[:200]}")
            return LLMResponse(success=False, error="No content in provider response", model_used=self.model)

        response_time = (time.perf_counter() - start_time) * 1000
        logger.info(f"Recommendation provider answered in {response_time:.0f}ms")
        return LLMResponse(success=True, text=text, model_used=self.model, response_time_ms=response_time)
