"""
Text-generation providers.

Three interchangeable backends behind one async interface:
- Ollama (default, local, no key)
- Groq (OpenAI-compatible chat completions)
- Claude (Anthropic messages API)

Every transport or payload problem surfaces as ExternalGenerationFailure so
callers only need to handle one error type.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import httpx
from loguru import logger

from config import Settings, get_settings
from src.core.errors import ExternalGenerationFailure

ProviderName = Literal["ollama", "groq", "claude"]

GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"
CLAUDE_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class AIResponse:
    content: str
    provider: ProviderName


class AIProvider(ABC):
    """Opaque generate(prompt) -> text backend."""

    name: ProviderName

    def __init__(
        self,
        model: str,
        timeout_seconds: float = 30.0,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> AIProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def generate(self, prompt: str) -> AIResponse:
        """
        Send a single-turn prompt and return the raw completion text.

        Raises:
            ExternalGenerationFailure: On timeout, HTTP error or malformed body
        """
        url, headers, payload = self._build_request(prompt)
        try:
            response = await self.client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"{self.name} request timed out: {e}")
            raise ExternalGenerationFailure(f"{self.name} request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"{self.name} HTTP error {e.response.status_code}: {e.response.text[:200]}")
            raise ExternalGenerationFailure(
                f"{self.name} API error: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"{self.name} request failed: {e}")
            raise ExternalGenerationFailure(f"{self.name} request failed: {e}") from e
        except json.JSONDecodeError as e:
            raise ExternalGenerationFailure(f"{self.name} returned a non-JSON body") from e

        try:
            content = self._extract_content(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalGenerationFailure(f"{self.name} response missing completion text") from e

        if not isinstance(content, str):
            raise ExternalGenerationFailure(f"{self.name} completion text is not a string")
        return AIResponse(content=content, provider=self.name)

    @abstractmethod
    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return (url, headers, json payload)."""

    @abstractmethod
    def _extract_content(self, data: Any) -> Any:
        """Pull the completion text out of the decoded response body."""


class OllamaProvider(AIProvider):
    name: ProviderName = "ollama"

    def __init__(self, base_url: str = "http://localhost:11434", model: str = "llama3.2", **kwargs: Any):
        super().__init__(model=model, **kwargs)
        self.base_url = base_url.rstrip("/")

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        return (
            f"{self.base_url}/api/generate",
            {"Content-Type": "application/json"},
            {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
            },
        )

    def _extract_content(self, data: Any) -> Any:
        return data["response"]


class GroqProvider(AIProvider):
    name: ProviderName = "groq"

    def __init__(self, api_key: str, model: str = "llama-3.1-8b-instant", **kwargs: Any):
        super().__init__(model=model, **kwargs)
        self.api_key = api_key

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        return (
            GROQ_URL,
            {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"},
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
            },
        )

    def _extract_content(self, data: Any) -> Any:
        return data["choices"][0]["message"]["content"]


class ClaudeProvider(AIProvider):
    name: ProviderName = "claude"

    def __init__(self, api_key: str, model: str = "claude-3-haiku-20240307", **kwargs: Any):
        super().__init__(model=model, **kwargs)
        self.api_key = api_key

    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        return (
            CLAUDE_URL,
            {
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
        )

    def _extract_content(self, data: Any) -> Any:
        return data["content"][0]["text"]


def get_ai_provider(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> AIProvider:
    """
    Build the configured provider.

    A remote provider without an API key falls back to Ollama.
    """
    settings = settings or get_settings()
    logger.debug(f"Text generation config: {settings.get_provider_config()}")
    common: dict[str, Any] = {
        "timeout_seconds": settings.ai_timeout_seconds,
        "temperature": settings.ai_temperature,
        "max_tokens": settings.ai_max_tokens,
        "client": client,
    }

    if settings.ai_provider == "groq":
        if settings.groq_api_key:
            return GroqProvider(api_key=settings.groq_api_key, model=settings.groq_model, **common)
        logger.warning("GROQ_API_KEY not set, falling back to Ollama")

    elif settings.ai_provider == "claude":
        if settings.anthropic_api_key:
            return ClaudeProvider(
                api_key=settings.anthropic_api_key, model=settings.anthropic_model, **common
            )
        logger.warning("ANTHROPIC_API_KEY not set, falling back to Ollama")

    return OllamaProvider(base_url=settings.ollama_base_url, model=settings.ollama_model, **common)


def parse_ai_response(content: str) -> dict[str, Any]:
    """
    Decode a JSON object from model output.

    Strips markdown code fences, then falls back to the outermost {...} span.

    Raises:
        ExternalGenerationFailure: If no JSON object can be decoded
    """
    text = content.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if not match:
            raise ExternalGenerationFailure(f"Failed to parse AI response as JSON: {text[:120]}") from None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ExternalGenerationFailure(f"Failed to parse AI response as JSON: {e}") from e

    if not isinstance(data, dict):
        raise ExternalGenerationFailure("AI response JSON is not an object")
    return data
