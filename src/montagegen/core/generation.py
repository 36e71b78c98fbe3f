"""LLM generation client.

:class:`GenerationClientBase` is the seam the pipeline depends on; the
concrete :class:`GeminiGenerationClient` talks to Google Gemini through the
``google-genai`` SDK's async surface (``client.aio.models``).

Failure semantics
-----------------
- Missing API key → :class:`ConfigurationError`, before any network call.
- Deadline exceeded or any SDK/service error → :class:`UpstreamGenerationError`
  with the original exception chained.

There is deliberately no retry and no streaming: one prompt, one call, one
trimmed text result.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from google import genai

from montagegen.core.config import MontageConfig
from montagegen.core.errors import ConfigurationError, UpstreamGenerationError

logger = logging.getLogger(__name__)


class GenerationClientBase(ABC):
    """Abstract base class for text generation backends."""

    name: str = "Base Generation Client"

    def ensure_configured(self) -> None:
        """Raise :class:`ConfigurationError` if the client cannot be used."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Send *prompt* to the service and return its text, trimmed.

        Raises:
            ConfigurationError: If a credential is missing.
            UpstreamGenerationError: If the call fails or times out.
        """


class GeminiGenerationClient(GenerationClientBase):
    """Gemini-backed generation client.

    The SDK client is created lazily on the first call so a process without
    credentials can still start and report the problem per request.

    Args:
        config: Application configuration.  Reads ``google_api_key``,
            ``generation_model`` and ``generation_timeout_seconds``.
    """

    name = "Gemini"

    def __init__(self, config: MontageConfig) -> None:
        self._api_key = config.google_api_key
        self.model = config.generation_model
        self.timeout = config.generation_timeout_seconds
        self._client: genai.Client | None = None

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError("Missing GOOGLE_API_KEY in environment variables")

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        self.ensure_configured()
        client = self._get_client()

        logger.info(f"Requesting montage descriptor from {self.model}")
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(model=self.model, contents=prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamGenerationError(
                f"{self.name} call exceeded {self.timeout}s deadline"
            ) from e
        except Exception as e:
            raise UpstreamGenerationError(f"{self.name} call failed: {e}") from e

        text = (response.text or "").strip()
        logger.debug(f"{self.name} returned {len(text)} characters")
        return text
