"""Image generation client.

:class:`ImageClientBase` is the per-prompt seam used by
:class:`~montagegen.core.fanout.ImageFanOutExecutor`.  The concrete
:class:`FalImageClient` submits one request to a fal.ai application through
``fal_client.AsyncClient`` and waits for the queued job to finish.

Timeouts and failure policy are owned by the executor, not by the client:
``generate`` simply raises whatever the SDK raises.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import fal_client

from montagegen.core.config import MontageConfig
from montagegen.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def extract_output(result: Any) -> dict:
    """Return the declared output payload of an image-service result.

    Results that wrap their payload in an ``output`` field are unwrapped;
    otherwise the result object itself is the payload.  Empty, missing or
    non-object payloads become ``{}``, so every output is a JSON object.
    """
    if not isinstance(result, dict):
        return {}
    payload = result.get("output", result)
    if not isinstance(payload, dict):
        if payload:
            logger.warning(f"Discarding non-object image output of type {type(payload).__name__}")
        return {}
    return payload


class ImageClientBase(ABC):
    """Abstract base class for image generation backends."""

    name: str = "Base Image Client"

    def ensure_configured(self) -> None:
        """Raise :class:`ConfigurationError` if the client cannot be used."""

    @abstractmethod
    async def generate(self, prompt: str) -> dict:
        """Generate visual content for one prompt and return its output payload."""


class FalImageClient(ImageClientBase):
    """fal.ai-backed image client.

    Args:
        config: Application configuration.  Reads ``fal_key`` and
            ``image_application``.
    """

    name = "fal.ai"

    def __init__(self, config: MontageConfig) -> None:
        self._key = config.fal_key
        self.application = config.image_application
        self._client: fal_client.AsyncClient | None = None

    def ensure_configured(self) -> None:
        if not self._key:
            raise ConfigurationError("Missing FAL_KEY in environment variables")

    def _get_client(self) -> fal_client.AsyncClient:
        if self._client is None:
            self._client = fal_client.AsyncClient(key=self._key)
        return self._client

    async def generate(self, prompt: str) -> dict:
        self.ensure_configured()
        logger.debug(f"Submitting prompt to {self.application}: {prompt[:60]}")
        result = await self._get_client().subscribe(
            self.application,
            arguments={"prompt": prompt},
        )
        return extract_output(result)
