"""Shared pytest fixtures for Montage Generator tests."""

from __future__ import annotations

import asyncio
import json
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from montagegen.api.main import app
from montagegen.core.config import MontageConfig
from montagegen.core.errors import ConfigurationError
from montagegen.core.fanout import ImageFanOutExecutor
from montagegen.core.generation import GenerationClientBase
from montagegen.core.images import ImageClientBase
from montagegen.core.pipeline import MontagePipeline


class FakeGenerationClient(GenerationClientBase):
    """In-process stand-in for the LLM client.

    Returns *raw* (or raises *error*) and records every prompt received.
    """

    name = "Fake LLM"

    def __init__(self, raw: str = "", error: Exception | None = None, configured: bool = True):
        self.raw = raw
        self.error = error
        self.configured = configured
        self.prompts: list[str] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Missing GOOGLE_API_KEY in environment variables")

    async def generate(self, prompt: str) -> str:
        self.ensure_configured()
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.raw.strip()


class FakeImageClient(ImageClientBase):
    """In-process stand-in for the image client.

    Earlier prompts sleep longer than later ones, so completion order is the
    reverse of submission order.  Prompts listed in *failing* raise.  When
    *output* is given it is returned for every prompt.
    """

    name = "Fake Images"

    def __init__(
        self,
        failing: set[str] | None = None,
        configured: bool = True,
        hang: set[str] | None = None,
        output: dict | None = None,
    ):
        self.failing = failing or set()
        self.hang = hang or set()
        self.configured = configured
        self.output = output
        self.calls: list[str] = []
        self.completed: list[str] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Missing FAL_KEY in environment variables")

    async def generate(self, prompt: str) -> dict:
        self.calls.append(prompt)
        position = len(self.calls)
        if prompt in self.hang:
            await asyncio.sleep(3600)
        await asyncio.sleep(0.05 / position)
        if prompt in self.failing:
            raise RuntimeError(f"image service rejected '{prompt}'")
        self.completed.append(prompt)
        if self.output is not None:
            return self.output
        return {"images": [{"url": f"https://images.test/{prompt.replace(' ', '-')}.png"}]}


def make_montage(segment_count: int, **extra) -> dict:
    """Build a schema-conforming montage dict with *segment_count* segments."""
    montage = {
        "montageTitle": "Harbour at Dawn",
        "voiceover": "The city wakes slowly.",
        "segments": [
            {
                "segmentTitle": f"Shot {i + 1}",
                "prompt": f"shot {i + 1} prompt",
                "durationEstimateSeconds": 2.5,
            }
            for i in range(segment_count)
        ],
    }
    montage.update(extra)
    return montage


@pytest.fixture
def test_config(monkeypatch) -> MontageConfig:
    """Configuration with dummy credentials and no environment leakage."""
    for var in ("GOOGLE_API_KEY", "FAL_KEY", "FAL_AI_API_KEY", "MONTAGE_GOOGLE_API_KEY", "MONTAGE_FAL_KEY"):
        monkeypatch.delenv(var, raising=False)
    return MontageConfig(
        _env_file=None,
        google_api_key="test-google-key",
        fal_key="test-fal-key",
    )


@pytest.fixture
def montage_factory() -> Callable[..., dict]:
    """Expose :func:`make_montage` to tests."""
    return make_montage


@pytest.fixture
def fake_generator() -> FakeGenerationClient:
    """LLM fake returning a three-segment montage."""
    return FakeGenerationClient(raw=json.dumps(make_montage(3)))


@pytest.fixture
def fake_images() -> FakeImageClient:
    """Image fake where every request succeeds."""
    return FakeImageClient()


@pytest.fixture
def build_pipeline() -> Callable[..., MontagePipeline]:
    """Factory wiring fakes into a :class:`MontagePipeline`."""

    def _build(
        generator: GenerationClientBase,
        images: ImageClientBase,
        *,
        policy: str = "atomic",
        max_segments: int = 5,
        timeout: float = 5.0,
    ) -> MontagePipeline:
        fanout = ImageFanOutExecutor(images, timeout=timeout, policy=policy)
        return MontagePipeline(generator, fanout, max_segments=max_segments)

    return _build


@pytest.fixture
def test_client(test_config: MontageConfig) -> Generator[TestClient, None, None]:
    """TestClient whose app uses *test_config*.

    Tests install their own pipeline with ``test_client.app.state.pipeline``.
    """
    with TestClient(app) as client:
        app.state.config = test_config
        yield client


@pytest.fixture
def make_generator() -> Callable[..., FakeGenerationClient]:
    """Factory for :class:`FakeGenerationClient` instances."""
    return FakeGenerationClient


@pytest.fixture
def make_images() -> Callable[..., FakeImageClient]:
    """Factory for :class:`FakeImageClient` instances."""
    return FakeImageClient
