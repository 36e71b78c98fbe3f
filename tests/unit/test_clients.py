"""Tests for the Gemini and fal.ai clients.

The SDK entry points (``genai.Client`` and ``fal_client.AsyncClient``) are
patched with mocks so no network access occurs.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from montagegen.core.config import MontageConfig
from montagegen.core.errors import ConfigurationError, UpstreamGenerationError
from montagegen.core.generation import GeminiGenerationClient
from montagegen.core.images import FalImageClient, extract_output


def _mock_genai_client(response=None, side_effect=None) -> MagicMock:
    """Build a mock ``genai.Client`` instance with an async generate_content."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class TestGeminiGenerationClient:
    """GeminiGenerationClient behaviour."""

    def test_returns_trimmed_text(self, test_config: MontageConfig):
        """Response text is stripped of surrounding whitespace."""
        sdk = _mock_genai_client(response=SimpleNamespace(text='  \n{"a": 1}\n '))
        with patch("montagegen.core.generation.genai.Client", return_value=sdk) as client_cls:
            text = asyncio.run(GeminiGenerationClient(test_config).generate("prompt"))

        assert text == '{"a": 1}'
        client_cls.assert_called_once_with(api_key="test-google-key")
        sdk.aio.models.generate_content.assert_awaited_once_with(
            model=test_config.generation_model, contents="prompt"
        )

    def test_none_text_becomes_empty(self, test_config: MontageConfig):
        """A response without text yields an empty string."""
        sdk = _mock_genai_client(response=SimpleNamespace(text=None))
        with patch("montagegen.core.generation.genai.Client", return_value=sdk):
            assert asyncio.run(GeminiGenerationClient(test_config).generate("p")) == ""

    def test_missing_key_raises_before_call(self):
        """No API key means no SDK client and a ConfigurationError."""
        cfg = MontageConfig(_env_file=None, google_api_key=None)
        with patch("montagegen.core.generation.genai.Client") as client_cls:
            with pytest.raises(ConfigurationError):
                asyncio.run(GeminiGenerationClient(cfg).generate("p"))
        client_cls.assert_not_called()

    def test_sdk_error_wrapped(self, test_config: MontageConfig):
        """Service errors become UpstreamGenerationError with the cause chained."""
        sdk = _mock_genai_client(side_effect=RuntimeError("503 unavailable"))
        with patch("montagegen.core.generation.genai.Client", return_value=sdk):
            with pytest.raises(UpstreamGenerationError) as exc_info:
                asyncio.run(GeminiGenerationClient(test_config).generate("p"))
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_timeout_wrapped(self, test_config: MontageConfig):
        """A call exceeding the deadline becomes UpstreamGenerationError."""

        async def _hang(**kwargs):
            await asyncio.sleep(3600)

        cfg = test_config.model_copy(update={"generation_timeout_seconds": 0.05})
        sdk = MagicMock()
        sdk.aio.models.generate_content = _hang
        with patch("montagegen.core.generation.genai.Client", return_value=sdk):
            with pytest.raises(UpstreamGenerationError, match="deadline"):
                asyncio.run(GeminiGenerationClient(cfg).generate("p"))

    def test_sdk_client_reused(self, test_config: MontageConfig):
        """The SDK client is created once per GeminiGenerationClient."""
        sdk = _mock_genai_client(response=SimpleNamespace(text="x"))
        with patch("montagegen.core.generation.genai.Client", return_value=sdk) as client_cls:
            client = GeminiGenerationClient(test_config)
            asyncio.run(client.generate("a"))
            asyncio.run(client.generate("b"))
        assert client_cls.call_count == 1


class TestFalImageClient:
    """FalImageClient behaviour."""

    def test_subscribes_with_prompt(self, test_config: MontageConfig):
        """Each call submits {prompt} to the configured application."""
        sdk = MagicMock()
        sdk.subscribe = AsyncMock(return_value={"images": [{"url": "https://x/1.png"}]})
        with patch("montagegen.core.images.fal_client.AsyncClient", return_value=sdk) as client_cls:
            output = asyncio.run(FalImageClient(test_config).generate("a red kite"))

        client_cls.assert_called_once_with(key="test-fal-key")
        sdk.subscribe.assert_awaited_once_with("fal-ai/flux/dev", arguments={"prompt": "a red kite"})
        assert output == {"images": [{"url": "https://x/1.png"}]}

    def test_missing_key(self):
        """ensure_configured raises without a key."""
        cfg = MontageConfig(_env_file=None, fal_key=None)
        with pytest.raises(ConfigurationError):
            FalImageClient(cfg).ensure_configured()

    def test_sdk_errors_propagate(self, test_config: MontageConfig):
        """The client does not swallow SDK failures; the executor settles them."""
        sdk = MagicMock()
        sdk.subscribe = AsyncMock(side_effect=RuntimeError("queue rejected"))
        with patch("montagegen.core.images.fal_client.AsyncClient", return_value=sdk):
            with pytest.raises(RuntimeError, match="queue rejected"):
                asyncio.run(FalImageClient(test_config).generate("p"))


class TestExtractOutput:
    """extract_output unwrapping rules."""

    def test_unwraps_output_field(self):
        assert extract_output({"output": {"images": [1]}, "requestId": "r"}) == {"images": [1]}

    def test_plain_result_is_payload(self):
        assert extract_output({"images": [1], "seed": 3}) == {"images": [1], "seed": 3}

    @pytest.mark.parametrize("result", [None, {}, {"output": None}, "text"])
    def test_empty_becomes_placeholder(self, result):
        assert extract_output(result) == {}

    @pytest.mark.parametrize("payload", [[{"url": "a.png"}], "a.png", 7])
    def test_non_object_output_becomes_placeholder(self, payload):
        """Every output is a JSON object, whatever the service wraps."""
        assert extract_output({"output": payload}) == {}
