"""Montage generation pipeline.

:class:`MontagePipeline` is the single orchestration point for one request::

    text → build prompt → generate → parse/validate → extract prompts
         → image fan-out → assemble response

Each request walks the :class:`PipelineStage` sequence below.  ``COMPLETED``
and ``FAILED`` are the only terminal stages and there is no retry
transition; a failure at any stage propagates as a
:class:`~montagegen.core.errors.MontageError` (or the original exception)
to the API boundary.

The pipeline holds configuration and clients only.  Everything produced
while handling a request (descriptor, prompt list, outcomes) is local to
that call, so concurrent requests never share mutable state.

Usage
-----
::

    from montagegen.core.config import config
    from montagegen.core.pipeline import MontagePipeline

    pipeline = MontagePipeline.from_config(config)
    response = await pipeline.run("a rainy neon city chase")
"""

from __future__ import annotations

import logging
from enum import Enum

from montagegen.core.aggregator import build_montage_response
from montagegen.core.config import MontageConfig
from montagegen.core.errors import InputError
from montagegen.core.extractor import DEFAULT_MAX_SEGMENTS, extract_prompts
from montagegen.core.fanout import ImageFanOutExecutor
from montagegen.core.generation import GeminiGenerationClient, GenerationClientBase
from montagegen.core.images import FalImageClient
from montagegen.core.prompt_builder import build_generation_prompt
from montagegen.core.validator import parse_generation_output

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Per-request lifecycle stages."""

    RECEIVED = "received"
    PROMPTING = "prompting"
    GENERATING = "generating"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    FANNING_OUT = "fanning_out"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"


class MontagePipeline:
    """Turns one creative direction into a fully resolved montage response.

    Args:
        generator: Client for the LLM generation service.
        fanout: Executor that runs image requests for the segment prompts.
        max_segments: Cap on the number of segment prompts fanned out.
    """

    def __init__(
        self,
        generator: GenerationClientBase,
        fanout: ImageFanOutExecutor,
        *,
        max_segments: int = DEFAULT_MAX_SEGMENTS,
    ) -> None:
        self.generator = generator
        self.fanout = fanout
        self.max_segments = max_segments

    @classmethod
    def from_config(cls, config: MontageConfig) -> MontagePipeline:
        """Wire the Gemini and fal.ai clients from *config*."""
        fanout = ImageFanOutExecutor(
            FalImageClient(config),
            timeout=config.image_timeout_seconds,
            policy=config.fanout_policy,
        )
        return cls(
            GeminiGenerationClient(config),
            fanout,
            max_segments=config.max_segments,
        )

    async def run(self, text: str) -> dict:
        """Run the full pipeline for *text*.

        Args:
            text: Free-form creative direction.  Must be a non-empty string.

        Returns:
            ``{"montage": ..., "falOutputs": [...]}`` (plus ``failures``
            under the partial fan-out policy).

        Raises:
            InputError: If *text* is empty or not a string.
            ConfigurationError: If a service credential is missing.
            UpstreamGenerationError: If the generation call fails.
            OutputParseError: If the generation output is not JSON.
            MontageValidationError: If the output breaks the schema.
            UpstreamImageError: If image requests fail (atomic policy).
        """
        stage = PipelineStage.RECEIVED
        try:
            if not isinstance(text, str) or not text:
                raise InputError("text must be a non-empty string")

            stage = self._advance(PipelineStage.PROMPTING)
            prompt = build_generation_prompt(text)

            stage = self._advance(PipelineStage.GENERATING)
            raw = await self.generator.generate(prompt)

            stage = self._advance(PipelineStage.VALIDATING)
            descriptor = parse_generation_output(raw)

            stage = self._advance(PipelineStage.EXTRACTING)
            prompts = extract_prompts(descriptor, self.max_segments)

            stage = self._advance(PipelineStage.FANNING_OUT)
            outcomes = await self.fanout.run(prompts)

            stage = self._advance(PipelineStage.AGGREGATING)
            response = build_montage_response(
                descriptor,
                outcomes,
                include_failures=self.fanout.policy == "partial",
            )
        except Exception:
            logger.debug(f"Pipeline {PipelineStage.FAILED.value} during {stage.value}")
            raise

        self._advance(PipelineStage.COMPLETED)
        logger.info(
            f"Montage '{descriptor.montage_title}' completed with "
            f"{len(descriptor.segments)} segment(s), {len(outcomes)} image output(s)"
        )
        return response

    @staticmethod
    def _advance(stage: PipelineStage) -> PipelineStage:
        logger.debug(f"Pipeline stage -> {stage.value}")
        return stage
