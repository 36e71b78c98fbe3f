"""Segment prompt extraction."""

from __future__ import annotations

import logging

from montagegen.core.schema import MontageDescriptor

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEGMENTS = 5


def extract_prompts(descriptor: MontageDescriptor, max_segments: int = DEFAULT_MAX_SEGMENTS) -> list[str]:
    """Return segment prompts in montage order, capped at *max_segments*.

    Segments beyond the cap are dropped silently; the cap bounds the number
    of concurrent image requests per montage.

    Args:
        descriptor: A validated montage descriptor.
        max_segments: Upper bound on the number of prompts returned.

    Returns:
        Between 1 and ``max_segments`` prompt strings.
    """
    if max_segments < 1:
        raise ValueError(f"max_segments must be at least 1, got {max_segments}")

    prompts = [segment.prompt for segment in descriptor.segments]
    if len(prompts) > max_segments:
        logger.debug(f"Truncating {len(prompts)} segment prompts to {max_segments}")
    return prompts[:max_segments]
