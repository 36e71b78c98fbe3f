"""Parse and validate raw LLM output into a :class:`MontageDescriptor`."""

from __future__ import annotations

import json
import logging
import math

from pydantic import ValidationError

from montagegen.core.errors import MontageValidationError, OutputParseError
from montagegen.core.schema import MontageDescriptor

logger = logging.getLogger(__name__)


def _reject_constant(token: str) -> float:
    raise ValueError(f"{token} is not a valid JSON number")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"{token} is out of range for a JSON number")
    return value


def parse_generation_output(raw: str) -> MontageDescriptor:
    """Parse *raw* as JSON and validate it against the montage schema.

    The text is taken as-is: markdown fences or surrounding commentary are
    not stripped, and nothing is coerced.  The non-standard tokens ``NaN``,
    ``Infinity`` and ``-Infinity``, and numbers that overflow to infinity,
    are parse errors: they could never be sent back as JSON.

    Args:
        raw: Trimmed text returned by the generation client.

    Returns:
        The validated montage descriptor.

    Raises:
        OutputParseError: If *raw* is not a JSON object.
        MontageValidationError: If the object breaks the montage schema
            (missing title, fewer than two segments, blank prompt, ...).
    """
    try:
        data = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as e:
        logger.warning(f"Generation output is not JSON: {e}")
        raise OutputParseError(f"Generation output is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise OutputParseError(
            f"Generation output is a JSON {type(data).__name__}, expected an object"
        )

    try:
        return MontageDescriptor.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Generation output failed schema validation: {e.error_count()} error(s)")
        raise MontageValidationError(f"Montage schema validation failed: {e}") from e
