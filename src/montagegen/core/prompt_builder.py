"""Instruction text for schema-constrained montage generation.

The compiled prompt has four sections separated by blank lines::

    [Directive: output ONLY valid JSON following the schema]

    JSON Schema:
    [Montage schema, 2-space indented]

    [Creative direction framing]
    User input: "[user text, verbatim]"

    [Reminder: JSON only, no markdown fences, no commentary]

Usage
-----
::

    prompt = build_generation_prompt("a rainy neon city chase")
"""

from __future__ import annotations

import json
from typing import Any

from montagegen.core.schema import montage_json_schema

# ---------------------------------------------------------------------------
# Fixed instruction sections.
# ---------------------------------------------------------------------------

_DIRECTIVE = (
    "You are a helpful assistant that outputs ONLY valid JSON, "
    "following exactly the JSON schema below."
)

_DIRECTION_INTRO = (
    "Using the following user creative direction, generate a unique montage "
    "descriptor that strictly conforms to the schema."
)

_REMINDER = (
    "Remember: Respond with VALID JSON ONLY. "
    "Do not wrap in markdown or add any extra commentary."
)


def build_generation_prompt(text: str, schema: dict[str, Any] | None = None) -> str:
    """Compile the generation prompt for one creative direction.

    Args:
        text: The caller's free-form creative direction, embedded verbatim.
        schema: JSON Schema to embed.  Defaults to the montage schema.

    Returns:
        The full instruction string.
    """
    if schema is None:
        schema = montage_json_schema()

    parts = [
        _DIRECTIVE,
        f"JSON Schema:\n{json.dumps(schema, indent=2)}",
        f'{_DIRECTION_INTRO}\nUser input: "{text}"',
        _REMINDER,
    ]
    return "\n\n".join(parts)
