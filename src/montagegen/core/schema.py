"""Montage descriptor schema.

The montage contract is declared once, as the Pydantic models below.  It is
used two ways:

- :func:`montage_json_schema` serialises it (by alias, so keys are
  camelCase) into the JSON Schema document embedded in the generation
  prompt, steering the LLM towards conforming output.
- :mod:`montagegen.core.validator` validates parsed LLM output against the
  same models, so the documented contract is also the enforced one.

Wire shape::

    {
      "montageTitle": "Night Market",
      "voiceover": "optional narration spanning the montage",
      "segments": [
        {"segmentTitle": "...", "prompt": "...",
         "durationEstimateSeconds": 2.5, "onScreenText": "..."},
        ...
      ]
    }

Extra keys emitted by the model are kept and echoed back to the caller.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.json_schema import GenerateJsonSchema
from pydantic.alias_generators import to_camel

MIN_SEGMENTS = 2
MIN_DURATION_SECONDS = 0.1


class Segment(BaseModel):
    """One visual beat of the montage.

    Attributes:
        segment_title: Optional title for the segment.
        prompt: Creative prompt for the segment's visual.  The only field
            consumed downstream.
        duration_estimate_seconds: Optional pacing hint, at least 0.1 s.
        on_screen_text: Optional overlay text.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    segment_title: str | None = Field(
        default=None,
        description="An optional title or identifier for this individual segment within the montage.",
    )
    prompt: str = Field(
        ...,
        min_length=1,
        description="The creative prompt or description for generating the visual content of this specific segment.",
    )
    duration_estimate_seconds: float | None = Field(
        default=None,
        ge=MIN_DURATION_SECONDS,
        allow_inf_nan=False,
        description="An estimated duration for this visual segment in seconds, useful for pacing the montage.",
    )
    on_screen_text: str | None = Field(
        default=None,
        description="Optional text to appear on screen during this segment (e.g., dates, locations, character names).",
    )

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value


class MontageDescriptor(BaseModel):
    """A montage sequence: title, optional voiceover, ordered segments."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        title="Montage",
        json_schema_extra={
            "description": (
                "A model for a montage sequence, composed of multiple short visual "
                "segments and an optional overarching voiceover."
            )
        },
    )

    montage_title: str = Field(
        ...,
        min_length=1,
        description="The overall title for the montage sequence.",
    )
    voiceover: str | None = Field(
        default=None,
        description=(
            "The overarching voiceover script for the entire montage. "
            "This voiceover usually spans across multiple shots."
        ),
    )
    segments: list[Segment] = Field(
        ...,
        min_length=MIN_SEGMENTS,
        description="A list of short visual segments or shots that make up the montage.",
    )

    @field_validator("montage_title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("montageTitle must not be blank")
        return value

    def to_wire(self) -> dict[str, Any]:
        """Dump back to the camelCase shape, keeping only keys that were set."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class PromptSchemaGenerator(GenerateJsonSchema):
    """Render the montage models as a plain contract for the LLM.

    Optional fields are typed by their value alone, with no ``null`` branch
    and no ``default: null``.  Titles and ``additionalProperties`` are left
    out, and nested models are inlined instead of referenced through
    ``$defs``.
    """

    def nullable_schema(self, schema):
        return self.generate_inner(schema["schema"])

    def default_schema(self, schema):
        if "default" in schema and schema["default"] is None:
            return self.generate_inner(schema["schema"])
        return super().default_schema(schema)

    def field_title_should_be_set(self, schema) -> bool:
        return False

    def generate(self, schema, mode="validation"):
        json_schema = super().generate(schema, mode=mode)
        definitions = json_schema.pop("$defs", {})
        _strip_model_keys(json_schema)
        return _inline_refs(json_schema, definitions)


def _strip_model_keys(node: dict[str, Any]) -> None:
    node.pop("title", None)
    node.pop("additionalProperties", None)


def _inline_refs(node: Any, definitions: dict[str, Any]) -> Any:
    if isinstance(node, list):
        return [_inline_refs(item, definitions) for item in node]
    if not isinstance(node, dict):
        return node
    if "$ref" in node:
        target = dict(definitions[node["$ref"].rsplit("/", 1)[-1]])
        _strip_model_keys(target)
        # nested model docstrings are written for Python readers
        target.pop("description", None)
        return _inline_refs(target, definitions)
    return {key: _inline_refs(value, definitions) for key, value in node.items()}


def montage_json_schema() -> dict[str, Any]:
    """Return the JSON Schema of :class:`MontageDescriptor`, keyed by alias.

    The document is self-contained: no ``$defs``, no nullable unions.
    """
    return MontageDescriptor.model_json_schema(
        by_alias=True, schema_generator=PromptSchemaGenerator
    )
