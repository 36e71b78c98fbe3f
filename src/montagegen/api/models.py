"""Pydantic response models for the Montage Generator API.

These models document the response shapes in the OpenAPI schema.  The
generate endpoint reads its request body by hand (see
:func:`montagegen.api.main.generate_montage`) so that a missing or
malformed ``text`` field produces the fixed 400 body rather than FastAPI's
422 validation payload.

Models
------
MontageResponse
    Success payload for ``POST /api/generate-montage``.
ErrorResponse
    Failure payload for every error status.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from montagegen.core.schema import MontageDescriptor


class SegmentFailure(BaseModel):
    """One failed image request (partial fan-out policy only)."""

    index: int = Field(..., description="Position in the extracted prompt list.")
    prompt: str = Field(..., description="Prompt that was sent.")
    error: str = Field(..., description="Failure description.")


class MontageResponse(BaseModel):
    """Response body for a successful ``POST /api/generate-montage``.

    Attributes:
        montage: The validated montage descriptor.
        falOutputs: One image output per extracted prompt, in segment order.
        failures: Failed image requests; present only under the partial
            fan-out policy.
    """

    model_config = ConfigDict(populate_by_name=True)

    montage: MontageDescriptor
    fal_outputs: list[dict] = Field(..., alias="falOutputs")
    failures: list[SegmentFailure] | None = None


class ErrorResponse(BaseModel):
    """Response body for every error status."""

    error: str = Field(..., description="Caller-facing error message.")
