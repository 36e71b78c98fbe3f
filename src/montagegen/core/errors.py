"""Error taxonomy for the montage pipeline.

Every failure the pipeline can report derives from :class:`MontageError`.
Each subclass carries the HTTP status and the caller-facing message the API
boundary should emit, so route handlers never need to know which stage
failed.  The original exception is always chained (``raise ... from exc``)
and logged by the boundary for operator diagnosis.

Taxonomy
--------
========================  ======  ==========================================
Error                     Status  Raised when
========================  ======  ==========================================
InputError                400     ``text`` missing, empty, or not a string
ConfigurationError        500     A service credential is absent
UpstreamGenerationError   500     The LLM call fails or times out
OutputParseError          500     The LLM output is not a JSON object
MontageValidationError    500     The parsed output breaks the schema
UpstreamImageError        500     One or more image calls fail (atomic)
========================  ======  ==========================================
"""

from __future__ import annotations

GENERIC_ERROR_MESSAGE = "Internal Server Error"


class MontageError(Exception):
    """Base class for all pipeline failures.

    Attributes:
        status_code: HTTP status the API boundary should return.
        public_message: Message safe to show to the caller.
    """

    status_code: int = 500
    public_message: str = GENERIC_ERROR_MESSAGE


class InputError(MontageError):
    """The request did not carry a usable ``text`` field."""

    status_code = 400
    public_message = "`text` field is required"


class ConfigurationError(MontageError):
    """A required credential or setting is missing."""


class UpstreamGenerationError(MontageError):
    """The LLM generation service failed or timed out."""


class OutputParseError(MontageError):
    """The LLM returned text that is not a JSON object."""

    public_message = "Generation service returned invalid JSON"


# Name used throughout the product docs for the parse failure.
InvalidGenerationOutput = OutputParseError


class MontageValidationError(MontageError):
    """The LLM output parsed but does not satisfy the montage schema."""

    public_message = "Generation service returned a montage that does not match the schema"


class UpstreamImageError(MontageError):
    """At least one image-generation request failed.

    Args:
        message: Summary for logs.
        failures: One ``{"index", "prompt", "error"}`` dict per failed
            request, in prompt order.
    """

    def __init__(self, message: str, failures: list[dict] | None = None) -> None:
        super().__init__(message)
        self.failures: list[dict] = failures or []
