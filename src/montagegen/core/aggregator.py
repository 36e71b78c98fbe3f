"""Final response assembly."""

from __future__ import annotations

from montagegen.core.fanout import SegmentOutcome
from montagegen.core.schema import MontageDescriptor


def build_montage_response(
    descriptor: MontageDescriptor,
    outcomes: list[SegmentOutcome],
    *,
    include_failures: bool = False,
) -> dict:
    """Combine the montage and its image outputs into the response payload.

    Args:
        descriptor: The validated montage.
        outcomes: Settled image outcomes, in prompt order.
        include_failures: Add a ``failures`` list (partial fan-out policy).

    Returns:
        ``{"montage": ..., "falOutputs": [...]}``, plus ``failures`` when
        requested.  Failed outcomes contribute ``{}`` to ``falOutputs`` so
        indices stay aligned with segment order.
    """
    response: dict = {
        "montage": descriptor.to_wire(),
        "falOutputs": [o.output if o.ok else {} for o in outcomes],
    }
    if include_failures:
        response["failures"] = [o.failure_detail() for o in outcomes if not o.ok]
    return response
