"""Concurrent image fan-out.

:class:`ImageFanOutExecutor` issues one image request per segment prompt,
all at once, and waits for every one of them to settle (success, failure or
timeout) before returning.  The returned :class:`SegmentOutcome` list is in
prompt order, not completion order.

Deciding what a failure means is a separate, explicit step
(:meth:`ImageFanOutExecutor.apply_policy`):

- ``atomic``: any failure raises :class:`UpstreamImageError` listing every
  failed index; completed outputs are discarded.
- ``partial``: failures are kept as outcomes with ``error`` set and
  surface as ``{}`` placeholders in the response.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from montagegen.core.errors import UpstreamImageError
from montagegen.core.images import ImageClientBase

logger = logging.getLogger(__name__)

FANOUT_POLICIES = ("atomic", "partial")


@dataclass(frozen=True)
class SegmentOutcome:
    """Settled result of one image request.

    Attributes:
        index: Position of the prompt in the extracted prompt list.
        prompt: The prompt that was sent.
        output: Output payload on success, ``None`` on failure.
        error: Failure description, ``None`` on success.
    """

    index: int
    prompt: str
    output: dict | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def failure_detail(self) -> dict:
        return {"index": self.index, "prompt": self.prompt, "error": self.error}


class ImageFanOutExecutor:
    """Runs image requests concurrently and settles all of them.

    Args:
        client: Image client used for every prompt.
        timeout: Per-request deadline in seconds.
        policy: ``"atomic"`` or ``"partial"``.
    """

    def __init__(self, client: ImageClientBase, timeout: float, policy: str = "atomic") -> None:
        if policy not in FANOUT_POLICIES:
            raise ValueError(f"Unknown fan-out policy: {policy!r}")
        self.client = client
        self.timeout = timeout
        self.policy = policy

    async def _settle_one(self, index: int, prompt: str) -> SegmentOutcome:
        try:
            output = await asyncio.wait_for(self.client.generate(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = f"timed out after {self.timeout}s"
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
        else:
            return SegmentOutcome(index=index, prompt=prompt, output=output or {})

        logger.warning(f"Image request {index} failed: {error}")
        return SegmentOutcome(index=index, prompt=prompt, error=error)

    async def settle(self, prompts: list[str]) -> list[SegmentOutcome]:
        """Run every prompt concurrently and return outcomes in prompt order."""
        logger.info(f"Fanning out {len(prompts)} image request(s) via {self.client.name}")
        tasks = [self._settle_one(i, p) for i, p in enumerate(prompts)]
        return list(await asyncio.gather(*tasks))

    def apply_policy(self, outcomes: list[SegmentOutcome]) -> list[SegmentOutcome]:
        """Enforce the configured failure policy on settled outcomes.

        Raises:
            UpstreamImageError: Under the ``atomic`` policy, when any
                outcome failed.
        """
        failures = [o.failure_detail() for o in outcomes if not o.ok]
        if failures and self.policy == "atomic":
            raise UpstreamImageError(
                f"{len(failures)} of {len(outcomes)} image request(s) failed",
                failures=failures,
            )
        return outcomes

    async def run(self, prompts: list[str]) -> list[SegmentOutcome]:
        """Settle all prompts, then apply the failure policy."""
        self.client.ensure_configured()
        return self.apply_policy(await self.settle(prompts))
