from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BestEffortOutcome:
    """Result of a side operation whose failure must not reach the caller."""

    label: str
    ok: bool
    error: Optional[str] = None


async def run_best_effort(
    label: str,
    op: Callable[[], Awaitable[Any]],
    *,
    on_error: Callable[[], Awaitable[Any]] | None = None,
) -> BestEffortOutcome:
    """Run ``op``; on failure run ``on_error`` (e.g. a rollback) and log.

    Fire-and-forget, log-only. Use it only for operations the primary outcome
    does not depend on.
    """
    try:
        await op()
    except Exception as e:
        logger.warning("best-effort %s failed: %s: %s", label, type(e).__name__, e)
        if on_error is not None:
            await on_error()
        return BestEffortOutcome(label=label, ok=False, error=str(e) or type(e).__name__)
    return BestEffortOutcome(label=label, ok=True)
