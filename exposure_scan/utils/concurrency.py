from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


async def gather_settled(aws: Iterable[Awaitable[R]]) -> list[R | BaseException]:
    """Await everything, returning each value or the exception it raised.

    One failure never cancels its siblings.
    """
    return await asyncio.gather(*aws, return_exceptions=True)


async def probe_in_batches(
    items: Sequence[T],
    probe: Callable[[T], Awaitable[Optional[R]]],
    batch_size: int = 10,
) -> list[R]:
    """Run ``probe`` over ``items`` in sequential batches of concurrent calls.

    Results keep input order. ``None`` results and failed probes are dropped.
    """
    batch_size = max(1, batch_size)
    kept: list[R] = []
    for start in range(0, len(items), batch_size):
        batch = items[start : start + batch_size]
        outcomes = await gather_settled(probe(item) for item in batch)
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.debug("probe failed", extra={"item": str(item), "error": str(outcome)})
                continue
            if outcome is not None:
                kept.append(outcome)
    return kept
