from __future__ import annotations

import asyncio
import random
from typing import Optional


def compute_backoff(
    attempt: int,
    base: float = 1.5,
    jitter: float = 0.5,
    rng: Optional[random.Random] = None,
) -> float:
    """Compute exponential backoff with jitter."""
    delay = base ** attempt
    return delay + (rng or random).uniform(0, jitter)


async def schedule_retry(attempt: int, base: float = 1.5, jitter: float = 0.5) -> None:
    """Sleep for computed backoff delay before retrying."""
    delay = compute_backoff(attempt, base, jitter)
    await asyncio.sleep(delay)
