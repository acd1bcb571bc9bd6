from __future__ import annotations

import asyncio
import random


def compute_backoff(
    attempt: int, base: float = 2.0, initial: float = 0.05, jitter: float = 0.05
) -> float:
    """Compute exponential backoff with jitter."""
    delay = initial * base ** attempt
    return delay + random.uniform(0, jitter)


async def schedule_retry(attempt: int, initial: float = 0.05) -> None:
    """Sleep for computed backoff delay before retrying."""
    delay = compute_backoff(attempt, initial=initial)
    await asyncio.sleep(delay)
