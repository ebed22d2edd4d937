"""Timing primitives: humanized pauses and bounded polling.

Randomized pauses between interactive browser steps are isolated behind an
`InteractionDelay` policy so tests can swap in `NoDelay` without changing the
control flow. `poll_until` is the single "predicate or deadline" loop used for
every readiness wait.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from secrets import randbelow

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def random_delay(min_seconds: float, max_seconds: float) -> float:
    """Generate a cryptographically strong pseudo-random delay between bounds."""
    if max_seconds <= min_seconds:
        return min_seconds
    span_ms = int((max_seconds - min_seconds) * 1000)
    return min_seconds + randbelow(span_ms + 1) / 1000


def random_offset(low: int, high: int) -> int:
    """Random integer in [low, high], used for pointer coordinates and scroll distance."""
    if high <= low:
        return low
    return low + randbelow(high - low + 1)


class InteractionDelay:
    """Randomized pause inserted between interactive steps.

    Args:
        min_seconds: Lower bound of each pause.
        max_seconds: Upper bound of each pause.
        sleep: Awaitable sleep function.
    """

    def __init__(self, min_seconds: float = 4.0, max_seconds: float = 10.0, sleep: Sleep = asyncio.sleep):
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self._sleep = sleep

    async def pause(self) -> None:
        await self._sleep(random_delay(self.min_seconds, self.max_seconds))


class NoDelay(InteractionDelay):
    """Zero-delay policy for tests and dry runs."""

    def __init__(self) -> None:
        super().__init__(0.0, 0.0)

    async def pause(self) -> None:
        return None


async def poll_until(
    predicate: Callable[[], Awaitable[bool]],
    interval: float,
    timeout: float,
    sleep: Sleep = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll an async predicate until it returns True or the deadline passes.

    A predicate that raises counts as "not yet".

    Args:
        predicate: Async callable returning readiness.
        interval: Seconds between checks.
        timeout: Overall deadline in seconds.
        sleep: Awaitable sleep function.
        clock: Monotonic clock.

    Returns:
        True if the predicate succeeded before the deadline, False otherwise.
    """
    deadline = clock() + timeout
    while True:
        try:
            if await predicate():
                return True
        except Exception as e:
            logger.debug(f"Poll predicate raised: {e}")
        if clock() >= deadline:
            return False
        await sleep(interval)
