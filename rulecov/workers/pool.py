"""
Bounded task pool — at most N coroutines in flight, results in submission order.

A task that raises is reported in its own ``TaskOutcome``; siblings keep
running and nothing is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger("rulecov.pool")

T = TypeVar("T")


@dataclass
class TaskOutcome(Generic[T]):
    """A task's value, or the error it failed with."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def host_parallelism() -> int:
    return os.cpu_count() or 1


async def run_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int | None = None,
) -> list[TaskOutcome[T]]:
    """Run every factory's coroutine with at most ``limit`` running at once."""
    semaphore = asyncio.Semaphore(max(1, limit or host_parallelism()))

    async def guarded(position: int, factory: Callable[[], Awaitable[T]]) -> TaskOutcome[T]:
        async with semaphore:
            try:
                return TaskOutcome(value=await factory())
            except Exception as e:
                logger.error(f"Task {position} failed: {type(e).__name__}: {e}")
                return TaskOutcome(error=f"{type(e).__name__}: {e}")

    return list(await asyncio.gather(
        *(guarded(i, factory) for i, factory in enumerate(factories))
    ))
