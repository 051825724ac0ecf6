from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SerialTaskQueue:
    """
    Runs submitted coroutine functions one at a time, in submission order.

    - One instance per collection; separate instances never block each other.
    - Submission order is the order in which `enqueue` is entered. asyncio.Lock
      hands ownership to waiters first-in first-out.
    - A failing task raises to its own caller; later tasks still run.
    - In-process only. Cross-process exclusion is the lock marker's job.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._lock = asyncio.Lock()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Tasks currently waiting or running."""
        return self._pending

    async def enqueue(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        self._pending += 1
        try:
            async with self._lock:
                logger.debug("queue %s: running %s", self.name, getattr(fn, "__name__", fn))
                return await fn(*args, **kwargs)
        finally:
            self._pending -= 1
