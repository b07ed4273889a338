"""Non-blocking single-flight guard for user actions.

A second slot click or submit that arrives while the first is still in
progress is dropped rather than queued.

Usage:
    guard = SingleFlight("submit")
    async with guard.claim() as claimed:
        if not claimed:
            return  # already running
        ...
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class SingleFlight:
    """At most one holder at a time; late arrivals are told so instead of waiting."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = asyncio.Lock()
        self._dropped = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def dropped(self) -> int:
        """How many claims were refused because the guard was busy."""
        return self._dropped

    @asynccontextmanager
    async def claim(self) -> AsyncIterator[bool]:
        if self._lock.locked():
            self._dropped += 1
            logger.debug("'%s' already in flight, dropping duplicate", self.name)
            yield False
            return
        await self._lock.acquire()
        try:
            yield True
        finally:
            self._lock.release()
