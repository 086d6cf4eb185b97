"""Per-channel critical sections for the relay."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class ChannelLocks:
    """One asyncio lock per channel id.

    ``hold`` takes several channel locks at once, always in sorted order, so two
    relays touching the same pair of channels cannot deadlock. A lock lives only
    while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        return lock

    def _checkin(self, key: str) -> None:
        remaining = self._holders[key] - 1
        if remaining:
            self._holders[key] = remaining
        else:
            del self._holders[key]
            del self._locks[key]

    def locked(self, channel_id: str) -> bool:
        lock = self._locks.get(channel_id.lower())
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *channel_ids: str) -> AsyncIterator[None]:
        ordered = sorted({channel_id.lower() for channel_id in channel_ids})
        locks = [self._checkout(key) for key in ordered]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._checkin(key)
