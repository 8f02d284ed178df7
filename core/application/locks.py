"""
Per-entity mutual exclusion.

All reads and writes of one order and its payments run under the lock for
that order id, so a synchronous capture and a webhook for the same payment
cannot interleave. Unrelated orders never contend.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class KeyedLock:
    """
    asyncio.Lock per key, created on demand and dropped once unused.

    Usage:
        async with locks.hold(f"order:{order_id}"):
            ...
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


def order_lock_key(order_id: str) -> str:
    return f"order:{order_id}"
