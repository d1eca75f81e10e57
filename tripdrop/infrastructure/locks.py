"""
Per-delivery mutual exclusion.

Every lifecycle transition brackets its read-check-write sequence with
``locks.hold(f"delivery:{id}")``.  Two backends share that interface:

* ``LocalLocks``  -- one ``asyncio.Lock`` per key, for a single process.
* ``RedisLocks``  -- a ``DistributedLock`` per key, for several API
  processes sharing one database.

``DistributedLock`` uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import time
import uuid
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis

from tripdrop.domain.errors import ConcurrentModification


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, key: str, ttl_seconds: int = 30
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def acquire_within(
        self, timeout: float, poll_interval: float = 0.05
    ) -> bool:
        """Poll ``acquire`` until it succeeds or *timeout* seconds pass."""
        deadline = time.monotonic() + timeout
        while True:
            if await self.acquire():
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(poll_interval)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        lua = """
        if redis.call("get", KEYS[1]) == ARGV[1] then
            return redis.call("del", KEYS[1])
        else
            return 0
        end
        """
        await self.redis.eval(lua, 1, self.key, self.token)


class LocalLocks:
    def __init__(self) -> None:
        # Entries vanish once no coroutine holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._lock_for(key)
        async with lock:
            yield


class RedisLocks:
    def __init__(
        self,
        client: aioredis.Redis,
        ttl_seconds: int = 10,
        wait_seconds: float = 5.0,
    ):
        self.redis = client
        self.ttl = ttl_seconds
        self.wait = wait_seconds

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = DistributedLock(self.redis, key, ttl_seconds=self.ttl)
        if not await lock.acquire_within(self.wait):
            raise ConcurrentModification()
        try:
            yield
        finally:
            await lock.release()
