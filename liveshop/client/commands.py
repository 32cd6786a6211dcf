"""
Optimistic update helpers
"""

from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Hashable, TypeVar
import asyncio
import logging

from .errors import ShopError

logger = logging.getLogger(__name__)

T = TypeVar("T")

class OptimisticCommand:
    """
    A local mutation paired with the action that undoes it

    ``run`` applies the mutation, awaits the remote call and rolls back if
    the call fails with a ``ShopError``.
    """

    def __init__(
        self,
        apply: Callable[[], None],
        rollback: Callable[[], None],
        description: str = ""
    ):
        self.apply = apply
        self.rollback = rollback
        self.description = description

    async def run(self, remote: Callable[[], Awaitable[T]]) -> T:
        self.apply()
        try:
            return await remote()
        except ShopError as e:
            logger.warning("Rolling back %s after %s: %s", self.description or "update", e.code, e)
            self.rollback()
            raise

class KeyedLocks:
    """
    One asyncio.Lock per key, plus a store-wide hold

    Operations on the same key run one at a time in arrival order; different
    keys do not block each other. ``hold_all`` waits for every running or
    queued keyed operation to finish and keeps new ones out until it exits.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = defaultdict(int)
        self._gate = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._active = 0

    async def _enter(self) -> None:
        async with self._gate:
            self._active += 1
            self._idle.clear()

    def _leave(self) -> None:
        self._active -= 1
        if self._active == 0:
            self._idle.set()

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] += 1
        try:
            await self._enter()
            try:
                async with lock:
                    yield
            finally:
                self._leave()
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                self._locks.pop(key, None)

    @asynccontextmanager
    async def hold_all(self) -> AsyncIterator[None]:
        async with self._gate:
            await self._idle.wait()
            yield

    def pending(self, key: Hashable) -> bool:
        """True while an operation on ``key`` is running or queued"""
        return self._holders.get(key, 0) > 0

    @property
    def exclusive(self) -> bool:
        """True while a store-wide operation holds every key"""
        return self._gate.locked()
