"""
Per-target advisory locks with a short acquisition timeout.

Apply and rollback both read live values, decide, then write. Two of them
interleaving on the same configuration set would record inconsistent
old/new pairs, so each takes the lock of its target first. A caller that
cannot get the lock in time is refused up front instead of waiting.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional
from loguru import logger

from presetarr.constants import LOCK_TIMEOUT_SECONDS
from presetarr.utils.errors import LockTimeoutError


class AdvisoryLocks:
    """Named asyncio locks, created on first use."""

    def __init__(self, timeout: float = LOCK_TIMEOUT_SECONDS):
        """
        Initialize the lock table.

        Args:
            timeout: Default seconds to wait for a lock before giving up
        """
        self.timeout = timeout
        self._locks: Dict[str, asyncio.Lock] = {}  # target -> lock
        self._guard = asyncio.Lock()

    async def _get(self, target: str) -> asyncio.Lock:
        async with self._guard:
            lock = self._locks.get(target)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[target] = lock
            return lock

    def is_locked(self, target: str) -> bool:
        lock = self._locks.get(target)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, target: str, timeout: Optional[float] = None) -> AsyncIterator[None]:
        """
        Hold the lock of a target for the duration of the block.

        Args:
            target: Lock name, e.g. "site-config"
            timeout: Seconds to wait; the instance default when omitted

        Raises:
            LockTimeoutError: If the lock was not acquired in time
        """
        wait = self.timeout if timeout is None else timeout
        lock = await self._get(target)
        try:
            async with asyncio.timeout(wait):
                await lock.acquire()
        except TimeoutError:
            logger.warning(f"Could not acquire lock '{target}' within {wait}s")
            raise LockTimeoutError(
                f"Another operation holds '{target}', try again later",
                details={"target": target, "timeout": wait},
            )

        try:
            yield
        finally:
            lock.release()
