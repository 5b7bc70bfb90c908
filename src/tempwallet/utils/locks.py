"""Concurrency control for channel and wallet operations.

Provides keyed locking so two requests for the same (user, chain, token)
cannot both decide that a channel is missing and create one.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Hashable, Optional

from tempwallet.errors import WalletBackendError

logger = logging.getLogger(__name__)

# Global lock registry: key -> asyncio.Lock
_locks: dict[Hashable, asyncio.Lock] = {}


class LockTimeoutError(WalletBackendError):
    """Raised when a lock cannot be acquired within the timeout period."""

    status_code = 409
    error_code = "lock_timeout"


def get_lock(key: Hashable) -> asyncio.Lock:
    """Get or create the lock for a key.

    There is no await between lookup and insert, so this is atomic on the
    event loop.
    """
    lock = _locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[key] = lock
    return lock


async def _acquire(lock: asyncio.Lock, key: Hashable, timeout: Optional[float], operation: str):
    try:
        if timeout:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        else:
            await lock.acquire()
    except asyncio.TimeoutError:
        logger.warning(f"Lock timeout for {key} after {timeout}s: {operation}")
        raise LockTimeoutError(
            f"Another {operation} is in progress; could not acquire lock within {timeout}s"
        )
    logger.debug(f"Lock acquired for {key}: {operation}")


class KeyedLock:
    """Context manager for exclusive access to a keyed resource.

    Example:
        async with KeyedLock((address, chain_id, token), operation="credit"):
            channel = await find_or_create_channel(...)
    """

    def __init__(
        self,
        key: Hashable,
        timeout: Optional[float] = 30.0,
        operation: str = "operation",
    ):
        self.key = key
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "KeyedLock":
        self._lock = get_lock(self.key)
        await _acquire(self._lock, self.key, self.timeout, self.operation)
        self._acquired = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for {self.key}: {self.operation}")
        return False


@asynccontextmanager
async def keyed_lock(
    key: Hashable,
    timeout: Optional[float] = 30.0,
    operation: str = "operation",
):
    """Functional form of :class:`KeyedLock`.

    Example:
        async with keyed_lock(("wallet", user_id), operation="provision"):
            ...
    """
    lock = get_lock(key)
    await _acquire(lock, key, timeout, operation)
    try:
        yield
    finally:
        lock.release()
        logger.debug(f"Lock released for {key}: {operation}")


def clear_locks() -> None:
    """Clear all locks (useful for testing)."""
    _locks.clear()
