"""Utility modules for tempwallet."""

from tempwallet.utils.locks import KeyedLock, LockTimeoutError, get_lock, keyed_lock

__all__ = ["KeyedLock", "LockTimeoutError", "get_lock", "keyed_lock"]
