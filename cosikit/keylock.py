"""Locks chosen by the hash of a key."""

from __future__ import annotations

import threading

_FNV32_OFFSET = 2166136261
_FNV32_PRIME = 16777619
_MASK32 = 0xFFFFFFFF


def _fnv1_32(data: bytes) -> int:
    h = _FNV32_OFFSET
    for byte in data:
        h = (h * _FNV32_PRIME) & _MASK32
        h ^= byte
    return h


class KeyMutexLock:
    """A fixed set of mutexes; each key maps to one of them."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"lock count must be positive, got [{size}]")
        self._locks = [threading.Lock() for _ in range(size)]

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[_fnv1_32(key.encode("utf-8")) % len(self._locks)]

    def lock(self, key: str) -> None:
        """Acquire the lock for ``key``, blocking until it is free."""
        self._lock_for(key).acquire()

    def unlock(self, key: str) -> None:
        """Release the lock for ``key``; raises RuntimeError if it is not held."""
        self._lock_for(key).release()

    def locked(self, key: str) -> bool:
        """Tell whether the lock for ``key`` is held."""
        return self._lock_for(key).locked()