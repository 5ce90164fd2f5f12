"""In-process lock store for tests and single-process deployments."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass(slots=True)
class _Entry:
    value: str
    expires_at: Optional[float] = None


class InMemoryLockStore:
    """Dictionary-backed store with Redis-like TTL semantics.

    Keys whose TTL has passed are dropped the next time they are touched.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    def _live(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("InMemoryLockStore is closed")

    async def get(self, key: str) -> Optional[str]:
        self._check_open()
        async with self._lock:
            entry = self._live(key)
            return entry.value if entry else None

    async def set_if_absent(self, key: str, value: str) -> bool:
        self._check_open()
        async with self._lock:
            if self._live(key) is not None:
                return False
            self._entries[key] = _Entry(value)
            return True

    async def swap(self, key: str, value: str) -> Optional[str]:
        self._check_open()
        async with self._lock:
            entry = self._live(key)
            # Like GETSET, a plain write clears any TTL.
            self._entries[key] = _Entry(value)
            return entry.value if entry else None

    async def expire(self, key: str, ttl_seconds: float) -> None:
        self._check_open()
        async with self._lock:
            entry = self._live(key)
            if entry is not None:
                entry.expires_at = self._clock() + ttl_seconds

    async def transactional_set_and_expire(
        self, key: str, value: str, ttl_seconds: float, *, expected: Optional[str]
    ) -> bool:
        self._check_open()
        async with self._lock:
            entry = self._live(key)
            current = entry.value if entry else None
            if current != expected:
                return False
            self._entries[key] = _Entry(value, self._clock() + ttl_seconds)
            return True

    async def delete(self, key: str) -> None:
        self._check_open()
        async with self._lock:
            self._entries.pop(key, None)

    async def delete_if_equals(self, key: str, value: str) -> bool:
        self._check_open()
        async with self._lock:
            entry = self._live(key)
            if entry is None or entry.value != value:
                return False
            del self._entries[key]
            return True

    async def ttl(self, key: str) -> Optional[float]:
        """Seconds left before ``key`` expires, None when it has no TTL or is absent."""
        async with self._lock:
            entry = self._live(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()

    async def close(self) -> None:
        self._closed = True
        async with self._lock:
            self._entries.clear()
