"""Interface to the key-value store holding lock records."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class LockStore(Protocol):
    """Atomic primitives the lock protocol relies on.

    Every method must be atomic at the store. Values are plain strings.
    """

    async def get(self, key: str) -> Optional[str]: ...

    async def set_if_absent(self, key: str, value: str) -> bool:
        """Create ``key``; True iff this call created it."""
        ...

    async def swap(self, key: str, value: str) -> Optional[str]:
        """Replace the value and return the previous one."""
        ...

    async def expire(self, key: str, ttl_seconds: float) -> None: ...

    async def transactional_set_and_expire(
        self, key: str, value: str, ttl_seconds: float, *, expected: Optional[str]
    ) -> bool:
        """Write ``value`` with a TTL as one unit, if ``key`` still holds ``expected``.

        ``expected=None`` means the key must be absent. Returns whether the
        write was committed.
        """
        ...

    async def delete(self, key: str) -> None: ...

    async def delete_if_equals(self, key: str, value: str) -> bool:
        """Delete ``key`` only while it still holds ``value``."""
        ...

    async def close(self) -> None: ...
