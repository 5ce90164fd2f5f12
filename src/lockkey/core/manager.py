"""Public lock API."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Generic, Optional, TypeVar

from lockkey.utils.logging import get_logger

from .codec import RecordCodec
from .defaults import get_default_options
from .engine import AcquisitionEngine
from .identity import IdentityProvider, default_identity
from .models import LockOptions
from .store import LockStore

if TYPE_CHECKING:
    from .settings import LockSettings


T = TypeVar("T")

DEFAULT_NAMESPACE = "lock_key:"


@dataclass(slots=True)
class ScopedResult(Generic[T]):
    acquired: bool
    value: Optional[T] = None
    token: Optional[str] = None


class LockManager:
    """Store-backed mutex keyed by resource name.

    Every operation accepts an explicit ``owner_id``; when it is omitted the
    id of the calling thread or task is used.
    """

    def __init__(
        self,
        store: LockStore,
        *,
        defaults: Optional[LockOptions] = None,
        codec: Optional[RecordCodec] = None,
        identity: Optional[IdentityProvider] = None,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.defaults = defaults or get_default_options()
        self.identity = identity or default_identity()
        self.namespace = namespace
        self._clock = clock
        self._engine = AcquisitionEngine(store, codec=codec, clock=clock)
        self.logger = get_logger("manager")

    @classmethod
    def from_settings(cls, settings: "LockSettings", **kwargs: Any) -> "LockManager":
        from .store_redis import RedisLockStore

        return cls(
            RedisLockStore(settings.redis_url),
            defaults=settings.defaults,
            codec=RecordCodec(settings.delimiter),
            namespace=settings.namespace,
            **kwargs,
        )

    @classmethod
    def from_url(cls, url: Optional[str] = None, **kwargs: Any) -> "LockManager":
        from .store_redis import RedisLockStore

        return cls(RedisLockStore(url), **kwargs)

    @property
    def codec(self) -> RecordCodec:
        return self._engine.codec

    def key_for(self, resource: str) -> str:
        return f"{self.namespace}{resource}"

    def _owner(self, owner_id: Optional[str]) -> str:
        return owner_id or self.identity.current()

    def _options(self, options: Optional[LockOptions], overrides: dict) -> LockOptions:
        return (options or self.defaults).merged(**overrides)

    async def lock(
        self,
        resource: str,
        options: Optional[LockOptions] = None,
        *,
        owner_id: Optional[str] = None,
        **overrides: Any,
    ) -> Optional[str]:
        """Claim or renew the lock for ``resource``.

        Returns the token stored for the lock. When the wait runs out this
        raises ``LockAcquisitionTimeout``, or returns None if
        ``raise_on_timeout`` is off. Pass the token to ``unlock`` to release
        the lock from another task.
        """
        opts = self._options(options, overrides)
        return await self._engine.acquire(self.key_for(resource), self._owner(owner_id), opts)

    async def unlock(
        self,
        resource: str,
        *,
        token: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> bool:
        """Release the lock if the caller owns it or ``token`` matches it.

        A missing lock counts as released. Returns False instead of raising
        when the lock belongs to someone else.
        """
        key = self.key_for(resource)
        value, record = await self._engine.read(key)
        if value is None or record is None:
            return True
        if value != token and not record.owned_by(self._owner(owner_id)):
            return False
        released = await self.store.delete_if_equals(key, value)
        if not released:
            self.logger.debug("Lock %s changed before it could be released", key)
        return released

    async def is_locked(self, resource: str) -> bool:
        _, record = await self._engine.read(self.key_for(resource))
        return record is not None and not record.is_expired(self._clock())

    async def owner_of(self, resource: str) -> Optional[str]:
        """Owner id of the unexpired lock on ``resource``, if any."""
        _, record = await self._engine.read(self.key_for(resource))
        if record is None or record.is_expired(self._clock()):
            return None
        return record.owner_id

    async def force_release(self, resource: str) -> None:
        """Delete the lock regardless of who holds it."""
        key = self.key_for(resource)
        self.logger.info("Force releasing %s", key)
        await self.store.delete(key)

    @asynccontextmanager
    async def hold(
        self,
        resource: str,
        options: Optional[LockOptions] = None,
        *,
        owner_id: Optional[str] = None,
        **overrides: Any,
    ) -> AsyncIterator[str]:
        """Hold the lock for the duration of an ``async with`` block.

        Yields the token. A block cannot be skipped, so this always raises
        ``LockAcquisitionTimeout`` when the lock is not acquired, whatever
        ``raise_on_timeout`` says. Use ``with_lock`` for the non-raising form.
        """
        owner = self._owner(owner_id)
        opts = self._options(options, overrides).merged(raise_on_timeout=True)
        token = await self._engine.acquire(self.key_for(resource), owner, opts)
        try:
            yield token
        finally:
            await self.unlock(resource, token=token, owner_id=owner)

    async def with_lock(
        self,
        resource: str,
        body: Callable[[], Awaitable[T]],
        options: Optional[LockOptions] = None,
        *,
        owner_id: Optional[str] = None,
        **overrides: Any,
    ) -> ScopedResult[T]:
        """Await ``body`` while holding the lock; skip it if the lock was not acquired."""
        owner = self._owner(owner_id)
        token = await self.lock(resource, options, owner_id=owner, **overrides)
        if token is None:
            return ScopedResult(acquired=False)
        try:
            value = await body()
        finally:
            await self.unlock(resource, token=token, owner_id=owner)
        return ScopedResult(acquired=True, value=value, token=token)

    async def close(self) -> None:
        await self.store.close()
