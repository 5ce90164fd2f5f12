"""Claim and renewal loop for store-backed locks."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

from tenacity import AsyncRetrying, before_sleep_log, retry_if_result, stop_after_delay, wait_fixed

from lockkey.utils.logging import get_logger

from .codec import RecordCodec
from .errors import LockAcquisitionTimeout, MalformedLockRecord
from .models import LockOptions, LockRecord
from .store import LockStore


logger = get_logger("engine")


def _not_acquired(token: Optional[str]) -> bool:
    return token is None


class AcquisitionEngine:
    """Claims, renews and polls for a lock key on behalf of one owner.

    A call first tries a renewal shortcut: if the key is free or already held
    by the caller, one transactional write claims or extends it. Otherwise it
    polls every ``poll_interval`` seconds until ``wait_for`` runs out, claiming
    the key as soon as it is seen absent or expired.

    Malformed records are treated as expired. Store errors are not retried
    and reach the caller unchanged.
    """

    def __init__(
        self,
        store: LockStore,
        *,
        codec: Optional[RecordCodec] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.codec = codec or RecordCodec()
        self._clock = clock

    async def acquire(self, key: str, owner_id: str, options: LockOptions) -> Optional[str]:
        """Return the stored token on success, or None when not acquired.

        Raises ``LockAcquisitionTimeout`` instead of returning None when
        ``options.raise_on_timeout`` is set.
        """
        token = await self._try_renew(key, owner_id, options.ttl)
        if token is not None:
            return token

        retrying = AsyncRetrying(
            stop=stop_after_delay(options.wait_for),
            wait=wait_fixed(options.poll_interval),
            retry=retry_if_result(_not_acquired),
            retry_error_callback=lambda _state: None,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
        )
        token = await retrying(self._poll_once, key, owner_id, options.ttl)
        if token is not None:
            return token

        logger.info("Timed out after %ss waiting for %s", options.wait_for, key)
        if options.raise_on_timeout:
            raise LockAcquisitionTimeout(key, options.wait_for)
        return None

    def decode(self, key: str, value: Optional[str]) -> Optional[LockRecord]:
        """Decode ``value``, returning None for absent or malformed records."""
        try:
            return self.codec.decode(value)
        except MalformedLockRecord as exc:
            logger.warning("Treating malformed record at %s as expired: %s", key, exc.reason)
            return None

    async def read(self, key: str) -> Tuple[Optional[str], Optional[LockRecord]]:
        value = await self.store.get(key)
        return value, self.decode(key, value)

    def _fresh_value(self, owner_id: str, ttl: float) -> str:
        return self.codec.encode(owner_id, self._clock() + ttl)

    async def _try_renew(self, key: str, owner_id: str, ttl: float) -> Optional[str]:
        value, record = await self.read(key)
        if record is not None and not record.owned_by(owner_id):
            return None

        fresh = self._fresh_value(owner_id, ttl)
        committed = await self.store.transactional_set_and_expire(key, fresh, ttl, expected=value)
        if not committed:
            return None
        if record is None:
            logger.debug("Claimed %s for %s", key, owner_id)
        else:
            logger.debug("Renewed %s for %s", key, owner_id)
        return fresh

    async def _poll_once(self, key: str, owner_id: str, ttl: float) -> Optional[str]:
        value, record = await self.read(key)

        if value is None:
            fresh = self._fresh_value(owner_id, ttl)
            if not await self.store.set_if_absent(key, fresh):
                return None
            await self.store.expire(key, ttl)
            logger.debug("Claimed free key %s for %s", key, owner_id)
            return fresh

        if record is None or record.is_expired(self._clock()):
            # Stale record still present: replace it only if nobody else did first.
            fresh = self._fresh_value(owner_id, ttl)
            if not await self.store.transactional_set_and_expire(key, fresh, ttl, expected=value):
                return None
            logger.debug("Took over stale key %s for %s", key, owner_id)
            return fresh

        if record.owned_by(owner_id):
            return value
        return None
