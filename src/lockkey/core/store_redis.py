"""Redis-backed lock store."""

from __future__ import annotations

import math
import os
from typing import Optional, Union

from redis.asyncio import Redis
from redis.exceptions import WatchError


DEFAULT_REDIS_URL = "redis://localhost:6379/0"

# delete only if the value still matches
_DELETE_IF_EQUALS_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


def _ttl_ms(ttl_seconds: float) -> int:
    return max(1, int(math.ceil(ttl_seconds * 1000)))


def _text(value: Optional[Union[str, bytes]]) -> Optional[str]:
    # clients built without decode_responses=True reply with bytes
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class RedisLockStore:
    """Lock primitives mapped onto Redis commands.

    TTLs are set in milliseconds so fractional seconds are honoured.
    """

    def __init__(self, url: Optional[str] = None, *, client: Optional[Redis] = None) -> None:
        if client is None:
            client = Redis.from_url(
                url or os.getenv("LOCKKEY_REDIS_URL", DEFAULT_REDIS_URL),
                decode_responses=True,
            )
        self._redis = client

    async def get(self, key: str) -> Optional[str]:
        return _text(await self._redis.get(key))

    async def set_if_absent(self, key: str, value: str) -> bool:
        return bool(await self._redis.setnx(key, value))

    async def swap(self, key: str, value: str) -> Optional[str]:
        return _text(await self._redis.getset(key, value))

    async def expire(self, key: str, ttl_seconds: float) -> None:
        await self._redis.pexpire(key, _ttl_ms(ttl_seconds))

    async def transactional_set_and_expire(
        self, key: str, value: str, ttl_seconds: float, *, expected: Optional[str]
    ) -> bool:
        async with self._redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                current = _text(await pipe.get(key))
                if current != expected:
                    return False
                pipe.multi()
                pipe.set(key, value)
                pipe.pexpire(key, _ttl_ms(ttl_seconds))
                results = await pipe.execute()
            except WatchError:
                return False
        return all(results)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def delete_if_equals(self, key: str, value: str) -> bool:
        return bool(await self._redis.eval(_DELETE_IF_EQUALS_LUA, 1, key, value))

    async def close(self) -> None:
        await self._redis.aclose()
