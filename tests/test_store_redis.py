from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest
from redis.exceptions import WatchError

from lockkey.core.manager import LockManager
from lockkey.core.models import LockOptions
from lockkey.core.store_redis import RedisLockStore


class DummyPipeline:
    def __init__(self, redis: "DummyRedis") -> None:
        self._redis = redis
        self._watched: Optional[str] = None
        self._snapshot: Optional[str] = None
        self._queued: List[tuple] = []

    async def __aenter__(self) -> "DummyPipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._queued.clear()
        self._watched = None

    async def watch(self, key: str) -> None:
        self._watched = key
        self._snapshot = self._redis.data.get(key)

    async def get(self, key: str):
        return self._redis.reply(self._redis.data.get(key))

    def multi(self) -> None:
        if self._redis.on_multi:
            self._redis.on_multi()

    def set(self, key: str, value: str) -> "DummyPipeline":
        self._queued.append(("set", key, value))
        return self

    def pexpire(self, key: str, ms: int) -> "DummyPipeline":
        self._queued.append(("pexpire", key, ms))
        return self

    async def execute(self) -> list:
        if self._watched is not None and self._redis.data.get(self._watched) != self._snapshot:
            raise WatchError("watched key changed")
        results = []
        for op, key, arg in self._queued:
            if op == "set":
                self._redis.data[key] = arg
                self._redis.ttls.pop(key, None)
            else:
                self._redis.ttls[key] = arg
            results.append(True)
        return results


class DummyRedis:
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.on_multi: Optional[Callable[[], None]] = None
        self.closed = False
        self.as_bytes = False

    def reply(self, value):
        if self.as_bytes and isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def get(self, key):
        return self.reply(self.data.get(key))

    async def setnx(self, key, value):
        if key in self.data:
            return False
        self.data[key] = value
        return True

    async def getset(self, key, value):
        previous = self.data.get(key)
        self.data[key] = value
        self.ttls.pop(key, None)
        return self.reply(previous)

    async def pexpire(self, key, ms):
        if key not in self.data:
            return False
        self.ttls[key] = ms
        return True

    async def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def eval(self, script, numkeys, key, value):
        if self.data.get(key) == value:
            return await self.delete(key)
        return 0

    def pipeline(self, transaction=True):
        assert transaction
        return DummyPipeline(self)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def redis():
    return DummyRedis()


@pytest.fixture
def store(redis):
    return RedisLockStore(client=redis)


@pytest.mark.asyncio
async def test_set_if_absent_only_once(store, redis):
    assert await store.set_if_absent("k", "one") is True
    assert await store.set_if_absent("k", "two") is False
    assert redis.data["k"] == "one"


@pytest.mark.asyncio
async def test_swap_returns_previous(store):
    assert await store.swap("k", "one") is None
    assert await store.swap("k", "two") == "one"
    assert await store.get("k") == "two"


@pytest.mark.asyncio
async def test_expire_uses_milliseconds(store, redis):
    await store.set_if_absent("k", "v")
    await store.expire("k", 1.5)
    assert redis.ttls["k"] == 1500
    await store.expire("k", 0.0001)
    assert redis.ttls["k"] == 1


@pytest.mark.asyncio
async def test_transactional_write_commits_when_expected_matches(store, redis):
    assert await store.transactional_set_and_expire("k", "v1", 2, expected=None) is True
    assert redis.data["k"] == "v1"
    assert redis.ttls["k"] == 2000

    assert await store.transactional_set_and_expire("k", "v2", 3, expected="v1") is True
    assert redis.data["k"] == "v2"
    assert redis.ttls["k"] == 3000


@pytest.mark.asyncio
async def test_transactional_write_refuses_unexpected_value(store, redis):
    redis.data["k"] = "someone-else"
    assert await store.transactional_set_and_expire("k", "mine", 2, expected=None) is False
    assert redis.data["k"] == "someone-else"


@pytest.mark.asyncio
async def test_transactional_write_aborts_on_concurrent_change(store, redis):
    def interfere():
        redis.data["k"] = "sneaky"

    redis.on_multi = interfere
    assert await store.transactional_set_and_expire("k", "mine", 2, expected=None) is False
    assert redis.data["k"] == "sneaky"


@pytest.mark.asyncio
async def test_delete_if_equals(store, redis):
    redis.data["k"] = "v"
    assert await store.delete_if_equals("k", "other") is False
    assert await store.delete_if_equals("k", "v") is True
    assert "k" not in redis.data


@pytest.mark.asyncio
async def test_close_closes_client(store, redis):
    await store.close()
    assert redis.closed


@pytest.mark.asyncio
async def test_manager_over_redis_store(store, redis):
    manager = LockManager(store, defaults=LockOptions(wait_for=0.1, ttl=5, poll_interval=0.02))
    token = await manager.lock("job", owner_id="a")
    assert redis.data["lock_key:job"] == token
    assert redis.ttls["lock_key:job"] == 5000

    assert await manager.lock("job", owner_id="b", raise_on_timeout=False) is None
    assert await manager.unlock("job", owner_id="b") is False
    assert await manager.unlock("job", owner_id="a") is True
    assert "lock_key:job" not in redis.data


@pytest.mark.asyncio
async def test_bytes_replies_are_decoded(store, redis):
    redis.as_bytes = True
    await store.set_if_absent("k", "one")
    assert await store.get("k") == "one"
    assert await store.swap("k", "two") == "one"
    assert await store.transactional_set_and_expire("k", "three", 1, expected="two") is True


@pytest.mark.asyncio
async def test_token_handoff_with_bytes_client(store, redis):
    redis.as_bytes = True
    manager = LockManager(store, defaults=LockOptions(wait_for=0.1, ttl=5, poll_interval=0.02))
    token = await manager.lock("job", owner_id="a")
    assert isinstance(token, str)
    assert await manager.is_locked("job")
    assert await manager.unlock("job", owner_id="b", token=token) is True
    assert "lock_key:job" not in redis.data


@pytest.mark.asyncio
async def test_undecodable_value_is_overwritten(store, redis):
    redis.as_bytes = True
    manager = LockManager(store, defaults=LockOptions(wait_for=0.1, ttl=5, poll_interval=0.02))
    redis.data["lock_key:job"] = b"\xff\xfe"
    assert not await manager.is_locked("job")

    token = await manager.lock("job", owner_id="a")
    assert redis.data["lock_key:job"] == token
    assert await manager.owner_of("job") == "a"
