import asyncio
import datetime

import pytest

from throttlegate import ExclusiveLockBackend, ThrottledGate
from throttlegate.errors import ConflictError, ResourceNotFound
from throttlegate.stores import RedisLockStore

WINDOW = datetime.timedelta(seconds=15)


@pytest.mark.asyncio
async def test_redis_store_resources_are_created_once(redis_lock_store):
    await redis_lock_store.ensure_exists("device-1")

    with pytest.raises(ConflictError):
        await redis_lock_store.ensure_exists("device-1")


@pytest.mark.asyncio
async def test_redis_store_cannot_lock_missing_resource(redis_lock_store):
    with pytest.raises(ResourceNotFound):
        await redis_lock_store.acquire_lock("device-1", WINDOW, "token1")


@pytest.mark.asyncio
async def test_redis_store_lock_and_release(redis_lock_store):
    await redis_lock_store.ensure_exists("device-1")
    await redis_lock_store.acquire_lock("device-1", WINDOW, "token1")

    with pytest.raises(ConflictError):
        await redis_lock_store.acquire_lock("device-1", WINDOW, "token2")
    with pytest.raises(ConflictError):
        await redis_lock_store.release_lock("device-1", "token2")

    await redis_lock_store.release_lock("device-1", "token1")
    await redis_lock_store.acquire_lock("device-1", WINDOW, "token2")


@pytest.mark.asyncio
async def test_redis_store_lock_expires_on_its_own(redis_lock_store):
    await redis_lock_store.ensure_exists("device-1")
    await redis_lock_store.acquire_lock("device-1", datetime.timedelta(milliseconds=100), "token1")

    ttl = await redis_lock_store.client.pttl(redis_lock_store._build_lock_key("device-1"))
    assert 0 < ttl <= 100

    await asyncio.sleep(0.2)
    await redis_lock_store.acquire_lock("device-1", WINDOW, "token2")
    assert await redis_lock_store.client.exists(redis_lock_store._build_key("device-1"))


@pytest.mark.asyncio
async def test_redis_backend_only_one_concurrent_acquire_wins(redis_lock_store):
    backend = ExclusiveLockBackend(redis_lock_store)

    results = await asyncio.gather(*[backend.try_acquire("device-1", WINDOW, f"token{i}") for i in range(20)])

    assert results.count(True) == 1


@pytest.mark.asyncio
async def test_redis_gate_releases_on_failure(redis_lock_store):
    gate = ThrottledGate(ExclusiveLockBackend(redis_lock_store))

    async def fail():
        raise RuntimeError("Error sending notification")

    with pytest.raises(RuntimeError):
        await gate.run("device-2", 60, fail)

    assert await gate.run("device-2", 60, lambda: "ok", lambda: "throttled") == "ok"
    assert await gate.run("device-2", 60, lambda: "ok", lambda: "throttled") == "throttled"


def test_redis_store_builds_its_client_from_a_url():
    store = RedisLockStore(url="redis://cache.internal:6390/2", socket_timeout=2.0)

    connection_kwargs = store.client.connection_pool.connection_kwargs
    assert connection_kwargs["host"] == "cache.internal"
    assert connection_kwargs["port"] == 6390
    assert connection_kwargs["db"] == 2
    assert connection_kwargs["socket_timeout"] == 2.0
    assert connection_kwargs["socket_connect_timeout"] == 2.0


def test_redis_store_reads_its_url_from_the_environment(monkeypatch):
    monkeypatch.setenv("THROTTLEGATE_REDIS_URL", "redis://from-env:6391/0")

    store = RedisLockStore()

    assert store.client.connection_pool.connection_kwargs["host"] == "from-env"
