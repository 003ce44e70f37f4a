import datetime
import logging
import os
import random

import pytest
import pytest_asyncio
import redis
from pytz import utc
from sqlalchemy.ext.asyncio import create_async_engine

from throttlegate import CachedBackend, ExclusiveLockBackend, ThrottledGate, VersionedDocumentBackend
from throttlegate.stores import PostgresDocumentStore, RedisLockStore, StubDocumentStore, StubLockStore

logfmt = "[%(asctime)s] [%(threadName)s] [%(name)s] [%(levelname)s] %(message)s"
logging.basicConfig(level=logging.INFO, format=logfmt)

random.seed(1337)

CI = os.getenv("CI") == "true"


class FakeClock:
    """A clock that only moves when told to, readable both as wall-clock
    datetimes and as monotonic seconds.
    """

    def __init__(self, start=datetime.datetime(1998, 7, 12, 21, 0, tzinfo=utc)):
        self.start = start
        self.elapsed = 0.0

    def utcnow(self):
        return self.start + datetime.timedelta(seconds=self.elapsed)

    def monotonic(self):
        return self.elapsed

    def advance(self, seconds):
        self.elapsed += seconds


async def check_redis(client):
    try:
        await client.ping()
    except (redis.ConnectionError, redis.TimeoutError) as e:
        raise e from e if CI else pytest.skip("No connection to Redis server.")
    await client.flushall()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stub_lock_store(clock):
    return StubLockStore(clock=clock.monotonic)


@pytest.fixture
def stub_document_store():
    return StubDocumentStore()


@pytest.fixture
def lock_backend(stub_lock_store):
    return ExclusiveLockBackend(stub_lock_store)


@pytest.fixture
def document_backend(stub_document_store, clock):
    return VersionedDocumentBackend(stub_document_store, clock=clock.utcnow)


@pytest.fixture
def lease_backends(lock_backend, document_backend):
    return {"lock": lock_backend, "document": document_backend}


@pytest.fixture(params=["lock", "document"])
def lease_backend(request, lease_backends):
    return lease_backends[request.param]


@pytest.fixture
def cached_backend(lease_backend, clock):
    return CachedBackend(lease_backend, clock=clock.monotonic)


@pytest.fixture
def gate(lease_backend):
    return ThrottledGate(lease_backend)


@pytest_asyncio.fixture
async def redis_lock_store():
    redis_url = os.getenv("THROTTLEGATE_TEST_REDIS_URL") or "redis://localhost:6481/0"
    store = RedisLockStore(url=redis_url, socket_timeout=1.0)
    await check_redis(store.client)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def postgres_document_store(tmp_path):
    db_url = os.getenv("THROTTLEGATE_TEST_DB_URL") or f"sqlite+aiosqlite:///{tmp_path / 'leases.db'}"
    store = PostgresDocumentStore(engine=create_async_engine(db_url))
    await store.init_db()
    await store.clean()
    yield store
    await store.close()
