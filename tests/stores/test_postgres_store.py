import asyncio
import datetime

import pytest
from pytz import utc

from throttlegate import LeaseRecord, ThrottledGate, VersionedDocumentBackend
from throttlegate.errors import ConflictError

UNTIL = datetime.datetime(1998, 7, 12, 21, 0, 15, tzinfo=utc)


@pytest.mark.asyncio
async def test_postgres_store_read_missing_lease(postgres_document_store):
    assert await postgres_document_store.read("device-1") is None


@pytest.mark.asyncio
async def test_postgres_store_create_and_read(postgres_document_store):
    lease = LeaseRecord(id="device-1", lease_id="token1", leased_until=UNTIL)

    etag = await postgres_document_store.create(lease)

    assert await postgres_document_store.read("device-1") == (lease, etag)


@pytest.mark.asyncio
async def test_postgres_store_create_conflicts_with_existing_lease(postgres_document_store):
    await postgres_document_store.create(LeaseRecord(id="device-1", lease_id="token1", leased_until=UNTIL))

    with pytest.raises(ConflictError):
        await postgres_document_store.create(LeaseRecord(id="device-1", lease_id="token2", leased_until=UNTIL))


@pytest.mark.asyncio
async def test_postgres_store_replace_is_conditioned_on_etag(postgres_document_store):
    etag = await postgres_document_store.create(LeaseRecord(id="device-1", lease_id="token1", leased_until=UNTIL))

    new_etag = await postgres_document_store.replace(LeaseRecord(id="device-1"), etag)
    assert new_etag != etag

    with pytest.raises(ConflictError):
        await postgres_document_store.replace(LeaseRecord(id="device-1", lease_id="token2", leased_until=UNTIL), etag)

    assert await postgres_document_store.read("device-1") == (LeaseRecord(id="device-1"), new_etag)


@pytest.mark.asyncio
async def test_postgres_store_replace_missing_lease(postgres_document_store):
    with pytest.raises(ConflictError):
        await postgres_document_store.replace(LeaseRecord(id="device-1"), "etag")


@pytest.mark.asyncio
async def test_postgres_backend_acquire_and_release(postgres_document_store, clock):
    backend = VersionedDocumentBackend(postgres_document_store, clock=clock.utcnow)
    window = datetime.timedelta(seconds=15)

    assert await backend.try_acquire("device-1", window, "token1")
    assert not await backend.try_acquire("device-1", window, "token2")

    clock.advance(15)
    assert await backend.try_acquire("device-1", window, "token2")

    await backend.release("device-1", "token2")
    assert await postgres_document_store.read("device-1") is not None
    assert await backend.try_acquire("device-1", window, "token3")


@pytest.mark.asyncio
async def test_postgres_gate_concurrent_runs(postgres_document_store):
    gate = ThrottledGate(VersionedDocumentBackend(postgres_document_store))

    results = await asyncio.gather(*[gate.run("device-1", 60, lambda: "ok", lambda: "throttled") for _ in range(5)])

    assert results.count("ok") == 1
