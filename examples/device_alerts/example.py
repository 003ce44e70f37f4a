import argparse
import asyncio
import json
import logging
import random
import sys

from throttlegate import CachedBackend, ExclusiveLockBackend, GateCall, ThrottledGate, VersionedDocumentBackend
from throttlegate.stores import PostgresDocumentStore, RedisLockStore, StubLockStore

TEMPERATURE_THRESHOLD = 25.0

# Blob-style locks cannot be shorter than 15 seconds
THROTTLE_SECONDS = 15

logger = logging.getLogger("device_alerts")


async def send_notification(device_id, notification):
    if notification.lower() == "fail":
        raise RuntimeError("Error sending notification")
    logger.info("Notification for %s sent: %s", device_id, notification)


async def build_gate(backend_name):
    if backend_name == "storage":
        store = RedisLockStore()
        backend = ExclusiveLockBackend(store)
    elif backend_name == "memory":
        store = RedisLockStore(key_prefix="device-alerts-memory:")
        backend = CachedBackend(ExclusiveLockBackend(store))
    elif backend_name == "cosmosdb":
        store = PostgresDocumentStore()
        await store.init_db()
        backend = VersionedDocumentBackend(store)
    else:
        store = StubLockStore()
        backend = CachedBackend(ExclusiveLockBackend(store))
    return ThrottledGate(backend), store


async def alert(gate, device_id, notification):
    async def notify():
        await send_notification(device_id, notification)
        return {"status": "ok", "notification": notification}

    return await gate.run(device_id, THROTTLE_SECONDS, notify, fallback=lambda: {"status": "throttled"})


async def listen(gate, readings):
    calls = []
    for device_id, temperature in readings:
        if temperature < TEMPERATURE_THRESHOLD:
            continue

        async def notify(device_id=device_id, temperature=temperature):
            await send_notification(device_id, f"Temperature too high: {temperature}")

        calls.append(GateCall(key=device_id, window=60, action=notify))

    if calls:
        await gate.run_all(calls)


async def main(args):
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s")
    gate, store = await build_gate(args.backend)

    try:
        for notification in args.notifications:
            try:
                result = await alert(gate, args.device, notification)
            except RuntimeError as e:
                result = {"status": "failed", "error": str(e)}
            print(json.dumps(result))

        readings = [(f"device-{random.randint(1, 3)}", random.uniform(15, 35)) for _ in range(args.readings)]
        await listen(gate, readings)
    finally:
        await store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Throttled device alerts.")
    parser.add_argument("--backend", choices=["storage", "memory", "cosmosdb", "stub"], default="stub")
    parser.add_argument("--device", default="device-1")
    parser.add_argument("--readings", type=int, default=10)
    parser.add_argument("notifications", nargs="*", default=["fail", "hello", "hello"])
    sys.exit(asyncio.run(main(parser.parse_args())))
