# This file is a part of Throttlegate.
#
# Copyright (C) 2017,2018 WIREMIND SAS <dev@wiremind.fr>
#
# Throttlegate is free software; you can redistribute it and/or modify it
# under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or (at
# your option) any later version.
#
# Throttlegate is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
# FITNESS FOR A PARTICULAR PURPOSE. See the GNU Lesser General Public
# License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import datetime
import os
from typing import Optional

import redis.asyncio as redis_async

from ..errors import ConflictError, ResourceNotFound
from .base import LockStore

DEFAULT_REDIS_URL = "redis://localhost:6379/0"

# The acquire Lua script refuses to lock a resource that was never created,
# then takes the lock only if nobody holds it.  Redis expires the lock key on
# its own once the duration is over.
ACQUIRE_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
  return -1
end
if redis.call('SET', KEYS[2], ARGV[1], 'NX', 'PX', ARGV[2]) then
  return 1
end
return 0
"""

# The release Lua script deletes the lock only if it is still held by the
# given owner token.
RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


class RedisLockStore(LockStore):
    """Lock store for Redis_.

    Each resource is a persistent placeholder key, and its lock a separate
    key holding the owner token with a millisecond expiry.

    Parameters:
      url(str): An optional connection URL.  Defaults to the
        ``THROTTLEGATE_REDIS_URL`` environment variable, then to
        ``redis://localhost:6379/0``.
      client(Redis): An optional :class:`redis.asyncio.Redis` client.  If
        this is passed, then all other connection parameters are ignored.
      key_prefix(str): A prefix to prepend to all keys, so several gates
        can share one server.
      socket_timeout(float): Deadline in seconds for every Redis call.
      **parameters(dict): Connection parameters are passed directly
        to :class:`redis.asyncio.Redis`.

    .. _redis: https://redis.io
    """

    def __init__(
        self,
        *,
        url: Optional[str] = None,
        client: Optional[redis_async.Redis] = None,
        key_prefix: str = "throttlegate-leases:",
        socket_timeout: float = 5.0,
        **parameters,
    ) -> None:
        if client is None:
            url = url or os.getenv("THROTTLEGATE_REDIS_URL") or DEFAULT_REDIS_URL
            parameters["connection_pool"] = redis_async.ConnectionPool.from_url(
                url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
                socket_keepalive=True,
            )
            client = redis_async.Redis(**parameters)
        self.client = client
        self.key_prefix = key_prefix

        self._acquire_script = self.client.register_script(ACQUIRE_LUA)
        self._release_script = self.client.register_script(RELEASE_LUA)

    async def ensure_exists(self, key: str) -> None:
        created = await self.client.set(self._build_key(key), "", nx=True)
        if not created:
            raise ConflictError(f"resource {key!r} already exists")

    async def acquire_lock(self, key: str, duration: datetime.timedelta, owner_token: str) -> None:
        ttl_ms = max(1, int(duration.total_seconds() * 1000))
        outcome = await self._acquire_script(
            keys=[self._build_key(key), self._build_lock_key(key)], args=[owner_token, ttl_ms]
        )
        if outcome == -1:
            raise ResourceNotFound(f"resource {key!r} does not exist")
        if not outcome:
            raise ConflictError(f"resource {key!r} is already locked")

    async def release_lock(self, key: str, owner_token: str) -> None:
        released = await self._release_script(keys=[self._build_lock_key(key)], args=[owner_token])
        if not released:
            raise ConflictError(f"resource {key!r} is not locked by {owner_token!r}")

    async def close(self) -> None:
        await self.client.aclose()

    def _build_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _build_lock_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}:lock"
