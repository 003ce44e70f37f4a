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
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ..backend import LeaseBackend
from ..common import Duration, to_timedelta
from ..logging import get_logger

#: How long a denied acquire is remembered.  The remaining time of the
#: remote lease is unknown, so this is a short constant.
DEFAULT_DENIED_TTL = datetime.timedelta(seconds=3)


class LeaseCache:
    """Process-local map of keys to (verdict, valid until) pairs.

    Entries are dropped lazily once expired.  Safe to share between
    coroutines, threads and several :class:`CachedBackend` instances.
    """

    def __init__(self, *, clock: Optional[Callable[[], float]] = None) -> None:
        self.clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[bool, float]] = {}

    def get(self, key: str) -> Optional[bool]:
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            verdict, valid_until = entry
            if valid_until <= now:
                del self._entries[key]
                return None
            return verdict

    def set(self, key: str, verdict: bool, ttl: datetime.timedelta) -> None:
        """Remember ``verdict`` for ``ttl``, unless a live entry for ``key``
        already lasts longer.
        """
        valid_until = self.clock() + ttl.total_seconds()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[1] > valid_until:
                return
            self._entries[key] = (verdict, valid_until)

    def evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CachedBackend(LeaseBackend):
    """Wraps any lease backend with a process-local lookaside cache.

    A cache entry, positive or negative, means the key is leased, and
    acquires of a cached key are denied without a remote call.  Granted
    leases are remembered for their full duration, denials for
    ``denied_ttl``.  The cache can therefore deny a key that has been freed
    remotely, but never grants one the backend would refuse.

    Parameters:
      backend(LeaseBackend): The backend to delegate to.
      cache(LeaseCache): An optional cache, to share one between backends.
      cache_prefix(str): Prefix of this backend's cache keys.
      denied_ttl(timedelta|float): How long denials are remembered.
      clock(callable): Monotonic seconds, used when ``cache`` is not given.
    """

    def __init__(
        self,
        backend: LeaseBackend,
        *,
        cache: Optional[LeaseCache] = None,
        cache_prefix: str = "throttle-leases-",
        denied_ttl: Duration = DEFAULT_DENIED_TTL,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.backend = backend
        self.cache = cache if cache is not None else LeaseCache(clock=clock)
        self.cache_prefix = cache_prefix
        self.denied_ttl = to_timedelta(denied_ttl)
        if self.denied_ttl <= datetime.timedelta(0):
            raise ValueError("denied_ttl must be positive")
        self.logger = get_logger(__name__, type(self))

    async def try_acquire(self, key: str, duration: datetime.timedelta, owner_token: str) -> bool:
        cache_key = self._build_key(key)
        if self.cache.get(cache_key) is not None:
            self.logger.debug("Lease on %r is cached as taken", key)
            return False

        acquired = await self.backend.try_acquire(key, duration, owner_token)
        self.cache.set(cache_key, acquired, duration if acquired else self.denied_ttl)
        return acquired

    async def release(self, key: str, owner_token: str) -> None:
        try:
            await self.backend.release(key, owner_token)
        finally:
            self.cache.evict(self._build_key(key))

    def clear(self) -> None:
        self.cache.clear()

    def _build_key(self, key: str) -> str:
        return f"{self.cache_prefix}{key}"
