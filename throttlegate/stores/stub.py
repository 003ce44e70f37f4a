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

from ..common import generate_unique_id
from ..errors import ConflictError, ResourceNotFound
from ..lease import LeaseRecord
from .base import DocumentStore, LockStore


class StubLockStore(LockStore):
    """In-memory lock store for tests and single-process runs.

    Parameters:
      clock(callable): Returns the current time in seconds.  Defaults to
        :func:`time.monotonic`.
    """

    def __init__(self, *, clock: Optional[Callable[[], float]] = None) -> None:
        self.clock = clock or time.monotonic
        self._lock = threading.RLock()
        self._resources: set = set()
        self._locks: Dict[str, Tuple[str, float]] = {}

    async def ensure_exists(self, key: str) -> None:
        with self._lock:
            if key in self._resources:
                raise ConflictError(f"resource {key!r} already exists")
            self._resources.add(key)

    async def acquire_lock(self, key: str, duration: datetime.timedelta, owner_token: str) -> None:
        now = self.clock()
        with self._lock:
            if key not in self._resources:
                raise ResourceNotFound(f"resource {key!r} does not exist")
            if self._held_by(key, now) is not None:
                raise ConflictError(f"resource {key!r} is already locked")
            self._locks[key] = (owner_token, now + duration.total_seconds())

    async def release_lock(self, key: str, owner_token: str) -> None:
        now = self.clock()
        with self._lock:
            if self._held_by(key, now) != owner_token:
                raise ConflictError(f"resource {key!r} is not locked by {owner_token!r}")
            del self._locks[key]

    def _held_by(self, key: str, now: float) -> Optional[str]:
        lock = self._locks.get(key)
        if lock is None:
            return None
        owner_token, expires_at = lock
        if expires_at <= now:
            del self._locks[key]
            return None
        return owner_token


class StubDocumentStore(DocumentStore):
    """In-memory document store for tests and single-process runs."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: Dict[str, Tuple[LeaseRecord, str]] = {}

    async def read(self, key: str) -> Optional[Tuple[LeaseRecord, str]]:
        with self._lock:
            return self._documents.get(key)

    async def create(self, record: LeaseRecord) -> str:
        with self._lock:
            if record.id in self._documents:
                raise ConflictError(f"lease {record.id!r} already exists")
            etag = generate_unique_id()
            self._documents[record.id] = (record, etag)
            return etag

    async def replace(self, record: LeaseRecord, etag: str) -> str:
        with self._lock:
            current = self._documents.get(record.id)
            if current is None or current[1] != etag:
                raise ConflictError(f"lease {record.id!r} was modified concurrently")
            new_etag = generate_unique_id()
            self._documents[record.id] = (record, new_etag)
            return new_etag
