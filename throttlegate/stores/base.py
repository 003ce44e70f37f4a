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
from typing import Optional, Tuple

from ..lease import LeaseRecord


class LockStore:
    """A store of named resources that can be exclusively locked for a
    bounded duration.  The store enforces expiry itself.

    Every method raises :class:`~throttlegate.errors.ConflictError` when a
    competing operation already won.
    """

    async def ensure_exists(self, key: str) -> None:
        """Create the resource named ``key``.  Raises a conflict if it
        already exists.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement ensure_exists")

    async def acquire_lock(self, key: str, duration: datetime.timedelta, owner_token: str) -> None:
        """Lock ``key`` for ``duration``.  Raises a conflict if an unexpired
        lock is held by anyone.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement acquire_lock")

    async def release_lock(self, key: str, owner_token: str) -> None:
        """Unlock ``key``.  Raises a conflict unless ``owner_token`` holds
        the lock.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement release_lock")

    async def close(self) -> None:
        """Release the connections held by the store."""


class DocumentStore:
    """A store of one :class:`LeaseRecord` per key, written with optimistic
    concurrency.  Each read returns an opaque etag that changes on every
    write; conditional writes fail with a
    :class:`~throttlegate.errors.ConflictError` when it no longer matches.
    """

    async def read(self, key: str) -> Optional[Tuple[LeaseRecord, str]]:
        """Return the record of ``key`` and its etag, or ``None``."""
        raise NotImplementedError(f"{type(self).__name__!r} does not implement read")

    async def create(self, record: LeaseRecord) -> str:
        """Insert a new record and return its etag.  Raises a conflict if
        one already exists for the key.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement create")

    async def replace(self, record: LeaseRecord, etag: str) -> str:
        """Overwrite the record if its etag still matches, returning the new
        etag.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement replace")

    async def close(self) -> None:
        """Release the connections held by the store."""
