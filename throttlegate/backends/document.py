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
from typing import Callable, Optional

from ..backend import LeaseBackend
from ..common import utcnow
from ..errors import ConflictError
from ..lease import LeaseRecord
from ..logging import get_logger
from ..stores.base import DocumentStore


class VersionedDocumentBackend(LeaseBackend):
    """Lease backend on a store of versioned documents, one per key.

    The store has no notion of expiry: ``leased_until`` is compared to the
    local clock when the document is read, and every write is conditioned
    on the etag of that read.  Writers whose clocks disagree may see a lease
    expire early or late.

    A caller that already holds a lease is denied like anyone else when it
    asks for it again.

    Parameters:
      store(DocumentStore): The store holding the lease documents.
      clock(callable): Returns the current UTC time as an aware datetime.
    """

    def __init__(self, store: DocumentStore, *, clock: Optional[Callable[[], datetime.datetime]] = None) -> None:
        self.store = store
        self.clock = clock or utcnow
        self.logger = get_logger(__name__, type(self))

    async def try_acquire(self, key: str, duration: datetime.timedelta, owner_token: str) -> bool:
        existing = await self.store.read(key)
        now = self.clock()
        lease = LeaseRecord(id=key, lease_id=owner_token, leased_until=now + duration)

        if existing is None:
            try:
                await self.store.create(lease)
            except ConflictError:
                self.logger.debug("Lease on %r was created concurrently", key)
                return False
            self.logger.debug("Acquired new lease on %r until %s", key, lease.leased_until)
            return True

        record, etag = existing
        if record.is_held(now):
            self.logger.debug("Lease on %r is held until %s", key, record.leased_until)
            return False

        try:
            await self.store.replace(lease, etag)
        except ConflictError:
            self.logger.debug("Lease on %r was taken concurrently", key)
            return False

        self.logger.debug("Acquired lease on %r until %s", key, lease.leased_until)
        return True

    async def release(self, key: str, owner_token: str) -> None:
        existing = await self.store.read(key)
        if existing is None:
            return

        record, etag = existing
        if record.lease_id != owner_token:
            return

        try:
            await self.store.replace(record.cleared(), etag)
        except ConflictError:
            self.logger.debug("Lease on %r changed while releasing it", key)
            return

        self.logger.debug("Released lease on %r", key)
