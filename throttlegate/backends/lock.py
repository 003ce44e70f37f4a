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

from ..backend import LeaseBackend
from ..common import Duration, to_timedelta
from ..errors import ConflictError, InvalidLeaseDuration
from ..logging import get_logger
from ..stores.base import LockStore

#: Bounds of the lock durations accepted by blob-style lease services.
DEFAULT_MIN_DURATION = datetime.timedelta(seconds=15)
DEFAULT_MAX_DURATION = datetime.timedelta(seconds=60)


class ExclusiveLockBackend(LeaseBackend):
    """Lease backend on a store of exclusively lockable resources.

    The store enforces lock expiry, so this backend never looks at clocks.
    Windows longer than ``max_duration`` are not split into renewed
    sub-leases: they are refused.

    Parameters:
      store(LockStore): The store holding the resources and their locks.
      min_duration(timedelta|float): Shortest lock the store accepts.
      max_duration(timedelta|float): Longest lock the store accepts.
    """

    def __init__(
        self,
        store: LockStore,
        *,
        min_duration: Duration = DEFAULT_MIN_DURATION,
        max_duration: Duration = DEFAULT_MAX_DURATION,
    ) -> None:
        self.store = store
        self.min_duration = to_timedelta(min_duration)
        self.max_duration = to_timedelta(max_duration)
        if self.min_duration > self.max_duration:
            raise ValueError("min_duration must not be greater than max_duration")
        self.logger = get_logger(__name__, type(self))

    async def try_acquire(self, key: str, duration: datetime.timedelta, owner_token: str) -> bool:
        if not self.min_duration <= duration <= self.max_duration:
            raise InvalidLeaseDuration(
                f"lease duration {duration} is outside of [{self.min_duration}, {self.max_duration}]"
            )

        try:
            await self.store.ensure_exists(key)
        except ConflictError:
            pass  # the resource outlives its locks

        try:
            await self.store.acquire_lock(key, duration, owner_token)
        except ConflictError:
            self.logger.debug("Lease on %r is held by someone else", key)
            return False

        self.logger.debug("Acquired lease on %r for %s", key, duration)
        return True

    async def release(self, key: str, owner_token: str) -> None:
        try:
            await self.store.release_lock(key, owner_token)
        except ConflictError:
            self.logger.debug("Lease on %r was no longer held by %r", key, owner_token)
            return

        self.logger.debug("Released lease on %r", key)
