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


class LeaseBackend:
    """Backend interface for time-bounded leases on keys.

    At most one owner may hold the lease of a key at any instant.  Denial is
    a normal outcome and is reported as ``False``, never as an exception.
    Implementations must be safe to call concurrently from many coroutines:
    the remote store's atomic primitives are the only arbiter.
    """

    async def try_acquire(self, key: str, duration: datetime.timedelta, owner_token: str) -> bool:
        """Attempt to lease ``key`` for ``duration`` on behalf of ``owner_token``.

        Returns ``True`` if the lease was granted, ``False`` if someone
        else holds it.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement try_acquire")

    async def release(self, key: str, owner_token: str) -> None:
        """Release the lease on ``key`` if ``owner_token`` still holds it.

        Releasing an expired, superseded or unknown lease does nothing.
        """
        raise NotImplementedError(f"{type(self).__name__!r} does not implement release")
