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
from typing import Any, Dict, Optional

import attr
from dateutil.parser import isoparse

from .common import as_utc


def _optional_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    return None if value is None else as_utc(value)


@attr.s(frozen=True, slots=True)
class LeaseRecord:
    """The lease held on a key, as stored by a document store.

    Parameters:
      id(str): The throttled key.
      lease_id(str): The owner token of the current holder, if any.
      leased_until(datetime): When the current lease expires, if any.
        Naive datetimes are taken as UTC.
    """

    id: str = attr.ib()
    lease_id: Optional[str] = attr.ib(default=None)
    leased_until: Optional[datetime.datetime] = attr.ib(default=None, converter=_optional_utc)

    def is_held(self, now: datetime.datetime) -> bool:
        """Whether someone holds this lease at ``now``.  The lease is free
        again from the instant it expires.
        """
        return self.leased_until is not None and self.leased_until > as_utc(now)

    def cleared(self) -> "LeaseRecord":
        return attr.evolve(self, lease_id=None, leased_until=None)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leaseId": self.lease_id,
            "leasedUntil": self.leased_until.isoformat() if self.leased_until is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeaseRecord":
        leased_until = data.get("leasedUntil")
        if isinstance(leased_until, str):
            leased_until = isoparse(leased_until)
        return cls(id=data["id"], lease_id=data.get("leaseId"), leased_until=leased_until)
