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
import uuid
from typing import Union

from pytz import utc

#: A duration given either as a timedelta or as a number of seconds.
Duration = Union[datetime.timedelta, int, float]


def generate_unique_id() -> str:
    """Generate a globally-unique owner token."""
    return str(uuid.uuid4())


def utcnow() -> datetime.datetime:
    """Returns the current time as a timezone-aware UTC datetime."""
    return datetime.datetime.now(utc)


def to_timedelta(duration: Duration) -> datetime.timedelta:
    if isinstance(duration, datetime.timedelta):
        return duration
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise TypeError(f"expected a timedelta or a number of seconds, got {duration!r}")
    return datetime.timedelta(seconds=duration)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return utc.localize(value)
    return value.astimezone(utc)
