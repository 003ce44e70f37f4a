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
from .base import DocumentStore, LockStore
from .stub import StubDocumentStore, StubLockStore

try:
    from .redis import RedisLockStore
except ImportError:  # pragma: no cover
    import warnings

    warnings.warn(
        "RedisLockStore is not available.  Run `pip install throttlegate[redis]` " "to add support for that store.",
        ImportWarning,
    )

try:
    from .postgres import PostgresDocumentStore
except ImportError:  # pragma: no cover
    import warnings

    warnings.warn(
        "PostgresDocumentStore is not available.  Run `pip install throttlegate[postgres]` "
        "to add support for that store.",
        ImportWarning,
    )

__all__ = [
    "DocumentStore",
    "LockStore",
    "PostgresDocumentStore",
    "RedisLockStore",
    "StubDocumentStore",
    "StubLockStore",
]
