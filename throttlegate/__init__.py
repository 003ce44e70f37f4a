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

from .backend import LeaseBackend
from .backends import CachedBackend, ExclusiveLockBackend, LeaseCache, VersionedDocumentBackend
from .errors import (
    ConflictError,
    GateErrors,
    InvalidLeaseDuration,
    LeaseBackendError,
    ResourceNotFound,
    ThrottlegateError,
)
from .gate import GateCall, ThrottledGate
from .lease import LeaseRecord
from .logging import get_logger
from .metrics import GateMetrics

__all__ = [
    # Backends
    "CachedBackend",
    # Errors
    "ConflictError",
    "ExclusiveLockBackend",
    # Gate
    "GateCall",
    "GateErrors",
    # Metrics
    "GateMetrics",
    "InvalidLeaseDuration",
    "LeaseBackend",
    "LeaseBackendError",
    "LeaseCache",
    # Leases
    "LeaseRecord",
    "ResourceNotFound",
    "ThrottledGate",
    "ThrottlegateError",
    "VersionedDocumentBackend",
    # Logging
    "get_logger",
]

__version__ = "0.1.0"
