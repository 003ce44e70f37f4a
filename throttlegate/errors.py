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

from typing import List


class ThrottlegateError(Exception):  # pragma: no cover
    """Base class for all throttlegate errors."""

    def __init__(self, message: str) -> None:
        self.message = message

    def __str__(self) -> str:
        return str(self.message) or repr(self.message)


class LeaseBackendError(ThrottlegateError):
    """Base class for lease backend and store errors."""


class ConflictError(LeaseBackendError):
    """Raised by stores when a competing operation already succeeded.

    Backends never let it escape: a conflict while acquiring means the
    lease was denied, a conflict while releasing means there was nothing
    left to release.
    """


class ResourceNotFound(LeaseBackendError):
    """Raised when locking a resource that has not been created."""


class InvalidLeaseDuration(ThrottlegateError, ValueError):
    """Raised when a lease duration is outside of what a backend supports."""


class GateErrors(ThrottlegateError):
    """Raised by :meth:`ThrottledGate.run_all` when more than one guarded
    action failed.  Every failure is kept in :attr:`errors`, in the order of
    the calls.
    """

    def __init__(self, errors: List[BaseException]) -> None:
        super().__init__(f"{len(errors)} throttled actions failed")
        self.errors = errors
