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
from .cached import CachedBackend, LeaseCache
from .document import VersionedDocumentBackend
from .lock import ExclusiveLockBackend

__all__ = ["CachedBackend", "ExclusiveLockBackend", "LeaseCache", "VersionedDocumentBackend"]
