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
import asyncio
import datetime
import inspect
import time
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar, Union

import attr

from .backend import LeaseBackend
from .common import Duration, generate_unique_id, to_timedelta
from .errors import GateErrors
from .logging import get_logger
from .metrics import GateMetrics

T = TypeVar("T")

#: A zero-argument callable, either plain or returning an awaitable.
Action = Callable[[], Union[T, Awaitable[T]]]


async def _call(fn: Action[T]) -> T:
    result = fn()
    if inspect.isawaitable(result):
        return await result
    return result  # type: ignore[return-value]


@attr.s(frozen=True, slots=True)
class GateCall:
    """One invocation for :meth:`ThrottledGate.run_all`."""

    key: str = attr.ib()
    window: datetime.timedelta = attr.ib(converter=to_timedelta)
    action: Action = attr.ib()
    fallback: Optional[Action] = attr.ib(default=None)
    owner_token: Optional[str] = attr.ib(default=None)


class ThrottledGate:
    """Runs actions at most once per throttle window and key.

    Before running an action the gate leases its key for the whole window
    from ``backend``.  A successful action keeps the lease until it expires,
    so the key stays throttled for the rest of the window.  A failing action
    gives the lease back before its exception is re-raised, so the next
    attempt is not throttled.

    Parameters:
      backend(LeaseBackend): Where leases are taken from.
      metrics(GateMetrics): Optional metrics to record runs into.

    Example::

      gate = ThrottledGate(CachedBackend(ExclusiveLockBackend(RedisLockStore())))
      await gate.run("device-1", 15, notify, fallback=lambda: "throttled")
    """

    def __init__(self, backend: LeaseBackend, *, metrics: Optional[GateMetrics] = None) -> None:
        self.backend = backend
        self.metrics = metrics
        self.logger = get_logger(__name__, type(self))

    async def run(
        self,
        key: str,
        window: Duration,
        action: Action[T],
        fallback: Optional[Action[T]] = None,
        *,
        owner_token: Optional[str] = None,
    ) -> Optional[T]:
        """Run ``action`` unless ``key`` ran within the last ``window``.

        Parameters:
          key(str): What to throttle, e.g. a device id.
          window(timedelta|float): The throttle window, in seconds if a number.
          action(callable): Called without arguments when the lease is
            acquired.  May be a coroutine function.
          fallback(callable): Called without arguments when throttled.
          owner_token(str): Identifies this invocation to the backend.  Must
            be unique per invocation; a fresh UUID is generated if omitted.

        Returns:
          The result of ``action`` if it ran, else the result of
          ``fallback``, else None.
        """
        duration = to_timedelta(window)
        if duration <= datetime.timedelta(0):
            raise ValueError("window must be positive")
        owner_token = owner_token or generate_unique_id()

        if not await self.backend.try_acquire(key, duration, owner_token):
            self.logger.debug("Throttled %r", key)
            self._observe_run("throttled")
            if fallback is None:
                return None
            return await _call(fallback)

        start = time.monotonic()
        try:
            result = await _call(action)
        except Exception:
            self.logger.exception("Failed to run throttled action for %r", key)
            self._observe_action(start, "failed")
            await self._release(key, owner_token)
            raise

        self._observe_action(start, "acquired")
        return result

    async def run_all(self, calls: Iterable[GateCall]) -> List[Any]:
        """Run every call concurrently, one task each, and wait for all of them.

        Returns the results in the order of ``calls``.  If a single action
        failed its exception is raised, and if several failed a
        :class:`GateErrors` holding all of them is.
        """
        tasks = [
            asyncio.ensure_future(
                self.run(call.key, call.window, call.action, call.fallback, owner_token=call.owner_token)
            )
            for call in calls
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise GateErrors(errors) from errors[0]
        return outcomes

    async def _release(self, key: str, owner_token: str) -> None:
        try:
            await self.backend.release(key, owner_token)
        except Exception as e:
            self.logger.warning("Failed to release lease on %r: %s", key, e)

    def _observe_action(self, start: float, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.observe_action((time.monotonic() - start) * 1000)
            self.metrics.observe_run(outcome)

    def _observe_run(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.observe_run(outcome)
