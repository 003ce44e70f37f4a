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
from typing import Optional

import prometheus_client as prom

#: Outcomes of a gate run, used as the ``outcome`` label.
OUTCOMES = ("acquired", "throttled", "failed")


class GateMetrics:
    """Prometheus_ metrics of throttled gates.

    Parameters:
      registry(CollectorRegistry): the prometheus registry to use, if None, use a new registry.

    .. _Prometheus: https://prometheus.io
    """

    def __init__(self, *, registry: Optional[prom.CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else prom.CollectorRegistry()
        self.total_runs = prom.Counter(
            "throttlegate_gate_runs_total",
            "The total number of gate runs, by outcome.",
            ["outcome"],
            registry=self.registry,
        )
        self.action_durations = prom.Summary(
            "throttlegate_action_duration_milliseconds",
            "The time spent running guarded actions.",
            registry=self.registry,
        )
        for outcome in OUTCOMES:
            self.total_runs.labels(outcome)

    def observe_run(self, outcome: str) -> None:
        self.total_runs.labels(outcome).inc()

    def observe_action(self, duration_ms: float) -> None:
        self.action_durations.observe(duration_ms)
