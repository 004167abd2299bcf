"""
Stimulation devices: the external senders of events.

SpikeGenerator emits SPIKE events at given times, DCGenerator emits a
CURRENT event on every tick of its active window. Both only produce events;
they never receive any.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional, Sequence

from htneuron.config.global_config import GlobalConfig
from htneuron.core.errors import ConfigurationError
from htneuron.core.node import Node
from htneuron.events.event import current_event, spike_event
from htneuron.typing import StatusDict, Step


class SpikeGenerator(Node):
    """Emits spikes at fixed times.

    A spike at ``t`` ms is stamped with step ``round(t / dt)`` and reaches a
    target ``delay`` ticks later. Several spikes falling on the same step are
    merged into one event with the corresponding multiplicity.

    Args:
        spike_times_ms: Spike times, each strictly after 0
        multiplicities: Optional multiplicity per spike time (default 1)
    """

    model_name = "spike_generator"

    def __init__(
        self,
        spike_times_ms: Sequence[float] = (),
        multiplicities: Optional[Sequence[int]] = None,
        name: Optional[str] = None,
    ):
        super().__init__(name)
        self.spike_times_ms = tuple(float(t) for t in spike_times_ms)
        self.multiplicities = (
            tuple(int(m) for m in multiplicities)
            if multiplicities is not None
            else (1,) * len(self.spike_times_ms)
        )
        if len(self.multiplicities) != len(self.spike_times_ms):
            raise ConfigurationError(
                f"{len(self.multiplicities)} multiplicities for {len(self.spike_times_ms)} spike times"
            )
        self._schedule: Dict[Step, int] = {}

    def calibrate(self, config: GlobalConfig) -> None:
        schedule: Dict[Step, int] = {}
        for t, m in zip(self.spike_times_ms, self.multiplicities):
            if not math.isfinite(t):
                raise ConfigurationError(f"Spike time {t} is not finite")
            step = config.steps_from_ms(t)
            if step < 1:
                raise ConfigurationError(f"Spike time {t} ms does not fall after the start of simulation")
            if m < 1:
                raise ConfigurationError(f"Multiplicity must be >= 1, got {m}")
            schedule[step] = schedule.get(step, 0) + m
        self._schedule = schedule

    def update(self, origin: Step, from_lag: int, to_lag: int) -> None:
        for lag in range(from_lag, to_lag):
            count = self._schedule.get(origin + lag + 1)
            if count:
                self.send(spike_event(self.gid, multiplicity=count), lag)
        self.step = origin + to_lag

    def send_test_event(self, target: Node, receptor_type: int) -> int:
        return target.handles_test_event(spike_event(self.gid, receiver=target.gid), receptor_type)

    def get_status(self) -> StatusDict:
        status = super().get_status()
        status.update(spike_times_ms=self.spike_times_ms, multiplicities=self.multiplicities)
        return status


class DCGenerator(Node):
    """Injects a constant current during ``[start_ms, stop_ms)``.

    Args:
        amplitude: Current added to the membrane equation of each target
        start_ms: First active time
        stop_ms: End of the active window (None = forever)
    """

    model_name = "dc_generator"

    def __init__(
        self,
        amplitude: float = 0.0,
        start_ms: float = 0.0,
        stop_ms: Optional[float] = None,
        name: Optional[str] = None,
    ):
        super().__init__(name)
        self.amplitude = float(amplitude)
        self.start_ms = float(start_ms)
        self.stop_ms = None if stop_ms is None else float(stop_ms)
        self._start_step: Step = 0
        self._stop_step: Optional[Step] = None

    def calibrate(self, config: GlobalConfig) -> None:
        if self.stop_ms is not None and self.stop_ms < self.start_ms:
            raise ConfigurationError(f"stop_ms ({self.stop_ms}) < start_ms ({self.start_ms})")
        self._start_step = config.steps_from_ms(self.start_ms)
        self._stop_step = None if self.stop_ms is None else config.steps_from_ms(self.stop_ms)

    def is_active(self, step: Step) -> bool:
        return step >= self._start_step and (self._stop_step is None or step < self._stop_step)

    def update(self, origin: Step, from_lag: int, to_lag: int) -> None:
        for lag in range(from_lag, to_lag):
            if self.is_active(origin + lag):
                self.send(current_event(self.gid, self.amplitude), lag)
        self.step = origin + to_lag

    def send_test_event(self, target: Node, receptor_type: int) -> int:
        probe = current_event(self.gid, self.amplitude, receiver=target.gid)
        return target.handles_test_event(probe, receptor_type)

    def get_status(self) -> StatusDict:
        status = super().get_status()
        status.update(amplitude=self.amplitude, start_ms=self.start_ms, stop_ms=self.stop_ms)
        return status

    def set_status(self, status: Mapping[str, Any]) -> None:
        updates = dict(status)
        amplitude = updates.pop("amplitude", self.amplitude)
        super().set_status(updates)
        if isinstance(amplitude, bool) or not isinstance(amplitude, (int, float)):
            raise ConfigurationError(f"amplitude must be numeric, got {amplitude!r}")
        self.amplitude = float(amplitude)
