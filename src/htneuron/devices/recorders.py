"""
Recording devices: the external receivers of events.

Multimeter
    Samples analog recordables through the pull-based data logging protocol.
    At connection setup it sends a request with its interval and the names
    to record; after every slice it sends a bare request and collects the
    reply.

SpikeRecorder
    Stores every spike it receives.

Both expose their data through an ``events`` dictionary of numpy arrays.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from htneuron.config.global_config import GlobalConfig
from htneuron.core.errors import ConfigurationError, ProtocolViolationError, UnknownReceptorError
from htneuron.core.node import Node
from htneuron.events.event import Event, data_logging_request
from htneuron.typing import StatusDict, Step


class Multimeter(Node):
    """Records analog quantities of its targets.

    Args:
        record_from: Recordable names, e.g. ("V_m", "g_AMPA")
        interval_ms: Sampling interval, a whole number of ticks

    Example:
        mm = net.add(Multimeter(record_from=("V_m",), interval_ms=0.1))
        net.connect(mm, neuron)
        net.simulate(100)
        v = mm.events["V_m"]
    """

    model_name = "multimeter"

    def __init__(
        self,
        record_from: Sequence[str] = ("V_m",),
        interval_ms: float = 1.0,
        name: Optional[str] = None,
    ):
        super().__init__(name)
        self.record_from = tuple(record_from)
        self.interval_ms = float(interval_ms)
        if not self.record_from:
            raise ConfigurationError("Multimeter needs at least one recordable")
        self._interval_steps: Optional[int] = None
        self._dt = 0.0
        self._targets: List[Tuple[int, int]] = []  # (gid, rport)
        self._times: List[Step] = []
        self._senders: List[int] = []
        self._data: Dict[str, List[float]] = {name: [] for name in self.record_from}

    @property
    def interval_steps(self) -> int:
        if self._interval_steps is None:
            raise ProtocolViolationError(f"{self!r} is not calibrated")
        return self._interval_steps

    def calibrate(self, config: GlobalConfig) -> None:
        steps = config.steps_from_ms(self.interval_ms)
        if steps < 1 or not np.isclose(steps * config.dt_ms, self.interval_ms):
            raise ConfigurationError(
                f"Recording interval {self.interval_ms} ms must be a positive multiple "
                f"of the tick ({config.dt_ms} ms)"
            )
        self._interval_steps = steps
        self._dt = config.dt_ms

    def update(self, origin: Step, from_lag: int, to_lag: int) -> None:
        self.step = origin + to_lag

    def send_test_event(self, target: Node, receptor_type: int) -> int:
        request = data_logging_request(
            self.gid,
            recording_interval=self.interval_steps,
            record_from=self.record_from,
            receiver=target.gid,
        )
        rport = target.handles_test_event(request, receptor_type)
        self._targets.append((target.gid, rport))
        return rport

    def post_slice(self, step: Step) -> None:
        for gid, rport in self._targets:
            data_logging_request(self.gid, stamp=step, receiver=gid, rport=rport).deliver(
                self.network.registry
            )

    def handle_data_logging_reply(self, event: Event) -> None:
        sender = event.sender_gid
        for item in event.info:
            self._times.append(item.timestamp)
            self._senders.append(sender)
            for name, value in zip(self.record_from, item.data):
                self._data[name].append(value)

    @property
    def n_events(self) -> int:
        return len(self._times)

    @property
    def events(self) -> Dict[str, np.ndarray]:
        """Samples so far: ``times`` (ms), ``senders`` and one array per recordable."""
        events = {
            "times": np.asarray(self._times, dtype=float) * self._dt,
            "senders": np.asarray(self._senders, dtype=int),
        }
        for name, values in self._data.items():
            events[name] = np.asarray(values, dtype=float)
        return events

    def get_status(self) -> StatusDict:
        status = super().get_status()
        status.update(
            record_from=self.record_from,
            interval_ms=self.interval_ms,
            n_events=self.n_events,
        )
        return status


class SpikeRecorder(Node):
    """Stores the stamp and sender of every spike it receives."""

    model_name = "spike_recorder"

    def __init__(self, name: Optional[str] = None):
        super().__init__(name)
        self._dt = 0.0
        self._stamps: List[Step] = []
        self._senders: List[int] = []

    def calibrate(self, config: GlobalConfig) -> None:
        self._dt = config.dt_ms

    def update(self, origin: Step, from_lag: int, to_lag: int) -> None:
        self.step = origin + to_lag

    def handles_test_spike(self, event: Event, receptor_type: int) -> int:
        if receptor_type != 0:
            raise UnknownReceptorError(receptor_type, self.model_name)
        return 0

    def handle_spike(self, event: Event) -> None:
        for _ in range(event.multiplicity):
            self._stamps.append(event.stamp)
            self._senders.append(event.sender_gid)

    @property
    def n_events(self) -> int:
        return len(self._stamps)

    @property
    def events(self) -> Dict[str, np.ndarray]:
        return {
            "times": np.asarray(self._stamps, dtype=float) * self._dt,
            "senders": np.asarray(self._senders, dtype=int),
        }

    def get_status(self) -> StatusDict:
        status = super().get_status()
        status["n_events"] = self.n_events
        return status
