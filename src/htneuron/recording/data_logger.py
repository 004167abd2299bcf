"""
Pull-based recording of analog state variables.

A recording device (multimeter) does not read a neuron's state directly.
Instead:

1. At connection setup it sends a data logging request carrying the
   recording interval and the names to record. The neuron's DataLogger
   validates the names against its RecordablesMap and returns an r-port that
   identifies the device from then on.
2. During simulation the neuron calls ``record_data(step)`` after every tick;
   the logger appends one ReplyItem per device whenever ``step`` is a multiple
   of that device's interval.
3. Once per slice the device sends a request without interval. The logger
   answers synchronously with a data logging reply that references the
   buffered items, then starts a fresh buffer. The reply is non-cloneable:
   the buffer it points to is only guaranteed to exist during delivery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Tuple

from htneuron.core.errors import ConfigurationError, ProtocolViolationError
from htneuron.events.event import Event, ReplyItem, data_logging_reply

if TYPE_CHECKING:
    from htneuron.core.registry import EntityRegistry

logger = logging.getLogger(__name__)

Getter = Callable[[Any], float]


class RecordablesMap:
    """Ordered name → getter table of the analog quantities a model exposes."""

    def __init__(self) -> None:
        self._getters: Dict[str, Getter] = {}

    def register(self, name: str, getter: Getter) -> None:
        if name in self._getters:
            raise ValueError(f"Recordable '{name}' registered twice")
        self._getters[name] = getter

    def get(self, name: str) -> Getter:
        try:
            return self._getters[name]
        except KeyError:
            raise ConfigurationError(
                f"'{name}' is not a recordable; available: {', '.join(self._getters)}"
            ) from None

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._getters)

    def __contains__(self, name: object) -> bool:
        return name in self._getters

    def __iter__(self) -> Iterator[str]:
        return iter(self._getters)

    def __len__(self) -> int:
        return len(self._getters)


@dataclass
class _LoggingTarget:
    """Recording state for one connected device."""
    sender: int
    interval: int
    names: Tuple[str, ...]
    getters: Tuple[Getter, ...]
    buffer: List[ReplyItem] = field(default_factory=list)


class DataLogger:
    """Buffers samples for every connected recording device of one host.

    Args:
        host: The recorded entity; passed to every getter
        recordables: Quantities the host exposes
    """

    def __init__(self, host: Any, recordables: RecordablesMap):
        self.host = host
        self.recordables = recordables
        self._targets: List[_LoggingTarget] = []

    @property
    def n_targets(self) -> int:
        return len(self._targets)

    def connect_logging_device(self, request: Event) -> int:
        """Register the device that sent ``request``; return its r-port.

        Raises:
            ConfigurationError: Unknown recordable or non-positive interval
        """
        interval = request.recording_interval
        names = request.record_from
        if interval <= 0:
            raise ConfigurationError(f"Recording interval must be positive, got {interval}")
        getters = tuple(self.recordables.get(name) for name in names)

        for rport, target in enumerate(self._targets):
            if target.sender == request.sender_gid:
                raise ConfigurationError(
                    f"Device {request.sender_gid} is already connected to this logger (r-port {rport})"
                )

        self._targets.append(
            _LoggingTarget(request.sender_gid, interval, tuple(names), getters)
        )
        logger.debug(
            "Logging device %d records %s every %d steps", request.sender_gid, names, interval
        )
        return len(self._targets) - 1

    def record_data(self, step: int) -> None:
        """Sample all due devices at ``step`` (the step just reached)."""
        for target in self._targets:
            if step % target.interval == 0:
                values = tuple(float(getter(self.host)) for getter in target.getters)
                target.buffer.append(ReplyItem(step, values))

    def handle(self, request: Event, registry: "EntityRegistry") -> None:
        """Reply to a data request with everything buffered for its sender."""
        if not 0 <= request.rport < len(self._targets):
            raise ProtocolViolationError(f"Data logging request on unknown r-port {request.rport}")
        target = self._targets[request.rport]
        if target.sender != request.sender_gid:
            raise ProtocolViolationError(
                f"R-port {request.rport} belongs to device {target.sender}, "
                f"request came from {request.sender_gid}"
            )

        info, target.buffer = target.buffer, []
        reply = data_logging_reply(
            sender=self.host.gid,
            receiver=target.sender,
            info=info,
            stamp=request.stamp,
        )
        reply.deliver(registry)

    def reset_buffers(self) -> None:
        """Drop buffered samples; connections are kept."""
        for target in self._targets:
            target.buffer = []
