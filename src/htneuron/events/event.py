"""
Event Protocol - typed, delay-annotated notifications between entities.

Events are the only way entities influence each other. Each event is a frozen
value made of a kind discriminator, a kind-specific payload and routing
fields:

    ┌──────────────────────────────────────────────────────────────┐
    │ Event                                                         │
    │   kind     SPIKE | CURRENT | CONDUCTANCE | RATE |             │
    │            DATA_LOGGING_REQUEST | DATA_LOGGING_REPLY |        │
    │            DOUBLE_DATA                                        │
    │   payload  SpikePayload(multiplicity) | CurrentPayload(...)   │
    │   sender / receiver   opaque gids, resolved at delivery       │
    │   stamp    origination step                                   │
    │   delay    transmission delay in ticks (>= 1 when valid)      │
    │   offset   sub-tick creation offset in [0, dt)                │
    │   port     sender output channel (-1 = unknown)               │
    │   rport    receiver input channel (0 = default)               │
    │   weight   connection weight                                  │
    └──────────────────────────────────────────────────────────────┘

Delivery Time:
==============
The event is due at step ``stamp + delay - 1``. Relative to a reference step
``t`` this is ``stamp + delay - 1 - t``; a receiver must never see a negative
value (causality).

Delivery:
=========
``deliver(registry)`` is the only side-effecting operation. It checks the
event is valid, resolves the receiver and calls the handler selected by the
kind (``handle_spike``, ``handle_current``, ...). Constructing, cloning or
re-routing an event never delivers it.

Data logging replies reference a buffer owned by the replying entity that is
only guaranteed to exist while the reply is being delivered; they can be
neither cloned nor re-routed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple, Union

from htneuron.core.errors import ProtocolViolationError

if TYPE_CHECKING:
    from htneuron.core.registry import EntityRegistry


class EventKind(Enum):
    """Closed set of event kinds."""
    SPIKE = "spike"
    CURRENT = "current"
    CONDUCTANCE = "conductance"
    RATE = "rate"
    DATA_LOGGING_REQUEST = "data_logging_request"
    DATA_LOGGING_REPLY = "data_logging_reply"
    DOUBLE_DATA = "double_data"

    @property
    def handler_name(self) -> str:
        """Receiver method invoked on delivery."""
        return f"handle_{self.value}"

    @property
    def test_handler_name(self) -> str:
        """Receiver method invoked at connection setup."""
        return f"handles_test_{self.value}"

    @property
    def cloneable(self) -> bool:
        return self is not EventKind.DATA_LOGGING_REPLY


# =============================================================================
# Payloads
# =============================================================================

@dataclass(frozen=True)
class SpikePayload:
    """Payload for spike events."""
    multiplicity: int = 1  # number of spikes represented by this event


@dataclass(frozen=True)
class CurrentPayload:
    """Payload for injected current events."""
    current: float  # pA-like amplitude added to the membrane equation


@dataclass(frozen=True)
class ConductancePayload:
    """Payload for conductance events."""
    conductance: float


@dataclass(frozen=True)
class RatePayload:
    """Payload for rate events."""
    rate: float  # spikes/s


@dataclass(frozen=True)
class DataLoggingRequestPayload:
    """Payload for data logging requests.

    Requests sent at connection setup carry the recording interval and the
    names to record. Requests sent during simulation carry neither.
    """
    recording_interval: Optional[int] = None  # in ticks
    record_from: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class ReplyItem:
    """Values of all requested recordables at one recording step."""
    timestamp: int
    data: Tuple[float, ...]


@dataclass(frozen=True)
class DataLoggingReplyPayload:
    """Payload for data logging replies (non-cloneable)."""
    info: Sequence[ReplyItem] = field(compare=False)


@dataclass(frozen=True)
class DoubleDataPayload:
    """Payload for generic data events: a shared reference to the data."""
    data: Any = field(compare=False)


Payload = Union[
    SpikePayload,
    CurrentPayload,
    ConductancePayload,
    RatePayload,
    DataLoggingRequestPayload,
    DataLoggingReplyPayload,
    DoubleDataPayload,
]

_PAYLOAD_TYPES = {
    EventKind.SPIKE: SpikePayload,
    EventKind.CURRENT: CurrentPayload,
    EventKind.CONDUCTANCE: ConductancePayload,
    EventKind.RATE: RatePayload,
    EventKind.DATA_LOGGING_REQUEST: DataLoggingRequestPayload,
    EventKind.DATA_LOGGING_REPLY: DataLoggingReplyPayload,
    EventKind.DOUBLE_DATA: DoubleDataPayload,
}


# =============================================================================
# Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """An event travelling from one entity to another.

    Use the constructor helpers (``spike_event``, ``current_event``, ...)
    rather than building payloads by hand.
    """
    kind: EventKind
    payload: Payload
    sender: Optional[int] = None
    receiver: Optional[int] = None
    stamp: int = 0
    delay: int = 1
    offset: float = 0.0
    port: int = -1
    rport: int = 0
    weight: float = 1.0

    def __post_init__(self):
        expected = _PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise ProtocolViolationError(
                f"{self.kind.name} event needs {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )
        if self.offset < 0.0:
            raise ProtocolViolationError(f"Event offset must be >= 0, got {self.offset}")

    # -------------------------------------------------------------------------
    # Addressing and timing
    # -------------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        """Sender and receiver are resolved and the delay is positive."""
        return self.sender is not None and self.receiver is not None and self.delay > 0

    @property
    def sender_gid(self) -> int:
        if self.sender is None:
            raise ProtocolViolationError(f"{self.kind.name} event has no sender")
        return self.sender

    @property
    def receiver_gid(self) -> int:
        if self.receiver is None:
            raise ProtocolViolationError(f"{self.kind.name} event has no receiver")
        return self.receiver

    @property
    def delivery_step(self) -> int:
        """Absolute step at which the event is due."""
        return self.stamp + self.delay - 1

    def rel_delivery_steps(self, t: int) -> int:
        """Steps from reference step ``t`` until the event is due."""
        return self.delivery_step - t

    def with_routing(self, **changes: Any) -> "Event":
        """Return a re-addressed copy (receiver, rport, delay, weight, ...).

        Raises:
            ProtocolViolationError: For non-cloneable kinds
        """
        self._require_cloneable()
        if "kind" in changes or "payload" in changes:
            raise ProtocolViolationError("with_routing() cannot change kind or payload")
        return replace(self, **changes)

    def clone(self) -> "Event":
        """Return a value-identical, independently owned copy."""
        self._require_cloneable()
        return replace(self)

    def _require_cloneable(self) -> None:
        if not self.kind.cloneable:
            raise ProtocolViolationError(
                f"{self.kind.name} events reference a buffer owned by their sender "
                "and cannot be cloned or re-routed"
            )

    def deliver(self, registry: "EntityRegistry") -> None:
        """Invoke the kind-specific handler on the receiver.

        Raises:
            ProtocolViolationError: If the event is not valid or the handles
                do not resolve
        """
        if not self.is_valid:
            raise ProtocolViolationError(
                f"Cannot deliver invalid {self.kind.name} event "
                f"(sender={self.sender}, receiver={self.receiver}, delay={self.delay})"
            )
        registry.resolve(self.sender_gid)
        target = registry.resolve(self.receiver_gid)
        getattr(target, self.kind.handler_name)(self)

    # -------------------------------------------------------------------------
    # Payload accessors
    # -------------------------------------------------------------------------

    def _payload_of(self, kind: EventKind) -> Any:
        if self.kind is not kind:
            raise ProtocolViolationError(f"{self.kind.name} event has no {kind.value} payload")
        return self.payload

    @property
    def multiplicity(self) -> int:
        return self._payload_of(EventKind.SPIKE).multiplicity

    @property
    def current(self) -> float:
        return self._payload_of(EventKind.CURRENT).current

    @property
    def conductance(self) -> float:
        return self._payload_of(EventKind.CONDUCTANCE).conductance

    @property
    def rate(self) -> float:
        return self._payload_of(EventKind.RATE).rate

    @property
    def recording_interval(self) -> int:
        """Recording interval in ticks (connection-setup requests only)."""
        interval = self._payload_of(EventKind.DATA_LOGGING_REQUEST).recording_interval
        if interval is None:
            raise ProtocolViolationError("Data logging request was built without a recording interval")
        return interval

    @property
    def record_from(self) -> Tuple[str, ...]:
        """Names of requested recordables (connection-setup requests only)."""
        names = self._payload_of(EventKind.DATA_LOGGING_REQUEST).record_from
        if names is None:
            raise ProtocolViolationError("Data logging request was built without recordables")
        return names

    @property
    def info(self) -> Sequence[ReplyItem]:
        return self._payload_of(EventKind.DATA_LOGGING_REPLY).info

    @property
    def data(self) -> Any:
        return self._payload_of(EventKind.DOUBLE_DATA).data


# =============================================================================
# Constructors
# =============================================================================

def make_event(
    kind: EventKind,
    sender: Optional[int],
    delay: int = 1,
    stamp: int = 0,
    payload: Optional[Payload] = None,
    **routing: Any,
) -> Event:
    """Generic constructor: ``create(kind, sender, delay, timestamp)``.

    Only spike and data logging request payloads have defaults; every other
    kind needs an explicit payload.
    """
    if payload is None:
        if kind is EventKind.SPIKE:
            payload = SpikePayload()
        elif kind is EventKind.DATA_LOGGING_REQUEST:
            payload = DataLoggingRequestPayload()
        else:
            raise ProtocolViolationError(f"{kind.name} events need an explicit payload")
    return Event(kind=kind, payload=payload, sender=sender, delay=delay, stamp=stamp, **routing)


def spike_event(sender: Optional[int], stamp: int = 0, multiplicity: int = 1, **routing: Any) -> Event:
    return make_event(EventKind.SPIKE, sender, stamp=stamp, payload=SpikePayload(multiplicity), **routing)


def current_event(sender: Optional[int], current: float, stamp: int = 0, **routing: Any) -> Event:
    return make_event(EventKind.CURRENT, sender, stamp=stamp, payload=CurrentPayload(current), **routing)


def conductance_event(sender: Optional[int], conductance: float, stamp: int = 0, **routing: Any) -> Event:
    return make_event(
        EventKind.CONDUCTANCE, sender, stamp=stamp, payload=ConductancePayload(conductance), **routing
    )


def rate_event(sender: Optional[int], rate: float, stamp: int = 0, **routing: Any) -> Event:
    return make_event(EventKind.RATE, sender, stamp=stamp, payload=RatePayload(rate), **routing)


def data_logging_request(
    sender: Optional[int],
    recording_interval: Optional[int] = None,
    record_from: Optional[Sequence[str]] = None,
    stamp: int = 0,
    **routing: Any,
) -> Event:
    """Build a data logging request.

    At connection setup pass ``recording_interval`` and ``record_from``;
    during simulation leave both unset.
    """
    names = tuple(record_from) if record_from is not None else None
    return make_event(
        EventKind.DATA_LOGGING_REQUEST,
        sender,
        stamp=stamp,
        payload=DataLoggingRequestPayload(recording_interval, names),
        **routing,
    )


def data_logging_reply(
    sender: int, receiver: int, info: Sequence[ReplyItem], stamp: int = 0, **routing: Any
) -> Event:
    return make_event(
        EventKind.DATA_LOGGING_REPLY,
        sender,
        stamp=stamp,
        payload=DataLoggingReplyPayload(info),
        receiver=receiver,
        **routing,
    )


def double_data_event(sender: Optional[int], data: Any, stamp: int = 0, **routing: Any) -> Event:
    return make_event(EventKind.DOUBLE_DATA, sender, stamp=stamp, payload=DoubleDataPayload(data), **routing)
