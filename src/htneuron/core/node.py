"""
Node - base class of every simulated entity.

A node takes part in three protocols:

1. Lifecycle: ``init_state`` → ``init_buffers`` → ``calibrate`` (repeated
   whenever parameters or the tick change) → ``update`` once per slice.
2. Connection setup: ``send_test_event`` on the source builds a probe event
   and asks the target's ``handles_test_event`` to validate the requested
   receptor port. The returned r-port is embedded in every later event.
3. Delivery: ``Event.deliver`` calls ``handle_<kind>`` on the receiver.

Every kind has a default test handler that rejects the connection and a
default delivery handler that fails fatally; subclasses override the ones
they support.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from htneuron.core.errors import (
    ConfigurationError,
    IllegalConnectionError,
    ProtocolViolationError,
)

if TYPE_CHECKING:
    from htneuron.config.global_config import GlobalConfig
    from htneuron.events.event import Event
    from htneuron.core.network import Network


class Node:
    """Base class of neurons and devices."""

    model_name = "node"

    def __init__(self, name: Optional[str] = None):
        self.gid: Optional[int] = None
        self.name = name or self.model_name
        self.network: Optional["Network"] = None
        self.step = 0  # next tick to be computed

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(gid={self.gid}, name={self.name!r})"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init_state(self) -> None:
        """Reset dynamic state to its initial values."""

    def init_buffers(self, config: "GlobalConfig") -> None:
        """Allocate input buffers for the given delay window."""

    def calibrate(self, config: "GlobalConfig") -> None:
        """Recompute derived constants from parameters and the tick."""

    def update(self, origin: int, from_lag: int, to_lag: int) -> None:
        """Advance from step ``origin + from_lag`` to ``origin + to_lag``."""
        raise NotImplementedError(f"{self.model_name} does not implement update()")

    def send(self, event: "Event", lag: int) -> None:
        """Hand an outgoing event to the network for dispatch after the slice."""
        if self.network is None:
            raise ProtocolViolationError(f"{self.name} is not part of a network")
        self.network.send(self, event, lag)

    def post_slice(self, step: int) -> None:
        """Called by the network once the events of a slice have been delivered."""

    # =========================================================================
    # Connection setup
    # =========================================================================

    def send_test_event(self, target: "Node", receptor_type: int) -> int:
        """Probe ``target`` with the kind of event this node emits."""
        raise IllegalConnectionError(self.model_name, "does not emit events")

    def handles_test_event(self, event: "Event", receptor_type: int) -> int:
        """Validate a connection request; return the resolved r-port."""
        return getattr(self, event.kind.test_handler_name)(event, receptor_type)

    def _reject(self, kind: str) -> int:
        raise IllegalConnectionError(self.model_name, f"does not handle {kind} events")

    def handles_test_spike(self, event: "Event", receptor_type: int) -> int:
        return self._reject("spike")

    def handles_test_current(self, event: "Event", receptor_type: int) -> int:
        return self._reject("current")

    def handles_test_conductance(self, event: "Event", receptor_type: int) -> int:
        return self._reject("conductance")

    def handles_test_rate(self, event: "Event", receptor_type: int) -> int:
        return self._reject("rate")

    def handles_test_data_logging_request(self, event: "Event", receptor_type: int) -> int:
        return self._reject("data logging request")

    def handles_test_data_logging_reply(self, event: "Event", receptor_type: int) -> int:
        return self._reject("data logging reply")

    def handles_test_double_data(self, event: "Event", receptor_type: int) -> int:
        return self._reject("double data")

    # =========================================================================
    # Delivery
    # =========================================================================

    def _unhandled(self, event: "Event") -> None:
        raise ProtocolViolationError(
            f"{self.model_name} (gid {self.gid}) received unsupported {event.kind.name} event"
        )

    def handle_spike(self, event: "Event") -> None:
        self._unhandled(event)

    def handle_current(self, event: "Event") -> None:
        self._unhandled(event)

    def handle_conductance(self, event: "Event") -> None:
        self._unhandled(event)

    def handle_rate(self, event: "Event") -> None:
        self._unhandled(event)

    def handle_data_logging_request(self, event: "Event") -> None:
        self._unhandled(event)

    def handle_data_logging_reply(self, event: "Event") -> None:
        self._unhandled(event)

    def handle_double_data(self, event: "Event") -> None:
        self._unhandled(event)

    # =========================================================================
    # Status
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        return {"model": self.model_name, "gid": self.gid, "name": self.name}

    def set_status(self, status: Mapping[str, Any]) -> None:
        if status:
            raise ConfigurationError(
                f"{self.model_name} has no settable keys: {', '.join(sorted(status))}"
            )
