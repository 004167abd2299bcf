"""
Network - in-process kernel that owns entities, connections and time.

Simulation Loop:
================
Time advances in slices of ``min_delay`` ticks. Within a slice every entity is
updated independently; events produced during the slice are queued and only
delivered once all entities have finished it. Because every connection delay
is at least ``min_delay``, no event can be due inside the slice it was
produced in, so the order in which entities are updated does not matter.

    ┌──────────────────── slice [origin, origin + min_delay) ───────────────┐
    │  node.update(origin, 0, n)   for every node                            │
    │      └─ node.send(event, lag) → queued, stamp = origin + lag + 1       │
    └────────────────────────────────────────────────────────────────────────┘
                  │
                  ▼
    deliver queued events: one clone per outgoing connection
        (receiver, rport, delay, weight) → receiver.handle_<kind>
                  │
                  ▼
    node.post_slice(origin + n)  (recording devices poll their targets)

Connection Setup:
=================
``connect`` asks the source for a probe event (``send_test_event``) and lets
the target validate the requested receptor port (``handles_test_event``).
The returned r-port is stored on the Connection and copied into every event
delivered over it. Bad ports or unsupported event kinds fail here, before any
simulation, with a ConfigurationError.

Failure:
========
If an entity fails to integrate a tick, the events of the unfinished slice
are discarded and the network is halted: every later ``simulate`` raises
ProtocolViolationError instead of replaying the slice.

Author: htneuron developers
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, List, Optional, Tuple

from htneuron.config.global_config import GlobalConfig
from htneuron.core.errors import (
    ConfigurationError,
    NumericalDivergenceError,
    ProtocolViolationError,
)
from htneuron.core.node import Node
from htneuron.core.registry import EntityRegistry
from htneuron.events.event import Event
from htneuron.typing import Lag, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Connection:
    """One validated source → target link."""
    source: int
    target: int
    receptor_type: int
    rport: int
    weight: float
    delay: int  # ticks


class Network:
    """Owns entities and connections and advances them in lock-step.

    Args:
        config: Tick, delay window and solver settings shared by all entities

    Example:
        net = Network(GlobalConfig(dt_ms=0.1, min_delay_steps=10))
        gen = net.add(SpikeGenerator(spike_times_ms=[1.0]))
        neuron = net.add(HTNeuron())
        net.connect(gen, neuron, receptor_type=neuron.receptor_types["AMPA"], weight=2.0)
        net.simulate(1000)
    """

    def __init__(self, config: Optional[GlobalConfig] = None):
        self.config = config or GlobalConfig()
        self.registry = EntityRegistry()
        self.connections: DefaultDict[int, List[Connection]] = defaultdict(list)
        self.step: Step = 0
        self._outbox: List[Event] = []
        self._in_slice = False
        self._failure: Optional[str] = None

    @property
    def dt(self) -> float:
        return self.config.dt_ms

    @property
    def time_ms(self) -> float:
        return self.step * self.config.dt_ms

    @property
    def failed(self) -> bool:
        """True once an entity failed and the network stopped advancing."""
        return self._failure is not None

    @property
    def n_connections(self) -> int:
        return sum(len(conns) for conns in self.connections.values())

    # =========================================================================
    # Building
    # =========================================================================

    def add(self, node: Node) -> Node:
        """Register ``node`` and prepare it for this network's configuration."""
        if node.network is not None:
            raise ConfigurationError(f"{node!r} already belongs to a network")
        node.init_buffers(self.config)
        node.calibrate(self.config)
        self.registry.register(node)
        node.network = self
        node.step = self.step
        logger.debug("Added %r", node)
        return node

    def connect(
        self,
        source: Node,
        target: Node,
        receptor_type: int = 0,
        weight: float = 1.0,
        delay: Optional[int] = None,
    ) -> Connection:
        """Validate and store a connection.

        Args:
            source: Sending entity (must belong to this network)
            target: Receiving entity (must belong to this network)
            receptor_type: Receptor port requested on the target
            weight: Connection weight
            delay: Transmission delay in ticks, defaults to ``min_delay_steps``

        Raises:
            ConfigurationError: Foreign entities, delay outside
                ``[min_delay_steps, max_delay_steps]``, unknown receptor port
                or unsupported event kind
        """
        for node in (source, target):
            if node.network is not self:
                raise ConfigurationError(f"{node!r} does not belong to this network")

        if delay is None:
            delay = self.config.min_delay_steps
        if isinstance(delay, bool) or not isinstance(delay, int):
            raise ConfigurationError(f"Delay must be an integer number of ticks, got {delay!r}")
        if not self.config.min_delay_steps <= delay <= self.config.max_delay_steps:
            raise ConfigurationError(
                f"Delay {delay} outside [{self.config.min_delay_steps}, "
                f"{self.config.max_delay_steps}] ticks"
            )

        rport = source.send_test_event(target, receptor_type)
        conn = Connection(
            source=source.gid,
            target=target.gid,
            receptor_type=receptor_type,
            rport=rport,
            weight=float(weight),
            delay=delay,
        )
        self.connections[source.gid].append(conn)
        logger.debug(
            "Connected %r -> %r (receptor %d, rport %d, weight %g, delay %d)",
            source, target, receptor_type, rport, weight, delay,
        )
        return conn

    def get_connections(self, source: Optional[Node] = None) -> Tuple[Connection, ...]:
        if source is not None:
            return tuple(self.connections.get(source.gid, ()))
        return tuple(conn for conns in self.connections.values() for conn in conns)

    # =========================================================================
    # Simulation
    # =========================================================================

    def send(self, node: Node, event: Event, lag: Lag) -> None:
        """Queue an event produced by ``node`` at ``lag`` of the current slice."""
        if not self._in_slice:
            raise ProtocolViolationError(f"{node!r} sent an event outside of a slice")
        self._outbox.append(event.with_routing(sender=node.gid, stamp=self.step + lag + 1))

    def simulate(self, n_steps: int) -> None:
        """Advance every entity by ``n_steps`` ticks."""
        if n_steps < 0:
            raise ValueError(f"n_steps must be >= 0, got {n_steps}")
        if self._failure is not None:
            raise ProtocolViolationError(f"Network halted at step {self.step}: {self._failure}")

        for node in self.registry:
            node.calibrate(self.config)

        end = self.step + n_steps
        logger.info(
            "Simulating %d steps (%.3f ms) from step %d with %d entities",
            n_steps, n_steps * self.dt, self.step, len(self.registry),
        )
        while self.step < end:
            n = min(self.config.min_delay_steps, end - self.step)
            self._in_slice = True
            try:
                for node in self.registry:
                    node.update(self.step, 0, n)
            except NumericalDivergenceError as e:
                self._outbox = []
                self._failure = str(e)
                logger.error("Simulation halted at step %d: %s", self.step, e)
                raise
            finally:
                self._in_slice = False
            self.step += n
            self._deliver_outbox()
            for node in self.registry:
                node.post_slice(self.step)
        logger.info("Simulation reached step %d (%.3f ms)", self.step, self.time_ms)

    def _deliver_outbox(self) -> None:
        outbox, self._outbox = self._outbox, []
        for event in outbox:
            for conn in self.connections.get(event.sender_gid, ()):
                event.with_routing(
                    receiver=conn.target,
                    rport=conn.rport,
                    delay=conn.delay,
                    weight=conn.weight,
                ).deliver(self.registry)
        if outbox:
            logger.debug("Delivered %d events at step %d", len(outbox), self.step)
