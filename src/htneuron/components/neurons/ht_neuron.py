"""Hill-Tononi Point Neuron.

A conductance-based point neuron with a dynamic threshold, four beta-function
synaptic channels and four intrinsic currents, after Hill & Tononi (2005).

**Membrane Dynamics**:
=====================

    tau_m dV/dt = I_Na + I_K + I_syn + I_NaP + I_KNa + I_T + I_h + I_stim

    I_Na  = -g_NaL (V - E_Na)
    I_K   = -g_KL  (V - E_K)
    I_syn = -sum_X g_X (V - E_X)       (NMDA term times the voltage gate)

During the repolarizing potassium current (``g_spike``) all of the above is
replaced by

    dV/dt = -(V - E_K) / tau_spike

**Dynamic Threshold**:
======================

    dTheta/dt = -(Theta - theta_eq) / tau_theta

**Spike Generation**:
When not repolarizing and V >= Theta after a tick:
- V and Theta are set to E_Na
- the repolarizing current is switched on for t_spike ms
- a SPIKE event is sent (stamp = origin + lag + 1)

**Per-Tick Order**:
===================
1. take inputs due at this tick, add ``cond_step * weight`` to each DG
2. integrate the state vector across the tick (adaptive sub-steps)
3. refractory countdown
4. threshold check, spike emission
5. record samples

Incoming spikes are summed per receptor port in a DelayAccumulator owned by
the neuron; they are never applied at delivery time.

References:
    S Hill and G Tononi (2005). J Neurophysiol 93:1671-1698.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from htneuron.components.neurons.intrinsic_currents import (
    d_kna_rate,
    h_gate_rate,
    intrinsic_currents,
    t_gate_rates,
)
from htneuron.components.neurons.neuron_constants import KNA_D_EQ
from htneuron.components.synapses.kinetics import SynapticChannel, build_channels, nmda_gate
from htneuron.config.global_config import GlobalConfig
from htneuron.config.neuron_config import SYNAPSE_NAMES, HTNeuronConfig
from htneuron.core.errors import (
    ConfigurationError,
    NumericalDivergenceError,
    ProtocolViolationError,
    UnknownReceptorError,
)
from htneuron.core.node import Node
from htneuron.events.event import Event, spike_event
from htneuron.integration.ode_solver import AdaptiveODESolver
from htneuron.recording.data_logger import DataLogger, RecordablesMap
from htneuron.typing import ReceptorMap, StateVector, StatusDict, Step
from htneuron.utils.delay_buffer import DelayAccumulator

logger = logging.getLogger(__name__)


# =============================================================================
# State layout
# =============================================================================

class StateIndex(IntEnum):
    """Positions in the state vector."""
    V_M = 0
    THETA = 1
    DG_AMPA = 2
    G_AMPA = 3
    DG_NMDA = 4
    G_NMDA = 5
    DG_GABA_A = 6
    G_GABA_A = 7
    DG_GABA_B = 8
    G_GABA_B = 9
    D_KNA = 10
    M_T = 11
    H_T = 12
    M_H = 13


STATE_SIZE = len(StateIndex)

STATE_NAMES: Dict[StateIndex, str] = {
    StateIndex.V_M: "V_m",
    StateIndex.THETA: "theta",
    **{StateIndex[f"DG_{name}"]: f"dg_{name}" for name in SYNAPSE_NAMES},
    **{StateIndex[f"G_{name}"]: f"g_{name}" for name in SYNAPSE_NAMES},
    StateIndex.D_KNA: "D_KNA",
    StateIndex.M_T: "m_T",
    StateIndex.H_T: "h_T",
    StateIndex.M_H: "m_h",
}
"""Status key of every state variable."""

SYNAPSE_STATE: Dict[str, Tuple[StateIndex, StateIndex]] = {
    name: (StateIndex[f"DG_{name}"], StateIndex[f"G_{name}"]) for name in SYNAPSE_NAMES
}
"""Receptor name → (DG index, G index)."""

RECEPTOR_TYPES: ReceptorMap = {name: i + 1 for i, name in enumerate(SYNAPSE_NAMES)}

CURRENT_CHANNEL = len(SYNAPSE_NAMES)
"""Accumulator channel of injected currents (after the receptor channels)."""


def initial_state(params: HTNeuronConfig) -> StateVector:
    y = np.zeros(STATE_SIZE)
    y[StateIndex.V_M] = params.E_K
    y[StateIndex.THETA] = params.theta_eq
    y[StateIndex.D_KNA] = KNA_D_EQ
    return y


@dataclass
class HTState:
    """Dynamic state of one neuron."""
    y: StateVector
    r_potassium: int = 0   # ticks left of the repolarizing current
    g_spike: bool = False  # repolarizing current active
    i_stim: float = 0.0    # injected current held across the current tick


# =============================================================================
# Right-hand side
# =============================================================================

@dataclass(frozen=True)
class DynamicsContext:
    """Read-only inputs of the right-hand side for one tick."""
    params: HTNeuronConfig
    channels: Tuple[SynapticChannel, ...]
    i_stim: float = 0.0
    g_spike: bool = False


def synaptic_currents(y: StateVector, params: HTNeuronConfig) -> Dict[str, float]:
    """Current through each receptor channel, NMDA including its voltage gate."""
    v = y[StateIndex.V_M]
    currents = {}
    for name, (_, g_idx) in SYNAPSE_STATE.items():
        i = -y[g_idx] * (v - getattr(params, f"{name}_E_rev"))
        if name == "NMDA":
            i *= nmda_gate(v, params.NMDA_V_act, params.NMDA_S_act)
        currents[name] = float(i)
    return currents


def ht_neuron_dynamics(t: float, y: StateVector, context: DynamicsContext) -> StateVector:
    """Time derivative of the state vector.

    Pure function of its arguments; may be evaluated at any trial point.
    """
    p = context.params
    v = y[StateIndex.V_M]
    dydt = np.empty_like(y)

    i_syn = 0.0
    for channel in context.channels:
        dg_idx, g_idx = SYNAPSE_STATE[channel.name]
        dydt[dg_idx], dydt[g_idx] = channel.rates(y[dg_idx], y[g_idx])
        i = channel.current(y[g_idx], v)
        if channel.name == "NMDA":
            i *= nmda_gate(v, p.NMDA_V_act, p.NMDA_S_act)
        i_syn += i

    intrinsic = intrinsic_currents(
        v, y[StateIndex.D_KNA], y[StateIndex.M_T], y[StateIndex.H_T], y[StateIndex.M_H], p
    )

    if context.g_spike:
        dydt[StateIndex.V_M] = -(v - p.E_K) / p.tau_spike
    else:
        i_na = -p.g_NaL * (v - p.E_Na)
        i_k = -p.g_KL * (v - p.E_K)
        dydt[StateIndex.V_M] = (i_na + i_k + i_syn + intrinsic.total + context.i_stim) / p.tau_m

    dydt[StateIndex.THETA] = -(y[StateIndex.THETA] - p.theta_eq) / p.tau_theta
    dydt[StateIndex.D_KNA] = d_kna_rate(y[StateIndex.D_KNA], intrinsic.NaP)
    dydt[StateIndex.M_T], dydt[StateIndex.H_T] = t_gate_rates(
        v, y[StateIndex.M_T], y[StateIndex.H_T]
    )
    dydt[StateIndex.M_H] = h_gate_rate(v, y[StateIndex.M_H])
    return dydt


# =============================================================================
# Recordables
# =============================================================================

def _state_getter(index: StateIndex):
    return lambda neuron: neuron.state.y[index]


def _intrinsic_getter(name: str):
    def getter(neuron: "HTNeuron") -> float:
        y = neuron.state.y
        currents = intrinsic_currents(
            y[StateIndex.V_M], y[StateIndex.D_KNA], y[StateIndex.M_T],
            y[StateIndex.H_T], y[StateIndex.M_H], neuron.params,
        )
        return getattr(currents, name)
    return getter


def _synaptic_getter(name: str):
    return lambda neuron: synaptic_currents(neuron.state.y, neuron.params)[name]


def _build_recordables() -> RecordablesMap:
    recordables = RecordablesMap()
    recordables.register("V_m", _state_getter(StateIndex.V_M))
    recordables.register("theta", _state_getter(StateIndex.THETA))
    for name in SYNAPSE_NAMES:
        recordables.register(f"g_{name}", _state_getter(StateIndex[f"G_{name}"]))
    for name in ("NaP", "KNa", "T", "h"):
        recordables.register(f"I_{name}", _intrinsic_getter(name))
    # not part of the dynamics, exposed for inspection only
    for name in SYNAPSE_NAMES:
        recordables.register(f"I_syn_{name}", _synaptic_getter(name))
    return recordables


# =============================================================================
# Neuron
# =============================================================================

@dataclass(frozen=True)
class _Derived:
    channels: Tuple[SynapticChannel, ...]
    cond_steps: Tuple[float, ...]
    refractory_counts: int


class HTNeuron(Node):
    """Hill-Tononi neuron entity.

    Args:
        config: Model parameters (defaults to HTNeuronConfig())
        global_config: Tick, delays and solver settings; a network replaces
            it when the neuron is added
        name: Human-readable label

    Example:
        neuron = HTNeuron(HTNeuronConfig(g_KL=0.8))
        network.add(neuron)
    """

    model_name = "ht_neuron"

    def __init__(
        self,
        config: Optional[HTNeuronConfig] = None,
        global_config: Optional[GlobalConfig] = None,
        name: Optional[str] = None,
    ):
        super().__init__(name)
        self.params = config or HTNeuronConfig()
        self.recordables = _build_recordables()
        self.data_logger = DataLogger(self, self.recordables)

        self.spike_count = 0
        self.last_spike_step: Optional[Step] = None

        self.init_state()
        self.init_buffers(global_config or GlobalConfig())
        self.calibrate(self._global_config)

    @property
    def receptor_types(self) -> ReceptorMap:
        return dict(RECEPTOR_TYPES)

    @property
    def V_m(self) -> float:
        return float(self.state.y[StateIndex.V_M])

    @property
    def theta(self) -> float:
        return float(self.state.y[StateIndex.THETA])

    def conductance(self, synapse: str) -> float:
        """Current value of the conductance of a receptor channel."""
        return float(self.state.y[SYNAPSE_STATE[synapse][1]])

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init_state(self) -> None:
        self.state = HTState(y=initial_state(self.params))

    def init_buffers(self, config: GlobalConfig) -> None:
        self._global_config = config
        self._inputs = DelayAccumulator(
            n_channels=len(SYNAPSE_NAMES) + 1,
            horizon=config.accumulator_horizon,
            device=config.get_torch_device(),
            dtype=config.get_torch_dtype(),
        )
        self._step_hint = config.dt_ms
        self.data_logger.reset_buffers()

    def calibrate(self, config: GlobalConfig) -> None:
        derived = self._derive(self.params, config)
        self._apply(derived, config)

    @staticmethod
    def _derive(params: HTNeuronConfig, config: GlobalConfig) -> _Derived:
        counts = config.steps_from_ms(params.t_spike)
        if counts < 1:
            raise ConfigurationError(
                f"t_spike ({params.t_spike} ms) must last at least one tick ({config.dt_ms} ms)"
            )
        channels = tuple(build_channels(params).values())
        return _Derived(
            channels=channels,
            cond_steps=tuple(ch.normalization() for ch in channels),
            refractory_counts=counts,
        )

    def _apply(self, derived: _Derived, config: GlobalConfig) -> None:
        self._derived = derived
        self._global_config = config
        self._dt = config.dt_ms
        self._step_hint = min(self._step_hint, self._dt)
        self.solver = AdaptiveODESolver(config.solver, owner=self.model_name)

    @property
    def cond_steps(self) -> Dict[str, float]:
        return dict(zip(SYNAPSE_NAMES, self._derived.cond_steps))

    @property
    def refractory_counts(self) -> int:
        return self._derived.refractory_counts

    # =========================================================================
    # Update
    # =========================================================================

    def update(self, origin: Step, from_lag: int, to_lag: int) -> None:
        for lag in range(from_lag, to_lag):
            step = origin + lag
            self._take_inputs()

            context = DynamicsContext(
                params=self.params,
                channels=self._derived.channels,
                i_stim=self.state.i_stim,
                g_spike=self.state.g_spike,
            )
            try:
                y, self._step_hint = self.solver.advance(
                    self.state.y, 0.0, self._dt, ht_neuron_dynamics, self._step_hint, context, step=step
                )
            except NumericalDivergenceError:
                logger.error("%r: integration diverged at step %d, state %s", self, step, self.state.y)
                raise
            self.state.y = y

            if self.state.r_potassium > 0:
                self.state.r_potassium -= 1
                if self.state.r_potassium == 0:
                    self.state.g_spike = False

            if not self.state.g_spike and y[StateIndex.V_M] >= y[StateIndex.THETA]:
                self._emit_spike(origin, lag)

            self.step = step + 1
            self.data_logger.record_data(self.step)

    def _take_inputs(self) -> None:
        y = self.state.y
        for port, name in enumerate(SYNAPSE_NAMES):
            weight = self._inputs.take(port)
            if weight != 0.0:
                y[SYNAPSE_STATE[name][0]] += self._derived.cond_steps[port] * weight
        self.state.i_stim = self._inputs.take(CURRENT_CHANNEL)
        self._inputs.advance()

    def _emit_spike(self, origin: Step, lag: int) -> None:
        y = self.state.y
        y[StateIndex.V_M] = self.params.E_Na
        y[StateIndex.THETA] = self.params.E_Na
        self.state.g_spike = True
        self.state.r_potassium = self._derived.refractory_counts

        self.spike_count += 1
        self.last_spike_step = origin + lag + 1
        logger.debug("%r spiked at step %d", self, self.last_spike_step)

        if self.network is not None:
            self.send(spike_event(self.gid), lag)

    # =========================================================================
    # Connection setup
    # =========================================================================

    def send_test_event(self, target: Node, receptor_type: int) -> int:
        return target.handles_test_event(spike_event(self.gid, receiver=target.gid), receptor_type)

    def handles_test_spike(self, event: Event, receptor_type: int) -> int:
        if not 0 < receptor_type <= len(SYNAPSE_NAMES):
            raise UnknownReceptorError(receptor_type, self.model_name)
        return receptor_type - 1

    def handles_test_current(self, event: Event, receptor_type: int) -> int:
        if receptor_type != 0:
            raise UnknownReceptorError(receptor_type, self.model_name)
        return 0

    def handles_test_data_logging_request(self, event: Event, receptor_type: int) -> int:
        if receptor_type != 0:
            raise UnknownReceptorError(receptor_type, self.model_name)
        return self.data_logger.connect_logging_device(event)

    # =========================================================================
    # Delivery
    # =========================================================================

    def _rel_delivery(self, event: Event) -> int:
        rel = event.rel_delivery_steps(self.step)
        if rel < 0:
            raise ProtocolViolationError(
                f"{event.kind.name} event due at step {event.delivery_step} "
                f"delivered to {self!r} at step {self.step}"
            )
        return rel

    def handle_spike(self, event: Event) -> None:
        if not 0 <= event.rport < len(SYNAPSE_NAMES):
            raise ProtocolViolationError(f"Spike event on unknown r-port {event.rport}")
        self._inputs.add(event.rport, self._rel_delivery(event), event.weight * event.multiplicity)

    def handle_current(self, event: Event) -> None:
        self._inputs.add(CURRENT_CHANNEL, self._rel_delivery(event), event.weight * event.current)

    def handle_data_logging_request(self, event: Event) -> None:
        if self.network is None:
            raise ProtocolViolationError(f"{self!r} cannot reply outside a network")
        self.data_logger.handle(event, self.network.registry)

    # =========================================================================
    # Status
    # =========================================================================

    _STATE_KEYS = ("V_m", "theta")

    def get_status(self) -> StatusDict:
        status = super().get_status()
        status.update(self.params.to_dict())
        status.update(
            {key: float(self.state.y[index]) for index, key in STATE_NAMES.items()}
        )
        status.update(
            g_spike=self.state.g_spike,
            r_potassium=self.state.r_potassium,
            spike_count=self.spike_count,
            last_spike_step=self.last_spike_step,
            receptor_types=self.receptor_types,
            recordables=self.recordables.names,
        )
        return status

    def set_status(self, status: Mapping[str, Any]) -> None:
        """Update parameters and/or V_m, theta.

        The other state variables reported by ``get_status`` are read-only.

        The update is all-or-nothing: the candidate parameter record and its
        derived constants are fully validated before anything is changed.

        Raises:
            ConfigurationError: Unknown key, invalid value or inconsistent
                parameter set
        """
        updates = dict(status)
        read_only = sorted(set(updates) & set(STATE_NAMES.values()) - set(self._STATE_KEYS))
        if read_only:
            raise ConfigurationError(f"State variables {read_only} are read-only")
        state_updates = {key: updates.pop(key) for key in self._STATE_KEYS if key in updates}
        for key, value in state_updates.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"{key} must be a finite number, got {value!r}")

        new_params = self.params.with_updates(updates)
        derived = self._derive(new_params, self._global_config)

        self.params = new_params
        self._apply(derived, self._global_config)
        if "V_m" in state_updates:
            self.state.y[StateIndex.V_M] = float(state_updates["V_m"])
        if "theta" in state_updates:
            self.state.y[StateIndex.THETA] = float(state_updates["theta"])
        if updates:
            logger.debug("%r parameters updated: %s", self, sorted(updates))
