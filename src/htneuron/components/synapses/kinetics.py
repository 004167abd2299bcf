"""
Beta-function synaptic kinetics.

Each receptor channel is a pair of linear ODEs driven by impulses:

    dDG/dt = -DG / tau_1
    dG/dt  =  DG - G / tau_2

An impulse of weight w at t = 0 sets DG += w * cond_step, after which the
conductance follows the difference of exponentials

    G(t) = w * cond_step * tau_1 * tau_2 / (tau_2 - tau_1)
             * (exp(-t / tau_2) - exp(-t / tau_1))

which peaks at

    t_peak = tau_1 * tau_2 / (tau_2 - tau_1) * ln(tau_2 / tau_1)

The normalization constant ``cond_step`` is chosen so that the peak of an
isolated impulse is exactly ``w * g_peak``.

NMDA Voltage Gate:
==================
NMDA conductance only passes current once the magnesium block is lifted:

    gate(V) = 1 / (1 + exp(-(V - V_act) / S_act))

The gate is a function of the instantaneous membrane potential and must be
evaluated inside the right-hand side at every solver stage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from htneuron.config.neuron_config import SYNAPSE_NAMES, HTNeuronConfig
from htneuron.core.errors import ConfigurationError

_EXP_LIMIT = 700.0  # math.exp overflows just above 709


@dataclass(frozen=True)
class SynapticChannel:
    """One beta-function receptor channel.

    Args:
        name: Receptor name (AMPA, NMDA, GABA_A, GABA_B)
        g_peak: Peak conductance of a unit-weight impulse
        tau_1: Rise time constant (ms)
        tau_2: Decay time constant (ms), must exceed tau_1
        E_rev: Reversal potential (mV)
    """
    name: str
    g_peak: float
    tau_1: float
    tau_2: float
    E_rev: float

    def __post_init__(self):
        if self.tau_1 <= 0.0 or self.tau_2 <= 0.0:
            raise ConfigurationError(
                f"{self.name}: time constants must be positive (tau_1={self.tau_1}, tau_2={self.tau_2})"
            )
        if not self.tau_1 < self.tau_2:
            raise ConfigurationError(
                f"{self.name}: tau_1 ({self.tau_1}) must be strictly smaller than tau_2 ({self.tau_2})"
            )

    @classmethod
    def from_config(cls, config: HTNeuronConfig, name: str) -> "SynapticChannel":
        if name not in SYNAPSE_NAMES:
            raise ConfigurationError(f"Unknown synapse '{name}', expected one of {SYNAPSE_NAMES}")
        return cls(
            name=name,
            g_peak=getattr(config, f"{name}_g_peak"),
            tau_1=getattr(config, f"{name}_tau_1"),
            tau_2=getattr(config, f"{name}_tau_2"),
            E_rev=getattr(config, f"{name}_E_rev"),
        )

    @property
    def t_peak(self) -> float:
        """Time of the conductance peak after an isolated impulse (ms)."""
        return self.tau_1 * self.tau_2 / (self.tau_2 - self.tau_1) * math.log(self.tau_2 / self.tau_1)

    def normalization(self) -> float:
        """Increment of DG per unit weight so that the peak equals g_peak."""
        denom = math.exp(-self.t_peak / self.tau_2) - math.exp(-self.t_peak / self.tau_1)
        return self.g_peak * (1.0 / self.tau_1 - 1.0 / self.tau_2) / denom

    def conductance(self, t, weight: float = 1.0):
        """Analytical conductance ``t`` ms after an impulse of ``weight``.

        Accepts scalars or numpy arrays; returns 0 for t < 0.
        """
        t = np.asarray(t, dtype=float)
        scale = weight * self.normalization() * self.tau_1 * self.tau_2 / (self.tau_2 - self.tau_1)
        g = scale * (np.exp(-t / self.tau_2) - np.exp(-t / self.tau_1))
        g = np.where(t >= 0.0, g, 0.0)
        return float(g) if g.ndim == 0 else g

    def rates(self, dg: float, g: float) -> Tuple[float, float]:
        """Time derivatives ``(dDG/dt, dG/dt)``."""
        return -dg / self.tau_1, dg - g / self.tau_2

    def current(self, g: float, v: float) -> float:
        """Synaptic current ``-g * (V - E_rev)`` (without any voltage gate)."""
        return -g * (v - self.E_rev)


def nmda_gate(v: float, v_act: float, s_act: float) -> float:
    """Fraction of NMDA conductance released from the magnesium block."""
    x = -(v - v_act) / s_act
    if x > _EXP_LIMIT:
        return 0.0
    return 1.0 / (1.0 + math.exp(x))


def build_channels(config: HTNeuronConfig) -> Dict[str, SynapticChannel]:
    """Create all receptor channels of a neuron, in port order."""
    return {name: SynapticChannel.from_config(config, name) for name in SYNAPSE_NAMES}
