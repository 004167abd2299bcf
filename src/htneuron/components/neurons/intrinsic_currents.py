"""
Intrinsic currents of the Hill-Tononi neuron.

Four voltage- or sodium-dependent currents shape the intrinsic firing
behaviour (tonic vs. burst mode, adaptation, rebound):

    I_NaP   persistent sodium, instantaneous activation
    I_KNa   sodium-dependent potassium, gated by intracellular sodium D
    I_T     low-threshold calcium, activation m_T and inactivation h_T
    I_h     hyperpolarization-activated cation current, activation m_h

All functions are pure: they depend only on their arguments and hold no state,
so they can be evaluated at every stage of an adaptive solver. Currents follow
the sign convention of the membrane equation (positive = depolarizing).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from htneuron.components.neurons.neuron_constants import (
    H_SLOPE,
    H_V_HALF,
    KNA_D_EQ,
    KNA_D_HALF,
    KNA_D_INFLUX,
    KNA_HILL_EXPONENT,
    KNA_TAU_D,
    NAP_SLOPE,
    NAP_V_HALF,
    T_H_SLOPE,
    T_H_V_HALF,
    T_M_SLOPE,
    T_M_V_HALF,
)
from htneuron.config.neuron_config import HTNeuronConfig

_EXP_LIMIT = 700.0


def _exp(x: float) -> float:
    return math.exp(min(x, _EXP_LIMIT))


def _sigmoid(x: float) -> float:
    """1 / (1 + exp(-x)) without overflow for large |x|."""
    return 1.0 / (1.0 + _exp(-x))


# =============================================================================
# Persistent sodium
# =============================================================================

def nap_m_inf(v: float) -> float:
    return _sigmoid((v - NAP_V_HALF) / NAP_SLOPE)


def i_nap(v: float, g_peak: float, e_rev: float) -> float:
    return -g_peak * nap_m_inf(v) ** 3 * (v - e_rev)


# =============================================================================
# Sodium-dependent potassium
# =============================================================================

def kna_activation(d: float) -> float:
    """Hill activation by intracellular sodium; 0 when D is not positive."""
    if d <= 0.0:
        return 0.0
    return 1.0 / (1.0 + (KNA_D_HALF / d) ** KNA_HILL_EXPONENT)


def i_kna(v: float, d: float, g_peak: float, e_rev: float) -> float:
    return -g_peak * kna_activation(d) * (v - e_rev)


def d_kna_rate(d: float, i_nap_value: float) -> float:
    """dD/dt: influx proportional to |I_NaP|, relaxation to the resting level."""
    return KNA_D_INFLUX * abs(i_nap_value) - (d - KNA_D_EQ) / KNA_TAU_D


# =============================================================================
# Low-threshold calcium
# =============================================================================

def t_m_inf(v: float) -> float:
    return _sigmoid((v - T_M_V_HALF) / T_M_SLOPE)


def t_h_inf(v: float) -> float:
    return _sigmoid(-(v - T_H_V_HALF) / T_H_SLOPE)


def t_tau_m(v: float) -> float:
    return 0.13 + 0.22 / (_exp(-(v + 132.0) / 16.7) + _exp((v + 16.8) / 18.2))


def t_tau_h(v: float) -> float:
    return 8.2 + (56.6 + 0.27 * _exp((v + 115.2) / 5.0)) / (1.0 + _exp((v + 86.0) / 3.2))


def i_t(v: float, m: float, h: float, g_peak: float, e_rev: float) -> float:
    return -g_peak * m * m * h * (v - e_rev)


def t_gate_rates(v: float, m: float, h: float) -> Tuple[float, float]:
    """(dm_T/dt, dh_T/dt)."""
    return (t_m_inf(v) - m) / t_tau_m(v), (t_h_inf(v) - h) / t_tau_h(v)


# =============================================================================
# Hyperpolarization-activated cation current
# =============================================================================

def h_m_inf(v: float) -> float:
    return _sigmoid(-(v - H_V_HALF) / H_SLOPE)


def h_tau(v: float) -> float:
    return 1.0 / (_exp(-14.59 - 0.086 * v) + _exp(-1.87 + 0.0701 * v))


def i_h(v: float, m: float, g_peak: float, e_rev: float) -> float:
    return -g_peak * m * (v - e_rev)


def h_gate_rate(v: float, m: float) -> float:
    """dm_h/dt."""
    return (h_m_inf(v) - m) / h_tau(v)


# =============================================================================
# All currents at once
# =============================================================================

@dataclass(frozen=True)
class IntrinsicCurrents:
    """Instantaneous values of the four intrinsic currents."""
    NaP: float
    KNa: float
    T: float
    h: float

    @property
    def total(self) -> float:
        return self.NaP + self.KNa + self.T + self.h


def intrinsic_currents(
    v: float, d: float, m_t: float, h_t: float, m_h: float, params: HTNeuronConfig
) -> IntrinsicCurrents:
    """Evaluate all intrinsic currents from the current state."""
    return IntrinsicCurrents(
        NaP=i_nap(v, params.NaP_g_peak, params.NaP_E_rev),
        KNa=i_kna(v, d, params.KNa_g_peak, params.KNa_E_rev),
        T=i_t(v, m_t, h_t, params.T_g_peak, params.T_E_rev),
        h=i_h(v, m_h, params.h_g_peak, params.h_E_rev),
    )
