"""
Tests for beta-function synaptic kinetics and the NMDA voltage gate.
"""

import math

import numpy as np
import pytest

from htneuron.components.synapses.kinetics import SynapticChannel, build_channels, nmda_gate
from htneuron.config.neuron_config import SYNAPSE_NAMES, HTNeuronConfig
from htneuron.core.errors import ConfigurationError


@pytest.fixture
def channels():
    return build_channels(HTNeuronConfig())


@pytest.mark.parametrize("name", SYNAPSE_NAMES)
@pytest.mark.parametrize("weight", [0.5, 1.0, 3.0])
def test_peak_equals_weight_times_g_peak(channels, name, weight):
    """An isolated impulse of weight w peaks at exactly w * g_peak at t_peak."""
    ch = channels[name]

    assert ch.conductance(ch.t_peak, weight) == pytest.approx(weight * ch.g_peak, rel=1e-12)


@pytest.mark.parametrize("name", SYNAPSE_NAMES)
def test_peak_is_maximum(channels, name):
    ch = channels[name]
    t = np.linspace(0.0, 10 * ch.tau_2, 20001)
    g = ch.conductance(t)

    assert g.max() <= ch.g_peak * (1 + 1e-12)
    assert t[np.argmax(g)] == pytest.approx(ch.t_peak, abs=t[1] - t[0])


@pytest.mark.parametrize("name", SYNAPSE_NAMES)
def test_conductance_decays_to_zero(channels, name):
    ch = channels[name]
    assert ch.conductance(0.0) == 0.0
    assert ch.conductance(50 * ch.tau_2) == pytest.approx(0.0, abs=1e-15)
    assert ch.conductance(-1.0) == 0.0


def test_t_peak_formula():
    ch = SynapticChannel("AMPA", g_peak=0.1, tau_1=0.5, tau_2=2.4, E_rev=0.0)
    expected = 0.5 * 2.4 / 1.9 * math.log(2.4 / 0.5)
    assert ch.t_peak == pytest.approx(expected)


def test_rates_match_analytical_solution(channels):
    """The ODE pair reproduces the analytical curve for a small Euler step."""
    ch = channels["AMPA"]
    dt = 1e-4
    dg, g = ch.normalization(), 0.0
    for _ in range(int(round(ch.t_peak / dt))):
        ddg, dgg = ch.rates(dg, g)
        dg, g = dg + dt * ddg, g + dt * dgg

    assert g == pytest.approx(ch.g_peak, rel=1e-3)


@pytest.mark.parametrize("tau_1,tau_2", [(2.4, 0.5), (1.0, 1.0), (0.0, 1.0), (-1.0, 2.0)])
def test_invalid_time_constants(tau_1, tau_2):
    with pytest.raises(ConfigurationError):
        SynapticChannel("AMPA", g_peak=0.1, tau_1=tau_1, tau_2=tau_2, E_rev=0.0)


def test_unknown_synapse():
    with pytest.raises(ConfigurationError):
        SynapticChannel.from_config(HTNeuronConfig(), "GABA_C")


def test_current_sign(channels):
    ch = channels["GABA_A"]
    assert ch.current(1.0, -60.0) < 0.0  # hyperpolarizing above E_rev
    assert ch.current(1.0, -80.0) > 0.0


class TestNMDAGate:
    def test_half_open_at_v_act(self):
        assert nmda_gate(-58.0, -58.0, 2.5) == pytest.approx(0.5)

    def test_monotonic_in_voltage(self):
        values = [nmda_gate(v, -58.0, 2.5) for v in np.linspace(-100, 0, 51)]
        assert all(a < b for a, b in zip(values, values[1:]))

    def test_limits(self):
        assert nmda_gate(-1e4, -58.0, 2.5) == 0.0
        assert nmda_gate(1e4, -58.0, 2.5) == pytest.approx(1.0)
