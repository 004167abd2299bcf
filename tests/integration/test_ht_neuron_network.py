"""
End-to-end tests: events flow from generators through HTNeurons to recorders.
"""

import numpy as np
import pytest

from htneuron import DCGenerator, HTNeuron, Multimeter, SpikeGenerator, SpikeRecorder, StateIndex
from htneuron.events import spike_event

pytestmark = pytest.mark.integration


def test_single_ampa_spike_from_rest(fine_network):
    """A unit AMPA spike due at step 0 opens only the AMPA conductance and depolarizes."""
    net = fine_network
    source = net.add(SpikeGenerator())
    neuron = net.add(HTNeuron())
    control = net.add(HTNeuron())

    assert neuron.V_m == neuron.params.E_K
    assert neuron.theta == neuron.params.theta_eq

    spike_event(
        source.gid, stamp=0, delay=1, receiver=neuron.gid,
        rport=neuron.receptor_types["AMPA"] - 1, weight=1.0,
    ).deliver(net.registry)

    net.simulate(1)

    assert neuron.conductance("AMPA") > 0.0
    for name in ("NMDA", "GABA_A", "GABA_B"):
        assert neuron.conductance(name) == 0.0

    voltages = [neuron.V_m]
    for _ in range(20):
        net.simulate(1)
        voltages.append(neuron.V_m)
        assert neuron.state.y[StateIndex.G_NMDA] == 0.0

    assert all(b > a for a, b in zip(voltages, voltages[1:]))
    assert neuron.V_m > control.V_m
    assert neuron.spike_count == 0


@pytest.mark.parametrize("delay", [5, 8, 12])
def test_delay_shifts_arrival(sliced_network, delay):
    """The input is applied exactly at stamp + delay - 1, whatever the slicing."""
    net = sliced_network
    gen = net.add(SpikeGenerator([1.0]))  # stamp 10
    neuron = net.add(HTNeuron())
    mm = net.add(Multimeter(record_from=("g_AMPA",), interval_ms=0.1))
    net.connect(gen, neuron, receptor_type=1, delay=delay)
    net.connect(mm, neuron)

    net.simulate(40)

    steps = np.rint(mm.events["times"] / 0.1).astype(int)
    first_open = steps[mm.events["g_AMPA"] > 0.0].min()
    assert first_open == 10 + delay


def test_multimeter_sees_onset_at_delivery_step(fine_network):
    net = fine_network
    gen = net.add(SpikeGenerator([0.5]))  # stamp 5
    neuron = net.add(HTNeuron())
    mm = net.add(Multimeter(record_from=("g_AMPA", "g_NMDA"), interval_ms=0.1))
    net.connect(gen, neuron, receptor_type=1, delay=3)  # due at step 7
    net.connect(mm, neuron)

    net.simulate(30)

    steps = np.rint(mm.events["times"] / 0.1).astype(int)
    g = mm.events["g_AMPA"]
    # sample at step s holds the state after the tick s-1 -> s
    assert np.all(g[steps <= 7] == 0.0)
    assert np.all(g[steps >= 8] > 0.0)
    assert np.all(mm.events["g_NMDA"] == 0.0)


@pytest.mark.slow
def test_dc_drive_produces_regular_spiking(fine_network):
    net = fine_network
    dc = net.add(DCGenerator(amplitude=100.0))
    neuron = net.add(HTNeuron())
    rec = net.add(SpikeRecorder())
    net.connect(dc, neuron)
    net.connect(neuron, rec)

    net.simulate(500)

    assert neuron.spike_count > 1
    # spikes emitted in the final slice are still in flight
    assert neuron.spike_count - 1 <= rec.n_events <= neuron.spike_count
    times = rec.events["times"]
    assert np.all(np.diff(times) >= neuron.params.t_spike - 1e-9)
    assert np.all(rec.events["senders"] == neuron.gid)


def test_spike_propagates_between_neurons(fine_network):
    net = fine_network
    dc = net.add(DCGenerator(amplitude=100.0))
    pre = net.add(HTNeuron())
    post = net.add(HTNeuron())
    net.connect(dc, pre)
    net.connect(pre, post, receptor_type=post.receptor_types["AMPA"], weight=5.0, delay=10)

    net.simulate(300)

    assert pre.spike_count > 0
    assert post.conductance("AMPA") > 0.0
    assert post.conductance("GABA_A") == 0.0


def test_inhibition_hyperpolarizes(fine_network):
    net = fine_network
    dc = net.add(DCGenerator(amplitude=10.0))
    gen = net.add(SpikeGenerator([0.1]))
    inhibited = net.add(HTNeuron())
    free = net.add(HTNeuron())
    for neuron in (inhibited, free):
        neuron.set_status({"V_m": -60.0})
        net.connect(dc, neuron)
    net.connect(gen, inhibited, receptor_type=inhibited.receptor_types["GABA_A"], weight=10.0)

    net.simulate(40)

    assert inhibited.conductance("GABA_A") > 0.0
    assert inhibited.V_m < free.V_m - 1.0
    assert inhibited.spike_count == free.spike_count == 0
