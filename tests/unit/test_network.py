"""
Tests for the network kernel: registration, connection setup and port
validation, slice scheduling and event delivery.
"""

import pytest

from htneuron import (
    ConfigurationError,
    DCGenerator,
    GlobalConfig,
    HTNeuron,
    IllegalConnectionError,
    Multimeter,
    Network,
    NumericalDivergenceError,
    ProtocolViolationError,
    SolverConfig,
    SpikeGenerator,
    SpikeRecorder,
    UnknownReceptorError,
)
from htneuron.core.registry import EntityRegistry
from htneuron.events import spike_event


class TestRegistry:
    def test_gids_start_at_one(self, network):
        a = network.add(SpikeRecorder())
        b = network.add(SpikeRecorder())

        assert (a.gid, b.gid) == (1, 2)
        assert network.registry.resolve(2) is b
        assert 2 in network.registry
        assert len(network.registry) == 2

    def test_unknown_gid(self):
        with pytest.raises(ProtocolViolationError):
            EntityRegistry().resolve(1)

    def test_node_added_twice(self, network):
        node = network.add(SpikeRecorder())
        with pytest.raises(ConfigurationError):
            network.add(node)
        with pytest.raises(ConfigurationError):
            Network().add(node)


class TestConnect:
    @pytest.mark.parametrize("receptor", [1, 2, 3, 4])
    def test_spike_rport(self, network, receptor):
        gen = network.add(SpikeGenerator([1.0]))
        neuron = network.add(HTNeuron())

        conn = network.connect(gen, neuron, receptor_type=receptor, weight=2.0, delay=3)

        assert conn.rport == receptor - 1
        assert (conn.source, conn.target, conn.weight, conn.delay) == (gen.gid, neuron.gid, 2.0, 3)
        assert network.get_connections(gen) == (conn,)

    @pytest.mark.parametrize("receptor", [0, 5, 7])
    def test_unknown_receptor(self, network, receptor):
        gen = network.add(SpikeGenerator([1.0]))
        neuron = network.add(HTNeuron())

        with pytest.raises(UnknownReceptorError):
            network.connect(gen, neuron, receptor_type=receptor)
        assert network.n_connections == 0

    def test_current_needs_port_zero(self, network):
        dc = network.add(DCGenerator(1.0))
        neuron = network.add(HTNeuron())

        network.connect(dc, neuron)
        with pytest.raises(UnknownReceptorError):
            network.connect(dc, neuron, receptor_type=1)

    def test_neuron_to_neuron(self, network):
        pre = network.add(HTNeuron())
        post = network.add(HTNeuron())
        conn = network.connect(pre, post, receptor_type=post.receptor_types["GABA_A"])
        assert conn.rport == 2

    def test_illegal_kind(self, network):
        gen = network.add(SpikeGenerator([1.0]))
        dc = network.add(DCGenerator(1.0))

        with pytest.raises(IllegalConnectionError):
            network.connect(gen, dc)

    def test_recorder_cannot_send(self, network):
        rec = network.add(SpikeRecorder())
        neuron = network.add(HTNeuron())

        with pytest.raises(IllegalConnectionError):
            network.connect(rec, neuron, receptor_type=1)

    @pytest.mark.parametrize("delay", [0, 21, 2.5])
    def test_delay_outside_window(self, network, delay):
        gen = network.add(SpikeGenerator([1.0]))
        neuron = network.add(HTNeuron())

        with pytest.raises(ConfigurationError):
            network.connect(gen, neuron, receptor_type=1, delay=delay)

    def test_foreign_node(self, network):
        gen = network.add(SpikeGenerator([1.0]))
        with pytest.raises(ConfigurationError):
            network.connect(gen, HTNeuron(), receptor_type=1)


class TestSimulate:
    def test_time_advances(self, network):
        network.add(HTNeuron())
        network.simulate(15)
        network.simulate(5)

        assert network.step == 20
        assert network.time_ms == pytest.approx(2.0)

    def test_slices_of_min_delay(self):
        net = Network(GlobalConfig(dt_ms=0.1, min_delay_steps=4, max_delay_steps=10))
        calls = []

        class Probe(SpikeRecorder):
            def update(self, origin, from_lag, to_lag):
                calls.append((origin, from_lag, to_lag))
                super().update(origin, from_lag, to_lag)

        net.add(Probe())
        net.simulate(10)

        assert calls == [(0, 0, 4), (4, 0, 4), (8, 0, 2)]

    def test_spike_stamp_and_delivery(self, network):
        gen = network.add(SpikeGenerator([0.3, 0.7]))
        rec = network.add(SpikeRecorder())
        network.connect(gen, rec, delay=2)

        network.simulate(10)

        assert rec.n_events == 2
        assert rec.events["times"].tolist() == pytest.approx([0.3, 0.7])
        assert rec.events["senders"].tolist() == [gen.gid, gen.gid]

    def test_one_event_per_connection(self, network):
        gen = network.add(SpikeGenerator([0.1]))
        recs = [network.add(SpikeRecorder()) for _ in range(3)]
        for rec in recs:
            network.connect(gen, rec)

        network.simulate(5)

        assert [rec.n_events for rec in recs] == [1, 1, 1]

    def test_negative_duration(self, network):
        with pytest.raises(ValueError):
            network.simulate(-1)

    def test_send_outside_slice(self, network):
        neuron = network.add(HTNeuron())
        with pytest.raises(ProtocolViolationError):
            network.send(neuron, spike_event(None), 0)

    def test_divergence_halts_and_drops_slice_events(self):
        config = GlobalConfig(
            dt_ms=0.1, min_delay_steps=5, max_delay_steps=20, solver=SolverConfig(max_substeps=1)
        )
        net = Network(config)
        gen = net.add(SpikeGenerator([0.3]))
        rec = net.add(SpikeRecorder())
        net.add(HTNeuron())
        net.connect(gen, rec)

        with pytest.raises(NumericalDivergenceError):
            net.simulate(5)

        assert net.failed
        assert net.step == 0
        assert rec.n_events == 0

        with pytest.raises(ProtocolViolationError, match="halted"):
            net.simulate(5)
        assert rec.n_events == 0


class TestDevices:
    def test_spike_generator_merges_same_step(self, network):
        gen = network.add(SpikeGenerator([0.5, 0.5], multiplicities=[1, 2]))
        rec = network.add(SpikeRecorder())
        network.connect(gen, rec)

        network.simulate(10)

        assert rec.n_events == 3

    def test_spike_generator_rejects_time_zero(self, network):
        with pytest.raises(ConfigurationError):
            network.add(SpikeGenerator([0.0]))

    def test_dc_generator_window(self, network):
        dc = network.add(DCGenerator(1.0, start_ms=0.5, stop_ms=1.0))
        assert not dc.is_active(4)
        assert dc.is_active(5)
        assert dc.is_active(9)
        assert not dc.is_active(10)

    def test_dc_generator_bad_window(self, network):
        with pytest.raises(ConfigurationError):
            network.add(DCGenerator(1.0, start_ms=2.0, stop_ms=1.0))

    def test_multimeter_interval_must_match_tick(self, network):
        with pytest.raises(ConfigurationError):
            network.add(Multimeter(interval_ms=0.05))

    def test_multimeter_unknown_recordable(self, network):
        mm = network.add(Multimeter(record_from=("V_x",)))
        neuron = network.add(HTNeuron())
        with pytest.raises(ConfigurationError):
            network.connect(mm, neuron)

    def test_multimeter_collects_samples(self, network):
        neuron = network.add(HTNeuron())
        mm = network.add(Multimeter(record_from=("V_m", "theta"), interval_ms=0.5))
        network.connect(mm, neuron)

        network.simulate(20)

        events = mm.events
        assert events["times"].tolist() == pytest.approx([0.5, 1.0, 1.5, 2.0])
        assert events["senders"].tolist() == [neuron.gid] * 4
        assert len(events["V_m"]) == 4
        assert events["V_m"][-1] == pytest.approx(neuron.V_m)
        assert events["theta"].tolist() == pytest.approx([-51.0] * 4)
