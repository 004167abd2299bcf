"""
Tests for configuration validation.

Every rejected configuration must raise a ConfigurationError and leave the
previous valid configuration untouched.
"""

import json

import pytest

from htneuron.config import (
    ConfigValidationError,
    GlobalConfig,
    HTNeuronConfig,
    SolverConfig,
    ValidatorRegistry,
)
from htneuron.core.errors import ConfigurationError


class TestHTNeuronConfig:
    def test_defaults(self):
        cfg = HTNeuronConfig()
        assert cfg.E_Na == 30.0
        assert cfg.E_K == -90.0
        assert cfg.theta_eq == -51.0
        assert cfg.synapse_time_constants("GABA_B") == (60.0, 200.0)
        assert len(cfg.parameter_names()) == 35

    def test_leak_equilibrium(self):
        assert HTNeuronConfig().leak_equilibrium == pytest.approx(-70.0)

    @pytest.mark.parametrize("syn", ["AMPA", "NMDA", "GABA_A", "GABA_B"])
    def test_tau_order_rejected(self, syn):
        cfg = HTNeuronConfig()
        tau_1, tau_2 = cfg.synapse_time_constants(syn)

        with pytest.raises(ConfigValidationError, match=f"{syn}_tau_1"):
            cfg.with_updates({f"{syn}_tau_1": tau_2, f"{syn}_tau_2": tau_1})

        assert cfg.synapse_time_constants(syn) == (tau_1, tau_2)

    @pytest.mark.parametrize("name", ["tau_m", "tau_theta", "tau_spike", "t_spike", "AMPA_tau_1"])
    def test_non_positive_time_constant(self, name):
        with pytest.raises(ConfigValidationError):
            HTNeuronConfig().with_updates({name: 0.0})

    def test_unknown_key(self):
        with pytest.raises(ConfigValidationError, match="no parameter"):
            HTNeuronConfig().with_updates({"tau_x": 1.0})

    def test_non_numeric_value(self):
        with pytest.raises(ConfigValidationError):
            HTNeuronConfig().with_updates({"g_KL": "strong"})
        with pytest.raises(ConfigValidationError):
            HTNeuronConfig().with_updates({"g_KL": True})

    def test_with_updates_returns_new_record(self):
        cfg = HTNeuronConfig()
        new = cfg.with_updates({"AMPA_g_peak": 0.2, "g_KL": 2})

        assert new.AMPA_g_peak == 0.2
        assert new.g_KL == 2.0
        assert isinstance(new.g_KL, float)
        assert cfg.AMPA_g_peak == 0.1

    def test_frozen(self):
        with pytest.raises(AttributeError):
            HTNeuronConfig().E_K = -80.0

    def test_config_error_is_catchable_as_base(self):
        with pytest.raises(ConfigurationError):
            HTNeuronConfig(tau_m=-1.0)


class TestGlobalConfig:
    def test_defaults(self):
        cfg = GlobalConfig()
        assert cfg.dt_ms == 0.1
        assert cfg.accumulator_horizon == cfg.min_delay_steps + cfg.max_delay_steps

    def test_min_above_max(self):
        with pytest.raises(ConfigValidationError, match="min_delay_steps"):
            GlobalConfig(min_delay_steps=10, max_delay_steps=5)

    @pytest.mark.parametrize("kwargs", [
        {"dt_ms": 0.0},
        {"dt_ms": float("inf")},
        {"min_delay_steps": 0},
        {"max_delay_steps": 1.5},
        {"dtype": "int8"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            GlobalConfig(**kwargs)

    def test_steps_from_ms(self):
        cfg = GlobalConfig(dt_ms=0.1)
        assert cfg.steps_from_ms(2.0) == 20
        assert cfg.steps_from_ms(0.04) == 0
        assert cfg.min_delay_ms == pytest.approx(0.1)

    def test_dict_round_trip(self):
        cfg = GlobalConfig(dt_ms=0.05, min_delay_steps=2, solver=SolverConfig(method="LSODA"))
        data = json.loads(cfg.to_json())

        restored = GlobalConfig.from_dict(data)

        assert restored == cfg
        assert isinstance(restored.solver, SolverConfig)

    def test_from_dict_rejects_unknown(self):
        with pytest.raises(ConfigValidationError, match="unknown"):
            GlobalConfig.from_dict({"dt": 0.1})

    def test_save_load(self, tmp_path):
        cfg = GlobalConfig(dt_ms=0.2, max_delay_steps=40)
        path = tmp_path / "config.json"

        cfg.save(path)

        assert GlobalConfig.load(path) == cfg


class TestSolverConfig:
    def test_unknown_method(self):
        with pytest.raises(ConfigValidationError, match="method"):
            SolverConfig(method="Euler")

    @pytest.mark.parametrize("kwargs", [{"rtol": 0.0}, {"atol": -1.0}, {"max_substeps": 0}])
    def test_invalid_tolerances(self, kwargs):
        with pytest.raises(ConfigValidationError):
            SolverConfig(**kwargs)


class TestValidatorRegistry:
    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            ValidatorRegistry.get_validator("prime")
