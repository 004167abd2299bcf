"""
Hill-Tononi neuron parameters.

HTNeuronConfig is the fixed record of the 35 real constants of the model:
leak conductances and reversal potentials, dynamic threshold, repolarizing
potassium current, four beta-function synapses and four intrinsic currents.

Units: potentials in mV, times in ms, conductances relative to the membrane
(dimensionless, the membrane equation divides by tau_m).

The config is frozen. It is replaced as a whole between ticks, never edited in
place, so an integration in progress always sees one consistent record:

    new_config = config.with_updates({"AMPA_g_peak": 0.2})

with_updates() validates the complete candidate record before returning it;
on failure the original object is untouched.

References:
    S Hill and G Tononi (2005). J Neurophysiol 93:1671-1698.
    ED Lumer, GM Edelman and G Tononi (1997). Cereb Cortex 7:207-227.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Mapping, Tuple

from htneuron.config.validation import ConfigValidationError, ValidatedConfig

SYNAPSE_NAMES: Tuple[str, ...] = ("AMPA", "NMDA", "GABA_A", "GABA_B")
"""Receptor channels in port order (port = index + 1)."""


@dataclass(frozen=True)
class HTNeuronConfig(ValidatedConfig):
    """Parameters of the Hill-Tononi point neuron.

    Attributes:

        # Leaks
        E_Na, E_K: Sodium and potassium reversal potentials (mV).
        g_NaL, g_KL: Sodium and potassium leak conductances.
        tau_m: Membrane time constant for all currents except the
            repolarizing potassium current (ms).

        # Dynamic threshold
        theta_eq: Equilibrium threshold (mV).
        tau_theta: Threshold relaxation time constant (ms).

        # Spike potassium current
        tau_spike: Membrane time constant during repolarization (ms).
        t_spike: Duration of the repolarizing current (ms).

        # Synapses, for X in AMPA, NMDA, GABA_A, GABA_B
        X_g_peak: Peak conductance of an isolated unit impulse.
        X_tau_1, X_tau_2: Rise and decay time constants, tau_1 < tau_2 (ms).
        X_E_rev: Reversal potential (mV).
        NMDA_V_act, NMDA_S_act: Inflection point and scale of the sigmoidal
            NMDA voltage gate (mV).

        # Intrinsic currents, for Y in NaP, KNa, T, h
        Y_g_peak: Peak conductance.
        Y_E_rev: Reversal potential (mV).
    """

    # =========================================================================
    # Leaks
    # =========================================================================
    E_Na: float = 30.0
    E_K: float = -90.0
    g_NaL: float = 0.2
    g_KL: float = 1.0
    tau_m: float = 16.0

    # =========================================================================
    # Dynamic threshold
    # =========================================================================
    theta_eq: float = -51.0
    tau_theta: float = 2.0

    # =========================================================================
    # Spike potassium current
    # =========================================================================
    tau_spike: float = 1.75
    t_spike: float = 2.0

    # =========================================================================
    # Synapses
    # =========================================================================
    AMPA_g_peak: float = 0.1
    AMPA_tau_1: float = 0.5
    AMPA_tau_2: float = 2.4
    AMPA_E_rev: float = 0.0

    NMDA_g_peak: float = 0.075
    NMDA_tau_1: float = 4.0
    NMDA_tau_2: float = 40.0
    NMDA_E_rev: float = 0.0
    NMDA_V_act: float = -58.0  # inactive for V << V_act, inflection of sigmoid
    NMDA_S_act: float = 2.5    # scale of inactivation

    GABA_A_g_peak: float = 0.33
    GABA_A_tau_1: float = 1.0
    GABA_A_tau_2: float = 7.0
    GABA_A_E_rev: float = -70.0

    GABA_B_g_peak: float = 0.0132
    GABA_B_tau_1: float = 60.0
    GABA_B_tau_2: float = 200.0
    GABA_B_E_rev: float = -90.0

    # =========================================================================
    # Intrinsic currents
    # =========================================================================
    NaP_g_peak: float = 1.0
    NaP_E_rev: float = 30.0

    KNa_g_peak: float = 1.0
    KNa_E_rev: float = -90.0

    T_g_peak: float = 1.0
    T_E_rev: float = 0.0

    h_g_peak: float = 1.0
    h_E_rev: float = -40.0

    _validation_rules = {
        **{name: ('finite',) for name in (
            'E_Na', 'E_K', 'theta_eq', 'NMDA_V_act',
            'NaP_E_rev', 'KNa_E_rev', 'T_E_rev', 'h_E_rev',
        )},
        **{name: ('non_negative', 'finite') for name in (
            'g_NaL', 'g_KL', 'NaP_g_peak', 'KNa_g_peak', 'T_g_peak', 'h_g_peak',
        )},
        **{name: ('positive', 'finite') for name in (
            'tau_m', 'tau_theta', 'tau_spike', 't_spike', 'NMDA_S_act',
        )},
        **{f'{syn}_g_peak': ('non_negative', 'finite') for syn in SYNAPSE_NAMES},
        **{f'{syn}_tau_1': ('positive', 'finite') for syn in SYNAPSE_NAMES},
        **{f'{syn}_tau_2': ('positive', 'finite') for syn in SYNAPSE_NAMES},
        **{f'{syn}_E_rev': ('finite',) for syn in SYNAPSE_NAMES},
    }

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate_config()

    def _cross_field_errors(self) -> List[str]:
        errors = []
        for syn in SYNAPSE_NAMES:
            tau_1, tau_2 = self.synapse_time_constants(syn)
            if not tau_1 < tau_2:
                errors.append(
                    f"{syn}_tau_1 ({tau_1}) must be strictly smaller than {syn}_tau_2 ({tau_2})"
                )
        return errors

    def synapse_time_constants(self, synapse: str) -> Tuple[float, float]:
        """Return (tau_1, tau_2) of a receptor channel."""
        return getattr(self, f"{synapse}_tau_1"), getattr(self, f"{synapse}_tau_2")

    @property
    def leak_equilibrium(self) -> float:
        """Potential at which the sodium and potassium leaks balance (mV)."""
        return (self.g_NaL * self.E_Na + self.g_KL * self.E_K) / (self.g_NaL + self.g_KL)

    @classmethod
    def parameter_names(cls) -> Tuple[str, ...]:
        """Names of all parameters in declaration order."""
        return tuple(f.name for f in fields(cls))

    def to_dict(self) -> Dict[str, float]:
        """Convert to a plain dictionary."""
        return asdict(self)

    def with_updates(self, updates: Mapping[str, Any]) -> "HTNeuronConfig":
        """Return a validated copy with some parameters replaced.

        Args:
            updates: Parameter name → new value

        Returns:
            New config; self is never modified.

        Raises:
            ConfigValidationError: Unknown key or invalid resulting record
        """
        known = set(self.parameter_names())
        unknown = sorted(set(updates) - known)
        if unknown:
            raise ConfigValidationError(
                f"{self.__class__.__name__} has no parameter(s): {', '.join(unknown)}"
            )
        if not updates:
            return self
        return replace(self, **{k: _as_float(k, v) for k, v in updates.items()})


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{name} must be numeric, got {type(value).__name__}")
    return float(value)
