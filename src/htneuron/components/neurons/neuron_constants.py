"""
Fixed kinetic constants of the Hill-Tononi intrinsic currents.

These are not user parameters: they define the shape of the gating curves and
are shared by every HTNeuron. Peak conductances and reversal potentials live
in HTNeuronConfig.

Gating Curves:
==============

Persistent sodium (I_NaP):
--------------------------
- Instantaneous activation, m∞ half-activation -55.7 mV, slope 7.7 mV
- Current ∝ m∞³

Sodium-dependent potassium (I_KNa):
-----------------------------------
- Activation is a Hill function of intracellular sodium D
- Half-activation 0.25, exponent 3.5
- D is driven by sodium influx through I_NaP and relaxes to its resting value

Low-threshold calcium (I_T):
----------------------------
- Activation m (half -59 mV, slope 6.2 mV), inactivation h (half -83 mV,
  slope 4 mV), current ∝ m²h
- Voltage-dependent time constants after Huguenard & McCormick (1992)

Hyperpolarization-activated cation (I_h):
-----------------------------------------
- Activation half -75 mV, slope 5.5 mV, current ∝ m
- Voltage-dependent time constant after Huguenard & McCormick (1992)

References:
-----------
- Hill & Tononi (2005): J Neurophysiol 93:1671-1698
- Huguenard & McCormick (1992): J Neurophysiol 68:1373-1383
- Compte et al. (2003): J Neurophysiol 89:2707-2725

Author: htneuron
Date: October 2026
"""

# =============================================================================
# PERSISTENT SODIUM (I_NaP)
# =============================================================================

NAP_V_HALF = -55.7
NAP_SLOPE = 7.7

# =============================================================================
# SODIUM-DEPENDENT POTASSIUM (I_KNa)
# =============================================================================

KNA_D_HALF = 0.25
"""Sodium level of half activation (dimensionless)."""

KNA_HILL_EXPONENT = 3.5

KNA_D_EQ = 0.001
"""Resting intracellular sodium proxy; initial value of D_KNA."""

KNA_D_INFLUX = 1e-5
"""Influx rate of D per unit of |I_NaP| (1/ms)."""

KNA_TAU_D = 1250.0
"""Relaxation time constant of D (ms)."""

# =============================================================================
# LOW-THRESHOLD CALCIUM (I_T)
# =============================================================================

T_M_V_HALF = -59.0
T_M_SLOPE = 6.2
T_H_V_HALF = -83.0
T_H_SLOPE = 4.0

# =============================================================================
# HYPERPOLARIZATION-ACTIVATED CATION (I_h)
# =============================================================================

H_V_HALF = -75.0
H_SLOPE = 5.5
