"""Synaptic receptor kinetics."""

from htneuron.components.synapses.kinetics import SynapticChannel, build_channels, nmda_gate

__all__ = ["SynapticChannel", "build_channels", "nmda_gate"]
