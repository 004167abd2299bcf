"""Stimulation and recording devices."""

from htneuron.devices.generators import DCGenerator, SpikeGenerator
from htneuron.devices.recorders import Multimeter, SpikeRecorder

__all__ = ["SpikeGenerator", "DCGenerator", "Multimeter", "SpikeRecorder"]
