"""Utility data structures."""

from htneuron.utils.delay_buffer import DelayAccumulator

__all__ = ["DelayAccumulator"]
