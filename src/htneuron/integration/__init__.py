"""Numerical integration of entity dynamics."""

from htneuron.integration.ode_solver import AdaptiveODESolver

__all__ = ["AdaptiveODESolver"]
