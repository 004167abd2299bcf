"""
Global Configuration - Simulation-wide parameters shared by all entities.

These parameters are truly global: every entity advances by the same tick,
and the minimum transmission delay is a system-wide invariant (events are
never read back within the slice in which they are produced).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from htneuron.config.base import BaseConfig
from htneuron.config.validation import ValidatedConfig


@dataclass
class SolverConfig(ValidatedConfig):
    """Settings handed to the adaptive-step ODE solver.

    Example:
        solver = SolverConfig(method="LSODA", rtol=1e-5)
    """

    method: str = "RK45"
    """scipy.integrate.solve_ivp method name (RK45, RK23, DOP853, Radau, BDF, LSODA)."""

    rtol: float = 1e-4
    """Relative tolerance of the error control."""

    atol: float = 1e-6
    """Absolute tolerance of the error control."""

    max_substeps: int = 10000
    """Retry budget: maximum number of RHS evaluations per tick before giving up."""

    _validation_rules = {
        'method': ('non_empty_string',),
        'rtol': ('positive', 'finite'),
        'atol': ('positive', 'finite'),
        'max_substeps': ('positive_integer',),
    }

    _METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate_config()

    def _cross_field_errors(self):
        if self.method not in self._METHODS:
            return [f"method '{self.method}' not one of {list(self._METHODS)}"]
        return []


@dataclass
class GlobalConfig(BaseConfig, ValidatedConfig):
    """Universal parameters shared across all htneuron entities.

    Inherits device and dtype from BaseConfig.

    Example:
        config = GlobalConfig(dt_ms=0.1, min_delay_steps=10, max_delay_steps=200)
    """

    # =========================================================================
    # TIMING
    # =========================================================================
    dt_ms: float = 0.1
    """Simulation tick in milliseconds. All entities advance by exactly one tick."""

    # =========================================================================
    # DELAYS (in ticks)
    # =========================================================================
    min_delay_steps: int = 1
    """Smallest transmission delay of any connection. Also the slice length:
    events produced within a slice are delivered only after the slice ends."""

    max_delay_steps: int = 100
    """Largest transmission delay of any connection. Sizes the delay accumulators."""

    solver: SolverConfig = field(default_factory=SolverConfig)
    """Adaptive ODE solver settings."""

    _validation_rules = {
        'dt_ms': ('positive', 'finite'),
        'min_delay_steps': ('positive_integer',),
        'max_delay_steps': ('positive_integer',),
    }

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.solver, dict):
            self.solver = SolverConfig(**self.solver)
        self.validate_config()
        self.get_torch_dtype()

    def _cross_field_errors(self):
        if self.min_delay_steps > self.max_delay_steps:
            return [
                f"min_delay_steps ({self.min_delay_steps}) > "
                f"max_delay_steps ({self.max_delay_steps})"
            ]
        return []

    @property
    def min_delay_ms(self) -> float:
        """Minimum transmission delay in milliseconds."""
        return self.min_delay_steps * self.dt_ms

    @property
    def accumulator_horizon(self) -> int:
        """Number of future ticks a delay accumulator must hold."""
        return self.min_delay_steps + self.max_delay_steps

    def steps_from_ms(self, t_ms: float) -> int:
        """Convert a duration in milliseconds to the nearest number of ticks."""
        return int(round(t_ms / self.dt_ms))

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: str | Path) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        path.write_text(self.to_json())

    @classmethod
    def load(cls, path: str | Path) -> "GlobalConfig":
        """Load configuration from JSON file."""
        path = Path(path)
        data: Dict[str, Any] = json.loads(path.read_text())
        return cls.from_dict(data)
