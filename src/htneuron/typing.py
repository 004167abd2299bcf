"""
Type Aliases for htneuron

Aliases used throughout the package for clearer type hints. Import them from
here rather than defining them inline.

Example:
    from htneuron.typing import StateVector, StatusDict

Author: htneuron developers
"""

from typing import Any, Dict, Tuple

import numpy as np

# ============================================================================
# Time
# ============================================================================

Step = int
"""Absolute simulation step (tick index). Step 0 is the start of simulation."""

Lag = int
"""Offset of a tick inside the current slice, in ``[0, min_delay)``."""

# ============================================================================
# Entity state
# ============================================================================

StateVector = np.ndarray
"""Continuous state of a neuron, indexed by ``StateIndex``."""

StatusDict = Dict[str, Any]
"""Parameter/state dictionary exchanged through get_status()/set_status()."""

ReceptorMap = Dict[str, int]
"""Receptor name → receptor port, e.g. ``{"AMPA": 1, "NMDA": 2}``."""

# ============================================================================
# Recording
# ============================================================================

Sample = Tuple[float, ...]
"""Values of the requested recordables at one recording step."""
