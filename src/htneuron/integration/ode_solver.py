"""
Adaptive-step ODE solver used to advance an entity across one tick.

The solver wraps ``scipy.integrate.solve_ivp``. It is stateless between calls
except for the step-size hint the caller carries from one tick to the next:
the largest accepted sub-step of the previous tick is used as the first trial
step of the next one, so a quiescent neuron integrates each tick in a single
sub-step while a spiking one automatically refines.

Contract:
=========
    y_new, hint = solver.advance(y, t0, t1, rhs, hint, context)

- ``rhs(t, y, context)`` must be pure: it may be evaluated many times at
  arbitrary intermediate points and with trial states that are later
  rejected.
- ``y`` is not modified; a new array is returned.
- At most ``max_substeps`` RHS evaluations are made per call; the
  integration is aborted as soon as the budget runs out.
- Failure to reach ``t1`` within tolerance raises NumericalDivergenceError.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from htneuron.config.global_config import SolverConfig
from htneuron.core.errors import NumericalDivergenceError

RHS = Callable[[float, np.ndarray, Any], np.ndarray]


class _BudgetExhausted(Exception):
    """Raised from inside the right-hand side to abort an over-long tick."""


class AdaptiveODESolver:
    """Error-controlled integration of one tick.

    Args:
        config: Method and tolerances (defaults to RK45, rtol=1e-4, atol=1e-6)
        owner: Name used in error messages
    """

    def __init__(self, config: Optional[SolverConfig] = None, owner: str = "ode_solver"):
        self.config = config or SolverConfig()
        self.owner = owner
        self.last_nfev = 0

    def advance(
        self,
        y: np.ndarray,
        t0: float,
        t1: float,
        rhs: RHS,
        hint: float,
        context: Any,
        step: Optional[int] = None,
    ) -> Tuple[np.ndarray, float]:
        """Integrate ``y`` from ``t0`` to ``t1``.

        Args:
            y: State at ``t0``
            t0, t1: Integration interval, ``t1 > t0``
            rhs: Pure right-hand side ``rhs(t, y, context)``
            hint: Suggested first sub-step; values outside ``(0, t1 - t0]``
                are clamped into it
            context: Read-only value handed to every RHS evaluation
            step: Simulation step, only used for diagnostics

        Returns:
            (state at ``t1``, suggested first sub-step for the next interval)

        Raises:
            NumericalDivergenceError: Tolerance not met, sub-step budget
                exhausted or non-finite state
        """
        span = t1 - t0
        if span <= 0.0:
            raise ValueError(f"Integration interval must be positive, got [{t0}, {t1}]")

        first_step = min(hint, span) if hint > 0.0 and np.isfinite(hint) else span
        budget = self.config.max_substeps
        n_calls = 0

        def counted_rhs(t, y_trial, ctx):
            nonlocal n_calls
            n_calls += 1
            if n_calls > budget:
                raise _BudgetExhausted
            return rhs(t, y_trial, ctx)

        try:
            sol = solve_ivp(
                counted_rhs,
                (t0, t1),
                np.asarray(y, dtype=float),
                method=self.config.method,
                rtol=self.config.rtol,
                atol=self.config.atol,
                first_step=first_step,
                args=(context,),
            )
        except _BudgetExhausted:
            self.last_nfev = budget
            raise NumericalDivergenceError(
                self.owner, f"more than {budget} RHS evaluations exceed the budget", step
            ) from None
        except ArithmeticError as e:
            raise NumericalDivergenceError(self.owner, f"right-hand side failed: {e}", step) from e

        self.last_nfev = n_calls
        if sol.status != 0:
            raise NumericalDivergenceError(self.owner, sol.message, step)

        y_new = sol.y[:, -1].copy()
        if not np.all(np.isfinite(y_new)):
            raise NumericalDivergenceError(self.owner, "state became non-finite", step)

        new_hint = float(np.max(np.diff(sol.t))) if sol.t.size > 1 else span
        return y_new, new_hint
