"""Base classes for the time integration of the equations of motion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from steadystates.core.types import Array, StateMapping

if TYPE_CHECKING:
    from steadystates.core.equations import HarmonicEquations


@dataclass
class Trajectory:
    """The result of a time integration: times and states (one per row)."""

    #: the sampled times
    t: np.ndarray
    #: the states at the sampled times, shape (len(t), nvars)
    u: np.ndarray

    @property
    def final_state(self) -> Array:
        """The state at the last sampled time."""
        return self.u[-1]


class Integrator:
    """
    Abstract base class for all time integrators.

    An integrator evolves an initial state of the equations of motion over a
    time span. It is a blocking call without a timeout: the caller bounds the
    cost through the time span.
    """

    def integrate(self, equations: HarmonicEquations, state: StateMapping,
                  timespan: tuple[float, float]) -> Trajectory:
        """
        Integrate the equations of motion starting from `state`.

        Parameters
        ----------
        equations
            The equations of motion.
        state
            Values of every variable and parameter symbol.
        timespan
            Initial and final time.

        Raises
        ------
        NotImplementedError
            This is an abstract base class.
        """
        raise NotImplementedError("'Integrator' is an abstract base class - do not use for actual time-stepping!")

    @staticmethod
    def split_state(equations: HarmonicEquations, state: StateMapping) -> tuple[Array, dict[str, Any]]:
        """Split a state mapping into the vector of variables and the parameter values."""
        missing = [v for v in equations.variable_names if v not in state]
        if missing:
            raise KeyError(f"Initial state lacks the variables {missing}")
        u0 = np.array([state[v] for v in equations.variable_names])
        params = {k: v for k, v in state.items() if k not in equations.variable_names}
        return u0, params
