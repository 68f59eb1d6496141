"""Fixed-step Runge-Kutta integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from steadystates.core.profiling import profile
from steadystates.core.types import StateMapping

from .time_steppers import Integrator, Trajectory

if TYPE_CHECKING:
    from steadystates.core.equations import HarmonicEquations


class RungeKutta4(Integrator):
    """
    Classical Runge-Kutta-4 scheme with fixed step size.

    The last step is shortened so that the integration ends exactly at the
    final time. Only the initial and the final state are returned.
    """

    def __init__(self, dt: float = 1e-2) -> None:
        #: the time step size
        self.dt = dt

    @profile
    def integrate(self, equations: HarmonicEquations, state: StateMapping,
                  timespan: tuple[float, float]) -> Trajectory:
        u0, params = self.split_state(equations, state)
        t0, tf = float(timespan[0]), float(timespan[1])
        u = u0.astype(np.result_type(u0.dtype, np.float64))
        t = t0
        while t < tf:
            dt = min(self.dt, tf - t)
            k1 = equations.rhs(u, params)
            k2 = equations.rhs(u + dt / 2 * k1, params)
            k3 = equations.rhs(u + dt / 2 * k2, params)
            k4 = equations.rhs(u + dt * k3, params)
            u = u + dt / 6. * (k1 + 2 * k2 + 2 * k3 + k4)
            t += dt
        return Trajectory(t=np.array([t0, tf]), u=np.array([u0, u]))
