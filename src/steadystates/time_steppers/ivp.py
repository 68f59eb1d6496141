"""Adaptive time integration using scipy.integrate.solve_ivp."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import scipy.integrate

from steadystates.core.profiling import profile
from steadystates.core.types import StateMapping

from .time_steppers import Integrator, Trajectory

if TYPE_CHECKING:
    from steadystates.core.equations import HarmonicEquations


class ScipyIntegrator(Integrator):
    """
    Adaptive integration with scipy.integrate.solve_ivp.

    Only the final state is sampled, intermediate states are discarded.
    """

    def __init__(self, method: str = "DOP853", rtol: float = 1e-6, atol: float = 1e-9) -> None:
        #: the integration method of solve_ivp (e.g. "RK45", "DOP853", "BDF")
        self.method = method
        #: relative tolerance, see scipy.integrate.solve_ivp
        self.rtol = rtol
        #: absolute tolerance, see scipy.integrate.solve_ivp
        self.atol = atol
        #: use the Jacobian of the equations for implicit methods?
        self.use_jacobian = True

    @profile
    def integrate(self, equations: HarmonicEquations, state: StateMapping,
                  timespan: tuple[float, float]) -> Trajectory:
        u0, params = self.split_state(equations, state)
        # purely real states are integrated in real arithmetic
        if np.iscomplexobj(u0) and not np.any(u0.imag):
            u0 = u0.real
        u0 = u0.astype(np.result_type(u0.dtype, np.float64))
        t0, tf = float(timespan[0]), float(timespan[1])

        def f(t, u):
            return equations.rhs(u, params)

        options = {}
        if self.use_jacobian and self.method in ("BDF", "Radau", "LSODA"):
            options["jac"] = lambda t, u: equations.jacobian(u, params)
        sol = scipy.integrate.solve_ivp(f, (t0, tf), u0, method=self.method, t_eval=[tf],
                                        rtol=self.rtol, atol=self.atol, **options)
        if not sol.success:
            raise RuntimeError(f"Time integration failed at t={sol.t[-1] if sol.t.size else t0}: {sol.message}")
        return Trajectory(t=np.asarray(sol.t), u=np.asarray(sol.y).T)
