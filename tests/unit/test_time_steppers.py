"""Sociable unit tests for the time integrators."""

import numpy as np
import pytest

from steadystates.core.equations import HarmonicEquations
from steadystates.time_steppers import Integrator, RungeKutta4, ScipyIntegrator


def decay_equations() -> HarmonicEquations:
    """du/dt = -k*u. Analytical solution: u(t) = u(0) * exp(-k*t)."""
    return HarmonicEquations.from_expressions(["-k*u1", "-2*k*v1"], ["u1", "v1"], ["k"])


def test_rk4() -> None:
    trajectory = RungeKutta4(dt=0.01).integrate(decay_equations(), {"u1": 1.0, "v1": 2.0, "k": 1.0}, (0, 1))
    np.testing.assert_allclose(trajectory.t, [0, 1])
    np.testing.assert_allclose(trajectory.final_state, [np.exp(-1), 2 * np.exp(-2)], rtol=1e-8)


def test_rk4_last_step_shortened() -> None:
    # 1.05 is not a multiple of the step size
    trajectory = RungeKutta4(dt=0.1).integrate(decay_equations(), {"u1": 1.0, "v1": 0.0, "k": 1.0}, (0, 1.05))
    np.testing.assert_allclose(trajectory.final_state[0], np.exp(-1.05), rtol=1e-5)


@pytest.mark.parametrize("method", ["DOP853", "RK45", "BDF"])
def test_scipy_integrator(method: str) -> None:
    integrator = ScipyIntegrator(method=method, rtol=1e-8, atol=1e-10)
    trajectory = integrator.integrate(decay_equations(), {"u1": 1.0, "v1": 2.0, "k": 0.5}, (0, 4))
    assert trajectory.t[-1] == pytest.approx(4)
    np.testing.assert_allclose(trajectory.final_state, [np.exp(-2), 2 * np.exp(-4)], rtol=1e-5)


def test_scipy_integrator_real_part_of_complex_state() -> None:
    trajectory = ScipyIntegrator().integrate(decay_equations(), {"u1": 1.0 + 0j, "v1": 0j, "k": 1.0}, (0, 1))
    assert not np.iscomplexobj(trajectory.final_state)


def test_missing_variables() -> None:
    with pytest.raises(KeyError):
        RungeKutta4().integrate(decay_equations(), {"u1": 1.0, "k": 1.0}, (0, 1))


def test_abstract_integrator() -> None:
    with pytest.raises(NotImplementedError):
        Integrator().integrate(decay_equations(), {"u1": 1.0, "v1": 2.0, "k": 1.0}, (0, 1))
