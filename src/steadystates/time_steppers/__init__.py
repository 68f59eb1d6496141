"""
Time integration of the equations of motion.

This package provides a fixed-step Runge-Kutta scheme and an adaptive
integrator based on scipy.integrate.solve_ivp. Both evolve an initial state
over a time span and return a Trajectory.
"""

from .ivp import ScipyIntegrator
from .runge_kutta import RungeKutta4
from .time_steppers import Integrator, Trajectory

__all__ = [
    "Integrator",
    "Trajectory",
    "RungeKutta4",
    "ScipyIntegrator",
]
