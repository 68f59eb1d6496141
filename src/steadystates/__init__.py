"""
steadystates: Analysis of harmonic-balance steady states.

A package for working with the steady states of periodically driven systems
found over a grid of swept parameters. It stores and classifies the
solutions, transforms them into derived observables, follows stable branches
through bifurcations by time evolution and computes their linear response.
"""

from . import continuation, linear_response, time_steppers
from .continuation import follow_branch
from .core import (
    EigenSolver,
    HarmonicEquations,
    HarmonicVariable,
    Profiler,
    Result,
    ResultSettings,
    classify_solutions,
    get_mask,
    get_solutions,
    profile,
    sort_solutions,
    transform_solutions,
)

__all__ = [
    "Result",
    "ResultSettings",
    "HarmonicEquations",
    "HarmonicVariable",
    "get_mask",
    "get_solutions",
    "transform_solutions",
    "classify_solutions",
    "sort_solutions",
    "follow_branch",
    "EigenSolver",
    "profile",
    "Profiler",
    "continuation",
    "linear_response",
    "time_steppers",
]
