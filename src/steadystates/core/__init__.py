"""
The 'core' package contains the steady-state store and its basic functionality.
"""

from .classification import classify_default, classify_solutions, is_hopf_unstable, is_physical, is_stable
from .equations import HarmonicEquations, HarmonicVariable
from .masks import apply_mask, get_mask, get_solutions
from .profiling import Profiler, profile
from .result import Result, ResultSettings
from .solvers import EigenSolver
from .sorting import sort_solutions
from .transform import to_lab_frame, transform_solutions

__all__ = [
    "Result",
    "ResultSettings",
    "HarmonicEquations",
    "HarmonicVariable",
    "get_mask",
    "apply_mask",
    "get_solutions",
    "transform_solutions",
    "to_lab_frame",
    "classify_default",
    "classify_solutions",
    "is_physical",
    "is_stable",
    "is_hopf_unstable",
    "sort_solutions",
    "EigenSolver",
    "profile",
    "Profiler",
]
