"""Classification of the solutions: physical, stable, Hopf-unstable and custom classes."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

from .profiling import profile
from .solvers import EigenSolver
from .transform import transform_solutions
from .types import Array

if TYPE_CHECKING:
    from .result import Result


def is_physical(solution: Array, im_tol: float = 1e-6) -> bool:
    """Is the solution real-valued (up to `im_tol`) and finite?"""
    solution = np.asarray(solution)
    return bool(np.all(np.isfinite(solution)) and np.all(np.abs(np.imag(solution)) < im_tol))


def is_stable(jacobian: Array, rel_tol: float = 1e-10) -> bool:
    """Are all eigenvalues of the Jacobian in the left half plane (up to `rel_tol`)?"""
    jacobian = np.asarray(jacobian)
    if not np.all(np.isfinite(jacobian)):
        return False
    eigenvalues = EigenSolver().eigenvalues(jacobian)
    return bool(np.all(eigenvalues.real < rel_tol))


def is_hopf_unstable(jacobian: Array, rel_tol: float = 1e-10) -> bool:
    """
    Is the solution unstable through exactly one complex-conjugate pair of eigenvalues?

    Such solutions may give rise to limit cycles (Hopf bifurcation).
    """
    jacobian = np.asarray(jacobian)
    if not np.all(np.isfinite(jacobian)):
        return False
    eigenvalues = EigenSolver().eigenvalues(jacobian)
    unstable = eigenvalues[eigenvalues.real > rel_tol]
    if len(unstable) != 2:
        return False
    return bool(np.all(np.abs(unstable.imag) > rel_tol) and np.isclose(unstable[0], np.conj(unstable[1])))


def _jacobian_condition(result: Result, condition: Callable[..., bool], **kwargs: Any) -> Callable[[Array], bool]:
    jacobian = result.jacobian
    if jacobian is None:
        raise ValueError("Classifying by the Jacobian requires the Jacobian of the system")

    def f(values: Array) -> bool:
        return condition(jacobian(values), **kwargs)

    return f


@profile
def classify_solutions(result: Result, condition: Callable[[Array], Any] | str, name: str,
                       physical: bool = True) -> None:
    """
    Add the class `name` holding the solutions for which `condition` is true.

    Parameters
    ----------
    result
        The result to classify.
    condition
        A boolean function of the vector (variables ++ swept values), or a
        boolean expression string like "u1^2 + v1^2 > 0.1".
    name
        The name of the new class.
    physical
        Restrict the class to physical solutions (the condition is then
        evaluated on real parts).
    """
    values = transform_solutions(result, condition, realify=physical)
    if values.dtype != np.bool_:
        raise ValueError(f"The condition of class '{name}' does not evaluate to booleans")
    if physical:
        values = values & result.classes["physical"]
    result.add_class(name, values)


@profile
def classify_default(result: Result) -> None:
    """
    Classify the solutions of `result` as "physical", "stable" and "Hopf".

    "stable" and "Hopf" are restricted to physical solutions. Requires the
    Jacobian function of the result.
    """
    if result.jacobian is None:
        raise ValueError("The default classification requires the Jacobian of the system")
    im_tol = result.settings.im_tol
    rel_tol = result.settings.rel_tol
    nvars = result.nvars
    physical = transform_solutions(result, lambda v: is_physical(v[:nvars], im_tol))
    result.add_class("physical", physical)
    stable = transform_solutions(result, _jacobian_condition(result, is_stable, rel_tol=rel_tol))
    result.add_class("stable", stable & physical)
    hopf = transform_solutions(result, _jacobian_condition(result, is_hopf_unstable, rel_tol=rel_tol))
    result.add_class("Hopf", hopf & physical)
