"""Linear response from the eigenvalues of the Jacobian in the rotating frame."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
from tqdm import tqdm

from steadystates.core.masks import MaskedArray, get_mask
from steadystates.core.profiling import profile
from steadystates.core.solvers import EigenSolver
from steadystates.core.types import Array, ClassSelection

if TYPE_CHECKING:
    from steadystates.core.result import Result


def _stable_solutions(result: Result, branch: int | Sequence[int]) -> list[tuple[int, int]]:
    """(grid index, branch) of the stable solutions of a branch or of a followed branch."""
    if result.ndim != 1:
        raise ValueError("For the moment only 1 dimension sweeps are supported.")
    npoints = result.grid_shape[0]
    if np.isscalar(branch):
        branches = np.full(npoints, int(branch))  # type: ignore[arg-type]
    else:
        branches = np.asarray(branch, dtype=int)
        if branches.shape != (npoints,):
            raise ValueError(f"Got {branches.size} followed branches for a sweep of {npoints} points")
    if "stable" not in result.classes:
        raise KeyError(f"Undefined class 'stable', available: {list(result.classes)}")
    stable = result.classes["stable"]
    solutions =[(i, int(b)) for i, b in enumerate(branches) if stable[i, b]]
    if not solutions:
        raise ValueError("Cannot generate a spectrum - no stable solutions!")
    return solutions


def rotframe_response(eigenvalues: Array, omega_range: Any, damping_mod: float) -> np.ndarray:
    """
    Sum of the responses of all eigenmodes for every frequency of `omega_range`.

    Each eigenvalue l contributes 1 / sqrt((Im(l)^2 - w^2)^2 + w^2 damping_mod^2 Re(l)^2),
    which diverges (inf) for undamped modes at resonance.
    """
    w = np.asarray(omega_range, dtype=float)[:, np.newaxis]
    lam = np.asarray(eigenvalues)[np.newaxis, :]
    denominator = np.sqrt((lam.imag ** 2 - w ** 2) ** 2 + w ** 2 * damping_mod ** 2 * lam.real ** 2)
    with np.errstate(divide="ignore"):
        return np.sum(1.0 / denominator, axis=1)


@profile
def get_rotframe_jacobian_response(result: Result, omega_range: Any, branch: int | Sequence[int],
                                   damping_mod: float, show_progress: bool | None = None) -> np.ndarray:
    """
    Calculate the rotating frame Jacobian response of a branch.

    The Jacobian is diagonalized for every stable solution of the branch and
    the responses of its eigenmodes are summed for each frequency.

    Parameters
    ----------
    result
        The result of a 1D sweep.
    omega_range
        The frequencies at which to evaluate the response.
    branch
        The branch to analyze, or the followed branch at every grid point
        (as returned by follow_branch).
    damping_mod
        Modification factor of the damping (real parts of the eigenvalues).
    show_progress
        Show a progress bar, defaults to the result's settings.

    Returns
    -------
    np.ndarray
        Response of shape (len(omega_range), number of stable solutions).

    Raises
    ------
    ValueError
        If the branch has no stable solutions.
    """
    if result.jacobian is None:
        raise ValueError("The linear response requires the Jacobian of the system")
    if show_progress is None:
        show_progress = result.settings.show_progress
    solutions = _stable_solutions(result, branch)
    omega_range = np.asarray(omega_range, dtype=float)
    eigen_solver = EigenSolver()
    C = np.zeros((len(omega_range), len(solutions)))
    for k, (i, b) in enumerate(tqdm(solutions, desc="Diagonalizing the Jacobian for each solution",
                                    disable=not show_progress)):
        jac = result.jacobian(result.get_variable_solutions(branch=b, index=i))
        C[:, k] = rotframe_response(eigen_solver.eigenvalues(jac), omega_range, damping_mod)
    return C


def _branch_jacobians(result: Result, branch: int) -> list[Array]:
    if result.ndim != 1:
        raise ValueError("For the moment only 1 dimension sweeps are supported.")
    if result.jacobian is None:
        raise ValueError("The eigenvalues require the Jacobian of the system")
    jacobians = []
    for i in range(result.grid_shape[0]):
        jac = np.asarray(result.jacobian(result.get_variable_solutions(branch=branch, index=i)))
        if np.any(np.isnan(jac)):
            raise np.linalg.LinAlgError(
                "The branch contains NaN values. "
                "Likely, the branch has non-physical solutions in the parameter sweep")
        jacobians.append(jac)
    return jacobians


@profile
def eigenvalues(result: Result, branch: int, class_: ClassSelection = ("physical",)) -> MaskedArray:
    """
    Calculate the eigenvalues of the Jacobian along a branch of a 1D sweep.

    Parameters
    ----------
    result
        The result of a 1D sweep.
    branch
        The branch to analyze.
    class_
        Only solutions of these classes are kept, the others are masked.

    Returns
    -------
    MaskedArray
        Eigenvalues of shape (npoints, nvars), sorted by descending real part.

    Raises
    ------
    numpy.linalg.LinAlgError
        If a Jacobian along the branch contains NaN values.
    """
    keep = get_mask(result, class_, branches=[branch])[:, 0]
    eigen_solver = EigenSolver()
    values = np.array([eigen_solver.eigenvalues(jac) for jac in _branch_jacobians(result, branch)])
    masked = np.ma.masked_array(values, mask=np.repeat(~keep[:, np.newaxis], values.shape[1], axis=1))
    masked.set_fill_value(np.nan)
    return masked


@profile
def eigenvectors(result: Result, branch: int, class_: ClassSelection = ("physical",)) -> MaskedArray:
    """
    Calculate the eigenvectors of the Jacobian along a branch of a 1D sweep.

    Returns
    -------
    MaskedArray
        Shape (npoints, nvars, nvars), the eigenvectors being the rows of each
        matrix, sorted by descending real part of their eigenvalues.
        Solutions not in `class_` are masked.
    """
    keep = get_mask(result, class_, branches=[branch])[:, 0]
    eigen_solver = EigenSolver()
    vectors = np.array([eigen_solver.solve(jac)[1] for jac in _branch_jacobians(result, branch)])
    mask = np.broadcast_to(~keep[:, np.newaxis, np.newaxis], vectors.shape).copy()
    masked = np.ma.masked_array(vectors, mask=mask)
    masked.set_fill_value(np.nan)
    return masked
