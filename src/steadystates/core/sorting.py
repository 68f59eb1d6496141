"""Ordering the branches of a 1D sweep by continuity."""

from __future__ import annotations

from typing import Any

import numpy as np
import scipy.optimize

#: the available sorting methods
SORTING_METHODS = ("hungarian", "nearest", "none")


def _distances(previous: np.ndarray, current: np.ndarray) -> np.ndarray:
    # squared distance between every pair of branches, NaN counts as infinitely far
    d = np.sum(np.abs(previous[:, np.newaxis, :] - current[np.newaxis, :, :]) ** 2, axis=-1)
    return np.where(np.isnan(d), np.inf, d)


def _assign_hungarian(d: np.ndarray) -> np.ndarray:
    # linear_sum_assignment rejects infinite costs, replace them by a large finite value
    finite = d[np.isfinite(d)]
    big = (finite.max() + 1.0) * d.shape[0] * 10 if finite.size else 1.0
    _, cols = scipy.optimize.linear_sum_assignment(np.where(np.isfinite(d), d, big))
    return cols


def _assign_nearest(d: np.ndarray) -> np.ndarray:
    # greedy: match the closest pair first, then the closest among the remaining ones
    n = d.shape[0]
    order = np.full(n, -1)
    taken = np.zeros(n, dtype=bool)
    for flat in np.argsort(d, axis=None, kind="stable"):
        i, j = np.unravel_index(flat, d.shape)
        if order[i] < 0 and not taken[j]:
            order[i] = j
            taken[j] = True
    return order


def sort_solutions(solutions: Any, method: str = "hungarian") -> np.ndarray:
    """
    Sort the branches of a 1D sweep such that they are continuous.

    At every grid point, the branches are permuted such that branch k is the
    one closest to branch k of the previous grid point.

    Parameters
    ----------
    solutions
        Array of shape (npoints, branch_count, nvars).
    method
        "hungarian" for an optimal assignment (minimal total distance),
        "nearest" for a greedy matching of the closest pairs, or "none".

    Returns
    -------
    np.ndarray
        A sorted copy of the solutions.
    """
    if method not in SORTING_METHODS:
        raise ValueError(f"Unknown sorting method '{method}', choose from {SORTING_METHODS}")
    sorted_solutions = np.array(solutions)
    if sorted_solutions.ndim != 3:
        raise ValueError("For the moment only 1 dimension sweeps can be sorted.")
    if method == "none":
        return sorted_solutions
    assign = _assign_hungarian if method == "hungarian" else _assign_nearest
    for i in range(1, sorted_solutions.shape[0]):
        d = _distances(sorted_solutions[i - 1], sorted_solutions[i])
        sorted_solutions[i] = sorted_solutions[i][assign(d)]
    return sorted_solutions
