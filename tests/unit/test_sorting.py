"""Unit tests for the sorting of branches."""

import numpy as np
import pytest

from steadystates.core.sorting import sort_solutions


def crossing_branches() -> tuple[np.ndarray, np.ndarray]:
    """Three smooth branches, randomly permuted at every grid point."""
    x = np.linspace(0, 1, 20)
    branches = np.stack([x, 2 + x ** 2, -1 - x], axis=1)[..., np.newaxis]
    rng = np.random.default_rng(3)
    shuffled = np.array([b[rng.permutation(3)] for b in branches])
    shuffled[0] = branches[0]
    return branches, shuffled


@pytest.mark.parametrize("method", ["hungarian", "nearest"])
def test_sort_solutions(method: str) -> None:
    branches, shuffled = crossing_branches()
    sorted_solutions = sort_solutions(shuffled, method=method)
    np.testing.assert_array_equal(sorted_solutions, branches)
    # the input is not modified
    assert not np.array_equal(shuffled, branches)


def test_sort_solutions_none() -> None:
    _, shuffled = crossing_branches()
    np.testing.assert_array_equal(sort_solutions(shuffled, method="none"), shuffled)


def test_sort_solutions_nan() -> None:
    solutions = np.array([[[0.0], [np.nan]], [[np.nan], [0.1]]])
    sorted_solutions = sort_solutions(solutions)
    np.testing.assert_array_equal(sorted_solutions[1], [[0.1], [np.nan]])


def test_sort_solutions_errors() -> None:
    with pytest.raises(ValueError):
        sort_solutions(np.zeros((3, 2, 1)), method="bogus")
    with pytest.raises(ValueError):
        sort_solutions(np.zeros((3, 3, 2, 1)))
