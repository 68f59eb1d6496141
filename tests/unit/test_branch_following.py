"""Sociable unit tests for branch following with quench and relax."""

import numpy as np
import pytest

from steadystates.continuation import BranchFollower, closest_branch_index, follow_branch
from steadystates.core.equations import HarmonicEquations
from steadystates.core.result import Result
from steadystates.time_steppers import RungeKutta4


def relaxing_result(stable0, stable1=None) -> Result:
    """
    Two branches x = 0 and x = 1 on a sweep of 5 points.

    The dynamics dx/dt = 1 - x relax every state onto the branch x = 1.
    The stability of the branches is prescribed.
    """
    eqs = HarmonicEquations(["x"], ["p"], lambda u, p: 1.0 - u)
    solutions = np.zeros((5, 2, 1))
    solutions[:, 1, 0] = 1.0
    if stable1 is None:
        stable1 = [True] * 5
    stable = np.stack([stable0, stable1], axis=1)
    result = Result(solutions, {"p": np.arange(5.0)}, equations=eqs,
                    classes={"physical": np.ones((5, 2), dtype=bool), "stable": stable})
    result.settings.verbose = False
    return result


def follower() -> BranchFollower:
    follower = BranchFollower(integrator=RungeKutta4(dt=0.1), tf=30, rng=0)
    follower.verbose = False
    return follower


def test_no_bifurcation() -> None:
    result = relaxing_result([True] * 5)
    branches, Ys = follower().follow(0, result, y="x")
    np.testing.assert_array_equal(branches, [0, 0, 0, 0, 0])
    assert Ys.shape == (5, 2)
    assert not np.any(Ys.mask)


def test_switch_at_bifurcation() -> None:
    result = relaxing_result([True, True, True, False, False])
    branches, Ys = follower().follow(0, result, y="x", sweep="right")
    np.testing.assert_array_equal(branches, [0, 0, 0, 1, 1])
    # the vanished branch is excluded from the dependent variable
    assert Ys.mask[3, 0] and Ys.mask[4, 0] and not Ys.mask[3, 1]
    np.testing.assert_allclose(Ys[np.arange(5), branches], [0, 0, 0, 1, 1])


def test_switch_sweeping_left() -> None:
    result = relaxing_result([False, False, True, True, True])
    branches, _ = follower().follow(0, result, y="x", sweep="left")
    np.testing.assert_array_equal(branches, [1, 1, 0, 0, 0])


def test_log_message(capsys) -> None:
    result = relaxing_result([True, True, True, False, False])
    result.settings.verbose = True
    follow_branch(0, result, y="x", tf=30, integrator=RungeKutta4(dt=0.1), rng=1)
    assert "bifurcation @ p = 3.0: switched branch 0 -> 1" in capsys.readouterr().out


def test_no_stable_branch_left() -> None:
    result = relaxing_result([True, True, True, False, False], [True, True, True, False, True])
    with pytest.raises(RuntimeError):
        follower().follow(0, result, y="x")


def test_invalid_arguments() -> None:
    result = relaxing_result([True] * 5)
    with pytest.raises(ValueError):
        follower().follow(0, result, y="x", sweep="up")
    with pytest.raises(IndexError):
        follower().follow(2, result, y="x")
    result_2d = Result(np.zeros((2, 2, 1, 1)), {"p": [0, 1], "q": [0, 1]}, variables=["x"],
                       classes={"physical": np.ones((2, 2, 1)), "stable": np.ones((2, 2, 1))})
    with pytest.raises(ValueError):
        follower().follow(0, result_2d, y="x")


def test_quench() -> None:
    result = relaxing_result([True, True, True, False, False])
    assert follower().quench(result, branch=0, index=3) == 1
    result_without_equations = Result(result.solutions, result.swept_parameters, variables=["x"],
                                      classes=result.classes)
    with pytest.raises(ValueError):
        follower().quench(result_without_equations, branch=0, index=3)


def test_closest_branch_index() -> None:
    result = relaxing_result([True, True, True, False, True])
    assert closest_branch_index(result, np.array([0.3]), 0) == 0
    assert closest_branch_index(result, np.array([0.7]), 0) == 1
    # branch 0 is not stable at index 3
    assert closest_branch_index(result, np.array([0.0]), 3) == 1
    result = relaxing_result([True] * 4 + [False], [True] * 4 + [False])
    with pytest.raises(RuntimeError):
        closest_branch_index(result, np.array([0.0]), 4)


def test_closest_branch_index_non_finite_state() -> None:
    # only branch 1 is physical and stable at index 1
    result = relaxing_result([True, False, True, True, True])
    assert closest_branch_index(result, np.array([np.nan]), 1) == 1
    assert closest_branch_index(result, np.array([1e200]), 1) == 1
    assert closest_branch_index(result, np.array([np.inf]), 1) == 1
