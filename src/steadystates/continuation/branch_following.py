"""Following stable branches along a 1D sweep, through bifurcations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from steadystates.core.masks import MaskedArray, get_mask, get_solutions
from steadystates.core.profiling import profile
from steadystates.core.types import Array
from steadystates.time_steppers import Integrator, ScipyIntegrator

if TYPE_CHECKING:
    from steadystates.core.result import Result

#: the admissible sweep directions
SWEEP_DIRECTIONS = ("left", "right")

#: the classes a followed branch has to belong to
FOLLOWED_CLASSES = ("physical", "stable")


def closest_branch_index(result: Result, state: Array, index: Any) -> int:
    """
    Find the physical and stable branch at `index` closest to `state`.

    The distance is the sum of squared magnitudes of the differences of the
    variables. NaN distances count as infinitely far. Only physical and stable
    branches are candidates, so one of them is returned even for a non-finite
    state.

    Raises
    ------
    RuntimeError
        If there is no physical and stable branch at `index`.
    """
    idx = result.grid_index(index)
    eligible = get_mask(result, FOLLOWED_CLASSES)[idx]
    state = np.asarray(state)
    distances = np.sum(np.abs(result.solutions[idx] - state[np.newaxis, :]) ** 2, axis=1)
    distances = np.where(np.isnan(distances), np.inf, distances)
    candidates = np.flatnonzero(eligible)
    if candidates.size == 0:
        raise RuntimeError(f"No physical and stable branch at index {idx} to relax onto.")
    # only eligible branches compete, even if every distance is infinite
    return int(candidates[np.argmin(distances[candidates])])


class BranchFollower:
    """
    Follows a stable branch along a 1D parameter sweep.

    As long as the followed branch remains physical and stable, it is kept.
    When it vanishes (at a bifurcation), the system is quenched: the last
    solution of the vanished branch is perturbed, evolved in time until it has
    relaxed, and the stable branch closest to the final state is followed.
    """

    def __init__(self, integrator: Integrator | None = None, tf: float = 10000, epsilon: float = 1e-4,
                 rng: np.random.Generator | int | None = None) -> None:
        """
        Initialize the BranchFollower.

        Parameters
        ----------
        integrator
            The time integrator used to quench, defaults to a ScipyIntegrator.
        tf
            Duration of the time evolution; must be long enough for transients to decay.
        epsilon
            Magnitude of the random perturbation of quenched states, which breaks
            symmetries between otherwise equally accessible states.
        rng
            Random generator (or seed) for the perturbations.
        """
        #: the time integrator used to quench
        self.integrator = integrator if integrator is not None else ScipyIntegrator()
        #: the duration of the time evolution after a quench
        self.tf = tf
        #: the magnitude of the random perturbation of quenched states
        self.epsilon = epsilon
        #: the random generator for the perturbations
        self.rng = np.random.default_rng(rng)
        #: print a notice on every branch switch?
        self.verbose = True

    def log(self, *args, **kwargs) -> None:
        """
        print()-wrapper for log messages
        log messages are printed only if verbosity is switched on
        """
        if self.verbose:
            print(*args, **kwargs)

    @profile
    def quench(self, result: Result, branch: int, index: Any) -> int:
        """
        Relax the solution of `branch` at `index` onto a stable branch at `index`.

        The solution, typically complex (unphysical) where a branch has just
        vanished, is replaced by its real part plus a random perturbation, and
        evolved in time with the parameters at `index`.

        Returns
        -------
        int
            The physical and stable branch at `index` closest to the final state.
        """
        if result.equations is None:
            raise ValueError("Branch following requires the equations of motion of the result")
        state = result.get_single_solution(branch=branch, index=index)
        names = result.variable_names
        # take the real part for the quench and add some noise
        noisy = np.real([state[v] for v in names]) + self.epsilon * self.rng.random(len(names))
        state.update(zip(names, noisy))
        trajectory = self.integrator.integrate(result.equations, state, (0.0, self.tf))
        return closest_branch_index(result, trajectory.final_state, index)

    @profile
    def follow(self, starting_branch: int, result: Result, y: Any = "u1^2+v1^2",
               sweep: str = "right") -> tuple[np.ndarray, MaskedArray]:
        """
        Follow a stable branch along the sweep of `result`.

        Parameters
        ----------
        starting_branch
            The branch at the first point of the sweep (in sweep direction).
        result
            The result of a 1D sweep.
        y
            The dependent variable tracked along the sweep (expression string or
            function, see transform_solutions).
        sweep
            "right" proceeds from the first to the last grid point, "left"
            from the last to the first.

        Returns
        -------
        tuple[np.ndarray, MaskedArray]
            The followed branch at every grid point and the values of `y`
            (masked where not physical and stable), both in grid order.
        """
        if sweep not in SWEEP_DIRECTIONS:
            raise ValueError(f"Only the following (1D) sweeping directions are allowed: {SWEEP_DIRECTIONS}")
        if result.ndim != 1:
            raise ValueError("For the moment only 1 dimension sweeps are supported.")
        if not 0 <= starting_branch < result.branch_count:
            raise IndexError(f"Branch {starting_branch} out of range [0, {result.branch_count})")

        Ys = get_solutions(result, y, class_=FOLLOWED_CLASSES, realify=True)
        if sweep == "left":
            Ys = Ys[::-1]
        excluded = np.ma.getmaskarray(Ys)
        p1, values = next(iter(result.swept_parameters.items()))
        n = len(Ys)

        followed_branch = np.zeros(n, dtype=int)
        followed_branch[0] = starting_branch
        for i in range(1, n):
            previous = followed_branch[i - 1]
            if not excluded[i, previous]:
                followed_branch[i] = previous
                continue
            # bifurcation found
            next_index = i if sweep == "right" else n - i - 1
            followed_branch[i] = self.quench(result, previous, next_index)
            self.log(f"bifurcation @ {p1} = {np.real(values[next_index])}: "
                     f"switched branch {previous} -> {followed_branch[i]}")
        if sweep == "left":
            Ys = Ys[::-1]
            followed_branch = followed_branch[::-1].copy()
        return followed_branch, Ys


def follow_branch(starting_branch: int, result: Result, y: Any = "u1^2+v1^2", sweep: str = "right",
                  tf: float = 10000, epsilon: float = 1e-4, integrator: Integrator | None = None,
                  rng: np.random.Generator | int | None = None) -> tuple[np.ndarray, MaskedArray]:
    """
    Follow a stable branch along a 1D sweep, see BranchFollower.follow.

    When the followed branch is no longer physical and stable (e.g. at a
    bifurcation), the next stable branch is found by time evolving the
    perturbed previous solution (a quench) for the time `tf`.
    """
    follower = BranchFollower(integrator=integrator, tf=tf, epsilon=epsilon, rng=rng)
    follower.verbose = result.settings.verbose
    return follower.follow(starting_branch, result, y=y, sweep=sweep)
