"""Evaluating functions of the solutions over the whole parameter grid."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

import numpy as np

from .expressions import build_function, evaluate_expression
from .profiling import profile
from .types import Array

if TYPE_CHECKING:
    from .result import Result


def build_substituted(expr: str, result: Result, rules: Mapping[str, Any] | None = None) -> Callable[[Array], Any]:
    """
    Compile `expr` into a function of the variables and swept parameters of `result`.

    The fixed parameters of `result` and the additional `rules` (name -> value)
    are substituted before compiling.
    """
    substitutions = dict(result.fixed_parameters)
    substitutions.update(rules or {})
    return build_function(expr, result.free_symbols, substitutions)


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_)) or (isinstance(value, np.ndarray) and value.dtype == np.bool_)


@profile
def transform_solutions(result: Result, f: Callable[[Array], Any] | str | Sequence[str],
                        branches: Sequence[int] | None = None, realify: bool = False,
                        rules: Mapping[str, Any] | None = None) -> Any:
    """
    Evaluate `f` for every solution of `result`.

    `f` receives the vector of variables followed by the swept parameter values
    of the respective grid point and returns a number or a boolean. It is called
    exactly once per grid point and branch, from several worker threads, so it
    must not depend on any shared mutable state.

    Parameters
    ----------
    result
        The result holding the solutions.
    f
        A function of the vector, an expression string (parsed with sympy, fixed
        parameters and `rules` substituted) or a list of expression strings.
    branches
        The branches to evaluate, defaults to all branches.
    realify
        Pass the real part of the vector to `f`.
    rules
        Additional substitutions for expression strings.

    Returns
    -------
    np.ndarray
        Array of shape (*grid_shape, len(branches)); boolean if `f` returns
        booleans, otherwise of the dtype of the solutions (real if `realify`).
        A list of arrays if a list of expressions was given.
    """
    if isinstance(f, str):
        f = build_substituted(f, result, rules)
    elif not callable(f):
        return [transform_solutions(result, fi, branches=branches, realify=realify, rules=rules) for fi in f]
    if branches is None:
        branches = range(result.branch_count)
    branches = [int(b) for b in np.atleast_1d(branches)]

    n_vars = result.nvars
    pars = list(result.swept_parameters.values())
    # the type of the output array is decided by a trial evaluation
    trial = f(np.random.default_rng().random(n_vars + len(pars)))
    if _is_bool(trial):
        dtype = np.dtype(bool)
    elif realify:
        dtype = np.real(np.zeros(1, dtype=result.solutions.dtype)).dtype
    else:
        dtype = result.solutions.dtype
    transformed = np.empty(result.grid_shape + (len(branches),), dtype=dtype)
    flat_out = transformed.reshape(-1, len(branches))

    grid_size = math.prod(result.grid_shape)
    if grid_size == 0:
        return transformed
    nthreads = max(1, min(int(result.settings.nthreads), grid_size))
    chunk = math.ceil(grid_size / nthreads)
    vals_dtype = np.result_type(result.solutions.dtype, *[p.dtype for p in pars])

    def evaluate_batch(start: int, stop: int) -> None:
        # every batch writes only to its own rows of the output array
        vals = np.empty(n_vars + len(pars), dtype=vals_dtype)
        for flat in range(start, stop):
            idx = np.unravel_index(flat, result.grid_shape)
            # parameter values are common to all branches
            for i, p in enumerate(pars):
                vals[n_vars + i] = p[idx[i]]
            for k, branch in enumerate(branches):
                vals[:n_vars] = result.solutions[idx][branch]
                flat_out[flat, k] = f(vals.real.copy() if realify else vals.copy())

    batches = [(start, min(start + chunk, grid_size)) for start in range(0, grid_size, chunk)]
    if len(batches) == 1:
        evaluate_batch(*batches[0])
    else:
        with ThreadPoolExecutor(max_workers=nthreads) as executor:
            # consume the results to re-raise errors of the workers
            list(executor.map(lambda batch: evaluate_batch(*batch), batches))
    return transformed


def to_lab_frame(result: Result, natural_variable: str, times: Any, index: Any, branch: int,
                 velocity: bool = False) -> np.ndarray:
    """
    Transform a solution into the lab frame, i.e., invert the harmonic ansatz.

    x(t) = sum over the harmonics of x: u cos(wt) + v sin(wt) + a

    Parameters
    ----------
    result
        The result holding the solution.
    natural_variable
        The name of the lab frame variable, e.g. "x".
    times
        The times at which to evaluate.
    index
        The grid index of the solution.
    branch
        The branch of the solution.
    velocity
        Return the time derivative dx/dt instead of x.
    """
    soln = result.get_single_solution(branch=branch, index=index)
    times = np.asarray(times, dtype=float)
    variables = [v for v in result.variables if v.natural_variable == natural_variable]
    if not variables:
        raise KeyError(f"No harmonic variables belong to '{natural_variable}'")
    timetrace = np.zeros_like(times)
    for var in variables:
        if var.type is None:
            raise ValueError(f"The type of harmonic variable '{var.name}' is unknown")
        val = np.real(soln[var.name])
        if var.type == "a":
            if not velocity:
                timetrace += val
            continue
        w = np.real(evaluate_expression(var.omega if var.omega is not None else 0.0, soln))
        if var.type == "u":
            timetrace += -w * val * np.sin(w * times) if velocity else val * np.cos(w * times)
        elif var.type == "v":
            timetrace += w * val * np.cos(w * times) if velocity else val * np.sin(w * times)
    return timetrace
