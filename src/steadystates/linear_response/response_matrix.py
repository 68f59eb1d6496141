"""Linear response from the (precompiled) response matrix of the harmonic equations."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
from tqdm import tqdm

from steadystates.core.equations import HarmonicVariable, as_variables
from steadystates.core.expressions import build_function, evaluate_expression
from steadystates.core.profiling import profile
from steadystates.core.types import Array, ComplexArray

from .jacobian_response import _stable_solutions

if TYPE_CHECKING:
    from steadystates.core.result import Result


class ResponseMatrix:
    """
    The response matrix of the harmonic variables to a perturbing force.

    Every entry is a compiled function of the values of `symbols` followed by
    the frequency of the perturbation. The matrix is built once and evaluated
    for many states and frequencies.
    """

    def __init__(self, matrix: Sequence[Sequence[Callable[[Array], Any]]], symbols: Sequence[str],
                 variables: Sequence[str | HarmonicVariable], frequency: str = "Omega") -> None:
        """
        Initialize the ResponseMatrix.

        Parameters
        ----------
        matrix
            Square nested sequence of functions f(values), with values =
            [state[s] for s in symbols] + [frequency].
        symbols
            The state symbols the entries depend on.
        variables
            The harmonic variables, one per row/column of the matrix.
        frequency
            The name of the frequency symbol.
        """
        #: the compiled entries of the matrix
        self.matrix = [list(row) for row in matrix]
        #: the state symbols consumed by the entries (the frequency comes last)
        self.symbols = list(symbols)
        #: the harmonic variables corresponding to the rows/columns
        self.variables = as_variables(variables)
        #: name of the frequency symbol
        self.frequency = frequency
        n = len(self.matrix)
        if any(len(row) != n for row in self.matrix):
            raise ValueError("The response matrix must be square")
        if n != len(self.variables):
            raise ValueError(f"Response matrix of size {n} for {len(self.variables)} variables")

    @classmethod
    def from_expressions(cls, expressions: Sequence[Sequence[str]], symbols: Sequence[str],
                         variables: Sequence[str | HarmonicVariable], frequency: str = "Omega") -> ResponseMatrix:
        """Compile a matrix of expression strings over `symbols` and `frequency`."""
        free_symbols = list(symbols) + [frequency]
        matrix = [[build_function(expr, free_symbols) for expr in row] for row in expressions]
        return cls(matrix, symbols, variables, frequency)

    @property
    def size(self) -> int:
        """The number of rows (and columns)."""
        return len(self.matrix)

    def evaluate(self, state: Mapping[str, Any], omega: float) -> ComplexArray:
        """Evaluate the matrix for the steady state `state` at frequency `omega`."""
        values = np.array([state[s] for s in self.symbols] + [omega], dtype=complex)
        return np.array([[f(values) for f in row] for row in self.matrix], dtype=complex)

    def response_vector(self, state: Mapping[str, Any], omega: float) -> ComplexArray:
        """
        Response of the variables to the canonical unit force at frequency `omega`.

        The force perturbs every (u, v) quadrature pair by (1, i).
        """
        force = np.where(np.arange(self.size) % 2 == 0, 1.0 + 0j, 1.0j)
        return np.linalg.solve(self.evaluate(state, omega), force)

    def uv_pairs(self) -> list[tuple[int, int]]:
        """Indices of the (u, v) quadrature pairs belonging to the same harmonic."""
        pairs = []
        for i, u in enumerate(self.variables):
            if u.type != "u":
                continue
            for j, v in enumerate(self.variables):
                if v.type == "v" and v.natural_variable == u.natural_variable and v.omega == u.omega:
                    pairs.append((i, j))
                    break
        return pairs

    def a_indices(self) -> list[int]:
        """Indices of the non-oscillating variables."""
        return [i for i, a in enumerate(self.variables) if a.type == "a"]


# formulas to obtain up- and down- converted frequency components when going from the
# rotating frame into the lab frame
def plusamp(uv: ComplexArray) -> float:
    uv = np.asarray(uv)
    return float(np.linalg.norm(uv) ** 2 - 2 * (uv[0].imag * uv[1].real - uv[0].real * uv[1].imag))


def minusamp(uv: ComplexArray) -> float:
    uv = np.asarray(uv)
    return float(np.linalg.norm(uv) ** 2 + 2 * (uv[0].imag * uv[1].real - uv[0].real * uv[1].imag))


def get_response(rmat: ResponseMatrix, state: Mapping[str, Any], omega: float) -> float:
    """
    Calculate the total response to a perturbative force at frequency `omega`.

    Parameters
    ----------
    rmat
        The response matrix.
    state
        The steady state (values of all symbols of the response matrix and of
        the frequencies of the harmonic variables).
    omega
        The (lab frame) frequency of the perturbation.

    Raises
    ------
    ValueError
        If the response matrix has no typed (u, v or a) variables.
    """
    uv_pairs = rmat.uv_pairs()
    a_indices = rmat.a_indices()
    if not uv_pairs and not a_indices:
        raise ValueError("The response requires typed harmonic variables (u/v pairs or a-type variables)")
    resp = 0.0
    # uv-type
    for iu, iv in uv_pairs:
        u = rmat.variables[iu]
        this_omega = np.real(evaluate_expression(u.omega if u.omega is not None else 0.0, state))
        uv1 = rmat.response_vector(state, omega - this_omega)[[iu, iv]]
        uv2 = rmat.response_vector(state, -omega + this_omega)[[iu, iv]]
        resp += np.sqrt(plusamp(uv1) ** 2 + minusamp(uv2) ** 2)
    # a-type variables: no quadrature partner, so the cross term vanishes
    for ia in a_indices:
        a1 = abs(rmat.response_vector(state, omega)[ia]) ** 2
        a2 = abs(rmat.response_vector(state, -omega)[ia]) ** 2
        resp += np.sqrt(a1 ** 2 + a2 ** 2)
    return float(resp)


@profile
def get_linear_response(result: Result, rmat: ResponseMatrix, omega_range: Any, branch: int | Sequence[int],
                        show_progress: bool | None = None) -> np.ndarray:
    """
    Calculate the linear response of every stable solution of a branch.

    Parameters
    ----------
    result
        The result of a 1D sweep.
    rmat
        The response matrix of the system.
    omega_range
        The frequencies of the perturbation.
    branch
        The branch to analyze, or the followed branch at every grid point.
    show_progress
        Show a progress bar, defaults to the result's settings.

    Returns
    -------
    np.ndarray
        Response of shape (len(omega_range), number of stable solutions).
    """
    if show_progress is None:
        show_progress = result.settings.show_progress
    solutions = _stable_solutions(result, branch)
    omega_range = np.asarray(omega_range, dtype=float)
    C = np.zeros((len(omega_range), len(solutions)))
    for k, (i, b) in enumerate(tqdm(solutions, desc="Solving the linear response for each solution",
                                    disable=not show_progress)):
        state = result.get_single_solution(branch=b, index=i)
        for j, omega in enumerate(omega_range):
            C[j, k] = get_response(rmat, state, omega)
    return C
