"""Harmonic variables and the rotating-frame equations of motion."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import sympy

from .expressions import parse_expression, symbols_for
from .types import Array, JacobianFunction

#: the admissible types of harmonic variables
VARIABLE_TYPES = ("u", "v", "a")


@dataclass(frozen=True)
class HarmonicVariable:
    """
    A variable of the harmonic ansatz.

    For a natural variable x(t) = u cos(wt) + v sin(wt) + a, `u` and `v`
    are the cosine and sine quadratures at frequency w and `a` is a
    non-oscillating component.
    """

    #: symbol name of the variable, e.g. "u1"
    name: str
    #: one of "u", "v", "a" or None if unknown
    type: str | None = None
    #: frequency of the harmonic, a number or an expression over the state symbols
    omega: str | float | None = None
    #: name of the natural (lab frame) variable this harmonic belongs to
    natural_variable: str = ""

    def __post_init__(self) -> None:
        if self.type is not None and self.type not in VARIABLE_TYPES:
            raise ValueError(f"Unknown type '{self.type}' of harmonic variable '{self.name}', "
                             f"choose from {VARIABLE_TYPES}")


def as_variables(variables: Sequence[str | HarmonicVariable]) -> list[HarmonicVariable]:
    """Promote plain names to (untyped) HarmonicVariables."""
    return [v if isinstance(v, HarmonicVariable) else HarmonicVariable(str(v)) for v in variables]


class HarmonicEquations:
    """
    First-order equations of motion du/dt = rhs(u, p) of the harmonic variables.

    Their fixed points are the steady states of the harmonic-balance system and
    their Jacobian decides on stability. The right-hand side receives the vector
    of variables (ordered as `variables`) and a dictionary of parameter values.
    """

    def __init__(self,
                 variables: Sequence[str | HarmonicVariable],
                 parameters: Sequence[str],
                 rhs: Callable[[Array, Mapping[str, Any]], Array],
                 jacobian: Callable[[Array, Mapping[str, Any]], Array] | None = None) -> None:
        #: the harmonic variables, in the order used by all vectors of unknowns
        self.variables = as_variables(variables)
        #: names of all parameters of the system
        self.parameters = list(parameters)
        #: step size for the finite difference Jacobian
        self.fd_epsilon = 1e-7
        self._rhs = rhs
        self._jacobian = jacobian

    @property
    def variable_names(self) -> list[str]:
        """The names of the variables."""
        return [v.name for v in self.variables]

    @property
    def nvars(self) -> int:
        """The number of variables."""
        return len(self.variables)

    def rhs(self, u: Array, params: Mapping[str, Any]) -> Array:
        """Evaluate the right-hand side du/dt for the unknowns u."""
        return np.asarray(self._rhs(u, params))

    def jacobian(self, u: Array, params: Mapping[str, Any]) -> Array:
        """
        Calculate the Jacobian J = d rhs(u) / du.

        Uses the exact Jacobian if one was given, otherwise central finite
        differences. For right-hand sides that are analytic in u, the finite
        differences are also valid for complex u.
        """
        if self._jacobian is not None:
            return np.asarray(self._jacobian(u, params))
        u = np.asarray(u)
        dtype = np.result_type(u.dtype, np.float64)
        N = u.size
        J = np.zeros((N, N), dtype=dtype)
        u1 = u.astype(dtype)
        for i in range(N):
            k = u1[i]
            h = self.fd_epsilon * max(1.0, abs(k))
            u1[i] = k + h
            f1 = self.rhs(u1, params)
            u1[i] = k - h
            f2 = self.rhs(u1, params)
            u1[i] = k
            J[:, i] = (f1 - f2) / (2 * h)
        return J

    def jacobian_function(self, swept: Sequence[str], fixed: Mapping[str, Any]) -> JacobianFunction:
        """
        Build the Jacobian function of a parameter sweep.

        Parameters
        ----------
        swept
            Names of the swept parameters, in the order of the grid axes.
        fixed
            Values of the fixed parameters.

        Returns
        -------
        JacobianFunction
            jac(values) with values = variables ++ swept parameter values.
            The closure holds no mutable state and is safe to call from
            several threads.
        """
        swept = tuple(swept)
        fixed = dict(fixed)
        nvars = self.nvars

        def jac(values: Array) -> Array:
            values = np.asarray(values)
            params = dict(fixed)
            params.update(zip(swept, values[nvars:]))
            return self.jacobian(values[:nvars], params)

        return jac

    def check_parameters(self, swept: Mapping[str, Any], fixed: Mapping[str, Any]) -> None:
        """
        Check that swept and fixed parameters are consistent with the equations.

        Raises
        ------
        ValueError
            If a variable is swept or fixed, or if a parameter is missing,
            given more than once, or unknown.
        """
        given = list(swept) + list(fixed)
        for var in self.variable_names:
            if var in given:
                raise ValueError(f"Parameter '{var}' is a variable of the system and as such cannot be "
                                 "fixed nor swept. Please only provide system parameters.")
        missing = [p for p in self.parameters if p not in given]
        if missing:
            raise ValueError(f"Missing parameters: {', '.join(missing)}")
        duplicates = [p for p in self.parameters if given.count(p) > 1]
        if duplicates:
            raise ValueError(f"Parameters appear multiple times: {', '.join(duplicates)}")
        extra = [p for p in given if p not in self.parameters]
        if extra:
            raise ValueError(f"Unknown parameters provided: {', '.join(extra)}")

    @classmethod
    def from_expressions(cls, expressions: Sequence[str],
                         variables: Sequence[str | HarmonicVariable],
                         parameters: Sequence[str]) -> HarmonicEquations:
        """
        Build the equations (and their exact Jacobian) from expression strings.

        Parameters
        ----------
        expressions
            One expression for du_i/dt per variable.
        variables
            The harmonic variables (or their names).
        parameters
            The names of the parameters appearing in the expressions.
        """
        variables = as_variables(variables)
        if len(expressions) != len(variables):
            raise ValueError(f"Got {len(expressions)} expressions for {len(variables)} variables")
        var_names = [v.name for v in variables]
        names = var_names + list(parameters)
        symbols = symbols_for(names)
        exprs = sympy.Matrix([parse_expression(e, names) for e in expressions])
        unknown = {str(s) for s in exprs.free_symbols} - set(names)
        if unknown:
            raise KeyError(f"Unknown symbol(s) {sorted(unknown)} in the equations of motion")
        u_syms = [symbols[n] for n in var_names]
        p_syms = [symbols[n] for n in parameters]
        f = sympy.lambdify([u_syms, p_syms], exprs, modules="numpy")
        J = sympy.lambdify([u_syms, p_syms], exprs.jacobian(u_syms), modules="numpy")
        p_names = list(parameters)

        def rhs(u: Array, params: Mapping[str, Any]) -> Array:
            return np.ravel(f(u, [params[p] for p in p_names]))

        def jacobian(u: Array, params: Mapping[str, Any]) -> Array:
            return np.asarray(J(u, [params[p] for p in p_names]))

        return cls(variables, parameters, rhs, jacobian)
