"""
Turning expression strings into numeric functions.

Expressions are parsed with sympy, known values are substituted and the
result is compiled into a numpy function of a single vector argument,
whose entries follow the order of the given free symbols.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import numpy as np
import sympy
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

_TRANSFORMATIONS = standard_transformations + (convert_xor,)


def symbols_for(names: Iterable[str]) -> dict[str, sympy.Symbol]:
    """Create a sympy symbol for every name, keyed by the name."""
    return {name: sympy.Symbol(name) for name in names}


def parse_expression(expr: str, names: Iterable[str]) -> sympy.Expr:
    """
    Parse a string into a sympy expression.

    Every name in `names` is parsed as a plain symbol, shadowing sympy's own
    meaning of names like `gamma`, `E` or `I`. Both `^` and `**` denote powers.

    Parameters
    ----------
    expr
        The expression string, e.g. "u1^2 + v1^2".
    names
        The symbol names that may appear in the expression.
    """
    local_dict: dict[str, Any] = dict(symbols_for(names))
    try:
        return parse_expr(expr, local_dict=local_dict, transformations=_TRANSFORMATIONS)
    except (SyntaxError, TypeError, sympy.SympifyError) as err:
        raise ValueError(f"Could not parse the expression '{expr}': {err}") from err


def build_function(expr: str | sympy.Expr, free_symbols: Sequence[str],
                   substitutions: Mapping[str, Any] | None = None) -> Callable[[np.ndarray], Any]:
    """
    Compile an expression into a function of one vector.

    Parameters
    ----------
    expr
        The expression, either as string or as sympy expression.
    free_symbols
        The names of the entries of the vector argument, in order.
    substitutions
        Values to substitute before compiling (e.g. fixed parameters).

    Returns
    -------
    Callable
        f(values) evaluating the expression for values[i] -> free_symbols[i].

    Raises
    ------
    KeyError
        If the expression contains a symbol that is neither free nor substituted.
    """
    substitutions = dict(substitutions or {})
    names = list(free_symbols) + [k for k in substitutions if k not in free_symbols]
    if isinstance(expr, str):
        expr = parse_expression(expr, names)
    symbols = symbols_for(names)
    subbed = expr.subs({symbols[k]: v for k, v in substitutions.items()})
    unknown = {str(s) for s in getattr(subbed, "free_symbols", set())} - set(free_symbols)
    if unknown:
        raise KeyError(f"Unknown symbol(s) {sorted(unknown)} in expression '{expr}'")
    return sympy.lambdify([[symbols[name] for name in free_symbols]], subbed, modules="numpy")


def evaluate_expression(expr: str | float | complex, state: Mapping[str, Any]) -> complex:
    """
    Evaluate an expression (or pass through a number) for the values in `state`.

    Used e.g. for the frequencies of harmonic variables, which may be given
    as a symbol name ("omega") or an expression ("2*omega").
    """
    if not isinstance(expr, str):
        return complex(expr)
    if expr in state:
        return complex(state[expr])
    parsed = parse_expression(expr, state.keys())
    value = parsed.subs({sympy.Symbol(k): v for k, v in state.items()})
    try:
        return complex(value)
    except TypeError as err:
        raise KeyError(f"Expression '{expr}' could not be evaluated, remaining: {value}") from err
