"""Unit tests for harmonic variables, equations of motion and expressions."""

import numpy as np
import pytest

from steadystates.core.equations import HarmonicEquations, HarmonicVariable, as_variables
from steadystates.core.expressions import build_function, evaluate_expression, parse_expression


def test_harmonic_variable() -> None:
    var = HarmonicVariable("u1", "u", "omega", "x")
    assert var.type == "u"
    with pytest.raises(ValueError):
        HarmonicVariable("w1", "w")
    variables = as_variables(["u1", var])
    assert variables[0] == HarmonicVariable("u1")
    assert variables[1] is var


def test_from_expressions() -> None:
    eqs = HarmonicEquations.from_expressions(["mu*u1 - v1", "u1 + mu*v1^2"], ["u1", "v1"], ["mu"])
    assert eqs.variable_names == ["u1", "v1"]
    u = np.array([1.0, 2.0])
    np.testing.assert_allclose(eqs.rhs(u, {"mu": 0.5}), [-1.5, 3.0])
    np.testing.assert_allclose(eqs.jacobian(u, {"mu": 0.5}), [[0.5, -1.0], [1.0, 2.0]])


def test_from_expressions_unknown_symbol() -> None:
    with pytest.raises(KeyError):
        HarmonicEquations.from_expressions(["mu*u1 - k"], ["u1"], ["mu"])
    with pytest.raises(ValueError):
        HarmonicEquations.from_expressions(["u1"], ["u1", "v1"], [])


def test_finite_difference_jacobian() -> None:
    def rhs(u, p):
        return np.array([p["a"] * u[0] ** 2 + u[1], u[0] * u[1]])

    eqs = HarmonicEquations(["u1", "v1"], ["a"], rhs)
    u = np.array([1.5, -0.5])
    expected = [[2 * 2.0 * 1.5, 1.0], [-0.5, 1.5]]
    np.testing.assert_allclose(eqs.jacobian(u, {"a": 2.0}), expected, rtol=1e-6)
    # complex states
    u = np.array([1.0 + 1j, 0.5])
    expected = [[2 * 2.0 * (1.0 + 1j), 1.0], [0.5, 1.0 + 1j]]
    np.testing.assert_allclose(eqs.jacobian(u, {"a": 2.0}), expected, rtol=1e-6)


def test_jacobian_function() -> None:
    eqs = HarmonicEquations.from_expressions(["mu*u1 - F*v1", "u1 + mu*v1"], ["u1", "v1"], ["mu", "F"])
    jac = eqs.jacobian_function(["mu"], {"F": 2.0})
    np.testing.assert_allclose(jac(np.array([0.0, 0.0, -1.0])), [[-1.0, -2.0], [1.0, -1.0]])


def test_parse_expression() -> None:
    expr = parse_expression("u1^2 + gamma*v1**2", ["u1", "v1", "gamma"])
    f = build_function(expr, ["u1", "v1", "gamma"])
    assert f(np.array([2.0, 1.0, 3.0])) == pytest.approx(7.0)
    with pytest.raises(ValueError):
        parse_expression("u1 +/ 2", ["u1"])


def test_build_function_substitutions() -> None:
    f = build_function("a*u1 + b", ["u1"], {"a": 2.0, "b": 1.0})
    assert f(np.array([3.0])) == pytest.approx(7.0)
    with pytest.raises(KeyError):
        build_function("a*u1 + c", ["u1"], {"a": 2.0})


def test_evaluate_expression() -> None:
    state = {"omega": 1.5, "u1": 2.0}
    assert evaluate_expression("omega", state) == 1.5
    assert evaluate_expression("2*omega", state) == pytest.approx(3.0)
    assert evaluate_expression(3, state) == 3
    with pytest.raises(KeyError):
        evaluate_expression("2*Omega", state)
