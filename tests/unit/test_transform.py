"""Unit tests for the parallel transformation of solutions."""

import numpy as np
import pytest

from steadystates.core.equations import HarmonicVariable
from steadystates.core.result import Result
from steadystates.core.transform import to_lab_frame, transform_solutions


def make_result(nthreads: int = 1) -> Result:
    rng = np.random.default_rng(1)
    solutions = rng.normal(size=(6, 7, 3, 2)) + 1j * rng.normal(size=(6, 7, 3, 2))
    result = Result(solutions, {"p": np.linspace(0, 1, 6), "q": np.linspace(1, 2, 7)},
                    fixed_parameters={"F": 2.0}, variables=["u1", "v1"], classes={})
    result.settings.nthreads = nthreads
    return result


def expected_amplitude(result: Result) -> np.ndarray:
    s = result.solutions
    p = result.swept_parameters["p"][:, np.newaxis, np.newaxis]
    q = result.swept_parameters["q"][np.newaxis, :, np.newaxis]
    return s[..., 0] ** 2 + s[..., 1] ** 2 + F_VALUE * p * q


F_VALUE = 2.0


def test_expression() -> None:
    result = make_result()
    transformed = transform_solutions(result, "u1^2 + v1^2 + F*p*q")
    assert transformed.shape == (6, 7, 3)
    assert transformed.dtype == result.solutions.dtype
    np.testing.assert_allclose(transformed, expected_amplitude(result))


def test_parallel_equals_serial() -> None:
    serial = transform_solutions(make_result(nthreads=1), "u1^2 + v1^2 + F*p*q")
    for nthreads in (2, 5, 100):
        parallel = transform_solutions(make_result(nthreads=nthreads), "u1^2 + v1^2 + F*p*q")
        np.testing.assert_array_equal(parallel, serial)


def test_callable() -> None:
    result = make_result(nthreads=3)
    transformed = transform_solutions(result, lambda v: v[0] * v[3], branches=[2])
    assert transformed.shape == (6, 7, 1)
    expected = result.solutions[..., 2, 0] * result.swept_parameters["q"][np.newaxis, :]
    np.testing.assert_allclose(transformed[..., 0], expected)


def test_realify() -> None:
    result = make_result(nthreads=4)
    transformed = transform_solutions(result, "u1^2 + v1^2", realify=True)
    assert transformed.dtype == np.float64
    expected = result.solutions.real[..., 0] ** 2 + result.solutions.real[..., 1] ** 2
    np.testing.assert_allclose(transformed, expected)


def test_boolean() -> None:
    result = make_result(nthreads=4)
    transformed = transform_solutions(result, "u1 > 0", realify=True)
    assert transformed.dtype == np.bool_
    np.testing.assert_array_equal(transformed, result.solutions.real[..., 0] > 0)


def test_rules_and_lists() -> None:
    result = make_result()
    transformed = transform_solutions(result, ["u1 + c", "v1 - c"], rules={"c": 3.0})
    assert isinstance(transformed, list) and len(transformed) == 2
    np.testing.assert_allclose(transformed[0], result.solutions[..., 0] + 3.0)
    np.testing.assert_allclose(transformed[1], result.solutions[..., 1] - 3.0)
    with pytest.raises(KeyError):
        transform_solutions(result, "u1 + c")


def test_each_solution_evaluated_once() -> None:
    result = make_result(nthreads=4)
    calls = []

    def f(v):
        calls.append(1)
        return v[0]

    transform_solutions(result, f)
    # one trial evaluation plus one per solution
    assert len(calls) == 1 + 6 * 7 * 3


def test_worker_errors_are_raised() -> None:
    result = make_result(nthreads=4)

    def f(v):
        if v[2] > 0.5:
            raise ArithmeticError("boom")
        return v[0]

    with pytest.raises(ArithmeticError):
        transform_solutions(result, f)


def test_to_lab_frame() -> None:
    variables = [HarmonicVariable("u1", "u", "omega", "x"), HarmonicVariable("v1", "v", "omega", "x"),
                 HarmonicVariable("a1", "a", None, "x")]
    result = Result(np.array([[[1.0, 0.5, 0.2]]]), {"omega": [2.0]}, variables=variables, classes={})
    t = np.linspace(0, 10, 50)
    x = to_lab_frame(result, "x", t, index=0, branch=0)
    np.testing.assert_allclose(x, np.cos(2 * t) + 0.5 * np.sin(2 * t) + 0.2)
    dx = to_lab_frame(result, "x", t, index=0, branch=0, velocity=True)
    np.testing.assert_allclose(dx, -2 * np.sin(2 * t) + np.cos(2 * t), atol=1e-12)
    with pytest.raises(KeyError):
        to_lab_frame(result, "y", t, index=0, branch=0)
