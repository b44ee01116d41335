import math

import pytest

from gaussquad.common.newton import (
    ConvergenceError,
    NumericalFailureError,
    QuadratureError,
    NewtonResult,
    RootStatus,
    check_newton_options,
    checked_divide,
    mark_duplicate_roots,
    newton_root,
)


def _square_minus_two(x):
    return x * x - 2.0, 2.0 * x


def test_newton_finds_sqrt_two():
    result = newton_root(_square_minus_two, 1.0)
    assert result.converged
    assert result.status is RootStatus.CONVERGED
    assert math.isclose(result.x, math.sqrt(2.0), rel_tol=1e-15)
    assert 1 < result.iterations < 10
    assert math.isclose(result.derivative, 2.0 * result.x)


def test_newton_exact_start_uses_one_evaluation():
    result = newton_root(lambda x: (x - 0.25, 1.0), 0.25)
    assert result.converged
    assert result.iterations == 1


def test_newton_reports_iteration_cap():
    result = newton_root(_square_minus_two, 1.0, max_iter=2)
    assert not result.converged
    assert result.status is RootStatus.MAX_ITERATIONS
    assert result.iterations == 2
    # one step taken: 1 - (-1 / 2)
    assert result.x == 1.5


def test_newton_zero_derivative():
    with pytest.raises(NumericalFailureError, match="my root"):
        newton_root(lambda x: (1.0, 0.0), 0.0, label="my root")


def test_newton_non_finite_value():
    with pytest.raises(NumericalFailureError):
        newton_root(lambda x: (math.nan, 1.0), 0.0)


def test_checked_divide():
    assert checked_divide(1.0, 4.0, "q") == 0.25
    with pytest.raises(NumericalFailureError):
        checked_divide(1.0, 0.0, "q")
    with pytest.raises(NumericalFailureError):
        checked_divide(1.0, math.inf, "q")
    with pytest.raises(NumericalFailureError):
        checked_divide(1e300, 1e-300, "q")


@pytest.mark.parametrize(
    "tol,max_iter", [(0.0, 10), (-1e-3, 10), (math.nan, 10), ("1e-12", 10), (None, 10), (1e-12, 0), (1e-12, 2.5), (1e-12, True)]
)
def test_invalid_newton_options(tol, max_iter):
    with pytest.raises(ValueError):
        check_newton_options(tol, max_iter)


def test_error_hierarchy():
    assert issubclass(NumericalFailureError, QuadratureError)
    assert issubclass(ConvergenceError, QuadratureError)
    assert issubclass(QuadratureError, ArithmeticError)


@pytest.mark.parametrize("step_tol", [0.0, -1e-10, math.nan, "1e-10", True])
def test_invalid_step_tolerance(step_tol):
    with pytest.raises(ValueError, match="step_tol"):
        check_newton_options(1e-12, 10, step_tol)


def test_non_numeric_tolerance_message():
    with pytest.raises(ValueError, match="tol must be a positive number"):
        check_newton_options("small", 10)


def test_step_tolerance_stops_iteration():
    # a loose step tolerance accepts the iterate after the first short step
    loose = newton_root(_square_minus_two, 1.0, tol=1e-300, step_tol=0.5)
    tight = newton_root(_square_minus_two, 1.0, tol=1e-300, step_tol=1e-14)
    assert loose.converged
    assert loose.iterations < tight.iterations


def _result(x, status=RootStatus.CONVERGED):
    return NewtonResult(x, 0.0, 1.0, 3, status)


def test_mark_duplicate_roots():
    roots = [_result(0.5), _result(-0.2), _result(0.5 + 1e-12), _result(0.9)]
    marked = mark_duplicate_roots(roots)
    assert [r.status for r in marked] == [
        RootStatus.DUPLICATE,
        RootStatus.CONVERGED,
        RootStatus.DUPLICATE,
        RootStatus.CONVERGED,
    ]
    assert [r.x for r in marked] == [r.x for r in roots]
    assert not marked[0].converged


def test_mark_duplicate_roots_keeps_distinct_roots():
    roots = [_result(-0.5), _result(0.0, RootStatus.MAX_ITERATIONS), _result(0.5)]
    assert mark_duplicate_roots(roots) == roots
    assert mark_duplicate_roots(roots[:1]) == roots[:1]
