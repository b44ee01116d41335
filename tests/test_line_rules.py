import math

import numpy as np
import pytest

from gaussquad.common.newton import ConvergenceError, NumericalFailureError, RootStatus
from gaussquad.common.polynomials import RECURRENCE, SCIPY, PolynomialEvaluator
from gaussquad.rules.line import (
    gauss_jacobi,
    gauss_legendre,
    jacobi_weight_factor,
    line_quadrature,
    map_to_interval,
)


JACOBI_PARAMS = [(0, 0), (1, 0), (0, 1), (1, 1), (2, 0)]


def _jacobi_weight_integral(a, b):
    # int_{-1}^{1} (1-x)^a (1+x)^b dx = 2^(a+b+1) B(a+1, b+1)
    return 2.0 ** (a + b + 1) * math.factorial(a) * math.factorial(b) / math.factorial(a + b + 1)


@pytest.mark.parametrize("n", range(1, 21))
def test_legendre_weights_sum_to_two(n):
    rule = gauss_legendre(n)
    assert abs(rule.weights.sum() - 2.0) < 1e-12


@pytest.mark.parametrize("n", range(1, 21))
def test_legendre_symmetry(n):
    points, weights = gauss_legendre(n)
    assert np.allclose(points, -points[::-1], atol=1e-14)
    assert np.allclose(weights, weights[::-1], rtol=1e-13)


@pytest.mark.parametrize("n", range(1, 13))
def test_legendre_exact_for_monomials(n):
    rule = gauss_legendre(n)
    for k in range(2 * n):
        exact = 0.0 if k % 2 else 2.0 / (k + 1)
        assert abs(rule.integrate(lambda x: x**k) - exact) < 1e-10


def test_legendre_two_points():
    points, weights = gauss_legendre(2)
    assert np.allclose(np.sort(points), [-0.5773502691896257, 0.5773502691896257], atol=1e-10)
    assert np.allclose(weights, [1.0, 1.0], atol=1e-10)


def test_legendre_one_point():
    rule = gauss_legendre(1)
    assert np.allclose(rule.points, [0.0])
    assert np.allclose(rule.weights, [2.0])
    assert rule.converged


def test_legendre_points_descending_inside_interval():
    points, _ = gauss_legendre(9)
    assert np.all(np.diff(points) < 0)
    assert np.all(np.abs(points) < 1.0)


def test_legendre_status_per_computed_root():
    rule = gauss_legendre(7)
    assert rule.converged
    assert len(rule.status) == 4
    assert np.all(rule.iterations >= 1)
    assert np.all(rule.iterations <= 100)


def test_legendre_matches_numpy():
    ref_points, ref_weights = np.polynomial.legendre.leggauss(10)
    points, weights = gauss_legendre(10)
    order = np.argsort(points)
    assert np.allclose(points[order], ref_points, atol=1e-13)
    assert np.allclose(weights[order], ref_weights, atol=1e-13)


@pytest.mark.parametrize("n", range(1, 16))
def test_jacobi_zero_exponents_match_legendre(n):
    leg_points, leg_weights = gauss_legendre(n)
    jac_points, jac_weights = gauss_jacobi(n, 0, 0)
    assert np.allclose(jac_points, leg_points, atol=1e-8)
    assert np.allclose(jac_weights, leg_weights, atol=1e-8)


@pytest.mark.parametrize("a,b", JACOBI_PARAMS)
@pytest.mark.parametrize("n", [1, 2, 3, 5, 8])
def test_jacobi_weight_sum(n, a, b):
    rule = gauss_jacobi(n, a, b)
    assert abs(rule.weights.sum() - _jacobi_weight_integral(a, b)) < 1e-8
    assert rule.converged


@pytest.mark.parametrize("a,b", JACOBI_PARAMS)
@pytest.mark.parametrize("n", [1, 2, 4, 7])
def test_jacobi_exact_for_monomials(n, a, b):
    rule = gauss_jacobi(n, a, b)
    # reference: a Legendre rule exact for the whole weighted integrand
    reference = gauss_legendre(2 * n + a + b + 2)
    for k in range(2 * n):
        exact = reference.integrate(lambda x: x**k * (1.0 - x) ** a * (1.0 + x) ** b)
        assert abs(rule.integrate(lambda x: x**k) - exact) < 1e-10


@pytest.mark.parametrize("a", range(5))
@pytest.mark.parametrize("b", range(5))
@pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 8, 13, 20, 40])
def test_jacobi_roots_are_distinct(n, a, b):
    rule = gauss_jacobi(n, a, b)
    assert rule.converged
    points, weights = rule
    gaps = np.diff(np.sort(points))
    assert np.all(gaps > 1e-6)
    assert np.all(np.abs(points) < 1.0)
    assert np.all(weights > 0.0)


@pytest.mark.parametrize("n,a,b", [(10, 5, 0), (5, 5, 0), (5, 0, 5), (3, 6, 0), (4, 1, 6)])
def test_jacobi_flags_coincident_roots(n, a, b):
    rule = gauss_jacobi(n, a, b)
    assert not rule.converged
    duplicates = [i for i, s in enumerate(rule.status) if s is RootStatus.DUPLICATE]
    assert len(duplicates) >= 2
    gaps = np.diff(np.sort(rule.points[duplicates]))
    assert np.min(gaps) < 1e-8

    with pytest.raises(ConvergenceError, match="duplicate"):
        gauss_jacobi(n, a, b, strict=True)


@pytest.mark.parametrize("step_tol", [0.0, -1.0, "1e-10"])
def test_line_rules_validate_step_tolerance(step_tol):
    with pytest.raises(ValueError, match="step_tol"):
        gauss_legendre(4, step_tol=step_tol)
    with pytest.raises(ValueError, match="step_tol"):
        gauss_jacobi(4, 1, 0, step_tol=step_tol)


def test_line_rules_use_step_tolerance():
    # with a residual target that cannot be met, the step test ends the iteration
    loose = gauss_jacobi(6, 1, 0, tol=1e-300, step_tol=1e-6)
    tight = gauss_jacobi(6, 1, 0, tol=1e-300, step_tol=1e-14)
    assert loose.converged
    assert loose.iterations.sum() <= tight.iterations.sum()
    assert np.allclose(loose.points, tight.points, atol=1e-10)

    rule = gauss_legendre(8, tol=1e-300, step_tol=1e-6)
    assert rule.converged
    assert abs(rule.weights.sum() - 2.0) < 1e-10


def test_jacobi_matches_scipy_roots():
    from scipy.special import roots_jacobi

    ref_points, ref_weights = roots_jacobi(6, 1, 0)
    points, weights = gauss_jacobi(6, 1, 0)
    order = np.argsort(points)
    assert np.allclose(points[order], ref_points, atol=1e-12)
    assert np.allclose(weights[order], ref_weights, atol=1e-12)


def test_jacobi_with_scipy_evaluator():
    ours = gauss_jacobi(7, 1, 0)
    theirs = gauss_jacobi(7, 1, 0, polynomials=SCIPY)
    assert np.allclose(ours.points, theirs.points, atol=1e-12)
    assert np.allclose(ours.weights, theirs.weights, atol=1e-12)


def test_jacobi_weight_factor_large_order():
    n, a, b = 200, 1, 0
    expected = -(2 * n + a + b + 2) / (n + a + b + 1) * 2.0 ** (a + b) * math.exp(
        math.lgamma(n + a + 1) + math.lgamma(n + b + 1) - math.lgamma(n + a + b + 1) - math.lgamma(n + 2)
    )
    assert math.isclose(jacobi_weight_factor(n, a, b), expected, rel_tol=1e-10)


def test_jacobi_zero_derivative_is_reported():
    broken = PolynomialEvaluator(
        factorial=RECURRENCE.factorial,
        jacobi_p=lambda n, a, b, x: 1.0,
        jacobi_p_derivative=lambda n, a, b, x: 0.0,
    )
    with pytest.raises(NumericalFailureError, match="Jacobi root 1"):
        gauss_jacobi(3, 0, 0, polynomials=broken)


def test_iteration_cap_recorded():
    rule = gauss_legendre(6, max_iter=1)
    assert not rule.converged
    assert all(s is RootStatus.MAX_ITERATIONS for s in rule.status)
    assert np.all(rule.iterations == 1)


def test_iteration_cap_strict():
    with pytest.raises(ConvergenceError):
        gauss_legendre(6, max_iter=1, strict=True)
    with pytest.raises(ConvergenceError):
        gauss_jacobi(4, 1, 0, max_iter=1, strict=True)


@pytest.mark.parametrize("n", [0, -3, 2.0, True, "4"])
def test_invalid_order(n):
    with pytest.raises(ValueError):
        gauss_legendre(n)
    with pytest.raises(ValueError):
        gauss_jacobi(n, 0, 0)


@pytest.mark.parametrize("a,b", [(-1, 0), (0, -2), (0.5, 0), (0, 1.5)])
def test_invalid_exponents(a, b):
    with pytest.raises(ValueError):
        gauss_jacobi(3, a, b)


def test_invalid_newton_options():
    with pytest.raises(ValueError, match="tol"):
        gauss_legendre(3, tol=0.0)
    with pytest.raises(ValueError, match="tol"):
        gauss_jacobi(3, 1, 0, tol="1e-12")
    with pytest.raises(ValueError, match="max_iter"):
        gauss_jacobi(3, 1, 0, max_iter=0)


def test_fills_caller_buffers():
    points = np.zeros(5)
    weights = np.zeros(5)
    rule = gauss_legendre(5, out=(points, weights))
    assert rule.points is points
    assert rule.weights is weights
    assert np.isclose(weights.sum(), 2.0)

    jac_points = np.zeros(4)
    jac_weights = np.zeros(4)
    gauss_jacobi(4, 1, 0, out=(jac_points, jac_weights))
    assert np.isclose(jac_weights.sum(), 2.0)


@pytest.mark.parametrize(
    "out",
    [
        (np.zeros(4), np.zeros(5)),
        (np.zeros(5), np.zeros(4)),
        (np.zeros(5, dtype=int), np.zeros(5)),
        ([0.0] * 5, np.zeros(5)),
        (np.zeros(5),),
    ],
)
def test_rejects_bad_buffers(out):
    with pytest.raises(ValueError):
        gauss_legendre(5, out=out)


def test_map_to_interval():
    rule = map_to_interval(gauss_legendre(2), 0.0, 2.0)
    assert np.isclose(rule.weights.sum(), 2.0)
    assert np.isclose(rule.integrate(lambda x: x**2), 8.0 / 3.0)
    assert np.isclose(rule.integrate(lambda x: x**3), 4.0)
    assert np.all((rule.points > 0.0) & (rule.points < 2.0))


def test_map_to_interval_rejects_bad_input():
    with pytest.raises(ValueError):
        map_to_interval(gauss_legendre(2), 0.0, math.inf)


def test_line_quadrature_unit_segment():
    points, weights = line_quadrature(3)
    assert np.isclose(weights.sum(), 1.0)
    assert np.all((points > 0.0) & (points < 1.0))
    assert np.isclose(np.dot(points**5, weights), 1.0 / 6.0)
