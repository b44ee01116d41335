from __future__ import annotations

import math

import numpy as np

from gaussquad.common.newton import (
    MAX_ITERATIONS,
    STEP_TOLERANCE,
    TOLERANCE,
    check_newton_options,
    checked_divide,
    mark_duplicate_roots,
    newton_root,
)
from gaussquad.common.polynomials import RECURRENCE, PolynomialEvaluator, legendre_p
from gaussquad.rules.rule import QuadratureRule, build_rule, check_integer, check_order, check_out


def _legendre_value_and_derivative(n: int):
    def evaluate(x: float) -> tuple[float, float]:
        p_n, p_prev = legendre_p(n, x)
        # (x^2 - 1) P_n'(x) = n (x P_n(x) - P_{n-1}(x))
        d_p_n = checked_divide(n * (x * p_n - p_prev), x * x - 1.0, f"Legendre derivative at x={x!r}")
        return p_n, d_p_n

    return evaluate


def gauss_legendre(
    n: int,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    strict: bool = False,
    out: tuple[np.ndarray, np.ndarray] | None = None,
) -> QuadratureRule:
    """
    Return the n-point Gauss-Legendre rule on [-1, 1].

    int_{-1}^{1} f(x) dx = sum_i f(points[i]) * weights[i] for every
    polynomial f of degree <= 2n - 1. Only the roots in (0, 1] are computed;
    the others are mirrored, so points are stored in descending order and
    points[i] == -points[n - 1 - i].

    Parameters
    ----------
    n : int
        Number of quadrature points, n >= 1.
    tol : float, optional
        Residual tolerance |P_n(x)| for Newton iteration.
    max_iter : int, optional
        Maximum number of Newton evaluations per root.
    step_tol : float, optional
        Newton step length below which a root counts as converged.
    strict : bool, optional
        Raise ConvergenceError instead of recording a non-converged root.
    out : tuple of numpy.ndarray, optional
        Pre-allocated (points, weights) arrays of shape (n,), filled in place.

    Returns
    -------
    QuadratureRule
        Points, weights and one status entry per computed root (ceil(n/2)).
    """
    n = check_order(n)
    check_newton_options(tol, max_iter, step_tol)
    points, weights = check_out(out, ((n,), (n,)))

    evaluate = _legendre_value_and_derivative(n)
    roots = []
    for i in range(1, (n + 1) // 2 + 1):
        x0 = math.cos(math.pi * (4.0 * i - 1.0) / (4.0 * n + 2.0))
        root = newton_root(evaluate, x0, tol=tol, max_iter=max_iter, step_tol=step_tol, label=f"Legendre root {i}")
        x = root.x
        w = checked_divide(2.0, (1.0 - x * x) * root.derivative**2, f"Legendre weight {i}")

        points[i - 1] = x
        points[n - i] = -x
        weights[i - 1] = w
        weights[n - i] = w
        roots.append(root)

    return build_rule(points, weights, roots, strict=strict)


def jacobi_weight_factor(n: int, a: int, b: int, polynomials: PolynomialEvaluator = RECURRENCE) -> float:
    """
    Normalization constant of the Gauss-Jacobi weights:

        -(2n+a+b+2) (n+a)! (n+b)! 2^(a+b) / ((n+a+b+1) (n+a+b)! (n+1)!)
    """
    fact = polynomials.factorial
    numerator = (2 * n + a + b + 2) * fact(n + a) * fact(n + b) * 2 ** (a + b)
    denominator = (n + a + b + 1) * fact(n + a + b) * fact(n + 1)
    return -(numerator / denominator)


def gauss_jacobi(
    n: int,
    a: int,
    b: int,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    strict: bool = False,
    polynomials: PolynomialEvaluator = RECURRENCE,
    out: tuple[np.ndarray, np.ndarray] | None = None,
) -> QuadratureRule:
    """
    Return the n-point Gauss-Jacobi rule on [-1, 1] for the weight (1-x)^a (1+x)^b.

    int_{-1}^{1} f(x) (1-x)^a (1+x)^b dx = sum_i f(points[i]) * weights[i]
    for every polynomial f of degree <= 2n - 1. Each root is refined
    independently from its asymptotic initial guess; points come out in
    descending order. Roots that converge onto an already-found root are
    recorded as ``RootStatus.DUPLICATE``, which makes the rule unconverged.

    Parameters
    ----------
    n : int
        Number of quadrature points, n >= 1.
    a, b : int
        Nonnegative integer exponents of the weight function.
    tol : float, optional
        Residual tolerance |P_n^{(a,b)}(x)| for Newton iteration.
    max_iter : int, optional
        Maximum number of Newton evaluations per root.
    step_tol : float, optional
        Newton step length below which a root counts as converged.
    strict : bool, optional
        Raise ConvergenceError instead of recording a non-converged root.
    polynomials : PolynomialEvaluator, optional
        Source of factorials and Jacobi polynomial values/derivatives.
    out : tuple of numpy.ndarray, optional
        Pre-allocated (points, weights) arrays of shape (n,), filled in place.

    Returns
    -------
    QuadratureRule
        Points, weights and one status entry per root.

    Raises
    ------
    ConvergenceError
        If ``strict`` is set and a root hit the iteration cap or duplicated
        another root.
    NumericalFailureError
        If a Newton step or weight divides by zero.
    """
    n = check_order(n)
    a = check_integer(a, "a", 0)
    b = check_integer(b, "b", 0)
    check_newton_options(tol, max_iter, step_tol)
    points, weights = check_out(out, ((n,), (n,)))

    weight_factor = jacobi_weight_factor(n, a, b, polynomials)

    def evaluate(x: float) -> tuple[float, float]:
        return polynomials.jacobi_p(n, a, b, x), polynomials.jacobi_p_derivative(n, a, b, x)

    roots = []
    for i in range(1, n + 1):
        x0 = math.cos(math.pi * (0.5 * a + i - 0.25) / (0.5 * (1.0 + a + b) + n))
        root = newton_root(evaluate, x0, tol=tol, max_iter=max_iter, step_tol=step_tol, label=f"Jacobi root {i}")
        p_next = float(polynomials.jacobi_p(n + 1, a, b, root.x))

        points[i - 1] = root.x
        weights[i - 1] = checked_divide(weight_factor, p_next * root.derivative, f"Jacobi weight {i}")
        roots.append(root)

    # no deflation: two seeds can converge onto the same root
    roots = mark_duplicate_roots(roots)
    return build_rule(points, weights, roots, strict=strict)


def map_to_interval(rule: QuadratureRule, lower: float, upper: float) -> QuadratureRule:
    """
    Map a rule on [-1, 1] onto [lower, upper].

    int_{lower}^{upper} f(y) dy = (upper-lower)/2 * sum_i f(((upper-lower) p_i + lower + upper)/2) w_i

    Parameters
    ----------
    rule : QuadratureRule
        One-dimensional rule on [-1, 1].
    lower, upper : float
        Interval end points.

    Returns
    -------
    QuadratureRule
        New rule; the convergence record is carried over.
    """
    if rule.dim != 1:
        raise ValueError("map_to_interval requires a one-dimensional rule")
    lower = float(lower)
    upper = float(upper)
    if not (math.isfinite(lower) and math.isfinite(upper)):
        raise ValueError("interval end points must be finite")

    half = 0.5 * (upper - lower)
    return QuadratureRule(
        points=half * rule.points + 0.5 * (lower + upper),
        weights=half * rule.weights,
        status=rule.status.copy(),
        iterations=rule.iterations.copy(),
    )


def line_quadrature(n_points: int = 2) -> tuple[np.ndarray, np.ndarray]:
    """
    Return quadrature points and weights on the unit segment [0, 1].

    Parameters
    ----------
    n_points : int, optional
        Number of quadrature points on the segment.

    Returns
    -------
    points : numpy.ndarray
        Quadrature points in [0, 1].
    weights : numpy.ndarray
        Quadrature weights.
    """
    points, weights = map_to_interval(gauss_legendre(n_points), 0.0, 1.0)
    return points, weights
