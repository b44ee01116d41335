from __future__ import annotations

import numpy as np

from gaussquad.common.newton import MAX_ITERATIONS, STEP_TOLERANCE, TOLERANCE
from gaussquad.common.polynomials import RECURRENCE, PolynomialEvaluator
from gaussquad.rules.line import gauss_jacobi
from gaussquad.rules.rule import QuadratureRule, check_order, check_out


def collapse_to_triangle(
    rule0: QuadratureRule,
    rule1: QuadratureRule,
    *,
    out: tuple[np.ndarray, np.ndarray] | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Map a tensor product of two line rules onto the reference triangle.

    The collapsed (Duffy) coordinates are

        x = (1 + s) / 2
        y = (1 + t) (1 - s) / 4

    with s from ``rule1`` (outer) and t from ``rule0`` (inner). The Jacobian
    (1 - s) / 8 is supplied by ``rule1`` carrying the (1 - s) weight, leaving
    the constant factor 1/8 on the weights.

    Parameters
    ----------
    rule0 : QuadratureRule
        Gauss-Jacobi rule with (a, b) = (0, 0), shape (N,).
    rule1 : QuadratureRule
        Gauss-Jacobi rule with (a, b) = (1, 0), shape (M,).
    out : tuple of numpy.ndarray, optional
        Pre-allocated arrays of shape (M * N, 2) and (M * N,).

    Returns
    -------
    points : numpy.ndarray, shape (M * N, 2)
        Points inside the reference triangle; index i * N + j pairs
        rule1 point i with rule0 point j.
    weights : numpy.ndarray, shape (M * N,)
        Quadrature weights summing to the triangle area 1/2.
    """
    if rule0.dim != 1 or rule1.dim != 1:
        raise ValueError("collapse_to_triangle requires one-dimensional rules")

    n_inner = rule0.n_points
    n_outer = rule1.n_points
    points, weights = check_out(out, ((n_outer * n_inner, 2), (n_outer * n_inner,)))

    s = rule1.points[:, None]
    t = rule0.points[None, :]
    points[:, 0] = np.broadcast_to(0.5 * (1.0 + s), (n_outer, n_inner)).ravel()
    points[:, 1] = (0.25 * (1.0 + t) * (1.0 - s)).ravel()
    weights[:] = np.outer(rule1.weights, rule0.weights).ravel() * 0.125
    return points, weights


def triangle_quadrature(
    n: int,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    strict: bool = False,
    polynomials: PolynomialEvaluator = RECURRENCE,
    out: tuple[np.ndarray, np.ndarray] | None = None,
) -> QuadratureRule:
    """
    Return an n^2-point rule on the reference triangle (0,0), (1,0), (0,1).

    int_0^1 int_0^{1-y} f(x, y) dx dy = sum_i f(points[i, 0], points[i, 1]) * weights[i]
    for every polynomial f of total degree <= 2n - 1.

    Parameters
    ----------
    n : int
        Number of points per collapsed direction, n >= 1.
    tol : float, optional
        Residual tolerance for the underlying Gauss-Jacobi rules.
    max_iter : int, optional
        Maximum number of Newton evaluations per root.
    step_tol : float, optional
        Newton step length below which a root counts as converged.
    strict : bool, optional
        Raise ConvergenceError instead of recording a non-converged root.
    polynomials : PolynomialEvaluator, optional
        Source of factorials and Jacobi polynomial values/derivatives.
    out : tuple of numpy.ndarray, optional
        Pre-allocated arrays of shape (n^2, 2) and (n^2,), filled in place.

    Returns
    -------
    QuadratureRule
        Triangle rule. ``status``/``iterations`` list the (1, 0) rule's roots
        followed by the (0, 0) rule's roots.
    """
    n = check_order(n)
    points, weights = check_out(out, ((n * n, 2), (n * n,)))

    options = dict(tol=tol, max_iter=max_iter, step_tol=step_tol, strict=strict, polynomials=polynomials)
    rule0 = gauss_jacobi(n, 0, 0, **options)
    rule1 = gauss_jacobi(n, 1, 0, **options)

    collapse_to_triangle(rule0, rule1, out=(points, weights))
    return QuadratureRule(
        points=points,
        weights=weights,
        status=np.concatenate([rule1.status, rule0.status]),
        iterations=np.concatenate([rule1.iterations, rule0.iterations]),
    )
