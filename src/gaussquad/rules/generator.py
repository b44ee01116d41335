from __future__ import annotations

import numpy as np

from gaussquad.common.newton import MAX_ITERATIONS, STEP_TOLERANCE, TOLERANCE, check_newton_options
from gaussquad.common.polynomials import RECURRENCE, PolynomialEvaluator
from gaussquad.rules.line import gauss_jacobi, gauss_legendre
from gaussquad.rules.rule import QuadratureRule
from gaussquad.rules.triangle import triangle_quadrature


Buffers = tuple[np.ndarray, np.ndarray]


class QuadratureGenerator:
    """
    Rule generator bound to a polynomial evaluator and Newton settings.

    Keyword arguments given to a rule method override the stored settings
    for that call only.
    """

    def __init__(
        self,
        *,
        polynomials: PolynomialEvaluator = RECURRENCE,
        tol: float = TOLERANCE,
        max_iter: int = MAX_ITERATIONS,
        step_tol: float = STEP_TOLERANCE,
        strict: bool = False,
    ) -> None:
        check_newton_options(tol, max_iter, step_tol)
        self.polynomials = polynomials
        self.tol = tol
        self.max_iter = max_iter
        self.step_tol = step_tol
        self.strict = strict

    def _options(self, overrides: dict, *, with_polynomials: bool = True) -> dict:
        options = dict(tol=self.tol, max_iter=self.max_iter, step_tol=self.step_tol, strict=self.strict)
        if with_polynomials:
            options["polynomials"] = self.polynomials
        unknown = set(overrides) - set(options)
        if unknown:
            raise TypeError(f"Unexpected options: {sorted(unknown)}")
        options.update(overrides)
        return options

    def legendre(self, n: int, *, out: Buffers | None = None, **overrides) -> QuadratureRule:
        """
        Gauss-Legendre rule on [-1, 1]; see ``gauss_legendre``.
        """
        return gauss_legendre(n, out=out, **self._options(overrides, with_polynomials=False))

    def jacobi(self, n: int, a: int, b: int, *, out: Buffers | None = None, **overrides) -> QuadratureRule:
        """
        Gauss-Jacobi rule on [-1, 1] for the weight (1-x)^a (1+x)^b; see ``gauss_jacobi``.
        """
        return gauss_jacobi(n, a, b, out=out, **self._options(overrides))

    def triangle(self, n: int, *, out: Buffers | None = None, **overrides) -> QuadratureRule:
        """
        Collapsed-coordinate rule on the reference triangle; see ``triangle_quadrature``.
        """
        return triangle_quadrature(n, out=out, **self._options(overrides))


def generate_legendre_rule(
    n: int,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    strict: bool = False,
    out: Buffers | None = None,
) -> QuadratureRule:
    """
    Functional interface for the n-point Gauss-Legendre rule.

    Parameters
    ----------
    n : int
        Number of points.
    tol : float, optional
        Newton residual tolerance.
    max_iter : int, optional
        Newton iteration cap per root.
    step_tol : float, optional
        Newton step length below which a root counts as converged.
    strict : bool, optional
        Raise on non-converged roots.
    out : tuple of numpy.ndarray, optional
        Pre-sized (points, weights) arrays of length n.

    Returns
    -------
    QuadratureRule
        The rule.
    """
    return gauss_legendre(n, tol=tol, max_iter=max_iter, step_tol=step_tol, strict=strict, out=out)


def generate_jacobi_rule(
    n: int,
    a: int,
    b: int,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    strict: bool = False,
    polynomials: PolynomialEvaluator = RECURRENCE,
    out: Buffers | None = None,
) -> QuadratureRule:
    """
    Functional interface for the n-point Gauss-Jacobi rule with exponents (a, b).
    """
    return gauss_jacobi(
        n,
        a,
        b,
        tol=tol,
        max_iter=max_iter,
        step_tol=step_tol,
        strict=strict,
        polynomials=polynomials,
        out=out,
    )


def generate_triangle_rule(
    n: int,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    strict: bool = False,
    polynomials: PolynomialEvaluator = RECURRENCE,
    out: Buffers | None = None,
) -> QuadratureRule:
    """
    Functional interface for the n^2-point reference-triangle rule.
    """
    return triangle_quadrature(
        n,
        tol=tol,
        max_iter=max_iter,
        step_tol=step_tol,
        strict=strict,
        polynomials=polynomials,
        out=out,
    )
