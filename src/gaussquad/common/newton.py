from __future__ import annotations

import enum
import math
from dataclasses import dataclass, replace
from typing import Callable

import numpy as np


TOLERANCE = 10.0 * np.finfo(float).eps
MAX_ITERATIONS = 100
# Newton correction below which a simple root sits at rounding level
STEP_TOLERANCE = 1e-10
# roots closer than this are taken to be the same root found twice
DUPLICATE_TOLERANCE = 1e-8

# x -> (p(x), p'(x))
ValueAndDerivative = Callable[[float], tuple[float, float]]


class QuadratureError(ArithmeticError):
    """Base class for numerical failures while building a quadrature rule."""


class NumericalFailureError(QuadratureError):
    """A zero or non-finite quantity was hit where a division was required."""


class ConvergenceError(QuadratureError):
    """A root hit the iteration cap or duplicated another root, in strict mode."""


class RootStatus(enum.Enum):
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class NewtonResult:
    """
    Outcome of refining a single polynomial root.

    Attributes
    ----------
    x : float
        Final root estimate.
    value : float
        Polynomial value at ``x``.
    derivative : float
        Polynomial derivative at ``x``.
    iterations : int
        Number of polynomial evaluations performed.
    status : RootStatus
        Whether the root converged, hit the iteration cap, or coincides
        with another root of the same rule.
    """

    x: float
    value: float
    derivative: float
    iterations: int
    status: RootStatus

    @property
    def converged(self) -> bool:
        return self.status is RootStatus.CONVERGED


def _is_real(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float, np.integer, np.floating))


def check_newton_options(tol: float, max_iter: int, step_tol: float = STEP_TOLERANCE) -> None:
    if not _is_real(tol) or not tol > 0:
        raise ValueError(f"tol must be a positive number, got {tol!r}")
    if not _is_real(step_tol) or not step_tol > 0:
        raise ValueError(f"step_tol must be a positive number, got {step_tol!r}")
    if isinstance(max_iter, bool) or not isinstance(max_iter, (int, np.integer)) or max_iter < 1:
        raise ValueError("max_iter must be a positive integer")


def checked_divide(numerator: float, denominator: float, what: str) -> float:
    """
    Divide, raising NumericalFailureError instead of producing inf or nan.
    """
    if denominator == 0.0 or not math.isfinite(denominator):
        raise NumericalFailureError(f"{what}: denominator is {denominator!r}")
    result = numerator / denominator
    if not math.isfinite(result):
        raise NumericalFailureError(f"{what}: result is {result!r}")
    return result


def newton_root(
    evaluate: ValueAndDerivative,
    x0: float,
    *,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    label: str = "root",
) -> NewtonResult:
    """
    Refine a root of a polynomial with Newton's method.

    The polynomial is evaluated at most ``max_iter`` times. Iteration stops
    as soon as |p(x)| < tol, or at the first evaluation after a Newton step
    shorter than ``step_tol``.

    Parameters
    ----------
    evaluate : callable
        x -> (p(x), p'(x)).
    x0 : float
        Initial guess.
    tol : float, optional
        Residual tolerance.
    max_iter : int, optional
        Maximum number of polynomial evaluations.
    step_tol : float, optional
        Step length below which the root counts as converged.
    label : str, optional
        Used in error messages.

    Returns
    -------
    NewtonResult
        Root estimate with value, derivative and convergence status.

    Raises
    ------
    NumericalFailureError
        If the derivative vanishes or a value becomes non-finite.
    """
    x = float(x0)
    step = math.inf
    for iteration in range(1, max_iter + 1):
        value, derivative = evaluate(x)
        value = float(value)
        derivative = float(derivative)
        if not math.isfinite(value):
            raise NumericalFailureError(f"{label}: polynomial value is {value!r} at x={x!r}")

        if abs(value) < tol or abs(step) < step_tol:
            return NewtonResult(x, value, derivative, iteration, RootStatus.CONVERGED)
        if iteration == max_iter:
            break

        step = checked_divide(value, derivative, f"{label}: Newton step at x={x!r}")
        x -= step

    return NewtonResult(x, value, derivative, max_iter, RootStatus.MAX_ITERATIONS)


def mark_duplicate_roots(roots: list[NewtonResult], tol: float = DUPLICATE_TOLERANCE) -> list[NewtonResult]:
    """
    Flag roots that landed on the same polynomial root as another one.

    Every member of a group of roots lying within ``tol`` of each other gets
    ``RootStatus.DUPLICATE``; the other results are returned unchanged.

    Parameters
    ----------
    roots : list of NewtonResult
        Refined roots of one polynomial, in any order.
    tol : float, optional
        Gap below which two sorted roots count as coincident.

    Returns
    -------
    list of NewtonResult
        Results in the input order.
    """
    if len(roots) < 2:
        return list(roots)

    xs = np.array([r.x for r in roots], dtype=float)
    order = np.argsort(xs)
    close = np.diff(xs[order]) < tol
    duplicate = np.zeros(len(roots), dtype=bool)
    duplicate[order[:-1][close]] = True
    duplicate[order[1:][close]] = True

    return [
        replace(r, status=RootStatus.DUPLICATE) if flag else r
        for r, flag in zip(roots, duplicate)
    ]
