from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np


FactorialFn = Callable[[int], int]
JacobiFn = Callable[[int, int, int, float], float]


def _as_output(values: np.ndarray):
    if values.ndim == 0:
        return float(values)
    return values


def factorial(k: int) -> int:
    """
    Exact factorial of a nonnegative integer.

    Parameters
    ----------
    k : int
        Argument, k >= 0.

    Returns
    -------
    int
        k! as a Python integer (no overflow).
    """
    if k < 0:
        raise ValueError("factorial is undefined for negative arguments")
    return math.factorial(k)


def legendre_p(n: int, x):
    """
    Evaluate the Legendre polynomial P_n and P_{n-1} by the three-term recurrence.

    Parameters
    ----------
    n : int
        Polynomial degree, n >= 0.
    x : float or numpy.ndarray
        Evaluation point(s).

    Returns
    -------
    p_n, p_prev : float or numpy.ndarray
        P_n(x) and P_{n-1}(x) (P_{-1} = 0).
    """
    if n < 0:
        raise ValueError("n must be nonnegative")
    x = np.asarray(x, dtype=float)

    p_prev = np.zeros_like(x)
    p_n = np.ones_like(x)
    for j in range(1, n + 1):
        p_prev2 = p_prev
        p_prev = p_n
        p_n = ((2.0 * j - 1.0) * x * p_prev - (j - 1.0) * p_prev2) / j
    return _as_output(p_n), _as_output(p_prev)


def jacobi_p(n: int, a: int, b: int, x):
    """
    Evaluate the Jacobi polynomial P_n^{(a,b)}(x).

    Uses the standard three-term recurrence starting from
    P_0 = 1 and P_1 = ((a - b) + (a + b + 2) x) / 2.

    Parameters
    ----------
    n : int
        Polynomial degree, n >= 0.
    a, b : int
        Exponents of the weight (1 - x)^a (1 + x)^b.
    x : float or numpy.ndarray
        Evaluation point(s).

    Returns
    -------
    float or numpy.ndarray
        P_n^{(a,b)}(x).
    """
    if n < 0:
        raise ValueError("n must be nonnegative")
    x = np.asarray(x, dtype=float)

    p_prev = np.ones_like(x)
    if n == 0:
        return _as_output(p_prev)
    p_n = 0.5 * ((a - b) + (a + b + 2.0) * x)

    ab = a + b
    for i in range(2, n + 1):
        c1 = 2.0 * i * (i + ab) * (2.0 * i + ab - 2.0)
        c2 = (2.0 * i + ab - 1.0) * (a * a - b * b)
        c3 = (2.0 * i + ab - 2.0) * (2.0 * i + ab - 1.0) * (2.0 * i + ab)
        c4 = 2.0 * (i + a - 1.0) * (i + b - 1.0) * (2.0 * i + ab)
        p_prev, p_n = p_n, ((c2 + c3 * x) * p_n - c4 * p_prev) / c1
    return _as_output(p_n)


def jacobi_p_first_derivative(n: int, a: int, b: int, x):
    """
    Evaluate d/dx P_n^{(a,b)}(x) = (n + a + b + 1) / 2 * P_{n-1}^{(a+1,b+1)}(x).
    """
    if n == 0:
        return _as_output(np.zeros_like(np.asarray(x, dtype=float)))
    return 0.5 * (n + a + b + 1.0) * jacobi_p(n - 1, a + 1, b + 1, x)


def _scipy_factorial(k: int) -> int:
    from scipy.special import factorial as sp_factorial

    if k < 0:
        raise ValueError("factorial is undefined for negative arguments")
    return int(sp_factorial(k, exact=True))


def _scipy_jacobi_p(n: int, a: int, b: int, x):
    from scipy.special import eval_jacobi

    if n < 0:
        raise ValueError("n must be nonnegative")
    return _as_output(np.asarray(eval_jacobi(n, a, b, x), dtype=float))


def _scipy_jacobi_p_first_derivative(n: int, a: int, b: int, x):
    from scipy.special import eval_jacobi

    if n == 0:
        return _as_output(np.zeros_like(np.asarray(x, dtype=float)))
    values = 0.5 * (n + a + b + 1.0) * eval_jacobi(n - 1, a + 1, b + 1, x)
    return _as_output(np.asarray(values, dtype=float))


@dataclass(frozen=True)
class PolynomialEvaluator:
    """
    Stateless polynomial-evaluation capability consumed by the Jacobi rules.

    Attributes
    ----------
    factorial : callable
        k -> k! (an exact integer keeps the Gauss-Jacobi weight factor finite
        for large orders).
    jacobi_p : callable
        (n, a, b, x) -> P_n^{(a,b)}(x).
    jacobi_p_derivative : callable
        (n, a, b, x) -> d/dx P_n^{(a,b)}(x).
    name : str
        Label reported by the command-line tool.
    """

    factorial: FactorialFn
    jacobi_p: JacobiFn
    jacobi_p_derivative: JacobiFn
    name: str = "custom"


RECURRENCE = PolynomialEvaluator(
    factorial=factorial,
    jacobi_p=jacobi_p,
    jacobi_p_derivative=jacobi_p_first_derivative,
    name="recurrence",
)

SCIPY = PolynomialEvaluator(
    factorial=_scipy_factorial,
    jacobi_p=_scipy_jacobi_p,
    jacobi_p_derivative=_scipy_jacobi_p_first_derivative,
    name="scipy",
)

EVALUATORS = {evaluator.name: evaluator for evaluator in (RECURRENCE, SCIPY)}


def get_evaluator(name: str) -> PolynomialEvaluator:
    """
    Look up a shipped polynomial evaluator by name ("recurrence" or "scipy").
    """
    try:
        return EVALUATORS[name]
    except KeyError:
        raise ValueError(
            f"Unknown polynomial evaluator {name!r}; expected one of {sorted(EVALUATORS)}"
        ) from None
