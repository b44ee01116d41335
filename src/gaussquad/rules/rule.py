from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np

from gaussquad.common.newton import ConvergenceError, RootStatus


@dataclass(frozen=True)
class QuadratureRule:
    """
    Container for a quadrature rule and the convergence record of its roots.

    Attributes
    ----------
    points : numpy.ndarray, shape (N,) or (N, 2)
        Quadrature points, on [-1, 1] for line rules or inside the reference
        triangle for triangle rules.
    weights : numpy.ndarray, shape (N,)
        Quadrature weights; weights[i] belongs to points[i].
    status : numpy.ndarray of RootStatus
        Convergence status of each root found by Newton iteration.
    iterations : numpy.ndarray of int
        Polynomial evaluations spent on each root.
    """

    points: np.ndarray
    weights: np.ndarray
    status: np.ndarray
    iterations: np.ndarray

    def __iter__(self):
        # points, weights = rule
        yield self.points
        yield self.weights

    @property
    def n_points(self) -> int:
        return int(self.weights.shape[0])

    @property
    def dim(self) -> int:
        return 1 if self.points.ndim == 1 else int(self.points.shape[1])

    @property
    def converged(self) -> bool:
        """True when every root converged and no two roots coincide."""
        return all(s is RootStatus.CONVERGED for s in self.status)

    def integrate(self, fn: Callable) -> float:
        """
        Apply the rule to a function.

        Parameters
        ----------
        fn : callable
            f(x) for line rules, f(x, y) for triangle rules. Called once with
            arrays of coordinates; a scalar return is broadcast.

        Returns
        -------
        float
            sum_i f(points[i]) * weights[i]
        """
        if self.dim == 1:
            values = fn(self.points)
        else:
            values = fn(self.points[:, 0], self.points[:, 1])
        values = np.broadcast_to(np.asarray(values, dtype=float), self.weights.shape)
        return float(np.dot(values, self.weights))

    def to_npz(self, path) -> None:
        """
        Save points, weights, status and iterations to a NumPy .npz file.
        """
        np.savez(
            path,
            points=self.points,
            weights=self.weights,
            status=np.array([s.value for s in self.status], dtype=str),
            iterations=self.iterations,
        )

    @classmethod
    def from_npz(cls, path) -> "QuadratureRule":
        """
        Load a rule written by ``to_npz`` or by the command-line generator.

        Parameters
        ----------
        path : str or pathlib.Path
            Path to the .npz file.

        Returns
        -------
        QuadratureRule
            Loaded rule.
        """
        data = np.load(path)
        return cls(
            points=np.asarray(data["points"], dtype=float),
            weights=np.asarray(data["weights"], dtype=float),
            status=np.array([RootStatus(str(s)) for s in data["status"]], dtype=object),
            iterations=np.asarray(data["iterations"], dtype=np.int64),
        )


def check_integer(value, name: str, minimum: int) -> int:
    """
    Validate an integer parameter with a lower bound and return it as int.
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    value = int(value)
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


def check_order(n: int) -> int:
    """
    Validate a rule order (number of 1D points).
    """
    return check_integer(n, "n", 1)


def check_out(out, shapes: tuple[tuple[int, ...], tuple[int, ...]]) -> tuple[np.ndarray, np.ndarray]:
    """
    Return caller-supplied (points, weights) buffers, or fresh ones if ``out`` is None.
    """
    point_shape, weight_shape = shapes
    if out is None:
        return np.empty(point_shape, dtype=float), np.empty(weight_shape, dtype=float)

    try:
        points, weights = out
    except (TypeError, ValueError):
        raise ValueError("out must be a (points, weights) pair of arrays") from None
    for name, arr, shape in (("points", points, point_shape), ("weights", weights, weight_shape)):
        if not isinstance(arr, np.ndarray):
            raise ValueError(f"out {name} must be a numpy.ndarray")
        if arr.shape != shape:
            raise ValueError(f"out {name} must have shape {shape}, got {arr.shape}")
        if not np.issubdtype(arr.dtype, np.floating):
            raise ValueError(f"out {name} must have a floating dtype, got {arr.dtype}")
    return points, weights


def build_rule(points: np.ndarray, weights: np.ndarray, roots, *, strict: bool = False) -> QuadratureRule:
    """
    Assemble a QuadratureRule from filled buffers and per-root Newton results.

    Raises
    ------
    ConvergenceError
        If ``strict`` is set and any root stopped at the iteration cap or was
        flagged as a duplicate.
    """
    roots = list(roots)
    status = np.array([r.status for r in roots], dtype=object)
    iterations = np.array([r.iterations for r in roots], dtype=np.int64)
    if strict:
        failed = [i for i, r in enumerate(roots) if not r.converged]
        if failed:
            raise ConvergenceError(
                f"{len(failed)} of {len(roots)} roots did not converge to distinct roots "
                f"(indices {failed}, status {[roots[i].status.value for i in failed]})"
            )
    return QuadratureRule(points=points, weights=weights, status=status, iterations=iterations)
