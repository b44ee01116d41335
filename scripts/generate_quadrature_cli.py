"""
Interactive/CLI quadrature rule generator.

Outputs:
- <prefix>.npz with points, weights, status, iterations
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, TypeVar

from gaussquad.common.newton import MAX_ITERATIONS, STEP_TOLERANCE, TOLERANCE, QuadratureError, RootStatus
from gaussquad.common.polynomials import EVALUATORS, get_evaluator
from gaussquad.rules.generator import QuadratureGenerator
from gaussquad.rules.line import map_to_interval
from gaussquad.rules.rule import QuadratureRule

T = TypeVar("T")

KINDS = ("legendre", "jacobi", "triangle")


def _prompt(value: T | None, text: str, default: T, cast: Callable[[str], T]) -> T:
    """
    Prompt for a value if not provided. Empty input -> default.
    """
    if value is not None:
        return value
    raw = input(f"{text} [{default}]: ").strip()
    if raw == "":
        return default
    return cast(raw)


def build_rule(
    *,
    kind: str,
    order: int,
    alpha: int = 0,
    beta: int = 0,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
    step_tol: float = STEP_TOLERANCE,
    evaluator: str = "recurrence",
    strict: bool = False,
    interval: tuple[float, float] | None = None,
) -> QuadratureRule:
    """
    Build the requested rule, optionally mapped onto [lower, upper] for 1D kinds.
    """
    if kind not in KINDS:
        raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")

    generator = QuadratureGenerator(
        polynomials=get_evaluator(evaluator),
        tol=tol,
        max_iter=max_iter,
        step_tol=step_tol,
        strict=strict,
    )
    if kind == "legendre":
        rule = generator.legendre(order)
    elif kind == "jacobi":
        rule = generator.jacobi(order, alpha, beta)
    else:
        rule = generator.triangle(order)

    if interval is not None:
        if kind == "triangle":
            raise ValueError("an interval can only be applied to 1D rules")
        rule = map_to_interval(rule, *interval)
    return rule


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Gauss quadrature rule generator.")
    parser.add_argument("--kind", choices=KINDS, help="Rule family")
    parser.add_argument("--order", type=int, help="Number of 1D points (n; triangle rules have n^2 points)")
    parser.add_argument("--alpha", type=int, help="Jacobi exponent a of (1-x)^a")
    parser.add_argument("--beta", type=int, help="Jacobi exponent b of (1+x)^b")
    parser.add_argument("--tol", type=float, default=TOLERANCE, help="Newton residual tolerance")
    parser.add_argument("--max-iter", type=int, default=MAX_ITERATIONS, help="Newton iterations per root")
    parser.add_argument(
        "--step-tol", type=float, default=STEP_TOLERANCE, help="Newton step length counted as converged"
    )
    parser.add_argument(
        "--evaluator",
        choices=sorted(EVALUATORS),
        default="recurrence",
        help="Polynomial evaluator used by Jacobi-based rules",
    )
    parser.add_argument("--strict", action="store_true", help="Fail if any root does not converge")
    parser.add_argument("--lower", type=float, help="Map a 1D rule onto [lower, upper]")
    parser.add_argument("--upper", type=float, help="Map a 1D rule onto [lower, upper]")
    parser.add_argument("--out-prefix", type=Path, default=Path("quadrature_rule"), help="Output prefix (no extension)")
    args = parser.parse_args(argv)

    # Interactive prompts when args omitted
    kind = _prompt(args.kind, "Rule kind (legendre/jacobi/triangle)", "legendre", str)
    order = _prompt(args.order, "Order n", 4, int)
    alpha = beta = 0
    if kind == "jacobi":
        alpha = _prompt(args.alpha, "Jacobi exponent a", 0, int)
        beta = _prompt(args.beta, "Jacobi exponent b", 0, int)

    interval = None
    if args.lower is not None or args.upper is not None:
        if args.lower is None or args.upper is None:
            parser.error("--lower and --upper must be given together")
        interval = (args.lower, args.upper)

    print(f"Generating {kind} rule of order {order}...")
    try:
        rule = build_rule(
            kind=kind,
            order=order,
            alpha=alpha,
            beta=beta,
            tol=args.tol,
            max_iter=args.max_iter,
            step_tol=args.step_tol,
            evaluator=args.evaluator,
            strict=args.strict,
            interval=interval,
        )
    except (ValueError, QuadratureError) as e:
        print(f"Error: {e}")
        return 1

    n_capped = sum(1 for s in rule.status if s is RootStatus.MAX_ITERATIONS)
    n_duplicate = sum(1 for s in rule.status if s is RootStatus.DUPLICATE)
    print(f"{rule.n_points} points, weight sum {rule.weights.sum():.16g}")
    if n_capped:
        print(f"Warning: {n_capped} of {len(rule.status)} roots hit the iteration cap.")
    if n_duplicate:
        print(f"Warning: {n_duplicate} of {len(rule.status)} roots coincide with another root.")
    if not (n_capped or n_duplicate):
        print(f"All roots converged (max {int(rule.iterations.max())} iterations).")

    out_npz = args.out_prefix.with_suffix(".npz")
    rule.to_npz(out_npz)
    print(f"Saved arrays to {out_npz}")

    print("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
