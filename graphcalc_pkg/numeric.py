"""Numerical calculus on plain ``f(x) -> float`` callables.

Non-finite samples (NaN, +/-inf) mean "the function is undefined here". None
of these routines raise on them: each either skips the sample or reports an
undefined result, as documented per function.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from . import config
from .config import (
    CORNER_TOLERANCE,
    DERIVATIVE_STEP,
    INTEGRAL_INTERVALS,
    ROOT_DEDUP_TOLERANCE,
    ROOT_MAX_ITERATIONS,
    ROOT_TOLERANCE,
)

RealFunction = Callable[[float], float]


@dataclass(frozen=True)
class DerivativeEstimate:
    value: float
    left: float
    right: float


_UNDEFINED = DerivativeEstimate(math.nan, math.nan, math.nan)


def differentiate(
    f: RealFunction,
    x0: float,
    h: float = DERIVATIVE_STEP,
    corner_tolerance: float = CORNER_TOLERANCE,
) -> DerivativeEstimate:
    """Estimate f'(x0) by finite differences.

    Returns all-NaN when f is undefined at x0 or at x0 +/- h. When the
    one-sided slopes differ by more than ``corner_tolerance`` the point is a
    corner: ``value`` is NaN but ``left`` and ``right`` are kept.
    Otherwise ``value`` is the central difference.
    """
    f_x = f(x0)
    if not math.isfinite(f_x):
        return _UNDEFINED

    f_plus = f(x0 + h)
    f_minus = f(x0 - h)
    if not (math.isfinite(f_plus) and math.isfinite(f_minus)):
        return _UNDEFINED

    right = (f_plus - f_x) / h
    left = (f_x - f_minus) / h
    if abs(right - left) > corner_tolerance:
        return DerivativeEstimate(math.nan, left, right)

    return DerivativeEstimate((f_plus - f_minus) / (2 * h), left, right)


def find_root(
    f: RealFunction,
    a: float,
    b: float,
    tol: float = ROOT_TOLERANCE,
    max_iter: int = ROOT_MAX_ITERATIONS,
) -> float | None:
    """Bisection on [a, b].

    Returns None unless f(a) and f(b) are finite with opposite signs, or if a
    midpoint lands where f is undefined. After ``max_iter`` halvings without
    meeting ``tol`` the last midpoint is returned.
    """
    fa = f(a)
    fb = f(b)
    if not (math.isfinite(fa) and math.isfinite(fb)) or fa * fb >= 0:
        return None

    c = a
    for _ in range(max_iter):
        c = (a + b) / 2
        fc = f(c)
        if not math.isfinite(fc):
            return None
        if abs(fc) < tol or (b - a) / 2 < tol:
            return c
        if fa * fc < 0:
            b, fb = c, fc
        else:
            a, fa = c, fc
    return c


def scan_for_roots(
    f: RealFunction,
    x_min: float,
    x_max: float,
    steps: int | None = None,
    dedup_tolerance: float = ROOT_DEDUP_TOLERANCE,
) -> list[float]:
    """Find the roots of f in [x_min, x_max] by sign changes on a uniform grid.

    Each subinterval whose finite endpoint values change sign is refined with
    :func:`find_root`. A grid point where f is exactly zero is a root when it
    sits alone between samples of opposite sign; runs of zeros are not. A
    non-finite sample breaks the chain, so no sign change is ever inferred
    across it. Roots within ``dedup_tolerance`` of an already accepted root
    are dropped. Touching roots (no sign change) are not found.
    """
    roots: list[float] = []
    if steps is None:
        steps = config.SCAN_STEPS
    if steps <= 0:
        return roots

    def accept(root: float) -> None:
        if not any(abs(r - root) < dedup_tolerance for r in roots):
            roots.append(root)

    step = (x_max - x_min) / steps
    last_y = f(x_min)
    zero_x = None  # grid point where f == 0, decided by the next sample
    before_zero = math.nan

    for i in range(1, steps + 1):
        x = x_min + i * step
        y = f(x)
        if not (math.isfinite(y) and math.isfinite(last_y)):
            zero_x = None
            last_y = y
            continue
        if last_y * y < 0:
            root = find_root(f, x - step, x)
            if root is not None:
                accept(root)
        elif y == 0 and last_y != 0:
            zero_x, before_zero = x, last_y
        elif last_y == 0 and zero_x is not None:
            if before_zero * y < 0:
                accept(zero_x)
            zero_x = None
        last_y = y
    return roots


def integrate(
    f: RealFunction, a: float, b: float, n: int = INTEGRAL_INTERVALS
) -> float:
    """Composite trapezoidal estimate of the integral of f from a to b.

    Returns NaN when a, b, f(a) or f(b) is non-finite. A non-finite interior
    sample contributes zero to the sum instead of aborting; near a pole this
    biases the estimate rather than reporting it as undefined. Swapping a and
    b negates the result.
    """
    if not (math.isfinite(a) and math.isfinite(b)):
        return math.nan
    h = (b - a) / n
    start = f(a)
    end = f(b)
    if not (math.isfinite(start) and math.isfinite(end)):
        return math.nan

    total = 0.5 * (start + end)
    for i in range(1, n):
        val = f(a + i * h)
        if not math.isfinite(val):
            continue
        total += val
    return h * total
