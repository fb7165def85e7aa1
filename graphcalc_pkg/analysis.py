"""Function analysis built on the numeric core.

Every function here is a pure function of its arguments. Failures never
propagate out of this module: an expression that does not compile, a missing
equation, or a derivative SymPy cannot form all produce "no result" (None or
an empty result), while NaN fields mean "evaluated but undefined".
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from .config import SECOND_DERIVATIVE_ZERO_TOLERANCE
from .evaluator import COMPILE_ERRORS, DEFAULT_EVALUATOR
from .logging_config import get_logger
from .numeric import differentiate, integrate, scan_for_roots
from .types import (
    AnalysisRequest,
    AnalysisResult,
    DerivativeRequest,
    DerivativeResult,
    Equation,
    EvaluationError,
    ExtremaRequest,
    ExtremaResult,
    IntegralRequest,
    IntegralResult,
    IntersectionResult,
    IntersectionsRequest,
    Point,
    Tangent,
    ViewPort,
)

logger = get_logger("analysis")


def compute_derivative(
    equation: Equation, x: float, evaluator=DEFAULT_EVALUATOR
) -> DerivativeResult:
    """Numeric derivative of the equation at ``x`` with its tangent line.

    Raises:
        ParseError / ValidationError: If the expression does not compile
    """
    f = evaluator.compile(equation.expression)
    y = f(x)
    if not math.isfinite(y):
        return DerivativeResult(math.nan, math.nan, math.nan, x, y, None)

    estimate = differentiate(f, x)
    tangent = Tangent(estimate.value, x, y) if math.isfinite(estimate.value) else None
    return DerivativeResult(estimate.value, estimate.left, estimate.right, x, y, tangent)


def compute_integral(
    equation: Equation, a: float, b: float, evaluator=DEFAULT_EVALUATOR
) -> IntegralResult:
    """Trapezoidal integral from a to b; ``value`` is None when undefined.

    Raises:
        ParseError / ValidationError: If the expression does not compile
    """
    f = evaluator.compile(equation.expression)
    value = integrate(f, a, b)
    return IntegralResult(value if math.isfinite(value) else None)


def find_extrema(
    equation: Equation, viewport: ViewPort, evaluator=DEFAULT_EVALUATOR
) -> ExtremaResult:
    """Local minima, maxima and inflection points visible in the viewport.

    Critical points are the roots of f' and are classified by the sign of f''.
    Points where f'' is zero (within ``SECOND_DERIVATIVE_ZERO_TOLERANCE``) or
    undefined are dropped: they are neither reported as extrema nor treated
    as saddles. Inflection points are the roots of f'' and are reported
    whether or not they are also critical points. Every reported y is f(x).

    An empty result is returned when SymPy cannot form f' or f'' (e.g. the
    DiracDelta in the second derivative of abs(x)).

    Raises:
        ParseError / ValidationError: If the expression does not compile
    """
    f = evaluator.compile(equation.expression)
    try:
        first_text = evaluator.symbolic_derivative(equation.expression, "x")
        second_text = evaluator.symbolic_derivative(first_text, "x")
        f_prime = evaluator.compile(first_text)
        f_second = evaluator.compile(second_text)
    except (EvaluationError, *COMPILE_ERRORS) as e:
        logger.debug(f"No derivatives for {equation.expression!r}: {e}")
        return ExtremaResult()

    minima: list[Point] = []
    maxima: list[Point] = []
    for x in scan_for_roots(f_prime, viewport.x_min, viewport.x_max):
        curvature = f_second(x)
        if not math.isfinite(curvature):
            continue
        if curvature > SECOND_DERIVATIVE_ZERO_TOLERANCE:
            minima.append(Point(x, f(x)))
        elif curvature < -SECOND_DERIVATIVE_ZERO_TOLERANCE:
            maxima.append(Point(x, f(x)))

    inflections = tuple(
        Point(x, f(x)) for x in scan_for_roots(f_second, viewport.x_min, viewport.x_max)
    )
    return ExtremaResult(tuple(minima), tuple(maxima), inflections)


def find_intersections(
    eq_a: Equation, eq_b: Equation, viewport: ViewPort, evaluator=DEFAULT_EVALUATOR
) -> IntersectionResult:
    """Points where the two curves meet inside the viewport's x-range.

    The roots of f_a - f_b are reported at height f_a(x).

    Raises:
        ParseError / ValidationError: If either expression does not compile
    """
    f_a = evaluator.compile(eq_a.expression)
    f_b = evaluator.compile(eq_b.expression)

    def difference(x: float) -> float:
        return f_a(x) - f_b(x)

    roots = scan_for_roots(difference, viewport.x_min, viewport.x_max)
    return IntersectionResult(tuple(Point(x, f_a(x)) for x in roots))


def _lookup(equations: Iterable[Equation], equation_id: Any) -> Equation:
    for eq in equations:
        if eq.id == equation_id:
            return eq
    raise LookupError(f"No equation with id {equation_id!r}")


def run_analysis(
    request: AnalysisRequest,
    equations: Iterable[Equation],
    viewport: ViewPort,
    evaluator=DEFAULT_EVALUATOR,
) -> AnalysisResult | None:
    """Run one analysis request against the current equations and viewport.

    Returns None when the request cannot be answered (unknown equation id,
    unparsable expression, no closed-form derivative). Never raises for
    those cases.
    """
    equations = tuple(equations)
    try:
        if isinstance(request, DerivativeRequest):
            eq = _lookup(equations, request.equation_id)
            return compute_derivative(eq, request.x, evaluator)
        if isinstance(request, IntegralRequest):
            eq = _lookup(equations, request.equation_id)
            return compute_integral(eq, request.a, request.b, evaluator)
        if isinstance(request, IntersectionsRequest):
            eq_a = _lookup(equations, request.equation_id_1)
            eq_b = _lookup(equations, request.equation_id_2)
            return find_intersections(eq_a, eq_b, viewport, evaluator)
        if isinstance(request, ExtremaRequest):
            eq = _lookup(equations, request.equation_id)
            return find_extrema(eq, viewport, evaluator)
    except (LookupError, EvaluationError, *COMPILE_ERRORS) as e:
        logger.debug(f"Analysis {request.kind} produced no result: {e}")
        return None
    raise TypeError(f"Unsupported analysis request: {request!r}")


def derivative_equation(
    equation: Equation, new_id: Any, color: str | None = None, evaluator=DEFAULT_EVALUATOR
) -> Equation | None:
    """A new equation plotting the symbolic derivative of ``equation``.

    The colour token is passed through unchanged unless one is given.
    Returns None when the derivative cannot be formed.
    """
    try:
        text = evaluator.symbolic_derivative(equation.expression, "x")
    except (EvaluationError, *COMPILE_ERRORS) as e:
        logger.debug(f"No derivative for {equation.expression!r}: {e}")
        return None
    return Equation(
        id=new_id,
        expression=text,
        color=equation.color if color is None else color,
        visible=True,
    )
