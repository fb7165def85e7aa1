"""Public API for Graphcalc - returns structured objects without side effects.

Expressions are passed as text; the view defaults to ``config.DEFAULT_VIEWPORT``.
"""

from __future__ import annotations

from .analysis import (
    compute_derivative,
    compute_integral,
    find_extrema,
    find_intersections,
)
from .config import DEFAULT_VIEWPORT
from .evaluator import COMPILE_ERRORS, compile_expression, safe_function
from .logging_config import get_logger
from .numeric import scan_for_roots
from .raster import rasterize
from .types import (
    CurveSegment,
    DerivativeResult,
    Equation,
    ExtremaResult,
    IntegralResult,
    IntersectionResult,
    ViewPort,
)

logger = get_logger("api")


def _view(viewport: ViewPort | None) -> ViewPort:
    return viewport if viewport is not None else ViewPort(*DEFAULT_VIEWPORT)


def _log_unexpected(operation: str, error: Exception) -> None:
    logger.error(f"Unexpected error in {operation}: {error}", exc_info=True)


def derivative_at(expression: str, x: float) -> DerivativeResult | None:
    """Derivative of ``expression`` at ``x``.

    Example:
        >>> from graphcalc_pkg.api import derivative_at
        >>> round(derivative_at("x^2", 1.0).value, 3)
        2.0
        >>> derivative_at("abs(x)", 0.0).differentiable
        False
    """
    try:
        return compute_derivative(Equation("expr", expression), x)
    except COMPILE_ERRORS as e:
        logger.debug(f"derivative_at({expression!r}) failed: {e}")
        return None
    except Exception as e:
        _log_unexpected("derivative_at", e)
        return None


def integral(expression: str, a: float, b: float) -> IntegralResult | None:
    """Definite integral of ``expression`` from a to b.

    Example:
        >>> from graphcalc_pkg.api import integral
        >>> round(integral("x", 0, 1).value, 3)
        0.5
    """
    try:
        return compute_integral(Equation("expr", expression), a, b)
    except COMPILE_ERRORS as e:
        logger.debug(f"integral({expression!r}) failed: {e}")
        return None
    except Exception as e:
        _log_unexpected("integral", e)
        return None


def intersections(
    expression_a: str, expression_b: str, viewport: ViewPort | None = None
) -> IntersectionResult | None:
    """Intersections of two curves within the viewport's x-range."""
    try:
        return find_intersections(
            Equation("a", expression_a), Equation("b", expression_b), _view(viewport)
        )
    except COMPILE_ERRORS as e:
        logger.debug(f"intersections({expression_a!r}, {expression_b!r}) failed: {e}")
        return None
    except Exception as e:
        _log_unexpected("intersections", e)
        return None


def extrema(expression: str, viewport: ViewPort | None = None) -> ExtremaResult | None:
    """Minima, maxima and inflection points within the viewport's x-range.

    Example:
        >>> from graphcalc_pkg.api import ViewPort, extrema
        >>> result = extrema("x^2", ViewPort(-5, 5, -5, 5))
        >>> len(result.minima), len(result.maxima)
        (1, 0)
    """
    try:
        return find_extrema(Equation("expr", expression), _view(viewport))
    except COMPILE_ERRORS as e:
        logger.debug(f"extrema({expression!r}) failed: {e}")
        return None
    except Exception as e:
        _log_unexpected("extrema", e)
        return None


def roots(expression: str, x_min: float, x_max: float) -> list[float] | None:
    """Sign-change roots of ``expression`` in [x_min, x_max]; None if it does not compile."""
    f = safe_function(expression)
    if f is None:
        return None
    try:
        return scan_for_roots(f, x_min, x_max)
    except Exception as e:
        _log_unexpected("roots", e)
        return None


def rasterize_expression(
    expression: str,
    pixel_width: int,
    viewport: ViewPort | None = None,
    pixel_height: int | None = None,
) -> list[CurveSegment]:
    """Screen-space segments for ``expression``; empty if it does not compile."""
    try:
        return rasterize(
            Equation("expr", expression), _view(viewport), pixel_width, pixel_height
        )
    except Exception as e:
        _log_unexpected("rasterize_expression", e)
        return []


def validate_expression(expression: str) -> tuple[bool, str | None]:
    """Check that an expression compiles without evaluating it.

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> from graphcalc_pkg.api import validate_expression
        >>> validate_expression("sin(x) + x^2")
        (True, None)
        >>> validate_expression("import os")
        (False, 'Input contains forbidden token: import')
    """
    try:
        compile_expression(expression)
        return True, None
    except COMPILE_ERRORS as e:
        return False, str(e)
    except Exception as e:
        _log_unexpected("validate_expression", e)
        return False, f"Unexpected error: {e}"
