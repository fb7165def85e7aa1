"""Curve rasterization: turn y = f(x) into drawable screen-space polylines.

The rasterizer samples one point per pixel column and splits the polyline
wherever the curve is not continuous on screen:

- a non-finite sample leaves a gap;
- a jump by (almost exactly) a nonzero integer is drawn as a step: the old
  level is carried to the current column, then a new segment starts;
- a sign-flipping jump larger than ``ASYMPTOTE_JUMP_FRACTION`` of the visible
  y-range is a pole, and the two sides are left unconnected.

Both heuristics are tunable through ``config``; neither is exact.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .config import ASYMPTOTE_JUMP_FRACTION, INTEGER_JUMP_EPSILON
from .evaluator import safe_function
from .logging_config import get_logger
from .types import CurveSegment, Equation, SamplePoint, Tangent, ViewPort

logger = get_logger("raster")

ScreenPoint = tuple[float, float]


def world_to_screen(
    viewport: ViewPort, pixel_width: int, pixel_height: int, x: float, y: float
) -> ScreenPoint:
    """Map world coordinates to pixels; screen y grows downwards."""
    sx = (x - viewport.x_min) / viewport.width * pixel_width
    sy = pixel_height - (y - viewport.y_min) / viewport.height * pixel_height
    return sx, sy


def screen_to_world(
    viewport: ViewPort, pixel_width: int, pixel_height: int, px: float, py: float
) -> tuple[float, float]:
    """Inverse of :func:`world_to_screen`."""
    x = px / pixel_width * viewport.width + viewport.x_min
    y = (pixel_height - py) / pixel_height * viewport.height + viewport.y_min
    return x, y


def column_to_world_x(viewport: ViewPort, pixel_width: int, px: int) -> float:
    x = viewport.x_min + (px / pixel_width) * viewport.width
    # rounding must not push the last column past x_max
    return min(max(x, viewport.x_min), viewport.x_max)


def sample(equation: Equation, viewport: ViewPort, pixel_width: int) -> list[SamplePoint]:
    """Evaluate the equation at every pixel column ``0..pixel_width``.

    Returns an empty list when the expression does not compile.
    """
    f = safe_function(equation.expression)
    if f is None or pixel_width <= 0:
        return []
    samples = []
    for px in range(pixel_width + 1):
        x = column_to_world_x(viewport, pixel_width, px)
        samples.append(SamplePoint(x, f(x)))
    return samples


def is_integer_jump(delta: float, epsilon: float = INTEGER_JUMP_EPSILON) -> bool:
    if not math.isfinite(delta):
        return False
    nearest = round(delta)
    return nearest != 0 and abs(delta - nearest) < epsilon


def crosses_asymptote(
    y: float,
    last_y: float,
    viewport: ViewPort,
    fraction: float = ASYMPTOTE_JUMP_FRACTION,
) -> bool:
    return y * last_y < 0 and abs(y - last_y) > viewport.height * fraction


def rasterize(
    equation: Equation,
    viewport: ViewPort,
    pixel_width: int,
    pixel_height: int | None = None,
) -> list[CurveSegment]:
    """Rasterize one equation into screen-space segments.

    Args:
        equation: Equation to draw; invisible or empty equations yield nothing
        viewport: World rectangle mapped onto the pixel grid
        pixel_width: Number of pixel columns; ``pixel_width + 1`` samples are taken
        pixel_height: Pixel rows for the y mapping (default: ``pixel_width``)

    Returns:
        Segments in drawing order. An expression that does not compile gives
        an empty list; it never raises.
    """
    if not equation.visible or not equation.expression.strip():
        return []
    if pixel_height is None:
        pixel_height = pixel_width

    samples = sample(equation, viewport, pixel_width)
    if not samples:
        return []

    def to_screen_y(y: float) -> float:
        return world_to_screen(viewport, pixel_width, pixel_height, viewport.x_min, y)[1]

    segments: list[CurveSegment] = []
    current: list[ScreenPoint] = []

    def close() -> None:
        if current:
            segments.append(CurveSegment(tuple(current)))
            current.clear()

    last_y = None
    for px, point in enumerate(samples):
        y = point.world_y
        if not math.isfinite(y):
            close()
            last_y = None
            continue

        screen = (float(px), to_screen_y(y))
        if last_y is None:
            current.append(screen)
        elif is_integer_jump(y - last_y):
            current.append((float(px), to_screen_y(last_y)))
            close()
            current.append(screen)
        elif crosses_asymptote(y, last_y, viewport):
            close()
            current.append(screen)
        else:
            current.append(screen)
        last_y = y
    close()

    logger.debug(
        f"Rasterized {equation.expression!r} into {len(segments)} segment(s)"
    )
    return segments


def rasterize_all(
    equations: Iterable[Equation],
    viewport: ViewPort,
    pixel_width: int,
    pixel_height: int | None = None,
) -> dict:
    """Rasterize every equation, keyed by equation id."""
    return {
        eq.id: rasterize(eq, viewport, pixel_width, pixel_height) for eq in equations
    }


def segments_to_svg_path(segments: Iterable[CurveSegment]) -> str:
    """SVG path data for the segments: one ``M`` per segment, ``L`` for the rest."""
    parts = []
    for segment in segments:
        for i, (px, py) in enumerate(segment.points):
            parts.append(f"{'M' if i == 0 else 'L'} {px:.2f},{py:.2f}")
    return " ".join(parts)


def integral_region(
    equation: Equation,
    viewport: ViewPort,
    a: float,
    b: float,
    pixel_width: int,
    pixel_height: int,
) -> list[ScreenPoint]:
    """Closed polygon between the curve and the x axis from a to b.

    Starts at (a, 0), follows the curve at one sample per pixel column and ends
    at (b, 0). Only the visible part is shaded, so a and b are clamped to the
    viewport's x-range. Undefined samples are skipped. Empty if the expression
    does not compile or the interval lies outside the view.
    """
    a = min(max(a, viewport.x_min), viewport.x_max)
    b = min(max(b, viewport.x_min), viewport.x_max)
    if a == b:
        return []
    f = safe_function(equation.expression)
    if f is None:
        return []

    def screen(x: float, y: float) -> ScreenPoint:
        return world_to_screen(viewport, pixel_width, pixel_height, x, y)

    polygon = [screen(a, 0.0)]
    lo, hi = min(a, b), max(a, b)
    step = viewport.width / pixel_width
    n = int(math.floor((hi - lo) / step))
    for i in range(n + 1):
        x = lo + i * step
        y = f(x)
        if math.isfinite(y):
            polygon.append(screen(x, y))
    polygon.append(screen(b, 0.0))
    return polygon


def tangent_line(
    tangent: Tangent, viewport: ViewPort, pixel_width: int, pixel_height: int
) -> tuple[ScreenPoint, ScreenPoint]:
    """Endpoints of the tangent line across the full visible x-range."""
    start = world_to_screen(
        viewport, pixel_width, pixel_height, viewport.x_min, tangent.at(viewport.x_min)
    )
    end = world_to_screen(
        viewport, pixel_width, pixel_height, viewport.x_max, tangent.at(viewport.x_max)
    )
    return start, end


def grid_lines(viewport: ViewPort) -> tuple[list[float], list[float]]:
    """World positions of vertical and horizontal grid lines.

    Spacing is one tenth of the largest power of ten not exceeding the range.
    """

    def ticks(lo: float, hi: float) -> list[float]:
        step = 10 ** (math.floor(math.log10(hi - lo)) - 1)
        first = math.ceil(lo / step)
        last = math.floor(hi / step)
        return [k * step for k in range(first, last + 1)]

    return (
        ticks(viewport.x_min, viewport.x_max),
        ticks(viewport.y_min, viewport.y_max),
    )
