"""Render rasterized curves and analysis overlays to an image file."""

from __future__ import annotations

import tempfile

try:
    # Set non-GUI backend before importing pyplot to avoid Tkinter issues
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from matplotlib.colors import is_color_like

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

import numpy as np

from .logging_config import get_logger
from .raster import (
    grid_lines,
    integral_region,
    rasterize,
    tangent_line,
    world_to_screen,
)
from .state import Active, AppState
from .types import (
    DerivativeResult,
    ExtremaResult,
    IntegralRequest,
    IntegralResult,
    IntersectionResult,
    RenderResult,
)

logger = get_logger("plotting")

_DPI = 100


def _draw_overlays(ax, state: AppState, pixel_width: int, pixel_height: int) -> None:
    if not isinstance(state.analysis, Active) or state.analysis.result is None:
        return
    request, result = state.analysis.request, state.analysis.result
    view = state.viewport

    def marker(points, **style):
        if not points:
            return
        xy = np.array(
            [world_to_screen(view, pixel_width, pixel_height, p.x, p.y) for p in points]
        )
        ax.scatter(xy[:, 0], xy[:, 1], zorder=3, **style)

    if isinstance(result, IntersectionResult):
        marker(result.points, s=36, edgecolors="black")
    elif isinstance(result, ExtremaResult):
        marker(result.maxima, s=25)
        marker(result.minima, s=25)
        marker(result.inflections, s=25)
    elif isinstance(result, DerivativeResult):
        marker([result], s=36, edgecolors="black")
        if result.tangent is not None:
            (x0, y0), (x1, y1) = tangent_line(
                result.tangent, view, pixel_width, pixel_height
            )
            ax.plot([x0, x1], [y0, y1], linestyle="--", linewidth=1.5)
    elif isinstance(result, IntegralResult) and isinstance(request, IntegralRequest):
        eq = state.equation(request.equation_id)
        if eq is not None:
            polygon = integral_region(
                eq, view, request.a, request.b, pixel_width, pixel_height
            )
            if len(polygon) > 2:
                xy = np.array(polygon)
                ax.fill(xy[:, 0], xy[:, 1], alpha=0.25)


def render_state(
    state: AppState,
    pixel_width: int,
    pixel_height: int,
    output_path: str | None = None,
) -> RenderResult:
    """Draw every visible equation of ``state`` plus the active analysis.

    Args:
        state: Application state to draw
        pixel_width: Image width in pixels (also the sampling resolution)
        pixel_height: Image height in pixels
        output_path: PNG path to write (default: a new temporary file)

    Returns:
        RenderResult with the written path, or ok=False and an error message
    """
    if not HAS_MATPLOTLIB:
        return RenderResult(ok=False, error="matplotlib not installed")

    view = state.viewport
    fig, ax = plt.subplots(figsize=(pixel_width / _DPI, pixel_height / _DPI), dpi=_DPI)
    try:
        ax.set_xlim(0, pixel_width)
        ax.set_ylim(pixel_height, 0)
        ax.set_axis_off()
        fig.subplots_adjust(left=0, right=1, top=1, bottom=0)

        if state.settings_dict.get("showGrid", True):
            xs, ys = grid_lines(view)
            for gx in xs:
                sx, _ = world_to_screen(view, pixel_width, pixel_height, gx, 0.0)
                ax.axvline(sx, linewidth=0.5, alpha=0.3)
            for gy in ys:
                _, sy = world_to_screen(view, pixel_width, pixel_height, 0.0, gy)
                ax.axhline(sy, linewidth=0.5, alpha=0.3)

        origin_x, origin_y = world_to_screen(view, pixel_width, pixel_height, 0.0, 0.0)
        ax.axhline(origin_y, color="k", linewidth=1.5, alpha=0.6)
        ax.axvline(origin_x, color="k", linewidth=1.5, alpha=0.6)

        for eq in state.equations:
            color = eq.color if is_color_like(eq.color) else None
            for segment in rasterize(eq, view, pixel_width, pixel_height):
                xy = np.array(segment.points)
                ax.plot(xy[:, 0], xy[:, 1], color=color, linewidth=2)

        _draw_overlays(ax, state, pixel_width, pixel_height)

        if output_path is None:
            with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as tmp:
                output_path = tmp.name
        fig.savefig(output_path, dpi=_DPI)
        return RenderResult(ok=True, path=output_path)
    except (OSError, ValueError) as e:
        logger.error(f"Rendering failed: {e}", exc_info=True)
        return RenderResult(ok=False, error=f"Rendering failed: {e}")
    finally:
        plt.close(fig)
