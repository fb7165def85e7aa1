"""Immutable application state and pure reducers.

The shell keeps one ``AppState`` value and replaces it with the return value
of a reducer after each user action. Nothing here mutates its input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Union

from .analysis import run_analysis
from .config import (
    DEFAULT_VIEWPORT,
    SNAP_DISTANCE_FRACTION,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
)
from .evaluator import safe_function
from .raster import screen_to_world
from .types import AnalysisRequest, AnalysisResult, Equation, Point, ViewPort


@dataclass(frozen=True)
class Idle:
    """No analysis is shown."""


@dataclass(frozen=True)
class Active:
    """The result of the most recent request; ``result`` is None if it found nothing."""

    request: AnalysisRequest
    result: AnalysisResult | None


AnalysisState = Union[Idle, Active]


def default_viewport() -> ViewPort:
    return ViewPort(*DEFAULT_VIEWPORT)


@dataclass(frozen=True)
class AppState:
    equations: tuple[Equation, ...] = ()
    viewport: ViewPort = field(default_factory=default_viewport)
    settings: tuple[tuple[str, Any], ...] = (("showGrid", True),)
    analysis: AnalysisState = Idle()

    def equation(self, equation_id: Any) -> Equation | None:
        for eq in self.equations:
            if eq.id == equation_id:
                return eq
        return None

    @property
    def settings_dict(self) -> dict[str, Any]:
        return dict(self.settings)


def apply_request(state: AppState, request: AnalysisRequest) -> AppState:
    """Run ``request`` and make it the active analysis.

    Issuing a request of the kind that is already active clears it instead,
    so the same action toggles the analysis on and off.
    """
    if isinstance(state.analysis, Active) and state.analysis.request.kind == request.kind:
        return clear_analysis(state)
    result = run_analysis(request, state.equations, state.viewport)
    return replace(state, analysis=Active(request, result))


def clear_analysis(state: AppState) -> AppState:
    return replace(state, analysis=Idle())


def add_equation(state: AppState, equation: Equation) -> AppState:
    return replace(state, equations=state.equations + (equation,))


def update_equation(state: AppState, equation_id: Any, **changes: Any) -> AppState:
    """Replace fields of one equation, e.g. ``update_equation(s, 1, visible=False)``."""
    return replace(
        state,
        equations=tuple(
            replace(eq, **changes) if eq.id == equation_id else eq
            for eq in state.equations
        ),
    )


def remove_equation(state: AppState, equation_id: Any) -> AppState:
    return replace(
        state, equations=tuple(eq for eq in state.equations if eq.id != equation_id)
    )


def set_viewport(state: AppState, viewport: ViewPort) -> AppState:
    return replace(state, viewport=viewport)


def set_setting(state: AppState, key: str, value: Any) -> AppState:
    settings = dict(state.settings)
    settings[key] = value
    return replace(state, settings=tuple(settings.items()))


def reset_view(state: AppState) -> AppState:
    return replace(state, viewport=default_viewport())


def pan(
    state: AppState, dx_px: float, dy_px: float, pixel_width: int, pixel_height: int
) -> AppState:
    """Drag the view by a mouse delta in pixels; the content follows the mouse."""
    view = state.viewport
    world_dx = dx_px / pixel_width * view.width
    world_dy = dy_px / pixel_height * view.height
    return replace(
        state,
        viewport=ViewPort(
            view.x_min - world_dx,
            view.x_max - world_dx,
            view.y_min + world_dy,
            view.y_max + world_dy,
        ),
    )


def zoom(
    state: AppState,
    px: float,
    py: float,
    pixel_width: int,
    pixel_height: int,
    zoom_in: bool,
) -> AppState:
    """Zoom about the world point under pixel (px, py), which stays fixed."""
    view = state.viewport
    cx, cy = screen_to_world(view, pixel_width, pixel_height, px, py)
    factor = ZOOM_IN_FACTOR if zoom_in else ZOOM_OUT_FACTOR
    return replace(
        state,
        viewport=ViewPort(
            cx + (view.x_min - cx) * factor,
            cx + (view.x_max - cx) * factor,
            cy + (view.y_min - cy) * factor,
            cy + (view.y_max - cy) * factor,
        ),
    )


def snap_to_curve(
    state: AppState, world_x: float, world_y: float
) -> tuple[Equation, Point] | None:
    """The visible curve closest to the cursor at ``world_x``.

    Only curves within ``SNAP_DISTANCE_FRACTION`` of the visible y-range
    qualify. Returns the equation and the point on it, or None.
    """
    best = None
    best_distance = SNAP_DISTANCE_FRACTION * state.viewport.height
    for eq in state.equations:
        if not eq.visible or not eq.expression.strip():
            continue
        f = safe_function(eq.expression)
        if f is None:
            continue
        y = f(world_x)
        if not math.isfinite(y):
            continue
        distance = abs(y - world_y)
        if distance < best_distance:
            best_distance = distance
            best = (eq, Point(world_x, y))
    return best
