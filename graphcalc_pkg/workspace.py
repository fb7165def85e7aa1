"""Workspace save/load.

A workspace is flat JSON holding the equations, the view and the settings::

    {"equations": [{"id": 1, "text": "sin(x)", "color": "#3b82f6", "visible": true}],
     "view": {"xMin": -10, "xMax": 10, "yMin": -5, "yMax": 5},
     "settings": {"showGrid": true}}

The active analysis is not saved.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .logging_config import get_logger
from .state import AppState
from .types import Equation, ValidationError, ViewPort

logger = get_logger("workspace")

_REQUIRED_KEYS = ("equations", "view", "settings")


def workspace_to_dict(state: AppState) -> dict[str, Any]:
    return {
        "equations": [eq.to_dict() for eq in state.equations],
        "view": state.viewport.to_dict(),
        "settings": state.settings_dict,
    }


def workspace_from_dict(data: Any) -> AppState:
    """Build an idle ``AppState`` from workspace data.

    Raises:
        ValidationError: If a section is missing or malformed
    """
    if not isinstance(data, dict) or any(key not in data for key in _REQUIRED_KEYS):
        raise ValidationError(
            f"Invalid workspace: expected keys {', '.join(_REQUIRED_KEYS)}",
            "INVALID_WORKSPACE",
        )
    try:
        equations = tuple(Equation.from_dict(item) for item in data["equations"])
        settings = tuple(dict(data["settings"]).items())
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid workspace: {e}", "INVALID_WORKSPACE")
    return AppState(
        equations=equations,
        viewport=ViewPort.from_dict(data["view"]),
        settings=settings,
    )


def dumps_workspace(state: AppState) -> str:
    return json.dumps(workspace_to_dict(state), indent=2)


def loads_workspace(text: str) -> AppState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Error reading workspace: {e}", "INVALID_JSON")
    return workspace_from_dict(data)


def save_workspace(state: AppState, path: str | Path) -> Path:
    """Write the workspace to ``path`` and return the path written."""
    path = Path(path)
    path.write_text(dumps_workspace(state), encoding="utf-8")
    logger.info(f"Saved workspace with {len(state.equations)} equation(s) to {path}")
    return path


def load_workspace(path: str | Path) -> AppState:
    path = Path(path)
    state = loads_workspace(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded workspace with {len(state.equations)} equation(s) from {path}")
    return state
