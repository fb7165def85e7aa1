"""Type definitions and result dataclasses for consistent API responses."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Union


def _float_or_none(value: Any) -> float | None:
    return None if value is None else float(value)


@dataclass(frozen=True)
class Equation:
    """A user-entered equation y = f(x)."""

    id: Any
    expression: str
    color: str = ""
    visible: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "text": self.expression,
            "color": self.color,
            "visible": self.visible,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Equation:
        # "text" is the workspace key, "expression" is accepted as well
        expression = data.get("text", data.get("expression", ""))
        return cls(
            id=data["id"],
            expression=expression or "",
            color=data.get("color", ""),
            visible=bool(data.get("visible", True)),
        )


@dataclass(frozen=True)
class ViewPort:
    """Visible world rectangle. Bounds must be finite and strictly ordered."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self) -> None:
        bounds = (self.x_min, self.x_max, self.y_min, self.y_max)
        if not all(math.isfinite(b) for b in bounds):
            raise ValidationError("Viewport bounds must be finite", "INVALID_VIEWPORT")
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise ValidationError(
                f"Viewport requires x_min < x_max and y_min < y_max, got {bounds}",
                "INVALID_VIEWPORT",
            )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for JSON serialization."""
        return {
            "xMin": self.x_min,
            "xMax": self.x_max,
            "yMin": self.y_min,
            "yMax": self.y_max,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViewPort:
        try:
            return cls(
                float(data["xMin"]),
                float(data["xMax"]),
                float(data["yMin"]),
                float(data["yMax"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid viewport data: {e}", "INVALID_VIEWPORT")


# --- Analysis requests ---


@dataclass(frozen=True)
class DerivativeRequest:
    equation_id: Any
    x: float
    kind: str = field(default="derivative", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "equationId": self.equation_id, "x": self.x}


@dataclass(frozen=True)
class IntegralRequest:
    equation_id: Any
    a: float
    b: float
    kind: str = field(default="integral", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "equationId": self.equation_id,
            "a": self.a,
            "b": self.b,
        }


@dataclass(frozen=True)
class IntersectionsRequest:
    equation_id_1: Any
    equation_id_2: Any
    kind: str = field(default="intersections", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "equationId1": self.equation_id_1,
            "equationId2": self.equation_id_2,
        }


@dataclass(frozen=True)
class ExtremaRequest:
    equation_id: Any
    kind: str = field(default="extrema", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "equationId": self.equation_id}


AnalysisRequest = Union[
    DerivativeRequest, IntegralRequest, IntersectionsRequest, ExtremaRequest
]


def request_from_dict(data: dict[str, Any]) -> AnalysisRequest:
    """Rebuild an analysis request from its ``to_dict()`` form.

    Raises:
        ValidationError: If the kind is unknown or a field is missing
    """
    kind = data.get("kind")
    try:
        if kind == "derivative":
            return DerivativeRequest(data["equationId"], float(data["x"]))
        if kind == "integral":
            return IntegralRequest(
                data["equationId"], float(data["a"]), float(data["b"])
            )
        if kind == "intersections":
            return IntersectionsRequest(data["equationId1"], data["equationId2"])
        if kind == "extrema":
            return ExtremaRequest(data["equationId"])
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {kind} request: {e}", "INVALID_REQUEST")
    raise ValidationError(f"Unknown analysis kind: {kind!r}", "INVALID_REQUEST")


# --- Analysis results ---


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Tangent:
    """Tangent line through (x0, y0) with the given slope."""

    slope: float
    x0: float
    y0: float

    def at(self, x: float) -> float:
        return self.slope * (x - self.x0) + self.y0

    def to_dict(self) -> dict[str, float]:
        return {"slope": self.slope, "x0": self.x0, "y0": self.y0}


@dataclass(frozen=True)
class DerivativeResult:
    """Derivative at a point.

    ``value`` is NaN when the function is undefined at ``x`` or has a corner
    there; ``left``/``right`` still carry the one-sided slopes for a corner.
    """

    value: float
    left: float
    right: float
    x: float
    y: float
    tangent: Tangent | None = None
    kind: str = field(default="derivative", init=False)

    @property
    def differentiable(self) -> bool:
        return math.isfinite(self.value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "value": self.value,
            "left": self.left,
            "right": self.right,
            "x": self.x,
            "y": self.y,
            "tangent": self.tangent.to_dict() if self.tangent else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DerivativeResult:
        tangent = data.get("tangent")
        return cls(
            value=float(data["value"]),
            left=float(data["left"]),
            right=float(data["right"]),
            x=float(data["x"]),
            y=float(data["y"]),
            tangent=Tangent(**tangent) if tangent else None,
        )


@dataclass(frozen=True)
class IntegralResult:
    """Definite integral. ``value`` is None when the estimate is undefined."""

    value: float | None
    kind: str = field(default="integral", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IntegralResult:
        return cls(_float_or_none(data.get("value")))


@dataclass(frozen=True)
class IntersectionResult:
    points: tuple[Point, ...] = ()
    kind: str = field(default="intersections", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "points": [p.to_dict() for p in self.points]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IntersectionResult:
        return cls(tuple(Point(p["x"], p["y"]) for p in data.get("points", [])))


@dataclass(frozen=True)
class ExtremaResult:
    minima: tuple[Point, ...] = ()
    maxima: tuple[Point, ...] = ()
    inflections: tuple[Point, ...] = ()
    kind: str = field(default="extrema", init=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "min": [p.to_dict() for p in self.minima],
            "max": [p.to_dict() for p in self.maxima],
            "inflection": [p.to_dict() for p in self.inflections],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtremaResult:
        def points(key: str) -> tuple[Point, ...]:
            return tuple(Point(p["x"], p["y"]) for p in data.get(key, []))

        return cls(points("min"), points("max"), points("inflection"))


AnalysisResult = Union[
    DerivativeResult, IntegralResult, IntersectionResult, ExtremaResult
]


# --- Rasterization ---


@dataclass(frozen=True)
class SamplePoint:
    world_x: float
    world_y: float  # NaN or inf when the function is undefined here

    @property
    def finite(self) -> bool:
        return math.isfinite(self.world_y)


@dataclass(frozen=True)
class CurveSegment:
    """A continuous run of screen-space points."""

    points: tuple[tuple[float, float], ...]

    def __len__(self) -> int:
        return len(self.points)

    def to_dict(self) -> dict[str, Any]:
        return {"points": [list(p) for p in self.points]}


@dataclass
class RenderResult:
    """Result of rendering a graph to an image file."""

    ok: bool
    path: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.path is not None:
            result_dict["path"] = self.path
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict


# --- Errors ---


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when an expression does not compile."""

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class EvaluationError(Exception):
    """Raised when an expression compiles but an operation on it fails."""

    def __init__(self, message: str, code: str = "EVALUATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
