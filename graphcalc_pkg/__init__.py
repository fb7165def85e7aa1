"""Graphcalc package: numerical function analysis and curve rasterization."""

__all__ = [
    "config",
    "parser",
    "evaluator",
    "numeric",
    "analysis",
    "raster",
    "state",
    "workspace",
    "plotting",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "derivative_at",
    "integral",
    "intersections",
    "extrema",
    "roots",
    "rasterize_expression",
    "validate_expression",
]
