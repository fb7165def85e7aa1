"""Centralized configuration for Graphcalc.

This module defines:
- Numeric tolerances for differentiation, root finding and quadrature
- Rasterizer heuristics (asymptote and step-jump detection)
- Input validation limits (length, depth, node count)
- Cache sizes for parsed and compiled expressions
- Viewport defaults and pan/zoom factors
- Allowed SymPy functions and parser transformations

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with GRAPHCALC_)
"""

import os
import re

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    standard_transformations,
)

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("graphcalc")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Numeric differentiation
DERIVATIVE_STEP = float(os.getenv("GRAPHCALC_DERIVATIVE_STEP", "1e-7"))
# One-sided slopes further apart than this mark a corner (e.g. abs(x) at 0).
# This is the only non-differentiability test; there is no symbolic check.
CORNER_TOLERANCE = float(os.getenv("GRAPHCALC_CORNER_TOLERANCE", "1e-3"))

# Bisection
ROOT_TOLERANCE = float(os.getenv("GRAPHCALC_ROOT_TOLERANCE", "1e-7"))
ROOT_MAX_ITERATIONS = int(os.getenv("GRAPHCALC_ROOT_MAX_ITERATIONS", "100"))

# Root scanning
SCAN_STEPS = int(os.getenv("GRAPHCALC_SCAN_STEPS", "2000"))  # subintervals
ROOT_DEDUP_TOLERANCE = float(
    os.getenv("GRAPHCALC_ROOT_DEDUP_TOLERANCE", "1e-5")
)  # roots closer than this are the same root

# Trapezoidal quadrature
INTEGRAL_INTERVALS = int(os.getenv("GRAPHCALC_INTEGRAL_INTERVALS", "1000"))

# Critical points whose |f''| is at or below this are neither min nor max
SECOND_DERIVATIVE_ZERO_TOLERANCE = float(
    os.getenv("GRAPHCALC_SECOND_DERIVATIVE_ZERO_TOLERANCE", "0.0")
)

# Rasterizer heuristics
ASYMPTOTE_JUMP_FRACTION = float(
    os.getenv("GRAPHCALC_ASYMPTOTE_JUMP_FRACTION", "0.5")
)  # fraction of the visible y-range a sign-flipping jump must exceed
INTEGER_JUMP_EPSILON = float(
    os.getenv("GRAPHCALC_INTEGER_JUMP_EPSILON", "1e-9")
)  # distance from a nonzero integer that still counts as a step jump

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("GRAPHCALC_MAX_INPUT_LENGTH", "2000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("GRAPHCALC_MAX_EXPRESSION_DEPTH", "100")
)  # tree depth
MAX_EXPRESSION_NODES = int(
    os.getenv("GRAPHCALC_MAX_EXPRESSION_NODES", "5000")
)  # total nodes
MAX_EXPONENT = int(
    os.getenv("GRAPHCALC_MAX_EXPONENT", "1000")
)  # bound on constant exponents, and on the decimal digits of a constant power

# Cache configuration
CACHE_SIZE_PARSE = int(os.getenv("GRAPHCALC_CACHE_SIZE_PARSE", "1024"))
CACHE_SIZE_COMPILE = int(os.getenv("GRAPHCALC_CACHE_SIZE_COMPILE", "256"))

# Output formatting
OUTPUT_PRECISION = int(os.getenv("GRAPHCALC_OUTPUT_PRECISION", "6"))

# Viewport
DEFAULT_VIEWPORT = (-10.0, 10.0, -10.0, 10.0)  # x_min, x_max, y_min, y_max
ZOOM_IN_FACTOR = float(os.getenv("GRAPHCALC_ZOOM_IN_FACTOR", "0.8"))
ZOOM_OUT_FACTOR = float(os.getenv("GRAPHCALC_ZOOM_OUT_FACTOR", "1.25"))
SNAP_DISTANCE_FRACTION = float(
    os.getenv("GRAPHCALC_SNAP_DISTANCE_FRACTION", "0.05")
)  # of the visible y-range

# Default raster size used by the CLI
DEFAULT_PIXEL_WIDTH = int(os.getenv("GRAPHCALC_PIXEL_WIDTH", "800"))
DEFAULT_PIXEL_HEIGHT = int(os.getenv("GRAPHCALC_PIXEL_HEIGHT", "600"))

# The only free variable an equation may use
VARIABLE_NAME = "x"
X = sp.Symbol(VARIABLE_NAME, real=True)


def real_cbrt(arg, evaluate=None):
    """Real cube root, negative for negative arguments (sp.cbrt is the principal root)."""
    return sp.sign(arg) * sp.Abs(arg) ** sp.Rational(1, 3)


ALLOWED_SYMPY_NAMES = {
    "x": X,
    "pi": sp.pi,
    "e": sp.E,
    "E": sp.E,
    "sqrt": sp.sqrt,
    "cbrt": real_cbrt,
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "sec": sp.sec,
    "csc": sp.csc,
    "cot": sp.cot,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "log": sp.log,
    "ln": sp.log,
    "exp": sp.exp,
    "Abs": sp.Abs,
    "abs": sp.Abs,  # lowercase alias for convenience
    "sign": sp.sign,
    "floor": sp.floor,
    "ceil": sp.ceiling,
    "ceiling": sp.ceiling,
    "Mod": sp.Mod,
    "mod": sp.Mod,  # lowercase alias for convenience
    "Max": sp.Max,
    "Min": sp.Min,
}

TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)

SQRT_UNICODE_REGEX = re.compile(r"√\s*\(")
# Digit followed by a letter or paren, except scientific notation like 1e-7
DIGIT_LETTERS_REGEX = re.compile(r"(\d)\s*(?![eE][+-]?\d)([A-Za-z(])")
