"""Command-line interface for Graphcalc.

Examples:
    python -m graphcalc_pkg --derivative "x^2" --at 1
    python -m graphcalc_pkg --integral "sin(x)" --from 0 --to 3.14159
    python -m graphcalc_pkg --extrema "x^3 - 3x" --view -5 5 -5 5 --format json
    python -m graphcalc_pkg --intersect "x^2" "4"
    python -m graphcalc_pkg --raster "tan(x)" --width 400 --svg
    python -m graphcalc_pkg --plot "floor(x)" --output floor.png
"""

from __future__ import annotations

import argparse
import json
import math
import sys
from typing import Any

from . import api
from . import config as _config
from .config import DEFAULT_PIXEL_HEIGHT, DEFAULT_PIXEL_WIDTH, DEFAULT_VIEWPORT, VERSION
from .logging_config import get_logger, setup_logging
from .parser import format_number
from .types import Equation, ValidationError, ViewPort

logger = get_logger("cli")


def _json_default(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _fmt(value: float | None) -> str:
    if value is None:
        return "none"
    if isinstance(value, float) and math.isnan(value):
        return "undefined"
    return format_number(value)


def _fmt_points(points) -> str:
    if not points:
        return "none"
    return ", ".join(f"({_fmt(p.x)}, {_fmt(p.y)})" for p in points)


def _health_check() -> int:
    """Run health check to verify dependencies and basic operations.

    Returns:
        Exit code (0 for success, non-zero for failures)
    """
    checks_passed = 0
    checks_failed = 0

    print("Running Graphcalc health check...")
    print("-" * 50)

    try:
        import sympy as sp

        print(f"[OK] SymPy {sp.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] SymPy import failed: {e}")
        checks_failed += 1

    result = api.derivative_at("x^2", 1.0)
    if result is not None and abs(result.value - 2.0) < 1e-3:
        print("[OK] Numeric differentiation works")
        checks_passed += 1
    else:
        print(f"[FAIL] Differentiation check failed: got {result}")
        checks_failed += 1

    found = api.roots("x^2 - 4", -5, 5)
    if found is not None and len(found) == 2:
        print("[OK] Root scanning works")
        checks_passed += 1
    else:
        print(f"[FAIL] Root scanning check failed: got {found}")
        checks_failed += 1

    from .plotting import HAS_MATPLOTLIB

    if HAS_MATPLOTLIB:
        print("[OK] matplotlib available for --plot")
    else:
        print("[WARN] matplotlib not installed; --plot is unavailable")

    print("-" * 50)
    print(f"Health check: {checks_passed} passed, {checks_failed} failed")
    return 0 if checks_failed == 0 else 1


def _emit(payload: Any, human: str, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, default=_json_default))
    else:
        print(human)


def _run(args: argparse.Namespace, viewport: ViewPort) -> int:
    fmt = args.format

    if args.derivative is not None:
        result = api.derivative_at(args.derivative, args.at)
        if result is None:
            return _parse_failure(args.derivative, fmt)
        if result.differentiable:
            human = f"f'({_fmt(result.x)}) ≈ {_fmt(result.value)}"
        else:
            human = (
                f"Not differentiable at x = {_fmt(result.x)} "
                f"(left {_fmt(result.left)}, right {_fmt(result.right)})"
            )
        _emit({"ok": True, "result": result}, human, fmt)
        return 0

    if args.integral is not None:
        result = api.integral(args.integral, args.lower, args.upper)
        if result is None:
            return _parse_failure(args.integral, fmt)
        _emit({"ok": True, "result": result}, f"∫ ≈ {_fmt(result.value)}", fmt)
        return 0

    if args.roots is not None:
        found = api.roots(args.roots, viewport.x_min, viewport.x_max)
        if found is None:
            return _parse_failure(args.roots, fmt)
        human = ", ".join(_fmt(r) for r in found) or "none"
        _emit({"ok": True, "roots": found}, f"Roots: {human}", fmt)
        return 0

    if args.extrema is not None:
        result = api.extrema(args.extrema, viewport)
        if result is None:
            return _parse_failure(args.extrema, fmt)
        human = (
            f"Minima: {_fmt_points(result.minima)}\n"
            f"Maxima: {_fmt_points(result.maxima)}\n"
            f"Inflections: {_fmt_points(result.inflections)}"
        )
        _emit({"ok": True, "result": result}, human, fmt)
        return 0

    if args.intersect is not None:
        first, second = args.intersect
        result = api.intersections(first, second, viewport)
        if result is None:
            return _parse_failure(f"{first} / {second}", fmt)
        _emit(
            {"ok": True, "result": result},
            f"Intersections: {_fmt_points(result.points)}",
            fmt,
        )
        return 0

    if args.raster is not None:
        ok, error = api.validate_expression(args.raster)
        if not ok:
            return _parse_failure(args.raster, fmt, error)
        segments = api.rasterize_expression(args.raster, args.width, viewport, args.height)
        if args.svg:
            from .raster import segments_to_svg_path

            print(segments_to_svg_path(segments))
            return 0
        human = f"{len(segments)} segment(s), {sum(len(s) for s in segments)} point(s)"
        _emit({"ok": True, "segments": segments}, human, fmt)
        return 0

    if args.plot is not None:
        from .plotting import render_state
        from .state import AppState

        equations = tuple(
            Equation(i + 1, text) for i, text in enumerate(args.plot)
        )
        state = AppState(equations=equations, viewport=viewport)
        result = render_state(state, args.width, args.height, args.output)
        _emit(result.to_dict(), result.path or result.error, fmt)
        return 0 if result.ok else 1

    return -1


def _parse_failure(expression: str, output_format: str, error: str | None = None) -> int:
    if error is None:
        _, error = api.validate_expression(expression)
    message = error or "Expression could not be analysed"
    _emit({"ok": False, "error": message}, f"Error: {message}", output_format)
    return 1


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for Graphcalc CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="graphcalc")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--derivative", type=str, metavar="EXPR", help="Derivative at --at")
    action.add_argument("--integral", type=str, metavar="EXPR", help="Integral from --from to --to")
    action.add_argument("--roots", type=str, metavar="EXPR", help="Roots inside the view")
    action.add_argument("--extrema", type=str, metavar="EXPR", help="Extrema and inflections inside the view")
    action.add_argument("--intersect", type=str, nargs=2, metavar="EXPR", help="Intersections of two curves")
    action.add_argument("--raster", type=str, metavar="EXPR", help="Rasterize a curve")
    action.add_argument("--plot", type=str, nargs="+", metavar="EXPR", help="Render curves to a PNG")
    parser.add_argument("--at", type=float, default=0.0, help="x for --derivative")
    parser.add_argument("--from", dest="lower", type=float, default=-2.0, help="Lower bound for --integral")
    parser.add_argument("--to", dest="upper", type=float, default=2.0, help="Upper bound for --integral")
    parser.add_argument(
        "--view",
        type=float,
        nargs=4,
        metavar=("XMIN", "XMAX", "YMIN", "YMAX"),
        default=list(DEFAULT_VIEWPORT),
        help="Visible world rectangle",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_PIXEL_WIDTH, help="Pixel width")
    parser.add_argument("--height", type=int, default=DEFAULT_PIXEL_HEIGHT, help="Pixel height")
    parser.add_argument("--svg", action="store_true", help="Print --raster output as SVG path data")
    parser.add_argument("--output", type=str, help="PNG path for --plot")
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "--scan-steps", type=int, help="Override root-scan subintervals (default: 2000)"
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    # Apply CLI configuration overrides
    if args.scan_steps and args.scan_steps > 0:
        _config.SCAN_STEPS = int(args.scan_steps)
    if args.precision and args.precision > 0:
        _config.OUTPUT_PRECISION = int(args.precision)

    if args.version:
        print(VERSION)
        return 0
    if args.health_check:
        return _health_check()

    try:
        viewport = ViewPort(*args.view)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    code = _run(args, viewport)
    if code < 0:
        parser.print_help()
        return 0
    return code


if __name__ == "__main__":
    sys.exit(main_entry())
