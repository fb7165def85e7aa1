"""Tests for failure modes and invalid input handling."""

import math
import subprocess
import sys
import time

import pytest

from graphcalc_pkg.analysis import run_analysis
from graphcalc_pkg.evaluator import compile_expression, evaluate
from graphcalc_pkg.parser import parse_preprocessed, preprocess
from graphcalc_pkg.raster import rasterize
from graphcalc_pkg.types import (
    DerivativeRequest,
    Equation,
    ExtremaRequest,
    IntegralRequest,
    IntersectionsRequest,
    ParseError,
    ValidationError,
    ViewPort,
)

VIEW = ViewPort(-10.0, 10.0, -10.0, 10.0)


class TestInputValidationFailures:
    """Test input validation failure modes."""

    def test_empty_input(self):
        with pytest.raises(ValidationError):
            preprocess("")

    def test_whitespace_only(self):
        with pytest.raises(ValidationError):
            preprocess("   ")

    def test_too_long_input(self):
        with pytest.raises(ValidationError):
            preprocess("x+" * 1001)

    def test_unbalanced_braces(self):
        with pytest.raises(ValidationError):
            preprocess("{x + 1")

    def test_mismatched_delimiters(self):
        with pytest.raises(ValidationError):
            preprocess("(x + 1]")

    def test_forbidden_token_import(self):
        with pytest.raises(ValidationError) as exc_info:
            preprocess("__import__('os')")
        assert "forbidden" in str(exc_info.value).lower()

    def test_forbidden_token_eval(self):
        with pytest.raises(ValidationError):
            preprocess("eval('1+1')")

    def test_too_deep_expression(self):
        deep_expr = "x"
        for _ in range(120):
            deep_expr = f"sin({deep_expr})"
        with pytest.raises(ValidationError) as exc_info:
            parse_preprocessed(preprocess(deep_expr))
        assert exc_info.value.code == "TOO_DEEP"

    def test_equation_syntax_is_not_an_expression(self):
        with pytest.raises((ParseError, ValidationError)):
            compile_expression("x = 1")


class TestEvaluationFailures:
    """Points outside the domain are NaN, never exceptions."""

    @pytest.mark.parametrize(
        "expression,x",
        [
            ("exp(x)", 1e6),
            ("asin(x)", 2.0),
            ("1/(x - 1)", 1.0),
            ("log(0)", 0.0),
            ("x^x", -0.5),
        ],
    )
    def test_nan_outside_domain(self, expression, x):
        assert math.isnan(evaluate(expression, {"x": x}))


class TestAnalysisFailures:
    """Analysis on broken input yields no result instead of raising."""

    def test_empty_equation(self):
        assert run_analysis(ExtremaRequest(1), [Equation(1, "")], VIEW) is None

    def test_no_equations(self):
        assert run_analysis(DerivativeRequest(1, 0.0), [], VIEW) is None

    def test_integral_across_pole_is_finite(self):
        # the sample on the pole is skipped, leaving a biased estimate
        result = run_analysis(IntegralRequest(1, -1.0, 1.0), [Equation(1, "1/x")], VIEW)
        assert result.value is not None
        assert abs(result.value) < 1e-6

    def test_rasterize_never_raises(self):
        for text in ("x +", "y", "__import__", "sin(", "Integral(x, x)", "1/0"):
            assert rasterize(Equation(1, text), VIEW, 50) == []


# Inputs that parse but used to fail later: while evaluating, while compiling,
# or while comparing samples
HOSTILE_INPUTS = ["Mod(x, 0)", "mod(x, 0)", "2**1000000", "10^10^10", "x*1e307"]


class TestHostileInputs:
    @pytest.mark.parametrize("text", HOSTILE_INPUTS)
    @pytest.mark.parametrize(
        "view", [VIEW, ViewPort(-15.0, 15.0, -10.0, 10.0)], ids=["default", "wide"]
    )
    @pytest.mark.parametrize("width", [1, 50])
    def test_rasterize_returns_segments(self, text, view, width):
        start = time.time()
        segments = rasterize(Equation(1, text), view, width)
        assert isinstance(segments, list)
        assert time.time() - start < 5.0

    @pytest.mark.parametrize("text", HOSTILE_INPUTS)
    @pytest.mark.parametrize(
        "request_",
        [
            DerivativeRequest(1, 1.0),
            IntegralRequest(1, -1.0, 1.0),
            ExtremaRequest(1),
            IntersectionsRequest(1, 2),
        ],
        ids=lambda r: r.kind,
    )
    def test_run_analysis_does_not_raise(self, text, request_):
        equations = [Equation(1, text), Equation(2, "x")]
        start = time.time()
        run_analysis(request_, equations, VIEW)
        assert time.time() - start < 10.0

    def test_unparsable_results_are_empty(self):
        for text in ("Mod(x, 0)", "2**1000000", "10^10^10"):
            assert rasterize(Equation(1, text), VIEW, 50) == []
            assert run_analysis(ExtremaRequest(1), [Equation(1, text)], VIEW) is None


def test_power_tower_cli_finishes():
    result = subprocess.run(
        [sys.executable, "-m", "graphcalc_pkg.cli", "--raster", "10^10^10", "--width", "50"],
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert result.returncode == 1
