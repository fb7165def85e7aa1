"""Test that API functions return typed dataclasses."""

import logging

import pytest

from graphcalc_pkg.api import (
    derivative_at,
    extrema,
    integral,
    intersections,
    rasterize_expression,
    roots,
    validate_expression,
)
from graphcalc_pkg.types import (
    CurveSegment,
    DerivativeResult,
    ExtremaResult,
    IntegralResult,
    IntersectionResult,
    ViewPort,
)


class TestAPITypedReturns:
    """Test that all API functions return typed dataclasses."""

    def test_derivative_at_returns_derivative_result(self):
        result = derivative_at("x^2", 1.0)
        assert isinstance(result, DerivativeResult)
        assert result.differentiable
        assert result.value == pytest.approx(2.0, abs=1e-5)

    def test_integral_returns_integral_result(self):
        result = integral("x", 0, 1)
        assert isinstance(result, IntegralResult)
        assert result.value == pytest.approx(0.5)

    def test_intersections_returns_intersection_result(self):
        result = intersections("x^2", "4", ViewPort(-5, 5, -5, 5))
        assert isinstance(result, IntersectionResult)
        assert len(result.points) == 2

    def test_extrema_returns_extrema_result(self):
        result = extrema("x^2", ViewPort(-5, 5, -5, 5))
        assert isinstance(result, ExtremaResult)
        assert (len(result.minima), len(result.maxima)) == (1, 0)

    def test_extrema_uses_default_view(self):
        result = extrema("sin(x)")
        # sin has 3 maxima and 3 minima in [-10, 10]
        assert (len(result.minima), len(result.maxima)) == (3, 3)

    def test_roots_returns_list(self):
        found = roots("x^2 - 4", -5, 5)
        assert sorted(round(r, 6) for r in found) == [-2.0, 2.0]

    def test_rasterize_expression_returns_segments(self):
        segments = rasterize_expression("x", 100)
        assert len(segments) == 1
        assert all(isinstance(s, CurveSegment) for s in segments)

    def test_validate_expression_returns_tuple(self):
        assert validate_expression("sin(x) + x^2") == (True, None)
        ok, error = validate_expression("import os")
        assert ok is False
        assert error == "Input contains forbidden token: import"

    @pytest.mark.parametrize(
        "call",
        [
            lambda: derivative_at("x +", 1.0),
            lambda: integral("x +", 0, 1),
            lambda: intersections("x", "x +"),
            lambda: extrema("x +"),
            lambda: roots("x +", -1, 1),
        ],
    )
    def test_unusable_expression_returns_none(self, call):
        assert call() is None

    def test_rasterize_unusable_expression_is_empty(self):
        assert rasterize_expression("x +", 100) == []


class TestAPIBoundary:
    """Unexpected failures are logged with a traceback and reported as no result."""

    @staticmethod
    def _boom(*args, **kwargs):
        raise RuntimeError("boom")

    @pytest.mark.parametrize(
        "target,call,expected",
        [
            ("compute_derivative", lambda: derivative_at("x", 1.0), None),
            ("compute_integral", lambda: integral("x", 0, 1), None),
            ("find_intersections", lambda: intersections("x", "1"), None),
            ("find_extrema", lambda: extrema("x"), None),
            ("scan_for_roots", lambda: roots("x", -1, 1), None),
            ("rasterize", lambda: rasterize_expression("x", 10), []),
        ],
    )
    def test_unexpected_error_is_logged(self, monkeypatch, caplog, target, call, expected):
        monkeypatch.setattr(f"graphcalc_pkg.api.{target}", self._boom)
        with caplog.at_level(logging.ERROR, logger="graphcalc.api"):
            assert call() == expected
        records = [r for r in caplog.records if r.name == "graphcalc.api"]
        assert records and records[0].levelno == logging.ERROR
        assert records[0].exc_info is not None
        assert "boom" in records[0].getMessage()

    def test_validate_reports_unexpected_error(self, monkeypatch, caplog):
        monkeypatch.setattr("graphcalc_pkg.api.compile_expression", self._boom)
        with caplog.at_level(logging.ERROR, logger="graphcalc.api"):
            ok, error = validate_expression("x")
        assert ok is False
        assert "boom" in error

    @pytest.mark.parametrize("text", ["Mod(x, 0)", "2**1000000", "10^10^10"])
    def test_hostile_text_is_unusable(self, text):
        assert validate_expression(text)[0] is False
        assert derivative_at(text, 1.0) is None
        assert rasterize_expression(text, 50) == []
