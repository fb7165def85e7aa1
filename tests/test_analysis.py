"""Tests for derivative, integral, extrema and intersection analysis."""

import json
import math

import pytest

from graphcalc_pkg.analysis import (
    compute_derivative,
    compute_integral,
    derivative_equation,
    find_extrema,
    find_intersections,
    run_analysis,
)
from graphcalc_pkg.types import (
    DerivativeRequest,
    DerivativeResult,
    Equation,
    ExtremaRequest,
    ExtremaResult,
    IntegralRequest,
    IntersectionsRequest,
    ViewPort,
    request_from_dict,
)

VIEW = ViewPort(-5.0, 5.0, -5.0, 5.0)


class TestComputeDerivative:
    def test_value_and_tangent(self):
        result = compute_derivative(Equation(1, "x^2"), 3.0)
        assert isinstance(result, DerivativeResult)
        assert result.value == pytest.approx(6.0, abs=1e-5)
        assert result.y == pytest.approx(9.0)
        assert result.tangent is not None
        assert result.tangent.at(3.0) == pytest.approx(9.0)
        assert result.tangent.at(4.0) == pytest.approx(15.0, abs=1e-4)

    def test_corner(self):
        result = compute_derivative(Equation(1, "abs(x)"), 0.0)
        assert not result.differentiable
        assert result.left == pytest.approx(-1.0)
        assert result.right == pytest.approx(1.0)
        assert result.tangent is None

    def test_undefined_point(self):
        result = compute_derivative(Equation(1, "1/x"), 0.0)
        assert math.isnan(result.value)
        assert math.isnan(result.y)
        assert result.tangent is None


class TestComputeIntegral:
    def test_value(self):
        assert compute_integral(Equation(1, "x"), 0.0, 1.0).value == pytest.approx(0.5)

    def test_undefined_is_none(self):
        assert compute_integral(Equation(1, "1/x"), 0.0, 1.0).value is None


class TestFindExtrema:
    def test_parabola(self):
        result = find_extrema(Equation(1, "x^2"), VIEW)
        assert len(result.minima) == 1
        assert result.minima[0].x == pytest.approx(0.0, abs=1e-6)
        assert result.minima[0].y == pytest.approx(0.0, abs=1e-6)
        assert result.maxima == ()
        assert result.inflections == ()

    def test_cubic(self):
        result = find_extrema(Equation(1, "x^3 - 3x"), ViewPort(-3, 3, -5, 5))
        assert [p.x for p in result.maxima] == [pytest.approx(-1.0, abs=1e-6)]
        assert [p.x for p in result.minima] == [pytest.approx(1.0, abs=1e-6)]
        # y comes from the original function, not its derivative
        assert result.maxima[0].y == pytest.approx(2.0, abs=1e-6)
        assert result.minima[0].y == pytest.approx(-2.0, abs=1e-6)
        assert len(result.inflections) == 1
        assert result.inflections[0].x == pytest.approx(0.0, abs=1e-6)

    def test_no_closed_form_second_derivative(self):
        result = find_extrema(Equation(1, "abs(x)"), VIEW)
        assert result.minima == ()
        assert result.maxima == ()


class TestFindIntersections:
    def test_parabola_and_line(self):
        result = find_intersections(Equation(1, "x^2"), Equation(2, "4"), VIEW)
        points = sorted(result.points, key=lambda p: p.x)
        assert len(points) == 2
        assert points[0].x == pytest.approx(-2.0, abs=1e-6)
        assert points[1].x == pytest.approx(2.0, abs=1e-6)
        assert all(p.y == pytest.approx(4.0, abs=1e-5) for p in points)

    def test_parallel_lines(self):
        result = find_intersections(Equation(1, "x"), Equation(2, "x + 1"), VIEW)
        assert result.points == ()


class _LinearEvaluator:
    """Stub evaluator: every expression is f(x) = x - 1."""

    def compile(self, expression):
        return lambda x: x - 1.0

    def evaluate(self, expression, bindings):
        return bindings["x"] - 1.0

    def symbolic_derivative(self, expression, variable="x"):
        return "1"


class TestRunAnalysis:
    equations = (Equation(1, "x^2"), Equation(2, "4"), Equation(3, "x +"))

    def test_dispatch(self):
        result = run_analysis(ExtremaRequest(1), self.equations, VIEW)
        assert isinstance(result, ExtremaResult)
        result = run_analysis(IntegralRequest(1, 0.0, 3.0), self.equations, VIEW)
        assert result.value == pytest.approx(9.0, abs=1e-4)

    def test_unknown_equation(self):
        assert run_analysis(DerivativeRequest(42, 1.0), self.equations, VIEW) is None
        assert run_analysis(IntersectionsRequest(1, 42), self.equations, VIEW) is None

    def test_unparsable_equation(self):
        assert run_analysis(DerivativeRequest(3, 1.0), self.equations, VIEW) is None

    def test_unsupported_request(self):
        with pytest.raises(TypeError):
            run_analysis(object(), self.equations, VIEW)

    def test_idempotent(self):
        request = IntersectionsRequest(1, 2)
        first = run_analysis(request, self.equations, VIEW)
        second = run_analysis(request, self.equations, VIEW)
        assert first == second

    def test_replay_from_serialized_request(self):
        request = DerivativeRequest(1, 1.5)
        restored = request_from_dict(json.loads(json.dumps(request.to_dict())))
        assert restored == request
        assert run_analysis(restored, self.equations, VIEW) == run_analysis(
            request, self.equations, VIEW
        )

    def test_custom_evaluator(self):
        result = run_analysis(
            IntersectionsRequest(1, 2), self.equations, VIEW, _LinearEvaluator()
        )
        # f - f is identically zero, so there is no sign change to find
        assert result.points == ()
        result = run_analysis(
            DerivativeRequest(1, 3.0), self.equations, VIEW, _LinearEvaluator()
        )
        assert result.value == pytest.approx(1.0)
        assert result.y == pytest.approx(2.0)


class TestDerivativeEquation:
    def test_new_equation(self):
        eq = derivative_equation(Equation(1, "x^3", "#ff0000", visible=False), 2)
        assert eq == Equation(2, "3*x**2", "#ff0000", True)

    def test_color_override(self):
        eq = derivative_equation(Equation(1, "sin(x)", "red"), 5, color="blue")
        assert eq.color == "blue"
        assert eq.expression == "cos(x)"

    def test_unusable_expression(self):
        assert derivative_equation(Equation(1, "x +"), 2) is None
