"""Unit tests for the numeric core."""

import math
import unittest

from graphcalc_pkg.evaluator import compile_expression
from graphcalc_pkg.numeric import differentiate, find_root, integrate, scan_for_roots


class TestDifferentiate(unittest.TestCase):
    """Test finite-difference derivatives."""

    def test_square(self):
        est = differentiate(lambda x: x * x, 1.0)
        self.assertAlmostEqual(est.value, 2.0, places=5)

    def test_compiled_expression(self):
        est = differentiate(compile_expression("sin(x)"), 0.0)
        self.assertAlmostEqual(est.value, 1.0, places=5)

    def test_corner_keeps_one_sided_slopes(self):
        est = differentiate(abs, 0.0)
        self.assertTrue(math.isnan(est.value))
        self.assertAlmostEqual(est.left, -1.0, places=5)
        self.assertAlmostEqual(est.right, 1.0, places=5)

    def test_undefined_point(self):
        est = differentiate(compile_expression("1/x"), 0.0)
        self.assertTrue(math.isnan(est.value))
        self.assertTrue(math.isnan(est.left))
        self.assertTrue(math.isnan(est.right))

    def test_undefined_neighbour(self):
        # sqrt is defined at 0 but not at 0 - h
        est = differentiate(compile_expression("sqrt(x)"), 0.0)
        self.assertTrue(math.isnan(est.value))
        self.assertTrue(math.isnan(est.left))


class TestFindRoot(unittest.TestCase):
    """Test bisection."""

    def test_sqrt_two(self):
        root = find_root(lambda x: x * x - 2, 0.0, 2.0)
        self.assertLess(abs(root - math.sqrt(2)), 1e-6)

    def test_no_sign_change(self):
        self.assertIsNone(find_root(lambda x: x * x + 1, -1.0, 1.0))

    def test_undefined_endpoint(self):
        self.assertIsNone(find_root(compile_expression("log(x)"), -1.0, 2.0))

    def test_best_effort_after_max_iter(self):
        root = find_root(lambda x: x - 0.3, 0.0, 1.0, tol=1e-30, max_iter=5)
        self.assertIsNotNone(root)
        self.assertLess(abs(root - 0.3), 1.0 / 2**5)


class TestScanForRoots(unittest.TestCase):
    """Test root scanning over an interval."""

    def test_sine_roots_each_once(self):
        roots = scan_for_roots(math.sin, -0.5, 7.0)
        self.assertEqual(len(roots), 3)
        for expected, found in zip((0.0, math.pi, 2 * math.pi), sorted(roots)):
            self.assertLess(abs(found - expected), 1e-6)

    def test_roots_on_grid_points(self):
        # -2 and 2 are exact grid points for [-5, 5] with 2000 steps
        roots = sorted(scan_for_roots(lambda x: x * x - 4, -5.0, 5.0))
        self.assertEqual(len(roots), 2)
        self.assertAlmostEqual(roots[0], -2.0, places=6)
        self.assertAlmostEqual(roots[1], 2.0, places=6)

    def test_touching_root_not_found(self):
        self.assertEqual(scan_for_roots(lambda x: x * x, -1.0, 1.0), [])

    def test_no_sign_change_across_gap(self):
        # The pole of 1/x sits on a grid point, so the sign flip is never bridged
        self.assertEqual(scan_for_roots(compile_expression("1/x"), -1.0, 1.0), [])

    def test_steps_argument(self):
        roots = scan_for_roots(lambda x: x - 0.25, 0.0, 1.0, steps=10)
        self.assertEqual(len(roots), 1)
        self.assertAlmostEqual(roots[0], 0.25, places=6)

    def test_non_positive_steps(self):
        self.assertEqual(scan_for_roots(math.sin, -1.0, 1.0, steps=0), [])


class TestIntegrate(unittest.TestCase):
    """Test trapezoidal quadrature."""

    def test_linear_is_exact(self):
        self.assertAlmostEqual(integrate(lambda x: x, 0.0, 1.0), 0.5, places=9)

    def test_swapped_bounds_negate(self):
        f = compile_expression("x^2")
        self.assertAlmostEqual(integrate(f, 0.0, 2.0), -integrate(f, 2.0, 0.0), places=9)
        self.assertAlmostEqual(integrate(f, 0.0, 2.0), 8.0 / 3.0, places=5)

    def test_non_finite_bounds(self):
        self.assertTrue(math.isnan(integrate(lambda x: x, 0.0, math.inf)))
        self.assertTrue(math.isnan(integrate(lambda x: x, math.nan, 1.0)))

    def test_undefined_endpoint(self):
        self.assertTrue(math.isnan(integrate(compile_expression("1/x"), 0.0, 1.0)))

    def test_undefined_interior_sample_is_skipped(self):
        def f(x):
            return math.nan if x == 0.5 else 1.0

        # one of 999 interior samples drops out of the sum
        self.assertAlmostEqual(integrate(f, 0.0, 1.0), 0.999, places=9)


if __name__ == "__main__":
    unittest.main()
