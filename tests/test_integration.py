"""Tests for analytic and numerical integration."""

import math

import numpy as np
import pytest
from scipy import integrate as sp_integrate

from conftest import CUBIC_KNOTS
from pybspline import (
    BilinearForm,
    BSplineGenerator,
    DifferingGridsError,
    Dx,
    Grid,
    LinearForm,
    ScalarProduct,
    Spline,
    Support,
    X,
    integrate,
    integrate_numerically,
)


def _quad(func, m1, m2):
    """Reference integral of func over the common support of m1 and m2."""
    support = m1.support.intersection(m2.support)
    if not support.contains_intervals:
        return 0.0
    total = 0.0
    values = support.values
    for a, b in zip(values[:-1], values[1:]):
        total += sp_integrate.quad(func, a, b, epsabs=1e-14, epsrel=1e-14)[0]
    return total


# ---------------------------------------------------------------------------
# integrate
# ---------------------------------------------------------------------------

class TestIntegrate:
    def test_constant(self, grid5):
        assert integrate(Spline.constant(Support.whole_grid(grid5), 2.0)) == 8.0

    def test_bspline_integrals(self, cubic_basis):
        """int B_i = (t[i+k] - t[i]) / k."""
        for i, b in enumerate(cubic_basis):
            expected = (CUBIC_KNOTS[i + 4] - CUBIC_KNOTS[i]) / 4
            assert integrate(b) == pytest.approx(expected, abs=1e-14)

    def test_odd_function_on_symmetric_grid(self):
        one = Spline.constant(Support.whole_grid(Grid([-1.0, 0.0, 1.0])))
        assert integrate(X(1) * one) == 0.0
        assert integrate(X(3) * one) == pytest.approx(0.0, abs=1e-15)

    def test_against_quad(self, cubic_basis):
        s = cubic_basis[2] * cubic_basis[3]
        assert integrate(s) == pytest.approx(_quad(s, s, s), abs=1e-13)

    def test_zero_spline(self, grid5):
        assert integrate(Spline.zero(grid5, 3)) == 0.0

    def test_returns_spline_dtype(self):
        grid = Grid([0.0, 1.0, 2.0], dtype=np.float32)
        result = integrate(Spline.constant(Support.whole_grid(grid)))
        assert isinstance(result, np.float32)

    def test_requires_spline(self):
        with pytest.raises(TypeError):
            integrate(np.ones(3))


class TestLinearForm:
    def test_identity(self, cubic_basis):
        for b in cubic_basis:
            assert LinearForm()(b) == integrate(b)

    def test_derivative_of_interior_bspline(self, cubic_basis):
        """B vanishes at both ends of its support, so int B' = 0."""
        assert LinearForm(Dx(1))(cubic_basis[3]) == pytest.approx(0.0, abs=1e-14)

    def test_derivative_of_boundary_bspline(self, cubic_basis):
        """int B_0' = B_0(4) - B_0(0) = -1 for the clamped basis."""
        assert LinearForm(Dx(1)).evaluate(cubic_basis[0]) == pytest.approx(-1.0, abs=1e-14)

    def test_position_weight(self, cubic_basis):
        b = cubic_basis[2]
        expected = _quad(lambda x: x * b(x), b, b)
        assert LinearForm(X(1))(b) == pytest.approx(expected, abs=1e-13)

    def test_rejects_non_operator(self):
        with pytest.raises(TypeError, match="Operator"):
            LinearForm(lambda s: s)


# ---------------------------------------------------------------------------
# BilinearForm
# ---------------------------------------------------------------------------

class TestBilinearForm:
    @pytest.mark.parametrize("i, j", [(0, 0), (1, 2), (2, 4), (3, 3), (5, 6)])
    def test_scalar_product_against_quad(self, cubic_basis, i, j):
        b1, b2 = cubic_basis[i], cubic_basis[j]
        expected = _quad(lambda x: b1(x) * b2(x), b1, b2)
        assert ScalarProduct()(b1, b2) == pytest.approx(expected, abs=1e-13)

    def test_scalar_product_symmetric(self, cubic_basis):
        sp = ScalarProduct()
        assert sp(cubic_basis[1], cubic_basis[3]) == pytest.approx(
            sp(cubic_basis[3], cubic_basis[1]), abs=1e-15
        )

    @pytest.mark.parametrize("op1, op2, weight", [
        (None, X(1), lambda b1, b2, x: b1(x) * x * b2(x)),
        (None, X(2), lambda b1, b2, x: b1(x) * x * x * b2(x)),
        (None, Dx(1), lambda b1, b2, x: b1(x) * b2.dx(1)(x)),
        (None, Dx(2), lambda b1, b2, x: b1(x) * b2.dx(2)(x)),
        (Dx(1), Dx(1), lambda b1, b2, x: b1.dx(1)(x) * b2.dx(1)(x)),
        (None, X(2) * Dx(2), lambda b1, b2, x: b1(x) * x * x * b2.dx(2)(x)),
        (X(1), X(1) * Dx(1), lambda b1, b2, x: x * b1(x) * x * b2.dx(1)(x)),
    ])
    def test_weights_against_quad(self, cubic_basis, op1, op2, weight):
        b1, b2 = cubic_basis[2], cubic_basis[4]
        expected = _quad(lambda x: weight(b1, b2, x), b1, b2)
        result = BilinearForm(op1, op2)(b1, b2)
        assert result == pytest.approx(expected, abs=1e-12), (
            f"BilinearForm({op1!r}, {op2!r}) = {result}, quad = {expected}"
        )

    def test_matches_product_then_integrate(self, cubic_basis):
        b1, b2 = cubic_basis[1], cubic_basis[2]
        form = BilinearForm(X(1), Dx(1))
        expected = integrate((X(1) * b1) * (Dx(1) * b2))
        assert form(b1, b2) == pytest.approx(expected, abs=1e-15)

    def test_disjoint_supports_give_zero(self):
        basis = BSplineGenerator(np.arange(10.0)).generate_bsplines(2)
        assert ScalarProduct()(basis[0], basis[5]) == 0.0
        assert BilinearForm(X(2), Dx(1))(basis[0], basis[5]) == 0.0

    def test_touching_supports_give_zero(self):
        basis = BSplineGenerator(np.arange(10.0)).generate_bsplines(2)
        # supports [0, 2] and [2, 4] share only a grid point
        assert ScalarProduct()(basis[0], basis[2]) == 0.0

    def test_derivative_beyond_order_gives_zero(self, cubic_basis):
        assert BilinearForm(None, Dx(4))(cubic_basis[2], cubic_basis[3]) == 0.0

    def test_differing_grids_raise(self, cubic_basis):
        other = Spline.constant(Support.whole_grid(Grid([0.0, 1.0, 2.0, 3.0, 4.0])))
        with pytest.raises(DifferingGridsError):
            ScalarProduct()(cubic_basis[0], other)
        with pytest.raises(DifferingGridsError):
            BilinearForm(X(1), None).evaluate(other, cubic_basis[0])

    def test_independent_equal_grids(self, cubic_basis):
        grid = Grid([0.0, 1.0, 1.7, 3.0, 4.0])
        one = Spline.constant(Support.whole_grid(grid))
        assert ScalarProduct()(one, cubic_basis[3]) == pytest.approx(integrate(cubic_basis[3]))

    def test_rejects_non_operator(self):
        with pytest.raises(TypeError, match="op2"):
            BilinearForm(None, "Dx")

    def test_repr(self):
        assert repr(ScalarProduct()) == "ScalarProduct()"
        assert "Dx(1)" in repr(BilinearForm(None, Dx(1)))


# ---------------------------------------------------------------------------
# Numerical integration
# ---------------------------------------------------------------------------

class TestIntegrateNumerically:
    def test_unit_weight_matches_scalar_product(self, cubic_basis):
        b1, b2 = cubic_basis[2], cubic_basis[3]
        result = integrate_numerically(lambda x: np.ones_like(x), b1, b2)
        assert result == pytest.approx(ScalarProduct()(b1, b2), abs=1e-14)

    def test_polynomial_weight_is_exact(self, cubic_basis):
        b1, b2 = cubic_basis[1], cubic_basis[4]
        result = integrate_numerically(lambda x: x * x, b1, b2, order_gl=5)
        assert result == pytest.approx(BilinearForm(None, X(2))(b1, b2), abs=1e-14)

    def test_smooth_weight_against_quad(self, cubic_basis):
        b1, b2 = cubic_basis[3], cubic_basis[3]
        expected = _quad(lambda x: b1(x) * math.exp(x) * b2(x), b1, b2)
        assert integrate_numerically(np.exp, b1, b2) == pytest.approx(expected, abs=1e-12)

    def test_scalar_weight_function(self, cubic_basis):
        b = cubic_basis[2]
        vectorized = integrate_numerically(np.cos, b, b)
        scalar = integrate_numerically(math.cos, b, b, vectorized=False)
        assert scalar == pytest.approx(vectorized, abs=1e-15)

    def test_constant_weight_broadcasts(self, cubic_basis):
        b = cubic_basis[2]
        result = integrate_numerically(lambda x: 2.0, b, b)
        assert result == pytest.approx(2 * ScalarProduct()(b, b), abs=1e-14)

    def test_disjoint_supports_give_zero(self):
        basis = BSplineGenerator(np.arange(10.0)).generate_bsplines(2)
        assert integrate_numerically(np.exp, basis[0], basis[5]) == 0.0

    def test_differing_grids_raise(self, cubic_basis):
        other = Spline.constant(Support.whole_grid(Grid([0.0, 4.0])))
        with pytest.raises(DifferingGridsError):
            integrate_numerically(np.exp, cubic_basis[0], other)

    def test_invalid_order_raises(self, cubic_basis):
        with pytest.raises(ValueError, match="Gauss-Legendre order"):
            integrate_numerically(np.exp, cubic_basis[0], cubic_basis[0], order_gl=0)

    def test_returns_spline_dtype(self):
        basis = BSplineGenerator(np.array(CUBIC_KNOTS, dtype=np.float32)).generate_bsplines(4)
        b = basis[2]
        result = integrate_numerically(lambda x: np.ones_like(x), b, b)
        assert isinstance(result, np.float32)
        assert result == pytest.approx(ScalarProduct()(b, b), rel=1e-5)
