"""Shared test fixtures for pybspline tests."""

import math

import numpy as np
import pytest

from pybspline import BSplineGenerator, Grid, ScalarProduct, Spline, Support


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

# Irregular grid used for the derivative/position identities
DERIVATIVE_GRID = [
    -3.0, -2.0, -1.5, -0.878, -0.238, 0.4012,
    1.323, 1.9238, 2.057, 2.4812, 3.182379,
]

INTERPOLATION_X = [-3.0, -2.5, -1.5, -1.0, 0.0, 0.5, 1.5, 2.5, 3.5, 4.0, 5.0]
INTERPOLATION_Y = [-3.0, -2.5, -1.5, -1.0, 0.0, -0.5, -1.5, -2.5, -3.5, -4.0, 3.0]

# Clamped cubic knot vector on [0, 4] with one irregular interior knot
CUBIC_KNOTS = [0.0, 0.0, 0.0, 0.0, 1.0, 1.7, 3.0, 4.0, 4.0, 4.0, 4.0]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def diff_norm(s1, s2):
    """L2 norm of the difference of two splines."""
    diff = s1 - s2
    return math.sqrt(ScalarProduct()(diff, diff))


def polynomial_spline(grid, func, order):
    """Spline on the whole *grid* whose intervals hold the Taylor expansion of
    the polynomial *func* about each midpoint.

    *func(xm)* must return the list of derivatives ``[p(xm), p'(xm), ...]``.
    """
    support = Support.whole_grid(grid)
    rows = []
    for xm in support.midpoints:
        derivs = func(xm)
        rows.append([derivs[k] / math.factorial(k) for k in range(order + 1)])
    return Spline(support, rows, order=order)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def derivative_grid():
    return Grid(DERIVATIVE_GRID)


@pytest.fixture
def one(derivative_grid):
    """Order-0 constant-one spline over the whole derivative grid."""
    return Spline.constant(Support.whole_grid(derivative_grid))


@pytest.fixture
def grid5():
    """Regular grid 0, 1, 2, 3, 4."""
    return Grid([0.0, 1.0, 2.0, 3.0, 4.0])


@pytest.fixture
def linear_spline(grid5):
    """Piecewise linear spline 1 + x on [0, 4]."""
    return polynomial_spline(grid5, lambda xm: [1.0 + xm, 1.0], 1)


@pytest.fixture
def quadratic_spline(grid5):
    """Spline x^2 - x on [0, 4]."""
    return polynomial_spline(grid5, lambda xm: [xm * xm - xm, 2 * xm - 1, 2.0], 2)


@pytest.fixture(scope="module")
def cubic_basis():
    """Clamped cubic B-spline basis on [0, 4]."""
    return BSplineGenerator(CUBIC_KNOTS).generate_bsplines(4)


@pytest.fixture(scope="module")
def sample_points():
    return np.linspace(0.0, 4.0, 41)
