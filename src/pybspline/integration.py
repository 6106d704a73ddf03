"""Analytic and numerical integration of splines and spline products.

Analytic integrals use the midpoint-centred representation of the
coefficients: on an interval of half width ``h`` only the even powers of
``(x - xm)`` contribute, each with ``2 h^(p+1) / (p+1)``.  Weighted integrals
such as ``int m1(x) x^2 m2''(x) dx`` are expressed through the operators of
:mod:`pybspline.operators` instead of a dedicated formula per weight.

Numerical integration uses a Gauss-Legendre rule on every interval of the
common support, so an arbitrary weight function ``f(x)`` can be used.

Examples
--------
>>> from pybspline import BSplineGenerator, ScalarProduct, BilinearForm, X, Dx
>>> basis = BSplineGenerator([0.0, 1.0, 2.0, 3.0, 4.0]).generate_bsplines(3)
>>> b = basis[0]
>>> round(float(ScalarProduct()(b, b)), 12)
0.55
>>> round(float(BilinearForm(None, X(1))(b, b)), 12)
0.825
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from pybspline._algebra import _check_compatible, _convolve_rows
from pybspline._calculus import _gauss_legendre, _horner, _interval_integrals
from pybspline.operators import Operator
from pybspline.spline import Spline

DEFAULT_GL_ORDER = 10


def integrate(m: Spline):
    """Return the integral of *m* over the whole real line.

    Parameters
    ----------
    m : Spline
        Spline to integrate.

    Returns
    -------
    scalar of the spline's dtype
        Zero for a spline with an empty support.
    """
    if not isinstance(m, Spline):
        raise TypeError(f"Expected a Spline, got {type(m).__name__}")
    values = _interval_integrals(m.coefficients, m.support.half_widths)
    return m.dtype.type(values.sum())


def _overlapping_rows(m1: Spline, m2: Spline):
    """Coefficient rows of both splines on their common intervals.

    Returns
    -------
    support : Support
        Intersection of both supports.
    c1, c2 : ndarray
        Rows of ``m1`` and ``m2`` for every interval of *support*.
    """
    _check_compatible(m1, m2)
    support = m1.support.intersection(m2.support)
    n = support.number_of_intervals
    if n == 0:
        return support, m1.coefficients[:0], m2.coefficients[:0]
    off1 = support.start_index - m1.support.start_index
    off2 = support.start_index - m2.support.start_index
    return (
        support,
        m1.coefficients[off1:off1 + n],
        m2.coefficients[off2:off2 + n],
    )


class LinearForm:
    """The linear form ``m -> int (op m)(x) dx``.

    Parameters
    ----------
    op : Operator, optional
        Operator applied to the spline before integration.  ``None`` means
        the identity.
    """

    def __init__(self, op: Optional[Operator] = None):
        if op is not None and not isinstance(op, Operator):
            raise TypeError(f"op must be an Operator or None, got {type(op).__name__}")
        self.op = op

    def evaluate(self, m: Spline):
        """Integral of ``op(m)`` over the real line."""
        if self.op is not None:
            m = self.op(m)
        return integrate(m)

    def __call__(self, m: Spline):
        return self.evaluate(m)

    def __repr__(self) -> str:
        return f"LinearForm({self.op!r})"


class BilinearForm:
    """The bilinear form ``(m1, m2) -> int (op1 m1)(x) (op2 m2)(x) dx``.

    Only the common intervals of both supports contribute.  Both operators
    act interval by interval and never enlarge a support, so the splines are
    cut down to their intersection before the operators are applied.

    Parameters
    ----------
    op1, op2 : Operator, optional
        Operators applied to the first and second spline.  ``None`` means
        the identity.

    Examples
    --------
    ``BilinearForm(None, X(2) * Dx(2))`` computes
    ``int m1(x) x^2 m2''(x) dx``.
    """

    def __init__(self, op1: Optional[Operator] = None, op2: Optional[Operator] = None):
        for name, op in (("op1", op1), ("op2", op2)):
            if op is not None and not isinstance(op, Operator):
                raise TypeError(
                    f"{name} must be an Operator or None, got {type(op).__name__}"
                )
        self.op1 = op1
        self.op2 = op2

    def evaluate(self, m1: Spline, m2: Spline):
        """Evaluate the bilinear form for the splines *m1* and *m2*.

        Raises
        ------
        DifferingGridsError
            If the splines are defined on differing grids.
        """
        support, c1, c2 = _overlapping_rows(m1, m2)
        dtype = np.result_type(m1.dtype, m2.dtype)
        if support.number_of_intervals == 0:
            return dtype.type(0)

        a = Spline._from_parts(support, c1)
        b = Spline._from_parts(support, c2)
        if self.op1 is not None:
            a = self.op1(a)
        if self.op2 is not None:
            b = self.op2(b)
        if a.number_of_intervals == 0 or b.number_of_intervals == 0:
            return dtype.type(0)

        product = _convolve_rows(a.coefficients, b.coefficients)
        values = _interval_integrals(product, support.half_widths)
        return dtype.type(values.sum())

    def __call__(self, m1: Spline, m2: Spline):
        return self.evaluate(m1, m2)

    def __repr__(self) -> str:
        return f"BilinearForm({self.op1!r}, {self.op2!r})"


class ScalarProduct(BilinearForm):
    """The L2 scalar product ``int m1(x) m2(x) dx``."""

    def __init__(self):
        super().__init__(None, None)

    def __repr__(self) -> str:
        return "ScalarProduct()"


def integrate_numerically(
    f: Callable,
    m1: Spline,
    m2: Spline,
    order_gl: int = DEFAULT_GL_ORDER,
    vectorized: bool = True,
):
    """Integrate ``m1(x) f(x) m2(x)`` with Gauss-Legendre quadrature.

    The rule with *order_gl* nodes is applied on every interval of the
    common support of *m1* and *m2*.  It is exact whenever ``f`` is a
    polynomial and ``order1 + order2 + deg(f) <= 2 * order_gl - 1``.

    Parameters
    ----------
    f : callable
        Weight function.  Called with a 1-D array of all quadrature nodes
        when *vectorized* is True, else once per node with a scalar.
    m1, m2 : Spline
        Splines on the same grid.
    order_gl : int, optional
        Number of Gauss-Legendre nodes per interval.  Default is 10.
    vectorized : bool, optional
        Whether *f* accepts arrays.  Default is True.

    Returns
    -------
    scalar of the splines' dtype

    Raises
    ------
    DifferingGridsError
        If the splines are defined on differing grids.
    ValueError
        If *order_gl* < 1.
    """
    nodes, weights = _gauss_legendre(int(order_gl))
    support, c1, c2 = _overlapping_rows(m1, m2)
    dtype = np.result_type(m1.dtype, m2.dtype)
    n = support.number_of_intervals
    if n == 0:
        return dtype.type(0)

    xm = support.midpoints
    h = support.half_widths
    dx = (h[:, np.newaxis] * nodes).ravel()
    x = np.repeat(xm, len(nodes)) + dx
    v1 = _horner(np.repeat(c1, len(nodes), axis=0), dx)
    v2 = _horner(np.repeat(c2, len(nodes), axis=0), dx)

    if vectorized:
        fx = np.asarray(f(x))
        if fx.shape != x.shape:
            fx = np.broadcast_to(fx, x.shape)
    else:
        fx = np.array([f(xi) for xi in x])

    integrand = (fx * v1 * v2).reshape(n, len(nodes))
    per_interval = (integrand * weights).sum(axis=1) * h
    return dtype.type(per_interval.sum())
