"""Linear operators acting on splines.

Operators are small immutable objects that map a spline of order ``p`` to a
spline of order :meth:`Operator.order_out` ``(p)``.  They compose with the
usual arithmetic:

- ``op * spline`` (or ``op(spline)``) applies the operator,
- ``op1 * op2`` is the composition, ``op2`` is applied first,
- ``op1 + op2`` and ``op1 - op2`` apply both operators and sum the results,
- ``s * op`` scales the result by a scalar.

Examples
--------
>>> from pybspline import Grid, Support, Spline
>>> from pybspline.operators import Dx, X
>>> one = Spline.constant(Support.whole_grid(Grid([-1.0, 0.0, 1.0])))
>>> half_x2 = (0.5 * X(2)) * one
>>> (Dx(1) * half_x2) == X(1) * one
True
"""

from __future__ import annotations

import numpy as np

from pybspline._algebra import _convolve_rows, _is_scalar
from pybspline._calculus import _binomial_row
from pybspline.spline import Spline


class Operator:
    """Base class of all spline operators."""

    __array_ufunc__ = None

    def order_out(self, order_in: int) -> int:
        """Order of the spline returned for an input spline of order *order_in*."""
        raise NotImplementedError

    def apply(self, spline: Spline) -> Spline:
        raise NotImplementedError

    def __call__(self, spline: Spline) -> Spline:
        if not isinstance(spline, Spline):
            raise TypeError(
                f"Operators act on splines, got {type(spline).__name__}"
            )
        return self.apply(spline)

    def __mul__(self, other):
        if isinstance(other, Spline):
            return self(other)
        if isinstance(other, Operator):
            return OperatorProduct(self, other)
        if _is_scalar(other):
            return ScaledOperator(other, self)
        return NotImplemented

    def __rmul__(self, other):
        if _is_scalar(other):
            return ScaledOperator(other, self)
        return NotImplemented

    def __truediv__(self, scalar):
        if not _is_scalar(scalar):
            return NotImplemented
        return ScaledOperator(1 / scalar, self)

    def __add__(self, other):
        if not isinstance(other, Operator):
            return NotImplemented
        return OperatorSum(self, other)

    def __sub__(self, other):
        if not isinstance(other, Operator):
            return NotImplemented
        return OperatorSum(self, ScaledOperator(-1, other))

    def __neg__(self):
        return ScaledOperator(-1, self)


def _check_power(n) -> int:
    if not isinstance(n, (int, np.integer)) or isinstance(n, bool):
        raise TypeError(f"Operator power must be an int, got {type(n).__name__}")
    if n < 0:
        raise ValueError(f"Operator power must be >= 0, got {n}")
    return int(n)


class IdentityOperator(Operator):
    """Leaves a spline unchanged (returns a copy)."""

    def order_out(self, order_in: int) -> int:
        return order_in

    def apply(self, spline: Spline) -> Spline:
        return spline.copy()

    def __eq__(self, other):
        return isinstance(other, IdentityOperator)

    def __hash__(self):
        return hash(IdentityOperator)

    def __repr__(self) -> str:
        return "IdentityOperator()"


class Derivative(Operator):
    """The derivative of order *n*, :math:`\\partial^n / \\partial x^n`."""

    def __init__(self, n: int = 1):
        self.n = _check_power(n)

    def order_out(self, order_in: int) -> int:
        if self.n > order_in:
            return 0
        return order_in - self.n

    def apply(self, spline: Spline) -> Spline:
        return spline.dx(self.n)

    def __eq__(self, other):
        return isinstance(other, Derivative) and other.n == self.n

    def __hash__(self):
        return hash((Derivative, self.n))

    def __repr__(self) -> str:
        return f"Dx({self.n})"


class Position(Operator):
    """Multiplication by the monomial :math:`x^n`.

    Around every interval midpoint ``xm`` the monomial is expanded as
    ``x^n = sum_k C(n, k) xm^(n-k) (x - xm)^k`` and convolved with the
    coefficients of the spline in a single pass.
    """

    def __init__(self, n: int = 1):
        self.n = _check_power(n)

    def order_out(self, order_in: int) -> int:
        return order_in + self.n

    def apply(self, spline: Spline) -> Spline:
        if self.n == 0:
            return spline.copy()
        if self.n == 1:
            return spline.times_x()
        dtype = spline.dtype
        xm = spline.support.midpoints
        powers = self.n - np.arange(self.n + 1)
        monomial = _binomial_row(self.n, dtype) * xm[:, np.newaxis] ** powers
        coeffs = _convolve_rows(spline.coefficients, monomial)
        return Spline._from_parts(spline.support, coeffs)

    def __eq__(self, other):
        return isinstance(other, Position) and other.n == self.n

    def __hash__(self):
        return hash((Position, self.n))

    def __repr__(self) -> str:
        return f"X({self.n})"


class ScaledOperator(Operator):
    """An operator whose result is multiplied by a scalar *factor*."""

    def __init__(self, factor, operator: Operator):
        if not _is_scalar(factor):
            raise TypeError(f"factor must be a scalar, got {type(factor).__name__}")
        self.factor = factor
        self.operator = operator

    def order_out(self, order_in: int) -> int:
        return self.operator.order_out(order_in)

    def apply(self, spline: Spline) -> Spline:
        return self.factor * self.operator(spline)

    def __repr__(self) -> str:
        return f"({self.factor} * {self.operator!r})"


class OperatorSum(Operator):
    """Sum of two operators, applied term by term."""

    def __init__(self, lhs: Operator, rhs: Operator):
        self.lhs = lhs
        self.rhs = rhs

    def order_out(self, order_in: int) -> int:
        return max(self.lhs.order_out(order_in), self.rhs.order_out(order_in))

    def apply(self, spline: Spline) -> Spline:
        return self.lhs(spline) + self.rhs(spline)

    def __repr__(self) -> str:
        return f"({self.lhs!r} + {self.rhs!r})"


class OperatorProduct(Operator):
    """Composition ``lhs(rhs(spline))``."""

    def __init__(self, lhs: Operator, rhs: Operator):
        self.lhs = lhs
        self.rhs = rhs

    def order_out(self, order_in: int) -> int:
        return self.lhs.order_out(self.rhs.order_out(order_in))

    def apply(self, spline: Spline) -> Spline:
        return self.lhs(self.rhs(spline))

    def __repr__(self) -> str:
        return f"({self.lhs!r} * {self.rhs!r})"


Dx = Derivative
X = Position
