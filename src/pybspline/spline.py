"""Piecewise polynomial functions on a global grid (Splines).

A :class:`Spline` stores one coefficient row per interval of its
:class:`~pybspline.grid.Support`.  Row ``i`` describes the polynomial

.. math::

    p_i(x) = \\sum_{k=0}^{order} c_{ik} (x - x_{m,i})^k

where :math:`x_{m,i}` is the midpoint of interval ``i``.  Centring every
polynomial on its own interval keeps the coefficients well conditioned and
turns integrals over an interval into sums over the even coefficients only.

Outside its support a spline is identically zero.  Two splines can be
combined only if they live on logically equal grids; their supports may
differ.

References
----------
- de Boor (2001), "A Practical Guide to Splines", Springer, Chapters I-IX.
"""

from __future__ import annotations

import os
import pickle
import warnings
from typing import Optional

import numpy as np

from pybspline._algebra import (
    _check_compatible,
    _convolve_rows,
    _falling_factorials,
    _is_scalar,
    _pad_coefficients,
)
from pybspline._calculus import _horner
from pybspline.grid import Grid, Support


class Spline:
    """Piecewise polynomial of fixed order on a support of a global grid.

    Parameters
    ----------
    support : Support
        The grid points bounding the intervals of the spline.
    coefficients : array_like of shape (support.number_of_intervals, order + 1)
        Midpoint-centred polynomial coefficients, one row per interval, in
        ascending powers.  Converted to the dtype of the grid.
    order : int, optional
        Polynomial order.  Inferred from the coefficient rows if omitted;
        required to type an empty coefficient list (defaults to 0 then).

    Raises
    ------
    ValueError
        If the number of coefficient rows does not match the number of
        intervals, or if the row length does not match *order*.

    Examples
    --------
    >>> from pybspline import Grid, Support, Spline
    >>> grid = Grid([0.0, 1.0, 2.0])
    >>> s = Spline(Support.whole_grid(grid), [[1.0, 0.0], [2.0, 1.0]])
    >>> s.order
    1
    >>> float(s(1.75))
    2.25
    >>> float(s(5.0))
    0.0
    """

    def __init__(self, support: Support, coefficients, order: Optional[int] = None):
        if not isinstance(support, Support):
            raise TypeError(
                f"support must be a Support, got {type(support).__name__}"
            )
        coeffs = np.array(coefficients, dtype=support.grid.dtype)
        if coeffs.size == 0 and coeffs.ndim < 2:
            coeffs = np.zeros((0, (order or 0) + 1), dtype=support.grid.dtype)
        if coeffs.ndim != 2 or coeffs.shape[1] < 1:
            raise ValueError(
                f"coefficients must be a 2-D array with at least one column, "
                f"got shape {coeffs.shape}"
            )
        if order is not None and coeffs.shape[1] != order + 1:
            raise ValueError(
                f"Expected {order + 1} coefficients per interval for order "
                f"{order}, got {coeffs.shape[1]}"
            )
        n_intervals = support.number_of_intervals
        if coeffs.shape[0] != n_intervals:
            raise ValueError(
                f"Expected coefficients for {n_intervals} intervals, "
                f"got {coeffs.shape[0]}"
            )
        coeffs.setflags(write=False)
        self._support = support
        self._coefficients = coeffs

    # ------------------------------------------------------------------
    # Internal factory
    # ------------------------------------------------------------------

    @classmethod
    def _from_parts(cls, support: Support, coefficients: np.ndarray) -> "Spline":
        """Create a spline from trusted parts, skipping validation."""
        coeffs = np.asarray(coefficients, dtype=support.grid.dtype)
        if coeffs.flags.writeable:
            coeffs.setflags(write=False)
        obj = object.__new__(cls)
        obj._support = support
        obj._coefficients = coeffs
        return obj

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls, grid: Grid, order: int = 0) -> "Spline":
        """The zero spline of the given *order*, with an empty support on *grid*."""
        coeffs = np.zeros((0, order + 1), dtype=grid.dtype)
        return cls._from_parts(Support.empty(grid), coeffs)

    @classmethod
    def constant(cls, support: Support, value=1.0) -> "Spline":
        """Order-0 spline equal to *value* on every interval of *support*."""
        coeffs = np.full(
            (support.number_of_intervals, 1), value, dtype=support.grid.dtype
        )
        return cls._from_parts(support, coeffs)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def support(self) -> Support:
        return self._support

    @property
    def grid(self) -> Grid:
        return self._support.grid

    @property
    def coefficients(self) -> np.ndarray:
        """Read-only coefficient array of shape (number_of_intervals, order + 1)."""
        return self._coefficients

    @property
    def order(self) -> int:
        """Polynomial order (number of coefficients per interval minus one)."""
        return self._coefficients.shape[1] - 1

    @property
    def number_of_intervals(self) -> int:
        return self._support.number_of_intervals

    @property
    def dtype(self) -> np.dtype:
        return self._coefficients.dtype

    @property
    def start(self):
        """First grid point of the support (zero for an empty spline)."""
        if self._support.is_empty:
            return self.grid.dtype.type(0)
        return self._support.front()

    @property
    def end(self):
        """Last grid point of the support (zero for an empty spline)."""
        if self._support.is_empty:
            return self.grid.dtype.type(0)
        return self._support.back()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def __call__(self, x):
        """Evaluate the spline at *x* (scalar or array).

        Points outside ``[start, end]`` evaluate to exactly zero.  A point on
        an interior grid point is evaluated with the polynomial of the
        interval starting there.
        """
        x_arr = np.asarray(x)
        xs = np.atleast_1d(x_arr)
        result = np.zeros(xs.shape, dtype=np.result_type(self.dtype, xs.dtype))
        idx, inside = self._support.find_intervals(xs)
        if np.any(inside):
            sel = idx[inside]
            dx = xs[inside] - self._support.midpoints[sel]
            result[inside] = _horner(self._coefficients[sel], dx)
        if x_arr.ndim == 0:
            return result[0]
        return result

    def is_zero(self) -> bool:
        """True if the spline has no intervals or only zero coefficients."""
        if self._support.number_of_intervals == 0:
            return True
        return not np.any(self._coefficients)

    def check_overlap(self, other: "Spline") -> bool:
        """True if the supports of both splines share at least one interval."""
        return self._support.intersection(other._support).contains_intervals

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def dx(self, n: int = 1) -> "Spline":
        """Return the *n*-th derivative.

        The result has order ``order - n``, or is the zero spline of order 0
        if ``n > order``.  The support is unchanged.  Derivatives are taken
        interval by interval, so the spline is assumed to be ``n - 1`` times
        continuously differentiable for the result to be meaningful.
        """
        if n < 0:
            raise ValueError(f"Derivative order must be >= 0, got {n}")
        if n == 0:
            return self.copy()
        if n > self.order:
            return Spline.zero(self.grid, 0)
        factors = _falling_factorials(self.order, n, self.dtype)
        return Spline._from_parts(self._support, self._coefficients[:, n:] * factors)

    def times_x(self) -> "Spline":
        """Return ``g(x) = x f(x)``, raising the order by one."""
        c = self._coefficients
        xm = self._support.midpoints[:, np.newaxis]
        out = np.zeros((c.shape[0], c.shape[1] + 1), dtype=self.dtype)
        out[:, 1:] += c
        out[:, :-1] += xm * c
        return Spline._from_parts(self._support, out)

    def restrict_support(self, x0, x1) -> "Spline":
        """Restrict the spline to the intervals lying completely in ``[x0, x1]``.

        Intervals that are only partially covered are dropped, not clipped:
        the result lives on ``[a, b]`` where ``a`` is the smallest grid point
        ``>= x0`` and ``b`` the largest grid point ``<= x1``.
        """
        if self.number_of_intervals == 0:
            return Spline.zero(self.grid, self.order)
        v = self._support.values
        inside = np.flatnonzero((v[:-1] >= x0) & (v[1:] <= x1))
        if len(inside) == 0:
            return Spline.zero(self.grid, self.order)
        first, last = int(inside[0]), int(inside[-1])
        start = self._support.start_index
        support = Support(self.grid, start + first, start + last + 2)
        return Spline._from_parts(support, self._coefficients[first:last + 1])

    def invert(self) -> "Spline":
        """Return ``g(x) = f(-x)``.

        The result is defined on the reflected grid
        (:meth:`~pybspline.grid.Grid.reflected`).  Unless the grid is
        symmetric about zero that is a different grid, and combining the
        result with splines on the original grid raises
        :class:`~pybspline.exceptions.DifferingGridsError`.  The zero spline
        is its own reflection and stays on its grid.
        """
        if self.is_zero():
            return self.copy()
        grid = self.grid
        reflected = grid.reflected()
        n_points = len(grid)
        support = Support(
            reflected,
            n_points - self._support.end_index,
            n_points - self._support.start_index,
        )
        signs = np.where(np.arange(self.order + 1) % 2 == 0, 1, -1).astype(self.dtype)
        return Spline._from_parts(support, self._coefficients[::-1] * signs)

    def astype(self, dtype) -> "Spline":
        """Return a copy converted to the scalar type *dtype*."""
        grid = self.grid.astype(dtype)
        support = Support(grid, self._support.start_index, self._support.end_index)
        return Spline._from_parts(support, self._coefficients.astype(dtype))

    def copy(self) -> "Spline":
        return Spline._from_parts(self._support, self._coefficients)

    def integrate(self):
        """Integral of the spline over the whole real line."""
        from pybspline.integration import integrate

        return integrate(self)

    # ------------------------------------------------------------------
    # Arithmetic operators
    # ------------------------------------------------------------------

    # numpy scalars on the left defer to the reflected operators
    __array_ufunc__ = None

    @staticmethod
    def _sum(a: "Spline", b: "Spline") -> "Spline":
        """Sum of two splines on the same grid, matched by grid index."""
        support = a._support.union(b._support)
        width = max(a.order, b.order) + 1
        dtype = np.result_type(a._coefficients, b._coefficients)
        coeffs = np.zeros((support.number_of_intervals, width), dtype=dtype)
        for s in (a, b):
            n = s.number_of_intervals
            if n:
                offset = s._support.start_index - support.start_index
                coeffs[offset:offset + n, :s.order + 1] += s._coefficients
        return Spline._from_parts(support, coeffs)

    def _scaled(self, scalar) -> "Spline":
        coeffs = self._coefficients * scalar
        return Spline._from_parts(self._support, coeffs.astype(self.dtype, copy=False))

    def _product(self, other: "Spline") -> "Spline":
        """Spline-spline product over the common support."""
        support = self._support.intersection(other._support)
        order = self.order + other.order
        n = support.number_of_intervals
        if n == 0:
            return Spline.zero(self.grid, order)
        off_self = support.start_index - self._support.start_index
        off_other = support.start_index - other._support.start_index
        coeffs = _convolve_rows(
            self._coefficients[off_self:off_self + n],
            other._coefficients[off_other:off_other + n],
        )
        return Spline._from_parts(support, coeffs)

    def __add__(self, other):
        if not isinstance(other, Spline):
            return NotImplemented
        _check_compatible(self, other)
        return Spline._sum(self, other)

    def __radd__(self, other):
        # sum() starts from the integer 0
        if _is_scalar(other) and other == 0:
            return self.copy()
        return NotImplemented

    def __sub__(self, other):
        if not isinstance(other, Spline):
            return NotImplemented
        _check_compatible(self, other)
        return Spline._sum(self, other._scaled(-1))

    def __mul__(self, other):
        if isinstance(other, Spline):
            _check_compatible(self, other)
            return self._product(other)
        if not _is_scalar(other):
            return NotImplemented
        return self._scaled(other)

    def __rmul__(self, scalar):
        if not _is_scalar(scalar):
            return NotImplemented
        return self._scaled(scalar)

    def __truediv__(self, scalar):
        if not _is_scalar(scalar):
            return NotImplemented
        return self._scaled(1 / scalar)

    def __neg__(self):
        return self._scaled(-1)

    def __pos__(self):
        return self.copy()

    def _check_accumulation_order(self, other: "Spline") -> None:
        if other.order > self.order:
            raise ValueError(
                f"In-place accumulation requires the right operand's order "
                f"({other.order}) to not exceed this spline's order ({self.order})"
            )

    def __iadd__(self, other):
        if not isinstance(other, Spline):
            return NotImplemented
        _check_compatible(self, other)
        self._check_accumulation_order(other)
        result = Spline._sum(self, other)
        self._support = result._support
        self._coefficients = result._coefficients
        return self

    def __isub__(self, other):
        if not isinstance(other, Spline):
            return NotImplemented
        _check_compatible(self, other)
        self._check_accumulation_order(other)
        result = Spline._sum(self, other._scaled(-1))
        self._support = result._support
        self._coefficients = result._coefficients
        return self

    def __imul__(self, scalar):
        if not _is_scalar(scalar):
            return NotImplemented
        self._coefficients = self._scaled(scalar)._coefficients
        return self

    def __itruediv__(self, scalar):
        if not _is_scalar(scalar):
            return NotImplemented
        return self.__imul__(1 / scalar)

    def __eq__(self, other):
        if not isinstance(other, Spline):
            return NotImplemented
        if self.is_zero() and other.is_zero():
            return True
        if self._support != other._support:
            return False
        width = max(self.order, other.order) + 1
        return bool(np.array_equal(
            _pad_coefficients(self._coefficients, width),
            _pad_coefficients(other._coefficients, width),
        ))

    __hash__ = None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def __getstate__(self) -> dict:
        """Return picklable state stamped with the package version."""
        from pybspline._version import __version__

        state = self.__dict__.copy()
        state["_pybspline_version"] = __version__
        return state

    def __setstate__(self, state: dict) -> None:
        """Restore state from a pickled dict."""
        from pybspline._version import __version__

        saved_version = state.pop("_pybspline_version", None)
        if saved_version is not None and saved_version != __version__:
            warnings.warn(
                f"This object was saved with pybspline {saved_version}, "
                f"but you are loading it with {__version__}. "
                f"Evaluation results may differ if internal data layout "
                f"changed.",
                UserWarning,
                stacklevel=2,
            )
        self.__dict__.update(state)
        if self._coefficients.flags.writeable:
            self._coefficients.setflags(write=False)

    def save(self, path: str | os.PathLike) -> None:
        """Save the spline (grid, support and coefficients) to a file.

        Parameters
        ----------
        path : str or path-like
            Destination file path.
        """
        with open(os.fspath(path), "wb") as f:
            pickle.dump(self, f, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def load(cls, path: str | os.PathLike) -> "Spline":
        """Load a previously saved spline from a file.

        The grid of the loaded spline is a new object; it still compares
        equal (elementwise) to the grid the spline was saved from.

        Warns
        -----
        UserWarning
            If the file was saved with a different pybspline version.

        .. warning::

            This method uses :mod:`pickle` internally.  Pickle can execute
            arbitrary code during deserialization.  **Only load files you
            trust.**
        """
        with open(os.fspath(path), "rb") as f:
            obj = pickle.load(f)  # noqa: S301
        if not isinstance(obj, cls):
            raise TypeError(
                f"Expected a {cls.__name__} instance, "
                f"got {type(obj).__name__}"
            )
        return obj

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"Spline("
            f"order={self.order}, "
            f"intervals={self.number_of_intervals}, "
            f"support=[{self._support.start_index}, {self._support.end_index}), "
            f"dtype={self.dtype})"
        )

    def __str__(self) -> str:
        if self._support.is_empty:
            domain_str = "empty"
        else:
            domain_str = f"[{self.start:g}, {self.end:g}]"
        lines = [
            f"Spline (order {self.order}, {'zero' if self.is_zero() else 'non-zero'})",
            f"  Intervals:   {self.number_of_intervals}",
            f"  Support:     grid points {self._support.start_index}"
            f"..{self._support.end_index - 1} of {len(self.grid)}",
            f"  Domain:      {domain_str}",
            f"  Dtype:       {self.dtype}",
        ]
        return "\n".join(lines)
