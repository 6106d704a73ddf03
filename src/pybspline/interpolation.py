"""Spline interpolation through sample points.

The interpolant of order ``p`` lives on the grid of the sample abscissae.
It is expanded in the clamped B-spline basis whose knots are the sample
points, with the first and last point repeated ``p + 1`` times.  That basis
has ``n + p - 1`` functions for ``n`` samples; the remaining ``p - 1``
equations come from derivative conditions at the end points
(:class:`Boundary`).  The defaults set the highest derivatives to zero,
which for odd ``p`` gives the natural spline (e.g. ``s''= 0`` at both ends
for cubic splines).

The dense linear system is handed to a pluggable solver backend.

References
----------
- de Boor (2001), "A Practical Guide to Splines", Springer, Chapter XIII.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from pybspline.exceptions import UndeterminedError
from pybspline.generator import BSplineGenerator
from pybspline.grid import Grid, Support
from pybspline.spline import Spline

FIRST = "first"
LAST = "last"


class Boundary:
    """Prescribed derivative value at the first or last sample point.

    Parameters
    ----------
    node : {"first", "last"}
        End point the condition applies to.
    derivative : int
        Derivative order, ``1 <= derivative <= order`` of the interpolant.
    value : float, optional
        Required value of the derivative.  Default is 0.
    """

    def __init__(self, node: str, derivative: int, value=0.0):
        if node not in (FIRST, LAST):
            raise ValueError(f"node must be '{FIRST}' or '{LAST}', got {node!r}")
        if not isinstance(derivative, (int, np.integer)) or derivative < 1:
            raise ValueError(f"derivative must be a positive int, got {derivative!r}")
        self.node = node
        self.derivative = int(derivative)
        self.value = value

    def __eq__(self, other):
        if not isinstance(other, Boundary):
            return NotImplemented
        return (self.node, self.derivative, self.value) == (
            other.node, other.derivative, other.value
        )

    def __hash__(self):
        return hash((self.node, self.derivative, self.value))

    def __repr__(self) -> str:
        return f"Boundary({self.node!r}, {self.derivative}, {self.value!r})"


def default_boundaries(order: int) -> List[Boundary]:
    """The ``order - 1`` boundary conditions used when none are given.

    The highest derivatives vanish, ``order // 2`` of them at the first point
    and ``(order - 1) // 2`` at the last point.
    """
    n_first = order // 2
    n_last = (order - 1) // 2
    first = [Boundary(FIRST, order - 1 - j) for j in range(n_first)]
    last = [Boundary(LAST, order - 1 - j) for j in range(n_last)]
    return first + last


# ----------------------------------------------------------------------
# Solver backends
# ----------------------------------------------------------------------

def _solve_scipy(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    from scipy.linalg import solve

    return solve(matrix, rhs)


def _solve_numpy(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    return np.linalg.solve(matrix, rhs)


_SOLVERS = {
    "scipy": _solve_scipy,
    "numpy": _solve_numpy,
}

_MAX_REFINEMENT_STEPS = 10


def _resolve_solver(solver) -> Callable[[np.ndarray, np.ndarray], np.ndarray]:
    if callable(solver):
        return solver
    try:
        return _SOLVERS[solver]
    except (KeyError, TypeError):
        raise ValueError(
            f"Unknown solver {solver!r}; expected one of "
            f"{sorted(_SOLVERS)} or a callable solver(A, y)"
        ) from None


def _call_solver(solve, matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    try:
        solution = np.asarray(solve(matrix, rhs))
    except np.linalg.LinAlgError as exc:
        raise UndeterminedError(
            f"The interpolation system is singular: {exc}"
        ) from exc
    if solution.shape != rhs.shape:
        raise ValueError(
            f"Solver returned shape {solution.shape}, expected {rhs.shape}"
        )
    return solution


def _solve_refined(solve, matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """Solve ``matrix @ c = rhs`` to the precision of ``matrix.dtype``.

    Backends only ever see arrays of at most double precision.  For wider
    types (``longdouble``) the double precision solution is improved by
    iterative refinement, with the residuals computed in the full precision.
    """
    dtype = matrix.dtype
    if np.finfo(dtype).eps >= np.finfo(np.float64).eps:
        return _call_solver(solve, matrix, rhs)

    eps = np.finfo(dtype).eps
    matrix64 = matrix.astype(np.float64)
    coefficients = _call_solver(solve, matrix64, rhs.astype(np.float64)).astype(dtype)
    for _ in range(_MAX_REFINEMENT_STEPS):
        residual = rhs - matrix @ coefficients
        delta = _call_solver(solve, matrix64, residual.astype(np.float64)).astype(dtype)
        coefficients = coefficients + delta
        if np.max(np.abs(delta)) <= eps * np.max(np.abs(coefficients)):
            break
    return coefficients


# ----------------------------------------------------------------------
# Interpolation
# ----------------------------------------------------------------------

def interpolate(
    x: Union[Support, Sequence],
    y: Sequence,
    order: int,
    boundaries: Optional[Sequence[Boundary]] = None,
    solver: Union[str, Callable] = "scipy",
    verbose: bool = False,
) -> Spline:
    """Interpolate the samples ``(x[i], y[i])`` with a spline of *order*.

    Parameters
    ----------
    x : Support or array_like
        Sample abscissae.  A Support is interpolated on its own grid; any
        other sequence is turned into a new :class:`Grid`.
    y : array_like
        Sample values, one per abscissa.
    order : int
        Polynomial order of the interpolant (1 = piecewise linear,
        3 = cubic).
    boundaries : sequence of Boundary, optional
        Exactly ``order - 1`` end-point derivative conditions.  Defaults to
        :func:`default_boundaries`.
    solver : {"scipy", "numpy"} or callable, optional
        Dense solver backend: ``scipy.linalg.solve``, ``numpy.linalg.solve``
        or any callable ``solver(A, y) -> c``.  Default is ``"scipy"``.
        The backend receives arrays of at most double precision; on a
        ``longdouble`` grid its solution is refined to full precision.
    verbose : bool, optional
        If True, print assembly and solve timings.  Default is False.

    Returns
    -------
    Spline
        Interpolant of the given order, supported on ``[x[0], x[-1]]``.

    Raises
    ------
    UndeterminedError
        If ``order < 1``, if there are fewer than 2 samples, or if the
        linear system is singular.
    ValueError
        If *y* does not match *x* in length, or *boundaries* is invalid.

    Examples
    --------
    >>> from pybspline import interpolate
    >>> s = interpolate([0.0, 1.0, 3.0], [1.0, 2.0, 0.0], order=1)
    >>> float(s(2.0))
    1.0
    """
    if isinstance(x, Support):
        support = x
    else:
        support = Support.whole_grid(Grid(x))
    xs = support.values
    n = len(xs)

    if not isinstance(order, (int, np.integer)) or order < 1:
        raise UndeterminedError(
            f"Interpolation needs a positive integer order, got {order!r}."
        )
    order = int(order)
    if n < 2:
        raise UndeterminedError(
            f"Interpolation needs at least 2 sample points, got {n}."
        )
    y = np.asarray(y, dtype=support.grid.dtype)
    if y.shape != (n,):
        raise ValueError(f"Expected {n} sample values, got shape {y.shape}")

    if boundaries is None:
        boundaries = default_boundaries(order)
    boundaries = list(boundaries)
    if len(boundaries) != order - 1:
        raise ValueError(
            f"Order {order} interpolation needs {order - 1} boundary "
            f"conditions, got {len(boundaries)}"
        )
    for b in boundaries:
        if not isinstance(b, Boundary):
            raise TypeError(f"Expected Boundary instances, got {type(b).__name__}")
        if b.derivative > order:
            raise ValueError(
                f"Derivative order {b.derivative} exceeds the interpolation "
                f"order {order}"
            )

    start = time.time()
    knots = np.concatenate([
        np.repeat(xs[:1], order),
        xs,
        np.repeat(xs[-1:], order),
    ])
    whole = support.start_index == 0 and support.end_index == len(support.grid)
    generator = BSplineGenerator(knots, grid=support.grid if whole else None)
    basis = generator.generate_bsplines(order + 1)

    n_basis = len(basis)
    matrix = np.zeros((n_basis, n_basis), dtype=support.grid.dtype)
    rhs = np.zeros(n_basis, dtype=support.grid.dtype)
    for j, b in enumerate(basis):
        matrix[:n, j] = b(xs)
    rhs[:n] = y
    for row, cond in enumerate(boundaries, start=n):
        point = xs[0] if cond.node == FIRST else xs[-1]
        for j, b in enumerate(basis):
            matrix[row, j] = b.dx(cond.derivative)(point)
        rhs[row] = cond.value

    if verbose:
        print(
            f"Assembled {n_basis}x{n_basis} collocation system for order "
            f"{order} ({n} samples, {len(boundaries)} boundary conditions) "
            f"in {time.time() - start:.3f}s"
        )

    solve = _resolve_solver(solver)
    start = time.time()
    coefficients = _solve_refined(solve, matrix, rhs)
    if verbose:
        print(f"Solved in {time.time() - start:.3f}s")

    result = Spline.zero(generator.grid, order)
    for c, b in zip(coefficients, basis):
        result += b * c

    if not whole:
        # The generator grid covers exactly the support, rehome onto the full grid
        offset = support.start_index
        result = Spline._from_parts(
            Support(
                support.grid,
                offset + result.support.start_index,
                offset + result.support.end_index,
            ),
            result.coefficients,
        )
    return result
