"""B-spline basis generation via the Cox-de Boor recursion.

The knot vector may contain the same value several times; the grid of the
generated splines is the knot vector with duplicates removed.  The
multiplicity of a knot controls the continuity of the B-splines at that
grid point.

References
----------
- de Boor (2001), "A Practical Guide to Splines", Springer, Chapter IX.
- Piegl & Tiller (1997), "The NURBS Book", Springer, Section 2.2.
"""

from __future__ import annotations

import time
from typing import Dict, List, Optional, Tuple

import numpy as np

from pybspline.exceptions import (
    InconsistentDataError,
    IndexOutOfRangeError,
    UndeterminedError,
)
from pybspline.grid import Grid, Support
from pybspline.spline import Spline


class BSplineGenerator:
    """Generate B-splines on a knot vector.

    Parameters
    ----------
    knots : array_like
        Non-decreasing knot vector.  Values may repeat.
    grid : Grid, optional
        Grid to generate the B-splines on.  It must equal the knot vector
        with duplicates removed.  Passing the grid of existing splines makes
        the generated B-splines share that grid object.

    Raises
    ------
    InvalidGridError
        If the knots decrease somewhere.
    InconsistentDataError
        If *grid* does not match the grid derived from *knots*.

    Examples
    --------
    >>> gen = BSplineGenerator([0.0, 0.0, 1.0, 2.0, 2.0])
    >>> hats = gen.generate_bsplines(2)
    >>> len(hats)
    3
    >>> float(hats[1](1.0))
    1.0
    """

    def __init__(self, knots, grid: Optional[Grid] = None):
        dtype = grid.dtype if grid is not None else None
        derived = Grid.from_knots(knots, dtype=dtype)
        if grid is not None and grid != derived:
            raise InconsistentDataError(
                "The supplied grid does not match the grid derived from the knots."
            )
        self._grid = grid if grid is not None else derived
        knots = np.array(knots, dtype=self._grid.dtype)
        knots.setflags(write=False)
        self._knots = knots

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def knots(self) -> np.ndarray:
        """Read-only knot vector (may contain repeated values)."""
        return self._knots

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_bspline(self, k: int, i: int) -> Spline:
        """Generate the B-spline of order ``k - 1`` starting at knot *i*.

        Parameters
        ----------
        k : int
            Number of coefficients per interval (polynomial order plus one).
        i : int
            Index of the first knot of the B-spline.

        Raises
        ------
        IndexOutOfRangeError
            If ``i + k`` is not a valid knot index.
        UndeterminedError
            If ``k == 1`` and the knot interval ``[knot[i], knot[i + 1])`` has
            zero width.
        """
        k = self._check_k(k)
        if i < 0 or i + k >= len(self._knots):
            raise IndexOutOfRangeError(
                f"B-spline index {i} with k={k} needs knot {i + k}, but there "
                f"are only {len(self._knots)} knots."
            )
        return self._generate(k, i, {})

    def generate_bsplines(self, k: int, verbose: bool = False) -> List[Spline]:
        """Generate all B-splines of order ``k - 1`` on the knot vector.

        Returns ``len(knots) - k`` splines, the ``i``-th one starting at knot
        ``i``.  Lower-order B-splines are shared between the neighbouring
        splines that need them.

        Parameters
        ----------
        k : int
            Number of coefficients per interval (polynomial order plus one).
        verbose : bool, optional
            If True, print generation progress.  Default is False.

        Raises
        ------
        UndeterminedError
            If there are fewer than *k* knots.
        """
        k = self._check_k(k)
        if len(self._knots) < k:
            raise UndeterminedError(
                "The knots vector contains too few elements to generate "
                "B-splines of the requested order."
            )
        start = time.time()
        count = len(self._knots) - k
        if verbose:
            print(
                f"Generating {count} B-splines of order {k - 1} "
                f"on {len(self._knots)} knots ({len(self._grid)} grid points)..."
            )

        cache: Dict[Tuple[int, int], Spline] = {}
        splines = [self._generate(k, i, cache) for i in range(count)]

        if verbose:
            print(
                f"Generated {count} B-splines in {time.time() - start:.3f}s "
                f"({len(cache)} distinct sub-splines)"
            )
        return splines

    @staticmethod
    def _check_k(k) -> int:
        if not isinstance(k, (int, np.integer)) or isinstance(k, bool):
            raise TypeError(f"k must be an int, got {type(k).__name__}")
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        return int(k)

    def _generate(self, k: int, i: int, cache: Dict[Tuple[int, int], Spline]) -> Spline:
        """Memoised Cox-de Boor recursion."""
        key = (k, i)
        cached = cache.get(key)
        if cached is not None:
            return cached

        knots = self._knots
        if k == 1:
            xi, xip1 = knots[i], knots[i + 1]
            if xi >= xip1:
                raise UndeterminedError(
                    f"Knot interval [{xi}, {xip1}) at index {i} has zero width."
                )
            grid_index = self._grid.find_element(xi)
            result = Spline._from_parts(
                Support(self._grid, grid_index, grid_index + 2),
                np.ones((1, 1), dtype=self._grid.dtype),
            )
        else:
            result = Spline.zero(self._grid, k - 1)

            # w1(x) = (x - knot[i]) / (knot[i+k-1] - knot[i])
            xi, xipkm1 = knots[i], knots[i + k - 1]
            if xipkm1 > xi:
                spline1 = self._generate(k - 1, i, cache) / (xipkm1 - xi)
                result += spline1.times_x() - xi * spline1

            # w2(x) = (knot[i+k] - x) / (knot[i+k] - knot[i+1])
            xip1, xipk = knots[i + 1], knots[i + k]
            if xipk > xip1:
                spline2 = self._generate(k - 1, i + 1, cache) / (xipk - xip1)
                result += xipk * spline2 - spline2.times_x()

        cache[key] = result
        return result

    def __repr__(self) -> str:
        return (
            f"BSplineGenerator(knots={len(self._knots)}, "
            f"grid_points={len(self._grid)}, dtype={self._grid.dtype})"
        )
