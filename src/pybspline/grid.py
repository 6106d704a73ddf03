"""Global grids and the supports of piecewise polynomials.

A :class:`Grid` is the coordinate space shared by all splines that are meant
to be combined with each other.  A :class:`Support` is a contiguous window of
grid points, stored as a half-open index range ``[start, end)`` into the
grid.  Because supports address grid points by index, two splines on the
same grid can be intersected and merged without comparing floating point
boundaries.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from pybspline.exceptions import (
    DifferingGridsError,
    IndexOutOfRangeError,
    InvalidGridError,
)


class Grid:
    """Immutable, strictly increasing sequence of grid points.

    The points are held in a read-only numpy array.  Copies of a grid handed
    to supports and splines share that array, so equality first checks for
    identity and only falls back to an elementwise comparison for grids that
    were built independently.

    Parameters
    ----------
    values : array_like
        Grid points.  Must be one-dimensional and strictly increasing.
    dtype : numpy dtype, optional
        Floating point type of the grid.  Integer input is promoted to
        ``float64`` when no dtype is given.

    Raises
    ------
    InvalidGridError
        If the values are not a strictly increasing 1-D sequence.

    Examples
    --------
    >>> g = Grid([0.0, 0.5, 1.0])
    >>> len(g)
    3
    >>> g == Grid([0.0, 0.5, 1.0])
    True
    """

    __slots__ = ("_data", "_reflected")

    def __init__(self, values, dtype=None):
        data = np.array(values, dtype=dtype)
        if data.ndim != 1:
            raise InvalidGridError(
                f"Grid points must be one-dimensional, got shape {data.shape}"
            )
        if not np.issubdtype(data.dtype, np.floating):
            data = data.astype(float)
        if len(data) > 1 and not np.all(np.diff(data) > 0):
            raise InvalidGridError(
                "Grid points must be strictly increasing."
            )
        data.setflags(write=False)
        self._data = data
        self._reflected = None

    @classmethod
    def _from_array(cls, data: np.ndarray) -> "Grid":
        """Wrap an already validated, read-only array without copying."""
        obj = object.__new__(cls)
        obj._data = data
        obj._reflected = None
        return obj

    def __getstate__(self):
        return {"_data": self._data}

    def __setstate__(self, state):
        data = np.array(state["_data"])
        data.setflags(write=False)
        self._data = data
        self._reflected = None

    @classmethod
    def from_knots(cls, knots, dtype=None) -> "Grid":
        """Build a grid from a knot sequence that may repeat values.

        Consecutive duplicates are dropped, the order is preserved.

        Raises
        ------
        InvalidGridError
            If the knots decrease anywhere.
        """
        knots = np.asarray(knots, dtype=dtype)
        if knots.ndim != 1:
            raise InvalidGridError(
                f"Knots must be one-dimensional, got shape {knots.shape}"
            )
        if len(knots) == 0:
            return cls(knots, dtype=dtype)
        keep = np.concatenate([[True], np.diff(knots) != 0])
        return cls(knots[keep], dtype=dtype)

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, index):
        return self._data[index]

    def __iter__(self):
        return iter(self._data)

    def at(self, index: int):
        """Return the grid point at *index*, checking the bounds."""
        if not 0 <= index < len(self._data):
            raise IndexOutOfRangeError(
                f"Grid index {index} out of range [0, {len(self._data) - 1}]"
            )
        return self._data[index]

    @property
    def values(self) -> np.ndarray:
        """Read-only array of the grid points."""
        return self._data

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def empty(self) -> bool:
        return len(self._data) == 0

    def front(self):
        if self.empty:
            raise IndexOutOfRangeError("front() called on an empty grid.")
        return self._data[0]

    def back(self):
        if self.empty:
            raise IndexOutOfRangeError("back() called on an empty grid.")
        return self._data[-1]

    def find_element(self, x) -> int:
        """Return the index of the grid point exactly equal to *x*.

        Raises
        ------
        IndexOutOfRangeError
            If *x* is not a grid point.
        """
        idx = int(np.searchsorted(self._data, x, side="left"))
        if idx < len(self._data) and self._data[idx] == x:
            return idx
        raise IndexOutOfRangeError(f"{x} is not an element of the grid.")

    def astype(self, dtype) -> "Grid":
        """Return a copy of the grid converted to *dtype*."""
        return Grid(self._data.astype(dtype), dtype=dtype)

    def reflected(self) -> "Grid":
        """The grid mirrored about zero, ``x -> -x``.

        The result is cached, so every spline reflected from this grid ends up
        on the same :class:`Grid` object.  It compares equal to this grid only
        if the grid is symmetric about zero.
        """
        if self._reflected is None:
            data = -self._data[::-1]
            data.setflags(write=False)
            reflected = Grid._from_array(data)
            reflected._reflected = self
            self._reflected = reflected
        return self._reflected

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        if self is other or self._data is other._data:
            return True
        if len(self._data) != len(other._data):
            return False
        return bool(np.array_equal(self._data, other._data))

    def __hash__(self):
        if self.empty:
            return hash(0)
        return hash((len(self._data), float(self._data[0]), float(self._data[-1])))

    def __repr__(self) -> str:
        if len(self._data) > 6:
            head = ", ".join(f"{v:g}" for v in self._data[:3])
            tail = ", ".join(f"{v:g}" for v in self._data[-3:])
            shown = f"[{head}, ..., {tail}]"
        else:
            shown = "[" + ", ".join(f"{v:g}" for v in self._data) + "]"
        return f"Grid({shown}, size={len(self._data)}, dtype={self._data.dtype})"


class Support:
    """Contiguous range ``[start, end)`` of grid points of a :class:`Grid`.

    ``size`` is the number of grid points in the range and the number of
    intervals is ``max(size - 1, 0)``.  Supports on different grids can not
    be combined; :meth:`union` and :meth:`intersection` raise
    :class:`~pybspline.exceptions.DifferingGridsError` in that case.

    Parameters
    ----------
    grid : Grid
        The global grid.
    start : int
        Index of the first grid point that is part of the support.
    end : int
        Index behind the last grid point that is part of the support.

    Raises
    ------
    IndexOutOfRangeError
        Unless ``0 <= start <= end <= len(grid)``.
    """

    __slots__ = ("_grid", "_start", "_end")

    def __init__(self, grid: Grid, start: int, end: int):
        if not isinstance(grid, Grid):
            raise TypeError(
                f"grid must be a Grid, got {type(grid).__name__}"
            )
        start, end = int(start), int(end)
        if not 0 <= start <= end <= len(grid):
            raise IndexOutOfRangeError(
                f"Support [{start}, {end}) does not fit into a grid of "
                f"size {len(grid)}"
            )
        self._grid = grid
        self._start = start
        self._end = end

    @classmethod
    def empty(cls, grid: Grid) -> "Support":
        """An empty support on *grid*."""
        return cls(grid, 0, 0)

    @classmethod
    def whole_grid(cls, grid: Grid) -> "Support":
        """A support covering every point of *grid*."""
        return cls(grid, 0, len(grid))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def start_index(self) -> int:
        return self._start

    @property
    def end_index(self) -> int:
        return self._end

    @property
    def size(self) -> int:
        """Number of grid points contained in the support."""
        return self._end - self._start

    def __len__(self) -> int:
        return self._end - self._start

    @property
    def is_empty(self) -> bool:
        return self._start == self._end

    @property
    def contains_intervals(self) -> bool:
        """False if the support is empty or point-like."""
        return self.size > 1

    @property
    def number_of_intervals(self) -> int:
        return max(self.size - 1, 0)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the grid points in the support."""
        return self._grid.values[self._start:self._end]

    @property
    def midpoints(self) -> np.ndarray:
        """Midpoint of every interval of the support."""
        v = self.values
        return (v[1:] + v[:-1]) / 2

    @property
    def half_widths(self) -> np.ndarray:
        """Half the width of every interval of the support."""
        v = self.values
        return (v[1:] - v[:-1]) / 2

    # ------------------------------------------------------------------
    # Element access and index translation
    # ------------------------------------------------------------------

    def __getitem__(self, index):
        # negative indices count from the end of the support
        return self.values[index]

    def at(self, index: int):
        """Return the *index*-th grid point of the support, checking bounds."""
        if not 0 <= index < self.size:
            raise IndexOutOfRangeError(
                f"Support index {index} out of range for support of size {self.size}"
            )
        return self._grid.values[self._start + index]

    def front(self):
        if self.is_empty:
            raise IndexOutOfRangeError("front() called on an empty support.")
        return self._grid.values[self._start]

    def back(self):
        if self.is_empty:
            raise IndexOutOfRangeError("back() called on an empty support.")
        return self._grid.values[self._end - 1]

    def absolute_from_relative(self, index: int) -> int:
        """Translate an index relative to this support into a grid index."""
        if not 0 <= index < self.size:
            raise IndexOutOfRangeError(
                f"Relative index {index} out of range for support of size {self.size}"
            )
        return self._start + index

    def relative_from_absolute(self, index: int) -> Optional[int]:
        """Translate a grid index into an index relative to this support.

        Returns ``None`` if the grid point is not part of the support.
        """
        if self._start <= index < self._end:
            return index - self._start
        return None

    def interval_index_from_absolute(self, index: int) -> Optional[int]:
        """Translate a grid interval index into a relative interval index.

        Returns ``None`` if the interval is not part of the support.
        """
        if self._start <= index < self._end - 1:
            return index - self._start
        return None

    def find_interval(self, x) -> Optional[int]:
        """Relative index of the interval containing *x*, or ``None``.

        A point on an interior grid point belongs to the interval starting
        there; the last interval is closed on the right.
        """
        idx, inside = self.find_intervals(x)
        if not bool(inside):
            return None
        return int(idx)

    def find_intervals(self, x) -> Tuple[np.ndarray, np.ndarray]:
        """Vectorised interval lookup.

        Returns
        -------
        indices : ndarray of int
            Relative interval index per point, clipped to the valid range.
        inside : ndarray of bool
            Whether the point lies in ``[front, back]``.
        """
        x = np.asarray(x)
        n = self.number_of_intervals
        if n == 0:
            return np.zeros(x.shape, dtype=np.intp), np.zeros(x.shape, dtype=bool)
        values = self.values
        inside = (x >= values[0]) & (x <= values[-1])
        idx = np.searchsorted(values, x, side="right") - 1
        idx = np.clip(idx, 0, n - 1)
        return idx, inside

    # ------------------------------------------------------------------
    # Set-like operations
    # ------------------------------------------------------------------

    def has_same_grid(self, other: "Support") -> bool:
        return self._grid == other._grid

    def _check_same_grid(self, other: "Support") -> None:
        if not self.has_same_grid(other):
            raise DifferingGridsError(
                "The two supports are defined on differing grids."
            )

    def union(self, other: "Support") -> "Support":
        """Smallest support containing both supports (convex hull)."""
        self._check_same_grid(other)
        if other.is_empty:
            return self
        if self.is_empty:
            return other
        return Support(
            self._grid,
            min(self._start, other._start),
            max(self._end, other._end),
        )

    def intersection(self, other: "Support") -> "Support":
        """Common part of both supports; empty if they do not overlap."""
        self._check_same_grid(other)
        start = max(self._start, other._start)
        end = min(self._end, other._end)
        if start >= end:
            return Support.empty(self._grid)
        return Support(self._grid, start, end)

    def __eq__(self, other):
        if not isinstance(other, Support):
            return NotImplemented
        if self.is_empty and other.is_empty:
            return True
        return (
            self._start == other._start
            and self._end == other._end
            and self.has_same_grid(other)
        )

    def __hash__(self):
        if self.is_empty:
            return hash(0)
        return hash((self._start, self._end))

    def __repr__(self) -> str:
        return (
            f"Support(start={self._start}, end={self._end}, "
            f"grid_size={len(self._grid)})"
        )
