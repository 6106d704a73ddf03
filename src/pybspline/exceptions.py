"""Exception classes raised by pybspline.

Every error carries an :class:`ErrorCode`.  The concrete classes also derive
from the matching builtin (``ValueError`` or ``IndexError``) so callers that
only care about the builtin contract can keep catching those.
"""

from __future__ import annotations

import enum


class ErrorCode(enum.Enum):
    """Kinds of failure reported by pybspline."""

    DIFFERING_GRIDS = "DIFFERING_GRIDS"
    INCONSISTENT_DATA = "INCONSISTENT_DATA"
    UNDETERMINED = "UNDETERMINED"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    INVALID_GRID = "INVALID_GRID"


class BSplineError(Exception):
    """Base exception class for all pybspline errors."""

    def __init__(self, message: str, error_code: ErrorCode):
        super().__init__(message)
        self.error_code = error_code
        self.message = message

    def __str__(self):
        return f"[{self.error_code.value}] {self.message}"


class DifferingGridsError(BSplineError, ValueError):
    """Raised when two objects defined on inequivalent grids are combined."""

    def __init__(self, message: str = "The two operands are defined on differing grids."):
        super().__init__(message, ErrorCode.DIFFERING_GRIDS)


class InconsistentDataError(BSplineError, ValueError):
    """Raised when a supplied grid does not match the grid derived from knots."""

    def __init__(self, message: str = "The supplied grid is inconsistent with the knots."):
        super().__init__(message, ErrorCode.INCONSISTENT_DATA)


class UndeterminedError(BSplineError, ValueError):
    """Raised when a requested construction is mathematically degenerate."""

    def __init__(self, message: str = "The requested quantity is undetermined."):
        super().__init__(message, ErrorCode.UNDETERMINED)


class IndexOutOfRangeError(BSplineError, IndexError):
    """Raised for accesses beyond the bounds of a grid or support."""

    def __init__(self, message: str = "Index out of range."):
        super().__init__(message, ErrorCode.INDEX_OUT_OF_RANGE)


class InvalidGridError(BSplineError, ValueError):
    """Raised when grid points are not a strictly increasing 1-D sequence."""

    def __init__(self, message: str = "Grid points must be strictly increasing."):
        super().__init__(message, ErrorCode.INVALID_GRID)
