"""Shared helpers for spline arithmetic operators."""

from __future__ import annotations

import math

import numpy as np

from pybspline.exceptions import DifferingGridsError


def _is_scalar(value) -> bool:
    """Return True if *value* is a numeric scalar (int, float, or numpy scalar)."""
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool)


def _check_compatible(a, b) -> None:
    """Validate that two splines can be combined arithmetically.

    Both operands must be splines defined on logically equal grids.  The
    supports themselves may differ.
    """
    if type(a) is not type(b):
        raise TypeError(
            f"Cannot combine {type(a).__name__} with {type(b).__name__}; "
            f"operands must be the same type."
        )
    if not a.support.has_same_grid(b.support):
        raise DifferingGridsError(
            f"Cannot combine splines on differing grids "
            f"(sizes {len(a.grid)} and {len(b.grid)})."
        )


def _pad_coefficients(coeffs: np.ndarray, width: int) -> np.ndarray:
    """Zero-pad every row of *coeffs* to *width* columns."""
    n_rows, n_cols = coeffs.shape
    if n_cols == width:
        return coeffs
    padded = np.zeros((n_rows, width), dtype=coeffs.dtype)
    padded[:, :n_cols] = coeffs
    return padded


def _convolve_rows(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Row-wise discrete convolution ``c[:, j + k] += a[:, j] * b[:, k]``.

    This multiplies the midpoint-centred polynomials of two splines interval
    by interval.
    """
    n_rows = a.shape[0]
    width = a.shape[1] + b.shape[1] - 1
    out = np.zeros((n_rows, width), dtype=np.result_type(a, b))
    for j in range(a.shape[1]):
        out[:, j:j + b.shape[1]] += a[:, j:j + 1] * b
    return out


def _falling_factorials(order: int, n: int, dtype) -> np.ndarray:
    """Factors ``i * (i - 1) * ... * (i - n + 1)`` for ``i = n .. order``."""
    return np.array([math.perm(i, n) for i in range(n, order + 1)], dtype=dtype)
