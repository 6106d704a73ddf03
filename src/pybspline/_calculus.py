"""Shared helpers for spline calculus (evaluation, integration, quadrature).

All per-interval polynomials are stored about the interval midpoint ``xm``,
``p(x) = sum_k c[k] (x - xm)^k``.  On an interval of half width ``h`` the
monomial ``t^p`` integrates to ``2 h^(p+1) / (p+1)`` for even ``p`` and to
zero for odd ``p``, so only the even coefficients contribute to an integral.

References
----------
- de Boor (2001), "A Practical Guide to Splines", Springer, Chapter IX.
- Golub & Welsch (1969), "Calculation of Gauss Quadrature Rules",
  Math. Comp. 23:221-230.
"""

from __future__ import annotations

import functools
from typing import Tuple

import numpy as np


def _horner(coeffs: np.ndarray, dx: np.ndarray) -> np.ndarray:
    """Evaluate midpoint-centred polynomials with Horner's method.

    Parameters
    ----------
    coeffs : ndarray of shape (N, order + 1)
        Coefficient row for every evaluation point.
    dx : ndarray of shape (N,)
        Distance of every evaluation point from its interval midpoint.

    Returns
    -------
    ndarray of shape (N,)
    """
    result = coeffs[:, -1].copy()
    for k in range(coeffs.shape[1] - 2, -1, -1):
        result = result * dx + coeffs[:, k]
    return result


def _interval_integrals(coeffs: np.ndarray, half_widths: np.ndarray) -> np.ndarray:
    """Integral of every row of *coeffs* over its own interval.

    Odd powers vanish over an interval that is symmetric about its midpoint
    and are skipped.

    Parameters
    ----------
    coeffs : ndarray of shape (n_intervals, order + 1)
        Midpoint-centred coefficients.
    half_widths : ndarray of shape (n_intervals,)
        Half width of each interval.

    Returns
    -------
    ndarray of shape (n_intervals,)
    """
    n_intervals, width = coeffs.shape
    result = np.zeros(n_intervals, dtype=np.result_type(coeffs, half_widths))
    if n_intervals == 0:
        return result
    pot = half_widths.copy()  # h^(p+1), starting at p = 0
    h_squared = half_widths * half_widths
    for p in range(0, width, 2):
        result += 2 * coeffs[:, p] * pot / (p + 1)
        pot = pot * h_squared
    return result


@functools.lru_cache(maxsize=32)
def _gauss_legendre(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Gauss-Legendre nodes and weights on ``[-1, 1]`` with *n* points.

    The rule integrates polynomials up to degree ``2n - 1`` exactly.
    """
    from scipy.special import roots_legendre

    if n < 1:
        raise ValueError(f"Gauss-Legendre order must be >= 1, got {n}")
    nodes, weights = roots_legendre(n)
    nodes.setflags(write=False)
    weights.setflags(write=False)
    return nodes, weights


def _binomial_row(n: int, dtype) -> np.ndarray:
    """Binomial coefficients ``C(n, k)`` for ``k = 0 .. n``."""
    from scipy.special import comb

    return np.array([comb(n, k, exact=True) for k in range(n + 1)], dtype=dtype)
