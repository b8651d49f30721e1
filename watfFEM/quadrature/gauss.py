"""
Gauss-Legendre quadrature for numerical integration.

An n-point rule is exact for polynomials of degree 2n-1 and lower.
For bilinear quadrilaterals the default rule is 2 points per direction
(abscissas ±1/√3, weights 1), which integrates the stiffness integrand
exactly on parallelogram elements. On general quadrilaterals the
integrand is rational and the rule is approximate.

The reference domain is the bi-unit square [-1, 1]^2, the domain the
bilinear shape functions are defined on.

Example:
    rule = GaussQuadrature.uniform(2)
    for (xi1, xi2), w in rule:
        ...
"""

import numpy as np
from typing import Tuple
from functools import lru_cache


@lru_cache(maxsize=16)
def _leggauss(n: int) -> Tuple[np.ndarray, np.ndarray]:
    return np.polynomial.legendre.leggauss(n)


def gauss_legendre_1d(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gauss-Legendre quadrature points and weights on [-1, 1].

    Parameters:
        n: Number of quadrature points

    Returns:
        (points, weights) where:
        - points: Array of n quadrature points in (-1, 1), ascending
        - weights: Array of n quadrature weights (sum to 2)
    """
    if n < 1:
        raise ValueError("Need at least 1 quadrature point")

    points, weights = _leggauss(n)

    # Copies, so callers cannot corrupt the cache
    return points.copy(), weights.copy()


def gauss_legendre_2d(n_xi1: int, n_xi2: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Tensor-product Gauss-Legendre quadrature on [-1,1]².

    Points are ordered with xi1 in the outer loop and xi2 in the inner
    loop; each weight is the product of the two 1D weights.

    Parameters:
        n_xi1: Number of points in xi1 direction
        n_xi2: Number of points in xi2 direction

    Returns:
        (points, weights) where:
        - points: Array of shape (n_xi1 * n_xi2, 2) with (xi1, xi2) coordinates
        - weights: Array of shape (n_xi1 * n_xi2,) with weights
    """
    xi1_pts, xi1_wts = gauss_legendre_1d(n_xi1)
    xi2_pts, xi2_wts = gauss_legendre_1d(n_xi2)

    points = np.column_stack([np.repeat(xi1_pts, n_xi2), np.tile(xi2_pts, n_xi1)])
    weights = np.outer(xi1_wts, xi2_wts).ravel()
    return points, weights


class GaussQuadrature:
    """
    Tensor-product Gauss quadrature over the reference square.

    Attributes:
        n_points_per_dir: Number of quadrature points per reference direction
    """

    def __init__(self, n_points_per_dir: Tuple[int, int] = (2, 2)):
        """
        Initialize Gauss quadrature.

        Parameters:
            n_points_per_dir: Number of points in each direction (xi1, xi2)
        """
        if len(n_points_per_dir) != 2:
            raise ValueError(
                f"Expected 2 directions, got {len(n_points_per_dir)}")

        self.n_points_per_dir = tuple(int(n) for n in n_points_per_dir)
        self.n_dim = 2

        self._points, self._weights = gauss_legendre_2d(*self.n_points_per_dir)

    @classmethod
    def uniform(cls, n: int) -> 'GaussQuadrature':
        """Same number of points in both directions."""
        return cls((n, n))

    @property
    def n_points(self) -> int:
        """Total number of quadrature points."""
        return len(self._weights)

    @property
    def points(self) -> np.ndarray:
        """
        Quadrature points on the reference element [-1,1]^2.

        Returns:
            Array of shape (n_points, 2)
        """
        return self._points

    @property
    def weights(self) -> np.ndarray:
        """
        Quadrature weights (products of the 1D weights).

        Returns:
            Array of shape (n_points,)
        """
        return self._weights

    def __iter__(self):
        """Iterate over ((xi1, xi2), weight) pairs."""
        for q in range(self.n_points):
            yield (self._points[q, 0], self._points[q, 1]), self._weights[q]

    def __repr__(self) -> str:
        return f"GaussQuadrature(n_points_per_dir={self.n_points_per_dir})"
