"""
Unit tests for Gauss-Legendre quadrature.
"""

import pytest
import numpy as np
from numpy.testing import assert_almost_equal, assert_array_almost_equal

from watfFEM.quadrature.gauss import (
    gauss_legendre_1d, gauss_legendre_2d, GaussQuadrature
)


class TestGaussLegendre1D:
    """Tests for 1D Gauss-Legendre quadrature."""

    def test_weights_sum_to_two(self):
        """Test that weights sum to 2 (domain is [-1,1])."""
        for n in [1, 2, 3, 4, 5]:
            pts, wts = gauss_legendre_1d(n)
            assert_almost_equal(np.sum(wts), 2.0, decimal=14)

    def test_points_in_domain(self):
        """Test that all points are inside (-1, 1)."""
        for n in [1, 2, 3, 4, 5]:
            pts, wts = gauss_legendre_1d(n)
            assert np.all(pts > -1.0)
            assert np.all(pts < 1.0)

    def test_two_point_rule(self):
        """Two points at ±1/√3 with unit weights."""
        pts, wts = gauss_legendre_1d(2)
        assert_array_almost_equal(pts, [-1 / np.sqrt(3), 1 / np.sqrt(3)], decimal=15)
        assert_array_almost_equal(wts, [1.0, 1.0], decimal=15)

    def test_integrate_polynomial(self):
        """Test exact integration of polynomials up to degree 2n-1."""
        pts, wts = gauss_legendre_1d(2)

        # ∫_{-1}^{1} x^2 dx = 2/3, ∫ x^3 dx = 0
        assert_almost_equal(np.sum(pts**2 * wts), 2 / 3, decimal=14)
        assert_almost_equal(np.sum(pts**3 * wts), 0.0, decimal=14)

        # n=3 should integrate exactly up to degree 5
        pts, wts = gauss_legendre_1d(3)
        assert_almost_equal(np.sum(pts**4 * wts), 2 / 5, decimal=14)

    def test_not_exact_beyond_degree(self):
        """n=2 cannot integrate x^4 exactly."""
        pts, wts = gauss_legendre_1d(2)
        assert abs(np.sum(pts**4 * wts) - 2 / 5) > 1e-3

    def test_invalid_n(self):
        with pytest.raises(ValueError):
            gauss_legendre_1d(0)

    def test_cache_not_corrupted(self):
        """Modifying returned arrays does not affect later calls."""
        pts, wts = gauss_legendre_1d(2)
        pts[0] = 100.0
        wts[:] = 0.0
        pts2, wts2 = gauss_legendre_1d(2)
        assert_almost_equal(pts2[0], -1 / np.sqrt(3))
        assert_almost_equal(np.sum(wts2), 2.0)


class TestGaussLegendre2D:
    """Tests for 2D tensor-product quadrature."""

    def test_number_of_points(self):
        pts, wts = gauss_legendre_2d(2, 3)
        assert pts.shape == (6, 2)
        assert wts.shape == (6,)

    def test_weights_sum_to_four(self):
        """Reference square [-1,1]^2 has area 4."""
        for n1, n2 in [(1, 1), (2, 2), (2, 3), (4, 4)]:
            pts, wts = gauss_legendre_2d(n1, n2)
            assert_almost_equal(np.sum(wts), 4.0, decimal=14)

    def test_point_ordering(self):
        """xi1 is the outer loop, xi2 the inner loop."""
        a = 1 / np.sqrt(3)
        pts, wts = gauss_legendre_2d(2, 2)
        assert_array_almost_equal(pts, [[-a, -a], [-a, a], [a, -a], [a, a]])

    def test_integrate_bilinear_product(self):
        """∫∫ x^2 y^2 over [-1,1]^2 = 4/9."""
        pts, wts = gauss_legendre_2d(2, 2)
        result = np.sum(pts[:, 0]**2 * pts[:, 1]**2 * wts)
        assert_almost_equal(result, 4 / 9, decimal=14)


class TestGaussQuadrature:
    """Tests for the GaussQuadrature class."""

    def test_default_rule(self):
        quad = GaussQuadrature()
        assert quad.n_points_per_dir == (2, 2)
        assert quad.n_points == 4
        assert_array_almost_equal(quad.weights, np.ones(4))

    def test_uniform(self):
        quad = GaussQuadrature.uniform(3)
        assert quad.n_points_per_dir == (3, 3)
        assert quad.n_points == 9

    def test_iteration(self):
        quad = GaussQuadrature((2, 3))
        items = list(quad)
        assert len(items) == 6
        (xi1, xi2), w = items[0]
        assert_almost_equal(xi1, quad.points[0, 0])
        assert_almost_equal(xi2, quad.points[0, 1])
        assert_almost_equal(w, quad.weights[0])

    def test_wrong_dimension(self):
        with pytest.raises(ValueError):
            GaussQuadrature((2, 2, 2))
