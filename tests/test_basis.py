"""
Unit tests for the bilinear shape functions.
"""

import pytest
import numpy as np
from numpy.testing import assert_almost_equal, assert_array_almost_equal

from watfFEM.discretization.basis import (
    BilinearBasis, REFERENCE_CORNERS, shape_function, shape_gradient
)


SAMPLE_POINTS = [
    (0.0, 0.0),
    (-1.0, -1.0),
    (0.3, -0.7),
    (-0.577, 0.577),
    (0.9, 0.1),
    (1.0, 1.0),
]


class TestCornerTable:
    """Tests for the explicit corner association."""

    def test_corner_order(self):
        """Local order is bottom-left, bottom-right, top-left, top-right."""
        assert REFERENCE_CORNERS == ((-1, -1), (1, -1), (-1, 1), (1, 1))

    def test_kronecker_delta(self):
        """N_A is 1 at its own corner and 0 at the others."""
        for a in range(4):
            for b, (s1, s2) in enumerate(REFERENCE_CORNERS):
                expected = 1.0 if a == b else 0.0
                assert_almost_equal(shape_function(a, s1, s2), expected)

    def test_center_value(self):
        for a in range(4):
            assert_almost_equal(shape_function(a, 0.0, 0.0), 0.25)


class TestPartitionOfUnity:
    """Σ N_A = 1 and Σ ∇N_A = 0 at every reference point."""

    def test_values_sum_to_one(self, tolerance):
        for xi1, xi2 in SAMPLE_POINTS:
            total = sum(shape_function(a, xi1, xi2) for a in range(4))
            assert abs(total - 1.0) < tolerance

    def test_gradients_sum_to_zero(self, tolerance):
        for xi1, xi2 in SAMPLE_POINTS:
            total = sum(shape_gradient(a, xi1, xi2) for a in range(4))
            assert np.all(np.abs(total) < tolerance)

    def test_vectorized(self, tolerance):
        basis = BilinearBasis()
        for xi in SAMPLE_POINTS:
            N, dN1, dN2 = basis.eval_ders(xi)
            assert abs(np.sum(N) - 1.0) < tolerance
            assert abs(np.sum(dN1)) < tolerance
            assert abs(np.sum(dN2)) < tolerance


class TestBilinearBasis:
    """Tests for the BilinearBasis class."""

    def test_n_basis(self):
        assert BilinearBasis().n_basis == 4

    def test_eval_matches_scalar(self):
        basis = BilinearBasis()
        for xi1, xi2 in SAMPLE_POINTS:
            N = basis.eval((xi1, xi2))
            expected = [basis.value(a, xi1, xi2) for a in range(4)]
            assert_array_almost_equal(N, expected, decimal=15)

    def test_gradient_matrix_matches_scalar(self):
        basis = BilinearBasis()
        for xi1, xi2 in SAMPLE_POINTS:
            dN = basis.gradient_matrix((xi1, xi2))
            assert dN.shape == (4, 2)
            for a in range(4):
                assert_array_almost_equal(dN[a], basis.gradient(a, xi1, xi2), decimal=15)

    def test_gradient_finite_difference(self):
        """Gradients agree with central differences."""
        h = 1e-6
        xi1, xi2 = 0.3, -0.4
        for a in range(4):
            fd = np.array([
                (shape_function(a, xi1 + h, xi2) - shape_function(a, xi1 - h, xi2)) / (2 * h),
                (shape_function(a, xi1, xi2 + h) - shape_function(a, xi1, xi2 - h)) / (2 * h),
            ])
            assert_array_almost_equal(shape_gradient(a, xi1, xi2), fd, decimal=8)

    def test_invalid_node(self):
        basis = BilinearBasis()
        with pytest.raises(IndexError):
            basis.value(4, 0.0, 0.0)
        with pytest.raises(IndexError):
            basis.gradient(-1, 0.0, 0.0)
