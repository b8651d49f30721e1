"""
Unit tests for the isoparametric geometry mapping.
"""

import pytest
import numpy as np
from numpy.testing import assert_almost_equal, assert_array_almost_equal

from watfFEM.errors import DegenerateElementError
from watfFEM.geometry.mapping import (
    evaluate_jacobian, jacobian_matrix, map_to_physical, element_area, physical_gradients
)
from watfFEM.discretization.basis import BilinearBasis
from watfFEM.quadrature.gauss import GaussQuadrature


class TestJacobian:
    """Tests for Jacobian evaluation."""

    def test_reference_square_is_identity(self):
        coords = np.array([[-1.0, -1.0], [1.0, -1.0], [-1.0, 1.0], [1.0, 1.0]])
        for (xi1, xi2), _ in GaussQuadrature():
            jac = evaluate_jacobian(coords, xi1, xi2)
            assert_array_almost_equal(jac.matrix, np.eye(2))
            assert_almost_equal(jac.det, 1.0)
            assert_array_almost_equal(jac.inverse, np.eye(2))

    def test_unit_square(self, unit_square_coords):
        jac = evaluate_jacobian(unit_square_coords, 0.2, -0.3)
        assert_array_almost_equal(jac.matrix, 0.5 * np.eye(2))
        assert_almost_equal(jac.det, 0.25)
        assert_array_almost_equal(jac.inverse, 2.0 * np.eye(2))

    def test_rectangle(self):
        """2 x 3 rectangle: J = diag(1, 1.5)."""
        coords = np.array([[0.0, 0.0], [2.0, 0.0], [0.0, 3.0], [2.0, 3.0]])
        jac = evaluate_jacobian(coords, 0.0, 0.0)
        assert_array_almost_equal(jac.matrix, np.diag([1.0, 1.5]))
        assert_almost_equal(jac.det, 1.5)

    def test_inverse(self):
        """J @ Jinv = I on a general quadrilateral."""
        coords = np.array([[0.0, 0.0], [1.2, 0.1], [-0.1, 0.9], [1.0, 1.3]])
        for (xi1, xi2), _ in GaussQuadrature():
            jac = evaluate_jacobian(coords, xi1, xi2)
            assert_array_almost_equal(jac.matrix @ jac.inverse, np.eye(2))
            assert_almost_equal(jac.det, np.linalg.det(jac.matrix))

    def test_matrix_matches_evaluation(self, unit_square_coords):
        J = jacobian_matrix(unit_square_coords, 0.1, 0.2)
        assert_array_almost_equal(J, evaluate_jacobian(unit_square_coords, 0.1, 0.2).matrix)


class TestDegenerateElements:
    """Non-positive determinants are fatal."""

    def test_inverted_element(self, unit_square_coords):
        """Swapping BL and BR mirrors the element."""
        coords = unit_square_coords[[1, 0, 3, 2]]
        with pytest.raises(DegenerateElementError) as info:
            evaluate_jacobian(coords, 0.0, 0.0, element_id=7)
        assert info.value.element_id == 7
        assert info.value.det < 0.0
        assert info.value.point == (0.0, 0.0)

    def test_collapsed_element(self):
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])
        with pytest.raises(DegenerateElementError):
            evaluate_jacobian(coords, 0.0, 0.0)

    def test_is_value_error(self, unit_square_coords):
        with pytest.raises(ValueError):
            evaluate_jacobian(unit_square_coords[[1, 0, 3, 2]], 0.0, 0.0)


class TestMapping:
    """Tests for point mapping, gradients and areas."""

    def test_corners_map_to_nodes(self):
        coords = np.array([[0.0, 0.0], [1.2, 0.1], [-0.1, 0.9], [1.0, 1.3]])
        corners = [(-1, -1), (1, -1), (-1, 1), (1, 1)]
        for a, xi in enumerate(corners):
            assert_array_almost_equal(map_to_physical(coords, xi), coords[a])

    def test_center(self, unit_square_coords):
        assert_array_almost_equal(map_to_physical(unit_square_coords, (0.0, 0.0)), [0.5, 0.5])

    def test_element_area(self, unit_square_coords):
        assert_almost_equal(element_area(unit_square_coords), 1.0)
        parallelogram = np.array([[0.0, 0.0], [2.0, 0.0], [0.5, 1.0], [2.5, 1.0]])
        assert_almost_equal(element_area(parallelogram), 2.0)

    def test_physical_gradients_of_linear_field(self):
        """Interpolating T = 2x + 3y gives ∇T = (2, 3) everywhere."""
        coords = np.array([[0.0, 0.0], [1.2, 0.1], [-0.1, 0.9], [1.0, 1.3]])
        T = 2 * coords[:, 0] + 3 * coords[:, 1]
        basis = BilinearBasis()
        for (xi1, xi2), _ in GaussQuadrature.uniform(3):
            jac = evaluate_jacobian(coords, xi1, xi2)
            B = physical_gradients(basis.gradient_matrix((xi1, xi2)), jac.inverse)
            assert_array_almost_equal(T @ B, [2.0, 3.0])
