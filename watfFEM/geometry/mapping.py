"""
Isoparametric geometry mapping for bilinear quadrilaterals.

The same shape functions that interpolate the temperature also map the
reference square onto the physical element:

    x(xi) = sum_A N_A(xi) x_A

Its Jacobian at a reference point is

    J[i][j] = dx_i/dxi_j = sum_A x_A[i] * dN_A/dxi_j(xi)

det(J) scales reference area to physical area; J^{-1} converts
reference gradients to physical gradients (chain rule):

    dN/dx_i = sum_I dN/dxi_I * Jinv[I][i]

A non-positive determinant means the element is inverted or collapsed;
the mapping is then not invertible and assembly must stop.
"""

import numpy as np
from typing import Tuple, Optional
from dataclasses import dataclass

from ..discretization.basis import BilinearBasis
from ..errors import DegenerateElementError
from ..quadrature.gauss import GaussQuadrature

_BASIS = BilinearBasis()


@dataclass(frozen=True)
class JacobianEvaluation:
    """
    Jacobian of the reference-to-physical map at one reference point.

    Attributes:
        matrix: J, shape (2, 2), J[i, j] = dx_i/dxi_j
        det: det(J)
        inverse: J^{-1}, shape (2, 2), Jinv[I, i] = dxi_I/dx_i
    """
    matrix: np.ndarray
    det: float
    inverse: np.ndarray


def jacobian_matrix(coordinates: np.ndarray,
                    xi1: float,
                    xi2: float,
                    basis: BilinearBasis = _BASIS) -> np.ndarray:
    """
    Compute the Jacobian matrix at a reference point.

    Parameters:
        coordinates: Element node coordinates in local order, shape (4, 2)
        xi1, xi2: Reference coordinates
        basis: Shape functions

    Returns:
        J, shape (2, 2)
    """
    dN = basis.gradient_matrix((xi1, xi2))  # (4, 2): dN_A/dxi_j
    # J[i, j] = sum_A x_A[i] dN_A/dxi_j
    return coordinates.T @ dN


def evaluate_jacobian(coordinates: np.ndarray,
                      xi1: float,
                      xi2: float,
                      element_id: Optional[int] = None,
                      basis: BilinearBasis = _BASIS) -> JacobianEvaluation:
    """
    Jacobian, determinant and inverse at a reference point.

    Parameters:
        coordinates: Element node coordinates in local order, shape (4, 2)
        xi1, xi2: Reference coordinates
        element_id: Reported in the error if the element is degenerate
        basis: Shape functions

    Returns:
        JacobianEvaluation

    Raises:
        DegenerateElementError: if det(J) <= 0
    """
    J = jacobian_matrix(np.asarray(coordinates, dtype=np.float64), xi1, xi2, basis)

    det_jac = J[0, 0] * J[1, 1] - J[0, 1] * J[1, 0]
    if not det_jac > 0.0:
        raise DegenerateElementError(float(det_jac), (xi1, xi2), element_id)

    # [dxi1/dx  dxi1/dy]   1   [ dy/dxi2  -dx/dxi2]
    # [dxi2/dx  dxi2/dy] = --- [-dy/dxi1   dx/dxi1]
    #                      |J|
    inv_jac = np.array([
        [ J[1, 1], -J[0, 1]],
        [-J[1, 0],  J[0, 0]]
    ]) / det_jac

    return JacobianEvaluation(matrix=J, det=float(det_jac), inverse=inv_jac)


def physical_gradients(dN_ref: np.ndarray, inv_jac: np.ndarray) -> np.ndarray:
    """
    Transform reference gradients to physical gradients.

    Parameters:
        dN_ref: Reference gradients, shape (n_basis, 2), row A = dN_A/dxi
        inv_jac: J^{-1}, shape (2, 2)

    Returns:
        Physical gradients, shape (n_basis, 2), row A = dN_A/dx
    """
    # dN_A/dx_i = sum_I dN_A/dxi_I Jinv[I, i]
    return dN_ref @ inv_jac


def map_to_physical(coordinates: np.ndarray,
                    xi: Tuple[float, float],
                    basis: BilinearBasis = _BASIS) -> np.ndarray:
    """
    Map a reference point to physical coordinates.

    Parameters:
        coordinates: Element node coordinates in local order, shape (4, 2)
        xi: Reference coordinates (xi1, xi2)

    Returns:
        Physical point (x, y)
    """
    return basis.eval(xi) @ np.asarray(coordinates, dtype=np.float64)


def element_area(coordinates: np.ndarray, n_gauss: int = 2) -> float:
    """
    Physical area of an element, integrated with Gauss quadrature.

    Raises DegenerateElementError for inverted or collapsed elements.
    """
    area = 0.0
    for (xi1, xi2), w in GaussQuadrature.uniform(n_gauss):
        area += evaluate_jacobian(coordinates, xi1, xi2).det * w
    return area
