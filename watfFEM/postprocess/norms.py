"""
Error norms for verification against analytic solutions.

Key functions:
- nodal_max_error: max |T_h - T_exact| over the mesh nodes
- compute_l2_error: L2 norm of T_h - T_exact, integrated element-wise
- convergence_rates: observed orders from errors on refined meshes
"""

import numpy as np
from typing import Callable, Sequence

from ..discretization.basis import BilinearBasis
from ..discretization.mesh import Mesh
from ..geometry.mapping import evaluate_jacobian, map_to_physical
from ..quadrature.gauss import GaussQuadrature


def nodal_max_error(mesh: Mesh,
                    u: np.ndarray,
                    u_exact: Callable[[float, float], float]) -> float:
    """
    Maximum nodal error.

    Parameters:
        mesh: Mesh
        u: Solution vector (one value per node)
        u_exact: Exact solution u(x, y)

    Returns:
        max_i |u[i] - u_exact(x_i, y_i)|
    """
    exact = np.array([u_exact(x, y) for x, y in mesh.coordinates])
    return float(np.max(np.abs(np.asarray(u) - exact)))


def compute_l2_error(mesh: Mesh,
                     u: np.ndarray,
                     u_exact: Callable[[float, float], float],
                     n_gauss: int = 3) -> float:
    """
    L2 error of the finite element field over the domain.

    Uses a finer Gauss rule than assembly so the exact solution is
    integrated accurately.

    Parameters:
        mesh: Mesh
        u: Solution vector
        u_exact: Exact solution u(x, y)
        n_gauss: Quadrature points per direction

    Returns:
        sqrt(∫ (u_h - u_exact)^2 dΩ)
    """
    basis = BilinearBasis()
    quadrature = GaussQuadrature.uniform(n_gauss)
    u = np.asarray(u)

    error_sq = 0.0
    for element in mesh.get_elements():
        coords = element.coordinates
        u_local = u[element.global_dof_indices]

        for (xi1, xi2), w_q in quadrature:
            jac = evaluate_jacobian(coords, xi1, xi2, element.id, basis)
            N = basis.eval((xi1, xi2))
            x, y = map_to_physical(coords, (xi1, xi2), basis)
            error_sq += (N @ u_local - u_exact(x, y)) ** 2 * jac.det * w_q

    return float(np.sqrt(error_sq))


def convergence_rates(h_values: Sequence[float], errors: Sequence[float]) -> np.ndarray:
    """
    Observed convergence orders between successive refinements.

    rate_k = log(e_k / e_{k+1}) / log(h_k / h_{k+1})
    """
    h = np.asarray(h_values, dtype=np.float64)
    e = np.asarray(errors, dtype=np.float64)
    return np.log(e[:-1] / e[1:]) / np.log(h[:-1] / h[1:])
