"""
Steady anisotropic heat conduction solver.

Solves the scalar diffusion problem:
    -div(κ ∇T) = f    in Ω
             T = g    on Γ_D (Dirichlet boundary)

with κ a symmetric positive definite 2x2 conductivity tensor.

Weak form:
    ∫_Ω ∇v · κ ∇T dΩ = ∫_Ω f v dΩ    for all v in V_0

Element stiffness matrix (chain rule from reference to physical
gradients, summed over quadrature points q with weights w_q):
    K_AB = Σ_q Σ_ijIJ (dN_A/dxi_I Jinv[I,i]) κ[i,j] (dN_B/dxi_J Jinv[J,j]) detJ w_q

Element load vector:
    f_A = Σ_q f(x_q) N_A(xi_q) detJ w_q

Without a source term the load vector is identically zero.
"""

import logging

import numpy as np
from typing import Callable, Iterable, Optional, Tuple, Union

from .base import Solver
from .result import SolveResult
from ..discretization.basis import BilinearBasis
from ..discretization.element import Element
from ..discretization.mesh import Mesh, DirichletBC
from ..errors import FEMError
from ..geometry.mapping import evaluate_jacobian, map_to_physical, physical_gradients
from ..quadrature.gauss import GaussQuadrature

log = logging.getLogger(__name__)

ConductivityLike = Union[float, np.ndarray, Callable[[Element], np.ndarray]]


def conductivity_tensor(kappa) -> np.ndarray:
    """
    Validate and return a 2x2 conductivity tensor.

    A scalar gives the isotropic tensor kappa * I.

    Raises:
        ValueError: if the tensor is not 2x2, symmetric and positive definite
    """
    kappa = np.asarray(kappa, dtype=np.float64)
    if kappa.ndim == 0:
        kappa = float(kappa) * np.eye(2)
    if kappa.shape != (2, 2):
        raise ValueError(f"Conductivity must be a scalar or 2x2 tensor, got shape {kappa.shape}")
    if not np.allclose(kappa, kappa.T, rtol=1e-12, atol=0.0):
        raise ValueError(f"Conductivity tensor is not symmetric: {kappa.tolist()}")
    if np.linalg.eigvalsh(kappa).min() <= 0.0:
        raise ValueError(f"Conductivity tensor is not positive definite: {kappa.tolist()}")
    return kappa


def local_stiffness(coordinates: np.ndarray,
                    kappa: np.ndarray,
                    quadrature: Optional[GaussQuadrature] = None,
                    element_id: Optional[int] = None,
                    basis: Optional[BilinearBasis] = None) -> np.ndarray:
    """
    Element conductance matrix of a bilinear quadrilateral.

    Parameters:
        coordinates: Node coordinates in local order, shape (4, 2)
        kappa: Conductivity tensor, shape (2, 2)
        quadrature: Quadrature rule (default 2x2 Gauss)
        element_id: Reported if the element is degenerate
        basis: Shape functions

    Returns:
        K_e, shape (4, 4), symmetric

    Raises:
        DegenerateElementError: if det(J) <= 0 at a quadrature point
    """
    quadrature = quadrature if quadrature is not None else GaussQuadrature((2, 2))
    basis = basis if basis is not None else BilinearBasis()

    K_e = np.zeros((basis.n_basis, basis.n_basis))

    for (xi1, xi2), w_q in quadrature:
        jac = evaluate_jacobian(coordinates, xi1, xi2, element_id, basis)

        # B[A, i] = sum_I dN_A/dxi_I Jinv[I, i]
        B = physical_gradients(basis.gradient_matrix((xi1, xi2)), jac.inverse)

        # K_AB += B[A, i] κ[i, j] B[B, j] detJ w
        K_e += B @ kappa @ B.T * (jac.det * w_q)

    return K_e


def local_load(coordinates: np.ndarray,
               source: Callable[[float, float], float],
               quadrature: Optional[GaussQuadrature] = None,
               element_id: Optional[int] = None,
               basis: Optional[BilinearBasis] = None) -> np.ndarray:
    """
    Element load vector for a volumetric heat source f(x, y).

    Returns:
        f_e, shape (4,)
    """
    quadrature = quadrature if quadrature is not None else GaussQuadrature((2, 2))
    basis = basis if basis is not None else BilinearBasis()

    f_e = np.zeros(basis.n_basis)

    for (xi1, xi2), w_q in quadrature:
        jac = evaluate_jacobian(coordinates, xi1, xi2, element_id, basis)
        N = basis.eval((xi1, xi2))
        x, y = map_to_physical(coordinates, (xi1, xi2), basis)
        f_e += source(x, y) * N * (jac.det * w_q)

    return f_e


class HeatConductionSolver(Solver):
    """
    Solver for steady heat conduction on bilinear quadrilaterals.

    Example usage:
        mesh = build_structured_mesh((15, 40), (0.0, 0.0), (0.03, 0.08))

        solver = HeatConductionSolver(mesh, conductivity=385.0)
        solver.add_dirichlet_bc(DirichletBC.from_function(
            mesh, "bottom", lambda x, y: 300 * (1 + x / 3)))
        solver.add_dirichlet_bc(DirichletBC.from_function(
            mesh, "top", lambda x, y: 310 * (1 + 8 * x**2)))

        T = solver.run()
    """

    def __init__(self, mesh: Mesh,
                 conductivity: ConductivityLike = 1.0,
                 source: Optional[Callable[[float, float], float]] = None,
                 quadrature: Optional[GaussQuadrature] = None,
                 n_workers: int = 1):
        """
        Initialize heat conduction solver.

        Parameters:
            mesh: Mesh from build_structured_mesh or Mesh.from_arrays
            conductivity: Scalar, 2x2 tensor, or callable element -> 2x2 tensor
            source: Source function f(x, y), defaults to 0
            quadrature: Element quadrature rule (default 2x2 Gauss)
            n_workers: Threads used for element computations
        """
        super().__init__(mesh, quadrature=quadrature, n_workers=n_workers)

        if callable(conductivity):
            self._conductivity_fn = conductivity
            self.conductivity = None
        else:
            self.conductivity = conductivity_tensor(conductivity)
            self._conductivity_fn = None

        self.source = source
        self._basis = BilinearBasis()

    def element_conductivity(self, element: Element) -> np.ndarray:
        """Conductivity tensor of one element."""
        if self._conductivity_fn is not None:
            return conductivity_tensor(self._conductivity_fn(element))
        return self.conductivity

    def compute_element_matrices(self, element: Element,
                                  quadrature: GaussQuadrature) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute element stiffness matrix and load vector.

        Parameters:
            element: Element with cached coordinates
            quadrature: Quadrature rule

        Returns:
            (K_e, f_e)
        """
        coords = element.coordinates
        kappa = self.element_conductivity(element)

        K_e = local_stiffness(coords, kappa, quadrature, element.id, self._basis)

        if self.source is None:
            f_e = np.zeros(self._basis.n_basis)
        else:
            f_e = local_load(coords, self.source, quadrature, element.id, self._basis)

        return K_e, f_e


def solve_heat_conduction(mesh: Mesh,
                          conductivity: ConductivityLike,
                          dirichlet_bcs: Iterable[DirichletBC],
                          source: Optional[Callable[[float, float], float]] = None,
                          quadrature: Optional[GaussQuadrature] = None,
                          bc_method: str = "elimination",
                          n_workers: int = 1) -> SolveResult:
    """
    Assemble, constrain and solve, reporting the outcome as a SolveResult.

    Fatal conditions (degenerate geometry, singular system, invalid
    indices) are returned as tagged results instead of raised.

    Parameters:
        mesh: Mesh
        conductivity: Scalar, 2x2 tensor, or callable element -> 2x2 tensor
        dirichlet_bcs: Dirichlet conditions, later ones win on shared DOFs
        source: Source function f(x, y), defaults to 0
        quadrature: Element quadrature rule
        bc_method: "elimination" or "penalty"
        n_workers: Threads used for element computations

    Returns:
        SolveResult
    """
    solver = HeatConductionSolver(mesh, conductivity=conductivity, source=source,
                                  quadrature=quadrature, n_workers=n_workers)
    for bc in dirichlet_bcs:
        solver.add_dirichlet_bc(bc)

    try:
        u = solver.run(bc_method=bc_method)
    except FEMError as exc:
        log.error("Solve failed: %s", exc)
        return SolveResult.from_error(exc)

    return SolveResult.success(u)
