"""
Base solver class for bilinear quadrilateral FEM.

This module defines the abstract interface for scalar FEM solvers and
implements the problem-independent phases:

    assemble()                   element loop + additive scatter into K, F
    apply_boundary_conditions()  Dirichlet enforcement (exactly once)
    solve()                      direct sparse LU solve of K D = F

The assembly loop is:
    for element in mesh.elements:
        # 1. Compute element matrices (subclass: compute_element_matrices)
        # 2. Append them to a shard as COO triplets + a local load vector
    # 3. Merge shards by summation and convert to CSR

Shards are independent, so they may be computed concurrently; merging
is the only step that combines them and it runs after all of them are
finished. K, F and u are only published once their phase completes.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from abc import ABC, abstractmethod

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import connected_components
from scipy.sparse.linalg import splu

from ..discretization.element import Element
from ..discretization.mesh import Mesh, DirichletBC, merge_dirichlet_bcs
from ..errors import MeshIndexError, SingularSystemError
from ..quadrature.gauss import GaussQuadrature

log = logging.getLogger(__name__)

BC_METHODS = ("elimination", "penalty")


@dataclass
class AssemblyShard:
    """
    Partial global system computed from a subset of elements.

    Attributes:
        rows, cols, values: COO triplets of stiffness contributions
        load: Dense load vector contribution, shape (n_dof,)
    """
    rows: np.ndarray
    cols: np.ndarray
    values: np.ndarray
    load: np.ndarray

    @classmethod
    def empty(cls, n_dof: int) -> 'AssemblyShard':
        return cls(np.zeros(0, dtype=int), np.zeros(0, dtype=int),
                   np.zeros(0), np.zeros(n_dof))

    @classmethod
    def merge(cls, shards: Sequence['AssemblyShard'], n_dof: int) -> 'AssemblyShard':
        """Sum shards. Triplets are concatenated; duplicates add up in to_csr()."""
        if not shards:
            return cls.empty(n_dof)
        load = np.zeros(n_dof)
        for shard in shards:
            load += shard.load
        return cls(np.concatenate([s.rows for s in shards]),
                   np.concatenate([s.cols for s in shards]),
                   np.concatenate([s.values for s in shards]),
                   load)

    def to_csr(self, n_dof: int) -> sparse.csr_matrix:
        """Global matrix of this shard (duplicate entries are summed)."""
        return sparse.csr_matrix(
            (self.values, (self.rows, self.cols)),
            shape=(n_dof, n_dof)
        )


class Solver(ABC):
    """
    Abstract base class for scalar FEM solvers.

    Subclasses implement specific PDEs by overriding:
    - compute_element_matrices: Builds element stiffness and load
    """

    def __init__(self, mesh: Mesh,
                 quadrature: Optional[GaussQuadrature] = None,
                 n_workers: int = 1):
        """
        Initialize solver with mesh.

        Parameters:
            mesh: Mesh containing nodes and elements
            quadrature: Element quadrature rule (default 2x2 Gauss)
            n_workers: Threads used to compute element shards (1 = serial)
        """
        if n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")

        self.mesh = mesh
        self.n_dof = mesh.n_dof
        self.quadrature = quadrature if quadrature is not None else GaussQuadrature((2, 2))
        self.n_workers = n_workers

        # Storage for assembled system
        self.K = None  # Global stiffness matrix
        self.f = None  # Global load vector
        self.u = None  # Solution vector

        # Assembled K before enforcement, for coupling diagnostics
        self._K_assembled = None
        self._applied_boundary_values: Optional[Dict[int, float]] = None
        self._factorization = None

        # Boundary conditions
        self._dirichlet_bcs: List[DirichletBC] = []

    def add_dirichlet_bc(self, bc: DirichletBC):
        """Add a Dirichlet boundary condition."""
        if self._applied_boundary_values is not None:
            raise RuntimeError("Boundary conditions already applied; "
                               "call assemble() again before adding more.")
        self._dirichlet_bcs.append(bc)

    @property
    def boundary_values(self) -> Dict[int, float]:
        """Boundary value map DOF -> value from all registered conditions."""
        return merge_dirichlet_bcs(self._dirichlet_bcs, self.n_dof)

    @abstractmethod
    def compute_element_matrices(self, element: Element,
                                  quadrature: GaussQuadrature) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute element stiffness matrix and load vector.

        Parameters:
            element: Element with cached coordinates
            quadrature: Quadrature rule for integration

        Returns:
            (K_e, f_e) where:
            - K_e: Element stiffness matrix, shape (4, 4)
            - f_e: Element load vector, shape (4,)
        """
        pass

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    def _global_dofs(self, element: Element) -> np.ndarray:
        global_dofs = element.global_dof_indices
        if np.any(global_dofs < 0) or np.any(global_dofs >= self.n_dof):
            raise MeshIndexError(
                f"Element {element.id} maps to DOFs {global_dofs.tolist()}, "
                f"system has {self.n_dof}")
        return global_dofs

    def compute_shard(self, elements: Iterable[Element]) -> AssemblyShard:
        """
        Compute the contributions of a subset of elements.

        Reads only immutable mesh data; writes only to the returned shard.
        """
        rows = []
        cols = []
        values = []
        load = np.zeros(self.n_dof)

        for element in elements:
            K_e, f_e = self.compute_element_matrices(element, self.quadrature)
            global_dofs = self._global_dofs(element)

            n_local = len(global_dofs)
            rows.append(np.repeat(global_dofs, n_local))
            cols.append(np.tile(global_dofs, n_local))
            values.append(np.asarray(K_e).ravel())
            np.add.at(load, global_dofs, f_e)

        if not rows:
            return AssemblyShard.empty(self.n_dof)

        return AssemblyShard(np.concatenate(rows), np.concatenate(cols),
                             np.concatenate(values), load)

    def assemble(self, n_workers: Optional[int] = None):
        """
        Assemble the global stiffness matrix and load vector.

        Parameters:
            n_workers: Overrides the worker count given at construction
        """
        n_workers = self.n_workers if n_workers is None else n_workers
        elements = self.mesh.get_elements_list()

        if n_workers > 1 and len(elements) > 1:
            size = -(-len(elements) // n_workers)
            chunks = [elements[i:i + size] for i in range(0, len(elements), size)]
            with ThreadPoolExecutor(max_workers=n_workers) as pool:
                shards = list(pool.map(self.compute_shard, chunks))
        else:
            shards = [self.compute_shard(elements)]

        merged = AssemblyShard.merge(shards, self.n_dof)

        K = merged.to_csr(self.n_dof)
        K.sum_duplicates()

        self.K = K
        self.f = merged.load
        self.u = None
        self._K_assembled = K
        self._applied_boundary_values = None
        self._factorization = None

        log.info("Assembled %d elements: %d DOFs, nnz(K) = %d",
                 len(elements), self.n_dof, self.K.nnz)

    # -------------------------------------------------------------------------
    # Boundary conditions
    # -------------------------------------------------------------------------

    def apply_boundary_conditions(self, method: str = "elimination"):
        """
        Apply Dirichlet boundary conditions.

        Must be called after assemble() and only once per assembly.

        Parameters:
            method: "elimination" for symmetric row/column elimination (recommended)
                   "penalty" for large penalty method
        """
        if self.K is None or self.f is None:
            raise RuntimeError("System not assembled. Call assemble() first.")
        if self._applied_boundary_values is not None:
            raise RuntimeError("Boundary conditions already applied to this system.")

        boundary_values = self.boundary_values

        if method == "elimination":
            self._apply_bc_elimination(boundary_values)
        elif method == "penalty":
            self._apply_bc_penalty(boundary_values)
        else:
            raise ValueError(f"Unknown BC method: {method}")

        self._applied_boundary_values = boundary_values
        log.info("Applied %d Dirichlet constraints (%s), %d free DOFs",
                 len(boundary_values), method, self.n_dof - len(boundary_values))

    def _apply_bc_elimination(self, boundary_values: Dict[int, float]):
        """
        Apply Dirichlet BCs by symmetric elimination.

        For each constrained DOF k with value v:
            F[i] -= K[i, k] * v     for every row i
            K[k, :] = K[:, k] = 0
            K[k, k] = d,  F[k] = d * v

        d is the assembled diagonal entry, or 1
        if that entry is not positive. The result stays symmetric.
        """
        if not boundary_values:
            return

        dofs = np.array(sorted(boundary_values), dtype=int)
        prescribed = np.array([boundary_values[d] for d in dofs])

        g = np.zeros(self.n_dof)
        g[dofs] = prescribed

        # Move the known columns to the right-hand side
        f = self.f - self.K @ g

        diagonal = self.K.diagonal()[dofs]
        scale = np.where(diagonal > 0.0, diagonal, 1.0)

        free = np.ones(self.n_dof)
        free[dofs] = 0.0
        P = sparse.diags(free)

        d = np.zeros(self.n_dof)
        d[dofs] = scale

        K = (P @ self.K @ P + sparse.diags(d)).tocsr()
        K.eliminate_zeros()

        f[dofs] = scale * prescribed

        self.K = K
        self.f = f

    def _apply_bc_penalty(self, boundary_values: Dict[int, float], penalty: float = 1e10):
        """Apply Dirichlet BCs using penalty method."""
        K_lil = self.K.tolil()
        f = self.f.copy()

        for dof, value in boundary_values.items():
            K_lil[dof, dof] += penalty
            f[dof] += penalty * value

        self.K = K_lil.tocsr()
        self.f = f

    # -------------------------------------------------------------------------
    # Solve
    # -------------------------------------------------------------------------

    def find_floating_dofs(self) -> np.ndarray:
        """
        DOFs in coupling components that contain no Dirichlet constraint.

        Each connected component of the assembled DOF graph needs at least
        one constrained DOF, otherwise K restricted to it is singular
        (the temperature is only defined up to a constant there).
        """
        if self._K_assembled is None:
            raise RuntimeError("System not assembled. Call assemble() first.")

        constrained = np.zeros(self.n_dof, dtype=bool)
        if self._applied_boundary_values:
            constrained[list(self._applied_boundary_values)] = True

        n_components, labels = connected_components(self._K_assembled, directed=False)

        anchored = np.zeros(n_components, dtype=bool)
        anchored[np.unique(labels[constrained])] = True

        return np.flatnonzero(~anchored[labels])

    def solve(self) -> np.ndarray:
        """
        Solve the linear system by sparse LU factorization.

        Returns:
            Solution vector u

        Raises:
            SingularSystemError: if a DOF component is unconstrained or
                                 the factorization fails
        """
        if self.K is None or self.f is None:
            raise RuntimeError("System not assembled. Call assemble() first.")

        floating = self.find_floating_dofs()
        if len(floating) > 0:
            shown = ", ".join(str(d) for d in floating[:10])
            more = " ..." if len(floating) > 10 else ""
            raise SingularSystemError(
                f"{len(floating)} DOFs have no Dirichlet constraint in their "
                f"coupling component: {shown}{more}",
                floating_dofs=floating
            )

        try:
            self._factorization = splu(self.K.tocsc())
        except RuntimeError as exc:
            raise SingularSystemError(f"Factorization failed: {exc}") from exc

        u = self._factorization.solve(self.f)
        if not np.all(np.isfinite(u)):
            raise SingularSystemError("Factorization produced non-finite values")

        self.u = u
        log.info("Solved: min(u) = %.6g, max(u) = %.6g", u.min(), u.max())
        return self.u

    def run(self, bc_method: str = "elimination") -> np.ndarray:
        """
        Convenience method to assemble, apply BCs, and solve.

        Parameters:
            bc_method: Method for applying Dirichlet BCs

        Returns:
            Solution vector
        """
        self.assemble()
        self.apply_boundary_conditions(bc_method)
        return self.solve()
