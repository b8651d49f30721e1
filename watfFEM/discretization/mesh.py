"""
Analysis-ready mesh of bilinear quadrilaterals.

The Mesh class owns the immutable node and element tables consumed by
the solver:
1. Nodes (coordinates + boundary tags), indexed by global DOF number
2. Elements (4 node indices in local order), with cached coordinates
3. Validation of the connectivity against the node table

Boundary conditions are described as Dirichlet maps DOF -> value. They
are produced from boundary tags assigned by the mesh generator, or from
a coordinate predicate evaluated once per node.
"""
from __future__ import annotations

import logging

import numpy as np
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
from dataclasses import dataclass

from .node import Node, BOUNDARY_SIDES, create_nodes_from_array
from .element import Element
from ..errors import MeshIndexError
from ..geometry.primitives import make_rectangle_grid, rectangle_boundary_tags

log = logging.getLogger(__name__)


class Mesh:
    """
    Quadrilateral mesh with one scalar DOF per node.

    Attributes:
        nodes: Dictionary mapping node ID -> Node
        elements: Dictionary mapping element ID -> Element
        n_elements_per_dir: (n_x, n_y) for structured meshes, else None

    Key invariant:
        Node IDs are exactly 0..n_nodes-1 and every element references
        existing nodes only.
    """

    def __init__(self,
                 nodes: Dict[int, Node],
                 elements: Dict[int, Element],
                 n_elements_per_dir: Optional[Tuple[int, int]] = None):
        """
        Initialize mesh with nodes and elements.

        Parameters:
            nodes: Dictionary of nodes by ID
            elements: Dictionary of elements by ID (coordinates are cached here)
            n_elements_per_dir: Grid dimensions for structured meshes

        Raises:
            MeshIndexError: if node IDs are not contiguous or an element
                            references a node outside the table
        """
        if sorted(nodes) != list(range(len(nodes))):
            raise MeshIndexError("Node IDs must be contiguous 0..n_nodes-1")

        self._nodes = nodes
        self._coordinates = np.array([nodes[i].coordinates for i in range(len(nodes))],
                                     dtype=np.float64).reshape(len(nodes), 2)
        self._coordinates.setflags(write=False)
        self._n_elements_per_dir = n_elements_per_dir

        self._elements: Dict[int, Element] = {}
        for eid, elem in elements.items():
            self._check_node_ids(eid, elem.node_ids)
            self._elements[eid] = elem.with_coordinates(self._coordinates[list(elem.node_ids)])

    def _check_node_ids(self, element_id: int, node_ids: Sequence[int]) -> None:
        n_nodes = len(self._nodes)
        for nid in node_ids:
            if not 0 <= nid < n_nodes:
                raise MeshIndexError(
                    f"Element {element_id} references node {nid}, "
                    f"mesh has {n_nodes} nodes")

    @classmethod
    def from_arrays(cls,
                    coordinates: np.ndarray,
                    connectivity: np.ndarray,
                    boundary_tags: Optional[Dict[int, Iterable[str]]] = None,
                    n_elements_per_dir: Optional[Tuple[int, int]] = None) -> 'Mesh':
        """
        Build a mesh from a mesh provider's output.

        Parameters:
            coordinates: Node coordinates, shape (n_nodes, 2)
            connectivity: Element node indices, shape (n_elements, 4), order BL, BR, TL, TR
            boundary_tags: Optional mapping node id -> boundary side names
            n_elements_per_dir: Grid dimensions for structured meshes

        Returns:
            Mesh
        """
        nodes = create_nodes_from_array(coordinates, boundary_tags)
        connectivity = np.asarray(connectivity, dtype=int)
        if connectivity.ndim != 2 or connectivity.shape[1] != 4:
            raise ValueError(
                f"Connectivity must have shape (n_elements, 4), got {connectivity.shape}")

        elements = {e: Element(id=e, node_ids=tuple(connectivity[e]))
                    for e in range(connectivity.shape[0])}

        return cls(nodes, elements, n_elements_per_dir)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> Dict[int, Node]:
        """All nodes."""
        return self._nodes

    @property
    def elements(self) -> Dict[int, Element]:
        """All elements."""
        return self._elements

    @property
    def n_nodes(self) -> int:
        """Number of nodes."""
        return len(self._nodes)

    @property
    def n_elements(self) -> int:
        """Number of elements."""
        return len(self._elements)

    @property
    def n_dof(self) -> int:
        """Number of DOFs (equals number of nodes for scalar problems)."""
        return self.n_nodes

    @property
    def n_elements_per_dir(self) -> Optional[Tuple[int, int]]:
        """Grid dimensions (n_x, n_y) for structured meshes."""
        return self._n_elements_per_dir

    @property
    def coordinates(self) -> np.ndarray:
        """Node coordinate table, shape (n_nodes, 2), read-only."""
        return self._coordinates

    @property
    def connectivity(self) -> np.ndarray:
        """Element node table, shape (n_elements, 4), sorted by element ID."""
        return np.array([self._elements[eid].node_ids for eid in sorted(self._elements)],
                        dtype=int).reshape(-1, 4)

    @property
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """(min corner, max corner) of the node coordinates."""
        return self._coordinates.min(axis=0), self._coordinates.max(axis=0)

    # -------------------------------------------------------------------------
    # Accessors for solver
    # -------------------------------------------------------------------------

    def get_elements(self) -> Iterator[Element]:
        """
        Iterate over elements in ID order.

        This is the primary method for solver assembly.
        """
        for eid in sorted(self._elements):
            yield self._elements[eid]

    def get_elements_list(self) -> List[Element]:
        """List of elements in ID order."""
        return list(self.get_elements())

    def get_element(self, element_id: int) -> Element:
        """Get element by ID."""
        return self._elements[element_id]

    def get_node(self, node_id: int) -> Node:
        """Get node by ID."""
        if not 0 <= node_id < self.n_nodes:
            raise MeshIndexError(f"Node {node_id} out of range [0, {self.n_nodes})")
        return self._nodes[node_id]

    def __repr__(self) -> str:
        return f"Mesh(n_nodes={self.n_nodes}, n_elements={self.n_elements})"


def build_structured_mesh(n_elements: Sequence[int],
                          domain_min: Sequence[float] = (0.0, 0.0),
                          domain_max: Sequence[float] = (1.0, 1.0)) -> Mesh:
    """
    Build a tagged structured mesh of a rectangle.

    Parameters:
        n_elements: (n_x, n_y) element counts
        domain_min: Lower-left corner
        domain_max: Upper-right corner

    Returns:
        Mesh whose boundary nodes carry side tags
    """
    coordinates, connectivity = make_rectangle_grid(n_elements, domain_min, domain_max)
    tags = rectangle_boundary_tags(n_elements)

    mesh = Mesh.from_arrays(coordinates, connectivity, tags,
                            n_elements_per_dir=(int(n_elements[0]), int(n_elements[1])))
    log.info("Structured mesh: %d x %d elements, %d nodes",
             n_elements[0], n_elements[1], mesh.n_nodes)
    return mesh


def get_boundary_nodes(mesh: Mesh,
                       boundary: str,
                       tol: Optional[float] = None) -> np.ndarray:
    """
    Get global node (DOF) indices on one side of the domain.

    By default the mesh generator's tags are used. With ``tol`` given,
    nodes are instead selected by comparing their coordinate against the
    domain extent: ``tol=0.0`` is an exact floating point comparison,
    which is only safe when the generator writes the extents exactly.

    Parameters:
        mesh: Mesh
        boundary: One of "left", "right", "bottom", "top"
        tol: None to use tags, else absolute coordinate tolerance

    Returns:
        Sorted array of node indices on the boundary
    """
    if boundary not in BOUNDARY_SIDES:
        raise ValueError(f"Unknown boundary: {boundary}. "
                         f"Use 'left', 'right', 'bottom', or 'top'.")

    if tol is None:
        return np.array(sorted(nid for nid, node in mesh.nodes.items()
                               if boundary in node.boundary_tags), dtype=int)

    lo, hi = mesh.bounds
    coords = mesh.coordinates
    if boundary == "left":
        mask = np.abs(coords[:, 0] - lo[0]) <= tol
    elif boundary == "right":
        mask = np.abs(coords[:, 0] - hi[0]) <= tol
    elif boundary == "bottom":
        mask = np.abs(coords[:, 1] - lo[1]) <= tol
    else:
        mask = np.abs(coords[:, 1] - hi[1]) <= tol

    return np.flatnonzero(mask)


def get_all_boundary_nodes(mesh: Mesh, tol: Optional[float] = None) -> np.ndarray:
    """
    Get all node indices on the boundary (union of all four sides).
    """
    return np.unique(np.concatenate(
        [get_boundary_nodes(mesh, side, tol) for side in BOUNDARY_SIDES]))


def get_interior_nodes(mesh: Mesh, tol: Optional[float] = None) -> np.ndarray:
    """
    Get all node indices not on any boundary.
    """
    return np.setdiff1d(np.arange(mesh.n_nodes), get_all_boundary_nodes(mesh, tol))


class BoundaryCondition:
    """Base class for boundary conditions."""
    pass


@dataclass
class DirichletBC(BoundaryCondition):
    """
    Dirichlet boundary condition: T = g on a set of DOFs.

    Attributes:
        dof_indices: Global DOF indices where BC is applied
        values: Prescribed values at those DOFs
    """
    dof_indices: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        self.dof_indices = np.asarray(self.dof_indices, dtype=int).ravel()
        self.values = np.asarray(self.values, dtype=np.float64).ravel()
        if self.dof_indices.shape != self.values.shape:
            raise ValueError(
                f"DirichletBC: {len(self.dof_indices)} DOFs but {len(self.values)} values")

    @classmethod
    def homogeneous(cls, dof_indices: np.ndarray) -> 'DirichletBC':
        """Create homogeneous Dirichlet BC (T = 0)."""
        return cls(dof_indices, np.zeros(len(dof_indices)))

    @classmethod
    def constant(cls, dof_indices: np.ndarray, value: float) -> 'DirichletBC':
        """Create Dirichlet BC with one value on all DOFs."""
        return cls(dof_indices, np.full(len(dof_indices), float(value)))

    @classmethod
    def from_function(cls, mesh: Mesh,
                      boundary: str,
                      func: Callable[[float, float], float],
                      tol: Optional[float] = None) -> 'DirichletBC':
        """
        Create Dirichlet BC from a function of the node coordinates.

        Parameters:
            mesh: Mesh
            boundary: Boundary identifier
            func: Function f(x, y) -> value
            tol: Boundary detection tolerance (None = generator tags)

        Returns:
            DirichletBC with values evaluated at the boundary nodes
        """
        dof_indices = get_boundary_nodes(mesh, boundary, tol)
        coords = mesh.coordinates[dof_indices]
        values = np.array([func(x, y) for x, y in coords], dtype=np.float64)
        return cls(dof_indices, values)

    @classmethod
    def from_map(cls, boundary_values: Dict[int, float]) -> 'DirichletBC':
        """Create Dirichlet BC from a DOF -> value mapping."""
        dofs = sorted(boundary_values)
        return cls(np.array(dofs, dtype=int),
                   np.array([boundary_values[d] for d in dofs], dtype=np.float64))

    @classmethod
    def from_predicate(cls, mesh: Mesh,
                       func: Callable[[float, float], Optional[float]]) -> 'DirichletBC':
        """
        Create Dirichlet BC from an optional-valued function of (x, y).

        See dirichlet_map_from_predicate(); nodes mapped to None stay free.
        """
        return cls.from_map(dirichlet_map_from_predicate(mesh, func))


def dirichlet_map_from_predicate(mesh: Mesh,
                                 func: Callable[[float, float], Optional[float]]) -> Dict[int, float]:
    """
    Evaluate an optional-valued function once per node.

    Nodes for which ``func(x, y)`` returns None are left free.

    Parameters:
        mesh: Mesh
        func: Function (x, y) -> prescribed value or None

    Returns:
        Boundary value map DOF -> value
    """
    boundary_values = {}
    for nid in range(mesh.n_nodes):
        x, y = mesh.coordinates[nid]
        value = func(x, y)
        if value is not None:
            boundary_values[nid] = float(value)
    return boundary_values


def merge_dirichlet_bcs(bcs: Iterable[DirichletBC], n_dof: int) -> Dict[int, float]:
    """
    Combine Dirichlet conditions into a single boundary value map.

    Conditions are applied in order; a later condition overrides an
    earlier one on a shared DOF (e.g. a corner node shared by two sides).

    Parameters:
        bcs: Dirichlet conditions
        n_dof: Number of DOFs of the system

    Returns:
        Boundary value map DOF -> value

    Raises:
        MeshIndexError: if a DOF lies outside [0, n_dof)
    """
    boundary_values: Dict[int, float] = {}
    for bc in bcs:
        for dof, value in zip(bc.dof_indices, bc.values):
            dof = int(dof)
            if not 0 <= dof < n_dof:
                raise MeshIndexError(
                    f"Dirichlet DOF {dof} out of range [0, {n_dof})")
            previous = boundary_values.get(dof)
            if previous is not None and previous != value:
                log.debug("DOF %d prescribed twice (%g, then %g); keeping the later value",
                          dof, previous, value)
            boundary_values[dof] = float(value)
    return boundary_values
