"""
Element abstraction for bilinear quadrilateral meshes.

An element is an ordered 4-tuple of global node indices following the
local numbering of the reference square (see basis.REFERENCE_CORNERS):

    node_ids[2] ---- node_ids[3]
        |                |
    node_ids[0] ---- node_ids[1]

i.e. bottom-left, bottom-right, top-left, top-right. The ordering must
be counter-clockwise-consistent with this table, otherwise the Jacobian
determinant turns negative and assembly rejects the element.

Elements are immutable after mesh generation. For scalar problems the
local-to-global DOF map is simply node_ids.
"""

import numpy as np
from typing import Tuple, Optional
from dataclasses import dataclass, field

from .basis import N_NODES_PER_ELEMENT


@dataclass(frozen=True)
class Element:
    """
    Four-node quadrilateral element.

    Attributes:
        id: Unique element identifier
        node_ids: Global node indices in local order (BL, BR, TL, TR)

    Design notes:
        - The order of node_ids matches the rows of the local stiffness matrix
        - For scalar problems: DOF index = node ID
        - Node coordinates are cached by the mesh builder (read-only copy)
    """
    id: int
    node_ids: Tuple[int, ...]
    _coordinates: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        node_ids = tuple(int(n) for n in self.node_ids)
        if len(node_ids) != N_NODES_PER_ELEMENT:
            raise ValueError(
                f"Element {self.id}: expected {N_NODES_PER_ELEMENT} nodes, "
                f"got {len(node_ids)}")
        if len(set(node_ids)) != len(node_ids):
            raise ValueError(f"Element {self.id}: repeated node in {node_ids}")
        object.__setattr__(self, "node_ids", node_ids)

        if self._coordinates is not None:
            coords = np.array(self._coordinates, dtype=np.float64)
            if coords.shape != (N_NODES_PER_ELEMENT, 2):
                raise ValueError(
                    f"Element {self.id}: coordinates must have shape "
                    f"({N_NODES_PER_ELEMENT}, 2), got {coords.shape}")
            coords.setflags(write=False)
            object.__setattr__(self, "_coordinates", coords)

    @property
    def n_nodes(self) -> int:
        """Number of nodes of this element."""
        return len(self.node_ids)

    @property
    def global_dof_indices(self) -> np.ndarray:
        """Global DOF indices (DOF index = node ID for scalar problems)."""
        return np.array(self.node_ids, dtype=int)

    @property
    def coordinates(self) -> Optional[np.ndarray]:
        """Node coordinates in local order, shape (4, 2) (if cached)."""
        return self._coordinates

    def with_coordinates(self, coordinates: np.ndarray) -> 'Element':
        """Return a copy of this element with cached node coordinates."""
        return Element(self.id, self.node_ids, coordinates)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other) -> bool:
        if isinstance(other, Element):
            return self.id == other.id
        return False
