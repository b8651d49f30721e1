"""
Mesh node abstraction.

A node is a point of the mesh carrying exactly one scalar DOF
(temperature). Nodes are created once by the mesh generator and are
immutable afterwards; everything else refers to them by index.

Key invariant:
    node.id == global DOF index == row of Mesh.coordinates
"""

import numpy as np
from typing import FrozenSet, Iterable, Dict
from dataclasses import dataclass, field

BOUNDARY_SIDES = ("left", "right", "bottom", "top")


@dataclass(frozen=True)
class Node:
    """
    Immutable mesh node.

    Attributes:
        id: Global node index (equal to its DOF index)
        coordinates: Physical coordinates (x, y)
        boundary_tags: Boundary sides the node lies on, as tagged by the
                       mesh generator (subset of BOUNDARY_SIDES)
    """
    id: int
    coordinates: np.ndarray
    boundary_tags: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        """Store coordinates as a read-only float array."""
        coords = np.array(self.coordinates, dtype=np.float64)
        if coords.shape != (2,):
            raise ValueError(
                f"Node {self.id}: expected 2 coordinates, got shape {coords.shape}")
        coords.setflags(write=False)
        object.__setattr__(self, "coordinates", coords)

        unknown = set(self.boundary_tags) - set(BOUNDARY_SIDES)
        if unknown:
            raise ValueError(f"Node {self.id}: unknown boundary tags {sorted(unknown)}")
        object.__setattr__(self, "boundary_tags", frozenset(self.boundary_tags))

    @property
    def x(self) -> float:
        """X coordinate."""
        return float(self.coordinates[0])

    @property
    def y(self) -> float:
        """Y coordinate."""
        return float(self.coordinates[1])

    @property
    def on_boundary(self) -> bool:
        """Whether the generator tagged this node as a boundary node."""
        return bool(self.boundary_tags)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other) -> bool:
        if isinstance(other, Node):
            return self.id == other.id
        return False

    def __repr__(self) -> str:
        tags = ",".join(sorted(self.boundary_tags)) or "-"
        return f"Node(id={self.id}, coord=({self.x}, {self.y}), boundary={tags})"


def create_nodes_from_array(
    coordinates: np.ndarray,
    boundary_tags: Dict[int, Iterable[str]] = None,
) -> Dict[int, Node]:
    """
    Create Node objects from a coordinate array.

    Parameters:
        coordinates: Array of shape (n_nodes, 2)
        boundary_tags: Optional mapping node id -> boundary side names

    Returns:
        Dictionary mapping ID -> Node
    """
    coordinates = np.asarray(coordinates, dtype=np.float64)
    boundary_tags = boundary_tags or {}

    nodes = {}
    for i in range(coordinates.shape[0]):
        nodes[i] = Node(
            id=i,
            coordinates=coordinates[i],
            boundary_tags=frozenset(boundary_tags.get(i, ())),
        )

    return nodes
