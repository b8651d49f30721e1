"""
Mesh generators for rectangular domains.

These are the mesh providers consumed by the core: they produce a node
coordinate table and a per-element node-index table, nothing more.

Node numbering is lexicographic with x running fastest:

    node(i, j) = j * (n_x + 1) + i,    i = 0..n_x, j = 0..n_y

Element (i, j) has local nodes (BL, BR, TL, TR):

    (node(i, j), node(i+1, j), node(i, j+1), node(i+1, j+1))

The generator also reports which nodes lie on which side of the
rectangle, derived from the grid indices rather than from floating point
coordinates. Boundary coordinates are written exactly equal to the
domain extents, so exact comparisons against the extents also work.
"""

import numpy as np
from typing import Dict, Optional, Sequence, Set, Tuple


def _check_extents(n_elements: Sequence[int],
                   domain_min: Sequence[float],
                   domain_max: Sequence[float]) -> Tuple[int, int]:
    if len(n_elements) != 2 or len(domain_min) != 2 or len(domain_max) != 2:
        raise ValueError("Expected 2D element counts and domain extents")
    n_x, n_y = int(n_elements[0]), int(n_elements[1])
    if n_x < 1 or n_y < 1:
        raise ValueError(f"Need at least one element per direction, got {n_x} x {n_y}")
    for d in range(2):
        if not domain_max[d] > domain_min[d]:
            raise ValueError(
                f"Empty domain in direction {d}: [{domain_min[d]}, {domain_max[d]}]")
    return n_x, n_y


def make_rectangle_grid(n_elements: Sequence[int],
                        domain_min: Sequence[float] = (0.0, 0.0),
                        domain_max: Sequence[float] = (1.0, 1.0)
                        ) -> Tuple[np.ndarray, np.ndarray]:
    """
    Subdivide a rectangle into n_x x n_y equal quadrilaterals.

    Parameters:
        n_elements: (n_x, n_y) element counts
        domain_min: Lower-left corner (x_min, y_min)
        domain_max: Upper-right corner (x_max, y_max)

    Returns:
        (coordinates, connectivity) where:
        - coordinates: Array of shape ((n_x+1)*(n_y+1), 2)
        - connectivity: Int array of shape (n_x*n_y, 4), local order BL, BR, TL, TR
    """
    n_x, n_y = _check_extents(n_elements, domain_min, domain_max)

    # linspace reproduces both endpoints exactly
    x_vals = np.linspace(domain_min[0], domain_max[0], n_x + 1)
    y_vals = np.linspace(domain_min[1], domain_max[1], n_y + 1)

    X, Y = np.meshgrid(x_vals, y_vals)  # shape (n_y+1, n_x+1), x fastest when raveled
    coordinates = np.column_stack([X.ravel(), Y.ravel()])

    n_nodes_x = n_x + 1
    connectivity = np.zeros((n_x * n_y, 4), dtype=int)

    e = 0
    for j in range(n_y):
        for i in range(n_x):
            bl = j * n_nodes_x + i
            connectivity[e] = (bl, bl + 1, bl + n_nodes_x, bl + n_nodes_x + 1)
            e += 1

    return coordinates, connectivity


def rectangle_boundary_tags(n_elements: Sequence[int]) -> Dict[int, Set[str]]:
    """
    Boundary sides of every boundary node of a make_rectangle_grid mesh.

    Parameters:
        n_elements: (n_x, n_y) element counts

    Returns:
        Dictionary node id -> set of sides ("left", "right", "bottom", "top").
        Corner nodes belong to two sides. Interior nodes are absent.
    """
    n_x, n_y = int(n_elements[0]), int(n_elements[1])
    n_nodes_x = n_x + 1

    tags: Dict[int, Set[str]] = {}
    for j in range(n_y + 1):
        for i in range(n_x + 1):
            sides = set()
            if i == 0:
                sides.add("left")
            if i == n_x:
                sides.add("right")
            if j == 0:
                sides.add("bottom")
            if j == n_y:
                sides.add("top")
            if sides:
                tags[j * n_nodes_x + i] = sides

    return tags


def perturb_interior_nodes(coordinates: np.ndarray,
                           boundary_nodes: Sequence[int],
                           amplitude: float,
                           seed: Optional[int] = None) -> np.ndarray:
    """
    Randomly displace interior nodes to obtain general quadrilaterals.

    Each interior node moves by a uniform random offset in
    [-amplitude, amplitude] per coordinate. Boundary nodes stay fixed.
    With amplitude below a quarter of the smallest element size every
    element of a rectangle grid stays convex.

    Parameters:
        coordinates: Node coordinates, shape (n_nodes, 2)
        boundary_nodes: Indices of nodes that must not move
        amplitude: Maximum displacement per coordinate
        seed: Seed for numpy's random generator

    Returns:
        New coordinate array
    """
    rng = np.random.default_rng(seed)
    perturbed = np.array(coordinates, dtype=np.float64, copy=True)

    interior = np.setdiff1d(np.arange(perturbed.shape[0]), np.asarray(boundary_nodes, dtype=int))
    perturbed[interior] += rng.uniform(-amplitude, amplitude, size=(len(interior), 2))

    return perturbed
