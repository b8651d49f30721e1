"""
Bilinear (Q1) shape functions on the reference square [-1,1]^2.

Each of the four local nodes is associated with one corner of the
reference square. The association is an explicit table, so the element
orientation never depends on implicit array positions:

    local node   corner (s1, s2)      position
    ----------   ---------------      ------------
        0           (-1, -1)          bottom-left
        1           (+1, -1)          bottom-right
        2           (-1, +1)          top-left
        3           (+1, +1)          top-right

    2 ---- 3
    |      |
    0 ---- 1

Shape function of node A:
    N_A(xi1, xi2) = 1/4 (1 + s1_A xi1) (1 + s2_A xi2)

Gradient with respect to the reference coordinates:
    dN_A/dxi1 = 1/4 s1_A (1 + s2_A xi2)
    dN_A/dxi2 = 1/4 s2_A (1 + s1_A xi1)

All functions are pure and safe to call concurrently.
"""

import numpy as np
from typing import Tuple

# Reference-corner sign pairs by local node index
REFERENCE_CORNERS: Tuple[Tuple[int, int], ...] = (
    (-1, -1),
    (1, -1),
    (-1, 1),
    (1, 1),
)

N_NODES_PER_ELEMENT = len(REFERENCE_CORNERS)

_SIGNS = np.array(REFERENCE_CORNERS, dtype=np.float64)


def _corner(node: int) -> Tuple[int, int]:
    if not 0 <= node < N_NODES_PER_ELEMENT:
        raise IndexError(
            f"Local node index {node} out of range [0, {N_NODES_PER_ELEMENT})")
    return REFERENCE_CORNERS[node]


def shape_function(node: int, xi1: float, xi2: float) -> float:
    """
    Value of the bilinear shape function of a local node.

    Parameters:
        node: Local node index (0-3)
        xi1, xi2: Reference coordinates (normally in [-1, 1])

    Returns:
        N_node(xi1, xi2)
    """
    s1, s2 = _corner(node)
    return 0.25 * (1.0 + s1 * xi1) * (1.0 + s2 * xi2)


def shape_gradient(node: int, xi1: float, xi2: float) -> np.ndarray:
    """
    Reference-space gradient of the shape function of a local node.

    Parameters:
        node: Local node index (0-3)
        xi1, xi2: Reference coordinates

    Returns:
        Array (dN/dxi1, dN/dxi2)
    """
    s1, s2 = _corner(node)
    return np.array([
        0.25 * s1 * (1.0 + s2 * xi2),
        0.25 * s2 * (1.0 + s1 * xi1),
    ])


class BilinearBasis:
    """
    The four Q1 shape functions of a quadrilateral element.

    Provides single-function evaluation (value/gradient) and evaluation
    of all four functions at once (eval/eval_ders), the form used by the
    element assembly loop.
    """

    corners = REFERENCE_CORNERS

    @property
    def n_basis(self) -> int:
        """Number of shape functions (4)."""
        return N_NODES_PER_ELEMENT

    def value(self, node: int, xi1: float, xi2: float) -> float:
        """N_node(xi1, xi2)."""
        return shape_function(node, xi1, xi2)

    def gradient(self, node: int, xi1: float, xi2: float) -> np.ndarray:
        """(dN_node/dxi1, dN_node/dxi2)."""
        return shape_gradient(node, xi1, xi2)

    def eval(self, xi: Tuple[float, float]) -> np.ndarray:
        """
        Evaluate all shape functions at a point.

        Parameters:
            xi: Reference coordinates (xi1, xi2)

        Returns:
            Array of shape (4,) with N_0..N_3
        """
        xi1, xi2 = xi
        return 0.25 * (1.0 + _SIGNS[:, 0] * xi1) * (1.0 + _SIGNS[:, 1] * xi2)

    def eval_ders(self, xi: Tuple[float, float]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Evaluate all shape functions and their reference derivatives.

        Parameters:
            xi: Reference coordinates (xi1, xi2)

        Returns:
            Tuple (N, dN_dxi1, dN_dxi2) of arrays with shape (4,)
        """
        xi1, xi2 = xi
        s1 = _SIGNS[:, 0]
        s2 = _SIGNS[:, 1]

        N = 0.25 * (1.0 + s1 * xi1) * (1.0 + s2 * xi2)
        dN_dxi1 = 0.25 * s1 * (1.0 + s2 * xi2)
        dN_dxi2 = 0.25 * s2 * (1.0 + s1 * xi1)

        return N, dN_dxi1, dN_dxi2

    def gradient_matrix(self, xi: Tuple[float, float]) -> np.ndarray:
        """
        Reference gradients of all shape functions as a matrix.

        Returns:
            Array of shape (4, 2): row A holds (dN_A/dxi1, dN_A/dxi2)
        """
        _, dN_dxi1, dN_dxi2 = self.eval_ders(xi)
        return np.column_stack([dN_dxi1, dN_dxi2])
