"""
Geometry module: rectangle mesh generators and the isoparametric map.
"""

from .primitives import (
    make_rectangle_grid,
    rectangle_boundary_tags,
    perturb_interior_nodes,
)
from .mapping import (
    JacobianEvaluation,
    jacobian_matrix,
    evaluate_jacobian,
    physical_gradients,
    map_to_physical,
    element_area,
)
