"""
Discretization module.

Provides:
- BilinearBasis: Q1 shape functions on the reference square
- Node: Immutable mesh node
- Element: Four-node quadrilateral element
- Mesh: Analysis-ready mesh
- DirichletBC: Prescribed nodal values
"""

from .basis import BilinearBasis, REFERENCE_CORNERS, shape_function, shape_gradient
from .node import Node, create_nodes_from_array
from .element import Element

# Import mesh components separately to avoid circular imports
# Users should import these directly: from watfFEM.discretization.mesh import ...
