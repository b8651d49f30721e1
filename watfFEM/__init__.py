"""
watfFEM - Bilinear Finite Element Heat Conduction

Steady anisotropic heat conduction on 2D quadrilateral meshes with
bilinear (Q1) elements, 2x2 Gauss quadrature, sparse assembly and
direct solution.

Key modules:
- discretization: Nodes, elements, meshes, Q1 basis, Dirichlet BCs
- geometry: Structured grids and the isoparametric mapping
- quadrature: Gauss-Legendre integration
- solver: Assembly, boundary enforcement and linear solve
- postprocess: VTK/XDMF export and error norms
- io: YAML problem configuration

Quick start:
    from watfFEM.discretization.mesh import build_structured_mesh, DirichletBC
    from watfFEM.solver.heat import HeatConductionSolver

    mesh = build_structured_mesh((15, 40), (0.0, 0.0), (0.03, 0.08))

    solver = HeatConductionSolver(mesh, conductivity=[[385.0, 0.0], [0.0, 385.0]])
    solver.add_dirichlet_bc(DirichletBC.from_function(
        mesh, "bottom", lambda x, y: 300 * (1 + x / 3)))
    solver.add_dirichlet_bc(DirichletBC.from_function(
        mesh, "top", lambda x, y: 310 * (1 + 8 * x**2)))
    T = solver.run()

Command line:
    python -m watfFEM --config conf/default.yaml
"""

__version__ = "0.1.0"
__author__ = "Wataru Fukuda"

# Core imports for convenience
from .errors import FEMError, DegenerateElementError, SingularSystemError, MeshIndexError
from .discretization.mesh import Mesh, build_structured_mesh, get_boundary_nodes, DirichletBC
from .solver.heat import HeatConductionSolver, solve_heat_conduction
from .solver.result import SolveResult, SolveStatus
from .postprocess.vtk import export_vtk_unstructured_2d
