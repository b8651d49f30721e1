"""
Post-processing: result export (VTK, XDMF) and error norms.
"""

from .vtk import export_vtk_unstructured_2d
from .export import export_solution_data, load_solution_data
from .xmf2 import generate_xmf
from .norms import nodal_max_error, compute_l2_error, convergence_rates
