"""
VTK export for visualization.

This module exports nodal solutions to VTK legacy format (.vtk, ASCII)
as an unstructured grid of VTK_QUAD cells, for ParaView, VisIt, or
other VTK-compatible viewers.

VTK orders quad vertices counter-clockwise (BL, BR, TR, TL), while
elements are stored in reference order (BL, BR, TL, TR); the last two
vertices are swapped on output.
"""

import logging

import numpy as np
from typing import Optional, Dict
from pathlib import Path

from ..discretization.mesh import Mesh

log = logging.getLogger(__name__)

VTK_QUAD = 9

# Element local order -> VTK vertex order
_VTK_QUAD_ORDER = (0, 1, 3, 2)


def export_vtk_unstructured_2d(filename: str,
                               mesh: Mesh,
                               u: np.ndarray,
                               field_name: str = "D",
                               additional_fields: Optional[Dict[str, np.ndarray]] = None,
                               cell_fields: Optional[Dict[str, np.ndarray]] = None) -> Path:
    """
    Export a nodal solution on a quadrilateral mesh to VTK.

    Parameters:
        filename: Output filename (will add .vtk extension if missing)
        mesh: Mesh
        u: Solution vector (one value per node)
        field_name: Name for the solution field in VTK
        additional_fields: Optional dict of additional nodal scalar fields
        cell_fields: Optional dict of per-element scalar fields

    Returns:
        Path of the written file
    """
    path = Path(filename)
    if path.suffix != '.vtk':
        path = path.with_suffix('.vtk')
    path.parent.mkdir(parents=True, exist_ok=True)

    u = np.asarray(u)
    if u.shape != (mesh.n_nodes,):
        raise ValueError(f"Expected {mesh.n_nodes} nodal values, got shape {u.shape}")

    coords = mesh.coordinates
    connectivity = mesh.connectivity
    n_points = mesh.n_nodes
    n_cells = connectivity.shape[0]

    with open(path, 'w') as f:
        # Header
        f.write("# vtk DataFile Version 3.0\n")
        f.write("FEM Solution\n")
        f.write("ASCII\n")
        f.write("DATASET UNSTRUCTURED_GRID\n")

        # Points (z = 0)
        f.write(f"POINTS {n_points} double\n")
        for x, y in coords:
            f.write(f"{float(x)!r} {float(y)!r} 0.0\n")

        # Cells
        f.write(f"\nCELLS {n_cells} {n_cells * 5}\n")
        for cell in connectivity:
            ordered = " ".join(str(cell[k]) for k in _VTK_QUAD_ORDER)
            f.write(f"4 {ordered}\n")

        f.write(f"\nCELL_TYPES {n_cells}\n")
        for _ in range(n_cells):
            f.write(f"{VTK_QUAD}\n")

        if cell_fields:
            f.write(f"\nCELL_DATA {n_cells}\n")
            for name, values in cell_fields.items():
                f.write(f"SCALARS {name} double 1\n")
                f.write("LOOKUP_TABLE default\n")
                for value in values:
                    f.write(f"{float(value)!r}\n")

        # Point data
        f.write(f"\nPOINT_DATA {n_points}\n")
        f.write(f"SCALARS {field_name} double 1\n")
        f.write("LOOKUP_TABLE default\n")
        for value in u:
            f.write(f"{float(value)!r}\n")

        if additional_fields:
            for name, values in additional_fields.items():
                f.write(f"\nSCALARS {name} double 1\n")
                f.write("LOOKUP_TABLE default\n")
                for value in values:
                    f.write(f"{float(value)!r}\n")

    log.info("Exported VTK file: %s", path)
    return path
