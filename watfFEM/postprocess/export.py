"""
Export mesh and solution data to binary files for XDMF visualization.

The binary files are read by the XMF2 descriptor written by
generate_xmf() (see xmf2.py), which ParaView opens directly.

Every array is a raw big-endian dump without a file extension (float64
values, int32 connectivity), sized by metadata.json:
    RESULT/
        xyz            # Node coordinates (nn x 3, float64, big-endian), z = 0
        ien            # Element connectivity (ne x 4, int32, big-endian), XDMF order
        <field>        # One file per nodal field, e.g. D (nn, float64, big-endian)
        metadata.json  # Sizes and field names
    result.xmf2        # XMF2 file (outside RESULT folder)
"""

from __future__ import annotations

import json
import logging

import numpy as np
from pathlib import Path
from typing import Dict, Any, Optional

from ..discretization.mesh import Mesh

log = logging.getLogger(__name__)

# Element local order (BL, BR, TL, TR) -> counter-clockwise quad order
_QUAD_ORDER = [0, 1, 3, 2]


def export_solution_data(
    mesh: Mesh,
    output_dir: str | Path,
    fields: Optional[Dict[str, np.ndarray]] = None,
) -> Dict[str, Any]:
    """
    Export mesh and nodal fields to binary files.

    Parameters:
        mesh: Mesh to export
        output_dir: Output directory (e.g., "RESULT")
        fields: Nodal fields by name, each of shape (n_nodes,)

    Returns:
        Metadata dictionary
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    fields = fields or {}

    coords = mesh.coordinates
    nn = coords.shape[0]

    # XYZ geometry needs a z column
    xyz = np.column_stack([coords, np.zeros(nn)])
    xyz.astype(">f8").tofile(output_dir / "xyz")

    connectivity = mesh.connectivity[:, _QUAD_ORDER]
    ne, nen = connectivity.shape
    connectivity.astype('>i4').tofile(output_dir / "ien")

    for name, values in fields.items():
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (nn,):
            raise ValueError(f"Field '{name}' has shape {values.shape}, expected ({nn},)")
        values.astype('>f8').tofile(output_dir / name)

    metadata = {
        "nn": int(nn),
        "ne": int(ne),
        "nen": int(nen),
        "nsd": 2,
        "fields": sorted(fields),
    }

    (output_dir / "metadata.json").write_text(json.dumps(metadata, indent=2))

    log.info("Exported %d nodes, %d elements, fields %s to %s",
             nn, ne, metadata["fields"], output_dir)
    return metadata


def load_solution_data(output_dir: str | Path) -> Dict[str, Any]:
    """
    Read back data written by export_solution_data.

    Returns:
        Dictionary with "coordinates" (nn x 2), "connectivity" (ne x 4,
        element local order), "fields" (name -> array) and "metadata"
    """
    output_dir = Path(output_dir)
    metadata = json.loads((output_dir / "metadata.json").read_text())

    nn, ne, nen = metadata["nn"], metadata["ne"], metadata["nen"]

    xyz = np.fromfile(output_dir / "xyz", dtype='>f8').reshape(nn, 3)
    ien = np.fromfile(output_dir / "ien", dtype='>i4').reshape(ne, nen)

    # Undo the counter-clockwise reordering (the permutation is its own inverse)
    connectivity = ien[:, _QUAD_ORDER].astype(int)

    fields = {name: np.fromfile(output_dir / name, dtype='>f8').astype(np.float64)
              for name in metadata["fields"]}

    return {
        "coordinates": xyz[:, :2].astype(np.float64),
        "connectivity": connectivity,
        "fields": fields,
        "metadata": metadata,
    }
