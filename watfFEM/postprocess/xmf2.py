"""
XDMF2 descriptor for the binary result folder.

The .xmf2 file only holds the layout of the mesh and field arrays; the
values stay in the big-endian files written by export_solution_data().
ParaView reads the pair directly.

Usage:
    from watfFEM.postprocess.export import export_solution_data
    from watfFEM.postprocess.xmf2 import generate_xmf

    export_solution_data(mesh, "RESULT", fields={"D": T})
    generate_xmf("RESULT")   # writes result.xmf2 next to RESULT/
"""

import json
import logging
from pathlib import Path
from typing import Optional, Sequence
from xml.etree.ElementTree import Element, SubElement, tostring
from xml.dom import minidom

log = logging.getLogger(__name__)

XYZ_XPATH = '/Xdmf/Domain/Grid/DataItem[@Name="xyz"]'


def _binary_item(parent: Element, name: str, shape: Sequence[int], source: str,
                 precision: int = 8, integer: bool = False) -> Element:
    attrib = {
        "Name": name,
        "Dimensions": " ".join(str(n) for n in shape),
        "Format": "Binary",
        "Endian": "Big",
        "Precision": str(precision),
    }
    if integer:
        attrib["NumberType"] = "Int"
    node = SubElement(parent, "DataItem", attrib)
    node.text = source
    return node


def build_solution_xmf(metadata: dict, mesh_name: str, grid_name: str) -> Element:
    """
    Build the Xdmf tree for a quadrilateral mesh carrying nodal scalars.

    Layout of the grid:
        Topology (Quadrilateral) -> <mesh_name>/ien
        DataItem "xyz"           -> <mesh_name>/xyz, shared by Geometry
        Attribute per field      -> <mesh_name>/<field>
    """
    n_nodes, n_elems, nodes_per_elem = metadata["nn"], metadata["ne"], metadata["nen"]

    root = Element("Xdmf", {"Version": "2.0"})
    grid = SubElement(SubElement(root, "Domain"), "Grid",
                      {"Name": grid_name, "GridType": "Uniform"})

    topo = SubElement(grid, "Topology", {"TopologyType": "Quadrilateral",
                                         "NumberOfElements": str(n_elems)})
    _binary_item(topo, "ien", (n_elems, nodes_per_elem), f"{mesh_name}/ien",
                 precision=4, integer=True)

    # z column is zero, see export_solution_data
    _binary_item(grid, "xyz", (n_nodes, 3), f"{mesh_name}/xyz")
    geom = SubElement(grid, "Geometry", {"GeometryType": "XYZ"})
    SubElement(geom, "DataItem", {"Reference": "XML"}).text = XYZ_XPATH

    for name in metadata.get("fields", []):
        attr = SubElement(grid, "Attribute", {"Name": name, "AttributeType": "Scalar",
                                              "Center": "Node"})
        _binary_item(attr, name, (n_nodes,), f"{mesh_name}/{name}")

    return root


def generate_xmf(input_dir, output_file: Optional[str] = None) -> Path:
    """
    Write the .xmf2 descriptor for a folder produced by export_solution_data().

    Parameters:
        input_dir: result folder holding metadata.json and the binary arrays
        output_file: destination; defaults to <lowercase folder name>.xmf2
            beside the folder

    Returns:
        Path of the written descriptor

    Raises:
        FileNotFoundError: if the folder has no metadata.json
    """
    folder = Path(input_dir)
    meta_path = folder / "metadata.json"
    if not meta_path.is_file():
        raise FileNotFoundError(f"{meta_path} not found")
    metadata = json.loads(meta_path.read_text())

    target = (folder.parent / f"{folder.name.lower()}.xmf2" if output_file is None
              else Path(output_file))

    # Array paths are resolved relative to the descriptor
    tree = build_solution_xmf(metadata, folder.name, target.stem)
    pretty = minidom.parseString(tostring(tree, "utf-8")).toprettyxml(indent="  ")
    target.write_text(pretty)
    log.info("Wrote to: %s", target)
    return target
