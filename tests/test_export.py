"""
Tests for VTK, binary and XDMF export.
"""

import json
import xml.etree.ElementTree as ET

import pytest
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal

from watfFEM.discretization.mesh import build_structured_mesh
from watfFEM.postprocess.vtk import export_vtk_unstructured_2d
from watfFEM.postprocess.export import export_solution_data, load_solution_data
from watfFEM.postprocess.xmf2 import generate_xmf


@pytest.fixture
def mesh():
    return build_structured_mesh((2, 2))


@pytest.fixture
def field(mesh):
    return 300.0 + 10.0 * mesh.coordinates[:, 1]


class TestVTKExport:
    """Tests for the legacy ASCII VTK writer."""

    def test_writes_unstructured_grid(self, tmp_path, mesh, field):
        path = export_vtk_unstructured_2d(str(tmp_path / "solution"), mesh, field)
        assert path.suffix == ".vtk"
        text = path.read_text()

        assert "DATASET UNSTRUCTURED_GRID" in text
        assert "POINTS 9 double" in text
        assert "CELLS 4 20" in text
        assert "CELL_TYPES 4" in text
        assert "SCALARS D double 1" in text

    def test_quad_vertex_order(self, tmp_path, mesh, field):
        """Cells are written counter-clockwise (BL, BR, TR, TL)."""
        path = export_vtk_unstructured_2d(str(tmp_path / "solution.vtk"), mesh, field)
        lines = path.read_text().splitlines()
        first_cell = lines[lines.index("CELLS 4 20") + 1]
        assert first_cell == "4 0 1 4 3"

    def test_point_data_values(self, tmp_path, mesh, field):
        path = export_vtk_unstructured_2d(str(tmp_path / "solution.vtk"), mesh, field,
                                          field_name="T")
        lines = path.read_text().splitlines()
        start = lines.index("SCALARS T double 1") + 2
        values = np.array([float(v) for v in lines[start:start + 9]])
        assert_array_almost_equal(values, field)

    def test_additional_and_cell_fields(self, tmp_path, mesh, field):
        path = export_vtk_unstructured_2d(
            str(tmp_path / "solution.vtk"), mesh, field,
            additional_fields={"error": np.zeros(9)},
            cell_fields={"element_id": np.arange(4)})
        text = path.read_text()
        assert "CELL_DATA 4" in text
        assert "SCALARS element_id double 1" in text
        assert "SCALARS error double 1" in text

    def test_creates_parent_directory(self, tmp_path, mesh, field):
        path = export_vtk_unstructured_2d(str(tmp_path / "new" / "solution.vtk"), mesh, field)
        assert path.exists()

    def test_wrong_length(self, tmp_path, mesh):
        with pytest.raises(ValueError):
            export_vtk_unstructured_2d(str(tmp_path / "bad.vtk"), mesh, np.zeros(5))


class TestBinaryExport:
    """Tests for the binary files read by the XDMF descriptor."""

    def test_files_and_metadata(self, tmp_path, mesh, field):
        out = tmp_path / "RESULT"
        metadata = export_solution_data(mesh, out, fields={"D": field})

        for name in ("xyz", "ien", "D", "metadata.json"):
            assert (out / name).exists()

        assert metadata["nn"] == 9
        assert metadata["ne"] == 4
        assert metadata["nen"] == 4
        assert metadata["fields"] == ["D"]
        with open(out / "metadata.json") as f:
            assert json.load(f) == metadata

    def test_big_endian_layout(self, tmp_path, mesh, field):
        out = tmp_path / "RESULT"
        export_solution_data(mesh, out, fields={"D": field})

        xyz = np.fromfile(out / "xyz", dtype='>f8').reshape(9, 3)
        assert_array_almost_equal(xyz[:, :2], mesh.coordinates)
        assert_array_equal(xyz[:, 2], np.zeros(9))

        ien = np.fromfile(out / "ien", dtype='>i4').reshape(4, 4)
        assert_array_equal(ien[0], [0, 1, 4, 3])

    def test_load_back(self, tmp_path, mesh, field):
        out = tmp_path / "RESULT"
        export_solution_data(mesh, out, fields={"D": field})
        data = load_solution_data(out)

        assert_array_almost_equal(data["coordinates"], mesh.coordinates)
        assert_array_equal(data["connectivity"], mesh.connectivity)
        assert_array_almost_equal(data["fields"]["D"], field)

    def test_field_shape_checked(self, tmp_path, mesh):
        with pytest.raises(ValueError):
            export_solution_data(mesh, tmp_path / "RESULT", fields={"D": np.zeros(3)})


class TestXMF:
    """Tests for the XDMF2 descriptor."""

    def test_generate(self, tmp_path, mesh, field):
        out = tmp_path / "RESULT"
        export_solution_data(mesh, out, fields={"D": field})
        xmf_path = generate_xmf(out)

        assert xmf_path == tmp_path / "result.xmf2"
        root = ET.parse(xmf_path).getroot()
        assert root.tag == "Xdmf"

        grid = root.find("Domain/Grid")
        topology = grid.find("Topology")
        assert topology.get("TopologyType") == "Quadrilateral"
        assert topology.get("NumberOfElements") == "4"
        assert topology.find("DataItem").text.strip() == "RESULT/ien"

        attribute = grid.find("Attribute")
        assert attribute.get("Name") == "D"
        assert attribute.get("Center") == "Node"
        assert attribute.find("DataItem").get("Dimensions") == "9"

    def test_custom_output(self, tmp_path, mesh, field):
        out = tmp_path / "RESULT"
        export_solution_data(mesh, out, fields={"D": field})
        xmf_path = generate_xmf(out, str(tmp_path / "plate.xmf2"))
        assert xmf_path.exists()
        grid = ET.parse(xmf_path).getroot().find("Domain/Grid")
        assert grid.get("Name") == "plate"

    def test_missing_metadata(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            generate_xmf(tmp_path / "EMPTY")
