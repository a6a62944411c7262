"""
Tests for the shape descriptor calculator and surface construction.
"""

import logging
import math
import warnings

import numpy as np
import pytest
import SimpleITK as sitk
import vtk

from segoversample.mesh import MeshBuilder, polydata_from_arrays
from segoversample.rules import INVALID_MEASURE
from segoversample.shape import (
    MassProperties,
    compute_complexity_measure,
    compute_size_measure,
    mass_properties,
    reference_grid,
    reference_volume,
)


class TestReferenceGeometry:
    """Reference grids from VTK and SimpleITK images."""

    def test_vtk_reference_volume(self, reference_image):
        assert reference_volume(reference_image) == pytest.approx(1.0e6)

    def test_sitk_reference_volume(self, reference_sitk_image):
        reference_sitk_image.SetSpacing((0.5, 0.5, 2.0))
        assert reference_grid(reference_sitk_image) == ((100, 100, 100), (0.5, 0.5, 2.0))
        assert reference_volume(reference_sitk_image) == pytest.approx(0.5e6)

    def test_missing_reference(self):
        assert reference_grid(None) is None
        assert reference_volume(None) is None


class TestMassProperties:
    """vtkMassProperties on closed surfaces."""

    def test_sphere(self, sphere_polydata):
        properties = mass_properties(sphere_polydata)
        assert properties.volume == pytest.approx(4.0 / 3.0 * math.pi * 1000.0, rel=0.02)
        assert properties.normalized_shape_index == pytest.approx(1.0, abs=0.05)

    def test_missing_or_empty_surface(self, caplog):
        with caplog.at_level(logging.ERROR, logger="segoversample"):
            assert mass_properties(None) is None
            assert mass_properties(vtk.vtkPolyData()) is None
        assert len(caplog.records) == 2

    def test_polydata_from_arrays_tetrahedron(self):
        vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
        # outward-facing triangles
        faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])
        poly = polydata_from_arrays(vertices, faces)
        assert poly.GetNumberOfPolys() == 4
        assert mass_properties(poly).volume == pytest.approx(1.0 / 6.0, rel=1e-6)

    def test_polydata_from_arrays_uses_current_cell_api(self):
        vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
        faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            poly = polydata_from_arrays(vertices, faces)
        ids = vtk.vtkIdList()
        poly.GetCellPoints(3, ids)
        assert [ids.GetId(i) for i in range(ids.GetNumberOfIds())] == [1, 2, 3]

    def test_polydata_from_arrays_rejects_bad_shapes(self):
        with pytest.raises(ValueError):
            polydata_from_arrays(np.zeros((4, 2)), np.zeros((1, 3)))
        with pytest.raises(ValueError):
            polydata_from_arrays(np.zeros((4, 3)), np.zeros((1, 4)))


class TestMeasures:
    """Size and complexity measures."""

    def test_size_measure(self, reference_image):
        properties = MassProperties(volume=1000.0, projected_volume=1000.0, normalized_shape_index=1.2)
        assert compute_size_measure(properties, reference_image) == pytest.approx(3.0)

    def test_size_measure_missing_inputs(self, reference_image, caplog):
        properties = MassProperties(volume=1000.0, projected_volume=1000.0, normalized_shape_index=1.2)
        with caplog.at_level(logging.ERROR, logger="segoversample"):
            assert compute_size_measure(None, reference_image) == INVALID_MEASURE
            assert compute_size_measure(properties, None) == INVALID_MEASURE
        assert len(caplog.records) == 2

    def test_size_measure_non_positive_volume(self, reference_image):
        properties = MassProperties(volume=0.0, projected_volume=0.0, normalized_shape_index=1.0)
        assert compute_size_measure(properties, reference_image) == INVALID_MEASURE

    def test_projected_volume_mismatch_is_reported_not_fatal(self, reference_image, caplog):
        properties = MassProperties(volume=1000.0, projected_volume=900.0, normalized_shape_index=1.0)
        with caplog.at_level(logging.WARNING, logger="segoversample"):
            assert compute_size_measure(properties, reference_image) == pytest.approx(3.0)
        assert any("projected volume" in r.getMessage() for r in caplog.records)

    def test_consistent_volumes_are_not_reported(self, reference_image, caplog):
        properties = MassProperties(volume=1000.0, projected_volume=1000.05, normalized_shape_index=1.0)
        with caplog.at_level(logging.WARNING, logger="segoversample"):
            compute_size_measure(properties, reference_image)
        assert not caplog.records

    def test_complexity_measure(self):
        properties = MassProperties(volume=1.0, projected_volume=1.0, normalized_shape_index=1.35)
        assert compute_complexity_measure(properties) == pytest.approx(0.35)

    def test_complexity_measure_never_negative(self):
        properties = MassProperties(volume=1.0, projected_volume=1.0, normalized_shape_index=0.98)
        assert compute_complexity_measure(properties) == 0.0

    def test_complexity_measure_missing_surface(self):
        assert compute_complexity_measure(None) == INVALID_MEASURE


class TestMeshBuilder:
    """Closed surfaces from label masks."""

    def test_cube_mask_volume(self, cube_mask):
        poly = MeshBuilder().mask_to_polydata(cube_mask)
        properties = mass_properties(poly)
        assert 900.0 < properties.volume < 1050.0
        assert properties.normalized_shape_index > 1.0

    def test_structure_touching_border_is_closed(self):
        arr = np.ones((6, 6, 6), dtype=np.uint8)
        image = sitk.GetImageFromArray(arr)
        poly = MeshBuilder().mask_to_polydata(image)
        properties = mass_properties(poly)
        assert properties.volume == pytest.approx(properties.projected_volume, rel=0.05)
        assert properties.volume > 150.0

    def test_label_selection(self, cube_mask):
        arr = sitk.GetArrayFromImage(cube_mask)
        arr[40:44, 40:44, 40:44] = 2
        labelled = sitk.GetImageFromArray(arr)
        small = mass_properties(MeshBuilder().mask_to_polydata(labelled, label=2))
        large = mass_properties(MeshBuilder().mask_to_polydata(labelled, label=1))
        assert small.volume < large.volume

    def test_empty_mask_rejected(self):
        image = sitk.Image(8, 8, 8, sitk.sitkUInt8)
        with pytest.raises(ValueError, match="Mask is empty"):
            MeshBuilder().mask_to_polydata(image)

    def test_2d_mask_rejected(self):
        image = sitk.Image(8, 8, sitk.sitkUInt8)
        with pytest.raises(ValueError, match="3D"):
            MeshBuilder().mask_to_polydata(image)
