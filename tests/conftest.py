"""
pytest configuration and fixtures for segoversample tests.
"""

import numpy as np
import pytest
import SimpleITK as sitk
import vtk


def _sphere(radius: float, resolution: int = 48) -> vtk.vtkPolyData:
    source = vtk.vtkSphereSource()
    source.SetRadius(radius)
    source.SetCenter(50.0, 50.0, 50.0)
    source.SetThetaResolution(resolution)
    source.SetPhiResolution(resolution)
    source.Update()
    return source.GetOutput()


@pytest.fixture
def sphere_polydata():
    """Sphere of radius 10 mm: about 0.4% of the 100^3 mm reference volume."""
    return _sphere(10.0)


@pytest.fixture
def tiny_sphere_polydata():
    """Sphere of radius 2 mm: very small compared to the reference volume."""
    return _sphere(2.0)


@pytest.fixture
def reference_image():
    """100 x 100 x 100 voxel vtkImageData with 1 mm spacing."""
    image = vtk.vtkImageData()
    image.SetExtent(0, 99, 0, 99, 0, 99)
    image.SetSpacing(1.0, 1.0, 1.0)
    image.SetOrigin(0.0, 0.0, 0.0)
    return image


@pytest.fixture
def reference_sitk_image():
    """SimpleITK counterpart of ``reference_image``."""
    image = sitk.Image(100, 100, 100, sitk.sitkUInt8)
    image.SetSpacing((1.0, 1.0, 1.0))
    return image


@pytest.fixture
def cube_mask():
    """64^3 binary mask holding a 10^3 voxel cube."""
    arr = np.zeros((64, 64, 64), dtype=np.uint8)
    arr[20:30, 20:30, 20:30] = 1
    image = sitk.GetImageFromArray(arr)
    image.SetSpacing((1.0, 1.0, 1.0))
    return image


@pytest.fixture
def small_image():
    """10 x 8 x 6 voxel unsigned char image with non-trivial spacing and origin."""
    image = vtk.vtkImageData()
    image.SetExtent(0, 9, 0, 7, 0, 5)
    image.SetSpacing(1.0, 2.0, 0.5)
    image.SetOrigin(10.0, -5.0, 3.0)
    image.AllocateScalars(vtk.VTK_UNSIGNED_CHAR, 1)
    return image
