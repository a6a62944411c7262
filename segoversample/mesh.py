from __future__ import annotations
from typing import Optional
import numpy as np
import SimpleITK as sitk
import vtk
from vtk.util import numpy_support


class MeshBuilder:
    def __init__(self):
        pass

    def mask_to_polydata(
        self,
        mask: sitk.Image,
        label: Optional[int] = None,
    ) -> vtk.vtkPolyData:
        """
        mask: binary or label image.
        label: label value to extract; if omitted every non-zero voxel is inside.
        Returns a closed triangle surface in physical (x, y, z) coordinates.
        The direction cosines of the mask are not applied; volumes and shape
        indices do not depend on them.
        """
        if mask.GetDimension() != 3:
            raise ValueError("Mask must be a 3D image.")

        arr = sitk.GetArrayViewFromImage(mask)  # (z, y, x)
        mask_bool = (arr == label) if label is not None else arr > 0
        if not np.any(mask_bool):
            raise ValueError("Mask is empty; nothing to mesh.")

        # One voxel of background on every side keeps the surface closed where
        # the structure touches the image boundary.
        padded = np.pad(mask_bool, 1, mode="constant", constant_values=False)
        nz, ny, nx = padded.shape
        vtk_arr = numpy_support.numpy_to_vtk(
            padded.astype(np.uint8).ravel(order="C"),
            deep=True,
            array_type=vtk.VTK_UNSIGNED_CHAR,
        )

        spacing = mask.GetSpacing()
        origin = [o - s for o, s in zip(mask.GetOrigin(), spacing)]

        image = vtk.vtkImageData()
        image.SetDimensions(nx, ny, nz)
        image.SetSpacing(spacing)
        image.SetOrigin(origin)
        image.SetExtent(0, nx - 1, 0, ny - 1, 0, nz - 1)
        image.GetPointData().SetScalars(vtk_arr)
        image.Modified()

        dmc = vtk.vtkDiscreteMarchingCubes()
        dmc.SetInputData(image)
        dmc.SetValue(0, 1)
        dmc.Update()

        poly = dmc.GetOutput()
        if poly is None or poly.GetNumberOfPoints() == 0:
            raise ValueError("Marching cubes returned an empty mesh.")
        if poly.GetNumberOfPolys() == 0:
            raise ValueError("Marching cubes returned a mesh without faces.")

        surface = vtk.vtkPolyData()
        surface.DeepCopy(poly)
        return surface


def polydata_from_arrays(vertices: np.ndarray, faces: np.ndarray) -> vtk.vtkPolyData:
    """
    Wrap a triangle mesh given as arrays into vtkPolyData.
    vertices: (N, 3) float coordinates; faces: (M, 3) vertex indices.
    """
    vertices = np.ascontiguousarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    if vertices.ndim != 2 or vertices.shape[1] != 3:
        raise ValueError("Vertices must be an (N, 3) array.")
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise ValueError("Faces must be an (M, 3) array of triangles.")

    points = vtk.vtkPoints()
    points.SetData(numpy_support.numpy_to_vtk(vertices, deep=True))

    offsets = np.arange(0, 3 * faces.shape[0] + 1, 3, dtype=np.int64)
    cells = vtk.vtkCellArray()
    cells.SetData(
        numpy_support.numpy_to_vtkIdTypeArray(offsets, deep=True),
        numpy_support.numpy_to_vtkIdTypeArray(faces.ravel(), deep=True),
    )

    poly = vtk.vtkPolyData()
    poly.SetPoints(points)
    poly.SetPolys(cells)
    return poly
