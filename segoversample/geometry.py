from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np
import vtk

log = logging.getLogger("segoversample.geometry")

# Factors outside this range are applied but reported as suspicious.
SANE_FACTOR_RANGE = (0.01, 100.0)

Extent = Tuple[int, int, int, int, int, int]
Vector3 = Tuple[float, float, float]


def oversampled_extent_and_spacing(
    extent: Sequence[int],
    spacing: Sequence[float],
    factor: float,
) -> Tuple[Extent, Vector3]:
    """
    Extent and spacing of a grid covering the same region at ``factor`` times the
    voxel density. Every non-empty axis keeps at least one voxel; empty axes are
    returned unchanged.
    """
    new_extent = []
    new_spacing = []
    for axis in range(3):
        extent_min, extent_max = int(extent[axis * 2]), int(extent[axis * 2 + 1])
        dimension = extent_max - extent_min + 1
        if dimension < 1:
            new_extent.extend((extent_min, extent_max))
            new_spacing.append(float(spacing[axis]))
            continue

        new_min = int(math.ceil(factor * extent_min))
        new_dimension = max(int(math.floor(factor * dimension)), 1)
        new_extent.extend((new_min, new_min + new_dimension - 1))
        new_spacing.append(float(spacing[axis]) * dimension / new_dimension)
    return tuple(new_extent), tuple(new_spacing)


def image_to_world_matrix(
    origin: Sequence[float],
    spacing: Sequence[float],
    direction: Optional[np.ndarray] = None,
) -> np.ndarray:
    """4x4 homogeneous matrix mapping continuous voxel indices to world coordinates."""
    direction = np.eye(3) if direction is None else np.asarray(direction, dtype=np.float64).reshape(3, 3)
    matrix = np.eye(4)
    matrix[:3, :3] = direction @ np.diag(np.asarray(spacing, dtype=np.float64))
    matrix[:3, 3] = np.asarray(origin, dtype=np.float64)
    return matrix


def oversampled_origin(
    origin: Sequence[float],
    spacing: Sequence[float],
    new_spacing: Sequence[float],
    direction: Optional[np.ndarray] = None,
) -> Vector3:
    """
    Origin of the oversampled grid.

    The origin is the center of the first voxel. Shifting it by half the change in
    voxel size keeps the outer corners of the old and new grids in the same place.
    """
    index = 0.5 * (1.0 - np.asarray(spacing, dtype=np.float64) / np.asarray(new_spacing, dtype=np.float64))
    world = image_to_world_matrix(origin, new_spacing, direction) @ np.append(index, 1.0)
    return tuple(float(v) for v in world[:3])


def _direction_of(image: vtk.vtkImageData) -> np.ndarray:
    matrix = image.GetDirectionMatrix()
    return np.array([[matrix.GetElement(row, col) for col in range(3)] for row in range(3)])


def apply_oversampling_on_image_geometry(image: Optional[vtk.vtkImageData], oversampling_factor: float) -> None:
    """
    Rewrite the extent, spacing and origin of ``image`` for the given oversampling
    factor and reallocate its scalars with the same type and component count.
    Existing voxel values are not preserved.
    """
    if image is None:
        return

    if not math.isfinite(oversampling_factor) or oversampling_factor <= 0.0:
        log.error("apply_oversampling_on_image_geometry: invalid oversampling factor %s, geometry unchanged",
                  oversampling_factor)
        return

    low, high = SANE_FACTOR_RANGE
    if oversampling_factor < low or oversampling_factor > high:
        log.warning("apply_oversampling_on_image_geometry: oversampling factor %s seems unreasonable",
                    oversampling_factor)

    if oversampling_factor == 1.0:
        return

    extent = image.GetExtent()
    spacing = image.GetSpacing()
    scalar_type = image.GetScalarType()
    components = image.GetNumberOfScalarComponents()
    direction = _direction_of(image)

    new_extent, new_spacing = oversampled_extent_and_spacing(extent, spacing, oversampling_factor)
    image.SetExtent(new_extent)
    image.SetSpacing(new_spacing)
    image.AllocateScalars(scalar_type, components)
    image.SetOrigin(oversampled_origin(image.GetOrigin(), spacing, new_spacing, direction))

    log.debug("apply_oversampling_on_image_geometry: extent %s -> %s, spacing %s -> %s",
              extent, new_extent, spacing, new_spacing)


__all__ = [
    "SANE_FACTOR_RANGE",
    "oversampled_extent_and_spacing",
    "image_to_world_matrix",
    "oversampled_origin",
    "apply_oversampling_on_image_geometry",
]
