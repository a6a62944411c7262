from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np
import SimpleITK as sitk
import vtk

from .rules import INVALID_MEASURE

log = logging.getLogger("segoversample.shape")


@dataclass(frozen=True)
class MassProperties:
    """Volume and shape information of a closed surface."""

    volume: float
    projected_volume: float
    normalized_shape_index: float


def mass_properties(polydata: Optional[vtk.vtkPolyData]) -> Optional[MassProperties]:
    """
    Run vtkMassProperties on a closed surface.

    Returns None (and logs an error) if the surface is missing or has no polygons.
    """
    if polydata is None or polydata.GetNumberOfPoints() == 0 or polydata.GetNumberOfPolys() == 0:
        log.error("mass_properties: invalid input surface")
        return None

    # vtkMassProperties only accepts triangles
    triangles = vtk.vtkTriangleFilter()
    triangles.SetInputData(polydata)

    properties = vtk.vtkMassProperties()
    properties.SetInputConnection(triangles.GetOutputPort())
    properties.Update()

    return MassProperties(
        volume=float(properties.GetVolume()),
        projected_volume=float(properties.GetVolumeProjected()),
        normalized_shape_index=float(properties.GetNormalizedShapeIndex()),
    )


def reference_grid(reference: Any) -> Optional[Tuple[Tuple[int, int, int], Tuple[float, float, float]]]:
    """
    Voxel counts and spacing of a reference geometry.

    Accepts a SimpleITK image or a vtkImageData.
    """
    if reference is None:
        return None
    if isinstance(reference, sitk.Image):
        dimensions = reference.GetSize()
    else:
        dimensions = reference.GetDimensions()
    spacing = reference.GetSpacing()
    return (
        tuple(int(v) for v in dimensions[:3]),
        tuple(float(v) for v in spacing[:3]),
    )


def reference_volume(reference: Any) -> Optional[float]:
    """Number of voxels times the volume of one voxel, in physical units cubed."""
    grid = reference_grid(reference)
    if grid is None:
        return None
    dimensions, spacing = grid
    return float(np.prod(dimensions, dtype=np.float64) * np.prod(spacing))


def compute_size_measure(properties: Optional[MassProperties], reference: Any) -> float:
    """
    Relative structure size mapped onto the fuzzy input scale.

    size measure = -log10(structure volume / reference volume), so a structure one
    thousandth of the reference has size measure 3. Returns -1 on failure.
    """
    if properties is None:
        log.error("compute_size_measure: invalid input surface")
        return INVALID_MEASURE
    volume_of_reference = reference_volume(reference)
    if volume_of_reference is None:
        log.error("compute_size_measure: invalid rasterization reference geometry")
        return INVALID_MEASURE

    structure_volume = properties.volume
    if structure_volume <= 0.0 or volume_of_reference <= 0.0:
        log.error("compute_size_measure: non-positive volume (structure=%s, reference=%s)",
                  structure_volume, volume_of_reference)
        return INVALID_MEASURE

    error = abs(structure_volume - properties.projected_volume)
    if error * 10000 > structure_volume:
        log.warning("compute_size_measure: structure volume %.4f differs from projected volume %.4f, "
                    "the surface may be self-intersecting or not closed",
                    structure_volume, properties.projected_volume)

    relative_structure_size = structure_volume / volume_of_reference
    size_measure = -math.log10(relative_structure_size)
    log.debug("compute_size_measure: relative structure size %g, size measure %.4f",
              relative_structure_size, size_measure)
    return size_measure


def compute_complexity_measure(properties: Optional[MassProperties]) -> float:
    """
    Deviation of the shape from a sphere, from the normalized shape index (NSI).

    A sphere has NSI of one and any other shape more; the measure is NSI - 1,
    clamped at zero. Returns -1 on failure.
    """
    if properties is None:
        log.error("compute_complexity_measure: invalid input surface")
        return INVALID_MEASURE

    complexity_measure = max(properties.normalized_shape_index - 1.0, 0.0)
    log.debug("compute_complexity_measure: normalized shape index %.4f, complexity measure %.4f",
              properties.normalized_shape_index, complexity_measure)
    return complexity_measure


__all__ = [
    "MassProperties",
    "mass_properties",
    "reference_grid",
    "reference_volume",
    "compute_size_measure",
    "compute_complexity_measure",
]
