from __future__ import annotations

import logging
import time
from typing import Any, Optional

import vtk

from .engine import determine_oversampling_factor
from .geometry import apply_oversampling_on_image_geometry
from .rules import DEFAULT_OVERSAMPLING_FACTOR, INVALID_MEASURE
from .shape import compute_complexity_measure, compute_size_measure, mass_properties

log = logging.getLogger("segoversample.calculator")


class OversamplingFactorCalculator:
    """
    Automatic oversampling factor for rasterizing one closed surface onto a
    reference grid.

    The surface's size relative to the reference volume and its deviation from a
    sphere drive a fixed fuzzy rule base; small or complex structures get a finer
    grid. The result is always a power of two and is 1.0 whenever the calculation
    fails.
    """

    def __init__(
        self,
        input_polydata: Optional[vtk.vtkPolyData] = None,
        reference_geometry: Any = None,
        log_speed_measurements: bool = False,
    ) -> None:
        self.input_polydata = input_polydata
        self.reference_geometry = reference_geometry
        self.log_speed_measurements = bool(log_speed_measurements)
        self.output_oversampling_factor = DEFAULT_OVERSAMPLING_FACTOR
        self.size_measure = INVALID_MEASURE
        self.complexity_measure = INVALID_MEASURE

    def calculate(self) -> bool:
        """Compute ``output_oversampling_factor``. Returns False if any input is missing or invalid."""
        # Safe value even if the return value is not checked
        self.output_oversampling_factor = DEFAULT_OVERSAMPLING_FACTOR
        self.size_measure = INVALID_MEASURE
        self.complexity_measure = INVALID_MEASURE

        if self.input_polydata is None:
            log.error("calculate: invalid input surface")
            return False
        if self.reference_geometry is None:
            log.error("calculate: invalid rasterization reference geometry")
            return False

        start = time.perf_counter()

        properties = mass_properties(self.input_polydata)
        self.size_measure = compute_size_measure(properties, self.reference_geometry)
        if self.size_measure == INVALID_MEASURE:
            log.error("calculate: failed to calculate relative structure size")
            return False
        self.complexity_measure = compute_complexity_measure(properties)
        if self.complexity_measure == INVALID_MEASURE:
            log.error("calculate: failed to calculate complexity measure")
            return False

        fuzzy_start = time.perf_counter()
        self.output_oversampling_factor = determine_oversampling_factor(self.size_measure, self.complexity_measure)
        end = time.perf_counter()

        log.debug("calculate: automatic oversampling factor of %s has been calculated",
                  self.output_oversampling_factor)
        if self.log_speed_measurements:
            log.info("calculate: total automatic oversampling calculation time: %.6f s "
                     "(measures %.6f s, fuzzy rules %.6f s)",
                     end - start, fuzzy_start - start, end - fuzzy_start)
        return True

    def apply_to(self, image: Optional[vtk.vtkImageData]) -> None:
        """Resize ``image``'s grid by the last calculated factor."""
        apply_oversampling_on_image_geometry(image, self.output_oversampling_factor)


def calculate_oversampling_factor(polydata: Optional[vtk.vtkPolyData], reference_geometry: Any) -> float:
    """One-call variant: the factor for ``polydata`` on ``reference_geometry``, 1.0 on failure."""
    calculator = OversamplingFactorCalculator(polydata, reference_geometry)
    calculator.calculate()
    return calculator.output_oversampling_factor
