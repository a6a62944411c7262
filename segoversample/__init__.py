"""
Automatic oversampling factor for rasterizing closed surfaces into label images.

A small fuzzy inference system maps the relative size and the shape complexity of
a structure to a power-of-two oversampling factor, so that small or intricate
structures are rasterized on a finer grid.
"""

from .calculator import OversamplingFactorCalculator, calculate_oversampling_factor
from .engine import determine_oversampling_factor
from .geometry import apply_oversampling_on_image_geometry
from .membership import PiecewiseFunction, clip_membership_function
from .rules import DEFAULT_OVERSAMPLING_FACTOR, INVALID_MEASURE
from .shape import MassProperties, compute_complexity_measure, compute_size_measure, mass_properties

__all__ = [
    "OversamplingFactorCalculator",
    "calculate_oversampling_factor",
    "determine_oversampling_factor",
    "apply_oversampling_on_image_geometry",
    "PiecewiseFunction",
    "clip_membership_function",
    "DEFAULT_OVERSAMPLING_FACTOR",
    "INVALID_MEASURE",
    "MassProperties",
    "compute_complexity_measure",
    "compute_size_measure",
    "mass_properties",
]
