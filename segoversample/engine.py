from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .membership import Node, PiecewiseFunction, clip_membership_function
from .rules import (
    COMPLEXITY_MEMBERSHIPS,
    DEFAULT_OVERSAMPLING_FACTOR,
    INVALID_MEASURE,
    OVERSAMPLING_MEMBERSHIPS,
    RULES,
    SIZE_MEMBERSHIPS,
    Rule,
)

log = logging.getLogger("segoversample.engine")

Memberships = Dict[str, Dict[str, float]]


@dataclass(frozen=True)
class TrapezoidSegment:
    """Area under one linear piece of a consequent, with its centroid on the output axis."""

    area: float
    centroid: float


def _build_functions(table: Dict[str, Tuple[Node, ...]]) -> Dict[str, PiecewiseFunction]:
    return {name: PiecewiseFunction(nodes) for name, nodes in table.items()}


def fuzzify(size_measure: float, complexity_measure: float) -> Memberships:
    """
    Membership of the crisp measures in every input term.

    Returns {"size": {term: membership}, "complexity": {term: membership}}.
    """
    size_functions = _build_functions(SIZE_MEMBERSHIPS)
    complexity_functions = _build_functions(COMPLEXITY_MEMBERSHIPS)
    return {
        "size": {name: f.value(size_measure) for name, f in size_functions.items()},
        "complexity": {name: f.value(complexity_measure) for name, f in complexity_functions.items()},
    }


def fire_rules(memberships: Memberships) -> List[Tuple[Rule, float]]:
    """Firing strength of each rule: fuzzy AND (minimum) over its antecedents."""
    firings: List[Tuple[Rule, float]] = []
    for rule in RULES:
        strength = memberships["size"][rule.size_term]
        if rule.complexity_term is not None:
            strength = min(strength, memberships["complexity"][rule.complexity_term])
        firings.append((rule, strength))
    return firings


def clip_consequents(firings: Iterable[Tuple[Rule, float]]) -> List[PiecewiseFunction]:
    """Clip a private copy of each rule's output function at the rule's firing strength."""
    outputs = _build_functions(OVERSAMPLING_MEMBERSHIPS)
    return [clip_membership_function(outputs[rule.consequent], strength) for rule, strength in firings]


def trapezoid_segments(function: PiecewiseFunction) -> List[TrapezoidSegment]:
    """
    Split the area under ``function`` into one trapezoid per pair of adjacent nodes.

    Each trapezoid is a bottom rectangle (height of the lower node) plus a top
    triangle whose centroid lies at 2/3 of the base when the right node is higher
    and at 1/3 when the left node is higher. Zero-area pieces are dropped.
    """
    segments: List[TrapezoidSegment] = []
    nodes = function.nodes
    for (x0, y0), (x1, y1) in zip(nodes, nodes[1:]):
        base = x1 - x0
        rectangle_area = base * min(y0, y1)
        rectangle_centroid = (x0 + x1) / 2.0

        triangle_area = 0.0
        triangle_centroid = 0.0
        if y1 > y0:
            triangle_area = base * (y1 - y0) / 2.0
            triangle_centroid = x0 + base * 2.0 / 3.0
        elif y1 < y0:
            triangle_area = base * (y0 - y1) / 2.0
            triangle_centroid = x0 + base / 3.0

        area = rectangle_area + triangle_area
        if area <= 0.0:
            continue

        centroid = rectangle_centroid
        if triangle_area > 0.0:
            centroid = (rectangle_area * rectangle_centroid + triangle_area * triangle_centroid) / area
        segments.append(TrapezoidSegment(area=area, centroid=centroid))
    return segments


def centroid_of_area(segments: Sequence[TrapezoidSegment]) -> Optional[float]:
    """Combined centroid of the segments, or None if they enclose no area."""
    total_area = sum(s.area for s in segments)
    if total_area <= 0.0:
        return None
    return sum(s.area * s.centroid for s in segments) / total_area


def defuzzify(consequents: Iterable[PiecewiseFunction]) -> float:
    """Centroid-of-area defuzzification of the aggregated consequents into a power-of-two factor."""
    segments = [segment for function in consequents for segment in trapezoid_segments(function)]
    center_of_mass = centroid_of_area(segments)
    if center_of_mass is None:
        log.warning("defuzzify: aggregated consequents have zero area, using default oversampling of %s",
                    DEFAULT_OVERSAMPLING_FACTOR)
        return DEFAULT_OVERSAMPLING_FACTOR

    power = math.floor(center_of_mass + 0.5)
    log.debug("defuzzify: center of mass %.4f, oversampling power %d", center_of_mass, power)
    return 2.0 ** power


def is_valid_measure(value: float) -> bool:
    """False for the -1 sentinel and for non-finite values."""
    return math.isfinite(value) and value != INVALID_MEASURE


# Fuzzy rules:
# 1. If size is very small, then oversampling is very high
# 2. If size is small and complexity is high, then oversampling is high
# 3. If size is medium and complexity is high, then oversampling is high
# 4. If size is small and complexity is low, then oversampling is normal
# 5. If size is medium and complexity is low, then oversampling is normal
# 6. If size is large, then oversampling is low
def determine_oversampling_factor(size_measure: float, complexity_measure: float) -> float:
    """
    Map the crisp size and complexity measures to an oversampling factor.

    Parameters
    ----------
    size_measure:
        -log10 of the structure volume relative to the reference volume.
    complexity_measure:
        Normalized shape index minus one, clamped at zero.

    Returns
    -------
    A power of two. Invalid measures (the -1 sentinel, or non-finite values)
    give the default factor of 1.
    """
    if not (is_valid_measure(size_measure) and is_valid_measure(complexity_measure)):
        log.error("determine_oversampling_factor: invalid input measures (size=%s, complexity=%s), "
                  "returning default oversampling of %s",
                  size_measure, complexity_measure, DEFAULT_OVERSAMPLING_FACTOR)
        return DEFAULT_OVERSAMPLING_FACTOR

    memberships = fuzzify(size_measure, complexity_measure)
    firings = fire_rules(memberships)
    for rule, strength in firings:
        if strength > 0.0:
            log.debug("[rules] %s: %.3f", rule.describe(), strength)
    return defuzzify(clip_consequents(firings))


__all__ = [
    "TrapezoidSegment",
    "is_valid_measure",
    "fuzzify",
    "fire_rules",
    "clip_consequents",
    "trapezoid_segments",
    "centroid_of_area",
    "defuzzify",
    "determine_oversampling_factor",
]
