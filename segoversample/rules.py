"""
Fixed fuzzy membership shapes and rule base for the oversampling engine.

Input axes:
  - size measure: -log10(structure volume / reference volume), larger is smaller
  - complexity measure: normalized shape index - 1, zero for a sphere
Output axis:
  - oversampling power; the crisp factor is 2 to the power of the defuzzified value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .membership import Node

INVALID_MEASURE = -1.0
DEFAULT_OVERSAMPLING_FACTOR = 1.0

# ---- Membership functions -----------------------------------------------------

SIZE_MEMBERSHIPS: Dict[str, Tuple[Node, ...]] = {
    "large":      ((0.5, 1.0), (2.0, 0.0)),
    "medium":     ((0.5, 0.0), (2.0, 1.0), (2.5, 1.0), (3.0, 0.0)),
    "small":      ((2.5, 0.0), (3.0, 1.0), (3.25, 1.0), (3.75, 0.0)),
    "very_small": ((3.25, 0.0), (3.75, 1.0)),
}

COMPLEXITY_MEMBERSHIPS: Dict[str, Tuple[Node, ...]] = {
    "low":  ((0.2, 1.0), (0.6, 0.0)),
    "high": ((0.2, 0.0), (0.6, 1.0)),
}

OVERSAMPLING_MEMBERSHIPS: Dict[str, Tuple[Node, ...]] = {
    "low":       ((-1.25, 1.0), (-0.75, 1.0), (0.25, 0.0)),
    # The breakpoint at 0.25 is listed twice; it collapses into one node.
    "normal":    ((-0.75, 0.0), (0.25, 1.0), (0.25, 1.0), (0.75, 0.0)),
    "high":      ((0.25, 0.0), (0.75, 1.0), (1.25, 1.0), (1.75, 0.0)),
    "very_high": ((1.25, 0.0), (1.75, 1.0), (2.25, 1.0)),
}

# ---- Rule base ----------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """If size is ``size_term`` [and complexity is ``complexity_term``] then oversampling is ``consequent``."""

    size_term: str
    consequent: str
    complexity_term: Optional[str] = None

    def describe(self) -> str:
        antecedent = f"size is {self.size_term}"
        if self.complexity_term is not None:
            antecedent += f" and complexity is {self.complexity_term}"
        return f"if {antecedent} then oversampling is {self.consequent}"


RULES: Tuple[Rule, ...] = (
    Rule("very_small", "very_high"),
    Rule("small", "high", complexity_term="high"),
    Rule("medium", "high", complexity_term="high"),
    Rule("small", "normal", complexity_term="low"),
    Rule("medium", "normal", complexity_term="low"),
    Rule("large", "low"),
)


__all__ = [
    "INVALID_MEASURE",
    "DEFAULT_OVERSAMPLING_FACTOR",
    "SIZE_MEMBERSHIPS",
    "COMPLEXITY_MEMBERSHIPS",
    "OVERSAMPLING_MEMBERSHIPS",
    "Rule",
    "RULES",
]
