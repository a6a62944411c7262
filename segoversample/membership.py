from __future__ import annotations

import bisect
import math
from typing import Iterable, List, Tuple

import numpy as np

Node = Tuple[float, float]


class PiecewiseFunction:
    """
    Piecewise-linear membership function over one crisp axis.

    Nodes are kept sorted by x with at most one node per x (adding a point at an
    existing x replaces its membership). Between nodes the membership is linearly
    interpolated; outside the node range it is the nearest endpoint's membership.
    """

    def __init__(self, nodes: Iterable[Node] = ()):
        self._xs: List[float] = []
        self._ys: List[float] = []
        for x, y in nodes:
            self.add_point(x, y)

    def add_point(self, x: float, y: float) -> None:
        x = float(x)
        y = float(y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Membership node must be finite, got ({x}, {y}).")
        if not 0.0 <= y <= 1.0:
            raise ValueError(f"Membership value must be in [0, 1], got {y} at x={x}.")

        index = bisect.bisect_left(self._xs, x)
        if index < len(self._xs) and self._xs[index] == x:
            self._ys[index] = y
            return
        self._xs.insert(index, x)
        self._ys.insert(index, y)

    def set_node_value(self, index: int, y: float) -> None:
        y = float(y)
        if not 0.0 <= y <= 1.0:
            raise ValueError(f"Membership value must be in [0, 1], got {y}.")
        self._ys[index] = y

    def value(self, x: float) -> float:
        if not self._xs:
            return 0.0
        return float(np.interp(float(x), self._xs, self._ys))

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(zip(self._xs, self._ys))

    def copy(self) -> "PiecewiseFunction":
        return PiecewiseFunction(self.nodes)

    def __len__(self) -> int:
        return len(self._xs)

    def __repr__(self) -> str:
        return f"PiecewiseFunction({list(self.nodes)!r})"


def clip_membership_function(function: PiecewiseFunction, clip_value: float) -> PiecewiseFunction:
    """
    Return a copy of ``function`` with its membership capped at ``clip_value``.

    The top of the function is replaced by a plateau at the clip height. Plateau
    edges are new nodes placed where the original function crosses the clip value
    strictly between two of its nodes. The input function is never modified.
    """
    clipped = function.copy()
    clip_value = max(float(clip_value), 0.0)
    if clip_value >= 1.0:
        return clipped

    nodes = function.nodes
    crossings: List[float] = []
    for (x0, y0), (x1, y1) in zip(nodes, nodes[1:]):
        if (y0 < clip_value < y1) or (y0 > clip_value > y1):
            crossings.append(x0 + (x1 - x0) * (y0 - clip_value) / (y0 - y1))

    for index, (_, y) in enumerate(nodes):
        if y > clip_value:
            clipped.set_node_value(index, clip_value)

    for x in crossings:
        clipped.add_point(x, clip_value)
    return clipped


__all__ = [
    "Node",
    "PiecewiseFunction",
    "clip_membership_function",
]
