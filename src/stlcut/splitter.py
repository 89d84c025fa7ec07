"""
Per-facet classification and cutting.

Each facet is classified against the plane and handed to a ``FacetCollector``
either unchanged or as two or three partial facets. Cuts also record the
segment of the facet that lies in the plane as a directed ``BorderEdge``.

Border edges are oriented the way they run in the facet emitted to the upper
half, so that the edges of one hole chain head to tail.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from stlcut.contracts import BorderEdge, Facet, Position, Vec3
from stlcut.plane import CutPlane


class SplitCase(Enum):
    """Which branch of the classification table handled a facet."""

    UPPER = "upper"
    LOWER = "lower"
    ON_PLANE = "on_plane"
    EDGE_ON_PLANE = "edge_on_plane"
    TOUCHING = "touching"
    SIMPLE_CUT = "simple_cut"
    COMPLEX_CUT = "complex_cut"


EdgeKey = Tuple[float, float, float, float, float, float]


class BorderEdgeSet:
    """Insertion-ordered set of border edges.

    Edges are keyed by their rounded coordinates, so exact repeats (the same
    on-plane edge reported by the facets on both sides) collapse into one.
    Edges whose ends differ by more than the rounding are kept apart.
    """

    def __init__(self, digits: int = 9):
        self.digits = digits
        self._edges: Dict[EdgeKey, BorderEdge] = {}

    def _key(self, origin: Vec3, destination: Vec3) -> EdgeKey:
        return tuple(round(c, self.digits) for c in (*origin, *destination))

    def add(self, origin: Vec3, destination: Vec3) -> bool:
        """Insert an edge; returns False if an equal edge was already present."""
        key = self._key(origin, destination)
        if key in self._edges:
            return False
        self._edges[key] = BorderEdge(origin=origin, destination=destination)
        return True

    def edges(self) -> List[BorderEdge]:
        return list(self._edges.values())

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[BorderEdge]:
        return iter(self._edges.values())

    def __contains__(self, edge: BorderEdge) -> bool:
        return self._key(edge.origin, edge.destination) in self._edges


class FacetCollector:
    """Accumulates the two halves and the border edges of one cut."""

    def __init__(self, border: Optional[BorderEdgeSet] = None):
        self.upper: List[Facet] = []
        self.lower: List[Facet] = []
        self.border = border if border is not None else BorderEdgeSet()

    def emit(self, side: Position, facet: Facet):
        if side is Position.ABOVE:
            self.upper.append(facet)
        elif side is Position.BELOW:
            self.lower.append(facet)
        else:
            raise ValueError(f"Facets can only be emitted above or below, got {side}")

    def add_border_edge(self, origin: Vec3, destination: Vec3):
        self.border.add(origin, destination)


def split_facet(facet: Facet, plane: CutPlane, collector: FacetCollector) -> SplitCase:
    """Classify ``facet`` against ``plane`` and emit it (or its parts)."""
    vertices = facet.vertices
    positions = [plane.classify(v) for v in vertices]
    aboves = positions.count(Position.ABOVE)
    belows = positions.count(Position.BELOW)
    ons = positions.count(Position.ON)

    if aboves == 3:
        collector.emit(Position.ABOVE, facet)
        return SplitCase.UPPER
    if belows == 3:
        collector.emit(Position.BELOW, facet)
        return SplitCase.LOWER
    if ons == 3:
        return SplitCase.ON_PLANE

    if ons == 2:
        i = next(k for k in range(3) if positions[k] is not Position.ON)
        side = positions[i]
        collector.emit(side, facet)
        first, second = vertices[(i + 1) % 3], vertices[(i + 2) % 3]
        if side is Position.ABOVE:
            collector.add_border_edge(first, second)
        else:
            collector.add_border_edge(second, first)
        return SplitCase.EDGE_ON_PLANE

    if ons == 1:
        if aboves == 2:
            collector.emit(Position.ABOVE, facet)
            return SplitCase.TOUCHING
        if belows == 2:
            collector.emit(Position.BELOW, facet)
            return SplitCase.TOUCHING
        i = positions.index(Position.ON)
        _simple_cut(
            facet,
            vertices[i],
            vertices[(i + 1) % 3],
            vertices[(i + 2) % 3],
            positions[(i + 1) % 3],
            plane,
            collector,
        )
        return SplitCase.SIMPLE_CUT

    lone = Position.ABOVE if aboves == 1 else Position.BELOW
    i = positions.index(lone)
    _complex_cut(
        facet,
        vertices[i],
        vertices[(i + 1) % 3],
        vertices[(i + 2) % 3],
        lone,
        plane,
        collector,
    )
    return SplitCase.COMPLEX_CUT


def _simple_cut(
    facet: Facet,
    zero: Vec3,
    one: Vec3,
    two: Vec3,
    one_side: Position,
    plane: CutPlane,
    collector: FacetCollector,
):
    """``zero`` is on the plane; ``one`` and ``two`` are on opposite sides."""
    other_side = Position.BELOW if one_side is Position.ABOVE else Position.ABOVE
    middle = plane.intersect(one, two)
    collector.emit(one_side, facet.derive(middle, zero, one))
    collector.emit(other_side, facet.derive(middle, two, zero))
    if one_side is Position.ABOVE:
        collector.add_border_edge(middle, zero)
    else:
        collector.add_border_edge(zero, middle)


def _complex_cut(
    facet: Facet,
    zero: Vec3,
    one: Vec3,
    two: Vec3,
    zero_side: Position,
    plane: CutPlane,
    collector: FacetCollector,
):
    """``zero`` is alone on its side; ``one`` and ``two`` share the other."""
    other_side = Position.BELOW if zero_side is Position.ABOVE else Position.ABOVE
    one_middle = plane.intersect(zero, one)
    two_middle = plane.intersect(zero, two)
    collector.emit(zero_side, facet.derive(zero, one_middle, two_middle))
    collector.emit(other_side, facet.derive(one_middle, one, two))
    collector.emit(other_side, facet.derive(one_middle, two, two_middle))
    if zero_side is Position.ABOVE:
        collector.add_border_edge(one_middle, two_middle)
    else:
        collector.add_border_edge(two_middle, one_middle)
