"""
Border stitching: turn the unordered border edges left by the splitter into
one ordered, closed outline in the plane's 2D frame.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from stlcut.contracts import BorderEdge, StitchResult, Vec2
from stlcut.plane import CutPlane

logger = logging.getLogger(__name__)

Edge2D = Tuple[Vec2, Vec2]


def stitch_border(
    edges: Sequence[BorderEdge],
    plane: CutPlane,
    tolerance_divisor: float = 4.0,
) -> StitchResult:
    """Chain ``edges`` into a single polygon.

    The origin of the first edge with finite coordinates becomes the origin
    of the 2D frame. Two vertices match when they are closer than the
    shortest edge divided by ``tolerance_divisor`` on both axes. Edges are
    matched in either direction. Only one loop is reconstructed; leftovers
    are reported on the result as ``unmatched_edges``.
    """
    if tolerance_divisor <= 0.0:
        raise ValueError(f"tolerance_divisor must be > 0, got {tolerance_divisor}")
    if not edges:
        logger.info("No border edges: plane does not cut the mesh")
        return StitchResult(polygon=[], origin=None, tolerance=0.0, closed=False)

    origin = next(
        (e.origin for e in edges if _is_finite(e.origin) and _is_finite(e.destination)),
        edges[0].origin,
    )
    working: List[Edge2D] = []
    skipped = 0
    for edge in edges:
        p = plane.to_2d(edge.origin, origin)
        q = plane.to_2d(edge.destination, origin)
        if not (_is_finite(p) and _is_finite(q)):
            skipped += 1
            continue
        if p == q:
            skipped += 1
            continue
        working.append((p, q))

    if skipped:
        logger.warning(
            "Skipped %d degenerate border edge(s) (zero length or non-finite coordinates)",
            skipped,
        )
    if not working:
        logger.warning("No usable border edges left to stitch")
        return StitchResult(
            polygon=[], origin=origin, tolerance=0.0, closed=False, skipped_edges=skipped
        )

    tolerance = compute_tolerance(working, tolerance_divisor)
    logger.debug("Stitching %d border edges with tolerance %.3g", len(working), tolerance)

    first_p, first_q = working.pop(0)
    polygon: List[Vec2] = [first_p, first_q]
    closed = False
    while working:
        idx, vertex = _find_continuation(polygon[-1], working, tolerance)
        if idx is None:
            break
        del working[idx]
        polygon.append(vertex)
        if len(polygon) > 3 and _is_same(polygon[-1], polygon[0], tolerance):
            closed = True
            break

    if closed:
        polygon.pop()
    else:
        logger.warning(
            "Border loop is not closed after %d vertices; cap will be incomplete",
            len(polygon),
        )
    if working:
        logger.warning(
            "%d border edge(s) left unmatched; only one cut loop is capped",
            len(working),
        )

    return StitchResult(
        polygon=polygon,
        origin=origin,
        tolerance=tolerance,
        closed=closed,
        unmatched_edges=working,
        skipped_edges=skipped,
    )


def compute_tolerance(edges: Sequence[Edge2D], divisor: float = 4.0) -> float:
    """Shortest edge length divided by ``divisor``."""
    shortest = min(math.hypot(q[0] - p[0], q[1] - p[1]) for p, q in edges)
    return shortest / divisor


def _find_continuation(
    last: Vec2, edges: Sequence[Edge2D], tolerance: float
) -> Tuple[Optional[int], Optional[Vec2]]:
    for idx, (p, q) in enumerate(edges):
        if _is_same(last, p, tolerance):
            return idx, q
        if _is_same(last, q, tolerance):
            return idx, p
    return None, None


def _is_same(a: Vec2, b: Vec2, tolerance: float) -> bool:
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def _is_finite(point: Sequence[float]) -> bool:
    return all(math.isfinite(c) for c in point)
