"""
Cap construction: fill the stitched outline with triangles and lift them back
onto the cutting plane, once for each half.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.validation import explain_validity

from stlcut.contracts import CapResult, Facet, StitchResult, Vec2, to_vec2, to_vec3
from stlcut.plane import CutPlane

logger = logging.getLogger(__name__)

Triangle2D = Tuple[Vec2, Vec2, Vec2]


def triangulate_loop(polygon: Sequence[Vec2], engine: str = "earcut") -> List[Triangle2D]:
    """Triangulate a closed 2D outline (no repeated closing vertex).

    The outline is wrapped in a shapely ``Polygon`` and handed to
    ``trimesh.creation.triangulate_polygon``. Self-intersecting outlines are
    passed through with a warning; what comes back is up to the engine.
    """
    if len(polygon) < 3:
        return []
    shape = Polygon(polygon)
    if not shape.is_valid:
        logger.warning("Cap outline is not a simple polygon: %s", explain_validity(shape))

    vertices, faces = trimesh.creation.triangulate_polygon(shape, engine=engine)
    vertices = np.asarray(vertices, dtype=float)
    return [
        (to_vec2(vertices[a]), to_vec2(vertices[b]), to_vec2(vertices[c]))
        for a, b, c in np.asarray(faces, dtype=np.int64).reshape((-1, 3))
    ]


def build_cap(stitch: StitchResult, plane: CutPlane, engine: str = "earcut") -> CapResult:
    """Cap facets for both halves.

    The lower half's cap faces along the plane normal, the upper half's copy
    has the opposite normal and reversed winding.
    """
    result = CapResult()
    if stitch.origin is None or len(stitch.polygon) < 3:
        if stitch.polygon:
            logger.warning(
                "Border outline has only %d vertices; no cap generated", len(stitch.polygon)
            )
        return result

    normal = plane.unit_normal
    flipped = to_vec3([-c for c in normal])

    for tri in triangulate_loop(stitch.polygon, engine=engine):
        area = _signed_area(tri)
        if area == 0.0:
            result.skipped_triangles += 1
            continue
        p0, p1, p2 = tri
        # CCW in the (a, b) frame points along a x b
        if area * plane.handedness < 0.0:
            p1, p2 = p2, p1
        v0, v1, v2 = (plane.to_3d(p, stitch.origin) for p in (p0, p1, p2))
        result.lower.append(Facet(vertices=(v0, v1, v2), normal=normal))
        result.upper.append(Facet(vertices=(v0, v2, v1), normal=flipped))

    if result.skipped_triangles:
        logger.debug("Skipped %d zero-area cap triangles", result.skipped_triangles)
    logger.info("Cap built: %d triangles per half", len(result.lower))
    return result


def _signed_area(tri: Triangle2D) -> float:
    (x0, y0), (x1, y1), (x2, y2) = tri
    return 0.5 * ((x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0))
