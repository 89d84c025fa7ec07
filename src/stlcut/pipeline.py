"""Cut a closed mesh by a plane into capped upper and lower halves."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, Optional

from stlcut.cap import build_cap
from stlcut.contracts import CutConfig, CutResult, CutRunResult, ExportConfig, Facet
from stlcut.mesh_io import export_facets, load_facets
from stlcut.plane import CutPlane
from stlcut.splitter import BorderEdgeSet, FacetCollector, split_facet
from stlcut.stitcher import stitch_border

logger = logging.getLogger(__name__)


def cut_facets(facets: Iterable[Facet], config: Optional[CutConfig] = None) -> CutResult:
    """Split *facets* by ``config.plane`` and cap both halves.

    Steps run strictly in order: split every facet, stitch the border once,
    build the cap once.
    """
    if config is None:
        config = CutConfig()

    plane = CutPlane.from_coefficients(config.plane, epsilon=config.epsilon)
    collector = FacetCollector(BorderEdgeSet(digits=config.edge_key_digits))
    cases: Counter = Counter()
    for facet in facets:
        cases[split_facet(facet, plane, collector).value] += 1

    logger.info(
        "Split %d facets: %d upper, %d lower, %d border edges (%s)",
        sum(cases.values()),
        len(collector.upper),
        len(collector.lower),
        len(collector.border),
        ", ".join(f"{name}={count}" for name, count in sorted(cases.items())),
    )

    stitch = stitch_border(
        collector.border.edges(),
        plane,
        tolerance_divisor=config.stitch_tolerance_divisor,
    )
    cap = build_cap(stitch, plane, engine=config.triangulation_engine)

    return CutResult(
        upper=collector.upper + cap.upper,
        lower=collector.lower + cap.lower,
        border_edge_count=len(collector.border),
        stitch=stitch,
        cap=cap,
        case_counts=dict(cases),
        debug={
            "plane": [float(c) for c in config.plane],
            "epsilon": float(config.epsilon),
            "stitch_tolerance": float(stitch.tolerance),
            "stitch_closed": bool(stitch.closed),
            "polygon_vertex_count": len(stitch.polygon),
            "unmatched_edge_count": len(stitch.unmatched_edges),
            "skipped_edge_count": int(stitch.skipped_edges),
            "cap_triangle_count": len(cap.lower),
        },
    )


def run_cut(
    mesh_path,
    output_dir=".",
    config: Optional[CutConfig] = None,
    export_config: Optional[ExportConfig] = None,
) -> CutRunResult:
    """Read *mesh_path*, cut it and write both halves into *output_dir*."""
    if config is None:
        config = CutConfig()
    if export_config is None:
        export_config = ExportConfig()

    input_path = Path(mesh_path)
    out_dir = Path(output_dir)
    facets = load_facets(input_path)
    result = cut_facets(facets, config)

    for name, half in (("upper", result.upper), ("lower", result.lower)):
        if not half:
            logger.warning("The %s half is empty; plane does not intersect the mesh", name)

    upper_path = out_dir / config.upper_name
    lower_path = out_dir / config.lower_name
    upper_count = export_facets(result.upper, upper_path, export_config)
    lower_count = export_facets(result.lower, lower_path, export_config)

    return CutRunResult(
        input_path=input_path,
        upper_path=upper_path,
        lower_path=lower_path,
        upper_facet_count=upper_count,
        lower_facet_count=lower_count,
        cut=result,
    )
