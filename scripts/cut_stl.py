#!/usr/bin/env python3
"""
Cut a closed STL mesh by a plane into two capped halves.

Usage:
    python scripts/cut_stl.py model.stl
    python scripts/cut_stl.py model.stl --plane 0 0 1 -25 --output-dir out/
    python scripts/cut_stl.py model.stl --plane 1 1 0 0 --epsilon 1e-6 --binary
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stlcut import CutConfig, ExportConfig, run_cut


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cut a closed mesh by the plane a*x + b*y + c*z + d = 0 "
        "and write capped upper/lower halves",
    )
    parser.add_argument("mesh", help="Path to input mesh (.stl)")
    parser.add_argument(
        "--plane",
        nargs=4,
        type=float,
        default=[0.0, 0.0, 1.0, 0.0],
        metavar=("A", "B", "C", "D"),
        help="Plane coefficients (default: 0 0 1 0, i.e. z = 0)",
    )
    parser.add_argument(
        "--output-dir", default=".", help="Directory for the output halves (default: .)"
    )
    parser.add_argument("--upper-name", default="upper.stl", help="Upper half file name")
    parser.add_argument("--lower-name", default="lower.stl", help="Lower half file name")
    parser.add_argument(
        "--epsilon",
        type=float,
        default=0.0,
        help="Distance within which a vertex counts as on the plane (default: 0)",
    )
    parser.add_argument(
        "--tolerance-divisor",
        type=float,
        default=4.0,
        help="Stitching tolerance = shortest border edge / this value (default: 4)",
    )
    parser.add_argument(
        "--engine", default="earcut", help="Cap triangulation engine (default: earcut)"
    )
    parser.add_argument(
        "--binary", action="store_true", help="Write binary STL instead of ASCII"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("trimesh").setLevel(logging.WARNING)

    if not any(args.plane[:3]):
        parser.error("plane normal (A, B, C) must not be zero")

    try:
        config = CutConfig(
            plane=tuple(args.plane),
            epsilon=args.epsilon,
            stitch_tolerance_divisor=args.tolerance_divisor,
            triangulation_engine=args.engine,
            upper_name=args.upper_name,
            lower_name=args.lower_name,
        )
        export_config = ExportConfig(file_type="stl" if args.binary else "stl_ascii")
    except ValueError as exc:
        parser.error(str(exc))

    try:
        result = run_cut(args.mesh, args.output_dir, config, export_config)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    stitch = result.cut.stitch
    print(f"Upper: {result.upper_path} ({result.upper_facet_count} facets)")
    print(f"Lower: {result.lower_path} ({result.lower_facet_count} facets)")
    print(
        f"Cap: {len(result.cut.cap.lower)} triangles, "
        f"{len(stitch.polygon)} outline vertices, "
        f"{'closed' if stitch.closed else 'open'}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
