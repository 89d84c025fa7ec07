"""Contracts for cutting a closed triangle mesh by a plane."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

EXPORT_FILE_TYPES = ("stl_ascii", "stl")


class Position(Enum):
    """Where a vertex lies relative to the cutting plane."""

    ABOVE = "above"
    ON = "on"
    BELOW = "below"


@dataclass(frozen=True)
class Facet:
    """One mesh triangle: three vertices in winding order, a normal and the
    opaque 16-bit attribute word carried by binary STL files."""

    vertices: Tuple[Vec3, Vec3, Vec3]
    normal: Vec3
    attributes: int = 0

    def derive(self, a: Vec3, b: Vec3, c: Vec3) -> "Facet":
        """Partial facet of this one; normal and attributes are kept as-is."""
        return Facet(vertices=(a, b, c), normal=self.normal, attributes=self.attributes)


@dataclass(frozen=True)
class BorderEdge:
    """Directed edge of the hole left in the mesh by the cut."""

    origin: Vec3
    destination: Vec3


@dataclass(frozen=True)
class CutConfig:
    """Configuration for splitting a mesh into upper and lower halves."""

    plane: Tuple[float, float, float, float] = (0.0, 0.0, 1.0, 0.0)
    epsilon: float = 0.0
    stitch_tolerance_divisor: float = 4.0
    edge_key_digits: int = 9
    triangulation_engine: str = "earcut"
    upper_name: str = "upper.stl"
    lower_name: str = "lower.stl"

    def __post_init__(self):
        if len(self.plane) != 4:
            raise ValueError(f"Plane needs 4 coefficients (a, b, c, d), got {self.plane}")
        if self.epsilon < 0.0:
            raise ValueError(f"epsilon must be >= 0, got {self.epsilon}")
        if self.stitch_tolerance_divisor <= 0.0:
            raise ValueError(
                f"stitch_tolerance_divisor must be > 0, got {self.stitch_tolerance_divisor}"
            )


@dataclass(frozen=True)
class ExportConfig:
    """Repair and writer settings applied to each exported half."""

    merge_digits: int = 7
    remove_degenerate: bool = True
    remove_duplicate: bool = True
    remove_unconnected: bool = True
    fill_holes: bool = True
    file_type: str = "stl_ascii"
    solid_name: str = "stlcut"

    def __post_init__(self):
        if self.file_type not in EXPORT_FILE_TYPES:
            raise ValueError(
                f"Unsupported export file type {self.file_type!r}; "
                f"expected one of {EXPORT_FILE_TYPES}"
            )


@dataclass
class StitchResult:
    """Ordered 2D outline of the cut, in the plane's local frame."""

    polygon: List[Vec2]
    origin: Optional[Vec3]
    tolerance: float
    closed: bool
    unmatched_edges: List[Tuple[Vec2, Vec2]] = field(default_factory=list)
    skipped_edges: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.polygon


@dataclass
class CapResult:
    """Cap triangles for both halves, already oriented outward."""

    upper: List[Facet] = field(default_factory=list)
    lower: List[Facet] = field(default_factory=list)
    skipped_triangles: int = 0


@dataclass
class CutResult:
    """In-memory result of one cut."""

    upper: List[Facet]
    lower: List[Facet]
    border_edge_count: int
    stitch: StitchResult
    cap: CapResult
    case_counts: Dict[str, int] = field(default_factory=dict)
    debug: Dict[str, object] = field(default_factory=dict)


@dataclass
class CutRunResult:
    """Result of a file-to-file cut."""

    input_path: Path
    upper_path: Path
    lower_path: Path
    upper_facet_count: int
    lower_facet_count: int
    cut: CutResult


def to_vec3(values: Sequence[float]) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


def to_vec2(values: Sequence[float]) -> Vec2:
    return (float(values[0]), float(values[1]))
