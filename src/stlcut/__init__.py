"""Public API for cutting a closed triangle mesh by a plane."""

from stlcut.contracts import CutConfig, CutResult, CutRunResult, ExportConfig, Facet
from stlcut.pipeline import cut_facets, run_cut
from stlcut.plane import CutPlane

__all__ = [
    "CutConfig",
    "CutPlane",
    "CutResult",
    "CutRunResult",
    "ExportConfig",
    "Facet",
    "cut_facets",
    "run_cut",
]
