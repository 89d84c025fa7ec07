"""
Mesh import/export around the cutter.

Reading goes through trimesh and yields the facet soup the cutter works on.
Writing rebuilds a trimesh mesh from facets and runs a light repair pass
before saving:
1. Merge near-duplicate vertices
2. Drop duplicate and degenerate faces
3. Drop faces that share no edge with any other face
4. Fill small residual holes

Binary STL attribute words travel with the faces through every step.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import trimesh

from stlcut.contracts import ExportConfig, Facet, to_vec3

logger = logging.getLogger(__name__)

# face_attributes key the trimesh STL reader files attribute words under
STL_ATTRIBUTE_KEY = "stl"

_STL_HEADER = np.dtype([("header", "S80"), ("count", "<u4")])
_STL_FACET = np.dtype(
    [("normal", "<f4", (3,)), ("vertices", "<f4", (3, 3)), ("attributes", "<u2")]
)


def load_facets(mesh_path) -> List[Facet]:
    """Read a mesh file into facets, in file order."""
    path = Path(mesh_path)
    if not path.is_file():
        raise FileNotFoundError(f"Mesh file not found: {path}")
    try:
        loaded = trimesh.load(str(path), force="mesh", process=False)
    except Exception as exc:
        raise ValueError(f"Could not read mesh {path}: {exc}") from exc

    if isinstance(loaded, trimesh.Scene):
        meshes = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if not meshes:
            raise ValueError(f"Scene has no mesh geometry: {path}")
        loaded = trimesh.util.concatenate(meshes)
    if not isinstance(loaded, trimesh.Trimesh):
        raise ValueError(f"Unsupported mesh type from {path}: {type(loaded).__name__}")
    if len(loaded.faces) == 0:
        raise ValueError(f"Mesh has no triangles: {path}")

    facets = facets_from_mesh(loaded)
    logger.info("Loaded %d facets from %s", len(facets), path.name)
    return facets


def facets_from_mesh(mesh: trimesh.Trimesh) -> List[Facet]:
    triangles = np.asarray(mesh.triangles, dtype=float)
    normals = np.asarray(mesh.face_normals, dtype=float)
    attributes = _attribute_words(mesh)
    return [
        Facet(
            vertices=(to_vec3(tri[0]), to_vec3(tri[1]), to_vec3(tri[2])),
            normal=to_vec3(normal),
            attributes=int(word),
        )
        for tri, normal, word in zip(triangles, normals, attributes)
    ]


def facets_to_mesh(facets: Sequence[Facet]) -> trimesh.Trimesh:
    """Unindexed mesh with three fresh vertices per facet."""
    if not facets:
        return trimesh.Trimesh(
            vertices=np.zeros((0, 3), dtype=float),
            faces=np.zeros((0, 3), dtype=np.int64),
            process=False,
        )
    triangles = np.array([f.vertices for f in facets], dtype=float)
    normals = np.array([f.normal for f in facets], dtype=float)
    words = np.array([f.attributes for f in facets], dtype=np.uint16)
    return trimesh.Trimesh(
        vertices=triangles.reshape((-1, 3)),
        faces=np.arange(len(facets) * 3, dtype=np.int64).reshape((-1, 3)),
        face_normals=normals,
        face_attributes={STL_ATTRIBUTE_KEY: words},
        process=False,
    )


def repair_mesh(
    mesh: trimesh.Trimesh,
    config: Optional[ExportConfig] = None,
) -> Tuple[trimesh.Trimesh, Dict[str, int]]:
    """Return a repaired copy of *mesh* and per-step face counts.

    Attribute words are masked alongside the faces; faces added by hole
    filling get a zero word.
    """
    if config is None:
        config = ExportConfig()

    stats = {"before_faces": int(len(mesh.faces))}
    if len(mesh.faces) == 0:
        stats["after_faces"] = 0
        return mesh.copy(), stats

    words = _attribute_words(mesh)
    # fresh geometry-only copy; words are tracked here until the end
    out = trimesh.Trimesh(
        vertices=np.array(mesh.vertices, dtype=float),
        faces=np.array(mesh.faces, dtype=np.int64),
        face_normals=np.array(mesh.face_normals, dtype=float),
        process=False,
    )

    out.merge_vertices(digits_vertex=config.merge_digits)
    if config.remove_duplicate:
        keep = out.unique_faces()
        out.update_faces(keep)
        words = words[keep]
    if config.remove_degenerate:
        keep = out.nondegenerate_faces()
        out.update_faces(keep)
        words = words[keep]
    stats["after_cleanup_faces"] = int(len(out.faces))

    if config.remove_unconnected and len(out.faces) > 0:
        connected = np.zeros(len(out.faces), dtype=bool)
        connected[np.asarray(out.face_adjacency, dtype=np.int64).reshape(-1)] = True
        stats["unconnected_faces"] = int((~connected).sum())
        out.update_faces(connected)
        words = words[connected]

    if config.fill_holes and len(out.faces) > 0:
        before_fill = len(out.faces)
        trimesh.repair.fill_holes(out)
        stats["filled_faces"] = int(len(out.faces) - before_fill)
        words = np.concatenate([words, np.zeros(len(out.faces) - before_fill, dtype=np.uint16)])

    out.remove_unreferenced_vertices()
    out.face_attributes[STL_ATTRIBUTE_KEY] = words
    stats["after_faces"] = int(len(out.faces))
    return out, stats


def export_facets(
    facets: Sequence[Facet],
    destination,
    config: Optional[ExportConfig] = None,
) -> int:
    """Repair and write *facets*; returns the number of faces written."""
    if config is None:
        config = ExportConfig()
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)

    mesh, stats = repair_mesh(facets_to_mesh(facets), config)
    if len(mesh.faces) == 0:
        logger.warning("Writing empty mesh to %s", path)

    if config.file_type == "stl":
        # written directly so the attribute words survive
        path.write_bytes(_binary_stl(mesh, config.solid_name))
    elif len(mesh.faces) == 0:
        path.write_text(f"solid {config.solid_name}\nendsolid {config.solid_name}\n")
    else:
        mesh.metadata["name"] = config.solid_name
        mesh.export(str(path), file_type=config.file_type)
    logger.info(
        "Wrote %s: %d facets (%d before repair)",
        path,
        stats["after_faces"],
        stats["before_faces"],
    )
    return stats["after_faces"]


def _attribute_words(mesh: trimesh.Trimesh) -> np.ndarray:
    """16-bit STL attribute per face, zeros when the reader kept none."""
    face_attributes = getattr(mesh, "face_attributes", None) or {}
    words = face_attributes.get(STL_ATTRIBUTE_KEY)
    if words is not None:
        words = np.asarray(words).reshape(-1)
        if len(words) == len(mesh.faces):
            return words.astype(np.uint16)
    return np.zeros(len(mesh.faces), dtype=np.uint16)


def _binary_stl(mesh: trimesh.Trimesh, solid_name: str) -> bytes:
    header = np.zeros(1, dtype=_STL_HEADER)
    header["header"] = solid_name.encode("ascii")
    header["count"] = len(mesh.faces)
    records = np.zeros(len(mesh.faces), dtype=_STL_FACET)
    if len(mesh.faces) > 0:
        records["normal"] = mesh.face_normals
        records["vertices"] = mesh.triangles
        records["attributes"] = _attribute_words(mesh)
    return header.tobytes() + records.tobytes()
