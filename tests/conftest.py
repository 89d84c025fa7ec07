"""
Shared test fixtures for plane-cutting tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stlcut.mesh_io import facets_from_mesh


def signed_volume(facets) -> float:
    """Volume enclosed by a facet soup (divergence theorem, winding-aware)."""
    if not facets:
        return 0.0
    tris = np.array([f.vertices for f in facets], dtype=float)
    return float(np.einsum("ij,ij->i", tris[:, 0], np.cross(tris[:, 1], tris[:, 2])).sum() / 6.0)


def facet_area(facet) -> float:
    a, b, c = (np.asarray(v, dtype=float) for v in facet.vertices)
    return float(np.linalg.norm(np.cross(b - a, c - a)) / 2.0)


@pytest.fixture
def cube_mesh():
    """Unit cube spanning [0, 1] on every axis (8 vertices, 12 triangles)."""
    mesh = trimesh.creation.box(extents=[1.0, 1.0, 1.0])
    mesh.apply_translation([0.5, 0.5, 0.5])
    return mesh


@pytest.fixture
def cube_facets(cube_mesh):
    return facets_from_mesh(cube_mesh)


@pytest.fixture
def cube_mesh_file(cube_mesh, tmp_path: Path) -> str:
    path = tmp_path / "cube.stl"
    cube_mesh.export(str(path))
    return str(path)


@pytest.fixture
def cylinder_facets():
    """Cylinder (radius 10, height 40) standing on z=0."""
    mesh = trimesh.creation.cylinder(radius=10.0, height=40.0, sections=24)
    mesh.apply_translation([0.0, 0.0, 20.0])
    return facets_from_mesh(mesh)
