"""
Cutting plane primitive.

A plane is stored in equation form ``n . p + d = 0``. Alongside it we keep an
orthonormal in-plane basis ``(a, b)`` so that points on the plane can be
flattened into a local 2D frame for triangulation and lifted back afterwards.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from stlcut.contracts import Position, Vec2, Vec3, to_vec2, to_vec3


class CutPlane:
    """Plane ``x*X + y*Y + z*Z + d = 0`` with a local 2D frame.

    Immutable after construction. ``epsilon`` widens the "on" band to a slab
    of half-width ``epsilon`` (in length units) around the plane; the default
    of ``0.0`` means only points that evaluate to exactly zero are on it.
    """

    def __init__(self, x: float, y: float, z: float, d: float, epsilon: float = 0.0):
        normal = np.array([x, y, z], dtype=float)
        if not np.all(np.isfinite(normal)) or not np.any(normal):
            raise ValueError(f"Plane normal must be finite and non-zero, got {normal.tolist()}")
        if epsilon < 0.0:
            raise ValueError(f"epsilon must be >= 0, got {epsilon}")

        self._normal = normal
        self._normal.setflags(write=False)
        self._d = float(d)
        self._norm = float(np.linalg.norm(normal))
        self._epsilon = float(epsilon)
        self._a, self._b = _plane_basis(float(x), float(y), float(z))
        # +1 when (a, b, n) is right-handed, -1 otherwise
        self._handedness = 1.0 if float(np.dot(np.cross(self._a, self._b), normal)) > 0 else -1.0

    @classmethod
    def from_coefficients(cls, coefficients: Sequence[float], epsilon: float = 0.0) -> "CutPlane":
        x, y, z, d = coefficients
        return cls(x, y, z, d, epsilon=epsilon)

    def __repr__(self) -> str:
        x, y, z = self._normal.tolist()
        return f"CutPlane({x}, {y}, {z}, {self._d}, epsilon={self._epsilon})"

    @property
    def normal(self) -> np.ndarray:
        return self._normal

    @property
    def d(self) -> float:
        return self._d

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def unit_normal(self) -> Vec3:
        return to_vec3(self._normal / self._norm)

    @property
    def basis(self) -> Tuple[np.ndarray, np.ndarray]:
        """In-plane basis vectors ``(a, b)``."""
        return self._a.copy(), self._b.copy()

    @property
    def handedness(self) -> float:
        return self._handedness

    def signed_distance(self, vertex: Sequence[float]) -> float:
        """Raw plane equation value ``n . v + d`` (not divided by ``|n|``)."""
        return float(np.dot(self._normal, np.asarray(vertex, dtype=float)) + self._d)

    def classify(self, vertex: Sequence[float]) -> Position:
        value = self.signed_distance(vertex)
        band = self._epsilon * self._norm
        if value > band:
            return Position.ABOVE
        if value < -band:
            return Position.BELOW
        return Position.ON

    def intersect(self, p: Sequence[float], q: Sequence[float]) -> Vec3:
        """Point where the line through ``p`` and ``q`` meets the plane.

        A segment parallel to the plane yields non-finite coordinates; callers
        only ask for segments whose ends lie on opposite sides.
        """
        p = np.asarray(p, dtype=float)
        pq = np.asarray(q, dtype=float) - p
        with np.errstate(divide="ignore", invalid="ignore"):
            t = -(np.dot(self._normal, p) + self._d) / np.dot(self._normal, pq)
            return to_vec3(p + pq * t)

    def to_2d(self, vertex: Sequence[float], origin: Sequence[float]) -> Vec2:
        ov = np.asarray(vertex, dtype=float) - np.asarray(origin, dtype=float)
        return to_vec2((np.dot(self._a, ov), np.dot(self._b, ov)))

    def to_3d(self, point: Sequence[float], origin: Sequence[float]) -> Vec3:
        return to_vec3(
            np.asarray(origin, dtype=float) + self._a * float(point[0]) + self._b * float(point[1])
        )


def _plane_basis(x: float, y: float, z: float) -> Tuple[np.ndarray, np.ndarray]:
    """Orthonormal ``(a, b)`` perpendicular to ``(x, y, z)``.

    Axis-aligned normals get fixed axes; everything else goes through
    Gram-Schmidt on ``(y, -x, 0)`` and ``(0, z, -y)``.
    """
    if x == 0 and y == 0:
        return np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0])
    if y == 0 and z == 0:
        return np.array([0.0, 1.0, 0.0]), np.array([0.0, 0.0, 1.0])
    if x == 0 and z == 0:
        return np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, 1.0])

    a = _unit(np.array([y, -x, 0.0]))
    b = np.array([0.0, z, -y])
    b = b - a * float(np.dot(a, b))
    if float(np.linalg.norm(b)) < 1e-12:
        # y == 0: (0, z, 0) is parallel to a
        n = _unit(np.array([x, y, z]))
        b = np.cross(n, a)
    return a, _unit(b)


def _unit(vec: np.ndarray) -> np.ndarray:
    return vec / float(np.linalg.norm(vec))
