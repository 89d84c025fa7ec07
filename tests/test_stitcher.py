"""Tests for border stitching."""
import logging
import random

import numpy as np
import pytest

from stlcut.contracts import BorderEdge
from stlcut.plane import CutPlane
from stlcut.stitcher import compute_tolerance, stitch_border

PLANE = CutPlane(0, 0, 1, -0.5)


def _loop_edges(points, z=0.5):
    ring = [(float(x), float(y), z) for x, y in points]
    return [BorderEdge(ring[i], ring[(i + 1) % len(ring)]) for i in range(len(ring))]


SQUARE = [(0, 0), (1, 0), (1, 1), (0, 1)]
L_SHAPE = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]


def _as_3d(result, plane=PLANE):
    return [plane.to_3d(p, result.origin) for p in result.polygon]


def _same_cycle(points, expected):
    """True when ``points`` walks ``expected`` in either direction."""
    pts = [tuple(np.round(p, 9)) for p in points]
    exp = [tuple(np.round(p, 9)) for p in expected]
    if len(pts) != len(exp) or pts[0] not in exp:
        return False
    start = exp.index(pts[0])
    forward = exp[start:] + exp[:start]
    backward = [forward[0]] + forward[1:][::-1]
    return pts == forward or pts == backward


class TestStitchBorder:
    """Reconstruction of a single loop."""

    def test_square_loop(self):
        result = stitch_border(_loop_edges(SQUARE), PLANE)
        assert result.closed is True
        assert len(result.polygon) == 4
        assert result.polygon[0] != result.polygon[-1]
        assert result.unmatched_edges == []
        assert _same_cycle(_as_3d(result), [(x, y, 0.5) for x, y in SQUARE])

    def test_origin_is_first_edge_origin(self):
        edges = _loop_edges(SQUARE)
        result = stitch_border(edges, PLANE)
        assert result.origin == edges[0].origin
        assert result.polygon[0] == (0.0, 0.0)

    def test_shuffled_and_reversed_edges(self):
        edges = _loop_edges(L_SHAPE)
        rng = random.Random(3)
        rng.shuffle(edges)
        edges = [
            BorderEdge(e.destination, e.origin) if i % 2 else e for i, e in enumerate(edges)
        ]
        result = stitch_border(edges, PLANE)
        assert result.closed is True
        assert len(result.polygon) == len(L_SHAPE)
        assert _same_cycle(_as_3d(result), [(x, y, 0.5) for x, y in L_SHAPE])

    def test_matches_within_tolerance(self):
        jitter = 1e-7
        ring = [(0.0, 0.0, 0.5), (1.0, 0.0, 0.5), (1.0, 1.0, 0.5), (0.0, 1.0, 0.5)]
        edges = []
        for i in range(4):
            a = ring[i]
            b = ring[(i + 1) % 4]
            edges.append(BorderEdge(a, (b[0] + jitter, b[1] - jitter, 0.5)))
        result = stitch_border(edges, PLANE)
        assert result.closed is True
        assert len(result.polygon) == 4

    def test_oblique_plane(self):
        plane = CutPlane(1, 1, 1, -1.5)
        ring = [
            (1.0, 0.5, 0.0),
            (0.5, 1.0, 0.0),
            (0.0, 1.0, 0.5),
            (0.0, 0.5, 1.0),
            (0.5, 0.0, 1.0),
            (1.0, 0.0, 0.5),
        ]
        edges = [BorderEdge(ring[i], ring[(i + 1) % 6]) for i in range(6)]
        result = stitch_border(edges, plane)
        assert result.closed is True
        assert len(result.polygon) == 6
        assert _same_cycle(_as_3d(result, plane), ring)

    def test_tolerance_is_shortest_edge_over_divisor(self):
        points = [(0, 0), (4, 0), (4, 1), (0, 1)]
        result = stitch_border(_loop_edges(points), PLANE)
        assert result.tolerance == pytest.approx(0.25)
        result = stitch_border(_loop_edges(points), PLANE, tolerance_divisor=10.0)
        assert result.tolerance == pytest.approx(0.1)

    def test_compute_tolerance(self):
        edges = [((0.0, 0.0), (3.0, 4.0)), ((0.0, 0.0), (0.0, 2.0))]
        assert compute_tolerance(edges) == pytest.approx(0.5)
        assert compute_tolerance(edges, 2.0) == pytest.approx(1.0)

    def test_invalid_divisor(self):
        with pytest.raises(ValueError):
            stitch_border(_loop_edges(SQUARE), PLANE, tolerance_divisor=0.0)


class TestStitchBoundaries:
    """Empty, open and multi-loop inputs."""

    def test_empty_border(self):
        result = stitch_border([], PLANE)
        assert result.is_empty
        assert result.origin is None
        assert result.closed is False
        assert result.unmatched_edges == []

    def test_open_chain_is_reported(self, caplog):
        edges = _loop_edges(SQUARE)[:3]
        with caplog.at_level(logging.WARNING, logger="stlcut.stitcher"):
            result = stitch_border(edges, PLANE)
        assert result.closed is False
        assert len(result.polygon) == 4
        assert "not closed" in caplog.text

    def test_second_loop_is_left_unmatched(self, caplog):
        first = _loop_edges(SQUARE)
        second = _loop_edges([(5, 5), (6, 5), (6, 6), (5, 6)])
        with caplog.at_level(logging.WARNING, logger="stlcut.stitcher"):
            result = stitch_border(first + second, PLANE)
        assert result.closed is True
        assert len(result.polygon) == 4
        assert len(result.unmatched_edges) == 4
        assert "unmatched" in caplog.text

    def test_degenerate_edges_are_skipped(self, caplog):
        nan = float("nan")
        edges = _loop_edges(SQUARE) + [
            BorderEdge((0.3, 0.3, 0.5), (0.3, 0.3, 0.5)),
            BorderEdge((nan, nan, nan), (0.0, 0.0, 0.5)),
        ]
        with caplog.at_level(logging.WARNING, logger="stlcut.stitcher"):
            result = stitch_border(edges, PLANE)
        assert result.skipped_edges == 2
        assert result.closed is True
        assert len(result.polygon) == 4
        assert "degenerate" in caplog.text

    def test_non_finite_first_edge_does_not_set_origin(self, caplog):
        nan = float("nan")
        loop = _loop_edges(SQUARE)
        edges = [BorderEdge((nan, nan, nan), (0.0, 0.0, 0.5))] + loop
        with caplog.at_level(logging.WARNING, logger="stlcut.stitcher"):
            result = stitch_border(edges, PLANE)
        assert result.origin == loop[0].origin
        assert result.skipped_edges == 1
        assert result.closed is True
        assert len(result.polygon) == 4
        assert _same_cycle(_as_3d(result), [(x, y, 0.5) for x, y in SQUARE])

    def test_only_degenerate_edges(self):
        edge = BorderEdge((0.3, 0.3, 0.5), (0.3, 0.3, 0.5))
        result = stitch_border([edge], PLANE)
        assert result.is_empty
        assert result.skipped_edges == 1
