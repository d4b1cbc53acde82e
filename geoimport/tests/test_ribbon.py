"""Tests for polyline ribbon meshes."""

import numpy as np
import pytest

from geoimport.mesh import Mesh
from geoimport.ribbon import build_ribbon


STRAIGHT = [(0, 0), (10, 0), (20, 0)]


class TestBuildRibbon:
    def test_straight_line(self):
        mesh = build_ribbon(STRAIGHT, width=2.0)
        assert isinstance(mesh, Mesh)
        assert mesh.vertex_count == 6
        assert mesh.triangle_count == 4
        np.testing.assert_allclose(mesh.vertices[0], [0, 1, 0])
        np.testing.assert_allclose(mesh.vertices[1], [0, -1, 0])
        np.testing.assert_allclose(mesh.vertices[4], [20, 1, 0])
        np.testing.assert_allclose(mesh.vertices[5], [20, -1, 0])

    def test_triangle_winding(self):
        mesh = build_ribbon(STRAIGHT, width=2.0)
        np.testing.assert_array_equal(mesh.triangles, [
            [0, 2, 1], [2, 3, 1],
            [2, 4, 3], [4, 5, 3],
        ])

    def test_uvs(self):
        mesh = build_ribbon(STRAIGHT, width=2.0)
        np.testing.assert_allclose(mesh.uvs, [
            [0, 0], [1, 0],
            [0, 0.5], [1, 0.5],
            [0, 1], [1, 1],
        ])

    def test_z_is_zero(self):
        mesh = build_ribbon([(0, 0), (3, 4), (6, 1), (9, 9)], width=1.5)
        assert np.all(mesh.vertices[:, 2] == 0)

    @pytest.mark.parametrize("n", [2, 3, 7, 20])
    def test_counts(self, n):
        rng = np.random.default_rng(n)
        pts = np.cumsum(rng.uniform(1, 5, size=(n, 2)), axis=0)
        mesh = build_ribbon(pts, width=3.0)
        assert mesh.vertex_count == 2 * n
        assert mesh.triangle_count == 2 * (n - 1)
        assert mesh.triangles.min() >= 0
        assert mesh.triangles.max() < mesh.vertex_count
        assert mesh.uvs.shape == (2 * n, 2)

    def test_rails_are_width_apart(self):
        pts = [(0, 0), (3, 4), (10, 4)]
        mesh = build_ribbon(pts, width=5.0)
        left = mesh.vertices[0::2, :2]
        right = mesh.vertices[1::2, :2]
        np.testing.assert_allclose(np.linalg.norm(left - right, axis=1), 5.0, rtol=1e-5)
        np.testing.assert_allclose((left + right) / 2, pts, atol=1e-5)

    def test_right_angle_uses_averaged_tangent(self):
        mesh = build_ribbon([(0, 0), (10, 0), (10, 10)], width=2.0)
        h = np.sqrt(0.5)
        np.testing.assert_allclose(mesh.vertices[2], [10 - h, h, 0], atol=1e-5)
        np.testing.assert_allclose(mesh.vertices[3], [10 + h, -h, 0], atol=1e-5)

    def test_reversal_falls_back_to_outgoing_direction(self):
        mesh = build_ribbon([(0, 0), (10, 0), (0, 0)], width=2.0)
        # Outgoing direction is (-1, 0), so the left rail points to -y
        np.testing.assert_allclose(mesh.vertices[2], [10, -1, 0], atol=1e-6)
        np.testing.assert_allclose(mesh.vertices[3], [10, 1, 0], atol=1e-6)
        assert np.all(np.isfinite(mesh.vertices))

    def test_duplicate_points_stay_finite(self):
        mesh = build_ribbon([(0, 0), (0, 0), (10, 0)], width=2.0)
        assert mesh.vertex_count == 6
        assert np.all(np.isfinite(mesh.vertices))

    def test_normals_perpendicular_to_plane(self):
        mesh = build_ribbon(STRAIGHT, width=2.0)
        np.testing.assert_allclose(mesh.normals, np.tile([0, 0, -1], (6, 1)), atol=1e-6)

    def test_bounds(self):
        lo, hi = build_ribbon(STRAIGHT, width=2.0).bounds
        np.testing.assert_allclose(lo, [0, -1, 0])
        np.testing.assert_allclose(hi, [20, 1, 0])

    def test_closed_ring(self):
        square = [(0, 0), (10, 0), (10, 10), (0, 10)]
        mesh = build_ribbon(square, width=1.0, closed=True)
        # 4 pts + 1 closing -> 10 verts, 4 segments -> 8 tris
        assert mesh.vertex_count == 10
        assert mesh.triangle_count == 8

    def test_closed_ring_already_closed(self):
        square = [(0, 0), (10, 0), (10, 10), (0, 10), (0, 0)]
        mesh = build_ribbon(square, width=1.0, closed=True)
        assert mesh.vertex_count == 10

    def test_extra_columns_ignored(self):
        mesh = build_ribbon([(0, 0, 5), (10, 0, 5)], width=2.0)
        np.testing.assert_allclose(mesh.vertices[0], [0, 1, 0])


class TestBuildRibbonDegenerate:
    def test_none(self):
        mesh = build_ribbon(None, width=2.0)
        assert mesh.vertex_count == 0
        assert mesh.triangle_count == 0

    def test_empty(self):
        assert build_ribbon([], width=2.0).is_empty

    def test_single_point(self):
        mesh = build_ribbon([(5, 5)], width=2.0)
        assert mesh.vertex_count == 0
        assert mesh.triangle_count == 0

    def test_flat_single_point(self):
        assert build_ribbon(np.array([5.0, 5.0]), width=2.0).is_empty
