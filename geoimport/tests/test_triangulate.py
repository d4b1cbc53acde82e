"""Tests for ear-clipping triangulation."""

import numpy as np
import pytest

from geoimport.triangulate import signed_area, triangles_area, triangulate


SQUARE = [(0, 0), (4, 0), (4, 4), (0, 4)]

# L-shaped footprint, counter-clockwise, area 3
L_SHAPE = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]

# Chevron with a reflex vertex at index 1, area 4
CHEVRON = [(0, 0), (2, 1), (4, 0), (2, 3)]


def _regular_polygon(n, radius=1.0):
    angles = np.linspace(0, 2 * np.pi, n, endpoint=False)
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])


class TestSignedArea:
    def test_ccw_positive(self):
        assert signed_area(SQUARE) == pytest.approx(16.0)

    def test_cw_negative(self):
        assert signed_area(SQUARE[::-1]) == pytest.approx(-16.0)

    def test_too_few_points(self):
        assert signed_area([(0, 0), (1, 1)]) == 0.0

    def test_large_coordinates(self):
        ring = np.array(SQUARE, dtype=np.float64) + 1e7
        assert signed_area(ring) == pytest.approx(16.0)


class TestTriangulate:
    def test_square(self):
        tris = triangulate(SQUARE)
        assert tris == [(0, 1, 2), (0, 2, 3)]
        assert triangles_area(SQUARE, tris) == pytest.approx(16.0)

    def test_square_clockwise_uses_original_indices(self):
        ring = [(0, 0), (0, 4), (4, 4), (4, 0)]
        tris = triangulate(ring)
        assert tris == [(3, 2, 1), (3, 1, 0)]
        assert triangles_area(ring, tris) == pytest.approx(16.0)

    def test_single_triangle(self):
        assert triangulate([(0, 0), (1, 0), (0, 1)]) == [(0, 1, 2)]

    def test_single_triangle_clockwise(self):
        assert triangulate([(0, 0), (0, 1), (1, 0)]) == [(2, 1, 0)]

    def test_concave_l_shape(self):
        tris = triangulate(L_SHAPE)
        assert tris == [(0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 5)]
        assert triangles_area(L_SHAPE, tris) == pytest.approx(3.0)

    def test_reflex_vertex_is_not_clipped_first(self):
        tris = triangulate(CHEVRON)
        assert tris == [(1, 2, 3), (0, 1, 3)]
        assert triangles_area(CHEVRON, tris) == pytest.approx(4.0)

    @pytest.mark.parametrize("ring", [SQUARE, L_SHAPE, CHEVRON])
    def test_winding_independent_coverage(self, ring):
        forward = triangulate(ring)
        reverse_ring = ring[::-1]
        backward = triangulate(reverse_ring)
        assert len(forward) == len(backward) == len(ring) - 2
        assert triangles_area(ring, forward) == pytest.approx(
            triangles_area(reverse_ring, backward))
        assert triangles_area(ring, forward) == pytest.approx(abs(signed_area(ring)))

    def test_reverse_triangles_are_ccw_in_space(self):
        ring = L_SHAPE[::-1]
        xy = np.array(ring, dtype=np.float64)
        for a, b, c in triangulate(ring):
            cross = ((xy[b, 0] - xy[a, 0]) * (xy[c, 1] - xy[a, 1])
                     - (xy[b, 1] - xy[a, 1]) * (xy[c, 0] - xy[a, 0]))
            assert cross > 0

    @pytest.mark.parametrize("n", [5, 8, 24])
    def test_convex_polygon_count_and_coverage(self, n):
        ring = _regular_polygon(n, radius=10.0)
        tris = triangulate(ring)
        assert len(tris) == n - 2
        used = {i for tri in tris for i in tri}
        assert used == set(range(n))
        for tri in tris:
            assert len(set(tri)) == 3
            assert all(0 <= i < n for i in tri)
        assert triangles_area(ring, tris) == pytest.approx(signed_area(ring))

    def test_large_coordinates(self):
        ring = np.array(L_SHAPE, dtype=np.float64) * 10.0 + [4.5e5, 5.8e6]
        tris = triangulate(ring)
        assert len(tris) == 4
        assert triangles_area(ring, tris) == pytest.approx(300.0)

    def test_accepts_numpy_input(self):
        tris = triangulate(np.array(SQUARE, dtype=np.float32))
        assert len(tris) == 2
        assert all(isinstance(i, int) for tri in tris for i in tri)


class TestTriangulateDegenerate:
    @pytest.mark.parametrize("ring", [[], [(0, 0)], [(0, 0), (1, 1)]])
    def test_too_few_points(self, ring):
        assert triangulate(ring) == []

    def test_too_few_points_status(self):
        assert triangulate([(0, 0), (1, 1)], return_status=True) == ([], True)

    def test_collinear_returns_partial(self):
        ring = [(0, 0), (1, 0), (2, 0), (3, 0)]
        tris, complete = triangulate(ring, return_status=True)
        assert tris == []
        assert complete is False

    def test_collinear_does_not_raise(self):
        assert triangulate([(0, 0), (1, 1), (2, 2)]) == []

    def test_complete_status_for_valid_ring(self):
        tris, complete = triangulate(L_SHAPE, return_status=True)
        assert complete is True
        assert len(tris) == len(L_SHAPE) - 2

    def test_partial_result_indices_in_range(self):
        # Bow-tie (self-intersecting)
        ring = [(0, 0), (4, 4), (4, 0), (0, 4)]
        tris, _ = triangulate(ring, return_status=True)
        assert len(tris) <= len(ring) - 2
        for tri in tris:
            assert all(0 <= i < len(ring) for i in tri)

    def test_duplicate_vertex_does_not_hang(self):
        ring = [(0, 0), (4, 0), (4, 0), (4, 4), (0, 4)]
        tris = triangulate(ring)
        assert len(tris) <= len(ring) - 2
