"""Constant-width ribbon meshes along a 2D polyline (roads, paths)."""

import numpy as np

from .mesh import Mesh


def _normalize(v):
    """Row-wise unit vectors; rows shorter than 1e-5 become zero."""
    lengths = np.linalg.norm(v, axis=1, keepdims=True)
    return np.where(lengths > 1e-5, v / np.maximum(lengths, 1e-5), 0.0)


def build_ribbon(points, width, closed=False):
    """Build a flat quad-strip mesh of constant width along a polyline.

    Parameters
    ----------
    points : array-like or None
        (N, 2) centerline positions.
    width : float
        Total ribbon width; each rail is offset by ``width / 2``.
    closed : bool, optional
        If True, connect the last point back to the first (for polygon
        outlines). Default is False.

    Returns
    -------
    Mesh
        2N vertices at z=0 (left rail at even indices, right rail at odd),
        UVs ``(0, v)`` / ``(1, v)`` with v running 0..1 along the strip,
        and 2(N-1) triangles. An empty mesh if fewer than 2 points are
        given.
    """
    if points is None:
        return Mesh.empty()
    pts = np.asarray(points, dtype=np.float64)
    if pts.size == 0:
        return Mesh.empty()
    if pts.ndim == 1:
        pts = pts.reshape(1, -1)
    pts = pts[:, :2]
    N = len(pts)
    if N < 2:
        return Mesh.empty()

    if closed and N > 2:
        if not np.allclose(pts[0], pts[-1], atol=1e-3):
            pts = np.vstack([pts, pts[0:1]])
            N = len(pts)

    # Tangent at each point: forward/backward at the ends, averaged
    # incoming/outgoing direction in between
    seg_dir = _normalize(pts[1:] - pts[:-1])
    tangents = np.empty((N, 2), dtype=np.float64)
    tangents[0] = seg_dir[0]
    tangents[-1] = seg_dir[-1]
    if N > 2:
        incoming = seg_dir[:-1]
        outgoing = seg_dir[1:]
        avg = _normalize(incoming + outgoing)
        # Near-reversal: the average vanishes, use the outgoing segment
        sharp = np.sum(avg * avg, axis=1) < 1e-6
        avg[sharp] = outgoing[sharp]
        tangents[1:-1] = avg

    # Perpendicular in XY plane (rotate 90 degrees)
    perp = np.empty_like(tangents)
    perp[:, 0] = -tangents[:, 1]
    perp[:, 1] = tangents[:, 0]

    half = width * 0.5
    verts = np.zeros((N * 2, 3), dtype=np.float64)
    verts[0::2, :2] = pts + half * perp
    verts[1::2, :2] = pts - half * perp

    v = np.arange(N, dtype=np.float64) / (N - 1)
    uvs = np.empty((N * 2, 2), dtype=np.float64)
    uvs[0::2, 0] = 0.0
    uvs[1::2, 0] = 1.0
    uvs[0::2, 1] = v
    uvs[1::2, 1] = v

    # Quad strip: two triangles per segment
    base = np.arange(N - 1, dtype=np.int32) * 2
    tris = np.empty(((N - 1) * 2, 3), dtype=np.int32)
    tris[0::2] = np.column_stack([base, base + 2, base + 1])
    tris[1::2] = np.column_stack([base + 2, base + 3, base + 1])

    return Mesh(verts, tris, uvs)
