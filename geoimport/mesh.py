"""Mesh container, derived attributes, and STL/OBJ export.

This module provides the plain value object that every geometry builder in
geoimport returns, helpers that recompute derived attributes (bounds and
vertex normals) from the raw buffers, and writers that serialize a mesh to
binary STL or Wavefront OBJ.
"""

import numba as nb
import numpy as np
from pathlib import Path


class Mesh:
    """Triangle mesh made of vertex, index and optional UV buffers.

    Parameters
    ----------
    vertices : array-like
        (V, 3) vertex positions. Stored as float32.
    triangles : array-like
        (T, 3) vertex indices per triangle. Stored as int32.
    uvs : array-like, optional
        (V, 2) texture coordinates. Stored as float32, or None.

    Notes
    -----
    Bounds and normals are not stored; they are recomputed from the
    buffers on each access via :func:`compute_bounds` and
    :func:`compute_normals`.
    """

    __slots__ = ("vertices", "triangles", "uvs")

    def __init__(self, vertices, triangles, uvs=None):
        self.vertices = np.asarray(vertices, dtype=np.float32).reshape(-1, 3)
        self.triangles = np.asarray(triangles, dtype=np.int32).reshape(-1, 3)
        if uvs is not None:
            uvs = np.asarray(uvs, dtype=np.float32).reshape(-1, 2)
        self.uvs = uvs

    @classmethod
    def empty(cls):
        """Return a mesh with no vertices and no triangles."""
        return cls(np.empty((0, 3), dtype=np.float32),
                   np.empty((0, 3), dtype=np.int32))

    @property
    def vertex_count(self):
        return len(self.vertices)

    @property
    def triangle_count(self):
        return len(self.triangles)

    @property
    def is_empty(self):
        return self.vertex_count == 0 or self.triangle_count == 0

    @property
    def bounds(self):
        return compute_bounds(self.vertices)

    @property
    def normals(self):
        return compute_normals(self.vertices, self.triangles)

    def flat_vertices(self):
        """Flat float32 buffer [x0, y0, z0, x1, ...]."""
        return self.vertices.ravel()

    def flat_indices(self):
        """Flat int32 buffer [i0, i1, i2, i3, ...]."""
        return self.triangles.ravel()

    def __repr__(self):
        return (f"Mesh(vertices={self.vertex_count}, "
                f"triangles={self.triangle_count}, "
                f"uvs={self.uvs is not None})")


def compute_bounds(vertices):
    """Axis-aligned bounding box of a vertex buffer.

    Parameters
    ----------
    vertices : array-like
        (V, 3) vertex positions.

    Returns
    -------
    tuple of np.ndarray
        ``(min_corner, max_corner)``, each of shape (3,). Both are zero
        vectors for an empty buffer.
    """
    verts = np.asarray(vertices, dtype=np.float32).reshape(-1, 3)
    if len(verts) == 0:
        return np.zeros(3, dtype=np.float32), np.zeros(3, dtype=np.float32)
    return verts.min(axis=0), verts.max(axis=0)


def compute_normals(vertices, triangles):
    """Area-weighted per-vertex normals.

    Each triangle contributes its (unnormalized) face normal to its three
    vertices; the sums are then normalized. Vertices not referenced by any
    triangle, or only by zero-area triangles, get a zero normal.

    Parameters
    ----------
    vertices : array-like
        (V, 3) vertex positions.
    triangles : array-like
        (T, 3) vertex indices.

    Returns
    -------
    np.ndarray
        (V, 3) float32 unit normals.
    """
    verts = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    normals = np.zeros_like(verts)
    if len(tris) == 0:
        return normals.astype(np.float32)

    v0 = verts[tris[:, 0]]
    v1 = verts[tris[:, 1]]
    v2 = verts[tris[:, 2]]
    face = np.cross(v1 - v0, v2 - v0)
    for k in range(3):
        np.add.at(normals, tris[:, k], face)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    normals = np.where(lengths > 1e-12, normals / np.maximum(lengths, 1e-12), 0.0)
    return normals.astype(np.float32)


def merge_meshes(meshes):
    """Concatenate meshes into one, offsetting triangle indices.

    Empty meshes are skipped. UVs are kept only when every merged mesh
    carries them.

    Parameters
    ----------
    meshes : iterable of Mesh

    Returns
    -------
    Mesh
    """
    all_verts = []
    all_tris = []
    all_uvs = []
    vert_offset = 0

    for m in meshes:
        if m.is_empty:
            continue
        all_verts.append(m.vertices)
        all_tris.append(m.triangles + vert_offset)
        all_uvs.append(m.uvs)
        vert_offset += m.vertex_count

    if not all_verts:
        return Mesh.empty()

    uvs = None
    if all(u is not None for u in all_uvs):
        uvs = np.concatenate(all_uvs)

    return Mesh(np.concatenate(all_verts), np.concatenate(all_tris), uvs)


@nb.njit
def _fill_stl_contents(content, verts, triangles, normals, numTris):
    """Fill STL binary content from mesh data."""
    v = np.empty(12, np.float32)
    pad = np.zeros(2, np.uint8)
    for i in range(numTris):
        t0 = triangles[3 * i + 0]
        t1 = triangles[3 * i + 1]
        t2 = triangles[3 * i + 2]
        # Facet normal
        v[0] = normals[3 * i + 0]
        v[1] = normals[3 * i + 1]
        v[2] = normals[3 * i + 2]
        # Vertex 0
        v[3] = verts[3 * t0 + 0]
        v[4] = verts[3 * t0 + 1]
        v[5] = verts[3 * t0 + 2]
        # Vertex 1
        v[6] = verts[3 * t1 + 0]
        v[7] = verts[3 * t1 + 1]
        v[8] = verts[3 * t1 + 2]
        # Vertex 2
        v[9] = verts[3 * t2 + 0]
        v[10] = verts[3 * t2 + 1]
        v[11] = verts[3 * t2 + 2]

        offset = 50 * i
        content[offset:offset + 48] = v.view(np.uint8)
        content[offset + 48:offset + 50] = pad


def _face_normals(mesh):
    """Unit facet normals, (T, 3) float32."""
    if mesh.triangle_count == 0:
        return np.empty((0, 3), dtype=np.float32)
    verts = mesh.vertices.astype(np.float64)
    tris = mesh.triangles
    face = np.cross(verts[tris[:, 1]] - verts[tris[:, 0]],
                    verts[tris[:, 2]] - verts[tris[:, 0]])
    lengths = np.linalg.norm(face, axis=1, keepdims=True)
    face = np.where(lengths > 1e-12, face / np.maximum(lengths, 1e-12), 0.0)
    return face.astype(np.float32)


def write_stl(filename, mesh):
    """Save a mesh to a binary STL file.

    Parameters
    ----------
    filename : str or Path
        Output file path. Should end with '.stl'.
    mesh : Mesh
        Mesh to write. UVs are not representable in STL and are dropped.
    """
    header = np.zeros(80, np.uint8)
    nf = np.empty(1, np.uint32)
    numTris = mesh.triangle_count
    nf[0] = numTris

    with open(filename, 'wb') as f:
        f.write(header.tobytes())
        f.write(nf.tobytes())

        # Size of 1 triangle in STL is 50 bytes:
        # 12 floats (each 4 bytes) = 48 bytes + 2 bytes padding
        content = np.empty(numTris * 50, np.uint8)
        _fill_stl_contents(content,
                           np.ascontiguousarray(mesh.flat_vertices()),
                           np.ascontiguousarray(mesh.flat_indices()),
                           np.ascontiguousarray(_face_normals(mesh).ravel()),
                           numTris)
        f.write(content.tobytes())


def write_obj(filename, mesh):
    """Save a mesh to a Wavefront OBJ file.

    Writes ``v`` records for positions, ``vt`` records when the mesh has
    UVs, and 1-based ``f`` records (``f a/a b/b c/c`` when UVs are present).

    Parameters
    ----------
    filename : str or Path
        Output file path. Should end with '.obj'.
    mesh : Mesh
        Mesh to write.
    """
    has_uv = mesh.uvs is not None
    lines = [f"# {Path(filename).stem}"]
    for x, y, z in mesh.vertices:
        lines.append(f"v {x:.6f} {y:.6f} {z:.6f}")
    if has_uv:
        for u, v in mesh.uvs:
            lines.append(f"vt {u:.6f} {v:.6f}")
    # OBJ uses 1-based indexing
    for a, b, c in mesh.triangles + 1:
        if has_uv:
            lines.append(f"f {a}/{a} {b}/{b} {c}/{c}")
        else:
            lines.append(f"f {a} {b} {c}")

    with open(filename, 'w') as f:
        f.write("\n".join(lines) + "\n")
