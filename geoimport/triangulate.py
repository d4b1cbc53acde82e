"""Ear-clipping triangulation of simple polygon rings.

Handles a single ring without holes. The ring may be wound either way; it
is traversed counter-clockwise internally, but the returned triangles always
index the caller's original vertex order.
"""

import numpy as np


def signed_area(ring):
    """Signed area of a closed ring via the shoelace formula.

    Accumulated in float64. Positive means counter-clockwise.

    Parameters
    ----------
    ring : array-like
        (N, 2) ring vertices, no closing duplicate required.

    Returns
    -------
    float
    """
    xy = np.asarray(ring, dtype=np.float64).reshape(-1, 2)
    if len(xy) < 3:
        return 0.0
    x = xy[:, 0]
    y = xy[:, 1]
    x_prev = np.roll(x, 1)
    y_prev = np.roll(y, 1)
    return float(np.sum(x_prev * y - x * y_prev) * 0.5)


# Cross product of vectors (b-a) and (c-a), i.e. twice the signed area
# of triangle abc.
def _cross2(ax, ay, bx, by, cx, cy):
    return (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)


def _point_in_tri(px, py, ax, ay, bx, by, cx, cy):
    # Boundary counts as inside.
    d1 = _cross2(px, py, ax, ay, bx, by)
    d2 = _cross2(px, py, bx, by, cx, cy)
    d3 = _cross2(px, py, cx, cy, ax, ay)
    has_neg = (d1 < 0) or (d2 < 0) or (d3 < 0)
    has_pos = (d1 > 0) or (d2 > 0) or (d3 > 0)
    return not (has_neg and has_pos)


def triangulate(ring, return_status=False):
    """Triangulate a simple polygon ring by ear clipping.

    Parameters
    ----------
    ring : array-like
        (N, 2) polygon vertices (no closing duplicate). Either winding.
    return_status : bool, optional
        If True, return ``(triangles, complete)`` where *complete* is False
        when the scan budget ran out before the polygon was fully clipped.
        Default is False (return only triangles).

    Returns
    -------
    list of (int, int, int) or tuple
        Triangle index triples referencing the input ring order. A valid
        simple ring of N points yields N - 2 triangles; fewer than 3 points
        yield an empty list.

    Notes
    -----
    The remaining polygon is kept as a linked list over the
    original indices. The scan restarts at the list head after every
    clipped ear and is bounded by 2N steps in total, so degenerate input
    (collinear runs, self-intersections, slivers) returns a partial
    triangulation instead of looping.
    """
    xy = np.asarray(ring, dtype=np.float64).reshape(-1, 2)
    N = len(xy)
    if N < 3:
        return ([], True) if return_status else []

    xs = xy[:, 0].tolist()
    ys = xy[:, 1].tolist()

    # Counter-clockwise traversal order over original indices
    if signed_area(xy) > 0:
        order = list(range(N))
    else:
        order = [N - 1 - i for i in range(N)]

    nxt = [0] * N
    for k in range(N):
        nxt[order[k]] = order[(k + 1) % N]

    def _is_ear(a, b, c):
        ax, ay = xs[a], ys[a]
        bx, by = xs[b], ys[b]
        cx, cy = xs[c], ys[c]
        if _cross2(ax, ay, bx, by, cx, cy) <= 0:
            return False
        m = nxt[c]
        while m != a:
            if _point_in_tri(xs[m], ys[m], ax, ay, bx, by, cx, cy):
                return False
            m = nxt[m]
        return True

    tris = []
    head = order[0]
    cursor = head
    remaining = N
    budget = 2 * N
    while remaining > 2 and budget > 0:
        budget -= 1
        a = cursor
        b = nxt[a]
        c = nxt[b]
        if _is_ear(a, b, c):
            tris.append((a, b, c))
            # Unlink the ear tip
            nxt[a] = c
            if b == head:
                head = c
            remaining -= 1
            cursor = head
            continue
        cursor = nxt[cursor]

    if return_status:
        return tris, remaining <= 2
    return tris


def triangles_area(ring, triangles):
    """Total unsigned area covered by a list of triangles over *ring*."""
    xy = np.asarray(ring, dtype=np.float64).reshape(-1, 2)
    total = 0.0
    for a, b, c in triangles:
        total += abs(_cross2(xy[a, 0], xy[a, 1], xy[b, 0], xy[b, 1],
                             xy[c, 0], xy[c, 1])) * 0.5
    return total
