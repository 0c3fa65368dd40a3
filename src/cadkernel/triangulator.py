"""Triangulation of planar loops for sweep and extrusion caps.

We delegate to ``mapbox-earcut`` (the fast ear clipping implementation
used by Mapbox GL) to keep the logic compact and reliable.  The helper
here drops repeated points, hands the loop to earcut and maps the
resulting indices back onto the caller's original ordering, so the
triangles can reference vertices already emitted into a mesh buffer.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

try:
    import mapbox_earcut as _earcut
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "mapbox-earcut must be installed to triangulate sweep caps"
    ) from exc

from cadkernel.geometry_utils import epsilon, signed_area2

Point2D = Tuple[float, float]
IndexTriangle = Tuple[int, int, int]


def triangulate_loop(loop: Sequence[Sequence[float]], *, ccw: bool = True) -> List[IndexTriangle]:
    """Return index triangles covering the simple polygon ``loop``.

    Indices refer to positions in ``loop``.  Consecutive duplicate points
    (and a closing point equal to the first) are ignored.  Every triangle
    is wound counter-clockwise when ``ccw`` is true, clockwise otherwise.
    Loops with fewer than three distinct points give an empty list.
    """

    kept = _distinct_indices(loop)
    if len(kept) < 3:
        return []

    vertices = np.asarray([(float(loop[i][0]), float(loop[i][1])) for i in kept],
                          dtype=np.float64)
    rings = np.asarray([len(kept)], dtype=np.uint32)
    indices = _earcut.triangulate_float64(vertices, rings)

    triangles: List[IndexTriangle] = []
    for i in range(0, len(indices), 3):
        a, b, c = int(indices[i]), int(indices[i + 1]), int(indices[i + 2])
        area = signed_area2([vertices[a], vertices[b], vertices[c]])
        if (area < 0) == ccw:
            b, c = c, b
        triangles.append((kept[a], kept[b], kept[c]))
    return triangles


def _distinct_indices(points: Sequence[Sequence[float]]) -> List[int]:
    kept: List[int] = []
    for i, pt in enumerate(points):
        if kept and _near(points[kept[-1]], pt):
            continue
        kept.append(i)
    if len(kept) > 1 and _near(points[kept[0]], points[kept[-1]]):
        kept.pop()
    return kept


def _near(p1: Sequence[float], p2: Sequence[float]) -> bool:
    return abs(p1[0] - p2[0]) <= epsilon and abs(p1[1] - p2[1]) <= epsilon


__all__ = ['triangulate_loop']
