"""Conversion between :class:`~cadkernel.mesh.Mesh` buffers and BSP polygons."""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

import numpy as np

from cadkernel.boolean.bsp import Polygon, Vertex
from cadkernel.geometry_utils import triangle_is_degenerate
from cadkernel.mesh import Mesh, compute_vertex_normals

logger = logging.getLogger(__name__)

_DEFAULT_NORMAL = (0.0, 1.0, 0.0)
_DEFAULT_UV = (0.0, 0.0)


def polygons_from_mesh(mesh: Mesh, shared: Any = None) -> List[Polygon]:
    """Return world-space triangles of ``mesh`` as BSP polygons.

    Positions go through the mesh's world transform and normals through
    its normal matrix.  Missing normals default to +Y and missing UVs to
    the origin.  A mesh without positions yields no polygons; degenerate
    triangles are skipped.
    """
    if mesh.is_empty():
        logger.debug("mesh %r has no position data; treating as empty", mesh.name)
        return []

    positions = mesh.world_positions()
    normals = mesh.world_normals()
    uvs = mesh.uvs

    def vertex(i: int) -> Vertex:
        p = positions[i]
        n = normals[i] if normals is not None else _DEFAULT_NORMAL
        uv = uvs[i] if uvs is not None else _DEFAULT_UV
        return Vertex((float(p[0]), float(p[1]), float(p[2])),
                      (float(n[0]), float(n[1]), float(n[2])),
                      (float(uv[0]), float(uv[1])))

    polygons: List[Polygon] = []
    skipped = 0
    for a, b, c in mesh.faces():
        tri = (vertex(a), vertex(b), vertex(c))
        if triangle_is_degenerate(tri[0].pos, tri[1].pos, tri[2].pos):
            skipped += 1
            continue
        polygon = Polygon.from_vertices(tri, shared)
        if polygon is None:
            skipped += 1
            continue
        polygons.append(polygon)

    if skipped:
        logger.debug("skipped %d degenerate triangles from mesh %r", skipped, mesh.name)
    return polygons


def mesh_from_polygons(polygons: Sequence[Polygon], *, name: str = '') -> Mesh:
    """Fan-triangulate convex polygons into a non-indexed world-space mesh.

    Zero-area triangles are omitted and vertex normals are recomputed from
    the final triangles, which hides any normal distortion introduced by
    interpolation during splitting.
    """
    positions = []
    uvs = []
    for polygon in polygons:
        verts = polygon.vertices
        v0 = verts[0]
        for j in range(2, len(verts)):
            v1 = verts[j - 1]
            v2 = verts[j]
            if triangle_is_degenerate(v0.pos, v1.pos, v2.pos):
                continue
            positions.extend((v0.pos, v1.pos, v2.pos))
            uvs.extend((v0.uv, v1.uv, v2.uv))

    if not positions:
        return Mesh(positions=np.zeros((0, 3)), normals=np.zeros((0, 3)),
                    uvs=np.zeros((0, 2)), name=name)

    positions_np = np.asarray(positions, dtype=float)
    return Mesh(
        positions=positions_np,
        normals=compute_vertex_normals(positions_np),
        uvs=np.asarray(uvs, dtype=float),
        name=name,
    )


__all__ = ['polygons_from_mesh', 'mesh_from_polygons']
