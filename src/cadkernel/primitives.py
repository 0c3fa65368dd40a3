"""Mesh builders for the basic solids.

All builders return indexed meshes with outward-facing counter-clockwise
triangles, vertex normals and UVs.  Geometry is built about the local
origin and ``center`` becomes the mesh transform, the same way a scene
object carries its placement.
"""

from __future__ import annotations

from math import cos, pi, sin
from typing import List, Sequence

import numpy as np

from cadkernel.errors import InvalidInputError
from cadkernel.geometry_utils import Vec3
from cadkernel.mesh import Mesh, MeshGroup, compute_vertex_normals
from cadkernel.profile import Profile, orient_ring
from cadkernel.triangulator import triangulate_loop
from cadkernel.xform import Translation

# (normal, u axis, v axis) per box face, with u x v == normal
_BOX_FACES = (
    ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
    ((-1, 0, 0), (0, 0, 1), (0, 1, 0)),
    ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
    ((0, -1, 0), (1, 0, 0), (0, 0, 1)),
    ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
    ((0, 0, -1), (-1, 0, 0), (0, 1, 0)),
)


def _check_positive(**values):
    for name, value in values.items():
        if not value > 0:
            raise InvalidInputError(f'{name} must be positive, got {value}')


def box(width: float = 1.0, height: float = 1.0, depth: float = 1.0,
        center: Vec3 = (0.0, 0.0, 0.0)) -> Mesh:
    """Axis-aligned box: 24 vertices (4 per face) and 12 triangles."""
    _check_positive(width=width, height=height, depth=depth)
    half = np.array([width, height, depth], dtype=float) / 2.0

    positions = []
    normals = []
    uvs = []
    indices = []
    for n, u, v in _BOX_FACES:
        n = np.array(n, dtype=float)
        u = np.array(u, dtype=float)
        v = np.array(v, dtype=float)
        base = len(positions)
        middle = n * half
        eu = u * np.abs(u).dot(half)
        ev = v * np.abs(v).dot(half)
        for su, sv in ((-1, -1), (1, -1), (1, 1), (-1, 1)):
            positions.append(middle + su * eu + sv * ev)
            normals.append(n)
            uvs.append(((su + 1) / 2.0, (sv + 1) / 2.0))
        indices.extend([(base, base + 1, base + 2), (base, base + 2, base + 3)])

    return Mesh(positions=np.array(positions), indices=np.array(indices),
                normals=np.array(normals), uvs=np.array(uvs),
                transform=Translation(center), name='Box')


def sphere(radius: float = 1.0, width_segments: int = 32, height_segments: int = 16,
           center: Vec3 = (0.0, 0.0, 0.0)) -> Mesh:
    """
    UV sphere with poles on the Y axis.

    Rows of vertices run from the north pole down; the seam column is
    duplicated so UVs wrap cleanly.  The pole rows emit one triangle per
    quad, so no zero-area triangles are produced.
    """
    _check_positive(radius=radius)
    if width_segments < 3 or height_segments < 2:
        raise InvalidInputError('sphere needs at least 3 width and 2 height segments')

    positions = []
    normals = []
    uvs = []
    grid: List[List[int]] = []
    for iy in range(height_segments + 1):
        v = iy / height_segments
        row = []
        for ix in range(width_segments + 1):
            u = ix / width_segments
            direction = (-cos(u * 2 * pi) * sin(v * pi),
                         cos(v * pi),
                         sin(u * 2 * pi) * sin(v * pi))
            row.append(len(positions))
            positions.append([radius * c for c in direction])
            normals.append(direction)
            uvs.append((u, 1.0 - v))
        grid.append(row)

    indices = []
    for iy in range(height_segments):
        for ix in range(width_segments):
            a = grid[iy][ix + 1]
            b = grid[iy][ix]
            c = grid[iy + 1][ix]
            d = grid[iy + 1][ix + 1]
            if iy != 0:
                indices.append((a, b, d))
            if iy != height_segments - 1:
                indices.append((b, c, d))

    return Mesh(positions=np.array(positions), indices=np.array(indices),
                normals=np.array(normals), uvs=np.array(uvs),
                transform=Translation(center), name='Sphere')


def cylinder(radius_top: float = 1.0, radius_bottom: float = 1.0, height: float = 1.0,
             radial_segments: int = 32, center: Vec3 = (0.0, 0.0, 0.0)) -> Mesh:
    """
    Cylinder or cone along Y, centred on the origin, with both end caps.

    A zero radius at either end gives a cone; that end gets no cap.
    """
    _check_positive(height=height)
    if radius_top < 0 or radius_bottom < 0 or not (radius_top > 0 or radius_bottom > 0):
        raise InvalidInputError('cylinder radii must be non-negative and not both zero')
    if radial_segments < 3:
        raise InvalidInputError('cylinder needs at least 3 radial segments')

    half = height / 2.0
    positions = []
    uvs = []
    indices = []
    groups = []

    # side: a top and a bottom ring with a duplicated seam column
    for y, radius, v in ((half, radius_top, 1.0), (-half, radius_bottom, 0.0)):
        for x in range(radial_segments + 1):
            u = x / radial_segments
            theta = u * 2 * pi
            positions.append((radius * sin(theta), y, radius * cos(theta)))
            uvs.append((u, v))
    row = radial_segments + 1
    for x in range(radial_segments):
        a = x
        b = row + x
        c = row + x + 1
        d = x + 1
        if radius_top > 0:
            indices.append((a, b, d))
        if radius_bottom > 0:
            indices.append((b, c, d))
    groups.append(MeshGroup('wall', 0, len(indices)))

    for name, y, radius, top in (('top_cap', half, radius_top, True),
                                 ('bottom_cap', -half, radius_bottom, False)):
        if radius <= 0:
            continue
        start_face = len(indices)
        centre = len(positions)
        positions.append((0.0, y, 0.0))
        uvs.append((0.5, 0.5))
        ring = len(positions)
        for x in range(radial_segments):
            theta = x / radial_segments * 2 * pi
            positions.append((radius * sin(theta), y, radius * cos(theta)))
            uvs.append((0.5 + 0.5 * sin(theta), 0.5 + 0.5 * cos(theta)))
        for x in range(radial_segments):
            i = ring + x
            j = ring + (x + 1) % radial_segments
            indices.append((i, j, centre) if top else (j, i, centre))
        groups.append(MeshGroup(name, start_face, len(indices) - start_face))

    positions = np.array(positions, dtype=float)
    indices = np.array(indices, dtype=np.int64)
    return Mesh(positions=positions, indices=indices,
                normals=compute_vertex_normals(positions, indices),
                uvs=np.array(uvs), transform=Translation(center),
                name='Cylinder', groups=tuple(groups))


def extrude_profile(profile: Profile, height: float) -> Mesh:
    """
    Extrude a closed profile along its local +Z axis.

    The result lives in the profile's local frame and carries the
    profile's transform.  Faces are grouped as ``wall``, ``start_cap``
    (at z = 0) and ``end_cap`` (at z = height).
    """
    if not profile.closed:
        raise InvalidInputError(f'cannot extrude open profile {profile.name!r}')
    if len(profile.points) < 3:
        raise InvalidInputError(f'profile {profile.name!r} needs at least 3 points to extrude')
    if not height > 0:
        raise InvalidInputError(f'extrusion height must be positive, got {height}')

    ring = orient_ring(profile.points)
    tris = triangulate_loop(ring, ccw=True)
    if not tris:
        raise InvalidInputError(f'profile {profile.name!r} encloses no area')

    count = len(ring)
    bottom = [(x, y, 0.0) for x, y in ring]
    top = [(x, y, float(height)) for x, y in ring]

    positions: List[Sequence[float]] = []
    indices = []
    groups = []

    # walls get their own vertices per edge so they shade flat
    for k in range(count):
        k1 = (k + 1) % count
        base = len(positions)
        positions.extend((bottom[k], bottom[k1], top[k1], top[k]))
        indices.extend([(base, base + 1, base + 2), (base, base + 2, base + 3)])
    groups.append(MeshGroup('wall', 0, len(indices)))

    for name, loop, flip in (('start_cap', bottom, True), ('end_cap', top, False)):
        base = len(positions)
        start_face = len(indices)
        positions.extend(loop)
        for a, b, c in tris:
            indices.append((base + c, base + b, base + a) if flip else (base + a, base + b, base + c))
        groups.append(MeshGroup(name, start_face, len(indices) - start_face))

    positions = np.array(positions, dtype=float)
    indices = np.array(indices, dtype=np.int64)
    return Mesh(positions=positions, indices=indices,
                normals=compute_vertex_normals(positions, indices),
                transform=profile.transform, name=profile.name or 'Extrusion',
                groups=tuple(groups))


__all__ = ['box', 'sphere', 'cylinder', 'extrude_profile']
