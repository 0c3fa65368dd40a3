"""Sweeps: profiles carried along a guide path into a triangle mesh.

The path becomes a centripetal Catmull-Rom curve with rotation-minimizing
frames (see :mod:`cadkernel.frames`).  Each profile is projected at its
own station along the path; in between, rings are blended point for point
and placed in the local frame.  Consecutive rings are joined by a quad
strip.  Optional extras are a wall thickness (hollow sweep with an inner
wall and end rims) or flat end caps.

Faces are recorded in named groups so callers can pick parts apart:

    wall        outer skin
    inner_wall  inner skin of a hollow sweep
    start_rim   annulus closing a hollow sweep at the start of the path
    end_rim     likewise at the end
    start_cap   flat cap at the start of a solid sweep
    end_cap     likewise at the end

With counter-clockwise rings every group faces out of the swept solid.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from math import floor, radians
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from cadkernel.config import DEFAULTS
from cadkernel.errors import InvalidInputError
from cadkernel.frames import Alignment, Frame, compute_frames
from cadkernel.geometry_utils import Vec2, Vec3, rotate_about_axis, to_vec3
from cadkernel.mesh import Mesh, MeshGroup, compute_vertex_normals
from cadkernel.profile import (
    Profile,
    inset_ring,
    lerp_rings,
    orient_ring,
    project_profile,
    rotation_shift,
    shift_ring,
)
from cadkernel.spline import CatmullRomCurve
from cadkernel.triangulator import triangulate_loop

logger = logging.getLogger(__name__)

SWEEP_MESH_NAME = 'Sweep_Result'

PathLike = Union[Profile, Mesh, Sequence[Sequence[float]]]


@dataclass(frozen=True)
class SweepOptions:
    """
    Sweep controls.

    ``twist`` and ``rotation`` are in degrees.  ``twist`` turns the frame
    about the tangent in proportion to distance along the path.
    ``rotation`` instead shifts the point correspondence of every profile
    after the first, which twists the blend between profiles.
    ``steps`` and ``sample_count`` default to the configured values.
    """

    alignment: Optional[Alignment] = None
    twist: float = 0.0
    rotation: float = 0.0
    capped: bool = False
    thickness: float = 0.0
    steps: Optional[int] = None
    sample_count: Optional[int] = None

    def resolved_steps(self) -> int:
        steps = DEFAULTS.sweep_steps if self.steps is None else int(self.steps)
        if steps < 1:
            raise InvalidInputError(f'sweep needs at least 1 step, got {steps}')
        return steps

    def resolved_samples(self) -> int:
        samples = DEFAULTS.sweep_samples if self.sample_count is None else int(self.sample_count)
        if samples < 3:
            raise InvalidInputError(f'sweep needs at least 3 profile samples, got {samples}')
        return samples


def path_points(path: PathLike) -> Tuple[List[Vec3], bool]:
    """
    Return the world-space guide points of ``path`` and whether it is closed.

    A :class:`Profile` contributes its world points and closed flag, a
    :class:`Mesh` its world positions in buffer order, and anything else is
    read as a sequence of 3D points.  Only profiles can be closed.
    """
    if isinstance(path, Profile):
        return path.world_points(), path.closed
    if isinstance(path, Mesh):
        return [tuple(float(c) for c in p) for p in path.world_positions()], False
    if path is None:
        raise InvalidInputError('sweep needs a guide path')
    return [to_vec3(p) for p in path], False


def _ring_at(rings: Sequence[List[Vec2]], t: float) -> List[Vec2]:
    if len(rings) == 1:
        return rings[0]
    segments = len(rings) - 1
    seg_t = t * segments
    index = int(floor(seg_t))
    local = seg_t - index
    if index >= segments:
        index = segments - 1
        local = 1.0
    return lerp_rings(rings[index], rings[index + 1], local)


def _place(ring: Sequence[Vec2], pos: Vec3, binormal: Vec3, normal: Vec3) -> np.ndarray:
    uv = np.asarray(ring, dtype=float)
    return (np.asarray(pos) + uv[:, 0:1] * np.asarray(binormal)
            + uv[:, 1:2] * np.asarray(normal))


def _strip(offset: int, rows: int, count: int, wrap: bool, reverse: bool = False) -> np.ndarray:
    """Two triangles per quad between ``rows + 1`` consecutive rings of ``count`` points."""
    k = np.arange(count if wrap else count - 1)
    a = (np.arange(rows)[:, None] * count + offset) + k
    b = (np.arange(rows)[:, None] * count + offset) + (k + 1) % count
    c = a + count
    d = b + count
    if reverse:
        first, second = (a, b, d), (a, d, c)
    else:
        first, second = (a, d, b), (a, c, d)
    tris = np.stack([np.stack(first, axis=-1), np.stack(second, axis=-1)], axis=2)
    return tris.reshape(-1, 3)


def _rim(outer: int, inner: int, count: int, at_start: bool) -> np.ndarray:
    o1 = outer + np.arange(count)
    o2 = outer + (np.arange(count) + 1) % count
    i1 = inner + np.arange(count)
    i2 = inner + (np.arange(count) + 1) % count
    if at_start:
        first, second = (o1, i2, i1), (o1, o2, i2)
    else:
        first, second = (o1, i1, i2), (o1, i2, o2)
    tris = np.stack([np.stack(first, axis=-1), np.stack(second, axis=-1)], axis=1)
    return tris.reshape(-1, 3)


class _MeshBuffer:
    """Accumulates vertex blocks and grouped faces for one sweep."""

    def __init__(self):
        self.blocks: List[np.ndarray] = []
        self.vertex_count = 0
        self.faces: List[np.ndarray] = []
        self.face_count = 0
        self.groups: List[MeshGroup] = []

    def add_vertices(self, block: np.ndarray) -> int:
        start = self.vertex_count
        self.blocks.append(block)
        self.vertex_count += len(block)
        return start

    def add_group(self, name: str, faces: np.ndarray) -> None:
        faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
        if not len(faces):
            return
        self.groups.append(MeshGroup(name, self.face_count, len(faces)))
        self.faces.append(faces)
        self.face_count += len(faces)

    def to_mesh(self, name: str) -> Mesh:
        positions = np.vstack(self.blocks)
        indices = np.vstack(self.faces) if self.faces else np.zeros((0, 3), dtype=np.int64)
        return Mesh(positions=positions, indices=indices,
                    normals=compute_vertex_normals(positions, indices),
                    name=name, groups=tuple(self.groups))


def build_sweep(path: PathLike, profiles: Union[Profile, Sequence[Profile]],
                options: Optional[SweepOptions] = None) -> Mesh:
    """
    Sweep one or more profiles along ``path`` and return the mesh.

    One profile gives a constant cross-section.  Several profiles are
    spread evenly along the path, first at the start and last at the end,
    with linear blends between neighbours.  All profiles are resampled to
    the same point count, so they may be drawn with any number of points.

    Raises :class:`~cadkernel.errors.InvalidInputError` before building
    anything if the path has fewer than 2 points or zero length, no
    profile is given, or a profile has fewer than 2 points.
    """
    if options is None:
        options = SweepOptions()
    if isinstance(profiles, Profile):
        profiles = [profiles]
    profiles = list(profiles)

    points, path_closed = path_points(path)
    if len(points) < 2:
        raise InvalidInputError(f'guide path needs at least 2 points, has {len(points)}')
    if not profiles:
        raise InvalidInputError('sweep needs at least one profile')
    for profile in profiles:
        profile.validate()
    if options.thickness < 0:
        raise InvalidInputError(f'wall thickness must not be negative, got {options.thickness}')
    steps = options.resolved_steps()
    samples = options.resolved_samples()

    started = time.perf_counter()
    curve = CatmullRomCurve(points, closed=path_closed)
    frames = compute_frames(curve, steps, options.alignment)

    profile_closed = all(p.closed for p in profiles)
    count = len(profiles)
    rings: List[List[Vec2]] = []
    for j, profile in enumerate(profiles):
        fraction = j / (count - 1) if count > 1 else 0.0
        ring = project_profile(profile, frames[int(floor(fraction * steps))], samples)
        if profile.closed:
            ring = orient_ring(ring)
        if j > 0 and options.rotation:
            ring = shift_ring(ring, rotation_shift(options.rotation, fraction, samples))
        rings.append(ring)

    hollow = options.thickness > 0
    if hollow and not profile_closed:
        logger.debug("wall thickness ignored: sweep has an open profile")
        hollow = False

    outer = []
    inner = []
    for i, frame in enumerate(frames):
        t = i / steps
        normal, binormal = _twisted_basis(frame, options.twist * t)
        ring = _ring_at(rings, t)
        outer.append(_place(ring, frame.pos, binormal, normal))
        if hollow:
            inner.append(_place(inset_ring(ring, options.thickness), frame.pos, binormal, normal))

    buf = _MeshBuffer()
    outer_start = buf.add_vertices(np.vstack(outer))
    buf.add_group('wall', _strip(outer_start, steps, samples, profile_closed))

    if hollow:
        inner_start = buf.add_vertices(np.vstack(inner))
        buf.add_group('inner_wall', _strip(inner_start, steps, samples, True, reverse=True))
        if not path_closed:
            last = steps * samples
            buf.add_group('start_rim', _rim(outer_start, inner_start, samples, True))
            buf.add_group('end_rim', _rim(outer_start + last, inner_start + last, samples, False))

    if options.capped:
        if hollow:
            logger.debug("caps ignored: hollow sweeps are closed by rims")
        elif path_closed or not profile_closed:
            logger.debug("caps skipped: caps need an open path and closed profiles")
        else:
            _add_cap(buf, 'start_cap', outer[0], rings[0], reverse=False)
            _add_cap(buf, 'end_cap', outer[-1], _ring_at(rings, 1.0), reverse=True)

    mesh = buf.to_mesh(SWEEP_MESH_NAME)
    logger.info("sweep: %d profile(s), %d steps x %d samples -> %d triangles in %.3fs",
                count, steps, samples, mesh.face_count, time.perf_counter() - started)
    return mesh


def _twisted_basis(frame: Frame, twist_deg: float) -> Tuple[Vec3, Vec3]:
    if not twist_deg:
        return frame.normal, frame.binormal
    angle = radians(twist_deg)
    return (rotate_about_axis(frame.normal, frame.tangent, angle),
            rotate_about_axis(frame.binormal, frame.tangent, angle))


def _add_cap(buf: _MeshBuffer, name: str, ring_positions: np.ndarray,
             ring: Sequence[Vec2], reverse: bool) -> None:
    # counter-clockwise in (binormal, normal) faces down the tangent
    tris = triangulate_loop(ring, ccw=True)
    if not tris:
        logger.warning("failed to triangulate %s; leaving that end of the sweep open", name)
        return
    start = buf.add_vertices(ring_positions.copy())
    faces = np.asarray(tris, dtype=np.int64) + start
    if reverse:
        faces = faces[:, ::-1]
    buf.add_group(name, faces)


__all__ = ['SWEEP_MESH_NAME', 'SweepOptions', 'path_points', 'build_sweep']
