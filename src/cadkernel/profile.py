"""Sweep cross-sections and their projection onto path frames.

A :class:`Profile` is a sketch: 2D points in its own plane plus the world
transform that places that plane in the scene.  Before sweeping, each
profile is resampled to a fixed point count by arc length and expressed in
the ``(binormal, normal)`` coordinates of a :class:`~cadkernel.frames.Frame`,
so profiles drawn with different vertex counts line up point for point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import floor
from typing import List, Sequence, Tuple

from cadkernel.errors import InvalidInputError
from cadkernel.frames import Frame
from cadkernel.geometry_utils import (
    Vec2,
    Vec3,
    dot3,
    lerp2,
    lerp3,
    mag3,
    signed_area2,
    sub3,
)
from cadkernel.xform import Matrix

# source edges shorter than this are treated as zero length while resampling
_EDGE_EPSILON = 1e-5


@dataclass(frozen=True, eq=False)
class Profile:
    points: Tuple[Vec2, ...]
    closed: bool = True
    transform: Matrix = field(default_factory=Matrix)
    name: str = ''

    def __post_init__(self):
        pts = tuple((float(p[0]), float(p[1])) for p in self.points)
        object.__setattr__(self, 'points', pts)

    def __repr__(self):
        kind = 'closed' if self.closed else 'open'
        return f"Profile({self.name!r}, {len(self.points)} points, {kind})"

    def validate(self) -> None:
        if len(self.points) < 2:
            raise InvalidInputError(
                f'profile {self.name!r} needs at least 2 points, has {len(self.points)}')

    def world_points(self) -> List[Vec3]:
        """Points lifted to ``z = 0`` and mapped through the profile transform."""
        return [self.transform.transform_point((x, y, 0.0)) for x, y in self.points]


def resample(points: Sequence[Vec3], closed: bool, sample_count: int) -> List[Vec3]:
    """
    Return ``sample_count`` points evenly spaced by arc length along ``points``.

    A closed loop includes its closing edge and samples ``i * L / N`` so the
    first point is not repeated.  An open polyline samples ``i * L / (N-1)``
    so both endpoints survive.
    """
    if sample_count < 2:
        raise InvalidInputError(f'sample count must be at least 2, got {sample_count}')
    if not points:
        raise InvalidInputError('cannot resample an empty point list')

    count = len(points)
    edges = count if closed else count - 1
    dists = [0.0]
    total = 0.0
    for i in range(edges):
        total += mag3(sub3(points[(i + 1) % count], points[i]))
        dists.append(total)

    if total <= 0.0:
        return [points[0]] * sample_count

    step = total / sample_count if closed else total / (sample_count - 1)
    out: List[Vec3] = []
    idx = 0
    for i in range(sample_count):
        target = min(i * step, total)
        while idx < len(dists) - 2 and dists[idx + 1] < target:
            idx += 1
        start = dists[idx]
        span = dists[idx + 1] - start
        alpha = (target - start) / span if span > _EDGE_EPSILON else 0.0
        out.append(lerp3(points[idx % count], points[(idx + 1) % count], alpha))
    return out


def project_profile(profile: Profile, frame: Frame, sample_count: int) -> List[Vec2]:
    """Resample ``profile`` in world space and express it in ``frame``'s plane."""
    profile.validate()
    world = resample(profile.world_points(), profile.closed, sample_count)
    out = []
    for p in world:
        rel = sub3(p, frame.pos)
        out.append((dot3(rel, frame.binormal), dot3(rel, frame.normal)))
    return out


def signed_area(ring: Sequence[Vec2]) -> float:
    return signed_area2(ring)


def orient_ring(ring: Sequence[Vec2]) -> List[Vec2]:
    """Return ``ring`` wound counter-clockwise, starting at the same point."""
    ring = list(ring)
    if signed_area2(ring) < 0.0:
        return ring[:1] + ring[:0:-1]
    return ring


def shift_ring(ring: Sequence[Vec2], count: int) -> List[Vec2]:
    """Rotate the ring's indices so that point ``count`` comes first."""
    ring = list(ring)
    if not ring:
        return ring
    count %= len(ring)
    return ring[count:] + ring[:count]


def lerp_rings(a: Sequence[Vec2], b: Sequence[Vec2], t: float) -> List[Vec2]:
    if len(a) != len(b):
        raise ValueError(f'rings differ in length: {len(a)} != {len(b)}')
    return [lerp2(pa, pb, t) for pa, pb in zip(a, b)]


def inset_ring(ring: Sequence[Vec2], thickness: float) -> List[Vec2]:
    """
    Pull every point toward the ring centroid by ``thickness``.

    Points closer to the centroid than ``thickness`` land on it.  This is a
    radial inset, not a true polygon offset; it matches an offset only for
    rings that are circles about their centroid.
    """
    count = len(ring)
    cx = sum(p[0] for p in ring) / count
    cy = sum(p[1] for p in ring) / count
    out = []
    for x, y in ring:
        dx = x - cx
        dy = y - cy
        length = (dx * dx + dy * dy) ** 0.5
        scale = max(0.0, length - thickness) / length if length > 0.0 else 1.0
        out.append((cx + dx * scale, cy + dy * scale))
    return out


def rotation_shift(rotation: float, fraction: float, sample_count: int) -> int:
    """Index shift that turns a profile ``rotation * fraction`` degrees."""
    return int(floor(rotation * fraction / 360.0 * sample_count + 0.5))


__all__ = [
    'Profile',
    'resample',
    'project_profile',
    'signed_area',
    'orient_ring',
    'shift_ring',
    'lerp_rings',
    'inset_ring',
    'rotation_shift',
]
