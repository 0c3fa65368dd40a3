"""Rotation-minimizing frames along a guide curve.

Frames are propagated with the double reflection method of Wang, Jüttler,
Zheng and Liu (ACM TOG 2008): the previous frame is reflected through the
plane bisecting the step between curve samples, then through the plane
bisecting the reflected and the actual tangent.  Unlike a Frenet frame this
stays defined on straight runs and does not flip at inflection points.

Only the first frame depends on the requested :class:`Alignment`; every
later frame is derived from its predecessor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from cadkernel.config import DEFAULTS
from cadkernel.errors import InvalidInputError
from cadkernel.geometry_utils import (
    Vec3,
    cross3,
    dot3,
    epsilon,
    mag3,
    normalize3,
    scale3,
    sub3,
    to_vec3,
)
from cadkernel.logging_utils import log_once
from cadkernel.spline import CatmullRomCurve

logger = logging.getLogger(__name__)

_X_AXIS = (1.0, 0.0, 0.0)
_Y_AXIS = (0.0, 1.0, 0.0)


@dataclass(frozen=True)
class Frame:
    """Orthonormal sweep frame at arc-length parameter ``t``."""

    pos: Vec3
    tangent: Vec3
    normal: Vec3
    binormal: Vec3
    t: float


@dataclass(frozen=True)
class FixedAxis:
    """Seed the first normal from a caller-chosen axis."""

    axis: Vec3

    # |tangent . axis| above this counts as parallel
    PARALLEL = 0.99

    def __post_init__(self):
        axis = normalize3(to_vec3(self.axis))
        if axis == (0.0, 0.0, 0.0):
            raise InvalidInputError('alignment axis must be non-zero')
        object.__setattr__(self, 'axis', axis)

    def seed(self, tangent: Vec3) -> Tuple[Vec3, Vec3]:
        normal = self.axis
        if abs(dot3(tangent, normal)) > self.PARALLEL:
            normal = _X_AXIS
            if abs(dot3(tangent, normal)) > self.PARALLEL:
                normal = _Y_AXIS
            log_once(logger, f'fixed-axis-fallback:{self.axis}', logging.DEBUG,
                     "alignment axis %s is parallel to the path tangent; using %s",
                     self.axis, normal)
        binormal = normalize3(cross3(tangent, normal))
        return normalize3(cross3(binormal, tangent)), binormal


@dataclass(frozen=True)
class HeuristicUp:
    """Seed the first normal from a world up vector."""

    up: Vec3 = _Y_AXIS
    fallback: Vec3 = _X_AXIS

    PARALLEL = 0.9

    def seed(self, tangent: Vec3) -> Tuple[Vec3, Vec3]:
        up = self.up
        if abs(dot3(tangent, up)) > self.PARALLEL:
            up = self.fallback
        binormal = normalize3(cross3(tangent, up))
        return normalize3(cross3(binormal, tangent)), binormal


Alignment = Union[FixedAxis, HeuristicUp]


def _reflect(v: Vec3, axis: Vec3, c: float) -> Vec3:
    # mirror v through the plane with normal ``axis``; c is |axis|^2
    return sub3(v, scale3(axis, 2.0 / c * dot3(axis, v)))


def compute_frames(curve: CatmullRomCurve, steps: int,
                   alignment: Optional[Alignment] = None) -> List[Frame]:
    """
    Return ``steps + 1`` rotation-minimizing frames at ``u = i / steps``.

    ``alignment`` defaults to :class:`HeuristicUp`.  Steps whose curve
    samples (or reflected tangents) coincide within the configured
    reflection threshold carry the previous normal forward.  A curve of
    zero length has no tangent to frame and raises
    :class:`~cadkernel.errors.InvalidInputError`.
    """
    if steps < 1:
        raise InvalidInputError(f'frame count must be at least 1, got {steps}')
    if curve.length <= epsilon:
        raise InvalidInputError('cannot frame a curve of zero length')
    if alignment is None:
        alignment = HeuristicUp()
    threshold = DEFAULTS.reflection_threshold

    t0 = curve.tangent_at(0.0)
    n0, b0 = alignment.seed(t0)
    frames = [Frame(curve.point_at(0.0), t0, n0, b0, 0.0)]

    for i in range(1, steps + 1):
        t = i / steps
        pos = curve.point_at(t)
        tangent = curve.tangent_at(t)
        prev = frames[-1]

        normal = prev.normal
        v1 = sub3(pos, prev.pos)
        c1 = dot3(v1, v1)
        if c1 > threshold:
            r_l = _reflect(prev.normal, v1, c1)
            t_l = _reflect(prev.tangent, v1, c1)
            v2 = sub3(tangent, t_l)
            c2 = dot3(v2, v2)
            normal = _reflect(r_l, v2, c2) if c2 > threshold else r_l

        normal = normalize3(sub3(normal, scale3(tangent, dot3(normal, tangent))))
        if mag3(normal) == 0.0:
            log_once(logger, 'rmf-reseed', logging.DEBUG,
                     "frame normal collapsed onto the tangent at t=%.4f; re-seeding", t)
            normal, _ = HeuristicUp().seed(tangent)
        binormal = normalize3(cross3(tangent, normal))
        frames.append(Frame(pos, tangent, normal, binormal, t))

    return frames


__all__ = ['Frame', 'FixedAxis', 'HeuristicUp', 'Alignment', 'compute_frames']
