"""Vector and triangle helpers shared by the boolean and sweep code.

Vectors are plain ``(x, y, z)`` float tuples. Keeping them as tuples rather
than numpy arrays keeps the per-vertex work in the BSP engine cheap.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

# length tolerance; areas compare against its square
epsilon = 1e-9


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point-like sequence as a tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def sub3(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale3(a: Vec3, s: float) -> Vec3:
    return (a[0] * s, a[1] * s, a[2] * s)


def dot3(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross3(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def mag3(v: Vec3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def normalize3(v: Vec3, tol: float = epsilon) -> Vec3:
    """Return ``v`` scaled to unit length, or the zero vector if shorter than ``tol``."""

    m = mag3(v)
    if m < tol:
        return (0.0, 0.0, 0.0)
    return (v[0] / m, v[1] / m, v[2] / m)


def lerp3(a: Vec3, b: Vec3, t: float) -> Vec3:
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


def lerp2(a: Vec2, b: Vec2, t: float) -> Vec2:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def rotate_about_axis(v: Vec3, axis: Vec3, angle: float) -> Vec3:
    """Rotate ``v`` about the unit vector ``axis`` by ``angle`` radians (Rodrigues)."""

    c = math.cos(angle)
    s = math.sin(angle)
    k_cross_v = cross3(axis, v)
    k_dot_v = dot3(axis, v)
    return (
        v[0] * c + k_cross_v[0] * s + axis[0] * k_dot_v * (1.0 - c),
        v[1] * c + k_cross_v[1] * s + axis[1] * k_dot_v * (1.0 - c),
        v[2] * c + k_cross_v[2] * s + axis[2] * k_dot_v * (1.0 - c),
    )


def triangle_area(v0: Vec3, v1: Vec3, v2: Vec3) -> float:
    """Return the area of a triangle."""

    return 0.5 * mag3(cross3(sub3(v1, v0), sub3(v2, v0)))


def triangle_is_degenerate(v0: Vec3, v1: Vec3, v2: Vec3, tol: float = epsilon * epsilon) -> bool:
    """Return ``True`` if a triangle collapses under the given area tolerance."""

    return triangle_area(v0, v1, v2) <= tol


def signed_area2(ring: Sequence[Vec2]) -> float:
    """Signed area of a 2D loop; positive when counter-clockwise."""

    total = 0.0
    count = len(ring)
    for i in range(count):
        x0, y0 = ring[i]
        x1, y1 = ring[(i + 1) % count]
        total += x0 * y1 - x1 * y0
    return total / 2.0


__all__ = [
    "Vec2",
    "Vec3",
    "epsilon",
    "to_vec3",
    "sub3",
    "scale3",
    "dot3",
    "cross3",
    "mag3",
    "normalize3",
    "lerp3",
    "lerp2",
    "rotate_about_axis",
    "triangle_area",
    "triangle_is_degenerate",
    "signed_area2",
]
