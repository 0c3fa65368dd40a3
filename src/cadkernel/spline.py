"""Catmull-Rom guide curves.

A :class:`CatmullRomCurve` passes through every control point.  With the
default ``alpha=0.5`` (centripetal parameterisation) it neither cusps nor
self-intersects inside a span, which makes it a safe guide for sweeps
drawn as rough polylines.  Sweeps sample the curve by arc length, so
:meth:`CatmullRomCurve.point_at` and :meth:`CatmullRomCurve.tangent_at`
take a parameter proportional to distance travelled along the curve.
"""

from __future__ import annotations

from bisect import bisect_left
from math import pow
from typing import List, Optional, Sequence, Tuple

from cadkernel.config import DEFAULTS
from cadkernel.errors import InvalidInputError
from cadkernel.geometry_utils import mag3, normalize3, sub3, to_vec3

Vec3 = Tuple[float, float, float]

# finite-difference step used by tangent()
_TANGENT_DELTA = 1e-4


class CatmullRomCurve:
    """Catmull-Rom spline through ``points``, open or closed."""

    def __init__(self, points: Sequence[Sequence[float]], *, closed: bool = False,
                 alpha: float = 0.5, arc_divisions: Optional[int] = None):
        ctrl = [to_vec3(p) for p in points]
        if len(ctrl) < 2:
            raise InvalidInputError('Catmull-Rom curve needs at least 2 control points')
        self.points: List[Vec3] = ctrl
        self.closed = bool(closed)
        self.alpha = float(alpha)
        self.arc_divisions = int(arc_divisions or DEFAULTS.arc_length_divisions)
        self._lengths: Optional[List[float]] = None

    def __repr__(self):
        return f"CatmullRomCurve({len(self.points)} points, closed={self.closed}, alpha={self.alpha})"

    @property
    def segment_count(self) -> int:
        count = len(self.points)
        return count if self.closed else count - 1

    def point(self, t: float) -> Vec3:
        """Evaluate the curve at raw parameter ``t`` in ``[0, 1]``.

        ``t`` is spread evenly over spans, not over arc length.
        """
        ctrl = self.points
        count = len(ctrl)
        segment_count = self.segment_count

        t_clamped = max(0.0, min(1.0, float(t)))
        span = t_clamped * segment_count
        idx = int(span)
        tau = span - idx
        if idx >= segment_count:
            idx = segment_count - 1
            tau = 1.0

        p1 = ctrl[idx % count]
        p2 = ctrl[(idx + 1) % count]
        if self.closed:
            p0 = ctrl[(idx - 1) % count]
            p3 = ctrl[(idx + 2) % count]
        else:
            # phantom end points continue the first and last spans
            p0 = ctrl[idx - 1] if idx > 0 else _extrapolate(ctrl[0], ctrl[1])
            p3 = ctrl[idx + 2] if idx + 2 < count else _extrapolate(ctrl[-1], ctrl[-2])

        return _catmullrom_point(p0, p1, p2, p3, self.alpha, tau)

    def tangent(self, t: float) -> Vec3:
        """
        Unit tangent at raw parameter ``t`` by central difference.

        Repeated control points stall the curve over a whole span; the
        difference window widens until the curve moves again.
        """
        delta = _TANGENT_DELTA
        while True:
            t1 = max(0.0, t - delta)
            t2 = min(1.0, t + delta)
            tangent = normalize3(sub3(self.point(t2), self.point(t1)))
            if tangent != (0.0, 0.0, 0.0) or (t1 == 0.0 and t2 == 1.0):
                return tangent
            delta *= 10.0

    def arc_lengths(self) -> List[float]:
        """Cumulative chord lengths at ``arc_divisions + 1`` even raw parameters."""
        if self._lengths is None:
            lengths = [0.0]
            prev = self.point(0.0)
            total = 0.0
            for i in range(1, self.arc_divisions + 1):
                current = self.point(i / self.arc_divisions)
                total += mag3(sub3(current, prev))
                lengths.append(total)
                prev = current
            self._lengths = lengths
        return self._lengths

    @property
    def length(self) -> float:
        return self.arc_lengths()[-1]

    def u_to_t(self, u: float) -> float:
        """Map an arc-length fraction ``u`` onto the raw curve parameter."""
        lengths = self.arc_lengths()
        total = lengths[-1]
        u = max(0.0, min(1.0, float(u)))
        if total <= 0.0:
            return u
        target = u * total
        i = bisect_left(lengths, target)
        if i == 0:
            return 0.0
        if i >= len(lengths):
            return 1.0
        before = lengths[i - 1]
        span = lengths[i] - before
        frac = (target - before) / span if span > 0.0 else 0.0
        return (i - 1 + frac) / (len(lengths) - 1)

    def point_at(self, u: float) -> Vec3:
        return self.point(self.u_to_t(u))

    def tangent_at(self, u: float) -> Vec3:
        return self.tangent(self.u_to_t(u))


def build_curve(points: Sequence[Sequence[float]], *, closed: bool = False) -> CatmullRomCurve:
    """Centripetal Catmull-Rom curve through ``points``."""
    return CatmullRomCurve(points, closed=closed, alpha=0.5)


def _extrapolate(end: Vec3, neighbour: Vec3) -> Vec3:
    return (2.0 * end[0] - neighbour[0],
            2.0 * end[1] - neighbour[1],
            2.0 * end[2] - neighbour[2])


def _catmullrom_point(v0: Vec3, v1: Vec3, v2: Vec3, v3: Vec3, alpha: float, tau: float) -> Vec3:
    # Barry-Goldman pyramid over knots spaced by |p_i+1 - p_i| ** alpha
    def tj(ti: float, pa: Vec3, pb: Vec3) -> float:
        delta = ((pb[0] - pa[0]) ** 2 + (pb[1] - pa[1]) ** 2 + (pb[2] - pa[2]) ** 2) ** 0.5
        return ti + pow(delta, alpha)

    t0 = 0.0
    t1 = tj(t0, v0, v1)
    t2 = tj(t1, v1, v2)
    t3 = tj(t2, v2, v3)

    if t2 - t1 < 1e-12:
        return v2

    t = t1 + (t2 - t1) * tau

    A1 = _catmull_blend(v0, v1, t0, t1, t)
    A2 = _catmull_blend(v1, v2, t1, t2, t)
    A3 = _catmull_blend(v2, v3, t2, t3, t)

    B1 = _catmull_blend(A1, A2, t0, t2, t)
    B2 = _catmull_blend(A2, A3, t1, t3, t)

    return _catmull_blend(B1, B2, t1, t2, t)


def _catmull_blend(a: Vec3, b: Vec3, t0: float, t1: float, t: float) -> Vec3:
    denom = t1 - t0
    if abs(denom) < 1e-12:
        return b
    w0 = (t1 - t) / denom
    w1 = (t - t0) / denom
    return (
        a[0] * w0 + b[0] * w1,
        a[1] * w0 + b[1] * w1,
        a[2] * w0 + b[2] * w1,
    )


__all__ = ['CatmullRomCurve', 'build_curve']
