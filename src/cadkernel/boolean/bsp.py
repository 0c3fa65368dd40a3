"""BSP tree primitives for mesh booleans.

Solids are represented as lists of convex :class:`Polygon` objects.  A
:class:`BSPNode` partitions such a list by the planes of its polygons so
that other polygons can be classified as inside or outside the solid.
This is not a leafy BSP tree: every node holds the polygons coplanar with
its splitting plane.

Vertices, planes and polygons are immutable values; flipping or splitting
produces new objects.  Nodes own their polygon lists and children outright
and are mutated in place only by their own methods.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from cadkernel.config import DEFAULTS
from cadkernel.geometry_utils import (
    Vec2,
    Vec3,
    cross3,
    dot3,
    lerp2,
    lerp3,
    mag3,
    sub3,
)

COPLANAR = 0
FRONT = 1
BACK = 2
SPANNING = 3


@dataclass(frozen=True)
class Vertex:
    """Polygon corner: position, normal and texture coordinate."""

    pos: Vec3
    normal: Vec3 = (0.0, 1.0, 0.0)
    uv: Vec2 = (0.0, 0.0)

    def flipped(self) -> 'Vertex':
        n = self.normal
        return Vertex(self.pos, (-n[0], -n[1], -n[2]), self.uv)

    def interpolate(self, other: 'Vertex', t: float) -> 'Vertex':
        return Vertex(
            lerp3(self.pos, other.pos, t),
            lerp3(self.normal, other.normal, t),
            lerp2(self.uv, other.uv, t),
        )


@dataclass(frozen=True)
class Plane:
    """Oriented plane ``dot(normal, p) - w == 0``."""

    normal: Vec3
    w: float

    # tolerance used by split_polygon() to decide if a point is on the plane
    EPSILON = DEFAULTS.csg_epsilon

    @classmethod
    def from_points(cls, a: Vec3, b: Vec3, c: Vec3) -> Optional['Plane']:
        """Plane through three points, or ``None`` if they are collinear."""
        n = cross3(sub3(b, a), sub3(c, a))
        length = mag3(n)
        if length <= 1e-18:
            return None
        n = (n[0] / length, n[1] / length, n[2] / length)
        return cls(n, dot3(n, a))

    def flipped(self) -> 'Plane':
        n = self.normal
        return Plane((-n[0], -n[1], -n[2]), -self.w)

    def distance(self, p: Vec3) -> float:
        n = self.normal
        return n[0] * p[0] + n[1] * p[1] + n[2] * p[2] - self.w

    def split_polygon(self, polygon: 'Polygon',
                      coplanar_front: List['Polygon'], coplanar_back: List['Polygon'],
                      front: List['Polygon'], back: List['Polygon']) -> None:
        """
        Split ``polygon`` by this plane if needed, then put the polygon or
        its fragments in the appropriate lists.  Coplanar polygons go into
        ``coplanar_front`` or ``coplanar_back`` depending on their
        orientation relative to this plane.  Fragments with fewer than
        three vertices are dropped.
        """
        eps = self.EPSILON
        polygon_type = 0
        types = []
        for vertex in polygon.vertices:
            t = self.distance(vertex.pos)
            if t < -eps:
                kind = BACK
            elif t > eps:
                kind = FRONT
            else:
                kind = COPLANAR
            polygon_type |= kind
            types.append(kind)

        if polygon_type == COPLANAR:
            if dot3(self.normal, polygon.plane.normal) > 0:
                coplanar_front.append(polygon)
            else:
                coplanar_back.append(polygon)
        elif polygon_type == FRONT:
            front.append(polygon)
        elif polygon_type == BACK:
            back.append(polygon)
        else:
            f: List[Vertex] = []
            b: List[Vertex] = []
            vertices = polygon.vertices
            count = len(vertices)
            for i in range(count):
                j = (i + 1) % count
                ti = types[i]
                tj = types[j]
                vi = vertices[i]
                vj = vertices[j]
                if ti != BACK:
                    f.append(vi)
                if ti != FRONT:
                    b.append(vi)
                if (ti | tj) == SPANNING:
                    t = (self.w - dot3(self.normal, vi.pos)) / dot3(self.normal, sub3(vj.pos, vi.pos))
                    v = vi.interpolate(vj, t)
                    f.append(v)
                    b.append(v)
            if len(f) >= 3:
                front.append(Polygon(tuple(f), polygon.plane, polygon.shared))
            if len(b) >= 3:
                back.append(Polygon(tuple(b), polygon.plane, polygon.shared))


@dataclass(frozen=True)
class Polygon:
    """
    Convex, coplanar loop of vertices with its cached plane.

    ``shared`` is carried unchanged through clones, flips and splits, so it
    can hold per-source data such as the name of the mesh a face came from.
    """

    vertices: Tuple[Vertex, ...]
    plane: Plane
    shared: Any = None

    @classmethod
    def from_vertices(cls, vertices: Sequence[Vertex], shared: Any = None) -> Optional['Polygon']:
        """
        Build a polygon, deriving its plane from the first three vertices.

        When those are collinear the first non-collinear triple anchored at
        vertex 0 is used.  Returns ``None`` for degenerate input (fewer
        than three vertices or all collinear).
        """
        verts = tuple(vertices)
        if len(verts) < 3:
            return None
        a = verts[0].pos
        for i in range(1, len(verts) - 1):
            plane = Plane.from_points(a, verts[i].pos, verts[i + 1].pos)
            if plane is not None:
                return cls(verts, plane, shared)
        return None

    def flipped(self) -> 'Polygon':
        return Polygon(tuple(v.flipped() for v in reversed(self.vertices)),
                       self.plane.flipped(), self.shared)


class BSPNode:
    """
    Node of a BSP tree.

    Built from a collection of polygons by picking the first polygon's
    plane as the splitter.  Polygons coplanar with it stay in the node and
    the others go to the front and/or back subtrees.  Splitter choice is
    not balanced; for a convex solid the tree degenerates into a chain as
    deep as the face count, which is why every traversal here uses an
    explicit stack instead of recursion.
    """

    __slots__ = ('plane', 'front', 'back', 'polygons')

    def __init__(self, polygons: Optional[Sequence[Polygon]] = None):
        self.plane: Optional[Plane] = None
        self.front: Optional[BSPNode] = None
        self.back: Optional[BSPNode] = None
        self.polygons: List[Polygon] = []
        if polygons:
            self.build(polygons)

    def nodes(self) -> Iterator['BSPNode']:
        """Pre-order walk: node, then its front subtree, then its back subtree."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.back is not None:
                stack.append(node.back)
            if node.front is not None:
                stack.append(node.front)

    def invert(self) -> None:
        """Convert solid space to empty space and empty space to solid space."""
        for node in list(self.nodes()):
            node.polygons = [p.flipped() for p in node.polygons]
            if node.plane is not None:
                node.plane = node.plane.flipped()
            node.front, node.back = node.back, node.front

    def clip_polygons(self, polygons: Sequence[Polygon]) -> List[Polygon]:
        """Remove all parts of ``polygons`` that are inside this tree."""
        if self.plane is None:
            return list(polygons)
        kept: List[Polygon] = []
        stack: List[Tuple[BSPNode, List[Polygon]]] = [(self, list(polygons))]
        while stack:
            node, batch = stack.pop()
            if node.plane is None:
                kept.extend(batch)
                continue
            front: List[Polygon] = []
            back: List[Polygon] = []
            for polygon in batch:
                node.plane.split_polygon(polygon, front, back, front, back)
            # back fragments with no back subtree are inside: dropped
            if back and node.back is not None:
                stack.append((node.back, back))
            if front:
                if node.front is not None:
                    stack.append((node.front, front))
                else:
                    kept.extend(front)
        return kept

    def clip_to(self, bsp: 'BSPNode') -> None:
        """Remove all polygons in this tree that are inside the tree ``bsp``."""
        for node in self.nodes():
            node.polygons = bsp.clip_polygons(node.polygons)

    def all_polygons(self) -> List[Polygon]:
        polygons: List[Polygon] = []
        for node in self.nodes():
            polygons.extend(node.polygons)
        return polygons

    def build(self, polygons: Sequence[Polygon]) -> None:
        """Add ``polygons`` to the tree, creating subtrees as needed."""
        stack: List[Tuple[BSPNode, List[Polygon]]] = [(self, list(polygons))]
        while stack:
            node, batch = stack.pop()
            if not batch:
                continue
            if node.plane is None:
                node.plane = batch[0].plane
            front: List[Polygon] = []
            back: List[Polygon] = []
            for polygon in batch:
                node.plane.split_polygon(polygon, node.polygons, node.polygons, front, back)
            if back:
                if node.back is None:
                    node.back = BSPNode()
                stack.append((node.back, back))
            if front:
                if node.front is None:
                    node.front = BSPNode()
                stack.append((node.front, front))


__all__ = ['Vertex', 'Plane', 'Polygon', 'BSPNode', 'COPLANAR', 'FRONT', 'BACK', 'SPANNING']
