"""Constructive solid geometry on polygon soups.

Each boolean builds two transient BSP trees from the operands' polygons,
clips them against each other and flattens the survivors into a new
:class:`Solid`.  Polygons are immutable, so handing an operand's list to a
tree never exposes the operand to mutation.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from cadkernel.boolean.bsp import BSPNode, Polygon
from cadkernel.boolean.exchange import mesh_from_polygons, polygons_from_mesh
from cadkernel.mesh import Mesh


class Solid:
    """A closed solid as a flat list of outward-facing convex polygons."""

    def __init__(self, polygons: Iterable[Polygon] = ()):
        self.polygons: List[Polygon] = list(polygons)

    def __repr__(self):
        return f"Solid({len(self.polygons)} polygons)"

    def __len__(self):
        return len(self.polygons)

    @classmethod
    def from_mesh(cls, mesh: Mesh, shared: Any = None) -> 'Solid':
        return cls(polygons_from_mesh(mesh, shared))

    def to_mesh(self, *, name: str = '') -> Mesh:
        return mesh_from_polygons(self.polygons, name=name)

    def clone(self) -> 'Solid':
        return Solid(self.polygons)

    def is_empty(self) -> bool:
        return not self.polygons

    def inverse(self) -> 'Solid':
        """Return the complement: every polygon flipped."""
        return Solid(p.flipped() for p in self.polygons)

    def union(self, other: 'Solid') -> 'Solid':
        """
        Return a solid covering the space in either solid.

            A.union(B)

            +-------+            +-------+
            |       |            |       |
            |   A   |            |       |
            |    +--+----+   =   |       +----+
            +----+--+    |       +----+       |
                 |   B   |            |       |
                 |       |            |       |
                 +-------+            +-------+
        """
        if self.is_empty() or other.is_empty():
            return Solid(self.polygons + other.polygons)
        a = BSPNode(self.polygons)
        b = BSPNode(other.polygons)
        a.clip_to(b)
        b.clip_to(a)
        b.invert()
        b.clip_to(a)
        b.invert()
        a.build(b.all_polygons())
        return Solid(a.all_polygons())

    def subtract(self, other: 'Solid') -> 'Solid':
        """
        Return a solid covering the space in this solid but not in ``other``.

            A.subtract(B)

            +-------+            +-------+
            |       |            |       |
            |   A   |            |       |
            |    +--+----+   =   |    +--+
            +----+--+    |       +----+
                 |   B   |
                 |       |
                 +-------+
        """
        if self.is_empty() or other.is_empty():
            return self.clone()
        a = BSPNode(self.polygons)
        b = BSPNode(other.polygons)
        a.invert()
        a.clip_to(b)
        b.clip_to(a)
        b.invert()
        b.clip_to(a)
        b.invert()
        a.build(b.all_polygons())
        a.invert()
        return Solid(a.all_polygons())

    def intersect(self, other: 'Solid') -> 'Solid':
        """
        Return a solid covering the space in both solids.

            A.intersect(B)

            +-------+
            |       |
            |   A   |
            |    +--+----+   =   +--+
            +----+--+    |       +--+
                 |   B   |
                 |       |
                 +-------+
        """
        if self.is_empty() or other.is_empty():
            return Solid()
        a = BSPNode(self.polygons)
        b = BSPNode(other.polygons)
        a.invert()
        b.clip_to(a)
        b.invert()
        a.clip_to(b)
        b.clip_to(a)
        a.build(b.all_polygons())
        a.invert()
        return Solid(a.all_polygons())


def union(a: Solid, b: Solid) -> Solid:
    return a.union(b)


def subtract(a: Solid, b: Solid) -> Solid:
    return a.subtract(b)


def intersect(a: Solid, b: Solid) -> Solid:
    return a.intersect(b)


__all__ = ['Solid', 'union', 'subtract', 'intersect']
