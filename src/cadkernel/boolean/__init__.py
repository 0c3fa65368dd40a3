"""Mesh booleans via BSP trees."""

from __future__ import annotations

import logging
import time

from .bsp import BSPNode, Plane, Polygon, Vertex
from .csg import Solid, intersect, subtract, union
from .exchange import mesh_from_polygons, polygons_from_mesh
from cadkernel.mesh import Mesh

logger = logging.getLogger(__name__)

OPERATION_REGISTRY = {
    'union': union,
    'subtract': subtract,
    'difference': subtract,
    'intersect': intersect,
    'intersection': intersect,
}


def get_operation(name: str):
    """Look up an operation by case-insensitive name; ``None`` if unknown."""
    if not isinstance(name, str):
        return None
    return OPERATION_REGISTRY.get(name.lower())


def solid_boolean(a: Solid, b: Solid, operation: str) -> Solid:
    """Combine two solids with the named operation."""
    op = get_operation(operation)
    if op is None:
        raise ValueError(f'unsupported solid boolean operation {operation!r}')
    return op(a, b)


def boolean_mesh(a: Mesh, b: Mesh, operation: str, *, name: str | None = None) -> Mesh:
    """Run a boolean between two meshes and return the resulting mesh.

    Both meshes are read through their world transforms; the result is in
    world space with an identity transform.  It is named
    ``<operation>_<a>_<b>`` unless ``name`` is given.
    """
    if get_operation(operation) is None:
        raise ValueError(f'unsupported solid boolean operation {operation!r}')

    started = time.perf_counter()
    solid_a = Solid.from_mesh(a, shared=a.name)
    solid_b = Solid.from_mesh(b, shared=b.name)
    result = solid_boolean(solid_a, solid_b, operation)
    if name is None:
        name = f'{operation.lower()}_{a.name}_{b.name}'
    mesh = result.to_mesh(name=name)
    logger.info("boolean %s: %d + %d polygons -> %d polygons, %d triangles in %.3fs",
                operation, len(solid_a), len(solid_b), len(result), mesh.face_count,
                time.perf_counter() - started)
    return mesh


__all__ = [
    'BSPNode',
    'Plane',
    'Polygon',
    'Vertex',
    'Solid',
    'union',
    'subtract',
    'intersect',
    'polygons_from_mesh',
    'mesh_from_polygons',
    'OPERATION_REGISTRY',
    'get_operation',
    'solid_boolean',
    'boolean_mesh',
]
