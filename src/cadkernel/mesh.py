"""Triangle mesh container exchanged with the host application.

A :class:`Mesh` mirrors a renderable buffer geometry: position, normal and
UV buffers, an optional triangle index buffer and a world transform.  The
kernel only ever reads caller meshes; every operation builds a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from cadkernel.geometry_utils import Vec3
from cadkernel.xform import Matrix

TriTuple = Tuple[Vec3, Vec3, Vec3]


@dataclass(frozen=True)
class MeshGroup:
    """A named run of consecutive triangles, ``count`` faces from ``start``."""

    name: str
    start: int
    count: int


@dataclass(frozen=True, eq=False)
class Mesh:
    positions: Optional[np.ndarray]
    indices: Optional[np.ndarray] = None
    normals: Optional[np.ndarray] = None
    uvs: Optional[np.ndarray] = None
    transform: Matrix = field(default_factory=Matrix)
    name: str = ''
    groups: Tuple[MeshGroup, ...] = ()

    def __post_init__(self):
        if self.positions is None:
            positions = np.zeros((0, 3))
        else:
            positions = np.asarray(self.positions, dtype=float).reshape(-1, 3)
        object.__setattr__(self, 'positions', positions)
        if self.indices is not None:
            indices = np.asarray(self.indices, dtype=np.int64).reshape(-1, 3)
            object.__setattr__(self, 'indices', indices)
        if self.normals is not None:
            object.__setattr__(self, 'normals', np.asarray(self.normals, dtype=float).reshape(-1, 3))
        if self.uvs is not None:
            object.__setattr__(self, 'uvs', np.asarray(self.uvs, dtype=float).reshape(-1, 2))
        object.__setattr__(self, 'groups', tuple(self.groups))

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def face_count(self) -> int:
        if self.indices is not None:
            return int(self.indices.shape[0])
        return self.vertex_count // 3

    def is_empty(self) -> bool:
        return self.vertex_count == 0

    def faces(self) -> np.ndarray:
        """Return the ``(m, 3)`` face index array, synthesising it for triangle lists."""
        if self.indices is not None:
            return self.indices
        count = self.vertex_count - self.vertex_count % 3
        return np.arange(count, dtype=np.int64).reshape(-1, 3)

    def world_positions(self) -> np.ndarray:
        if self.transform.is_identity():
            return self.positions.copy()
        mat = self.transform.as_array()
        homo = np.hstack([self.positions, np.ones((self.vertex_count, 1))])
        out = homo @ mat.T
        w = out[:, 3:4]
        w = np.where(np.abs(w) > 0.0, w, 1.0)
        return out[:, :3] / w

    def world_normals(self) -> Optional[np.ndarray]:
        if self.normals is None:
            return None
        if self.transform.is_identity():
            return self.normals.copy()
        out = self.normals @ self.transform.normal_matrix().T
        lengths = np.linalg.norm(out, axis=1, keepdims=True)
        return out / np.where(lengths > 0.0, lengths, 1.0)

    def group(self, name: str) -> Optional[MeshGroup]:
        for grp in self.groups:
            if grp.name == name:
                return grp
        return None

    def with_normals(self, normals: np.ndarray) -> 'Mesh':
        return replace(self, normals=normals)


def compute_vertex_normals(positions: np.ndarray, indices: Optional[np.ndarray] = None) -> np.ndarray:
    """Return area-weighted vertex normals.

    For indexed geometry every face adds its (unnormalised) cross product
    to each of its three vertices, so shared vertices get smooth normals.
    A plain triangle list gets flat per-face normals.  Vertices touched
    only by degenerate faces keep a zero normal.
    """
    positions = np.asarray(positions, dtype=float).reshape(-1, 3)
    normals = np.zeros_like(positions)
    if indices is None:
        count = positions.shape[0] - positions.shape[0] % 3
        faces = np.arange(count, dtype=np.int64).reshape(-1, 3)
    else:
        faces = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    if faces.size == 0:
        return normals

    v0 = positions[faces[:, 0]]
    v1 = positions[faces[:, 1]]
    v2 = positions[faces[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)
    for corner in range(3):
        np.add.at(normals, faces[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    return normals / np.where(lengths > 0.0, lengths, 1.0)


def recompute_normals(mesh: Mesh) -> Mesh:
    return mesh.with_normals(compute_vertex_normals(mesh.positions, mesh.indices))


def _group_faces(mesh: Mesh, group: Optional[str]) -> np.ndarray:
    faces = mesh.faces()
    if group is None:
        return faces
    grp = mesh.group(group)
    if grp is None:
        raise ValueError(f'mesh has no group named {group!r}')
    return faces[grp.start:grp.start + grp.count]


def mesh_view(mesh: Mesh, *, group: Optional[str] = None) -> Iterator[TriTuple]:
    """Yield world-space triangles as ``(v0, v1, v2)`` tuples.

    With ``group`` only the faces of that named group are produced.
    """
    positions = mesh.world_positions()
    faces = _group_faces(mesh, group)
    for a, b, c in faces:
        yield (tuple(positions[a]), tuple(positions[b]), tuple(positions[c]))


def _face_arrays(mesh: Mesh, group: Optional[str]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    positions = mesh.world_positions()
    faces = _group_faces(mesh, group)
    return positions[faces[:, 0]], positions[faces[:, 1]], positions[faces[:, 2]]


def volumeof(mesh: Mesh) -> float:
    """
    Volume enclosed by a closed, consistently wound mesh.

    Uses the divergence theorem: each face contributes the signed volume
    of the tetrahedron it forms with the origin, ``dot(p0, cross(p1, p2)) / 6``.
    Outward-wound meshes give a positive result; the sign is kept so that
    inside-out results are visible to callers.
    """
    if mesh.is_empty():
        return 0.0
    v0, v1, v2 = _face_arrays(mesh, None)
    return float(np.einsum('ij,ij->i', v0, np.cross(v1, v2)).sum() / 6.0)


def surface_area(mesh: Mesh, *, group: Optional[str] = None) -> float:
    """Total triangle area, optionally restricted to one named group."""
    if mesh.is_empty():
        return 0.0
    v0, v1, v2 = _face_arrays(mesh, group)
    return float(0.5 * np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1).sum())


def bbox(mesh: Mesh) -> Sequence[Vec3]:
    """Return ``[min_corner, max_corner]`` of the world-space positions."""
    if mesh.is_empty():
        raise ValueError('empty mesh has no bounding box')
    positions = mesh.world_positions()
    lo = positions.min(axis=0)
    hi = positions.max(axis=0)
    return [tuple(float(x) for x in lo), tuple(float(x) for x in hi)]


__all__ = [
    'Mesh',
    'MeshGroup',
    'compute_vertex_normals',
    'recompute_normals',
    'mesh_view',
    'volumeof',
    'surface_area',
    'bbox',
]
