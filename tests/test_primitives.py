import math

import numpy as np
import pytest

from cadkernel.errors import InvalidInputError
from cadkernel.geometry_utils import triangle_is_degenerate
from cadkernel.mesh import bbox, mesh_view, surface_area, volumeof
from cadkernel.primitives import box, cylinder, extrude_profile, sphere
from cadkernel.profile import Profile
from cadkernel.xform import Translation


def _no_degenerate_faces(mesh):
    return not any(triangle_is_degenerate(*tri) for tri in mesh_view(mesh))


def test_box_layout():
    mesh = box(1, 2, 3, center=(1, 1, 1))
    assert mesh.vertex_count == 24
    assert mesh.face_count == 12
    assert volumeof(mesh) == pytest.approx(6.0)
    assert surface_area(mesh) == pytest.approx(2 * (2 + 3 + 6))
    lo, hi = bbox(mesh)
    assert lo == pytest.approx((0.5, 0.0, -0.5))
    assert hi == pytest.approx((1.5, 2.0, 2.5))
    assert mesh.uvs.shape == (24, 2)


def test_box_normals_point_out():
    mesh = box(2, 2, 2)
    for face, (a, b, c) in enumerate(mesh.indices):
        p0, p1, p2 = mesh.positions[a], mesh.positions[b], mesh.positions[c]
        geometric = np.cross(p1 - p0, p2 - p0)
        assert np.dot(geometric, mesh.normals[a]) > 0
        centroid = (p0 + p1 + p2) / 3.0
        assert np.dot(geometric, centroid) > 0


def test_box_rejects_bad_size():
    with pytest.raises(InvalidInputError):
        box(0, 1, 1)


def test_sphere_volume_converges():
    coarse = volumeof(sphere(1.0, 16, 8))
    fine = volumeof(sphere(1.0, 64, 32))
    exact = 4.0 * math.pi / 3.0
    assert coarse < fine < exact
    assert fine == pytest.approx(exact, rel=0.01)


def test_sphere_has_no_degenerate_faces():
    mesh = sphere(2.0, 12, 6, center=(0, 5, 0))
    assert mesh.face_count == 12 * (2 * 6 - 2)
    assert _no_degenerate_faces(mesh)
    lo, hi = bbox(mesh)
    assert lo[1] == pytest.approx(3.0)
    assert hi[1] == pytest.approx(7.0)


def test_cylinder_and_cone():
    cyl = cylinder(1.0, 1.0, 2.0, radial_segments=48)
    n = 48
    polygon_area = 0.5 * n * math.sin(2 * math.pi / n)
    assert volumeof(cyl) == pytest.approx(polygon_area * 2.0)
    assert cyl.group('top_cap').count == n
    assert cyl.group('bottom_cap').count == n
    assert surface_area(cyl, group='top_cap') == pytest.approx(polygon_area)

    cone = cylinder(0.0, 1.0, 3.0, radial_segments=48)
    assert cone.group('top_cap') is None
    assert volumeof(cone) == pytest.approx(polygon_area * 3.0 / 3.0)
    assert _no_degenerate_faces(cone)

    with pytest.raises(InvalidInputError):
        cylinder(0.0, 0.0, 1.0)


def test_extrude_square_profile():
    profile = Profile([(0, 0), (0, 1), (1, 1), (1, 0)], transform=Translation((0, 0, 2)),
                      name='square')
    mesh = extrude_profile(profile, 3.0)
    assert mesh.name == 'square'
    assert volumeof(mesh) == pytest.approx(3.0)
    assert surface_area(mesh, group='wall') == pytest.approx(12.0)
    assert surface_area(mesh, group='start_cap') == pytest.approx(1.0)
    lo, hi = bbox(mesh)
    assert lo[2] == pytest.approx(2.0)
    assert hi[2] == pytest.approx(5.0)


def test_extrude_rejects_bad_input():
    with pytest.raises(InvalidInputError):
        extrude_profile(Profile([(0, 0), (1, 0), (1, 1)], closed=False), 1.0)
    with pytest.raises(InvalidInputError):
        extrude_profile(Profile([(0, 0), (1, 0)]), 1.0)
    with pytest.raises(InvalidInputError):
        extrude_profile(Profile([(0, 0), (1, 0), (1, 1)]), 0.0)
    with pytest.raises(InvalidInputError):
        extrude_profile(Profile([(0, 0), (1, 0), (2, 0)]), 1.0)
