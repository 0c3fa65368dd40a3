import logging
import math

import numpy as np
import pytest

from cadkernel.errors import InvalidInputError
from cadkernel.frames import FixedAxis
from cadkernel.geometry_utils import signed_area2
from cadkernel.mesh import Mesh, surface_area, volumeof
from cadkernel.profile import Profile
from cadkernel.sweep import SWEEP_MESH_NAME, SweepOptions, build_sweep, path_points
from cadkernel.xform import Rotation, Translation

STRAIGHT = [(0.0, 0.0, 0.0), (0.0, 0.0, 10.0)]


def _circle(radius=1.0, n=64, z=0.0, name='circle'):
    pts = [(radius * math.cos(a), radius * math.sin(a))
           for a in (2 * math.pi * k / n for k in range(n))]
    return Profile(pts, transform=Translation((0, 0, z)), name=name)


def _rings(mesh, steps, samples):
    return mesh.positions[:(steps + 1) * samples].reshape(steps + 1, samples, 3)


def _face_normal(mesh, face):
    a, b, c = mesh.positions[mesh.indices[face]]
    n = np.cross(b - a, c - a)
    return n / np.linalg.norm(n)


def test_capped_cylinder():
    steps, samples = 20, 48
    mesh = build_sweep(STRAIGHT, [_circle()],
                       SweepOptions(capped=True, steps=steps, sample_count=samples))
    assert mesh.name == SWEEP_MESH_NAME
    assert mesh.vertex_count == (steps + 1) * samples + 2 * samples
    assert mesh.normals.shape == mesh.positions.shape

    names = [g.name for g in mesh.groups]
    assert names == ['wall', 'start_cap', 'end_cap']
    assert sum(1 for n in names if n.endswith('_cap')) == 2
    assert mesh.group('wall').count == steps * samples * 2

    assert surface_area(mesh, group='wall') == pytest.approx(2 * math.pi * 10, rel=0.01)
    assert volumeof(mesh) == pytest.approx(math.pi * 10, rel=0.01)

    start = mesh.group('start_cap')
    end = mesh.group('end_cap')
    assert _face_normal(mesh, start.start) == pytest.approx((0, 0, -1), abs=1e-9)
    assert _face_normal(mesh, end.start) == pytest.approx((0, 0, 1), abs=1e-9)


def test_cylinder_cross_section_is_constant():
    steps, samples = 10, 32
    mesh = build_sweep(STRAIGHT, _circle(), SweepOptions(steps=steps, sample_count=samples))
    rings = _rings(mesh, steps, samples)
    for ring in rings:
        assert np.allclose(ring[:, :2], rings[0][:, :2], atol=1e-9)
    radii = np.linalg.norm(rings[:, :, :2], axis=2)
    assert radii.min() > math.cos(math.pi / 64) - 1e-9
    assert radii.max() < 1.0 + 1e-9
    assert rings[0, :, 2] == pytest.approx(0.0, abs=1e-12)
    assert rings[-1, :, 2] == pytest.approx(10.0)
    assert [g.name for g in mesh.groups] == ['wall']


def test_square_to_circle_grows_monotonically():
    steps, samples = 30, 64
    # both profiles start on the +X axis so the blend stays star-shaped
    square = Profile([(0.5, 0), (0.5, 0.5), (-0.5, 0.5), (-0.5, -0.5), (0.5, -0.5)], name='square')
    circle = _circle(radius=1.5, z=10.0)
    mesh = build_sweep(STRAIGHT, [square, circle], SweepOptions(steps=steps, sample_count=samples))
    areas = [abs(signed_area2(ring[:, :2].tolist())) for ring in _rings(mesh, steps, samples)]
    assert areas[0] == pytest.approx(1.0, rel=1e-6)
    assert areas[-1] == pytest.approx(math.pi * 1.5 ** 2, rel=0.01)
    assert all(b > a for a, b in zip(areas, areas[1:]))


def test_three_profiles_blend_piecewise():
    steps, samples = 20, 32
    profiles = [_circle(1.0), _circle(2.0, z=5.0), _circle(1.0, z=10.0)]
    mesh = build_sweep(STRAIGHT, profiles, SweepOptions(steps=steps, sample_count=samples))
    radii = np.linalg.norm(_rings(mesh, steps, samples)[:, :, :2], axis=2).max(axis=1)
    assert radii[0] == pytest.approx(1.0, rel=1e-6)
    assert radii[10] == pytest.approx(2.0, rel=1e-6)
    assert radii[20] == pytest.approx(1.0, rel=1e-6)
    assert radii[5] == pytest.approx(1.5, rel=1e-6)


def test_twist_turns_the_last_ring():
    steps, samples = 8, 16
    square = Profile([(1, 1), (-1, 1), (-1, -1), (1, -1)])
    mesh = build_sweep(STRAIGHT, square, SweepOptions(twist=90, steps=steps, sample_count=samples))
    rings = _rings(mesh, steps, samples)
    first = rings[0][:, :2]
    last = rings[-1][:, :2]
    rotated = np.column_stack([-first[:, 1], first[:, 0]])
    assert np.allclose(last, rotated, atol=1e-9)


def test_rotation_shifts_correspondence():
    steps, samples = 4, 48
    mesh = build_sweep(STRAIGHT, [_circle(), _circle(z=10.0)],
                       SweepOptions(rotation=90, steps=steps, sample_count=samples))
    rings = _rings(mesh, steps, samples)
    assert np.allclose(rings[-1][:, :2], np.roll(rings[0][:, :2], -12, axis=0), atol=1e-9)


def test_hollow_sweep():
    steps, samples = 10, 64
    mesh = build_sweep(STRAIGHT, _circle(),
                       SweepOptions(thickness=0.25, capped=True, steps=steps, sample_count=samples))
    assert [g.name for g in mesh.groups] == ['wall', 'inner_wall', 'start_rim', 'end_rim']
    assert mesh.vertex_count == 2 * (steps + 1) * samples
    expected = math.pi * (1.0 - 0.75 ** 2) * 10
    assert volumeof(mesh) == pytest.approx(expected, rel=0.02)
    inner = mesh.positions[(steps + 1) * samples:]
    assert np.linalg.norm(inner[:, :2], axis=1).max() < 0.75 + 1e-9


def test_closed_path_has_no_ends():
    steps, samples = 40, 16
    path = Profile([(0, 0), (10, 0), (10, 10), (0, 10)], closed=True)
    ring = Profile(_circle(0.5, n=16).points, transform=Rotation((1, 0, 0), 90))
    mesh = build_sweep(path, ring, SweepOptions(capped=True, thickness=0.1,
                                                 steps=steps, sample_count=samples))
    assert [g.name for g in mesh.groups] == ['wall', 'inner_wall']
    rings = _rings(mesh, steps, samples)
    assert np.allclose(rings[0], rings[-1], atol=1e-2)


def test_open_profile_makes_a_ribbon():
    steps, samples = 5, 10
    line = Profile([(-1, 0), (1, 0)], closed=False)
    mesh = build_sweep(STRAIGHT, line, SweepOptions(capped=True, thickness=0.5,
                                                    steps=steps, sample_count=samples))
    assert [g.name for g in mesh.groups] == ['wall']
    assert mesh.face_count == steps * (samples - 1) * 2
    assert surface_area(mesh) == pytest.approx(20.0)


def test_failed_cap_logs_warning(caplog):
    flat = Profile([(0, 0), (1, 0), (2, 0)], closed=True)
    with caplog.at_level(logging.WARNING, logger='cadkernel.sweep'):
        mesh = build_sweep(STRAIGHT, flat, SweepOptions(capped=True, steps=2, sample_count=8))
    assert [g.name for g in mesh.groups] == ['wall']
    assert any('start_cap' in r.getMessage() for r in caplog.records)


def test_fixed_axis_alignment_orients_profile():
    steps, samples = 4, 4
    bar = Profile([(0, 0), (0, 1)], closed=False)
    mesh = build_sweep(STRAIGHT, bar, SweepOptions(alignment=FixedAxis((1, 0, 0)),
                                                   steps=steps, sample_count=samples))
    ring = _rings(mesh, steps, samples)[0]
    # profile +Y maps to the binormal, which is +Y for a +X normal on a +Z path
    assert ring[-1] - ring[0] == pytest.approx((0, 1, 0), abs=1e-9)


def test_path_points_sources():
    assert path_points(STRAIGHT) == (STRAIGHT, False)
    mesh = Mesh(positions=[(0, 0, 0), (1, 0, 0)], transform=Translation((0, 2, 0)))
    assert path_points(mesh) == ([(0.0, 2.0, 0.0), (1.0, 2.0, 0.0)], False)
    sketch = Profile([(0, 0), (1, 0), (1, 1)], closed=True, transform=Translation((0, 0, 3)))
    pts, closed = path_points(sketch)
    assert closed
    assert pts == [(0.0, 0.0, 3.0), (1.0, 0.0, 3.0), (1.0, 1.0, 3.0)]


@pytest.mark.parametrize('path,profiles,options', [
    ([(0, 0, 0)], [_circle()], None),
    (STRAIGHT, [], None),
    (STRAIGHT, [Profile([(0, 0)])], None),
    ([(1, 1, 1), (1, 1, 1)], [_circle()], None),
    (STRAIGHT, [_circle()], SweepOptions(steps=0)),
    (STRAIGHT, [_circle()], SweepOptions(sample_count=2)),
    (STRAIGHT, [_circle()], SweepOptions(thickness=-1.0)),
])
def test_invalid_input(path, profiles, options):
    with pytest.raises(InvalidInputError):
        build_sweep(path, profiles, options)


def test_trimesh_agrees():
    trimesh = pytest.importorskip('trimesh')
    steps, samples = 12, 40
    solid = build_sweep(STRAIGHT, _circle(), SweepOptions(capped=True, steps=steps,
                                                          sample_count=samples))
    tm = trimesh.Trimesh(vertices=solid.positions, faces=solid.indices)
    assert tm.is_watertight
    assert tm.is_winding_consistent
    assert tm.volume == pytest.approx(volumeof(solid))

    hollow = build_sweep(STRAIGHT, _circle(), SweepOptions(thickness=0.3, steps=steps,
                                                           sample_count=samples))
    tm = trimesh.Trimesh(vertices=hollow.positions, faces=hollow.indices)
    assert tm.is_watertight
    assert tm.volume == pytest.approx(volumeof(hollow))
    assert tm.volume > 0
