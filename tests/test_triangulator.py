import pytest

from cadkernel.geometry_utils import signed_area2
from cadkernel.triangulator import triangulate_loop


def _area(loop, tris):
    return sum(abs(signed_area2([loop[a], loop[b], loop[c]])) for a, b, c in tris)


def test_square_triangulates_ccw():
    square = [(0, 0), (1, 0), (1, 1), (0, 1)]
    tris = triangulate_loop(square)
    assert len(tris) == 2
    assert _area(square, tris) == pytest.approx(1.0)
    for a, b, c in tris:
        assert signed_area2([square[a], square[b], square[c]]) > 0


def test_clockwise_output_requested():
    square = [(0, 0), (0, 1), (1, 1), (1, 0)]
    for a, b, c in triangulate_loop(square, ccw=False):
        assert signed_area2([square[a], square[b], square[c]]) < 0


def test_indices_refer_to_original_loop():
    # duplicate points and a closing point are skipped
    loop = [(0, 0), (0, 0), (2, 0), (2, 2), (0, 2), (0, 0)]
    tris = triangulate_loop(loop)
    used = {i for tri in tris for i in tri}
    assert used <= {0, 2, 3, 4}
    assert _area(loop, tris) == pytest.approx(4.0)


def test_concave_loop():
    ell = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
    tris = triangulate_loop(ell)
    assert len(tris) == 4
    assert _area(ell, tris) == pytest.approx(3.0)


def test_degenerate_loops_give_nothing():
    assert triangulate_loop([(0, 0), (1, 1)]) == []
    assert triangulate_loop([(0, 0), (0, 0), (0, 0)]) == []
