import math

import numpy as np
import pytest

from cadkernel.xform import Matrix, Rotation, Scale, Translation, compose


class TestXform:
    """unit tests for matrix operations"""

    def test_matrix(self):
        foo = Matrix([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15, 16])
        bar = Matrix([[1, 0, 0, 1], [0, 1, 0, 1], [0, 0, 1, 1], [0, 0, 0, 1]])
        baz = (1, 2, 3, 1)
        I = Matrix()
        a = 10.0
        assert I.mul(bar).m == bar.m
        assert I.mul(foo).m == foo.m
        assert I.mul(I).m == I.m
        assert foo.mul(bar).m == [[1, 2, 3, 10], [5, 6, 7, 26], [9, 10, 11, 42], [13, 14, 15, 58]]
        assert foo.mul(baz) == (18, 46, 74, 102)
        assert foo.mul(a).m == [[10.0, 20.0, 30.0, 40.0],
                                [50.0, 60.0, 70.0, 80.0],
                                [90.0, 100.0, 110.0, 120.0],
                                [130.0, 140.0, 150.0, 160.0]]
        assert I.mul(baz) == baz
        assert I.is_identity()
        assert not foo.is_identity()

    def test_bad_initializers(self):
        with pytest.raises(ValueError):
            Matrix([1, 2, 3])
        with pytest.raises(ValueError):
            Matrix([float('nan')] * 16)
        with pytest.raises(ValueError):
            Matrix("identity")

    def test_mul_rejects_booleans(self):
        with pytest.raises(ValueError):
            Matrix().mul(True)
        with pytest.raises(ValueError):
            Scale("big")

    def test_translation(self):
        t = Translation((1, 2, 3))
        assert t.mul((0, 0, 0)) == (1, 2, 3)
        back = Translation((-1, -2, -3))
        assert back.mul(t).is_identity()
        # directions ignore translation
        assert t.transform_direction((0, 0, 1)) == (0, 0, 1)

    def test_rotation(self):
        r = Rotation((0, 0, 1), 90)
        assert r.transform_point((1, 0, 0)) == pytest.approx((0, 1, 0), abs=1e-12)
        assert r.transform_direction((0, 1, 0)) == pytest.approx((-1, 0, 0), abs=1e-12)
        with pytest.raises(ValueError):
            Rotation((0, 0, 0), 45)

    def test_scale_normal_matrix(self):
        s = Scale(2, 1, 1)
        nm = s.normal_matrix()
        assert np.allclose(nm, np.diag([0.5, 1.0, 1.0]))
        flat = Scale(1, 1, 0)
        assert np.allclose(flat.normal_matrix(), np.diag([1.0, 1.0, 0.0]))

    def test_compose_order(self):
        m = compose(position=(10, 0, 0), rotation=(0, 0, 90), scale=(2, 2, 2))
        # scale, then rotate about Z, then translate
        assert m.transform_point((1, 0, 0)) == pytest.approx((10, 2, 0), abs=1e-9)
        assert compose().is_identity()

    def test_as_array_round_trip(self):
        m = Rotation((1, 1, 0), 30).mul(Translation((1, 2, 3)))
        assert Matrix(m.as_array()) == m
        assert math.isclose(float(np.linalg.det(m.as_array())), 1.0, rel_tol=1e-9)
