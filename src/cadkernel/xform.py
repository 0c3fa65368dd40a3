## 4x4 matrix transformations for the world transforms carried by
## meshes and profiles

## Copyright (c) 2020 Richard W. DeVaul
## Copyright (c) 2020 yapCAD contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from math import cos, sin, radians

import numpy as np

from cadkernel.geometry_utils import mag3

## a matrix is represented as a list of four row lists.  Points are
## treated as column vectors, so Mx transforms x.  3-vectors passed to
## mul() are lifted to homogeneous points (w=1); use
## transform_direction() for vectors that must ignore translation.


def _isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n, bool)) and isinstance(n, (int, float))


class Matrix:
    """4x4 transformation matrix for homogeneous 3D coordinates"""

    def __init__(self, a=None):
        self.m = [[1.0, 0.0, 0.0, 0.0],
                  [0.0, 1.0, 0.0, 0.0],
                  [0.0, 0.0, 1.0, 0.0],
                  [0.0, 0.0, 0.0, 1.0]]

        if isinstance(a, Matrix):
            for i in range(4):
                self.m[i] = list(a.m[i])

        elif isinstance(a, (tuple, list, np.ndarray)):
            flat = np.asarray(a, dtype=float).reshape(-1)
            if flat.size != 16:
                raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
            if not np.all(np.isfinite(flat)):
                raise ValueError('non-finite element in matrix initialization: {}'.format(a))
            for i in range(4):
                for j in range(4):
                    self.m[i][j] = float(flat[i * 4 + j])

        elif a is not None:
            raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))

    def __repr__(self):
        return "Matrix({},{},{},{})".format(self.m[0], self.m[1],
                                           self.m[2], self.m[3])

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.m == other.m

    def is_identity(self):
        return self.m == Matrix().m

    def as_array(self):
        """Return a ``(4, 4)`` numpy copy of the matrix."""
        return np.array(self.m, dtype=float)

    # matrix multiply.  If x is a matrix, compute MX.  If x is a 3 or 4
    # vector, compute Mx and return a tuple of the same length.  If x is
    # a scalar, compute xM.

    def mul(self, x):
        if isinstance(x, Matrix):
            result = Matrix()
            for i in range(4):
                row = self.m[i]
                for j in range(4):
                    result.m[i][j] = (row[0] * x.m[0][j] + row[1] * x.m[1][j] +
                                      row[2] * x.m[2][j] + row[3] * x.m[3][j])
            return result
        elif isinstance(x, (tuple, list)) and len(x) in (3, 4):
            v = (x[0], x[1], x[2], x[3] if len(x) == 4 else 1.0)
            out = tuple(r[0] * v[0] + r[1] * v[1] + r[2] * v[2] + r[3] * v[3]
                        for r in self.m)
            return out if len(x) == 4 else out[:3]
        elif _isgoodnum(x):
            result = Matrix()
            for i in range(4):
                result.m[i] = [e * x for e in self.m[i]]
            return result

        raise ValueError('bad thing passed to mul(): {}'.format(x))

    def transform_point(self, p):
        """Apply the full affine transform (with perspective divide) to a point."""
        x, y, z, w = self.mul((p[0], p[1], p[2], 1.0))
        if w != 1.0 and w != 0.0:
            return (x / w, y / w, z / w)
        return (x, y, z)

    def transform_direction(self, v):
        """Apply the linear part of the transform to a direction."""
        m = self.m
        return (m[0][0] * v[0] + m[0][1] * v[1] + m[0][2] * v[2],
                m[1][0] * v[0] + m[1][1] * v[1] + m[1][2] * v[2],
                m[2][0] * v[0] + m[2][1] * v[1] + m[2][2] * v[2])

    def normal_matrix(self):
        """Return the inverse transpose of the upper 3x3 block as a numpy array.

        Surface normals must be transformed by this matrix so that they stay
        perpendicular under non-uniform scale.  A singular block (zero
        scale on some axis) has no meaningful normal transform; the block
        itself is returned in that case.
        """
        block = self.as_array()[:3, :3]
        det = np.linalg.det(block)
        if abs(det) < 1e-12:
            return block
        return np.linalg.inv(block).T


# return the generalized 4x4 arbitrary axis rotation matrix, angle in degrees
def Rotation(axis, angle):
    m = mag3(axis)
    u = axis
    if m < 1e-9:
        raise ValueError('zero-length rotation axis not allowed')
    if abs(m - 1.0) > 1e-9:
        u = (axis[0] / m, axis[1] / m, axis[2] / m)

    rad = radians(angle % 360.0)

    ux = u[0]
    uy = u[1]
    uz = u[2]

    cang = cos(rad)
    cmin = 1.0 - cang
    sang = sin(rad)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux*ux*cmin, ux*uy*cmin-uz*sang, ux*uz*cmin+uy*sang, 0],
         [uy*ux*cmin+uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang, 0],
         [uz*ux*cmin-uy*sang, uz*uy*cmin+ux*sang, cang+uz*uz*cmin, 0],
         [0, 0, 0, 1]]

    return Matrix(R)


def Translation(delta):
    dx, dy, dz = delta[0], delta[1], delta[2]
    T = [[1, 0, 0, dx],
         [0, 1, 0, dy],
         [0, 0, 1, dz],
         [0, 0, 0, 1]]
    return Matrix(T)


def Scale(x, y=None, z=None):
    if _isgoodnum(x):
        sx = x
        if _isgoodnum(y) and _isgoodnum(z):
            sy = y
            sz = z
        else:
            sy = sz = x
    elif isinstance(x, (tuple, list)) and len(x) >= 3:
        sx, sy, sz = x[0], x[1], x[2]
    else:
        raise ValueError('bad scaling values passed to Scale')

    S = [[sx, 0, 0, 0],
         [0, sy, 0, 0],
         [0, 0, sz, 0],
         [0, 0, 0, 1.0]]
    return Matrix(S)


def compose(position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0), scale=(1.0, 1.0, 1.0)):
    """Build a world matrix from position, XYZ Euler rotation (degrees) and scale.

    The result is ``T * Rx * Ry * Rz * S``: scale first, then rotate about
    Z, Y and X in that order, then translate.
    """
    R = Rotation((1, 0, 0), rotation[0]).mul(
        Rotation((0, 1, 0), rotation[1])).mul(
            Rotation((0, 0, 1), rotation[2]))
    return Translation(position).mul(R).mul(Scale(scale))


__all__ = ['Matrix', 'Rotation', 'Translation', 'Scale', 'compose']
