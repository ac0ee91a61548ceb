import logging
from itertools import combinations
from math import inf

import numpy as np
import pytest

from db3dgeom.distance import *
from db3dgeom.la import METHODS
from db3dgeom.scalar import ScalarOperator
## unit tests for db3dgeom distance.py

TRIANGLE = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
fine = ScalarOperator(1e-9)


def combination(points, coeffs):
    return np.asarray(coeffs[:len(points)], dtype=float) @ np.asarray(points, dtype=float)


def separation(a, b, coeffsA, coeffsB):
    v = combination(a, coeffsA) - combination(b, coeffsB)
    return float(v @ v)


def faceDistance(P, Q):
    """squared distance of the affine hulls of the rows of ``P`` and
    ``Q`` by least squares, with the affine coefficients"""
    r0 = P[0] - Q[0]
    D = np.hstack([(P[1:] - P[0]).T, -(Q[1:] - Q[0]).T])
    if D.shape[1] == 0:
        ts = np.zeros(0)
    else:
        ts = np.linalg.lstsq(D, -r0, rcond=None)[0]
    t = ts[:len(P) - 1]
    s = ts[len(P) - 1:]
    xa = np.concatenate([[1.0 - t.sum()], t])
    xb = np.concatenate([[1.0 - s.sum()], s])
    v = r0 + D @ ts
    return float(v @ v), xa, xb


def bruteConvex(a, b):
    """minimum over all pairs of faces whose affine closest points are
    convex combinations"""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    dim = a.shape[1]
    best = inf
    for na in range(1, len(a) + 1):
        for I in combinations(range(len(a)), na):
            for nb in range(1, len(b) + 1):
                if na - 1 + nb - 1 > dim:
                    continue
                for J in combinations(range(len(b)), nb):
                    d, xa, xb = faceDistance(a[list(I)], b[list(J)])
                    if xa.min() >= -1e-12 and xb.min() >= -1e-12:
                        best = min(best, d)
    return best


def randomPair(seed, na, nb, dim=3):
    rng = np.random.default_rng(seed)
    a = rng.uniform(-1.0, 1.0, (na, dim))
    offset = rng.uniform(-1.5, 1.5, dim)
    b = rng.uniform(-1.0, 1.0, (nb, dim)) + offset
    return a.tolist(), b.tolist()


class TestAffineDistance:
    """distance between affine hulls"""

    @pytest.mark.parametrize('method', METHODS)
    def test_points(self, method):
        ca = [0.0]
        cb = [0.0]
        d = affineDistance([[0, 0, 0]], [[3, 0, 0]], ca, cb, method=method)
        assert d == pytest.approx(9.0)
        assert ca == pytest.approx([1.0])
        assert cb == pytest.approx([1.0])

    @pytest.mark.parametrize('method', METHODS)
    def test_plane(self, method):
        ca = [0.0] * 3
        cb = [0.0]
        d = affineDistance(TRIANGLE, [[2, 2, 2]], ca, cb, method=method)
        assert d == pytest.approx(4.0)
        assert ca == pytest.approx([-3.0, 2.0, 2.0])
        assert cb == pytest.approx([1.0])

    def test_parallel(self):
        d = affineDistance([[0, 0], [1, 0]], [[0, 1], [1, 1]])
        assert d == pytest.approx(1.0)

    @pytest.mark.parametrize('method', METHODS)
    def test_parallel_3d(self, method):
        ca = [0.0] * 2
        cb = [0.0] * 2
        d = affineDistance([[0, 0, 0], [1, 0, 0]], [[0, 1, 0], [1, 1, 0]], ca, cb,
                           method=method)
        assert d == pytest.approx(1.0)
        assert sum(ca) == pytest.approx(1.0)
        assert sum(cb) == pytest.approx(1.0)

    def test_same_set(self):
        assert affineDistance(TRIANGLE, TRIANGLE) == pytest.approx(0.0)
        for seed in range(4):
            a, b = randomPair(seed, 3, 2)
            assert affineDistance(a, a, scOp=fine) == pytest.approx(0.0, abs=1e-12)
            assert affineDistance(b, b, scOp=fine) == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize('shape', [(2, 2), (3, 1), (1, 3), (2, 1)])
    @pytest.mark.parametrize('seed', range(4))
    def test_symmetry(self, shape, seed):
        a, b = randomPair(seed + 200, *shape)
        d = affineDistance(a, b, scOp=fine)
        assert d == pytest.approx(affineDistance(b, a, scOp=fine), abs=1e-7)

    def test_crossing_lines(self):
        d = affineDistance([[-1, 0], [1, 0]], [[5, -1], [5, 1]])
        assert d == pytest.approx(0.0, abs=1e-12)

    def test_empty(self):
        assert affineDistance([], TRIANGLE) == inf
        assert affineDistance(TRIANGLE, []) == inf

    def test_dimension_zero(self):
        ca = [9.0]
        cb = [9.0, 9.0]
        assert affineDistance([[]], [[], []], ca, cb) == 0.0
        assert ca == [1.0]
        assert cb == [1.0, 0.0]

    def test_coefficients_sum(self):
        for seed in range(5):
            a, b = randomPair(seed, 2, 2)
            ca = [0.0] * 2
            cb = [0.0] * 2
            d = affineDistance(a, b, ca, cb, fine)
            assert sum(ca) == pytest.approx(1.0)
            assert sum(cb) == pytest.approx(1.0)
            assert d == pytest.approx(separation(a, b, ca, cb), abs=1e-9)

    @pytest.mark.parametrize('seed', range(8))
    def test_skew_lines(self, seed):
        a, b = randomPair(seed, 2, 2)
        expected = faceDistance(np.array(a), np.array(b))[0]
        assert affineDistance(a, b, scOp=fine) == pytest.approx(expected, abs=1e-6)

    @pytest.mark.parametrize('seed', range(8))
    def test_plane_point(self, seed):
        a, b = randomPair(seed, 3, 1)
        expected = faceDistance(np.array(a), np.array(b))[0]
        assert affineDistance(a, b, scOp=fine) == pytest.approx(expected, abs=1e-6)

    def test_short_buffer(self):
        with pytest.raises(ValueError):
            affineDistance(TRIANGLE, [[1, 1, 1]], [0.0, 0.0])
        with pytest.raises(ValueError):
            affineDistance(TRIANGLE, [[1, 1, 1]], None, [])

    def test_bad_points(self):
        with pytest.raises(ValueError):
            affineDistance([[0, 'a']], [[1, 1]])

    def test_bad_method(self):
        with pytest.raises(ValueError):
            affineDistance(TRIANGLE, [[1, 1, 1]], method='magic')


class TestSimplexDistance:
    """distance between convex hulls"""

    @pytest.mark.parametrize('method', METHODS)
    def test_points(self, method):
        ca = [0.0]
        cb = [0.0]
        d = simplexDistance([[0, 0, 0]], [[3, 0, 0]], ca, cb, method=method)
        assert d == pytest.approx(9.0)
        assert ca == pytest.approx([1.0])
        assert cb == pytest.approx([1.0])

    @pytest.mark.parametrize('method', METHODS)
    def test_triangle_point(self, method):
        ca = [0.0] * 3
        cb = [0.0]
        d = simplexDistance(TRIANGLE, [[2, 2, 2]], ca, cb, method=method)
        assert d == pytest.approx(8.5)
        assert ca == pytest.approx([0.0, 0.5, 0.5], abs=1e-9)
        assert cb == pytest.approx([1.0])

    def test_eviction_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger='db3dgeom')
        simplexDistance(TRIANGLE, [[2, 2, 2]])
        assert 'evicted point 0 of side A' in caplog.text

    def test_parallel(self):
        d = simplexDistance([[0, 0], [1, 0]], [[0, 1], [1, 1]])
        assert d == pytest.approx(1.0)

    @pytest.mark.parametrize('method', METHODS)
    def test_parallel_3d(self, method):
        ca = [0.0] * 2
        cb = [0.0] * 2
        d = simplexDistance([[0, 0, 0], [1, 0, 0]], [[0, 1, 0], [1, 1, 0]], ca, cb,
                            method=method)
        assert d == pytest.approx(1.0)
        assert ca == pytest.approx([1.0, 0.0])
        assert cb == pytest.approx([1.0, 0.0])

    def test_crossing(self):
        ca = [0.0] * 2
        cb = [0.0] * 2
        d = simplexDistance([[-1, 0], [1, 0]], [[0, -1], [0, 1]], ca, cb)
        assert d == pytest.approx(0.0, abs=1e-12)
        assert ca == pytest.approx([0.5, 0.5])
        assert cb == pytest.approx([0.5, 0.5])

    def test_disjoint_segments(self):
        ## affine hulls cross, convex hulls don't
        a = [[-1, 0], [1, 0]]
        b = [[5, -1], [5, 1]]
        assert simplexDistance(a, b) == pytest.approx(16.0)
        assert affineDistance(a, b) == pytest.approx(0.0, abs=1e-12)

    def test_shared_point(self):
        a = [[1, 0, 0], [0, 1, 0], [0, 0, 0]]
        b = [[-1, 0, 1], [0, 0, 0], [0, -1, 1]]
        ca = [0.0] * 3
        cb = [0.0] * 3
        d = simplexDistance(a, b, ca, cb)
        assert d == pytest.approx(0.0, abs=1e-9)
        assert ca == pytest.approx([0.0, 0.0, 1.0], abs=1e-6)
        assert cb == pytest.approx([0.0, 1.0, 0.0], abs=1e-6)

    def test_same_set(self):
        assert simplexDistance(TRIANGLE, TRIANGLE) == pytest.approx(0.0)
        a, b = randomPair(3, 4, 4)
        assert simplexDistance(a, a) == pytest.approx(0.0, abs=1e-12)

    def test_empty(self):
        assert simplexDistance([], TRIANGLE) == inf
        assert simplexDistance(TRIANGLE, []) == inf
        assert simplexDistance([], []) == inf

    def test_numpy_input(self):
        a = np.array(TRIANGLE)
        b = np.array([[2.0, 2.0, 2.0]])
        ca = [0.0] * 3
        assert simplexDistance(a, b, ca) == pytest.approx(8.5)
        assert ca == pytest.approx([0.0, 0.5, 0.5], abs=1e-9)

    def test_long_buffer(self):
        ca = [5.0] * 5
        simplexDistance(TRIANGLE, [[2, 2, 2]], ca)
        assert ca == pytest.approx([0.0, 0.5, 0.5, 0.0, 0.0], abs=1e-9)

    def test_short_buffer(self):
        with pytest.raises(ValueError):
            simplexDistance(TRIANGLE, [[1, 1, 1]], [0.0])

    @pytest.mark.parametrize('shape', [(2, 2), (3, 3), (2, 3), (4, 4), (4, 1), (5, 3)])
    @pytest.mark.parametrize('seed', range(6))
    def test_random(self, shape, seed):
        a, b = randomPair(seed, *shape)
        ca = [0.0] * len(a)
        cb = [0.0] * len(b)
        d = simplexDistance(a, b, ca, cb, fine)
        assert d == pytest.approx(bruteConvex(a, b), abs=1e-6)
        assert min(ca) >= -1e-7
        assert min(cb) >= -1e-7
        assert sum(ca) == pytest.approx(1.0)
        assert sum(cb) == pytest.approx(1.0)
        assert d == pytest.approx(separation(a, b, ca, cb), abs=1e-7)

    @pytest.mark.parametrize('seed', range(6))
    def test_random_lapack(self, seed):
        a, b = randomPair(seed, 4, 4)
        d = simplexDistance(a, b, scOp=fine, method='lapack')
        assert d == pytest.approx(bruteConvex(a, b), abs=1e-6)

    @pytest.mark.parametrize('seed', range(6))
    def test_properties(self, seed):
        a, b = randomPair(seed + 100, 3, 4)
        d = simplexDistance(a, b, scOp=fine)
        assert d == pytest.approx(simplexDistance(b, a, scOp=fine), abs=1e-7)
        assert d >= affineDistance(a, b, scOp=fine) - 1e-7


def shifted(points, offset):
    return [[x + offset for x in p] for p in points]


class TestLargeCoordinates:
    """inputs far from the origin and affinely dependent integer sets"""

    OFFSET = 2000.0

    def test_triangle_point(self):
        tri = shifted(TRIANGLE, self.OFFSET)
        p = shifted([[0.25, 0.25, 2.0]], self.OFFSET)
        ca = [0.0] * 3
        cb = [0.0]
        assert simplexDistance(tri, p, ca, cb) == pytest.approx(4.0, abs=1e-6)
        assert ca == pytest.approx([0.5, 0.25, 0.25], abs=1e-6)
        assert cb == pytest.approx([1.0])
        ca = [0.0] * 3
        assert affineDistance(tri, p, ca) == pytest.approx(4.0, abs=1e-6)
        assert ca == pytest.approx([0.5, 0.25, 0.25], abs=1e-6)

    @pytest.mark.parametrize('shape', [(2, 3), (3, 3), (4, 4)])
    @pytest.mark.parametrize('seed', range(4))
    def test_random(self, shape, seed):
        a, b = randomPair(seed, *shape)
        expected = bruteConvex(a, b)
        near = ScalarOperator(1e-7)
        d = simplexDistance(shifted(a, self.OFFSET), shifted(b, self.OFFSET), scOp=near)
        assert d == pytest.approx(expected, abs=1e-5)

    def test_integer_intersecting(self):
        a = [[-2, 0, 0], [1, -1, 1], [0, 1, 0], [2, -1, -2], [-1, 0, -2]]
        b = [[-2, 2, 0], [-1, -1, -2], [1, 2, 1]]
        ca = [0.0] * len(a)
        cb = [0.0] * len(b)
        d = simplexDistance(a, b, ca, cb)
        assert d == pytest.approx(0.0, abs=1e-4)
        assert min(ca) >= -1e-7 and min(cb) >= -1e-7
        assert separation(a, b, ca, cb) == pytest.approx(d, abs=1e-9)
        assert simplexDistance(b, a) == pytest.approx(0.0, abs=1e-4)

    def test_integer_separated(self):
        a = [[-1, -1, 2], [-1, 2, -1], [-1, 0, -2]]
        b = [[1, 2, 1], [0, -2, 2], [2, 0, 1], [0, 0, -2]]
        ca = [0.0] * len(a)
        cb = [0.0] * len(b)
        d = simplexDistance(a, b, ca, cb)
        assert d == pytest.approx(1.0, abs=1e-4)
        assert separation(a, b, ca, cb) == pytest.approx(d, abs=1e-9)
        assert simplexDistance(b, a) == pytest.approx(1.0, abs=1e-4)
