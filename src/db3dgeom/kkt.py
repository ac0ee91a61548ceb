## KKT system bookkeeping for the db3dgeom active-set distance routines
## Copyright (c) db3dgeom contributors

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

"""the linear (KKT) system shared by the affine and convex distance
routines

storage schema
==============

The distance between two point sets ``a`` and ``b`` is found by
minimizing ``|sum(xa[i]*a[i]) - sum(xb[j]*b[j])|`` subject to
``sum(xa) == 1`` and ``sum(xb) == 1``.  The stationarity conditions of
that problem form a symmetric linear system over the points that
currently take part in the combination (the *inactive* points) and two
Lagrange multipliers.

The matrix has ``maxInactive + 2`` rows, where ``maxInactive`` is
``min(len(a) + len(b), dim + 2)``.  Points from ``a`` occupy rows
counting up from ``aStart = 0``, points from ``b`` occupy rows counting
down from ``bStart = maxInactive - 1``, and the last two rows hold the
multipliers for ``a`` and ``b``.  Products between a point of ``a`` and
a point of ``b`` are stored negated.  Rows not in use carry a 1 on the
diagonal and zeros elsewhere, which keeps the system regular.

::

    [ a.a  a.a  ...         -a.b  -a.b | 1  0 ]   [ xa ]   [ 0 ]
    [ a.a  a.a  ...         -a.b  -a.b | 1  0 ]   [ xa ]   [ 0 ]
    [           1                      |      ]   [ 0  ] = [ 0 ]
    [-a.b -a.b  ...          b.b   b.b | 0  1 ]   [ xb ]   [ 0 ]
    [-a.b -a.b  ...          b.b   b.b | 0  1 ]   [ xb ]   [ 0 ]
    [  1    1                          |      ]   [ la ]   [ 1 ]
    [                         1     1  |      ]   [ lb ]   [ 1 ]

permutations
============

The input points are never copied or moved.  Instead each side keeps a
permutation ``pi`` of its point indices, split into three contiguous
regions: ``active`` (excluded, coefficient forced to zero), ``inactive``
(in the system) and ``forthcoming`` (not tried yet).  Inactive slot
``k`` of a side is always the point ``pi[len(active) + k]``.  The affine
routine never excludes points, so its active region stays empty.

"""

import logging

from db3dgeom.la import DEFAULT_METHOD, copyMatrix, dot, matstr, mul, plus, solveSym
from db3dgeom.scalar import isgoodnum

logger = logging.getLogger(__name__)

SIDE_A = 0
SIDE_B = 1


def dimension(*pointsets):
    """the maximal vector length over all given point sets"""
    result = 0
    for points in pointsets:
        for p in points:
            result = max(result, len(p))
    return result


def checkPoints(points, name):
    for i, p in enumerate(points):
        for x in p:
            if not isgoodnum(x):
                raise ValueError('bad coordinate {!r} in point {} of {}'.format(x, i, name))


def checkBuffer(buffer, points, name):
    """a coefficient buffer must hold one entry per point"""
    if buffer is not None and len(buffer) < len(points):
        raise ValueError('{} has length {} but needs at least {}'
                         .format(name, len(buffer), len(points)))


class ActiveSetSystem:
    """KKT matrix, right-hand side and point permutations of one distance
    computation.  Instances are single-use and must not be shared.
    """

    def __init__(self, a, b, method=DEFAULT_METHOD):
        if len(a) == 0 or len(b) == 0:
            raise ValueError('both point sets must be non-empty')
        self.points = (a, b)
        self.method = method
        self.dim = dimension(a, b)
        self.maxInactive = min(len(a) + len(b), self.dim + 2)
        self.size = self.maxInactive + 2
        self.aStart = 0
        self.bStart = self.maxInactive - 1

        self.kkt = [[0.0] * self.size for _ in range(self.size)]
        for i in range(self.maxInactive):
            self.kkt[i][i] = 1.0
        self.rhs = [0.0] * self.maxInactive + [1.0, 1.0]

        self.pi = (list(range(len(a))), list(range(len(b))))
        self.nactive = [0, 0]
        self.ninactive = [0, 0]

        ## one point of each side to start with
        self.insert(SIDE_A, 0)
        self.insert(SIDE_B, 0)

    def __repr__(self):
        return 'ActiveSetSystem(dim={}, inactive={}, active={})\n{}'.format(
            self.dim, self.ninactive, self.nactive, matstr(self.kkt))

    @property
    def saturated(self):
        return self.ninactive[SIDE_A] + self.ninactive[SIDE_B] == self.maxInactive

    def row(self, side, k):
        """matrix row/column of inactive slot ``k``"""
        if side == SIDE_A:
            return self.aStart + k
        return self.bStart - k

    def lagrangeRow(self, side):
        return self.maxInactive + side

    def point(self, side, k):
        return self.points[side][self.pi[side][self.nactive[side] + k]]

    def active(self, side):
        return self.pi[side][:self.nactive[side]]

    def inactive(self, side):
        start = self.nactive[side]
        return self.pi[side][start:start + self.ninactive[side]]

    def forthcoming(self, side):
        return self.pi[side][self.nactive[side] + self.ninactive[side]:]

    def excluded(self, side):
        """permutation positions of all points not in the system"""
        pi = self.pi[side]
        end = self.nactive[side] + self.ninactive[side]
        return list(range(self.nactive[side])) + list(range(end, len(pi)))

    def isSymmetric(self):
        for i in range(self.size):
            for j in range(i + 1, self.size):
                if self.kkt[i][j] != self.kkt[j][i]:
                    return False
        return True

    def solve(self):
        """solve the current system.  The solver always works on a fresh
        copy; the live matrix is never handed out.
        """
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('solving KKT system, inactive=%s:\n%s',
                         self.ninactive, matstr(self.kkt))
        return solveSym(copyMatrix(self.kkt), list(self.rhs), self.method)

    def coefficients(self, x, side):
        """coefficients of the inactive points of ``side``, in slot order"""
        return [x[self.row(side, k)] for k in range(self.ninactive[side])]

    def lagrangian(self, x, side):
        return x[self.lagrangeRow(side)]

    def separation(self, coeffsA, coeffsB):
        """the vector ``sum(xa*a) - sum(xb*b)`` between the two closest
        points described by the slot coefficients
        """
        vec = []
        for k, c in enumerate(coeffsA):
            vec = plus(vec, mul(c, self.point(SIDE_A, k)))
        for k, c in enumerate(coeffsB):
            vec = plus(vec, mul(-c, self.point(SIDE_B, k)))
        return vec

    def insert(self, side, pos):
        """move the excluded point at permutation position ``pos`` to the
        end of the inactive region and add it to the system.  Returns its
        slot.
        """
        if self.saturated:
            raise ValueError('KKT system is saturated')
        pi = self.pi[side]
        na = self.nactive[side]
        end = na + self.ninactive[side]
        if pos >= end:
            pi[pos], pi[end] = pi[end], pi[pos]
        elif pos < na:
            ## rotate through the inactive region so slots keep their points
            pi[pos], pi[na - 1] = pi[na - 1], pi[pos]
            idx = pi[na - 1]
            pi[na - 1:end] = pi[na:end] + [idx]
            self.nactive[side] -= 1
        else:
            raise ValueError('point at position {} is already inactive'.format(pos))

        slot = self.ninactive[side]
        p = self.point(side, slot)
        r = self.row(side, slot)
        m = self.kkt
        m[r][r] = dot(p, p)
        for k in range(slot):
            rk = self.row(side, k)
            m[r][rk] = m[rk][r] = dot(self.point(side, k), p)
        other = 1 - side
        for k in range(self.ninactive[other]):
            rk = self.row(other, k)
            m[r][rk] = m[rk][r] = -dot(self.point(other, k), p)
        lr = self.lagrangeRow(side)
        m[r][lr] = m[lr][r] = 1.0
        self.ninactive[side] += 1

        logger.debug('inserted point %d of side %s into slot %d (row %d)',
                     pi[self.nactive[side] + slot], 'AB'[side], slot, r)
        return slot

    def evict(self, side, k):
        """remove inactive slot ``k`` from the system and make its point
        active.  The last inactive slot of the side takes its place.
        Returns the index of the evicted point.
        """
        n = self.ninactive[side]
        if n < 2:
            raise ValueError('cannot evict the only inactive point of a side')
        if k < 0 or k >= n:
            raise ValueError('bad slot passed to evict: {}'.format(k))
        m = self.kkt
        last = n - 1
        rk = self.row(side, k)
        rl = self.row(side, last)
        if k != last:
            src = list(m[rl])
            for c in range(self.size):
                m[rk][c] = src[c]
                m[c][rk] = src[c]
            m[rk][rk] = src[rl]
        for c in range(self.size):
            m[rl][c] = 0.0
            m[c][rl] = 0.0
        m[rl][rl] = 1.0

        ## [ act | i0 .. k .. L | fc ]  ->  [ act k | i0 .. L .. | fc ]
        pi = self.pi[side]
        na = self.nactive[side]
        slots = pi[na:na + n]
        evicted = slots[k]
        slots[k] = slots[last]
        slots.pop()
        pi[na] = evicted
        pi[na + 1:na + n] = slots
        self.nactive[side] += 1
        self.ninactive[side] -= 1

        logger.debug('evicted point %d of side %s from slot %d', evicted, 'AB'[side], k)
        return evicted

    def fill(self, buffer, side, coeffs):
        """zero ``buffer`` and store the slot coefficients at the original
        indices of the inactive points
        """
        if buffer is None:
            return
        checkBuffer(buffer, self.points[side], 'coefficient buffer')
        for i in range(len(buffer)):
            buffer[i] = 0.0
        for idx, c in zip(self.inactive(side), coeffs):
            buffer[idx] = c


__all__ = [
    'SIDE_A',
    'SIDE_B',
    'ActiveSetSystem',
    'dimension',
    'checkPoints',
    'checkBuffer',
]
