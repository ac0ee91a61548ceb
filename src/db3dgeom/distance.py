## minimum distance between affine and convex hulls of point sets
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

"""squared distances between the affine and the convex hulls of two
point sets

Both routines solve the quadratic program ::

    minimize |xa[0]*a[0] + ... + xa[n]*a[n] - xb[0]*b[0] - ... - xb[m]*b[m]|
    subject to sum(xa) == 1 and sum(xb) == 1

with an active-set method: starting from one point of each set, the
KKT system of the current subset is solved, and the point which is most
"inclined" towards the other set is added, until no point improves the
solution.  ``simplexDistance()`` additionally requires all coefficients
to be non-negative and drops points from the subset whose coefficients
would leave that range.

The two routines share the system bookkeeping in ``db3dgeom.kkt`` and
differ only by their selection rule (absolute versus signed
Lagrangian) and by the convex eviction step.

Both return the *square* of the distance, ``inf`` if either point set
is empty.  If coefficient buffers are given, they receive the affine
(or convex) coefficients of a pair of closest points.

"""

import logging
from math import inf

from db3dgeom.kkt import SIDE_A, SIDE_B, ActiveSetSystem, checkBuffer, checkPoints
from db3dgeom.la import DEFAULT_METHOD, SingularMatrixError, dot
from db3dgeom.scalar import defaultOperator

logger = logging.getLogger(__name__)

## orientation of the separation vector as seen from each side
_SIGN = (1.0, -1.0)


def _absoluteLagrangian(sign, vp, lam):
    # affine hulls: a point helps whichever way it leans
    return abs(sign * vp + lam)


def _signedLagrangian(sign, vp, lam):
    # convex hulls: only points pulling towards the other set help
    return -sign * vp - lam


def _iterationLimit(a, b):
    return 50 * (len(a) + len(b) + 2)


def _blockingSlot(scOp, old, new):
    """the slot whose coefficient reaches zero first on the way from the
    feasible coefficients ``old`` to the solution ``new``, as
    ``(theta, side, slot)``, or ``None`` if all coefficients of ``new``
    are positive.  Ties go to side A, then to the lower slot.
    """
    best = None
    for side in (SIDE_A, SIDE_B):
        if len(new[side]) < 2:
            continue
        for k, z in enumerate(new[side]):
            if not scOp.lessOrEqual(z, 0.0):
                continue
            o = old[side][k]
            step = o - z
            theta = o / step if step > 0.0 else 0.0
            if best is None or theta < best[0]:
                best = (theta, side, k)
    return best


def _activeSetDistance(a, b, coeffsA, coeffsB, scOp, method, rule, convex):
    if scOp is None:
        scOp = defaultOperator
    checkBuffer(coeffsA, a, 'coeffsA')
    checkBuffer(coeffsB, b, 'coeffsB')
    checkPoints(a, 'a')
    checkPoints(b, 'b')

    if len(a) == 0 or len(b) == 0:
        return inf

    system = ActiveSetSystem(a, b, method)
    ## coefficients of the last accepted solution, in slot order
    feasible = [[1.0], [1.0]]
    vec = system.separation(*feasible)
    result = dot(vec, vec)

    if system.dim == 0:
        system.fill(coeffsA, SIDE_A, feasible[SIDE_A])
        system.fill(coeffsB, SIDE_B, feasible[SIDE_B])
        return 0.0

    limit = _iterationLimit(a, b)
    iteration = 0
    fresh = None
    while True:
        iteration += 1
        if iteration > limit:
            logger.warning('no convergence after %d iterations, distance %g',
                           limit, result)
            break

        try:
            x = system.solve()
        except SingularMatrixError as exc:
            logger.debug('singular KKT system (%s), keeping previous solution', exc)
            vec = system.separation(*feasible)
            result = dot(vec, vec)
            break

        solution = [system.coefficients(x, SIDE_A), system.coefficients(x, SIDE_B)]

        if convex:
            blocking = _blockingSlot(scOp, feasible, solution)
            if blocking is not None:
                theta, side, k = blocking
                if feasible[side][k] == 0.0 and fresh == (side, system.inactive(side)[k]):
                    logger.debug('point %d of side %s cannot enter the combination',
                                 fresh[1], 'AB'[side])
                    break
                theta = min(max(theta, 0.0), 1.0)
                for s in (SIDE_A, SIDE_B):
                    feasible[s] = [o + theta * (z - o)
                                   for o, z in zip(feasible[s], solution[s])]
                coeffs = feasible[side]
                coeffs[k] = coeffs[-1]
                coeffs.pop()
                system.evict(side, k)
                continue

        feasible = solution
        vec = system.separation(*feasible)
        result = dot(vec, vec)
        lamA = system.lagrangian(x, SIDE_A)
        lamB = system.lagrangian(x, SIDE_B)

        if scOp.equal(result, 0.0):
            logger.debug('hulls intersect')
            break
        if scOp.equal(lamA, 0.0) and scOp.equal(lamB, 0.0):
            logger.debug('both Lagrange multipliers vanish')
            break
        if system.saturated:
            logger.debug('KKT system saturated with %d points', system.maxInactive)
            break

        ## look for the excluded point which is most inclined towards
        ## the other set
        best = [(0.0, -1), (0.0, -1)]
        for side, lam in ((SIDE_A, lamA), (SIDE_B, lamB)):
            points = system.points[side]
            pi = system.pi[side]
            for pos in system.excluded(side):
                value = rule(_SIGN[side], dot(points[pi[pos]], vec), lam)
                if value > best[side][0]:
                    best[side] = (value, pos)

        if scOp.equal(best[SIDE_A][0], 0.0) and scOp.equal(best[SIDE_B][0], 0.0):
            logger.debug('all excluded points are perpendicular to the separation')
            break

        side = SIDE_A if best[SIDE_A][0] >= best[SIDE_B][0] else SIDE_B
        slot = system.insert(side, best[side][1])
        fresh = (side, system.inactive(side)[slot])
        feasible[side] = feasible[side] + [0.0]

    logger.debug('%s distance %g after %d iterations',
                 'convex' if convex else 'affine', result, iteration)
    system.fill(coeffsA, SIDE_A, feasible[SIDE_A])
    system.fill(coeffsB, SIDE_B, feasible[SIDE_B])
    return result


def affineDistance(a, b, coeffsA=None, coeffsB=None, scOp=None, method=DEFAULT_METHOD):
    """square of the distance between the affine hulls of the point sets
    ``a`` and ``b``.

    If ``coeffsA`` is given, the affine coefficients of a point ``pa`` of
    the hull of ``a`` at minimal distance to the hull of ``b`` are
    stored there, i.e. ``pa = sum(coeffsA[i]*a[i])``; likewise for
    ``coeffsB``.  Coefficients sum to one but may be negative.  A buffer
    shorter than its point set raises ``ValueError``.

    ``scOp`` is the ``ScalarOperator`` deciding when values are zero,
    ``method`` selects the linear solver (see ``db3dgeom.la``).

    Returns ``inf`` if either set is empty.
    """
    return _activeSetDistance(a, b, coeffsA, coeffsB, scOp, method,
                              _absoluteLagrangian, False)


def simplexDistance(a, b, coeffsA=None, coeffsB=None, scOp=None, method=DEFAULT_METHOD):
    """square of the distance between the convex hulls of the point sets
    ``a`` and ``b``.

    Arguments as for ``affineDistance()``; the coefficients are convex,
    i.e. non-negative and summing to one.  The result is zero (up to
    ``scOp``) iff the hulls intersect.
    """
    return _activeSetDistance(a, b, coeffsA, coeffsB, scOp, method,
                              _signedLagrangian, True)


__all__ = [
    'affineDistance',
    'simplexDistance',
]
