## relative position of points and simplices for db3dgeom
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

"""relative position of points and simplices, built on the distance
routines.
"""

from __future__ import annotations

from enum import IntEnum
from typing import MutableSequence, Optional, Sequence, Tuple

from db3dgeom.distance import affineDistance, simplexDistance
from db3dgeom.kkt import checkBuffer
from db3dgeom.scalar import ScalarOperator, defaultOperator, getMin


class Relation(IntEnum):
    """Index into the interior/boundary/exterior matrix."""

    INTERIOR = 0
    BOUNDARY = 1
    EXTERIOR = 2


def simplexVertexRelation(simplex: Sequence[Sequence[float]],
                          vertex: Sequence[float],
                          coeffs: Optional[MutableSequence[float]] = None,
                          scOp: Optional[ScalarOperator] = None,
                          projected: bool = True) -> Relation:
    """Classify ``vertex`` against ``simplex``.

    The vertex is orthogonally projected onto the affine subspace of the
    simplex, and the barycentric coordinates of the projection decide:
    all positive means interior, a zero coordinate means boundary and a
    negative one exterior.  With ``projected=False`` a vertex off the
    affine subspace is always exterior.  If ``coeffs`` is given it
    receives the barycentric coordinates and must be at least as long as
    ``simplex``.

    The topological space of a simplex is its affine subspace, so a
    point is always in the interior of a 0-simplex.  If the vertices of
    ``simplex`` are affinely dependent the coordinates are not unique
    and the result may be wrong.
    """

    if scOp is None:
        scOp = defaultOperator
    checkBuffer(coeffs, simplex, 'coeffs')
    if len(simplex) == 0:
        return Relation.EXTERIOR

    # private buffer, coeffs may be longer than the simplex
    simplexCoeffs = [0.0] * len(simplex)
    distance = affineDistance(simplex, [vertex], simplexCoeffs, None, scOp)
    if coeffs is not None:
        coeffs[:len(simplexCoeffs)] = simplexCoeffs

    if not projected and scOp.greaterThan(distance, 0.0):
        return Relation.EXTERIOR

    minCoeff = getMin(*simplexCoeffs)
    if scOp.equal(minCoeff, 0.0):
        return Relation.BOUNDARY
    # outside the tolerance interval around zero now
    if minCoeff < 0.0:
        return Relation.EXTERIOR
    return Relation.INTERIOR


def isPointInSimplex(simplex: Sequence[Sequence[float]],
                     vertex: Sequence[float],
                     scOp: Optional[ScalarOperator] = None,
                     projected: bool = False) -> bool:
    """Return ``True`` if ``vertex`` lies in the interior or on the
    boundary of ``simplex``."""

    return simplexVertexRelation(simplex, vertex, None, scOp, projected) != Relation.EXTERIOR


def simplexSimplexRelation(a: Sequence[Sequence[float]],
                           b: Sequence[Sequence[float]],
                           scOp: Optional[ScalarOperator] = None) -> Tuple[float, bool]:
    """Return the squared distance of two simplices and whether they
    intersect."""

    if scOp is None:
        scOp = defaultOperator
    distance = simplexDistance(a, b, None, None, scOp)
    return distance, scOp.equal(distance, 0.0)


__all__ = [
    'Relation',
    'simplexVertexRelation',
    'isPointInSimplex',
    'simplexSimplexRelation',
]
