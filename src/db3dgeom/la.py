## dense linear algebra for the db3dgeom distance kernel
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

"""basic linear algebra without reference to fields, rings *etc.*

vectors and matrices
====================

Vectors are Python sequences of numbers of arbitrary length, and
matrices are sequences of row vectors.  Unlike the fixed four-vectors
of a graphics library, vectors here may have different lengths: every
binary operation zero-pads the shorter operand, so ``[1,2]`` and
``[1,2,0,0]`` are the same vector.

solvers
=======

``solveInplace()`` is a plain Gaussian elimination with partial
pivoting that works *in place* on an augmented matrix ``[M | y]``.  It
destroys its argument.  ``solve()`` and ``solveSym()`` make a private
copy first and are what the distance routines call.  ``solveSym()``
takes a ``method`` argument selecting a backend:

``lapack``
    LAPACK's symmetric indefinite solver (``DSYSV``, Bunch-Kaufman
    pivoting) through ``scipy.linalg.solve``.  Only exactly singular
    systems are detected.  This is the default, and the only backend
    whose accuracy does not degrade with points far from the origin.
``gauss``
    the in-place eliminator, treating pivots of magnitude at or below
    ``FLOAT_EPSILON`` as singular.  Its row rescaling shrinks pivots of
    well-posed systems, so it reports singularity early on large
    coordinates.
``mp``
    the in-place eliminator run on ``mpmath`` numbers with ``MP_DPS``
    decimal digits.

All solvers raise ``SingularMatrixError`` if the system doesn't have
exactly one solution.

"""

import mpmath as mpm
import numpy as np
import scipy.linalg

from db3dgeom.scalar import FLOAT_EPSILON, isgoodnum

## constants
DEFAULT_METHOD = 'lapack'
MP_DPS = 50
METHODS = ('lapack', 'gauss', 'mp')


class SingularMatrixError(ArithmeticError):
    """the equation system does not have exactly one solution"""


## operations on vectors
## ------------------------

def _ismatrix(x):
    return isinstance(x, (list, tuple, np.ndarray)) and len(x) > 0 \
        and all(isinstance(row, (list, tuple, np.ndarray)) for row in x)


def dot(a, b):
    """dot product, zero-padding the shorter vector; ``None`` is the
    empty vector
    """
    if a is None or b is None:
        return 0.0
    result = 0.0
    for i in range(min(len(a), len(b))):
        result += a[i] * b[i]
    return result


def plus(a, b=None):
    """``a + b``, or a copy of ``a`` if ``b`` is omitted"""
    if b is None:
        if a is None:
            return []
        return list(a)
    if len(a) > len(b):
        return plus(b, a)
    result = list(b)
    for i in range(len(a)):
        result[i] = a[i] + b[i]
    return result


def minus(a, b=None):
    """``a - b``, or ``-a`` if ``b`` is omitted.  Matrices are negated
    row by row.
    """
    if b is None:
        if _ismatrix(a):
            return [minus(row) for row in a]
        return [-x for x in a]
    return plus(a, minus(b))


def mul(x, y):
    """generalized product.  ``mul(c, v)`` scales a vector, ``mul(M, v)``
    is the column product ``Mv``, ``mul(v, M)`` the row product ``vM``
    and ``mul(M, N)`` the matrix product.
    """
    if isgoodnum(x):
        return [x * v for v in y]
    if _ismatrix(x):
        if _ismatrix(y):
            width = max(len(row) for row in y)
            result = []
            for xr in x:
                row = [0.0] * width
                for c in range(width):
                    acc = 0.0
                    for i in range(min(len(xr), len(y))):
                        if c < len(y[i]):
                            acc += xr[i] * y[i][c]
                    row[c] = acc
                result.append(row)
            return result
        return [dot(row, y) for row in x]
    if _ismatrix(y):
        result = []
        for r in range(min(len(x), len(y))):
            result = plus(result, mul(x[r], y[r]))
        return result
    raise ValueError('bad arguments passed to mul(): {}, {}'.format(x, y))


def isZero(v):
    for c in v:
        if c != 0.0:
            return False
    return True


## operations on matrices
## ------------------------

def identity(n):
    return [[1.0 if i == j else 0.0 for j in range(n)] for i in range(n)]


def copyMatrix(M):
    """a deep copy of a list-of-rows matrix, as plain lists"""
    return [list(row) for row in M]


def transpose(M):
    rows = len(M)
    cols = 0
    for row in M:
        if row is not None:
            cols = max(cols, len(row))
    result = [[0.0] * rows for _ in range(cols)]
    for r in range(rows):
        row = M[r]
        if row is None:
            continue
        for c in range(len(row)):
            result[c][r] = row[c]
    return result


def gramian(vectors):
    """the symmetric matrix of pairwise dot products"""
    n = len(vectors)
    result = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i, n):
            result[i][j] = result[j][i] = dot(vectors[i], vectors[j])
    return result


def minor(r, c, M):
    """``M`` without row ``r`` and column ``c``"""
    result = []
    for i, row in enumerate(M):
        if i == r:
            continue
        result.append([row[j] for j in range(len(row)) if j != c])
    return result


def project(idx, vec):
    """the entries of ``vec`` at the indices ``idx``"""
    return [vec[i] for i in idx]


def projectMatrix(rowIdx, M, colIdx=None):
    """the submatrix of ``M`` with rows ``rowIdx`` and columns ``colIdx``
    (default: the same as the rows)
    """
    if colIdx is None:
        colIdx = rowIdx
    return [[_entry(M, r, c) for c in colIdx] for r in rowIdx]


def inject(result, idx, vec):
    """scatter ``vec`` into ``result`` at the indices ``idx``.  If
    ``result`` is an integer a new zero vector of that length is used.
    """
    if isinstance(result, int):
        result = [0.0] * result
    for pos, i in enumerate(idx):
        result[i] = vec[pos]
    return result


def _entry(M, r, c):
    try:
        return M[r][c]
    except IndexError:
        return 0.0


def matstr(M):
    """render a matrix with aligned columns, four decimals per cell and
    ``?`` for cells missing from ragged rows
    """
    rows = len(M)
    cols = 0
    for row in M:
        if row is not None:
            cols = max(cols, len(row))

    cells = []
    widths = [0] * cols
    for r in range(rows):
        line = []
        for c in range(cols):
            row = M[r]
            if row is not None and c < len(row):
                cell = ' {:.4f} '.format(float(row[c]))
            else:
                cell = ' ? '
            line.append(cell)
            widths[c] = max(widths[c], len(cell))
        cells.append(line)

    lines = []
    for line in cells:
        text = ''.join(cell.rjust(widths[c]) for c, cell in enumerate(line))
        lines.append('[' + text + ']')
    return '\n'.join(lines)


## solvers
## ------------------------

def _augment(M, y):
    """private square augmented copy ``[M | y]``, zero padded"""
    n = len(M)
    cols = max((len(row) for row in M), default=0)
    if n != cols:
        raise SingularMatrixError('matrix is not square: {}x{}'.format(n, cols))
    My = []
    for r in range(n):
        row = [_entry(M, r, c) for c in range(n)]
        row.append(y[r] if r < len(y) else 0.0)
        My.append(row)
    return My


def solveInplace(My, safe=False):
    """solve the augmented system ``My = [M | y]`` by Gaussian elimination
    with partial pivoting, destroying ``My``.

    A pivot whose magnitude is at or below ``FLOAT_EPSILON`` makes the
    system singular.  In ``safe`` mode the offending row and column are
    zeroed instead, and the corresponding unknown is reported as zero.

    Returns the list ``x`` such that ``Mx = y``.
    """
    rows = len(My)
    cols = max((len(row) for row in My), default=1) - 1
    if rows != cols:
        raise SingularMatrixError('augmented matrix must be n x (n+1), got {}x{}'
                                  .format(rows, cols + 1))
    for row in My:
        while len(row) < cols + 1:
            row.append(0.0)

    for i in range(rows):
        ## partial pivoting; an exact 1 ends the search
        pivot = abs(My[i][i])
        pivotRow = i
        for iPiv in range(i + 1, rows):
            absMy = abs(My[iPiv][i])
            if pivot < absMy or absMy == 1.0:
                pivot = absMy
                pivotRow = iPiv
                if absMy == 1.0:
                    break
        if pivotRow != i:
            My[i], My[pivotRow] = My[pivotRow], My[i]

        pivot = My[i][i]
        if abs(pivot) <= FLOAT_EPSILON:
            if not safe:
                raise SingularMatrixError('pivot {} in column {} is too small'
                                          .format(float(pivot), i))
            My[i][i] = 0.0
            for c in range(i + 1, cols + 1):
                My[i][c] = 0.0
            for r in range(i + 1, rows):
                My[r][i] = 0.0
            continue

        My[i][i] = 1.0
        for c in range(i + 1, cols + 1):
            My[i][c] /= pivot

        for iDown in range(i + 1, rows):
            pivotDown = My[iDown][i]
            if pivotDown != 0.0:
                rowDown = My[iDown]
                rowI = My[i]
                for c in range(i + 1, cols + 1):
                    rowDown[c] = rowDown[c] / pivotDown - rowI[c]
            My[iDown][i] = 0.0

    ## back substitution on the unit upper triangle
    result = [0.0] * cols
    for i in range(rows - 1, -1, -1):
        result_i = result[i] = My[i][cols]
        for iUp in range(i - 1, -1, -1):
            My[iUp][cols] -= result_i * My[iUp][i]
            My[iUp][i] = 0.0
    return result


def solve(M, y, safe=False):
    """solve ``Mx = y`` on a private copy of ``M``"""
    return solveInplace(_augment(M, y), safe)


def lapackSolve(M, y, assume_a='sym'):
    """solve ``Mx = y`` with LAPACK through scipy.  By default ``M`` is
    taken to be symmetric and only its upper triangle is read; pass
    ``assume_a='gen'`` for a general LU solve.
    """
    n = len(M)
    try:
        a = np.array([[_entry(M, r, c) for c in range(n)] for r in range(n)],
                     dtype=float)
        b = np.array([y[r] if r < len(y) else 0.0 for r in range(n)], dtype=float)
        x = scipy.linalg.solve(a, b, assume_a=assume_a)
    except scipy.linalg.LinAlgError as exc:
        raise SingularMatrixError(str(exc)) from exc
    if not np.all(np.isfinite(x)):
        raise SingularMatrixError('non-finite solution')
    return [float(v) for v in x]


def mpSolve(M, y, dps=MP_DPS):
    """solve ``Mx = y`` by Gaussian elimination carried out with ``dps``
    decimal digits of precision; the result is returned as floats
    """
    My = _augment(M, y)
    with mpm.workdps(dps):
        mpMy = [[mpm.mpf(v) for v in row] for row in My]
        x = solveInplace(mpMy)
        return [float(v) for v in x]


def solveSym(M, y, method=DEFAULT_METHOD):
    """solve the symmetric system ``Mx = y``.  ``M`` is never modified."""
    if method == 'lapack':
        return lapackSolve(M, y)
    if method == 'gauss':
        return solve(M, y)
    if method == 'mp':
        return mpSolve(M, y)
    raise ValueError('unknown solver method: {}'.format(method))


def solveIndexed(pi, M, y, method=DEFAULT_METHOD):
    """solve the subsystem of the rows and columns ``pi`` of ``M``"""
    py = [y[i] if i < len(y) else 0.0 for i in pi]
    return solveSym(projectMatrix(pi, M), py, method)


__all__ = [
    'DEFAULT_METHOD',
    'MP_DPS',
    'METHODS',
    'SingularMatrixError',
    'dot',
    'plus',
    'minus',
    'mul',
    'isZero',
    'identity',
    'copyMatrix',
    'transpose',
    'gramian',
    'minor',
    'project',
    'projectMatrix',
    'inject',
    'matstr',
    'solveInplace',
    'solve',
    'lapackSolve',
    'mpSolve',
    'solveSym',
    'solveIndexed',
]
