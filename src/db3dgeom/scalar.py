## epsilon-tolerant scalar comparison and machine constants for db3dgeom
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

"""epsilon-tolerant scalar comparison for **db3dgeom**

====================
OVERVIEW
====================

Every geometric decision in db3dgeom ("is this distance zero?", "is
this barycentric coordinate negative?") is made through a
``ScalarOperator``, which compares two floats up to a fixed epsilon.
The operator is immutable and can be shared freely between callers.

constants
=========

``DOUBLE_EPSILON`` and ``FLOAT_EPSILON`` are the values of the least
significant mantissa bit of ``1.0`` in double and single precision,
determined at import time by repeated halving.  ``DOUBLE_MIN_UNIT`` is
the smallest power of two which is still invertible by
multiplication.  ``DEFAULT_EPSILON`` is the tolerance used when no
operator is supplied.  Redefine these at your peril.

"""

from math import inf, isinf, isnan

import numpy as np

## constants
DEFAULT_EPSILON = 0.0001


def isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n, bool)) and isinstance(n, (int, float, np.floating, np.integer))


def isUnit(d):
    """return True iff ``d`` is invertible by multiplication, i.e.
    ``(1/d)*d == 1``.  Note that ``isUnit(d) == isUnit(1/d)``.
    """
    if d == 0.0 or isinf(d) or isnan(d):
        return False
    return (1.0 / d) * d == 1.0


def _doubleEpsilon():
    result = e = 1.0
    while e + 1.0 != 1.0:
        result = e
        e /= 2.0
    return result


def _floatEpsilon():
    one = np.float32(1.0)
    two = np.float32(2.0)
    result = e = one
    while e + one != one:
        result = e
        e = e / two
    return float(result)


def _doubleMinUnit():
    result = e = 1.0
    while isUnit(e / 2.0):
        result = e
        e /= 2.0
    return result


DOUBLE_EPSILON = _doubleEpsilon()
FLOAT_EPSILON = _floatEpsilon()
DOUBLE_MIN_UNIT = _doubleMinUnit()


def digits(d):
    """number of non-zero binary digits in the mantissa of ``d``"""
    if isinf(d) or isnan(d):
        raise ValueError('digits() is undefined for {}'.format(d))
    if d == 0.0:
        return 0
    nd = abs(d)
    while nd < 1.0:
        nd *= 2.0
    while nd >= 2.0:
        nd /= 2.0
    result = 0
    while nd > 0.0:
        if nd >= 1.0:
            result += 1
            nd -= 1.0
        nd *= 2.0
    return result


def doubleCompare(d1, d2):
    """numeric order of two non-NaN floats as -1, 0 or +1.  Unlike a
    sort key, ``-0.0`` and ``0.0`` compare equal.
    """
    if d1 > d2:
        return 1
    if d1 < d2:
        return -1
    if d1 == d2:
        return 0
    raise ValueError('cannot compare NaN values: {}, {}'.format(d1, d2))


def addDimensions(*dimensions):
    """sum of the given dimensions, or -1 if there are none or any of
    them is negative (a negative dimension stands for the empty set)
    """
    if not dimensions:
        return -1
    total = 0
    for dim in dimensions:
        if dim < 0:
            return -1
        total += dim
    return total


def getMin(*values):
    result = inf
    for value in values:
        result = min(result, value)
    return result


def getMax(*values):
    result = -inf
    for value in values:
        result = max(result, value)
    return result


class ScalarOperator:
    """compare floats up to a fixed, non-negative epsilon"""

    __slots__ = ('_epsilon',)

    def __init__(self, epsilon=DEFAULT_EPSILON):
        if not isgoodnum(epsilon) or isnan(epsilon) or epsilon < 0:
            raise ValueError('bad epsilon passed to ScalarOperator: {}'.format(epsilon))
        object.__setattr__(self, '_epsilon', float(epsilon))

    def __setattr__(self, name, value):
        raise AttributeError('ScalarOperator is immutable')

    def __repr__(self):
        return "ScalarOperator(epsilon={})".format(self._epsilon)

    def __eq__(self, other):
        if not isinstance(other, ScalarOperator):
            return NotImplemented
        return self._epsilon == other._epsilon

    def __hash__(self):
        return hash((ScalarOperator, self._epsilon))

    @property
    def epsilon(self):
        return self._epsilon

    def getEpsilon(self):
        return self._epsilon

    def getEpsilonNeg(self):
        return -self._epsilon

    def copy(self):
        return ScalarOperator(self._epsilon)

    ## relation methods

    def equal(self, first, second):
        diff = first - second
        if diff > 0:
            return diff < self._epsilon
        return diff > -self._epsilon

    def lessThan(self, first, second):
        return (second - first) >= self._epsilon

    def greaterThan(self, first, second):
        return (first - second) >= self._epsilon

    def lessOrEqual(self, first, second):
        diff = second - first
        if diff >= 0:
            return True
        return diff > -self._epsilon

    def greaterOrEqual(self, first, second):
        diff = first - second
        if diff >= 0:
            return True
        return diff > -self._epsilon


## operator used by the distance routines when the caller supplies none
defaultOperator = ScalarOperator()


__all__ = [
    'DEFAULT_EPSILON',
    'DOUBLE_EPSILON',
    'FLOAT_EPSILON',
    'DOUBLE_MIN_UNIT',
    'ScalarOperator',
    'defaultOperator',
    'isgoodnum',
    'isUnit',
    'digits',
    'doubleCompare',
    'addDimensions',
    'getMin',
    'getMax',
]
