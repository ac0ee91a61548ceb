# -*- coding: utf-8 -*-
import logging
from importlib.metadata import PackageNotFoundError, version

from db3dgeom.distance import affineDistance, simplexDistance
from db3dgeom.la import SingularMatrixError
from db3dgeom.relation import (
    Relation,
    isPointInSimplex,
    simplexSimplexRelation,
    simplexVertexRelation,
)
from db3dgeom.scalar import ScalarOperator

try:
    __version__ = version("db3dgeom")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'Relation',
    'ScalarOperator',
    'SingularMatrixError',
    'affineDistance',
    'simplexDistance',
    'simplexVertexRelation',
    'isPointInSimplex',
    'simplexSimplexRelation',
]
