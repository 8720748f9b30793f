"""
Maximum-weight perfect matching on complete bipartite graphs.

`match` is the main entry point: it takes an n×n integer weight matrix and
returns a `MatchResult` holding the optimal total weight and the matched
(x, y) pairs. `Matcher` exposes the Kuhn–Munkres solver state for callers
that want to inspect labels or the matching while it is built.
"""

from .core.problem import WeightMatrix
from .core.solver import Matcher, MatchResult, match
from .errors import InvalidInputError, InvariantViolation, KMError, MatrixFormatError
from .io import format_matching, parse_matrix, read_matrix

__all__ = [
    "match",
    "Matcher",
    "MatchResult",
    "WeightMatrix",
    "KMError",
    "InvalidInputError",
    "MatrixFormatError",
    "InvariantViolation",
    "parse_matrix",
    "read_matrix",
    "format_matching",
]
