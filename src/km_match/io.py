"""
Reading weight matrices from text files and rendering results for display.

The file format is a stream of whitespace-separated integers: the matrix
size ``n`` followed by ``n * n`` weights in row-major order. Line breaks are
not significant and tokens after the last weight are ignored.
"""

from __future__ import annotations

import os
from typing import Union

from .core.problem import WeightMatrix
from .core.solver import MatchResult
from .errors import MatrixFormatError


def parse_matrix(text: str) -> WeightMatrix:
    """
    Parse matrix text: the size ``n`` followed by ``n * n`` weights.

    Raises ``MatrixFormatError`` when the size or a weight is missing or not
    an integer, and ``InvalidInputError`` when a weight is out of range.
    """
    tokens = iter(text.split())

    try:
        size = int(next(tokens))
    except (StopIteration, ValueError) as exc:
        raise MatrixFormatError("Failed to parse matrix size. Input is incorrectly formatted.") from exc
    if size < 0:
        raise MatrixFormatError(f"Failed to parse matrix size. Size must be non-negative, got {size}.")

    rows: list[list[int]] = []
    try:
        for _ in range(size):
            rows.append([int(next(tokens)) for _ in range(size)])
    except (StopIteration, ValueError) as exc:
        raise MatrixFormatError("Failed to parse weight matrix. Input is incorrectly formatted.") from exc

    return WeightMatrix.from_rows(rows, size=size)


def read_matrix(path: Union[str, os.PathLike]) -> WeightMatrix:
    """Parse the matrix file at ``path``. A missing file raises ``FileNotFoundError``."""
    with open(path, "r", encoding="utf-8") as handle:
        return parse_matrix(handle.read())


def format_matching(result: MatchResult) -> str:
    """Total weight on the first line, then one-based ``(x,y)`` pairs ascending by x."""
    lines = [str(result.weight)]
    lines.extend(f"({x + 1},{y + 1})" for x, y in sorted(result.pairs))
    return "\n".join(lines)
