from __future__ import annotations

import numpy as np
import pytest
import torch

from km_match import InvalidInputError, WeightMatrix
from km_match.core.problem import MAX_ABS_WEIGHT


def test_from_rows_infers_size() -> None:
    problem = WeightMatrix.from_rows([[1, 2], [3, 4]])
    assert problem.n == 2
    assert problem.values.dtype == torch.int64
    assert problem.tolist() == [[1, 2], [3, 4]]


def test_explicit_size_must_match() -> None:
    assert WeightMatrix.from_rows([[1, 2], [3, 4]], size=2).n == 2
    with pytest.raises(InvalidInputError, match="Expected a 3x3"):
        WeightMatrix.from_rows([[1, 2], [3, 4]], size=3)


def test_negative_size_rejected() -> None:
    with pytest.raises(InvalidInputError, match="non-negative"):
        WeightMatrix.from_rows([], size=-1)


def test_empty_matrix() -> None:
    problem = WeightMatrix.from_rows([], size=0)
    assert problem.n == 0
    assert problem.row_maxima().numel() == 0
    assert WeightMatrix.from_rows(np.zeros((0,), dtype=np.int64)).n == 0


@pytest.mark.parametrize(
    "rows",
    [
        [[1, 2], [3]],
        [[1, 2, 3], [4, 5, 6]],
        [[1], [2]],
    ],
)
def test_non_square_rejected(rows) -> None:
    with pytest.raises(InvalidInputError):
        WeightMatrix.from_rows(rows)


def test_non_integer_values_rejected() -> None:
    with pytest.raises(InvalidInputError, match="integers"):
        WeightMatrix.from_rows([[1.5, 2], [3, 4]])
    with pytest.raises(InvalidInputError, match="integers"):
        WeightMatrix.from_rows([[True, False], [False, True]])
    with pytest.raises(InvalidInputError, match="integer dtype"):
        WeightMatrix.from_rows(torch.ones((2, 2)))
    with pytest.raises(InvalidInputError, match="integer dtype"):
        WeightMatrix.from_rows(np.ones((2, 2), dtype=bool))


def test_wrong_dimensionality_rejected() -> None:
    with pytest.raises(InvalidInputError, match="two-dimensional"):
        WeightMatrix.from_rows(torch.zeros((2, 2, 2), dtype=torch.int64))


def test_weight_magnitude_limit() -> None:
    WeightMatrix.from_rows([[MAX_ABS_WEIGHT]])
    with pytest.raises(InvalidInputError, match="magnitude"):
        WeightMatrix.from_rows([[MAX_ABS_WEIGHT + 1]])
    with pytest.raises(InvalidInputError):
        WeightMatrix.from_rows([[2**70]])


def test_weight_is_bounds_checked() -> None:
    problem = WeightMatrix.from_rows([[1, 2], [3, 4]])
    assert problem.weight(1, 0) == 3
    with pytest.raises(IndexError):
        problem.weight(2, 0)
    with pytest.raises(IndexError):
        problem.weight(0, -1)


def test_caller_mutation_does_not_leak_in() -> None:
    source = torch.tensor([[1, 2], [3, 4]], dtype=torch.int64)
    problem = WeightMatrix.from_rows(source)
    source[0, 0] = 100
    assert problem.weight(0, 0) == 1

    copy = problem.to_tensor()
    copy[1, 1] = -1
    assert problem.weight(1, 1) == 4


def test_row_maxima() -> None:
    problem = WeightMatrix.from_rows([[3, 9, 1], [-4, -2, -8], [0, 0, 0]])
    assert problem.row_maxima().tolist() == [9, -2, 0]


def test_oversized_python_int_rejected_before_conversion() -> None:
    with pytest.raises(InvalidInputError, match="magnitude"):
        WeightMatrix.from_rows([[1, 2], [3, 2**70]])
    with pytest.raises(InvalidInputError, match="magnitude"):
        WeightMatrix.from_rows([[-(2**64)]])


def test_unknown_device_rejected() -> None:
    with pytest.raises(InvalidInputError, match="not usable"):
        WeightMatrix.from_rows([[1]], device="nosuch")
