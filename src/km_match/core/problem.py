from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral
from typing import Any, Optional, Sequence, Union

import numpy as np
import torch

from ..errors import InvalidInputError

# Bound on |w| that keeps label and slack arithmetic inside int64.
MAX_ABS_WEIGHT = 2**60

MatrixLike = Union[torch.Tensor, np.ndarray, Sequence[Sequence[int]], "WeightMatrix"]


def _rows_to_tensor(rows: Sequence[Sequence[Any]]) -> torch.Tensor:
    materialised = [list(row) for row in rows]
    width = len(materialised)
    for index, row in enumerate(materialised):
        if len(row) != width:
            raise InvalidInputError(
                f"Row {index} has {len(row)} entries, expected {width} for a square matrix."
            )
        for value in row:
            if isinstance(value, (bool, np.bool_)) or not isinstance(value, Integral):
                raise InvalidInputError(f"Weights must be integers, got {value!r} in row {index}.")
            if abs(int(value)) > MAX_ABS_WEIGHT:
                raise InvalidInputError(
                    f"Weights must not exceed {MAX_ABS_WEIGHT} in magnitude, got {value} in row {index}."
                )
    if width == 0:
        return torch.zeros((0, 0), dtype=torch.int64)
    try:
        return torch.tensor(materialised, dtype=torch.int64)
    except (OverflowError, RuntimeError, ValueError) as exc:
        raise InvalidInputError(f"Weights do not fit in 64-bit integers: {exc}") from exc


def _array_to_tensor(array: Union[torch.Tensor, np.ndarray]) -> torch.Tensor:
    try:
        tensor = torch.as_tensor(array)
    except (TypeError, RuntimeError) as exc:
        raise InvalidInputError(f"Weights must be numeric: {exc}") from exc
    if tensor.dtype == torch.bool or tensor.dtype.is_floating_point or tensor.dtype.is_complex:
        raise InvalidInputError(f"Weights must have an integer dtype, got {tensor.dtype}.")
    if tensor.dim() == 1 and tensor.numel() == 0:
        tensor = tensor.reshape(0, 0)
    return tensor.to(device="cpu", dtype=torch.int64)


@dataclass(frozen=True)
class WeightMatrix:
    """
    Immutable, bounds-checked container for an n×n integer weight matrix.

    ``values[x, y]`` is the weight of the edge between X-node ``x`` and
    Y-node ``y``. The tensor is owned by the container; callers that need to
    modify weights should work on :meth:`to_tensor`, which returns a copy.
    """

    values: torch.Tensor
    device: torch.device

    @classmethod
    def from_rows(
        cls,
        weights: MatrixLike,
        *,
        size: Optional[int] = None,
        device: Union[str, torch.device, None] = None,
    ) -> "WeightMatrix":
        """
        Validate ``weights`` and wrap them.

        ``weights`` may be a nested sequence of integers, an integer NumPy
        array, an integer torch tensor or another :class:`WeightMatrix`.
        ``size`` is inferred from the matrix when omitted.
        """
        if size is not None:
            if isinstance(size, bool) or not isinstance(size, Integral):
                raise InvalidInputError(f"size must be an integer, got {size!r}.")
            if size < 0:
                raise InvalidInputError(f"size must be non-negative, got {size}.")

        if isinstance(weights, WeightMatrix):
            tensor = weights.values.cpu()
        elif isinstance(weights, (torch.Tensor, np.ndarray)):
            tensor = _array_to_tensor(weights)
        else:
            try:
                tensor = _rows_to_tensor(weights)
            except TypeError as exc:
                raise InvalidInputError(f"Weights must be a sequence of rows: {exc}") from exc

        if tensor.dim() != 2:
            raise InvalidInputError(f"Weights must be two-dimensional, got {tensor.dim()} dimension(s).")
        rows, cols = (int(s) for s in tensor.shape)
        if rows != cols:
            raise InvalidInputError(f"Weights must be square, got shape {rows}x{cols}.")
        if size is not None and rows != size:
            raise InvalidInputError(f"Expected a {size}x{size} matrix, got {rows}x{cols}.")
        if bool(((tensor > MAX_ABS_WEIGHT) | (tensor < -MAX_ABS_WEIGHT)).any()):
            raise InvalidInputError(f"Weights must not exceed {MAX_ABS_WEIGHT} in magnitude.")

        try:
            torch_device = torch.device(device) if device is not None else torch.device("cpu")
            values = tensor.to(device=torch_device).clone()
        except (RuntimeError, AssertionError) as exc:
            # torch raises AssertionError for backends it was not built with.
            raise InvalidInputError(f"Device {device!r} is not usable: {exc}") from exc
        return cls(values=values, device=torch_device)

    @property
    def n(self) -> int:
        """Number of nodes in each partition."""
        return int(self.values.shape[0])

    def weight(self, x: int, y: int) -> int:
        if not (0 <= x < self.n and 0 <= y < self.n):
            raise IndexError(f"Edge ({x}, {y}) is outside a {self.n}x{self.n} matrix.")
        return int(self.values[x, y].item())

    def row_maxima(self) -> torch.Tensor:
        if self.n == 0:
            return self.values.new_empty((0,))
        return self.values.max(dim=1).values

    def to_tensor(self) -> torch.Tensor:
        return self.values.clone()

    def tolist(self) -> list[list[int]]:
        return self.values.cpu().tolist()
