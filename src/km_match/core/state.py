from __future__ import annotations

from dataclasses import dataclass, field

import torch

from .problem import WeightMatrix

UNMATCHED = -1


@dataclass
class SolverState:
    """
    Mutable solver state tracked across iterations of the Kuhn–Munkres loop.

    ``label_x``/``label_y`` are the vertex labels, ``match_x``/``match_y`` the
    bidirectional matching (``-1`` for unmatched). ``in_s``/``in_t`` mark the
    alternating tree of the current root and ``parent_y`` records, for every
    Y-node reached by the tree, the X-node whose tight edge reached it.
    """

    label_x: torch.Tensor
    label_y: torch.Tensor
    match_x: torch.Tensor
    match_y: torch.Tensor
    in_s: torch.Tensor
    in_t: torch.Tensor
    parent_y: torch.Tensor
    free_x: set[int] = field(default_factory=set)
    free_y: set[int] = field(default_factory=set)
    iteration: int = 0
    metrics: dict[str, float] = field(default_factory=dict)

    @classmethod
    def initial(cls, problem: WeightMatrix) -> "SolverState":
        """Row-maximum labeling with an empty matching."""
        n = problem.n
        device = problem.device
        return cls(
            label_x=problem.row_maxima().clone(),
            label_y=torch.zeros(n, dtype=torch.int64, device=device),
            match_x=torch.full((n,), UNMATCHED, dtype=torch.int64, device=device),
            match_y=torch.full((n,), UNMATCHED, dtype=torch.int64, device=device),
            in_s=torch.zeros(n, dtype=torch.bool, device=device),
            in_t=torch.zeros(n, dtype=torch.bool, device=device),
            parent_y=torch.full((n,), UNMATCHED, dtype=torch.int64, device=device),
            free_x=set(range(n)),
            free_y=set(range(n)),
            metrics={"label_updates": 0.0, "tree_extensions": 0.0},
        )

    def begin_tree(self, root: int) -> None:
        self.in_s.zero_()
        self.in_t.zero_()
        self.parent_y.fill_(UNMATCHED)
        self.in_s[root] = True

    @property
    def tree_x(self) -> set[int]:
        """S: X-nodes of the current alternating tree."""
        return {int(i) for i in torch.nonzero(self.in_s, as_tuple=False).squeeze(1).tolist()}

    @property
    def tree_y(self) -> set[int]:
        """T: Y-nodes of the current alternating tree."""
        return {int(i) for i in torch.nonzero(self.in_t, as_tuple=False).squeeze(1).tolist()}

    def pair(self, x: int, y: int) -> None:
        self.match_x[x] = y
        self.match_y[y] = x
        self.free_x.discard(x)
        self.free_y.discard(y)
