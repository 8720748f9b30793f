from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

import torch

from .problem import MatrixLike, WeightMatrix
from .state import UNMATCHED, SolverState
from ..errors import InvariantViolation

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]


@dataclass
class MatchResult:
    weight: int
    pairs: list[tuple[int, int]]
    match_x: torch.Tensor
    label_x: torch.Tensor
    label_y: torch.Tensor
    iterations: int
    metrics: dict[str, float]


class Matcher:
    """
    Kuhn–Munkres solver for one fixed n×n weight matrix.

    The instance owns the labeling, the matching and the alternating-tree
    search state. :meth:`run` grows the matching by one augmenting path per
    outer iteration until it is perfect, then returns the optimum.

    With ``check_invariants=True`` label feasibility and tightness of every
    matched edge are verified after each label update and augmentation.
    """

    def __init__(
        self,
        weights: MatrixLike,
        *,
        size: Optional[int] = None,
        device: Union[str, torch.device, None] = None,
        check_invariants: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.problem = WeightMatrix.from_rows(weights, size=size, device=device)
        self.check_invariants = check_invariants
        self.progress_callback = progress_callback
        self.state = SolverState.initial(self.problem)

    @property
    def n(self) -> int:
        return self.problem.n

    # ------------------------------------------------------------------
    # Matching-state queries
    # ------------------------------------------------------------------

    def slack(self, x: int, y: int) -> int:
        weight = self.problem.weight(x, y)
        return int(self.state.label_x[x]) + int(self.state.label_y[y]) - weight

    def is_tight(self, x: int, y: int) -> bool:
        return self.slack(x, y) == 0

    def slack_matrix(self) -> torch.Tensor:
        """Slack of every edge, shape [n, n]."""
        return self.state.label_x.unsqueeze(1) + self.state.label_y.unsqueeze(0) - self.problem.values

    def is_feasible(self) -> bool:
        if self.n == 0:
            return True
        return bool((self.slack_matrix() >= 0).all())

    def neighbors_of_tree(self) -> set[int]:
        """N(S): Y-nodes joined to the current tree by a tight edge."""
        _, slack = self._tree_slack()
        tight = (slack == 0).any(dim=0)
        return {int(y) for y in torch.nonzero(tight, as_tuple=False).squeeze(1).tolist()}

    def matching_size(self) -> int:
        return self.n - len(self.state.free_x)

    def is_perfect(self) -> bool:
        return self.matching_size() == self.n

    def matching_weight(self) -> int:
        """Total weight of the pairs matched so far."""
        matched = torch.nonzero(self.state.match_x != UNMATCHED, as_tuple=False).squeeze(1)
        if matched.numel() == 0:
            return 0
        cols = self.state.match_x.index_select(0, matched)
        return int(self.problem.values[matched, cols].sum().item())

    def pairs(self) -> list[tuple[int, int]]:
        return [
            (x, int(y))
            for x, y in enumerate(self.state.match_x.tolist())
            if y != UNMATCHED
        ]

    # ------------------------------------------------------------------
    # Algorithm
    # ------------------------------------------------------------------

    def run(self) -> MatchResult:
        """Augment until the matching is perfect and return it."""
        state = self.state
        start = time.perf_counter()

        while not self.is_perfect():
            root = min(state.free_x)
            if self.progress_callback is not None:
                self.progress_callback(
                    "iteration",
                    {
                        "iteration": state.iteration,
                        "root": root,
                        "matched": self.matching_size(),
                        "free_x": len(state.free_x),
                    },
                )
            logger.debug("iteration %d: root x=%d, %d free", state.iteration, root, len(state.free_x))
            state.begin_tree(root)
            self._augment(root)
            state.iteration += 1

        elapsed = time.perf_counter() - start
        state.metrics["elapsed_seconds"] = state.metrics.get("elapsed_seconds", 0.0) + elapsed

        weight = self.matching_weight()
        logger.info(
            "matched n=%d weight=%d in %d iterations (%d label updates, %.4fs)",
            self.n,
            weight,
            state.iteration,
            int(state.metrics["label_updates"]),
            elapsed,
        )

        return MatchResult(
            weight=weight,
            pairs=self.pairs(),
            match_x=state.match_x.detach().cpu().clone(),
            label_x=state.label_x.detach().cpu().clone(),
            label_y=state.label_y.detach().cpu().clone(),
            iterations=state.iteration,
            metrics=dict(state.metrics),
        )

    def _tree_slack(self) -> Tuple[torch.Tensor, torch.Tensor]:
        """Indices of S and the slack of every edge leaving S, shape [|S|, n]."""
        state = self.state
        xs = torch.nonzero(state.in_s, as_tuple=False).squeeze(1)
        slack = (
            state.label_x.index_select(0, xs).unsqueeze(1)
            + state.label_y.unsqueeze(0)
            - self.problem.values.index_select(0, xs)
        )
        return xs, slack

    def _augment(self, root: int) -> None:
        """Grow the alternating tree of ``root`` until an augmenting path is applied."""
        state = self.state
        while True:
            xs, slack = self._tree_slack()
            frontier = (slack == 0).any(dim=0) & ~state.in_t
            if not bool(frontier.any()):
                self._update_labels(xs, slack)
                xs, slack = self._tree_slack()
                frontier = (slack == 0).any(dim=0) & ~state.in_t
                if not bool(frontier.any()):
                    raise InvariantViolation("Label update produced no new tight edge out of the tree.")

            y = int(torch.nonzero(frontier, as_tuple=False)[0, 0])
            tight_rows = torch.nonzero(slack[:, y] == 0, as_tuple=False).squeeze(1)
            state.parent_y[y] = xs[tight_rows[0]]

            if y in state.free_y:
                path_length = self._flip_augmenting_path(y)
                if self.progress_callback is not None:
                    self.progress_callback(
                        "augment",
                        {
                            "iteration": state.iteration,
                            "root": root,
                            "terminal": y,
                            "path_length": path_length,
                        },
                    )
                if self.check_invariants:
                    self._verify("augmentation")
                return

            z = int(state.match_y[y])
            state.in_s[z] = True
            state.in_t[y] = True
            state.metrics["tree_extensions"] += 1

    def _update_labels(self, xs: torch.Tensor, slack: torch.Tensor) -> None:
        state = self.state
        outside = ~state.in_t
        if not bool(outside.any()):
            raise InvariantViolation("Alternating tree covers every Y-node without reaching a free one.")

        alpha = int(slack[:, outside].min().item())
        if alpha <= 0:
            raise InvariantViolation(f"Label update requires positive slack, got alpha={alpha}.")

        state.label_x[state.in_s] -= alpha
        state.label_y[state.in_t] += alpha
        state.metrics["label_updates"] += 1
        logger.debug(
            "iteration %d: label update alpha=%d |S|=%d |T|=%d",
            state.iteration,
            alpha,
            int(xs.numel()),
            int(state.in_t.sum()),
        )

        if self.progress_callback is not None:
            self.progress_callback(
                "label_update",
                {
                    "iteration": state.iteration,
                    "alpha": alpha,
                    "tree_x": int(xs.numel()),
                    "tree_y": int(state.in_t.sum()),
                },
            )
        if self.check_invariants:
            self._verify("label update")

    def _flip_augmenting_path(self, y: int) -> int:
        """
        Swap matched and unmatched edges along the tree path ending at the
        free node ``y``. Returns the number of pairs rematched.
        """
        state = self.state
        flipped = 0
        while True:
            x = int(state.parent_y[y])
            if x == UNMATCHED:
                raise InvariantViolation(f"Y-node {y} on the augmenting path has no parent.")
            previous = int(state.match_x[x])
            state.pair(x, y)
            flipped += 1
            if previous == UNMATCHED:
                return flipped
            y = previous

    def _verify(self, stage: str) -> None:
        if not self.is_feasible():
            raise InvariantViolation(f"Labels are infeasible after {stage}.")
        for x, y in self.pairs():
            if int(self.state.match_y[y]) != x:
                raise InvariantViolation(f"match_x and match_y disagree on pair ({x}, {y}).")
            if not self.is_tight(x, y):
                raise InvariantViolation(f"Matched edge ({x}, {y}) is not tight after {stage}.")


def match(
    weights: MatrixLike,
    *,
    size: Optional[int] = None,
    device: Union[str, torch.device, None] = None,
    check_invariants: bool = False,
    progress_callback: Optional[ProgressCallback] = None,
) -> MatchResult:
    """
    Compute a maximum-weight perfect matching of the complete bipartite graph
    whose n×n integer weights are ``weights``.
    """
    matcher = Matcher(
        weights,
        size=size,
        device=device,
        check_invariants=check_invariants,
        progress_callback=progress_callback,
    )
    return matcher.run()
