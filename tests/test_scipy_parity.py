from __future__ import annotations

import unittest

import numpy as np
import torch
from scipy.optimize import linear_sum_assignment

from km_match import match


def _scipy_weight(weights: np.ndarray) -> int:
    rows, cols = linear_sum_assignment(weights, maximize=True)
    return int(weights[rows, cols].sum())


class ScipyParityTest(unittest.TestCase):
    def test_random_integer_weights(self) -> None:
        generator = torch.Generator()
        generator.manual_seed(1234)
        for n in (7, 12, 25, 40):
            weights = torch.randint(0, 1000, (n, n), dtype=torch.int64, generator=generator)

            result = match(weights)

            self.assertEqual(result.weight, _scipy_weight(weights.numpy()), msg=f"weight mismatch for n={n}")
            self.assertEqual(sorted(y for _, y in result.pairs), list(range(n)))
            recomputed = int(sum(weights[x, y].item() for x, y in result.pairs))
            self.assertEqual(result.weight, recomputed)

    def test_narrow_weight_range_with_many_ties(self) -> None:
        rng = np.random.default_rng(7)
        for n in (8, 16, 30):
            weights = rng.integers(0, 3, size=(n, n), dtype=np.int64)

            result = match(weights, check_invariants=True)

            self.assertEqual(result.weight, _scipy_weight(weights), msg=f"weight mismatch for n={n}")

    def test_signed_weights(self) -> None:
        rng = np.random.default_rng(99)
        weights = rng.integers(-500, 500, size=(20, 20), dtype=np.int64)

        result = match(weights)

        self.assertEqual(result.weight, _scipy_weight(weights))


if __name__ == "__main__":
    unittest.main()
