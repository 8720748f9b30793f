#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

import torch
from scipy.optimize import linear_sum_assignment

# Allow running without an install when invoked from repo root
import sys

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from km_match import match  # noqa: E402


def generate_weights(n: int, max_weight: int, seed: int, cache: bool = True) -> torch.Tensor:
    datasets_dir = Path(__file__).resolve().parent / "datasets"
    datasets_dir.mkdir(parents=True, exist_ok=True)
    cache_path = datasets_dir / f"weights_n{n}_max{max_weight}_seed{seed}.pt"

    if cache and cache_path.exists():
        return torch.load(cache_path)

    generator = torch.Generator()
    generator.manual_seed(seed)
    weights = torch.randint(0, max_weight + 1, (n, n), dtype=torch.int64, generator=generator)

    if cache:
        torch.save(weights, cache_path)

    return weights


def run_once(n: int, max_weight: int, seed: int, device: torch.device, cache: bool):
    weights = generate_weights(n, max_weight, seed, cache=cache)

    if device.type == "cuda":
        torch.cuda.synchronize()
    t0 = time.perf_counter()
    result = match(weights, device=device)
    if device.type == "cuda":
        torch.cuda.synchronize()
    t1 = time.perf_counter()

    dense = weights.numpy()
    t2 = time.perf_counter()
    rows, cols = linear_sum_assignment(dense, maximize=True)
    t3 = time.perf_counter()
    scipy_weight = int(dense[rows, cols].sum())

    return {
        "algorithm": "km_match.match",
        "n": n,
        "max_weight": max_weight,
        "seed": seed,
        "device": str(device),
        "runtime": t1 - t0,
        "weight": result.weight,
        "iterations": int(result.iterations),
        "metrics": result.metrics,
        "scipy_runtime": t3 - t2,
        "scipy_weight": scipy_weight,
        "weights_agree": result.weight == scipy_weight,
    }


def main():
    p = argparse.ArgumentParser(description="Benchmark km_match against SciPy on random integer weights")
    p.add_argument("--n", type=int, default=200)
    p.add_argument("--max-weight", type=int, default=1000)
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--device", type=str, default=None, help="cpu or cuda")
    p.add_argument("--no-cache", action="store_true", help="Regenerate weights instead of reusing datasets/")
    p.add_argument("--out", type=str, default=None, help="Optional JSON output path")
    args = p.parse_args()

    device = (
        torch.device(args.device)
        if args.device is not None
        else torch.device("cuda" if torch.cuda.is_available() else "cpu")
    )

    print("Random Integer Weights Experiment")
    print(f"Parameters: n={args.n}, max_weight={args.max_weight}, seed={args.seed}")
    print(f"Device: {device}")
    print("=" * 60)

    res = run_once(args.n, args.max_weight, args.seed, device, cache=not args.no_cache)

    print("RESULTS:")
    print(json.dumps(res, indent=2))
    if not res["weights_agree"]:
        print("WARNING: km_match and SciPy disagree on the optimal weight")

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(res, f, indent=2)
        print(f"Saved results to {out_path}")


if __name__ == "__main__":
    main()
