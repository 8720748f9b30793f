from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Optional, Sequence

from .core.solver import match
from .errors import KMError
from .io import format_matching, read_matrix

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="km-match",
        description="Maximum-weight perfect matching of a square weight matrix (Kuhn-Munkres).",
    )
    p.add_argument("input", help="Matrix file: size followed by size*size integer weights")
    p.add_argument("--device", type=str, default=None, help="torch device for solver tensors (default cpu)")
    p.add_argument("--json", action="store_true", help="Print the result as a JSON object")
    p.add_argument("--timing", action="store_true", help="Report the solver time in nanoseconds")
    p.add_argument(
        "--check-invariants",
        action="store_true",
        help="Verify label feasibility after every label update and augmentation",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    try:
        weights = read_matrix(args.input)
    except FileNotFoundError:
        print(f"Error. File not found: {args.input}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as exc:
        print(f"Error. {args.input} is not a UTF-8 text file: {exc.reason}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error. Cannot read {args.input}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    except KMError as exc:
        print(f"Error. {exc}", file=sys.stderr)
        return 1

    t0 = time.perf_counter_ns()
    try:
        result = match(weights, device=args.device, check_invariants=args.check_invariants)
    except KMError as exc:
        print(f"Error. {exc}", file=sys.stderr)
        return 1
    elapsed_ns = time.perf_counter_ns() - t0

    if args.json:
        payload = {"weight": result.weight, "pairs": [list(p) for p in result.pairs]}
        if args.timing:
            payload["elapsed_ns"] = elapsed_ns
        print(json.dumps(payload))
    else:
        print(format_matching(result))
        if args.timing:
            print(f"Total time taken for KM is {elapsed_ns}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
