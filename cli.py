"""Command-line entry point: generate, solve, batch, bench."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import List, Optional

from config import CFG
from grid_io import format_solution, read_grid
from models import BackendError, GridError


def _cmd_generate(args) -> int:
    from generation import generate_dataset

    sizes = [int(s) for s in args.sizes.split(",")] if args.sizes else None
    written = generate_dataset(
        args.data_dir,
        sizes,
        per_combo=args.per_combo,
        rng=random.Random(args.seed),
    )
    print(f"{len(written)} instance(s) written to {args.data_dir or CFG.DATA_DIR}")
    return 0


def _cmd_solve(args) -> int:
    from solver.orchestrator import solve_instance

    try:
        grid = read_grid(args.instance)
        record = solve_instance(
            grid,
            args.method,
            instance=args.instance,
            time_limit=args.time_limit,
            rng=random.Random(args.seed),
        )
    except GridError as e:
        print(f"bad grid: {e}", file=sys.stderr)
        return 2
    except BackendError as e:
        print(f"backend error: {e}", file=sys.stderr)
        return 3
    sys.stdout.write(format_solution(grid, record))
    return 0 if record.is_optimal else 1


def _cmd_batch(args) -> int:
    from solver.orchestrator import solve_dataset

    methods = args.methods.split(",") if args.methods else None
    summary = solve_dataset(
        args.data_dir,
        args.res_dir,
        methods,
        time_limit=args.time_limit,
        rng=random.Random(args.seed),
    )
    print(
        f"solved={summary['solved']} not_optimal={summary['not_optimal']} "
        f"infeasible={summary['infeasible']} "
        f"skipped={summary['skipped']} errors={len(summary['errors'])}"
    )
    for method, name, msg in summary["errors"]:
        print(f"  {method} {name}: {msg}", file=sys.stderr)
    return 0 if not summary["errors"] else 3


def _cmd_bench(args) -> int:
    import benchmark

    rng = random.Random(args.seed)
    if args.method == "heuristic":
        solve_fn = benchmark.heuristic_solve_fn(rng)
    else:
        solve_fn = benchmark.exact_solve_fn(args.method, args.time_limit)
    param_fn = {
        "size": benchmark.param_size,
        "depth": benchmark.param_depth,
        "clues": benchmark.param_clue_count,
    }[args.group_by]
    sizes = [int(s) for s in args.sizes.split(",")]
    opt_ratio, means = benchmark.run_sweep(solve_fn, param_fn, sizes, per_combo=args.per_combo, rng=rng)
    print(f"{args.group_by:>8}  optimal  mean_time")
    for key in sorted(opt_ratio):
        print(f"{key:>8}  {opt_ratio[key]:7.2f}  {means[key]:9.4f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rectangle-partition puzzle solver")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate a dataset of instances")
    gen.add_argument("--data-dir", default=None)
    gen.add_argument("--sizes", default=None, help="Comma-separated square sizes")
    gen.add_argument("--per-combo", type=int, default=None)
    gen.set_defaults(func=_cmd_generate)

    solve = subparsers.add_parser("solve", help="Solve one instance file")
    solve.add_argument("instance")
    solve.add_argument("--method", default=CFG.METHODS[0])
    solve.add_argument("--time-limit", type=float, default=None)
    solve.set_defaults(func=_cmd_solve)

    batch = subparsers.add_parser("batch", help="Solve every instance not solved yet")
    batch.add_argument("--data-dir", default=None)
    batch.add_argument("--res-dir", default=None)
    batch.add_argument("--methods", default=None, help="Comma-separated methods")
    batch.add_argument("--time-limit", type=float, default=None)
    batch.set_defaults(func=_cmd_batch)

    bench = subparsers.add_parser("bench", help="Sweep generated instances and aggregate")
    bench.add_argument("--method", default="heuristic")
    bench.add_argument("--group-by", choices=["size", "depth", "clues"], default="size")
    bench.add_argument("--sizes", default="4,9,16")
    bench.add_argument("--per-combo", type=int, default=5)
    bench.add_argument("--time-limit", type=float, default=None)
    bench.set_defaults(func=_cmd_bench)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
