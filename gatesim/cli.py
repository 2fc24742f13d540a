# cli.py
# Time-to-percentile estimates for a bank of breakable gates.
#
# Usage:
#   python -m gatesim                         # 100k units, 10 gates, tick model
#   python -m gatesim --model event --replications 8
#   python -m gatesim --help                  # see knobs
#
# Output: one line per seed with the time at which the cleared volume first
# reached each percentile (and the p95/p50, p99/p50 tail ratios for the
# sparse policy). A seed that hits --max-time or --max-steps prints
# "seed=N did-not-converge" instead, and the exit status is 1.

import argparse
import logging
import sys

from .config import SimulationConfig
from .errors import DidNotConverge, InvalidConfig
from .models import MODELS
from .percentiles import UNSET, tail_ratios
from .runner import run_many

logger = logging.getLogger(__name__)

DENSE_COLUMNS = list(range(0, 100, 10)) + [99, 100]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gatesim",
        description="Simulate parallel gates with random breakdowns clearing a fixed volume.",
    )
    ap.add_argument("--passengers", type=int, default=100_000, help="Units to clear")
    ap.add_argument("--gates", type=int, default=10, help="Parallel gates")
    ap.add_argument("--break-chance", type=float, default=0.05)
    ap.add_argument("--repair-time", type=int, default=120)
    ap.add_argument("--processing-time", type=int, default=15)
    ap.add_argument("--jitter-repair", action="store_true", help="Jitter repairs in the tick model")
    ap.add_argument("--max-time", type=int, default=None, help="Give up past this simulated time")
    ap.add_argument("--max-steps", type=int, default=None, help="Give up after this many loop steps")

    ap.add_argument("--model", choices=sorted(MODELS), default="tick")
    ap.add_argument("--percentiles", choices=["sparse", "dense", "dense-raw"], default="sparse")
    ap.add_argument("--seed", type=int, default=100)
    ap.add_argument("--replications", type=int, default=1, help="Run seeds seed..seed+n-1")
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def _fmt(t) -> str:
    return "-" if t is None or t == UNSET else str(int(t))


def format_record(seed: int, record) -> str:
    if isinstance(record, dict):
        cols = [f"p{p}={_fmt(t)}" for p, t in sorted(record.items())]
        for p, r in tail_ratios(record).items():
            cols.append(f"p{p}/p50=" + ("-" if r is None else f"{r:.3f}"))
    else:
        cols = [f"p{p}={_fmt(record[p])}" for p in DENSE_COLUMNS]
    return f"seed={seed} " + " ".join(cols)


def format_failure(seed: int, exc: DidNotConverge) -> str:
    line = f"seed={seed} did-not-converge"
    if exc.state is not None:
        line += f" done={exc.state.completed} t={exc.state.time}"
    return line


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if args.replications <= 0:
        ap.error("--replications must be positive")
    try:
        config = SimulationConfig(
            passenger_count=args.passengers,
            gate_count=args.gates,
            break_chance=args.break_chance,
            repair_time=args.repair_time,
            processing_time=args.processing_time,
            jitter_repair=args.jitter_repair,
            max_time=args.max_time,
            max_steps=args.max_steps,
        )
    except InvalidConfig as e:
        ap.error(str(e))

    seeds = list(range(args.seed, args.seed + args.replications))
    records = run_many(config, seeds, args.model, args.percentiles, workers=args.workers)

    failed = 0
    for seed, record in zip(seeds, records):
        if isinstance(record, DidNotConverge):
            logger.warning("seed %d: %s", seed, record)
            print(format_failure(seed, record))
            failed += 1
        else:
            print(format_record(seed, record))
    if failed:
        logger.error("%d of %d seeds did not converge", failed, len(seeds))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
