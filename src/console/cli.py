"""CLI entry-point for the Sentinel console.

Usage examples
--------------
# 30 one-second ticks with the default config:
python -m src.console

# Fast, reproducible run without writing files:
python -m src.console --ticks 5 --interval-ms 100 --seed 7 --no-output
"""

from __future__ import annotations

import argparse
import asyncio

from src.console.runtime import run_session
from src.shared.logger import setup_logging
from src.shared.seed import init_seed
from src.shared.settings import DEFAULT_CONFIG_PATH, load_settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sentinel",
        description="Sentinel — simulated SOC console with AI threat assessment",
    )
    p.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to sentinel.yaml. Default: config/sentinel.yaml",
    )
    p.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Number of simulation ticks. Overrides runtime.ticks.",
    )
    p.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        help="Tick interval in ms. Overrides runtime.tick_interval_sec.",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible mock data.",
    )
    p.add_argument(
        "--out-dir",
        default="out",
        help="Output directory for alerts.csv, alerts.jsonl, report.txt. Default: out/",
    )
    p.add_argument(
        "--no-output",
        action="store_true",
        default=False,
        help="Do not write snapshot files.",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: INFO",
    )
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    settings = load_settings(args.config)
    ticks = args.ticks if args.ticks is not None else settings.runtime.ticks
    interval = (
        args.interval_ms / 1000.0
        if args.interval_ms is not None
        else settings.runtime.tick_interval_sec
    )
    rng = init_seed(args.seed)

    try:
        asyncio.run(
            run_session(
                settings,
                ticks=ticks,
                interval_sec=interval,
                out_dir=None if args.no_output else args.out_dir,
                rng=rng,
            )
        )
    except KeyboardInterrupt:
        print("\nSession interrupted.")


if __name__ == "__main__":
    main()
