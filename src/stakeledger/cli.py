"""Command-line entry point: run ledger simulations and export results."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config.loader import load_config
from .engine.errors import LedgerError
from .reporting.charts import create_claims_chart, create_rewards_chart, create_staking_chart
from .reporting.export import export_csv, export_events_csv, export_html_report, export_json
from .simulation.monte_carlo import MonteCarloRunner
from .simulation.runner import SimulationRunner
from .validation.sanity_checks import LedgerChecker, format_warnings

logger = logging.getLogger("stakeledger.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stakeledger",
        description="Simulate a proportional reward-accrual staking pool.",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config (defaults to packaged defaults)")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    subparsers = parser.add_subparsers(dest="command", required=True)

    sim = subparsers.add_parser("simulate", help="Run one simulation")
    sim.add_argument("--seed", type=int, default=None)
    sim.add_argument("--steps", type=int, default=None)
    sim.add_argument("--rollover", choices=["additive", "multiplicative"], default=None)
    sim.add_argument("--csv", default=None, help="Write per-step states to this CSV file")
    sim.add_argument("--events-csv", default=None, help="Write the action log to this CSV file")
    sim.add_argument("--json", default=None, help="Write the full result to this JSON file")
    sim.add_argument("--html", default=None, help="Write an HTML report with charts")

    mc = subparsers.add_parser("montecarlo", help="Run many seeds and summarize")
    mc.add_argument("--runs", type=int, default=None)
    mc.add_argument("--seed", type=int, default=None)

    subparsers.add_parser("check-config", help="Report implausible configuration values")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, args.log_level or config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "check-config":
            lines = format_warnings(LedgerChecker(config).check_config_inputs())
            for line in lines:
                print(line)
            return 1 if any(line.startswith("[ERROR]") for line in lines) else 0

        if args.command == "montecarlo":
            runner = MonteCarloRunner(config)
            summary = runner.summarize(runner.run(num_runs=args.runs, random_seed=args.seed))
            print(json.dumps(summary.to_dict(), indent=2))
            return 1 if summary.runs_with_invariant_errors else 0

        if args.steps is not None:
            config.simulation.steps = args.steps
        if args.rollover is not None:
            config.pool.rollover_mode = args.rollover
        result = SimulationRunner(config).run(random_seed=args.seed)
    except LedgerError as exc:
        logger.error(f"Simulation aborted: {exc}")
        return 1

    if args.csv:
        export_csv(result, args.csv)
    if args.events_csv:
        export_events_csv(result, args.events_csv)
    if args.json:
        export_json(result, args.json)
    if args.html:
        charts = [
            create_staking_chart(result.states),
            create_rewards_chart(result.states),
            create_claims_chart(result.final_metrics['claimed_by_account']),
        ]
        export_html_report(result, args.html, charts)

    metrics = {k: v for k, v in result.final_metrics.items() if k != 'claimed_by_account'}
    print(json.dumps(metrics, indent=2))
    for line in result.invariant_errors:
        print(line, file=sys.stderr)
    return 1 if result.invariant_errors else 0


if __name__ == "__main__":
    sys.exit(main())
