# cli.py
# Run the two-tier host-failure experiment.
#
# Usage:
#   failover-sim                         # built-in two-tier experiment
#   failover-sim --config cluster.json   # topology/workload from JSON
#   failover-sim --help                  # see knobs
#
# Outputs (optional):
#   - migration events CSV, final VM placements CSV, execution-time chart

import argparse
import logging
import sys
from dataclasses import replace

from .config import FailureSchedule, default_config, load_config
from .driver import run_simulation
from .report import (
    plot_execution_times,
    print_results,
    write_events_csv,
    write_placements_csv,
)

logger = logging.getLogger("failover_sim")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="failover-sim",
        description="Simulate a host failure in a multi-tier cluster and report "
        "where displaced VMs went.",
    )
    ap.add_argument("--config", help="JSON configuration file (default: built-in)")
    ap.add_argument("--seed", type=int, default=None, help="Workload RNG seed")

    # failure schedule overrides
    ap.add_argument("--fail-datacenter", default=None)
    ap.add_argument("--fail-host", type=int, default=None)
    ap.add_argument("--fail-at", type=float, default=None, help="Simulated time")
    ap.add_argument("--no-failure", action="store_true", help="Run without a failure")

    ap.add_argument("--events-csv", default=None)
    ap.add_argument("--placements-csv", default=None)
    ap.add_argument("--plot", default=None, help="Save execution-time chart (PNG)")
    ap.add_argument("--log-level", default="INFO")
    return ap


def config_from_args(args):
    config = load_config(args.config) if args.config else default_config()
    if args.seed is not None:
        config.seed = args.seed
    if args.no_failure:
        return replace(config, failure=None)

    overrides = {
        "datacenter": args.fail_datacenter,
        "host_id": args.fail_host,
        "at_time": args.fail_at,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        if config.failure is None:
            if "datacenter" not in overrides or "host_id" not in overrides:
                raise ValueError("--fail-datacenter and --fail-host are both required")
            config = replace(config, failure=FailureSchedule(**overrides))
        else:
            config = replace(config, failure=replace(config.failure, **overrides))
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        config = config_from_args(args)
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 2

    logger.info("Starting multi-tier cluster simulation...")
    result = run_simulation(config)

    print_results(result.cloudlets)
    print("\nMigration events:")
    for e in result.events:
        if e.destination is not None:
            print(f"  t={e.time:.2f} VM #{e.vm_id}: host #{e.source} -> host #{e.destination}")
        else:
            print(f"  t={e.time:.2f} VM #{e.vm_id}: stranded on host #{e.source} ({e.reason})")

    if args.events_csv:
        write_events_csv(args.events_csv, result.events)
        print(f"Wrote {args.events_csv}")
    if args.placements_csv:
        write_placements_csv(args.placements_csv, result.placements)
        print(f"Wrote {args.placements_csv}")
    if args.plot:
        plot_execution_times(result.cloudlets, args.plot)
        print(f"Wrote {args.plot}")

    logger.info("Simulation completed at t=%.2f", result.end_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
