"""CLI entry point: play a judge scenario with the canonical learner."""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Union

from algo_judge.autoplay import CanonicalLearner
from algo_judge.config import Algorithm, ScenarioConfig, load_config
from algo_judge.errors import ScenarioConfigError
from algo_judge.metrics.results import ResultsSummary
from algo_judge.persistence import InMemoryPersistence, publish_results
from algo_judge.presets import PRESETS, get_preset
from algo_judge.simulator.scenario import Scenario


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="OS Algorithm Judge - replay a teaching scenario",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--preset",
        type=str,
        choices=sorted(PRESETS),
        default="srtf-emergency-room",
        help="Built-in scenario (default: srtf-emergency-room)",
    )
    source.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON ScenarioConfig",
    )
    parser.add_argument(
        "--algorithm",
        type=str,
        choices=[a.value for a in Algorithm],
        default=None,
        help="Override the scenario's algorithm (must match its kind)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for randomized arrivals and mistakes (default: 42)",
    )
    parser.add_argument(
        "--tick",
        type=float,
        default=1.0,
        help="Simulated time per tick (default: 1.0)",
    )
    parser.add_argument(
        "--mistakes",
        type=float,
        default=0.0,
        help="Probability of a wrong attempt before each decision (default: 0.0)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    return parser


def make_config(args: argparse.Namespace) -> Union[ScenarioConfig, Dict[str, Any]]:
    """Resolve the configuration selected on the command line."""
    if args.config:
        config = load_config(args.config)
    else:
        config = get_preset(args.preset, seed=args.seed)
    if args.algorithm:
        # revalidated by Scenario.initialize, with the new algorithm's default scoring
        return {**config.model_dump(), "algorithm": args.algorithm, "scoring": None}
    return config


def _fmt(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def print_results(summary: ResultsSummary, achievements: List[str]) -> None:
    """Print per-entity results and summary statistics to stdout."""
    allocation = summary.fragmentation is not None

    if allocation:
        header = f"{'ID':>4}  {'Label':<12}  {'Arrival':>7}  {'Size':>5}  {'Status':<10}  {'Slot':>5}  {'Wait':>5}"
    else:
        header = (
            f"{'ID':>4}  {'Label':<12}  {'Arrival':>7}  {'Burst':>5}  {'Start':>5}  "
            f"{'End':>5}  {'Turnaround':>10}  {'Wait':>5}"
        )
    separator = "-" * len(header)

    print(f"\n=== Results: {summary.scenario_id} | {summary.algorithm.upper()} ===\n")
    print(header)
    print(separator)
    for s in summary.entities:
        if allocation:
            line = (
                f"{s.entity_id:>4}  {s.label:<12}  {_fmt(s.arrival_time):>7}  {s.burst_time:>5}  "
                f"{s.status:<10}  {_fmt(s.resource_id):>5}  {_fmt(s.waiting_time):>5}"
            )
        else:
            line = (
                f"{s.entity_id:>4}  {s.label:<12}  {_fmt(s.arrival_time):>7}  {s.burst_time:>5}  "
                f"{_fmt(s.start_time):>5}  {_fmt(s.completion_time):>5}  "
                f"{_fmt(s.turnaround_time):>10}  {_fmt(s.waiting_time):>5}"
            )
        print(line)
    print(separator)

    print(f"  Score:          {_fmt(summary.points)} (raw {_fmt(summary.raw_points)})")
    print(f"  Accuracy:       {summary.accuracy:.1f}%  ({summary.wrong_attempts} wrong)")
    print(f"  Time spent:     {_fmt(summary.time_spent)}")
    if allocation:
        frag = summary.fragmentation
        print(f"  Placed:         {frag.placed}  |  Rejected: {frag.rejected}")
        print(f"  Internal frag:  {frag.internal_fragmentation} units ({frag.internal_fragmentation_pct:.1f}%)")
        print(f"  Efficiency:     {frag.efficiency:.1f}%  |  Utilization: {frag.utilization:.1f}%")
    else:
        print(f"  Avg Turnaround: {summary.avg_turnaround:.2f}")
        print(f"  Avg Wait:       {summary.avg_waiting_time:.2f}")
    if achievements:
        print(f"  Unlocked:       {', '.join(achievements)}")
    print()


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, play the scenario, print results."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        scenario = Scenario.initialize(make_config(args))
    except (ScenarioConfigError, ValueError, OSError) as exc:
        parser.error(f"cannot build scenario: {exc}")
    learner = CanonicalLearner(tick=args.tick, mistake_rate=args.mistakes, seed=args.seed)
    summary = learner.play(scenario)

    achievements = publish_results(InMemoryPersistence(), summary)
    print_results(summary, achievements)


if __name__ == "__main__":
    main()
