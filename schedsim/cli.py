from __future__ import annotations

import argparse
import json
import logging
import random
import time
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS, DESCRIPTIONS, QUANTUM_ALGORITHMS, run_algorithm
from .config import Settings, check_log_level
from .exceptions import InvalidWorkloadError, SchedulingError
from .gantt import build_rich_gantt
from .models import ATTRIBUTE_FIELDS, ScheduleResult
from .timeline import IDLE
from .workload_io import load_workload, save_result

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="CPU scheduling simulator: timelines and turnaround/waiting statistics.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...). Defaults to $SCHEDSIM_LOG_LEVEL or WARNING.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(ALGORITHMS)}).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for rr / mlfq (default: $SCHEDSIM_QUANTUM or 2).",
    )
    run_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the lottery draw (default: $SCHEDSIM_SEED, else unseeded).",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as plain JSON instead of tables.",
    )
    run_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Also write the JSON result to this file.",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help="Algorithms to compare (default: all).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum used for rr / mlfq when included (default: $SCHEDSIM_QUANTUM or 2).",
    )
    compare_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the lottery draw when included.",
    )

    subparsers.add_parser("list", help="List the available algorithms.")

    return parser


def _print_result(result: ScheduleResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "Name",
        "Arrive",
        "Burst",
        "Start",
        "Finish",
        "TAT",
        "WT",
        "Response",
        "Attributes",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"Name", "Attributes"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        attrs = [f"{key}={getattr(p, key)}" for key in ATTRIBUTE_FIELDS if getattr(p, key) is not None]
        proc_table.add_row(
            p.name,
            str(p.arrival_time),
            str(p.burst_time),
            str(p.start_time),
            str(p.completion_time),
            str(p.turnaround_time),
            str(p.waiting_time),
            str(p.response_time),
            " ".join(attrs),
        )

    console.print(proc_table)
    console.print()

    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg turnaround", result.avg_turnaround)
        sys_table.add_row("Avg waiting", result.avg_waiting)
        sys_table.add_row("Avg response", result.avg_response)
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")
        sys_table.add_row("Starvation count", str(sys.starvation_count))

        console.print(sys_table)


def _animate_result(result: ScheduleResult, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual simulation using the computed schedule.
    """
    timeline = result.timeline
    if not timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = timeline[-1].end
    console.print(f"[bold]Simulating {result.algorithm}[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(timeline[0].start, makespan):
        entry = next(e for e in timeline if e.start <= t < e.end)
        if entry.name == IDLE:
            console.print(f"t={t:2d}: [dim]idle[/dim]")
        else:
            bar = "#" * (t - entry.start + 1)
            console.print(f"t={t:2d}: {entry.name} [green]{bar}[/green]")
        time.sleep(delay)


def _rng_for(seed: Optional[int]) -> Optional[random.Random]:
    return random.Random(seed) if seed is not None else None


def _run(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    processes = load_workload(Path(args.workload))
    quantum = args.quantum if args.quantum is not None else settings.default_quantum
    seed = args.seed if args.seed is not None else settings.seed

    result = run_algorithm(args.algorithm, processes, quantum=quantum, rng=_rng_for(seed))

    if args.output:
        save_result(result, args.output)

    if args.json:
        console.out(json.dumps(result.to_dict(), indent=2), highlight=False)
        return 0

    if args.step:
        try:
            _animate_result(result, delay=args.step_delay, console=console)
        except KeyboardInterrupt:
            console.print("[yellow]Animation skipped.[/yellow]")
    _print_result(result, console)
    return 0


def _compare(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    processes = load_workload(Path(args.workload))
    quantum = args.quantum if args.quantum is not None else settings.default_quantum
    seed = args.seed if args.seed is not None else settings.seed

    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg TAT", justify="right")
    summary_table.add_column("Avg WT", justify="right")
    summary_table.add_column("Avg response", justify="right")

    for alg in args.algorithms:
        q = quantum if alg.lower() in QUANTUM_ALGORITHMS else None
        result = run_algorithm(alg, processes, quantum=q, rng=_rng_for(seed))
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            result.avg_turnaround,
            result.avg_waiting,
            result.avg_response,
        )

    console.print(summary_table)
    return 0


def _list_algorithms(console: Console) -> int:
    table = Table(title="Algorithms", box=box.SIMPLE_HEAVY)
    table.add_column("Name")
    table.add_column("Description")
    for name, description in DESCRIPTIONS.items():
        table.add_row(name, description)
    console.print(table)
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()

    try:
        settings = Settings.from_env()
        log_level = check_log_level(args.log_level) if args.log_level else settings.log_level
    except ValueError as exc:
        console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        return 2

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "run":
            return _run(args, settings, console)
        if args.command == "compare":
            return _compare(args, settings, console)
        if args.command == "list":
            return _list_algorithms(console)
    except (SchedulingError, InvalidWorkloadError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
