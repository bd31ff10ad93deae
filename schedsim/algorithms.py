from __future__ import annotations

import logging
import random
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Protocol

from .config import DEFAULT_QUANTUM
from .exceptions import SchedulingError
from .metrics import compute_statistics, compute_system_metrics, format_average
from .models import Process, ProcessResult, ScheduleResult
from .timeline import TimelineBuilder

logger = logging.getLogger(__name__)

# Picks one process from the ready list (input order) at the given time.
Selector = Callable[[List[Process], int], Process]
# Picks one process for the next time unit, given the remaining-time ledger.
UnitSelector = Callable[[List[Process], Dict[str, int]], Process]


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def _validate(processes: List[Process]) -> None:
    if not processes:
        raise SchedulingError("At least one process is required")

    seen: set[str] = set()
    for p in processes:
        if p.name in seen:
            raise SchedulingError(f"Duplicate process name '{p.name}'")
        seen.add(p.name)
        if p.arrival_time < 0:
            raise SchedulingError(f"Process '{p.name}' has negative arrival time {p.arrival_time}")
        if p.burst_time <= 0:
            raise SchedulingError(f"Process '{p.name}' needs a positive burst time, got {p.burst_time}")
        if p.tickets is not None and p.tickets <= 0:
            raise SchedulingError(f"Process '{p.name}' needs a positive ticket count, got {p.tickets}")


def _resolve_quantum(quantum: Optional[int]) -> int:
    q = DEFAULT_QUANTUM if quantum is None else quantum
    if q < 1:
        raise SchedulingError(f"Quantum must be at least 1, got {q}")
    return q


def _missing_last(value: Optional[int]) -> float:
    return float("inf") if value is None else value


def _next_arrival(processes: List[Process], remaining: Dict[str, int], time: int) -> int:
    return min(p.arrival_time for p in processes if p.arrival_time > time and remaining[p.name] > 0)


def _finalize(
    algorithm: str,
    processes: List[Process],
    builder: TimelineBuilder,
    first_start: Dict[str, int],
    finish: Dict[str, int],
    quantum: Optional[int] = None,
) -> ScheduleResult:
    stats = compute_statistics(
        [finish[p.name] for p in processes],
        [p.arrival_time for p in processes],
        [p.burst_time for p in processes],
        [first_start[p.name] for p in processes],
    )

    results: List[ProcessResult] = []
    for i, p in enumerate(processes):
        results.append(
            ProcessResult(
                name=p.name,
                arrival_time=p.arrival_time,
                burst_time=p.burst_time,
                start_time=first_start[p.name],
                completion_time=finish[p.name],
                turnaround_time=stats.turnaround[i],
                waiting_time=stats.waiting[i],
                response_time=stats.response[i],
                priority=p.priority,
                deadline=p.deadline,
                tickets=p.tickets,
                group=p.group,
                queue=p.queue,
            )
        )

    result = ScheduleResult(
        algorithm=algorithm,
        quantum=quantum,
        processes=results,
        timeline=builder.build(),
        avg_turnaround=format_average(stats.avg_turnaround),
        avg_waiting=format_average(stats.avg_waiting),
        avg_response=format_average(stats.avg_response),
    )
    compute_system_metrics(result)
    logger.info(
        f"{algorithm}: {len(results)} processes done, "
        f"avg TAT {result.avg_turnaround}, avg WT {result.avg_waiting}"
    )
    return result


# ---------------------------------------------------------------------------
# Non-preemptive policies
# ---------------------------------------------------------------------------


def _run_to_completion(processes: List[Process], algorithm: str, select: Selector) -> ScheduleResult:
    """
    Shared loop for the non-preemptive policies.

    At each decision point the ready set is every arrived, unfinished
    process in input order; ``select`` picks one and it runs to completion.
    When nothing is ready the clock jumps to the next arrival and the gap
    shows up as an Idle entry.
    """
    _validate(processes)

    remaining = {p.name: p.burst_time for p in processes}
    builder = TimelineBuilder()
    first_start: Dict[str, int] = {}
    finish: Dict[str, int] = {}

    time = 0
    while len(finish) < len(processes):
        ready = [p for p in processes if p.arrival_time <= time and remaining[p.name] > 0]
        if not ready:
            time = _next_arrival(processes, remaining, time)
            continue

        p = select(ready, time)
        start_time = time
        time += remaining[p.name]
        remaining[p.name] = 0

        builder.append(p.name, start_time, time)
        first_start[p.name] = start_time
        finish[p.name] = time
        logger.debug(f"{algorithm}: t={start_time} dispatch {p.name} until {time}")

    return _finalize(algorithm, processes, builder, first_start, finish)


def schedule_fcfs(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    First-Come First-Serve (non-preemptive). Ties go to input order.
    """
    return _run_to_completion(processes, "FCFS", lambda ready, time: min(ready, key=lambda p: p.arrival_time))


def schedule_sjf(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    completed, choose the one with the smallest burst time.
    """
    return _run_to_completion(
        processes, "SJF (non-preemptive)", lambda ready, time: min(ready, key=lambda p: p.burst_time)
    )


def schedule_ljf(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Longest Job First (non-preemptive): largest burst time among ready processes.
    """
    return _run_to_completion(
        processes, "LJF (non-preemptive)", lambda ready, time: max(ready, key=lambda p: p.burst_time)
    )


def schedule_priority(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority. Processes without a
    priority rank behind every process that has one.
    """
    return _run_to_completion(
        processes,
        "Priority (non-preemptive)",
        lambda ready, time: min(ready, key=lambda p: _missing_last(p.priority)),
    )


def schedule_hrrn(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Highest Response Ratio Next.

    Response ratio = (time waited so far + burst) / burst, recomputed at every
    decision point, so long jobs age into contention instead of starving.
    """

    def highest_ratio(ready: List[Process], time: int) -> Process:
        return max(ready, key=lambda p: (time - p.arrival_time + p.burst_time) / p.burst_time)

    return _run_to_completion(processes, "HRRN", highest_ratio)


def schedule_edf(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Earliest Deadline First, non-preemptive variant. Processes without a
    deadline run after every process that has one.
    """
    return _run_to_completion(
        processes,
        "EDF (non-preemptive)",
        lambda ready, time: min(ready, key=lambda p: _missing_last(p.deadline)),
    )


def schedule_mlq(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Multilevel Queue: queue 0 (system) always wins selection over queue 1
    (user) and below. A missing queue level counts as 0. Once chosen, a
    process runs to completion.
    """
    return _run_to_completion(
        processes,
        "Multilevel Queue",
        lambda ready, time: min(ready, key=lambda p: p.queue or 0),
    )


# ---------------------------------------------------------------------------
# Unit-time policies (preemptive and randomized/weighted)
# ---------------------------------------------------------------------------


def _run_unit_steps(processes: List[Process], algorithm: str, select: UnitSelector) -> ScheduleResult:
    """
    Shared loop for policies that re-decide every time unit.

    Exactly one unit of the selected process runs per step; consecutive
    units of the same process are coalesced into a single timeline entry.
    """
    _validate(processes)

    remaining = {p.name: p.burst_time for p in processes}
    builder = TimelineBuilder(coalesce=True)
    first_start: Dict[str, int] = {}
    finish: Dict[str, int] = {}

    time = 0
    while len(finish) < len(processes):
        ready = [p for p in processes if p.arrival_time <= time and remaining[p.name] > 0]
        if not ready:
            time = _next_arrival(processes, remaining, time)
            continue

        p = select(ready, remaining)
        first_start.setdefault(p.name, time)
        builder.append(p.name, time, time + 1)
        remaining[p.name] -= 1
        time += 1

        if remaining[p.name] == 0:
            finish[p.name] = time
            logger.debug(f"{algorithm}: {p.name} completed at t={time}")

    return _finalize(algorithm, processes, builder, first_start, finish)


def schedule_srtf(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Shortest Remaining Time First (preemptive SJF).

    Ties on remaining time keep input order, so an equally short newcomer
    does not preempt a process listed before it.
    """
    return _run_unit_steps(processes, "SRTF", lambda ready, remaining: min(ready, key=lambda p: remaining[p.name]))


def schedule_lrtf(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Longest Remaining Time First (preemptive LJF).
    """
    return _run_unit_steps(processes, "LRTF", lambda ready, remaining: max(ready, key=lambda p: remaining[p.name]))


def schedule_preemptive_priority(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Preemptive Priority: every time unit the ready process with the smallest
    priority value runs.
    """
    return _run_unit_steps(
        processes,
        "Priority (preemptive)",
        lambda ready, remaining: min(ready, key=lambda p: _missing_last(p.priority)),
    )


def schedule_lottery(
    processes: List[Process], quantum: Optional[int] = None, rng: Optional[RandomSource] = None
) -> ScheduleResult:
    """
    Lottery scheduling.

    Each time unit, every ready process puts ``tickets`` entries (default 1)
    into a pool and one entry is drawn uniformly with ``rng.random()``.
    Pass a seeded ``random.Random`` (or any object with a ``random()``
    method) for reproducible runs.
    """
    source: RandomSource = rng if rng is not None else random.Random()

    def draw(ready: List[Process], remaining: Dict[str, int]) -> Process:
        pool = [p for p in ready for _ in range(p.tickets or 1)]
        idx = min(int(source.random() * len(pool)), len(pool) - 1)
        return pool[idx]

    return _run_unit_steps(processes, "Lottery", draw)


def schedule_fair_share(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Fair Share scheduling.

    Groups (in order of first appearance) take turns one time unit at a
    time. Starting from the group pointer, the first group with a ready
    member runs that member for one unit and the pointer moves to the group
    after it. Within a group, the earliest-listed ready member runs.
    Processes without a group share one group of their own, keyed by None
    so it never merges with a user group named "default".
    """
    groups: Dict[Optional[str], List[str]] = {}
    for p in processes:
        groups.setdefault(p.group, []).append(p.name)
    group_names = list(groups)
    pointer = 0

    def next_in_turn(ready: List[Process], remaining: Dict[str, int]) -> Process:
        nonlocal pointer
        by_name = {p.name: p for p in ready}
        for offset in range(len(group_names)):
            gi = (pointer + offset) % len(group_names)
            for name in groups[group_names[gi]]:
                if name in by_name:
                    pointer = (gi + 1) % len(group_names)
                    return by_name[name]
        raise SchedulingError("Fair share found no runnable process in a non-empty ready set")

    return _run_unit_steps(processes, "Fair Share", next_in_turn)


# ---------------------------------------------------------------------------
# Queue-driven policies
# ---------------------------------------------------------------------------


def schedule_rr(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time quantum (default 2).

    Arrivals are admitted to the tail of the FIFO queue before each dispatch
    and right after each slice; the process that just ran is re-enqueued
    after those arrivals. Every dispatch is its own timeline entry.
    """
    _validate(processes)
    q = _resolve_quantum(quantum)

    remaining = {p.name: p.burst_time for p in processes}
    builder = TimelineBuilder()
    first_start: Dict[str, int] = {}
    finish: Dict[str, int] = {}

    ready: Deque[Process] = deque()
    admitted: set[str] = set()

    def admit_arrivals(current_time: int) -> None:
        for p in processes:
            if p.name not in admitted and p.arrival_time <= current_time:
                ready.append(p)
                admitted.add(p.name)

    time = 0
    while len(finish) < len(processes):
        admit_arrivals(time)
        if not ready:
            # CPU idle until the next arrival
            time = _next_arrival(processes, remaining, time)
            continue

        p = ready.popleft()
        first_start.setdefault(p.name, time)

        run_time = min(q, remaining[p.name])
        builder.append(p.name, time, time + run_time)
        time += run_time
        remaining[p.name] -= run_time

        admit_arrivals(time)

        if remaining[p.name] > 0:
            ready.append(p)
        else:
            finish[p.name] = time
            logger.debug(f"Round Robin: {p.name} completed at t={time}")

    return _finalize("Round Robin", processes, builder, first_start, finish, quantum=q)


def schedule_mlfq(processes: List[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Two-level feedback queue.

    - New arrivals enter Q0, which is round robin with the given quantum.
    - A Q0 process that does not finish within its quantum is demoted to Q1
      and never returns to Q0.
    - Q1 is FCFS: a process dispatched from it runs to completion.
    - Q0 is always served before Q1.
    """
    _validate(processes)
    q = _resolve_quantum(quantum)

    remaining = {p.name: p.burst_time for p in processes}
    builder = TimelineBuilder()
    first_start: Dict[str, int] = {}
    finish: Dict[str, int] = {}

    queues: List[Deque[Process]] = [deque(), deque()]  # Q0, Q1
    admitted: set[str] = set()

    def admit_arrivals(current_time: int) -> None:
        for p in processes:
            if p.name not in admitted and p.arrival_time <= current_time:
                queues[0].append(p)
                admitted.add(p.name)

    time = 0
    while len(finish) < len(processes):
        admit_arrivals(time)
        if not any(queues):
            time = _next_arrival(processes, remaining, time)
            continue

        level = 0 if queues[0] else 1
        p = queues[level].popleft()
        first_start.setdefault(p.name, time)

        run_time = min(q, remaining[p.name]) if level == 0 else remaining[p.name]
        builder.append(p.name, time, time + run_time)
        time += run_time
        remaining[p.name] -= run_time

        admit_arrivals(time)

        if remaining[p.name] > 0:
            logger.debug(f"MLFQ: demoting {p.name} to Q1 at t={time}")
            queues[1].append(p)
        else:
            finish[p.name] = time

    return _finalize("MLFQ", processes, builder, first_start, finish, quantum=q)


ALGORITHMS = {
    "fcfs": schedule_fcfs,
    "sjf": schedule_sjf,
    "ljf": schedule_ljf,
    "priority": schedule_priority,
    "hrrn": schedule_hrrn,
    "edf": schedule_edf,
    "mlq": schedule_mlq,
    "srtf": schedule_srtf,
    "lrtf": schedule_lrtf,
    "ppriority": schedule_preemptive_priority,
    "rr": schedule_rr,
    "mlfq": schedule_mlfq,
    "lottery": schedule_lottery,
    "fairshare": schedule_fair_share,
}

DESCRIPTIONS = {
    "fcfs": "Runs processes in order of arrival, each to completion.",
    "sjf": "Runs the ready process with the shortest burst next, to completion.",
    "ljf": "Runs the ready process with the longest burst next, to completion.",
    "priority": "Runs the ready process with the lowest priority number next, to completion.",
    "hrrn": "Runs the ready process with the highest (wait + burst) / burst ratio next.",
    "edf": "Runs the ready process with the earliest deadline next, to completion.",
    "mlq": "System queue (0) is always served before user queue (1); each pick runs to completion.",
    "srtf": "Every time unit, runs the ready process with the least remaining time.",
    "lrtf": "Every time unit, runs the ready process with the most remaining time.",
    "ppriority": "Every time unit, runs the ready process with the lowest priority number.",
    "rr": "Cycles through a FIFO queue, giving each process one quantum per turn.",
    "mlfq": "Round robin in Q0; processes that exhaust their quantum drop to FCFS Q1.",
    "lottery": "Every time unit, draws a ticket; more tickets means more CPU time.",
    "fairshare": "Groups take turns one time unit each, then processes within a group.",
}

QUANTUM_ALGORITHMS = {"rr", "mlfq"}


def run_algorithm(
    name: str,
    processes: List[Process],
    quantum: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. ``quantum`` only affects rr/mlfq and
    ``rng`` only affects lottery.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise SchedulingError(f"Unknown algorithm '{name}' (choose from {', '.join(ALGORITHMS)})")

    if name == "lottery":
        return schedule_lottery(processes, quantum=quantum, rng=rng)

    func = ALGORITHMS[name]
    return func(processes, quantum=quantum)
