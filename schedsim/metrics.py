from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .models import ScheduleResult, SystemMetrics
from .timeline import IDLE


@dataclass
class Statistics:
    turnaround: List[int]
    waiting: List[int]
    avg_turnaround: float
    avg_waiting: float
    response: List[int] = field(default_factory=list)
    avg_response: float = 0.0


def compute_statistics(
    finish: Sequence[int],
    arrival: Sequence[int],
    burst: Sequence[int],
    start: Optional[Sequence[int]] = None,
) -> Statistics:
    """
    Turnaround and waiting time per process, plus their means.

    turnaround = finish - arrival, waiting = turnaround - burst. When the
    first-dispatch times are given, response = start - arrival is averaged
    too. All sequences are parallel; the output lists keep their order.
    """
    if not (len(finish) == len(arrival) == len(burst)):
        raise ValueError("finish, arrival and burst must have the same length")
    if start is not None and len(start) != len(arrival):
        raise ValueError("start must have the same length as arrival")

    turnaround = [f - a for f, a in zip(finish, arrival)]
    waiting = [t - b for t, b in zip(turnaround, burst)]
    response = [s - a for s, a in zip(start, arrival)] if start is not None else []

    n = len(turnaround)
    if n == 0:
        return Statistics(turnaround=[], waiting=[], avg_turnaround=0.0, avg_waiting=0.0)

    return Statistics(
        turnaround=turnaround,
        waiting=waiting,
        avg_turnaround=sum(turnaround) / n,
        avg_waiting=sum(waiting) / n,
        response=response,
        avg_response=sum(response) / n if response else 0.0,
    )


def format_average(value: float) -> str:
    return f"{value:.2f}"


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute throughput and CPU utilization given populated per-process metrics
    and timeline slices. Idle entries do not count as busy time.
    """
    if not result.processes:
        system = SystemMetrics(cpu_busy_time=0, makespan=0, throughput=0.0, cpu_utilization=0.0)
        result.system = system
        return system

    makespan = max(p.completion_time for p in result.processes)
    cpu_busy_time = sum(entry.duration for entry in result.timeline if entry.name != IDLE)

    throughput = len(result.processes) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    # Rough starvation signal: processes waiting more than twice the average.
    avg_wait = sum(p.waiting_time for p in result.processes) / len(result.processes)
    starvation_count = sum(1 for p in result.processes if p.waiting_time > 2 * avg_wait)

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        starvation_count=starvation_count,
    )
    result.system = system
    return system
