from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

ATTRIBUTE_FIELDS = ("priority", "deadline", "tickets", "group", "queue")


@dataclass(frozen=True)
class Process:
    name: str
    arrival_time: int
    burst_time: int
    priority: Optional[int] = None
    deadline: Optional[int] = None
    tickets: Optional[int] = None
    group: Optional[str] = None
    queue: Optional[int] = None


@dataclass
class TimelineEntry:
    """
    One contiguous slice of the Gantt chart, owned by a process or by "Idle".
    """

    name: str
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass
class ProcessResult:
    name: str
    arrival_time: int
    burst_time: int
    start_time: int
    completion_time: int
    turnaround_time: int
    waiting_time: int
    response_time: int
    priority: Optional[int] = None
    deadline: Optional[int] = None
    tickets: Optional[int] = None
    group: Optional[str] = None
    queue: Optional[int] = None


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    starvation_count: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int]
    processes: List[ProcessResult] = field(default_factory=list)
    timeline: List[TimelineEntry] = field(default_factory=list)
    avg_turnaround: str = "0.00"
    avg_waiting: str = "0.00"
    avg_response: str = "0.00"
    system: Optional[SystemMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Plain-data form of the result, as consumed by chart and 3D export
        front ends.
        """
        results = []
        for p in self.processes:
            row: Dict[str, Any] = {
                "name": p.name,
                "arrival": p.arrival_time,
                "burst": p.burst_time,
            }
            for key in ATTRIBUTE_FIELDS:
                value = getattr(p, key)
                if value is not None:
                    row[key] = value
            row.update(finish=p.completion_time, tat=p.turnaround_time, wt=p.waiting_time)
            results.append(row)

        return {
            "algorithm": self.algorithm,
            "quantum": self.quantum,
            "results": results,
            "avgTAT": self.avg_turnaround,
            "avgWT": self.avg_waiting,
            "avgRT": self.avg_response,
            "gantt": [asdict(entry) for entry in self.timeline],
        }
