"""
schedsim package.

Deterministic simulation of classical single-CPU scheduling algorithms
(FCFS, SJF, LJF, Priority, HRRN, EDF, multilevel queues, SRTF, LRTF,
preemptive priority, Round Robin, MLFQ, Lottery and Fair Share), producing
Gantt timelines and turnaround/waiting statistics, plus a command-line
interface for running and comparing them.
"""

from .algorithms import ALGORITHMS, run_algorithm
from .models import Process, ScheduleResult, TimelineEntry

__version__ = "0.1.0"

__all__ = ["ALGORITHMS", "Process", "ScheduleResult", "TimelineEntry", "run_algorithm", "cli"]
