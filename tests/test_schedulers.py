import pytest

from schedsim.algorithms import (
    run_algorithm,
    schedule_edf,
    schedule_fair_share,
    schedule_fcfs,
    schedule_hrrn,
    schedule_ljf,
    schedule_lrtf,
    schedule_mlfq,
    schedule_mlq,
    schedule_preemptive_priority,
    schedule_priority,
    schedule_rr,
    schedule_sjf,
    schedule_srtf,
)
from schedsim.exceptions import SchedulingError
from schedsim.models import Process


def _procs():
    return [
        Process("P1", arrival_time=0, burst_time=5, priority=2),
        Process("P2", arrival_time=1, burst_time=3, priority=1),
        Process("P3", arrival_time=2, burst_time=8, priority=3),
    ]


def _gantt(result):
    return [(e.name, e.start, e.end) for e in result.timeline]


def _by_name(result):
    return {p.name: p for p in result.processes}


def test_fcfs_order():
    res = schedule_fcfs(_procs())
    assert [s.name for s in res.timeline] == ["P1", "P2", "P3"]
    assert res.processes[0].waiting_time == 0
    assert res.processes[1].waiting_time == 4
    assert res.processes[2].waiting_time == 6


def test_fcfs_staggered_arrivals():
    res = schedule_fcfs(
        [
            Process("P1", arrival_time=0, burst_time=4),
            Process("P2", arrival_time=2, burst_time=3),
            Process("P3", arrival_time=6, burst_time=2),
        ]
    )
    assert _gantt(res) == [("P1", 0, 4), ("P2", 4, 7), ("P3", 7, 9)]
    assert [p.waiting_time for p in res.processes] == [0, 2, 1]
    assert res.avg_waiting == "1.00"
    assert res.avg_turnaround == "4.00"


def test_fcfs_ties_keep_input_order():
    res = schedule_fcfs([Process("B", 0, 2), Process("A", 0, 1)])
    assert [s.name for s in res.timeline] == ["B", "A"]


def test_fcfs_fills_gap_with_idle():
    res = schedule_fcfs([Process("P1", 0, 2), Process("P2", 5, 1)])
    assert _gantt(res) == [("P1", 0, 2), ("Idle", 2, 5), ("P2", 5, 6)]


def test_no_leading_idle_entry():
    res = schedule_fcfs([Process("P1", 3, 2)])
    assert _gantt(res) == [("P1", 3, 5)]
    assert res.processes[0].waiting_time == 0


def test_sjf_order():
    res = schedule_sjf(_procs())
    assert [s.name for s in res.timeline] == ["P1", "P2", "P3"]


def test_sjf_runs_only_ready_process_first():
    res = schedule_sjf([Process("P1", 0, 6), Process("P2", 1, 2)])
    assert _gantt(res) == [("P1", 0, 6), ("P2", 6, 8)]


def test_sjf_picks_shortest_among_ready():
    res = schedule_sjf([Process("P1", 0, 3), Process("P2", 1, 6), Process("P3", 2, 2)])
    assert _gantt(res) == [("P1", 0, 3), ("P3", 3, 5), ("P2", 5, 11)]


def test_ljf_picks_longest_among_ready():
    res = schedule_ljf([Process("P1", 0, 2), Process("P2", 1, 5), Process("P3", 1, 3)])
    assert _gantt(res) == [("P1", 0, 2), ("P2", 2, 7), ("P3", 7, 10)]


def test_priority_static():
    res = schedule_priority(_procs())
    # P1 is alone at t=0; by t=5 P2 outranks P3
    assert _gantt(res) == [("P1", 0, 5), ("P2", 5, 8), ("P3", 8, 16)]
    assert [p.waiting_time for p in res.processes] == [0, 4, 6]


def test_priority_missing_value_runs_last():
    res = schedule_priority([Process("P1", 0, 1), Process("P2", 0, 1, priority=9)])
    assert [s.name for s in res.timeline] == ["P2", "P1"]


def test_hrrn_textbook_example():
    res = schedule_hrrn(
        [
            Process("P1", 0, 3),
            Process("P2", 2, 6),
            Process("P3", 4, 4),
            Process("P4", 6, 5),
            Process("P5", 8, 2),
        ]
    )
    assert _gantt(res) == [
        ("P1", 0, 3),
        ("P2", 3, 9),
        ("P3", 9, 13),
        ("P5", 13, 15),
        ("P4", 15, 20),
    ]


def test_edf_runs_earliest_deadline():
    res = schedule_edf(
        [
            Process("P1", 0, 4, deadline=10),
            Process("P2", 1, 3, deadline=8),
            Process("P3", 2, 2, deadline=5),
            Process("P4", 3, 1, deadline=7),
        ]
    )
    assert _gantt(res) == [("P1", 0, 4), ("P3", 4, 6), ("P4", 6, 7), ("P2", 7, 10)]
    assert [p.completion_time for p in res.processes] == [4, 10, 6, 7]
    assert res.avg_turnaround == "5.25"
    assert res.avg_waiting == "2.75"


def test_mlq_prefers_system_queue():
    res = schedule_mlq(
        [
            Process("P1", 0, 4, queue=1),
            Process("P2", 1, 3, queue=0),
            Process("P3", 2, 2, queue=1),
        ]
    )
    assert _gantt(res) == [("P1", 0, 4), ("P2", 4, 7), ("P3", 7, 9)]


def test_rr_quantum_2():
    res = schedule_rr(_procs(), quantum=2)
    assert {s.name for s in res.timeline} == {"P1", "P2", "P3"}
    assert sum(p.burst_time for p in _procs()) == res.system.cpu_busy_time


def test_rr_new_arrivals_queue_ahead_of_preempted_process():
    res = schedule_rr([Process("P1", 0, 5), Process("P2", 1, 3)], quantum=2)
    assert _gantt(res) == [("P1", 0, 2), ("P2", 2, 4), ("P1", 4, 6), ("P2", 6, 7), ("P1", 7, 8)]
    assert _by_name(res)["P1"].completion_time == 8
    assert _by_name(res)["P2"].completion_time == 7
    assert res.quantum == 2


def test_rr_default_quantum_is_two():
    res = schedule_rr([Process("P1", 0, 3)])
    assert res.quantum == 2
    assert _gantt(res) == [("P1", 0, 2), ("P1", 2, 3)]


def test_rr_idles_until_next_arrival():
    res = schedule_rr([Process("P1", 0, 1), Process("P2", 3, 2)], quantum=2)
    assert _gantt(res) == [("P1", 0, 1), ("Idle", 1, 3), ("P2", 3, 5)]


@pytest.mark.parametrize("quantum", [0, -1])
def test_rr_rejects_non_positive_quantum(quantum):
    with pytest.raises(SchedulingError):
        schedule_rr(_procs(), quantum=quantum)


def test_srtf_completes():
    res = schedule_srtf(_procs())
    assert {p.name for p in res.processes} == {"P1", "P2", "P3"}
    assert res.system.cpu_busy_time == sum(p.burst_time for p in _procs())


def test_srtf_shorter_arrivals_preempt():
    res = schedule_srtf(
        [
            Process("P1", 0, 8),
            Process("P2", 1, 4),
            Process("P3", 2, 2),
            Process("P4", 3, 1),
        ]
    )
    # At t=3 P3 and P4 both have 1 unit left; the earlier-listed P3 keeps the CPU.
    assert _gantt(res) == [
        ("P1", 0, 1),
        ("P2", 1, 2),
        ("P3", 2, 4),
        ("P4", 4, 5),
        ("P2", 5, 8),
        ("P1", 8, 15),
    ]
    finished = {p.name: p.completion_time for p in res.processes}
    assert finished == {"P1": 15, "P2": 8, "P3": 4, "P4": 5}
    assert [p.waiting_time for p in res.processes] == [7, 3, 0, 1]


def test_lrtf_alternates_on_ties():
    res = schedule_lrtf([Process("P1", 0, 2), Process("P2", 0, 3)])
    assert _gantt(res) == [("P2", 0, 1), ("P1", 1, 2), ("P2", 2, 3), ("P1", 3, 4), ("P2", 4, 5)]


def test_preemptive_priority():
    res = schedule_preemptive_priority(_procs())
    assert _gantt(res) == [("P1", 0, 1), ("P2", 1, 4), ("P1", 4, 8), ("P3", 8, 16)]
    assert [p.completion_time for p in res.processes] == [8, 4, 16]
    assert [p.waiting_time for p in res.processes] == [3, 0, 6]


def test_unit_policies_coalesce_and_idle():
    res = schedule_srtf([Process("P1", 0, 1), Process("P2", 2, 3)])
    assert _gantt(res) == [("P1", 0, 1), ("Idle", 1, 2), ("P2", 2, 5)]


def test_mlfq_completes():
    res = schedule_mlfq(_procs(), quantum=2)
    assert {p.name for p in res.processes} == {"P1", "P2", "P3"}
    assert res.system.cpu_busy_time == sum(p.burst_time for p in _procs())


def test_mlfq_demotes_to_fcfs_queue():
    res = schedule_mlfq([Process("P1", 0, 5), Process("P2", 1, 3)], quantum=2)
    assert _gantt(res) == [("P1", 0, 2), ("P2", 2, 4), ("P1", 4, 7), ("P2", 7, 8)]
    assert [p.waiting_time for p in res.processes] == [2, 4]


def test_mlfq_q0_preferred_but_q1_runs_to_completion():
    res = schedule_mlfq([Process("P1", 0, 4), Process("P2", 3, 1)], quantum=2)
    # P2 arrives while P1 runs from Q1, so it waits for P1 to finish.
    assert _gantt(res) == [("P1", 0, 2), ("P1", 2, 4), ("P2", 4, 5)]

    res = schedule_mlfq([Process("P1", 0, 4), Process("P2", 2, 1)], quantum=2)
    assert _gantt(res) == [("P1", 0, 2), ("P2", 2, 3), ("P1", 3, 5)]


def test_mlfq_default_quantum_is_two():
    res = schedule_mlfq([Process("P1", 0, 3)])
    assert res.quantum == 2
    assert _gantt(res) == [("P1", 0, 2), ("P1", 2, 3)]


def test_fair_share_alternates_groups():
    res = schedule_fair_share([Process("P1", 0, 4, group="A"), Process("P2", 1, 3, group="B")])
    assert _gantt(res) == [
        ("P1", 0, 1),
        ("P2", 1, 2),
        ("P1", 2, 3),
        ("P2", 3, 4),
        ("P1", 4, 5),
        ("P2", 5, 6),
        ("P1", 6, 7),
    ]
    assert [p.completion_time for p in res.processes] == [7, 6]


def test_fair_share_skips_groups_with_nothing_ready():
    res = schedule_fair_share(
        [
            Process("P1", 0, 2, group="A"),
            Process("P2", 0, 1, group="A"),
            Process("P3", 3, 1, group="B"),
        ]
    )
    assert _gantt(res) == [("P1", 0, 2), ("P2", 2, 3), ("P3", 3, 4)]


def test_fair_share_pointer_holds_while_idle():
    res = schedule_fair_share(
        [
            Process("A1", 0, 1, group="A"),
            Process("B1", 3, 2, group="B"),
            Process("A2", 3, 2, group="A"),
        ]
    )
    # A was served last before the gap, so B gets the first unit after it.
    assert _gantt(res) == [
        ("A1", 0, 1),
        ("Idle", 1, 3),
        ("B1", 3, 4),
        ("A2", 4, 5),
        ("B1", 5, 6),
        ("A2", 6, 7),
    ]


def test_fair_share_ungrouped_processes_stay_apart_from_default_label():
    res = schedule_fair_share(
        [
            Process("X", 0, 2, group="default"),
            Process("Y", 0, 2),
            Process("Z", 0, 2, group="Q"),
        ]
    )
    assert _gantt(res) == [
        ("X", 0, 1),
        ("Y", 1, 2),
        ("Z", 2, 3),
        ("X", 3, 4),
        ("Y", 4, 5),
        ("Z", 5, 6),
    ]
    assert _by_name(res)["Y"].completion_time == 5


def test_results_follow_input_order():
    procs = [Process("late", 5, 1), Process("early", 0, 2)]
    res = schedule_sjf(procs)
    assert [p.name for p in res.processes] == ["late", "early"]
    assert res.processes[0].start_time == 5
    assert res.processes[0].response_time == 0


@pytest.mark.parametrize(
    "procs",
    [
        [],
        [Process("P1", 0, 0)],
        [Process("P1", -1, 2)],
        [Process("P1", 0, 2), Process("P1", 1, 2)],
        [Process("P1", 0, 2, tickets=0)],
    ],
)
def test_invalid_input_rejected(procs):
    with pytest.raises(SchedulingError):
        schedule_fcfs(procs)


def test_run_algorithm_dispatch():
    res = run_algorithm("RR", _procs(), quantum=3)
    assert res.algorithm == "Round Robin"
    assert res.quantum == 3

    res = run_algorithm("fcfs", _procs(), quantum=3)
    assert res.quantum is None


def test_run_algorithm_unknown():
    with pytest.raises(SchedulingError):
        run_algorithm("nope", _procs())
