"""
Simulation Engine Tests

End-to-end runs of the tick loop: priority order, deadlock recovery,
starvation aging, I/O handling, stop reasons and the command line.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.process import Process, ProcessState, Burst, Exec
from models.system_state import SystemState
from utils.config import SimulationConfig
from utils.scenario_loader import load_scenario, parse_scenario
from analysis.events import EventType
from analysis.timeline import TimelineEntry
from simulator import Simulation, StopReason, run_simulation, main

SCENARIO_DIR = Path(__file__).parent / "scenarios"


def _run(system_state, **config):
    simulation = Simulation(system_state, SimulationConfig(check_invariants=True, **config))
    return simulation.run()


def test_priority_scenario_end_to_end():
    """P1 (priority 0) runs first; P0 acquires R1 after 5 ticks of work."""
    system_state = load_scenario(str(SCENARIO_DIR / "priority_basic.txt"))

    result = _run(system_state)

    p0, p1 = system_state.processes
    assert result.stop_reason == StopReason.COMPLETED
    assert result.final_time == 10
    assert p1.finish_time == 2
    assert p0.start_time == 2
    assert p0.finish_time == 10
    assert result.timeline == [TimelineEntry(1, 0, 2), TimelineEntry(0, 2, 10)]

    allocation = result.event_log.get_events_by_type(EventType.ALLOCATION)
    assert [(e.time, e.process_id) for e in allocation] == [(7, 0)]

    stats = {s.pid: s for s in result.metrics.process_stats}
    assert (stats[1].turnaround_time, stats[1].waiting_time) == (2, 0)
    assert (stats[0].turnaround_time, stats[0].waiting_time) == (10, 2)
    assert result.metrics.get_cpu_utilization() == 100.0
    assert list(system_state.available_vector) == [1]


def test_circular_wait_recovered():
    """Each process holds one resource and waits on the other; the first pid is sacrificed."""
    system_state = load_scenario(str(SCENARIO_DIR / "circular_wait.txt"))

    result = _run(system_state, time_quantum=2)

    p0, p1 = system_state.processes
    assert result.stop_reason == StopReason.COMPLETED
    assert result.metrics.deadlock_count == 1
    assert p0.terminated_by_recovery
    # Detected once P1 blocks at the end of tick 7
    assert p0.finish_time == 8
    assert not p1.terminated_by_recovery
    assert p1.finish_time == 9
    assert result.final_time == 9
    assert result.timeline == [
        TimelineEntry(0, 0, 2), TimelineEntry(1, 2, 4), TimelineEntry(0, 4, 6), TimelineEntry(1, 6, 9)
    ]

    deadlocks = result.event_log.get_events_by_type(EventType.DEADLOCK)
    assert len(deadlocks) == 1
    assert deadlocks[0].time == 8
    assert "[0, 1]" in deadlocks[0].message
    assert result.metrics.completed_processes == 1
    assert result.metrics.victim_count == 1
    assert list(system_state.available_vector) == [1, 1]


def test_victim_finishes_after_its_last_cpu_tick():
    """A victim that blocked right after an Exec is terminated at the end of that tick."""
    system_state = parse_scenario(
        "[1,1] [2,1]\n"
        "0 0 3 CPU{R[1,1],5,R[2,1],1}\n"
        "1 0 0 CPU{R[2,1]} IO{1} CPU{R[1,1],1}\n"
    )

    result = _run(system_state, time_quantum=1)

    p0, p1 = system_state.processes
    assert result.stop_reason == StopReason.COMPLETED
    assert p0.terminated_by_recovery
    last_end = max(entry.end for entry in result.timeline if entry.pid == 0)
    assert last_end == 5
    assert p0.finish_time == 5
    assert p1.finish_time == 6

    times = [event.time for event in result.event_log.events]
    assert times == sorted(times)

    at_five = [e.event_type for e in result.event_log.get_events_by_time(5)]
    assert at_five.index(EventType.WAIT) < at_five.index(EventType.DEADLOCK)
    assert at_five.index(EventType.DEADLOCK) < at_five.index(EventType.RECOVERY)
    assert result.event_log.get_events_for_process(0)[-1].event_type == EventType.RECOVERY


def test_fewest_resources_strategy():
    system_state = load_scenario(str(SCENARIO_DIR / "circular_wait.txt"))

    result = _run(system_state, time_quantum=2, victim_strategy="fewest_resources")

    # Both hold one instance: the tie goes to the first pid
    assert result.metrics.victim_count == 1
    assert system_state.get_process(0).terminated_by_recovery


def test_request_larger_than_total_is_recovered():
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{1,R[1,2],1}\n1 0 1 CPU{3}\n")

    result = _run(system_state)

    p0, p1 = system_state.processes
    assert result.stop_reason == StopReason.COMPLETED
    assert p0.terminated_by_recovery
    assert p1.finish_time == 4
    assert result.metrics.deadlock_count == 1


def test_starvation_aging():
    """Low-priority processes gain exactly one level after 10 ticks in the ready queue."""
    processes = [Process(pid=0, arrival_time=0, priority=0, bursts=[Burst.cpu(Exec(30))])]
    processes += [
        Process(pid=pid, arrival_time=0, priority=5, bursts=[Burst.cpu(Exec(1))])
        for pid in range(1, 11)
    ]
    system_state = SystemState(processes=processes)
    simulation = Simulation(system_state, SimulationConfig())

    for _ in range(9):
        assert simulation.step() is None
    assert all(p.priority == 5 for p in processes[1:])

    simulation.step()
    assert all(p.priority == 4 for p in processes[1:])
    assert all(p.original_priority == 5 for p in processes[1:])
    # P0 is past its quantum but nobody ready can match priority 0
    assert system_state.running_pid == 0
    assert not simulation.event_log.get_events_by_type(EventType.PREEMPTION)


def test_round_robin_fairness():
    """Equal-priority CPU-bound processes alternate every quantum."""
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{25}\n1 0 0 CPU{25}\n")

    result = _run(system_state)

    assert result.timeline == [
        TimelineEntry(0, 0, 10), TimelineEntry(1, 10, 20), TimelineEntry(0, 20, 30),
        TimelineEntry(1, 30, 40), TimelineEntry(0, 40, 45), TimelineEntry(1, 45, 50),
    ]
    assert all(entry.length <= 10 for entry in result.timeline)
    assert result.final_time == 50


def test_trailing_io_terminates():
    system_state = load_scenario(str(SCENARIO_DIR / "trailing_io.txt"))

    result = _run(system_state)

    process = system_state.get_process(0)
    assert result.stop_reason == StopReason.COMPLETED
    assert process.state == ProcessState.TERMINATED
    assert process.finish_time == 5
    assert process.held_resources == {}
    assert list(system_state.available_vector) == [2]


def test_leading_io_burst():
    system_state = parse_scenario("[1,1]\n0 0 0 IO{2} CPU{1}\n")

    result = _run(system_state)

    process = system_state.get_process(0)
    assert result.stop_reason == StopReason.COMPLETED
    assert process.start_time == 0
    assert process.finish_time == 3
    assert result.timeline == [TimelineEntry(0, 2, 3)]
    assert result.metrics.busy_ticks == 1


def test_late_arrival_leaves_cpu_idle():
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{2}\n1 5 0 CPU{1}\n")

    result = _run(system_state)

    assert result.stop_reason == StopReason.COMPLETED
    assert result.timeline == [TimelineEntry(0, 0, 2), TimelineEntry(1, 5, 6)]
    assert result.final_time == 6


def test_merged_spans_cover_idle_gap():
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{2} IO{2} CPU{1}\n")

    result = _run(system_state, merge_resumed_spans=True)

    assert result.final_time == 5
    assert result.timeline == [TimelineEntry(0, 0, 5)]


def test_tick_ceiling_times_out():
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{100}\n")

    result = _run(system_state, max_ticks=5)

    assert result.stop_reason == StopReason.TIMEOUT
    assert result.final_time == 6
    assert result.event_log.get_events_by_type(EventType.TIMEOUT)
    assert system_state.get_process(0).state == ProcessState.RUNNING


def test_invalid_release_is_logged_not_fatal():
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{1,F[1,1],1}\n")

    result = _run(system_state)

    assert result.stop_reason == StopReason.COMPLETED
    invalid = result.event_log.get_events_by_type(EventType.INVALID_RELEASE)
    assert len(invalid) == 1
    assert invalid[0].time == 1


def test_step_after_stop_returns_reason():
    system_state = parse_scenario("[1,1]\n0 0 0 CPU{1}\n")
    simulation = Simulation(system_state)

    assert simulation.step() == StopReason.COMPLETED
    assert simulation.step() == StopReason.COMPLETED
    assert simulation.result().final_time == 1


def test_run_simulation_writes_log(tmp_path):
    log_file = tmp_path / "run.log"

    result = run_simulation(str(SCENARIO_DIR / "priority_basic.txt"), log_file=str(log_file), echo=False)

    assert result.stop_reason == StopReason.COMPLETED
    content = log_file.read_text(encoding="utf-8")
    assert "GANTT CHART" in content
    assert "[Time 7] P0 acquired 1 instance" in content
    assert "Average Waiting Time: 1.00" in content


def test_main_exit_codes(tmp_path, capsys):
    assert main([str(SCENARIO_DIR / "priority_basic.txt")]) == 0
    assert main([str(SCENARIO_DIR / "priority_basic.txt"), "--max-ticks", "3"]) == 2
    capsys.readouterr()

    assert main([str(tmp_path / "missing.txt")]) == 1
    assert "Cannot open file" in capsys.readouterr().err

    assert main([str(SCENARIO_DIR / "malformed.txt")]) == 1


def test_config_validation():
    config = SimulationConfig()
    assert (config.time_quantum, config.aging_threshold, config.detect_interval) == (10, 10, 5)
    assert config.max_ticks == 10000

    with pytest.raises(ValueError):
        SimulationConfig(time_quantum=0)
    with pytest.raises(ValueError):
        SimulationConfig(detect_interval=-1)
    with pytest.raises(ValueError):
        SimulationConfig(victim_strategy="oldest")


def test_main_rejects_bad_options():
    with pytest.raises(SystemExit):
        main([str(SCENARIO_DIR / "priority_basic.txt"), "--quantum", "0"])
    with pytest.raises(SystemExit):
        main([str(SCENARIO_DIR / "priority_basic.txt"), "--victim-strategy", "random"])
