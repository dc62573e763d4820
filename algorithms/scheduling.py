"""
Scheduling policy for the CPU Scheduling & Deadlock Simulator.

Priority scheduling (0 = highest) with round-robin quantum preemption among
equal-or-better priorities, and aging to prevent starvation.
"""

from typing import List, Optional

from models.system_state import SystemState
from models.process import Process, ProcessState


def admit_arrivals(system_state: SystemState) -> List[Process]:
    """
    Move every NEW process whose arrival time has come into the ready queue.

    Processes are admitted in input order.

    Returns:
        Admitted processes
    """
    admitted = []
    for process in system_state.processes:
        if process.state == ProcessState.NEW and process.arrival_time <= system_state.current_time:
            process.state = ProcessState.READY
            system_state.ready_queue.append(process.pid)
            admitted.append(process)
    return admitted


def apply_aging(system_state: SystemState, aging_threshold: int) -> List[Process]:
    """
    Age every process sitting in the ready queue by one tick.

    A process whose counter reaches `aging_threshold` gains one priority
    level (unless already at 0) and its counter resets.

    Returns:
        Processes whose priority improved this tick
    """
    boosted = []
    for pid in system_state.ready_queue:
        process = system_state.get_process(pid)
        process.time_in_ready_queue += 1

        if process.time_in_ready_queue >= aging_threshold and process.priority > 0:
            process.priority -= 1
            process.time_in_ready_queue = 0
            boosted.append(process)
    return boosted


def select_next_process(system_state: SystemState) -> Optional[Process]:
    """
    Remove and return the ready process with the smallest priority number.

    Ties go to the earliest-enqueued process.

    Returns:
        Selected process, or None if the ready queue is empty
    """
    best = None
    for pid in system_state.ready_queue:
        process = system_state.get_process(pid)
        if best is None or process.priority < best.priority:
            best = process

    if best is not None:
        system_state.ready_queue.remove(best.pid)
    return best


def has_preemption_candidate(system_state: SystemState, process: Process) -> bool:
    """Check if a ready process has priority equal to or better than `process`."""
    return any(
        system_state.get_process(pid).priority <= process.priority
        for pid in system_state.ready_queue
    )


def should_preempt(system_state: SystemState, time_quantum: int) -> bool:
    """
    Decide whether the running process loses the CPU after this tick.

    Only a still-RUNNING process past its quantum with an equal-or-better
    ready competitor is preempted; otherwise it keeps running.
    """
    process = system_state.running_process
    if process is None or process.state != ProcessState.RUNNING:
        return False
    if system_state.time_slice < time_quantum:
        return False
    return has_preemption_candidate(system_state, process)


def preempt_running(system_state: SystemState) -> Process:
    """Send the running process back to the tail of the ready queue."""
    process = system_state.running_process
    process.state = ProcessState.READY
    system_state.ready_queue.append(process.pid)
    system_state.running_pid = None
    system_state.time_slice = 0
    return process
