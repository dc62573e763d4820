"""
Deadlock Recovery Algorithm for the CPU Scheduling & Deadlock Simulator.

Implements recovery by process termination. No checkpoint or rollback is
kept: the victim loses its work and its resources return to the pool.
"""

from typing import Dict, List, Optional, Tuple

from models.system_state import SystemState
from models.process import ProcessState
from algorithms.allocation import release_all_resources

VICTIM_STRATEGIES = ("priority", "fewest_resources", "youngest")


def select_victim(
    deadlocked_pids: List[int],
    system_state: SystemState,
    strategy: str = "priority"
) -> int:
    """
    Select victim process for termination.

    Strategies:
    - "priority": Worst priority (highest priority number)
    - "fewest_resources": Process holding fewest resource instances
    - "youngest": Most recently arrived process (highest arrival_time)

    Ties go to the first PID in `deadlocked_pids`.

    Args:
        deadlocked_pids: List of PIDs in deadlock
        system_state: Current system state
        strategy: Selection strategy

    Returns:
        PID of selected victim, or -1 if the list is empty

    Raises:
        ValueError: If the strategy is unknown
    """
    if not deadlocked_pids:
        return -1

    processes = [system_state.get_process(pid) for pid in deadlocked_pids]

    if strategy == "priority":
        victim = max(processes, key=lambda p: p.priority)
    elif strategy == "fewest_resources":
        victim = min(processes, key=lambda p: p.total_held())
    elif strategy == "youngest":
        victim = max(processes, key=lambda p: p.arrival_time)
    else:
        raise ValueError(f"Unknown victim strategy: {strategy}")

    return victim.pid


def terminate_process(
    pid: int,
    system_state: SystemState,
    time: Optional[int] = None
) -> Tuple[bool, str, Dict[int, int]]:
    """
    Forcibly terminate a process and release all its resources.

    - Release all held resources (update the pool)
    - Clear the pending request
    - Set state to TERMINATED, finish_time = `time` (current tick if None)
    - Remove from the waiting queue

    Args:
        pid: Process ID to terminate
        system_state: Current system state
        time: Tick stamped as the finish time (defaults to current tick)

    Returns:
        Tuple of (success, message, released resources)
    """
    try:
        process = system_state.get_process(pid)
    except KeyError:
        return False, f"Process P{pid} not found", {}

    if process.state == ProcessState.TERMINATED:
        return False, f"Process P{pid} already terminated", {}

    released = release_all_resources(process, system_state)
    process.clear_wait()
    process.state = ProcessState.TERMINATED
    process.finish_time = system_state.current_time if time is None else time
    process.terminated_by_recovery = True

    if pid in system_state.waiting_queue:
        system_state.waiting_queue.remove(pid)

    # SANITY CHECK: Verify resource conservation after termination
    system_state.assert_resource_conservation(f"after terminating P{pid}")

    resources_str = ", ".join(f"R{rid}[{amount}]" for rid, amount in released.items()) or "nothing"
    message = f"Terminated P{pid} (priority={process.priority}, holding {resources_str})"

    return True, message, released


def recover_from_deadlock(
    deadlocked_pids: List[int],
    system_state: SystemState,
    strategy: str = "priority",
    time: Optional[int] = None
) -> Tuple[Optional[int], List[str]]:
    """
    Break a deadlock by terminating a single victim.

    One victim per call: if a residual cycle remains, the next detection run
    triggers another recovery.

    Args:
        deadlocked_pids: List of PIDs in deadlock
        system_state: Current system state
        strategy: Victim selection strategy
        time: Tick stamped as the victim's finish time (defaults to current tick)

    Returns:
        Tuple of (victim PID or None, list of action messages)
    """
    if not deadlocked_pids:
        return None, ["No deadlocked processes to recover"]

    victim_pid = select_victim(deadlocked_pids, system_state, strategy)
    success, message, _ = terminate_process(victim_pid, system_state, time)

    if not success:
        return None, [f"FAILED: {message}"]

    return victim_pid, [message]
