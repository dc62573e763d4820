"""
Deadlock Detection Algorithm for the CPU Scheduling & Deadlock Simulator.

Implements matrix-based deadlock detection (Work/Finish algorithm) for
multi-instance resources.
"""

import numpy as np
from typing import List, Tuple

from models.system_state import SystemState
from models.process import ProcessState


def detect_deadlock(system_state: SystemState) -> Tuple[bool, List[int]]:
    """
    Detect deadlock using matrix-based Work/Finish algorithm.

    Algorithm (Multi-Instance Resources):
    1. Initialize Work = Available.copy(), Finish = [False] * num_processes
    2. Set Finish[i] = True for TERMINATED processes
    3. Find process i where Finish[i] == False and Request[i] <= Work (element-wise)
    4. If found: Finish[i] = True, Work += Allocation[i], repeat step 3
    5. If no such process: deadlock exists if any Finish[i] == False

    Request[i] is the single blocked request of a WAITING process and zero
    for everyone else, so ready, running and I/O processes always finish
    hypothetically and hand their holdings back. Only waiting processes can
    end up deadlocked.

    Time Complexity: O(P²×R) where P = processes, R = resource types

    Args:
        system_state: Current global system state

    Returns:
        Tuple of (deadlock_exists, sorted list of deadlocked process PIDs)
    """
    if not system_state.waiting_queue:
        return False, []

    allocation = system_state.allocation_matrix
    request = system_state.request_matrix

    # Scratch copy; the real pool is never touched
    work = system_state.available_vector.copy()
    finish = np.array([p.state == ProcessState.TERMINATED for p in system_state.processes], dtype=bool)

    found_progress = True
    while found_progress:
        found_progress = False

        for i in range(system_state.num_processes):
            if finish[i]:
                continue

            if np.all(request[i] <= work):
                # Process can complete - add its allocation back to work
                work += allocation[i]
                finish[i] = True
                found_progress = True
                # Restart search from beginning for deterministic behavior
                break

    deadlocked_pids = sorted(
        process.pid for i, process in enumerate(system_state.processes) if not finish[i]
    )

    return len(deadlocked_pids) > 0, deadlocked_pids


def should_run_detection(current_time: int, detect_interval: int) -> bool:
    """
    Determine if periodic detection should run at the current tick.

    Tick 0 is excluded.
    """
    return current_time > 0 and current_time % detect_interval == 0
