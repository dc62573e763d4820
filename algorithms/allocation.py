"""
Resource Allocator for the CPU Scheduling & Deadlock Simulator.

Grants or defers REQUEST operations and applies RELEASE operations against
the resource pool. No safety check is made before granting: deadlocks are
detected after the fact (see algorithms.detection).
"""

from typing import Dict, List, Tuple

from models.system_state import SystemState
from models.process import Process, ProcessState


def allocate(process: Process, resource_id: int, amount: int, system_state: SystemState) -> bool:
    """
    Try to grant `amount` instances of `resource_id` to `process`.

    On failure the pending request is recorded on the process (its held
    resources are kept: hold and wait). The caller is responsible for moving
    the process to WAITING.

    Args:
        process: Requesting process
        resource_id: Resource to acquire
        amount: Number of instances

    Returns:
        True if granted, False if the process must wait

    Raises:
        ValueError: If the resource was never declared
    """
    resource = system_state.get_resource(resource_id)

    if not resource.allocate(amount):
        process.waiting_resource_id = resource_id
        process.waiting_amount = amount
        return False

    process.held_resources[resource_id] = process.held_resources.get(resource_id, 0) + amount
    process.clear_wait()
    return True


def release(process: Process, resource_id: int, amount: int, system_state: SystemState) -> bool:
    """
    Return `amount` instances of `resource_id` held by `process`.

    Releasing more than is held changes nothing and returns False so the
    caller can report the malformed trace; it never raises.

    Returns:
        True if the instances went back to the pool
    """
    held = process.held_resources.get(resource_id, 0)
    if held < amount or resource_id not in system_state.resources:
        return False

    process.held_resources[resource_id] = held - amount
    system_state.resources[resource_id].deallocate(amount)
    return True


def release_all_resources(process: Process, system_state: SystemState) -> Dict[int, int]:
    """
    Return every instance held by `process` to the pool.

    Returns:
        Resource id -> amount released (only non-zero entries)
    """
    released = {}
    for resource_id, amount in sorted(process.held_resources.items()):
        if amount > 0:
            system_state.resources[resource_id].deallocate(amount)
            released[resource_id] = amount
    process.held_resources.clear()
    return released


def retry_waiting_requests(system_state: SystemState) -> List[Tuple[int, int, int]]:
    """
    Retry every blocked request, in waiting-queue order.

    A granted process leaves the waiting queue, moves past its Request
    operation and re-enters the ready queue.

    Returns:
        List of (pid, resource_id, amount) for each granted request
    """
    granted = []
    still_waiting = []

    for pid in system_state.waiting_queue:
        process = system_state.get_process(pid)

        # TERMINATED processes never retry
        if process.state != ProcessState.WAITING or not process.is_waiting():
            continue

        resource_id = process.waiting_resource_id
        amount = process.waiting_amount
        if allocate(process, resource_id, amount, system_state):
            process.current_operation_index += 1
            process.state = ProcessState.READY
            system_state.ready_queue.append(pid)
            granted.append((pid, resource_id, amount))
        else:
            still_waiting.append(pid)

    system_state.waiting_queue = still_waiting
    return granted
