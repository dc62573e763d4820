"""
Process execution for the CPU Scheduling & Deadlock Simulator.

Advances a process through its operations and bursts. Only Exec ticks cost
time; Request, Release, burst changes and termination happen instantly at
the moment they are reached (on dispatch, or right after an Exec finishes).
"""

from enum import Enum
from typing import List, Tuple

from models.system_state import SystemState
from models.process import Process, ProcessState, Exec, Request, Release
from algorithms.allocation import allocate, release, release_all_resources
from analysis.events import SimulationEvent, EventType


class ExecutionOutcome(Enum):
    """Where a process stands after its instant operations are settled."""
    RUNNING = "running"
    BLOCKED = "blocked"
    IO = "io"
    TERMINATED = "terminated"


def finish_process(process: Process, system_state: SystemState, time: int) -> SimulationEvent:
    """Terminate a process whose bursts are exhausted, releasing all its resources."""
    released = release_all_resources(process, system_state)
    process.clear_wait()
    process.state = ProcessState.TERMINATED
    process.finish_time = time

    released_str = ", ".join(f"R{rid}[{amount}]" for rid, amount in released.items()) or "none"
    return SimulationEvent(
        time=time,
        event_type=EventType.TERMINATION,
        process_id=process.pid,
        message=f"released: {released_str}"
    )


def _enter_io(process: Process, system_state: SystemState, time: int) -> SimulationEvent:
    duration = process.current_burst.io_duration
    process.state = ProcessState.IO
    process.remaining_time = duration
    # Entered mid-tick: this tick's I/O stage has already run
    if time == system_state.current_time and process.remaining_time > 0:
        process.remaining_time -= 1
    system_state.io_queue.append(process.pid)
    return SimulationEvent(time=time, event_type=EventType.IO_START, process_id=process.pid, amount=duration)


def settle_operations(
    process: Process,
    system_state: SystemState,
    time: int
) -> Tuple[ExecutionOutcome, List[SimulationEvent]]:
    """
    Perform every zero-cost step until the process needs a CPU tick or leaves the CPU.

    Steps:
    - bursts exhausted -> TERMINATED
    - current burst is I/O -> IO queue
    - operations exhausted -> advance to next burst
    - Request -> granted (continue) or WAITING
    - Release -> applied (continue)
    - Exec -> seed remaining_time, stop (RUNNING)

    The caller frees the running slot when the outcome is not RUNNING.

    Args:
        process: Process on the CPU
        system_state: Current system state
        time: Tick stamped on the resulting events

    Returns:
        Tuple of (outcome, events)
    """
    events = []

    while True:
        burst = process.current_burst
        if burst is None:
            events.append(finish_process(process, system_state, time))
            return ExecutionOutcome.TERMINATED, events

        if not burst.is_cpu:
            events.append(_enter_io(process, system_state, time))
            return ExecutionOutcome.IO, events

        operation = process.current_operation
        if operation is None:
            process.advance_burst()
            continue

        if isinstance(operation, Request):
            available = system_state.get_resource(operation.resource_id).available_instances
            if allocate(process, operation.resource_id, operation.amount, system_state):
                process.current_operation_index += 1
                events.append(SimulationEvent(
                    time=time,
                    event_type=EventType.ALLOCATION,
                    process_id=process.pid,
                    resource_id=operation.resource_id,
                    amount=operation.amount
                ))
                continue

            process.state = ProcessState.WAITING
            system_state.waiting_queue.append(process.pid)
            events.append(SimulationEvent(
                time=time,
                event_type=EventType.WAIT,
                process_id=process.pid,
                resource_id=operation.resource_id,
                amount=operation.amount,
                message=f"Available: {available}"
            ))
            return ExecutionOutcome.BLOCKED, events

        elif isinstance(operation, Release):
            held = process.held_resources.get(operation.resource_id, 0)
            if release(process, operation.resource_id, operation.amount, system_state):
                event_type, message = EventType.RELEASE, ""
            else:
                event_type, message = EventType.INVALID_RELEASE, f"only holds {held}"
            events.append(SimulationEvent(
                time=time,
                event_type=event_type,
                process_id=process.pid,
                resource_id=operation.resource_id,
                amount=operation.amount,
                message=message
            ))
            process.current_operation_index += 1

        elif isinstance(operation, Exec):
            if operation.duration <= 0:
                process.current_operation_index += 1
                continue
            if process.remaining_time == 0:
                process.remaining_time = operation.duration
            return ExecutionOutcome.RUNNING, events

        else:
            raise TypeError(f"P{process.pid}: unknown operation {operation!r}")


def execute_tick(process: Process, system_state: SystemState) -> Tuple[ExecutionOutcome, List[SimulationEvent]]:
    """
    Run the current Exec operation of `process` for one tick.

    When the Exec completes, the following zero-cost steps are settled at
    the end of the tick (current_time + 1).

    Returns:
        Tuple of (outcome, events)
    """
    operation = process.current_operation
    if not isinstance(operation, Exec) or process.remaining_time <= 0:
        raise RuntimeError(f"P{process.pid} is not positioned on a pending Exec operation")

    process.remaining_time -= 1
    if process.remaining_time > 0:
        return ExecutionOutcome.RUNNING, []

    process.current_operation_index += 1
    return settle_operations(process, system_state, system_state.current_time + 1)


def advance_io(system_state: SystemState) -> List[SimulationEvent]:
    """
    I/O stage: every process in the I/O queue consumes one tick of its burst.

    A process whose countdown already reached zero leaves the queue first:
    it returns to READY if another burst follows, otherwise it terminates.

    Returns:
        Events for completed I/O bursts
    """
    events = []
    still_in_io = []
    now = system_state.current_time

    for pid in system_state.io_queue:
        process = system_state.get_process(pid)

        if process.remaining_time > 0:
            process.remaining_time -= 1
            still_in_io.append(pid)
            continue

        process.advance_burst()
        if process.has_bursts_remaining():
            process.state = ProcessState.READY
            system_state.ready_queue.append(pid)
            events.append(SimulationEvent(
                time=now,
                event_type=EventType.IO_COMPLETE,
                process_id=pid,
                message="moved to READY"
            ))
        else:
            events.append(SimulationEvent(
                time=now,
                event_type=EventType.IO_COMPLETE,
                process_id=pid,
                message="no bursts left"
            ))
            events.append(finish_process(process, system_state, now))

    system_state.io_queue = still_in_io
    return events
