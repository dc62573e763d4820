"""
System State model for the CPU Scheduling & Deadlock Simulator.

Owns every piece of mutable simulation state: the clock, the process table,
the resource pool, the scheduling queues and the running slot. It also
exposes the matrices and vectors used by deadlock detection.
"""

import numpy as np
from collections import deque
from typing import Deque, Dict, List, Optional
from dataclasses import dataclass, field

from models.process import Process, ProcessState
from models.resource import Resource


@dataclass
class SystemState:
    """
    Global state of one simulation run.

    Matrices are rebuilt from the process table on every access, so they
    always reflect the latest allocations.

    Attributes:
        processes: All processes, in input order
        resources: Resource pool keyed by resource id
        ready_queue: PIDs in READY, in enqueue order
        io_queue: PIDs performing I/O
        waiting_queue: PIDs blocked on a resource request
        running_pid: PID occupying the CPU (None when idle)
        current_time: Current tick
        time_slice: Ticks the running process has executed since dispatch
    """
    processes: List[Process] = field(default_factory=list)
    resources: Dict[int, Resource] = field(default_factory=dict)
    ready_queue: Deque[int] = field(default_factory=deque)
    io_queue: List[int] = field(default_factory=list)
    waiting_queue: List[int] = field(default_factory=list)
    running_pid: Optional[int] = None
    current_time: int = 0
    time_slice: int = 0

    def __post_init__(self):
        self._by_pid = {}
        for process in self.processes:
            if process.pid in self._by_pid:
                raise ValueError(f"Duplicate process id P{process.pid}")
            self._by_pid[process.pid] = process

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return len(self.processes)

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return len(self.resources)

    @property
    def resource_ids(self) -> List[int]:
        """Resource ids in column order of the matrices."""
        return sorted(self.resources)

    def resource_index(self, resource_id: int) -> int:
        """Column of `resource_id` in the matrices."""
        return self.resource_ids.index(resource_id)

    def get_process(self, pid: int) -> Process:
        return self._by_pid[pid]

    def get_resource(self, resource_id: int) -> Resource:
        """
        Look up a declared resource.

        Raises:
            ValueError: If the resource was never declared
        """
        if resource_id not in self.resources:
            raise ValueError(f"Unknown resource R{resource_id}")
        return self.resources[resource_id]

    @property
    def running_process(self) -> Optional[Process]:
        if self.running_pid is None:
            return None
        return self._by_pid[self.running_pid]

    @property
    def allocation_matrix(self) -> np.ndarray:
        """Get allocation matrix [P][R] of held instances."""
        ids = self.resource_ids
        matrix = np.zeros((self.num_processes, len(ids)), dtype=int)
        for i, process in enumerate(self.processes):
            for j, resource_id in enumerate(ids):
                matrix[i][j] = process.held_resources.get(resource_id, 0)
        return matrix

    @property
    def request_matrix(self) -> np.ndarray:
        """Get pending request matrix [P][R] (one blocked request per process)."""
        ids = self.resource_ids
        matrix = np.zeros((self.num_processes, len(ids)), dtype=int)
        for i, process in enumerate(self.processes):
            if process.is_waiting():
                matrix[i][ids.index(process.waiting_resource_id)] = process.waiting_amount
        return matrix

    @property
    def available_vector(self) -> np.ndarray:
        """Get available instances vector [R]."""
        return np.array([self.resources[r].available_instances for r in self.resource_ids], dtype=int)

    @property
    def total_vector(self) -> np.ndarray:
        """Get total instances vector [R]."""
        return np.array([self.resources[r].total_instances for r in self.resource_ids], dtype=int)

    def all_terminated(self) -> bool:
        """Check if every process reached TERMINATED."""
        return all(p.state == ProcessState.TERMINATED for p in self.processes)

    def has_pending_arrivals(self) -> bool:
        """Check if some process has not arrived yet."""
        return any(p.state == ProcessState.NEW for p in self.processes)

    def is_cpu_idle_and_blocked(self) -> bool:
        """Nothing runs, nothing is ready or in I/O, yet some process waits on a resource."""
        return (
            self.running_pid is None
            and not self.ready_queue
            and not self.io_queue
            and bool(self.waiting_queue)
        )

    def assert_resource_conservation(self, context=""):
        """Verify resource conservation: allocated + available = total for all resources.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If resource conservation is violated
        """
        allocated = self.allocation_matrix.sum(axis=0) if self.num_processes else np.zeros(
            self.num_resources, dtype=int)
        available = self.available_vector
        total = self.total_vector

        for idx, resource_id in enumerate(self.resource_ids):
            assert allocated[idx] + available[idx] == total[idx], (
                f"Resource conservation violated for R{resource_id} {context}\n"
                f"  Allocated: {allocated[idx]}, Available: {available[idx]}, Total: {total[idx]}"
            )
            assert 0 <= available[idx] <= total[idx], (
                f"Available out of range for R{resource_id} {context}\n"
                f"  Available: {available[idx]}, Total: {total[idx]}"
            )

        for process in self.processes:
            for resource_id, amount in process.held_resources.items():
                assert amount >= 0, f"P{process.pid} holds negative R{resource_id} {context}"

    def display(self) -> str:
        """
        Generate readable string representation of system state.

        Returns:
            Formatted string showing queues, process states and the pool
        """
        output = []
        output.append("\n" + "="*60)
        output.append(f"SYSTEM STATE (time {self.current_time})")
        output.append("="*60)

        running = f"P{self.running_pid}" if self.running_pid is not None else "idle"
        output.append(f"\nCPU: {running} (slice {self.time_slice})")
        output.append(f"Ready:   {[f'P{pid}' for pid in self.ready_queue]}")
        output.append(f"IO:      {[f'P{pid}' for pid in self.io_queue]}")
        output.append(f"Waiting: {[f'P{pid}' for pid in self.waiting_queue]}")

        output.append("\nProcess States:")
        for process in self.processes:
            output.append(
                f"  P{process.pid}: {process.state.value:10} "
                f"(priority={process.priority}, held={process.held_resources})"
            )

        output.append("\nResources:")
        for resource_id in self.resource_ids:
            resource = self.resources[resource_id]
            output.append(
                f"  R{resource_id}: {resource.available_instances}/{resource.total_instances} available"
            )

        output.append("\n" + "="*60)
        return "\n".join(output)
