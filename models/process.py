"""
Process model for the CPU Scheduling & Deadlock Simulator.

Defines the operations a process performs, the bursts that group them and
the per-process mutable scheduling state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from enum import Enum


class ProcessState(Enum):
    """Process states in the simulation."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    WAITING = "WAITING"
    IO = "IO"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class Exec:
    """Consume the CPU (or the I/O device) for `duration` ticks."""
    duration: int

    def __str__(self) -> str:
        return str(self.duration)


@dataclass(frozen=True)
class Request:
    """Acquire `amount` instances of a resource, blocking if unavailable."""
    resource_id: int
    amount: int

    def __str__(self) -> str:
        return f"R[{self.resource_id},{self.amount}]"


@dataclass(frozen=True)
class Release:
    """Return `amount` instances of a resource to the pool."""
    resource_id: int
    amount: int

    def __str__(self) -> str:
        return f"F[{self.resource_id},{self.amount}]"


Operation = Union[Exec, Request, Release]


@dataclass
class Burst:
    """
    A CPU burst (ordered operations) or an I/O burst (a single Exec).

    Attributes:
        is_cpu: True for a CPU burst, False for an I/O burst
        operations: Operations performed during the burst
    """
    is_cpu: bool
    operations: List[Operation] = field(default_factory=list)

    @classmethod
    def cpu(cls, *operations: Operation) -> "Burst":
        return cls(True, list(operations))

    @classmethod
    def io(cls, duration: int) -> "Burst":
        return cls(False, [Exec(duration)])

    @property
    def io_duration(self) -> int:
        """Length of an I/O burst (0 if it carries no Exec)."""
        return self.operations[0].duration if self.operations else 0

    @property
    def exec_time(self) -> int:
        """Sum of Exec durations in this burst."""
        return sum(op.duration for op in self.operations if isinstance(op, Exec))

    def __str__(self) -> str:
        if self.is_cpu:
            return "CPU{" + ",".join(str(op) for op in self.operations) + "}"
        return f"IO{{{self.io_duration}}}"


@dataclass
class Process:
    """
    Represents a process in the scheduling simulation.

    Attributes:
        pid: Process identifier (unique)
        arrival_time: Tick at which the process enters the ready queue
        priority: Current priority (0 = highest); improved by aging
        bursts: Ordered CPU and I/O bursts
        original_priority: Priority declared in the input
        state: Current process state
        current_burst_index: Index of the burst in progress
        current_operation_index: Index of the operation in progress
        remaining_time: Ticks left in the in-progress Exec or I/O burst
        time_in_ready_queue: Aging counter
        start_time: Tick of first dispatch (None until dispatched)
        finish_time: Tick of termination (None until terminated)
        held_resources: Resource id -> instances currently held
        waiting_resource_id: Resource the process is blocked on (None if not blocked)
        waiting_amount: Instances the blocked request needs
        terminated_by_recovery: True if killed as a deadlock victim
    """
    pid: int
    arrival_time: int
    priority: int
    bursts: List[Burst] = field(default_factory=list)
    original_priority: Optional[int] = None
    state: ProcessState = ProcessState.NEW
    current_burst_index: int = 0
    current_operation_index: int = 0
    remaining_time: int = 0
    time_in_ready_queue: int = 0
    start_time: Optional[int] = None
    finish_time: Optional[int] = None
    held_resources: Dict[int, int] = field(default_factory=dict)
    waiting_resource_id: Optional[int] = None
    waiting_amount: int = 0
    terminated_by_recovery: bool = False

    def __post_init__(self):
        if self.original_priority is None:
            self.original_priority = self.priority

    @property
    def current_burst(self) -> Optional[Burst]:
        """Burst in progress, or None once every burst is exhausted."""
        if self.current_burst_index < len(self.bursts):
            return self.bursts[self.current_burst_index]
        return None

    @property
    def current_operation(self) -> Optional[Operation]:
        """Operation in progress within the current burst."""
        burst = self.current_burst
        if burst is None or self.current_operation_index >= len(burst.operations):
            return None
        return burst.operations[self.current_operation_index]

    @property
    def cpu_time(self) -> int:
        """Total Exec ticks declared inside CPU bursts."""
        return sum(burst.exec_time for burst in self.bursts if burst.is_cpu)

    def has_bursts_remaining(self) -> bool:
        return self.current_burst_index < len(self.bursts)

    def advance_burst(self) -> None:
        """Move to the next burst, resetting operation progress."""
        self.current_burst_index += 1
        self.current_operation_index = 0
        self.remaining_time = 0

    def is_waiting(self) -> bool:
        return self.waiting_resource_id is not None

    def clear_wait(self) -> None:
        self.waiting_resource_id = None
        self.waiting_amount = 0

    def is_finished(self) -> bool:
        return self.state == ProcessState.TERMINATED

    def total_held(self) -> int:
        """Number of resource instances held across all types."""
        return sum(self.held_resources.values())

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Process(pid={self.pid}, priority={self.priority}, "
            f"state={self.state.value}, burst={self.current_burst_index}/{len(self.bursts)}, "
            f"held={self.held_resources})"
        )
