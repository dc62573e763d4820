"""
Event Model for the CPU Scheduling & Deadlock Simulator.

Defines event types for tracking simulation actions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EventType(Enum):
    """Types of events in the simulation."""
    ARRIVAL = "arrival"
    DISPATCH = "dispatch"
    ALLOCATION = "allocation"
    WAIT = "wait"
    RELEASE = "release"
    INVALID_RELEASE = "invalid_release"
    IO_START = "io_start"
    IO_COMPLETE = "io_complete"
    AGING = "aging"
    PREEMPTION = "preemption"
    DEADLOCK = "deadlock"
    RECOVERY = "recovery"
    TERMINATION = "termination"
    STUCK = "stuck"
    TIMEOUT = "timeout"


# System-wide events carry this in place of a PID
SYSTEM_PID = -1


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        time: Tick when event occurred
        event_type: Type of event
        process_id: PID involved in event (SYSTEM_PID for system-wide events)
        resource_id: Resource involved (if applicable)
        amount: Resource amount or duration involved (if applicable)
        message: Human-readable description
    """
    time: int
    event_type: EventType
    process_id: int
    resource_id: Optional[int] = None
    amount: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"[Time {self.time}]"
        proc = f"{base} P{self.process_id}"

        if self.event_type == EventType.ARRIVAL:
            return f"{proc} arrived ({self.message})"
        elif self.event_type == EventType.DISPATCH:
            return f"{proc} started/resumed ({self.message})"
        elif self.event_type == EventType.ALLOCATION:
            return f"{proc} acquired {self.amount} instances of R{self.resource_id}"
        elif self.event_type == EventType.WAIT:
            return f"{proc} waiting for {self.amount} instances of R{self.resource_id} ({self.message})"
        elif self.event_type == EventType.RELEASE:
            return f"{proc} released {self.amount} instances of R{self.resource_id}"
        elif self.event_type == EventType.INVALID_RELEASE:
            return f"{proc} cannot release {self.amount} instances of R{self.resource_id} ({self.message})"
        elif self.event_type == EventType.IO_START:
            return f"{proc} moved to IO (duration {self.amount})"
        elif self.event_type == EventType.IO_COMPLETE:
            return f"{proc} IO completed, {self.message}"
        elif self.event_type == EventType.AGING:
            return f"{base} AGING: P{self.process_id} priority decreased to {self.amount}"
        elif self.event_type == EventType.PREEMPTION:
            return f"{base} Time quantum expired for P{self.process_id}, preempting"
        elif self.event_type == EventType.DEADLOCK:
            return f"{base} DEADLOCK DETECTED ({self.message})"
        elif self.event_type == EventType.RECOVERY:
            return f"{base} RECOVERY: {self.message}"
        elif self.event_type == EventType.TERMINATION:
            return f"{proc} TERMINATED ({self.message})"
        elif self.event_type == EventType.STUCK:
            return f"{base} Warning: System may be stuck ({self.message})"
        elif self.event_type == EventType.TIMEOUT:
            return f"{base} Simulation timeout ({self.message})"
        else:
            return f"{proc} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: SimulationEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_time(self, time: int) -> list:
        """Get all events from a specific tick."""
        return [e for e in self.events if e.time == time]

    def get_events_for_process(self, pid: int) -> list:
        return [e for e in self.events if e.process_id == pid]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
