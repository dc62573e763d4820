"""
Metrics for the CPU Scheduling & Deadlock Simulator.

Per-process statistics and run-level summary computed after a simulation.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import statistics

from models.process import Process, ProcessState


@dataclass
class ProcessStatistics:
    """
    Performance figures of one terminated process.

    Waiting time is turnaround minus the Exec ticks declared in CPU bursts,
    so time spent in I/O counts as waiting.
    """
    pid: int
    arrival_time: int
    start_time: Optional[int]
    finish_time: int
    cpu_time: int
    priority: int
    original_priority: int
    terminated_by_recovery: bool = False

    @property
    def turnaround_time(self) -> int:
        return self.finish_time - self.arrival_time

    @property
    def waiting_time(self) -> int:
        return self.turnaround_time - self.cpu_time

    @property
    def response_time(self) -> Optional[int]:
        if self.start_time is None:
            return None
        return self.start_time - self.arrival_time


def compute_process_statistics(processes: List[Process]) -> List[ProcessStatistics]:
    """Build statistics for every TERMINATED process, in input order."""
    return [
        ProcessStatistics(
            pid=p.pid,
            arrival_time=p.arrival_time,
            start_time=p.start_time,
            finish_time=p.finish_time,
            cpu_time=p.cpu_time,
            priority=p.priority,
            original_priority=p.original_priority,
            terminated_by_recovery=p.terminated_by_recovery
        )
        for p in processes
        if p.state == ProcessState.TERMINATED and p.finish_time is not None
    ]


@dataclass
class SimulationMetrics:
    """
    Accumulated metrics for a single simulation run.

    Tracks:
    1. Average waiting / turnaround / response time over terminated processes
    2. CPU utilization: busy ticks / total time
    3. Throughput: normally completed processes / total time
    4. Deadlock and recovery counts
    """
    total_time: int = 0
    busy_ticks: int = 0
    total_processes: int = 0
    deadlock_count: int = 0
    process_stats: List[ProcessStatistics] = field(default_factory=list)

    @property
    def completed_processes(self) -> int:
        """Processes that ran all their bursts (victims excluded)."""
        return sum(1 for s in self.process_stats if not s.terminated_by_recovery)

    @property
    def victim_count(self) -> int:
        return sum(1 for s in self.process_stats if s.terminated_by_recovery)

    def get_avg_waiting_time(self) -> float:
        if not self.process_stats:
            return 0.0
        return statistics.mean(s.waiting_time for s in self.process_stats)

    def get_avg_turnaround_time(self) -> float:
        if not self.process_stats:
            return 0.0
        return statistics.mean(s.turnaround_time for s in self.process_stats)

    def get_avg_response_time(self) -> float:
        samples = [s.response_time for s in self.process_stats if s.response_time is not None]
        if not samples:
            return 0.0
        return statistics.mean(samples)

    def get_cpu_utilization(self) -> float:
        """Percentage of ticks the CPU executed a process."""
        if self.total_time == 0:
            return 0.0
        return (self.busy_ticks / self.total_time) * 100

    def get_throughput(self) -> float:
        """Completed processes per tick."""
        if self.total_time == 0:
            return 0.0
        return self.completed_processes / self.total_time


def format_statistics_report(
    metrics: SimulationMetrics,
    stop_reason: str = None
) -> str:
    """
    Format statistics for display at end of simulation.

    Args:
        metrics: SimulationMetrics instance with collected data
        stop_reason: Reason simulation stopped

    Returns:
        Formatted report string
    """
    lines = []
    lines.append("\n" + "="*10 + " STATISTICS " + "="*10)

    for s in metrics.process_stats:
        header = f"Process P{s.pid}:"
        if s.terminated_by_recovery:
            header += " (terminated by deadlock recovery)"
        lines.append(header)
        lines.append(f"  Arrival Time: {s.arrival_time}")
        lines.append(f"  Completion Time: {s.finish_time}")
        lines.append(f"  Turnaround Time: {s.turnaround_time}")
        lines.append(f"  Waiting Time: {s.waiting_time}")
        if s.response_time is not None:
            lines.append(f"  Response Time: {s.response_time}")
        if s.priority != s.original_priority:
            lines.append(f"  Priority: {s.original_priority} -> {s.priority} (aged)")

    if metrics.process_stats:
        lines.append("")
        lines.append(f"Average Waiting Time: {metrics.get_avg_waiting_time():.2f}")
        lines.append(f"Average Turnaround Time: {metrics.get_avg_turnaround_time():.2f}")
        lines.append(f"Average Response Time: {metrics.get_avg_response_time():.2f}")

    lines.append("")
    if stop_reason:
        lines.append(f"Stop Reason: {stop_reason}")
    lines.append(f"Total Time: {metrics.total_time}")
    lines.append(f"CPU Utilization: {metrics.get_cpu_utilization():.2f}%")
    lines.append(f"Throughput: {metrics.get_throughput():.4f} processes/tick")
    lines.append(
        f"Completed: {metrics.completed_processes}/{metrics.total_processes}, "
        f"Deadlocks: {metrics.deadlock_count}, Victims: {metrics.victim_count}"
    )

    return "\n".join(lines)
