"""
Simulation parameters for the CPU Scheduling & Deadlock Simulator.
"""

from dataclasses import dataclass

from algorithms.recovery import VICTIM_STRATEGIES


@dataclass
class SimulationConfig:
    """
    Tunable parameters of a simulation run.

    Attributes:
        time_quantum: Ticks a process may run before a preemption check
        aging_threshold: Ready-queue ticks before a one-level priority boost
        detect_interval: Ticks between periodic deadlock detection runs
        max_ticks: Safety ceiling on the simulation clock
        victim_strategy: Deadlock victim selection ("priority", "fewest_resources", "youngest")
        merge_resumed_spans: Merge a resumed process's timeline spans across idle gaps
        check_invariants: Verify resource conservation after every tick
    """
    time_quantum: int = 10
    aging_threshold: int = 10
    detect_interval: int = 5
    max_ticks: int = 10000
    victim_strategy: str = "priority"
    merge_resumed_spans: bool = False
    check_invariants: bool = False

    def __post_init__(self):
        """Validate parameters."""
        for name in ("time_quantum", "aging_threshold", "detect_interval", "max_ticks"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive (got {getattr(self, name)})")
        if self.victim_strategy not in VICTIM_STRATEGIES:
            raise ValueError(
                f"Unknown victim strategy '{self.victim_strategy}' "
                f"(choose from {', '.join(VICTIM_STRATEGIES)})"
            )
