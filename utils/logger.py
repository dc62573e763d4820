"""
Logger utility for the CPU Scheduling & Deadlock Simulator.

Provides tick-by-tick logging with verbosity levels.
"""

from typing import Optional
from datetime import datetime

from analysis.events import SimulationEvent, EventType

_WARNING_EVENTS = (EventType.INVALID_RELEASE, EventType.STUCK, EventType.TIMEOUT)
_DEBUG_EVENTS = (EventType.AGING,)


class SimulatorLogger:
    """
    Logger for simulation events and decisions.

    Format: "[Time X] PY acquired N instances of RZ"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, echo: bool = True):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose (debug) output
            log_file: Optional file path for logging
            echo: Print to the console
        """
        self.verbose = verbose
        self.log_file = log_file
        self.echo = echo
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Simulation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        # Console output
        if self.echo:
            print(formatted)

        # File output
        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_event(self, event: SimulationEvent) -> None:
        """Log a simulation event at the level its type calls for."""
        if event.event_type in _WARNING_EVENTS:
            level = "warning"
        elif event.event_type in _DEBUG_EVENTS:
            level = "debug"
        else:
            level = "info"
        self.log(str(event), level)

    def log_deadlock(self, time: int, deadlocked_pids: list) -> None:
        """
        Log deadlock detection with its members.

        Args:
            time: Current tick
            deadlocked_pids: List of PIDs in deadlock
        """
        pids_str = ", ".join(f"P{pid}" for pid in deadlocked_pids)
        self.log(f"\n{'='*10} DEADLOCK DETECTED at Time {time} {'='*10}")
        self.log(f"Deadlocked processes: [{pids_str}]")

    def log_system_state(self, time: int, state_str: str) -> None:
        """
        Log system state snapshot.

        Args:
            time: Current tick
            state_str: Formatted system state
        """
        if self.verbose:
            self.log(f"[Time {time}] System State:{state_str}", "debug")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
