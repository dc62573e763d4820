"""
Timeline Recorder for the CPU Scheduling & Deadlock Simulator.

Aggregates the ticks each process spent on the CPU into Gantt chart spans.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class TimelineEntry:
    """
    A span during which one process occupied the CPU.

    Attributes:
        pid: Process on the CPU
        start: First tick of the span
        end: Tick at which the span ended (exclusive)
    """
    pid: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


class TimelineRecorder:
    """
    Records which process executed each CPU tick.

    By default a new entry opens whenever the pid changes or the CPU was
    idle in between, so every entry is an exact busy span. With
    `merge_resumed_spans` the recorder only opens an entry when the pid
    differs from the last one recorded, and closes it when the next
    different pid starts (or at the end of the run); a process that resumes
    with nobody else running in between stays in one entry spanning the gap.
    """

    def __init__(self, merge_resumed_spans: bool = False):
        self.merge_resumed_spans = merge_resumed_spans
        self.entries: List[TimelineEntry] = []
        self._last_pid: Optional[int] = None
        self._closed = False

    def record(self, pid: int, tick: int) -> None:
        """Record that `pid` executed during tick `tick`."""
        if self.merge_resumed_spans:
            if pid != self._last_pid:
                if self.entries:
                    self.entries[-1].end = tick
                self.entries.append(TimelineEntry(pid, tick, tick + 1))
                self._last_pid = pid
            return

        last = self.entries[-1] if self.entries else None
        if last is not None and last.pid == pid and last.end == tick:
            last.end = tick + 1
        else:
            self.entries.append(TimelineEntry(pid, tick, tick + 1))
        self._last_pid = pid

    def close(self, final_time: int) -> None:
        """Stamp the end of the open entry at overall completion."""
        if self.merge_resumed_spans and self.entries and not self._closed:
            self.entries[-1].end = max(final_time, self.entries[-1].start)
        self._closed = True

    def busy_ticks(self) -> int:
        """Ticks the CPU was busy (exact only without span merging)."""
        return sum(entry.length for entry in self.entries)


def format_gantt_chart(entries: List[TimelineEntry]) -> str:
    """
    Render timeline entries as a text Gantt chart.

    Idle gaps between entries are shown as an empty cell.

    Returns:
        Two lines: process cells and the time scale below them
    """
    if not entries:
        return "No processes executed."

    cells = []
    marks = [entries[0].start]
    cursor = entries[0].start
    for entry in entries:
        if entry.start > cursor:
            cells.append("idle")
            marks.append(entry.start)
        cells.append(f"P{entry.pid}")
        marks.append(entry.end)
        cursor = entry.end

    bar = "|"
    scale = ""
    for cell, mark in zip(cells, marks):
        width = max(len(cell) + 2, len(str(mark)) + 1)
        bar += f"{cell:^{width}}|"
        scale += f"{mark:<{width + 1}}"
    scale += str(marks[-1])

    return bar + "\n" + scale
