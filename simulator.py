#!/usr/bin/env python3
"""
CPU Scheduling & Deadlock Simulator
Main entry point for the simulation system.

Simulates a single CPU under priority scheduling with round-robin quantum
preemption and aging, multi-instance resource allocation, and deadlock
detection with recovery by process termination.
"""

import argparse
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from models.system_state import SystemState
from models.process import ProcessState
from utils.config import SimulationConfig
from utils.scenario_loader import load_scenario, ScenarioLoadError
from utils.logger import SimulatorLogger
from algorithms.allocation import retry_waiting_requests
from algorithms.detection import detect_deadlock, should_run_detection
from algorithms.recovery import recover_from_deadlock, VICTIM_STRATEGIES
from algorithms.scheduling import (
    admit_arrivals, apply_aging, select_next_process, should_preempt, preempt_running
)
from algorithms.execution import ExecutionOutcome, settle_operations, execute_tick, advance_io
from analysis.events import EventLog, SimulationEvent, EventType, SYSTEM_PID
from analysis.timeline import TimelineEntry, TimelineRecorder, format_gantt_chart
from analysis.metrics import SimulationMetrics, compute_process_statistics, format_statistics_report

DEFAULT_INPUT_FILE = "inputFile.txt"


class StopReason(Enum):
    """Why a simulation run ended."""
    COMPLETED = "All processes finished"
    STUCK = "System stuck"
    TIMEOUT = "Tick ceiling reached"


@dataclass
class SimulationResult:
    """Outcome of a simulation run."""
    stop_reason: StopReason
    final_time: int
    timeline: List[TimelineEntry]
    event_log: EventLog
    metrics: SimulationMetrics


class Simulation:
    """
    Tick-driven scheduler over one SystemState.

    Step Ordering (per tick, for deterministic execution):
    1. Admit arrivals
    2. Advance I/O
    3. Retry waiting requests
    4. Periodic deadlock detection/recovery
    5. Age the ready queue
    6. Select a process if the CPU is idle
    7. Execute one tick of the running process
    8. Quantum preemption check
    9. Termination / progress check (on-demand deadlock detection)
    10. Advance the clock
    """

    def __init__(
        self,
        system_state: SystemState,
        config: Optional[SimulationConfig] = None,
        logger: Optional[SimulatorLogger] = None
    ):
        self.state = system_state
        self.config = config or SimulationConfig()
        self.logger = logger or SimulatorLogger(echo=False)
        self.event_log = EventLog()
        self.timeline = TimelineRecorder(self.config.merge_resumed_spans)
        self.deadlock_count = 0
        self.busy_ticks = 0
        self.stop_reason: Optional[StopReason] = None
        self.final_time = 0

    def run(self) -> SimulationResult:
        """Run until completion, a stuck system or the tick ceiling."""
        self.logger.log("\n========== SIMULATION START ==========\n")
        while self.step() is None:
            pass
        self.logger.log("\n========== SIMULATION END ==========")
        return self.result()

    def step(self) -> Optional[StopReason]:
        """
        Simulate one tick.

        Returns:
            The stop reason once the run has ended, else None
        """
        if self.stop_reason is not None:
            return self.stop_reason

        state = self.state
        now = state.current_time

        for process in admit_arrivals(state):
            self._record(SimulationEvent(
                time=now,
                event_type=EventType.ARRIVAL,
                process_id=process.pid,
                message=f"Priority {process.priority}"
            ))

        self._record_all(advance_io(state))
        self._retry_waiting()

        if should_run_detection(now, self.config.detect_interval):
            self._detect_and_recover()

        if state.ready_queue:
            for process in apply_aging(state, self.config.aging_threshold):
                self._record(SimulationEvent(
                    time=now,
                    event_type=EventType.AGING,
                    process_id=process.pid,
                    amount=process.priority
                ))

        if state.running_pid is None:
            self._dispatch()

        if state.running_pid is not None:
            self._execute()

        if self.config.check_invariants or self.logger.verbose:
            state.assert_resource_conservation(f"at time {now}")
            self.logger.log_system_state(now, state.display())

        if state.all_terminated():
            self._stop(StopReason.COMPLETED, max(
                (p.finish_time for p in state.processes), default=now))
            state.current_time += 1
            return self.stop_reason

        progressing = self._check_progress()
        state.current_time += 1

        if not progressing:
            self._stop(StopReason.STUCK, state.current_time)
        elif state.current_time > self.config.max_ticks:
            self._record(SimulationEvent(
                time=state.current_time,
                event_type=EventType.TIMEOUT,
                process_id=SYSTEM_PID,
                message=f"exceeded {self.config.max_ticks} ticks"
            ))
            self._stop(StopReason.TIMEOUT, state.current_time)

        return self.stop_reason

    def result(self) -> SimulationResult:
        """Collect the timeline, events and statistics of the run so far."""
        metrics = SimulationMetrics(
            total_time=self.final_time,
            busy_ticks=self.busy_ticks,
            total_processes=self.state.num_processes,
            deadlock_count=self.deadlock_count,
            process_stats=compute_process_statistics(self.state.processes)
        )
        return SimulationResult(
            stop_reason=self.stop_reason,
            final_time=self.final_time,
            timeline=list(self.timeline.entries),
            event_log=self.event_log,
            metrics=metrics
        )

    def _stop(self, reason: StopReason, final_time: int) -> None:
        self.stop_reason = reason
        self.final_time = final_time
        self.timeline.close(final_time)

    def _record(self, event: SimulationEvent) -> None:
        self.event_log.add(event)
        self.logger.log_event(event)

    def _record_all(self, events: List[SimulationEvent]) -> None:
        for event in events:
            self._record(event)

    def _retry_waiting(self, time: Optional[int] = None) -> list:
        if time is None:
            time = self.state.current_time
        granted = retry_waiting_requests(self.state)
        for pid, resource_id, amount in granted:
            self._record(SimulationEvent(
                time=time,
                event_type=EventType.ALLOCATION,
                process_id=pid,
                resource_id=resource_id,
                amount=amount,
                message="waited request granted"
            ))
        return granted

    def _dispatch(self) -> None:
        """Hand the CPU to the best ready process.

        A process that blocks, enters I/O or terminates while settling its
        zero-cost operations gives the CPU back within the same tick.
        """
        state = self.state
        now = state.current_time

        while state.running_pid is None and state.ready_queue:
            process = select_next_process(state)
            process.state = ProcessState.RUNNING
            if process.start_time is None:
                process.start_time = now
            state.time_slice = 0

            self._record(SimulationEvent(
                time=now,
                event_type=EventType.DISPATCH,
                process_id=process.pid,
                message=f"Priority {process.priority}"
            ))

            outcome, events = settle_operations(process, state, now)
            self._record_all(events)
            if outcome == ExecutionOutcome.RUNNING:
                state.running_pid = process.pid

    def _execute(self) -> None:
        state = self.state
        process = state.running_process
        now = state.current_time

        self.timeline.record(process.pid, now)
        self.busy_ticks += 1
        outcome, events = execute_tick(process, state)
        state.time_slice += 1
        self._record_all(events)

        if outcome != ExecutionOutcome.RUNNING:
            state.running_pid = None
            state.time_slice = 0
        elif should_preempt(state, self.config.time_quantum):
            preempt_running(state)
            self._record(SimulationEvent(
                time=now + 1,
                event_type=EventType.PREEMPTION,
                process_id=process.pid
            ))

    def _detect_and_recover(self, time: Optional[int] = None) -> bool:
        """
        Run deadlock detection and, if needed, terminate one victim.

        Args:
            time: Tick stamped on the events and the victim's finish time
                (defaults to the current tick)

        Returns:
            True if a deadlock was found and a victim terminated
        """
        state = self.state
        if time is None:
            time = state.current_time
        deadlock_exists, deadlocked_pids = detect_deadlock(state)

        if not deadlock_exists:
            self.logger.log(f"[Time {time}] Deadlock check: No deadlock detected", "debug")
            return False

        self.deadlock_count += 1
        self.logger.log_deadlock(time, deadlocked_pids)
        for pid in deadlocked_pids:
            process = state.get_process(pid)
            self.logger.log(
                f"  P{pid}: held={process.held_resources}, "
                f"pending=R{process.waiting_resource_id}[{process.waiting_amount}]"
            )
        self.event_log.add(SimulationEvent(
            time=time,
            event_type=EventType.DEADLOCK,
            process_id=SYSTEM_PID,
            message=f"processes: {deadlocked_pids}"
        ))

        victim_pid, actions = recover_from_deadlock(
            deadlocked_pids, state, self.config.victim_strategy, time)
        for action in actions:
            self._record(SimulationEvent(
                time=time,
                event_type=EventType.RECOVERY,
                process_id=victim_pid if victim_pid is not None else SYSTEM_PID,
                message=action
            ))

        if victim_pid is None:
            self.logger.log("Recovery failed", "error")
            return False

        self.logger.log("========== DEADLOCK RECOVERY COMPLETE ==========\n")
        self._retry_waiting(time)
        return True

    def _check_progress(self) -> bool:
        """
        Make sure some process can still make progress.

        When nothing runs, is ready or is in I/O but processes wait on
        resources, detection runs on demand. If it finds no deadlock the
        waiting requests are retried once, since releases made earlier in
        this tick may satisfy them.

        The check runs at the end of the tick, so anything it decides is
        stamped with the next tick, like the steps settled after an Exec.

        Returns:
            False if the system is stuck
        """
        state = self.state
        end_of_tick = state.current_time + 1

        if state.is_cpu_idle_and_blocked():
            if self._detect_and_recover(end_of_tick):
                return True
            if self._retry_waiting(end_of_tick):
                return True
            self._record(SimulationEvent(
                time=end_of_tick,
                event_type=EventType.STUCK,
                process_id=SYSTEM_PID,
                message=f"waiting: {state.waiting_queue}"
            ))
            return False

        idle = (
            state.running_pid is None
            and not state.ready_queue
            and not state.io_queue
            and not state.waiting_queue
        )
        if idle and not state.has_pending_arrivals():
            self._record(SimulationEvent(
                time=end_of_tick,
                event_type=EventType.STUCK,
                process_id=SYSTEM_PID,
                message="no process can make progress"
            ))
            return False

        return True


def run_simulation(
    scenario_path: str,
    config: Optional[SimulationConfig] = None,
    verbose: bool = False,
    log_file: Optional[str] = None,
    echo: bool = True
) -> SimulationResult:
    """
    Load a scenario file, simulate it and report the results.

    Args:
        scenario_path: Path to scenario text file
        config: Simulation parameters (defaults if None)
        verbose: Enable verbose logging
        log_file: Optional file receiving a copy of the log
        echo: Print the log to the console

    Returns:
        SimulationResult of the run

    Raises:
        ScenarioLoadError: If the scenario cannot be read or is invalid
    """
    logger = SimulatorLogger(verbose=verbose, log_file=log_file, echo=echo)
    try:
        system_state = load_scenario(scenario_path)

        logger.log("CPU Scheduling Simulator with Deadlock Detection")
        logger.log("================================================")
        logger.log(f"Reading input from: {scenario_path}")
        _display_initial_state(system_state, logger)

        simulation = Simulation(system_state, config, logger)
        result = simulation.run()

        logger.log("\n========== GANTT CHART ==========")
        logger.log(format_gantt_chart(result.timeline))
        logger.log(format_statistics_report(result.metrics, result.stop_reason.value))
        return result
    finally:
        logger.close()


def _display_initial_state(system_state: SystemState, logger: SimulatorLogger) -> None:
    """Display declared resources and processes."""
    logger.log("\nResources:")
    for resource_id in system_state.resource_ids:
        resource = system_state.resources[resource_id]
        logger.log(f"  R{resource_id}: {resource.total_instances} instances")

    logger.log(f"\nProcesses: {system_state.num_processes}")
    for p in system_state.processes:
        bursts = " ".join(str(b) for b in p.bursts)
        logger.log(f"  P{p.pid} arrives at {p.arrival_time} with priority {p.priority}: {bursts}")


def main(argv=None):
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description='CPU Scheduling Simulator with Deadlock Detection'
    )
    parser.add_argument(
        'input_file',
        nargs='?',
        default=DEFAULT_INPUT_FILE,
        help=f'Path to scenario file (default: {DEFAULT_INPUT_FILE})'
    )
    parser.add_argument(
        '--quantum',
        type=int,
        default=10,
        help='Round-robin time quantum in ticks (default: 10)'
    )
    parser.add_argument(
        '--aging-threshold',
        type=int,
        default=10,
        help='Ready-queue ticks before a priority boost (default: 10)'
    )
    parser.add_argument(
        '--detect-interval',
        type=int,
        default=5,
        help='Ticks between deadlock detection checks (default: 5)'
    )
    parser.add_argument(
        '--max-ticks',
        type=int,
        default=10000,
        help='Safety ceiling on simulated ticks (default: 10000)'
    )
    parser.add_argument(
        '--victim-strategy',
        choices=VICTIM_STRATEGIES,
        default='priority',
        help='Deadlock victim selection (default: priority)'
    )
    parser.add_argument(
        '--merge-resumed-spans',
        action='store_true',
        help='Merge timeline spans of a process resumed with no other process in between'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )

    args = parser.parse_args(argv)

    try:
        config = SimulationConfig(
            time_quantum=args.quantum,
            aging_threshold=args.aging_threshold,
            detect_interval=args.detect_interval,
            max_ticks=args.max_ticks,
            victim_strategy=args.victim_strategy,
            merge_resumed_spans=args.merge_resumed_spans
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        result = run_simulation(args.input_file, config, args.verbose, args.log_file)
    except ScenarioLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result.stop_reason != StopReason.COMPLETED:
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
