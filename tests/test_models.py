"""
Core Data Model Tests

Tests Process, Burst, Resource, and SystemState functionality.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.process import Process, ProcessState, Burst, Exec, Request, Release
from models.resource import Resource
from models.system_state import SystemState


def _sample_process(pid=0, priority=1):
    return Process(
        pid=pid,
        arrival_time=0,
        priority=priority,
        bursts=[
            Burst.cpu(Exec(5), Request(1, 1), Exec(3), Release(1, 1)),
            Burst.io(4),
            Burst.cpu(Exec(2)),
        ]
    )


def test_process_model():
    """Test Process defaults and burst navigation."""
    process = _sample_process()

    assert process.state == ProcessState.NEW
    assert process.original_priority == 1
    assert process.start_time is None and process.finish_time is None
    assert not process.is_waiting()

    # CPU time counts Exec operations in CPU bursts only
    assert process.cpu_time == 10

    assert process.current_operation == Exec(5)
    process.current_operation_index = 4
    assert process.current_operation is None

    process.advance_burst()
    assert not process.current_burst.is_cpu
    assert process.current_burst.io_duration == 4
    assert process.current_operation_index == 0

    process.advance_burst()
    process.advance_burst()
    assert process.current_burst is None
    assert not process.has_bursts_remaining()


def test_burst_rendering():
    """Bursts render back to the input syntax."""
    process = _sample_process()
    assert str(process.bursts[0]) == "CPU{5,R[1,1],3,F[1,1]}"
    assert str(process.bursts[1]) == "IO{4}"


def test_resource_model():
    """Test Resource model methods."""
    resource = Resource.with_instances(0, 10)
    assert resource.available_instances == 10

    assert resource.allocate(3)
    assert resource.available_instances == 7
    assert resource.allocated_instances == 3

    # Insufficient instances leaves the pool untouched
    assert not resource.allocate(10)
    assert resource.available_instances == 7

    resource.deallocate(2)
    assert resource.available_instances == 9

    with pytest.raises(ValueError):
        resource.deallocate(5)


def test_resource_validation():
    """Invalid resource states are rejected at construction."""
    with pytest.raises(ValueError):
        Resource(resource_id=1, total_instances=2, available_instances=3)
    with pytest.raises(ValueError):
        Resource(resource_id=1, total_instances=2, available_instances=-1)


def test_system_state_matrices():
    """Test SystemState matrix building."""
    p1 = Process(pid=1, arrival_time=0, priority=1, held_resources={1: 1})
    p2 = Process(pid=2, arrival_time=0, priority=2, held_resources={2: 2})
    p1.waiting_resource_id = 2
    p1.waiting_amount = 1

    r1 = Resource(resource_id=1, total_instances=3, available_instances=2)
    r2 = Resource(resource_id=2, total_instances=2, available_instances=0)

    system_state = SystemState(processes=[p1, p2], resources={2: r2, 1: r1})

    assert system_state.resource_ids == [1, 2]
    assert system_state.allocation_matrix.shape == (2, 2)
    assert np.array_equal(system_state.allocation_matrix, np.array([[1, 0], [0, 2]]))
    assert np.array_equal(system_state.request_matrix, np.array([[0, 1], [0, 0]]))
    assert list(system_state.available_vector) == [2, 0]
    assert list(system_state.total_vector) == [3, 2]

    system_state.assert_resource_conservation("in test")

    print(system_state.display())


def test_resource_conservation_violation():
    """Conservation check catches an instance that vanished."""
    p1 = Process(pid=1, arrival_time=0, priority=1, held_resources={1: 1})
    r1 = Resource(resource_id=1, total_instances=2, available_instances=1)
    system_state = SystemState(processes=[p1], resources={1: r1})

    system_state.assert_resource_conservation()

    p1.held_resources[1] = 0
    with pytest.raises(AssertionError):
        system_state.assert_resource_conservation("after corrupting P1")


def test_system_state_lookup():
    """Processes are looked up by PID; unknown resources are rejected."""
    p1 = Process(pid=7, arrival_time=3, priority=0)
    system_state = SystemState(processes=[p1], resources={1: Resource.with_instances(1, 1)})

    assert system_state.get_process(7) is p1
    assert system_state.has_pending_arrivals()
    assert not system_state.all_terminated()
    assert system_state.running_process is None

    with pytest.raises(ValueError):
        system_state.get_resource(9)

    with pytest.raises(ValueError):
        SystemState(processes=[p1, Process(pid=7, arrival_time=0, priority=0)])
