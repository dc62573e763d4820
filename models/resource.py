"""
Resource model for the CPU Scheduling & Deadlock Simulator.

Represents a resource type with multiple interchangeable instances.
"""

from dataclasses import dataclass


@dataclass
class Resource:
    """
    Represents a resource type in the simulated system.

    Attributes:
        resource_id: Resource identifier as declared in the input file
        total_instances: Total number of instances in the system
        available_instances: Current number of unallocated instances

    Invariant:
        0 <= available_instances <= total_instances
    """
    resource_id: int
    total_instances: int
    available_instances: int

    def __post_init__(self):
        """Validate resource state."""
        if self.total_instances < 0:
            raise ValueError(f"Resource {self.resource_id}: total_instances cannot be negative")
        if self.available_instances < 0:
            raise ValueError(f"Resource {self.resource_id}: available_instances cannot be negative")
        if self.available_instances > self.total_instances:
            raise ValueError(
                f"Resource {self.resource_id}: available ({self.available_instances}) "
                f"exceeds total ({self.total_instances})"
            )

    @classmethod
    def with_instances(cls, resource_id: int, total_instances: int) -> "Resource":
        """Create a resource with every instance available."""
        return cls(resource_id, total_instances, total_instances)

    @property
    def allocated_instances(self) -> int:
        """Instances currently held by processes."""
        return self.total_instances - self.available_instances

    def allocate(self, amount: int) -> bool:
        """
        Allocate resource instances if available.

        Args:
            amount: Number of instances to allocate

        Returns:
            True if allocation successful, False if insufficient instances
        """
        if amount > self.available_instances:
            return False
        self.available_instances -= amount
        return True

    def deallocate(self, amount: int) -> None:
        """
        Return resource instances to the pool.

        Args:
            amount: Number of instances to release

        Raises:
            ValueError: If deallocation would exceed total instances
        """
        if self.available_instances + amount > self.total_instances:
            raise ValueError(
                f"Resource {self.resource_id}: deallocation of {amount} would exceed "
                f"total instances ({self.total_instances})"
            )
        self.available_instances += amount
