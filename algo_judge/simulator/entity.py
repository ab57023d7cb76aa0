"""Entity model: the unit of work scheduled or allocated by a scenario."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class EntityStatus(Enum):
    """Lifecycle of an entity inside one scenario run."""

    PENDING = "pending"
    WAITING = "waiting"
    IN_SERVICE = "in_service"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (EntityStatus.COMPLETED, EntityStatus.REJECTED)


class Entity:
    """A job, file request, vehicle or patient participating in a scenario.

    Each entity arrives at a specific time and carries a total demand
    (``burst_time``).  Scheduling scenarios consume the demand tick by tick
    through :meth:`serve`; allocation scenarios treat the demand as a size
    and consume it all at once through :meth:`place`.
    """

    __slots__ = (
        "entity_id",
        "arrival_time",
        "burst_time",
        "remaining_time",
        "status",
        "label",
        "start_time",
        "completion_time",
        "resource_id",
    )

    def __init__(
        self,
        entity_id: int,
        arrival_time: float,
        burst_time: int,
        label: Optional[str] = None,
    ) -> None:
        if burst_time <= 0:
            raise ValueError(f"burst_time must be positive, got {burst_time}")
        if arrival_time < 0:
            raise ValueError(f"arrival_time must be non-negative, got {arrival_time}")

        self.entity_id: int = entity_id
        self.arrival_time: float = arrival_time
        self.burst_time: int = burst_time
        self.remaining_time: float = burst_time
        self.status: EntityStatus = EntityStatus.PENDING
        self.label: str = label or f"E{entity_id}"
        self.start_time: Optional[float] = None
        self.completion_time: Optional[float] = None
        self.resource_id: Optional[int] = None

    @property
    def size(self) -> int:
        """Demand of the entity when it is an allocation request."""
        return self.burst_time

    def is_complete(self) -> bool:
        """Return True if the entity has no demand left."""
        return self.remaining_time == 0

    def is_eligible(self, now: float) -> bool:
        """Return True if the entity is waiting and has arrived by *now*."""
        return self.status is EntityStatus.WAITING and self.arrival_time <= now

    def begin_service(self, resource_id: int, now: float) -> None:
        """Move a waiting entity onto a server."""
        if self.status is not EntityStatus.WAITING:
            raise RuntimeError(
                f"Entity {self.entity_id} is {self.status.value}; only waiting entities can start service."
            )
        if self.start_time is None:
            self.start_time = now
        self.status = EntityStatus.IN_SERVICE
        self.resource_id = resource_id

    def suspend(self) -> None:
        """Return an in-service entity to the waiting set (preemption)."""
        if self.status is not EntityStatus.IN_SERVICE:
            raise RuntimeError(
                f"Entity {self.entity_id} is {self.status.value}; only in-service entities can be suspended."
            )
        self.status = EntityStatus.WAITING
        self.resource_id = None

    def serve(self, amount: float, now: float) -> bool:
        """Consume up to *amount* of remaining demand.

        Args:
            amount: Simulated time spent serving the entity.
            now: Clock value at the start of this slice.

        Returns:
            True if the entity completed during this slice.

        Raises:
            RuntimeError: If the entity is not in service.
        """
        if self.status is not EntityStatus.IN_SERVICE:
            raise RuntimeError(
                f"Entity {self.entity_id} is {self.status.value}; cannot serve it."
            )
        used = min(amount, self.remaining_time)
        self.remaining_time -= used
        if self.remaining_time <= 0:
            self.remaining_time = 0
            self.status = EntityStatus.COMPLETED
            self.completion_time = now + used
            return True
        return False

    def place(self, resource_id: int, now: float) -> None:
        """Terminally place an allocation request into a container."""
        if self.status is not EntityStatus.WAITING:
            raise RuntimeError(
                f"Entity {self.entity_id} is {self.status.value}; only waiting entities can be placed."
            )
        self.start_time = now
        self.completion_time = now
        self.remaining_time = 0
        self.status = EntityStatus.COMPLETED
        self.resource_id = resource_id

    def reject(self, now: float) -> None:
        """Mark a waiting entity as rejected (no resource could take it)."""
        if self.status is not EntityStatus.WAITING:
            raise RuntimeError(
                f"Entity {self.entity_id} is {self.status.value}; only waiting entities can be rejected."
            )
        self.status = EntityStatus.REJECTED
        self.completion_time = now

    @property
    def turnaround_time(self) -> Optional[float]:
        """Time from arrival to completion, or None if not yet complete."""
        if self.completion_time is None or self.status is not EntityStatus.COMPLETED:
            return None
        return self.completion_time - self.arrival_time

    @property
    def waiting_time(self) -> Optional[float]:
        """Time spent waiting (turnaround minus burst), or None if not yet complete."""
        if self.turnaround_time is None:
            return None
        return self.turnaround_time - self.burst_time

    @property
    def response_time(self) -> Optional[float]:
        """Time from arrival to first service, or None if never served."""
        if self.start_time is None:
            return None
        return self.start_time - self.arrival_time

    def copy(self) -> "Entity":
        """Return a detached copy, used for read-only snapshots."""
        clone = Entity(self.entity_id, self.arrival_time, self.burst_time, self.label)
        clone.remaining_time = self.remaining_time
        clone.status = self.status
        clone.start_time = self.start_time
        clone.completion_time = self.completion_time
        clone.resource_id = self.resource_id
        return clone

    def __repr__(self) -> str:
        return (
            f"Entity(id={self.entity_id}, arrival={self.arrival_time}, "
            f"burst={self.burst_time}, remaining={self.remaining_time}, "
            f"status={self.status.value})"
        )
