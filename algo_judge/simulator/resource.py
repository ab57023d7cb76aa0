"""Resource model: the server or container an entity is matched to."""

from __future__ import annotations

from typing import Optional, Set

from algo_judge.simulator.entity import Entity


class Resource:
    """A CPU, parking slot, cupboard compartment or hospital bed.

    Two flavours share this class:

    * a **server** (``is_server=True``) serves one entity at a time.  Its
      capacity is one logical server and the occupant's size is not
      subtracted from it.
    * a **container** holds any number of entities as long as the sum of
      their sizes fits in ``capacity``.

    Args:
        resource_id: Unique identifier, also the declaration order.
        capacity: Total capacity (1 for a server).
        label: Display name for the presentation layer.
        is_server: Whether this resource is a single server.
    """

    __slots__ = (
        "resource_id",
        "capacity",
        "remaining_capacity",
        "occupants",
        "label",
        "is_server",
    )

    def __init__(
        self,
        resource_id: int,
        capacity: int,
        label: Optional[str] = None,
        is_server: bool = False,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.resource_id: int = resource_id
        self.capacity: int = capacity
        self.remaining_capacity: int = capacity
        self.occupants: Set[int] = set()
        self.label: str = label or f"R{resource_id}"
        self.is_server: bool = is_server

    @property
    def is_occupied(self) -> bool:
        return bool(self.occupants)

    @property
    def current_occupant(self) -> Optional[int]:
        """The entity a server is serving, or None when idle."""
        if not self.occupants:
            return None
        return next(iter(self.occupants))

    def can_fit(self, entity: Entity) -> bool:
        """Return True if *entity* physically fits in the free capacity."""
        if self.is_server:
            return True
        return self.remaining_capacity >= entity.size

    def admit(self, entity: Entity) -> None:
        """Add *entity* as an occupant.

        Raises:
            RuntimeError: If a server is busy or a container is too small.
        """
        if self.is_server:
            if self.occupants:
                raise RuntimeError(
                    f"Server {self.resource_id} is busy with Entity {self.current_occupant}; "
                    f"cannot admit Entity {entity.entity_id}."
                )
        elif self.remaining_capacity < entity.size:
            raise RuntimeError(
                f"Resource {self.resource_id} has {self.remaining_capacity} free; "
                f"Entity {entity.entity_id} needs {entity.size}."
            )
        else:
            self.remaining_capacity -= entity.size
        self.occupants.add(entity.entity_id)

    def release(self, entity: Entity) -> None:
        """Remove *entity* from the occupants (server release or preemption)."""
        if entity.entity_id not in self.occupants:
            return
        self.occupants.discard(entity.entity_id)
        if not self.is_server:
            self.remaining_capacity += entity.size

    def copy(self) -> "Resource":
        clone = Resource(self.resource_id, self.capacity, self.label, self.is_server)
        clone.remaining_capacity = self.remaining_capacity
        clone.occupants = set(self.occupants)
        return clone

    def __repr__(self) -> str:
        if self.is_server:
            return f"Resource(id={self.resource_id}, server, occupant={self.current_occupant})"
        return (
            f"Resource(id={self.resource_id}, capacity={self.capacity}, "
            f"remaining={self.remaining_capacity}, occupants={sorted(self.occupants)})"
        )
