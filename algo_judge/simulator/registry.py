"""Entity and resource registries owned by one scenario run."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from algo_judge.simulator.entity import Entity, EntityStatus
from algo_judge.simulator.resource import Resource


class EntityRegistry:
    """Every entity introduced so far, keyed by id.

    Entities are never removed; terminal entities stay so that the results
    can be recounted from history.
    """

    def __init__(self) -> None:
        self._entities: Dict[int, Entity] = {}

    def add(self, entity: Entity) -> None:
        if entity.entity_id in self._entities:
            raise ValueError(f"Entity {entity.entity_id} is already registered.")
        entity.status = EntityStatus.PENDING
        self._entities[entity.entity_id] = entity

    def mark_arrived(self, entity_id: int) -> Entity:
        """Promote a pending entity to waiting, making it visible to resolvers."""
        entity = self._entities[entity_id]
        if entity.status is EntityStatus.PENDING:
            entity.status = EntityStatus.WAITING
        return entity

    def get(self, entity_id: int) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(sorted(self._entities.values(), key=lambda e: e.entity_id))

    def __len__(self) -> int:
        return len(self._entities)

    def with_status(self, *statuses: EntityStatus) -> List[Entity]:
        return [e for e in self if e.status in statuses]

    def eligible(self, now: float) -> List[Entity]:
        """Waiting entities that have arrived by *now*."""
        return [e for e in self if e.is_eligible(now)]

    def in_service(self) -> List[Entity]:
        return self.with_status(EntityStatus.IN_SERVICE)

    def all_terminal(self) -> bool:
        return all(e.status.is_terminal for e in self._entities.values())

    def snapshot(self) -> List[Entity]:
        return [e.copy() for e in self]


class ResourceRegistry:
    """Servers or containers in declaration order."""

    def __init__(self, resources: Optional[List[Resource]] = None) -> None:
        self._resources: List[Resource] = []
        for resource in resources or []:
            self.add(resource)

    def add(self, resource: Resource) -> None:
        if any(r.resource_id == resource.resource_id for r in self._resources):
            raise ValueError(f"Resource {resource.resource_id} is already registered.")
        self._resources.append(resource)

    def get(self, resource_id: int) -> Optional[Resource]:
        for resource in self._resources:
            if resource.resource_id == resource_id:
                return resource
        return None

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def server(self) -> Resource:
        """The single server of a scheduling scenario."""
        for resource in self._resources:
            if resource.is_server:
                return resource
        raise LookupError("No server resource registered.")

    @property
    def total_capacity(self) -> int:
        return sum(r.capacity for r in self._resources)

    def snapshot(self) -> List[Resource]:
        return [r.copy() for r in self._resources]
