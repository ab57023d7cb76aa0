"""Abstract base classes for every canonical algorithm."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.registry import EntityRegistry, ResourceRegistry
from algo_judge.simulator.resource import Resource


@dataclass(frozen=True)
class Action:
    """A learner (or canonical) decision: serve or place an entity on a resource."""

    entity_id: int
    resource_id: int


class AlgorithmStrategy(ABC):
    """Interface that every canonical algorithm must implement.

    The scenario engine, the validator and the preemption monitor interact
    with algorithms exclusively through :meth:`resolve`, keeping the policy
    logic decoupled from scoring and lifecycle handling.

    Implementations must be pure: calling :meth:`resolve` any number of
    times never mutates the registries.
    """

    name: str = ""
    preemptive: bool = False
    allocation: bool = False

    @abstractmethod
    def resolve(
        self,
        entities: EntityRegistry,
        resources: ResourceRegistry,
        now: float,
    ) -> Optional[Action]:
        """Return the single correct next action, or None if no action is due.

        Args:
            entities: Current entity registry.
            resources: Current resource registry.
            now: Current simulated time.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SchedulingStrategy(AlgorithmStrategy):
    """Base for single-server CPU scheduling algorithms.

    Subclasses only rank candidates; this class owns the common rules about
    when the server is free to take a decision.
    """

    @abstractmethod
    def rank(self, entity: Entity, serving: Optional[Entity]) -> tuple:
        """Sort key for a candidate; the smallest key wins."""

    def candidates(self, entities: EntityRegistry, now: float) -> List[Entity]:
        return entities.eligible(now)

    def resolve(
        self,
        entities: EntityRegistry,
        resources: ResourceRegistry,
        now: float,
    ) -> Optional[Action]:
        server = resources.server
        serving_id = server.current_occupant
        serving = entities.get(serving_id) if serving_id is not None else None

        if serving is not None and not self.preemptive:
            return None

        pool = self.candidates(entities, now)
        if serving is not None and serving not in pool:
            pool.append(serving)
        if not pool:
            return None

        chosen = min(pool, key=lambda e: self.rank(e, serving))
        return Action(chosen.entity_id, server.resource_id)


class AllocationStrategy(AlgorithmStrategy):
    """Base for placement algorithms over multiple containers.

    Requests are handled in arrival order: the canonical entity is always
    the earliest waiting request, and the strategy decides its container.
    """

    allocation = True

    @abstractmethod
    def select_resource(
        self,
        entity: Entity,
        resources: Iterable[Resource],
    ) -> Optional[Resource]:
        """Pick the container for *entity*, or None if nothing fits."""

    def next_request(self, entities: EntityRegistry, now: float) -> Optional[Entity]:
        eligible = entities.eligible(now)
        if not eligible:
            return None
        return min(eligible, key=lambda e: (e.arrival_time, e.entity_id))

    def resolve(
        self,
        entities: EntityRegistry,
        resources: ResourceRegistry,
        now: float,
    ) -> Optional[Action]:
        entity = self.next_request(entities, now)
        if entity is None:
            return None
        resource = self.select_resource(entity, resources)
        if resource is None:
            return None
        return Action(entity.entity_id, resource.resource_id)

    @staticmethod
    def fitting(entity: Entity, resources: Iterable[Resource]) -> List[Resource]:
        """Containers with enough free capacity, in declaration order."""
        return [r for r in resources if not r.is_server and r.remaining_capacity >= entity.size]
