"""Entity arrival generation for judge scenarios."""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from algo_judge.config import EntitySpec, RandomizedArrivalsConfig, SizeBucket
from algo_judge.errors import ScenarioConfigError
from algo_judge.simulator.entity import Entity

logger = logging.getLogger(__name__)


class ArrivalGenerator(ABC):
    """Releases entities into a scenario as simulated time passes.

    The whole arrival plan is materialized up front so that it can be
    validated before the scenario starts; ``next_arrival`` then hands the
    entities out in arrival order.
    """

    def __init__(self) -> None:
        self._plan: List[Entity] = []
        self._cursor: int = 0

    @abstractmethod
    def _build_plan(self) -> List[Entity]:
        """Create the full list of entities for one run."""

    def reset(self) -> None:
        """Rebuild the plan from scratch (used on scenario restart)."""
        self._plan = sorted(self._build_plan(), key=lambda e: (e.arrival_time, e.entity_id))
        self._cursor = 0

    @property
    def total(self) -> int:
        return len(self._plan)

    @property
    def plan(self) -> Sequence[Entity]:
        return tuple(self._plan)

    def has_pending(self) -> bool:
        return self._cursor < len(self._plan)

    def peek_time(self) -> Optional[float]:
        """Arrival time of the next entity, or None if all have arrived."""
        if not self.has_pending():
            return None
        return self._plan[self._cursor].arrival_time

    def next_arrival(self, now: float) -> Optional[Entity]:
        """Return the next entity whose arrival time is due by *now*, if any."""
        if not self.has_pending() or self._plan[self._cursor].arrival_time > now:
            return None
        entity = self._plan[self._cursor]
        self._cursor += 1
        return entity


class FixedArrivals(ArrivalGenerator):
    """Hand-authored arrivals for deterministic lessons.

    Args:
        specs: Entity descriptions.  Missing ids are assigned in list order
               starting from 1.
    """

    def __init__(self, specs: Sequence[EntitySpec]) -> None:
        super().__init__()
        if not specs:
            raise ScenarioConfigError("a fixed scenario needs at least one entity")
        self._specs = list(specs)
        self.reset()

    def _build_plan(self) -> List[Entity]:
        entities: List[Entity] = []
        used = {s.entity_id for s in self._specs if s.entity_id is not None}
        next_id = 1
        for spec in self._specs:
            entity_id = spec.entity_id
            if entity_id is None:
                while next_id in used:
                    next_id += 1
                entity_id = next_id
                used.add(entity_id)
            entities.append(
                Entity(
                    entity_id=entity_id,
                    arrival_time=spec.arrival_time,
                    burst_time=spec.burst_time,
                    label=spec.label,
                )
            )
        return entities


class RandomizedArrivals(ArrivalGenerator):
    """Seeded random arrivals within documented bounds.

    Uses a local Random instance seeded from the configuration so that a
    restart replays exactly the same plan.  Bucket caps (for example "at
    most 4 trucks") are enforced while drawing and checked again on the
    finished plan.

    Args:
        bounds: Count, size bucket and arrival window configuration.
    """

    def __init__(self, bounds: RandomizedArrivalsConfig) -> None:
        super().__init__()
        self.bounds = bounds
        self.reset()

    def _draw_size(self, rng: random.Random, bucket: SizeBucket) -> int:
        if bucket.size is not None:
            return bucket.size
        low, high = bucket.size_range
        return rng.randint(low, high)

    def _build_plan(self) -> List[Entity]:
        rng = random.Random(self.bounds.seed)
        count = rng.randint(self.bounds.min_count, self.bounds.max_count)
        counts: Dict[str, int] = {b.name: 0 for b in self.bounds.buckets}
        low, high = self.bounds.arrival_range

        drawn = []
        for _ in range(count):
            available = [
                b for b in self.bounds.buckets
                if b.max_count is None or counts[b.name] < b.max_count
            ]
            if not available:
                # the plan is as large as the caps allow
                break
            bucket = rng.choice(available)
            counts[bucket.name] += 1
            arrival = rng.uniform(low, high) if high > low else low
            drawn.append((round(arrival, 2), bucket))

        if len(drawn) < self.bounds.min_count:
            raise ScenarioConfigError(
                f"bucket caps stopped generation at {len(drawn)} entities; "
                f"min_count is {self.bounds.min_count}"
            )

        drawn.sort(key=lambda item: item[0])
        entities = [
            Entity(
                entity_id=i + 1,
                arrival_time=arrival,
                burst_time=self._draw_size(rng, bucket),
                label=f"{bucket.name}-{i + 1}",
            )
            for i, (arrival, bucket) in enumerate(drawn)
        ]
        self._check_caps([bucket.name for _, bucket in drawn])
        logger.debug("generated %d entities with seed %d: %s", len(entities), self.bounds.seed, counts)
        return entities

    def _check_caps(self, bucket_names: List[str]) -> None:
        for bucket in self.bounds.buckets:
            if bucket.max_count is None:
                continue
            used = bucket_names.count(bucket.name)
            if used > bucket.max_count:
                raise ScenarioConfigError(
                    f"bucket {bucket.name!r} produced {used} entities, cap is {bucket.max_count}"
                )
