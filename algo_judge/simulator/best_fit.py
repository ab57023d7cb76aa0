"""Best-Fit placement resolver."""

from __future__ import annotations

from typing import Iterable, Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.resource import Resource
from algo_judge.simulator.strategy_base import AllocationStrategy


class BestFitStrategy(AllocationStrategy):
    """Place each request in the fitting container with the least free space.

    Ties go to the container declared first.
    """

    name = "best_fit"

    def select_resource(
        self,
        entity: Entity,
        resources: Iterable[Resource],
    ) -> Optional[Resource]:
        fitting = self.fitting(entity, resources)
        if not fitting:
            return None
        # min() keeps the first of equal keys, i.e. declaration order
        return min(fitting, key=lambda r: r.remaining_capacity)
