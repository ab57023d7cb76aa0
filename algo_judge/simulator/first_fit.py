"""First-Fit placement resolver."""

from __future__ import annotations

from typing import Iterable, Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.resource import Resource
from algo_judge.simulator.strategy_base import AllocationStrategy


class FirstFitStrategy(AllocationStrategy):
    """Place each request in the first container, in declaration order, that fits."""

    name = "first_fit"

    def select_resource(
        self,
        entity: Entity,
        resources: Iterable[Resource],
    ) -> Optional[Resource]:
        fitting = self.fitting(entity, resources)
        return fitting[0] if fitting else None
