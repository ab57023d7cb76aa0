"""Worst-Fit placement resolver."""

from __future__ import annotations

from typing import Iterable, Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.resource import Resource
from algo_judge.simulator.strategy_base import AllocationStrategy


class WorstFitStrategy(AllocationStrategy):
    """Place each request in the fitting container with the most free space.

    Ties go to the container declared first.
    """

    name = "worst_fit"

    def select_resource(
        self,
        entity: Entity,
        resources: Iterable[Resource],
    ) -> Optional[Resource]:
        fitting = self.fitting(entity, resources)
        if not fitting:
            return None
        return max(fitting, key=lambda r: r.remaining_capacity)
