"""First Come First Served (FCFS) canonical resolver."""

from __future__ import annotations

from typing import Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.strategy_base import SchedulingStrategy


class FCFSStrategy(SchedulingStrategy):
    """Non-preemptive FIFO order.

    The earliest arrival is served first regardless of burst length; ties
    go to the smallest id.
    """

    name = "fcfs"

    def rank(self, entity: Entity, serving: Optional[Entity]) -> tuple:
        return (entity.arrival_time, entity.entity_id)
