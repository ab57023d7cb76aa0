"""Shortest Job First (SJF) canonical resolver."""

from __future__ import annotations

from typing import Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.strategy_base import SchedulingStrategy


class SJFStrategy(SchedulingStrategy):
    """Non-preemptive SJF on the declared burst time.

    Once an entity starts it keeps the server until it completes; the base
    class returns None while the server is busy, so the resolver is not
    consulted mid-service.
    """

    name = "sjf"

    def rank(self, entity: Entity, serving: Optional[Entity]) -> tuple:
        return (entity.burst_time, entity.arrival_time, entity.entity_id)
