"""Shortest Remaining Time First (SRTF) canonical resolver."""

from __future__ import annotations

from typing import Optional

from algo_judge.simulator.entity import Entity
from algo_judge.simulator.strategy_base import SchedulingStrategy


class SRTFStrategy(SchedulingStrategy):
    """Preemptive SJF on the remaining time.

    The entity currently being served competes with every waiting entity.
    On an exact tie the served entity keeps the server, so a switch is
    never demanded between equal remaining times.
    """

    name = "srtf"
    preemptive = True

    def rank(self, entity: Entity, serving: Optional[Entity]) -> tuple:
        incumbent = 0 if entity is serving else 1
        return (entity.remaining_time, incumbent, entity.arrival_time, entity.entity_id)
