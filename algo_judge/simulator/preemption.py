"""Preemption monitoring for preemptive scheduling algorithms."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from algo_judge.simulator.registry import EntityRegistry, ResourceRegistry
from algo_judge.simulator.strategy_base import AlgorithmStrategy
from algo_judge.simulator.validator import ScoreState

logger = logging.getLogger(__name__)


class MonitorState(Enum):
    IDLE = "idle"
    SERVING = "serving"
    PREEMPTION_PENDING = "preemption_pending"


class PreemptionMonitor:
    """Watches the server every tick and flags overdue preemptions.

    After each slice of simulated time the monitor asks the resolver what
    should be running.  When the answer differs from the served entity the
    monitor enters ``PREEMPTION_PENDING`` and every further unit of time
    spent in that state costs ``penalty_per_unit`` points until the learner
    performs the switch.

    Args:
        strategy: A preemptive algorithm.
        entities: Entity registry of the run.
        resources: Resource registry of the run.
        score: Score state that receives the time penalties.
        penalty_per_unit: Points lost per simulated time unit of delay.
    """

    def __init__(
        self,
        strategy: AlgorithmStrategy,
        entities: EntityRegistry,
        resources: ResourceRegistry,
        score: ScoreState,
        penalty_per_unit: float,
    ) -> None:
        if not strategy.preemptive:
            raise ValueError(f"{strategy!r} is not preemptive; no monitor is needed")
        self.strategy = strategy
        self.entities = entities
        self.resources = resources
        self.score = score
        self.penalty_per_unit = penalty_per_unit
        self.state: MonitorState = MonitorState.IDLE
        self.serving_id: Optional[int] = None
        self.pending_to: Optional[int] = None

    @property
    def preemption_due(self) -> bool:
        return self.state is MonitorState.PREEMPTION_PENDING

    def charge(self, elapsed: float) -> float:
        """Apply the delay penalty for *elapsed* time spent with a switch pending.

        Returns:
            The number of points deducted.
        """
        if not self.preemption_due or elapsed <= 0:
            return 0.0
        amount = self.penalty_per_unit * elapsed
        if amount:
            self.score.apply_penalty(amount)
        return amount

    def sync(self, now: float) -> MonitorState:
        """Re-evaluate the state from the registries and the resolver."""
        previous = self.state
        serving_id = self.resources.server.current_occupant

        if serving_id is None:
            self.state = MonitorState.IDLE
            self.serving_id = None
            self.pending_to = None
        else:
            canonical = self.strategy.resolve(self.entities, self.resources, now)
            self.serving_id = serving_id
            if canonical is not None and canonical.entity_id != serving_id:
                self.state = MonitorState.PREEMPTION_PENDING
                self.pending_to = canonical.entity_id
            else:
                self.state = MonitorState.SERVING
                self.pending_to = None

        if self.state is not previous:
            logger.debug(
                "monitor %s -> %s at t=%s (serving=%s, pending_to=%s)",
                previous.value,
                self.state.value,
                now,
                self.serving_id,
                self.pending_to,
            )
        return self.state

    def reset(self) -> None:
        self.state = MonitorState.IDLE
        self.serving_id = None
        self.pending_to = None
