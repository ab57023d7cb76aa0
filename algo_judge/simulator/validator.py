"""Validation and scoring of learner actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from algo_judge.config import ScoringRules
from algo_judge.simulator.clock import Clock
from algo_judge.simulator.entity import Entity, EntityStatus
from algo_judge.simulator.registry import EntityRegistry, ResourceRegistry
from algo_judge.simulator.resource import Resource
from algo_judge.simulator.strategy_base import Action, AlgorithmStrategy

logger = logging.getLogger(__name__)


class VerdictReason(Enum):
    ACCEPTED = "accepted"
    WRONG_CHOICE = "wrong_choice"
    UNKNOWN_ENTITY = "unknown_entity"
    UNKNOWN_RESOURCE = "unknown_resource"
    ENTITY_NOT_WAITING = "entity_not_waiting"
    RESOURCE_TOO_SMALL = "resource_too_small"
    SERVER_BUSY = "server_busy"
    NO_ACTION_DUE = "no_action_due"
    NOT_ACCEPTING = "not_accepting"

    @property
    def is_malformed(self) -> bool:
        return self not in (VerdictReason.ACCEPTED, VerdictReason.WRONG_CHOICE)


@dataclass(frozen=True)
class Verdict:
    """Outcome of one learner action, consumed immediately by the caller."""

    accepted: bool
    reason: VerdictReason
    canonical: Optional[Action] = None
    score_delta: float = 0
    message: str = ""

    @property
    def malformed(self) -> bool:
        return self.reason.is_malformed


@dataclass
class ScoreState:
    """Signed running score and attempt counters for one run."""

    points: float = 0
    correct_attempts: int = 0
    wrong_attempts: int = 0
    penalty_points: float = 0

    @property
    def display_points(self) -> float:
        return max(0, self.points)

    @property
    def attempts(self) -> int:
        return self.correct_attempts + self.wrong_attempts

    def accuracy(self) -> float:
        """Percentage of correct attempts; 100 when nothing was wrong."""
        if self.wrong_attempts == 0:
            return 100.0
        return 100.0 * self.correct_attempts / self.attempts

    def record_correct(self, delta: float) -> None:
        self.correct_attempts += 1
        self.points += delta

    def record_wrong(self, delta: float) -> None:
        self.wrong_attempts += 1
        self.points += delta

    def add_bonus(self, delta: float) -> None:
        self.points += delta

    def apply_penalty(self, amount: float) -> None:
        self.points -= amount
        self.penalty_points += amount


def malformed(reason: VerdictReason, message: str) -> Verdict:
    return Verdict(accepted=False, reason=reason, message=message)


class ActionValidator:
    """Compares learner actions with the canonical resolver and applies them.

    Malformed actions are refused without touching the score.  Well-formed
    actions are either accepted (registries mutated, points awarded) or
    rejected as a wrong choice (penalty applied, canonical action returned
    so the learner can self-correct).

    Args:
        strategy: The active canonical algorithm.
        entities: Entity registry of the run.
        resources: Resource registry of the run.
        clock: Simulated clock of the run.
        score: Score state of the run, mutated in place.
        rules: Point values.
    """

    def __init__(
        self,
        strategy: AlgorithmStrategy,
        entities: EntityRegistry,
        resources: ResourceRegistry,
        clock: Clock,
        score: ScoreState,
        rules: ScoringRules,
    ) -> None:
        self.strategy = strategy
        self.entities = entities
        self.resources = resources
        self.clock = clock
        self.score = score
        self.rules = rules

    def check_well_formed(self, action: Action) -> Optional[Verdict]:
        """Return a malformed verdict for *action*, or None if it is well formed."""
        entity = self.entities.get(action.entity_id)
        if entity is None:
            return malformed(VerdictReason.UNKNOWN_ENTITY, f"There is no entity {action.entity_id}.")
        resource = self.resources.get(action.resource_id)
        if resource is None:
            return malformed(VerdictReason.UNKNOWN_RESOURCE, f"There is no resource {action.resource_id}.")
        if entity.status is not EntityStatus.WAITING:
            return malformed(
                VerdictReason.ENTITY_NOT_WAITING,
                f"{entity.label} is {entity.status.value} and cannot be chosen.",
            )
        if resource.is_server:
            if resource.is_occupied and not self.strategy.preemptive:
                return malformed(
                    VerdictReason.SERVER_BUSY,
                    f"{resource.label} is still busy; wait for the current job to finish.",
                )
        elif not resource.can_fit(entity):
            return malformed(
                VerdictReason.RESOURCE_TOO_SMALL,
                f"{resource.label} has {resource.remaining_capacity} units free; "
                f"{entity.label} needs {entity.size}.",
            )
        return None

    def submit(self, action: Action) -> Verdict:
        refused = self.check_well_formed(action)
        if refused is not None:
            logger.debug("malformed action %s: %s", action, refused.reason.value)
            return refused

        canonical = self.strategy.resolve(self.entities, self.resources, self.clock.now)
        if canonical is None:
            return malformed(VerdictReason.NO_ACTION_DUE, "No decision is due right now.")

        if action != canonical:
            delta = self.rules.wrong
            self.score.record_wrong(delta)
            message = self._explain(action, canonical)
            logger.debug("wrong choice %s, canonical %s", action, canonical)
            return Verdict(
                accepted=False,
                reason=VerdictReason.WRONG_CHOICE,
                canonical=canonical,
                score_delta=delta,
                message=message,
            )

        entity = self.entities.get(action.entity_id)
        resource = self.resources.get(action.resource_id)
        delta = self._apply(entity, resource)
        self.score.record_correct(delta)
        logger.debug("accepted %s (+%s)", action, delta)
        return Verdict(
            accepted=True,
            reason=VerdictReason.ACCEPTED,
            canonical=canonical,
            score_delta=delta,
            message=f"Correct: {entity.label} goes to {resource.label}.",
        )

    def _apply(self, entity: Entity, resource: Resource) -> float:
        now = self.clock.now
        if not resource.is_server:
            resource.admit(entity)
            entity.place(resource.resource_id, now)
            return self.rules.correct

        delta = self.rules.correct
        current_id = resource.current_occupant
        if current_id is not None:
            current = self.entities.get(current_id)
            resource.release(current)
            current.suspend()
            delta += self.rules.preemption_bonus
            logger.debug("preempted %s for %s at t=%s", current.label, entity.label, now)
        resource.admit(entity)
        entity.begin_service(resource.resource_id, now)
        return delta

    def _explain(self, action: Action, canonical: Action) -> str:
        chosen = self.entities.get(action.entity_id)
        right = self.entities.get(canonical.entity_id)
        name = self.strategy.name

        if self.strategy.allocation:
            target = self.resources.get(canonical.resource_id)
            if action.entity_id != canonical.entity_id:
                return f"Handle requests in arrival order: {right.label} is next, not {chosen.label}."
            if name == "first_fit":
                return f"First-Fit uses the first slot that fits: {target.label}."
            if name == "best_fit":
                return (
                    f"Best-Fit uses the smallest slot that fits: {target.label} "
                    f"({target.remaining_capacity} units free)."
                )
            return (
                f"Worst-Fit uses the largest slot that fits: {target.label} "
                f"({target.remaining_capacity} units free)."
            )

        if right.status is EntityStatus.IN_SERVICE:
            return f"No preemption needed: {right.label} has the shortest remaining time."
        if name == "fcfs":
            return f"First come, first served: {right.label} arrived first, not {chosen.label}."
        if name == "sjf":
            return f"The shortest job is {right.label} ({right.burst_time}), not {chosen.label} ({chosen.burst_time})."
        return (
            f"The shortest remaining time is {right.label} ({right.remaining_time:g}), "
            f"not {chosen.label} ({chosen.remaining_time:g})."
        )
