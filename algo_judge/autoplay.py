"""A scripted learner that plays a scenario with the canonical answers."""

from __future__ import annotations

import random
from typing import List, Optional

from algo_judge.metrics.results import ResultsSummary
from algo_judge.simulator.entity import EntityStatus
from algo_judge.simulator.phases import Phase
from algo_judge.simulator.scenario import Scenario
from algo_judge.simulator.strategy_base import Action
from algo_judge.simulator.validator import Verdict


def due_action(scenario: Scenario) -> Optional[Action]:
    """The canonical action if it requires a learner decision right now."""
    action = scenario.canonical_action()
    if action is None:
        return None
    entity = scenario.state.entities.get(action.entity_id)
    if entity is None or entity.status is not EntityStatus.WAITING:
        return None
    return action


def wrong_alternatives(scenario: Scenario, canonical: Action) -> List[Action]:
    """Well-formed actions that differ from *canonical*."""
    state = scenario.state
    if scenario.strategy.allocation:
        entity = state.entities.get(canonical.entity_id)
        return [
            Action(entity.entity_id, r.resource_id)
            for r in state.resources
            if r.resource_id != canonical.resource_id and r.can_fit(entity)
        ]
    return [
        Action(e.entity_id, canonical.resource_id)
        for e in state.entities.eligible(scenario.now)
        if e.entity_id != canonical.entity_id
    ]


class CanonicalLearner:
    """Plays a scenario by following the resolver, optionally making mistakes.

    Args:
        tick: Simulated time passed to ``advance`` when no decision is due.
        mistake_rate: Probability of first submitting a wrong (but well
            formed) action before the correct one.
        seed: Seed for the mistake rolls.
        max_steps: Safety limit on the number of ticks.
    """

    def __init__(
        self,
        tick: float = 1.0,
        mistake_rate: float = 0.0,
        seed: int = 0,
        max_steps: int = 100_000,
    ) -> None:
        if tick <= 0:
            raise ValueError(f"tick must be positive, got {tick}")
        if not 0.0 <= mistake_rate <= 1.0:
            raise ValueError(f"mistake_rate must be within [0, 1], got {mistake_rate}")
        self.tick = tick
        self.mistake_rate = mistake_rate
        self.max_steps = max_steps
        self._rng = random.Random(seed)
        self.verdicts: List[Verdict] = []

    def play(self, scenario: Scenario) -> ResultsSummary:
        """Run *scenario* to the results phase and return its summary."""
        if scenario.phase is Phase.INTRO:
            scenario.acknowledge()

        steps = 0
        while scenario.phase is not Phase.RESULTS:
            action = due_action(scenario)
            if action is None:
                scenario.advance(self.tick)
                steps += 1
                if steps > self.max_steps:
                    raise RuntimeError(f"scenario did not finish within {self.max_steps} ticks")
                continue

            if self._rng.random() < self.mistake_rate:
                alternatives = wrong_alternatives(scenario, action)
                if alternatives:
                    self.verdicts.append(scenario.submit(self._rng.choice(alternatives)))
            verdict = scenario.submit(action)
            self.verdicts.append(verdict)
            if not verdict.accepted:
                raise RuntimeError(f"canonical action {action} was refused: {verdict.message}")

        return scenario.finalize()
