"""Gymnasium-compatible environment that lets an agent play a judge scenario."""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from algo_judge.config import ScenarioConfig
from algo_judge.simulator.entity import Entity, EntityStatus
from algo_judge.simulator.phases import Phase
from algo_judge.simulator.scenario import Scenario
from algo_judge.simulator.strategy_base import Action

# Normalization constants for observation (fixed range for generalization)
MAX_TIME = 500.0
MAX_BURST = 200.0


def _build_obs(scenario: Scenario, slots: List[int], max_entities: int, max_resources: int) -> np.ndarray:
    """Build fixed-size observation vector.

    Global part: clock, phase, preemption flag, share of waiting entities.
    Per entity slot: remaining, arrival, demand, waiting flag, in-service flag.
    Per resource slot: free capacity share, occupied flag.
    """
    state = scenario.state
    waiting = state.entities.with_status(EntityStatus.WAITING)
    global_part = np.array(
        [
            min(1.0, scenario.now / MAX_TIME),
            1.0 if scenario.phase is Phase.ACTIVE else 0.0,
            1.0 if scenario.preemption_due else 0.0,
            len(waiting) / max_entities,
        ],
        dtype=np.float32,
    )

    entity_values: List[float] = []
    for i in range(max_entities):
        entity: Optional[Entity] = state.entities.get(slots[i]) if i < len(slots) else None
        if entity is None:
            entity_values.extend([0.0, 0.0, 0.0, 0.0, 0.0])
            continue
        entity_values.extend(
            [
                min(1.0, entity.remaining_time / MAX_BURST),
                min(1.0, entity.arrival_time / MAX_TIME),
                min(1.0, entity.burst_time / MAX_BURST),
                1.0 if entity.status is EntityStatus.WAITING else 0.0,
                1.0 if entity.status is EntityStatus.IN_SERVICE else 0.0,
            ]
        )

    resource_values: List[float] = []
    resources = list(state.resources)
    for i in range(max_resources):
        if i < len(resources):
            r = resources[i]
            resource_values.extend([r.remaining_capacity / max(1, r.capacity), 1.0 if r.is_occupied else 0.0])
        else:
            resource_values.extend([0.0, 0.0])

    return np.concatenate(
        [
            global_part,
            np.array(entity_values, dtype=np.float32),
            np.array(resource_values, dtype=np.float32),
        ]
    )


class LearnerEnv(gym.Env):
    """Environment in which the agent plays the learner's role.

    Action ``e * max_resources + r`` submits entity slot *e* to resource slot
    *r*; the last action waits for one tick.  Entity slots follow the
    arrival plan, so a slot keeps the same entity for the whole episode.
    The reward is the change in raw points, so correct decisions, bonuses,
    wrong attempts and pending penalties all reach the agent.

    Args:
        config_factory: Callable ``seed -> ScenarioConfig`` used on reset,
            e.g. one of the presets.
        max_entities: Entity slots in the observation.
        max_resources: Resource slots in the observation.
        tick: Simulated time per wait action.
        episode_timeout: Step limit before truncation.
        seed: Default seed for the first reset.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        config_factory: Callable[..., ScenarioConfig],
        max_entities: int = 16,
        max_resources: int = 12,
        tick: float = 1.0,
        episode_timeout: int = 2000,
        seed: Optional[int] = None,
    ) -> None:
        self.config_factory = config_factory
        self.max_entities = max_entities
        self.max_resources = max_resources
        self.tick = tick
        self.episode_timeout = episode_timeout
        self._default_seed = 42 if seed is None else seed

        obs_dim = 4 + max_entities * 5 + max_resources * 2
        self.observation_space = spaces.Box(low=0.0, high=1.0, shape=(obs_dim,), dtype=np.float32)
        self.action_space = spaces.Discrete(max_entities * max_resources + 1)

        self.scenario: Optional[Scenario] = None
        self._slots: List[int] = []
        self._steps_this_episode = 0

    @property
    def wait_action(self) -> int:
        return self.max_entities * self.max_resources

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[dict] = None,
    ) -> Tuple[np.ndarray, dict]:
        super().reset(seed=seed)
        config = self.config_factory(seed=self._default_seed if seed is None else seed)
        scenario = Scenario.initialize(config)
        if len(scenario.generator.plan) > self.max_entities:
            raise ValueError(
                f"scenario has {len(scenario.generator.plan)} entities, env supports {self.max_entities}"
            )
        if len(scenario.state.resources) > self.max_resources:
            raise ValueError(
                f"scenario has {len(scenario.state.resources)} resources, env supports {self.max_resources}"
            )
        scenario.acknowledge()
        self.scenario = scenario
        self._slots = [e.entity_id for e in scenario.generator.plan]
        self._steps_this_episode = 0
        return self._obs(), self._info()

    def decode(self, action: int) -> Optional[Action]:
        """Map a discrete action to a judge action, or None for waiting."""
        if action == self.wait_action:
            return None
        e, r = divmod(int(action), self.max_resources)
        resources = list(self.scenario.state.resources)
        if e >= len(self._slots) or r >= len(resources):
            return Action(-1, -1)
        return Action(self._slots[e], resources[r].resource_id)

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, dict]:
        if self.scenario is None:
            raise RuntimeError("Call reset() first")

        score = self.scenario.state.score
        before = score.points
        decoded = self.decode(action)
        info: dict = {}
        if decoded is None:
            result = self.scenario.advance(self.tick)
            info["completed"] = [e.entity_id for e in result.completed]
        else:
            verdict = self.scenario.submit(decoded)
            info["verdict"] = verdict.reason.value
        self._steps_this_episode += 1

        reward = float(score.points - before)
        terminated = self.scenario.phase is Phase.RESULTS
        truncated = not terminated and self._steps_this_episode >= self.episode_timeout
        info.update(self._info())
        return self._obs(), reward, terminated, truncated, info

    def action_masks(self) -> np.ndarray:
        """Return action mask for maskable policies: True for well-formed actions."""
        mask = np.zeros(self.action_space.n, dtype=bool)
        mask[self.wait_action] = True
        if self.scenario is None or not self.scenario.phase.accepts_actions:
            return mask
        validator = self.scenario.validator
        resources = list(self.scenario.state.resources)
        for e, entity_id in enumerate(self._slots):
            for r, resource in enumerate(resources):
                if validator.check_well_formed(Action(entity_id, resource.resource_id)) is None:
                    mask[e * self.max_resources + r] = True
        return mask

    def canonical_index(self) -> int:
        """Discrete index of the canonical action, or the wait action."""
        if self.scenario is None:
            return self.wait_action
        action = self.scenario.canonical_action()
        if action is None:
            return self.wait_action
        entity = self.scenario.state.entities.get(action.entity_id)
        if entity is None or entity.status is not EntityStatus.WAITING:
            return self.wait_action
        resource_ids = [r.resource_id for r in self.scenario.state.resources]
        return self._slots.index(action.entity_id) * self.max_resources + resource_ids.index(action.resource_id)

    def _obs(self) -> np.ndarray:
        return _build_obs(self.scenario, self._slots, self.max_entities, self.max_resources)

    def _info(self) -> dict[str, Any]:
        return {"action_mask": self.action_masks(), "phase": self.scenario.phase.value}
