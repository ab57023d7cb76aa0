"""Event-driven judge engine for one teaching scenario.

This module contains no algorithm policy. It orchestrates the clock,
entity arrivals, service progress, learner actions, preemption monitoring,
rejections and the lifecycle phases, and delegates every "what is correct"
question to the active AlgorithmStrategy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import ValidationError

from algo_judge.config import Algorithm, ScenarioConfig, ScoringRules
from algo_judge.errors import PhaseError, ScenarioConfigError
from algo_judge.metrics.fragmentation import FragmentationReport, compute_fragmentation
from algo_judge.metrics.results import ResultsSummary, aggregate_results
from algo_judge.simulator.best_fit import BestFitStrategy
from algo_judge.simulator.clock import Clock
from algo_judge.simulator.entity import Entity
from algo_judge.simulator.fcfs import FCFSStrategy
from algo_judge.simulator.first_fit import FirstFitStrategy
from algo_judge.simulator.phases import Phase, PhaseStateMachine
from algo_judge.simulator.preemption import MonitorState, PreemptionMonitor
from algo_judge.simulator.registry import EntityRegistry, ResourceRegistry
from algo_judge.simulator.resource import Resource
from algo_judge.simulator.sjf import SJFStrategy
from algo_judge.simulator.srtf import SRTFStrategy
from algo_judge.simulator.strategy_base import Action, AlgorithmStrategy, AllocationStrategy
from algo_judge.simulator.validator import ActionValidator, ScoreState, Verdict, VerdictReason, malformed
from algo_judge.simulator.worst_fit import WorstFitStrategy
from algo_judge.workload.generator import ArrivalGenerator, FixedArrivals, RandomizedArrivals

logger = logging.getLogger(__name__)

STRATEGIES: Dict[Algorithm, Type[AlgorithmStrategy]] = {
    Algorithm.FCFS: FCFSStrategy,
    Algorithm.SJF: SJFStrategy,
    Algorithm.SRTF: SRTFStrategy,
    Algorithm.FIRST_FIT: FirstFitStrategy,
    Algorithm.BEST_FIT: BestFitStrategy,
    Algorithm.WORST_FIT: WorstFitStrategy,
}


def make_strategy(algorithm: Algorithm) -> AlgorithmStrategy:
    """Instantiate the canonical resolver for *algorithm*."""
    return STRATEGIES[algorithm]()


def make_generator(config: ScenarioConfig) -> ArrivalGenerator:
    if config.mode == "randomized":
        return RandomizedArrivals(config.randomized)
    return FixedArrivals(config.entities)


def make_resources(config: ScenarioConfig) -> ResourceRegistry:
    """Build the server (scheduling) or the containers (allocation)."""
    if not config.algorithm.is_allocation:
        spec = config.resources[0] if config.resources else None
        server = Resource(
            resource_id=spec.resource_id if spec and spec.resource_id is not None else 1,
            capacity=1,
            label=(spec.label if spec else None) or "CPU",
            is_server=True,
        )
        return ResourceRegistry([server])

    resources = []
    for index, spec in enumerate(config.resources, start=1):
        resource_id = spec.resource_id if spec.resource_id is not None else index
        resources.append(Resource(resource_id, spec.capacity, spec.label))
    return ResourceRegistry(resources)


@dataclass
class ScenarioState:
    """Every mutable piece of one run, shared by reference with each component."""

    phases: PhaseStateMachine
    clock: Clock
    entities: EntityRegistry
    resources: ResourceRegistry
    score: ScoreState
    monitor: Optional[PreemptionMonitor] = None


@dataclass(frozen=True)
class AdvanceResult:
    arrivals: List[Entity] = field(default_factory=list)
    completed: List[Entity] = field(default_factory=list)
    rejected: List[Entity] = field(default_factory=list)
    preemption_due: bool = False
    penalty: float = 0.0


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of a run for the presentation layer."""

    phase: Phase
    clock: float
    entities: Tuple[Entity, ...]
    resources: Tuple[Resource, ...]
    score: ScoreState
    preemption_due: bool = False
    fragmentation: Optional[FragmentationReport] = None


class Scenario:
    """Deterministic judge for one scenario run.

    The presentation layer drives it with two kinds of calls, serialized on
    a single thread:

      * ``advance(dt)`` from its tick loop, with any step size;
      * ``submit(action)`` whenever the learner makes a decision.

    Each ``advance`` call is split at arrival and completion boundaries, and
    at the instant a pending switch stops being due (the served entity ties
    the waiting one), so that one large step behaves exactly like many small
    ones:

      1. The served entity (if any) consumes demand; a completion frees the
         server and earns the completion bonus.
      2. The preemption monitor charges the delay penalty for the slice.
      3. The clock moves and due arrivals become waiting entities.
      4. Allocation requests that no container can take are rejected.
      5. The monitor re-evaluates, then phase guards are checked.

    Args:
        config: Validated scenario configuration.
    """

    def __init__(self, config: ScenarioConfig) -> None:
        self.config = config
        self.rules: ScoringRules = config.effective_scoring()
        self._build()

    @classmethod
    def initialize(cls, config: Union[ScenarioConfig, Mapping[str, Any]]) -> "Scenario":
        """Validate *config* and build a scenario.

        Raises:
            ScenarioConfigError: If the configuration is invalid; the
                scenario is not created.
        """
        try:
            if not isinstance(config, ScenarioConfig):
                config = ScenarioConfig.model_validate(config)
            return cls(config)
        except ValidationError as exc:
            raise ScenarioConfigError(str(exc)) from exc
        except ScenarioConfigError:
            raise
        except ValueError as exc:
            raise ScenarioConfigError(str(exc)) from exc

    def _build(self) -> None:
        self.strategy: AlgorithmStrategy = make_strategy(self.config.algorithm)
        self.generator: ArrivalGenerator = make_generator(self.config)
        entities = EntityRegistry()
        resources = make_resources(self.config)
        score = ScoreState()
        monitor = None
        if self.strategy.preemptive:
            monitor = PreemptionMonitor(
                self.strategy,
                entities,
                resources,
                score,
                self.rules.pending_penalty_per_unit,
            )
        self.state = ScenarioState(
            phases=PhaseStateMachine(self.config.require_eligible_to_activate),
            clock=Clock(),
            entities=entities,
            resources=resources,
            score=score,
            monitor=monitor,
        )
        self.validator = ActionValidator(
            self.strategy,
            entities,
            resources,
            self.state.clock,
            score,
            self.rules,
        )
        self._catalog_sizes = self._collect_catalog_sizes()

    def _collect_catalog_sizes(self) -> List[int]:
        sizes = [e.size for e in self.generator.plan]
        if self.config.randomized is not None:
            for bucket in self.config.randomized.buckets:
                sizes.append(bucket.size if bucket.size is not None else bucket.size_range[0])
        return sizes

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.state.phases.phase

    @property
    def now(self) -> float:
        return self.state.clock.now

    def acknowledge(self) -> List[Entity]:
        """Leave the briefing and release the arrivals due at the start.

        Raises:
            PhaseError: If the scenario is not in the intro phase.
        """
        self.state.phases.acknowledge()
        arrivals = self._admit_arrivals()
        self._sweep_rejections()
        self._sync()
        return [e.copy() for e in arrivals]

    def restart(self) -> None:
        """Discard the run and start over from the intro with a fresh state."""
        logger.debug("restarting scenario %s", self.config.scenario_id)
        self._build()

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def advance(self, delta_time: float) -> AdvanceResult:
        """Move simulated time forward by *delta_time*.

        Ticks outside the arrival and active phases are ignored.
        """
        if delta_time < 0:
            raise ValueError(f"delta_time must be non-negative, got {delta_time}")
        if not self.phase.accepts_actions:
            return AdvanceResult()

        state = self.state
        arrivals: List[Entity] = []
        completed: List[Entity] = []
        rejected: List[Entity] = []
        penalty = 0.0
        remaining = delta_time

        while remaining > 0 and self.phase.accepts_actions:
            now = state.clock.now
            step = remaining
            next_arrival = self.generator.peek_time()
            if next_arrival is not None and next_arrival > now:
                step = min(step, next_arrival - now)
            serving = self._serving()
            if serving is not None:
                step = min(step, serving.remaining_time)
                monitor = state.monitor
                if monitor is not None and monitor.preemption_due:
                    # the switch stops being due once the served entity ties the waiting one
                    gap = serving.remaining_time - state.entities.get(monitor.pending_to).remaining_time
                    if gap > 0:
                        step = min(step, gap)

            if serving is not None and serving.serve(step, now):
                state.resources.server.release(serving)
                state.score.add_bonus(self.rules.completion_bonus)
                completed.append(serving.copy())
                logger.debug("%s completed at t=%s", serving.label, serving.completion_time)
            if state.monitor is not None:
                penalty += state.monitor.charge(step)

            state.clock.advance(step)
            remaining -= step
            arrivals.extend(self._admit_arrivals())
            rejected.extend(self._sweep_rejections())
            self._sync()

        return AdvanceResult(
            arrivals=[e.copy() for e in arrivals],
            completed=completed,
            rejected=[e.copy() for e in rejected],
            preemption_due=self.preemption_due,
            penalty=penalty,
        )

    @property
    def preemption_due(self) -> bool:
        monitor = self.state.monitor
        return monitor is not None and monitor.state is MonitorState.PREEMPTION_PENDING

    # ------------------------------------------------------------------
    # Learner actions
    # ------------------------------------------------------------------

    def submit(self, action: Action) -> Verdict:
        """Validate and apply one learner action."""
        if not self.phase.accepts_actions:
            return malformed(
                VerdictReason.NOT_ACCEPTING,
                f"Actions are not accepted during the {self.phase.value} phase.",
            )
        verdict = self.validator.submit(action)
        if verdict.accepted:
            self._sweep_rejections()
            self._sync()
        return verdict

    def canonical_action(self) -> Optional[Action]:
        """The action the algorithm would take now; never mutates the run."""
        if not self.phase.accepts_actions:
            return None
        return self.strategy.resolve(self.state.entities, self.state.resources, self.now)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def fragmentation(self) -> Optional[FragmentationReport]:
        """Current allocation metrics, or None for scheduling scenarios."""
        if not self.strategy.allocation:
            return None
        upcoming = [e.size for e in self.generator.plan if e.entity_id not in self.state.entities]
        return compute_fragmentation(
            self.state.resources,
            self.state.entities,
            upcoming_sizes=upcoming,
            catalog_sizes=self._catalog_sizes,
        )

    def get_snapshot(self) -> Snapshot:
        state = self.state
        return Snapshot(
            phase=self.phase,
            clock=state.clock.now,
            entities=tuple(state.entities.snapshot()),
            resources=tuple(state.resources.snapshot()),
            score=replace(state.score),
            preemption_due=self.preemption_due,
            fragmentation=self.fragmentation(),
        )

    def finalize(self) -> ResultsSummary:
        """Produce the results summary.

        Raises:
            PhaseError: If the run has not reached the results phase.
        """
        if self.phase is not Phase.RESULTS:
            raise PhaseError(f"results are only available in the results phase, not {self.phase.value}")
        return aggregate_results(
            scenario_id=self.config.scenario_id,
            algorithm=self.config.algorithm.value,
            entities=list(self.state.entities),
            score=self.state.score,
            time_spent=self.now,
            allocation=self.strategy.allocation,
            fragmentation=self.fragmentation(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _serving(self) -> Optional[Entity]:
        if self.strategy.allocation:
            return None
        occupant = self.state.resources.server.current_occupant
        return self.state.entities.get(occupant) if occupant is not None else None

    def _admit_arrivals(self) -> List[Entity]:
        admitted: List[Entity] = []
        while True:
            entity = self.generator.next_arrival(self.now)
            if entity is None:
                break
            self.state.entities.add(entity)
            self.state.entities.mark_arrived(entity.entity_id)
            admitted.append(entity)
            logger.debug("%s arrived at t=%s (demand %s)", entity.label, self.now, entity.burst_time)
        return admitted

    def _sweep_rejections(self) -> List[Entity]:
        """Reject head-of-line requests that no container can take."""
        if not isinstance(self.strategy, AllocationStrategy):
            return []
        rejected: List[Entity] = []
        while True:
            head = self.strategy.next_request(self.state.entities, self.now)
            if head is None or self.strategy.select_resource(head, self.state.resources) is not None:
                break
            head.reject(self.now)
            rejected.append(head)
            logger.debug("%s rejected at t=%s: no container fits %s", head.label, self.now, head.size)
        return rejected

    def _sync(self) -> None:
        state = self.state
        if state.monitor is not None:
            state.monitor.sync(state.clock.now)
        state.phases.update(
            arrivals_pending=self.generator.has_pending(),
            any_eligible=bool(state.entities.eligible(state.clock.now)),
            all_terminal=len(state.entities) > 0 and state.entities.all_terminal(),
        )
