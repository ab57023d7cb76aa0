"""Scenario lifecycle phases."""

from __future__ import annotations

import logging
from enum import Enum

from algo_judge.errors import PhaseError

logger = logging.getLogger(__name__)


class Phase(Enum):
    INTRO = "intro"
    ARRIVAL = "arrival"
    ACTIVE = "active"
    RESULTS = "results"

    @property
    def accepts_actions(self) -> bool:
        return self in (Phase.ARRIVAL, Phase.ACTIVE)


class PhaseStateMachine:
    """Sequences a run through Intro -> Arrival -> Active -> Results.

    Transitions only move forward; going back requires a full restart of
    the scenario, which builds a new machine.

    Args:
        require_eligible_to_activate: When set, Arrival -> Active also needs
            at least one entity ready for a decision.
    """

    def __init__(self, require_eligible_to_activate: bool = False) -> None:
        self.phase: Phase = Phase.INTRO
        self.require_eligible_to_activate = require_eligible_to_activate

    def acknowledge(self) -> None:
        """Learner acknowledged the briefing."""
        if self.phase is not Phase.INTRO:
            raise PhaseError(f"briefing can only be acknowledged during intro, not {self.phase.value}")
        self._move(Phase.ARRIVAL)

    def update(self, arrivals_pending: bool, any_eligible: bool, all_terminal: bool) -> Phase:
        """Fire every transition whose guard holds and return the current phase."""
        if self.phase is Phase.ARRIVAL and not arrivals_pending:
            ready = any_eligible or all_terminal or not self.require_eligible_to_activate
            if ready:
                self._move(Phase.ACTIVE)
        if self.phase is Phase.ACTIVE and not arrivals_pending and all_terminal:
            self._move(Phase.RESULTS)
        return self.phase

    def _move(self, target: Phase) -> None:
        logger.debug("phase %s -> %s", self.phase.value, target.value)
        self.phase = target
