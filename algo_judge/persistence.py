"""Hand-off of finished results to the external score service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from algo_judge.metrics.results import ResultsSummary

logger = logging.getLogger(__name__)


class PersistenceService(Protocol):
    """External collaborator that stores a score and reports unlocked achievements."""

    def submit_score(self, payload: Dict[str, Any]) -> List[str]:
        ...


class InMemoryPersistence:
    """Records every payload it receives; unlocks ``first-clear`` once per scenario
    and ``perfect-run`` for runs without wrong attempts."""

    def __init__(self) -> None:
        self.payloads: List[Dict[str, Any]] = []
        self._cleared: set = set()

    def submit_score(self, payload: Dict[str, Any]) -> List[str]:
        self.payloads.append(payload)
        unlocked: List[str] = []
        if payload["scenarioId"] not in self._cleared:
            self._cleared.add(payload["scenarioId"])
            unlocked.append("first-clear")
        if payload.get("wrongAttempts", 0) == 0:
            unlocked.append("perfect-run")
        return unlocked


def publish_results(service: PersistenceService, summary: ResultsSummary) -> List[str]:
    """Send *summary* to *service* without ever failing the caller.

    Returns:
        Achievement ids unlocked by the service, or an empty list when the
        service failed.  Failures are logged so local results still show.
    """
    payload = summary.to_persistence_payload()
    try:
        unlocked = service.submit_score(payload)
    except Exception:
        logger.warning("failed to submit score for %s", summary.scenario_id, exc_info=True)
        return []
    logger.debug("score for %s submitted, unlocked %s", summary.scenario_id, unlocked)
    return list(unlocked or [])
