"""Exception hierarchy for the judge engine.

Only configuration and lifecycle misuse raise. Malformed or wrong learner
actions are reported through verdicts instead.
"""

from __future__ import annotations


class JudgeError(Exception):
    """Base class for every error raised by the judge engine."""


class ScenarioConfigError(JudgeError, ValueError):
    """The scenario configuration is invalid; the scenario must not start."""


class PhaseError(JudgeError, RuntimeError):
    """An operation was called in a phase that does not allow it."""
