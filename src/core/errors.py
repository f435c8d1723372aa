"""
Error taxonomy for the assessment and scheduling engine.

Pure algorithms raise only InvalidInput (contract violations). The other
classes mark boundary conditions that services recover from or surface.
"""

from __future__ import annotations


class CoachError(Exception):
    """Base class for all b1-coach errors."""


class InvalidInput(CoachError, ValueError):
    """A caller violated an invariant (negative counts, correct > total, ...)."""


class NoEligibleTopics(CoachError):
    """Placement selector has nothing left to ask. Signals normal termination."""


class ExternalGenerationFailure(CoachError):
    """Text-generation provider failed or returned an unusable payload."""

    def __init__(self, message: str, topic_id: int | None = None):
        super().__init__(message)
        self.topic_id = topic_id


class PersistenceFailure(CoachError):
    """A write to the record store failed."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation
