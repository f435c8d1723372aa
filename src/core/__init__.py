"""
Core Module - Shared domain models and interfaces.

This module contains the canonical implementations of concepts used across
the adaptive, study and generation packages.

Components:
- errors: InvalidInput, NoEligibleTopics, ExternalGenerationFailure, PersistenceFailure
- mastery: MasteryLevel, TopicAssessment, mastery_level, confidence
- topics: CefrBand, ProfileLevel, GrammarTopic
- rounding: round-half-up convention

Design Principle:
Domain modules import from src/core/ rather than reimplementing shared concepts.
"""

from src.core.errors import (
    CoachError,
    ExternalGenerationFailure,
    InvalidInput,
    NoEligibleTopics,
    PersistenceFailure,
)
from src.core.mastery import (
    MasteryLevel,
    TopicAssessment,
    assess_topic,
    confidence,
    mastery_level,
)
from src.core.rounding import round_half_up, round_to_int
from src.core.topics import (
    BAND_ORDER,
    LEVEL_ORDER,
    CefrBand,
    GrammarTopic,
    ProfileLevel,
)

__all__ = [
    # Errors
    "CoachError",
    "InvalidInput",
    "NoEligibleTopics",
    "ExternalGenerationFailure",
    "PersistenceFailure",
    # Mastery
    "MasteryLevel",
    "TopicAssessment",
    "assess_topic",
    "confidence",
    "mastery_level",
    # Topics
    "CefrBand",
    "ProfileLevel",
    "GrammarTopic",
    "BAND_ORDER",
    "LEVEL_ORDER",
    # Rounding
    "round_half_up",
    "round_to_int",
]
