"""
Overall level inference.

Maps aggregate per-band success rates to a discrete profile level. Models a
prerequisite chain: a band only lifts the level when the band below it shows
at least partial competence.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.core.mastery import TopicAssessment
from src.core.topics import BAND_ORDER, CefrBand, GrammarTopic, ProfileLevel, index_topics

MASTERY_THRESHOLD = 0.75
LEARNING_THRESHOLD = 0.50


@dataclass
class BandTally:
    correct: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0


@dataclass
class BandRates:
    """Aggregate success rate per CEFR band."""

    tallies: dict[CefrBand, BandTally] = field(
        default_factory=lambda: {band: BandTally() for band in BAND_ORDER}
    )

    def rate(self, band: CefrBand) -> float:
        return self.tallies[band].rate

    def to_dict(self) -> dict[str, float]:
        return {band.value: self.rate(band) for band in BAND_ORDER}


def aggregate_band_rates(
    assessments: list[TopicAssessment],
    topics: list[GrammarTopic],
) -> BandRates:
    """Sum correct/asked per band; assessments for unknown topics are ignored."""
    lookup = index_topics(topics)
    rates = BandRates()
    for assessment in assessments:
        topic = lookup.get(assessment.topic_id)
        if topic is None:
            continue
        tally = rates.tallies[topic.level]
        tally.correct += assessment.questions_correct
        tally.total += assessment.questions_asked
    return rates


def determine_overall_level(
    assessments: list[TopicAssessment],
    topics: list[GrammarTopic],
) -> ProfileLevel:
    """
    Infer the learner's profile level. First matching rule wins:

    1. B1 >= 75%                 -> B1.2
    2. A2 >= 75% and B1 >= 50%   -> B1.1
    3. A2 >= 75%                 -> A2.2
    4. A1 >= 75% and A2 >= 50%   -> A2.1
    5. A1 >= 75%                 -> A1.2
    6. otherwise                 -> A1.1
    """
    rates = aggregate_band_rates(assessments, topics)
    a1 = rates.rate(CefrBand.A1)
    a2 = rates.rate(CefrBand.A2)
    b1 = rates.rate(CefrBand.B1)

    if b1 >= MASTERY_THRESHOLD:
        return ProfileLevel.B1_2
    if a2 >= MASTERY_THRESHOLD and b1 >= LEARNING_THRESHOLD:
        return ProfileLevel.B1_1
    if a2 >= MASTERY_THRESHOLD:
        return ProfileLevel.A2_2
    if a1 >= MASTERY_THRESHOLD and a2 >= LEARNING_THRESHOLD:
        return ProfileLevel.A2_1
    if a1 >= MASTERY_THRESHOLD:
        return ProfileLevel.A1_2
    return ProfileLevel.A1_1
