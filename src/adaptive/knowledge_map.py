"""
Knowledge map shown at the end of a placement test.

Groups assessments into strong / weak / not-learned topics and computes a
weight-weighted confidence readiness percentage.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.adaptive.level_inference import determine_overall_level
from src.core.mastery import MasteryLevel, TopicAssessment
from src.core.rounding import round_to_int
from src.core.topics import GrammarTopic, ProfileLevel

STRONG_LEVELS = {MasteryLevel.MASTERED, MasteryLevel.PRACTICED}
WEAK_LEVELS = {MasteryLevel.LEARNING}
NOT_LEARNED_LEVELS = {MasteryLevel.NOT_LEARNED, MasteryLevel.NOT_ASSESSED}


@dataclass
class KnowledgeMap:
    assessments: list[TopicAssessment]
    overall_level: ProfileLevel
    readiness_score: int
    strong_topics: list[TopicAssessment] = field(default_factory=list)
    weak_topics: list[TopicAssessment] = field(default_factory=list)
    not_learned_topics: list[TopicAssessment] = field(default_factory=list)


def placement_readiness(assessments: list[TopicAssessment], topics: list[GrammarTopic]) -> int:
    """Share of total exam weight covered by confidence, as a 0-100 integer."""
    by_topic = {a.topic_id: a for a in assessments}
    total_weight = 0.0
    achieved = 0.0
    for topic in topics:
        total_weight += topic.weight
        assessment = by_topic.get(topic.id)
        if assessment is not None:
            achieved += topic.weight * assessment.confidence_score
    if total_weight <= 0:
        return 0
    return round_to_int(achieved / total_weight * 100)


def build_knowledge_map(
    assessments: list[TopicAssessment],
    topics: list[GrammarTopic],
) -> KnowledgeMap:
    return KnowledgeMap(
        assessments=list(assessments),
        overall_level=determine_overall_level(assessments, topics),
        readiness_score=placement_readiness(assessments, topics),
        strong_topics=[a for a in assessments if a.mastery_level in STRONG_LEVELS],
        weak_topics=[a for a in assessments if a.mastery_level in WEAK_LEVELS],
        not_learned_topics=[a for a in assessments if a.mastery_level in NOT_LEARNED_LEVELS],
    )
