"""
Adaptive Assessment Engine.

Components:
- DifficultyController: Steps practice difficulty toward the flow zone
- PlacementQuestionSelector: Picks placement questions over an explicit QuizState
- determine_overall_level: Maps per-band success rates to a profile level
- LearningPathBuilder: Prioritized remediation plan from assessments
- build_knowledge_map: Strong / weak / not-learned grouping after placement
"""
from src.adaptive.difficulty import (
    DifficultyAdjustment,
    DifficultyController,
    PerformanceWindow,
    TopicPracticeState,
    calculate_difficulty_adjustment,
    calculate_proficiency,
    select_topics_for_session,
)
from src.adaptive.knowledge_map import KnowledgeMap, build_knowledge_map
from src.adaptive.learning_path import (
    LearningPathBuilder,
    LearningPathItem,
    PathStatus,
    estimate_time_to_b1,
    generate_learning_path,
)
from src.adaptive.level_inference import aggregate_band_rates, determine_overall_level
from src.adaptive.placement import (
    PlacementQuestion,
    PlacementQuestionSelector,
    QuizState,
    TopicTally,
    build_assessments,
    record_answer,
    should_continue_topic,
    start_quiz,
)

__all__ = [
    # Difficulty
    "DifficultyAdjustment",
    "DifficultyController",
    "PerformanceWindow",
    "TopicPracticeState",
    "calculate_difficulty_adjustment",
    "calculate_proficiency",
    "select_topics_for_session",
    # Placement
    "PlacementQuestion",
    "PlacementQuestionSelector",
    "QuizState",
    "TopicTally",
    "build_assessments",
    "record_answer",
    "should_continue_topic",
    "start_quiz",
    # Results
    "aggregate_band_rates",
    "determine_overall_level",
    "LearningPathBuilder",
    "LearningPathItem",
    "PathStatus",
    "estimate_time_to_b1",
    "generate_learning_path",
    "KnowledgeMap",
    "build_knowledge_map",
]
