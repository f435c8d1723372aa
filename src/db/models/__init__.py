# SQLAlchemy models
from .adaptive import (
    LearningPathRecord,
    PlacementResultRecord,
    TopicAssessmentRecord,
)
from .base import Base
from .catalog import GrammarTopicRecord
from .learner import (
    DailySession,
    ExerciseHistory,
    Profile,
    UserTopicProgress,
    VocabularyItem,
)

__all__ = [
    "Base",
    "GrammarTopicRecord",
    "TopicAssessmentRecord",
    "LearningPathRecord",
    "PlacementResultRecord",
    "Profile",
    "UserTopicProgress",
    "ExerciseHistory",
    "DailySession",
    "VocabularyItem",
]
