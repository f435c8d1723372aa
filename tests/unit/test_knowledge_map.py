"""
Unit tests for the end-of-placement knowledge map.
"""

from src.adaptive.knowledge_map import build_knowledge_map, placement_readiness
from src.core.mastery import assess_topic
from src.core.topics import ProfileLevel


class TestKnowledgeMap:
    def test_groups(self, topics):
        results = [
            assess_topic(1, 4, 4),
            assess_topic(2, 3, 4),
            assess_topic(3, 2, 4),
            assess_topic(4, 0, 3),
        ]
        kmap = build_knowledge_map(results, topics)
        assert [a.topic_id for a in kmap.strong_topics] == [1, 2]
        assert [a.topic_id for a in kmap.weak_topics] == [3]
        assert [a.topic_id for a in kmap.not_learned_topics] == [4]
        assert kmap.overall_level == ProfileLevel.A1_2

    def test_weighted_readiness(self, topics):
        results = [assess_topic(1, 4, 4), assess_topic(4, 1, 2)]
        assert placement_readiness(results, topics) == 23

    def test_no_topics(self):
        assert placement_readiness([], []) == 0
