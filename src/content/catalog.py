"""
Seed catalog of German grammar topics, A1 through B1.

Weights reflect how often a topic carries marks in the B1 exam (1.0 is
average). order_index is the teaching order inside a band.
"""

from __future__ import annotations

from src.core.topics import CefrBand, GrammarTopic

# (slug, level, name_de, name_en, weight)
_SEED: list[tuple[str, str, str, str, float]] = [
    # A1
    ("present-tense-regular", "A1", "Präsens (regelmäßig)", "Present tense (regular verbs)", 1.5),
    ("sein-haben", "A1", "Die Verben sein und haben", "The verbs sein and haben", 1.5),
    ("articles-nominative", "A1", "Artikel im Nominativ", "Articles in the nominative", 1.3),
    ("personal-pronouns", "A1", "Personalpronomen", "Personal pronouns", 1.0),
    ("negation", "A1", "Negation mit nicht und kein", "Negation with nicht and kein", 1.2),
    ("w-questions", "A1", "W-Fragen", "W-questions", 1.0),
    ("verb-position-main-clause", "A1", "Verbposition im Hauptsatz", "Verb position in main clauses", 1.4),
    ("accusative", "A1", "Akkusativ", "Accusative case", 1.4),
    ("modal-verbs-present", "A1", "Modalverben im Präsens", "Modal verbs in the present", 1.3),
    ("separable-verbs", "A1", "Trennbare Verben", "Separable verbs", 1.1),
    # A2
    ("perfect-tense", "A2", "Perfekt", "Present perfect tense", 1.6),
    ("dative", "A2", "Dativ", "Dative case", 1.5),
    ("two-way-prepositions", "A2", "Wechselpräpositionen", "Two-way prepositions", 1.3),
    ("possessive-articles", "A2", "Possessivartikel", "Possessive articles", 1.0),
    ("comparative-superlative", "A2", "Komparativ und Superlativ", "Comparative and superlative", 1.1),
    ("subordinate-weil-dass", "A2", "Nebensätze mit weil und dass", "Subordinate clauses with weil and dass", 1.5),
    ("reflexive-verbs", "A2", "Reflexive Verben", "Reflexive verbs", 1.0),
    ("adjective-endings-basic", "A2", "Adjektivdeklination (Grundlagen)", "Adjective endings (basics)", 1.2),
    # B1
    ("praeteritum", "B1", "Präteritum", "Simple past tense", 1.4),
    ("passive-voice", "B1", "Passiv", "Passive voice", 1.5),
    ("relative-clauses", "B1", "Relativsätze", "Relative clauses", 1.6),
    ("konjunktiv-2", "B1", "Konjunktiv II", "Subjunctive II", 1.5),
    ("genitive", "B1", "Genitiv", "Genitive case", 1.1),
    ("infinitive-with-zu", "B1", "Infinitiv mit zu", "Infinitive with zu", 1.2),
    ("two-part-conjunctions", "B1", "Zweiteilige Konjunktionen", "Two-part conjunctions", 1.0),
    ("adjective-endings-full", "B1", "Adjektivdeklination (alle Fälle)", "Adjective endings (all cases)", 1.3),
]


def load_catalog() -> list[GrammarTopic]:
    """Build the topic list with ids assigned in seed order."""
    topics: list[GrammarTopic] = []
    order_in_band: dict[str, int] = {}
    for topic_id, (slug, level, name_de, name_en, weight) in enumerate(_SEED, start=1):
        order = order_in_band.get(level, 0) + 1
        order_in_band[level] = order
        topics.append(
            GrammarTopic(
                id=topic_id,
                slug=slug,
                level=CefrBand(level),
                name_de=name_de,
                name_en=name_en,
                order_index=order,
                weight=weight,
            )
        )
    return topics
