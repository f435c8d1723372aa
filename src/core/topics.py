"""
CEFR levels and grammar topic reference data.

Grammar topics are tagged with a coarse CEFR band (A1, A2, B1). Learner
profiles carry a finer sub-level (A1.1 ... B1.2) inferred from placement.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.core.errors import InvalidInput


class CefrBand(str, Enum):
    """Coarse CEFR band used to tier grammar topics."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"

    @property
    def index(self) -> int:
        """Position in the A1 -> A2 -> B1 progression."""
        return BAND_ORDER.index(self)


BAND_ORDER: list[CefrBand] = [CefrBand.A1, CefrBand.A2, CefrBand.B1]


class ProfileLevel(str, Enum):
    """Discrete learner level stored on the profile."""

    A1_1 = "A1.1"
    A1_2 = "A1.2"
    A2_1 = "A2.1"
    A2_2 = "A2.2"
    B1_1 = "B1.1"
    B1_2 = "B1.2"

    @property
    def band(self) -> CefrBand:
        """Band prefix of the sub-level (B1.1 -> B1)."""
        return CefrBand(self.value[:2])


LEVEL_ORDER: list[ProfileLevel] = list(ProfileLevel)


@dataclass(frozen=True)
class GrammarTopic:
    """
    A teachable grammar point.

    Immutable reference data loaded wholesale from the catalog.
    """

    id: int
    level: CefrBand
    name_de: str
    name_en: str
    order_index: int = 0
    weight: float = 1.0
    slug: str = ""
    description_de: str | None = None
    description_en: str | None = None

    def __post_init__(self):
        if self.weight <= 0:
            raise InvalidInput(f"Topic {self.id} weight must be positive, got {self.weight}")
        if not isinstance(self.level, CefrBand):
            object.__setattr__(self, "level", CefrBand(self.level))

    @property
    def band_index(self) -> int:
        return self.level.index


def index_topics(topics: list[GrammarTopic]) -> dict[int, GrammarTopic]:
    """Build an id -> topic lookup."""
    return {topic.id: topic for topic in topics}


def sort_by_band_then_weight(topics: list[GrammarTopic]) -> list[GrammarTopic]:
    """Order topics by band ascending, then exam weight descending (stable)."""
    return sorted(topics, key=lambda t: (t.band_index, -t.weight))
