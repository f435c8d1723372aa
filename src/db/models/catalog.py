"""
Grammar topic catalog model.
"""

from __future__ import annotations

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.topics import CefrBand, GrammarTopic

from .base import Base


class GrammarTopicRecord(Base):
    """
    Stored grammar topic. Read-only reference data after seeding.
    """

    __tablename__ = "grammar_topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name_de: Mapped[str] = mapped_column(Text, nullable=False)
    name_en: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[str] = mapped_column(String(2), nullable=False, index=True)  # A1, A2, B1
    description_de: Mapped[str | None] = mapped_column(Text)
    description_en: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    weight: Mapped[float] = mapped_column(Float, default=1.0)

    def to_domain(self) -> GrammarTopic:
        return GrammarTopic(
            id=self.id,
            slug=self.slug,
            level=CefrBand(self.level),
            name_de=self.name_de,
            name_en=self.name_en,
            order_index=self.order_index,
            weight=self.weight,
            description_de=self.description_de,
            description_en=self.description_en,
        )

    @classmethod
    def from_domain(cls, topic: GrammarTopic) -> GrammarTopicRecord:
        return cls(
            id=topic.id,
            slug=topic.slug or f"topic-{topic.id}",
            level=topic.level.value,
            name_de=topic.name_de,
            name_en=topic.name_en,
            description_de=topic.description_de,
            description_en=topic.description_en,
            order_index=topic.order_index,
            weight=topic.weight,
        )

    def __repr__(self) -> str:
        return f"<GrammarTopicRecord {self.id} {self.level} {self.slug}>"
