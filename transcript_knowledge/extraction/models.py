"""Data models for knowledge extraction results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class KnowledgeType(StrEnum):
    """Mutually exclusive classification of a passage."""

    ADVICE = "advice"
    BIOGRAPHICAL_EVENT = "biographical_event"
    CONCEPT_DEFINITION = "concept_definition"
    GENERAL = "general"


class Importance(StrEnum):
    """Importance bands, ordered low < medium < high."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _IMPORTANCE_RANK[self]


_IMPORTANCE_RANK = {Importance.LOW: 0, Importance.MEDIUM: 1, Importance.HIGH: 2}


@dataclass
class Entities:
    """Named entities found in a passage, one de-duplicated list per category."""

    people: list[str] = field(default_factory=list)
    concepts: list[str] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)
    ages: list[int] = field(default_factory=list)
    numbers: list[str] = field(default_factory=list)

    def count(self) -> int:
        """Total number of distinct entities across all categories."""
        return (
            len(self.people)
            + len(self.concepts)
            + len(self.organizations)
            + len(self.ages)
            + len(self.numbers)
        )


@dataclass
class KnowledgeContent:
    main: str
    quotes: list[str] = field(default_factory=list)
    key_takeaway: str = ""


@dataclass
class KnowledgeObject:
    """One classified, entity-annotated unit of extracted meaning."""

    knowledge_id: str
    content: KnowledgeContent
    entities: Entities
    knowledge_type: KnowledgeType = KnowledgeType.GENERAL
    importance: Importance = Importance.LOW
    topic: str = "General"
    start_time: str | None = None
    end_time: str | None = None
    segment_ids: list[int] = field(default_factory=list)
    paragraph_id: int | str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "knowledgeId": self.knowledge_id,
            "topic": self.topic,
            "knowledgeType": self.knowledge_type.value,
            "importance": self.importance.value,
            "content": {
                "main": self.content.main,
                "quotes": list(self.content.quotes),
                "keyTakeaway": self.content.key_takeaway,
            },
            "entities": asdict(self.entities),
            "timestamp": {"start": self.start_time, "end": self.end_time},
            "segmentIds": list(self.segment_ids),
            "paragraphId": self.paragraph_id,
        }


@dataclass
class ExtractionResult:
    """Knowledge objects for a transcript plus summary counts."""

    knowledge: list[KnowledgeObject]
    stats: dict[str, int] = field(default_factory=dict)
